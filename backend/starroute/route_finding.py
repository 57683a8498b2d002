from __future__ import annotations

import time
from collections.abc import Sequence

from .k_shortest import PathResult
from .logging_utils import log_event, log_exception
from .route_cache import RouteCacheKey, RouteCacheStore
from .route_errors import RouteFindingError
from .route_graph import RouteGraph
from .route_shape import shape_from_stars
from .route_types import RankedPath, RouteFindingOptions, SearchResult
from .settings import settings
from .stars import StarNode, index_by_name
from .transits import DistanceBounds, DistanceProvider

# Rank 1 keeps the caller's color; alternates walk this palette in order.
ALTERNATE_ROUTE_COLORS: tuple[str, ...] = (
    "#ff8c00",
    "#7fff00",
    "#ff69b4",
    "#1e90ff",
    "#ffd700",
    "#9370db",
    "#20b2aa",
    "#dc143c",
)


def route_color_for_rank(rank: int, base_color: str) -> str:
    if rank <= 1:
        return base_color
    return ALTERNATE_ROUTE_COLORS[(rank - 2) % len(ALTERNATE_ROUTE_COLORS)]


def prune_stars(stars: Sequence[StarNode | None], options: RouteFindingOptions) -> list[StarNode]:
    """Drop stars whose spectral type or polity is excluded, keeping input order.

    ``None`` entries are skipped; stars without a spectral class (or polity)
    are never excluded by that rule.
    """
    star_exclusions = options.star_exclusions
    polity_exclusions = options.polity_exclusions
    pruned: list[StarNode] = []
    for star in stars:
        if star is None:
            continue
        spectral_type = star.spectral_type
        if spectral_type is not None and spectral_type in star_exclusions:
            continue
        if star.polity and star.polity in polity_exclusions:
            continue
        pruned.append(star)
    return pruned


def format_path(star_names: Sequence[str]) -> str:
    return " -> ".join(star_names)


class RouteFindingService:
    """Runs one route query end to end and caches successful results.

    ``find_routes`` never raises: every failure comes back as a
    ``SearchResult`` with ``success=False``.
    """

    def __init__(
        self,
        distance_provider: DistanceProvider,
        cache: RouteCacheStore,
        *,
        max_stars: int | None = None,
        max_hops: int | None = None,
        deadline_s: float | None = None,
    ) -> None:
        self._distance_provider = distance_provider
        self._cache = cache
        self._max_stars = int(max_stars if max_stars is not None else settings.route_graph_max_stars)
        self._max_hops = int(max_hops if max_hops is not None else settings.route_search_max_hops)
        deadline = settings.route_search_deadline_s if deadline_s is None else deadline_s
        self._deadline_s = float(deadline) if deadline and deadline > 0 else None

    @property
    def cache(self) -> RouteCacheStore:
        return self._cache

    def clear_cache(self) -> int:
        return self._cache.clear()

    def cache_statistics(self) -> str:
        return self._cache.statistics()

    def find_routes(
        self,
        options: RouteFindingOptions,
        stars: Sequence[StarNode | None],
        *,
        use_cache: bool = True,
    ) -> SearchResult:
        origin = options.origin_star_name
        destination = options.destination_star_name
        t0 = time.perf_counter()
        log_event("route_search_started", origin=origin, destination=destination, star_count=len(stars))
        try:
            result = self._find_routes(options, stars, use_cache=use_cache)
        except RouteFindingError as exc:
            result = SearchResult.failure(exc.message, reason_code=exc.reason_code)
        except Exception as exc:
            log_exception("route_search_crashed", origin=origin, destination=destination)
            result = SearchResult.failure(f"route finding failed: {exc}", reason_code="route_finding_failed")

        log_event(
            "route_search_finished",
            origin=origin,
            destination=destination,
            success=result.success,
            reason_code=result.reason_code,
            route_count=len(result.routes),
            duration_ms=round((time.perf_counter() - t0) * 1000, 2),
        )
        return result

    def _find_routes(
        self,
        options: RouteFindingOptions,
        stars: Sequence[StarNode | None],
        *,
        use_cache: bool,
    ) -> SearchResult:
        origin = options.origin_star_name
        destination = options.destination_star_name

        available = index_by_name(stars)
        for label, name in (("origin", origin), ("destination", destination)):
            if name not in available:
                raise RouteFindingError(
                    "unknown_endpoint",
                    f"{label.capitalize()} star '{name}' is not in the available stars.",
                )

        pruned = prune_stars(stars, options)
        remaining = index_by_name(pruned)
        for label, name in (("origin", origin), ("destination", destination)):
            if name not in remaining:
                raise RouteFindingError(
                    "excluded_endpoint",
                    f"{label.capitalize()} star '{name}' was excluded by the spectral class or polity filters.",
                )

        cache_key = RouteCacheKey.from_options(options, stars)
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not None:
                log_event("route_cache_hit", cache_key=str(cache_key))
                return cached

        if len(pruned) > self._max_stars:
            raise RouteFindingError(
                "too_many_stars",
                f"Too many stars ({len(pruned)}) to plan a route. Maximum is {self._max_stars}.",
            )

        bounds = DistanceBounds(lower_bound=options.lower_bound, upper_bound=options.upper_bound)
        transits = self._distance_provider.calculate_distances(bounds, pruned)
        if not transits:
            raise RouteFindingError(
                "no_transits",
                "no transits within bounds; try adjusting the upper/lower distance bounds.",
            )

        graph = RouteGraph.build(transits)
        if graph.edge_count == 0:
            raise RouteFindingError(
                "no_transits",
                "no transits within bounds; try adjusting the upper/lower distance bounds.",
            )
        if not graph.is_connected(origin, destination):
            raise RouteFindingError(
                "no_path",
                f"no path exists between {origin} and {destination} with the given parameters.",
            )

        paths = graph.k_shortest_paths(
            origin,
            destination,
            options.number_paths,
            max_hops=self._max_hops,
            deadline_s=self._deadline_s,
        )
        ranked = self._rank_paths(paths, graph, remaining, options)
        if not ranked:
            raise RouteFindingError("no_routes", "No valid routes found.")

        result = SearchResult.ok(ranked, desired_path=f"Route {origin} to {destination}")
        if use_cache:
            self._cache.put(cache_key, result)
        return result

    def _rank_paths(
        self,
        paths: Sequence[PathResult],
        graph: RouteGraph,
        stars_by_name: dict[str, StarNode],
        options: RouteFindingOptions,
    ) -> list[RankedPath]:
        measured: list[tuple[float, tuple[str, ...], list[float]]] = []
        for path in paths:
            names = tuple(path.nodes)
            lengths: list[float] = []
            for idx in range(1, len(names)):
                distance = graph.edge_distance(names[idx - 1], names[idx])
                if distance is None:
                    raise RouteFindingError(
                        "route_finding_failed",
                        f"route finding failed: missing transit {names[idx - 1]} -> {names[idx]}",
                    )
                lengths.append(distance)
            measured.append((sum(lengths), names, lengths))

        # Yen already yields ascending totals; re-sorting keeps rank 1 minimal even
        # when float sums drift from the search's own cost accounting.
        measured.sort(key=lambda item: (round(item[0], 9), len(item[1]), item[1]))

        ranked: list[RankedPath] = []
        for rank, (total, names, lengths) in enumerate(measured, start=1):
            shape = shape_from_stars(
                [stars_by_name[name] for name in names],
                segment_lengths=lengths,
                name=f"{options.origin_star_name} to {options.destination_star_name} #{rank}",
                color=route_color_for_rank(rank, options.color),
                line_width=options.line_width,
            )
            ranked.append(
                RankedPath(
                    path=format_path(names),
                    star_names=names,
                    rank=rank,
                    total_length=total,
                    number_of_segments=len(lengths),
                    route=shape,
                )
            )
        return ranked
