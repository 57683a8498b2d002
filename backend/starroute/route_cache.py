from __future__ import annotations

import hashlib
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass
from threading import Lock

from .logging_utils import log_event
from .route_types import RouteFindingOptions, SearchResult
from .stars import StarNode

DEFAULT_MAX_ENTRIES = 50

# Bounds are compared at two decimals.
_DISTANCE_PRECISION = 100


def _normalize_distance(distance: float) -> int:
    return int(round(float(distance) * _DISTANCE_PRECISION))


def stars_digest(stars: Iterable[StarNode | None]) -> str:
    names = sorted(star.name for star in stars if star is not None and star.name)
    return hashlib.sha1("\x1f".join(names).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class RouteCacheKey:
    """Search identity: every field that changes the result, none that only changes looks."""

    origin_star_name: str
    destination_star_name: str
    upper_bound: int
    lower_bound: int
    number_paths: int
    star_exclusions: frozenset[str]
    polity_exclusions: frozenset[str]
    stars_digest: str = ""

    @classmethod
    def from_options(
        cls,
        options: RouteFindingOptions,
        stars: Iterable[StarNode | None] | None = None,
    ) -> RouteCacheKey:
        return cls(
            origin_star_name=options.origin_star_name,
            destination_star_name=options.destination_star_name,
            upper_bound=_normalize_distance(options.upper_bound),
            lower_bound=_normalize_distance(options.lower_bound),
            number_paths=int(options.number_paths),
            star_exclusions=frozenset(options.star_exclusions),
            polity_exclusions=frozenset(options.polity_exclusions),
            stars_digest=stars_digest(stars) if stars is not None else "",
        )

    def __str__(self) -> str:
        stars_info = f", stars={self.stars_digest[:8]}" if self.stars_digest else ""
        return (
            f"RouteCacheKey[{self.origin_star_name} -> {self.destination_star_name}, "
            f"bounds={self.lower_bound / _DISTANCE_PRECISION:.2f}-{self.upper_bound / _DISTANCE_PRECISION:.2f}, "
            f"paths={self.number_paths}, excl={len(self.star_exclusions)}/{len(self.polity_exclusions)}"
            f"{stars_info}]"
        )


class RouteCacheStore:
    """Bounded LRU of successful search results, guarded by one lock."""

    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._max_entries = max(1, int(max_entries))
        self._lock = Lock()
        self._items: OrderedDict[RouteCacheKey, SearchResult] = OrderedDict()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: RouteCacheKey) -> SearchResult | None:
        with self._lock:
            result = self._items.get(key)
            if result is None:
                self._misses += 1
                return None
            self._items.move_to_end(key)
            self._hits += 1
            return result

    def put(self, key: RouteCacheKey, result: SearchResult) -> bool:
        """Store ``result`` if it is a success; returns whether it was stored."""
        if not result.success:
            return False
        evicted: list[RouteCacheKey] = []
        with self._lock:
            if key in self._items:
                self._items.move_to_end(key)
            elif len(self._items) >= self._max_entries:
                old_key, _ = self._items.popitem(last=False)
                evicted.append(old_key)
                self._evictions += 1
            self._items[key] = result
        for old_key in evicted:
            log_event("route_cache_evicted", cache_key=str(old_key))
        return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._items)
            self._items.clear()
        log_event("route_cache_cleared", cleared=cleared)
        return cleared

    def reset_statistics(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    @property
    def hits(self) -> int:
        with self._lock:
            return self._hits

    @property
    def misses(self) -> int:
        with self._lock:
            return self._misses

    def snapshot(self) -> dict[str, int | float]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._items),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(100.0 * self._hits / total, 1) if total else 0.0,
                "max_entries": self._max_entries,
            }

    def statistics(self) -> str:
        snap = self.snapshot()
        return (
            f"RouteCache[size={snap['size']}, hits={snap['hits']}, "
            f"misses={snap['misses']}, hitRate={snap['hit_rate']:.1f}%]"
        )
