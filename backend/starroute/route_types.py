from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .route_errors import normalize_reason_code
from .route_shape import RouteShape


def _clean_set(values: Iterable[str] | None) -> frozenset[str]:
    if not values:
        return frozenset()
    return frozenset(str(v).strip() for v in values if v is not None and str(v).strip())


@dataclass(frozen=True)
class RouteFindingOptions:
    origin_star_name: str
    destination_star_name: str
    upper_bound: float
    lower_bound: float = 0.0
    number_paths: int = 3
    star_exclusions: frozenset[str] = field(default_factory=frozenset)
    polity_exclusions: frozenset[str] = field(default_factory=frozenset)
    # Presentation only; never part of the cache identity.
    color: str = "#00ffff"
    line_width: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin_star_name", str(self.origin_star_name or "").strip())
        object.__setattr__(self, "destination_star_name", str(self.destination_star_name or "").strip())
        object.__setattr__(self, "star_exclusions", _clean_set(self.star_exclusions))
        object.__setattr__(self, "polity_exclusions", _clean_set(self.polity_exclusions))
        if self.number_paths < 1:
            raise ValueError("number_paths must be at least 1")
        if self.lower_bound < 0 or self.upper_bound < self.lower_bound:
            raise ValueError("distance bounds must satisfy 0 <= lower_bound <= upper_bound")


@dataclass(frozen=True)
class RankedPath:
    path: str
    star_names: tuple[str, ...]
    rank: int
    total_length: float
    number_of_segments: int
    route: RouteShape


@dataclass(frozen=True)
class SearchResult:
    success: bool
    routes: tuple[RankedPath, ...] = ()
    message: str = ""
    reason_code: str = ""
    desired_path: str = ""

    @classmethod
    def ok(cls, routes: Iterable[RankedPath], *, desired_path: str = "") -> SearchResult:
        ordered = tuple(sorted(routes, key=lambda r: r.rank))
        return cls(success=True, routes=ordered, desired_path=desired_path)

    @classmethod
    def failure(cls, message: str, *, reason_code: str = "route_finding_failed") -> SearchResult:
        return cls(success=False, message=message, reason_code=normalize_reason_code(reason_code))

    @property
    def best(self) -> RankedPath | None:
        return self.routes[0] if self.routes else None
