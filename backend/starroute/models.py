from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .route_shape import RouteShape
from .route_types import RankedPath, RouteFindingOptions
from .settings import settings
from .stars import StarNode


class StarIn(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1)
    x: float
    y: float
    z: float
    spectral_class: str | None = None
    polity: str | None = None

    @field_validator("x", "y", "z")
    @classmethod
    def finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("coordinates must be finite")
        return v

    def to_node(self) -> StarNode:
        return StarNode(
            id=self.id or self.name,
            name=self.name,
            position=(self.x, self.y, self.z),
            spectral_class=self.spectral_class,
            polity=self.polity,
        )


class StarCatalogRequest(BaseModel):
    stars: list[StarIn] = Field(default_factory=list, max_length=50_000)


class StarCatalogResponse(BaseModel):
    star_count: int
    cache_cleared: int = 0


class RouteFindRequest(BaseModel):
    """Automatic routing request. Backend trims and de-duplicates exclusions."""

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    upper_bound: float = Field(..., gt=0)
    lower_bound: float = Field(default=0.0, ge=0)
    number_paths: int = Field(default_factory=lambda: settings.default_number_paths, ge=1, le=50)
    star_exclusions: list[str] = Field(default_factory=list)
    polity_exclusions: list[str] = Field(default_factory=list)
    color: str = Field(default_factory=lambda: settings.default_route_color)
    line_width: float = Field(default_factory=lambda: settings.default_line_width, gt=0)
    use_cache: bool = True

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_aliases(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        for legacy, key in (
            ("origin_star_name", "origin"),
            ("destination_star_name", "destination"),
            ("max_distance", "upper_bound"),
            ("min_distance", "lower_bound"),
        ):
            if key not in data and legacy in data:
                data[key] = data[legacy]
        return data

    @model_validator(mode="after")
    def bounds_ordered(self) -> "RouteFindRequest":
        if self.lower_bound > self.upper_bound:
            raise ValueError("lower_bound must not exceed upper_bound")
        return self

    def to_options(self) -> RouteFindingOptions:
        return RouteFindingOptions(
            origin_star_name=self.origin,
            destination_star_name=self.destination,
            upper_bound=self.upper_bound,
            lower_bound=self.lower_bound,
            number_paths=self.number_paths,
            star_exclusions=frozenset(self.star_exclusions),
            polity_exclusions=frozenset(self.polity_exclusions),
            color=self.color,
            line_width=self.line_width,
        )


class RouteShapeOut(BaseModel):
    id: str
    name: str
    color: str
    line_width: float
    notes: str = ""
    star_ids: list[str]
    star_names: list[str]
    coordinates: list[tuple[float, float, float]]
    segment_lengths: list[float]
    total_length: float
    frozen: bool

    @classmethod
    def from_shape(cls, shape: RouteShape) -> "RouteShapeOut":
        return cls.model_validate(shape.to_dict())


class RankedPathOut(BaseModel):
    path: str
    star_names: list[str]
    rank: int
    total_length: float
    number_of_segments: int
    route: RouteShapeOut

    @classmethod
    def from_ranked(cls, ranked: RankedPath) -> "RankedPathOut":
        return cls(
            path=ranked.path,
            star_names=list(ranked.star_names),
            rank=ranked.rank,
            total_length=round(ranked.total_length, 6),
            number_of_segments=ranked.number_of_segments,
            route=RouteShapeOut.from_shape(ranked.route),
        )


class RouteFindResponse(BaseModel):
    desired_path: str
    routes: list[RankedPathOut]


class RouteFailureDetail(BaseModel):
    reason_code: str
    message: str


class PlottedRoutesResponse(BaseModel):
    routes: list[RouteShapeOut]
    routes_visible: bool
    route_lengths_visible: bool


class ManualStartRequest(BaseModel):
    star_name: str = Field(..., min_length=1)
    name: str = ""
    color: str = Field(default_factory=lambda: settings.default_route_color)
    line_width: float = Field(default_factory=lambda: settings.default_line_width, gt=0)
    notes: str = ""


class ManualStarRequest(BaseModel):
    star_name: str = Field(..., min_length=1)


class ManualFinishRequest(BaseModel):
    star_name: str | None = None


class ManualStateResponse(BaseModel):
    mode: Literal["none", "automatic", "manual"]
    state: Literal["idle", "active"]
    active: bool
    route: RouteShapeOut | None = None


class CacheStatsResponse(BaseModel):
    size: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float
    max_entries: int
    summary: str

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any], summary: str) -> "CacheStatsResponse":
        return cls(**snapshot, summary=summary)
