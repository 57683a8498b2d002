from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

Position = tuple[float, float, float]


@dataclass(frozen=True)
class StarNode:
    id: str
    name: str
    position: Position
    spectral_class: str | None = None
    polity: str | None = None

    @property
    def spectral_type(self) -> str | None:
        """Leading letter of the spectral class ("M" for "M4.5V"), or None when unset."""
        spectral = (self.spectral_class or "").strip()
        if not spectral:
            return None
        return spectral[0]


def star_distance(a: Position, b: Position) -> float:
    return math.dist(a, b)


def index_by_name(stars: Iterable[StarNode | None]) -> dict[str, StarNode]:
    # First occurrence wins when a catalog carries duplicate names.
    out: dict[str, StarNode] = {}
    for star in stars:
        if star is None or not star.name:
            continue
        out.setdefault(star.name, star)
    return out
