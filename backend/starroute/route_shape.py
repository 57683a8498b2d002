from __future__ import annotations

import uuid
from typing import Any

from .stars import Position, StarNode, star_distance


class RouteShapeFrozenError(RuntimeError):
    pass


class RouteShape:
    """Accumulated geometry of one route, built one star at a time.

    While non-empty, ``len(coordinates) == len(star_ids)`` and
    ``len(segment_lengths) == len(coordinates) - 1``. A frozen shape rejects
    further mutation.
    """

    def __init__(
        self,
        *,
        name: str = "",
        color: str = "#00ffff",
        line_width: float = 0.5,
        notes: str = "",
        route_id: str | None = None,
    ) -> None:
        self.id = route_id or str(uuid.uuid4())
        self.name = name
        self.color = color
        self.line_width = line_width
        self.notes = notes
        self._star_ids: list[str] = []
        self._star_names: list[str] = []
        self._coordinates: list[Position] = []
        self._segment_lengths: list[float] = []
        self._frozen = False

    def __repr__(self) -> str:
        return (
            f"RouteShape(name={self.name!r}, stars={self._star_names!r}, "
            f"total_length={self.total_length:.2f}, frozen={self._frozen})"
        )

    @property
    def star_ids(self) -> tuple[str, ...]:
        return tuple(self._star_ids)

    @property
    def star_names(self) -> tuple[str, ...]:
        return tuple(self._star_names)

    @property
    def coordinates(self) -> tuple[Position, ...]:
        return tuple(self._coordinates)

    @property
    def segment_lengths(self) -> tuple[float, ...]:
        return tuple(self._segment_lengths)

    @property
    def number_segments(self) -> int:
        return len(self._segment_lengths)

    @property
    def total_length(self) -> float:
        return float(sum(self._segment_lengths))

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def is_empty(self) -> bool:
        return not self._coordinates

    @property
    def last_position(self) -> Position | None:
        return self._coordinates[-1] if self._coordinates else None

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RouteShapeFrozenError(f"route {self.id} is frozen")

    def add_link(self, star: StarNode, length: float | None = None) -> None:
        """Append ``star``; the first link seeds the route with no segment.

        ``length`` defaults to the straight-line distance from the previous star.
        """
        self._check_mutable()
        previous = self.last_position
        if previous is not None:
            if length is None:
                length = star_distance(previous, star.position)
            self._segment_lengths.append(float(length))
        self._star_ids.append(star.id)
        self._star_names.append(star.name)
        self._coordinates.append(star.position)

    def remove_last(self) -> bool:
        """Drop the last star and its segment; True once only the seed (or nothing) is left."""
        self._check_mutable()
        if len(self._coordinates) > 1:
            self._coordinates.pop()
            self._star_ids.pop()
            self._star_names.pop()
            self._segment_lengths.pop()
        return len(self._coordinates) <= 1

    def freeze(self) -> RouteShape:
        self._frozen = True
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "line_width": self.line_width,
            "notes": self.notes,
            "star_ids": list(self._star_ids),
            "star_names": list(self._star_names),
            "coordinates": [list(c) for c in self._coordinates],
            "segment_lengths": [round(x, 6) for x in self._segment_lengths],
            "total_length": round(self.total_length, 6),
            "frozen": self._frozen,
        }


def shape_from_stars(
    stars: list[StarNode],
    *,
    segment_lengths: list[float] | None = None,
    name: str = "",
    color: str = "#00ffff",
    line_width: float = 0.5,
) -> RouteShape:
    """Build and freeze a shape for a complete path."""
    shape = RouteShape(name=name, color=color, line_width=line_width)
    for idx, star in enumerate(stars):
        length = None
        if segment_lengths is not None and idx > 0:
            length = segment_lengths[idx - 1]
        shape.add_link(star, length)
    return shape.freeze()
