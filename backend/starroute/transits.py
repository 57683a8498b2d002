from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from scipy.spatial import cKDTree

from .settings import settings
from .stars import StarNode


@dataclass(frozen=True)
class DistanceBounds:
    lower_bound: float
    upper_bound: float

    def contains(self, distance: float) -> bool:
        return self.lower_bound <= distance <= self.upper_bound


@dataclass(frozen=True)
class TransitEdge:
    source: StarNode
    target: StarNode
    distance: float
    valid: bool = True

    @property
    def is_self_loop(self) -> bool:
        return self.source.name == self.target.name


class DistanceProvider(Protocol):
    def calculate_distances(
        self, bounds: DistanceBounds, stars: Sequence[StarNode]
    ) -> list[TransitEdge]: ...


class EuclideanDistanceProvider:
    """Straight-line transits between every pair of stars inside the bounds.

    Each unordered pair is emitted at most once, ordered by catalog position;
    pairs outside the bounds are dropped rather than returned as invalid edges.
    Small catalogs use the full distance matrix. Above ``kdtree_threshold``
    stars only pairs within ``upper_bound`` are looked up, through a KD-tree.
    """

    def __init__(self, *, kdtree_threshold: int | None = None) -> None:
        threshold = settings.route_kdtree_threshold if kdtree_threshold is None else kdtree_threshold
        self.kdtree_threshold = max(2, int(threshold))

    def calculate_distances(
        self, bounds: DistanceBounds, stars: Sequence[StarNode]
    ) -> list[TransitEdge]:
        candidates = [star for star in stars if star is not None]
        if len(candidates) < 2:
            return []

        coords = np.asarray([star.position for star in candidates], dtype=float)
        if len(candidates) > self.kdtree_threshold:
            rows, cols, distances = _kdtree_pairs(coords, bounds.upper_bound)
        else:
            rows, cols, distances = _matrix_pairs(coords)
        in_range = (distances >= bounds.lower_bound) & (distances <= bounds.upper_bound)

        transits: list[TransitEdge] = []
        for i, j, d in zip(rows[in_range], cols[in_range], distances[in_range], strict=True):
            source = candidates[int(i)]
            target = candidates[int(j)]
            if source.name == target.name:
                continue
            transits.append(TransitEdge(source=source, target=target, distance=float(d), valid=True))
        return transits


def _matrix_pairs(coords: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    deltas = coords[:, np.newaxis, :] - coords[np.newaxis, :, :]
    matrix = np.sqrt(np.sum(deltas * deltas, axis=-1))
    rows, cols = np.triu_indices(len(coords), k=1)
    return rows, cols, matrix[rows, cols]


def _kdtree_pairs(coords: np.ndarray, radius: float) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    tree = cKDTree(coords)
    pairs = tree.query_pairs(r=radius, output_type="ndarray")
    if len(pairs) == 0:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty, np.empty(0, dtype=float)
    # query_pairs yields i < j in no particular order; match the matrix walk.
    pairs = pairs[np.lexsort((pairs[:, 1], pairs[:, 0]))]
    rows, cols = pairs[:, 0], pairs[:, 1]
    distances = np.linalg.norm(coords[rows] - coords[cols], axis=1)
    return rows, cols, distances
