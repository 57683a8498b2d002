from __future__ import annotations

import numpy as np
import pytest

from starroute.stars import StarNode, index_by_name, star_distance
from starroute.transits import DistanceBounds, EuclideanDistanceProvider


def _star(name: str, x: float, y: float = 0.0, z: float = 0.0, **kw) -> StarNode:
    return StarNode(id=f"id-{name}", name=name, position=(x, y, z), **kw)


def test_pairs_inside_bounds_are_emitted_once() -> None:
    stars = [_star("Sol", 0.0), _star("Alpha", 3.0, 4.0), _star("Sirius", 20.0)]
    transits = EuclideanDistanceProvider().calculate_distances(DistanceBounds(1.0, 10.0), stars)

    assert len(transits) == 1
    edge = transits[0]
    assert {edge.source.name, edge.target.name} == {"Sol", "Alpha"}
    assert edge.distance == pytest.approx(5.0)
    assert edge.valid


def test_bounds_are_inclusive() -> None:
    stars = [_star("Sol", 0.0), _star("Alpha", 2.0), _star("Sirius", 6.0)]
    transits = EuclideanDistanceProvider().calculate_distances(DistanceBounds(2.0, 4.0), stars)

    assert sorted(round(t.distance, 6) for t in transits) == [2.0, 4.0]


def test_lower_bound_drops_short_hops() -> None:
    stars = [_star("Sol", 0.0), _star("Alpha", 0.2), _star("Sirius", 3.0)]
    transits = EuclideanDistanceProvider().calculate_distances(DistanceBounds(0.5, 5.0), stars)

    assert all(t.distance >= 0.5 for t in transits)
    assert len(transits) == 2


def test_fewer_than_two_stars_yield_nothing() -> None:
    provider = EuclideanDistanceProvider()
    assert provider.calculate_distances(DistanceBounds(0.0, 10.0), []) == []
    assert provider.calculate_distances(DistanceBounds(0.0, 10.0), [_star("Sol", 0.0)]) == []


def test_spectral_type_is_leading_character() -> None:
    assert _star("Barnard", 0.0, spectral_class="M4V").spectral_type == "M"
    assert _star("Rogue", 0.0).spectral_type is None
    assert _star("Blank", 0.0, spectral_class="  ").spectral_type is None


def test_index_by_name_keeps_first_duplicate() -> None:
    first = _star("Sol", 0.0)
    index = index_by_name([first, None, _star("Sol", 9.0), _star("Alpha", 1.0)])

    assert index["Sol"] is first
    assert set(index) == {"Sol", "Alpha"}
    assert star_distance((0.0, 0.0, 0.0), (1.0, 2.0, 2.0)) == pytest.approx(3.0)


def _scatter(count: int, seed: int = 7) -> list[StarNode]:
    rng = np.random.default_rng(seed)
    points = rng.uniform(-10.0, 10.0, size=(count, 3))
    return [_star(f"S{idx:03d}", *map(float, point)) for idx, point in enumerate(points)]


def _as_rows(transits) -> list[tuple[str, str, float]]:
    return [(t.source.name, t.target.name, round(t.distance, 9)) for t in transits]


def test_kdtree_pairing_matches_full_matrix() -> None:
    stars = _scatter(80)
    bounds = DistanceBounds(1.5, 6.0)

    dense = EuclideanDistanceProvider(kdtree_threshold=1_000).calculate_distances(bounds, stars)
    sparse = EuclideanDistanceProvider(kdtree_threshold=10).calculate_distances(bounds, stars)

    assert dense
    assert _as_rows(sparse) == _as_rows(dense)
    assert all(1.5 <= t.distance <= 6.0 for t in sparse)


def test_kdtree_pairing_with_nothing_in_range() -> None:
    stars = [_star("Sol", 0.0), _star("Alpha", 50.0), _star("Sirius", 100.0)]
    provider = EuclideanDistanceProvider(kdtree_threshold=2)

    assert provider.calculate_distances(DistanceBounds(0.0, 10.0), stars) == []
