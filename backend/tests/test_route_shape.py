from __future__ import annotations

import pytest

from starroute.route_shape import RouteShape, RouteShapeFrozenError, shape_from_stars
from starroute.stars import StarNode


def _star(name: str, x: float) -> StarNode:
    return StarNode(id=f"id-{name}", name=name, position=(x, 0.0, 0.0))


def test_first_link_seeds_without_segment() -> None:
    shape = RouteShape(name="probe")
    assert shape.is_empty
    shape.add_link(_star("Sol", 0.0))

    assert shape.coordinates == ((0.0, 0.0, 0.0),)
    assert shape.number_segments == 0
    assert shape.total_length == 0.0


def test_default_segment_length_is_straight_line_distance() -> None:
    shape = RouteShape()
    shape.add_link(_star("Sol", 0.0))
    shape.add_link(_star("Alpha", 3.0))
    shape.add_link(_star("Sirius", 7.0), length=10.0)

    assert shape.segment_lengths == pytest.approx((3.0, 10.0))
    assert shape.total_length == pytest.approx(13.0)
    assert shape.star_names == ("Sol", "Alpha", "Sirius")
    assert len(shape.star_ids) == len(shape.coordinates) == shape.number_segments + 1


def test_remove_last_reports_when_only_seed_remains() -> None:
    shape = RouteShape()
    shape.add_link(_star("Sol", 0.0))
    shape.add_link(_star("Alpha", 1.0))
    shape.add_link(_star("Sirius", 2.0))

    assert shape.remove_last() is False
    assert shape.remove_last() is True
    assert shape.star_names == ("Sol",)
    assert shape.remove_last() is True
    assert shape.star_names == ("Sol",)


def test_frozen_shape_rejects_mutation() -> None:
    shape = shape_from_stars([_star("Sol", 0.0), _star("Alpha", 2.0)])

    assert shape.frozen
    with pytest.raises(RouteShapeFrozenError):
        shape.add_link(_star("Sirius", 4.0))
    with pytest.raises(RouteShapeFrozenError):
        shape.remove_last()


def test_shape_from_stars_uses_given_lengths() -> None:
    shape = shape_from_stars(
        [_star("Sol", 0.0), _star("Alpha", 2.0), _star("Sirius", 4.0)],
        segment_lengths=[2.5, 1.5],
        name="Sol to Sirius #1",
        color="#ff00ff",
    )

    assert shape.segment_lengths == (2.5, 1.5)
    assert shape.total_length == pytest.approx(4.0)
    payload = shape.to_dict()
    assert payload["name"] == "Sol to Sirius #1"
    assert payload["color"] == "#ff00ff"
    assert payload["star_names"] == ["Sol", "Alpha", "Sirius"]
    assert payload["frozen"] is True
