from __future__ import annotations

import pytest

from starroute.manual_route import ManualRouteBuilder, ManualRouteState, RoutingStatus
from starroute.stars import StarNode


def _star(name: str, x: float) -> StarNode:
    return StarNode(id=f"id-{name}", name=name, position=(x, 0.0, 0.0))


SOL = _star("Sol", 0.0)
ALPHA = _star("Alpha", 4.0)
SIRIUS = _star("Sirius", 8.0)


@pytest.fixture
def recorded() -> tuple[ManualRouteBuilder, list[bool], list[tuple[str, str]]]:
    statuses: list[bool] = []
    errors: list[tuple[str, str]] = []
    builder = ManualRouteBuilder(report_error=lambda title, detail: errors.append((title, detail)))
    builder.subscribe(lambda status: statuses.append(status.active))
    return builder, statuses, errors


def test_start_continue_finish(recorded) -> None:
    builder, statuses, errors = recorded

    assert builder.start(SOL, name="survey")
    assert builder.state is ManualRouteState.ACTIVE
    assert builder.continue_route(ALPHA)
    route = builder.finish(SIRIUS)

    assert route is not None
    assert route.frozen
    assert route.name == "survey"
    assert len(route.coordinates) == 3
    assert route.number_segments == 2
    assert route.total_length == pytest.approx(8.0)
    assert builder.state is ManualRouteState.IDLE
    assert builder.current_route is None
    assert statuses == [True, False]
    assert errors == []


def test_undo_right_after_start_goes_idle(recorded) -> None:
    builder, statuses, errors = recorded

    builder.start(SOL)
    assert builder.undo_last_segment()

    assert builder.state is ManualRouteState.IDLE
    assert statuses == [True, False]
    assert errors == []


def test_undo_keeps_route_active_while_segments_remain(recorded) -> None:
    builder, statuses, _ = recorded

    builder.start(SOL)
    builder.continue_route(ALPHA)
    builder.continue_route(SIRIUS)
    assert builder.undo_last_segment()

    assert builder.is_active
    assert builder.current_route is not None
    assert builder.current_route.star_names == ("Sol", "Alpha")
    assert statuses == [True]


def test_continue_while_idle_reports_usage_error(recorded) -> None:
    builder, statuses, errors = recorded

    assert builder.continue_route(ALPHA) is False
    assert builder.finish() is None
    assert builder.undo_last_segment() is False

    assert [detail for _, detail in errors] == ["start a route first"] * 3
    assert statuses == []
    assert builder.state is ManualRouteState.IDLE


def test_start_while_active_is_rejected(recorded) -> None:
    builder, statuses, errors = recorded

    builder.start(SOL)
    route = builder.current_route
    assert builder.start(ALPHA) is False

    assert builder.current_route is route
    assert route is not None and route.star_names == ("Sol",)
    assert statuses == [True]
    assert len(errors) == 1


def test_reset_notifies_only_when_active(recorded) -> None:
    builder, statuses, _ = recorded

    builder.reset()
    assert statuses == []

    builder.start(SOL)
    builder.continue_route(ALPHA)
    builder.reset()

    assert builder.state is ManualRouteState.IDLE
    assert builder.current_route is None
    assert statuses == [True, False]


def test_unsubscribe_stops_notifications() -> None:
    seen: list[RoutingStatus] = []
    builder = ManualRouteBuilder()
    unsubscribe = builder.subscribe(seen.append)

    builder.start(SOL)
    unsubscribe()
    builder.reset()

    assert seen == [RoutingStatus(active=True)]
