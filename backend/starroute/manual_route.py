from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .logging_utils import log_event, log_warning
from .route_shape import RouteShape
from .stars import StarNode


class ManualRouteState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class RoutingStatus:
    active: bool


StatusListener = Callable[[RoutingStatus], None]
ErrorReporter = Callable[[str, str], None]


def _log_usage_error(title: str, detail: str) -> None:
    log_warning("manual_route_usage_error", title=title, detail=detail)


class ManualRouteBuilder:
    """Interactive, one-hop-at-a-time route assembly with undo.

    IDLE has no route in progress; ACTIVE owns exactly one ``RouteShape``.
    Every change of the active flag is announced to subscribers once.
    Misuse (continuing, finishing or undoing while IDLE, or starting while
    ACTIVE) is reported through ``report_error`` and changes nothing.
    """

    def __init__(self, *, report_error: ErrorReporter | None = None) -> None:
        self._state = ManualRouteState.IDLE
        self._route: RouteShape | None = None
        self._listeners: list[StatusListener] = []
        self._report_error = report_error or _log_usage_error

    @property
    def state(self) -> ManualRouteState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is ManualRouteState.ACTIVE

    @property
    def current_route(self) -> RouteShape | None:
        return self._route

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, active: bool) -> None:
        status = RoutingStatus(active=active)
        for listener in list(self._listeners):
            listener(status)

    def _usage_error(self, detail: str) -> None:
        self._report_error("Routing", detail)

    def _go_idle(self) -> None:
        was_active = self.is_active
        self._state = ManualRouteState.IDLE
        self._route = None
        if was_active:
            self._notify(False)

    def start(
        self,
        first_star: StarNode,
        *,
        name: str = "",
        color: str = "#00ffff",
        line_width: float = 0.5,
        notes: str = "",
    ) -> bool:
        if self.is_active:
            self._usage_error("a route is already in progress; finish or reset it first")
            return False
        route = RouteShape(name=name or f"Route from {first_star.name}", color=color, line_width=line_width, notes=notes)
        route.add_link(first_star)
        self._route = route
        self._state = ManualRouteState.ACTIVE
        log_event("manual_route_started", route_id=route.id, star_name=first_star.name)
        self._notify(True)
        return True

    def continue_route(self, next_star: StarNode) -> bool:
        if not self.is_active or self._route is None:
            self._usage_error("start a route first")
            return False
        self._route.add_link(next_star)
        log_event(
            "manual_route_continued",
            route_id=self._route.id,
            star_name=next_star.name,
            segments=self._route.number_segments,
        )
        return True

    def finish(self, last_star: StarNode | None = None) -> RouteShape | None:
        if not self.is_active or self._route is None:
            self._usage_error("start a route first")
            return None
        route = self._route
        if last_star is not None:
            route.add_link(last_star)
        route.freeze()
        log_event(
            "manual_route_finished",
            route_id=route.id,
            segments=route.number_segments,
            total_length=round(route.total_length, 3),
        )
        self._go_idle()
        return route

    def undo_last_segment(self) -> bool:
        if not self.is_active or self._route is None:
            self._usage_error("start a route first")
            return False
        back_to_seed = self._route.remove_last()
        if back_to_seed:
            log_event("manual_route_emptied", route_id=self._route.id)
            self._go_idle()
        return True

    def reset(self) -> None:
        if self._route is not None:
            log_event("manual_route_reset", route_id=self._route.id)
        self._go_idle()
