from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

from .display import RouteDisplay
from .logging_utils import log_event
from .manual_route import ErrorReporter, ManualRouteBuilder, RoutingStatus, StatusListener
from .route_errors import DisplayNotAttachedError
from .route_finding import RouteFindingService
from .route_shape import RouteShape
from .route_types import RankedPath, RouteFindingOptions, SearchResult
from .stars import StarNode

RouteListener = Callable[[RouteShape], None]


class RoutingMode(str, Enum):
    NONE = "none"
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class RouteManager:
    """Single entry point for automatic search and manual route assembly.

    Mode changes never need a display. Everything that draws, or that drives
    the manual builder, does, and raises ``DisplayNotAttachedError`` without one.
    """

    def __init__(
        self,
        service: RouteFindingService,
        *,
        builder: ManualRouteBuilder | None = None,
        report_error: ErrorReporter | None = None,
    ) -> None:
        self._service = service
        self._builder = builder or ManualRouteBuilder(report_error=report_error)
        self._display: RouteDisplay | None = None
        self._mode = RoutingMode.NONE
        self._route_listeners: list[RouteListener] = []
        self._builder.subscribe(self._on_status)

    # mode

    @property
    def mode(self) -> RoutingMode:
        return self._mode

    def set_mode(self, mode: RoutingMode) -> None:
        self._mode = RoutingMode(mode)

    def get_mode(self) -> RoutingMode:
        return self._mode

    # collaborators

    @property
    def service(self) -> RouteFindingService:
        return self._service

    @property
    def builder(self) -> ManualRouteBuilder:
        return self._builder

    @property
    def display_attached(self) -> bool:
        return self._display is not None

    def attach_display(self, display: RouteDisplay) -> None:
        self._display = display
        display.set_manual_routing_active(self._builder.is_active)

    def _require_display(self, operation: str) -> RouteDisplay:
        if self._display is None:
            raise DisplayNotAttachedError(operation)
        return self._display

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        return self._builder.subscribe(listener)

    def add_route_listener(self, listener: RouteListener) -> None:
        self._route_listeners.append(listener)

    def _on_status(self, status: RoutingStatus) -> None:
        if self._display is not None:
            self._display.set_manual_routing_active(status.active)

    # automatic routing

    def find_and_plot(
        self,
        options: RouteFindingOptions,
        stars: Sequence[StarNode | None],
        *,
        use_cache: bool = True,
    ) -> SearchResult:
        display = self._require_display("plot automatic routes")
        self._mode = RoutingMode.AUTOMATIC
        result = self._service.find_routes(options, stars, use_cache=use_cache)
        if result.success:
            display.plot_ranked_paths(result.routes)
        return result

    def plot_ranked_paths(self, paths: Sequence[RankedPath]) -> None:
        self._require_display("plot ranked paths").plot_ranked_paths(paths)

    def plot_routes(self, routes: Sequence[RouteShape]) -> None:
        display = self._require_display("plot routes")
        display.clear_routes()
        for route in routes:
            display.plot_route(route)

    def clear_routes(self) -> None:
        self._require_display("clear routes").clear_routes()

    def toggle_routes(self, visible: bool) -> None:
        self._require_display("toggle routes").toggle_routes(visible)

    def toggle_route_lengths(self, visible: bool) -> None:
        self._require_display("toggle route lengths").toggle_route_lengths(visible)

    # manual routing

    def is_manual_routing_active(self) -> bool:
        return self._require_display("query manual routing").is_manual_routing_active()

    def start_route(
        self,
        first_star: StarNode,
        *,
        name: str = "",
        color: str = "#00ffff",
        line_width: float = 0.5,
        notes: str = "",
    ) -> bool:
        display = self._require_display("start a manual route")
        started = self._builder.start(first_star, name=name, color=color, line_width=line_width, notes=notes)
        if not started:
            return False
        self._mode = RoutingMode.MANUAL
        if self._builder.current_route is not None:
            display.plot_route(self._builder.current_route)
            display.toggle_routes(True)
        return started

    def continue_route(self, next_star: StarNode) -> bool:
        display = self._require_display("continue a manual route")
        continued = self._builder.continue_route(next_star)
        if continued and self._builder.current_route is not None:
            display.plot_route(self._builder.current_route)
        return continued

    def finish_route(self, last_star: StarNode | None = None) -> RouteShape | None:
        display = self._require_display("finish a manual route")
        route = self._builder.finish(last_star)
        if route is None:
            return None
        display.plot_route(route)
        log_event("manual_route_published", route_id=route.id, listeners=len(self._route_listeners))
        for listener in list(self._route_listeners):
            listener(route)
        return route

    def undo_last_segment(self) -> bool:
        display = self._require_display("undo a manual segment")
        route = self._builder.current_route
        undone = self._builder.undo_last_segment()
        if not undone or route is None:
            return undone
        if self._builder.is_active:
            display.plot_route(route)
        else:
            display.remove_route(route.id)
        return True

    def reset_route(self) -> None:
        display = self._require_display("reset a manual route")
        route = self._builder.current_route
        self._builder.reset()
        if route is not None:
            display.remove_route(route.id)
