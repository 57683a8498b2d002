from __future__ import annotations

from collections.abc import Sequence
from threading import Lock
from typing import Protocol

from .route_shape import RouteShape
from .route_types import RankedPath


class RouteDisplay(Protocol):
    """Whatever draws routes. The routing core only ever calls into it."""

    def plot_route(self, route: RouteShape) -> None: ...

    def plot_ranked_paths(self, paths: Sequence[RankedPath]) -> None: ...

    def remove_route(self, route_id: str) -> None: ...

    def clear_routes(self) -> None: ...

    def toggle_routes(self, visible: bool) -> None: ...

    def toggle_route_lengths(self, visible: bool) -> None: ...

    def set_manual_routing_active(self, active: bool) -> None: ...

    def is_manual_routing_active(self) -> bool: ...


class InMemoryRouteDisplay:
    """Headless display that just remembers what it was asked to draw."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._routes: dict[str, RouteShape] = {}
        self.routes_visible = True
        self.route_lengths_visible = True
        self._manual_active = False

    def plot_route(self, route: RouteShape) -> None:
        with self._lock:
            self._routes[route.id] = route

    def plot_ranked_paths(self, paths: Sequence[RankedPath]) -> None:
        with self._lock:
            for ranked in paths:
                self._routes[ranked.route.id] = ranked.route

    def remove_route(self, route_id: str) -> None:
        with self._lock:
            self._routes.pop(route_id, None)

    def clear_routes(self) -> None:
        with self._lock:
            self._routes.clear()

    def toggle_routes(self, visible: bool) -> None:
        self.routes_visible = bool(visible)
        self.route_lengths_visible = bool(visible)

    def toggle_route_lengths(self, visible: bool) -> None:
        self.route_lengths_visible = bool(visible)

    def set_manual_routing_active(self, active: bool) -> None:
        self._manual_active = bool(active)

    def is_manual_routing_active(self) -> bool:
        return self._manual_active

    def routes(self) -> list[RouteShape]:
        with self._lock:
            return list(self._routes.values())
