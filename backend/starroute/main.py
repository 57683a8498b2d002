from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .display import InMemoryRouteDisplay
from .logging_utils import log_event
from .manual_route import ManualRouteBuilder
from .models import (
    CacheStatsResponse,
    ManualFinishRequest,
    ManualStarRequest,
    ManualStartRequest,
    ManualStateResponse,
    PlottedRoutesResponse,
    RankedPathOut,
    RouteFailureDetail,
    RouteFindRequest,
    RouteFindResponse,
    RouteShapeOut,
    StarCatalogRequest,
    StarCatalogResponse,
)
from .route_cache import RouteCacheStore
from .route_finding import RouteFindingService
from .route_manager import RouteManager
from .settings import settings
from .stars import StarNode
from .transits import EuclideanDistanceProvider


class UsageErrors:
    """Collects manual-routing usage errors so the HTTP layer can surface them."""

    def __init__(self) -> None:
        self._last: str | None = None

    def record(self, title: str, detail: str) -> None:
        log_event("manual_route_usage_error", title=title, detail=detail)
        self._last = detail

    def pop(self, default: str) -> str:
        detail, self._last = self._last, None
        return detail or default


@dataclass
class RoutingState:
    manager: RouteManager
    display: InMemoryRouteDisplay
    usage_errors: UsageErrors
    stars: dict[str, StarNode] = field(default_factory=dict)
    # One interactive session at a time; search itself stays lock-free.
    manual_lock: Lock = field(default_factory=Lock)

    @property
    def service(self) -> RouteFindingService:
        return self.manager.service


def build_routing_state(*, cache_max_entries: int | None = None) -> RoutingState:
    cache = RouteCacheStore(max_entries=cache_max_entries or settings.route_cache_max_entries)
    service = RouteFindingService(EuclideanDistanceProvider(), cache)
    usage_errors = UsageErrors()
    manager = RouteManager(service, builder=ManualRouteBuilder(report_error=usage_errors.record))
    display = InMemoryRouteDisplay()
    manager.attach_display(display)
    return RoutingState(manager=manager, display=display, usage_errors=usage_errors)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.routing = build_routing_state()
    yield
    app.state.routing = None


app = FastAPI(title="Star Route Planner", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def routing_state(request: Request) -> RoutingState:
    state: RoutingState | None = getattr(request.app.state, "routing", None)  # type: ignore[attr-defined]
    if state is None:
        raise HTTPException(status_code=503, detail="routing state not initialised")
    return state


RoutingDep = Annotated[RoutingState, Depends(routing_state)]


def _lookup_star(state: RoutingState, name: str) -> StarNode:
    star = state.stars.get(name)
    if star is None:
        raise HTTPException(status_code=404, detail=f"unknown star '{name}'")
    return star


def _manual_state(state: RoutingState) -> ManualStateResponse:
    builder = state.manager.builder
    route = builder.current_route
    return ManualStateResponse(
        mode=state.manager.mode.value,
        state=builder.state.value,
        active=builder.is_active,
        route=RouteShapeOut.from_shape(route) if route is not None else None,
    )


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Backend is running. Visit /docs for the API UI.", "docs": "/docs"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.put("/stars", response_model=StarCatalogResponse)
def load_stars(req: StarCatalogRequest, state: RoutingDep) -> StarCatalogResponse:
    stars: dict[str, StarNode] = {}
    for item in req.stars:
        stars.setdefault(item.name, item.to_node())
    state.stars = stars
    # Cached results were computed against the previous catalog.
    cleared = state.service.clear_cache()
    log_event("star_catalog_loaded", star_count=len(stars), cache_cleared=cleared)
    return StarCatalogResponse(star_count=len(stars), cache_cleared=cleared)


@app.get("/stars", response_model=StarCatalogResponse)
def list_stars(state: RoutingDep) -> StarCatalogResponse:
    return StarCatalogResponse(star_count=len(state.stars))


@app.post("/routes/find", response_model=RouteFindResponse)
def find_routes(req: RouteFindRequest, state: RoutingDep) -> RouteFindResponse:
    request_id = str(uuid.uuid4())
    t0 = time.perf_counter()

    result = state.manager.find_and_plot(
        req.to_options(),
        list(state.stars.values()),
        use_cache=req.use_cache,
    )

    log_event(
        "route_find_request",
        request_id=request_id,
        origin=req.origin,
        destination=req.destination,
        success=result.success,
        reason_code=result.reason_code,
        route_count=len(result.routes),
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    if not result.success:
        raise HTTPException(
            status_code=422,
            detail=RouteFailureDetail(reason_code=result.reason_code, message=result.message).model_dump(),
        )
    return RouteFindResponse(
        desired_path=result.desired_path,
        routes=[RankedPathOut.from_ranked(r) for r in result.routes],
    )


@app.get("/routes", response_model=PlottedRoutesResponse)
def plotted_routes(state: RoutingDep) -> PlottedRoutesResponse:
    return PlottedRoutesResponse(
        routes=[RouteShapeOut.from_shape(r) for r in state.display.routes()],
        routes_visible=state.display.routes_visible,
        route_lengths_visible=state.display.route_lengths_visible,
    )


@app.delete("/routes")
def clear_plotted_routes(state: RoutingDep) -> dict[str, str]:
    state.manager.clear_routes()
    return {"status": "cleared"}


@app.get("/manual", response_model=ManualStateResponse)
def manual_state(state: RoutingDep) -> ManualStateResponse:
    return _manual_state(state)


@app.post("/manual/start", response_model=ManualStateResponse)
def manual_start(req: ManualStartRequest, state: RoutingDep) -> ManualStateResponse:
    star = _lookup_star(state, req.star_name)
    with state.manual_lock:
        started = state.manager.start_route(
            star, name=req.name, color=req.color, line_width=req.line_width, notes=req.notes
        )
        if not started:
            raise HTTPException(status_code=409, detail=state.usage_errors.pop("cannot start a route"))
        return _manual_state(state)


@app.post("/manual/continue", response_model=ManualStateResponse)
def manual_continue(req: ManualStarRequest, state: RoutingDep) -> ManualStateResponse:
    star = _lookup_star(state, req.star_name)
    with state.manual_lock:
        if not state.manager.continue_route(star):
            raise HTTPException(status_code=409, detail=state.usage_errors.pop("start a route first"))
        return _manual_state(state)


@app.post("/manual/finish", response_model=RouteShapeOut)
def manual_finish(req: ManualFinishRequest, state: RoutingDep) -> RouteShapeOut:
    star = _lookup_star(state, req.star_name) if req.star_name else None
    with state.manual_lock:
        route = state.manager.finish_route(star)
        if route is None:
            raise HTTPException(status_code=409, detail=state.usage_errors.pop("start a route first"))
        return RouteShapeOut.from_shape(route)


@app.post("/manual/undo", response_model=ManualStateResponse)
def manual_undo(state: RoutingDep) -> ManualStateResponse:
    with state.manual_lock:
        if not state.manager.undo_last_segment():
            raise HTTPException(status_code=409, detail=state.usage_errors.pop("start a route first"))
        return _manual_state(state)


@app.post("/manual/reset", response_model=ManualStateResponse)
def manual_reset(state: RoutingDep) -> ManualStateResponse:
    with state.manual_lock:
        state.manager.reset_route()
        return _manual_state(state)


@app.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(state: RoutingDep) -> CacheStatsResponse:
    cache = state.service.cache
    return CacheStatsResponse.from_snapshot(cache.snapshot(), cache.statistics())


@app.delete("/cache")
def clear_cache(state: RoutingDep) -> dict[str, int]:
    return {"cleared": state.service.clear_cache()}


@app.post("/cache/stats/reset", response_model=CacheStatsResponse)
def reset_cache_stats(state: RoutingDep) -> CacheStatsResponse:
    cache = state.service.cache
    cache.reset_statistics()
    return CacheStatsResponse.from_snapshot(cache.snapshot(), cache.statistics())
