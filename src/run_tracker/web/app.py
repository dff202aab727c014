"""FastAPI Web application — live tracking controls, metrics and history."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request

from run_tracker.config import TrackerSettings
from run_tracker.store import open_store
from run_tracker.tracking.errors import CapabilityUnavailable, StoreError
from run_tracker.web.schemas import (
    HealthResponse,
    LocationErrorReport,
    MetricsResponse,
    PermissionUpdate,
    PositionPush,
    PositionRecord,
    PositionsResponse,
    PushResponse,
    SessionRecord,
    SessionsResponse,
    StartRequest,
)
from run_tracker.web.service import TrackingService

_logger = logging.getLogger(__name__)

VERSION = "0.1.0"

_service_lock = threading.Lock()


def create_app(service: TrackingService | None = None) -> FastAPI:
    """Build the application.

    When *service* is None, one is created from :meth:`TrackerSettings.from_env`
    on the first request that needs it.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if app.state.service is not None:
            app.state.service.close()

    app = FastAPI(title="Run Tracker", version=VERSION, lifespan=lifespan)
    app.state.service = service

    def get_service(request: Request) -> TrackingService:
        state = request.app.state
        if state.service is None:
            with _service_lock:
                if state.service is None:
                    settings = TrackerSettings.from_env()
                    store = open_store(settings)
                    _logger.info("Tracking service using %s", type(store).__name__)
                    state.service = TrackingService(store, settings)
        return state.service

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=VERSION)

    @app.post("/api/tracking/start", response_model=MetricsResponse)
    def start(
        req: StartRequest | None = None,
        svc: TrackingService = Depends(get_service),
    ) -> MetricsResponse:
        try:
            svc.start(user_id=req.user_id if req else None)
        except CapabilityUnavailable as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return MetricsResponse(**svc.snapshot())

    @app.post("/api/tracking/stop", response_model=MetricsResponse)
    def stop(svc: TrackingService = Depends(get_service)) -> MetricsResponse:
        svc.stop()
        return MetricsResponse(**svc.snapshot())

    @app.post("/api/tracking/reset", response_model=MetricsResponse)
    def reset(svc: TrackingService = Depends(get_service)) -> MetricsResponse:
        svc.reset()
        return MetricsResponse(**svc.snapshot())

    @app.post("/api/positions", response_model=PushResponse)
    def push_position(
        fix: PositionPush, svc: TrackingService = Depends(get_service)
    ) -> PushResponse:
        """Accept one browser geolocation fix for the live activation."""
        if not svc.tracker.is_tracking:
            raise HTTPException(status_code=409, detail="Tracking is not active")
        accepted = svc.push(fix.model_dump())
        return PushResponse(
            accepted=accepted,
            buffered=len(svc.tracker.buffer),
            distance_m=svc.tracker.state.distance_m,
        )

    @app.post("/api/positions/error", response_model=MetricsResponse)
    def location_error(
        report: LocationErrorReport, svc: TrackingService = Depends(get_service)
    ) -> MetricsResponse:
        """The browser's geolocation watch failed; stop tracking."""
        svc.report_error(report.message, report.code)
        return MetricsResponse(**svc.snapshot())

    @app.put("/api/permission", response_model=MetricsResponse)
    def set_permission(
        update: PermissionUpdate, svc: TrackingService = Depends(get_service)
    ) -> MetricsResponse:
        svc.set_permission(update.state)
        return MetricsResponse(**svc.snapshot())

    @app.get("/api/metrics", response_model=MetricsResponse)
    def metrics(svc: TrackingService = Depends(get_service)) -> MetricsResponse:
        return MetricsResponse(**svc.snapshot())

    @app.get("/api/sessions", response_model=SessionsResponse)
    def list_sessions(
        limit: int = 20,
        user_id: str | None = None,
        svc: TrackingService = Depends(get_service),
    ) -> SessionsResponse:
        """Return recorded sessions, newest first."""
        try:
            rows = svc.list_sessions(limit=limit, user_id=user_id)
        except StoreError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return SessionsResponse(sessions=[SessionRecord(**r) for r in rows])

    @app.get("/api/sessions/{session_id}/positions", response_model=PositionsResponse)
    def session_positions(
        session_id: str, svc: TrackingService = Depends(get_service)
    ) -> PositionsResponse:
        try:
            if svc.get_session(session_id) is None:
                raise HTTPException(status_code=404, detail="Session not found")
            rows = svc.session_positions(session_id)
        except StoreError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return PositionsResponse(
            session_id=session_id,
            positions=[PositionRecord(**r) for r in rows],
        )

    return app


app = create_app()
