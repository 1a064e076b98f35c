"""FastAPI Web application — tracking sessions and discovered paths."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Response

from path_tracker import __version__
from path_tracker.config import TrackingConfig
from path_tracker.location.storage import PathStorage
from path_tracker.tracking.quality import evaluate_gps_quality, is_gps_usable
from path_tracker.web.schemas import (
    FixBatchRequest,
    FixBatchResponse,
    FixOutcome,
    HealthResponse,
    PathDetail,
    PathsResponse,
    PathSummary,
    PointOut,
    QualityResponse,
    SessionResponse,
    StartSessionRequest,
    StopSessionResponse,
)
from path_tracker.web.service import SessionConflictError, TrackingService

load_dotenv()  # loads .env from project root; must run before env vars are consumed

_DEFAULT_DB = os.environ.get("PATH_TRACKER_DB", "paths.db")

_service: TrackingService | None = None


def get_service() -> TrackingService:
    """Return the process-wide service, creating it on first use."""
    global _service
    if _service is None:
        _service = TrackingService(PathStorage(_DEFAULT_DB), TrackingConfig.from_env())
    return _service


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    global _service
    if _service is not None:
        _service.shutdown()
        _service.storage.close()
        _service = None


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Path Tracker", version=__version__, lifespan=lifespan)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


@app.get("/api/quality", response_model=QualityResponse)
def quality(accuracy: float, svc: TrackingService = Depends(get_service)) -> QualityResponse:
    """Classify a single accuracy value with the server's thresholds."""
    return QualityResponse(
        accuracy=accuracy,
        tier=evaluate_gps_quality(accuracy, svc.config).value,
        usable=is_gps_usable(accuracy, (), svc.config),
    )


@app.post("/api/sessions", response_model=SessionResponse, status_code=201)
def start_session(req: StartSessionRequest, svc: TrackingService = Depends(get_service)) -> SessionResponse:
    try:
        session_id = svc.start_session(req.user_id)
    except SessionConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionResponse(session_id=session_id, user_id=req.user_id)


@app.post("/api/sessions/{session_id}/fixes", response_model=FixBatchResponse)
def post_fixes(
    session_id: str,
    req: FixBatchRequest,
    svc: TrackingService = Depends(get_service),
) -> FixBatchResponse:
    """Feed a batch of fixes (oldest first) to an active session."""
    try:
        session = svc.get_session(session_id)
        results = svc.process_fixes(session_id, [f.model_dump() for f in req.fixes])
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return FixBatchResponse(
        session_id=session_id,
        results=[
            FixOutcome(
                accepted=r.decision.accept,
                collected=r.collected,
                quality=r.decision.quality.value,
                reason=r.decision.reason,
                skip_reason=r.skip_reason,
                bearing=r.decision.bearing,
                paths_flushed=len(r.flushed),
            )
            for r in results
        ],
        calibrated=session.calibrated,
        stationary=session.stationary,
        buffered_points=session.buffered_points,
    )


@app.delete("/api/sessions/{session_id}", response_model=StopSessionResponse)
def stop_session(session_id: str, svc: TrackingService = Depends(get_service)) -> StopSessionResponse:
    try:
        session = svc.stop_session(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc
    return StopSessionResponse(
        session_id=session_id,
        user_id=session.user_id,
        paths_submitted=session.paths_submitted,
    )


@app.get("/api/users/{user_id}/paths", response_model=PathsResponse)
def list_paths(user_id: str, svc: TrackingService = Depends(get_service)) -> PathsResponse:
    rows = svc.list_paths(user_id)
    return PathsResponse(user_id=user_id, paths=[PathSummary(**r) for r in rows])


@app.get("/api/paths/{path_id}", response_model=PathDetail)
def get_path(path_id: int, svc: TrackingService = Depends(get_service)) -> PathDetail:
    try:
        summary, points = svc.get_path(path_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Path not found") from exc
    return PathDetail(**summary, points=[PointOut(**p.to_dict()) for p in points])


@app.delete("/api/paths/{path_id}", status_code=204)
def delete_path(path_id: int, svc: TrackingService = Depends(get_service)) -> Response:
    try:
        svc.delete_path(path_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Path not found") from exc
    return Response(status_code=204)
