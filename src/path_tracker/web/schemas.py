"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    version: str


class StartSessionRequest(BaseModel):
    user_id: str = Field(min_length=1)


class SessionResponse(BaseModel):
    session_id: str
    user_id: str


class FixIn(BaseModel):
    latitude: float
    longitude: float
    timestamp: float
    """Unix epoch seconds (values above 1e11 are taken as milliseconds)."""

    accuracy: float | None = None
    speed: float | None = None
    heading: float | None = None


class FixBatchRequest(BaseModel):
    fixes: list[FixIn]


class FixOutcome(BaseModel):
    accepted: bool
    collected: bool
    quality: str
    reason: str
    skip_reason: str | None = None
    bearing: float | None = None
    paths_flushed: int = 0


class FixBatchResponse(BaseModel):
    session_id: str
    results: list[FixOutcome]
    calibrated: bool
    stationary: bool
    buffered_points: int


class StopSessionResponse(BaseModel):
    session_id: str
    user_id: str
    paths_submitted: int


class PathSummary(BaseModel):
    id: int
    user_id: str
    start_time: float
    end_time: float
    point_count: int
    distance_m: float
    created_at: str


class PointOut(BaseModel):
    latitude: float
    longitude: float
    timestamp: float
    accuracy: float | None
    quality: str
    bearing: float | None
    speed: float | None


class PathDetail(PathSummary):
    points: list[PointOut]


class PathsResponse(BaseModel):
    user_id: str
    paths: list[PathSummary]


class QualityResponse(BaseModel):
    accuracy: float
    tier: str
    usable: bool
