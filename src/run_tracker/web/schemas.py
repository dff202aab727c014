"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# 9999-12-31T23:59:59.999Z
MAX_EPOCH_MS = 253_402_300_799_999


class HealthResponse(BaseModel):
    status: str
    version: str


class StartRequest(BaseModel):
    user_id: str | None = None


class Coords(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    accuracy: float | None = Field(default=None, ge=0.0)


class PositionPush(BaseModel):
    """Browser ``GeolocationPosition`` serialised to JSON."""

    coords: Coords
    timestamp: float | None = Field(default=None, ge=0.0, le=MAX_EPOCH_MS)
    """Epoch milliseconds; server time is used when omitted."""


class PushResponse(BaseModel):
    accepted: bool
    buffered: int
    distance_m: float


class LocationErrorReport(BaseModel):
    message: str
    code: int | None = None


class PermissionUpdate(BaseModel):
    state: Literal["granted", "denied", "prompt"]


class NoticeRecord(BaseModel):
    message: str
    severity: str


class MetricsResponse(BaseModel):
    status: str
    tracking: bool
    session_id: str | None
    distance_m: float
    elapsed_ms: int
    pace_s_per_km: float | None
    distance: str
    duration: str
    pace: str
    buffered: int
    points: int
    notices: list[NoticeRecord]


class SessionRecord(BaseModel):
    id: str
    user_id: str | None = None
    started_at: str
    ended_at: str | None = None
    distance_m: float | None = None
    duration_ms: int | None = None
    sample_count: int | None = None


class SessionsResponse(BaseModel):
    sessions: list[SessionRecord]


class PositionRecord(BaseModel):
    lat: float
    lng: float
    accuracy: float | None = None
    timestamp: str
    user_id: str | None = None
    session_id: str | None = None


class PositionsResponse(BaseModel):
    session_id: str
    positions: list[PositionRecord]
