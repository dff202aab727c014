"""Tracking data models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class LocationSample:
    """A single GPS fix.

    Instances are immutable once created; ranges are validated by
    :class:`~run_tracker.tracking.parser.LocationParser`.
    """

    lat: float
    """Latitude in degrees [-90, 90]."""

    lng: float
    """Longitude in degrees [-180, 180]."""

    captured_at: datetime
    """Fix timestamp (timezone-aware, UTC)."""

    accuracy: float | None = None
    """Horizontal accuracy radius in metres (>= 0), if reported."""

    def to_record(self) -> dict:
        """Return the store representation of this sample."""
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "timestamp": self.captured_at.astimezone(timezone.utc).isoformat(),
        }


@dataclass
class TrackState:
    """Live state of one tracker.

    ``distance_m`` is the sum of great-circle distances between consecutive
    entries of ``samples`` recorded in the same activation.
    """

    active: bool = False
    start_time: float | None = None
    distance_m: float = 0.0
    samples: list[LocationSample] = field(default_factory=list)

    def elapsed_s(self, now: float) -> float:
        """Seconds since ``start_time`` (0 before the first start)."""
        if self.start_time is None:
            return 0.0
        return max(0.0, now - self.start_time)


@dataclass(frozen=True)
class MetricsUpdate:
    """Distance / duration pair published to the presentation layer."""

    distance_m: float
    elapsed_ms: int

    @property
    def pace_s_per_km(self) -> float | None:
        if self.distance_m <= 0:
            return None
        pace = (self.elapsed_ms / 1000.0) / (self.distance_m / 1000.0)
        return pace if math.isfinite(pace) else None


@dataclass(frozen=True)
class Notice:
    """A user-visible message (toast)."""

    message: str
    severity: str = "info"  # info | success | error


@dataclass(frozen=True)
class SessionSummary:
    """Final totals written to the ``sessions`` collection on stop."""

    ended_at: datetime
    distance_m: float
    duration_ms: int
    sample_count: int

    def to_fields(self) -> dict:
        return {
            "ended_at": self.ended_at.astimezone(timezone.utc).isoformat(),
            "distance_m": self.distance_m,
            "duration_ms": self.duration_ms,
            "sample_count": self.sample_count,
        }
