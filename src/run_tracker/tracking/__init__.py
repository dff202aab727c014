"""Live activity tracking.

Public API
----------
LocationSample  - one immutable GPS fix
TrackState      - live tracking state (active flag, start time, distance, path)
LocationParser  - raw location push → LocationSample
WriteBuffer     - pending records awaiting a batched store write
SessionTracker  - ingests pushes, accumulates distance, flushes in batches
haversine_m     - great-circle distance in metres
"""

from run_tracker.tracking.buffer import BufferedRecord, WriteBuffer
from run_tracker.tracking.errors import (
    CapabilityUnavailable,
    InvalidSample,
    LocationSourceError,
    PermissionRevoked,
    RemoteWriteFailure,
    StoreError,
    TrackerError,
)
from run_tracker.tracking.geo import haversine_m, path_distance_m
from run_tracker.tracking.models import LocationSample, MetricsUpdate, Notice, TrackState
from run_tracker.tracking.parser import LocationParser
from run_tracker.tracking.tracker import BATCH_INTERVAL_S, BATCH_SIZE, SessionTracker

__all__ = [
    "BATCH_INTERVAL_S",
    "BATCH_SIZE",
    "BufferedRecord",
    "CapabilityUnavailable",
    "InvalidSample",
    "LocationParser",
    "LocationSample",
    "LocationSourceError",
    "MetricsUpdate",
    "Notice",
    "PermissionRevoked",
    "RemoteWriteFailure",
    "SessionTracker",
    "StoreError",
    "TrackState",
    "TrackerError",
    "WriteBuffer",
    "haversine_m",
    "path_distance_m",
]
