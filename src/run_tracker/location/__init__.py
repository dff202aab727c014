"""Location sources and track file readers.

Public API
----------
PushLocationSource   - fed by fixes pushed from outside (HTTP)
ReplayLocationSource - replays recorded fixes
PermissionStatus     - granted/denied/prompt with change listeners
SubscribeOptions     - high-accuracy / max-fix-age subscription options
read_track           - GPX or CSV file → raw fixes
"""

from run_tracker.location.readers import TrackFileError, read_csv, read_gpx, read_track
from run_tracker.location.sources import (
    PermissionStatus,
    PushLocationSource,
    ReplayLocationSource,
    SubscribeOptions,
)

__all__ = [
    "PermissionStatus",
    "PushLocationSource",
    "ReplayLocationSource",
    "SubscribeOptions",
    "TrackFileError",
    "read_csv",
    "read_gpx",
    "read_track",
]
