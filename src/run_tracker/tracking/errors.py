"""Exception hierarchy for tracking and persistence failures."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all run_tracker errors."""


class CapabilityUnavailable(TrackerError):
    """The platform has no location sensing; tracking cannot start."""


class PermissionRevoked(TrackerError):
    """Location permission left the ``granted`` state while tracking."""


class LocationSourceError(TrackerError):
    """The location source reported a timeout, signal loss or platform error.

    ``code`` mirrors the browser ``GeolocationPositionError`` codes
    (1 = permission denied, 2 = position unavailable, 3 = timeout) when known.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class InvalidSample(TrackerError, ValueError):
    """A raw location push could not be turned into a LocationSample."""


class StoreError(TrackerError):
    """A read from the remote store failed."""


class RemoteWriteFailure(StoreError):
    """A write (bulk append or update) to the remote store failed."""
