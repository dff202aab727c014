"""TrackingService — wires one tracker, push source and board for the Web API."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from run_tracker.config import TrackerSettings
from run_tracker.location.sources import PushLocationSource
from run_tracker.presentation.board import MetricsBoard
from run_tracker.tracking.errors import LocationSourceError
from run_tracker.tracking.tracker import POSITIONS, SESSIONS, SessionTracker

_logger = logging.getLogger(__name__)


class TrackingService:
    """Owns the single live :class:`SessionTracker` behind the HTTP endpoints.

    Parameters
    ----------
    store:
        Store used for position writes and history reads.
    settings:
        Batch / buffer / user settings.  Defaults to :class:`TrackerSettings`.
    source:
        Location source; a fresh :class:`PushLocationSource` by default.
    clock:
        Epoch-seconds clock, injected for tests.
    """

    def __init__(
        self,
        store,
        settings: TrackerSettings | None = None,
        source: PushLocationSource | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or TrackerSettings()
        self.store = store
        self.source = source or PushLocationSource()
        self.board = MetricsBoard()
        self.tracker = SessionTracker(
            self.source,
            store,
            self.board,
            user_id=self.settings.user_id,
            batch_size=self.settings.batch_size,
            batch_interval_s=self.settings.batch_interval_s,
            max_buffer=self.settings.max_buffer,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Tracking controls
    # ------------------------------------------------------------------

    def start(self, user_id: str | None = None) -> None:
        if user_id:
            self.tracker.user_id = user_id
        self.tracker.start()

    def stop(self) -> None:
        self.tracker.stop()

    def reset(self) -> None:
        self.tracker.reset()

    def push(self, raw: dict[str, Any]) -> bool:
        """Forward one fix to the tracker; False when nothing is subscribed."""
        return self.source.push(raw) > 0

    def report_error(self, message: str, code: int | None = None) -> None:
        self.source.fail(LocationSourceError(message, code))

    def set_permission(self, state: str) -> None:
        self.source.permission().set_state(state)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Live metrics plus formatted display strings."""
        metrics = self.tracker.metrics()
        display = self.board.display(metrics)
        return {
            "status": display["status"],
            "tracking": self.tracker.is_tracking,
            "session_id": self.tracker.session_id,
            "distance_m": metrics.distance_m,
            "elapsed_ms": metrics.elapsed_ms,
            "pace_s_per_km": metrics.pace_s_per_km,
            "distance": display["distance"],
            "duration": display["duration"],
            "pace": display["pace"],
            "buffered": len(self.tracker.buffer),
            "points": len(self.tracker.state.samples),
            "notices": [
                {"message": n.message, "severity": n.severity} for n in self.board.notices
            ],
        }

    def list_sessions(self, limit: int = 20, user_id: str | None = None) -> list[dict]:
        """Most recent sessions first."""
        filters = {"user_id": user_id} if user_id else None
        return self.store.query(SESSIONS, filters=filters, order="started_at", desc=True, limit=limit)

    def get_session(self, session_id: str) -> dict | None:
        rows = self.store.query(SESSIONS, filters={"id": session_id}, limit=1)
        return rows[0] if rows else None

    def session_positions(self, session_id: str) -> list[dict]:
        return self.store.query(POSITIONS, filters={"session_id": session_id}, order="timestamp")

    def close(self) -> None:
        """Stop tracking (draining the buffer) and close the store."""
        self.tracker.stop()
        self.store.close()
        _logger.info("Tracking service closed")
