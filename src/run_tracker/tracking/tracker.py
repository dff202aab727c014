"""SessionTracker — turns raw location pushes into live metrics and batched writes."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from run_tracker.location.sources import SubscribeOptions
from run_tracker.tracking.buffer import BufferedRecord, WriteBuffer
from run_tracker.tracking.errors import (
    CapabilityUnavailable,
    InvalidSample,
    LocationSourceError,
    PermissionRevoked,
    RemoteWriteFailure,
    TrackerError,
)
from run_tracker.tracking.geo import sample_distance_m
from run_tracker.tracking.models import (
    LocationSample,
    MetricsUpdate,
    Notice,
    SessionSummary,
    TrackState,
)
from run_tracker.tracking.parser import LocationParser

_logger = logging.getLogger(__name__)

BATCH_SIZE = 10           # flush once this many records are pending
BATCH_INTERVAL_S = 15.0   # ... or once this long has passed since the last flush

POSITIONS = "positions"
SESSIONS = "sessions"


def _iso(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).isoformat()


class SessionTracker:
    """Owns one :class:`TrackState` and one :class:`WriteBuffer`.

    State machine: Idle → Tracking → Idle via :meth:`start` / :meth:`stop`;
    permission loss and location errors force Tracking → Idle;
    :meth:`reset` clears the recorded path (Idle → Idle).

    Parameters
    ----------
    source:
        Location source with ``is_available``, ``subscribe(on_sample,
        on_error, options) -> handle``, ``unsubscribe(handle)`` and
        ``permission() -> PermissionStatus | None``.
    store:
        Remote store with ``bulk_append(collection, records)`` and
        ``update(collection, id, fields)``; both raise
        :class:`RemoteWriteFailure` on failure.
    presenter:
        Presentation collaborator, see
        :class:`~run_tracker.presentation.board.MetricsBoard`.
    user_id:
        Owning user, attached to every buffered record.  May be None.
    batch_size, batch_interval_s:
        Flush triggers; either one firing is enough.
    max_buffer:
        Optional cap on pending records (drop-oldest).  None = unbounded.
    record_sessions:
        When True, each activation creates a ``sessions`` row and closes
        it with final totals on stop.
    clock:
        Returns the current time in epoch seconds.  Injected for tests.
    """

    def __init__(
        self,
        source,
        store,
        presenter,
        *,
        user_id: str | None = None,
        batch_size: int = BATCH_SIZE,
        batch_interval_s: float = BATCH_INTERVAL_S,
        max_buffer: int | None = None,
        record_sessions: bool = True,
        clock: Callable[[], float] = time.time,
        parser: LocationParser | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._presenter = presenter
        self.user_id = user_id
        self._batch_size = batch_size
        self._batch_interval_s = batch_interval_s
        self._record_sessions = record_sessions
        self._clock = clock
        self._parser = parser or LocationParser()

        self.state = TrackState()
        self.buffer = WriteBuffer(max_size=max_buffer)
        self.session_id: str | None = None
        self.last_error: TrackerError | None = None

        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()
        self._watch_handle: Any = None
        self._permission = None
        # Index into state.samples where the current activation begins, and
        # the distance already accumulated before it.
        self._segment_start = 0
        self._distance_at_start = 0.0
        self._stopped_at: float | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_tracking(self) -> bool:
        return self.state.active

    def start(self) -> None:
        """Begin an activation.

        Raises
        ------
        CapabilityUnavailable
            If the location source cannot sense location on this platform.
        """
        with self._lock:
            if self.state.active:
                return
            if not self._source.is_available:
                raise CapabilityUnavailable("Geolocation is not supported on this platform")

            permission = self._source.permission()
            if permission is not None and permission is not self._permission:
                permission.add_listener(self.handle_permission_change)
                self._permission = permission

            self._watch_handle = self._source.subscribe(
                self.handle_sample,
                self.handle_error,
                SubscribeOptions(high_accuracy=True, max_fix_age=0),
            )

            now = self._clock()
            self.state.active = True
            self.state.start_time = now
            self.buffer.last_flush_at = now
            self.last_error = None
            self._stopped_at = None
            self._segment_start = len(self.state.samples)
            self._distance_at_start = self.state.distance_m
            self.session_id = self._open_session(now)
            _logger.info("Tracking started (session=%s)", self.session_id)

        self._presenter.tracking_changed(True)

    def handle_sample(self, raw: Mapping[str, Any]) -> LocationSample | None:
        """Ingest one raw location push.

        Returns the parsed sample, or None when the push was ignored
        (tracker idle, or the fix was invalid).
        """
        with self._lock:
            if not self.state.active:
                _logger.debug("Ignoring location push while idle")
                return None

            now = self._clock()
            try:
                sample = self._parser.parse(raw, now=datetime.fromtimestamp(now, tz=timezone.utc))
            except InvalidSample as exc:
                _logger.warning("Dropping invalid location push: %s", exc)
                return None

            self._presenter.append_point(sample.lat, sample.lng)

            if len(self.state.samples) > self._segment_start:
                self.state.distance_m += sample_distance_m(self.state.samples[-1], sample)
            self.state.samples.append(sample)

            self.buffer.append(BufferedRecord(sample, self.user_id, self.session_id))
            due = (
                len(self.buffer) >= self._batch_size
                or now - self.buffer.last_flush_at > self._batch_interval_s
            )
            metrics = MetricsUpdate(
                distance_m=self.state.distance_m,
                elapsed_ms=int(self.state.elapsed_s(now) * 1000),
            )

        if due:
            self.flush()
        self._presenter.update_metrics(metrics)
        return sample

    def flush(self, wait: bool = False) -> bool:
        """Write every pending record to the store in one bulk append.

        Only one flush runs at a time.  When another flush is in flight this
        call returns False immediately, unless *wait* is True, in which case
        it waits for the in-flight flush and then drains what is left.

        Returns True if records were written.  A failed write leaves the
        buffer untouched; the records go out with the next trigger.
        """
        if not self._flush_lock.acquire(blocking=wait):
            _logger.debug("Flush already in flight; skipping")
            return False
        try:
            with self._lock:
                last_seq, pending = self.buffer.snapshot()
            if not pending:
                return False

            try:
                self._store.bulk_append(POSITIONS, [rec.to_record() for rec in pending])
            except RemoteWriteFailure as exc:
                _logger.warning(
                    "Position flush failed; keeping %d buffered record(s): %s",
                    len(pending),
                    exc,
                )
                return False

            with self._lock:
                self.buffer.commit(last_seq, self._clock())
            _logger.debug("Flushed %d position record(s)", len(pending))
            return True
        finally:
            self._flush_lock.release()

    def stop(self) -> None:
        """End the activation, drain the buffer and close the session."""
        with self._lock:
            handle, self._watch_handle = self._watch_handle, None
            if handle is not None:
                self._source.unsubscribe(handle)

            was_active = self.state.active
            self.state.active = False
            summary: SessionSummary | None = None
            if was_active:
                self._stopped_at = now = self._clock()
            if was_active and self.session_id is not None:
                summary = SessionSummary(
                    ended_at=datetime.fromtimestamp(now, tz=timezone.utc),
                    distance_m=self.state.distance_m - self._distance_at_start,
                    duration_ms=int(self.state.elapsed_s(now) * 1000),
                    sample_count=len(self.state.samples) - self._segment_start,
                )
            session_id = self.session_id
            has_path = bool(self.state.samples)

        self._presenter.tracking_changed(False)
        if was_active and has_path:
            self._presenter.fit_view()

        self.flush(wait=True)

        if summary is not None and session_id is not None:
            self._close_session(session_id, summary)
        if was_active:
            _logger.info("Tracking stopped (session=%s)", session_id)

    def reset(self) -> None:
        """Stop, then clear the recorded path and accumulated distance."""
        self.stop()
        with self._lock:
            self.state.distance_m = 0.0
            self.state.samples.clear()
            self.state.start_time = None
            self.session_id = None
            self._segment_start = 0
            self._distance_at_start = 0.0
            self._stopped_at = None
        self._presenter.set_path([])
        self._presenter.reset_metrics()

    def metrics(self) -> MetricsUpdate:
        """Current distance and elapsed time, computed on demand."""
        with self._lock:
            now = self._clock() if self.state.active else self._stopped_at
            elapsed_s = self.state.elapsed_s(now) if now is not None else 0.0
            return MetricsUpdate(
                distance_m=self.state.distance_m,
                elapsed_ms=int(elapsed_s * 1000),
            )

    # ------------------------------------------------------------------
    # Location source callbacks
    # ------------------------------------------------------------------

    def handle_error(self, error: BaseException | str) -> None:
        """Location source failure: forced stop, user-visible notice, no retry."""
        if not isinstance(error, LocationSourceError):
            error = LocationSourceError(str(error) or type(error).__name__)
        _logger.warning("Location source error; stopping: %s", error)
        self.last_error = error
        self.stop()
        self._presenter.notify(Notice(f"Geolocation error: {error}", "error"))

    def handle_permission_change(self, state: str) -> None:
        """Permission listener: anything but ``granted`` stops an active activation."""
        with self._lock:
            if state == "granted" or not self.state.active:
                return
        error = PermissionRevoked(f"Location permission is {state!r}; tracking stopped")
        _logger.warning("%s", error)
        self.last_error = error
        self.stop()
        self._presenter.notify(Notice(str(error), "error"))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_session(self, now: float) -> str | None:
        if not self._record_sessions:
            return None
        session_id = uuid.uuid4().hex
        record = {"id": session_id, "user_id": self.user_id, "started_at": _iso(now)}
        try:
            self._store.bulk_append(SESSIONS, [record])
        except RemoteWriteFailure as exc:
            _logger.warning("Could not create session row; continuing without one: %s", exc)
            return None
        return session_id

    def _close_session(self, session_id: str, summary: SessionSummary) -> None:
        try:
            self._store.update(SESSIONS, session_id, summary.to_fields())
        except RemoteWriteFailure as exc:
            _logger.warning("Could not close session %s: %s", session_id, exc)
