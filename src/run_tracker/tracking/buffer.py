"""WriteBuffer — pending position records awaiting a flush to the store."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from run_tracker.tracking.models import LocationSample

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferedRecord:
    """A sample plus its correlation metadata.

    Either id may be missing (e.g. stale auth state, or the session row
    could not be created), so both are explicitly optional.
    """

    sample: LocationSample
    user_id: str | None = None
    session_id: str | None = None

    def to_record(self) -> dict:
        record = self.sample.to_record()
        record["user_id"] = self.user_id
        record["session_id"] = self.session_id
        return record


class WriteBuffer:
    """Ordered buffer of :class:`BufferedRecord` with an optional size cap.

    Every appended record gets a monotonically increasing sequence number.
    A flush takes a :meth:`snapshot` and, once the store write succeeds,
    calls :meth:`commit` with the last sequence number it carried.  Records
    appended while the write was in flight therefore survive the commit.

    When *max_size* is set and the buffer is full, the *oldest* record is
    discarded so the most recent part of the path is kept.

    Parameters
    ----------
    max_size:
        Maximum number of pending records, or None for no cap.
    """

    def __init__(self, max_size: int | None = None) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be >= 1 or None")
        self._max_size = max_size
        self._items: deque[tuple[int, BufferedRecord]] = deque()
        self._next_seq = 0
        self.last_flush_at: float = 0.0
        self.dropped: int = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    @property
    def max_size(self) -> int | None:
        return self._max_size

    def append(self, record: BufferedRecord) -> None:
        """Add *record*; drop the oldest pending record if at capacity."""
        if self._max_size is not None and len(self._items) >= self._max_size:
            self._items.popleft()
            self.dropped += 1
            _logger.warning(
                "Write buffer full (%d records); dropped oldest, %d dropped so far",
                self._max_size,
                self.dropped,
            )
        self._items.append((self._next_seq, record))
        self._next_seq += 1

    def snapshot(self) -> tuple[int, list[BufferedRecord]]:
        """Return ``(last_seq, records)`` for everything currently pending.

        ``last_seq`` is -1 when the buffer is empty.
        """
        if not self._items:
            return -1, []
        return self._items[-1][0], [rec for _, rec in self._items]

    def commit(self, last_seq: int, flushed_at: float) -> None:
        """Drop every record with sequence number <= *last_seq*."""
        while self._items and self._items[0][0] <= last_seq:
            self._items.popleft()
        self.last_flush_at = flushed_at

    def records(self) -> list[dict]:
        """Store representation of all pending records (oldest first)."""
        return [rec.to_record() for _, rec in self._items]
