"""Location sources — push-based providers of raw GPS fixes."""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)

PERMISSION_STATES = frozenset({"granted", "denied", "prompt"})

SampleCallback = Callable[[Mapping[str, Any]], Any]
ErrorCallback = Callable[[BaseException], Any]


@dataclass(frozen=True)
class SubscribeOptions:
    """Options passed with a location subscription."""

    high_accuracy: bool = True
    max_fix_age: float = 0.0
    """Oldest acceptable cached fix in seconds; 0 rejects cached fixes."""


class PermissionStatus:
    """Changeable ``granted`` / ``denied`` / ``prompt`` permission state.

    Listeners receive the new state string whenever it changes.
    """

    def __init__(self, state: str = "granted") -> None:
        if state not in PERMISSION_STATES:
            raise ValueError(f"unknown permission state: {state!r}")
        self._state = state
        self._listeners: list[Callable[[str], None]] = []

    @property
    def state(self) -> str:
        return self._state

    def add_listener(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def set_state(self, state: str) -> None:
        """Change the state and notify listeners (no-op if unchanged)."""
        if state not in PERMISSION_STATES:
            raise ValueError(f"unknown permission state: {state!r}")
        if state == self._state:
            return
        self._state = state
        for cb in list(self._listeners):
            cb(state)


class PushLocationSource:
    """Location source fed from outside, e.g. by fixes POSTed over HTTP.

    Parameters
    ----------
    available:
        Whether location sensing is possible at all.
    permission_state:
        Initial permission state.
    """

    def __init__(self, available: bool = True, permission_state: str = "granted") -> None:
        self._available = available
        self._permission = PermissionStatus(permission_state)
        self._subscribers: dict[int, tuple[SampleCallback, ErrorCallback, SubscribeOptions]] = {}
        self._handles = itertools.count(1)

    # ------------------------------------------------------------------
    # Location source interface
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        return self._available

    def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        options: SubscribeOptions | None = None,
    ) -> int:
        """Register for pushes; returns a handle for :meth:`unsubscribe`."""
        handle = next(self._handles)
        self._subscribers[handle] = (on_sample, on_error, options or SubscribeOptions())
        return handle

    def unsubscribe(self, handle: int) -> None:
        self._subscribers.pop(handle, None)

    def permission(self) -> PermissionStatus:
        return self._permission

    # ------------------------------------------------------------------
    # Feeding side
    # ------------------------------------------------------------------

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def options_for(self, handle: int) -> SubscribeOptions | None:
        entry = self._subscribers.get(handle)
        return entry[2] if entry else None

    def push(self, raw: Mapping[str, Any]) -> int:
        """Deliver *raw* to every subscriber; returns how many received it."""
        delivered = 0
        for on_sample, _, _ in list(self._subscribers.values()):
            on_sample(raw)
            delivered += 1
        if not delivered:
            _logger.debug("Location push with no subscribers dropped")
        return delivered

    def fail(self, error: BaseException) -> int:
        """Report *error* to every subscriber's error callback."""
        delivered = 0
        for _, on_error, _ in list(self._subscribers.values()):
            on_error(error)
            delivered += 1
        return delivered


class ReplayLocationSource(PushLocationSource):
    """Replays a recorded list of raw fixes to its subscribers.

    Parameters
    ----------
    fixes:
        Raw fixes in delivery order (see
        :func:`~run_tracker.location.readers.read_gpx`).
    speed:
        Real-time multiplier for :meth:`replay`.  None delivers as fast as
        possible; 1.0 honours the gaps between fix timestamps.
    sleep:
        Sleep function, injected for tests.
    """

    def __init__(
        self,
        fixes: Iterable[Mapping[str, Any]],
        speed: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(available=True)
        self._fixes = list(fixes)
        self._speed = speed
        self._sleep = sleep
        self._track_time_s: float | None = None
        self._first_ts = next(
            (f["timestamp"] for f in self._fixes if isinstance(f.get("timestamp"), (int, float))),
            None,
        )

    def __len__(self) -> int:
        return len(self._fixes)

    def clock(self) -> float:
        """Track time in epoch seconds: the timestamp of the last delivered fix.

        Before the first delivery this is the first fix's timestamp; tracks
        without timestamps fall back to wall-clock time.
        """
        if self._track_time_s is not None:
            return self._track_time_s
        if self._first_ts is not None:
            return self._first_ts / 1000.0
        return time.time()

    def replay(self) -> int:
        """Deliver every fix in order; stops early once nobody is subscribed.

        Returns the number of fixes delivered.
        """
        delivered = 0
        prev_ts: float | None = None
        for raw in self._fixes:
            if not self.subscriber_count:
                break
            ts = raw.get("timestamp")
            if isinstance(ts, (int, float)):
                if self._speed and prev_ts is not None:
                    gap = (ts - prev_ts) / 1000.0 / self._speed
                    if gap > 0:
                        self._sleep(gap)
                prev_ts = ts
                self._track_time_s = ts / 1000.0
            self.push(raw)
            delivered += 1
        return delivered
