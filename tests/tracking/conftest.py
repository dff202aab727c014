"""Shared fixtures for tracker tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from run_tracker.location.sources import PushLocationSource
from run_tracker.presentation.board import MetricsBoard
from run_tracker.tracking.tracker import SessionTracker

T0 = 1_767_000_000.0  # epoch seconds


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_fix(lat: float, lng: float, accuracy: float | None = 5.0, ts_ms: float | None = None) -> dict:
    """Build a browser-shaped raw location push."""
    return {
        "coords": {"latitude": lat, "longitude": lng, "accuracy": accuracy},
        "timestamp": ts_ms,
    }


def walk(n: int, lat0: float = 51.5007, lng0: float = -0.1246, step: float = 0.0001) -> list[dict]:
    """*n* fixes heading north-west in equal steps."""
    return [make_fix(lat0 + i * step, lng0 - i * step) for i in range(n)]


def position_writes(store: MagicMock) -> list[list[dict]]:
    """Record lists passed to ``bulk_append("positions", ...)``."""
    return [c.args[1] for c in store.bulk_append.call_args_list if c.args[0] == "positions"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return PushLocationSource()


@pytest.fixture
def store():
    return MagicMock()


@pytest.fixture
def board():
    return MetricsBoard()


@pytest.fixture
def tracker(source, store, board, clock):
    return SessionTracker(source, store, board, user_id="u1", clock=clock)
