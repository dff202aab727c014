"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from run_tracker.config import TrackerSettings
from run_tracker.store.sqlite_store import SqliteStore
from run_tracker.web.app import create_app
from run_tracker.web.service import TrackingService
from tests.tracking.conftest import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return SqliteStore(":memory:")


@pytest.fixture
def service(store, clock):
    return TrackingService(store, TrackerSettings(user_id="u1"), clock=clock)


@pytest.fixture
def client(service):
    """FastAPI test client bound to an in-memory service."""
    with TestClient(create_app(service)) as c:
        yield c


def push(client, lat: float, lng: float, accuracy: float | None = 5.0, timestamp=None):
    """POST one browser-shaped fix."""
    return client.post(
        "/api/positions",
        json={
            "coords": {"latitude": lat, "longitude": lng, "accuracy": accuracy},
            "timestamp": timestamp,
        },
    )
