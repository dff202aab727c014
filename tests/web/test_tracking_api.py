"""Tracking controls, position pushes and live metrics over HTTP."""

from __future__ import annotations

from fastapi.testclient import TestClient

from run_tracker.config import TrackerSettings
from run_tracker.location.sources import PushLocationSource
from run_tracker.web.app import create_app
from run_tracker.web.service import TrackingService
from tests.web.conftest import push

# 0.009 degrees of latitude is ~1000.75 m on the mean-radius sphere
KM_LAT = 0.009


def test_initial_metrics_idle(client):
    data = client.get("/api/metrics").json()
    assert data["status"] == "Idle"
    assert data["tracking"] is False
    assert data["distance"] == "0.00 km"
    assert data["duration"] == "00:00:00"
    assert data["pace"] == "--:-- /km"
    assert data["points"] == 0


def test_start_opens_session(client, store):
    resp = client.post("/api/tracking/start")
    assert resp.status_code == 200
    data = resp.json()
    assert data["tracking"] is True
    assert data["status"] == "Tracking"
    assert data["session_id"]

    rows = store.query("sessions")
    assert [r["id"] for r in rows] == [data["session_id"]]
    assert rows[0]["user_id"] == "u1"


def test_start_with_user_override(client, store):
    client.post("/api/tracking/start", json={"user_id": "runner-7"})
    assert store.query("sessions")[0]["user_id"] == "runner-7"


def test_push_while_idle_is_conflict(client):
    assert push(client, 51.5, -0.12).status_code == 409


def test_push_out_of_range_is_rejected(client):
    client.post("/api/tracking/start")
    assert push(client, 91.0, 0.0).status_code == 422
    assert push(client, 0.0, 181.0).status_code == 422
    assert push(client, 0.0, 0.0, accuracy=-1.0).status_code == 422
    assert client.get("/api/metrics").json()["points"] == 0


def test_push_timestamp_out_of_range_is_rejected(client):
    client.post("/api/tracking/start")
    assert push(client, 1.0, 1.0, timestamp=1e20).status_code == 422
    assert push(client, 1.0, 1.0, timestamp=-1.0).status_code == 422
    data = client.get("/api/metrics").json()
    assert data["points"] == 0
    assert data["tracking"] is True


def test_push_accumulates_distance(client, clock):
    client.post("/api/tracking/start")
    first = push(client, 0.0, 0.0).json()
    assert first == {"accepted": True, "buffered": 1, "distance_m": 0.0}

    clock.advance(1)
    second = push(client, KM_LAT, 0.0).json()
    assert abs(second["distance_m"] - 1000.75) < 0.1


def test_tenth_push_flushes_buffer(client, store, clock):
    client.post("/api/tracking/start")
    for i in range(9):
        clock.advance(1)
        assert push(client, 51.5 + i * 1e-4, -0.12).json()["buffered"] == i + 1
    assert store.query("positions") == []

    clock.advance(1)
    assert push(client, 51.5009, -0.12).json()["buffered"] == 0
    assert len(store.query("positions")) == 10


def test_interval_flushes_buffer(client, store, clock):
    client.post("/api/tracking/start")
    push(client, 51.5, -0.12)
    clock.advance(16)
    assert push(client, 51.5001, -0.12).json()["buffered"] == 0
    assert len(store.query("positions")) == 2


def test_metrics_display_strings(client, clock):
    client.post("/api/tracking/start")
    push(client, 0.0, 0.0)
    clock.advance(300)
    push(client, KM_LAT, 0.0)

    data = client.get("/api/metrics").json()
    assert data["distance"] == "1.00 km"
    assert data["duration"] == "00:05:00"
    assert data["pace"] == "04:59 /km"
    assert data["elapsed_ms"] == 300_000
    assert data["points"] == 2


def test_stop_drains_buffer_and_freezes_clock(client, store, clock):
    client.post("/api/tracking/start")
    push(client, 51.5, -0.12)
    clock.advance(5)
    push(client, 51.5001, -0.12)

    data = client.post("/api/tracking/stop").json()
    assert data["tracking"] is False
    assert data["status"] == "Idle"
    assert data["buffered"] == 0
    assert len(store.query("positions")) == 2

    clock.advance(60)
    assert client.get("/api/metrics").json()["elapsed_ms"] == 5_000


def test_permission_denied_stops_tracking(client):
    client.post("/api/tracking/start")
    push(client, 51.5, -0.12)

    data = client.put("/api/permission", json={"state": "denied"}).json()
    assert data["tracking"] is False
    assert data["notices"][-1] == {
        "message": "Location permission is 'denied'; tracking stopped",
        "severity": "error",
    }
    assert push(client, 51.5001, -0.12).status_code == 409


def test_unknown_permission_state_rejected(client):
    assert client.put("/api/permission", json={"state": "blocked"}).status_code == 422


def test_location_error_stops_tracking(client, store):
    client.post("/api/tracking/start")
    push(client, 51.5, -0.12)

    data = client.post(
        "/api/positions/error", json={"message": "Timeout expired", "code": 3}
    ).json()
    assert data["tracking"] is False
    assert data["notices"][-1]["message"] == "Geolocation error: Timeout expired"
    assert len(store.query("positions")) == 1


def test_reset_clears_path(client, clock):
    client.post("/api/tracking/start")
    push(client, 0.0, 0.0)
    clock.advance(10)
    push(client, KM_LAT, 0.0)

    data = client.post("/api/tracking/reset").json()
    assert data["tracking"] is False
    assert data["distance_m"] == 0.0
    assert data["duration"] == "00:00:00"
    assert data["points"] == 0
    assert data["session_id"] is None


def test_start_without_location_capability(store, clock):
    svc = TrackingService(
        store,
        TrackerSettings(),
        source=PushLocationSource(available=False),
        clock=clock,
    )
    with TestClient(create_app(svc)) as c:
        resp = c.post("/api/tracking/start")
        assert resp.status_code == 409
        assert "not supported" in resp.json()["detail"]
        assert c.get("/api/metrics").json()["tracking"] is False
