"""Tests for WriteBuffer."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from run_tracker.tracking.buffer import BufferedRecord, WriteBuffer
from run_tracker.tracking.models import LocationSample

_T0 = datetime(2026, 5, 1, 7, 0, tzinfo=timezone.utc)


def _rec(i: int, user_id: str | None = "u1", session_id: str | None = "s1") -> BufferedRecord:
    return BufferedRecord(
        LocationSample(lat=float(i) / 10, lng=0.0, captured_at=_T0),
        user_id=user_id,
        session_id=session_id,
    )


def test_empty_snapshot():
    buf = WriteBuffer()
    assert len(buf) == 0
    assert buf.snapshot() == (-1, [])


def test_commit_removes_only_snapshotted_records():
    buf = WriteBuffer()
    for i in range(3):
        buf.append(_rec(i))
    last_seq, records = buf.snapshot()
    assert len(records) == 3

    buf.append(_rec(3))  # arrives while the write is in flight
    buf.commit(last_seq, flushed_at=123.0)

    assert len(buf) == 1
    assert buf.last_flush_at == 123.0
    assert buf.records()[0]["lat"] == pytest.approx(0.3)


def test_records_carry_optional_correlation():
    buf = WriteBuffer()
    buf.append(_rec(1, user_id=None, session_id=None))
    record = buf.records()[0]
    assert record["user_id"] is None
    assert record["session_id"] is None


def test_unbounded_by_default():
    buf = WriteBuffer()
    for i in range(1000):
        buf.append(_rec(i))
    assert len(buf) == 1000
    assert buf.dropped == 0


def test_cap_drops_oldest(caplog):
    buf = WriteBuffer(max_size=3)
    with caplog.at_level(logging.WARNING, logger="run_tracker.tracking.buffer"):
        for i in range(5):
            buf.append(_rec(i))

    assert len(buf) == 3
    assert buf.dropped == 2
    assert [r["lat"] for r in buf.records()] == pytest.approx([0.2, 0.3, 0.4])
    assert any("dropped oldest" in r.message for r in caplog.records)


def test_commit_after_overflow_keeps_newer_records():
    buf = WriteBuffer(max_size=2)
    buf.append(_rec(0))
    buf.append(_rec(1))
    last_seq, _ = buf.snapshot()
    buf.append(_rec(2))  # evicts rec 0 mid-flight
    buf.commit(last_seq, flushed_at=1.0)
    assert [r["lat"] for r in buf.records()] == pytest.approx([0.2])


def test_invalid_max_size():
    with pytest.raises(ValueError):
        WriteBuffer(max_size=0)
