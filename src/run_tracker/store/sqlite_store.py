"""SqliteStore — local implementation of the remote store interface.

Schema design notes:
  - ``positions`` mirrors the hosted ``positions`` table: one row per GPS fix,
    correlated to its owner and session by nullable text ids.
  - ``sessions`` uses the client-generated session id as primary key so the
    tracker can close the row with :meth:`SqliteStore.update` without a
    round-trip to learn a rowid.
  - Timestamps are stored as ISO-8601 UTC text, which sorts chronologically.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Mapping, Sequence
from typing import Any

from run_tracker.tracking.errors import RemoteWriteFailure, StoreError

_logger = logging.getLogger(__name__)

_DDL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous  = NORMAL;

CREATE TABLE IF NOT EXISTS sessions (
    id           TEXT    PRIMARY KEY,
    user_id      TEXT,
    started_at   TEXT    NOT NULL,
    ended_at     TEXT,
    distance_m   REAL,
    duration_ms  INTEGER,
    sample_count INTEGER
);

CREATE INDEX IF NOT EXISTS idx_sessions_started
    ON sessions (started_at);

CREATE TABLE IF NOT EXISTS positions (
    id         INTEGER PRIMARY KEY,
    session_id TEXT,
    user_id    TEXT,
    lat        REAL    NOT NULL,
    lng        REAL    NOT NULL,
    accuracy   REAL,
    timestamp  TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_positions_session
    ON positions (session_id, timestamp);
"""

# collection → columns a caller may write
_COLUMNS: dict[str, tuple[str, ...]] = {
    "sessions": (
        "id", "user_id", "started_at", "ended_at",
        "distance_m", "duration_ms", "sample_count",
    ),
    "positions": ("session_id", "user_id", "lat", "lng", "accuracy", "timestamp"),
}


def _columns(collection: str) -> tuple[str, ...]:
    try:
        return _COLUMNS[collection]
    except KeyError:
        raise StoreError(f"unknown collection: {collection!r}") from None


def _check_fields(collection: str, fields: Sequence[str]) -> None:
    allowed = _columns(collection)
    unknown = [f for f in fields if f not in allowed]
    if unknown:
        raise StoreError(f"unknown field(s) for {collection}: {unknown}")


class SqliteStore:
    """Stores sessions and positions in a SQLite database.

    Writes raise :class:`RemoteWriteFailure` and reads raise
    :class:`StoreError`, so callers treat this exactly like the hosted store.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Pass ``":memory:"`` for in-process testing.
    """

    def __init__(self, db_path: str = "tracker.db") -> None:
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        for stmt in _DDL.strip().split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.commit()

    # ------------------------------------------------------------------
    # Store interface
    # ------------------------------------------------------------------

    def bulk_append(self, collection: str, records: Sequence[Mapping[str, Any]]) -> int:
        """Insert *records* in one transaction; returns the number inserted."""
        if not records:
            return 0
        try:
            cols = _columns(collection)
            for rec in records:
                _check_fields(collection, list(rec))
        except StoreError as exc:
            raise RemoteWriteFailure(str(exc)) from exc

        sql = (
            f"INSERT INTO {collection} ({', '.join(cols)}) "
            f"VALUES ({', '.join('?' for _ in cols)})"
        )
        rows = [tuple(rec.get(c) for c in cols) for rec in records]
        try:
            with self._lock, self._conn:
                self._conn.executemany(sql, rows)
        except sqlite3.Error as exc:
            raise RemoteWriteFailure(f"insert into {collection} failed: {exc}") from exc
        return len(rows)

    def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        """Update the row with primary key *record_id*."""
        if not fields:
            return
        try:
            _check_fields(collection, list(fields))
        except StoreError as exc:
            raise RemoteWriteFailure(str(exc)) from exc

        assignments = ", ".join(f"{name} = ?" for name in fields)
        sql = f"UPDATE {collection} SET {assignments} WHERE id = ?"
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(sql, (*fields.values(), record_id))
        except sqlite3.Error as exc:
            raise RemoteWriteFailure(f"update of {collection}/{record_id} failed: {exc}") from exc
        if cursor.rowcount == 0:
            raise RemoteWriteFailure(f"{collection}/{record_id} not found")

    def query(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """Return rows of *collection* matching equality *filters*."""
        cols = {"id", *_columns(collection)}
        filters = dict(filters or {})
        for name in (*filters, *([order] if order else [])):
            if name not in cols:
                raise StoreError(f"unknown field for {collection}: {name!r}")

        sql = f"SELECT * FROM {collection}"
        params: list[Any] = []
        if filters:
            clauses = []
            for name, value in filters.items():
                if value is None:
                    clauses.append(f"{name} IS NULL")
                else:
                    clauses.append(f"{name} = ?")
                    params.append(value)
            sql += " WHERE " + " AND ".join(clauses)
        if order:
            sql += f" ORDER BY {order} {'DESC' if desc else 'ASC'}, id {'DESC' if desc else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"query on {collection} failed: {exc}") from exc
        return [dict(r) for r in rows]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
