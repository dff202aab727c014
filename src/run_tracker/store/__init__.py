"""Persistence for position samples and session summaries.

Public API
----------
SqliteStore  - local SQLite store (also used in tests)
RestStore    - hosted PostgREST / Supabase-style store over HTTP
open_store   - build the store selected by :class:`TrackerSettings`
"""

from __future__ import annotations

from run_tracker.config import TrackerSettings
from run_tracker.store.rest_store import RestStore
from run_tracker.store.sqlite_store import SqliteStore


def open_store(settings: TrackerSettings) -> SqliteStore | RestStore:
    """Return a :class:`RestStore` when a store URL is configured, else SQLite."""
    if settings.store_url:
        return RestStore(settings.store_url, api_key=settings.store_key or None)
    return SqliteStore(settings.db_path)


__all__ = [
    "RestStore",
    "SqliteStore",
    "open_store",
]
