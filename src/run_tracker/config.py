"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from run_tracker.tracking.tracker import BATCH_INTERVAL_S, BATCH_SIZE


def _int_or_none(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


@dataclass(frozen=True)
class TrackerSettings:
    """Settings for the tracker, the store and the web service.

    ``store_url`` selects the hosted REST store; when empty, the SQLite file
    at ``db_path`` is used.
    """

    db_path: str = "tracker.db"
    store_url: str = ""
    store_key: str = ""
    user_id: str | None = None
    batch_size: int = BATCH_SIZE
    batch_interval_s: float = BATCH_INTERVAL_S
    max_buffer: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrackerSettings:
        """Build settings from *environ* (defaults to ``os.environ`` after ``.env``)."""
        if environ is None:
            load_dotenv()
            environ = os.environ
        return cls(
            db_path=environ.get("RUN_TRACKER_DB", cls.db_path),
            store_url=environ.get("RUN_TRACKER_STORE_URL", ""),
            store_key=environ.get("RUN_TRACKER_STORE_KEY", ""),
            user_id=environ.get("RUN_TRACKER_USER_ID") or None,
            batch_size=int(environ.get("RUN_TRACKER_BATCH_SIZE", BATCH_SIZE)),
            batch_interval_s=float(environ.get("RUN_TRACKER_BATCH_INTERVAL_S", BATCH_INTERVAL_S)),
            max_buffer=_int_or_none(environ.get("RUN_TRACKER_MAX_BUFFER")),
        )
