"""RestStore — hosted PostgREST (Supabase-style) implementation of the store.

The API key is read from ``RUN_TRACKER_STORE_KEY`` by default.  Pass
``api_key`` explicitly in tests or when integrating with secret managers.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from run_tracker.tracking.errors import RemoteWriteFailure, StoreError

_logger = logging.getLogger(__name__)


class RestStore:
    """Thin client for the ``/rest/v1/<collection>`` endpoints.

    Args:
        base_url: Project URL, e.g. ``https://<ref>.supabase.co``.
        api_key: Anon/service key; falls back to ``RUN_TRACKER_STORE_KEY``.
        access_token: Optional user JWT; the API key is used as bearer otherwise.
        timeout: Request timeout in seconds.
        client: Pre-built :class:`httpx.Client`, injected for tests.
    """

    REST_PREFIX = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        key = api_key or os.environ.get("RUN_TRACKER_STORE_KEY", "")
        headers = {
            "apikey": key,
            "Authorization": f"Bearer {access_token or key}",
            "Content-Type": "application/json",
        }
        base = base_url.rstrip("/") + self.REST_PREFIX
        if client is None:
            client = httpx.Client(base_url=base, headers=headers, timeout=timeout)
        else:
            client.base_url = base
            client.headers.update(headers)
        self._client = client

    # ------------------------------------------------------------------
    # Store interface
    # ------------------------------------------------------------------

    def bulk_append(self, collection: str, records: Sequence[Mapping[str, Any]]) -> int:
        """POST all *records* in one request; returns the number sent."""
        if not records:
            return 0
        try:
            r = self._client.post(
                f"/{collection}",
                json=list(records),
                headers={"Prefer": "return=minimal"},
            )
            r.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteWriteFailure(f"insert into {collection} failed: {exc}") from exc
        _logger.debug("Appended %d record(s) to %s", len(records), collection)
        return len(records)

    def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        """PATCH the row whose ``id`` equals *record_id*."""
        try:
            r = self._client.patch(
                f"/{collection}",
                params={"id": f"eq.{record_id}"},
                json=dict(fields),
                headers={"Prefer": "return=minimal"},
            )
            r.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteWriteFailure(f"update of {collection}/{record_id} failed: {exc}") from exc

    def query(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """GET rows using PostgREST ``eq`` filters, ``order`` and ``limit``."""
        params: dict[str, str] = {"select": "*"}
        for name, value in (filters or {}).items():
            params[name] = "is.null" if value is None else f"eq.{value}"
        if order:
            params["order"] = f"{order}.{'desc' if desc else 'asc'}"
        if limit is not None:
            params["limit"] = str(int(limit))
        try:
            r = self._client.get(f"/{collection}", params=params)
            r.raise_for_status()
            rows = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"query on {collection} failed: {exc}") from exc
        if not isinstance(rows, list):
            raise StoreError(f"unexpected response for {collection}: {rows!r}")
        return rows

    def close(self) -> None:
        self._client.close()
