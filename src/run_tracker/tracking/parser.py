"""LocationParser — converts raw location pushes to LocationSample."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from run_tracker.tracking.errors import InvalidSample
from run_tracker.tracking.models import LocationSample

# Accepted key spellings for each field.  Browser ``Position.coords`` uses the
# long names; stored records and CSV exports use the short ones.
_LAT_KEYS = ("latitude", "lat")
_LNG_KEYS = ("longitude", "lng", "lon")
_ACC_KEYS = ("accuracy",)
_TS_KEYS = ("timestamp", "time", "captured_at")


def _first(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _to_float(value: Any, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidSample(f"{name} is not a number: {value!r}") from exc
    if not math.isfinite(result):
        raise InvalidSample(f"{name} is not finite: {value!r}")
    return result


def _from_epoch_ms(millis: float) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidSample(f"timestamp out of range: {millis!r}") from exc


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an epoch-milliseconds number, ISO-8601 string or datetime.

    Naive datetimes are assumed to be UTC.  Returns None for None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InvalidSample(f"timestamp is not finite: {value!r}")
        ts = _from_epoch_ms(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            try:
                millis = float(text)
            except ValueError as exc:
                raise InvalidSample(f"unparseable timestamp: {value!r}") from exc
            ts = _from_epoch_ms(millis)
    else:
        raise InvalidSample(f"unsupported timestamp type: {type(value).__name__}")

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class LocationParser:
    """Parses a raw location push into a :class:`LocationSample`.

    Two shapes are accepted:

    * the browser Geolocation ``Position`` object serialised to JSON,
      ``{"coords": {"latitude", "longitude", "accuracy"}, "timestamp": ms}``;
    * a flat record ``{"lat", "lng", "accuracy", "timestamp"}``.

    Out-of-range coordinates raise :class:`InvalidSample`.  A negative or
    non-finite accuracy is treated as "not reported".
    """

    def parse(self, raw: Mapping[str, Any], now: datetime | None = None) -> LocationSample:
        """Convert *raw* to a validated sample.

        *now* is used as the capture time when *raw* carries no timestamp.
        """
        if not isinstance(raw, Mapping):
            raise InvalidSample(f"location push must be a mapping, got {type(raw).__name__}")

        coords = raw.get("coords")
        if not isinstance(coords, Mapping):
            coords = raw

        lat = _to_float(_first(coords, _LAT_KEYS), "latitude")
        lng = _to_float(_first(coords, _LNG_KEYS), "longitude")
        if not -90.0 <= lat <= 90.0:
            raise InvalidSample(f"latitude out of range: {lat}")
        if not -180.0 <= lng <= 180.0:
            raise InvalidSample(f"longitude out of range: {lng}")

        accuracy: float | None = None
        acc_raw = _first(coords, _ACC_KEYS)
        if acc_raw is not None:
            try:
                acc = float(acc_raw)
            except (TypeError, ValueError):
                acc = -1.0
            if math.isfinite(acc) and acc >= 0:
                accuracy = acc

        captured_at = parse_timestamp(_first(raw, _TS_KEYS))
        if captured_at is None:
            captured_at = now or datetime.now(timezone.utc)

        return LocationSample(lat=lat, lng=lng, accuracy=accuracy, captured_at=captured_at)
