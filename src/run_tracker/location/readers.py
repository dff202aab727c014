"""Track file readers — GPX and CSV files to raw location fixes.

Both readers produce the browser ``Position`` JSON shape consumed by
:class:`~run_tracker.tracking.parser.LocationParser`::

    {"coords": {"latitude": ..., "longitude": ..., "accuracy": ...},
     "timestamp": <epoch ms or None>}
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path

import gpxpy
import gpxpy.gpx

_logger = logging.getLogger(__name__)


class TrackFileError(ValueError):
    """Raised when a track file cannot be read."""


def _fix(lat: float, lng: float, accuracy: float | None, timestamp: float | None) -> dict:
    return {
        "coords": {"latitude": lat, "longitude": lng, "accuracy": accuracy},
        "timestamp": timestamp,
    }


def _csv_timestamp_ms(text: str) -> float | None:
    """Epoch ms from a numeric or ISO-8601 cell; None when blank or unparseable."""
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp() * 1000.0


def read_gpx(path: str | Path) -> list[dict]:
    """Return every track point of a GPX file as a raw fix, in file order.

    Route points and waypoints are ignored; only ``<trk>`` segments are read.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            gpx = gpxpy.parse(f)
    except (OSError, gpxpy.gpx.GPXException) as exc:
        raise TrackFileError(f"cannot read GPX file {path}: {exc}") from exc

    fixes: list[dict] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for p in segment.points:
                ts = None
                if p.time is not None:
                    when = p.time if p.time.tzinfo else p.time.replace(tzinfo=timezone.utc)
                    ts = when.timestamp() * 1000.0
                fixes.append(_fix(p.latitude, p.longitude, None, ts))
    _logger.info("Read %d fixes from %s", len(fixes), path)
    return fixes


def read_csv(path: str | Path) -> list[dict]:
    """Return the rows of a CSV track as raw fixes.

    Required columns: ``lat``/``latitude`` and ``lng``/``lon``/``longitude``.
    Optional: ``accuracy`` and ``timestamp`` (epoch ms or ISO-8601; always
    returned as epoch ms).
    Rows with unparseable coordinates are skipped.
    """
    p = Path(path)
    fixes: list[dict] = []
    skipped = 0
    try:
        with p.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            fields = set(reader.fieldnames or ())
            lat_key = next((k for k in ("lat", "latitude") if k in fields), None)
            lng_key = next((k for k in ("lng", "lon", "longitude") if k in fields), None)
            if lat_key is None or lng_key is None:
                raise TrackFileError(
                    f"CSV {path} needs latitude and longitude columns, got {sorted(fields)}"
                )
            for row in reader:
                try:
                    lat = float(row[lat_key])
                    lng = float(row[lng_key])
                except (TypeError, ValueError):
                    skipped += 1
                    continue
                try:
                    accuracy = float(row["accuracy"]) if row.get("accuracy") else None
                except ValueError:
                    accuracy = None
                timestamp = _csv_timestamp_ms((row.get("timestamp") or "").strip())
                fixes.append(_fix(lat, lng, accuracy, timestamp))
    except OSError as exc:
        raise TrackFileError(f"cannot read CSV file {path}: {exc}") from exc

    if skipped:
        _logger.warning("Skipped %d malformed row(s) in %s", skipped, path)
    return fixes


def read_track(path: str | Path) -> list[dict]:
    """Dispatch on file extension (``.gpx`` or ``.csv``)."""
    suffix = Path(path).suffix.lower()
    if suffix == ".gpx":
        return read_gpx(path)
    if suffix == ".csv":
        return read_csv(path)
    raise TrackFileError(f"unsupported track file type: {suffix or path}")
