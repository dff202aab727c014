"""Great-circle distance helpers."""

from __future__ import annotations

import math
from collections.abc import Iterable

from run_tracker.tracking.models import LocationSample

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the Haversine distance in metres between two lat/lng points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def sample_distance_m(a: LocationSample, b: LocationSample) -> float:
    """Haversine distance between two samples."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def path_distance_m(samples: Iterable[LocationSample]) -> float:
    """Sum of pairwise distances between consecutive samples.

    GPS jitter is not filtered: every fix contributes its full offset.
    """
    total = 0.0
    prev: LocationSample | None = None
    for sample in samples:
        if prev is not None:
            total += sample_distance_m(prev, sample)
        prev = sample
    return total
