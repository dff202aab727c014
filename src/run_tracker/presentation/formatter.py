"""Display formatting for distance, duration and pace."""

from __future__ import annotations

import math

NO_PACE = "--:--"


def format_duration(ms: float) -> str:
    """Return *ms* as ``HH:MM:SS``; negative values show as zero."""
    total_seconds = int(max(0.0, ms) // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_distance_km(distance_m: float) -> str:
    return f"{distance_m / 1000:.2f} km"


def format_pace(distance_m: float, elapsed_ms: float) -> str:
    """Return pace per km as ``MM:SS``, or ``--:--`` when undefined."""
    if distance_m <= 0:
        return NO_PACE
    ms_per_km = elapsed_ms / (distance_m / 1000)
    if not math.isfinite(ms_per_km) or ms_per_km <= 0:
        return NO_PACE
    total_seconds = int(ms_per_km // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"
