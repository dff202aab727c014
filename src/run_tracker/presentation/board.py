"""MetricsBoard — in-memory presenter read by the web API and by tests."""

from __future__ import annotations

from collections import deque

from run_tracker.presentation.formatter import format_distance_km, format_duration, format_pace
from run_tracker.tracking.models import MetricsUpdate, Notice


class MetricsBoard:
    """Keeps the latest metrics, the drawn path and recent notices.

    Implements the presenter interface expected by
    :class:`~run_tracker.tracking.tracker.SessionTracker`.

    Parameters
    ----------
    max_notices:
        How many recent notices to keep (oldest dropped first).
    """

    def __init__(self, max_notices: int = 20) -> None:
        self.status = "Idle"
        self.metrics = MetricsUpdate(distance_m=0.0, elapsed_ms=0)
        self.path: list[tuple[float, float]] = []
        self.notices: deque[Notice] = deque(maxlen=max_notices)
        self.view_fits = 0

    # ------------------------------------------------------------------
    # Presenter interface
    # ------------------------------------------------------------------

    def tracking_changed(self, active: bool) -> None:
        self.status = "Tracking" if active else "Idle"

    def update_metrics(self, metrics: MetricsUpdate) -> None:
        self.metrics = metrics

    def reset_metrics(self) -> None:
        self.metrics = MetricsUpdate(distance_m=0.0, elapsed_ms=0)
        self.status = "Idle"

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def append_point(self, lat: float, lng: float) -> None:
        self.path.append((lat, lng))

    def set_path(self, points: list[tuple[float, float]]) -> None:
        self.path = list(points)

    def fit_view(self) -> None:
        self.view_fits += 1

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def display(self, metrics: MetricsUpdate | None = None) -> dict[str, str]:
        """Formatted strings for the distance / duration / pace widgets."""
        m = metrics or self.metrics
        return {
            "distance": format_distance_km(m.distance_m),
            "duration": format_duration(m.elapsed_ms),
            "pace": f"{format_pace(m.distance_m, m.elapsed_ms)} /km",
            "status": self.status,
        }
