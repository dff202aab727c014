"""Presentation collaborators for live metrics."""

from run_tracker.presentation.board import MetricsBoard
from run_tracker.presentation.console import ConsolePresenter
from run_tracker.presentation.formatter import format_distance_km, format_duration, format_pace

__all__ = [
    "ConsolePresenter",
    "MetricsBoard",
    "format_distance_km",
    "format_duration",
    "format_pace",
]
