"""ConsolePresenter — prints live metrics and notices to a text stream."""

from __future__ import annotations

import sys
from typing import TextIO

from run_tracker.presentation.board import MetricsBoard
from run_tracker.tracking.models import MetricsUpdate, Notice


class ConsolePresenter(MetricsBoard):
    """A :class:`MetricsBoard` that also writes a status line per update."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._out = stream or sys.stdout

    def tracking_changed(self, active: bool) -> None:
        super().tracking_changed(active)
        print(f"[{self.status}]", file=self._out, flush=True)

    def update_metrics(self, metrics: MetricsUpdate) -> None:
        super().update_metrics(metrics)
        d = self.display(metrics)
        print(
            f"{d['distance']:>10}  {d['duration']:>8}  {d['pace']:>10}  "
            f"({len(self.path)} pts)",
            file=self._out,
            flush=True,
        )

    def notify(self, notice: Notice) -> None:
        super().notify(notice)
        print(f"[{notice.severity.upper()}] {notice.message}", file=self._out, flush=True)
