"""Used/remaining doughnut data owned by the dashboard controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import UsageReport

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UsageChart:
    """A replaceable chart; must be closed before a successor is created."""

    child_id: str
    labels: tuple[str, ...]
    values: tuple[int, ...]
    colors: tuple[str, ...] = ("#007BFF", "#E8F0FF")
    closed: bool = field(default=False, init=False)

    @classmethod
    def for_report(cls, report: UsageReport) -> "UsageChart":
        return cls(
            child_id=report.child_id,
            labels=("Used (min)", "Remaining (min)"),
            values=(report.used_minutes, report.remaining_minutes),
        )

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            logger.debug("Disposed usage chart for child %s", self.child_id)

    def __enter__(self) -> "UsageChart":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
