"""Presentation collaborators for usage reports."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Protocol

from .charts import UsageChart
from .models import UsageReport

PLACEHOLDER = "—"
ERROR_MESSAGE = "Error loading data"


class Presenter(Protocol):
    def render_usage_report(self, report: UsageReport, chart: UsageChart) -> None:
        ...

    def render_no_child_selected(self) -> None:
        ...

    def render_loading(self) -> None:
        ...

    def render_error(self, message: str) -> None:
        ...


def report_to_payload(report: UsageReport) -> Dict[str, Any]:
    return {
        "child_id": report.child_id,
        "limit": {
            "seconds": report.limit_seconds,
            "minutes": report.limit_minutes,
            "tier": report.limit_tier.value,
        },
        "used": {
            "seconds": report.total_used_seconds,
            "minutes": report.used_minutes,
        },
        "remaining": {
            "seconds": report.remaining_seconds,
            "minutes": report.remaining_minutes,
        },
        "rows": [
            {"domain": row.domain, "seconds": row.seconds, "minutes": row.minutes}
            for row in report.rows
        ],
        "attempt_count": report.attempt_count,
        "attempts": [
            {
                "domain": attempt.domain,
                "timestamp": attempt.timestamp.isoformat() if attempt.timestamp else None,
            }
            for attempt in report.attempts
        ],
    }


def chart_to_payload(chart: UsageChart) -> Dict[str, Any]:
    return {
        "labels": list(chart.labels),
        "values": list(chart.values),
        "colors": list(chart.colors),
    }


class SnapshotPresenter:
    """Keeps the latest rendered state so the web API can serve it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: Dict[str, Any] = {"status": "loading"}

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._state)

    def render_usage_report(self, report: UsageReport, chart: UsageChart) -> None:
        self._set(
            {"status": "ready", "report": report_to_payload(report), "chart": chart_to_payload(chart)}
        )

    def render_no_child_selected(self) -> None:
        self._set({"status": "no_child", "message": "Select a child"})

    def render_loading(self) -> None:
        self._set({"status": "loading"})

    def render_error(self, message: str) -> None:
        self._set({"status": "error", "message": message})

    def _set(self, state: Dict[str, Any]) -> None:
        with self._lock:
            self._state = state


class ConsolePresenter:
    """Render human-readable reports in the console."""

    def __init__(self, top: Optional[int] = None, show_loading: bool = True) -> None:
        self.top = top
        self.show_loading = show_loading

    def render_usage_report(self, report: UsageReport, chart: UsageChart) -> None:
        print(f"Usage for child {report.child_id}")
        print("-" * 40)
        print(f"Limit:     {report.limit_minutes} min max ({report.limit_tier.value})")
        print(f"Used:      {report.used_minutes} min ({format_duration(report.total_used_seconds)})")
        print(f"Remaining: {report.remaining_minutes} min")
        print(f"Blocked attempts today: {report.attempt_count}")
        print()

        rows = report.rows[: self.top] if self.top else report.rows
        if rows:
            print("Per-site usage:")
            for row in rows:
                print(f"  {row.domain[:40]:<40} {row.minutes:>4} min")
        else:
            print("No data")

        print()
        if report.attempts:
            print("Blocked attempts:")
            for attempt in report.attempts:
                when = attempt.timestamp.strftime("%H:%M:%S") if attempt.timestamp else ""
                print(f"  {attempt.domain[:40]:<40} {when}")
        else:
            print("No blocked attempts today")

    def render_no_child_selected(self) -> None:
        print("Select a child first.")

    def render_loading(self) -> None:
        if self.show_loading:
            print("Loading…")

    def render_error(self, message: str) -> None:
        print(f"Limit: {PLACEHOLDER}  Used: {PLACEHOLDER}  Blocked: {PLACEHOLDER}")
        print(message)


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
