"""
Pytest configuration and shared fakes for the guardian dashboard tests.
"""

import threading
import time
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import pytest

from guardian_dashboard.errors import DataSourceUnavailable
from guardian_dashboard.models import Action, ActivityEvent

DAY = datetime(2026, 10, 17, 0, 0, 0)


def at(seconds: float) -> datetime:
    """A timestamp ``seconds`` after 09:00 on the test day."""
    return DAY + timedelta(hours=9, seconds=seconds)


def allowed(site: Optional[str], seconds: float, when: float = 0.0, child: str = "kid") -> ActivityEvent:
    return ActivityEvent(child, site, Action.ALLOWED, seconds, at(when))


def blocked(site: Optional[str], when: Optional[float], child: str = "kid") -> ActivityEvent:
    return ActivityEvent(child, site, Action.BLOCKED, 0.0, at(when) if when is not None else None)


class FakeDataSource:
    """In-memory DataSource with optional delays and failures per lookup."""

    def __init__(
        self,
        *,
        override: Optional[Mapping[str, Any]] = None,
        setting: Optional[Mapping[str, Any]] = None,
        events: Optional[list[ActivityEvent]] = None,
        delays: Optional[dict[str, float]] = None,
        failures: Optional[set[str]] = None,
    ) -> None:
        self.override = override
        self.setting = setting
        self.events = list(events or [])
        self.delays = delays or {}
        self.failures = failures or set()
        self.saved: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _enter(self, name: str, child_id: str) -> None:
        with self._lock:
            self.calls.append((name, child_id))
        delay = self.delays.get(name)
        if delay:
            time.sleep(delay)
        if name in self.failures:
            raise DataSourceUnavailable(f"{name} unavailable")

    def fetch_child_setting(self, child_id: str):
        self._enter("setting", child_id)
        return self.setting

    def fetch_time_limit_override(self, child_id: str):
        self._enter("override", child_id)
        if child_id in self.saved:
            return {"daily_limit_seconds": self.saved[child_id]}
        return self.override

    def fetch_activity_logs(self, child_id: str, since: datetime, action_filter=None):
        self._enter("logs", child_id)
        return [
            event
            for event in self.events
            if event.child_id == child_id
            and (action_filter is None or event.action in action_filter)
        ]

    def save_time_limit_override(self, child_id: str, daily_limit_seconds: int) -> bool:
        if "save" in self.failures:
            return False
        self.saved[child_id] = daily_limit_seconds
        return True


class RecordingPresenter:
    """Presenter that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._lock = threading.Lock()

    def _record(self, name: str, payload: Any = None) -> None:
        with self._lock:
            self.calls.append((name, payload))

    def render_usage_report(self, report, chart) -> None:
        self._record("report", report)

    def render_no_child_selected(self) -> None:
        self._record("no_child")

    def render_loading(self) -> None:
        self._record("loading")

    def render_error(self, message: str) -> None:
        self._record("error", message)

    @property
    def final(self) -> tuple[str, Any]:
        with self._lock:
            return self.calls[-1]

    def reports(self) -> list:
        with self._lock:
            return [payload for name, payload in self.calls if name == "report"]


@pytest.fixture
def fixed_clock():
    return lambda: DAY + timedelta(hours=18)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "activity.sqlite3"


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "active_child.json"
