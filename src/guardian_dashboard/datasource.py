"""Data-access collaborators used by the report pipeline."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence

from . import db
from .errors import DataSourceUnavailable, MalformedRecord
from .models import Action, ActivityEvent

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    """Backing store for settings, limits and activity logs."""

    def fetch_child_setting(self, child_id: str) -> Optional[Mapping[str, Any]]:
        ...

    def fetch_time_limit_override(self, child_id: str) -> Optional[Mapping[str, Any]]:
        ...

    def fetch_activity_logs(
        self,
        child_id: str,
        since: datetime,
        action_filter: Optional[Sequence[Action]] = None,
    ) -> list[ActivityEvent]:
        ...

    def save_time_limit_override(self, child_id: str, daily_limit_seconds: int) -> bool:
        ...


class SQLiteDataSource:
    """DataSource backed by the local SQLite database.

    Every call opens its own connection, so lookups may run on worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def fetch_child_setting(self, child_id: str) -> Optional[Mapping[str, Any]]:
        try:
            with db.database_connection(self.db_path) as conn:
                row = db.fetch_child_setting(conn, child_id)
        except sqlite3.Error as exc:
            raise DataSourceUnavailable(f"child_settings lookup failed: {exc}") from exc
        return dict(row) if row is not None else None

    def fetch_time_limit_override(self, child_id: str) -> Optional[Mapping[str, Any]]:
        try:
            with db.database_connection(self.db_path) as conn:
                row = db.fetch_time_limit(conn, child_id)
        except sqlite3.Error as exc:
            raise DataSourceUnavailable(f"time_limits lookup failed: {exc}") from exc
        return dict(row) if row is not None else None

    def fetch_activity_logs(
        self,
        child_id: str,
        since: datetime,
        action_filter: Optional[Sequence[Action]] = None,
    ) -> list[ActivityEvent]:
        actions = [action.value for action in action_filter] if action_filter else None
        try:
            with db.database_connection(self.db_path) as conn:
                rows = db.fetch_activity_logs(conn, child_id, since, actions)
        except sqlite3.Error as exc:
            raise DataSourceUnavailable(f"activity_logs lookup failed: {exc}") from exc
        return in_window(records_to_events(dict(row) for row in rows), since)

    def save_time_limit_override(self, child_id: str, daily_limit_seconds: int) -> bool:
        try:
            with db.database_connection(self.db_path) as conn:
                db.upsert_time_limit(conn, child_id, daily_limit_seconds)
        except sqlite3.Error:
            logger.exception("Failed to save time limit for child %s", child_id)
            return False
        return True

    def save_child_setting(self, child_id: str, time_limit_minutes: float) -> bool:
        try:
            with db.database_connection(self.db_path) as conn:
                db.upsert_child_setting(conn, child_id, time_limit_minutes)
        except sqlite3.Error:
            logger.exception("Failed to save child setting for child %s", child_id)
            return False
        return True


def records_to_events(records) -> list[ActivityEvent]:
    """Coerce raw records into events, skipping ones that are not records at all."""
    events: list[ActivityEvent] = []
    for record in records:
        try:
            events.append(ActivityEvent.from_record(record))
        except MalformedRecord as exc:
            logger.warning("Skipping activity record: %s", exc)
    return events


def in_window(events: list[ActivityEvent], since: datetime) -> list[ActivityEvent]:
    """Keep events whose parsed local time is at or after ``since``.

    Events without a usable timestamp cannot be placed in any window and are
    dropped.
    """
    kept: list[ActivityEvent] = []
    for event in events:
        if event.timestamp is None:
            logger.debug("Dropping %s log for %s with no usable timestamp", event.action.value, event.child_id)
        elif event.timestamp >= since:
            kept.append(event)
    return kept
