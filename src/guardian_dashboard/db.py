"""SQLite database layer for child settings, limits and activity logs."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from .models import DATETIME_FMT, ActivityEvent

# Zoned ISO timestamps can name a calendar day up to two days before their
# local instant, so the text prefilter starts that much earlier.
WINDOW_SLACK = timedelta(days=2)


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    # Value columns are left loosely typed: the store holds whatever clients sent.
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS child_settings (
            child_id TEXT PRIMARY KEY,
            time_limit_minutes
        );

        CREATE TABLE IF NOT EXISTS time_limits (
            child_id TEXT PRIMARY KEY,
            daily_limit_seconds
        );

        CREATE TABLE IF NOT EXISTS activity_logs (
            id INTEGER PRIMARY KEY,
            child_id TEXT NOT NULL,
            site_or_app TEXT,
            action TEXT NOT NULL,
            duration_seconds,
            timestamp TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_activity_logs_child_time
            ON activity_logs(child_id, timestamp);
        """
    )


def insert_events(conn: sqlite3.Connection, events: Iterable[ActivityEvent]) -> None:
    conn.executemany(
        """
        INSERT INTO activity_logs (
            child_id,
            site_or_app,
            action,
            duration_seconds,
            timestamp
        ) VALUES (?, ?, ?, ?, ?)
        """,
        [
            (
                event.child_id,
                event.site_or_app,
                event.action.value,
                event.duration_seconds,
                event.timestamp.strftime(DATETIME_FMT) if event.timestamp else None,
            )
            for event in events
        ],
    )


def insert_raw_log(
    conn: sqlite3.Connection,
    child_id: str,
    site_or_app: Optional[str],
    action: str,
    duration_seconds: object,
    timestamp: object,
) -> None:
    """Insert a log row exactly as given, without coercion."""
    conn.execute(
        """
        INSERT INTO activity_logs (child_id, site_or_app, action, duration_seconds, timestamp)
        VALUES (?, ?, ?, ?, ?)
        """,
        (child_id, site_or_app, action, duration_seconds, timestamp),
    )


def fetch_child_setting(conn: sqlite3.Connection, child_id: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT time_limit_minutes FROM child_settings WHERE child_id = ?",
        (child_id,),
    ).fetchone()


def fetch_time_limit(conn: sqlite3.Connection, child_id: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT daily_limit_seconds FROM time_limits WHERE child_id = ? LIMIT 1",
        (child_id,),
    ).fetchone()


def upsert_child_setting(
    conn: sqlite3.Connection, child_id: str, time_limit_minutes: float
) -> None:
    conn.execute(
        """
        INSERT INTO child_settings (child_id, time_limit_minutes) VALUES (?, ?)
        ON CONFLICT(child_id) DO UPDATE SET time_limit_minutes = excluded.time_limit_minutes
        """,
        (child_id, time_limit_minutes),
    )


def upsert_time_limit(
    conn: sqlite3.Connection, child_id: str, daily_limit_seconds: int
) -> None:
    conn.execute(
        """
        INSERT INTO time_limits (child_id, daily_limit_seconds) VALUES (?, ?)
        ON CONFLICT(child_id) DO UPDATE SET daily_limit_seconds = excluded.daily_limit_seconds
        """,
        (child_id, daily_limit_seconds),
    )


def fetch_activity_logs(
    conn: sqlite3.Connection,
    child_id: str,
    since: datetime,
    actions: Optional[Sequence[str]] = None,
) -> list[sqlite3.Row]:
    """Fetch candidate log rows for a child recorded at or after ``since``.

    The timestamp column is compared as text, so this is only a prefilter:
    callers must check the parsed instant against ``since``.
    """
    query = """
        SELECT child_id, site_or_app, action, duration_seconds, timestamp
        FROM activity_logs
        WHERE child_id = ? AND timestamp >= ?
    """
    params: list[object] = [child_id, (since - WINDOW_SLACK).strftime(DATETIME_FMT)]
    if actions:
        query += f" AND action IN ({', '.join('?' for _ in actions)})"
        params.extend(actions)
    query += " ORDER BY id"
    return list(conn.execute(query, params))
