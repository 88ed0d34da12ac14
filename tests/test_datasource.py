"""
Tests for the SQLite-backed data source.
"""

from datetime import timedelta, timezone

import pytest

from conftest import DAY, allowed, at, blocked
from guardian_dashboard import db
from guardian_dashboard.datasource import SQLiteDataSource, in_window, records_to_events
from guardian_dashboard.errors import DataSourceUnavailable
from guardian_dashboard.limits import LimitResolver
from guardian_dashboard.models import Action, ActivityEvent, LimitTier
from guardian_dashboard.pipeline import ReportGenerator


@pytest.fixture
def source(db_path):
    with db.database_connection(db_path) as conn:
        db.insert_events(
            conn,
            [
                allowed("www.youtube.com", 120, 0),
                blocked("tiktok.com", 30),
                allowed("youtube.com", 60, 0, child="sibling"),
            ],
        )
        db.insert_raw_log(conn, "kid", "khanacademy.org", "Allowed", "n/a", "2026-10-17 10:00:00.000000")
        db.insert_raw_log(conn, "kid", "reddit.com", "Blocked", None, "2026-10-16 23:59:59.000000")
    return SQLiteDataSource(db_path)


class TestSQLiteDataSource:
    """Test lookups, writes and record coercion."""

    def test_fetch_logs_since(self, source) -> None:
        events = source.fetch_activity_logs("kid", DAY)
        assert [event.site_or_app for event in events] == [
            "www.youtube.com",
            "tiktok.com",
            "khanacademy.org",
        ]
        assert events[0].timestamp == at(0)
        assert events[2].duration_seconds == 0.0

    def test_action_filter(self, source) -> None:
        events = source.fetch_activity_logs("kid", DAY, [Action.BLOCKED])
        assert [event.action for event in events] == [Action.BLOCKED]

    def test_missing_limits(self, source) -> None:
        assert source.fetch_time_limit_override("kid") is None
        assert source.fetch_child_setting("kid") is None

    def test_save_override_is_upsert(self, source) -> None:
        assert source.save_time_limit_override("kid", 3600)
        assert source.save_time_limit_override("kid", 1800)
        assert source.fetch_time_limit_override("kid") == {"daily_limit_seconds": 1800}

    def test_resolver_over_sqlite(self, source) -> None:
        source.save_child_setting("kid", 45)
        limit = LimitResolver(source).resolve("kid")
        assert (limit.daily_limit_seconds, limit.tier) == (2700, LimitTier.CHILD_SETTING)

    def test_generator_over_sqlite(self, source) -> None:
        report = ReportGenerator(source).generate("kid", since=DAY)
        assert report.total_used_seconds == 120
        assert [row.domain for row in report.rows] == ["youtube.com"]
        assert report.attempt_count == 1

    def test_unreadable_database_raises_unavailable(self, tmp_path) -> None:
        source = SQLiteDataSource(tmp_path / "missing-dir" / "db.sqlite3")
        with pytest.raises(DataSourceUnavailable):
            source.fetch_time_limit_override("kid")

    def test_unreadable_database_save_returns_false(self, tmp_path) -> None:
        source = SQLiteDataSource(tmp_path / "missing-dir" / "db.sqlite3")
        assert source.save_time_limit_override("kid", 60) is False


class TestRecordsToEvents:
    def test_skips_non_mapping_records(self) -> None:
        events = records_to_events([{"child_id": "kid", "action": "Allowed"}, "garbage"])
        assert len(events) == 1


def _shifted_iso(local, hours):
    """Render a naive local time as ISO text in a zone ``hours`` off the local one."""
    aware = local.astimezone()
    zone = timezone(aware.utcoffset() + timedelta(hours=hours))
    return aware.astimezone(zone).isoformat()


class TestTimeWindow:
    """Test that the window is applied to parsed instants, not stored text."""

    def test_zoned_row_dated_yesterday_but_inside_window(self, db_path) -> None:
        text = _shifted_iso(DAY + timedelta(hours=1), -10)
        assert text.startswith("2026-10-16")
        with db.database_connection(db_path) as conn:
            db.insert_raw_log(conn, "kid", "late.com", "Allowed", 600, text)
        events = SQLiteDataSource(db_path).fetch_activity_logs("kid", DAY)
        assert [(event.site_or_app, event.timestamp) for event in events] == [
            ("late.com", DAY + timedelta(hours=1))
        ]

    def test_zoned_row_dated_today_but_before_window(self, db_path) -> None:
        text = _shifted_iso(DAY - timedelta(hours=1), 9)
        assert text.startswith("2026-10-17")
        with db.database_connection(db_path) as conn:
            db.insert_raw_log(conn, "kid", "early.com", "Allowed", 600, text)
        assert SQLiteDataSource(db_path).fetch_activity_logs("kid", DAY) == []

    def test_unparseable_timestamp_not_counted_on_any_day(self, db_path) -> None:
        with db.database_connection(db_path) as conn:
            db.insert_raw_log(conn, "kid", "old.com", "Blocked", None, "n/a")
            db.insert_raw_log(conn, "kid", "old.com", "Allowed", 300, None)
        source = SQLiteDataSource(db_path)
        for offset in range(3):
            since = DAY + timedelta(days=offset)
            assert source.fetch_activity_logs("kid", since) == []
            report = ReportGenerator(source).generate("kid", since=since)
            assert report.attempt_count == 0
            assert report.total_used_seconds == 0

    def test_previous_day_row_in_stored_format_excluded(self, source) -> None:
        events = source.fetch_activity_logs("kid", DAY)
        assert "reddit.com" not in [event.site_or_app for event in events]

    def test_in_window_keeps_boundary_and_drops_undated(self) -> None:
        events = [
            ActivityEvent("kid", "a.com", Action.ALLOWED, 1, DAY),
            ActivityEvent("kid", "b.com", Action.ALLOWED, 1, DAY - timedelta(microseconds=1)),
            ActivityEvent("kid", "c.com", Action.ALLOWED, 1, None),
        ]
        assert [event.site_or_app for event in in_window(events, DAY)] == ["a.com"]
