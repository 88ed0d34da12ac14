"""Generate a usage report for one child from a single data snapshot."""

from __future__ import annotations

import logging
from concurrent.futures import Future, wait
from datetime import datetime
from typing import Callable, Optional

from .aggregation import aggregate_usage
from .background import submit_daemon
from .clustering import cluster_attempts, order_blocked_events
from .config import DashboardSettings
from .datasource import DataSource
from .errors import NoActiveChild
from .limits import LimitResolver
from .models import ActivityEvent, TimeLimitSetting, UsageReport
from .report import build_report

logger = logging.getLogger(__name__)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class ReportGenerator:
    """Fetches a child's limit and today's logs concurrently, then builds a report."""

    def __init__(
        self,
        source: DataSource,
        settings: Optional[DashboardSettings] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._settings = settings or DashboardSettings()
        self._clock = clock
        self._ignore_list = self._settings.ignore_list()
        self._resolver = LimitResolver(
            source,
            default_seconds=self._settings.default_limit_seconds,
            timeout=self._settings.fetch_timeout.total_seconds(),
        )

    @property
    def resolver(self) -> LimitResolver:
        return self._resolver

    def generate(self, child_id: Optional[str], since: Optional[datetime] = None) -> UsageReport:
        if not child_id:
            raise NoActiveChild("No child selected")
        since = since or start_of_day(self._clock())
        timeout = self._settings.fetch_timeout.total_seconds()

        limit_future = submit_daemon(self._resolver.resolve, child_id, name="report-limit")
        logs_future = submit_daemon(
            self._source.fetch_activity_logs, child_id, since, name="report-logs"
        )
        wait([logs_future], timeout=timeout)
        # The resolver bounds its own lookups and never raises.
        limit = limit_future.result()
        events = self._settled_logs(logs_future, child_id)
        logger.debug(
            "Building report for child %s from %d events (limit %ss via %s)",
            child_id,
            len(events),
            limit.daily_limit_seconds,
            limit.tier.value,
        )
        return self.build(child_id, limit, events)

    def build(
        self, child_id: str, limit: TimeLimitSetting, events: list[ActivityEvent]
    ) -> UsageReport:
        """Build a report from an already-fetched snapshot."""
        breakdown = aggregate_usage(
            events, self._ignore_list, min_seconds=self._settings.min_row_seconds
        )
        attempts = cluster_attempts(
            order_blocked_events(events), window=self._settings.debounce_window
        )
        return build_report(child_id, limit, breakdown, attempts)

    @staticmethod
    def _settled_logs(future: Future, child_id: str) -> list[ActivityEvent]:
        if not future.done():
            future.cancel()
            logger.warning("activity_logs fetch for child %s timed out", child_id)
            return []
        try:
            return list(future.result())
        except Exception as exc:
            logger.warning("activity_logs fetch failed for child %s: %s", child_id, exc)
            return []
