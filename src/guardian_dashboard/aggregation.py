"""Per-domain usage aggregation for the dashboard breakdown."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional

from .ignore import IgnoreList
from .models import Action, ActivityEvent, UsageBreakdown, UsageRow
from .normalization import UNKNOWN_DOMAIN, normalize_domain

MIN_ROW_SECONDS = 5.0


def aggregate_by_site(events: Iterable[ActivityEvent]) -> dict[Optional[str], float]:
    """Sum allowed durations per raw site key, in first-seen order.

    Events without a site are keyed under ``None``.
    """
    totals: defaultdict[Optional[str], float] = defaultdict(float)
    for event in events:
        if event.action is not Action.ALLOWED:
            continue
        totals[event.site_or_app or None] += event.duration_seconds
    return dict(totals)


def aggregate_by_domain(site_totals: dict[Optional[str], float]) -> dict[str, float]:
    totals: defaultdict[str, float] = defaultdict(float)
    for site, seconds in site_totals.items():
        domain = normalize_domain(site) if site is not None else UNKNOWN_DOMAIN
        totals[domain] += seconds
    return dict(totals)


def aggregate_usage(
    events: Iterable[ActivityEvent],
    ignore_list: IgnoreList,
    min_seconds: float = MIN_ROW_SECONDS,
) -> UsageBreakdown:
    """Build the filtered, sorted per-domain rows and the unfiltered total.

    The total counts every allowed event, including time spent on domains
    that the ignore list hides from the rows.
    """
    site_totals = aggregate_by_site(events)
    total_used = sum(site_totals.values())
    rows = [
        UsageRow(domain=domain, seconds=seconds)
        for domain, seconds in aggregate_by_domain(site_totals).items()
        if not ignore_list.is_ignored(domain) and seconds >= min_seconds
    ]
    rows.sort(key=lambda row: row.seconds, reverse=True)
    return UsageBreakdown(rows=tuple(rows), total_used_seconds=total_used)
