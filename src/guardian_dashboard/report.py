"""Compose limit, usage and attempts into one report."""

from __future__ import annotations

from typing import Iterable

from .models import BlockedAttempt, TimeLimitSetting, UsageBreakdown, UsageReport


def build_report(
    child_id: str,
    limit: TimeLimitSetting,
    breakdown: UsageBreakdown,
    attempts: Iterable[BlockedAttempt],
) -> UsageReport:
    remaining = max(0, limit.daily_limit_seconds - breakdown.total_used_seconds)
    return UsageReport(
        child_id=child_id,
        total_used_seconds=breakdown.total_used_seconds,
        limit_seconds=limit.daily_limit_seconds,
        limit_tier=limit.tier,
        remaining_seconds=remaining,
        rows=breakdown.rows,
        attempts=tuple(attempts),
    )
