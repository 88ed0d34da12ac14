"""Domain models for activity logs and usage reports."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import MalformedRecord

DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


class Action(str, Enum):
    ALLOWED = "Allowed"
    BLOCKED = "Blocked"
    TIME_EXCEEDED = "TimeExceeded"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> "Action":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    @property
    def is_block_worthy(self) -> bool:
        return self in (Action.BLOCKED, Action.TIME_EXCEEDED)


class LimitTier(str, Enum):
    OVERRIDE = "override"
    CHILD_SETTING = "child_setting"
    DEFAULT = "default"


def coerce_duration(value: Any) -> float:
    """Return a usable duration in seconds; anything malformed counts as zero."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into a naive local datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.strptime(text, DATETIME_FMT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """A single raw activity log entry for a child."""

    child_id: str
    site_or_app: Optional[str]
    action: Action
    duration_seconds: float = 0.0
    timestamp: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ActivityEvent":
        if not isinstance(record, Mapping):
            raise MalformedRecord(f"Expected a mapping, got {type(record).__name__}")
        site = record.get("site_or_app")
        return cls(
            child_id=str(record.get("child_id") or ""),
            site_or_app=str(site) if site not in (None, "") else None,
            action=Action.parse(record.get("action")),
            duration_seconds=coerce_duration(record.get("duration_seconds")),
            timestamp=parse_timestamp(record.get("timestamp")),
        )


@dataclass(frozen=True, slots=True)
class TimeLimitSetting:
    daily_limit_seconds: int
    tier: LimitTier


@dataclass(frozen=True, slots=True)
class BlockedAttempt:
    """One clustered occurrence of blocked access to a domain."""

    domain: str
    timestamp: Optional[datetime]


@dataclass(frozen=True, slots=True)
class UsageRow:
    domain: str
    seconds: float

    @property
    def minutes(self) -> int:
        # Rows reaching the display are never shown as zero minutes.
        return math.ceil(self.seconds / 60)


@dataclass(frozen=True, slots=True)
class UsageBreakdown:
    rows: tuple[UsageRow, ...]
    total_used_seconds: float


def round_minutes(seconds: float) -> int:
    """Round seconds to the nearest whole minute, halves rounding up."""
    return int(math.floor(seconds / 60 + 0.5))


@dataclass(frozen=True, slots=True)
class UsageReport:
    """Everything the dashboard shows for one child over one window."""

    child_id: str
    total_used_seconds: float
    limit_seconds: int
    limit_tier: LimitTier
    remaining_seconds: float
    rows: tuple[UsageRow, ...]
    attempts: tuple[BlockedAttempt, ...]

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def used_minutes(self) -> int:
        return round_minutes(self.total_used_seconds)

    @property
    def limit_minutes(self) -> int:
        return round_minutes(self.limit_seconds)

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.limit_minutes - self.used_minutes)
