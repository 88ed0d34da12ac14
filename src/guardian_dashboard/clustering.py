"""Collapse repeated blocked events into discrete attempts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .models import ActivityEvent, BlockedAttempt
from .normalization import normalize_domain

DEBOUNCE_WINDOW = timedelta(seconds=60)


@dataclass(frozen=True, slots=True)
class BlockedEvent:
    domain: str
    timestamp: Optional[datetime]


def order_blocked_events(events: Iterable[ActivityEvent]) -> list[BlockedEvent]:
    """Select block-worthy events, resolve their domains and sort chronologically.

    Events whose timestamp could not be parsed sort as the earliest instant.
    """
    blocked = [
        BlockedEvent(normalize_domain(event.site_or_app), event.timestamp)
        for event in events
        if event.action.is_block_worthy and event.site_or_app
    ]
    return sorted(
        blocked,
        key=lambda item: (item.timestamp is not None, item.timestamp or datetime.min),
    )


def cluster_attempts(
    events: Iterable[BlockedEvent], window: timedelta = DEBOUNCE_WINDOW
) -> list[BlockedAttempt]:
    """Return one attempt per burst of blocked events for the same domain.

    An event opens a new attempt when its domain was not seen before, when
    more than ``window`` has passed since that domain's previous event, or
    when its timestamp is unknown. Unknown timestamps never update the
    domain's last-seen time.
    """
    last_seen: dict[str, datetime] = {}
    attempts: list[BlockedAttempt] = []
    for event in events:
        if event.timestamp is None:
            attempts.append(BlockedAttempt(event.domain, None))
            continue
        previous = last_seen.get(event.domain)
        if previous is None or event.timestamp - previous > window:
            attempts.append(BlockedAttempt(event.domain, event.timestamp))
        last_seen[event.domain] = event.timestamp
    return attempts
