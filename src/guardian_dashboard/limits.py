"""Resolve a child's effective daily time limit from tiered sources."""

from __future__ import annotations

import logging
import math
from concurrent.futures import Future, wait
from typing import Any, Callable, Mapping, Optional

from .background import submit_daemon
from .config import DEFAULT_LIMIT_SECONDS
from .datasource import DataSource
from .models import LimitTier, TimeLimitSetting

logger = logging.getLogger(__name__)


class LimitResolver:
    """Applies override > child setting > default precedence.

    Both lookups are issued concurrently and the resolver waits for each to
    settle, or for ``timeout`` to pass, before choosing. A lookup that fails,
    times out or yields a non-positive number is treated as absent.
    """

    def __init__(
        self,
        source: DataSource,
        *,
        default_seconds: int = DEFAULT_LIMIT_SECONDS,
        timeout: float = 10.0,
    ) -> None:
        if default_seconds <= 0:
            raise ValueError("default_seconds must be positive")
        self._source = source
        self._default_seconds = default_seconds
        self._timeout = timeout

    def resolve(self, child_id: str) -> TimeLimitSetting:
        override_future = submit_daemon(
            self._source.fetch_time_limit_override, child_id, name="limit-lookup-override"
        )
        setting_future = submit_daemon(
            self._source.fetch_child_setting, child_id, name="limit-lookup-setting"
        )
        wait([override_future, setting_future], timeout=self._timeout)

        override = _settled_value(override_future, "time_limits", child_id)
        seconds = _positive_seconds(override, "daily_limit_seconds", lambda value: value)
        if seconds is not None:
            return TimeLimitSetting(seconds, LimitTier.OVERRIDE)

        setting = _settled_value(setting_future, "child_settings", child_id)
        seconds = _positive_seconds(setting, "time_limit_minutes", lambda value: value * 60)
        if seconds is not None:
            return TimeLimitSetting(seconds, LimitTier.CHILD_SETTING)

        return TimeLimitSetting(self._default_seconds, LimitTier.DEFAULT)


def _settled_value(
    future: Future, source_name: str, child_id: str
) -> Optional[Mapping[str, Any]]:
    if not future.done():
        future.cancel()
        logger.warning("%s lookup for child %s timed out", source_name, child_id)
        return None
    try:
        return future.result()
    except Exception as exc:
        logger.warning("%s fetch failed for child %s: %s", source_name, child_id, exc)
        return None


def _positive_seconds(
    record: Optional[Mapping[str, Any]],
    key: str,
    to_seconds: Callable[[float], float],
) -> Optional[int]:
    if not record:
        return None
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric %s=%r", key, value)
        return None
    if not math.isfinite(number):
        return None
    seconds = int(round(to_seconds(number)))
    return seconds if seconds > 0 else None
