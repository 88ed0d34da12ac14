"""Configuration models and helpers for the dashboard."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from .ignore import DEFAULT_IGNORE_SUFFIXES, IgnoreList

logger = logging.getLogger(__name__)

DEFAULT_LIMIT_SECONDS = 2 * 60 * 60


@dataclass(slots=True)
class DashboardSettings:
    """Runtime configuration for report generation."""

    default_limit_seconds: int = DEFAULT_LIMIT_SECONDS
    debounce_window: timedelta = timedelta(seconds=60)
    min_row_seconds: float = 5.0
    fetch_timeout: timedelta = timedelta(seconds=10)
    poll_interval: timedelta = timedelta(seconds=1)
    ignore_suffixes: tuple[str, ...] = field(default=DEFAULT_IGNORE_SUFFIXES)

    def __post_init__(self) -> None:
        if self.default_limit_seconds <= 0:
            raise ValueError("default_limit_seconds must be positive")
        if self.min_row_seconds < 0:
            raise ValueError("min_row_seconds must not be negative")
        if self.fetch_timeout <= timedelta(0):
            raise ValueError("fetch_timeout must be positive")

    @classmethod
    def from_options(
        cls,
        default_limit_minutes: float | None = None,
        debounce_seconds: float | None = None,
        fetch_timeout_seconds: float | None = None,
        ignore_suffixes: Optional[list[str]] = None,
    ) -> "DashboardSettings":
        settings = cls()
        if default_limit_minutes is not None:
            settings.default_limit_seconds = int(round(default_limit_minutes * 60))
        if debounce_seconds is not None:
            settings.debounce_window = timedelta(seconds=debounce_seconds)
        if fetch_timeout_seconds is not None:
            settings.fetch_timeout = timedelta(seconds=fetch_timeout_seconds)
        if ignore_suffixes is not None:
            settings.ignore_suffixes = tuple(ignore_suffixes)
        settings.__post_init__()
        return settings

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "DashboardSettings":
        """Build settings from a parsed settings file; unknown keys are ignored."""
        suffixes = data.get("ignore_suffixes")
        if suffixes is not None and (
            not isinstance(suffixes, list) or not all(isinstance(s, str) for s in suffixes)
        ):
            raise ValueError("ignore_suffixes must be a list of strings")
        settings = cls.from_options(
            default_limit_minutes=_optional_number(data, "default_limit_minutes"),
            debounce_seconds=_optional_number(data, "debounce_seconds"),
            fetch_timeout_seconds=_optional_number(data, "fetch_timeout_seconds"),
            ignore_suffixes=suffixes,
        )
        min_row = _optional_number(data, "min_row_seconds")
        if min_row is not None:
            settings.min_row_seconds = min_row
        poll = _optional_number(data, "poll_interval_seconds")
        if poll is not None:
            settings.poll_interval = timedelta(seconds=poll)
        settings.__post_init__()
        return settings

    def ignore_list(self) -> IgnoreList:
        return IgnoreList(self.ignore_suffixes)


def load_settings(path: Optional[Path]) -> DashboardSettings:
    """Load settings from a JSON file, falling back to defaults when it is absent."""
    if path is None or not Path(path).exists():
        return DashboardSettings()
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Settings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    logger.debug("Loaded settings from %s", path)
    return DashboardSettings.from_mapping(data)


def _optional_number(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)
