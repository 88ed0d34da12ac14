"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "GuardianDashboard"
APP_AUTHOR = "GuardianDashboard"


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    return Path(dirs.user_config_path)


def get_db_path() -> Path:
    return get_data_dir() / "activity.sqlite3"


def get_state_path() -> Path:
    return get_data_dir() / "active_child.json"


def get_settings_path() -> Path:
    return get_config_dir() / "settings.json"
