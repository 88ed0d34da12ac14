"""Command-line interface for the guardian dashboard."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .config import DashboardSettings, load_settings
from .paths import get_db_path, get_settings_path, get_state_path

app = typer.Typer(help="Parental-control usage dashboard.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _settings(config_path: Optional[Path]) -> DashboardSettings:
    try:
        return load_settings(config_path or get_settings_path())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


DB_OPTION = typer.Option(
    None, "--db", path_type=Path, help="Location of the activity SQLite database."
)
CONFIG_OPTION = typer.Option(
    None, "--config", path_type=Path, help="JSON settings file (ignore list, limits)."
)
STATE_OPTION = typer.Option(
    None, "--state", path_type=Path, help="File holding the active child selection."
)


@app.command()
def report(
    child: Optional[str] = typer.Option(
        None, "--child", help="Child id. Defaults to the active child."
    ),
    top: Optional[int] = typer.Option(None, "--top", min=1, help="Show only the top N sites."),
    db_path: Optional[Path] = DB_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    state_path: Optional[Path] = STATE_OPTION,
) -> None:
    """Print today's usage report for a child."""
    from .controller import DashboardController
    from .datasource import SQLiteDataSource
    from .pipeline import ReportGenerator
    from .presenters import ConsolePresenter
    from .state import ActiveChildStore

    generator = ReportGenerator(
        SQLiteDataSource(db_path or get_db_path()), _settings(config_path)
    )
    controller = DashboardController(
        generator,
        ConsolePresenter(top=top, show_loading=False),
        ActiveChildStore(state_path or get_state_path()),
    )
    try:
        controller.refresh(child)
    finally:
        controller.close()


@app.command()
def select(
    child_id: Optional[str] = typer.Argument(None, help="Child id to make active."),
    clear: bool = typer.Option(False, "--clear", help="Clear the active child."),
    state_path: Optional[Path] = STATE_OPTION,
) -> None:
    """Set (or clear) the active child shared with running dashboards."""
    from .state import ActiveChildStore

    if not child_id and not clear:
        raise typer.BadParameter("Provide a child id or --clear.")
    store = ActiveChildStore(state_path or get_state_path())
    store.set(None if clear else child_id)
    typer.echo(f"Active child: {store.get() or '(none)'}")


@app.command("set-limit")
def set_limit(
    child_id: str = typer.Argument(..., help="Child id."),
    hours: Optional[int] = typer.Option(None, "--hours", min=1, max=24, help="Daily limit in hours."),
    minutes: Optional[int] = typer.Option(None, "--minutes", min=1, help="Daily limit in minutes."),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Save a per-child daily limit override."""
    from .datasource import SQLiteDataSource

    if (hours is None) == (minutes is None):
        raise typer.BadParameter("Provide exactly one of --hours or --minutes.")
    seconds = hours * 3600 if hours is not None else minutes * 60
    source = SQLiteDataSource(db_path or get_db_path())
    if not source.save_time_limit_override(child_id, seconds):
        typer.echo("Failed to save", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Limit updated: {seconds // 60} min for {child_id}")


@app.command("set-child-limit")
def set_child_limit(
    child_id: str = typer.Argument(..., help="Child id."),
    minutes: float = typer.Option(..., "--minutes", min=1, help="Daily limit in minutes."),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Store the general per-child time limit setting."""
    from .datasource import SQLiteDataSource

    source = SQLiteDataSource(db_path or get_db_path())
    if not source.save_child_setting(child_id, minutes):
        typer.echo("Failed to save", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Child setting saved: {minutes:g} min for {child_id}")


@app.command("log")
def log_event(
    child_id: str = typer.Argument(..., help="Child id."),
    site: str = typer.Argument(..., help="Site or app the event refers to."),
    action: str = typer.Option("Allowed", "--action", help="Allowed, Blocked, TimeExceeded or Other."),
    duration: float = typer.Option(0.0, "--duration", min=0.0, help="Duration in seconds."),
    at: Optional[str] = typer.Option(
        None, "--at", help="Event time (ISO 8601). Defaults to now."
    ),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Record a single activity event."""
    from .db import database_connection, insert_events
    from .models import Action, ActivityEvent, parse_timestamp

    parsed_action = Action.parse(action)
    if parsed_action.value != action:
        raise typer.BadParameter(f"Unknown action {action!r}", param_hint="--action")
    timestamp = parse_timestamp(at) if at else datetime.now()
    if timestamp is None:
        raise typer.BadParameter(f"Invalid timestamp {at!r}", param_hint="--at")
    event = ActivityEvent(
        child_id=child_id,
        site_or_app=site,
        action=parsed_action,
        duration_seconds=duration,
        timestamp=timestamp,
    )
    with database_connection(db_path or get_db_path()) as conn:
        insert_events(conn, [event])
    typer.echo(f"Logged {parsed_action.value} {site} for {child_id}")


@app.command()
def watch(
    db_path: Optional[Path] = DB_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    state_path: Optional[Path] = STATE_OPTION,
) -> None:
    """Print a fresh report whenever the active child changes."""
    from .controller import DashboardController
    from .datasource import SQLiteDataSource
    from .pipeline import ReportGenerator
    from .presenters import ConsolePresenter
    from .state import ActiveChildStore

    settings = _settings(config_path)
    store = ActiveChildStore(state_path or get_state_path())
    generator = ReportGenerator(SQLiteDataSource(db_path or get_db_path()), settings)
    controller = DashboardController(generator, ConsolePresenter(), store)
    controller.attach()
    store.watch(settings.poll_interval)
    controller.on_child_changed()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Watch interrupted.")
    finally:
        store.stop()
        controller.close()


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    db_path: Optional[Path] = DB_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    state_path: Optional[Path] = STATE_OPTION,
    log_level: str = typer.Option("info", "--log-level", help="uvicorn log level."),
) -> None:
    """Serve the dashboard API under uvicorn until interrupted."""
    import uvicorn

    from .webapp import create_app

    level = uvicorn.config.LOG_LEVELS.get(log_level.lower())
    if level is None:
        raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")
    api = create_app(
        db_path=db_path or get_db_path(),
        state_path=state_path or get_state_path(),
        settings=_settings(config_path),
    )
    logging.getLogger("uvicorn.error").setLevel(level)
    typer.echo(f"Serving the dashboard API on http://{host}:{port}/api/dashboard")
    uvicorn.run(api, host=host, port=port, log_level=log_level.lower())
