"""FastAPI application that exposes the dashboard state and report API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import DashboardSettings
from .controller import DashboardController
from .datasource import DataSource, SQLiteDataSource
from .errors import NoActiveChild
from .paths import get_db_path, get_state_path
from .pipeline import ReportGenerator
from .presenters import SnapshotPresenter, report_to_payload
from .state import ActiveChildStore

logger = logging.getLogger(__name__)


class ActiveChildPayload(BaseModel):
    child_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class TimeLimitPayload(BaseModel):
    daily_limit_seconds: Optional[int] = Field(default=None, gt=0)
    hours: Optional[int] = Field(default=None, gt=0, le=24)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _exactly_one(self) -> "TimeLimitPayload":
        if (self.daily_limit_seconds is None) == (self.hours is None):
            raise ValueError("provide exactly one of daily_limit_seconds or hours")
        return self

    @property
    def seconds(self) -> int:
        if self.daily_limit_seconds is not None:
            return self.daily_limit_seconds
        return self.hours * 60 * 60


def create_app(
    *,
    db_path: Optional[Path] = None,
    state_path: Optional[Path] = None,
    settings: Optional[DashboardSettings] = None,
    source: Optional[DataSource] = None,
    watch_state: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or DashboardSettings()
    resolved_source = source or SQLiteDataSource(resolved_db_path)
    store = ActiveChildStore(state_path or get_state_path())
    presenter = SnapshotPresenter()
    generator = ReportGenerator(resolved_source, resolved_settings)
    controller = DashboardController(generator, presenter, store)

    app = FastAPI(title="Guardian Dashboard", version="0.2.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.store = store
    app.state.presenter = presenter
    app.state.controller = controller

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        controller.attach()
        if watch_state:
            store.watch(resolved_settings.poll_interval)
        controller.on_child_changed()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        store.stop()
        controller.close()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "watching_active_child": request.app.state.store.is_watching(),
            "database_path": str(request.app.state.db_path),
            "active_child_id": request.app.state.store.get(),
            "default_limit_minutes": resolved_settings.default_limit_seconds / 60.0,
            "debounce_seconds": resolved_settings.debounce_window.total_seconds(),
            "ignore_suffixes": sorted(resolved_settings.ignore_suffixes),
        }

    @app.get("/api/dashboard")
    def dashboard(request: Request) -> Dict[str, Any]:
        return request.app.state.presenter.snapshot()

    @app.get("/api/children/{child_id}/report")
    def child_report(child_id: str) -> Dict[str, Any]:
        try:
            report = generator.generate(child_id)
        except NoActiveChild as exc:
            raise HTTPException(status_code=400, detail="child_id is required") from exc
        except Exception as exc:
            logger.exception("Report generation failed for child %s", child_id)
            raise HTTPException(status_code=500, detail="Error loading data") from exc
        return report_to_payload(report)

    @app.get("/api/active-child")
    def get_active_child(request: Request) -> Dict[str, Any]:
        return {"child_id": request.app.state.store.get()}

    @app.put("/api/active-child")
    def set_active_child(payload: ActiveChildPayload, request: Request) -> Dict[str, Any]:
        child_id = payload.child_id.strip() if payload.child_id else None
        request.app.state.store.set(child_id or None)
        return {"child_id": child_id or None}

    @app.put("/api/children/{child_id}/time-limit")
    def save_time_limit(
        child_id: str, payload: TimeLimitPayload, request: Request
    ) -> Dict[str, Any]:
        seconds = payload.seconds
        if not resolved_source.save_time_limit_override(child_id, seconds):
            raise HTTPException(status_code=500, detail="Failed to save")
        logger.info("Saved %ds daily limit for child %s", seconds, child_id)
        if request.app.state.store.get() == child_id:
            controller.trigger(child_id)
        return {"child_id": child_id, "daily_limit_seconds": seconds}

    return app
