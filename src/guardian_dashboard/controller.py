"""Report-rendering controller with last-trigger-wins regeneration."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from .charts import UsageChart
from .errors import NoActiveChild, PipelineFault
from .models import UsageReport
from .pipeline import ReportGenerator
from .presenters import ERROR_MESSAGE, Presenter
from .state import ACTIVE_CHILD_KEY, ActiveChildStore

logger = logging.getLogger(__name__)


class DashboardController:
    """Owns report regeneration for the active child.

    Every trigger starts a new generation. Only the most recently triggered
    generation may reach the presenter; earlier ones that finish later are
    discarded.
    """

    def __init__(
        self,
        generator: ReportGenerator,
        presenter: Presenter,
        store: Optional[ActiveChildStore] = None,
        *,
        max_workers: int = 4,
    ) -> None:
        self._generator = generator
        self._presenter = presenter
        self._store = store
        self._lock = threading.Lock()
        self._generation = 0
        self._chart: Optional[UsageChart] = None
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="dashboard"
        )
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def chart(self) -> Optional[UsageChart]:
        with self._lock:
            return self._chart

    def attach(self) -> None:
        """Regenerate whenever the active child store reports a change."""
        if self._store is not None and self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self.on_storage_changed)

    def on_child_changed(self, child_id: Optional[str] = None) -> Future:
        """In-process selection signal; falls back to the stored active child."""
        if not child_id and self._store is not None:
            child_id = self._store.get()
        return self.trigger(child_id)

    def on_storage_changed(self, key: str, new_value: Optional[str]) -> Optional[Future]:
        if key != ACTIVE_CHILD_KEY:
            return None
        return self.trigger(new_value)

    def trigger(self, child_id: Optional[str]) -> Future:
        """Start a generation in the background, superseding any in flight."""
        token = self._begin()
        return self._executor.submit(self._run, token, child_id)

    def refresh(self, child_id: Optional[str] = None) -> bool:
        """Generate synchronously; returns False if a newer trigger superseded it."""
        if not child_id and self._store is not None:
            child_id = self._store.get()
        token = self._begin()
        return self._run(token, child_id)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._executor.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            self._generation += 1
            self._dispose_chart()

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            token = self._generation
            self._presenter.render_loading()
        return token

    def _run(self, token: int, child_id: Optional[str]) -> bool:
        report: Optional[UsageReport] = None
        fault: Optional[PipelineFault] = None
        no_child = False
        try:
            report = self._generator.generate(child_id)
        except NoActiveChild:
            no_child = True
        except Exception as exc:
            logger.exception("Report generation failed for child %s", child_id)
            fault = PipelineFault(str(exc))

        with self._lock:
            if token != self._generation:
                logger.debug(
                    "Discarding stale report for child %s (generation %d < %d)",
                    child_id,
                    token,
                    self._generation,
                )
                return False
            if report is not None:
                self._dispose_chart()
                self._chart = UsageChart.for_report(report)
                self._presenter.render_usage_report(report, self._chart)
            elif no_child:
                self._dispose_chart()
                self._presenter.render_no_child_selected()
            else:
                self._dispose_chart()
                logger.debug("Rendering error state: %s", fault)
                self._presenter.render_error(ERROR_MESSAGE)
        return True

    def _dispose_chart(self) -> None:
        if self._chart is not None:
            self._chart.close()
            self._chart = None
