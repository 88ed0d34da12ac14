"""Locally persisted "active child" selection, shared between processes."""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ACTIVE_CHILD_KEY = "active_child_id"

Listener = Callable[[str, Optional[str]], None]


class ActiveChildStore:
    """Reads and writes the active child id in a small JSON file.

    ``set`` notifies in-process listeners directly. Changes written by other
    processes are picked up by the watcher thread started with ``watch``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._known: Optional[str] = None

    def get(self) -> Optional[str]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read active child from %s: %s", self.path, exc)
            return None
        value = data.get(ACTIVE_CHILD_KEY) if isinstance(data, dict) else None
        return str(value) if value else None

    def set(self, child_id: Optional[str]) -> None:
        child_id = child_id or None
        with self._lock:
            self._write(child_id)
            self._known = child_id
        self._notify(child_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def watch(self, poll_interval: timedelta = timedelta(seconds=1)) -> None:
        """Start polling the file for changes made by other processes."""
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._known = self.get()
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._poll,
                args=(stop_event, poll_interval.total_seconds()),
                name="active-child-watcher",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Watching %s for active child changes.", self.path)

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Active child watcher stopped.")

    def is_watching(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _poll(self, stop_event: threading.Event, interval: float) -> None:
        while not stop_event.wait(interval):
            with self._lock:
                current = self.get()
                previous, changed = self._known, current != self._known
                self._known = current
            if changed:
                logger.debug("Active child changed externally: %s -> %s", previous, current)
                self._notify(current)

    def _write(self, child_id: Optional[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump({ACTIVE_CHILD_KEY: child_id}, fh)
        os.replace(tmp_path, self.path)

    def _notify(self, child_id: Optional[str]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(ACTIVE_CHILD_KEY, child_id)
            except Exception:
                logger.exception("Active child listener failed")
