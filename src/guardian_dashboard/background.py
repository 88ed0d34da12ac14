"""Run blocking lookups on daemon threads that never hold up interpreter exit."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Any, Callable


def submit_daemon(fn: Callable[..., Any], *args: Any, name: str) -> Future:
    """Start ``fn(*args)`` on a new daemon thread and return its future.

    Unlike an executor's workers, a thread that never finishes is simply left
    behind: callers bound their wait on the future and move on.
    """
    future: Future = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=_run, name=name, daemon=True).start()
    return future
