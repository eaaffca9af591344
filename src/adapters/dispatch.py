"""
Task dispatcher adapters.

ThreadPoolDispatcher runs tasks on a small worker pool, for an
AnalyticsTracker that must not wait on the sink. InlineDispatcher runs
them synchronously, for tests.

Both honor the TaskDispatcherPort contract: failures are logged and
swallowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

logger = logging.getLogger(__name__)


def _log_failure(future: Future[Any]) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Background task failed: %s", exc, exc_info=exc)


class ThreadPoolDispatcher:
    """Fire-and-forget dispatch on a thread pool."""

    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="analytics-dispatch",
        )

    def dispatch(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        future = self._executor.submit(fn, *args, **kwargs)
        future.add_done_callback(_log_failure)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineDispatcher:
    """Runs tasks immediately in the calling thread."""

    def __init__(self) -> None:
        self.dispatched = 0
        self.failed = 0

    def dispatch(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self.dispatched += 1
        try:
            fn(*args, **kwargs)
        except Exception:
            self.failed += 1
            logger.exception("Background task failed")
