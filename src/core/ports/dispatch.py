"""
Fire-and-forget task dispatch port.

Contract:
- dispatch() returns immediately; callers never await the task
- A failing task is logged by the dispatcher and never propagated
- No retries and no ordering guarantee between tasks
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol


class TaskDispatcherPort(Protocol):
    """Runs a callable without blocking or failing the caller."""

    def dispatch(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Schedule fn(*args, **kwargs)."""
        ...
