"""
Time port.

All timestamps are UTC. Day buckets use the UTC calendar date,
not the viewer's local date.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
