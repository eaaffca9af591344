"""
Day bucketing shared by the page view and crawl reports.

Key behaviors:
- Window start is now - window_days (inclusive boundary)
- One bucket per UTC calendar date from start to now inclusive
- Buckets are pre-seeded so days without events still appear
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import TypeVar

T = TypeVar("T")

DEFAULT_WINDOW_DAYS = 28

# "All time" is requested by substituting a large fixed window
ALL_TIME_WINDOW_DAYS = 365


def to_utc(timestamp: datetime) -> datetime:
    """Normalize a timestamp to aware UTC (naive is treated as UTC)."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def bucket_date(timestamp: datetime) -> str:
    """UTC calendar date of a timestamp, as YYYY-MM-DD."""
    return to_utc(timestamp).date().isoformat()


def resolve_window_start(now: datetime, window_days: int) -> datetime:
    """Start of the reporting window."""
    if window_days < 0:
        msg = f"window_days must be >= 0, got {window_days}"
        raise ValueError(msg)
    return to_utc(now) - timedelta(days=window_days)


def day_keys(start: datetime, now: datetime) -> list[str]:
    """Every UTC date from start to now inclusive."""
    first: date = to_utc(start).date()
    last: date = to_utc(now).date()

    keys = []
    current = first
    while current <= last:
        keys.append(current.isoformat())
        current += timedelta(days=1)
    return keys


def seed_daily_buckets(
    start: datetime,
    now: datetime,
    factory: Callable[[], T],
) -> dict[str, T]:
    """Ordered map of date -> fresh zero bucket."""
    return {key: factory() for key in day_keys(start, now)}
