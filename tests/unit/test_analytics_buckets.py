"""
Tests for day bucketing.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.components.analytics._buckets import (
    bucket_date,
    day_keys,
    resolve_window_start,
    seed_daily_buckets,
    to_utc,
)

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


class TestResolveWindowStart:
    """Window start resolution."""

    def test_start_is_now_minus_days(self) -> None:
        """Start is exactly now - window_days."""
        assert resolve_window_start(NOW, 7) == NOW - timedelta(days=7)

    def test_zero_days_is_now(self) -> None:
        """A zero-day window starts now."""
        assert resolve_window_start(NOW, 0) == NOW

    def test_negative_days_rejected(self) -> None:
        """Negative windows are invalid."""
        with pytest.raises(ValueError, match="window_days"):
            resolve_window_start(NOW, -1)


class TestDayKeys:
    """Calendar day enumeration."""

    @pytest.mark.parametrize("days", [0, 1, 7, 28, 365])
    def test_n_plus_one_days(self, days: int) -> None:
        """A window of N days has N + 1 calendar dates."""
        keys = day_keys(resolve_window_start(NOW, days), NOW)
        assert len(keys) == days + 1
        assert len(set(keys)) == days + 1

    def test_keys_are_contiguous_and_ordered(self) -> None:
        """Dates run oldest to newest with no gaps."""
        keys = day_keys(NOW - timedelta(days=3), NOW)
        assert keys == ["2025-03-12", "2025-03-13", "2025-03-14", "2025-03-15"]

    def test_month_boundary(self) -> None:
        """Enumeration crosses month boundaries."""
        end = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)
        keys = day_keys(end - timedelta(days=2), end)
        assert keys == ["2025-02-27", "2025-02-28", "2025-03-01"]


class TestBucketDate:
    """UTC date of a timestamp."""

    def test_uses_utc_date(self) -> None:
        """A late-evening timestamp west of UTC lands on the next UTC day."""
        local = datetime(2025, 3, 14, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert bucket_date(local) == "2025-03-15"

    def test_naive_treated_as_utc(self) -> None:
        """Naive timestamps are read as UTC."""
        assert bucket_date(datetime(2025, 3, 15, 23, 59)) == "2025-03-15"
        assert to_utc(datetime(2025, 3, 15, 1, 0)).tzinfo is UTC


class TestSeedDailyBuckets:
    """Zero-seeded bucket maps."""

    def test_each_bucket_is_fresh(self) -> None:
        """The factory is called once per day."""
        buckets = seed_daily_buckets(NOW - timedelta(days=2), NOW, dict)
        assert list(buckets) == ["2025-03-13", "2025-03-14", "2025-03-15"]

        buckets["2025-03-13"]["x"] = 1
        assert buckets["2025-03-14"] == {}
