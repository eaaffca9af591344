from datetime import UTC, datetime

from src.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert isinstance(now, datetime)
    assert now.tzinfo is not None
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock_naive_is_utc():
    clock = FixedClock(datetime(2025, 1, 1, 9, 30))
    assert clock.now_utc() == datetime(2025, 1, 1, 9, 30, tzinfo=UTC)


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2025, 1, 1, tzinfo=UTC))
    clock.advance(days=1, hours=2)
    assert clock.now_utc() == datetime(2025, 1, 2, 2, 0, tzinfo=UTC)
