"""Unit tests for the per-compile clock."""

from datetime import date, datetime, timezone

import pytest

from folio.contexts.world import Clock


class Ticker:
    def __init__(self, *instants):
        self.instants = list(instants)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.instants.pop(0)


@pytest.mark.unit
def test_snapshot_taken_once_until_reset():
    """Test that now() is captured once and refreshed after reset."""
    first = datetime(2026, 1, 1, 23, 30, tzinfo=timezone.utc)
    second = datetime(2026, 1, 2, 8, 0, tzinfo=timezone.utc)
    ticker = Ticker(first, second)
    clock = Clock(source=ticker)

    assert clock.now() == first
    assert clock.now() == first
    assert ticker.calls == 1

    clock.reset()
    assert clock.now() == second


@pytest.mark.unit
def test_today_with_offsets():
    """Test whole-hour offsets shift the calendar date."""
    clock = Clock(fixed=datetime(2026, 1, 1, 23, 30, tzinfo=timezone.utc))

    assert clock.today(0) == date(2026, 1, 1)
    assert clock.today(1) == date(2026, 1, 2)
    assert clock.today(-23) == date(2026, 1, 1)


@pytest.mark.unit
@pytest.mark.parametrize("offset", [24, -24, 1.5])
def test_today_rejects_invalid_offsets(offset):
    """Test that offsets beyond ±23 hours or fractional offsets give None."""
    clock = Clock(fixed=datetime(2026, 1, 1, tzinfo=timezone.utc))

    assert clock.today(offset) is None


@pytest.mark.unit
def test_naive_fixed_time_is_utc():
    """Test that a naive fixed instant is treated as UTC."""
    clock = Clock(fixed=datetime(2026, 6, 1, 12, 0))

    assert clock.now().tzinfo == timezone.utc
    assert isinstance(clock.today(), date)
