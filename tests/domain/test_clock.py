"""Tests for clock implementations."""

from datetime import date, datetime, timedelta, timezone

from aging_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    """Deterministic clock for reproducible reports."""

    def test_default_time(self):
        assert DeterministicClock().now() == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_today(self):
        clock = DeterministicClock(datetime(2024, 6, 1, 23, 0, tzinfo=timezone.utc))

        assert clock.today() == date(2024, 6, 1)

    def test_advance_days(self):
        clock = DeterministicClock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc))

        clock.advance_days(31)

        assert clock.today() == date(2024, 7, 2)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(3600)

        clock.set_time(datetime(2025, 1, 1, tzinfo=timezone.utc))

        assert clock.now() == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestSystemClock:
    """Real clock."""

    def test_now_is_utc_aware(self):
        now = SystemClock().now()

        assert now.tzinfo is not None
        assert now.utcoffset().total_seconds() == 0

    def test_zone_decides_the_day(self):
        tehran = timezone(timedelta(hours=3, minutes=30))

        now = SystemClock(tehran).now()

        assert now.utcoffset() == timedelta(hours=3, minutes=30)


class TestDeterministicClockOn:
    """Clock pinned to a report day."""

    def test_on(self):
        clock = DeterministicClock.on(date(2024, 6, 1))

        assert clock.today() == date(2024, 6, 1)
        assert clock.now().hour == 12
