"""
Clock -- where "today" comes from when a report has no as-of date.

The engines never read the time; the aging services ask an injected Clock
for ``today()`` and pass the result down as the as-of date. Tests inject a
DeterministicClock so a report run "today" is reproducible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo


class Clock(ABC):
    """Source of the current time; ``today()`` is the report day."""

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """
    Wall-clock time in a fixed zone.

    The zone decides which calendar day a report run near midnight belongs
    to; UTC unless given.
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    @classmethod
    def on(cls, day: date) -> DeterministicClock:
        """Clock fixed at noon UTC of ``day``."""
        return cls(datetime.combine(day, time(12, 0), tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._current

    def set_time(self, value: datetime) -> None:
        self._current = value

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        """Move to the same time ``days`` calendar days later."""
        self._current += timedelta(days=days)
