"""
Clock -- injectable "today".

Which cycle the dashboard trigger works on, and which charges are already
due, both depend on the current date.  Services take a ``Clock`` in their
constructor instead of calling ``date.today()`` so tests can pin the day.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone

_NOON = time(12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current instant; ``today()`` is derived from it."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall clock in the given zone, or the host's local zone."""

    def __init__(self, tz: timezone | None = None):
        self._tz = tz

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Clock frozen at a fixed instant until moved explicitly.

    Test scenarios walk through a cycle day by day::

        clock = DeterministicClock.on(date(2025, 1, 28))
        clock.set_today(date(2025, 2, 5))   # rent due
        clock.advance_days(20)              # next pay day
    """

    def __init__(self, instant: datetime | None = None):
        self._instant = instant or datetime.combine(date(2025, 1, 1), _NOON)

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        return cls(datetime.combine(day, _NOON))

    def now(self) -> datetime:
        return self._instant

    def set_today(self, day: date) -> None:
        self._instant = datetime.combine(day, _NOON)

    def advance_days(self, days: int = 1) -> None:
        self._instant += timedelta(days=days)
