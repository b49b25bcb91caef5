from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, tzinfo


class Clock(ABC):
    """Wall clock plus the local-calendar helpers the day numbering relies on.

    Aware timestamps are converted into the clock's zone before any calendar
    math; naive timestamps are taken as already local.
    """

    def __init__(self, tz: tzinfo | None = None):
        self._tz = tz

    @abstractmethod
    def now(self) -> datetime:
        ...

    def local(self, timestamp: datetime) -> datetime:
        if timestamp.tzinfo is None:
            return timestamp
        if self._tz is None:
            return timestamp.astimezone().replace(tzinfo=None)
        return timestamp.astimezone(self._tz).replace(tzinfo=None)

    def time_of_day(self, timestamp: datetime) -> tuple[int, int]:
        local = self.local(timestamp)
        return (local.hour, local.minute)

    def start_of_day(self, timestamp: datetime) -> date:
        return self.local(timestamp).date()

    @staticmethod
    def calendar_day_diff(start: date, end: date) -> int:
        return (end - start).days

    @staticmethod
    def add_days(day: date, days: int) -> date:
        return day + timedelta(days=days)


class SystemClock(Clock):
    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)


class FixedClock(Clock):
    """Clock pinned to a settable instant, for tests and replays."""

    def __init__(self, current: datetime, tz: tzinfo | None = None):
        super().__init__(tz)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current

    def advance(self, **delta: float) -> datetime:
        self._current = self._current + timedelta(**delta)
        return self._current
