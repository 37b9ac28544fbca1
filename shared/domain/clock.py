"""
Time sources

Every booking operation reads "now" through a Clock so that deadline
comparisons (hold expiry, sweeps) can be exercised at exact instants.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone as dt_timezone

from django.utils import timezone


class Clock(ABC):
    """Source of the current instant (timezone-aware, UTC)."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return timezone.now()


class FixedClock(Clock):
    """
    Manually driven clock

    Starts at the given instant and only moves when told to:

        clock = FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
        clock.advance(minutes=11)
    """

    def __init__(self, instant: datetime):
        self._lock = threading.Lock()
        self._now = self._checked(instant)

    @staticmethod
    def _checked(instant: datetime) -> datetime:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        return instant.astimezone(dt_timezone.utc)

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._now = self._checked(instant)

    def advance(self, delta: timedelta | None = None, **kwargs) -> datetime:
        step = delta if delta is not None else timedelta(**kwargs)
        with self._lock:
            self._now = self._now + step
            return self._now


system_clock = SystemClock()
