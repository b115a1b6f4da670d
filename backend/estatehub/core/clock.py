"""
Wall-clock sources.

Timestamps are naive UTC, matching the ``DateTime`` columns of the models.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Clock:
    """System clock."""

    def now(self) -> datetime:
        return utc_now()


class FrozenClock(Clock):
    """
    Manually advanced clock for tests and replays.

    Usage:
        clock = FrozenClock()
        clock.advance(minutes=20)
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utc_now()

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta) -> datetime:
        """Move the clock forward by ``timedelta(**delta)``."""
        self._now = self._now + timedelta(**delta)
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment
