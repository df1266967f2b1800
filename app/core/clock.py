"""
Time source for the check-in core.

Timeout comparisons go through a `Clock` so tests can pin "now".
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, at: datetime):
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, minutes: int = 0, seconds: int = 0) -> None:
        self._at = self._at + timedelta(minutes=minutes, seconds=seconds)
