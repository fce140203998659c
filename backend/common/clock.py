"""
Injectable time source.

Service functions take an optional ``clock`` so expiry logic can be driven
deterministically from tests instead of reading the wall clock directly.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol

from django.utils import timezone


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Timezone-aware wall clock (``django.utils.timezone.now``)."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: Optional[datetime] = None):
        self._now = instant or timezone.now()

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


system_clock = SystemClock()


def get_clock(clock: Optional[Clock] = None) -> Clock:
    return clock or system_clock
