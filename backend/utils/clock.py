"""Injectable time source."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today(clock: Clock) -> date:
    """Return the UTC calendar date for the clock's current instant."""
    now = clock()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def fixed_clock(instant: datetime) -> Clock:
    """Return a clock frozen at ``instant`` (used by tests and smoke checks)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)

    def _clock() -> datetime:
        return instant

    return _clock
