"""
Wall-clock access for admission checks.

Past-showtime checks read the current time through a `Clock` so tests can pin
or advance time instead of sleeping.
"""

from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency; overridden in tests."""
    return system_clock
