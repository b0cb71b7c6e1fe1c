"""Injectable time source.

Timestamps in the engagement record are epoch milliseconds. The store asks a
Clock for the current time so tests can pin it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

MS_PER_DAY = 86_400_000


class Clock(Protocol):
    """Protocol for providing the current time."""

    def now_ms(self) -> int:
        """Get the current time as epoch milliseconds."""
        ...


class SystemClock:
    """Default clock backed by the system time."""

    def now_ms(self) -> int:
        """Get current epoch milliseconds from the system clock."""
        return int(datetime.now(UTC).timestamp() * 1000)


class FixedClock:
    """Clock that returns a settable time (for testing).

    Example:
        >>> clock = FixedClock(1_700_000_000_000)
        >>> clock.advance(days=1.5)
        >>> clock.now_ms()
        1700129600000
    """

    def __init__(self, fixed_ms: int) -> None:
        self._now = fixed_ms

    def now_ms(self) -> int:
        return self._now

    def set(self, value_ms: int) -> None:
        self._now = value_ms

    def advance(self, *, days: float = 0, ms: int = 0) -> None:
        """Move the clock forward by a number of days and/or milliseconds."""
        self._now += int(days * MS_PER_DAY) + ms


_default_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Get the default clock used when none is injected."""
    return _default_clock


def now_ms() -> int:
    """Current epoch milliseconds from the default clock."""
    return _default_clock.now_ms()


def to_datetime(value_ms: int | None) -> datetime | None:
    """Convert epoch milliseconds to an aware UTC datetime."""
    if value_ms is None:
        return None
    return datetime.fromtimestamp(value_ms / 1000, tz=UTC)
