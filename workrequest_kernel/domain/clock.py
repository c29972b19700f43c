"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that engine and service code never call
    ``datetime.now()`` directly.  SLA ages, approval timestamps and dispute
    timelines all come from an injected Clock.

Architecture position:
    Kernel > Domain -- pure, zero I/O (except SystemClock, the one sanctioned
    boundary for reading wall time).

Failure modes:
    - SequentialClock raises ValueError when built from an empty list.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Iterator


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        Services that need the current time receive a Clock through their
        constructor.  Engines receive ``now`` as an argument instead.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``,
    ``advance_hours()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(2024, 9, 2, 9, 0, 0, tzinfo=UTC)
        self._advance_seconds = 0

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_hours(self, hours: int) -> None:
        self.advance(hours * 3600)

    def tick(self) -> datetime:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self.now()


class SequentialClock(Clock):
    """
    Clock that returns sequential times from a predefined list.

    After exhaustion the last value repeats.
    """

    def __init__(self, times: list[datetime]):
        if not times:
            raise ValueError("SequentialClock requires at least one time")
        self._times: Iterator[datetime] = iter(times)
        self._last_time: datetime = times[0]

    def now(self) -> datetime:
        self._last_time = next(self._times, self._last_time)
        return self._last_time
