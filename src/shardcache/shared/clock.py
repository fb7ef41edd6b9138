"""Clock abstraction used for TTL evaluation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time.

    Implementations must return timezone-aware datetimes so that expiry
    timestamps written by one process compare correctly in another.
    """

    def now(self) -> datetime: ...


class SystemClock:
    """Clock backed by the system wall clock, in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that always returns the same instant.

    Useful for tests and for replaying maintenance at a fixed time.
    """

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant
