from __future__ import annotations

import abc
from datetime import datetime, timedelta, timezone

__all__ = ("Clock", "SystemClock", "FrozenClock")


class Clock(abc.ABC):
    @abc.abstractmethod
    def now(self) -> datetime:
        """Return the current instant as a timezone-aware UTC datetime."""
        raise NotImplementedError()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """
    A clock that only moves when told to.

    Useful for deterministic tests and for replaying cache decisions:

        >>> clock = FrozenClock(datetime(2024, 6, 15, tzinfo=timezone.utc))
        >>> clock.advance(minutes=15)
        >>> clock.now().isoformat()
        '2024-06-15T00:15:00+00:00'
    """

    def __init__(self, moment: datetime) -> None:
        self._moment = _as_utc(moment)

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = _as_utc(moment)

    def advance(self, **delta: float) -> None:
        self._moment = self._moment + timedelta(**delta)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
