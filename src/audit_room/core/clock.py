"""Time sources for report computation.

The merger reads ``now`` once per report from an :class:`IClock` and hands
that single value to every calculator, so one report never straddles two
instants. ``FixedClock`` pins ``now`` for tests and replays.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class IClock(Protocol):
    def now(self) -> datetime:
        """Timezone-aware UTC instant used as the report's ``now``."""
        ...


class WallClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock that moves only when told to.

    Naive datetimes are read as UTC. Moving backwards raises ``ValueError``.
    """

    def __init__(self, at: datetime | None = None) -> None:
        self._now = _as_utc(at) if at else datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set_time(self, moment: datetime) -> None:
        moment = _as_utc(moment)
        if moment < self._now:
            raise ValueError(f"Clock cannot go backwards: {moment} < {self._now}")
        self._now = moment

    def advance(self, delta: timedelta) -> None:
        self.set_time(self._now + delta)
