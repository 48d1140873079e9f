"""Win ratio per weekday over the trailing window of closed fills."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable

from audit_room.core.models import DailyAccuracy, TradeFill

from .formatting import round_half_up

# Canonical display order (Sunday first)
DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def weekday_name(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    """Abbreviated weekday of *moment* in *tz*."""
    # datetime.weekday() is 0=Monday; shift so that 0=Sunday.
    return DAY_NAMES[(moment.astimezone(tz).weekday() + 1) % 7]


class DailyAccuracyCalculator:
    """Groups closed fills by weekday and computes the win percentage.

    Only weekdays that have at least one closed fill are emitted, always
    in Sun..Sat order regardless of the order fills arrive in.
    """

    def __init__(self, *, window_days: int = 7, tz: tzinfo = timezone.utc) -> None:
        self._window = timedelta(days=window_days)
        self._tz = tz

    @property
    def window(self) -> timedelta:
        return self._window

    def compute(self, fills: Iterable[TradeFill], now: datetime) -> list[DailyAccuracy]:
        totals: dict[str, int] = defaultdict(int)
        wins: dict[str, int] = defaultdict(int)
        since = now - self._window

        for fill in fills:
            # The store already windows the query; re-check so the
            # calculator stays correct on an unfiltered input.
            if not fill.is_closed or fill.time < since:
                continue
            day = weekday_name(fill.time, self._tz)
            totals[day] += 1
            if fill.win:
                wins[day] += 1

        return [
            DailyAccuracy(day=day, accuracy=round_half_up(wins[day] / totals[day] * 100))
            for day in DAY_NAMES
            if totals[day]
        ]
