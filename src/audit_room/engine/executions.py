"""Display rows for the most recent executions."""

from __future__ import annotations

from datetime import timezone, tzinfo
from typing import Iterable

from audit_room.core.models import ExecutionRow, TradeFill

from .formatting import format_clock, format_price


class ExecutionFormatter:
    def __init__(self, *, limit: int = 10, tz: tzinfo = timezone.utc) -> None:
        self._limit = limit
        self._tz = tz

    @property
    def limit(self) -> int:
        return self._limit

    def compute(self, fills: Iterable[TradeFill]) -> list[ExecutionRow]:
        """Format the newest *limit* fills, newest first."""
        newest = sorted(fills, key=lambda f: f.time, reverse=True)[: self._limit]
        return [self.format_row(fill) for fill in newest]

    def format_row(self, fill: TradeFill) -> ExecutionRow:
        return ExecutionRow(
            time=format_clock(fill.time, self._tz),
            strategy=fill.strategy,
            symbol=fill.symbol,
            direction=fill.direction.value,
            size=fill.size or "",
            price=format_price(fill.price),
            status=fill.status.value,
        )
