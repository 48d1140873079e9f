"""Per-strategy performance over completed, filled trades.

Answers "how is each strategy doing?" with a win rate, the mean R-multiple
and the summed P&L, formatted the way the audit room table shows them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from audit_room.core.models import StrategyPerformance, TradeFill

from .formatting import format_pnl, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class _StrategyStats:
    """Accumulator for one strategy."""

    trades: int = 0
    wins: int = 0
    r_total: float = 0.0
    r_count: int = 0
    pnl_total: Decimal = Decimal("0")

    def record(self, fill: TradeFill) -> None:
        self.trades += 1
        if fill.win:
            self.wins += 1
        if fill.r_multiple is not None:
            self.r_total += fill.r_multiple
            self.r_count += 1
        if fill.pnl is not None:
            self.pnl_total += fill.pnl

    def to_row(self, name: str) -> StrategyPerformance:
        avg_r = round_half_up(self.r_total / self.r_count, 1) if self.r_count else 0
        return StrategyPerformance(
            name=name,
            win_rate=round_half_up(self.wins / self.trades * 100, 1),
            avg_r=avg_r,
            trades=self.trades,
            pnl=format_pnl(self.pnl_total),
        )


class StrategyPerformanceAggregator:
    """Groups filled, closed trades by strategy in one pass.

    Strategies appear in the order they are first seen. Fills that are not
    filled or have no known outcome are ignored, so a strategy with no
    qualifying trades produces no row at all.
    """

    def compute(self, fills: Iterable[TradeFill]) -> list[StrategyPerformance]:
        stats: dict[str, _StrategyStats] = {}
        for fill in fills:
            if not (fill.is_filled and fill.is_closed):
                continue
            stats.setdefault(fill.strategy, _StrategyStats()).record(fill)

        rows = [s.to_row(name) for name, s in stats.items()]
        logger.debug("Aggregated %d strategies", len(rows))
        return rows
