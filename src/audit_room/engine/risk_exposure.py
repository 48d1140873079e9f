"""Notional exposure and leverage from recent filled trades."""

from __future__ import annotations

from typing import Iterable

from audit_room.core.enums import RiskStatus
from audit_room.core.models import RiskMetric, TradeFill

from .formatting import format_number, parse_size, round_half_up

MAX_LEVERAGE_LABEL = "Max Leverage Allowed"
CURRENT_LEVERAGE_LABEL = "Current Leverage"


class RiskExposureEstimator:
    """Estimates leverage as total notional over a fixed base capital.

    Parameters
    ----------
    base_capital : float
        Denominator for leverage.  Default 10,000.
    max_leverage : float
        Allowed leverage; above it both rows are flagged ``warning``.
    """

    def __init__(self, *, base_capital: float = 10_000.0, max_leverage: float = 50.0) -> None:
        self._base_capital = base_capital
        self._max_leverage = max_leverage

    def total_exposure(self, fills: Iterable[TradeFill]) -> float:
        """Σ size × price over filled fills. Unparsable sizes count as 0."""
        return sum(
            (parse_size(f.size) * float(f.price) for f in fills if f.is_filled),
            0.0,
        )

    def current_leverage(self, fills: Iterable[TradeFill]) -> float:
        return round_half_up(self.total_exposure(fills) / self._base_capital, 1)

    def compute(self, fills: Iterable[TradeFill]) -> list[RiskMetric]:
        return self.rows_for(self.current_leverage(fills))

    def rows_for(self, leverage: float) -> list[RiskMetric]:
        """Leverage rows for an already computed *leverage*."""
        status = RiskStatus.OK if leverage <= self._max_leverage else RiskStatus.WARNING
        return [
            RiskMetric(
                label=MAX_LEVERAGE_LABEL,
                value=f"1:{format_number(self._max_leverage)}",
                status=status.value,
            ),
            RiskMetric(
                label=CURRENT_LEVERAGE_LABEL,
                value=f"1:{format_number(leverage)}",
                status=status.value,
            ),
        ]
