"""Volatility-spike detection from per-symbol price dispersion.

For every symbol with enough recent observations the coefficient of
variation (population stddev / mean, in percent) is compared against two
thresholds::

    coefficient > medium_threshold  -> "medium"
    coefficient > high_threshold    -> "high"

Anomalies are recomputed from scratch on every call and never persisted.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone, tzinfo
from typing import Iterable

from audit_room.core.enums import AnomalySeverity, AnomalyType
from audit_room.core.models import Anomaly, TradeFill

from .formatting import format_clock

logger = logging.getLogger(__name__)


def coefficient_of_variation(prices: list[float]) -> float | None:
    """Population coefficient of variation in percent, ``None`` if undefined."""
    n = len(prices)
    if n == 0:
        return None
    mean = sum(prices) / n
    if mean == 0:
        return None
    variance = sum((p - mean) ** 2 for p in prices) / n
    return math.sqrt(variance) / mean * 100


class AnomalyDetector:
    def __init__(
        self,
        *,
        min_observations: int = 3,
        medium_threshold_pct: float = 5.0,
        high_threshold_pct: float = 10.0,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._min_observations = min_observations
        self._medium = medium_threshold_pct
        self._high = high_threshold_pct
        self._tz = tz

    def compute(self, fills: Iterable[TradeFill], now: datetime) -> list[Anomaly]:
        prices: dict[str, list[float]] = {}
        for fill in fills:
            prices.setdefault(fill.symbol, []).append(float(fill.price))

        anomalies: list[Anomaly] = []
        for symbol, observed in prices.items():
            if len(observed) < self._min_observations:
                continue
            coefficient = coefficient_of_variation(observed)
            if coefficient is None or coefficient <= self._medium:
                continue
            severity = (
                AnomalySeverity.HIGH if coefficient > self._high else AnomalySeverity.MEDIUM
            )
            logger.info(
                "Volatility spike on %s: cv=%.2f%% (%s)",
                symbol, coefficient, severity.value,
            )
            anomalies.append(
                Anomaly(
                    time=format_clock(now, self._tz),
                    type=AnomalyType.VOLATILITY_SPIKE.value,
                    asset=symbol,
                    severity=severity.value,
                )
            )
        return anomalies
