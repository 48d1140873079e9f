"""Shared fixtures for the audit room test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from audit_room.core.clock import FixedClock
from audit_room.core.config import AuditConfig
from audit_room.core.enums import Direction, FillStatus
from audit_room.core.models import TradeFill
from audit_room.engine.merger import AuditMerger
from audit_room.storage.memory_store import InMemoryFillStore, InMemoryOverrideStore

# 2024-06-05 was a Wednesday.
NOW = datetime(2024, 6, 5, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(NOW)


# ---------------------------------------------------------------------------
# Fill factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_fill():
    """Factory for trade fills logged relative to ``NOW``."""

    def _make(
        *,
        minutes_ago: float = 0,
        at: datetime | None = None,
        strategy: str = "Drav",
        symbol: str = "XAUUSD",
        direction: Direction = Direction.LONG,
        size: str | None = "1.00",
        price: str | float = "100",
        status: FillStatus = FillStatus.FILLED,
        win: bool | None = None,
        pnl: str | float | None = None,
        r_multiple: float | None = None,
    ) -> TradeFill:
        return TradeFill(
            time=at or NOW - timedelta(minutes=minutes_ago),
            strategy=strategy,
            symbol=symbol,
            direction=direction,
            size=size,
            price=Decimal(str(price)),
            status=status,
            win=win,
            pnl=Decimal(str(pnl)) if pnl is not None else None,
            r_multiple=r_multiple,
        )

    return _make


@pytest.fixture
def sample_fills(make_fill) -> list[TradeFill]:
    """Three closed fills across two strategies plus one rejected order."""
    return [
        make_fill(minutes_ago=15, strategy="Drav", symbol="EURUSD", direction=Direction.SHORT,
                  size="1.00", price="1.0850", win=False, pnl=-50, r_multiple=-1.0),
        make_fill(minutes_ago=5, strategy="Drav", symbol="XAUUSD", size="0.85",
                  price="2641.50", win=True, pnl=125.5, r_multiple=2.1),
        make_fill(minutes_ago=30, strategy="Tenzor", symbol="XAUUSD", size="0.50",
                  price="2635.00", status=FillStatus.REJECTED),
        make_fill(minutes_ago=8, strategy="Tenzor", symbol="BTCUSDT", size="0.12",
                  price="98245.00", win=True, pnl=350, r_multiple=2.8),
    ]


# ---------------------------------------------------------------------------
# Stores and merger
# ---------------------------------------------------------------------------

@pytest.fixture
def fill_store(sample_fills) -> InMemoryFillStore:
    return InMemoryFillStore(sample_fills)


@pytest.fixture
def override_store() -> InMemoryOverrideStore:
    return InMemoryOverrideStore()


@pytest.fixture
def merger(fill_store, override_store, fixed_clock) -> AuditMerger:
    return AuditMerger(fill_store, override_store, config=AuditConfig(), clock=fixed_clock)


@pytest.fixture
def override_payload() -> dict:
    """An operator override in wire (camelCase) form."""
    return {
        "recentExecutions": [
            {"time": "14:32:05", "strategy": "Drav", "symbol": "XAUUSD",
             "direction": "Long", "size": "0.85", "price": "2,641.50", "status": "Filled"},
        ],
        "performanceByStrategy": [
            {"name": "Drav", "winRate": 78.5, "avgR": 2.4, "trades": 156, "pnl": "+$12,450.00"},
        ],
        "riskMetrics": [
            {"label": "Max Leverage Allowed", "value": "1:30", "status": "ok"},
        ],
        "anomalies": [
            {"time": "13:45:00", "type": "Spread Widening", "asset": "EURUSD", "severity": "low"},
        ],
        "dailyAccuracy": [
            {"day": "Mon", "accuracy": 72},
        ],
        "complianceLogs": {
            "riskCompliance": "98%",
            "policyViolations": 2,
            "systemUptime": "99.99%",
            "avgLatency": "8ms",
        },
    }
