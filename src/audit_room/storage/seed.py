"""Sample trade fills for demo runs and local databases.

Two strategies (Drav, Tenzor) trading XAUUSD, BTCUSDT and EURUSD, spread
over the last six days so every section of the report has data.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from audit_room.core.enums import Direction, FillStatus
from audit_room.core.models import TradeFill

# (age, hold, strategy, symbol, direction, size, price, win, pnl, r_multiple)
_SAMPLES: list[tuple[timedelta, timedelta, str, str, Direction, str, str, bool, str, float]] = [
    (timedelta(minutes=5), timedelta(minutes=25), "Drav", "XAUUSD", Direction.LONG, "0.85", "2641.50", True, "125.50", 2.1),
    (timedelta(minutes=8), timedelta(minutes=37), "Tenzor", "BTCUSDT", Direction.LONG, "0.12", "98245.00", True, "350.00", 2.8),
    (timedelta(minutes=15), timedelta(minutes=45), "Drav", "EURUSD", Direction.SHORT, "1.00", "1.0850", False, "-50.00", -1.0),
    (timedelta(minutes=20), timedelta(minutes=70), "Tenzor", "XAUUSD", Direction.LONG, "0.50", "2635.00", True, "75.00", 1.5),
    (timedelta(minutes=25), timedelta(minutes=95), "Drav", "BTCUSDT", Direction.SHORT, "0.10", "98000.00", True, "200.00", 3.0),
    (timedelta(days=1), timedelta(minutes=30), "Drav", "XAUUSD", Direction.LONG, "0.75", "2630.00", True, "100.00", 2.0),
    (timedelta(days=2), timedelta(minutes=45), "Tenzor", "EURUSD", Direction.LONG, "1.20", "1.0820", False, "-60.00", -1.2),
    (timedelta(days=3), timedelta(minutes=60), "Drav", "BTCUSDT", Direction.LONG, "0.15", "97500.00", True, "450.00", 3.5),
    (timedelta(days=4), timedelta(minutes=30), "Tenzor", "XAUUSD", Direction.SHORT, "0.60", "2620.00", True, "90.00", 1.8),
    (timedelta(days=5), timedelta(minutes=40), "Drav", "EURUSD", Direction.LONG, "0.90", "1.0800", False, "-40.00", -0.8),
    (timedelta(days=6), timedelta(minutes=50), "Tenzor", "BTCUSDT", Direction.LONG, "0.08", "97000.00", True, "300.00", 2.5),
]


def sample_trade_fills(now: datetime) -> list[TradeFill]:
    """Return the sample fill set with times relative to *now*."""
    fills: list[TradeFill] = []
    for age, hold, strategy, symbol, direction, size, price, win, pnl, r in _SAMPLES:
        exit_time = now - age
        fills.append(
            TradeFill(
                time=exit_time,
                strategy=strategy,
                symbol=symbol,
                direction=direction,
                size=size,
                price=Decimal(price),
                status=FillStatus.FILLED,
                win=win,
                pnl=Decimal(pnl),
                r_multiple=r,
                entry_time=exit_time - hold,
                exit_time=exit_time,
            )
        )
    return fills
