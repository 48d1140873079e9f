"""Number and time rendering shared by the report calculators.

The dashboard was built against JavaScript number semantics, so rounding is
half-up towards positive infinity (``Math.round``) and numbers print without
a trailing ``.0``.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, tzinfo
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_CENT = Decimal("0.01")


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # repr() gives the shortest round-tripping form, so 1.2999999999999998
    # does not get mistaken for 1.3 nor 1.25 for 1.2499...
    return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)


def round_half_up(value: float | int | Decimal, places: int = 0) -> float | int:
    """Round like ``Math.round(value * 10**places) / 10**places``.

    Returns an ``int`` when *places* is 0.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return value
    scale = Decimal(10) ** places
    shifted = (_to_decimal(value) * scale + Decimal("0.5")).to_integral_value(
        rounding=ROUND_FLOOR
    )
    if places == 0:
        return int(shifted)
    return float(shifted / scale)


def parse_size(raw: str | None) -> float:
    """Parse a quantity string the way ``parseFloat(raw) || 0`` does.

    Leading numeric text is used (``"0.85 lots"`` -> 0.85); anything
    unparsable, empty or non-finite is 0.
    """
    if not raw:
        return 0.0
    match = _LEADING_NUMBER.match(raw)
    if match is None:
        return 0.0
    try:
        value = float(match.group(0))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def format_price(price: Decimal | float) -> str:
    """Render a fill price for the executions table.

    Prices are rounded to cents first; from 1,000 upwards thousands are
    grouped (``2641.5`` -> ``"2,641.50"``, ``999.999`` -> ``"1,000.00"``),
    below that exactly two decimals are shown (``45.5`` -> ``"45.50"``).
    """
    try:
        cents = _to_decimal(price).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return str(price)
    if cents >= 1000:
        return f"{cents:,.2f}"
    return f"{cents:.2f}"


def format_pnl(total: Decimal | float) -> str:
    """Signed dollar amount, e.g. ``"+$12,345.67"`` or ``"-$50.00"``."""
    amount = _to_decimal(total).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else "+"
    return f"{sign}${abs(amount):,.2f}"


def format_number(value: float | int) -> str:
    """Print a number as JavaScript would: ``2.0`` -> ``"2"``, ``1.5`` -> ``"1.5"``."""
    if isinstance(value, float) and not math.isfinite(value):
        return "Infinity" if value > 0 else ("-Infinity" if value < 0 else "NaN")
    text = format(_to_decimal(value).normalize(), "f")
    return "0" if text in ("-0", "0") else text


def format_clock(moment: datetime, tz: tzinfo) -> str:
    """24-hour ``HH:MM:SS`` in the display timezone."""
    return moment.astimezone(tz).strftime("%H:%M:%S")
