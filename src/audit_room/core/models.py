"""Core domain models for the audit room.

``TradeFill`` is the read-only input record. The report models mirror the
JSON shape existing dashboard clients consume: attributes are snake_case in
Python and camelCase on the wire (``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import Direction, FillStatus


class _WireModel(BaseModel):
    """Base for models exchanged with dashboard clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class TradeFill(_WireModel):
    """A single trade-fill record as logged by the execution process.

    A fill is *closed* once ``win`` is known; ``pnl``, ``r_multiple`` and the
    entry/exit timestamps are only present on closed fills.
    """

    time: datetime
    strategy: str
    symbol: str
    direction: Direction
    size: str | None = None  # Quantity as entered, parsed leniently
    price: Decimal
    status: FillStatus

    exit_price: Decimal | None = None
    pnl: Decimal | None = None
    r_multiple: float | None = None
    win: bool | None = None
    entry_time: datetime | None = None
    exit_time: datetime | None = None

    @field_validator("time", "entry_time", "exit_time")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_closed(self) -> bool:
        return self.win is not None

    @property
    def is_filled(self) -> bool:
        return self.status == FillStatus.FILLED


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------

class ExecutionRow(_WireModel):
    time: str  # HH:MM:SS
    strategy: str
    symbol: str
    direction: str
    size: str
    price: str  # "2,641.50"
    status: str


class StrategyPerformance(_WireModel):
    name: str
    win_rate: float  # Percent, one decimal
    avg_r: float
    trades: int
    pnl: str  # "+$425.50"


class RiskMetric(_WireModel):
    label: str
    value: str  # "1:50"
    status: str


class Anomaly(_WireModel):
    time: str
    type: str
    asset: str
    severity: str


class DailyAccuracy(_WireModel):
    day: str  # Sun..Sat
    accuracy: int | float  # Whole percent when computed


class ComplianceLogs(_WireModel):
    risk_compliance: str = "100%"
    policy_violations: int = 0
    system_uptime: str = "99.9%"
    avg_latency: str = "12ms"


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class AuditReport(_WireModel):
    """The audit room report, also the shape of the override snapshot."""

    recent_executions: list[ExecutionRow] = Field(default_factory=list)
    performance_by_strategy: list[StrategyPerformance] = Field(default_factory=list)
    risk_metrics: list[RiskMetric] = Field(default_factory=list)
    anomalies: list[Anomaly] = Field(default_factory=list)
    daily_accuracy: list[DailyAccuracy] = Field(default_factory=list)
    compliance_logs: ComplianceLogs = Field(default_factory=ComplianceLogs)
