"""Enumerations used across the audit room engine."""

from enum import Enum


class Direction(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class FillStatus(str, Enum):
    FILLED = "Filled"
    PENDING = "Pending"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"


class RiskStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"


class AnomalyType(str, Enum):
    VOLATILITY_SPIKE = "Volatility Spike"


class AnomalySeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class ReportSource(str, Enum):
    """Which branch of the merge policy produced a report."""

    OVERRIDE = "override"
    COMPUTED = "computed"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    POSTGRES = "postgres"
    REDIS = "redis"
