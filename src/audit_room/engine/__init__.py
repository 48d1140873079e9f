"""Audit room analytics engine.

Derives the audit room report from trade fills and blends it with the
operator override snapshot.

Key components
--------------
TradeFillReader                Named read paths over the fill store
DailyAccuracyCalculator        Win ratio per weekday, trailing window
ExecutionFormatter             Display rows for the newest fills
StrategyPerformanceAggregator  Win rate, avg R and P&L per strategy
RiskExposureEstimator          Notional exposure and leverage rows
AnomalyDetector                Per-symbol volatility spikes
ComplianceReporter             Compliance ratio from fill/rejection counts
AuditMerger                    Orchestration and override precedence
"""

from .anomalies import AnomalyDetector
from .compliance import ComplianceReporter
from .daily_accuracy import DailyAccuracyCalculator
from .executions import ExecutionFormatter
from .merger import AuditMerger
from .reader import TradeFillReader
from .risk_exposure import RiskExposureEstimator
from .strategy_performance import StrategyPerformanceAggregator

__all__ = [
    "AnomalyDetector",
    "AuditMerger",
    "ComplianceReporter",
    "DailyAccuracyCalculator",
    "ExecutionFormatter",
    "RiskExposureEstimator",
    "StrategyPerformanceAggregator",
    "TradeFillReader",
]
