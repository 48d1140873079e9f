"""Audit report orchestration and override precedence.

The merger fans out independent reads to the fill store and the override
store, runs the calculators and decides which sections come from the
operator override:

1. ``dailyAccuracy`` is always computed from fills.
2. The override snapshot is read alongside it.
3. If the snapshot has executions or strategy performance, all of its other
   sections are served verbatim, with the computed ``dailyAccuracy`` (or the
   snapshot's own when nothing was computed). Otherwise every section is
   computed from fills.

Usage::

    merger = AuditMerger(fill_store, override_store, config=settings.audit)
    report = await merger.get_audit_report()
    await merger.save_audit_override(report)
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable

from audit_room.core.clock import IClock, WallClock
from audit_room.core.config import AuditConfig
from audit_room.core.enums import FillStatus, ReportSource
from audit_room.core.errors import StoreUnavailable
from audit_room.core.interfaces import IFillStore, IOverrideStore
from audit_room.core.models import AuditReport, DailyAccuracy
from audit_room.observability import metrics

from .anomalies import AnomalyDetector
from .compliance import ComplianceReporter
from .daily_accuracy import DailyAccuracyCalculator
from .executions import ExecutionFormatter
from .override import OverrideSnapshot, coerce_override
from .reader import TradeFillReader
from .risk_exposure import RiskExposureEstimator
from .strategy_performance import StrategyPerformanceAggregator

logger = logging.getLogger(__name__)


async def _gather_reads(*reads: Awaitable[Any]) -> list[Any]:
    """Run *reads* concurrently. If one fails, cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(read) for read in reads]
    try:
        return await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class AuditMerger:
    """Builds the audit room report and saves operator overrides.

    Parameters
    ----------
    fill_store : IFillStore
        Read-only source of trade fills.
    override_store : IOverrideStore
        Singleton store of the operator override snapshot.
    config : AuditConfig, optional
        Windows, thresholds and placeholder constants.
    clock : IClock, optional
        Source of ``now``.  Defaults to :class:`WallClock`.
    """

    def __init__(
        self,
        fill_store: IFillStore,
        override_store: IOverrideStore,
        *,
        config: AuditConfig | None = None,
        clock: IClock | None = None,
    ) -> None:
        cfg = config or AuditConfig()
        tz = cfg.tz
        self._config = cfg
        self._reader = TradeFillReader(fill_store)
        self._override_store = override_store
        self._clock = clock or WallClock()

        self.daily_accuracy = DailyAccuracyCalculator(
            window_days=cfg.daily_accuracy_window_days, tz=tz,
        )
        self.executions = ExecutionFormatter(limit=cfg.recent_executions_limit, tz=tz)
        self.strategy_performance = StrategyPerformanceAggregator()
        self.risk_exposure = RiskExposureEstimator(
            base_capital=cfg.base_capital, max_leverage=cfg.max_leverage,
        )
        self.anomaly_detector = AnomalyDetector(
            min_observations=cfg.anomaly_min_observations,
            medium_threshold_pct=cfg.anomaly_medium_threshold_pct,
            high_threshold_pct=cfg.anomaly_high_threshold_pct,
            tz=tz,
        )
        self.compliance = ComplianceReporter(
            system_uptime=cfg.system_uptime, avg_latency=cfg.avg_latency,
        )

    # ------------------------------------------------------------------ #
    # Compute                                                              #
    # ------------------------------------------------------------------ #

    async def get_audit_report(self) -> AuditReport:
        """Build the audit room report."""
        report, _source = await self.report_with_source()
        return report

    async def report_with_source(self) -> tuple[AuditReport, ReportSource]:
        """Build the report and say which merge branch produced it."""
        with metrics.REPORT_LATENCY.time():
            try:
                report, source = await self._build()
            except StoreUnavailable as exc:
                metrics.record_store_failure(exc.store)
                logger.error("Audit report failed: %s", exc)
                raise
        metrics.record_report(source.value)
        return report, source

    async def _build(self) -> tuple[AuditReport, ReportSource]:
        now = self._clock.now()

        closed, raw_snapshot = await _gather_reads(
            self._reader.closed_since(now, self.daily_accuracy.window),
            self._override_store.get(),
        )
        daily = self.daily_accuracy.compute(closed, now)

        if raw_snapshot is not None:
            snapshot = coerce_override(
                raw_snapshot, compliance_default=self.compliance.placeholder(),
            )
            if snapshot.is_authoritative:
                logger.info(
                    "Serving audit report from override (degraded=%s)",
                    snapshot.degraded or "none",
                )
                return self._from_override(snapshot, daily), ReportSource.OVERRIDE

        return await self._compute(now, daily), ReportSource.COMPUTED

    def _from_override(
        self, snapshot: OverrideSnapshot, daily: list[DailyAccuracy],
    ) -> AuditReport:
        override = snapshot.report
        return AuditReport(
            recent_executions=override.recent_executions,
            performance_by_strategy=override.performance_by_strategy,
            risk_metrics=override.risk_metrics,
            anomalies=override.anomalies,
            daily_accuracy=daily or override.daily_accuracy,
            compliance_logs=override.compliance_logs,
        )

    async def _compute(self, now: datetime, daily: list[DailyAccuracy]) -> AuditReport:
        cfg = self._config
        recent, completed, window, filled, rejected = await _gather_reads(
            self._reader.most_recent(cfg.recent_executions_limit),
            self._reader.completed_filled(),
            self._reader.most_recent(cfg.risk_window_size),
            self._reader.count_by_status(FillStatus.FILLED),
            self._reader.count_by_status(FillStatus.REJECTED),
        )

        leverage = self.risk_exposure.current_leverage(window)
        risk_metrics = self.risk_exposure.rows_for(leverage)
        anomalies = self.anomaly_detector.compute(window, now)
        for anomaly in anomalies:
            metrics.record_anomaly(anomaly.severity)
        metrics.CURRENT_LEVERAGE.set(leverage)

        logger.info(
            "Computed audit report: %d executions, %d anomalies, %d filled, %d rejected",
            len(recent), len(anomalies), filled, rejected,
        )
        return AuditReport(
            recent_executions=self.executions.compute(recent),
            performance_by_strategy=self.strategy_performance.compute(completed),
            risk_metrics=risk_metrics,
            anomalies=anomalies,
            daily_accuracy=daily,
            compliance_logs=self.compliance.compute(filled, rejected),
        )

    # ------------------------------------------------------------------ #
    # Save                                                                 #
    # ------------------------------------------------------------------ #

    async def save_audit_override(self, report: AuditReport) -> AuditReport:
        """Replace the override snapshot wholesale with *report*.

        There is no field-level merge: sections missing from *report* are
        stored empty. Concurrent saves race, last write wins.
        """
        try:
            await self._override_store.upsert(report.to_wire())
        except StoreUnavailable as exc:
            metrics.record_store_failure(exc.store)
            raise
        metrics.OVERRIDE_SAVES_TOTAL.inc()
        logger.info(
            "Saved audit override: %d executions, %d strategies",
            len(report.recent_executions), len(report.performance_by_strategy),
        )
        return report
