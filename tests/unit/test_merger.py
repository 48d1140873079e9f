"""Test the audit report merger: compute, override precedence and save."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from audit_room.core.config import AuditConfig
from audit_room.core.enums import ReportSource
from audit_room.core.errors import StoreUnavailable
from audit_room.core.models import AuditReport, StrategyPerformance
from audit_room.engine.merger import AuditMerger
from audit_room.storage.memory_store import InMemoryFillStore, InMemoryOverrideStore

COMPUTED_REPORT = {
    "recentExecutions": [
        {"time": "11:55:00", "strategy": "Drav", "symbol": "XAUUSD", "direction": "Long",
         "size": "0.85", "price": "2,641.50", "status": "Filled"},
        {"time": "11:52:00", "strategy": "Tenzor", "symbol": "BTCUSDT", "direction": "Long",
         "size": "0.12", "price": "98,245.00", "status": "Filled"},
        {"time": "11:45:00", "strategy": "Drav", "symbol": "EURUSD", "direction": "Short",
         "size": "1.00", "price": "1.09", "status": "Filled"},
        {"time": "11:30:00", "strategy": "Tenzor", "symbol": "XAUUSD", "direction": "Long",
         "size": "0.50", "price": "2,635.00", "status": "Rejected"},
    ],
    "performanceByStrategy": [
        {"name": "Drav", "winRate": 50.0, "avgR": 0.6, "trades": 2, "pnl": "+$75.50"},
        {"name": "Tenzor", "winRate": 100.0, "avgR": 2.8, "trades": 1, "pnl": "+$350.00"},
    ],
    "riskMetrics": [
        {"label": "Max Leverage Allowed", "value": "1:50", "status": "ok"},
        {"label": "Current Leverage", "value": "1:1.4", "status": "ok"},
    ],
    "anomalies": [],
    "dailyAccuracy": [{"day": "Wed", "accuracy": 67}],
    "complianceLogs": {
        "riskCompliance": "67%",
        "policyViolations": 1,
        "systemUptime": "99.9%",
        "avgLatency": "12ms",
    },
}


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestComputedReport:
    @pytest.mark.asyncio
    async def test_full_report(self, merger):
        report = await merger.get_audit_report()
        assert report.to_wire() == COMPUTED_REPORT

    @pytest.mark.asyncio
    async def test_source_is_computed(self, merger):
        before = _sample("audit_room_reports_total", {"source": "computed"})
        _report, source = await merger.report_with_source()
        assert source == ReportSource.COMPUTED
        assert _sample("audit_room_reports_total", {"source": "computed"}) == before + 1

    @pytest.mark.asyncio
    async def test_empty_store(self, fixed_clock):
        merger = AuditMerger(InMemoryFillStore(), InMemoryOverrideStore(), clock=fixed_clock)
        report = await merger.get_audit_report()
        wire = report.to_wire()
        assert wire["recentExecutions"] == []
        assert wire["performanceByStrategy"] == []
        assert wire["riskMetrics"][1]["value"] == "1:0"
        assert wire["anomalies"] == []
        assert wire["dailyAccuracy"] == []
        assert wire["complianceLogs"]["riskCompliance"] == "100%"

    @pytest.mark.asyncio
    async def test_daily_accuracy_follows_clock(self, merger, fixed_clock):
        fixed_clock.advance(timedelta(days=8))
        report = await merger.get_audit_report()
        assert report.daily_accuracy == []
        # Other sections are not windowed.
        assert len(report.recent_executions) == 4

    @pytest.mark.asyncio
    async def test_leverage_gauge(self, merger):
        await merger.get_audit_report()
        assert REGISTRY.get_sample_value("audit_room_current_leverage") == 1.4

    @pytest.mark.asyncio
    async def test_config_limits(self, fill_store, override_store, fixed_clock):
        config = AuditConfig(recent_executions_limit=2, max_leverage=1.0)
        merger = AuditMerger(fill_store, override_store, config=config, clock=fixed_clock)
        report = await merger.get_audit_report()
        assert len(report.recent_executions) == 2
        assert [r.status for r in report.risk_metrics] == ["warning", "warning"]
        assert report.risk_metrics[0].value == "1:1"

    @pytest.mark.asyncio
    async def test_anomalies_recorded(self, make_fill, fixed_clock):
        fills = [make_fill(symbol="BTCUSDT", price=p, minutes_ago=i)
                 for i, p in enumerate([100, 150, 50])]
        before = _sample("audit_room_anomalies_total", {"severity": "high"})
        merger = AuditMerger(InMemoryFillStore(fills), InMemoryOverrideStore(), clock=fixed_clock)
        report = await merger.get_audit_report()
        assert [a.severity for a in report.anomalies] == ["high"]
        assert _sample("audit_room_anomalies_total", {"severity": "high"}) == before + 1


class TestOverridePrecedence:
    @pytest.mark.asyncio
    async def test_override_wins_except_daily_accuracy(self, merger, override_store,
                                                       override_payload):
        await override_store.upsert(override_payload)
        report, source = await merger.report_with_source()
        wire = report.to_wire()
        assert source == ReportSource.OVERRIDE
        assert wire["recentExecutions"] == override_payload["recentExecutions"]
        assert wire["performanceByStrategy"] == override_payload["performanceByStrategy"]
        assert wire["riskMetrics"] == override_payload["riskMetrics"]
        assert wire["anomalies"] == override_payload["anomalies"]
        assert wire["complianceLogs"] == override_payload["complianceLogs"]
        assert wire["dailyAccuracy"] == [{"day": "Wed", "accuracy": 67}]

    @pytest.mark.asyncio
    async def test_override_daily_accuracy_used_when_none_computed(self, override_payload,
                                                                   fixed_clock):
        merger = AuditMerger(
            InMemoryFillStore(), InMemoryOverrideStore(override_payload), clock=fixed_clock,
        )
        report = await merger.get_audit_report()
        assert report.to_wire()["dailyAccuracy"] == [{"day": "Mon", "accuracy": 72}]

    @pytest.mark.asyncio
    async def test_performance_only_override_blanks_other_sections(self, merger,
                                                                   override_store,
                                                                   override_payload):
        await override_store.upsert(
            {"performanceByStrategy": override_payload["performanceByStrategy"]}
        )
        report, source = await merger.report_with_source()
        assert source == ReportSource.OVERRIDE
        assert report.recent_executions == []
        assert report.risk_metrics == []
        assert report.anomalies == []
        assert report.compliance_logs.risk_compliance == "100%"

    @pytest.mark.asyncio
    async def test_executions_only_override_serves_empty_performance(self, merger,
                                                                      override_payload):
        # Executions alone make every override section authoritative, so the
        # empty strategy table is served instead of the computed one.
        saved = AuditReport.model_validate(
            {"recentExecutions": override_payload["recentExecutions"]}
        )
        await merger.save_audit_override(saved)
        report, source = await merger.report_with_source()
        assert source == ReportSource.OVERRIDE
        assert report.performance_by_strategy == []
        assert report.to_wire()["recentExecutions"] == override_payload["recentExecutions"]

    @pytest.mark.asyncio
    async def test_non_authoritative_override_ignored(self, merger, override_store,
                                                      override_payload):
        await override_store.upsert({
            "riskMetrics": override_payload["riskMetrics"],
            "anomalies": override_payload["anomalies"],
        })
        report, source = await merger.report_with_source()
        assert source == ReportSource.COMPUTED
        assert report.to_wire() == COMPUTED_REPORT

    @pytest.mark.asyncio
    async def test_non_object_override_ignored(self, merger, override_store):
        await override_store.upsert(["garbage"])
        _report, source = await merger.report_with_source()
        assert source == ReportSource.COMPUTED


class TestSaveOverride:
    @pytest.mark.asyncio
    async def test_save_then_read(self, merger):
        computed = await merger.get_audit_report()
        saved = await merger.save_audit_override(computed)
        assert saved == computed
        report, source = await merger.report_with_source()
        assert source == ReportSource.OVERRIDE
        assert report.to_wire() == COMPUTED_REPORT

    @pytest.mark.asyncio
    async def test_save_replaces_wholesale(self, merger, override_store, override_payload):
        await override_store.upsert(override_payload)
        replacement = AuditReport(performance_by_strategy=[
            StrategyPerformance(name="Tenzor", win_rate=10.0, avg_r=0.1, trades=1, pnl="+$1.00"),
        ])
        await merger.save_audit_override(replacement)
        stored = await override_store.get()
        assert stored["recentExecutions"] == []
        assert stored["anomalies"] == []
        assert stored["performanceByStrategy"][0]["name"] == "Tenzor"

    @pytest.mark.asyncio
    async def test_save_counts(self, merger):
        before = _sample("audit_room_override_saves_total", {})
        await merger.save_audit_override(AuditReport())
        assert _sample("audit_room_override_saves_total", {}) == before + 1


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_fill_store_unavailable_fails_report(self, override_store, fixed_clock):
        fill_store = AsyncMock()
        fill_store.query.side_effect = StoreUnavailable("fill_store", "connection refused")
        fill_store.count_by_status.return_value = 0
        merger = AuditMerger(fill_store, override_store, clock=fixed_clock)

        before = _sample("audit_room_store_failures_total", {"store": "fill_store"})
        with pytest.raises(StoreUnavailable, match="fill_store"):
            await merger.get_audit_report()
        assert _sample("audit_room_store_failures_total", {"store": "fill_store"}) == before + 1

    @pytest.mark.asyncio
    async def test_failed_read_cancels_sibling_reads(self, fixed_clock):
        cancelled = asyncio.Event()

        async def slow_get():
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        fill_store = AsyncMock()
        fill_store.query.side_effect = StoreUnavailable("fill_store", "connection refused")
        override_store = AsyncMock()
        override_store.get.side_effect = slow_get
        merger = AuditMerger(fill_store, override_store, clock=fixed_clock)

        with pytest.raises(StoreUnavailable):
            await asyncio.wait_for(merger.get_audit_report(), timeout=5)
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_override_store_unavailable_fails_report(self, fill_store, fixed_clock):
        override_store = AsyncMock()
        override_store.get.side_effect = StoreUnavailable("redis_override", "timeout")
        merger = AuditMerger(fill_store, override_store, clock=fixed_clock)
        with pytest.raises(StoreUnavailable):
            await merger.get_audit_report()

    @pytest.mark.asyncio
    async def test_save_unavailable(self, fill_store, fixed_clock):
        override_store = AsyncMock()
        override_store.upsert.side_effect = StoreUnavailable("override_store", "down")
        merger = AuditMerger(fill_store, override_store, clock=fixed_clock)
        with pytest.raises(StoreUnavailable):
            await merger.save_audit_override(AuditReport())
