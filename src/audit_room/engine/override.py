"""Lenient reading of the operator override snapshot.

The snapshot is operator-edited JSON that is not validated when written, so
each field is checked on its own: a missing field takes its default and a
malformed one is logged and replaced by its default instead of failing the
whole report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter, ValidationError

from audit_room.core.errors import MalformedOverride
from audit_room.core.models import (
    Anomaly,
    AuditReport,
    ComplianceLogs,
    DailyAccuracy,
    ExecutionRow,
    RiskMetric,
    StrategyPerformance,
)
from audit_room.observability import metrics

logger = logging.getLogger(__name__)

# snake_case attribute -> (wire name, validator)
_LIST_FIELDS: dict[str, tuple[str, TypeAdapter]] = {
    "recent_executions": ("recentExecutions", TypeAdapter(list[ExecutionRow])),
    "performance_by_strategy": (
        "performanceByStrategy", TypeAdapter(list[StrategyPerformance]),
    ),
    "risk_metrics": ("riskMetrics", TypeAdapter(list[RiskMetric])),
    "anomalies": ("anomalies", TypeAdapter(list[Anomaly])),
    "daily_accuracy": ("dailyAccuracy", TypeAdapter(list[DailyAccuracy])),
}


@dataclass
class OverrideSnapshot:
    """A coerced override snapshot plus the fields that had to be defaulted."""

    report: AuditReport
    degraded: list[str] = field(default_factory=list)

    @property
    def is_authoritative(self) -> bool:
        """Whether the snapshot replaces the computed sections.

        Either executions *or* strategy performance being present makes
        every override section win, including unrelated ones such as
        ``anomalies``.
        """
        return bool(self.report.recent_executions or self.report.performance_by_strategy)


def _lookup(raw: dict[str, Any], name: str, wire_name: str) -> Any:
    if wire_name in raw:
        return raw[wire_name]
    return raw.get(name)


def _coerce_list(name: str, value: Any, adapter: TypeAdapter) -> list:
    if not isinstance(value, list):
        raise MalformedOverride(name, f"expected a list, got {type(value).__name__}")
    try:
        return adapter.validate_python(value)
    except ValidationError as exc:
        raise MalformedOverride(name, f"{exc.error_count()} invalid entries") from exc


def _coerce_compliance(value: Any) -> ComplianceLogs:
    if not isinstance(value, dict):
        raise MalformedOverride(
            "compliance_logs", f"expected an object, got {type(value).__name__}"
        )
    try:
        return ComplianceLogs.model_validate(value)
    except ValidationError as exc:
        raise MalformedOverride("compliance_logs", str(exc)) from exc


def coerce_override(
    raw: Any,
    *,
    compliance_default: ComplianceLogs,
) -> OverrideSnapshot:
    """Turn a raw stored snapshot into an :class:`OverrideSnapshot`."""
    if not isinstance(raw, dict):
        logger.warning(
            "Override snapshot is a %s, not an object; ignoring it",
            type(raw).__name__,
        )
        metrics.OVERRIDE_FIELDS_DEGRADED.labels(field="snapshot").inc()
        return OverrideSnapshot(
            report=AuditReport(compliance_logs=compliance_default),
            degraded=["snapshot"],
        )

    values: dict[str, Any] = {}
    degraded: list[str] = []

    for name, (wire_name, adapter) in _LIST_FIELDS.items():
        value = _lookup(raw, name, wire_name)
        if value is None:
            values[name] = []
            continue
        try:
            values[name] = _coerce_list(name, value, adapter)
        except MalformedOverride as exc:
            logger.warning("%s; using []", exc)
            metrics.OVERRIDE_FIELDS_DEGRADED.labels(field=name).inc()
            degraded.append(name)
            values[name] = []

    compliance = _lookup(raw, "compliance_logs", "complianceLogs")
    if compliance is None:
        values["compliance_logs"] = compliance_default
    else:
        try:
            values["compliance_logs"] = _coerce_compliance(compliance)
        except MalformedOverride as exc:
            logger.warning("%s; using placeholder", exc)
            metrics.OVERRIDE_FIELDS_DEGRADED.labels(field="compliance_logs").inc()
            degraded.append("compliance_logs")
            values["compliance_logs"] = compliance_default

    return OverrideSnapshot(report=AuditReport(**values), degraded=degraded)
