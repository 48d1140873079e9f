"""Prometheus metrics for the audit room engine.

Exposes report computation metrics for monitoring via Grafana.
"""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)

# ---------------------------------------------------------------------------
# System metrics
# ---------------------------------------------------------------------------

SYSTEM_INFO = Info("audit_room", "Audit room engine information")

# ---------------------------------------------------------------------------
# Report metrics
# ---------------------------------------------------------------------------

REPORTS_TOTAL = Counter(
    "audit_room_reports_total",
    "Audit reports served",
    ["source"],
)

OVERRIDE_SAVES_TOTAL = Counter(
    "audit_room_override_saves_total",
    "Override snapshots saved",
)

OVERRIDE_FIELDS_DEGRADED = Counter(
    "audit_room_override_fields_degraded_total",
    "Override snapshot fields replaced by their default",
    ["field"],
)

ANOMALIES_TOTAL = Counter(
    "audit_room_anomalies_total",
    "Volatility anomalies emitted in computed reports",
    ["severity"],
)

CURRENT_LEVERAGE = Gauge(
    "audit_room_current_leverage",
    "Leverage computed for the latest computed report",
)

# ---------------------------------------------------------------------------
# Store metrics
# ---------------------------------------------------------------------------

STORE_FAILURES_TOTAL = Counter(
    "audit_room_store_failures_total",
    "Store calls that failed because the store was unavailable",
    ["store"],
)

# ---------------------------------------------------------------------------
# Latency metrics
# ---------------------------------------------------------------------------

REPORT_LATENCY = Histogram(
    "audit_room_report_latency_seconds",
    "Time to build one audit report",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)


def start_metrics_server(port: int = 9090) -> None:
    """Start Prometheus metrics HTTP server in a background thread."""
    SYSTEM_INFO.info({"version": "0.1.0"})
    start_http_server(port)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def record_report(source: str) -> None:
    """Record a served report and which merge branch produced it."""
    REPORTS_TOTAL.labels(source=source).inc()


def record_anomaly(severity: str) -> None:
    ANOMALIES_TOTAL.labels(severity=severity).inc()


def record_store_failure(store: str) -> None:
    STORE_FAILURES_TOTAL.labels(store=store).inc()
