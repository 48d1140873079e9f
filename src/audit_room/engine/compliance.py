"""Compliance ratio from filled vs rejected counts."""

from __future__ import annotations

from audit_room.core.models import ComplianceLogs

from .formatting import round_half_up


class ComplianceReporter:
    """Builds the compliance block of the report.

    ``system_uptime`` and ``avg_latency`` are configured placeholders until a
    telemetry source exists.
    """

    def __init__(self, *, system_uptime: str = "99.9%", avg_latency: str = "12ms") -> None:
        self._system_uptime = system_uptime
        self._avg_latency = avg_latency

    def placeholder(self) -> ComplianceLogs:
        """Compliance block used when an override omits it."""
        return ComplianceLogs(
            risk_compliance="100%",
            policy_violations=0,
            system_uptime=self._system_uptime,
            avg_latency=self._avg_latency,
        )

    def compute(self, filled: int, rejected: int) -> ComplianceLogs:
        violations = rejected
        if filled > 0:
            ratio = round_half_up((filled - violations) / filled * 100)
            risk_compliance = f"{ratio}%"
        else:
            risk_compliance = "100%"
        return ComplianceLogs(
            risk_compliance=risk_compliance,
            policy_violations=violations,
            system_uptime=self._system_uptime,
            avg_latency=self._avg_latency,
        )
