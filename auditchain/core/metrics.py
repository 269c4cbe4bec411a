"""Prometheus counters for the audit chain."""

from __future__ import annotations

from prometheus_client import Counter

APPENDS = Counter(
    "auditchain_appends_total",
    "Audit entry append attempts by outcome",
    ["outcome"],
)

APPEND_CONFLICTS = Counter(
    "auditchain_append_conflicts_total",
    "Sequence-number conflicts resolved by re-reading the chain tail",
)

VERIFICATIONS = Counter(
    "auditchain_verifications_total",
    "Chain verification runs by result",
    ["result"],
)

INTEGRITY_VIOLATIONS = Counter(
    "auditchain_integrity_violations_total",
    "Individual chain integrity errors found during verification",
    ["kind"],
)
