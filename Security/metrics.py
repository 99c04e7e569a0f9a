"""
SECURITY METRICS
================
Prometheus-backed counters for gatekeeper decisions.
"""

# FLOW:
# - configure_metrics() is called once at startup with config.metrics_enabled.
# - Middleware calls record_decision(); it is a no-op while disabled.

from __future__ import annotations

from typing import Dict

from prometheus_client import REGISTRY, Counter, Gauge


_ENABLED = False
_DECISIONS = None
_FEATURE_ENABLED = None


def configure_metrics(enabled: bool) -> None:
    global _ENABLED
    _ENABLED = enabled
    if enabled:
        _init_metrics()


def _init_metrics() -> None:
    global _DECISIONS, _FEATURE_ENABLED
    if _DECISIONS is not None:
        return
    _DECISIONS = Counter(
        "gatekeeper_decisions",
        "Count of gatekeeper decisions per check",
        ["check", "outcome"],
        registry=REGISTRY,
    )
    _FEATURE_ENABLED = Gauge(
        "security_feature_enabled",
        "Whether a gatekeeper feature is enabled (1/0)",
        ["feature"],
        registry=REGISTRY,
    )


def record_decision(check: str, decision) -> None:
    if not _ENABLED or _DECISIONS is None:
        return
    outcome = "allow" if decision.allowed else "reject"
    _DECISIONS.labels(check=check, outcome=outcome).inc()


def set_feature_enabled(feature: str, enabled: bool) -> None:
    if not _ENABLED or _FEATURE_ENABLED is None:
        return
    _FEATURE_ENABLED.labels(feature=feature).set(1 if enabled else 0)


def _counter_value(check: str, outcome: str) -> int:
    return int(_DECISIONS.labels(check=check, outcome=outcome)._value.get())


def get_decision_snapshot(checks: list[str]) -> Dict[str, Dict[str, int]]:
    snapshot: Dict[str, Dict[str, int]] = {}
    for check in checks:
        if _DECISIONS is None:
            snapshot[check] = {"allow": 0, "reject": 0}
            continue
        snapshot[check] = {
            "allow": _counter_value(check, "allow"),
            "reject": _counter_value(check, "reject"),
        }
    return snapshot
