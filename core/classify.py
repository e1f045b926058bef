from __future__ import annotations

from typing import Dict, FrozenSet, Literal

from core.filters import ThresholdPair, Thresholds

PerformanceLevel = Literal["green", "yellow", "red"]

# Metrics where a lower value is better.
INVERTED_METRICS: FrozenSet[str] = frozenset(
    {
        "global_risk_level",
        "dependance_jesa",
        "responsiveness_technique",
        "responsiveness_signature",
        "ncr_closure_time",
        "change_requests_count",
        "claims_count",
        "avenant_percentage",
        "reactivity_letters",
        "guarantee_renewal_time",
        "frais_approche",
    }
)


def classify(value: float, thresholds: ThresholdPair) -> PerformanceLevel:
    """Higher is better; both cutoffs are inclusive."""
    if value >= thresholds.green:
        return "green"
    if value >= thresholds.yellow:
        return "yellow"
    return "red"


def classify_inverse(value: float, thresholds: ThresholdPair) -> PerformanceLevel:
    """Lower is better; both cutoffs are inclusive."""
    if value <= thresholds.green:
        return "green"
    if value <= thresholds.yellow:
        return "yellow"
    return "red"


def is_inverted(metric: str) -> bool:
    return metric in INVERTED_METRICS


def classify_metric(metric: str, value: float, thresholds: Thresholds) -> PerformanceLevel:
    pair = thresholds.get(metric)
    if is_inverted(metric):
        return classify_inverse(value, pair)
    return classify(value, pair)


def classify_many(values: Dict[str, float], thresholds: Thresholds) -> Dict[str, PerformanceLevel]:
    """Classify a metric -> value mapping, skipping metrics without thresholds."""
    known = set(Thresholds.metrics())
    return {metric: classify_metric(metric, value, thresholds) for metric, value in values.items() if metric in known}
