from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core.vendors import Vendor

ALL = "all"


@dataclass(frozen=True)
class ThresholdPair:
    green: float
    yellow: float


@dataclass(frozen=True)
class Thresholds:
    """Green/yellow cutoffs per metric, loaded once and read-only afterwards.

    Polarity is not stored here: lower-is-better metrics are listed in
    `core.classify.INVERTED_METRICS`.
    """

    ecosystem_score: ThresholdPair = ThresholdPair(80, 60)
    hse_score: ThresholdPair = ThresholdPair(85, 70)
    sustainability_score: ThresholdPair = ThresholdPair(75, 55)
    global_risk_level: ThresholdPair = ThresholdPair(30, 50)
    db_score: ThresholdPair = ThresholdPair(80, 60)
    dependance_jesa: ThresholdPair = ThresholdPair(20, 40)
    response_rate: ThresholdPair = ThresholdPair(90, 75)
    technical_validation_ratio: ThresholdPair = ThresholdPair(85, 70)
    price_competitiveness: ThresholdPair = ThresholdPair(80, 65)
    awarding_rate: ThresholdPair = ThresholdPair(75, 55)
    responsiveness_technique: ThresholdPair = ThresholdPair(4, 7)
    responsiveness_signature: ThresholdPair = ThresholdPair(3, 6)
    average_score_closed: ThresholdPair = ThresholdPair(4.0, 3.2)
    ncr_closure_time: ThresholdPair = ThresholdPair(15, 25)
    change_requests_count: ThresholdPair = ThresholdPair(8, 15)
    claims_count: ThresholdPair = ThresholdPair(3, 6)
    avenant_percentage: ThresholdPair = ThresholdPair(10, 20)
    reactivity_letters: ThresholdPair = ThresholdPair(3, 5)
    guarantee_renewal_time: ThresholdPair = ThresholdPair(15, 30)
    otif_score: ThresholdPair = ThresholdPair(90, 75)
    compliance_percent: ThresholdPair = ThresholdPair(90, 75)
    quality_score: ThresholdPair = ThresholdPair(85, 70)
    ncr_process_flow: ThresholdPair = ThresholdPair(80, 65)
    frais_approche: ThresholdPair = ThresholdPair(5, 10)

    def get(self, metric: str) -> ThresholdPair:
        if metric not in self.metrics():
            raise KeyError(f"No thresholds configured for metric {metric!r}")
        return getattr(self, metric)

    @classmethod
    def metrics(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class DashboardFilters:
    """Single-value filter spec used by the pre-award and post-award pages."""

    vendor: str = ALL
    category: str = ALL
    sub_category: str = ALL
    bu: str = ALL
    project: str = ALL
    tiering: str = ALL
    region: str = ALL
    period: str = "Last 12 months"
    date_from: str = "2015-01-01"
    date_to: str = "2035-12-31"
    thresholds: Thresholds = field(default_factory=Thresholds)

    def constraints(self) -> Dict[str, str]:
        """Vendor attribute -> required value, for non-sentinel fields only."""
        pairs = {
            "name": self.vendor,
            "category": self.category,
            "sub_category": self.sub_category,
            "bu": self.bu,
            "project": self.project,
            "tiering": self.tiering,
            "region": self.region,
        }
        return {attr: value for attr, value in pairs.items() if value != ALL}


@dataclass(frozen=True)
class MultiSelectFilters:
    """Multi-value filter spec used by the material page. Empty tuple = no constraint."""

    vendors: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    sub_categories: Tuple[str, ...] = ()
    activities: Tuple[str, ...] = ()
    tierings: Tuple[str, ...] = ()
    regions: Tuple[str, ...] = ()
    thresholds: Thresholds = field(default_factory=Thresholds)

    def constraints(self) -> Dict[str, frozenset]:
        pairs = {
            "name": self.vendors,
            "category": self.categories,
            "sub_category": self.sub_categories,
            "activity": self.activities,
            "tiering": self.tierings,
            "region": self.regions,
        }
        return {attr: frozenset(values) for attr, values in pairs.items() if values}


FilterSpec = Union[DashboardFilters, MultiSelectFilters]


def filter_vendors(vendors: Sequence[Vendor], spec: FilterSpec) -> List[Vendor]:
    """Vendors matching every active constraint of `spec`, in input order.

    An empty result is returned as-is; falling back to the full collection is
    the caller's decision (see `core.data.vendors_in_view`).
    """
    constraints = spec.constraints()
    if isinstance(spec, MultiSelectFilters):
        return [v for v in vendors if all(getattr(v, attr) in allowed for attr, allowed in constraints.items())]
    return [v for v in vendors if all(getattr(v, attr) == value for attr, value in constraints.items())]


# ---------- normalization of loosely typed input ----------

def _as_choice(value: object) -> str:
    if value is None:
        return ALL
    s = str(value).strip()
    if not s or s.lower() == ALL:
        return ALL
    return s


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def normalize_thresholds(raw: Optional[Dict[str, Any]]) -> Thresholds:
    """Merge per-metric overrides over the default table; unknown metrics are ignored."""
    defaults = Thresholds()
    if not raw:
        return defaults
    overrides: Dict[str, ThresholdPair] = {}
    for metric in Thresholds.metrics():
        value = raw.get(metric)
        if value is None:
            continue
        base = defaults.get(metric)
        if isinstance(value, ThresholdPair):
            overrides[metric] = value
            continue
        try:
            overrides[metric] = ThresholdPair(
                green=float(value.get("green", base.green)),
                yellow=float(value.get("yellow", base.yellow)),
            )
        except (AttributeError, TypeError, ValueError):
            continue
    return replace(defaults, **overrides)


def normalize_filters(raw: Optional[dict]) -> DashboardFilters:
    raw = raw or {}
    defaults = DashboardFilters()
    return DashboardFilters(
        vendor=_as_choice(raw.get("vendor")),
        category=_as_choice(raw.get("category")),
        sub_category=_as_choice(raw.get("sub_category")),
        bu=_as_choice(raw.get("bu")),
        project=_as_choice(raw.get("project")),
        tiering=_as_choice(raw.get("tiering")),
        region=_as_choice(raw.get("region")),
        period=str(raw.get("period") or defaults.period),
        date_from=str(raw.get("date_from") or defaults.date_from),
        date_to=str(raw.get("date_to") or defaults.date_to),
        thresholds=normalize_thresholds(raw.get("thresholds")),
    )


def normalize_multi_filters(raw: Optional[dict]) -> MultiSelectFilters:
    raw = raw or {}
    return MultiSelectFilters(
        vendors=_as_str_tuple(raw.get("vendors")),
        categories=_as_str_tuple(raw.get("categories")),
        sub_categories=_as_str_tuple(raw.get("sub_categories")),
        activities=_as_str_tuple(raw.get("activities")),
        tierings=_as_str_tuple(raw.get("tierings")),
        regions=_as_str_tuple(raw.get("regions")),
        thresholds=normalize_thresholds(raw.get("thresholds")),
    )
