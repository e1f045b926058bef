"""Reduce a vendor subset into per-phase KPI bundles.

Means are rounded to the nearest integer (halves toward +inf) unless a field is in the phase's
one-decimal set; counts are summed. Every aggregate over an empty sequence is
all zeros. A one-vendor sequence reproduces that vendor's raw values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar, Dict, Literal, Optional, Sequence, Tuple, Union

import pandas as pd

from core.classify import PerformanceLevel, classify_many
from core.data import round_half_up, round_int
from core.filters import Thresholds
from core.vendors import DISCIPLINES, REVENUE_COLUMNS, REVENUE_YEARS, TIERINGS, Vendor, vendors_frame

Phase = Literal["pre_award", "post_award", "material"]


def _raw_mean(frame: pd.DataFrame, col: str) -> float:
    if frame.empty:
        return 0.0
    return float(frame[col].astype(float).mean())


def _mean(frame: pd.DataFrame, col: str) -> int:
    return round_int(_raw_mean(frame, col))


def _mean_1dp(frame: pd.DataFrame, col: str) -> float:
    if frame.empty:
        return 0.0
    return round_half_up(frame[col].astype(float).mean(), 1) or 0.0


def _total(frame: pd.DataFrame, col: str):
    if frame.empty:
        return 0
    total = frame[col].sum()
    return total.item() if hasattr(total, "item") else total


class _AggregateMixin:
    """Shared rendering contract of the three phase bundles."""

    # aggregate field -> threshold metric it is classified against
    CLASSIFIABLE: ClassVar[Dict[str, str]] = {}

    def as_dict(self) -> Dict[str, Any]:
        return {"phase": self.phase, **asdict(self)}

    def numeric_fields(self) -> Dict[str, float]:
        out: Dict[str, float] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                out[f.name] = value
        return out

    def classifiable(self) -> Dict[str, float]:
        return {metric: getattr(self, name) for name, metric in self.CLASSIFIABLE.items()}

    def levels(self, thresholds: Thresholds) -> Dict[str, PerformanceLevel]:
        return classify_many(self.classifiable(), thresholds)


@dataclass(frozen=True)
class TierCounts:
    tier1: int = 0
    tier2: int = 0
    tier3: int = 0
    na: int = 0

    @property
    def total(self) -> int:
        return self.tier1 + self.tier2 + self.tier3 + self.na


@dataclass(frozen=True)
class RevenuePoint:
    year: str
    ca: float
    dependance: int


@dataclass(frozen=True)
class PreAwardAggregate(_AggregateMixin):
    phase: ClassVar[Phase] = "pre_award"
    CLASSIFIABLE: ClassVar[Dict[str, str]] = {
        "avg_ecosystem_score": "ecosystem_score",
        "avg_hse_score": "hse_score",
        "avg_sustainability_score": "sustainability_score",
        "avg_global_risk_level": "global_risk_level",
        "avg_dependance_jesa": "dependance_jesa",
        "avg_response_rate": "response_rate",
        "avg_technical_validation": "technical_validation_ratio",
        "avg_price_competitiveness": "price_competitiveness",
        "avg_awarding_rate": "awarding_rate",
    }

    vendor_count: int = 0
    avg_ecosystem_score: int = 0
    avg_hse_score: int = 0
    avg_sustainability_score: int = 0
    avg_compliance_rate: int = 0
    avg_global_risk_level: int = 0
    avg_response_rate: int = 0
    avg_technical_validation: int = 0
    avg_price_competitiveness: int = 0
    avg_awarding_rate: int = 0
    avg_jesa_scope: int = 0
    avg_dependance_jesa: int = 0
    total_trace_flags: int = 0
    total_db_flags: int = 0
    total_successful_awards: int = 0
    total_projects_ongoing: int = 0
    total_packages_ongoing: int = 0
    awarding_volume: float = 0.0
    revenue_trend: Tuple[RevenuePoint, ...] = ()
    tier_counts: TierCounts = field(default_factory=TierCounts)


@dataclass(frozen=True)
class DisciplineAverages:
    project_control: int = 0
    engineering: int = 0
    contract: int = 0
    c_and_c: int = 0
    pmqc: int = 0
    construction: int = 0
    material: int = 0


@dataclass(frozen=True)
class PostAwardAggregate(_AggregateMixin):
    phase: ClassVar[Phase] = "post_award"
    CLASSIFIABLE: ClassVar[Dict[str, str]] = {
        "avg_ncr_closure_time": "ncr_closure_time",
        "avg_score_closed": "average_score_closed",
        "avg_avenant_percentage": "avenant_percentage",
        "avg_reactivity_letters": "reactivity_letters",
        "avg_guarantee_renewal_time": "guarantee_renewal_time",
    }

    vendor_count: int = 0
    total_change_requests: int = 0
    total_change_requests_montant: float = 0
    total_claims: int = 0
    total_ncr_qor: int = 0
    total_ncr: int = 0
    total_qor: int = 0
    avg_ncr_closure_time: int = 0
    avg_score_closed: float = 0.0
    avg_score_closed_pct: int = 0
    avg_discipline_scores: DisciplineAverages = field(default_factory=DisciplineAverages)
    total_avenants: int = 0
    avg_avenant_percentage: int = 0
    total_contracts: int = 0
    total_contractants: int = 0
    avg_reactivity_letters: float = 0.0
    avg_guarantee_renewal_time: int = 0
    total_concession_requests: int = 0


@dataclass(frozen=True)
class OsdTotals:
    over: int = 0
    short: int = 0
    damaged: int = 0


@dataclass(frozen=True)
class ConformityTotals:
    conformant: int = 0
    non_conformant: int = 0
    pending: int = 0


@dataclass(frozen=True)
class MaterialAggregate(_AggregateMixin):
    phase: ClassVar[Phase] = "material"
    CLASSIFIABLE: ClassVar[Dict[str, str]] = {
        "avg_otif_score": "otif_score",
        "avg_compliance_percent": "compliance_percent",
        "avg_quality_score": "quality_score",
        "avg_ncr_process_flow": "ncr_process_flow",
        "avg_frais_approche": "frais_approche",
    }

    vendor_count: int = 0
    avg_otif_score: int = 0
    avg_compliance_percent: int = 0
    avg_quality_score: int = 0
    avg_ncr_process_flow: int = 0
    avg_frais_approche: float = 0.0
    total_planned: float = 0
    total_actual: float = 0
    total_osd: OsdTotals = field(default_factory=OsdTotals)
    total_conformity: ConformityTotals = field(default_factory=ConformityTotals)


AggregateKPIs = Union[PreAwardAggregate, PostAwardAggregate, MaterialAggregate]


# ---------------- aggregators ----------------

def tier_counts(vendors: Sequence[Vendor]) -> TierCounts:
    counts = {"Tier 1": 0, "Tier 2": 0, "Tier 3": 0}
    na = 0
    for v in vendors:
        if v.tiering in counts:
            counts[v.tiering] += 1
        else:
            na += 1
    return TierCounts(tier1=counts["Tier 1"], tier2=counts["Tier 2"], tier3=counts["Tier 3"], na=na)


def revenue_trend(vendors: Sequence[Vendor], frame: Optional[pd.DataFrame] = None) -> Tuple[RevenuePoint, ...]:
    """Mean revenue per year (1 dp) alongside mean JESA dependence."""
    frame = vendors_frame(vendors) if frame is None else frame
    dependance = _mean(frame, "dependance_jesa")
    return tuple(
        RevenuePoint(year=year, ca=_mean_1dp(frame, col), dependance=dependance)
        for year, col in zip(REVENUE_YEARS, REVENUE_COLUMNS)
    )


def aggregate_pre_award(vendors: Sequence[Vendor]) -> PreAwardAggregate:
    frame = vendors_frame(vendors)
    return PreAwardAggregate(
        vendor_count=len(frame),
        avg_ecosystem_score=_mean(frame, "ecosystem_score"),
        avg_hse_score=_mean(frame, "hse_score"),
        avg_sustainability_score=_mean(frame, "sustainability_score"),
        avg_compliance_rate=_mean(frame, "compliance_rate"),
        avg_global_risk_level=_mean(frame, "global_risk_level"),
        avg_response_rate=_mean(frame, "response_rate"),
        avg_technical_validation=_mean(frame, "technical_validation_ratio"),
        avg_price_competitiveness=_mean(frame, "price_competitiveness"),
        avg_awarding_rate=_mean(frame, "awarding_rate"),
        avg_jesa_scope=_mean(frame, "jesa_scope"),
        avg_dependance_jesa=_mean(frame, "dependance_jesa"),
        total_trace_flags=int(_total(frame, "trace_flagged")),
        total_db_flags=int(_total(frame, "db_flagged")),
        total_successful_awards=_total(frame, "successful_awards"),
        total_projects_ongoing=_total(frame, "projects_ongoing"),
        total_packages_ongoing=_total(frame, "packages_ongoing"),
        awarding_volume=float(_total(frame, "latest_revenue")),
        revenue_trend=revenue_trend(vendors, frame),
        tier_counts=tier_counts(vendors),
    )


def aggregate_post_award(vendors: Sequence[Vendor]) -> PostAwardAggregate:
    frame = vendors_frame(vendors)
    return PostAwardAggregate(
        vendor_count=len(frame),
        total_change_requests=_total(frame, "change_requests_count"),
        total_change_requests_montant=_total(frame, "change_requests_montant"),
        total_claims=_total(frame, "claims_count"),
        total_ncr_qor=_total(frame, "ncr_qor_count"),
        total_ncr=_total(frame, "ncr_count"),
        total_qor=_total(frame, "qor_count"),
        avg_ncr_closure_time=_mean(frame, "ncr_closure_time"),
        avg_score_closed=_mean_1dp(frame, "average_score_closed"),
        avg_score_closed_pct=closed_score_pct(_raw_mean(frame, "average_score_closed")),
        avg_discipline_scores=DisciplineAverages(**{d: _mean(frame, f"discipline_{d}") for d in DISCIPLINES}),
        total_avenants=_total(frame, "avenant_count"),
        avg_avenant_percentage=_mean(frame, "avenant_percentage"),
        total_contracts=_total(frame, "contracts_count"),
        total_contractants=_total(frame, "contractants_count"),
        avg_reactivity_letters=_mean_1dp(frame, "reactivity_letters"),
        avg_guarantee_renewal_time=_mean(frame, "guarantee_renewal_time"),
        total_concession_requests=_total(frame, "concession_requests"),
    )


def aggregate_material(vendors: Sequence[Vendor]) -> MaterialAggregate:
    frame = vendors_frame(vendors)
    return MaterialAggregate(
        vendor_count=len(frame),
        avg_otif_score=_mean(frame, "otif_score"),
        avg_compliance_percent=_mean(frame, "compliance_percent"),
        avg_quality_score=_mean(frame, "quality_score"),
        avg_ncr_process_flow=_mean(frame, "ncr_process_flow"),
        avg_frais_approche=_mean_1dp(frame, "frais_approche"),
        total_planned=_total(frame, "planned"),
        total_actual=_total(frame, "actual"),
        total_osd=OsdTotals(
            over=_total(frame, "osd_over"),
            short=_total(frame, "osd_short"),
            damaged=_total(frame, "osd_damaged"),
        ),
        total_conformity=ConformityTotals(
            conformant=_total(frame, "conformity_conformant"),
            non_conformant=_total(frame, "conformity_non_conformant"),
            pending=_total(frame, "conformity_pending"),
        ),
    )


AGGREGATORS = {
    "pre_award": aggregate_pre_award,
    "post_award": aggregate_post_award,
    "material": aggregate_material,
}


def aggregate(vendors: Sequence[Vendor], phase: Phase) -> AggregateKPIs:
    return AGGREGATORS[phase](vendors)


# ---------------- composites ----------------

def pre_award_score(agg: PreAwardAggregate) -> int:
    return round_int(
        (agg.avg_ecosystem_score + agg.avg_hse_score + agg.avg_sustainability_score + agg.avg_compliance_rate) / 4
    )


def delivery_variance(planned: float, actual: float) -> Optional[int]:
    """Percent deviation of actual from planned units; None when nothing was planned."""
    if not planned:
        return None
    return round_int(((actual - planned) / planned) * 100)


def closed_score_pct(avg_score_closed: float) -> int:
    """Percent of the 5-point scale; pass the unrounded mean."""
    return round_int((avg_score_closed / 5) * 100)


def tier_distribution(counts: TierCounts) -> Dict[str, int]:
    total = counts.total or 1
    return {
        "tier1": round_int(counts.tier1 / total * 100),
        "tier2": round_int(counts.tier2 / total * 100),
        "tier3": round_int(counts.tier3 / total * 100),
        "na": round_int(counts.na / total * 100),
    }


TIER_LABELS = dict(zip(["tier1", "tier2", "tier3"], TIERINGS), na="N/A")
