from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Tuple

import pandas as pd

Tiering = Literal["Tier 1", "Tier 2", "Tier 3"]
FlagStatus = Literal["clear", "flagged"]

TIERINGS: Tuple[str, ...] = ("Tier 1", "Tier 2", "Tier 3")
REVENUE_YEARS: Tuple[str, ...] = ("2022", "2023", "2024", "2025", "2026")


@dataclass(frozen=True)
class TraceReport:
    status: FlagStatus = "clear"
    details: str = ""


@dataclass(frozen=True)
class CreditScore:
    status: FlagStatus = "clear"
    score: float = 0
    details: str = ""


@dataclass(frozen=True)
class PreAwardKPIs:
    ecosystem_score: float = 0
    hse_score: float = 0
    sustainability_score: float = 0
    compliance_rate: float = 0
    global_risk_level: float = 0
    trace_report: TraceReport = field(default_factory=TraceReport)
    db_score: CreditScore = field(default_factory=CreditScore)
    chiffre_affaire: Tuple[float, ...] = ()
    dependance_jesa: float = 0
    production_capacity: float = 0
    open_capacity: float = 0
    response_rate: float = 0
    technical_validation_ratio: float = 0
    price_competitiveness: float = 0
    successful_awards: int = 0
    awarding_rate: float = 0
    responsiveness_technique: float = 0
    responsiveness_signature: float = 0
    jesa_scope: float = 0
    projects_ongoing: int = 0
    packages_ongoing: int = 0

    def revenue_at(self, idx: int) -> float:
        """Revenue point for a year index; 0 when the series is shorter."""
        if 0 <= idx < len(self.chiffre_affaire):
            return self.chiffre_affaire[idx]
        return 0

    @property
    def latest_revenue(self) -> float:
        return self.chiffre_affaire[-1] if self.chiffre_affaire else 0

    @property
    def mean_revenue(self) -> float:
        if not self.chiffre_affaire:
            return 0
        return sum(self.chiffre_affaire) / len(self.chiffre_affaire)


@dataclass(frozen=True)
class DisciplineScores:
    project_control: float = 0
    engineering: float = 0
    contract: float = 0
    c_and_c: float = 0
    pmqc: float = 0
    construction: float = 0
    material: float = 0


@dataclass(frozen=True)
class PostAwardKPIs:
    change_requests_count: int = 0
    change_requests_montant: float = 0
    claims_count: int = 0
    ncr_qor_count: int = 0
    ncr_count: int = 0
    qor_count: int = 0
    ncr_closure_time: float = 0
    average_score_closed: float = 0
    discipline_scores: DisciplineScores = field(default_factory=DisciplineScores)
    avenant_count: int = 0
    avenant_percentage: float = 0
    contracts_count: int = 0
    contractants_count: int = 0
    reactivity_letters: float = 0
    guarantee_renewal_time: float = 0
    concession_requests: int = 0


@dataclass(frozen=True)
class PlannedVsActual:
    planned: float = 0
    actual: float = 0


@dataclass(frozen=True)
class OsdCounts:
    over: int = 0
    short: int = 0
    damaged: int = 0


@dataclass(frozen=True)
class ConformityCounts:
    conformant: int = 0
    non_conformant: int = 0
    pending: int = 0


@dataclass(frozen=True)
class MaterialManagementKPIs:
    otif_score: float = 0
    planned_vs_actual: PlannedVsActual = field(default_factory=PlannedVsActual)
    compliance_percent: float = 0
    quality_score: float = 0
    ncr_process_flow: float = 0
    frais_approche: float = 0
    osd: OsdCounts = field(default_factory=OsdCounts)
    conformity: ConformityCounts = field(default_factory=ConformityCounts)


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str
    category: str = ""
    sub_category: str = ""
    activity: str = ""
    bu: str = ""
    project: str = ""
    tiering: str = "Tier 3"
    region: str = ""
    pre_award: PreAwardKPIs = field(default_factory=PreAwardKPIs)
    post_award: PostAwardKPIs = field(default_factory=PostAwardKPIs)
    material: MaterialManagementKPIs = field(default_factory=MaterialManagementKPIs)


# ---------- flat frame ----------

PRE_AWARD_COLUMNS = [
    "ecosystem_score",
    "hse_score",
    "sustainability_score",
    "compliance_rate",
    "global_risk_level",
    "dependance_jesa",
    "production_capacity",
    "open_capacity",
    "response_rate",
    "technical_validation_ratio",
    "price_competitiveness",
    "successful_awards",
    "awarding_rate",
    "responsiveness_technique",
    "responsiveness_signature",
    "jesa_scope",
    "projects_ongoing",
    "packages_ongoing",
]
POST_AWARD_COLUMNS = [
    "change_requests_count",
    "change_requests_montant",
    "claims_count",
    "ncr_qor_count",
    "ncr_count",
    "qor_count",
    "ncr_closure_time",
    "average_score_closed",
    "avenant_count",
    "avenant_percentage",
    "contracts_count",
    "contractants_count",
    "reactivity_letters",
    "guarantee_renewal_time",
    "concession_requests",
]
DISCIPLINES = ["project_control", "engineering", "contract", "c_and_c", "pmqc", "construction", "material"]
MATERIAL_COLUMNS = [
    "otif_score",
    "compliance_percent",
    "quality_score",
    "ncr_process_flow",
    "frais_approche",
]
IDENTITY_COLUMNS = ["id", "name", "category", "sub_category", "activity", "bu", "project", "tiering", "region"]
REVENUE_COLUMNS = [f"ca_{idx}" for idx in range(len(REVENUE_YEARS))]

FRAME_COLUMNS: List[str] = (
    IDENTITY_COLUMNS
    + PRE_AWARD_COLUMNS
    + ["trace_flagged", "db_flagged", "db_score", "latest_revenue"]
    + REVENUE_COLUMNS
    + POST_AWARD_COLUMNS
    + [f"discipline_{d}" for d in DISCIPLINES]
    + MATERIAL_COLUMNS
    + ["planned", "actual"]
    + ["osd_over", "osd_short", "osd_damaged"]
    + ["conformity_conformant", "conformity_non_conformant", "conformity_pending"]
)


def vendor_record(vendor: Vendor) -> Dict[str, Any]:
    """Flatten one vendor into a single row keyed by `FRAME_COLUMNS`."""
    pre, post, mat = vendor.pre_award, vendor.post_award, vendor.material
    row: Dict[str, Any] = {col: getattr(vendor, col) for col in IDENTITY_COLUMNS}
    row.update({col: getattr(pre, col) for col in PRE_AWARD_COLUMNS})
    row["trace_flagged"] = pre.trace_report.status == "flagged"
    row["db_flagged"] = pre.db_score.status == "flagged"
    row["db_score"] = pre.db_score.score
    row["latest_revenue"] = pre.latest_revenue
    for idx, col in enumerate(REVENUE_COLUMNS):
        row[col] = pre.revenue_at(idx)
    row.update({col: getattr(post, col) for col in POST_AWARD_COLUMNS})
    row.update({f"discipline_{d}": getattr(post.discipline_scores, d) for d in DISCIPLINES})
    row.update({col: getattr(mat, col) for col in MATERIAL_COLUMNS})
    row["planned"] = mat.planned_vs_actual.planned
    row["actual"] = mat.planned_vs_actual.actual
    row["osd_over"] = mat.osd.over
    row["osd_short"] = mat.osd.short
    row["osd_damaged"] = mat.osd.damaged
    row["conformity_conformant"] = mat.conformity.conformant
    row["conformity_non_conformant"] = mat.conformity.non_conformant
    row["conformity_pending"] = mat.conformity.pending
    return row


def vendors_frame(vendors: Iterable[Vendor]) -> pd.DataFrame:
    rows = [vendor_record(v) for v in vendors]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


PHASE_COLUMNS: Dict[str, List[str]] = {
    "pre_award": PRE_AWARD_COLUMNS + ["trace_flagged", "db_flagged", "db_score", "latest_revenue"] + REVENUE_COLUMNS,
    "post_award": POST_AWARD_COLUMNS + [f"discipline_{d}" for d in DISCIPLINES],
    "material": MATERIAL_COLUMNS
    + ["planned", "actual", "osd_over", "osd_short", "osd_damaged"]
    + ["conformity_conformant", "conformity_non_conformant", "conformity_pending"],
}


def phase_frame(vendors: Iterable[Vendor], phase: str) -> pd.DataFrame:
    """Identity columns plus the KPI columns of one phase."""
    return vendors_frame(vendors)[IDENTITY_COLUMNS + PHASE_COLUMNS[phase]]
