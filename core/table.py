from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Tuple, Union

from core.classify import PerformanceLevel, classify_metric
from core.data import round_half_up
from core.filters import Thresholds
from core.labels import discipline_score_color
from core.vendors import DISCIPLINES, Vendor

SortDirection = Optional[Literal["asc", "desc"]]
SortValue = Union[str, float]
KeyFunc = Callable[[Vendor], SortValue]

_IDENTITY_KEYS: Dict[str, KeyFunc] = {
    "name": lambda v: v.name,
    "tiering": lambda v: v.tiering,
    "region": lambda v: v.region,
}

_PRE_AWARD_METRICS = [
    "ecosystem_score",
    "hse_score",
    "sustainability_score",
    "global_risk_level",
    "response_rate",
    "technical_validation_ratio",
    "price_competitiveness",
    "awarding_rate",
    "successful_awards",
    "projects_ongoing",
    "packages_ongoing",
    "responsiveness_technique",
    "responsiveness_signature",
    "jesa_scope",
    "dependance_jesa",
    "production_capacity",
    "open_capacity",
]
_POST_AWARD_METRICS = [
    "change_requests_count",
    "claims_count",
    "ncr_count",
    "qor_count",
    "ncr_closure_time",
    "average_score_closed",
    "avenant_count",
    "avenant_percentage",
    "contracts_count",
    "reactivity_letters",
    "guarantee_renewal_time",
    "concession_requests",
]
_MATERIAL_METRICS = ["otif_score", "compliance_percent", "quality_score", "ncr_process_flow", "frais_approche"]


def _pre(metric: str) -> KeyFunc:
    return lambda v: getattr(v.pre_award, metric)


def _post(metric: str) -> KeyFunc:
    return lambda v: getattr(v.post_award, metric)


def _discipline(name: str) -> KeyFunc:
    return lambda v: getattr(v.post_award.discipline_scores, name)


def _mat(metric: str) -> KeyFunc:
    return lambda v: getattr(v.material, metric)


SORT_KEYS: Dict[str, Dict[str, KeyFunc]] = {
    "pre_award": {**_IDENTITY_KEYS, **{m: _pre(m) for m in _PRE_AWARD_METRICS}},
    "post_award": {
        "name": _IDENTITY_KEYS["name"],
        "tiering": _IDENTITY_KEYS["tiering"],
        **{m: _post(m) for m in _POST_AWARD_METRICS},
        **{f"discipline_{d}": _discipline(d) for d in DISCIPLINES},
    },
    "material": {
        "name": _IDENTITY_KEYS["name"],
        "tiering": _IDENTITY_KEYS["tiering"],
        **{m: _mat(m) for m in _MATERIAL_METRICS},
    },
}

# Columns shown with a performance tier next to the value.
CLASSIFIED_COLUMNS: Dict[str, List[str]] = {
    "pre_award": [
        "ecosystem_score",
        "hse_score",
        "sustainability_score",
        "global_risk_level",
        "response_rate",
        "technical_validation_ratio",
        "price_competitiveness",
        "awarding_rate",
    ],
    "post_award": [
        "change_requests_count",
        "claims_count",
        "ncr_closure_time",
        "average_score_closed",
        "avenant_percentage",
        "reactivity_letters",
        "guarantee_renewal_time",
    ],
    "material": _MATERIAL_METRICS,
}


def sort_vendors(vendors: Sequence[Vendor], phase: str, key: Optional[str], direction: SortDirection) -> List[Vendor]:
    if not key or not direction:
        return list(vendors)
    try:
        key_func = SORT_KEYS[phase][key]
    except KeyError:
        raise KeyError(f"Unknown sort key {key!r} for {phase}") from None

    def _key(v: Vendor) -> SortValue:
        value = key_func(v)
        return value.lower() if isinstance(value, str) else value

    return sorted(vendors, key=_key, reverse=direction == "desc")


def next_sort_state(current_key: Optional[str], current_direction: SortDirection, clicked: str) -> Tuple[Optional[str], SortDirection]:
    """Header click cycle: asc -> desc -> unsorted; another column restarts at asc."""
    if current_key != clicked:
        return clicked, "asc"
    if current_direction == "asc":
        return clicked, "desc"
    if current_direction == "desc":
        return None, None
    return clicked, "asc"


def toggle_selection(selected_id: Optional[str], vendor: Vendor) -> Optional[str]:
    return None if selected_id == vendor.id else vendor.id


def _cell(value: float, metric: str, thresholds: Thresholds) -> Dict[str, Any]:
    level: PerformanceLevel = classify_metric(metric, value, thresholds)
    return {"value": value, "level": level}


def table_rows(vendors: Sequence[Vendor], phase: str, thresholds: Thresholds) -> List[Dict[str, Any]]:
    if phase not in SORT_KEYS:
        raise KeyError(f"Unknown phase {phase!r}")
    classified = set(CLASSIFIED_COLUMNS[phase])
    rows: List[Dict[str, Any]] = []
    for v in vendors:
        row: Dict[str, Any] = {"id": v.id, "name": v.name, "tiering": v.tiering, "region": v.region}
        for key, func in SORT_KEYS[phase].items():
            if key in row:
                continue
            value = func(v)
            row[key] = _cell(value, key, thresholds) if key in classified else value
        if phase == "pre_award":
            row["trace_status"] = v.pre_award.trace_report.status
            row["db_status"] = v.pre_award.db_score.status
            row["db_score"] = v.pre_award.db_score.score
            row["avg_ca"] = round_half_up(v.pre_award.mean_revenue, 1)
        elif phase == "post_award":
            for d in DISCIPLINES:
                row[f"discipline_{d}_color"] = discipline_score_color(row[f"discipline_{d}"])
        else:
            row["planned"] = v.material.planned_vs_actual.planned
            row["actual"] = v.material.planned_vs_actual.actual
            row["osd_over"] = v.material.osd.over
            row["osd_short"] = v.material.osd.short
            row["osd_damaged"] = v.material.osd.damaged
        rows.append(row)
    return rows
