from __future__ import annotations

import json
import logging
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from core.filters import FilterSpec, filter_vendors, normalize_filters
from core.vendors import (
    TIERINGS,
    ConformityCounts,
    CreditScore,
    DisciplineScores,
    MaterialManagementKPIs,
    OsdCounts,
    PlannedVsActual,
    PostAwardKPIs,
    PreAwardKPIs,
    TraceReport,
    Vendor,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
VENDOR_FEED_PATH = DATA_DIR / "vendors.json"

VENDOR_FEED_KEYS = {
    "id": "id",
    "name": "name",
    "category": "category",
    "subCategory": "sub_category",
    "activity": "activity",
    "bu": "bu",
    "project": "project",
    "tiering": "tiering",
    "region": "region",
}

PRE_AWARD_FEED_KEYS = {
    "ecosystemScore": "ecosystem_score",
    "hseScore": "hse_score",
    "sustainabilityScore": "sustainability_score",
    "complianceRate": "compliance_rate",
    "globalRiskLevel": "global_risk_level",
    "dependanceJesa": "dependance_jesa",
    "productionCapacity": "production_capacity",
    "openCapacity": "open_capacity",
    "responseRate": "response_rate",
    "technicalValidationRatio": "technical_validation_ratio",
    "priceCompetitiveness": "price_competitiveness",
    "successfulAwards": "successful_awards",
    "awardingRate": "awarding_rate",
    "responsivenesseTechnique": "responsiveness_technique",
    "responsivenessSignature": "responsiveness_signature",
    "jesaScope": "jesa_scope",
    "projectsOngoing": "projects_ongoing",
    "packagesOngoing": "packages_ongoing",
}

POST_AWARD_FEED_KEYS = {
    "changeRequestsCount": "change_requests_count",
    "changeRequestsMontant": "change_requests_montant",
    "claimsCount": "claims_count",
    "ncrQorCount": "ncr_qor_count",
    "ncrCount": "ncr_count",
    "qorCount": "qor_count",
    "ncrClosureTime": "ncr_closure_time",
    "averageScoreClosed": "average_score_closed",
    "avenantCount": "avenant_count",
    "avenantPercentage": "avenant_percentage",
    "contractsCount": "contracts_count",
    "contractantsCount": "contractants_count",
    "reactivityLetters": "reactivity_letters",
    "guaranteeRenewalTime": "guarantee_renewal_time",
    "concessionRequests": "concession_requests",
}

DISCIPLINE_FEED_KEYS = {
    "projectControl": "project_control",
    "engineering": "engineering",
    "contract": "contract",
    "cAndC": "c_and_c",
    "pmqc": "pmqc",
    "construction": "construction",
    "material": "material",
}

MATERIAL_FEED_KEYS = {
    "otifScore": "otif_score",
    "compliancePercent": "compliance_percent",
    "qualityScore": "quality_score",
    "ncrProcessFlow": "ncr_process_flow",
    "fraisApproche": "frais_approche",
}


class VendorFeedError(ValueError):
    """Raised when the vendor feed is missing a required field."""


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round_int(value: object) -> int:
    """Nearest integer, halves toward +inf (-4.5 -> -4, 4.5 -> 5)."""
    if value is None or pd.isna(value):
        return 0
    d = Decimal(str(value))
    if d < 0:
        return -int(abs(d).quantize(Decimal(1), rounding=ROUND_HALF_DOWN))
    return int(d.quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ---------------- feed parsing ----------------

def _require(record: Mapping[str, Any], key: str, where: str) -> Any:
    try:
        return record[key]
    except (KeyError, TypeError):
        raise VendorFeedError(f"{where}: missing field {key!r}") from None


def _mapped(record: Mapping[str, Any], keys: Dict[str, str], where: str) -> Dict[str, Any]:
    return {attr: _require(record, key, where) for key, attr in keys.items()}


def parse_vendor(record: Mapping[str, Any]) -> Vendor:
    where = f"vendor {record.get('id', '?')}" if isinstance(record, Mapping) else "vendor ?"
    identity = _mapped(record, VENDOR_FEED_KEYS, where)

    pre_raw = _require(record, "preAward", where)
    trace_raw = _require(pre_raw, "traceReport", f"{where}.preAward")
    db_raw = _require(pre_raw, "dbScore", f"{where}.preAward")
    pre = PreAwardKPIs(
        **_mapped(pre_raw, PRE_AWARD_FEED_KEYS, f"{where}.preAward"),
        trace_report=TraceReport(status=trace_raw.get("status", "clear"), details=trace_raw.get("details", "")),
        db_score=CreditScore(
            status=db_raw.get("status", "clear"),
            score=db_raw.get("score", 0),
            details=db_raw.get("details", ""),
        ),
        chiffre_affaire=tuple(float(x) for x in (pre_raw.get("chiffreAffaire") or [])),
    )

    post_raw = _require(record, "postAward", where)
    disc_raw = _require(post_raw, "disciplineScores", f"{where}.postAward")
    post = PostAwardKPIs(
        **_mapped(post_raw, POST_AWARD_FEED_KEYS, f"{where}.postAward"),
        discipline_scores=DisciplineScores(**_mapped(disc_raw, DISCIPLINE_FEED_KEYS, f"{where}.disciplineScores")),
    )

    mat_raw = _require(record, "materialManagement", where)
    pva = _require(mat_raw, "plannedVsActual", f"{where}.materialManagement")
    osd = _require(mat_raw, "osdData", f"{where}.materialManagement")
    conf = _require(mat_raw, "conformityData", f"{where}.materialManagement")
    mat = MaterialManagementKPIs(
        **_mapped(mat_raw, MATERIAL_FEED_KEYS, f"{where}.materialManagement"),
        planned_vs_actual=PlannedVsActual(planned=pva.get("planned", 0), actual=pva.get("actual", 0)),
        osd=OsdCounts(over=osd.get("over", 0), short=osd.get("short", 0), damaged=osd.get("damaged", 0)),
        conformity=ConformityCounts(
            conformant=conf.get("conformant", 0),
            non_conformant=conf.get("nonConformant", 0),
            pending=conf.get("pending", 0),
        ),
    )
    return Vendor(**identity, pre_award=pre, post_award=post, material=mat)


def parse_vendors(records: Sequence[Mapping[str, Any]]) -> Tuple[Vendor, ...]:
    return tuple(parse_vendor(r) for r in records)


def file_signature(path: Path) -> Tuple[str, float]:
    return (str(path), path.stat().st_mtime)


@lru_cache(maxsize=4)
def _load_vendors_cached(signature: Tuple[str, float]) -> Tuple[Vendor, ...]:
    path = Path(signature[0])
    with path.open(encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise VendorFeedError(f"{path.name}: expected a JSON array of vendors")
    vendors = parse_vendors(records)
    logger.info("Loaded %d vendors from %s", len(vendors), path.name)
    return vendors


def load_vendors(path: Optional[Path] = None) -> Tuple[Vendor, ...]:
    path = Path(path) if path is not None else VENDOR_FEED_PATH
    if not path.exists():
        logger.warning("Vendor feed %s not found", path)
        return ()
    return _load_vendors_cached(file_signature(path))


# ---------------- context ----------------

def _distinct(values) -> List[str]:
    out: List[str] = []
    for v in values:
        if v not in out:
            out.append(v)
    return out


def filter_options(vendors: Sequence[Vendor]) -> Dict[str, List[str]]:
    return {
        "vendors": sorted(v.name for v in vendors),
        "categories": _distinct(v.category for v in vendors),
        "sub_categories": _distinct(v.sub_category for v in vendors),
        "activities": _distinct(v.activity for v in vendors),
        "business_units": _distinct(v.bu for v in vendors),
        "projects": _distinct(v.project for v in vendors),
        "tierings": list(TIERINGS),
        "regions": _distinct(v.region for v in vendors),
    }


def vendors_in_view(filtered: Sequence[Vendor], all_vendors: Sequence[Vendor]) -> List[Vendor]:
    """Dashboard policy: an empty filter result shows the whole collection.

    The filter itself never falls back; pages that prefer empty aggregates
    (material) use the filtered list directly.
    """
    return list(filtered) if filtered else list(all_vendors)


def find_vendor(vendors: Sequence[Vendor], vendor_id: Optional[str]) -> Optional[Vendor]:
    if not vendor_id:
        return None
    for v in vendors:
        if v.id == vendor_id:
            return v
    return None


def prepare_context(filters: dict | FilterSpec, vendors: Sequence[Vendor]) -> Dict[str, object]:
    filt = filters if not isinstance(filters, dict) else normalize_filters(filters)
    filtered = filter_vendors(vendors, filt)
    return {
        "filters": filt,
        "vendors": list(vendors),
        "filtered_vendors": filtered,
        "vendors_in_view": vendors_in_view(filtered, vendors),
    }
