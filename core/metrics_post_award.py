from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.aggregates import aggregate_post_award
from core.charts import to_vega_spec
from core.filters import DashboardFilters
from core.labels import (
    criticality_to_tone,
    discipline_for_category,
    discipline_score_color,
    gauge_color,
    ncr_criticality,
    ncr_status,
    status_to_tone,
)
from core.vendors import Vendor


def report_rows(vendors: List[Vendor], attr: str) -> List[Dict[str, Any]]:
    """NCR / QOR follow-up rows for vendors with at least one report."""
    rows = []
    for v in vendors:
        count = getattr(v.post_award, attr)
        if count <= 0:
            continue
        status = ncr_status(count)
        criticality = ncr_criticality(count)
        rows.append(
            {
                "contractor": v.name,
                "project": v.project,
                "status": status,
                "status_tone": status_to_tone(status),
                "criticality": criticality,
                "criticality_tone": criticality_to_tone(criticality),
                "discipline": discipline_for_category(v.category),
                "count": count,
            }
        )
    return rows


def compute_post_award(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    all_vendors: List[Vendor] = ctx.get("vendors", [])
    view: List[Vendor] = ctx.get("vendors_in_view", [])

    agg = aggregate_post_award(view)
    closed_pct = agg.avg_score_closed_pct
    score_mm = agg.avg_discipline_scores.material
    score_contract = agg.avg_discipline_scores.contract

    charts: Dict[str, Any] = {}
    if view:
        disc = pd.DataFrame(
            [
                {"discipline": name, "score": value, "level": discipline_score_color(value)}
                for name, value in asdict(agg.avg_discipline_scores).items()
            ]
        )
        hover = alt.selection_point(fields=["discipline"], on="mouseover", empty="all")
        charts["discipline_scores"] = to_vega_spec(
            alt.Chart(disc)
            .mark_bar()
            .encode(
                x=alt.X("discipline:N", title="Discipline", axis=alt.Axis(grid=False)),
                y=alt.Y("score:Q", title="Average score", scale=alt.Scale(domain=[0, 100])),
                color=alt.Color(
                    "level:N",
                    scale=alt.Scale(domain=["green", "yellow", "red"], range=["#10b981", "#f59e0b", "#ef4444"]),
                    legend=None,
                ),
                opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
                tooltip=["discipline", "score"],
            )
            .add_params(hover)
        )

    return {
        "filters": asdict(filters),
        "vendors_in_view": len(view),
        "total_vendors": len(all_vendors),
        "kpis": agg.as_dict(),
        "gauges": {
            "avg_score_closed_pct": {"value": closed_pct, "color": gauge_color(closed_pct)},
            "score_post_award_mm": {"value": score_mm, "color": gauge_color(score_mm)},
            "score_post_award_contract": {"value": score_contract, "color": gauge_color(score_contract)},
        },
        "levels": agg.levels(filters.thresholds),
        "ncr_rows": report_rows(view, "ncr_count"),
        "qor_rows": report_rows(view, "qor_count"),
        "charts": charts,
    }
