from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.aggregates import TIER_LABELS, aggregate_pre_award, pre_award_score, tier_distribution
from core.charts import to_vega_spec
from core.filters import ALL, DashboardFilters
from core.labels import (
    format_millions,
    overall_status_label,
    risk_label,
    score_color,
    stable_display_value,
    status_tone,
    tone_for_status,
)
from core.vendors import Vendor


def compute_pre_award(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    all_vendors: List[Vendor] = ctx.get("vendors", [])
    view: List[Vendor] = ctx.get("vendors_in_view", [])

    agg = aggregate_pre_award(view)
    score = pre_award_score(agg)
    status = status_tone(score)
    tier_pct = tier_distribution(agg.tier_counts)

    selected_tier = view[0].tiering if len(view) == 1 else stable_display_value(v.tiering for v in view)
    vendor_label = filters.vendor if filters.vendor != ALL else "All vendors"

    scores = {
        "hse": agg.avg_hse_score,
        "ecosystem": agg.avg_ecosystem_score,
        "sustainability": agg.avg_sustainability_score,
        "compliance": agg.avg_compliance_rate,
    }

    charts: Dict[str, Any] = {}
    if view:
        trend = pd.DataFrame([asdict(p) for p in agg.revenue_trend])
        base = alt.Chart(trend).encode(x=alt.X("year:O", title="Year", axis=alt.Axis(grid=False)))
        ca_bars = base.mark_bar(opacity=0.8).encode(
            y=alt.Y("ca:Q", title="Chiffre d'Affaire (M)", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=["year", alt.Tooltip("ca:Q", title="CA (M)", format=".1f")],
        )
        dep_line = base.mark_line(point=True, color="#f59e0b").encode(
            y=alt.Y("dependance:Q", title="JESA Dependence (%)"),
            tooltip=["year", alt.Tooltip("dependance:Q", title="Dependence %")],
        )
        charts["revenue_dependance"] = to_vega_spec(alt.layer(ca_bars, dep_line).resolve_scale(y="independent"))

        score_df = pd.DataFrame(
            [{"metric": k, "score": v, "color": score_color(v)} for k, v in scores.items()]
        )
        charts["scores"] = to_vega_spec(
            alt.Chart(score_df)
            .mark_bar()
            .encode(
                x=alt.X("metric:N", title=None, sort=list(scores)),
                y=alt.Y("score:Q", title="Score"),
                color=alt.Color("color:N", scale=None),
                tooltip=["metric", "score"],
            )
        )

        tier_df = pd.DataFrame([{"tier": TIER_LABELS[k], "pct": v} for k, v in tier_pct.items()])
        charts["tier_distribution"] = to_vega_spec(
            alt.Chart(tier_df)
            .mark_bar()
            .encode(
                x=alt.X("pct:Q", title="% of vendors"),
                y=alt.Y("tier:N", title=None, sort=list(TIER_LABELS.values())),
                tooltip=["tier", alt.Tooltip("pct:Q", format="d")],
            )
        )

    return {
        "filters": asdict(filters),
        "vendors_in_view": len(view),
        "total_vendors": len(all_vendors),
        "vendor_label": vendor_label,
        "selected_tier": selected_tier,
        "kpis": agg.as_dict(),
        "scores": {k: {"value": v, "color": score_color(v)} for k, v in scores.items()},
        "score_pre_award": score,
        "labels": {
            "status": overall_status_label(score),
            "tone": status,
            "tone_level": tone_for_status(status),
            "risk": risk_label(agg.avg_global_risk_level),
            "awarding_volume": format_millions(agg.awarding_volume),
            "jesa_scope": f"{agg.avg_jesa_scope}%",
        },
        "levels": agg.levels(filters.thresholds),
        "tier_distribution": tier_pct,
        "charts": charts,
    }
