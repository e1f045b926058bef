from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Optional

import altair as alt
import pandas as pd

from core.aggregates import aggregate_material, delivery_variance
from core.charts import to_vega_spec
from core.data import find_vendor
from core.filters import MultiSelectFilters
from core.table import sort_vendors, table_rows
from core.vendors import Vendor

View = Literal["overview", "table"]

CONFORMITY_COLORS = ["#10b981", "#ef4444", "#f59e0b"]


def compute_material(
    filters: MultiSelectFilters,
    ctx: Dict[str, Any],
    *,
    view: View = "overview",
    selected_vendor_id: Optional[str] = None,
    sort_key: Optional[str] = None,
    direction: Optional[str] = None,
) -> Dict[str, Any]:
    # No fallback here: an empty filter result shows zeroed KPIs.
    filtered: List[Vendor] = ctx.get("filtered_vendors", [])

    if view == "table":
        ordered = sort_vendors(filtered, "material", sort_key, direction)
        return {
            "filters": asdict(filters),
            "view": view,
            "selected_vendor_id": selected_vendor_id,
            "rows": table_rows(ordered, "material", filters.thresholds),
        }

    selected = find_vendor(ctx.get("vendors", []), selected_vendor_id)
    agg = aggregate_material([selected] if selected is not None else filtered)
    variance = delivery_variance(agg.total_planned, agg.total_actual)

    chart_vendors = [selected] if selected is not None else filtered[:6]
    planned_rows = [
        {
            "name": v.name.split(" ")[0],
            "planned": v.material.planned_vs_actual.planned,
            "actual": v.material.planned_vs_actual.actual,
        }
        for v in chart_vendors
    ]
    osd_rows = [
        {"type": "Over", "count": agg.total_osd.over},
        {"type": "Short", "count": agg.total_osd.short},
        {"type": "Damaged", "count": agg.total_osd.damaged},
    ]
    conformity_rows = [
        {"name": "Conformant", "value": agg.total_conformity.conformant},
        {"name": "Non-Conformant", "value": agg.total_conformity.non_conformant},
        {"name": "Pending", "value": agg.total_conformity.pending},
    ]

    charts: Dict[str, Any] = {}
    if planned_rows:
        long_df = pd.DataFrame(planned_rows).melt(id_vars="name", var_name="series", value_name="units")
        charts["planned_vs_actual"] = to_vega_spec(
            alt.Chart(long_df)
            .mark_bar()
            .encode(
                x=alt.X("name:N", title=None, axis=alt.Axis(grid=False)),
                xOffset="series:N",
                y=alt.Y("units:Q", title="Units", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
                color=alt.Color("series:N", title=None),
                tooltip=["name", "series", alt.Tooltip("units:Q", format=",")],
            )
        )
    if sum(r["value"] for r in conformity_rows):
        charts["conformity"] = to_vega_spec(
            alt.Chart(pd.DataFrame(conformity_rows))
            .mark_arc(innerRadius=50)
            .encode(
                theta="value:Q",
                color=alt.Color(
                    "name:N",
                    scale=alt.Scale(domain=[r["name"] for r in conformity_rows], range=CONFORMITY_COLORS),
                ),
                tooltip=["name", alt.Tooltip("value:Q", format=",")],
            )
        )

    return {
        "filters": asdict(filters),
        "view": view,
        "selected_vendor_id": selected.id if selected is not None else None,
        "vendors_in_view": len(filtered),
        "kpis": agg.as_dict(),
        "delivery_variance": variance,
        "levels": agg.levels(filters.thresholds),
        "planned_vs_actual": planned_rows,
        "osd": osd_rows,
        "conformity": conformity_rows,
        "charts": charts,
    }
