import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from core.data import filter_options, load_vendors, prepare_context
from core.filters import ALL, normalize_filters, normalize_multi_filters
from core.labels import TONE_COLORS, format_millions
from core.metrics_material import compute_material
from core.metrics_post_award import compute_post_award
from core.metrics_pre_award import compute_pre_award
from core.table import SORT_KEYS, sort_vendors, table_rows
from core.vendors import phase_frame

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .pill {border-radius: 12px;padding: 2px 8px;font-size: 0.8rem;color: #ffffff;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(raw: Dict[str, Any]) -> str:
    chips = []
    for key, label in [("vendor", "Vendor"), ("category", "Category"), ("bu", "BU"), ("tiering", "Tier"), ("region", "Region")]:
        value = raw.get(key) or ALL
        chips.append(f"{label}: {'All' if value == ALL else value}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def pill(text: str, level: str) -> str:
    return f"<span class='pill' style='background:{TONE_COLORS.get(level, '#6b7280')}'>{text}</span>"


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        st.caption(f"Last refresh: {date.today():%m/%d/%Y}")
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_vendor_table(vendors: List, phase: str, thresholds) -> None:
    keys = list(SORT_KEYS[phase])
    c1, c2 = st.columns([3, 1])
    sort_key = c1.selectbox("Sort by", ["(none)"] + keys, key=f"sort_{phase}")
    direction = c2.radio("Order", ["asc", "desc"], horizontal=True, key=f"dir_{phase}")
    ordered = sort_vendors(vendors, phase, None if sort_key == "(none)" else sort_key, direction)
    rows = table_rows(ordered, phase, thresholds)
    flat = [{k: (v["value"] if isinstance(v, dict) else v) for k, v in row.items()} for row in rows]
    levels = [{k: v["level"] for k, v in row.items() if isinstance(v, dict)} for row in rows]
    df = pd.DataFrame(flat)

    def _style(frame: pd.DataFrame) -> pd.DataFrame:
        styles = pd.DataFrame("", index=frame.index, columns=frame.columns)
        for i, row_levels in enumerate(levels):
            for col, level in row_levels.items():
                styles.iloc[i, frame.columns.get_loc(col)] = f"color: {TONE_COLORS[level]}; font-weight: 600"
        return styles

    st.dataframe(df.style.apply(_style, axis=None), use_container_width=True, hide_index=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Suppliers evaluation - 360 dashboard", layout="wide")
inject_base_styles()
st.title("Suppliers evaluation - 360 dashboard")
st.caption("Executive view")

vendors = load_vendors()
if not vendors:
    st.error("No vendor feed found. Place vendors.json under data/.")
    st.stop()

options = filter_options(vendors)

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Pre Award", "Post Award", "Material Management"], index=0)
    st.markdown("---")
    st.markdown("### Filters")
    if nav_choice == "Material Management":
        raw_filters = {
            "vendors": st.multiselect("Vendors", options["vendors"]),
            "categories": st.multiselect("Category", options["categories"]),
            "sub_categories": st.multiselect("Sub-category", options["sub_categories"]),
            "activities": st.multiselect("Activity", options["activities"]),
            "tierings": st.multiselect("Tiering", options["tierings"]),
            "regions": st.multiselect("Region", options["regions"]),
        }
    else:
        raw_filters = {
            "vendor": st.selectbox("Fournisseur", [ALL] + options["vendors"]),
            "category": st.selectbox("Category", [ALL] + options["categories"]),
            "sub_category": st.selectbox("Sous-category", [ALL] + options["sub_categories"]),
            "bu": st.selectbox("BU", [ALL] + options["business_units"]),
            "project": st.selectbox("Projects", [ALL] + options["projects"]),
            "tiering": st.selectbox("Tiering", [ALL] + options["tierings"]),
            "region": st.selectbox("Region", [ALL] + options["regions"]),
        }
    show_table = st.checkbox("Show vendor table", value=False)


def render_pre_award_page():
    filters = normalize_filters(raw_filters)
    ctx = prepare_context(filters, vendors)
    payload = compute_pre_award(filters, ctx)
    kpis, labels = payload["kpis"], payload["labels"]
    render_page_header(
        "Pre Award",
        "Suppliers evaluation / Pre Award",
        format_filter_summary(raw_filters),
        export_df=phase_frame(ctx["vendors_in_view"], "pre_award"),
        export_name="pre_award.csv",
    )

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Vendors in view", f"{payload['vendors_in_view']} / {payload['total_vendors']}")
    with c2:
        st.markdown(f"**{payload['vendor_label']}** ({payload['selected_tier']})")
        st.markdown(pill(labels["status"], labels["tone_level"]), unsafe_allow_html=True)
    c3.metric("Score Pre Award", f"{payload['score_pre_award']}%", help=labels["tone"])
    c4.metric("Vendor Global Risk", labels["risk"])

    cols = st.columns(4)
    for col, (name, score) in zip(cols, payload["scores"].items()):
        col.markdown(f"<div style='color:{score['color']};font-size:1.6rem;font-weight:700'>{score['value']}%</div>{name.upper()}", unsafe_allow_html=True)

    left, right = st.columns(2)
    with left:
        with card("Chiffre d'Affaire & JESA Dependence"):
            if "revenue_dependance" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["revenue_dependance"], use_container_width=True)
    with right:
        with card("Tiering"):
            if "tier_distribution" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["tier_distribution"], use_container_width=True)
        r1, r2, r3 = st.columns(3)
        r1.metric("Ongoing Bids", kpis["total_projects_ongoing"])
        r2.metric("Awarding Volume", format_millions(kpis["awarding_volume"]))
        r3.metric("Ongoing PO / Contracts", kpis["total_packages_ongoing"])
        r4, r5, _ = st.columns(3)
        r4.metric("Successful Awards", kpis["total_successful_awards"])
        r5.metric("% of JESA Scope", labels["jesa_scope"])

    if show_table:
        with card("Vendors"):
            render_vendor_table(ctx["vendors_in_view"], "pre_award", filters.thresholds)


def render_report_table(title: str, rows: List[Dict[str, Any]]):
    with card(title):
        if not rows:
            st.info("No open reports.")
            return
        df = pd.DataFrame(rows)[["contractor", "project", "status", "criticality", "discipline", "count"]]
        st.dataframe(df, use_container_width=True, hide_index=True)


def render_post_award_page():
    filters = normalize_filters(raw_filters)
    ctx = prepare_context(filters, vendors)
    payload = compute_post_award(filters, ctx)
    kpis, gauges = payload["kpis"], payload["gauges"]
    render_page_header(
        "Post Award",
        "Suppliers evaluation / Post Award",
        format_filter_summary(raw_filters),
        export_df=phase_frame(ctx["vendors_in_view"], "post_award"),
        export_name="post_award.csv",
    )

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Avenants", kpis["total_avenants"])
    c2.metric("Change Requests", kpis["total_change_requests"])
    c3.metric("Claims", kpis["total_claims"])
    c4.metric("Contracts", kpis["total_contracts"])
    c5.metric("Contractants", kpis["total_contractants"])

    g1, g2, g3 = st.columns(3)
    for col, (key, title) in zip(
        [g1, g2, g3],
        [
            ("avg_score_closed_pct", "Average Score Closed"),
            ("score_post_award_mm", "Score Post Award MM"),
            ("score_post_award_contract", "Score Post Award Contract"),
        ],
    ):
        gauge = gauges[key]
        col.markdown(f"<div style='color:{gauge['color']};font-size:1.6rem;font-weight:700'>{gauge['value']}%</div>{title}", unsafe_allow_html=True)

    if "discipline_scores" in payload["charts"]:
        with card("Discipline scores"):
            st.vega_lite_chart(payload["charts"]["discipline_scores"], use_container_width=True)

    left, right = st.columns(2)
    with left:
        render_report_table("NCR", payload["ncr_rows"])
    with right:
        render_report_table("QOR", payload["qor_rows"])

    if show_table:
        with card("Vendors"):
            render_vendor_table(ctx["vendors_in_view"], "post_award", filters.thresholds)


def render_material_page():
    filters = normalize_multi_filters(raw_filters)
    ctx = prepare_context(filters, vendors)
    filtered = ctx["filtered_vendors"]
    by_name = {v.name: v.id for v in filtered}
    focus = st.selectbox("Focus vendor", ["(all filtered)"] + list(by_name))
    payload = compute_material(filters, ctx, selected_vendor_id=by_name.get(focus))
    kpis, levels = payload["kpis"], payload["levels"]
    render_page_header(
        "Material Management",
        "Suppliers evaluation / Material Management",
        "",
        export_df=phase_frame(filtered, "material"),
        export_name="material.csv",
    )

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("OTIF Score", f"{kpis['avg_otif_score']}%")
    c2.metric("Compliance", f"{kpis['avg_compliance_percent']}%")
    c3.metric("Quality Score", f"{kpis['avg_quality_score']}%")
    c4.metric("NCR Process Flow", f"{kpis['avg_ncr_process_flow']}%")
    c5.metric("Frais d'Approche", f"{kpis['avg_frais_approche']:.1f}%")
    st.markdown(
        " ".join(pill(name.replace("_", " "), level) for name, level in levels.items()),
        unsafe_allow_html=True,
    )

    variance = payload["delivery_variance"]
    v1, v2, v3 = st.columns(3)
    v1.metric("Planned", f"{kpis['total_planned']:,}")
    v2.metric("Actual", f"{kpis['total_actual']:,}")
    v3.metric("Delivery variance", "N/A" if variance is None else f"{variance}%")

    left, right = st.columns(2)
    with left:
        with card("Planned vs Actual"):
            if "planned_vs_actual" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["planned_vs_actual"], use_container_width=True)
        with card("OSD"):
            st.dataframe(pd.DataFrame(payload["osd"]), use_container_width=True, hide_index=True)
    with right:
        with card("Conformity"):
            if "conformity" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["conformity"], use_container_width=True)
            else:
                st.info("No conformity data for the current selection.")

    if show_table:
        with card("Vendors"):
            render_vendor_table(filtered, "material", filters.thresholds)


if nav_choice == "Pre Award":
    render_pre_award_page()
elif nav_choice == "Post Award":
    render_post_award_page()
else:
    render_material_page()
