"""
Tests for the page payloads assembled from filters, aggregates and labels.
"""

from core.data import prepare_context
from core.filters import DashboardFilters, MultiSelectFilters, normalize_thresholds
from core.labels import COLOR_WARNING
from core.metrics_material import compute_material
from core.metrics_post_award import compute_post_award, report_rows
from core.metrics_pre_award import compute_pre_award


def _pre(vendors, **filters):
    f = DashboardFilters(**filters)
    return compute_pre_award(f, prepare_context(f, vendors))


def _post(vendors, **filters):
    f = DashboardFilters(**filters)
    return compute_post_award(f, prepare_context(f, vendors))


def _material(vendors, filters=None, **kwargs):
    f = filters or MultiSelectFilters()
    return compute_material(f, prepare_context(f, vendors), **kwargs)


class TestPreAwardPayload:
    def test_all_vendors(self, vendors):
        payload = _pre(vendors)
        assert payload["vendors_in_view"] == 9
        assert payload["total_vendors"] == 9
        assert payload["vendor_label"] == "All vendors"
        assert payload["selected_tier"] == "All"
        assert payload["score_pre_award"] == 87
        assert payload["labels"]["status"] == "Good"
        assert payload["labels"]["tone"] == "Good"
        assert payload["labels"]["tone_level"] == "green"
        assert payload["labels"]["risk"] == "Medium"
        assert payload["labels"]["awarding_volume"] == "162.2M"
        assert payload["labels"]["jesa_scope"] == "13%"
        assert payload["tier_distribution"]["tier1"] == 56
        assert payload["kpis"]["phase"] == "pre_award"

    def test_single_vendor(self, vendors):
        payload = _pre(vendors, vendor="Acme Industrial Corp")
        assert payload["vendors_in_view"] == 1
        assert payload["vendor_label"] == "Acme Industrial Corp"
        assert payload["selected_tier"] == "Tier 1"
        assert payload["labels"]["risk"] == "Low"
        assert payload["kpis"]["avg_ecosystem_score"] == 107

    def test_scores_above_hundred_get_distinct_color(self, vendors):
        payload = _pre(vendors, vendor="Apex Performance Group")
        assert payload["scores"]["hse"]["value"] == 124
        assert payload["scores"]["hse"]["color"] == "#3b82f6"

    def test_empty_filter_falls_back_to_all(self, vendors):
        payload = _pre(vendors, region="Nowhere")
        assert payload["vendors_in_view"] == 9
        assert payload["score_pre_award"] == 87

    def test_charts(self, vendors):
        charts = _pre(vendors)["charts"]
        assert {"revenue_dependance", "scores", "tier_distribution"} <= set(charts)
        assert "layer" in charts["revenue_dependance"]


class TestPostAwardPayload:
    def test_all_vendors(self, vendors):
        payload = _post(vendors)
        assert payload["kpis"]["total_ncr"] == 46
        assert payload["gauges"]["avg_score_closed_pct"] == {"value": 78, "color": COLOR_WARNING}
        assert payload["gauges"]["score_post_award_mm"]["value"] == 81
        assert payload["gauges"]["score_post_award_contract"]["value"] == 78
        assert "discipline_scores" in payload["charts"]

    def test_report_rows_skip_zero_counts(self, vendors):
        payload = _post(vendors)
        assert len(payload["ncr_rows"]) == 9
        assert len(payload["qor_rows"]) == 8
        assert "Apex Performance Group" not in {r["contractor"] for r in payload["qor_rows"]}

    def test_closed_gauge_from_unrounded_mean(self, vendor_factory):
        vs = [
            vendor_factory("A", post={"average_score_closed": 3.2}),
            vendor_factory("B", post={"average_score_closed": 4.7}),
        ]
        payload = compute_post_award(DashboardFilters(), prepare_context(DashboardFilters(), vs))
        assert payload["kpis"]["avg_score_closed"] == 4.0
        assert payload["gauges"]["avg_score_closed_pct"]["value"] == 79

    def test_report_row_labels(self, by_id):
        (row,) = report_rows([by_id["V003"]], "ncr_count")
        assert row["status"] == "Open"
        assert row["criticality"] == "High"
        assert row["discipline"] == "Civil"
        assert row["status_tone"] == "red"

    def test_levels(self, vendors):
        payload = _post(vendors)
        assert set(payload["levels"]) == {
            "ncr_closure_time",
            "average_score_closed",
            "avenant_percentage",
            "reactivity_letters",
            "guarantee_renewal_time",
        }
        assert payload["levels"]["average_score_closed"] == "yellow"

    def test_levels_respect_threshold_overrides(self, vendors):
        f = DashboardFilters(thresholds=normalize_thresholds({"average_score_closed": {"green": 3.5}}))
        payload = compute_post_award(f, prepare_context(f, vendors))
        assert payload["levels"]["average_score_closed"] == "green"


class TestMaterialPayload:
    def test_all_vendors(self, vendors):
        payload = _material(vendors)
        assert payload["delivery_variance"] == -6
        assert payload["kpis"]["avg_otif_score"] == 85
        assert len(payload["planned_vs_actual"]) == 6
        assert payload["planned_vs_actual"][0] == {"name": "Acme", "planned": 1200, "actual": 1150}
        assert [r["count"] for r in payload["osd"]] == [125, 163, 58]
        assert {"planned_vs_actual", "conformity"} <= set(payload["charts"])

    def test_selected_vendor(self, vendors):
        payload = _material(vendors, selected_vendor_id="V001")
        assert payload["selected_vendor_id"] == "V001"
        assert payload["delivery_variance"] == -4
        assert payload["kpis"]["avg_frais_approche"] == 4.5
        assert payload["levels"]["frais_approche"] == "green"

    def test_unknown_selection_uses_filtered(self, vendors):
        payload = _material(vendors, selected_vendor_id="V404")
        assert payload["selected_vendor_id"] is None
        assert payload["kpis"]["vendor_count"] == 9

    def test_empty_filter_gives_zeros(self, vendors):
        payload = _material(vendors, MultiSelectFilters(regions=("Nowhere",)))
        assert payload["vendors_in_view"] == 0
        assert payload["kpis"]["vendor_count"] == 0
        assert payload["kpis"]["total_planned"] == 0
        assert payload["delivery_variance"] is None
        assert payload["charts"] == {}

    def test_table_view(self, vendors):
        payload = _material(vendors, view="table", sort_key="otif_score", direction="asc")
        assert payload["view"] == "table"
        assert payload["rows"][0]["id"] == "V007"
        assert payload["rows"][0]["otif_score"]["level"] == "red"
