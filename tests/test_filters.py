"""
Tests for filter specs, filter evaluation and input normalization.
"""

import pytest

from core.filters import (
    ALL,
    DashboardFilters,
    MultiSelectFilters,
    ThresholdPair,
    Thresholds,
    filter_vendors,
    normalize_filters,
    normalize_multi_filters,
    normalize_thresholds,
)


class TestDashboardFilters:
    def test_all_sentinels_return_everything_in_order(self, vendors):
        result = filter_vendors(vendors, DashboardFilters())
        assert [v.id for v in result] == [v.id for v in vendors]

    def test_single_constraint(self, vendors):
        result = filter_vendors(vendors, DashboardFilters(bu="BU 1"))
        assert [v.id for v in result] == ["V001", "V002", "V006", "V009"]

    def test_constraints_are_conjunctive(self, vendors):
        result = filter_vendors(vendors, DashboardFilters(category="Manufacturing", region="Middle East"))
        assert [v.id for v in result] == ["V007"]

    def test_vendor_matches_on_name(self, vendors):
        result = filter_vendors(vendors, DashboardFilters(vendor="Acme Industrial Corp"))
        assert [v.id for v in result] == ["V001"]

    def test_no_match_returns_empty_without_fallback(self, vendors):
        assert filter_vendors(vendors, DashboardFilters(region="Antarctica")) == []

    def test_filtering_is_idempotent(self, vendors):
        spec = DashboardFilters(tiering="Tier 1")
        once = filter_vendors(vendors, spec)
        assert filter_vendors(once, spec) == once

    def test_result_is_subset(self, vendors):
        result = filter_vendors(vendors, DashboardFilters(tiering="Tier 2"))
        assert all(v in vendors for v in result)
        assert all(v.tiering == "Tier 2" for v in result)

    def test_constraints_skip_sentinels(self):
        assert DashboardFilters(region="Europe").constraints() == {"region": "Europe"}
        assert DashboardFilters().constraints() == {}

    def test_empty_input(self):
        assert filter_vendors([], DashboardFilters(region="Europe")) == []


class TestMultiSelectFilters:
    def test_empty_lists_mean_no_constraint(self, vendors):
        assert len(filter_vendors(vendors, MultiSelectFilters())) == len(vendors)

    def test_any_of_within_a_field(self, vendors):
        spec = MultiSelectFilters(regions=("Europe", "West Africa"))
        assert [v.id for v in filter_vendors(vendors, spec)] == ["V002", "V004", "V008", "V009"]

    def test_all_of_across_fields(self, vendors):
        spec = MultiSelectFilters(regions=("Europe",), categories=("Engineering",))
        assert [v.id for v in filter_vendors(vendors, spec)] == ["V002", "V009"]

    def test_activity_filter(self, vendors):
        spec = MultiSelectFilters(activities=("Supply Chain",))
        assert [v.id for v in filter_vendors(vendors, spec)] == ["V005"]

    def test_no_match(self, vendors):
        assert filter_vendors(vendors, MultiSelectFilters(tierings=("Tier 9",))) == []


class TestNormalization:
    def test_missing_and_blank_values_become_sentinel(self):
        f = normalize_filters({"vendor": "", "category": None, "region": " ALL "})
        assert f.vendor == ALL
        assert f.category == ALL
        assert f.region == ALL

    def test_values_are_trimmed(self):
        assert normalize_filters({"bu": " BU 2 "}).bu == "BU 2"

    def test_none_gives_defaults(self):
        assert normalize_filters(None) == DashboardFilters()

    def test_multi_values_deduplicated(self):
        f = normalize_multi_filters({"regions": ["Europe", "Europe", "", None], "vendors": "Acme Industrial Corp"})
        assert f.regions == ("Europe",)
        assert f.vendors == ("Acme Industrial Corp",)

    def test_threshold_overrides_merge_over_defaults(self):
        t = normalize_thresholds({"otif_score": {"green": 95}, "unknown_metric": {"green": 1, "yellow": 0}})
        assert t.otif_score == ThresholdPair(95, 75)
        assert t.hse_score == Thresholds().hse_score

    def test_malformed_override_is_ignored(self):
        t = normalize_thresholds({"otif_score": "high"})
        assert t.otif_score == Thresholds().otif_score


class TestThresholds:
    def test_known_metric(self):
        assert Thresholds().get("hse_score") == ThresholdPair(85, 70)

    def test_unknown_metric_raises(self):
        with pytest.raises(KeyError):
            Thresholds().get("not_a_metric")

    def test_green_yellow_ordering_matches_polarity(self):
        from core.classify import is_inverted

        t = Thresholds()
        for metric in Thresholds.metrics():
            pair = t.get(metric)
            if is_inverted(metric):
                assert pair.green <= pair.yellow, metric
            else:
                assert pair.green >= pair.yellow, metric
