import pytest

from core.classify import classify, classify_inverse, classify_many, classify_metric, is_inverted
from core.filters import ThresholdPair, Thresholds


class TestClassify:
    @pytest.mark.parametrize(
        "value,expected",
        [(95, "green"), (85, "green"), (84.9, "yellow"), (70, "yellow"), (69.9, "red"), (0, "red")],
    )
    def test_higher_is_better_boundaries(self, value, expected):
        assert classify(value, ThresholdPair(85, 70)) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [(10, "green"), (30, "green"), (30.1, "yellow"), (50, "yellow"), (50.1, "red")],
    )
    def test_lower_is_better_boundaries(self, value, expected):
        assert classify_inverse(value, ThresholdPair(30, 50)) == expected

    def test_monotone_in_value(self):
        order = {"red": 0, "yellow": 1, "green": 2}
        pair = ThresholdPair(80, 60)
        ranks = [order[classify(v, pair)] for v in range(0, 101)]
        assert ranks == sorted(ranks)


class TestClassifyMetric:
    def test_inverted_metric_uses_inverse(self):
        t = Thresholds()
        assert is_inverted("global_risk_level")
        assert classify_metric("global_risk_level", 25, t) == "green"
        assert classify_metric("global_risk_level", 58, t) == "red"

    def test_normal_metric(self):
        t = Thresholds()
        assert classify_metric("otif_score", 90, t) == "green"
        assert classify_metric("otif_score", 76, t) == "yellow"

    def test_frais_approche_is_lower_is_better(self):
        t = Thresholds()
        assert classify_metric("frais_approche", 4.5, t) == "green"
        assert classify_metric("frais_approche", 12, t) == "red"

    def test_unknown_metric_raises(self):
        with pytest.raises(KeyError):
            classify_metric("mystery", 1, Thresholds())

    def test_classify_many_skips_unknown(self):
        out = classify_many({"hse_score": 92, "mystery": 1}, Thresholds())
        assert out == {"hse_score": "green"}
