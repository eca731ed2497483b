"""Unit tests for distribution comparison."""

import pytest

from src.domain.services.comparator import Comparator, compare_distributions, compare_metric_sets
from src.domain.services.distribution_metrics import compute_metrics
from src.models.distribution import Distribution
from src.models.metric_set import METRIC_NAMES


class TestComparator:
    """Signed deltas between two distributions."""

    def test_self_comparison_is_zero(self, whale_distribution):
        result = compare_distributions(whale_distribution, whale_distribution)

        assert [d.name for d in result.deltas] == list(METRIC_NAMES)
        for entry in result.deltas:
            assert entry.delta == 0

    def test_sign_is_second_minus_first(self, equal_distribution, whale_distribution):
        result = compare_distributions(equal_distribution, whale_distribution)

        gini = result.delta("gini_coefficient")
        assert gini.delta == pytest.approx(gini.second - gini.first)
        assert gini.delta > 0
        assert result.delta("nakamoto_coefficient").delta == -1

    def test_default_label(self, equal_distribution, whale_distribution):
        result = compare_distributions(equal_distribution, whale_distribution)
        assert result.label == "EQUAL vs WHALE"

    def test_custom_label(self, equal_distribution, whale_distribution):
        result = compare_distributions(equal_distribution, whale_distribution, label="before/after")
        assert result.label == "before/after"

    def test_deterministic(self, equal_distribution, whale_distribution):
        first = compare_distributions(equal_distribution, whale_distribution)
        second = compare_distributions(equal_distribution, whale_distribution)
        assert first == second

    def test_undefined_metric_on_one_side(self, whale_distribution):
        empty = Distribution(token_id="EMPTY")
        result = compare_distributions(empty, whale_distribution)

        assert result.delta("top1_percent").first is None
        assert result.delta("top1_percent").delta is None
        assert result.delta("palma_ratio").delta is None
        # Defined metrics are still compared
        assert result.delta("nakamoto_coefficient").delta == 1

    def test_accepts_metric_sets(self, equal_distribution, whale_distribution):
        comparator = Comparator()
        from_metrics = comparator.compare(compute_metrics(equal_distribution), compute_metrics(whale_distribution))
        from_distributions = comparator.compare(equal_distribution, whale_distribution)
        assert from_metrics == from_distributions

    def test_unknown_metric(self, equal_distribution):
        result = compare_distributions(equal_distribution, equal_distribution)
        with pytest.raises(KeyError):
            result.delta("volume")


class TestComparisonSerialization:
    """Rounding is applied only when serializing."""

    def test_to_dict_rounds(self):
        first = compute_metrics(Distribution.from_amounts([1, 2], token_id="A"))
        second = compute_metrics(Distribution.from_amounts([1, 1], token_id="B"))
        result = compare_metric_sets(first, second)

        assert result.delta("gini_coefficient").delta == pytest.approx(-1 / 6)
        payload = result.to_dict(precision=3)
        assert payload["deltas"]["gini_coefficient"]["delta"] == -0.167
        assert payload["first"]["token_id"] == "A"
        assert payload["label"] == "A vs B"

    def test_to_dict_keeps_none(self, whale_distribution):
        result = compare_distributions(Distribution(), whale_distribution)
        assert result.to_dict()["deltas"]["top10_percent"]["delta"] is None
