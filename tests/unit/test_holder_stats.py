"""Unit tests for holder statistics snapshots and decentralization scoring."""

import pytest

from src.domain.services.decentralization import decentralization_score, grade_for
from src.domain.services.distribution_metrics import compute_metrics
from src.domain.services.holder_stats import holder_stats_from_distribution
from src.models.distribution import Distribution
from src.models.snapshot import HolderSnapshot


class TestHolderStats:
    """Streaming snapshot built from a balance list."""

    def test_top_shares_and_median(self):
        amounts = [100.0] + [1.0] * 99
        snapshot = holder_stats_from_distribution(Distribution.from_amounts(amounts))

        assert snapshot.total_holders == 100
        assert snapshot.top10_percentage == pytest.approx(109 / 199 * 100)
        assert snapshot.top50_percentage == pytest.approx(149 / 199 * 100)
        assert snapshot.median_balance == 1.0

    def test_reported_holders_override(self):
        snapshot = holder_stats_from_distribution(Distribution.from_amounts([5, 5]), reported_holders=10_000)
        assert snapshot.total_holders == 10_000

    def test_empty_distribution(self):
        snapshot = holder_stats_from_distribution(Distribution())
        assert snapshot == HolderSnapshot(
            total_holders=0,
            top10_percentage=0.0,
            top50_percentage=0.0,
            median_balance=0.0,
        )

    def test_from_mapping_camel_case(self):
        snapshot = HolderSnapshot.from_mapping({"totalHolders": "12", "medianBalance": 3})
        assert snapshot.total_holders == 12
        assert snapshot.median_balance == 3.0
        assert snapshot.top10_percentage is None


class TestDecentralizationScore:
    """Composite 0-100 score and letter grade."""

    def test_even_distribution_scores_higher(self):
        even = decentralization_score(compute_metrics(Distribution.from_amounts([1] * 1_000)))
        whale = decentralization_score(compute_metrics(Distribution.from_amounts([1_000_000] + [1] * 999)))

        assert even.overall > whale.overall
        assert 0.0 <= whale.overall <= 100.0

    def test_perfectly_even_components(self):
        score = decentralization_score(compute_metrics(Distribution.from_amounts([1] * 1_024)))

        assert score.components["gini"] == pytest.approx(100.0)
        assert score.components["nakamoto"] == pytest.approx(100.0)
        assert score.components["entropy"] == pytest.approx(100.0)
        assert score.components["holder_growth"] == 50.0
        assert score.grade == "A"

    @pytest.mark.parametrize(
        "value,grade",
        [(95.0, "A"), (80.0, "A"), (79.9, "B"), (45.0, "C"), (20.0, "D"), (5.0, "F")],
    )
    def test_grade_bands(self, value, grade):
        assert grade_for(value) == grade

    def test_to_dict_rounds(self):
        score = decentralization_score(compute_metrics(Distribution.from_amounts([3, 1])))
        payload = score.to_dict()
        assert set(payload) == {"overall", "grade", "components"}
        assert payload["overall"] == round(score.overall, 1)
