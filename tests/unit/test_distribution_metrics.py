"""Unit tests for the distribution metrics engine."""

import math

import pytest

from config.models import MetricsConfig
from src.domain.exceptions import ConfigurationError, InvalidInputError
from src.domain.services.distribution_metrics import (
    DistributionMetricsEngine,
    balance_percentiles,
    compute_metrics,
    gini_coefficient,
    herfindahl_index,
    holder_buckets,
    lorenz_curve,
    nakamoto_coefficient,
    normalized_entropy,
    palma_ratio,
    shannon_entropy,
    top_n_concentration,
    top_share_percent,
)
from src.models.distribution import Balance, Distribution


class TestScenarios:
    """End-to-end metric computations on small known distributions."""

    def test_equal_holders(self, equal_distribution):
        metrics = compute_metrics(equal_distribution)

        assert metrics.gini_coefficient == 0.0
        assert metrics.nakamoto_coefficient == 2
        assert metrics.hhi == pytest.approx(2500.0)
        assert metrics.shannon_entropy == pytest.approx(2.0)
        assert metrics.holder_count == 4
        assert metrics.total_supply == 400.0

    def test_single_whale(self, whale_distribution):
        metrics = compute_metrics(whale_distribution)

        assert metrics.top1_percent == pytest.approx(97.0)
        assert metrics.nakamoto_coefficient == 1
        assert metrics.token_id == "WHALE"

    def test_median_holding(self):
        metrics = compute_metrics(Distribution.from_amounts([1, 2, 3, 4]))
        assert metrics.median_holding == pytest.approx(2.5)


class TestProperties:
    """Properties that hold across whole families of distributions."""

    @pytest.mark.parametrize("n", [1, 2, 3, 7, 10, 64])
    def test_identical_holders(self, n):
        amounts = [25.0] * n
        assert gini_coefficient(amounts) == pytest.approx(0.0, abs=1e-12)
        assert herfindahl_index(amounts) == pytest.approx(10_000.0 / n)
        assert shannon_entropy(amounts) == pytest.approx(math.log2(n))
        assert nakamoto_coefficient(amounts) == math.ceil(n / 2)

    @pytest.mark.parametrize("amount", [0.1, 1 / 3, 0.7, 1.1, 3.3, 0.01])
    @pytest.mark.parametrize("n", [12, 14, 92, 99, 150, 199])
    def test_identical_fractional_holders(self, amount, n):
        assert nakamoto_coefficient([amount] * n) == math.ceil(n / 2)

    def test_identical_fractional_holders_all_sizes(self):
        wrong = [
            (amount, n)
            for amount in (0.1, 1 / 3, 0.7, 1.1, 3.3, 0.01)
            for n in range(1, 200)
            if nakamoto_coefficient([amount] * n) != math.ceil(n / 2)
        ]
        assert wrong == []

    def test_single_holder_owns_everything(self):
        metrics = compute_metrics(Distribution.from_amounts([5_000]))

        assert metrics.gini_coefficient == 0.0
        assert metrics.nakamoto_coefficient == 1
        assert metrics.shannon_entropy == 0.0
        assert metrics.hhi == pytest.approx(10_000.0)

    @pytest.mark.parametrize("scale", [0.001, 3.0, 1e6])
    def test_gini_scale_invariant(self, scale):
        amounts = [1.0, 5.0, 9.0, 40.0, 250.0, 1_000.0]
        assert gini_coefficient([a * scale for a in amounts]) == pytest.approx(gini_coefficient(amounts))

    def test_gini_bounded(self):
        assert 0.0 <= gini_coefficient([0, 0, 0, 1_000_000]) <= 1.0
        assert gini_coefficient([0, 0, 0, 1_000_000]) == pytest.approx(0.75)


class TestDegenerateInputs:
    """Zero supply and empty distributions never raise."""

    def test_all_zero_balances(self):
        metrics = compute_metrics(Distribution.from_amounts([0, 0, 0]))

        assert metrics.gini_coefficient == 0.0
        assert metrics.hhi == 0.0
        assert metrics.nakamoto_coefficient == 0
        assert metrics.shannon_entropy == 0.0
        assert metrics.palma_ratio is None
        assert metrics.top1_percent is None
        assert metrics.top10_percent is None

    def test_empty_distribution(self):
        metrics = compute_metrics(Distribution())

        assert metrics.holder_count == 0
        assert metrics.nakamoto_coefficient == 0
        assert metrics.median_holding == 0.0

    def test_palma_undefined_when_bottom_holds_nothing(self):
        assert palma_ratio([0, 0, 0, 0, 0, 0, 0, 0, 0, 100]) is None

    def test_palma_defined(self):
        # 10 holders: bottom 4 hold 1 each, top 1 holds 40
        amounts = [1, 1, 1, 1, 2, 2, 2, 2, 2, 40]
        assert palma_ratio(amounts) == pytest.approx(10.0)

    def test_fewer_holders_than_percent_window(self):
        # ceil(0.01 * 3) == 1 holder for the top 1%
        assert top_share_percent([50, 30, 20], 0.01) == pytest.approx(50.0)


class TestInvalidInputs:
    """Structurally invalid balances are rejected at construction."""

    def test_negative_balance(self):
        with pytest.raises(InvalidInputError):
            Distribution.from_amounts([10, -1])

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "abc", None])
    def test_non_finite_or_non_numeric(self, bad):
        with pytest.raises(InvalidInputError):
            Balance(address="0xabc", amount=bad)

    def test_supply_below_observed_sum(self):
        with pytest.raises(InvalidInputError):
            Distribution.from_amounts([60, 50], total_supply=100)

    def test_records_without_amount(self):
        with pytest.raises(InvalidInputError):
            Distribution.from_records([{"address": "0x1"}])


class TestExplicitSupply:
    """Metrics against a supply larger than the observed balances."""

    def test_top_share_uses_supply(self):
        distribution = Distribution.from_amounts([300, 100], total_supply=1_000)
        metrics = compute_metrics(distribution)

        assert metrics.top1_percent == pytest.approx(30.0)
        assert metrics.total_supply == 1_000.0

    def test_nakamoto_unreached_returns_holder_count(self):
        assert nakamoto_coefficient([100, 100], supply=1_000) == 2

    def test_records_accept_balance_key(self):
        distribution = Distribution.from_records(
            [{"address": "0x1", "balance": "12.5"}, {"address": "0x2", "amount": 7}]
        )
        assert distribution.observed_total == pytest.approx(19.5)
        assert distribution.balances[0].address == "0x1"


class TestSupplementaryMetrics:
    """Lorenz curve, buckets, percentiles and concentration helpers."""

    def test_lorenz_curve_endpoints(self):
        points = lorenz_curve([1, 2, 3, 4])
        assert points[0] == (0.0, 0.0)
        assert points[-1] == pytest.approx((1.0, 1.0))
        assert len(points) == 5

    def test_normalized_entropy(self):
        assert normalized_entropy([1, 1, 1, 1]) == pytest.approx(1.0)
        assert normalized_entropy([1]) == 0.0

    def test_top_n_concentration(self):
        assert top_n_concentration([50, 30, 20], 2) == pytest.approx(0.8)
        assert top_n_concentration([0, 0], 1) == 0.0

    def test_holder_buckets(self):
        # Shares of a 10_000 total: 0.5, 0.005, 0.0005, 0.00005, 0.49445
        amounts = [5_000, 50, 5, 0.5, 4_944.5]
        buckets = holder_buckets(amounts)
        assert buckets.whale == 2
        assert buckets.shark == 1
        assert buckets.dolphin == 1
        assert buckets.fish == 1

    def test_balance_percentiles_linear(self):
        result = balance_percentiles([10, 20, 30, 40], [25, 50])
        assert result == {"p25": pytest.approx(17.5), "p50": pytest.approx(25.0)}


class TestEngineConfig:
    """Configuration validation and overrides."""

    def test_invalid_fraction(self):
        with pytest.raises(ConfigurationError):
            DistributionMetricsEngine(MetricsConfig(top10_fraction=0.0))

    def test_custom_threshold(self):
        engine = DistributionMetricsEngine(MetricsConfig(nakamoto_threshold=0.75))
        assert engine.compute(Distribution.from_amounts([1, 1, 1, 1])).nakamoto_coefficient == 3

    def test_percentiles_use_config(self):
        engine = DistributionMetricsEngine(MetricsConfig(percentiles=[50]))
        assert engine.percentiles(Distribution.from_amounts([1, 3])) == {"p50": pytest.approx(2.0)}

    def test_to_dict_rounds_only_on_output(self):
        metrics = compute_metrics(Distribution.from_amounts([1, 2]))
        assert metrics.gini_coefficient == pytest.approx(1 / 6)
        assert metrics.to_dict(precision=2)["gini_coefficient"] == 0.17
        assert metrics.to_dict()["gini_coefficient"] == metrics.gini_coefficient
