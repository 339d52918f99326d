"""Tests for the median-depletion bisection solvers."""

import pytest
from fire_sim_jp import (
    MonteCarloConfig,
    find_fire_month_for_median_depletion,
    find_withdrawal_rate_for_median_depletion,
    run_monte_carlo,
)
from fire_sim_jp.targets import BOUNDARY_HIGH, BOUNDARY_LOW, recommended_fire_age

# Zero volatility and zero return: terminal balance is linear in the FIRE month.
# f ヶ月後にFIRE → 6M + 100k·f − 100k·(120 − f) = −6M + 200k·f（f=30で0）
LINEAR = {
    "initial_assets": 6_000_000,
    "monthly_income": 200_000,
    "monthly_expense": 100_000,
    "current_age": 90,
    "withdrawal_rate": 0,
    "retirement_lump_sum_at_fire": 0,
}
DETERMINISTIC = MonteCarloConfig(trials=1, annual_volatility=0.0)

# 全額リスク資産・月30万円の支出、90歳で即FIRE
FLOOR_BOUND = {
    "initial_assets": 60_000_000,
    "risk_assets": 60_000_000,
    "annual_return_rate": 0.05,
    "monthly_expense": 300_000,
    "current_age": 90,
    "retirement_lump_sum_at_fire": 0,
}
AT_START = MonteCarloConfig(trials=1, annual_volatility=0.0, force_fire_month=0)


class TestFireMonthSearch:
    def test_finds_linear_crossing(self):
        result = find_fire_month_for_median_depletion(LINEAR, DETERMINISTIC)
        assert result.value == 30
        assert result.boundary_hit is None
        assert result.p50_terminal_assets == pytest.approx(0)
        assert 0 < result.iterations <= 20

    def test_positive_target(self):
        """Median ≥ 2M first reached at f = 40."""
        result = find_fire_month_for_median_depletion(LINEAR, DETERMINISTIC, target=2_000_000)
        assert result.value == 40

    def test_low_boundary_when_already_rich(self):
        params = {**LINEAR, "initial_assets": 100_000_000}
        result = find_fire_month_for_median_depletion(params, DETERMINISTIC)
        assert result.value == 0
        assert result.boundary_hit == BOUNDARY_LOW

    def test_exact_hit_at_lower_bound_is_not_boundary(self):
        at_30 = run_monte_carlo(LINEAR, MonteCarloConfig(trials=1, annual_volatility=0.0, force_fire_month=30))
        result = find_fire_month_for_median_depletion(LINEAR, DETERMINISTIC, target=at_30.p50, low=30)
        assert result.value == 30
        assert result.boundary_hit is None
        assert result.iterations == 0

    def test_high_boundary_when_unreachable(self):
        params = {**LINEAR, "monthly_income": 0}
        result = find_fire_month_for_median_depletion(params, DETERMINISTIC)
        assert result.value == 120
        assert result.boundary_hit == BOUNDARY_HIGH
        assert result.p50_terminal_assets < 0

    def test_iteration_cap(self):
        result = find_fire_month_for_median_depletion(LINEAR, DETERMINISTIC, max_iterations=2)
        assert result.iterations == 2
        # Best candidate still satisfies the target
        assert result.p50_terminal_assets >= 0

    def test_randomized_returns(self):
        params = {**LINEAR, "risk_assets": 3_000_000, "annual_return_rate": 0.05}
        config = MonteCarloConfig(trials=15, annual_volatility=0.15, seed=5)
        result = find_fire_month_for_median_depletion(params, config)
        assert 0 <= result.value <= 120
        assert 0 <= result.success_rate <= 1


class TestWithdrawalRateSearch:
    def test_low_boundary_when_depleted_anyway(self):
        params = {**LINEAR, "initial_assets": 1_000_000, "monthly_income": 0}
        config = MonteCarloConfig(trials=1, annual_volatility=0.0, force_fire_month=0)
        result = find_withdrawal_rate_for_median_depletion(params, config)
        assert result.value == 0.0
        assert result.boundary_hit == BOUNDARY_LOW

    def test_high_boundary_when_rich(self):
        params = {**LINEAR, "initial_assets": 500_000_000}
        result = find_withdrawal_rate_for_median_depletion(params, DETERMINISTIC)
        assert result.value == 0.10
        assert result.boundary_hit == BOUNDARY_HIGH
        assert result.p50_terminal_assets > 0

    def test_converges_to_interior_rate(self):
        """The floor binds above 6% (300k of 60M per month) and idles risk assets in cash."""
        result = find_withdrawal_rate_for_median_depletion(
            FLOOR_BOUND, AT_START, target=51_160_000, tolerance=1000,
        )
        # 0.1 × 23/256
        assert result.value == pytest.approx(0.08984375)
        assert result.boundary_hit is None
        assert result.iterations == 7
        assert abs(result.p50_terminal_assets - 51_160_000) <= 1000
        assert result.p50_terminal_assets == pytest.approx(51_159_515, abs=1)

    def test_iteration_cap_keeps_best_candidate(self):
        result = find_withdrawal_rate_for_median_depletion(
            FLOOR_BOUND, AT_START, target=51_160_000, tolerance=1000, max_iterations=3,
        )
        # 0.05 → 0.075 → 0.0875; 0.0875 is closest to the target
        assert result.iterations == 3
        assert result.value == pytest.approx(0.0875)
        assert result.boundary_hit is None
        assert result.p50_terminal_assets == pytest.approx(51_166_420, abs=1)

    def test_result_serializable(self):
        params = {**LINEAR, "initial_assets": 500_000_000}
        data = find_withdrawal_rate_for_median_depletion(params, DETERMINISTIC).to_dict()
        assert set(data) == {"value", "p50_terminal_assets", "success_rate", "boundary_hit", "iterations"}


class TestRecommendedFireAge:
    def test_whole_years(self):
        assert recommended_fire_age(40, 30) == 42

    def test_never(self):
        assert recommended_fire_age(40, -1) is None
