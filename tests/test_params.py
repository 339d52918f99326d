"""Tests for SimulationParams and input normalization."""

from datetime import date

import pytest
from fire_sim_jp import SimulationParams, HouseholdType, normalize_params
from fire_sim_jp.params import (
    DEFAULT_PENSION_CONFIG,
    clamp_end_age,
    normalize_pension_config,
    round_yen,
)


class TestNormalizeDefaults:
    """Missing or invalid input falls back to documented defaults."""

    def test_empty_dict(self):
        p = normalize_params({})
        assert p.current_age == 40
        assert p.max_months == 1200
        assert p.withdrawal_rate == 0.04
        assert p.inflation_rate == 0.02
        assert p.tax_rate == 0.20315
        assert p.simulation_end_age == 100

    def test_none(self):
        assert normalize_params(None).current_age == 40

    def test_numeric_strings(self):
        p = normalize_params({"current_age": "45", "initial_assets": "1000"})
        assert p.current_age == 45
        assert p.initial_assets == 1000

    def test_zero_age_treated_as_missing(self):
        """current_age=0 falls back to 40; initial_assets=0 is kept."""
        p = normalize_params({"current_age": 0, "initial_assets": 0})
        assert p.current_age == 40
        assert p.initial_assets == 0

    def test_garbage_values(self):
        p = normalize_params({"tax_rate": "abc", "max_months": None, "annual_return_rate": float("nan")})
        assert p.tax_rate == 0.20315
        assert p.max_months == 1200
        assert p.annual_return_rate == 0.0

    def test_negative_max_months_floored(self):
        assert normalize_params({"max_months": -5}).max_months == 0

    def test_idempotent_on_params(self):
        p = normalize_params({"current_age": 50, "monthly_expense": 200_000})
        assert normalize_params(p) == p


class TestNormalizeExpenses:
    def test_monthly_expense_preferred(self):
        p = normalize_params({"monthly_expense": 200_000, "monthly_expenses": 1_200_000})
        assert p.monthly_expense == 200_000

    def test_legacy_annual_expenses(self):
        """Legacy field holds an annual figure."""
        p = normalize_params({"monthly_expenses": 2_400_000})
        assert p.monthly_expense == 200_000

    def test_both_missing(self):
        assert normalize_params({}).monthly_expense == 0


class TestClampEndAge:
    def test_within_range(self):
        assert clamp_end_age(90, 40) == 90

    def test_below_minimum(self):
        assert clamp_end_age(70, 40) == 80

    def test_above_maximum(self):
        assert clamp_end_age(120, 40) == 100

    def test_minimum_follows_current_age(self):
        assert clamp_end_age(80, 85.5) == 86

    def test_invalid_defaults_to_100(self):
        assert clamp_end_age("x", 40) == 100

    def test_normalize_applies_clamp(self):
        assert normalize_params({"simulation_end_age": 50}).simulation_end_age == 80


class TestDerivedValues:
    def test_total_months(self):
        assert SimulationParams(current_age=40, simulation_end_age=100).total_months == 720

    def test_total_months_fractional_age(self):
        assert SimulationParams(current_age=40.5, simulation_end_age=100).total_months == 714

    def test_monthly_return_mean(self):
        p = SimulationParams(annual_return_rate=0.05)
        assert (1 + p.monthly_return_mean) ** 12 == pytest.approx(1.05, rel=1e-12)

    def test_inflation_disabled(self):
        p = SimulationParams(inflation_rate=0.02, include_inflation=False)
        assert p.monthly_inflation_rate == 0.0

    def test_inflation_enabled(self):
        p = SimulationParams(inflation_rate=0.02, include_inflation=True)
        assert (1 + p.monthly_inflation_rate) ** 12 == pytest.approx(1.02, rel=1e-12)

    def test_effective_tax_rate(self):
        assert SimulationParams(include_tax=False).effective_tax_rate == 0.0
        assert SimulationParams(include_tax=True, tax_rate=0.2).effective_tax_rate == 0.2

    def test_never_fire_age(self):
        assert SimulationParams(current_age=40).fire_age_for_month(-1) == 140

    def test_fire_age_for_month(self):
        assert SimulationParams(current_age=40).fire_age_for_month(18) == 41.5


class TestNormalizeHousehold:
    def test_household_type(self):
        assert normalize_params({"household_type": "family"}).household_type == HouseholdType.FAMILY

    def test_unknown_household_is_single(self):
        assert normalize_params({"household_type": "commune"}).household_type == HouseholdType.SINGLE

    def test_dependents_capped_at_three(self):
        dates = ["2010-01-01", "2012-01-01", "2014-01-01", "2016-01-01"]
        p = normalize_params({"dependent_birth_dates": dates})
        assert p.dependent_birth_dates == ("2010-01-01", "2012-01-01", "2014-01-01")

    def test_legacy_single_dependent(self):
        p = normalize_params({"dependent_birth_date": "2013-02-20"})
        assert p.dependent_birth_dates == ("2013-02-20",)

    def test_independence_age_default(self):
        assert normalize_params({"independence_age": 0}).independence_age == 24

    def test_payoff_trimmed_to_month(self):
        p = normalize_params({"mortgage_payoff_date": "2030-03-15"})
        assert p.mortgage_payoff_date == "2030-03"

    def test_start_date_parsed(self):
        p = normalize_params({"start_date": "2025-05-14"})
        assert p.start_date == date(2025, 5, 14)


class TestNormalizePensionConfig:
    def test_missing_uses_default(self):
        assert normalize_pension_config(None) is DEFAULT_PENSION_CONFIG

    def test_partial_override(self):
        c = normalize_pension_config({"user_start_age": "66", "include_spouse": "false"})
        assert c.user_start_age == 66
        assert c.include_spouse is False
        assert c.basic_full_annual == 780_000
        assert c.early_reduction is None

    def test_explicit_early_reduction(self):
        assert normalize_pension_config({"early_reduction": 0.76}).early_reduction == 0.76


class TestRoundYen:
    def test_half_up(self):
        assert round_yen(116928.5) == 116929

    def test_down(self):
        assert round_yen(146469.15) == 146469
