"""Tests for the public pension estimate."""

import dataclasses

import pytest
from fire_sim_jp import PensionConfig, calculate_monthly_pension
from fire_sim_jp.pension import start_age_adjustment_rate

# 繰上げ受給（60歳開始・調整率0.76固定）の家計
LEGACY = PensionConfig(
    user_start_age=60,
    spouse_start_age=62,
    basic_full_annual=780_000,
    basic_reduction=0.9,
    early_reduction=0.76,
    pension_data_age=44,
    accrued_at_data_age_annual=892_252,
    future_accrual_per_year=42_000,
    include_spouse=True,
)


class TestEligibility:
    def test_zero_before_start_age(self):
        assert calculate_monthly_pension(59.9, 50, LEGACY) == 0

    def test_zero_just_below_start(self):
        assert calculate_monthly_pension(59.99, 60, LEGACY) == 0

    def test_negative_age(self):
        assert calculate_monthly_pension(-1, 50, LEGACY) == 0


class TestLegacyConfig:
    def test_fire_at_50(self):
        """(702,000 + 892,252 + 6 × 42,000) × 0.76 / 12."""
        assert calculate_monthly_pension(60, 50, LEGACY) == 116929

    def test_spouse_basic_added(self):
        """Spouse basic pension 780,000 / 12 = 65,000 from user age 62."""
        assert calculate_monthly_pension(62, 50, LEGACY) == 181929

    def test_fire_before_data_age(self):
        assert calculate_monthly_pension(60, 40, LEGACY) == 100969

    def test_participation_capped_at_60(self):
        assert calculate_monthly_pension(60, 65, LEGACY) == calculate_monthly_pension(60, 60, LEGACY)
        assert calculate_monthly_pension(60, 75, LEGACY) == calculate_monthly_pension(60, 60, LEGACY)


class TestDerivedAdjustmentRate:
    def setup_method(self):
        self.base = dataclasses.replace(LEGACY, spouse_start_age=99, early_reduction=None)

    def test_start_at_65(self):
        config = dataclasses.replace(self.base, user_start_age=65)
        assert calculate_monthly_pension(65, 50, config) == 153854

    def test_start_at_64(self):
        """12 months early: 1 - 0.004 × 12 = 0.952."""
        config = dataclasses.replace(self.base, user_start_age=64)
        assert calculate_monthly_pension(64, 50, config) == 146469

    def test_start_at_66(self):
        """12 months delayed: 1 + 0.007 × 12 = 1.084."""
        config = dataclasses.replace(self.base, user_start_age=66)
        assert calculate_monthly_pension(66, 50, config) == 166778

    def test_spouse_disabled(self):
        config = dataclasses.replace(self.base, user_start_age=65, spouse_start_age=65, include_spouse=False)
        assert calculate_monthly_pension(65, 50, config) == 153854


class TestStartAgeAdjustmentRate:
    def test_standard(self):
        assert start_age_adjustment_rate(65) == 1.0

    def test_earliest(self):
        assert start_age_adjustment_rate(60) == pytest.approx(0.76)

    def test_latest(self):
        assert start_age_adjustment_rate(75) == pytest.approx(1.84)

    def test_clamped(self):
        assert start_age_adjustment_rate(55) == pytest.approx(0.76)
        assert start_age_adjustment_rate(80) == pytest.approx(1.84)
