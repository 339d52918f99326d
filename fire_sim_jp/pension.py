"""Public pension estimate (基礎年金 + 厚生年金, simplified)."""

from fire_sim_jp.params import DEFAULT_PENSION_CONFIG, PensionConfig, round_yen

STANDARD_PENSION_AGE = 65
EARLIEST_PENSION_AGE = 60
LATEST_PENSION_AGE = 75
EARLY_REDUCTION_PER_MONTH = 0.004  # 繰上げ: 1ヶ月あたり0.4%減
LATE_INCREASE_PER_MONTH = 0.007    # 繰下げ: 1ヶ月あたり0.7%増
PARTICIPATION_END_AGE = 60         # 厚生年金加入は60歳（またはFIRE）まで計上


def start_age_adjustment_rate(start_age: float) -> float:
    """Return the 繰上げ/繰下げ adjustment rate for a pension start age (1.0 at 65)."""
    clamped = min(max(start_age, EARLIEST_PENSION_AGE), LATEST_PENSION_AGE)
    months = round((clamped - STANDARD_PENSION_AGE) * 12)
    if months < 0:
        return 1 - EARLY_REDUCTION_PER_MONTH * -months
    return 1 + LATE_INCREASE_PER_MONTH * months


def resolve_adjustment_rate(config: PensionConfig) -> float:
    if config.early_reduction is not None:
        return config.early_reduction
    return start_age_adjustment_rate(config.user_start_age)


def calculate_monthly_pension(
    age: float, fire_age: float, config: PensionConfig = DEFAULT_PENSION_CONFIG,
) -> int:
    """Monthly household pension (yen) at `age` for someone who retired at `fire_age`.

    Employee-pension accrual stops at min(60, fire_age). Basic and employee
    parts are scaled by the start-age adjustment rate; the spouse's basic
    pension is added unscaled once age reaches spouse_start_age.
    """
    total_annual = 0.0

    if age >= config.user_start_age:
        rate = resolve_adjustment_rate(config)
        basic_part = config.basic_full_annual * config.basic_reduction
        participation_end_age = min(PARTICIPATION_END_AGE, fire_age)
        future_years = max(0, participation_end_age - config.pension_data_age)
        employee_part = (
            config.accrued_at_data_age_annual
            + future_years * config.future_accrual_per_year
        )
        total_annual += (basic_part + employee_part) * rate

    if config.include_spouse and age >= config.spouse_start_age:
        total_annual += config.basic_full_annual

    return round_yen(total_annual / 12)
