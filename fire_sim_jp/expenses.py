"""Precomputed monthly expense schedule (inflation, mortgage payoff, dependents leaving)."""

from dataclasses import dataclass, field

from fire_sim_jp.household import (
    add_months,
    household_reduction_factor,
    independence_month_keys,
    month_key,
    reducible_dependent_count,
    reduction_factor,
)
from fire_sim_jp.params import SimulationParams


@dataclass
class ExpenseSchedule:
    """Per-month expense arrays indexed by month (0 = simulation start)."""

    base: list[float] = field(default_factory=list)   # 基本生活費（ローン込み・インフレ調整後）
    extra: list[float] = field(default_factory=list)  # FIRE後追加支出（インフレ調整後）
    monthly_inflation_rate: float = 0.0

    def __len__(self) -> int:
        return len(self.base)


def calc_base_expense(params: SimulationParams, month: int, independence_keys: list[str]) -> float:
    """Base living expense for one month: reduced, inflated non-mortgage part + mortgage."""
    mortgage = params.mortgage_monthly_payment or 0.0
    non_mortgage = max(0.0, params.monthly_expense - mortgage)
    current_key = month_key(add_months(params.start_date, month))

    independent_count = sum(1 for key in independence_keys if current_key >= key)
    factor = reduction_factor(
        independent_count,
        reducible_dependent_count(params.household_type, params.dependent_birth_dates),
        household_reduction_factor(params.household_type),
    )
    inflated = non_mortgage * factor * (1 + params.monthly_inflation_rate) ** month

    if not mortgage or not params.mortgage_payoff_date:
        return inflated + mortgage
    # Payoff month itself is still paid
    if current_key > params.mortgage_payoff_date:
        return inflated
    return inflated + mortgage


def first_year_spike(params: SimulationParams, month: int) -> float:
    """Inflated monthly share of the first-year-after-FIRE extra expense."""
    g = params.monthly_inflation_rate
    return params.post_fire_first_year_extra_expense / 12 * (1 + g) ** month


def build_expense_schedule(params: SimulationParams) -> ExpenseSchedule:
    """Precompute base and post-FIRE extra expenses for months 0..total_months."""
    g = params.monthly_inflation_rate
    keys = independence_month_keys(params.dependent_birth_dates, params.independence_age)
    schedule = ExpenseSchedule(monthly_inflation_rate=g)
    for k in range(params.total_months + 1):
        schedule.base.append(calc_base_expense(params, k, keys))
        schedule.extra.append(params.post_fire_extra_expense * (1 + g) ** k)
    return schedule
