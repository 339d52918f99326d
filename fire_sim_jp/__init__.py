"""FIRE (Financial Independence, Retire Early) Simulation Package."""

from fire_sim_jp.params import (
    SimulationParams,
    PensionConfig,
    HouseholdType,
    normalize_params,
    DEFAULT_END_AGE,
    MIN_END_AGE,
    MAX_END_AGE,
)
from fire_sim_jp.household import calculate_age, calculate_lifestyle_reduction
from fire_sim_jp.pension import calculate_monthly_pension
from fire_sim_jp.expenses import ExpenseSchedule, build_expense_schedule
from fire_sim_jp.simulation import (
    NEVER,
    MonthlyState,
    SimulationResult,
    YearlySummary,
    run_core_simulation,
    calculate_required_assets,
    find_survival_month,
    perform_fire_simulation,
    generate_growth_table,
    generate_annual_simulation,
)
from fire_sim_jp.monte_carlo import (
    MonteCarloConfig,
    MonteCarloResult,
    SeededRandom,
    run_monte_carlo,
)
from fire_sim_jp.targets import (
    DepletionSearchResult,
    find_withdrawal_rate_for_median_depletion,
    find_fire_month_for_median_depletion,
)
from fire_sim_jp.worker import MonteCarloWorker, handle_request, run_full_monte_carlo_analysis

__all__ = [
    "SimulationParams",
    "PensionConfig",
    "HouseholdType",
    "normalize_params",
    "DEFAULT_END_AGE",
    "MIN_END_AGE",
    "MAX_END_AGE",
    "calculate_age",
    "calculate_lifestyle_reduction",
    "calculate_monthly_pension",
    "ExpenseSchedule",
    "build_expense_schedule",
    "NEVER",
    "MonthlyState",
    "SimulationResult",
    "YearlySummary",
    "run_core_simulation",
    "calculate_required_assets",
    "find_survival_month",
    "perform_fire_simulation",
    "generate_growth_table",
    "generate_annual_simulation",
    "MonteCarloConfig",
    "MonteCarloResult",
    "SeededRandom",
    "run_monte_carlo",
    "DepletionSearchResult",
    "find_withdrawal_rate_for_median_depletion",
    "find_fire_month_for_median_depletion",
    "MonteCarloWorker",
    "handle_request",
    "run_full_monte_carlo_analysis",
]
