"""Bisection solvers that tune a plan so the median terminal balance reaches a target.

Each evaluation re-runs the full Monte Carlo engine, so the cost is roughly
trials × (max_iterations + 2) projections.
"""

import dataclasses
from dataclasses import dataclass

from fire_sim_jp.monte_carlo import MonteCarloConfig, MonteCarloResult, run_monte_carlo
from fire_sim_jp.params import normalize_params
from fire_sim_jp.simulation import NEVER, find_survival_month

DEFAULT_TOLERANCE = 10_000  # 円
DEFAULT_MAX_ITERATIONS = 20
BOUNDARY_LOW = "low"
BOUNDARY_HIGH = "high"


@dataclass
class DepletionSearchResult:
    """Best candidate found by a median-depletion search."""

    value: float
    p50_terminal_assets: float
    success_rate: float
    boundary_hit: str | None = None
    iterations: int = 0

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _result_for(value: float, mc: MonteCarloResult, boundary_hit: str | None = None,
                iterations: int = 0) -> DepletionSearchResult:
    return DepletionSearchResult(
        value=value,
        p50_terminal_assets=mc.p50,
        success_rate=mc.success_rate,
        boundary_hit=boundary_hit,
        iterations=iterations,
    )


def find_withdrawal_rate_for_median_depletion(
    raw_params,
    config: MonteCarloConfig | None = None,
    target: float = 0.0,
    low: float = 0.0,
    high: float = 0.10,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> DepletionSearchResult:
    """Withdrawal rate whose Monte Carlo median terminal balance approaches `target`.

    The median is non-increasing in the withdrawal rate. The FIRE month is held
    at the base plan's month so only the withdrawal rule varies.
    """
    params = normalize_params(raw_params)
    if config is None:
        config = MonteCarloConfig()
    fire_month = config.force_fire_month
    if fire_month is None:
        fire_month = find_survival_month(params)
    fixed = dataclasses.replace(config, force_fire_month=fire_month)

    def evaluate(rate: float) -> MonteCarloResult:
        return run_monte_carlo(dataclasses.replace(params, withdrawal_rate=rate), fixed)

    low_mc = evaluate(low)
    if low_mc.p50 < target:
        return _result_for(low, low_mc, BOUNDARY_LOW)
    high_mc = evaluate(high)
    if high_mc.p50 > target:
        return _result_for(high, high_mc, BOUNDARY_HIGH)

    if abs(low_mc.p50 - target) <= abs(high_mc.p50 - target):
        best = _result_for(low, low_mc)
    else:
        best = _result_for(high, high_mc)

    iterations = 0
    while iterations < max_iterations and abs(best.p50_terminal_assets - target) > tolerance:
        iterations += 1
        mid = (low + high) / 2
        mid_mc = evaluate(mid)
        if abs(mid_mc.p50 - target) < abs(best.p50_terminal_assets - target):
            best = _result_for(mid, mid_mc)
        if mid_mc.p50 > target:
            low = mid
        else:
            high = mid

    best.iterations = iterations
    return best


def find_fire_month_for_median_depletion(
    raw_params,
    config: MonteCarloConfig | None = None,
    target: float = 0.0,
    low: int = 0,
    high: int | None = None,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> DepletionSearchResult:
    """Earliest FIRE month whose Monte Carlo median terminal balance reaches `target`.

    The median is non-decreasing in the FIRE month (more working months, fewer
    retired months). With target=0 this is the "spend it all" retirement month.
    """
    params = normalize_params(raw_params)
    if config is None:
        config = MonteCarloConfig()
    if high is None:
        high = min(params.max_months, params.total_months)
    low = max(0, int(low))
    high = max(low, int(high))

    def evaluate(month: int) -> MonteCarloResult:
        return run_monte_carlo(params, dataclasses.replace(config, force_fire_month=month))

    low_mc = evaluate(low)
    if low_mc.p50 >= target:
        # 下限でちょうど目標に一致した場合は境界ではなく解として返す
        boundary = BOUNDARY_LOW if low_mc.p50 > target else None
        return _result_for(low, low_mc, boundary)
    high_mc = evaluate(high)
    if high_mc.p50 < target:
        return _result_for(high, high_mc, BOUNDARY_HIGH)

    # Invariant: median(low) < target <= median(high)
    best_month, best_mc = high, high_mc
    iterations = 0
    while high - low > 1 and iterations < max_iterations:
        iterations += 1
        mid = (low + high) // 2
        mid_mc = evaluate(mid)
        if mid_mc.p50 >= target:
            high = mid
            best_month, best_mc = mid, mid_mc
            if mid_mc.p50 - target <= tolerance:
                break
        else:
            low = mid

    return _result_for(best_month, best_mc, iterations=iterations)


def recommended_fire_age(current_age: float, fire_month: int) -> int | None:
    """Whole-year age at a FIRE month; None when FIRE is never reached."""
    if fire_month is None or fire_month == NEVER:
        return None
    return int(current_age + fire_month / 12)
