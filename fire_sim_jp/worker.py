"""Message-passing boundary for running Monte Carlo analysis off the caller's thread.

Request:  {"simulation_params": {...}, "options": {"trials", "annual_volatility",
           "seed", "target_success_rate", "simulation_end_age", "current_age"}}
Response: {"type": "success", "result": {...}} or {"type": "error", "error": str}
"""

import dataclasses
from concurrent.futures import Executor, Future, ProcessPoolExecutor

from fire_sim_jp.monte_carlo import DEFAULT_SEED, MonteCarloConfig, run_monte_carlo
from fire_sim_jp.params import normalize_params
from fire_sim_jp.targets import (
    DEFAULT_MAX_ITERATIONS,
    find_fire_month_for_median_depletion,
    recommended_fire_age,
)

DEFAULT_TARGET_SUCCESS_RATE = 0.9


def _apply_option_overrides(params, options: dict):
    current_age = options.get("current_age")
    end_age = options.get("simulation_end_age")
    if current_age is None and end_age is None:
        return params
    raw = {f.name: getattr(params, f.name) for f in dataclasses.fields(params)}
    if current_age is not None:
        raw["current_age"] = current_age
    if end_age is not None:
        raw["simulation_end_age"] = end_age
    # Re-normalizing re-clamps the end age against the (possibly new) current age
    return normalize_params(raw)


def run_full_monte_carlo_analysis(simulation_params, options: dict | None = None) -> dict:
    """Monte Carlo percentiles plus the median-depletion retirement plan, as plain data."""
    options = options or {}
    params = _apply_option_overrides(normalize_params(simulation_params), options)
    config = MonteCarloConfig(
        trials=options.get("trials", 1000),
        annual_volatility=options.get("annual_volatility", 0.15),
        seed=options.get("seed", DEFAULT_SEED),
    )
    target_success_rate = options.get("target_success_rate", DEFAULT_TARGET_SUCCESS_RATE)

    mc = run_monte_carlo(params, config)
    plan = find_fire_month_for_median_depletion(
        params, config,
        target=0.0,
        max_iterations=options.get("max_iterations", DEFAULT_MAX_ITERATIONS),
    )

    result = mc.to_dict()
    result["target_success_rate"] = target_success_rate
    result["meets_target_success_rate"] = mc.success_rate >= target_success_rate
    result["recommended_fire_month"] = plan.value
    result["recommended_fire_age"] = recommended_fire_age(params.current_age, plan.value)
    result["terminal_depletion_plan"] = plan.to_dict()
    return result


def handle_request(message: dict) -> dict:
    """Run one analysis request; failures are reported in the response, never raised."""
    try:
        simulation_params = message.get("simulation_params")
        options = message.get("options") or {}
        result = run_full_monte_carlo_analysis(simulation_params, options)
        return {"type": "success", "result": result}
    except Exception as e:
        return {"type": "error", "error": str(e) or type(e).__name__}


class MonteCarloWorker:
    """Single background process serving analysis requests.

    Requests run to completion; to abandon one, discard its future and
    shut the worker down.
    """

    def __init__(self, executor: Executor | None = None):
        self._executor = executor or ProcessPoolExecutor(max_workers=1)

    def submit(self, message: dict) -> Future:
        return self._executor.submit(handle_request, message)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> "MonteCarloWorker":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
