"""Monte Carlo simulation engine (sequence-of-returns risk)."""

import math
import sys
from dataclasses import dataclass, field

from fire_sim_jp.expenses import build_expense_schedule
from fire_sim_jp.params import SimulationParams, normalize_params
from fire_sim_jp.simulation import find_survival_month, run_core_simulation

MC_PERCENTILES = (10, 50, 90)
DEFAULT_SEED = 123

_MASK32 = 0xFFFFFFFF
_WEYL_INCREMENT = 0x6D2B79F5


def _imul32(a: int, b: int) -> int:
    return (a * b) & _MASK32


class SeededRandom:
    """Deterministic 32-bit PRNG (mulberry32). All state lives on the instance."""

    def __init__(self, seed: int):
        self.state = int(seed) & _MASK32

    def random(self) -> float:
        """Return the next float in [0, 1)."""
        self.state = (self.state + _WEYL_INCREMENT) & _MASK32
        t = self.state
        t = _imul32(t ^ (t >> 15), t | 1)
        t ^= (t + _imul32(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296


@dataclass
class MonteCarloConfig:
    """Configuration for Monte Carlo simulation."""

    trials: int = 1000
    annual_volatility: float = 0.15
    seed: int = DEFAULT_SEED
    force_fire_month: int | None = None


@dataclass
class MonteCarloResult:
    """Percentile outcomes across all trials."""

    success_rate: float
    trials: int
    fire_reached_month: int
    percentiles: dict[int, float] = field(default_factory=dict)
    # percentile → asset balance by year index (0 = now)
    percentile_paths: dict[int, list[float]] = field(default_factory=dict)
    final_assets: list[float] = field(default_factory=list)  # sorted ascending

    @property
    def p10(self) -> float:
        return self.percentiles[10]

    @property
    def p50(self) -> float:
        return self.percentiles[50]

    @property
    def p90(self) -> float:
        return self.percentiles[90]

    def to_dict(self) -> dict:
        """Plain-data view for message passing and export."""
        data = {
            "success_rate": self.success_rate,
            "trials": self.trials,
            "fire_reached_month": self.fire_reached_month,
        }
        for p in MC_PERCENTILES:
            data[f"p{p}"] = self.percentiles[p]
            data[f"p{p}_path"] = list(self.percentile_paths[p])
        return data


def _next_gaussian(rng: SeededRandom) -> float:
    """Standard normal sample via Box–Muller."""
    u = 0.0
    v = 0.0
    while u == 0:
        u = rng.random()
    while v == 0:
        v = rng.random()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def _log_normal_monthly_params(annual_return: float, annual_volatility: float) -> tuple[float, float]:
    """Monthly (mu, sigma) of log-returns matching the annual arithmetic mean and volatility."""
    # 1+R ~ LogNormal(alpha, beta^2) with E[1+R] = 1+mu, Std[1+R] = sigma
    m = 1 + annual_return
    beta_sq = math.log(1 + (annual_volatility / m) ** 2)
    alpha = math.log(m) - 0.5 * beta_sq
    return alpha / 12, math.sqrt(beta_sq / 12)


def _sample_log_normal_returns(
    rng: SeededRandom,
    n_months: int,
    annual_return: float,
    volatility: float,
) -> list[float]:
    """Sample monthly investment returns from a log-normal distribution."""
    mu, sigma = _log_normal_monthly_params(annual_return, volatility)
    return [math.exp(mu + sigma * _next_gaussian(rng)) - 1 for _ in range(n_months)]


def _percentile_from_sorted(sorted_vals: list[float], p: float) -> float:
    """Percentile with linear interpolation between order statistics."""
    n = len(sorted_vals)
    if n == 1:
        return sorted_vals[0]
    pos = p / 100 * (n - 1)
    lower = math.floor(pos)
    upper = math.ceil(pos)
    if lower == upper:
        return sorted_vals[lower]
    weight = pos - lower
    return sorted_vals[lower] + (sorted_vals[upper] - sorted_vals[lower]) * weight


def _sanitize_config(config: MonteCarloConfig) -> tuple[int, float, int]:
    try:
        trials = max(1, int(config.trials or 0))
    except (TypeError, ValueError):
        trials = 1
    try:
        volatility = float(config.annual_volatility)
    except (TypeError, ValueError):
        volatility = 0.0
    if not math.isfinite(volatility):
        volatility = 0.0
    seed = config.seed
    if isinstance(seed, bool) or not isinstance(seed, int):
        seed = DEFAULT_SEED
    return trials, max(0.0, volatility), seed


def _yearly_samples(monthly_data, total_years: int) -> list[float]:
    """Asset balance every 12 months; beyond the recorded range repeat the last row."""
    samples = []
    for y in range(total_years + 1):
        idx = y * 12
        row = monthly_data[idx] if idx < len(monthly_data) else monthly_data[-1]
        samples.append(row.assets)
    return samples


def run_monte_carlo(
    raw_params,
    config: MonteCarloConfig | None = None,
    quiet: bool = True,
) -> MonteCarloResult:
    """Run the projection under randomized monthly returns.

    The FIRE month is fixed once from the deterministic projection (or
    config.force_fire_month) and shared by every trial. A single seeded PRNG
    is consumed sequentially across trials, so identical inputs reproduce
    identical results.
    """
    if config is None:
        config = MonteCarloConfig()
    params: SimulationParams = normalize_params(raw_params)
    trials, volatility, seed = _sanitize_config(config)
    schedule = build_expense_schedule(params)

    fire_month = config.force_fire_month
    if fire_month is None:
        fire_month = find_survival_month(params, schedule=schedule)

    rng = SeededRandom(seed)
    total_months = params.total_months
    total_years = math.ceil(total_months / 12)

    final_assets: list[float] = []
    yearly_history: list[list[float]] = []
    success_count = 0

    for i in range(trials):
        returns = _sample_log_normal_returns(
            rng, total_months + 1, params.annual_return_rate, volatility,
        )
        result = run_core_simulation(
            params,
            fire_month=fire_month,
            returns=returns,
            record_monthly=True,
            skip_required_assets=True,
            schedule=schedule,
        )
        final_assets.append(result.final_assets)
        if result.survived:
            success_count += 1
        yearly_history.append(_yearly_samples(result.monthly_data, total_years))

        if not quiet and (i + 1) % 100 == 0:
            print(f"\r  Monte Carlo: {i + 1}/{trials}", end="", file=sys.stderr)

    if not quiet and trials >= 100:
        print(file=sys.stderr)

    final_assets.sort()
    percentiles = {p: _percentile_from_sorted(final_assets, p) for p in MC_PERCENTILES}

    percentile_paths: dict[int, list[float]] = {p: [] for p in MC_PERCENTILES}
    for y in range(total_years + 1):
        at_year = sorted(history[y] for history in yearly_history)
        for p in MC_PERCENTILES:
            percentile_paths[p].append(_percentile_from_sorted(at_year, p))

    return MonteCarloResult(
        success_rate=success_count / trials,
        trials=trials,
        fire_reached_month=fire_month,
        percentiles=percentiles,
        percentile_paths=percentile_paths,
        final_assets=final_assets,
    )
