"""CLI entry point for Monte Carlo simulation."""

import argparse
import sys
from pathlib import Path

from fire_sim_jp.config import build_params, parse_args
from fire_sim_jp.monte_carlo import DEFAULT_SEED, MC_PERCENTILES, MonteCarloConfig, MonteCarloResult, run_monte_carlo
from fire_sim_jp.params import SimulationParams
from fire_sim_jp.simulation import NEVER
from fire_sim_jp.targets import (
    BOUNDARY_HIGH,
    BOUNDARY_LOW,
    DepletionSearchResult,
    find_fire_month_for_median_depletion,
    find_withdrawal_rate_for_median_depletion,
    recommended_fire_age,
)
from fire_sim_jp.worker import DEFAULT_TARGET_SUCCESS_RATE


def _add_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--trials", type=int, default=1000,
        help="シミュレーション回数 (default: 1000)",
    )
    parser.add_argument(
        "--volatility", type=float, default=0.15,
        help="投資リターンのボラティリティ σ (default: 0.15)",
    )
    parser.add_argument(
        "--seed", type=int, default=DEFAULT_SEED,
        help=f"乱数シード (default: {DEFAULT_SEED})",
    )
    parser.add_argument(
        "--target-success-rate", type=float, default=DEFAULT_TARGET_SUCCESS_RATE,
        help=f"目標成功率 (default: {DEFAULT_TARGET_SUCCESS_RATE})",
    )
    parser.add_argument(
        "--depletion-plan", action="store_true",
        help="中央値で資産を使い切るFIRE時期と取崩率を探索する（低速）",
    )
    parser.add_argument(
        "--chart", action="store_true",
        help="ファンチャートを出力する",
    )
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="チャート出力ディレクトリ (default: reports/charts)",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="出力ファイル名のサフィックス（例: 40 → mc_fan-40.png）",
    )


def _fmt_oku(v: float) -> str:
    """Format yen to 億円 string with sign."""
    oku = v / 100_000_000
    if oku < 0:
        return f"▲{abs(oku):.2f}億"
    return f"{oku:.2f}億"


def _print_results(params: SimulationParams, result: MonteCarloResult, vol: float, target_rate: float):
    print()
    print(f"【Monte Carlo シミュレーション（N={result.trials:,}, σ={vol:.0%}）】")
    print("─" * 70)
    if result.fire_reached_month == NEVER:
        print("  FIRE時期: 確定論で到達せず（FIREなしで試算）")
    else:
        age = params.age_at_month(result.fire_reached_month)
        print(f"  FIRE時期: {result.fire_reached_month}ヶ月後（{age:.1f}歳）")
    verdict = "達成" if result.success_rate >= target_rate else "未達"
    print(f"  成功率: {result.success_rate:.1%}（目標{target_rate:.0%} {verdict}）")
    print("─" * 70)
    print(f"{'年齢':<6}" + "".join(f"{f'P{p}':>14}" for p in MC_PERCENTILES))
    print("─" * 70)
    n_years = len(result.percentile_paths[50])
    for y in range(0, n_years, 5):
        age = params.current_age + y
        row = "".join(f"{_fmt_oku(result.percentile_paths[p][y]):>14}" for p in MC_PERCENTILES)
        print(f"{age:<6.0f}{row}")
    print("─" * 70)
    final = "".join(f"{_fmt_oku(result.percentiles[p]):>14}" for p in MC_PERCENTILES)
    print(f"{'最終':<6}{final}")
    print("─" * 70)


def _boundary_note(plan: DepletionSearchResult) -> str:
    if plan.boundary_hit == BOUNDARY_LOW:
        return "（探索範囲の下限）"
    if plan.boundary_hit == BOUNDARY_HIGH:
        return "（探索範囲の上限・目標未達）"
    return ""


def _print_depletion_plan(params: SimulationParams, config: MonteCarloConfig):
    print("\n【中央値で資産を使い切るプラン】")
    print("─" * 70)
    print("  FIRE時期を探索中...", file=sys.stderr)
    month_plan = find_fire_month_for_median_depletion(params, config)
    age = recommended_fire_age(params.current_age, int(month_plan.value))
    print(
        f"  最短FIRE時期: {int(month_plan.value)}ヶ月後（{age}歳）{_boundary_note(month_plan)}"
        f" / 中央値 {_fmt_oku(month_plan.p50_terminal_assets)} / 成功率 {month_plan.success_rate:.1%}"
    )
    print("  取崩率を探索中...", file=sys.stderr)
    rate_plan = find_withdrawal_rate_for_median_depletion(params, config)
    print(
        f"  最大取崩率: {rate_plan.value:.2%}{_boundary_note(rate_plan)}"
        f" / 中央値 {_fmt_oku(rate_plan.p50_terminal_assets)} / 成功率 {rate_plan.success_rate:.1%}"
    )
    print("─" * 70)


def main():
    r, args = parse_args("Monte Carlo FIREシミュレーション", _add_args)
    params = build_params(r)
    mc_config = MonteCarloConfig(
        trials=args.trials,
        annual_volatility=args.volatility,
        seed=args.seed,
    )

    print("=" * 70)
    print(f"Monte Carlo FIREシミュレーション（{params.current_age:.0f}歳-{params.simulation_end_age}歳）")
    print(f"  N={args.trials:,} / σ={args.volatility:.0%} / 期待リターン={params.annual_return_rate:.1%} / seed={args.seed}")
    print("=" * 70)

    try:
        result = run_monte_carlo(params, mc_config, quiet=False)
        _print_results(params, result, args.volatility, args.target_success_rate)
        if args.depletion_plan:
            _print_depletion_plan(params, mc_config)
    except ValueError as e:
        print(f"\n{e}\n", file=sys.stderr)
        raise SystemExit(1)

    if args.chart:
        from fire_sim_jp.charts import plot_mc_fan

        path = plot_mc_fan(result, params.current_age, args.output, args.name)
        print(f"\nチャート出力: {path}", file=sys.stderr)


if __name__ == "__main__":
    main()
