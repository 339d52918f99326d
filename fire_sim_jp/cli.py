"""CLI entry point for deterministic FIRE simulation."""

import argparse
import sys
from pathlib import Path

from fire_sim_jp.config import build_params, parse_args
from fire_sim_jp.params import HouseholdType, SimulationParams
from fire_sim_jp.simulation import (
    NEVER,
    YearlySummary,
    perform_fire_simulation,
    summarize_annual,
)


def _add_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--chart", action="store_true",
        help="資産推移チャートを出力する",
    )
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="チャート出力ディレクトリ (default: reports/charts)",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="出力ファイル名のサフィックス（例: 40 → trajectory-40.png）",
    )


def _fmt_man(v: float) -> str:
    """Format yen as 万円 with sign."""
    man = v / 10_000
    if man < 0:
        return f"▲{abs(man):,.0f}万"
    return f"{man:,.0f}万"


def _print_header(params: SimulationParams):
    years = params.total_months / 12
    print("=" * 100)
    print(f"FIREシミュレーション（{params.current_age:.0f}歳-{params.simulation_end_age}歳、{years:.0f}年間）")
    print(
        f"  金融資産: {_fmt_man(params.initial_assets)}円（うちリスク資産 {_fmt_man(params.risk_assets)}円）"
        f" / 期待リターン: {params.annual_return_rate:.1%}"
    )
    print(
        f"  月間支出: {_fmt_man(params.monthly_expense)}円 / 手取り収入: {_fmt_man(params.monthly_income)}円"
        f" / 投資上限: {_fmt_man(params.monthly_investment)}円"
    )
    inflation = f"{params.inflation_rate:.1%}" if params.include_inflation else "なし"
    tax = f"{params.tax_rate:.3%}" if params.include_tax else "なし"
    print(f"  インフレ: {inflation} / 譲渡益課税: {tax} / 最低取崩率: {params.withdrawal_rate:.1%}")
    if params.mortgage_monthly_payment > 0:
        payoff = params.mortgage_payoff_date or "未設定"
        print(f"  住宅ローン: {_fmt_man(params.mortgage_monthly_payment)}円/月（完済 {payoff}）")
    if params.post_fire_extra_expense or params.post_fire_first_year_extra_expense:
        print(
            f"  FIRE後追加支出: {_fmt_man(params.post_fire_extra_expense)}円/月"
            f" / 1年目特別支出: {_fmt_man(params.post_fire_first_year_extra_expense)}円"
        )
    print(f"  退職金: {_fmt_man(params.retirement_lump_sum_at_fire)}円")
    if params.include_pension:
        pc = params.pension_config
        spouse = f" / 配偶者{pc.spouse_start_age:.0f}歳" if pc.include_spouse else ""
        print(f"  公的年金: 本人{pc.user_start_age:.0f}歳{spouse}から受給")
    if params.household_type == HouseholdType.FAMILY and params.dependent_birth_dates:
        print(f"  子: {', '.join(params.dependent_birth_dates)}生（{params.independence_age}歳で独立）")
    print("=" * 100)


def _print_fire_summary(params: SimulationParams, fire_month: int, final_assets: float):
    print("\n【FIRE判定】")
    if fire_month == NEVER:
        print(f"  {params.simulation_end_age}歳まで資産が持つFIRE時期はありません")
    else:
        age = params.age_at_month(fire_month)
        years, months = divmod(fire_month, 12)
        print(f"  FIRE可能時期: {years}年{months}ヶ月後（{age:.1f}歳）")
    print(f"  {params.simulation_end_age}歳時点の資産: {_fmt_man(final_assets)}円")


def _print_annual_table(summaries: list[YearlySummary]):
    print("\n【年次推移】")
    print("-" * 100)
    print(
        f"{'年齢':<5} {'収入':>10} {'年金':>10} {'支出':>10} {'取崩':>10}"
        f" {'運用益':>10} {'年初資産':>12} {'うちリスク':>12} {'年末資産':>12}"
    )
    print("-" * 100)
    for s in summaries:
        mark = " ← FIRE" if s.fire_month_in_year is not None else ""
        print(
            f"{s.age:<5} {_fmt_man(s.income):>10} {_fmt_man(s.pension):>10} {_fmt_man(s.expenses):>10}"
            f" {_fmt_man(s.withdrawal):>10} {_fmt_man(s.investment_gain):>10}"
            f" {_fmt_man(s.assets):>12} {_fmt_man(s.risk_assets):>12} {_fmt_man(s.assets_year_end):>12}{mark}"
        )
    print("-" * 100)


def main():
    """Execute deterministic FIRE simulation."""
    r, args = parse_args("FIREシミュレーション", _add_args)
    params = build_params(r)

    _print_header(params)

    try:
        result = perform_fire_simulation(params, record_monthly=True)
    except ValueError as e:
        print(f"\n{e}\n", file=sys.stderr)
        raise SystemExit(1)

    _print_fire_summary(params, result.fire_reached_month, result.final_assets)
    _print_annual_table(summarize_annual(result.monthly_data, result.fire_reached_month))

    if args.chart:
        from fire_sim_jp.charts import plot_trajectory

        path = plot_trajectory(result, args.output, args.name)
        print(f"\nチャート出力: {path}", file=sys.stderr)


if __name__ == "__main__":
    main()
