"""TOML config loader with CLI > config > default resolution."""

import argparse
import sys
import tomllib
from pathlib import Path
from typing import Callable

from fire_sim_jp.household import calculate_age
from fire_sim_jp.params import SimulationParams, _to_date, normalize_params

DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "current_age": 40,
    "birth_date": "",
    "simulation_end_age": 100,
    "max_months": 1200,
    "initial_assets": 0.0,
    "risk_assets": 0.0,
    "annual_return_rate": 0.05,
    "monthly_expense": 250_000.0,
    "monthly_income": 0.0,
    "monthly_investment": 0.0,
    "inflation": False,
    "inflation_rate": 0.02,
    "tax": False,
    "tax_rate": 0.20315,
    "withdrawal_rate": 0.04,
    "mortgage_payment": 0.0,
    "mortgage_payoff": "",
    "post_fire_extra": 0.0,
    "post_fire_first_year_extra": 0.0,
    "lump_sum": 5_000_000.0,
    "pension": False,
    "pension_start_age": 65,
    "spouse_pension_start_age": 65,
    "household": "single",
    "dependents": "",
    "independence_age": 24,
    "start_date": "",
}


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"設定ファイルの読み込みに失敗: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Normalize dependents: TOML list/bool → CLI-compatible string
    if "dependents" in raw:
        v = raw["dependents"]
        if isinstance(v, list):
            raw["dependents"] = ",".join(str(x) for x in v)
        elif v is False:
            raw["dependents"] = ""
    # Migrate legacy single dependent key
    if "dependent_birth_date" in raw:
        v = raw.pop("dependent_birth_date")
        raw.setdefault("dependents", str(v) if v else "")
    # Migrate legacy annual expense → monthly
    if "expenses" in raw:
        v = raw.pop("expenses")
        raw.setdefault("monthly_expense", float(v) / 12)
    # TOML dates come back as datetime.date
    for key in ("birth_date", "start_date"):
        if key in raw and not isinstance(raw[key], str):
            raw[key] = raw[key].isoformat()
    return raw


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared simulation flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="設定ファイルパス (default: config.toml)")
    parser.add_argument("--current-age", type=float, default=None, help=f"現在の年齢 (default: {d['current_age']})")
    parser.add_argument("--birth-date", type=str, default=None, help="生年月日 YYYY-MM-DD（指定時は現在の年齢を自動算出）")
    parser.add_argument("--simulation-end-age", type=int, default=None, help=f"シミュレーション終了年齢 80-100 (default: {d['simulation_end_age']})")
    parser.add_argument("--max-months", type=int, default=None, help=f"FIRE探索の上限月数 (default: {d['max_months']})")
    parser.add_argument("--initial-assets", type=float, default=None, help="金融資産総額・円 (default: 0)")
    parser.add_argument("--risk-assets", type=float, default=None, help="うちリスク資産・円 (default: 0)")
    parser.add_argument("--annual-return-rate", type=float, default=None, help=f"期待リターン（年率）(default: {d['annual_return_rate']})")
    parser.add_argument("--monthly-expense", type=float, default=None, help=f"月間生活費・円（ローン返済込み）(default: {d['monthly_expense']:,.0f})")
    parser.add_argument("--monthly-income", type=float, default=None, help="月間手取り収入・円 (default: 0)")
    parser.add_argument("--monthly-investment", type=float, default=None, help="毎月の投資上限額・円 (default: 0)")
    parser.add_argument("--inflation", action="store_true", default=None, help="インフレを考慮する")
    parser.add_argument("--inflation-rate", type=float, default=None, help=f"インフレ率（年率）(default: {d['inflation_rate']})")
    parser.add_argument("--tax", action="store_true", default=None, help="取り崩し時の譲渡益課税を考慮する")
    parser.add_argument("--tax-rate", type=float, default=None, help=f"譲渡益税率 (default: {d['tax_rate']})")
    parser.add_argument("--withdrawal-rate", type=float, default=None, help=f"FIRE後の最低取崩率（年率）(default: {d['withdrawal_rate']})")
    parser.add_argument("--mortgage-payment", type=float, default=None, help="住宅ローン月額返済・円 (default: 0)")
    parser.add_argument("--mortgage-payoff", type=str, default=None, help="住宅ローン完済月 YYYY-MM")
    parser.add_argument("--post-fire-extra", type=float, default=None, help="FIRE後の追加支出・円/月（国保・国民年金等）")
    parser.add_argument("--post-fire-first-year-extra", type=float, default=None, help="FIRE1年目の特別支出・円/年（住民税等）")
    parser.add_argument("--lump-sum", type=float, default=None, help=f"FIRE時の退職金・円 (default: {d['lump_sum']:,.0f})")
    parser.add_argument("--pension", action="store_true", default=None, help="公的年金を考慮する")
    parser.add_argument("--pension-start-age", type=float, default=None, help=f"年金受給開始年齢 60-75 (default: {d['pension_start_age']})")
    parser.add_argument("--spouse-pension-start-age", type=float, default=None, help=f"配偶者の年金受給開始年齢 (default: {d['spouse_pension_start_age']})")
    parser.add_argument("--household", type=str, default=None, choices=["single", "couple", "family"], help="世帯構成 (default: single)")
    parser.add_argument("--dependents", type=str, default=None, help="子の生年月日（カンマ区切り、最大3人、例: 2013-02-20,2015-05-10）")
    parser.add_argument("--independence-age", type=int, default=None, help=f"子の独立年齢 (default: {d['independence_age']})")
    parser.add_argument("--start-date", type=str, default=None, help="シミュレーション開始日 YYYY-MM-DD (default: 今日)")
    return parser


def parse_birth_dates(s: str) -> list[str]:
    """Parse dependents string "YYYY-MM-DD,..." → list of date strings. Empty/none → []."""
    s = str(s).strip()
    if not s or s.lower() == "none":
        return []
    return [part.strip() for part in s.split(",") if part.strip()]


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    table = config.get("pension")
    table = dict(table) if isinstance(table, dict) else {}
    # Start-age flags outrank the [pension] table
    for flag, field in (("pension_start_age", "user_start_age"),
                        ("spouse_pension_start_age", "spouse_start_age")):
        if getattr(args, flag, None) is not None:
            table[field] = getattr(args, flag)
    resolved["pension_table"] = table
    return resolved


def resolve_current_age(r: dict) -> float:
    """Age from birth_date when given (relative to start_date or today), else current_age."""
    if r.get("birth_date"):
        base = _to_date(r.get("start_date")) if r.get("start_date") else None
        age = calculate_age(r["birth_date"], base)
        if age > 0:
            return age
    return r["current_age"]


def build_params(r: dict) -> SimulationParams:
    """Build SimulationParams from resolved config dict."""
    pension = dict(r.get("pension_table") or {})
    pension.setdefault("user_start_age", r["pension_start_age"])
    pension.setdefault("spouse_start_age", r["spouse_pension_start_age"])
    raw = {
        "current_age": resolve_current_age(r),
        "simulation_end_age": r["simulation_end_age"],
        "max_months": r["max_months"],
        "initial_assets": r["initial_assets"],
        "risk_assets": r["risk_assets"],
        "annual_return_rate": r["annual_return_rate"],
        "monthly_expense": r["monthly_expense"],
        "monthly_income": r["monthly_income"],
        "monthly_investment": r["monthly_investment"],
        "include_inflation": r["inflation"],
        "inflation_rate": r["inflation_rate"],
        "include_tax": r["tax"],
        "tax_rate": r["tax_rate"],
        "withdrawal_rate": r["withdrawal_rate"],
        "mortgage_monthly_payment": r["mortgage_payment"],
        "mortgage_payoff_date": r["mortgage_payoff"],
        "post_fire_extra_expense": r["post_fire_extra"],
        "post_fire_first_year_extra_expense": r["post_fire_first_year_extra"],
        "retirement_lump_sum_at_fire": r["lump_sum"],
        "include_pension": r["pension"],
        "pension_config": pension,
        "household_type": r["household"],
        "dependent_birth_dates": parse_birth_dates(r["dependents"]),
        "independence_age": r["independence_age"],
        "start_date": r["start_date"] or None,
    }
    return normalize_params(raw)


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[dict, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (resolved_dict, namespace). namespace carries extra CLI args
    added via add_args_fn.
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    return resolve(args, config), args
