"""Simulation parameters, pension configuration and input normalization."""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

# Simulation horizon (年齢)
DEFAULT_END_AGE = 100
MIN_END_AGE = 80
MAX_END_AGE = 100

DEFAULT_CURRENT_AGE = 40
DEFAULT_MAX_MONTHS = 1200
DEFAULT_INFLATION_RATE = 0.02
DEFAULT_TAX_RATE = 0.20315  # 譲渡益課税（所得税15.315%+住民税5%）
DEFAULT_WITHDRAWAL_RATE = 0.04
DEFAULT_RETIREMENT_LUMP_SUM = 5_000_000  # 退職金（円）
DEFAULT_INDEPENDENCE_AGE = 24
MAX_DEPENDENTS = 3


class HouseholdType(str, Enum):
    SINGLE = "single"
    COUPLE = "couple"
    FAMILY = "family"

    @classmethod
    def parse(cls, value) -> "HouseholdType":
        """Map a raw value onto a household type; unknown values fall back to single."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SINGLE


@dataclass(frozen=True)
class PensionConfig:
    """Simplified public pension model (老齢基礎年金 + 老齢厚生年金)."""

    user_start_age: float = 65
    spouse_start_age: float = 65
    basic_full_annual: float = 780_000  # 老齢基礎年金 満額（円/年）
    basic_reduction: float = 0.9        # 基礎年金の納付率
    # 繰上げ/繰下げ調整率。None なら受給開始年齢から自動算出
    early_reduction: float | None = None
    pension_data_age: float = 44        # ねんきん定期便の基準年齢
    accrued_at_data_age_annual: float = 1_000_000  # 基準年齢時点の厚生年金見込額（円/年）
    future_accrual_per_year: float = 42_000        # 以後1年加入あたりの増加額（円/年）
    include_spouse: bool = True


DEFAULT_PENSION_CONFIG = PensionConfig()


@dataclass(frozen=True)
class SimulationParams:

    # Assets
    initial_assets: float = 0.0
    risk_assets: float = 0.0
    annual_return_rate: float = 0.0

    # Cash flow (円/月)
    monthly_expense: float = 0.0
    monthly_income: float = 0.0
    monthly_investment: float = 0.0

    # Ages
    current_age: float = DEFAULT_CURRENT_AGE
    simulation_end_age: int = DEFAULT_END_AGE
    max_months: int = DEFAULT_MAX_MONTHS

    # Economic parameters
    include_inflation: bool = False
    inflation_rate: float = DEFAULT_INFLATION_RATE
    include_tax: bool = False
    tax_rate: float = DEFAULT_TAX_RATE
    withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE

    # Housing loan
    mortgage_monthly_payment: float = 0.0
    mortgage_payoff_date: str | None = None  # "YYYY-MM"（完済月まで支払い）

    # Post-FIRE costs
    post_fire_extra_expense: float = 0.0             # 国保・国民年金等（円/月）
    post_fire_first_year_extra_expense: float = 0.0  # 前年所得ベースの住民税等（円/年）
    retirement_lump_sum_at_fire: float = DEFAULT_RETIREMENT_LUMP_SUM

    # Pension
    include_pension: bool = False
    pension_config: PensionConfig = DEFAULT_PENSION_CONFIG

    # Household
    household_type: HouseholdType = HouseholdType.SINGLE
    dependent_birth_dates: tuple[str, ...] = ()
    independence_age: int = DEFAULT_INDEPENDENCE_AGE

    # Wall-clock month mapped to month index 0
    start_date: date = field(default_factory=date.today)

    @property
    def total_months(self) -> int:
        """Number of months from now until the simulation end age."""
        months = (self.simulation_end_age - self.current_age) * 12
        return max(0, int(math.floor(months + 1e-9)))

    @property
    def monthly_return_mean(self) -> float:
        return (1 + self.annual_return_rate) ** (1 / 12) - 1

    @property
    def monthly_inflation_rate(self) -> float:
        rate = self.inflation_rate if self.include_inflation else 0.0
        return (1 + rate) ** (1 / 12) - 1

    @property
    def effective_tax_rate(self) -> float:
        return self.tax_rate if self.include_tax else 0.0

    def age_at_month(self, month: int) -> float:
        return self.current_age + month / 12

    def fire_age_for_month(self, fire_month: int) -> float:
        """Age at retirement; a never-reached FIRE month maps far beyond the horizon."""
        if fire_month == -1:
            return self.current_age + 100
        return self.age_at_month(fire_month)


def clamp_end_age(end_age, current_age: float) -> int:
    """Clamp the simulation end age into [max(80, ceil(current_age)), 100]."""
    lower = max(MIN_END_AGE, math.ceil(current_age))
    upper = max(lower, MAX_END_AGE)
    value = int(_to_float(end_age, DEFAULT_END_AGE))
    return min(max(value, lower), upper)


def round_yen(value: float) -> int:
    """Round half-up to the nearest yen."""
    return int(math.floor(value + 0.5))


def _to_float(value, default: float) -> float:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return float(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_date(value) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    return date.today()


def normalize_pension_config(raw) -> PensionConfig:
    """Build a PensionConfig from a dict, falling back to defaults field by field."""
    if isinstance(raw, PensionConfig):
        return raw
    if not isinstance(raw, dict) or not raw:
        return DEFAULT_PENSION_CONFIG
    d = DEFAULT_PENSION_CONFIG
    early = raw.get("early_reduction")
    return PensionConfig(
        user_start_age=_to_float(raw.get("user_start_age"), d.user_start_age),
        spouse_start_age=_to_float(raw.get("spouse_start_age"), d.spouse_start_age),
        basic_full_annual=_to_float(raw.get("basic_full_annual"), d.basic_full_annual),
        basic_reduction=_to_float(raw.get("basic_reduction"), d.basic_reduction),
        early_reduction=None if early is None else _to_float(early, None),
        pension_data_age=_to_float(raw.get("pension_data_age"), d.pension_data_age),
        accrued_at_data_age_annual=_to_float(
            raw.get("accrued_at_data_age_annual"), d.accrued_at_data_age_annual,
        ),
        future_accrual_per_year=_to_float(
            raw.get("future_accrual_per_year"), d.future_accrual_per_year,
        ),
        include_spouse=_to_bool(raw.get("include_spouse", d.include_spouse)),
    )


def _normalize_birth_dates(raw: dict) -> tuple[str, ...]:
    dates = raw.get("dependent_birth_dates")
    if isinstance(dates, (list, tuple)):
        cleaned = [str(d).strip() for d in dates if d and str(d).strip()]
        return tuple(cleaned[:MAX_DEPENDENTS])
    single = raw.get("dependent_birth_date")
    if single:
        return (str(single).strip(),)
    return ()


def normalize_params(raw=None) -> SimulationParams:
    """Coerce raw input into a SimulationParams, substituting defaults for invalid fields.

    Accepts None, a dict with snake_case keys, or an existing SimulationParams.
    Never raises for malformed numeric input.
    """
    if raw is None:
        raw = {}
    elif isinstance(raw, SimulationParams):
        raw = {f.name: getattr(raw, f.name) for f in dataclasses.fields(raw)}

    if raw.get("monthly_expense") is not None:
        monthly_expense = _to_float(raw["monthly_expense"], 0.0)
    elif raw.get("monthly_expenses"):
        # Legacy annual figure
        monthly_expense = _to_float(raw["monthly_expenses"], 0.0) / 12
    else:
        monthly_expense = 0.0

    current_age = _to_float(raw.get("current_age"), DEFAULT_CURRENT_AGE) or DEFAULT_CURRENT_AGE
    payoff = raw.get("mortgage_payoff_date") or None
    independence_age = int(_to_float(raw.get("independence_age"), 0)) or DEFAULT_INDEPENDENCE_AGE

    return SimulationParams(
        initial_assets=_to_float(raw.get("initial_assets"), 0.0),
        risk_assets=_to_float(raw.get("risk_assets"), 0.0),
        annual_return_rate=_to_float(raw.get("annual_return_rate"), 0.0),
        monthly_expense=monthly_expense,
        monthly_income=_to_float(raw.get("monthly_income"), 0.0),
        monthly_investment=_to_float(raw.get("monthly_investment"), 0.0),
        current_age=current_age,
        simulation_end_age=clamp_end_age(raw.get("simulation_end_age"), current_age),
        max_months=max(0, int(_to_float(raw.get("max_months"), DEFAULT_MAX_MONTHS))),
        include_inflation=_to_bool(raw.get("include_inflation", False)),
        inflation_rate=_to_float(raw.get("inflation_rate"), DEFAULT_INFLATION_RATE),
        include_tax=_to_bool(raw.get("include_tax", False)),
        tax_rate=_to_float(raw.get("tax_rate"), DEFAULT_TAX_RATE),
        withdrawal_rate=_to_float(raw.get("withdrawal_rate"), DEFAULT_WITHDRAWAL_RATE),
        mortgage_monthly_payment=_to_float(raw.get("mortgage_monthly_payment"), 0.0),
        mortgage_payoff_date=str(payoff)[:7] if payoff else None,
        post_fire_extra_expense=_to_float(raw.get("post_fire_extra_expense"), 0.0),
        post_fire_first_year_extra_expense=_to_float(
            raw.get("post_fire_first_year_extra_expense"), 0.0,
        ),
        retirement_lump_sum_at_fire=_to_float(
            raw.get("retirement_lump_sum_at_fire"), DEFAULT_RETIREMENT_LUMP_SUM,
        ),
        include_pension=_to_bool(raw.get("include_pension", False)),
        pension_config=normalize_pension_config(raw.get("pension_config")),
        household_type=HouseholdType.parse(raw.get("household_type") or HouseholdType.SINGLE),
        dependent_birth_dates=_normalize_birth_dates(raw),
        independence_age=independence_age,
        start_date=_to_date(raw.get("start_date")),
    )
