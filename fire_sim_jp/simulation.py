"""Core FIRE simulation engine: month-by-month projector, required assets, FIRE month search."""

import math
from dataclasses import dataclass

from fire_sim_jp.expenses import ExpenseSchedule, build_expense_schedule, first_year_spike
from fire_sim_jp.params import SimulationParams, normalize_params, round_yen
from fire_sim_jp.pension import calculate_monthly_pension

NEVER = -1  # FIRE未達（終了年齢まで資産が持たない）
COARSE_STEP_MONTHS = 12


@dataclass
class MonthlyState:
    """Balances at the start of a month plus that month's flows."""

    month: int
    age: float
    assets: float
    risk_assets: float
    cash_assets: float
    required_assets: float
    is_fire: bool
    income: float
    pension: float
    expenses: float
    investment_gain: float = 0.0
    withdrawal: float = 0.0


@dataclass
class SimulationResult:
    fire_reached_month: int
    monthly_data: list[MonthlyState] | None
    survived: bool
    final_assets: float


@dataclass
class YearlySummary:
    """Annual aggregate of MonthlyState rows (amounts rounded to yen)."""

    age: int
    income: int
    pension: int
    expenses: int
    withdrawal: int
    investment_gain: int
    assets: int
    assets_year_end: int
    risk_assets: int
    cash_assets: int
    savings: int
    fire_month_in_year: int | None


def deterministic_returns(params: SimulationParams) -> list[float]:
    """Constant monthly mean return for every month of the horizon."""
    return [params.monthly_return_mean] * (params.total_months + 1)


def _withdraw_from_risk(
    needed: float, risk: float, cost_basis: float, tax_rate: float,
) -> tuple[float, float, float, float]:
    """Sell risk assets to raise `needed` after tax on the gain share.

    Returns (net_proceeds, gross_sold, risk, cost_basis).
    """
    gain_ratio = max(0.0, (risk - cost_basis) / risk) if risk > 0 else 0.0
    keep_ratio = 1 - tax_rate * gain_ratio
    if keep_ratio <= 0:
        raise ValueError(
            f"税率{tax_rate}と含み益比率{gain_ratio:.3f}では取り崩し額を算出できません"
        )
    max_net = max(0.0, risk * keep_ratio)
    net = min(needed, max_net)
    gross = net / keep_ratio

    cost_basis -= gross * (1 - gain_ratio)
    risk = max(0.0, risk - gross)
    # 取得原価は残高を超えない（含み損の月は原価も切り下げ）
    return net, gross, risk, min(max(0.0, cost_basis), risk)


def calculate_required_assets(
    params: SimulationParams, month: int, schedule: ExpenseSchedule,
) -> float:
    """Minimum assets at `month` to retire then and last until the end age at mean returns.

    Walks backward from the horizon; each step takes the larger of the literal
    expense shortfall and the withdrawal-rate floor requirement.
    """
    remaining = params.total_months - month
    if remaining <= 0:
        return 0.0

    r = params.monthly_return_mean
    w = params.withdrawal_rate / 12
    t = params.effective_tax_rate
    keep = 1 - t
    floor_denominator = 1 - w / keep if keep > 0 else 0.0
    if keep <= 0 or floor_denominator <= 0:
        raise ValueError(f"税率{t}・取崩率{params.withdrawal_rate}では必要資産を算出できません")

    fire_age = params.age_at_month(month)
    required = 0.0
    for i in range(remaining - 1, -1, -1):
        k = month + i
        pension = 0
        if params.include_pension:
            pension = calculate_monthly_pension(fire_age + i / 12, fire_age, params.pension_config)
        expense = schedule.base[k] + schedule.extra[k]
        if i < 12:
            expense += first_year_spike(params, k)

        shortfall = max(0.0, expense - pension)
        discounted = required / (1 + r)
        case_expense = discounted + shortfall / keep
        case_floor = (discounted - pension / keep) / floor_denominator
        required = max(0.0, case_expense, case_floor)

    return required


def run_core_simulation(
    params: SimulationParams,
    fire_month: int = NEVER,
    returns: list[float] | None = None,
    record_monthly: bool = False,
    skip_required_assets: bool = False,
    schedule: ExpenseSchedule | None = None,
) -> SimulationResult:
    """Project cash and risk assets month by month with FIRE starting at fire_month.

    returns: per-month return rates (length >= total_months); mean return if None.
    record_monthly: collect a MonthlyState row for each month up to max_months.
    """
    total_months = params.total_months
    if returns is None:
        returns = deterministic_returns(params)
    if len(returns) < total_months:
        raise ValueError(f"リターン系列が短すぎます: {len(returns)} < {total_months}ヶ月")
    if schedule is None:
        schedule = build_expense_schedule(params)

    tax_rate = params.effective_tax_rate
    fire_age = params.fire_age_for_month(fire_month)

    risk = params.risk_assets
    cost_basis = params.risk_assets
    cash = params.initial_assets - params.risk_assets
    monthly_data: list[MonthlyState] | None = [] if record_monthly else None

    for m in range(total_months + 1):
        age = params.age_at_month(m)

        if m == fire_month:
            cash += params.retirement_lump_sum_at_fire

        is_fire = fire_month != NEVER and m >= fire_month
        spike = 0.0
        if is_fire and m < fire_month + 12:
            spike = first_year_spike(params, m)

        assets = max(0.0, cash + risk)
        pension = 0
        if params.include_pension:
            pension = calculate_monthly_pension(age, fire_age, params.pension_config)
        income = 0.0 if is_fire else params.monthly_income
        expenses = schedule.base[m] + (schedule.extra[m] if is_fire else 0.0) + spike
        available = income + pension

        row = None
        if record_monthly and m <= params.max_months:
            required = 0.0
            if not skip_required_assets:
                required = calculate_required_assets(params, m, schedule)
            row = MonthlyState(
                month=m,
                age=age,
                assets=assets,
                risk_assets=risk,
                cash_assets=cash,
                required_assets=required,
                is_fire=is_fire,
                income=income,
                pension=pension,
                expenses=expenses,
            )
            monthly_data.append(row)

        if m == total_months:
            break

        if not is_fire:
            cash_after_flow = cash + available - expenses
            if cash_after_flow < 0:
                net, gross, risk, cost_basis = _withdraw_from_risk(
                    -cash_after_flow, risk, cost_basis, tax_rate,
                )
                cash = cash_after_flow + net
                withdrawal = gross if net > 0 else 0.0
            else:
                # Contributions never exceed cash on hand
                invest = min(params.monthly_investment, cash_after_flow)
                cash = cash_after_flow - invest
                risk += invest
                cost_basis += invest
                withdrawal = 0.0
        else:
            # Withdrawal-rate rule is a floor; surplus idles in cash
            floor_amount = assets * params.withdrawal_rate / 12
            shortfall = max(0.0, expenses - available)
            to_withdraw = max(shortfall, floor_amount)
            from_cash = min(cash, to_withdraw)
            net, gross, risk, cost_basis = _withdraw_from_risk(
                to_withdraw - from_cash, risk, cost_basis, tax_rate,
            )
            cash += available + net - expenses
            withdrawal = from_cash + gross

        gain = risk * returns[m]
        risk += gain
        cost_basis = min(cost_basis, risk)

        if row is not None:
            row.investment_gain = gain
            row.withdrawal = withdrawal

    final_assets = cash + risk
    return SimulationResult(
        fire_reached_month=fire_month,
        monthly_data=monthly_data,
        survived=final_assets >= 0,
        final_assets=final_assets,
    )


def find_survival_month(
    params: SimulationParams,
    returns: list[float] | None = None,
    schedule: ExpenseSchedule | None = None,
) -> int:
    """Earliest FIRE month whose projection survives to the end age (NEVER if none).

    Coarse 12-month steps, then binary search inside the preceding year.
    Relies on survival being non-decreasing in the FIRE month.
    """
    if returns is None:
        returns = deterministic_returns(params)
    if schedule is None:
        schedule = build_expense_schedule(params)

    def survives(m: int) -> bool:
        return run_core_simulation(params, fire_month=m, returns=returns, schedule=schedule).survived

    limit = min(params.max_months, params.total_months)
    result = NEVER
    for m in range(0, limit + 1, COARSE_STEP_MONTHS):
        if survives(m):
            result = m
            break

    if result == NEVER:
        return NEVER

    low = max(0, result - (COARSE_STEP_MONTHS - 1))
    high = result
    while low <= high:
        mid = (low + high) // 2
        if survives(mid):
            result = mid
            high = mid - 1
        else:
            low = mid + 1
    return result


def perform_fire_simulation(
    raw_params,
    force_fire_month: int | None = None,
    returns: list[float] | None = None,
    record_monthly: bool = False,
    skip_required_assets: bool = False,
) -> SimulationResult:
    """Normalize params, locate (or force) the FIRE month and run the projection."""
    params = normalize_params(raw_params)
    if returns is None:
        returns = deterministic_returns(params)
    schedule = build_expense_schedule(params)

    fire_month = force_fire_month
    if fire_month is None:
        fire_month = find_survival_month(params, returns, schedule)

    return run_core_simulation(
        params,
        fire_month=fire_month,
        returns=returns,
        record_monthly=record_monthly,
        skip_required_assets=skip_required_assets,
        schedule=schedule,
    )


def generate_growth_table(raw_params) -> tuple[list[dict], int]:
    """Monthly asset vs required-asset table. Returns (rows, fire_reached_month)."""
    result = perform_fire_simulation(raw_params, record_monthly=True)
    table = [
        {
            "month": s.month,
            "age": s.age,
            "assets": s.assets,
            "required_assets": s.required_assets,
            "is_fire": s.is_fire,
        }
        for s in result.monthly_data
    ]
    return table, result.fire_reached_month


def summarize_annual(monthly_data: list[MonthlyState], fire_reached_month: int) -> list[YearlySummary]:
    """Aggregate monthly rows into 12-month blocks."""
    summaries = []
    n = len(monthly_data)
    for y in range(math.ceil(n / 12)):
        start = y * 12
        end = min(start + 12, n)
        block = monthly_data[start:end]
        first = monthly_data[start]
        year_end = monthly_data[end] if end < n else monthly_data[end - 1]
        fire_in_year = fire_reached_month if start <= fire_reached_month < end else None
        summaries.append(YearlySummary(
            age=math.floor(first.age),
            income=round_yen(sum(s.income for s in block)),
            pension=round_yen(sum(s.pension for s in block)),
            expenses=round_yen(sum(s.expenses for s in block)),
            withdrawal=round_yen(sum(s.withdrawal for s in block)),
            investment_gain=round_yen(sum(s.investment_gain for s in block)),
            assets=round_yen(first.assets),
            assets_year_end=round_yen(year_end.assets),
            risk_assets=round_yen(first.risk_assets),
            cash_assets=round_yen(first.cash_assets),
            savings=round_yen(year_end.cash_assets - first.cash_assets),
            fire_month_in_year=fire_in_year,
        ))
    return summaries


def generate_annual_simulation(raw_params) -> list[YearlySummary]:
    """Run the deterministic projection and summarize it per year."""
    result = perform_fire_simulation(raw_params, record_monthly=True)
    return summarize_annual(result.monthly_data, result.fire_reached_month)
