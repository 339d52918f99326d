"""Household composition: dependent ages, independence timing and living-cost reduction."""

from datetime import date

from fire_sim_jp.params import HouseholdType

INDEPENDENCE_MONTH = 4  # 独立は満年齢到達年の4月（新年度）

# 子の独立後の生活費係数（非住宅ローン部分）
FAMILY_DEFAULT_REDUCTION = 0.8  # 子1人: 約2割減
# 子の人数 → 独立済み人数ごとの係数
REDUCTION_TABLES: dict[int, tuple[float, ...]] = {
    2: (1.0, 0.85, 0.70),
    3: (1.0, 0.90, 0.80, 0.65),
}

# 支出内訳からの減額ルール（子の独立後に残る割合）
_BREAKDOWN_REDUCTION_RULES: dict[str, float] = {
    "食費": 2 / 3,
    "教養・教育": 0,
    "通信費": 2 / 3,
    "衣服・美容": 2 / 3,
    "日用品": 2 / 3,
}


def parse_birth_date(value) -> date | None:
    """Parse an ISO date (YYYY-MM-DD); invalid or empty input → None."""
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def calculate_age(birth_date, base_date: date | None = None) -> int:
    """Return age in whole years at base_date (default today). Unparsable input → 0."""
    born = parse_birth_date(birth_date)
    if born is None:
        return 0
    if base_date is None:
        base_date = date.today()
    age = base_date.year - born.year
    if (base_date.month, base_date.day) < (born.month, born.day):
        age -= 1
    return age


def add_months(d: date, months: int) -> date:
    """Return the first day of the month `months` after d."""
    total = d.year * 12 + (d.month - 1) + months
    return date(total // 12, total % 12 + 1, 1)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def independence_month_keys(birth_dates, independence_age: int) -> list[str]:
    """Return sorted "YYYY-MM" keys of each dependent's independence month.

    Independence is April of the year the dependent turns independence_age.
    Unparsable birth dates are skipped.
    """
    keys = []
    for value in birth_dates:
        born = parse_birth_date(value)
        if born is None:
            continue
        keys.append(month_key(date(born.year + independence_age, INDEPENDENCE_MONTH, 1)))
    return sorted(keys)


def household_reduction_factor(household_type: HouseholdType) -> float:
    """Single-dependent reduction factor: fixed 0.8 for family households."""
    if household_type == HouseholdType.FAMILY:
        return FAMILY_DEFAULT_REDUCTION
    return 1.0


def reducible_dependent_count(household_type: HouseholdType, birth_dates) -> int:
    """Dependents counted for the staged reduction (family households only)."""
    if household_type != HouseholdType.FAMILY:
        return 0
    return len(birth_dates)


def reduction_factor(independent_count: int, dependent_count: int, single_factor: float) -> float:
    """Living-cost factor once `independent_count` dependents have become independent."""
    table = REDUCTION_TABLES.get(min(dependent_count, max(REDUCTION_TABLES)))
    if table is None:
        return single_factor if independent_count > 0 else 1.0
    return table[min(independent_count, len(table) - 1)]


def calculate_lifestyle_reduction(breakdown: list[dict] | None) -> float:
    """Weighted reduction derived from an expense breakdown [{"name", "amount"}, ...].

    Alternative to the fixed family factor; the expense schedule uses
    household_reduction_factor() instead.
    """
    if not breakdown:
        return 1.0
    original_total = 0.0
    reduced_total = 0.0
    for item in breakdown:
        amount = item.get("amount", 0)
        original_total += amount
        reduced_total += amount * _BREAKDOWN_REDUCTION_RULES.get(item.get("name"), 1.0)
    if original_total == 0:
        return 1.0
    return reduced_total / original_total
