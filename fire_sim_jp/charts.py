"""Chart generation for FIRE simulation results."""

import platform
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from fire_sim_jp.monte_carlo import MonteCarloResult
from fire_sim_jp.simulation import NEVER, SimulationResult

COLOR_ASSETS = "#1f77b4"     # blue
COLOR_REQUIRED = "#ff7f0e"   # orange
COLOR_FIRE = "#2ca02c"       # green
COLOR_DEPLETED = "#d62728"   # red


def _setup_japanese_font():
    """Configure matplotlib to use a Japanese font."""
    system = platform.system()
    if system == "Darwin":
        font_family = "Hiragino Sans"
    elif system == "Linux":
        font_family = "Noto Sans CJK JP"
    else:
        font_family = "sans-serif"
    plt.rcParams["font.family"] = font_family
    plt.rcParams["axes.unicode_minus"] = False


def _format_man_axis(ax: plt.Axes):
    """Y axis in 万円, with 億円 labels on the right."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 10_000:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 100_000_000:.1f}億" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def _save(fig, output_path: Path, stem: str, name: str) -> Path:
    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"{stem}{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_trajectory(result: SimulationResult, output_path: Path, name: str = "") -> Path:
    """Generate a line chart of assets vs required assets for a deterministic projection.

    Args:
        result: SimulationResult with monthly_data recorded.
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "40" → "trajectory-40.png").

    Returns:
        Path to the generated PNG file.
    """
    if not result.monthly_data:
        raise ValueError("monthly_data が記録されていません（record_monthly=True で実行してください）")
    _setup_japanese_font()

    fig, ax = plt.subplots(figsize=(14, 8))

    rows = result.monthly_data
    ages = [s.age for s in rows]
    ax.plot(ages, [s.assets for s in rows], label="金融資産", color=COLOR_ASSETS, linewidth=2)
    ax.plot(
        ages, [s.required_assets for s in rows],
        label="FIRE必要資産", color=COLOR_REQUIRED, linewidth=1.5, linestyle="--",
    )

    fire_month = result.fire_reached_month
    if fire_month != NEVER and fire_month < len(rows):
        fire_age = rows[fire_month].age
        ax.axvline(fire_age, color=COLOR_FIRE, linewidth=1.5, linestyle=":")
        ax.annotate(
            f"FIRE {fire_age:.1f}歳",
            xy=(fire_age, ax.get_ylim()[1] * 0.9),
            fontsize=11, color=COLOR_FIRE, ha="left",
            bbox=dict(boxstyle="round,pad=0.3", fc="white", ec=COLOR_FIRE, alpha=0.9),
        )

    depleted = next((s for s in rows if s.cash_assets + s.risk_assets < 0), None)
    if depleted is not None:
        ax.axvline(depleted.age, color=COLOR_DEPLETED, linewidth=2, linestyle=":")
        ax.annotate(
            f"{depleted.age:.0f}歳 資産枯渇",
            xy=(depleted.age, ax.get_ylim()[1] * 0.8),
            fontsize=11, fontweight="bold", color=COLOR_DEPLETED, ha="right",
            bbox=dict(boxstyle="round,pad=0.3", fc="white", ec=COLOR_DEPLETED, alpha=0.9),
        )

    ax.set_xlabel("年齢")
    ax.set_ylabel("資産残高（万円）")
    ax.set_title("資産推移とFIRE必要資産（確定論）")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_man_axis(ax)

    return _save(fig, output_path, "trajectory", name)


def plot_mc_fan(
    mc_result: MonteCarloResult,
    current_age: float,
    output_path: Path,
    name: str = "",
) -> Path:
    """Generate a fan chart (P10–P90 band, P50 line) for a Monte Carlo result.

    Args:
        mc_result: MonteCarloResult with percentile_paths populated (one point per year).
        current_age: age at year index 0.
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "40" → "mc_fan-40.png").

    Returns:
        Path to the generated PNG file.
    """
    p50 = mc_result.percentile_paths.get(50)
    if not p50:
        raise ValueError("MonteCarloResult に percentile_paths がありません")
    _setup_japanese_font()

    fig, ax = plt.subplots(figsize=(14, 8))
    ages = [current_age + y for y in range(len(p50))]

    ax.fill_between(
        ages, mc_result.percentile_paths[10], mc_result.percentile_paths[90],
        alpha=0.2, color=COLOR_ASSETS, label="P10–P90",
    )
    ax.plot(ages, p50, color=COLOR_ASSETS, linewidth=2, label="P50（中央値）")

    fire_month = mc_result.fire_reached_month
    if fire_month != NEVER:
        fire_age = current_age + fire_month / 12
        ax.axvline(fire_age, color=COLOR_FIRE, linewidth=1.5, linestyle=":", label=f"FIRE {fire_age:.1f}歳")

    ax.set_xlabel("年齢")
    ax.set_ylabel("資産残高（万円）")
    ax.set_title(
        f"Monte Carlo ファンチャート（N={mc_result.trials:,}、成功率{mc_result.success_rate:.1%}）"
    )
    ax.legend(loc="upper left", fontsize=9)
    ax.grid(True, alpha=0.3)
    _format_man_axis(ax)

    return _save(fig, output_path, "mc_fan", name)
