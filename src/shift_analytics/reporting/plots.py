from __future__ import annotations

from pathlib import Path

import matplotlib.dates as mdates
import matplotlib.pyplot as plt

from shift_analytics.result_types import LocationUtilization, PeriodTrends

from .frames import peak_hours_series, trends_frame

OUTPUT_DIR = Path("outputs")


def _save_and_show(fig: plt.Figure, filename: str) -> None:
    """Persist the plot under outputs/ and show it."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    fig.savefig(OUTPUT_DIR / filename, dpi=fig.dpi, bbox_inches="tight")
    plt.show()


def show_trends(trends: PeriodTrends, enable_plot: bool = True) -> plt.Figure | None:
    """Coverage and utilization lines with the daily conflict count as bars."""
    if not enable_plot:
        return None
    df = trends_frame(trends)
    if df.empty:
        return None

    fig, ax = plt.subplots(figsize=(7.5, 4), dpi=150)
    ax.set_title("Coverage, utilization and conflicts per day", pad=20)
    cov_color = "tab:blue"
    util_color = "tab:green"
    conflict_color = "tab:red"

    ax.plot(df.index, df["coverage"], color=cov_color, linewidth=1.5, label="Coverage %")
    ax.plot(
        df.index,
        df["utilization"] * 100.0,
        color=util_color,
        linewidth=1.25,
        linestyle="--",
        label="Utilization %",
    )
    ax.set_ylim(0, max(105.0, float((df["utilization"] * 100.0).max()) * 1.05))
    ax.set_ylabel("Percent")
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%m-%d"))
    ax.spines["top"].set_visible(False)

    ax2 = ax.twinx()
    ax2.bar(df.index, df["conflicts"], color=conflict_color, alpha=0.3, label="Conflicts")
    ax2.set_ylabel("Conflicts", color=conflict_color)
    ax2.tick_params(axis="y", colors=conflict_color)
    ax2.spines["top"].set_visible(False)

    lines, labels = ax.get_legend_handles_labels()
    bars, bar_labels = ax2.get_legend_handles_labels()
    ax.legend(lines + bars, labels + bar_labels, loc="lower left", fontsize=8)
    fig.autofmt_xdate()
    fig.tight_layout()
    _save_and_show(fig, "daily_trends.png")
    return fig


def show_peak_hours(
    location: LocationUtilization, enable_plot: bool = True
) -> plt.Figure | None:
    """Bar chart of staffed share of demand per hour of day."""
    if not enable_plot:
        return None
    s = peak_hours_series(location.peak_hours)
    if s.empty or not (s > 0).any():
        return None

    fig, ax = plt.subplots(figsize=(7.5, 4), dpi=150)
    ax.set_title(f"Location {location.location_id}: staffing by hour of day")
    ax.bar(s.index, s.values, color="tab:blue", alpha=0.8, width=0.9, edgecolor="none")
    ax.axhline(1.0, color="black", linewidth=1, label="Demand met")
    ax.set_xlabel("Hour of day")
    ax.set_ylabel("Staffed / required")
    ax.set_xticks(list(range(24)))
    ax.set_xmargin(0.0)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.legend(loc="upper right", fontsize=8)
    fig.tight_layout()
    _save_and_show(fig, f"peak_hours_{location.location_id}.png")
    return fig
