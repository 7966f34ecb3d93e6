from __future__ import annotations

from typing import Iterable

import pandas as pd

from shift_analytics.errors import ReportWarning
from shift_analytics.result_types import (
    ConflictAnalysis,
    CoverageOptimization,
    DailyScheduleAnalytics,
    EmployeeWorkload,
    LocationUtilization,
    PeriodAnalytics,
    TeamPerformance,
)

from .frames import (
    conflicts_frame,
    coverage_frame,
    daily_frame,
    employee_frame,
    gaps_frame,
    suggestions_frame,
)


def _log_print(*args, **kwargs) -> None:
    print(*args, **kwargs)


def _fmt_float(x: float | None, nd: int = 2, as_pct: bool = False) -> str:
    if x is None or pd.isna(x):
        return "nan"
    return f"{float(100 * x):.{nd}f}%" if as_pct else f"{float(x):.{nd}f}"


def _print_frame(title: str, df: pd.DataFrame, limit: int | None = None) -> None:
    if df.empty:
        _log_print(f"\n{title}: (none)")
        return
    shown = df if limit is None else df.head(limit)
    suffix = f" (top {limit} of {len(df)})" if limit is not None and len(df) > limit else ""
    _log_print(f"\n{title}{suffix}:")
    _log_print(shown.to_string(index=False))


def _print_warnings(warnings: Iterable[ReportWarning]) -> None:
    warns = list(warnings)
    if not warns:
        return
    _log_print(f"\nData-quality warnings ({len(warns)}):")
    for w in warns:
        where = f" [{w.day.isoformat()}]" if w.day is not None else ""
        _log_print(f"  - {w.code}{where}: {w.message}")


def _print_coverage_bars(df: pd.DataFrame) -> None:
    if df.empty:
        return
    _log_print("\nCoverage by role:")
    width = max(len(str(r)) for r in df["role"])
    for _, r in df.iterrows():
        bar = "█" * int(round(float(r["coverage_pct"]) / 5))
        _log_print(f"  {str(r['role']):<{width}} {float(r['coverage_pct']):>6.1f}%  {bar}")


def render_daily(report: DailyScheduleAnalytics, *, num_print_examples: int = 6) -> None:
    _log_print(f"Daily schedule analytics for {report.date.isoformat()}")
    _log_print(
        f"Shifts: {report.total_shifts} | Hours: {_fmt_float(report.total_hours, 1)} | "
        f"Staff: {report.employee_count} | Coverage: {_fmt_float(report.coverage_pct, 1)}% | "
        f"Utilization: {_fmt_float(report.average_utilization, 1, as_pct=True)}"
    )
    cov = coverage_frame(report.coverage)
    _print_coverage_bars(cov)
    _print_frame("Coverage", cov)
    _print_frame("Conflicts", conflicts_frame(report.conflicts), num_print_examples)
    _print_warnings(report.warnings)


def render_period(report: PeriodAnalytics) -> None:
    s = report.summary
    _log_print(f"Schedule analytics for {report.period}")
    _log_print(
        f"Shifts: {s.total_shifts} | Staff: {s.total_employees} | "
        f"Hours: {_fmt_float(s.total_hours, 1)} | "
        f"Avg coverage: {_fmt_float(s.average_coverage, 1)}% | "
        f"Conflicts: {s.total_conflicts} ({s.critical_conflicts} critical)"
    )
    _print_frame("Per-day overview", daily_frame(report.daily))
    weekly = getattr(report, "weekly", ())
    if weekly:
        _log_print("\nWeekly blocks:")
        for i, w in enumerate(weekly, start=1):
            _log_print(
                f"  week {i}: {w.total_shifts} shifts, {_fmt_float(w.total_hours, 1)}h, "
                f"coverage {_fmt_float(w.average_coverage, 1)}%, "
                f"{w.total_conflicts} conflicts"
            )
    _print_warnings(report.warnings)


def render_conflicts(analysis: ConflictAnalysis, *, num_print_examples: int = 10) -> None:
    _log_print(f"Conflict analysis for {analysis.period}")
    _log_print(
        f"Total: {analysis.total_conflicts} | Critical: {analysis.critical_conflicts}"
    )
    for t in analysis.conflict_types:
        _log_print(f"  {t.type:<18} {t.count:>4}  ({t.severity})")
    ents = analysis.affected_entities
    _log_print(
        f"Affected: {len(ents.shifts)} shifts, {len(ents.employees)} employees, "
        f"{len(ents.time_off)} time-off requests"
    )
    _print_frame("Conflicts", conflicts_frame(analysis.conflicts), num_print_examples)
    _print_warnings(analysis.warnings)


def render_optimization(opt: CoverageOptimization) -> None:
    _log_print(f"Coverage optimization for {opt.period}")
    _log_print(
        f"Current coverage: {_fmt_float(opt.current_coverage, 1)}% "
        f"(target {_fmt_float(opt.target_coverage, 1)}%)"
    )
    _print_frame("Gaps", gaps_frame(opt.gaps))
    _print_frame("Suggestions (best return on cost first)", suggestions_frame(opt.suggestions))
    _print_warnings(opt.warnings)


def render_team(team: TeamPerformance) -> None:
    _log_print(f"Team {team.team_id} performance for {team.period}")
    _log_print(
        f"Shifts: {team.total_shifts} | Hours: {_fmt_float(team.total_hours, 1)} | "
        f"Coverage: {_fmt_float(team.average_coverage, 1)}% | Conflicts: {team.conflict_count}"
    )
    _log_print(
        f"Efficiency: {_fmt_float(team.efficiency, 1, as_pct=True)} | "
        f"Reliability: {_fmt_float(team.reliability, 1, as_pct=True)}"
    )
    _print_frame("Employee utilization", employee_frame(team.employee_utilization))


def render_location(loc: LocationUtilization) -> None:
    _log_print(f"Location {loc.location_id} utilization for {loc.period}")
    _log_print(
        f"Shifts: {loc.total_shifts} | Hours: {_fmt_float(loc.total_hours, 1)} | "
        f"Utilization: {_fmt_float(loc.average_utilization, 1, as_pct=True)}"
    )
    busy = [p for p in loc.peak_hours if p.utilization > 0]
    if busy:
        _log_print("\nStaffed share of demand by hour:")
        for p in busy:
            bar = "█" * min(int(round(p.utilization * 20)), 50)
            _log_print(f"  {p.hour:02d}:00 {_fmt_float(p.utilization, 0, as_pct=True):>5}  {bar}")
    for rec in loc.recommendations:
        _log_print(f"  * {rec}")


def render_workload(w: EmployeeWorkload) -> None:
    name = f" ({w.name})" if w.name else ""
    _log_print(f"Workload of {w.employee_id}{name} for {w.period}")
    _log_print(
        f"Hours: {_fmt_float(w.total_hours, 1)} over {w.total_shifts} shifts on "
        f"{w.unique_days} days (avg {_fmt_float(w.average_hours_per_day, 1)}h/day)"
    )
    _log_print(
        f"Longest run: {w.consecutive_days} days | Time-off days: {w.time_off_days}"
    )
    if w.skills:
        _log_print(f"Skills: {', '.join(w.skills)}")
