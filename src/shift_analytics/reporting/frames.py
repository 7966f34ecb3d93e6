from __future__ import annotations

from typing import Iterable, Sequence

import pandas as pd

from shift_analytics.conflicts import Conflict
from shift_analytics.coverage import CoverageRecord
from shift_analytics.optimizer import CoverageGap, OptimizationSuggestion
from shift_analytics.result_types import (
    DailyScheduleAnalytics,
    EmployeeUtilization,
    PeakHour,
    PeriodTrends,
)

COVERAGE_COLUMNS = ["role", "required", "assigned", "coverage_pct", "gap", "total_hours"]
CONFLICT_COLUMNS = [
    "type",
    "severity",
    "start",
    "end",
    "shifts",
    "employees",
    "time_off",
    "description",
]
SUGGESTION_COLUMNS = ["type", "role", "impact", "cost", "return_on_cost", "description"]
GAP_COLUMNS = ["role", "shortage", "required", "assigned", "days_with_gap", "available", "trainable"]
DAILY_COLUMNS = [
    "date",
    "total_shifts",
    "total_hours",
    "coverage_pct",
    "average_utilization",
    "conflicts",
    "critical_conflicts",
]


def coverage_frame(records: Iterable[CoverageRecord]) -> pd.DataFrame:
    rows = [
        {
            "role": r.role,
            "required": r.required,
            "assigned": r.assigned,
            "coverage_pct": round(r.coverage_pct, 2),
            "gap": r.gap,
            "total_hours": r.total_hours,
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=COVERAGE_COLUMNS)


def conflicts_frame(conflicts: Iterable[Conflict]) -> pd.DataFrame:
    rows = [
        {
            "type": c.type.value,
            "severity": c.severity.value,
            "start": pd.Timestamp(c.start),
            "end": pd.Timestamp(c.end),
            "shifts": ", ".join(c.affected_shift_ids),
            "employees": ", ".join(c.affected_employee_ids),
            "time_off": ", ".join(c.affected_time_off_ids),
            "description": c.description,
        }
        for c in conflicts
    ]
    return pd.DataFrame(rows, columns=CONFLICT_COLUMNS)


def suggestions_frame(suggestions: Iterable[OptimizationSuggestion]) -> pd.DataFrame:
    rows = [
        {
            "type": s.type.value,
            "role": s.role,
            "impact": round(s.impact, 3),
            "cost": s.cost,
            "return_on_cost": round(s.return_on_cost, 3),
            "description": s.description,
        }
        for s in suggestions
    ]
    return pd.DataFrame(rows, columns=SUGGESTION_COLUMNS)


def gaps_frame(gaps: Iterable[CoverageGap]) -> pd.DataFrame:
    rows = [
        {
            "role": g.role,
            "shortage": g.shortage,
            "required": g.required,
            "assigned": g.assigned,
            "days_with_gap": g.days_with_gap,
            "available": ", ".join(g.available_employee_ids),
            "trainable": ", ".join(g.trainable_employee_ids),
        }
        for g in gaps
    ]
    return pd.DataFrame(rows, columns=GAP_COLUMNS)


def daily_frame(daily: Sequence[DailyScheduleAnalytics]) -> pd.DataFrame:
    rows = [
        {
            "date": pd.Timestamp(d.date),
            "total_shifts": d.total_shifts,
            "total_hours": d.total_hours,
            "coverage_pct": d.coverage_pct,
            "average_utilization": d.average_utilization,
            "conflicts": len(d.conflicts),
            "critical_conflicts": d.critical_conflicts,
        }
        for d in daily
    ]
    return pd.DataFrame(rows, columns=DAILY_COLUMNS)


def trends_frame(trends: PeriodTrends) -> pd.DataFrame:
    """One row per date with a column per trend series, indexed by date."""
    series = {
        "coverage": pd.Series(
            [p.value for p in trends.coverage],
            index=pd.to_datetime([p.date for p in trends.coverage]),
            dtype=float,
        ),
        "conflicts": pd.Series(
            [p.value for p in trends.conflicts],
            index=pd.to_datetime([p.date for p in trends.conflicts]),
            dtype=float,
        ),
        "utilization": pd.Series(
            [p.value for p in trends.utilization],
            index=pd.to_datetime([p.date for p in trends.utilization]),
            dtype=float,
        ),
    }
    df = pd.DataFrame(series)
    df.index.name = "date"
    return df.sort_index()


def employee_frame(rows: Iterable[EmployeeUtilization]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "employee_id": r.employee_id,
                "name": r.name,
                "hours": r.total_hours,
                "utilization": r.utilization,
                "skill_match": r.skill_match,
            }
            for r in rows
        ],
        columns=["employee_id", "name", "hours", "utilization", "skill_match"],
    )
    return df.sort_values(["hours", "employee_id"], ascending=[False, True]).reset_index(
        drop=True
    )


def peak_hours_series(peaks: Iterable[PeakHour]) -> pd.Series:
    s = pd.Series({p.hour: p.utilization for p in peaks}, dtype=float)
    s.index.name = "hour"
    return s.sort_index()
