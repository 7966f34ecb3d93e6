from __future__ import annotations

from datetime import date

import pandas as pd

from shift_analytics.reporting.frames import (
    CONFLICT_COLUMNS,
    COVERAGE_COLUMNS,
    conflicts_frame,
    coverage_frame,
    daily_frame,
    employee_frame,
    gaps_frame,
    peak_hours_series,
    suggestions_frame,
    trends_frame,
)
from shift_analytics.result_types import EmployeeUtilization

WEEK_START = date(2024, 1, 8)


def test_empty_inputs_keep_their_columns():
    assert list(coverage_frame([]).columns) == COVERAGE_COLUMNS
    assert list(conflicts_frame([]).columns) == CONFLICT_COLUMNS
    assert suggestions_frame([]).empty
    assert gaps_frame([]).empty


def test_daily_frames(facade):
    report = facade.daily_report(WEEK_START.replace(day=10))
    cov = coverage_frame(report.coverage)
    assert cov.loc[0, "role"] == "Cashier"
    assert cov.loc[0, "gap"] == 1

    conflicts = conflicts_frame(report.conflicts)
    assert conflicts.loc[0, "type"] == "double_booking"
    assert conflicts.loc[0, "shifts"] == "A, B"
    assert isinstance(conflicts.loc[0, "start"], pd.Timestamp)


def test_period_frames(facade):
    weekly = facade.weekly_report(WEEK_START)
    daily = daily_frame(weekly.daily)
    assert len(daily) == 7
    assert daily["total_shifts"].sum() == 3

    trends = trends_frame(weekly.trends)
    assert isinstance(trends.index, pd.DatetimeIndex)
    assert trends.index.name == "date"
    assert trends.index.is_monotonic_increasing
    assert list(trends.columns) == ["coverage", "conflicts", "utilization"]
    assert trends.loc[pd.Timestamp("2024-01-08"), "coverage"] == 0.0


def test_optimization_frames(facade):
    opt = facade.coverage_optimization(WEEK_START, WEEK_START.replace(day=14))
    gaps = gaps_frame(opt.gaps)
    assert gaps.loc[0, "available"] == "E2"
    suggestions = suggestions_frame(opt.suggestions)
    assert suggestions.loc[0, "type"] == "reassign"
    assert suggestions.loc[0, "return_on_cost"] == 1.0


def test_employee_frame_sorted_by_hours():
    rows = [
        EmployeeUtilization("E2", "Ben", 10.0, 0.25, 1.0),
        EmployeeUtilization("E1", "Ava", 30.0, 0.75, 1.0),
        EmployeeUtilization("E3", "Cleo", 10.0, 0.25, 0.5),
    ]
    df = employee_frame(rows)
    assert list(df["employee_id"]) == ["E1", "E2", "E3"]


def test_peak_hours_series(facade):
    loc = facade.location_report("L1", WEEK_START, WEEK_START.replace(day=14))
    s = peak_hours_series(loc.peak_hours)
    assert len(s) == 24
    assert s.index.name == "hour"
    assert s[10] == 0.5
