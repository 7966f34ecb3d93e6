from __future__ import annotations

import warnings
from datetime import date, timedelta

import pytest

from shift_analytics.analytics import AnalyticsFacade
from shift_analytics.config import Config
from shift_analytics.errors import (
    EMPTY_INPUT,
    INVALID_INTERVAL,
    EmptyInputWarning,
    InconsistentFilterError,
)
from shift_analytics.optimizer import SuggestionType
from shift_analytics.overlap import ConflictType, Severity
from shift_analytics.records import (
    AvailabilityWindow,
    EmployeeAvailability,
    RoleRequirement,
    ShiftRecord,
    TimeOffRecord,
)

MONDAY = date(2024, 1, 8)


def _shift(sid, day, start, end, employees, qty=1, role="Cashier", **kw) -> ShiftRecord:
    return ShiftRecord(
        id=sid,
        date=day,
        start_time=start,
        end_time=end,
        requirements=[RoleRequirement(role, qty)],
        assigned_employee_ids=list(employees),
        **kw,
    )


def _facade(**cfg_overrides) -> AnalyticsFacade:
    wed = MONDAY + timedelta(days=2)
    thu = MONDAY + timedelta(days=3)
    shifts = [
        _shift("A", wed, "09:00", "17:00", ["E1"], qty=2, location_id="L1", team_id="T1"),
        _shift("B", wed, "16:00", "23:00", ["E1"], location_id="L1", team_id="T1"),
        _shift("C", thu, "09:00", "17:00", ["E3"], location_id="L2", team_id="T2"),
        _shift("BAD", thu, "18:00", "10:00", ["E3"], location_id="L2"),
    ]
    time_off = [TimeOffRecord("OFF", "E3", thu, thu, "approved")]
    employees = [
        EmployeeAvailability("E1", roles={"Cashier"}, name="Ava"),
        EmployeeAvailability("E2", roles={"Cashier"}, name="Ben"),
        EmployeeAvailability(
            "E3",
            roles={"Cashier"},
            name="Cleo",
            skills={"pos"},
            windows=(AvailabilityWindow(3, "08:00", "18:00"),),
        ),
    ]
    return AnalyticsFacade(shifts, time_off, employees, Config(**cfg_overrides))


def test_daily_report_counts_coverage_and_conflicts():
    report = _facade().daily_report(MONDAY + timedelta(days=2))
    assert report.total_shifts == 2
    assert report.total_hours == pytest.approx(15.0)
    (cov,) = report.coverage
    assert (cov.required, cov.assigned) == (3, 2)
    assert report.coverage_pct == pytest.approx(66.67)
    types = [c.type for c in report.conflicts]
    assert types[0] is ConflictType.DOUBLE_BOOKING
    assert ConflictType.UNDERSTAFFED in types
    assert report.critical_conflicts == 1
    assert report.employee_count == 1


def test_daily_report_carries_invalid_record_warning_for_its_day():
    facade = _facade()
    thu = facade.daily_report(MONDAY + timedelta(days=3))
    assert [w.code for w in thu.warnings] == [INVALID_INTERVAL]
    wed = facade.daily_report(MONDAY + timedelta(days=2))
    assert wed.warnings == ()


def test_daily_report_filters_by_location():
    with pytest.warns(EmptyInputWarning):
        report = _facade().daily_report(MONDAY + timedelta(days=3), location_id="L1")
    assert report.location_id == "L1"
    assert report.total_shifts == 0


def test_empty_day_yields_empty_lists_and_a_warning():
    with pytest.warns(EmptyInputWarning):
        report = _facade().daily_report(MONDAY)
    assert report.coverage == ()
    assert report.conflicts == ()
    assert report.coverage_pct == 0.0
    assert [w.code for w in report.warnings] == [EMPTY_INPUT]


def test_reversed_range_is_rejected_before_any_work():
    with pytest.raises(InconsistentFilterError):
        _facade().conflict_analysis(MONDAY, MONDAY - timedelta(days=1))


def test_weekly_report_trends_are_date_ordered():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        weekly = _facade().weekly_report(MONDAY)
    days = [d.date for d in weekly.daily]
    assert days == [MONDAY + timedelta(days=i) for i in range(7)]
    assert [p.date for p in weekly.trends.coverage] == days
    assert [p.value for p in weekly.trends.conflicts][2] == len(weekly.daily[2].conflicts)
    assert weekly.summary.total_shifts == 3
    assert weekly.summary.total_employees == 2
    assert weekly.summary.critical_conflicts == 1
    assert weekly.period == "2024-01-08 to 2024-01-14"


def test_parallel_and_sequential_period_reports_match():
    parallel = _facade(NUM_PARALLEL_WORKERS=4, PARALLEL_MIN_DAYS=2).period_report(
        MONDAY, MONDAY + timedelta(days=6)
    )
    sequential = _facade(NUM_PARALLEL_WORKERS=1).period_report(
        MONDAY, MONDAY + timedelta(days=6)
    )
    assert parallel == sequential


def test_monthly_report_has_weekly_blocks():
    monthly = _facade().monthly_report(2024, 1)
    assert monthly.period == "2024-01"
    assert len(monthly.daily) == 31
    assert len(monthly.weekly) == 5
    assert sum(w.total_shifts for w in monthly.weekly) == monthly.summary.total_shifts == 3


def test_conflict_analysis_groups_types_and_entities():
    analysis = _facade().conflict_analysis(MONDAY, MONDAY + timedelta(days=6))
    assert analysis.total_conflicts == len(analysis.conflicts)
    assert analysis.critical_conflicts == 1
    counts = {t.type: t.count for t in analysis.conflict_types}
    assert counts[ConflictType.DOUBLE_BOOKING.value] == 1
    assert counts[ConflictType.TIME_OFF_OVERLAP.value] == 1
    assert analysis.affected_entities.time_off == ("OFF",)
    assert "E3" in analysis.affected_entities.employees
    assert len(analysis.resolution_suggestions) == analysis.total_conflicts
    assert analysis.resolution_suggestions[0].conflict_id.startswith("double_booking:")
    assert analysis.resolution_suggestions[0].impact == Severity.CRITICAL.value


def test_empty_range_analysis_is_not_an_error():
    facade = _facade()
    with pytest.warns(EmptyInputWarning):
        analysis = facade.conflict_analysis(date(2023, 1, 1), date(2023, 1, 7))
    assert analysis.conflicts == ()
    assert analysis.total_conflicts == 0
    with pytest.warns(EmptyInputWarning):
        opt = facade.coverage_optimization(date(2023, 1, 1), date(2023, 1, 7))
    assert opt.role_coverage == ()
    assert opt.suggestions == ()


def test_coverage_optimization_suggests_free_qualified_staff():
    opt = _facade().coverage_optimization(MONDAY + timedelta(days=2), MONDAY + timedelta(days=2))
    (gap,) = opt.gaps
    # E1 works the shift, E3 is only free on Thursdays
    assert gap.available_employee_ids == ("E2",)
    assert opt.suggestions[0].type is SuggestionType.REASSIGN
    assert opt.target_coverage == 100.0
    (metric,) = opt.role_coverage
    assert metric.overlaps == 2  # shifts A and B are double-booked


def test_overnight_shift_from_the_day_before_keeps_its_worker_busy():
    mon, tue = MONDAY, MONDAY + timedelta(days=1)
    shifts = [
        _shift("NIGHT", mon, "22:00", "06:00", ["E2"], end_date=tue),
        _shift("EARLY", tue, "05:00", "09:00", []),
    ]
    employees = [
        EmployeeAvailability("E2", roles={"Cashier"}),
        EmployeeAvailability("E3", roles={"Cashier"}),
    ]
    facade = AnalyticsFacade(shifts, employees=employees)
    opt = facade.coverage_optimization(tue, tue)
    (gap,) = opt.gaps
    # E2 is still on the night shift when EARLY starts
    assert gap.available_employee_ids == ("E3",)


def test_coverage_gaps_lists_largest_first():
    gaps = _facade().coverage_gaps(MONDAY + timedelta(days=2))
    assert [(g.role, g.gap) for g in gaps] == [("Cashier", 1)]


def test_team_report():
    team = _facade().team_report("T1", MONDAY, MONDAY + timedelta(days=6))
    assert team.total_shifts == 2
    assert team.total_hours == pytest.approx(15.0)
    assert team.conflict_count >= 1
    (row,) = team.employee_utilization
    assert row.employee_id == "E1"
    assert row.name == "Ava"
    assert row.utilization == pytest.approx(15.0 / 40.0, abs=0.01)
    assert 0.0 <= team.efficiency <= 1.0
    assert team.reliability == 0.0  # both shifts are in conflict


def test_location_report_peak_hours():
    loc = _facade().location_report("L1", MONDAY, MONDAY + timedelta(days=6))
    assert loc.total_shifts == 2
    assert len(loc.peak_hours) == 24
    by_hour = {p.hour: p.utilization for p in loc.peak_hours}
    assert by_hour[10] == pytest.approx(0.5)
    assert by_hour[20] == pytest.approx(1.0)
    assert by_hour[3] == 0.0
    assert any("Understaffed hours" in r for r in loc.recommendations)


def test_location_report_thresholds_come_from_config():
    week = (MONDAY, MONDAY + timedelta(days=6))
    loc = _facade(LOW_UTILIZATION=0.4).location_report("L1", *week)
    assert loc.recommendations == ("Staffing matches requirements.",)

    loc = _facade(LOW_UTILIZATION=0.4, HIGH_UTILIZATION=0.9).location_report("L1", *week)
    assert loc.recommendations == (
        "Overstaffed hours: 17:00, 18:00, 19:00, 20:00, 21:00, 22:00.",
    )


def test_employee_workload():
    workload = _facade().employee_workload("E3", MONDAY, MONDAY + timedelta(days=6))
    assert workload.total_shifts == 1
    assert workload.unique_days == 1
    assert workload.time_off_days == 1
    assert workload.consecutive_days == 1
    assert workload.average_hours_per_day == pytest.approx(8.0)
    assert workload.skills == ("pos",)
    assert len(workload.availability) == 1


def test_overnight_double_booking_belongs_to_the_earlier_day():
    mon, tue = MONDAY, MONDAY + timedelta(days=1)
    shifts = [
        _shift("NIGHT", mon, "22:00", "06:00", ["E1"], end_date=tue),
        _shift("EARLY", tue, "05:00", "09:00", ["E1"]),
    ]
    facade = AnalyticsFacade(shifts, cfg=Config(REPORT_UNDERSTAFFED=False))
    monday = facade.daily_report(mon)
    tuesday = facade.daily_report(tue)
    assert [c.affected_shift_ids for c in monday.conflicts] == [("NIGHT", "EARLY")]
    assert tuesday.conflicts == ()
