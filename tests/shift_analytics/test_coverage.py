from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from shift_analytics.coverage import (
    aggregate,
    aggregate_by,
    average_utilization,
    coverage_pct,
    overall_coverage_pct,
)
from shift_analytics.intervals import Interval, IntervalKind
from shift_analytics.records import RoleRequirement

UTC = timezone.utc


def _shift(sid, reqs, assignments, day=10, location=None, start_h=9, end_h=17):
    employees = frozenset().union(*assignments.values()) if assignments else frozenset()
    return Interval(
        start=datetime(2024, 1, day, start_h, tzinfo=UTC),
        end=datetime(2024, 1, day, end_h, tzinfo=UTC),
        kind=IntervalKind.SHIFT,
        source_id=sid,
        employee_ids=employees,
        location_id=location,
        requirements=tuple(reqs),
        role_assignments=tuple((r, frozenset(ids)) for r, ids in assignments.items()),
    )


def test_cashier_half_covered():
    shift = _shift("A", [RoleRequirement("Cashier", 2)], {"Cashier": {"E1"}})
    (rec,) = aggregate([shift])
    assert (rec.role, rec.required, rec.assigned, rec.coverage_pct, rec.gap) == (
        "Cashier",
        2,
        1,
        50.0,
        1,
    )
    assert rec.employee_ids == ("E1",)
    assert rec.total_hours == pytest.approx(8.0)


def test_overstaffing_clamps_at_100_and_gap_goes_negative():
    shift = _shift("A", [RoleRequirement("Cashier", 1)], {"Cashier": {"E1", "E2", "E3"}})
    (rec,) = aggregate([shift])
    assert rec.coverage_pct == 100.0
    assert rec.gap == -2
    assert rec.overstaffed == 2
    assert rec.shortage == 0


@pytest.mark.parametrize(
    "assigned, required, expected",
    [(0, 0, 100.0), (0, 3, 0.0), (3, 0, 100.0), (1, 4, 25.0), (9, 4, 100.0)],
)
def test_coverage_pct_bounds(assigned, required, expected):
    assert coverage_pct(assigned, required) == expected


def test_same_employee_on_two_shifts_fills_two_slots():
    reqs = [RoleRequirement("Cashier", 1)]
    a = _shift("A", reqs, {"Cashier": {"E1"}}, start_h=6, end_h=10)
    b = _shift("B", reqs, {"Cashier": {"E1"}}, start_h=12, end_h=16)
    (rec,) = aggregate([a, b])
    assert rec.required == 2
    assert rec.assigned == 2
    assert rec.employee_ids == ("E1",)
    assert rec.shift_ids == ("A", "B")


def test_output_sorted_by_coverage_then_role():
    shift = _shift(
        "A",
        [
            RoleRequirement("Stocker", 2),
            RoleRequirement("Cashier", 2),
            RoleRequirement("Baker", 1),
        ],
        {"Stocker": {"E1"}, "Cashier": {"E2"}, "Baker": {"E3"}},
    )
    assert [r.role for r in aggregate([shift])] == ["Cashier", "Stocker", "Baker"]


def test_time_off_and_requirement_free_shifts_are_ignored():
    off = Interval(
        datetime(2024, 1, 10, tzinfo=UTC),
        datetime(2024, 1, 11, tzinfo=UTC),
        IntervalKind.TIME_OFF,
        "T1",
        frozenset({"E1"}),
    )
    bare = _shift("B", [], {})
    assert aggregate([off, bare]) == []


def test_aggregate_by_location_with_none_last():
    reqs = [RoleRequirement("Cashier", 1)]
    shifts = [
        _shift("A", reqs, {"Cashier": {"E1"}}, location="L2"),
        _shift("B", reqs, {}, location=None),
        _shift("C", reqs, {"Cashier": {"E2"}}, location="L1"),
    ]
    sliced = aggregate_by(shifts, "location_id")
    assert list(sliced) == ["L1", "L2", None]
    assert sliced[None][0].coverage_pct == 0.0
    by_day = aggregate_by(shifts, "day")
    assert list(by_day) == [date(2024, 1, 10)]
    with pytest.raises(ValueError, match="Unknown coverage dimension"):
        aggregate_by(shifts, "shoe_size")  # type: ignore[arg-type]


def test_overall_coverage_does_not_let_overstaffing_offset_gaps():
    shift = _shift(
        "A",
        [RoleRequirement("Cashier", 2), RoleRequirement("Stocker", 2)],
        {"Cashier": {"E1", "E2", "E3", "E4"}, "Stocker": set()},
    )
    records = aggregate([shift])
    assert overall_coverage_pct(records) == 50.0
    assert overall_coverage_pct([]) == 0.0
    assert average_utilization(records) == 1.0
    assert average_utilization([]) == 0.0
