from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Hashable, Iterable, Mapping, Optional

from shift_analytics.config import Config, cfg as default_cfg
from shift_analytics.intervals import Interval
from shift_analytics.overlap import (
    TYPE_PRIORITY,
    ConflictType,
    Severity,
    conflict_key,
    detect,
    severity_for,
    skill_mismatch,
)

RESOLUTION_HINTS: dict[ConflictType, str] = {
    ConflictType.DOUBLE_BOOKING: "Reassign one of the overlapping shifts to another employee.",
    ConflictType.TIME_OFF_OVERLAP: "Find cover for the shift or revisit the time-off approval.",
    ConflictType.OVERTIME: "Spread the day's hours across more employees.",
    ConflictType.SKILL_MISMATCH: "Assign an employee holding the skill or schedule training.",
    ConflictType.UNDERSTAFFED: "Reassign available staff or post the open slot.",
}


@dataclass(frozen=True)
class Conflict:
    """A classified scheduling problem; computed fresh per analysis call."""

    type: ConflictType
    severity: Severity
    description: str
    affected_shift_ids: tuple[str, ...]
    affected_employee_ids: tuple[str, ...]
    start: datetime
    end: datetime
    affected_time_off_ids: tuple[str, ...] = ()
    resolution: Optional[str] = None
    is_resolved: bool = False
    key: tuple[Hashable, ...] = field(default=(), repr=False)

    def sort_key(self) -> tuple:
        return (
            -self.severity.rank,
            self.start,
            TYPE_PRIORITY[self.type],
            self.affected_shift_ids,
            self.affected_time_off_ids,
            self.affected_employee_ids,
        )


class _Draft:
    """Mutable accumulator used while sweeping; frozen into a Conflict at the end."""

    __slots__ = ("type", "severity", "intervals", "employees", "note")

    def __init__(
        self,
        conflict_type: ConflictType,
        severity: Severity,
        intervals: Iterable[Interval],
        note: str = "",
    ) -> None:
        self.type = conflict_type
        self.severity = severity
        self.intervals = list(intervals)
        self.employees: set[str] = set()
        self.note = note

    def freeze(self, key: tuple[Hashable, ...]) -> Conflict:
        ordered = sorted(self.intervals, key=_order)
        shift_ids = tuple(iv.source_id for iv in ordered if iv.is_shift)
        time_off_ids = tuple(iv.source_id for iv in ordered if not iv.is_shift)
        employees = tuple(sorted(self.employees))
        return Conflict(
            type=self.type,
            severity=self.severity,
            description=_describe(self.type, shift_ids, time_off_ids, employees, self.note),
            affected_shift_ids=shift_ids,
            affected_employee_ids=employees,
            start=min(iv.start for iv in ordered),
            end=max(iv.end for iv in ordered),
            affected_time_off_ids=time_off_ids,
            resolution=RESOLUTION_HINTS[self.type],
            key=key,
        )


def _order(iv: Interval) -> tuple:
    return (iv.start, iv.end, iv.kind.value, iv.source_id)


def _describe(
    conflict_type: ConflictType,
    shift_ids: tuple[str, ...],
    time_off_ids: tuple[str, ...],
    employees: tuple[str, ...],
    note: str,
) -> str:
    who = ", ".join(employees)
    shifts = " and ".join(shift_ids)
    if conflict_type is ConflictType.DOUBLE_BOOKING:
        return f"Employee {who} is double-booked on shifts {shifts}."
    if conflict_type is ConflictType.TIME_OFF_OVERLAP:
        return (
            f"Employee {who} is scheduled on shift {shifts} during approved "
            f"time-off {', '.join(time_off_ids)}."
        )
    if conflict_type is ConflictType.OVERTIME:
        return f"Employee {who} is scheduled {note}."
    # skill mismatch and understaffing are per shift
    return f"Shift {shifts}: {note}."


def _employee_index(intervals: Iterable[Interval]) -> dict[str, list[Interval]]:
    """employee id -> that employee's intervals, one per source, sorted by start."""
    index: dict[str, list[Interval]] = {}
    seen: set[tuple[str, tuple[str, str]]] = set()
    for iv in intervals:
        for e in iv.employee_ids:
            if (e, iv.key) in seen:
                continue
            seen.add((e, iv.key))
            index.setdefault(e, []).append(iv)
    for lst in index.values():
        lst.sort(key=_order)
    return index


def _union_hours(intervals: list[Interval]) -> float:
    total = timedelta(0)
    cur_start: Optional[datetime] = None
    cur_end: Optional[datetime] = None
    for iv in sorted(intervals, key=_order):
        if cur_end is None or iv.start >= cur_end:
            if cur_start is not None and cur_end is not None:
                total += cur_end - cur_start
            cur_start, cur_end = iv.start, iv.end
        elif iv.end > cur_end:
            cur_end = iv.end
    if cur_start is not None and cur_end is not None:
        total += cur_end - cur_start
    return total.total_seconds() / 3600.0


def _pairwise(
    index: dict[str, list[Interval]],
    drafts: dict[tuple[Hashable, ...], _Draft],
    threshold: float,
) -> set[tuple[str, date]]:
    """Sweep each employee's sorted intervals; returns double-booked (employee, day)s."""
    double_booked: set[tuple[str, date]] = set()
    for emp in sorted(index):
        lst = index[emp]
        for i, a in enumerate(lst):
            for j in range(i + 1, len(lst)):
                b = lst[j]
                if b.start >= a.end:
                    break
                ctype = detect(a, b, daily_hours_threshold=threshold)
                if ctype is None:
                    continue
                key = conflict_key(ctype, a, b)
                draft = drafts.get(key)
                if draft is None:
                    draft = _Draft(ctype, severity_for(ctype), (a, b))
                    drafts[key] = draft
                draft.employees.add(emp)
                if ctype is ConflictType.DOUBLE_BOOKING:
                    double_booked.add((emp, a.day))
                    double_booked.add((emp, b.day))
    return double_booked


def _overtime(
    index: dict[str, list[Interval]],
    drafts: dict[tuple[Hashable, ...], _Draft],
    threshold: float,
    skip: set[tuple[str, date]],
) -> None:
    for emp in sorted(index):
        by_day: dict[date, list[Interval]] = {}
        for iv in index[emp]:
            if iv.is_shift and iv.day is not None:
                by_day.setdefault(iv.day, []).append(iv)
        for day in sorted(by_day):
            if (emp, day) in skip:
                continue
            hours = _union_hours(by_day[day])
            if hours <= threshold:
                continue
            note = f"{hours:.1f}h on {day.isoformat()} (limit {threshold:g}h)"
            draft = _Draft(
                ConflictType.OVERTIME,
                severity_for(ConflictType.OVERTIME),
                by_day[day],
                note,
            )
            draft.employees.add(emp)
            drafts[(ConflictType.OVERTIME.value, emp, day.isoformat())] = draft


def _per_shift(
    shifts: list[Interval],
    drafts: dict[tuple[Hashable, ...], _Draft],
    employee_skills: Optional[Mapping[str, frozenset[str]]],
    report_understaffed: bool,
) -> None:
    for iv in shifts:
        if employee_skills is not None:
            for role, missing in sorted(skill_mismatch(iv, employee_skills).items()):
                note = (
                    f"role {role} requires {', '.join(sorted(missing))} "
                    "which no assigned employee holds"
                )
                draft = _Draft(
                    ConflictType.SKILL_MISMATCH,
                    severity_for(ConflictType.SKILL_MISMATCH),
                    (iv,),
                    note,
                )
                draft.employees.update(iv.employees_for(role) or iv.employee_ids)
                drafts[(ConflictType.SKILL_MISMATCH.value, iv.key, role)] = draft

        if not report_understaffed:
            continue
        quantities: dict[str, int] = {}
        critical: dict[str, bool] = {}
        for req in iv.requirements:
            quantities[req.role] = quantities.get(req.role, 0) + req.quantity
            critical[req.role] = critical.get(req.role, False) or req.is_critical
        for role, qty in quantities.items():
            fillers = iv.employees_for(role)
            if len(fillers) >= qty:
                continue
            severity = Severity.HIGH if critical[role] else Severity.MEDIUM
            note = f"role {role} has {len(fillers)} of {qty} required staff"
            draft = _Draft(ConflictType.UNDERSTAFFED, severity, (iv,), note)
            draft.employees.update(fillers)
            drafts[(ConflictType.UNDERSTAFFED.value, iv.key, role)] = draft


def analyze(
    intervals: Iterable[Interval],
    cfg: Config | None = None,
    employee_skills: Optional[Mapping[str, frozenset[str]]] = None,
) -> list[Conflict]:
    """
    Detect every conflict in an interval snapshot.

    Only intervals sharing an employee are compared: each employee's intervals
    are sorted by start and swept, stopping once a candidate starts at or after
    the current interval's end. Each conflict appears once whatever the input
    order; the result is sorted by severity (highest first), then start time.
    """
    C = cfg or default_cfg
    threshold = float(C.DAILY_HOURS_THRESHOLD)
    ivs = list(intervals)
    shifts = sorted((iv for iv in ivs if iv.is_shift), key=_order)

    drafts: dict[tuple[Hashable, ...], _Draft] = {}
    index = _employee_index(ivs)
    # The sweep only reaches overlapping pairs; overtime comes from per-day totals
    double_booked = _pairwise(index, drafts, threshold)
    _overtime(index, drafts, threshold, double_booked)
    _per_shift(shifts, drafts, employee_skills, C.REPORT_UNDERSTAFFED)

    conflicts = [draft.freeze(key) for key, draft in drafts.items()]
    conflicts.sort(key=Conflict.sort_key)
    return conflicts
