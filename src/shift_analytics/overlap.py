from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional

from shift_analytics.intervals import Interval
from shift_analytics.records import RoleRequirement


class ConflictType(str, Enum):
    DOUBLE_BOOKING = "double_booking"
    UNDERSTAFFED = "understaffed"
    OVERTIME = "overtime"
    TIME_OFF_OVERLAP = "time_off_overlap"
    SKILL_MISMATCH = "skill_mismatch"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}

SEVERITY_BY_TYPE: dict[ConflictType, Severity] = {
    ConflictType.DOUBLE_BOOKING: Severity.CRITICAL,
    ConflictType.TIME_OFF_OVERLAP: Severity.HIGH,
    ConflictType.OVERTIME: Severity.MEDIUM,
    ConflictType.SKILL_MISMATCH: Severity.MEDIUM,
    ConflictType.UNDERSTAFFED: Severity.MEDIUM,
}

# Position in the classification order; also the tie-break when sorting
TYPE_PRIORITY: dict[ConflictType, int] = {
    ConflictType.DOUBLE_BOOKING: 0,
    ConflictType.TIME_OFF_OVERLAP: 1,
    ConflictType.OVERTIME: 2,
    ConflictType.SKILL_MISMATCH: 3,
    ConflictType.UNDERSTAFFED: 4,
}

DEFAULT_DAILY_HOURS_THRESHOLD = 10.0


def severity_for(
    conflict_type: ConflictType, requirement: RoleRequirement | None = None
) -> Severity:
    if conflict_type is ConflictType.UNDERSTAFFED and requirement is not None:
        return Severity.HIGH if requirement.is_critical else Severity.MEDIUM
    return SEVERITY_BY_TYPE[conflict_type]


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def shared_employees(a: Interval, b: Interval) -> frozenset[str]:
    return a.employee_ids & b.employee_ids


def combined_hours(a: Interval, b: Interval) -> float:
    """Hours covered by the union of two intervals."""
    if not overlaps(a, b):
        return a.duration_hours + b.duration_hours
    lo = min(a.start, b.start)
    hi = max(a.end, b.end)
    return (hi - lo).total_seconds() / 3600.0


def detect(
    a: Interval,
    b: Interval,
    *,
    daily_hours_threshold: Optional[float] = None,
) -> Optional[ConflictType]:
    """
    Classify the conflict between two intervals, or None.

    Rules in priority order (first match wins), all requiring a shared employee:
      1. two overlapping shifts                         -> DOUBLE_BOOKING
      2. an overlapping shift and time-off              -> TIME_OFF_OVERLAP
      3. two shifts on the same day above the threshold -> OVERTIME
    Intervals of the same source never conflict with each other.
    """
    if a.key == b.key:
        return None
    if not shared_employees(a, b):
        return None

    both_shifts = a.is_shift and b.is_shift
    if overlaps(a, b):
        if both_shifts:
            return ConflictType.DOUBLE_BOOKING
        if a.is_shift != b.is_shift:
            return ConflictType.TIME_OFF_OVERLAP
        return None

    threshold = (
        DEFAULT_DAILY_HOURS_THRESHOLD
        if daily_hours_threshold is None
        else daily_hours_threshold
    )
    if both_shifts and a.day == b.day and combined_hours(a, b) > threshold:
        return ConflictType.OVERTIME
    return None


def skill_mismatch(
    interval: Interval, employee_skills: Mapping[str, frozenset[str]]
) -> dict[str, frozenset[str]]:
    """
    Per role, the required skills that none of the employees filling it hold.

    Roles nobody fills are left to understaffing. Employees missing from
    `employee_skills` hold no skills.
    """
    out: dict[str, frozenset[str]] = {}
    if not interval.is_shift:
        return out
    for req in interval.requirements:
        if not req.skills:
            continue
        fillers = interval.employees_for(req.role) or (
            interval.employee_ids if not interval.role_assignments else frozenset()
        )
        if not fillers:
            continue
        held: set[str] = set()
        for e in fillers:
            held.update(employee_skills.get(e, frozenset()))
        missing = frozenset(req.skills - held)
        if missing:
            out[req.role] = out.get(req.role, frozenset()) | missing
    return out


def conflict_key(
    conflict_type: ConflictType, a: Interval, b: Interval
) -> tuple[str, tuple[str, str], tuple[str, str]]:
    """Order-independent identity of a pairwise conflict."""
    lo, hi = sorted((a.key, b.key))
    return (conflict_type.value, lo, hi)
