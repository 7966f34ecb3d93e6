from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional, Sequence

from shift_analytics.config import Config, cfg as default_cfg
from shift_analytics.coverage import CoverageRecord, aggregate_by
from shift_analytics.intervals import Interval
from shift_analytics.records import EmployeeAvailability


class SuggestionType(str, Enum):
    REASSIGN = "reassign"
    HIRE = "hire"
    TRAIN = "train"
    OVERTIME = "overtime"


@dataclass(frozen=True)
class OptimizationSuggestion:
    type: SuggestionType
    description: str
    impact: float  # share of the gap expected to close, in [0, 1]
    cost: float
    role: str = ""

    @property
    def return_on_cost(self) -> float:
        return self.impact / self.cost if self.cost > 0 else 0.0


@dataclass(frozen=True)
class GapWindow:
    """One understaffed shift of a role."""

    shift_id: str
    day: Optional[date]
    start: datetime
    end: datetime
    shortage: int


@dataclass(frozen=True)
class CoverageGap:
    role: str
    shortage: int
    required: int
    assigned: int
    available_employee_ids: tuple[str, ...]  # qualified and free for a gap window
    trainable_employee_ids: tuple[str, ...]  # as above but missing a required skill
    days_with_gap: int
    windows: tuple[GapWindow, ...] = ()


@dataclass(frozen=True)
class OptimizationResult:
    gaps: tuple[CoverageGap, ...]
    suggestions: tuple[OptimizationSuggestion, ...]


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, x))


def _gap_windows(shifts: Sequence[Interval], role: str) -> list[GapWindow]:
    out: list[GapWindow] = []
    for iv in shifts:
        qty = sum(r.quantity for r in iv.requirements if r.role == role)
        if qty == 0:
            continue
        short = qty - len(iv.employees_for(role))
        if short > 0:
            out.append(GapWindow(iv.source_id, iv.day, iv.start, iv.end, short))
    return out


def _role_skills(shifts: Sequence[Interval], role: str) -> frozenset[str]:
    skills: set[str] = set()
    for iv in shifts:
        for r in iv.requirements:
            if r.role == role:
                skills.update(r.skills)
    return frozenset(skills)


def _days_with_gap(shifts: Sequence[Interval]) -> dict[str, int]:
    """role -> number of days whose day-level coverage of the role is short."""
    counts: dict[str, int] = {}
    for records in aggregate_by(shifts, "day").values():
        for rec in records:
            if rec.gap > 0:
                counts[rec.role] = counts.get(rec.role, 0) + 1
    return counts


def _busy_index(intervals: Sequence[Interval]) -> dict[str, list[Interval]]:
    busy: dict[str, list[Interval]] = {}
    for iv in intervals:
        for e in iv.employee_ids:
            busy.setdefault(e, []).append(iv)
    return busy


def _is_free(
    emp: EmployeeAvailability,
    window: GapWindow,
    busy: dict[str, list[Interval]],
    C: Config,
) -> bool:
    if not emp.is_available(window.start, window.end, C.tz):
        return False
    for iv in busy.get(emp.employee_id, ()):
        if iv.intersects(window.start, window.end):
            return False
    return True


def _suggest(
    gap: CoverageGap, qualified: int, trainable: int, C: Config
) -> OptimizationSuggestion:
    shortage, required, role = gap.shortage, gap.required, gap.role
    if qualified >= 1:
        n = min(shortage, qualified)
        return OptimizationSuggestion(
            type=SuggestionType.REASSIGN,
            description=(
                f"Reassign {n} available qualified employee(s) to {role} "
                f"({', '.join(gap.available_employee_ids[:n])})."
            ),
            impact=_clamp(n / shortage),
            cost=C.REASSIGN_COST,
            role=role,
        )
    if gap.days_with_gap >= C.HIRE_MIN_GAP_DAYS:
        return OptimizationSuggestion(
            type=SuggestionType.HIRE,
            description=(
                f"Hire {shortage} {role} staff; the gap recurs on "
                f"{gap.days_with_gap} days."
            ),
            impact=_clamp(shortage / required),
            cost=C.HIRE_COST,
            role=role,
        )
    if trainable >= 1:
        return OptimizationSuggestion(
            type=SuggestionType.TRAIN,
            description=(
                f"Train {min(shortage, trainable)} available {role} employee(s) "
                "in the missing skills."
            ),
            impact=_clamp(C.TRAIN_IMPACT_FACTOR * shortage / required),
            cost=C.TRAIN_COST,
            role=role,
        )
    return OptimizationSuggestion(
        type=SuggestionType.OVERTIME,
        description=f"Cover {shortage} {role} slot(s) with overtime.",
        impact=_clamp(shortage / required),
        cost=C.OVERTIME_COST_PER_HEAD * shortage,
        role=role,
    )


def optimize(
    coverage: Sequence[CoverageRecord],
    available_employees: Iterable[EmployeeAvailability],
    intervals: Optional[Iterable[Interval]] = None,
    cfg: Config | None = None,
    busy_intervals: Optional[Iterable[Interval]] = None,
) -> OptimizationResult:
    """
    Gaps and ranked remediation suggestions for a coverage snapshot.

    Parameters
    ----------
    coverage:
        Per-role records, usually from `aggregate(intervals)`.
    available_employees:
        Everyone who could be reassigned, trained or asked for overtime.
    intervals:
        The shifts (and time-off) behind `coverage`. Gap windows and required
        skills come from its shifts. An employee is a candidate when free for
        at least one gap window, so someone working the role on another day
        still counts. Without it employee time is not checked, required
        skills are unknown and anyone already filling the role is left out.
    busy_intervals:
        Everything that occupies employees, when wider than `intervals`
        (e.g. overnight shifts starting before the analysed range).
        Defaults to `intervals`.

    Suggestions are ranked by impact/cost; equal ratios keep the order of
    `coverage`.
    """
    C = cfg or default_cfg
    employees = sorted(available_employees, key=lambda e: e.employee_id)
    ivs = list(intervals) if intervals is not None else None
    shifts = [iv for iv in ivs if iv.is_shift] if ivs is not None else []
    if busy_intervals is not None:
        busy = _busy_index(list(busy_intervals))
    else:
        busy = _busy_index(ivs) if ivs is not None else {}
    day_counts = _days_with_gap(shifts) if ivs is not None else {}

    gaps: list[CoverageGap] = []
    suggestions: list[OptimizationSuggestion] = []
    for rec in coverage:
        if rec.gap <= 0:
            continue
        windows = _gap_windows(shifts, rec.role)
        skills = _role_skills(shifts, rec.role)

        qualified: list[str] = []
        trainable: list[str] = []
        for emp in employees:
            if not emp.qualified_for(rec.role):
                continue
            if ivs is None:
                if emp.employee_id in rec.employee_ids:
                    continue
            # people on the short shift itself are busy for its window
            elif not any(_is_free(emp, w, busy, C) for w in windows):
                continue
            if emp.has_skills(skills):
                qualified.append(emp.employee_id)
            else:
                trainable.append(emp.employee_id)

        gap = CoverageGap(
            role=rec.role,
            shortage=rec.shortage,
            required=rec.required,
            assigned=rec.assigned,
            available_employee_ids=tuple(qualified),
            trainable_employee_ids=tuple(trainable),
            days_with_gap=day_counts.get(rec.role, 0) if ivs is not None else 1,
            windows=tuple(windows),
        )
        gaps.append(gap)
        suggestions.append(_suggest(gap, len(qualified), len(trainable), C))

    # sorted() is stable, ties keep coverage order
    ranked = sorted(suggestions, key=lambda s: -s.return_on_cost)
    return OptimizationResult(gaps=tuple(gaps), suggestions=tuple(ranked))
