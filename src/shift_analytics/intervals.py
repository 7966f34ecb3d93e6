from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from shift_analytics.config import Config, cfg as default_cfg
from shift_analytics.errors import (
    UNATTRIBUTED_ASSIGNMENT,
    InconsistentFilterError,
    InvalidIntervalError,
    ReportWarning,
)
from shift_analytics.records import RoleRequirement, ShiftRecord, TimeOffRecord


class IntervalKind(str, Enum):
    SHIFT = "shift"
    TIME_OFF = "time_off"


def _to_utc(val: datetime) -> datetime:
    if val.tzinfo is None:
        return val.replace(tzinfo=timezone.utc)
    return val.astimezone(timezone.utc)


@dataclass(frozen=True)
class Interval:
    """
    Time span occupied by a shift or a time-off request.

    Naive datetimes are read as UTC. `day` is the local calendar date of the
    source record and defaults to the UTC date of `start`.
    """

    start: datetime
    end: datetime
    kind: IntervalKind
    source_id: str
    employee_ids: frozenset[str] = frozenset()
    role: str = ""
    location_id: Optional[str] = None
    team_id: Optional[str] = None
    department_id: Optional[str] = None
    requirements: tuple[RoleRequirement, ...] = ()
    role_assignments: tuple[tuple[str, frozenset[str]], ...] = ()
    day: Optional[date] = None

    def __post_init__(self) -> None:
        start, end = _to_utc(self.start), _to_utc(self.end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "source_id", str(self.source_id))
        object.__setattr__(
            self, "employee_ids", frozenset(str(e) for e in self.employee_ids)
        )
        if not self.role and self.requirements:
            object.__setattr__(self, "role", self.requirements[0].role)
        if self.day is None:
            object.__setattr__(self, "day", start.date())
        if end <= start:
            raise InvalidIntervalError(
                self.source_id,
                f"end {end.isoformat()} is not after start {start.isoformat()}",
                day=self.day,
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind.value, self.source_id)

    @property
    def is_shift(self) -> bool:
        return self.kind is IntervalKind.SHIFT

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0

    def overlaps(self, other: "Interval") -> bool:
        """Half-open overlap: back-to-back spans do not overlap."""
        return self.start < other.end and other.start < self.end

    def intersects(self, start: datetime, end: datetime) -> bool:
        return self.start < end and start < self.end

    def employees_for(self, role: str) -> frozenset[str]:
        for r, ids in self.role_assignments:
            if r == role:
                return ids
        return frozenset()


@dataclass(frozen=True)
class AnalysisRequest:
    """Inclusive date range plus optional shift tag filters."""

    start_date: date
    end_date: date
    location_id: Optional[str] = None
    team_id: Optional[str] = None
    department_id: Optional[str] = None

    def __post_init__(self) -> None:
        for attr in ("start_date", "end_date"):
            val = getattr(self, attr)
            if isinstance(val, datetime):
                object.__setattr__(self, attr, val.date())
            elif not isinstance(val, date):
                raise InconsistentFilterError(f"{attr} must be a date, got {val!r}.")
        if self.end_date < self.start_date:
            raise InconsistentFilterError(
                f"end_date {self.end_date} is before start_date {self.start_date}."
            )

    @classmethod
    def for_day(cls, day: date, **filters: Optional[str]) -> "AnalysisRequest":
        return cls(start_date=day, end_date=day, **filters)

    @property
    def period(self) -> str:
        if self.start_date == self.end_date:
            return self.start_date.isoformat()
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"

    def days(self) -> list[date]:
        n = (self.end_date - self.start_date).days + 1
        return [self.start_date + timedelta(days=i) for i in range(n)]

    def utc_window(self, tz: tzinfo) -> tuple[datetime, datetime]:
        return day_window(self.start_date, tz)[0], day_window(self.end_date, tz)[1]

    def matches(self, interval: Interval) -> bool:
        """Tag filters only constrain shifts."""
        if not interval.is_shift:
            return True
        for attr in ("location_id", "team_id", "department_id"):
            wanted = getattr(self, attr)
            if wanted is not None and getattr(interval, attr) != wanted:
                return False
        return True


def day_window(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC bounds of a local calendar day."""
    start = datetime.combine(day, time(0), tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
    return _to_utc(start), _to_utc(end)


@dataclass(frozen=True)
class IntervalSet:
    """Immutable snapshot handed to the analyzers."""

    intervals: tuple[Interval, ...] = ()
    warnings: tuple[ReportWarning, ...] = ()

    def __iter__(self):
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    @property
    def is_empty(self) -> bool:
        return not self.shifts()

    def shifts(self) -> list[Interval]:
        return [iv for iv in self.intervals if iv.is_shift]

    def time_off(self) -> list[Interval]:
        return [iv for iv in self.intervals if not iv.is_shift]

    def employee_ids(self) -> list[str]:
        """Distinct employees working at least one shift."""
        ids: set[str] = set()
        for iv in self.shifts():
            ids.update(iv.employee_ids)
        return sorted(ids)

    def window(
        self, start: datetime, end: datetime, day: Optional[date] = None
    ) -> "IntervalSet":
        """Intervals intersecting [start, end); warnings narrowed to `day` if given."""
        kept = tuple(iv for iv in self.intervals if iv.intersects(start, end))
        if day is None:
            return IntervalSet(kept, self.warnings)
        warns = tuple(w for w in self.warnings if w.day is None or w.day == day)
        return IntervalSet(kept, warns)

    def filter(self, request: AnalysisRequest) -> "IntervalSet":
        return IntervalSet(
            tuple(iv for iv in self.intervals if request.matches(iv)), self.warnings
        )


def _attribute_roles(
    shift: ShiftRecord, roles_by_employee: Mapping[str, Iterable[str]] | None
) -> tuple[tuple[tuple[str, frozenset[str]], ...], list[str]]:
    """Decide which employees fill which requirement; returns (pairs, unattributed)."""
    reqs = shift.requirements
    if not reqs:
        return (), []

    if shift.role_assignments is not None:
        per_role: dict[str, set[str]] = {r.role: set() for r in reqs}
        for role, ids in shift.role_assignments.items():
            per_role.setdefault(role, set()).update(ids)
        placed = set().union(*per_role.values()) if per_role else set()
        leftover = [e for e in shift.assigned_employee_ids if e not in placed]
        return tuple((r, frozenset(ids)) for r, ids in per_role.items()), leftover

    if len({r.role for r in reqs}) == 1:
        return ((reqs[0].role, frozenset(shift.assigned_employee_ids)),), []

    per_role = {r.role: set() for r in reqs}
    leftover: list[str] = []
    for e in shift.assigned_employee_ids:
        qualified = set(roles_by_employee.get(e, ())) if roles_by_employee else set()
        role = next((r.role for r in reqs if r.role in qualified), None)
        if role is None:
            leftover.append(e)
        else:
            per_role[role].add(e)
    return tuple((r, frozenset(ids)) for r, ids in per_role.items()), leftover


def shift_interval(
    shift: ShiftRecord,
    tz: tzinfo,
    roles_by_employee: Mapping[str, Iterable[str]] | None = None,
) -> tuple[Interval, list[str]]:
    """Build the interval of one shift; raises InvalidIntervalError when malformed."""
    start, end = shift.local_bounds(tz)
    assignments, leftover = _attribute_roles(shift, roles_by_employee)
    interval = Interval(
        start=start,
        end=end,
        kind=IntervalKind.SHIFT,
        source_id=shift.id,
        employee_ids=frozenset(shift.assigned_employee_ids),
        location_id=shift.location_id,
        team_id=shift.team_id,
        department_id=shift.department_id,
        requirements=tuple(shift.requirements),
        role_assignments=assignments,
        day=shift.date,
    )
    return interval, leftover


def time_off_interval(record: TimeOffRecord, tz: tzinfo) -> Interval:
    start, end = record.local_bounds(tz)
    return Interval(
        start=start,
        end=end,
        kind=IntervalKind.TIME_OFF,
        source_id=record.id,
        employee_ids=frozenset({record.employee_id}),
        day=record.start_date,
    )


def _in_range(request: AnalysisRequest | None, day: Optional[date]) -> bool:
    if request is None or day is None:
        return True
    return request.start_date <= day <= request.end_date


def build_intervals(
    shifts: Sequence[ShiftRecord],
    time_off_requests: Sequence[TimeOffRecord] = (),
    request: AnalysisRequest | None = None,
    cfg: Config | None = None,
    employee_roles: Mapping[str, Iterable[str]] | None = None,
) -> IntervalSet:
    """
    Turn shift and time-off records into the interval snapshot of one analysis.

    Malformed records are skipped and reported as warnings; inactive time-off
    requests are ignored. When `request` is given only intervals intersecting
    its date range (and shifts matching its tags) are kept.
    """
    C = cfg or default_cfg
    tz = C.tz
    window = request.utc_window(tz) if request is not None else None

    intervals: list[Interval] = []
    warnings: list[ReportWarning] = []

    for shift in shifts:
        try:
            iv, leftover = shift_interval(shift, tz, employee_roles)
        except InvalidIntervalError as exc:
            if _in_range(request, exc.day):
                warnings.append(ReportWarning.from_error(exc))
            continue
        if window is not None and not iv.intersects(*window):
            continue
        if request is not None and not request.matches(iv):
            continue
        intervals.append(iv)
        if leftover:
            warnings.append(
                ReportWarning(
                    code=UNATTRIBUTED_ASSIGNMENT,
                    message=(
                        f"Shift {shift.id}: no requirement matches employee(s) "
                        f"{', '.join(sorted(leftover))}"
                    ),
                    source_id=shift.id,
                    day=shift.date,
                )
            )

    for record in time_off_requests:
        if not record.is_active(C.ACTIVE_TIME_OFF_STATUSES):
            continue
        try:
            iv = time_off_interval(record, tz)
        except InvalidIntervalError as exc:
            if _in_range(request, exc.day):
                warnings.append(ReportWarning.from_error(exc))
            continue
        if window is not None and not iv.intersects(*window):
            continue
        intervals.append(iv)

    intervals.sort(key=lambda iv: (iv.start, iv.end, iv.kind.value, iv.source_id))
    return IntervalSet(tuple(intervals), tuple(warnings))
