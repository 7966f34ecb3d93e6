from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Optional

from shift_analytics.config import resolve_timezone


MIDNIGHT = time(0)


def _normalize_date(val: Any, what: str) -> date:
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    raise TypeError(f"{what} must be datetime.date or datetime.datetime.")


def _normalize_time(val: Any, what: str) -> time:
    if isinstance(val, time):
        return val.replace(tzinfo=None)
    if isinstance(val, str):
        text = val.strip()
        if text == "24:00":
            return MIDNIGHT
        try:
            return time.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"{what} must look like HH:MM, got {val!r}.") from exc
    raise TypeError(f"{what} must be datetime.time or an 'HH:MM' string.")


def _dedup_ids(values: Iterable[Any]) -> list[str]:
    seen: set[str] = set()
    dedup: list[str] = []
    for v in values:
        s = str(v)
        if s not in seen:
            seen.add(s)
            dedup.append(s)
    return dedup


@dataclass(slots=True)
class RoleRequirement:
    """Headcount a shift needs for one role."""

    role: str
    quantity: int = 1
    skills: frozenset[str] = field(default_factory=frozenset)
    is_critical: bool = False
    description: Optional[str] = None

    def __post_init__(self) -> None:
        self.role = str(self.role).strip()
        if not self.role:
            raise ValueError("RoleRequirement.role must not be empty.")
        if int(self.quantity) < 1:
            raise ValueError(
                f"RoleRequirement.quantity must be >= 1, got {self.quantity}."
            )
        self.quantity = int(self.quantity)
        self.skills = frozenset(str(s) for s in self.skills)

    def __hash__(self) -> int:
        return hash((self.role, self.quantity, self.skills, self.is_critical))


@dataclass(slots=True)
class ShiftRecord:
    """
    A scheduled shift as delivered by the shift store.
    `end_date` marks overnight shifts; when omitted the shift ends on `date`, or at
    the midnight after it for an end of 00:00 or "24:00".
    """

    id: str
    date: date
    start_time: time
    end_time: time
    requirements: list[RoleRequirement] = field(default_factory=list)
    assigned_employee_ids: list[str] = field(default_factory=list)
    role_assignments: Optional[dict[str, list[str]]] = None
    end_date: Optional[date] = None
    location_id: Optional[str] = None
    team_id: Optional[str] = None
    department_id: Optional[str] = None
    timezone: Optional[str] = None
    title: str = ""

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.date = _normalize_date(self.date, "ShiftRecord.date")
        if self.end_date is not None:
            self.end_date = _normalize_date(self.end_date, "ShiftRecord.end_date")
        self.start_time = _normalize_time(self.start_time, "ShiftRecord.start_time")
        self.end_time = _normalize_time(self.end_time, "ShiftRecord.end_time")
        self.requirements = [
            r if isinstance(r, RoleRequirement) else requirement_from_mapping(r)
            for r in self.requirements
        ]
        assigned = list(self.assigned_employee_ids)
        if self.role_assignments is not None:
            self.role_assignments = {
                str(role): _dedup_ids(ids)
                for role, ids in self.role_assignments.items()
            }
            for ids in self.role_assignments.values():
                assigned.extend(ids)
        self.assigned_employee_ids = _dedup_ids(assigned)
        for attr in ("location_id", "team_id", "department_id"):
            val = getattr(self, attr)
            if val is not None:
                setattr(self, attr, str(val))

    def local_bounds(self, default_tz: tzinfo) -> tuple[datetime, datetime]:
        """
        Aware (start, end) in the shift's own zone. Without `end_date` an end of
        00:00 (or "24:00") is the midnight closing `date`.
        """
        zone = resolve_timezone(self.timezone) if self.timezone else default_tz
        start = datetime.combine(self.date, self.start_time, tzinfo=zone)
        end_day = self.end_date or self.date
        if self.end_date is None and self.end_time == MIDNIGHT:
            end_day += timedelta(days=1)
        end = datetime.combine(end_day, self.end_time, tzinfo=zone)
        return start, end


class TimeOffStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"


@dataclass(slots=True)
class TimeOffRecord:
    """
    A time-off request. Without explicit times it covers whole days,
    `start_date` 00:00 up to the midnight after `end_date`.
    """

    id: str
    employee_id: str
    start_date: date
    end_date: date
    status: TimeOffStatus = TimeOffStatus.PENDING
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    timezone: Optional[str] = None
    kind: str = "other"

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.employee_id = str(self.employee_id)
        self.start_date = _normalize_date(self.start_date, "TimeOffRecord.start_date")
        self.end_date = _normalize_date(self.end_date, "TimeOffRecord.end_date")
        if not isinstance(self.status, TimeOffStatus):
            self.status = TimeOffStatus(str(self.status).lower())
        if self.start_time is not None:
            self.start_time = _normalize_time(
                self.start_time, "TimeOffRecord.start_time"
            )
        if self.end_time is not None:
            self.end_time = _normalize_time(self.end_time, "TimeOffRecord.end_time")

    def is_active(self, statuses: Iterable[str]) -> bool:
        return self.status.value in {str(s).lower() for s in statuses}

    def local_bounds(self, default_tz: tzinfo) -> tuple[datetime, datetime]:
        zone = resolve_timezone(self.timezone) if self.timezone else default_tz
        start = datetime.combine(self.start_date, self.start_time or MIDNIGHT, tzinfo=zone)
        if self.end_time is None or self.end_time == MIDNIGHT:
            # end_date is inclusive, so a midnight end closes that day
            end = datetime.combine(
                self.end_date + timedelta(days=1), MIDNIGHT, tzinfo=zone
            )
        else:
            end = datetime.combine(self.end_date, self.end_time, tzinfo=zone)
        return start, end

    def days(self) -> list[date]:
        """Calendar days touched by the request (inclusive)."""
        n = (self.end_date - self.start_date).days
        if n < 0:
            return []
        return [self.start_date + timedelta(days=i) for i in range(n + 1)]


@dataclass(slots=True)
class AvailabilityWindow:
    """Recurring weekly window; day_of_week follows datetime.weekday() (0=Monday)."""

    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True

    def __post_init__(self) -> None:
        if not (0 <= int(self.day_of_week) <= 6):
            raise ValueError("day_of_week must be within [0, 6].")
        self.day_of_week = int(self.day_of_week)
        self.start_time = _normalize_time(self.start_time, "AvailabilityWindow.start_time")
        self.end_time = _normalize_time(self.end_time, "AvailabilityWindow.end_time")

    @property
    def runs_to_midnight(self) -> bool:
        return self.end_time == time(0)

    def covers(self, weekday: int, start: time, end: Optional[time]) -> bool:
        """`end=None` means the segment runs to midnight."""
        if not self.is_available or weekday != self.day_of_week:
            return False
        if start < self.start_time:
            return False
        if self.runs_to_midnight:
            return True
        return end is not None and end <= self.end_time


def _day_segments(
    start: datetime, end: datetime
) -> Iterator[tuple[int, time, Optional[time]]]:
    """Split a naive wall-clock span at midnights into (weekday, start, end|None)."""
    cur = start
    while cur < end:
        next_midnight = datetime.combine(cur.date() + timedelta(days=1), time(0))
        seg_end = min(end, next_midnight)
        yield cur.weekday(), cur.time(), (
            None if seg_end == next_midnight else seg_end.time()
        )
        cur = seg_end


@dataclass(slots=True)
class EmployeeAvailability:
    """
    What the optimizer knows about an employee: role qualifications, skills and
    weekly availability. No windows means no time restriction.
    """

    employee_id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    skills: frozenset[str] = field(default_factory=frozenset)
    windows: tuple[AvailabilityWindow, ...] = ()
    max_hours_per_week: Optional[float] = None
    name: str = ""

    def __post_init__(self) -> None:
        self.employee_id = str(self.employee_id)
        self.roles = frozenset(str(r) for r in self.roles)
        self.skills = frozenset(str(s) for s in self.skills)
        self.windows = tuple(
            w if isinstance(w, AvailabilityWindow) else AvailabilityWindow(**dict(w))
            for w in self.windows
        )

    def __repr__(self) -> str:
        return (
            f"EmployeeAvailability(id={self.employee_id}, roles={sorted(self.roles)}, "
            f"skills={sorted(self.skills)}, windows={len(self.windows)})"
        )

    def qualified_for(self, role: str) -> bool:
        return role in self.roles

    def has_skills(self, skills: Iterable[str]) -> bool:
        return set(skills) <= self.skills

    def is_available(self, start: datetime, end: datetime, tz: tzinfo) -> bool:
        """True when every local-day segment of [start, end) sits inside a window."""
        if not self.windows:
            return True
        local_start = start.astimezone(tz).replace(tzinfo=None)
        local_end = end.astimezone(tz).replace(tzinfo=None)
        for weekday, seg_start, seg_end in _day_segments(local_start, local_end):
            if not any(w.covers(weekday, seg_start, seg_end) for w in self.windows):
                return False
        return True


def employee_roles(
    employees: Iterable[EmployeeAvailability],
) -> dict[str, frozenset[str]]:
    return {e.employee_id: e.roles for e in employees}


def employee_skills(
    employees: Iterable[EmployeeAvailability],
) -> dict[str, frozenset[str]]:
    return {e.employee_id: e.skills for e in employees}


def requirement_from_mapping(data: Mapping[str, Any]) -> RoleRequirement:
    """Build a RoleRequirement from camelCase or snake_case keys."""
    return RoleRequirement(
        role=data["role"],
        quantity=data.get("quantity", 1),
        skills=frozenset(data.get("skills", ())),
        is_critical=bool(data.get("is_critical", data.get("isCritical", False))),
        description=data.get("description"),
    )
