from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Literal, Sequence

from shift_analytics.intervals import Interval

Dimension = Literal["day", "location_id", "team_id", "department_id"]


def coverage_pct(assigned: int, required: int) -> float:
    """Assigned share of required headcount, clamped to [0, 100]."""
    if assigned > 0:
        if required <= 0:
            return 100.0
        return min(100.0, assigned / required * 100.0)
    return 100.0 if required == 0 else 0.0


@dataclass(frozen=True)
class CoverageRecord:
    """Required vs. assigned headcount for one role over a slice."""

    role: str
    required: int
    assigned: int
    coverage_pct: float
    gap: int  # required - assigned; negative when overstaffed
    employee_ids: tuple[str, ...] = ()
    total_hours: float = 0.0
    shift_ids: tuple[str, ...] = ()

    @property
    def shortage(self) -> int:
        return max(self.gap, 0)

    @property
    def overstaffed(self) -> int:
        return max(-self.gap, 0)

    @property
    def utilization(self) -> float:
        return self.assigned / self.required if self.required > 0 else 0.0


class _RoleTally:
    __slots__ = ("required", "assigned", "employees", "hours", "shift_ids")

    def __init__(self) -> None:
        self.required = 0
        self.assigned = 0
        self.employees: set[str] = set()
        self.hours = 0.0
        self.shift_ids: list[str] = []


def aggregate(intervals: Iterable[Interval]) -> list[CoverageRecord]:
    """
    Per-role coverage over the shift intervals.

    required = sum of requirement quantities for the role.
    assigned = per shift, the distinct employees filling the role, summed over
               shifts (one employee never fills a role twice within a shift).
    Sorted by coverage_pct ascending, then role.
    """
    tallies: dict[str, _RoleTally] = {}
    for iv in intervals:
        if not iv.is_shift or not iv.requirements:
            continue
        per_shift_qty: dict[str, int] = {}
        for req in iv.requirements:
            per_shift_qty[req.role] = per_shift_qty.get(req.role, 0) + req.quantity
        for role, qty in per_shift_qty.items():
            t = tallies.setdefault(role, _RoleTally())
            fillers = iv.employees_for(role)
            t.required += qty
            t.assigned += len(fillers)
            t.employees.update(fillers)
            t.hours += iv.duration_hours
            t.shift_ids.append(iv.source_id)

    records = [
        CoverageRecord(
            role=role,
            required=t.required,
            assigned=t.assigned,
            coverage_pct=coverage_pct(t.assigned, t.required),
            gap=t.required - t.assigned,
            employee_ids=tuple(sorted(t.employees)),
            total_hours=round(t.hours, 4),
            shift_ids=tuple(t.shift_ids),
        )
        for role, t in tallies.items()
    ]
    records.sort(key=lambda r: (r.coverage_pct, r.role))
    return records


def aggregate_by(
    intervals: Sequence[Interval], dimension: Dimension
) -> dict[str | date | None, list[CoverageRecord]]:
    """Coverage per slice of `dimension`, keys in sorted order (None last)."""
    if dimension not in ("day", "location_id", "team_id", "department_id"):
        raise ValueError(f"Unknown coverage dimension {dimension!r}.")
    buckets: dict[str | date | None, list[Interval]] = {}
    for iv in intervals:
        if iv.is_shift:
            buckets.setdefault(getattr(iv, dimension), []).append(iv)
    keys = sorted(buckets, key=lambda k: (k is None, str(k) if k is not None else ""))
    return {k: aggregate(buckets[k]) for k in keys}


def overall_coverage_pct(records: Sequence[CoverageRecord]) -> float:
    """
    Headcount-weighted coverage across roles. Overstaffing one role does not
    offset a shortfall in another.
    """
    required = sum(r.required for r in records)
    if required <= 0:
        return 0.0
    covered = sum(min(r.assigned, r.required) for r in records)
    return min(100.0, covered / required * 100.0)


def average_utilization(records: Sequence[CoverageRecord]) -> float:
    if not records:
        return 0.0
    return round(sum(r.utilization for r in records) / len(records), 2)
