# sample.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from shift_analytics.records import (
    AvailabilityWindow,
    EmployeeAvailability,
    RoleRequirement,
    ShiftRecord,
    TimeOffRecord,
    TimeOffStatus,
)

FIRST_NAMES = (
    "Ava", "Ben", "Chloe", "Dan", "Ella", "Finn", "Grace", "Hugo", "Isla", "Jack",
    "Kara", "Liam", "Maya", "Noah", "Olive", "Paul", "Quinn", "Ruby", "Sam", "Tara",
    "Uma", "Vic", "Wren", "Xander", "Yara", "Zane",
)  # fmt: skip


# ----------------------------
# Configuration container
# ----------------------------
@dataclass(slots=True)
class SampleConfig:
    """
    Configuration for generation of a synthetic scheduling snapshot.
    """

    n_employees: int = 24
    days: int = 7
    start_date: date = date(2024, 1, 8)

    locations: Tuple[str, ...] = ("LOC-1", "LOC-2")
    teams: Tuple[str, ...] = ("TEAM-A", "TEAM-B")
    department: str = "DEPT-1"

    # (start, end) per shift; an end before the start runs overnight
    shift_templates: Tuple[Tuple[str, str], ...] = (
        ("06:00", "14:00"),
        ("14:00", "22:00"),
        ("22:00", "06:00"),
    )

    # Per shift: role -> (quantity, required skill, critical)
    requirements: dict[str, Tuple[int, str, bool]] = field(
        default_factory=lambda: {
            "Cashier": (2, "pos", False),
            "Stocker": (1, "forklift", False),
            "Supervisor": (1, "first_aid", True),
        }
    )

    # Distribution of each employee's primary role (same order as `requirements`)
    role_probs: Tuple[float, ...] = (0.5, 0.3, 0.2)
    second_role_pct: float = 0.3
    skill_prob: float = 0.75

    # Share of employees restricted to weekday daytime windows
    restricted_pct: float = 0.2

    # Per-slot probability of being filled, and of reusing someone already working that day
    fill_rate: float = 0.85
    double_booking_rate: float = 0.05

    # Per-person, per-day probability of a time-off request
    time_off_rate: float = 0.05
    status_choices: Tuple[str, ...] = ("approved", "pending", "rejected")
    status_weights: Tuple[float, ...] = (0.6, 0.3, 0.1)

    seed: Optional[int] = 7

    def validate(self) -> None:
        if self.n_employees <= 0:
            raise ValueError("n_employees must be > 0.")
        if self.days <= 0:
            raise ValueError("days must be > 0.")
        if not self.locations or not self.teams:
            raise ValueError("locations and teams must not be empty.")
        if not self.shift_templates:
            raise ValueError("shift_templates must not be empty.")
        if len(self.role_probs) != len(self.requirements):
            raise ValueError("role_probs and requirements must be same length.")
        if not np.isclose(sum(self.role_probs), 1.0, atol=1e-9):
            raise ValueError("role_probs must sum to 1.0")
        for role, (qty, _, _) in self.requirements.items():
            if qty < 1:
                raise ValueError(f"Quantity for role {role} must be >= 1.")
        for name in (
            "second_role_pct",
            "skill_prob",
            "restricted_pct",
            "fill_rate",
            "double_booking_rate",
            "time_off_rate",
        ):
            if not (0.0 <= getattr(self, name) <= 1.0):
                raise ValueError(f"{name} must be in [0,1].")
        if len(self.status_choices) != len(self.status_weights):
            raise ValueError("status_choices and status_weights must be same length.")
        if not np.isclose(sum(self.status_weights), 1.0, atol=1e-9):
            raise ValueError("status_weights must sum to 1.0")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError("seed must be an int or None.")


@dataclass(slots=True)
class SampleData:
    employees: list[EmployeeAvailability]
    shifts: list[ShiftRecord]
    time_off: list[TimeOffRecord]

    def __repr__(self) -> str:
        return (
            f"SampleData(employees={len(self.employees)}, shifts={len(self.shifts)}, "
            f"time_off={len(self.time_off)})"
        )


# ----------------------------
# Generation helpers
# ----------------------------
def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed) if seed is not None else np.random.default_rng()


def _name(i: int) -> str:
    base = FIRST_NAMES[i % len(FIRST_NAMES)]
    return base if i < len(FIRST_NAMES) else f"{base} {i // len(FIRST_NAMES) + 1}"


# ----------------------------
# Core API
# ----------------------------
def create_employees(cfg: SampleConfig, g: np.random.Generator) -> list[EmployeeAvailability]:
    roles = list(cfg.requirements)
    primary = g.choice(len(roles), size=cfg.n_employees, p=np.array(cfg.role_probs))
    second = g.random(cfg.n_employees) < cfg.second_role_pct
    restricted = g.random(cfg.n_employees) < cfg.restricted_pct

    weekday_days = tuple(
        AvailabilityWindow(dow, "06:00", "22:00") for dow in range(5)
    )
    out: list[EmployeeAvailability] = []
    for i in range(cfg.n_employees):
        held = {roles[int(primary[i])]}
        if second[i]:
            held.add(roles[int(g.integers(len(roles)))])
        skills = {
            cfg.requirements[r][1] for r in sorted(held) if g.random() < cfg.skill_prob
        }
        out.append(
            EmployeeAvailability(
                employee_id=f"E{i + 1:03d}",
                roles=frozenset(held),
                skills=frozenset(skills),
                windows=weekday_days if restricted[i] else (),
                max_hours_per_week=40.0,
                name=_name(i),
            )
        )
    return out


def create_shifts(
    cfg: SampleConfig,
    employees: list[EmployeeAvailability],
    g: np.random.Generator,
) -> list[ShiftRecord]:
    """Staff every template shift at every location, leaving some slots open."""
    by_role: dict[str, list[str]] = {
        role: [e.employee_id for e in employees if e.qualified_for(role)]
        for role in cfg.requirements
    }
    shifts: list[ShiftRecord] = []
    for d in range(cfg.days):
        day = cfg.start_date + timedelta(days=d)
        working: set[str] = set()
        for loc in cfg.locations:
            for k, (start, end) in enumerate(cfg.shift_templates):
                overnight = end <= start
                on_shift: set[str] = set()
                assignments: dict[str, list[str]] = {}
                for role, (qty, _, _) in cfg.requirements.items():
                    picked: list[str] = []
                    for _ in range(qty):
                        if g.random() >= cfg.fill_rate:
                            continue
                        reuse = g.random() < cfg.double_booking_rate
                        pool = [
                            e
                            for e in by_role[role]
                            if e not in on_shift and (reuse or e not in working)
                        ]
                        if not pool:
                            continue
                        e = pool[int(g.integers(len(pool)))]
                        picked.append(e)
                        on_shift.add(e)
                    assignments[role] = picked
                working.update(on_shift)
                shifts.append(
                    ShiftRecord(
                        id=f"S-{day:%Y%m%d}-{loc}-{k}",
                        date=day,
                        start_time=start,
                        end_time=end,
                        end_date=day + timedelta(days=1) if overnight else None,
                        requirements=[
                            RoleRequirement(
                                role,
                                quantity=qty,
                                skills=frozenset({skill}),
                                is_critical=critical,
                            )
                            for role, (qty, skill, critical) in cfg.requirements.items()
                        ],
                        role_assignments=assignments,
                        location_id=loc,
                        team_id=cfg.teams[int(g.integers(len(cfg.teams)))],
                        department_id=cfg.department,
                        title=f"{loc} shift {k + 1}",
                    )
                )
    return shifts


def create_time_off(
    cfg: SampleConfig,
    employees: list[EmployeeAvailability],
    g: np.random.Generator,
) -> list[TimeOffRecord]:
    """Randomly request single days off; statuses drawn from `status_weights`."""
    out: list[TimeOffRecord] = []
    weights = np.array(cfg.status_weights, dtype=float)
    for emp in employees:
        idx = np.where(g.random(cfg.days) < cfg.time_off_rate)[0]
        for i in idx:
            day = cfg.start_date + timedelta(days=int(i))
            status = cfg.status_choices[int(g.choice(len(weights), p=weights))]
            out.append(
                TimeOffRecord(
                    id=f"T-{emp.employee_id}-{day:%Y%m%d}",
                    employee_id=emp.employee_id,
                    start_date=day,
                    end_date=day,
                    status=TimeOffStatus(status),
                    kind="vacation",
                )
            )
    return out


def build_sample(cfg: SampleConfig | None = None) -> SampleData:
    cfg = cfg or SampleConfig()
    cfg.validate()
    g = _rng(cfg.seed)
    employees = create_employees(cfg, g)
    shifts = create_shifts(cfg, employees, g)
    time_off = create_time_off(cfg, employees, g)
    return SampleData(employees=employees, shifts=shifts, time_off=time_off)


# ----------------------------
# Convenience utilities
# ----------------------------
def employees_to_dataframe(employees: list[EmployeeAvailability]) -> pd.DataFrame:
    rows = []
    for e in employees:
        rows.append(
            {
                "employee_id": e.employee_id,
                "name": e.name,
                "roles": sorted(e.roles),
                "skills": sorted(e.skills),
                "restricted": bool(e.windows),
                "max_hours_per_week": (
                    e.max_hours_per_week if e.max_hours_per_week is not None else np.nan
                ),
            }
        )
    return pd.DataFrame(rows)


def _parse_date(val: Any) -> Any:
    return date.fromisoformat(val) if isinstance(val, str) else val


def _shift_from_mapping(d: Mapping[str, Any]) -> ShiftRecord:
    return ShiftRecord(
        id=d["id"],
        date=_parse_date(d["date"]),
        start_time=d.get("start_time", d.get("startTime")),
        end_time=d.get("end_time", d.get("endTime")),
        requirements=list(d.get("requirements", ())),
        assigned_employee_ids=list(
            d.get("assigned_employee_ids", d.get("assignedEmployees", ()))
        ),
        role_assignments=d.get("role_assignments"),
        end_date=_parse_date(d.get("end_date")),
        location_id=d.get("location_id", d.get("locationId")),
        team_id=d.get("team_id", d.get("teamId")),
        department_id=d.get("department_id", d.get("departmentId")),
        timezone=d.get("timezone"),
        title=d.get("title", ""),
    )


def _time_off_from_mapping(d: Mapping[str, Any]) -> TimeOffRecord:
    return TimeOffRecord(
        id=d["id"],
        employee_id=d.get("employee_id", d.get("employeeId")),
        start_date=_parse_date(d.get("start_date", d.get("startDate"))),
        end_date=_parse_date(d.get("end_date", d.get("endDate"))),
        status=d.get("status", "pending"),
        start_time=d.get("start_time", d.get("startTime")),
        end_time=d.get("end_time", d.get("endTime")),
        timezone=d.get("timezone"),
        kind=d.get("type", d.get("kind", "other")),
    )


def _employee_from_mapping(d: Mapping[str, Any]) -> EmployeeAvailability:
    return EmployeeAvailability(
        employee_id=d.get("employee_id", d.get("id")),
        roles=frozenset(d.get("roles", ())),
        skills=frozenset(d.get("skills", ())),
        windows=tuple(d.get("windows", d.get("availability", ()))),
        max_hours_per_week=d.get("max_hours_per_week"),
        name=d.get("name", ""),
    )


def snapshot_from_json(path: str | Path) -> SampleData:
    """
    Load employees, shifts and time-off requests from a JSON file on disk.

    The file holds an object with `employees`, `shifts` and `time_off` arrays;
    snake_case and camelCase keys are both accepted.
    """
    file_path = Path(path).expanduser()
    if file_path.suffix.lower() != ".json":
        raise ValueError("snapshot_from_json expects a path to a .json file.")
    if not file_path.exists():
        raise FileNotFoundError(f"Snapshot JSON file not found: {file_path}")

    try:
        data = json.loads(file_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {file_path}") from exc
    if not isinstance(data, Mapping):
        raise TypeError("JSON file must contain an object.")

    return SampleData(
        employees=[_employee_from_mapping(e) for e in data.get("employees", [])],
        shifts=[_shift_from_mapping(s) for s in data.get("shifts", [])],
        time_off=[
            _time_off_from_mapping(t)
            for t in data.get("time_off", data.get("timeOff", []))
        ],
    )
