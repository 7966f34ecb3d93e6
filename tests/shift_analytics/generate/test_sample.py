from __future__ import annotations

import json
from datetime import date, time

import pytest

from shift_analytics.generate.sample import (
    SampleConfig,
    build_sample,
    create_employees,
    employees_to_dataframe,
    snapshot_from_json,
    _rng,
)
from shift_analytics.records import TimeOffStatus


def test_sample_config_validation_detects_invalid_probabilities():
    cfg = SampleConfig(role_probs=(0.5, 0.5, 0.5))
    with pytest.raises(ValueError, match="role_probs must sum to 1.0"):
        cfg.validate()
    with pytest.raises(ValueError, match="fill_rate must be in"):
        SampleConfig(fill_rate=1.5).validate()


def test_build_sample_is_reproducible_for_a_seed():
    cfg = SampleConfig(n_employees=8, days=2, seed=11)
    a = build_sample(cfg)
    b = build_sample(SampleConfig(n_employees=8, days=2, seed=11))
    assert a.shifts == b.shifts
    assert a.employees == b.employees
    assert a.time_off == b.time_off


def test_every_template_is_scheduled_at_every_location():
    cfg = SampleConfig(n_employees=10, days=3, seed=2)
    data = build_sample(cfg)
    assert len(data.shifts) == cfg.days * len(cfg.locations) * len(cfg.shift_templates)
    assert len({s.id for s in data.shifts}) == len(data.shifts)

    night = [s for s in data.shifts if s.start_time == time(22, 0)]
    assert night
    for s in night:
        assert (s.end_date - s.date).days == 1


def test_assignments_respect_role_qualifications():
    """
    Every employee placed on a shift must hold the role they were placed in, and
    never more people than the requirement asks for.
    """
    data = build_sample(SampleConfig(n_employees=12, days=2, fill_rate=1.0, seed=5))
    roles = {e.employee_id: e.roles for e in data.employees}
    for s in data.shifts:
        qty = {r.role: r.quantity for r in s.requirements}
        for role, ids in s.role_assignments.items():
            assert len(ids) <= qty[role]
            for e in ids:
                assert role in roles[e]


def test_zero_fill_rate_leaves_shifts_empty():
    data = build_sample(SampleConfig(n_employees=4, days=1, fill_rate=0.0, seed=3))
    assert all(s.assigned_employee_ids == [] for s in data.shifts)


def test_time_off_statuses_come_from_choices():
    cfg = SampleConfig(n_employees=5, days=4, time_off_rate=1.0, seed=9)
    data = build_sample(cfg)
    assert len(data.time_off) == cfg.n_employees * cfg.days
    assert {t.status for t in data.time_off} <= {
        TimeOffStatus(s) for s in cfg.status_choices
    }


def test_employees_to_dataframe_columns():
    cfg = SampleConfig(n_employees=3, restricted_pct=1.0, seed=1)
    employees = create_employees(cfg, _rng(cfg.seed))
    df = employees_to_dataframe(employees)
    assert list(df.columns) == [
        "employee_id",
        "name",
        "roles",
        "skills",
        "restricted",
        "max_hours_per_week",
    ]
    assert df["restricted"].all()
    assert list(df["employee_id"]) == ["E001", "E002", "E003"]


def test_snapshot_from_json_accepts_camel_case(tmp_path):
    payload = {
        "employees": [{"id": "E1", "roles": ["Cashier"], "name": "Ava"}],
        "shifts": [
            {
                "id": "A",
                "date": "2024-01-10",
                "startTime": "09:00",
                "endTime": "17:00",
                "requirements": [{"role": "Cashier", "quantity": 2, "isCritical": True}],
                "assignedEmployees": ["E1"],
                "locationId": "L1",
            }
        ],
        "timeOff": [
            {
                "id": "T1",
                "employeeId": "E1",
                "startDate": "2024-01-11",
                "endDate": "2024-01-12",
                "status": "APPROVED",
            }
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload))

    data = snapshot_from_json(path)
    (shift,) = data.shifts
    assert shift.date == date(2024, 1, 10)
    assert shift.location_id == "L1"
    assert shift.requirements[0].is_critical
    assert data.time_off[0].status is TimeOffStatus.APPROVED
    assert data.employees[0].employee_id == "E1"


def test_snapshot_from_json_rejects_bad_files(tmp_path):
    with pytest.raises(ValueError, match=".json"):
        snapshot_from_json(tmp_path / "snapshot.csv")
    with pytest.raises(FileNotFoundError):
        snapshot_from_json(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]")
    with pytest.raises(TypeError):
        snapshot_from_json(bad)
