from __future__ import annotations

from datetime import date

import pytest

from shift_analytics.analytics import AnalyticsFacade
from shift_analytics.records import (
    EmployeeAvailability,
    RoleRequirement,
    ShiftRecord,
    TimeOffRecord,
)


@pytest.fixture
def facade() -> AnalyticsFacade:
    """Two double-booked Wednesday shifts at L1 and a Thursday shift during time-off."""
    wed, thu = date(2024, 1, 10), date(2024, 1, 11)
    shifts = [
        ShiftRecord(
            "A", wed, "09:00", "17:00", [RoleRequirement("Cashier", 2)], ["E1"],
            location_id="L1", team_id="T1",
        ),
        ShiftRecord(
            "B", wed, "16:00", "23:00", [RoleRequirement("Cashier", 1)], ["E1"],
            location_id="L1", team_id="T1",
        ),
        ShiftRecord(
            "C", thu, "09:00", "17:00", [RoleRequirement("Stocker", 1)], ["E3"],
            location_id="L2", team_id="T2",
        ),
    ]  # fmt: skip
    time_off = [TimeOffRecord("OFF", "E3", thu, thu, "approved")]
    employees = [
        EmployeeAvailability("E1", roles={"Cashier"}, name="Ava"),
        EmployeeAvailability("E2", roles={"Cashier"}, name="Ben"),
        EmployeeAvailability("E3", roles={"Stocker"}, name="Cleo", skills={"forklift"}),
    ]
    return AnalyticsFacade(shifts, time_off, employees)
