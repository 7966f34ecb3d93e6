# shift_analytics/result_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from shift_analytics.conflicts import Conflict
from shift_analytics.coverage import CoverageRecord
from shift_analytics.errors import ReportWarning
from shift_analytics.optimizer import CoverageGap, OptimizationSuggestion
from shift_analytics.overlap import Severity
from shift_analytics.records import AvailabilityWindow


@dataclass(frozen=True)
class DailyScheduleAnalytics:
    """Everything known about one local calendar day."""

    date: date
    coverage: tuple[CoverageRecord, ...]
    conflicts: tuple[Conflict, ...]
    total_shifts: int
    total_hours: float
    average_utilization: float
    coverage_pct: float
    employee_count: int = 0
    location_id: Optional[str] = None
    team_id: Optional[str] = None
    department_id: Optional[str] = None
    warnings: tuple[ReportWarning, ...] = ()

    @property
    def critical_conflicts(self) -> int:
        return sum(1 for c in self.conflicts if c.severity is Severity.CRITICAL)


@dataclass(frozen=True)
class TrendPoint:
    date: date
    value: float


@dataclass(frozen=True)
class PeriodSummary:
    total_shifts: int
    total_employees: int
    total_hours: float
    average_coverage: float
    total_conflicts: int
    critical_conflicts: int


@dataclass(frozen=True)
class PeriodTrends:
    """Ordered series for the caller to chart; one point per analysed day."""

    coverage: tuple[TrendPoint, ...]
    conflicts: tuple[TrendPoint, ...]
    utilization: tuple[TrendPoint, ...]


@dataclass(frozen=True)
class PeriodAnalytics:
    period: str
    daily: tuple[DailyScheduleAnalytics, ...]
    summary: PeriodSummary
    trends: PeriodTrends

    @property
    def warnings(self) -> tuple[ReportWarning, ...]:
        return tuple(w for d in self.daily for w in d.warnings)


@dataclass(frozen=True)
class WeeklyAnalytics(PeriodAnalytics):
    pass


@dataclass(frozen=True)
class MonthlyAnalytics(PeriodAnalytics):
    weekly: tuple[PeriodSummary, ...] = ()


@dataclass(frozen=True)
class ConflictTypeCount:
    type: str
    count: int
    severity: str


@dataclass(frozen=True)
class AffectedEntities:
    shifts: tuple[str, ...]
    employees: tuple[str, ...]
    time_off: tuple[str, ...]


@dataclass(frozen=True)
class ResolutionSuggestion:
    conflict_id: str
    description: str
    suggestion: str
    impact: str  # severity of the conflict it resolves


@dataclass(frozen=True)
class ConflictAnalysis:
    period: str
    conflicts: tuple[Conflict, ...]
    total_conflicts: int
    critical_conflicts: int
    conflict_types: tuple[ConflictTypeCount, ...]
    affected_entities: AffectedEntities
    resolution_suggestions: tuple[ResolutionSuggestion, ...]
    warnings: tuple[ReportWarning, ...] = ()


@dataclass(frozen=True)
class RoleCoverageMetric:
    role: str
    coverage: float
    required: int
    assigned: int
    gaps: int
    overlaps: int  # double bookings touching shifts of the role


@dataclass(frozen=True)
class CoverageOptimization:
    period: str
    current_coverage: float
    target_coverage: float
    role_coverage: tuple[RoleCoverageMetric, ...]
    gaps: tuple[CoverageGap, ...]
    suggestions: tuple[OptimizationSuggestion, ...]
    warnings: tuple[ReportWarning, ...] = ()


@dataclass(frozen=True)
class EmployeeUtilization:
    employee_id: str
    name: str
    total_hours: float
    utilization: float  # share of contracted hours, 0..1+
    skill_match: float  # share of worked role requirements whose skills are held


@dataclass(frozen=True)
class TeamPerformance:
    team_id: str
    period: str
    total_shifts: int
    total_hours: float
    average_coverage: float
    conflict_count: int
    employee_utilization: tuple[EmployeeUtilization, ...]
    efficiency: float
    reliability: float


@dataclass(frozen=True)
class PeakHour:
    hour: int
    utilization: float


@dataclass(frozen=True)
class LocationUtilization:
    location_id: str
    period: str
    total_shifts: int
    total_hours: float
    average_utilization: float
    peak_hours: tuple[PeakHour, ...]
    recommendations: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EmployeeWorkload:
    employee_id: str
    name: str
    period: str
    total_hours: float
    total_shifts: int
    unique_days: int
    time_off_days: int
    consecutive_days: int
    average_hours_per_day: float
    skills: tuple[str, ...] = ()
    availability: tuple[AvailabilityWindow, ...] = ()
