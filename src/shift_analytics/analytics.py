from __future__ import annotations

import calendar
import warnings
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional, Sequence

from shift_analytics.config import Config, cfg as default_cfg
from shift_analytics.conflicts import Conflict, analyze
from shift_analytics.coverage import (
    CoverageRecord,
    aggregate,
    average_utilization,
    overall_coverage_pct,
)
from shift_analytics.errors import EmptyInputWarning, ReportWarning
from shift_analytics.intervals import (
    AnalysisRequest,
    Interval,
    IntervalSet,
    build_intervals,
    day_window,
)
from shift_analytics.optimizer import optimize
from shift_analytics.overlap import (
    SEVERITY_BY_TYPE,
    TYPE_PRIORITY,
    ConflictType,
    Severity,
)
from shift_analytics.records import (
    EmployeeAvailability,
    ShiftRecord,
    TimeOffRecord,
    employee_roles,
    employee_skills,
)
from shift_analytics.result_types import (
    AffectedEntities,
    ConflictAnalysis,
    ConflictTypeCount,
    CoverageOptimization,
    DailyScheduleAnalytics,
    EmployeeUtilization,
    EmployeeWorkload,
    LocationUtilization,
    MonthlyAnalytics,
    PeakHour,
    PeriodAnalytics,
    PeriodSummary,
    PeriodTrends,
    ResolutionSuggestion,
    RoleCoverageMetric,
    TeamPerformance,
    TrendPoint,
    WeeklyAnalytics,
)


def _own_shifts(snapshot: IntervalSet, lo: date, hi: date) -> list[Interval]:
    """Shifts whose local date lies in [lo, hi]; overnight spill-over belongs to its start day."""
    return [iv for iv in snapshot.shifts() if iv.day is not None and lo <= iv.day <= hi]


def _conflicts_in(
    conflicts: Iterable[Conflict], shift_days: dict[str, date], lo: date, hi: date
) -> list[Conflict]:
    """Keep conflicts whose earliest affected shift falls in [lo, hi]."""
    kept = []
    for c in conflicts:
        days = [shift_days[s] for s in c.affected_shift_ids if s in shift_days]
        if days and lo <= min(days) <= hi:
            kept.append(c)
    return kept


def _hours(shifts: Iterable[Interval]) -> float:
    return round(sum(iv.duration_hours for iv in shifts), 2)


def _conflict_id(conflict: Conflict) -> str:
    parts: list[str] = []
    for p in conflict.key:
        if isinstance(p, tuple):
            parts.extend(str(x) for x in p)
        else:
            parts.append(str(p))
    return ":".join(parts)


def _longest_run(days: Iterable[date]) -> int:
    best = run = 0
    prev: Optional[date] = None
    for d in sorted(set(days)):
        run = run + 1 if prev is not None and d - prev == timedelta(days=1) else 1
        best = max(best, run)
        prev = d
    return best


def _hour_slices(start: datetime, end: datetime) -> Iterator[tuple[int, float]]:
    """Split a local span into (hour of day, fraction of that hour covered)."""
    cur = start
    while cur < end:
        top = cur.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        nxt = min(end, top)
        yield cur.hour, (nxt - cur).total_seconds() / 3600.0
        cur = nxt


def _summarize(
    daily: Sequence[DailyScheduleAnalytics], shifts: Sequence[Interval]
) -> PeriodSummary:
    staffed = [d.coverage_pct for d in daily if d.coverage]
    employees: set[str] = set()
    for iv in shifts:
        employees.update(iv.employee_ids)
    return PeriodSummary(
        total_shifts=sum(d.total_shifts for d in daily),
        total_employees=len(employees),
        total_hours=round(sum(d.total_hours for d in daily), 2),
        average_coverage=round(sum(staffed) / len(staffed), 2) if staffed else 0.0,
        total_conflicts=sum(len(d.conflicts) for d in daily),
        critical_conflicts=sum(d.critical_conflicts for d in daily),
    )


def _trends(daily: Sequence[DailyScheduleAnalytics]) -> PeriodTrends:
    return PeriodTrends(
        coverage=tuple(TrendPoint(d.date, d.coverage_pct) for d in daily),
        conflicts=tuple(TrendPoint(d.date, float(len(d.conflicts))) for d in daily),
        utilization=tuple(TrendPoint(d.date, d.average_utilization) for d in daily),
    )


class AnalyticsFacade:
    """
    Report entry point over one immutable snapshot of shifts, time-off and staff.

    Parameters
    ----------
    shifts:
        Shift records; malformed ones are skipped and reported as warnings.
    time_off_requests:
        Time-off records; only `Config.ACTIVE_TIME_OFF_STATUSES` take part.
    employees:
        Role qualifications, skills and availability used for role attribution,
        skill checks and optimization.
    cfg:
        Configuration; defaults to `shift_analytics.config.cfg`. Validated on entry.

    Every method is a pure function of the snapshot and its arguments, so one
    facade can serve concurrent callers.
    """

    def __init__(
        self,
        shifts: Iterable[ShiftRecord],
        time_off_requests: Iterable[TimeOffRecord] = (),
        employees: Iterable[EmployeeAvailability] = (),
        cfg: Config | None = None,
    ) -> None:
        self.cfg = cfg or default_cfg
        self.cfg.validate()
        self._shifts = tuple(shifts)
        self._time_off = tuple(time_off_requests)
        self._employees = tuple(employees)
        self._roles = employee_roles(self._employees)
        self._skills = employee_skills(self._employees)
        self._by_id = {e.employee_id: e for e in self._employees}

    def __repr__(self) -> str:
        return (
            f"AnalyticsFacade(shifts={len(self._shifts)}, "
            f"time_off={len(self._time_off)}, employees={len(self._employees)})"
        )

    # ---- building blocks ----

    def intervals(self, request: AnalysisRequest | None = None) -> IntervalSet:
        return build_intervals(
            self._shifts, self._time_off, request, self.cfg, self._roles
        )

    def _snapshot(self, request: AnalysisRequest) -> IntervalSet:
        """
        Intervals for `request` plus the following day, so shifts running past the
        range end still meet what they overlap. Warnings stay within the range.
        """
        extended = replace(request, end_date=request.end_date + timedelta(days=1))
        snap = self.intervals(extended)
        warns = tuple(
            w
            for w in snap.warnings
            if w.day is None or request.start_date <= w.day <= request.end_date
        )
        return IntervalSet(snap.intervals, warns)

    def _analyze(self, snapshot: Iterable[Interval]) -> list[Conflict]:
        return analyze(snapshot, self.cfg, self._skills)

    def _day(
        self, day: date, request: AnalysisRequest, snapshot: IntervalSet
    ) -> DailyScheduleAnalytics:
        own = _own_shifts(snapshot, day, day)
        start, end = day_window(day, self.cfg.tz)
        if own:
            end = max(end, max(iv.end for iv in own))
        view = snapshot.window(start, end, day=day)
        coverage = aggregate(own)
        shift_days = {iv.source_id: iv.day for iv in view.shifts() if iv.day}
        conflicts = _conflicts_in(self._analyze(view), shift_days, day, day)
        notes = list(view.warnings)
        if not own:
            notes.append(ReportWarning.empty_input(day.isoformat(), day))
        employees: set[str] = set()
        for iv in own:
            employees.update(iv.employee_ids)
        return DailyScheduleAnalytics(
            date=day,
            coverage=tuple(coverage),
            conflicts=tuple(conflicts),
            total_shifts=len(own),
            total_hours=_hours(own),
            average_utilization=average_utilization(coverage),
            coverage_pct=round(overall_coverage_pct(coverage), 2),
            employee_count=len(employees),
            location_id=request.location_id,
            team_id=request.team_id,
            department_id=request.department_id,
            warnings=tuple(notes),
        )

    def _period(
        self, request: AnalysisRequest
    ) -> tuple[list[DailyScheduleAnalytics], list[Interval]]:
        snapshot = self._snapshot(request)
        days = request.days()
        C = self.cfg

        def run(day: date) -> DailyScheduleAnalytics:
            return self._day(day, request, snapshot)

        if len(days) >= C.PARALLEL_MIN_DAYS and C.NUM_PARALLEL_WORKERS > 1:
            # map() yields in submission order, so days stay sorted
            with ThreadPoolExecutor(max_workers=C.NUM_PARALLEL_WORKERS) as executor:
                daily = list(executor.map(run, days))
        else:
            daily = [run(d) for d in days]
        return daily, _own_shifts(snapshot, request.start_date, request.end_date)

    def _warn_if_empty(self, shift_count: int, period: str) -> None:
        if not shift_count:
            warnings.warn(
                f"No shifts found for {period}.", EmptyInputWarning, stacklevel=3
            )

    # ---- reports ----

    def daily_report(
        self,
        day: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> DailyScheduleAnalytics:
        request = AnalysisRequest.for_day(
            day, location_id=location_id, team_id=team_id, department_id=department_id
        )
        report = self._day(request.start_date, request, self._snapshot(request))
        self._warn_if_empty(report.total_shifts, request.period)
        return report

    def period_report(
        self,
        start_date: date,
        end_date: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> PeriodAnalytics:
        """Daily reports over an inclusive range plus their summary and trend series."""
        request = AnalysisRequest(
            start_date, end_date, location_id, team_id, department_id
        )
        daily, shifts = self._period(request)
        return PeriodAnalytics(
            period=request.period,
            daily=tuple(daily),
            summary=_summarize(daily, shifts),
            trends=_trends(daily),
        )

    def weekly_report(
        self,
        start_date: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> WeeklyAnalytics:
        p = self.period_report(
            start_date,
            start_date + timedelta(days=6),
            location_id=location_id,
            team_id=team_id,
            department_id=department_id,
        )
        return WeeklyAnalytics(p.period, p.daily, p.summary, p.trends)

    def monthly_report(
        self,
        year: int,
        month: int,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> MonthlyAnalytics:
        """Calendar-month report; `weekly` summarises consecutive 7-day blocks from the 1st."""
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        request = AnalysisRequest(first, last, location_id, team_id, department_id)
        daily, shifts = self._period(request)

        weekly = []
        for i in range(0, len(daily), 7):
            block = daily[i : i + 7]
            lo, hi = block[0].date, block[-1].date
            weekly.append(
                _summarize(block, [iv for iv in shifts if lo <= iv.day <= hi])  # type: ignore[operator]
            )
        return MonthlyAnalytics(
            period=f"{year:04d}-{month:02d}",
            daily=tuple(daily),
            summary=_summarize(daily, shifts),
            trends=_trends(daily),
            weekly=tuple(weekly),
        )

    def conflict_analysis(
        self,
        start_date: date,
        end_date: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> ConflictAnalysis:
        request = AnalysisRequest(
            start_date, end_date, location_id, team_id, department_id
        )
        snapshot = self._snapshot(request)
        own = _own_shifts(snapshot, request.start_date, request.end_date)
        self._warn_if_empty(len(own), request.period)
        shift_days = {iv.source_id: iv.day for iv in snapshot.shifts() if iv.day}
        conflicts = _conflicts_in(
            self._analyze(snapshot), shift_days, request.start_date, request.end_date
        )

        counts = Counter(c.type for c in conflicts)
        worst: dict[ConflictType, Severity] = {}
        for c in conflicts:
            if c.type not in worst or c.severity.rank > worst[c.type].rank:
                worst[c.type] = c.severity
        types = tuple(
            ConflictTypeCount(
                type=t.value,
                count=counts[t],
                severity=worst.get(t, SEVERITY_BY_TYPE[t]).value,
            )
            for t in sorted(counts, key=TYPE_PRIORITY.__getitem__)
        )
        entities = AffectedEntities(
            shifts=tuple(sorted({s for c in conflicts for s in c.affected_shift_ids})),
            employees=tuple(
                sorted({e for c in conflicts for e in c.affected_employee_ids})
            ),
            time_off=tuple(
                sorted({t for c in conflicts for t in c.affected_time_off_ids})
            ),
        )
        suggestions = tuple(
            ResolutionSuggestion(
                conflict_id=_conflict_id(c),
                description=c.description,
                suggestion=c.resolution or "",
                impact=c.severity.value,
            )
            for c in conflicts
        )
        warns = list(snapshot.warnings)
        if not own:
            warns.append(ReportWarning.empty_input(request.period))
        return ConflictAnalysis(
            period=request.period,
            conflicts=tuple(conflicts),
            total_conflicts=len(conflicts),
            critical_conflicts=sum(
                1 for c in conflicts if c.severity is Severity.CRITICAL
            ),
            conflict_types=types,
            affected_entities=entities,
            resolution_suggestions=suggestions,
            warnings=tuple(warns),
        )

    def coverage_optimization(
        self,
        start_date: date,
        end_date: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> CoverageOptimization:
        request = AnalysisRequest(
            start_date, end_date, location_id, team_id, department_id
        )
        snapshot = self._snapshot(request)
        own = _own_shifts(snapshot, request.start_date, request.end_date)
        self._warn_if_empty(len(own), request.period)
        coverage = aggregate(own)
        result = optimize(
            coverage,
            self._employees,
            [*own, *snapshot.time_off()],
            self.cfg,
            busy_intervals=snapshot,
        )

        double_booked: Counter[str] = Counter()
        for c in self._analyze(snapshot):
            if c.type is ConflictType.DOUBLE_BOOKING:
                double_booked.update(c.affected_shift_ids)
        metrics = tuple(
            RoleCoverageMetric(
                role=r.role,
                coverage=round(r.coverage_pct, 2),
                required=r.required,
                assigned=r.assigned,
                gaps=r.shortage,
                overlaps=sum(double_booked[s] for s in set(r.shift_ids)),
            )
            for r in coverage
        )
        warns = list(snapshot.warnings)
        if not own:
            warns.append(ReportWarning.empty_input(request.period))
        return CoverageOptimization(
            period=request.period,
            current_coverage=round(overall_coverage_pct(coverage), 2),
            target_coverage=self.cfg.TARGET_COVERAGE_PCT,
            role_coverage=metrics,
            gaps=result.gaps,
            suggestions=result.suggestions,
            warnings=tuple(warns),
        )

    def coverage_gaps(
        self,
        day: date,
        *,
        location_id: Optional[str] = None,
        team_id: Optional[str] = None,
        department_id: Optional[str] = None,
    ) -> list[CoverageRecord]:
        """Understaffed roles of a day, largest gap first."""
        request = AnalysisRequest.for_day(
            day, location_id=location_id, team_id=team_id, department_id=department_id
        )
        snapshot = self._snapshot(request)
        records = aggregate(_own_shifts(snapshot, request.start_date, request.end_date))
        return sorted((r for r in records if r.gap > 0), key=lambda r: (-r.gap, r.role))

    def team_report(
        self, team_id: str, start_date: date, end_date: date
    ) -> TeamPerformance:
        request = AnalysisRequest(start_date, end_date, team_id=team_id)
        snapshot = self._snapshot(request)
        own = _own_shifts(snapshot, request.start_date, request.end_date)
        coverage = aggregate(own)
        shift_days = {iv.source_id: iv.day for iv in snapshot.shifts() if iv.day}
        conflicts = _conflicts_in(
            self._analyze(snapshot), shift_days, request.start_date, request.end_date
        )

        weeks = len(request.days()) / 7.0
        hours: dict[str, float] = {}
        attributed: dict[str, int] = {}
        matched: dict[str, int] = {}
        for iv in own:
            for e in iv.employee_ids:
                hours[e] = hours.get(e, 0.0) + iv.duration_hours
            for req in iv.requirements:
                for e in iv.employees_for(req.role):
                    attributed[e] = attributed.get(e, 0) + 1
                    if req.skills <= self._skills.get(e, frozenset()):
                        matched[e] = matched.get(e, 0) + 1

        rows = []
        for e in sorted(hours):
            emp = self._by_id.get(e)
            weekly_cap = (
                emp.max_hours_per_week
                if emp is not None and emp.max_hours_per_week
                else self.cfg.STANDARD_WEEKLY_HOURS
            )
            rows.append(
                EmployeeUtilization(
                    employee_id=e,
                    name=emp.name if emp is not None else "",
                    total_hours=round(hours[e], 2),
                    utilization=round(hours[e] / (weekly_cap * weeks), 2),
                    skill_match=(
                        round(matched.get(e, 0) / attributed[e], 2)
                        if attributed.get(e)
                        else 1.0
                    ),
                )
            )

        troubled = {s for c in conflicts for s in c.affected_shift_ids}
        average = overall_coverage_pct(coverage)
        return TeamPerformance(
            team_id=team_id,
            period=request.period,
            total_shifts=len(own),
            total_hours=_hours(own),
            average_coverage=round(average, 2),
            conflict_count=len(conflicts),
            employee_utilization=tuple(rows),
            efficiency=round(average / 100.0, 2) if own else 0.0,
            reliability=(
                round(1.0 - len(troubled & {iv.source_id for iv in own}) / len(own), 2)
                if own
                else 0.0
            ),
        )

    def location_report(
        self, location_id: str, start_date: date, end_date: date
    ) -> LocationUtilization:
        request = AnalysisRequest(start_date, end_date, location_id=location_id)
        snapshot = self._snapshot(request)
        own = _own_shifts(snapshot, request.start_date, request.end_date)
        coverage = aggregate(own)
        C = self.cfg
        tz = C.tz

        demand = [0.0] * 24
        staffed = [0.0] * 24
        for iv in own:
            required = sum(r.quantity for r in iv.requirements)
            present = len(iv.employee_ids)
            for hour, frac in _hour_slices(iv.start.astimezone(tz), iv.end.astimezone(tz)):
                demand[hour] += required * frac
                staffed[hour] += present * frac
        peaks = tuple(
            PeakHour(h, round(staffed[h] / demand[h], 2) if demand[h] > 0 else 0.0)
            for h in range(24)
        )

        avg = average_utilization(coverage)
        recs: list[str] = []
        if own and avg < C.LOW_UTILIZATION:
            recs.append(
                f"Staffing averages {avg:.0%} of requirements; add cover for the "
                "weakest roles."
            )
        low = [
            p.hour
            for p in peaks
            if demand[p.hour] > 0 and p.utilization < C.LOW_UTILIZATION
        ]
        high = [p.hour for p in peaks if p.utilization > C.HIGH_UTILIZATION]
        if low:
            recs.append(
                "Understaffed hours: " + ", ".join(f"{h:02d}:00" for h in low) + "."
            )
        if high:
            recs.append(
                "Overstaffed hours: " + ", ".join(f"{h:02d}:00" for h in high) + "."
            )
        if own and not recs:
            recs.append("Staffing matches requirements.")

        return LocationUtilization(
            location_id=location_id,
            period=request.period,
            total_shifts=len(own),
            total_hours=_hours(own),
            average_utilization=avg,
            peak_hours=peaks,
            recommendations=tuple(recs),
        )

    def employee_workload(
        self, employee_id: str, start_date: date, end_date: date
    ) -> EmployeeWorkload:
        request = AnalysisRequest(start_date, end_date)
        snapshot = self._snapshot(request)
        own = [
            iv
            for iv in _own_shifts(snapshot, request.start_date, request.end_date)
            if employee_id in iv.employee_ids
        ]
        worked = {iv.day for iv in own if iv.day is not None}
        off: set[date] = set()
        for rec in self._time_off:
            if rec.employee_id != employee_id:
                continue
            if not rec.is_active(self.cfg.ACTIVE_TIME_OFF_STATUSES):
                continue
            off.update(
                d for d in rec.days() if request.start_date <= d <= request.end_date
            )
        total = _hours(own)
        emp = self._by_id.get(employee_id)
        return EmployeeWorkload(
            employee_id=employee_id,
            name=emp.name if emp is not None else "",
            period=request.period,
            total_hours=total,
            total_shifts=len(own),
            unique_days=len(worked),
            time_off_days=len(off),
            consecutive_days=_longest_run(worked),
            average_hours_per_day=round(total / len(worked), 2) if worked else 0.0,
            skills=tuple(sorted(emp.skills)) if emp is not None else (),
            availability=emp.windows if emp is not None else (),
        )
