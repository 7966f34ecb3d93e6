from __future__ import annotations

from shift_analytics.reporting.plots import show_peak_hours, show_trends
from shift_analytics.reporting.text_report import (
    render_conflicts,
    render_daily,
    render_location,
    render_optimization,
    render_period,
    render_team,
    render_workload,
)
from shift_analytics.result_types import (
    ConflictAnalysis,
    CoverageOptimization,
    DailyScheduleAnalytics,
    EmployeeWorkload,
    LocationUtilization,
    PeriodAnalytics,
    TeamPerformance,
)

Report = (
    DailyScheduleAnalytics
    | PeriodAnalytics
    | ConflictAnalysis
    | CoverageOptimization
    | TeamPerformance
    | LocationUtilization
    | EmployeeWorkload
)


class Reporter:
    """Prints any analytics result and, when enabled, charts the ones that have series."""

    def __init__(self, num_print_examples: int = 6, enable_plots: bool = True) -> None:
        self.num_print_examples = num_print_examples
        self.enable_plots = enable_plots

    def render(self, result: Report) -> None:
        if isinstance(result, DailyScheduleAnalytics):
            render_daily(result, num_print_examples=self.num_print_examples)
        elif isinstance(result, PeriodAnalytics):
            render_period(result)
            show_trends(result.trends, enable_plot=self.enable_plots)
        elif isinstance(result, ConflictAnalysis):
            render_conflicts(result, num_print_examples=self.num_print_examples)
        elif isinstance(result, CoverageOptimization):
            render_optimization(result)
        elif isinstance(result, TeamPerformance):
            render_team(result)
        elif isinstance(result, LocationUtilization):
            render_location(result)
            show_peak_hours(result, enable_plot=self.enable_plots)
        elif isinstance(result, EmployeeWorkload):
            render_workload(result)
        else:
            raise TypeError(f"Don't know how to report {type(result).__name__}.")
