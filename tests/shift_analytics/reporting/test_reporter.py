from __future__ import annotations

from datetime import date

import pytest

from shift_analytics.reporting.reporter import Reporter


@pytest.fixture
def calls(monkeypatch):
    seen: list[str] = []

    def record(name):
        def fake(*args, **kwargs):
            seen.append(name)

        return fake

    for name in (
        "render_daily",
        "render_period",
        "render_conflicts",
        "render_optimization",
        "render_team",
        "render_location",
        "render_workload",
        "show_trends",
        "show_peak_hours",
    ):
        monkeypatch.setattr(f"shift_analytics.reporting.reporter.{name}", record(name))
    return seen


def test_period_report_renders_text_then_trend_plot(facade, calls):
    Reporter().render(facade.weekly_report(date(2024, 1, 8)))
    assert calls == ["render_period", "show_trends"]


def test_monthly_report_is_a_period_report(facade, calls):
    Reporter().render(facade.monthly_report(2024, 1))
    assert calls == ["render_period", "show_trends"]


def test_each_report_type_is_dispatched(facade, calls):
    start, end = date(2024, 1, 8), date(2024, 1, 14)
    reporter = Reporter(enable_plots=False)
    reporter.render(facade.daily_report(date(2024, 1, 10)))
    reporter.render(facade.conflict_analysis(start, end))
    reporter.render(facade.coverage_optimization(start, end))
    reporter.render(facade.team_report("T1", start, end))
    reporter.render(facade.location_report("L1", start, end))
    reporter.render(facade.employee_workload("E1", start, end))
    assert calls == [
        "render_daily",
        "render_conflicts",
        "render_optimization",
        "render_team",
        "render_location",
        "show_peak_hours",
        "render_workload",
    ]


def test_unknown_result_type_is_rejected():
    with pytest.raises(TypeError, match="Don't know how to report"):
        Reporter().render(object())  # type: ignore[arg-type]
