from __future__ import annotations

import argparse
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Sequence

from shift_analytics.analytics import AnalyticsFacade
from shift_analytics.config import Config, cfg
from shift_analytics.generate.sample import (
    SampleConfig,
    SampleData,
    build_sample,
    snapshot_from_json,
)
from shift_analytics.reporting import Reporter
from shift_analytics.reporting.reporter import Report

REPORTS = (
    "daily",
    "weekly",
    "monthly",
    "conflicts",
    "optimization",
    "team",
    "location",
    "workload",
)

InputBuilder = Callable[[Config], SampleData]


def default_input_builder(config: Config, seed: int | None = 7) -> SampleData:
    """Build a synthetic week of shifts, staff and time-off."""
    return build_sample(SampleConfig(seed=seed))


def run_analysis(
    report: str = "weekly",
    start: date | None = None,
    days: int = 7,
    config: Config | None = None,
    data: SampleData | None = None,
    input_builder: InputBuilder | None = None,
    reporter: Reporter | None = None,
    enable_reporting: bool = True,
    subject_id: str | None = None,
) -> Report:
    """
    Build the snapshot, run one report and optionally print it.

    Parameters
    ----------
    report:
        One of `REPORTS`.
    start:
        First day analysed. Defaults to the earliest shift date in the data.
    days:
        Length of the range for the range-based reports.
    config:
        The configuration for the run. Defaults to `shift_analytics.config.cfg`.
    data:
        Pre-built snapshot. When omitted `input_builder` (or the synthetic
        builder) constructs one.
    subject_id:
        Team, location or employee id for the `team`, `location` and
        `workload` reports; the first one found in the data when omitted.
    """
    if report not in REPORTS:
        raise ValueError(f"Unknown report {report!r}; choose one of {', '.join(REPORTS)}.")
    if days < 1:
        raise ValueError("days must be >= 1.")
    cfg_obj = config or cfg
    cfg_obj.validate()

    if data is None:
        builder = input_builder or default_input_builder
        data = builder(cfg_obj)

    if start is None:
        start = min((s.date for s in data.shifts), default=date.today())
    end = start + timedelta(days=days - 1)

    facade = AnalyticsFacade(data.shifts, data.time_off, data.employees, cfg_obj)
    print(f"Analysing {facade} from {start.isoformat()} to {end.isoformat()}")

    result: Report
    if report == "daily":
        result = facade.daily_report(start)
    elif report == "weekly":
        result = facade.weekly_report(start)
    elif report == "monthly":
        result = facade.monthly_report(start.year, start.month)
    elif report == "conflicts":
        result = facade.conflict_analysis(start, end)
    elif report == "optimization":
        result = facade.coverage_optimization(start, end)
    elif report == "team":
        team = subject_id or next((s.team_id for s in data.shifts if s.team_id), "")
        result = facade.team_report(team, start, end)
    elif report == "location":
        loc = subject_id or next(
            (s.location_id for s in data.shifts if s.location_id), ""
        )
        result = facade.location_report(loc, start, end)
    else:
        emp = subject_id or next((e.employee_id for e in data.employees), "")
        result = facade.employee_workload(emp, start, end)

    if enable_reporting:
        (reporter or Reporter()).render(result)
    return result


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analyse shift schedules for conflicts and coverage."
    )
    parser.add_argument(
        "--report",
        default="weekly",
        choices=REPORTS,
        help="Report to produce (default: weekly).",
    )
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=None,
        help="First day, YYYY-MM-DD (default: earliest shift date).",
    )
    parser.add_argument(
        "--days", type=int, default=7, help="Range length in days (default: 7)."
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="JSON snapshot with employees, shifts and time_off (default: synthetic data).",
    )
    parser.add_argument(
        "--seed", type=int, default=7, help="Seed for synthetic data (default: 7)."
    )
    parser.add_argument(
        "--id", dest="subject_id", default=None, help="Team, location or employee id."
    )
    parser.add_argument("--timezone", default=None, help="Override Config.TIMEZONE.")
    parser.add_argument(
        "--no-plot", action="store_true", help="Skip matplotlib charts."
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> Report:
    args = parse_args(argv)
    config = Config(TIMEZONE=args.timezone) if args.timezone else cfg
    data = (
        snapshot_from_json(args.input)
        if args.input is not None
        else default_input_builder(config, seed=args.seed)
    )
    return run_analysis(
        report=args.report,
        start=args.start,
        days=args.days,
        config=config,
        data=data,
        reporter=Reporter(enable_plots=not args.no_plot),
        subject_id=args.subject_id,
    )


if __name__ == "__main__":
    main()
