from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo


@dataclass
class Config:

    # Calendar days, availability windows and report dates are read in this zone
    TIMEZONE: str = "UTC"

    ### CONFLICT DETECTION ###

    # Shift hours per employee per local day above which overtime is flagged
    DAILY_HOURS_THRESHOLD: float = 10.0

    # Time-off statuses that block an employee
    ACTIVE_TIME_OFF_STATUSES: tuple[str, ...] = ("approved", "in_progress")

    # Emit an understaffed conflict per shift requirement short of its quantity
    REPORT_UNDERSTAFFED: bool = True

    ### OPTIMIZATION ###

    # A gap seen on at least this many analysed days is worth a hire
    HIRE_MIN_GAP_DAYS: int = 3

    # Relative unit costs of each remediation
    REASSIGN_COST: float = 1.0
    TRAIN_COST: float = 4.0
    HIRE_COST: float = 10.0
    OVERTIME_COST_PER_HEAD: float = 2.0

    # Share of a gap that training is expected to close
    TRAIN_IMPACT_FACTOR: float = 0.5

    TARGET_COVERAGE_PCT: float = 100.0

    # Contracted hours used for employee utilization
    STANDARD_WEEKLY_HOURS: float = 40.0

    # Location hours staffed below / above these shares of demand are called out
    LOW_UTILIZATION: float = 0.8
    HIGH_UTILIZATION: float = 1.2

    ### EXECUTION ###

    NUM_PARALLEL_WORKERS: int = 4

    # Periods shorter than this are computed sequentially
    PARALLEL_MIN_DAYS: int = 7

    def validate(self) -> None:
        """
        Validate the Config object has sensible values before analysing.
        """
        resolve_timezone(self.TIMEZONE)
        if self.DAILY_HOURS_THRESHOLD <= 0.0:
            raise ValueError("DAILY_HOURS_THRESHOLD must be > 0.")
        if not self.ACTIVE_TIME_OFF_STATUSES:
            raise ValueError("ACTIVE_TIME_OFF_STATUSES must not be empty.")
        if self.HIRE_MIN_GAP_DAYS < 1:
            raise ValueError("HIRE_MIN_GAP_DAYS must be >= 1.")
        for attr in (
            "REASSIGN_COST",
            "TRAIN_COST",
            "HIRE_COST",
            "OVERTIME_COST_PER_HEAD",
        ):
            if getattr(self, attr) <= 0.0:
                raise ValueError(f"{attr} must be > 0.")
        if not (0.0 < self.TRAIN_IMPACT_FACTOR <= 1.0):
            raise ValueError("TRAIN_IMPACT_FACTOR must be within (0, 1].")
        if not (0.0 < self.TARGET_COVERAGE_PCT <= 100.0):
            raise ValueError("TARGET_COVERAGE_PCT must be within (0, 100].")
        if self.STANDARD_WEEKLY_HOURS <= 0.0:
            raise ValueError("STANDARD_WEEKLY_HOURS must be > 0.")
        if not (0.0 < self.LOW_UTILIZATION <= self.HIGH_UTILIZATION):
            raise ValueError("Require 0 < LOW_UTILIZATION <= HIGH_UTILIZATION.")
        if self.NUM_PARALLEL_WORKERS <= 0:
            raise ValueError("NUM_PARALLEL_WORKERS must be > 0.")
        if self.PARALLEL_MIN_DAYS < 1:
            raise ValueError("PARALLEL_MIN_DAYS must be >= 1.")

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.TIMEZONE)


def resolve_timezone(name: str | None) -> tzinfo:
    """Map a zone name to a tzinfo; UTC never touches the tz database."""
    if name is None or name.upper() in ("UTC", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {name!r}.") from exc


cfg = Config()
