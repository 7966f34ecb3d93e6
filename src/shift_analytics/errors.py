from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


class AnalyticsError(Exception):
    """Base class for errors raised by the analysis engine."""


class InvalidIntervalError(AnalyticsError, ValueError):
    """A shift or time-off record whose end is not after its start."""

    def __init__(
        self, source_id: str, reason: str, day: Optional[date] = None
    ) -> None:
        super().__init__(f"{source_id}: {reason}")
        self.source_id = source_id
        self.reason = reason
        self.day = day


class InconsistentFilterError(AnalyticsError, ValueError):
    """An analysis request that cannot describe any period (e.g. end before start)."""


class EmptyInputWarning(UserWarning):
    """No shifts fall inside the requested range."""


INVALID_INTERVAL = "invalid_interval"
EMPTY_INPUT = "empty_input"
UNATTRIBUTED_ASSIGNMENT = "unattributed_assignment"


@dataclass(frozen=True)
class ReportWarning:
    """Data-quality note attached to a (possibly partial) report."""

    code: str
    message: str
    source_id: Optional[str] = None
    day: Optional[date] = None

    @classmethod
    def from_error(cls, exc: InvalidIntervalError) -> "ReportWarning":
        return cls(
            code=INVALID_INTERVAL,
            message=f"Skipped record {exc.source_id}: {exc.reason}",
            source_id=exc.source_id,
            day=exc.day,
        )

    @classmethod
    def empty_input(cls, period: str, day: Optional[date] = None) -> "ReportWarning":
        return cls(
            code=EMPTY_INPUT,
            message=f"No shifts found for {period}.",
            day=day,
        )
