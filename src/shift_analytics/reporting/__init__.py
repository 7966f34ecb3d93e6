from __future__ import annotations

from .frames import (
    conflicts_frame,
    coverage_frame,
    daily_frame,
    gaps_frame,
    suggestions_frame,
    trends_frame,
)
from .reporter import Reporter

__all__ = [
    "Reporter",
    "conflicts_frame",
    "coverage_frame",
    "daily_frame",
    "gaps_frame",
    "suggestions_frame",
    "trends_frame",
]
