from .analytics import AnalyticsFacade
from .config import Config, cfg
from .conflicts import Conflict, analyze
from .coverage import CoverageRecord, aggregate
from .intervals import AnalysisRequest, Interval, IntervalSet, build_intervals
from .optimizer import OptimizationResult, OptimizationSuggestion, optimize
from .overlap import ConflictType, Severity, detect

__all__ = [
    "AnalyticsFacade",
    "AnalysisRequest",
    "Config",
    "Conflict",
    "ConflictType",
    "CoverageRecord",
    "Interval",
    "IntervalSet",
    "OptimizationResult",
    "OptimizationSuggestion",
    "Severity",
    "aggregate",
    "analyze",
    "build_intervals",
    "cfg",
    "detect",
    "optimize",
]
