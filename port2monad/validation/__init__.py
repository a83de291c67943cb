"""Consistency checks, risk checks and report aggregation."""

from .consistency import ConsistencyValidator
from .report import ReportAggregator, file_confidence, overall_confidence, validation_confidence
from .risks import monad_warnings, planning_risk_flags

__all__ = [
    "ConsistencyValidator",
    "ReportAggregator",
    "file_confidence",
    "monad_warnings",
    "overall_confidence",
    "planning_risk_flags",
    "validation_confidence",
]
