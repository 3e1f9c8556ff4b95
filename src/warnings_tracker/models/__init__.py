"""Data models for Warnings Tracker."""

from warnings_tracker.models.issues import Issue, Report, Severity, SeverityCounts
from warnings_tracker.models.snapshot import (
    NO_BUILD,
    LazyReport,
    Outcome,
    QualityGateResult,
    ResultSnapshot,
    StreakState,
)
from warnings_tracker.models.thresholds import ThresholdSet, parse_threshold

__all__ = [
    "NO_BUILD",
    "Issue",
    "LazyReport",
    "Outcome",
    "QualityGateResult",
    "Report",
    "ResultSnapshot",
    "Severity",
    "SeverityCounts",
    "StreakState",
    "ThresholdSet",
    "parse_threshold",
]
