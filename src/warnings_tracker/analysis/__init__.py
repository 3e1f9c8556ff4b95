"""Build-over-build analysis of static analysis issues."""

from warnings_tracker.analysis.difference import IssueDifference, correlate
from warnings_tracker.analysis.fingerprint import (
    FingerprintConfig,
    Fingerprinter,
    WorkspaceSourceReader,
    fingerprint,
)
from warnings_tracker.analysis.health import HealthDescriptor, HealthReportBuilder
from warnings_tracker.analysis.quality_gate import QualityGateEvaluator
from warnings_tracker.analysis.recorder import BuildInfo, IssuesRecorder, RecordedBuild
from warnings_tracker.analysis.reference import (
    HistoryEntry,
    InMemoryHistory,
    ReferencePolicy,
    ReferenceResolver,
    previous_snapshot,
)
from warnings_tracker.analysis.streaks import StreakTracker

__all__ = [
    "BuildInfo",
    "FingerprintConfig",
    "Fingerprinter",
    "HealthDescriptor",
    "HealthReportBuilder",
    "HistoryEntry",
    "InMemoryHistory",
    "IssueDifference",
    "IssuesRecorder",
    "QualityGateEvaluator",
    "RecordedBuild",
    "ReferencePolicy",
    "ReferenceResolver",
    "StreakTracker",
    "WorkspaceSourceReader",
    "correlate",
    "fingerprint",
]
