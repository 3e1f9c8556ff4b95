"""Records the analysis results of one build."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from warnings_tracker.analysis.difference import IssueDifference
from warnings_tracker.analysis.fingerprint import Fingerprinter, WorkspaceSourceReader
from warnings_tracker.analysis.health import HealthReportBuilder
from warnings_tracker.analysis.quality_gate import QualityGateEvaluator
from warnings_tracker.analysis.reference import (
    HistoryEntry,
    ReferenceResolver,
    previous_snapshot,
)
from warnings_tracker.analysis.streaks import passing_streak, zero_issues_streak
from warnings_tracker.models.issues import Report
from warnings_tracker.models.snapshot import NO_BUILD, LazyReport, ResultSnapshot

if TYPE_CHECKING:
    from warnings_tracker.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildInfo:
    """The build being recorded."""

    number: int
    timestamp: int  # epoch milliseconds

    def __post_init__(self) -> None:
        if self.number <= NO_BUILD:
            raise ValueError(f"Build number must be positive, got {self.number}")


@dataclass
class RecordedBuild:
    """Result of recording a build."""

    snapshot: ResultSnapshot
    difference: IssueDifference


class IssuesRecorder:
    """Runs fingerprinting, correlation, gate, streaks and health for a build.

    A recorder holds no state between builds; everything it needs from
    earlier builds comes from the history passed to ``record``.
    """

    def __init__(self, config: "Config", fingerprinter: Fingerprinter | None = None) -> None:
        """Initialize the recorder.

        Args:
            config: Application configuration
            fingerprinter: Optional fingerprinter (default: reads the configured workspace)
        """
        self.config = config
        self.fingerprinter = fingerprinter or Fingerprinter(
            WorkspaceSourceReader(config.fingerprint.workspace),
            config.fingerprint.to_fingerprint_config(),
        )
        self.resolver = ReferenceResolver()
        self.gate = QualityGateEvaluator()
        self.health = HealthReportBuilder(config.health)

    def record(
        self, build: BuildInfo, report: Report, history: Iterable[HistoryEntry]
    ) -> RecordedBuild:
        """Record a build.

        Args:
            build: Number and start time of the build
            report: Issues reported for the build
            history: Prior builds, newest first

        Returns:
            The snapshot of the build and the issue difference behind it

        Raises:
            HistoryUnavailableError: If the history cannot be read
        """
        entries = list(history)
        self._stamp_origin(report)
        if self.config.fingerprint.enabled:
            self.fingerprinter.annotate(report)
        return self._evaluate(build, report, entries)

    async def record_async(
        self, build: BuildInfo, report: Report, history: Iterable[HistoryEntry]
    ) -> RecordedBuild:
        """Record a build, fingerprinting issues in parallel."""
        entries = list(history)
        self._stamp_origin(report)
        if self.config.fingerprint.enabled:
            await self.fingerprinter.annotate_async(report)
        return self._evaluate(build, report, entries)

    def _stamp_origin(self, report: Report) -> None:
        origin = report.origin or self.config.tool.id
        for issue in report:
            if not issue.origin:
                issue.origin = origin

    def _evaluate(
        self, build: BuildInfo, report: Report, entries: list[HistoryEntry]
    ) -> RecordedBuild:
        reference = self.resolver.resolve(entries, self.config.reference)
        reference_issues = reference.issues if reference else Report()
        difference = IssueDifference(report, build.number, reference_issues)

        totals = difference.issues.counts
        new_totals = difference.new.counts if reference else None
        gate = self.gate.evaluate(self.config.thresholds, totals, new_totals)

        previous = previous_snapshot(entries)
        snapshot = ResultSnapshot(
            build_number=build.number,
            timestamp=build.timestamp,
            tool_id=self.config.tool.id,
            totals=totals,
            new=difference.new.counts,
            fixed=difference.fixed.counts,
            outstanding=difference.outstanding.counts,
            zero_issues=zero_issues_streak(previous, totals.total, build.number, build.timestamp),
            passing=passing_streak(previous, gate.passed, build.number, build.timestamp),
            quality_gate=gate,
            reference_build=reference.build_number if reference else NO_BUILD,
            health=self.health.compute(totals),
        )
        snapshot.attach("issues", LazyReport.of(difference.issues))
        snapshot.attach("new", LazyReport.of(difference.new))
        snapshot.attach("fixed", LazyReport.of(difference.fixed))
        snapshot.attach("outstanding", LazyReport.of(difference.outstanding))

        logger.info(
            f"Build #{build.number}: {totals.total} issues ({len(difference.new)} new, "
            f"{len(difference.fixed)} fixed), quality gate {gate.outcome.name}"
        )
        return RecordedBuild(snapshot=snapshot, difference=difference)
