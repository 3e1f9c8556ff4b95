"""Per-build result snapshot models."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from warnings_tracker.exceptions import HistoryUnavailableError
from warnings_tracker.models.issues import Report, SeverityCounts

logger = logging.getLogger(__name__)

NO_BUILD = 0


class Outcome(Enum):
    """Result of a quality gate evaluation or of a whole build.

    The order SUCCESS < UNSTABLE < FAILURE is for display and for applying an
    outcome to a build status. Threshold evaluation never compares outcomes.
    """

    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"

    @property
    def rank(self) -> int:
        return list(Outcome).index(self)

    @classmethod
    def worst(cls, *outcomes: "Outcome") -> "Outcome":
        """The most severe of the given outcomes."""
        return max(outcomes, key=lambda o: o.rank)


@dataclass(frozen=True)
class StreakState:
    """Bookkeeping for a condition that holds over consecutive builds.

    Durations and timestamps are in milliseconds.
    """

    since_build: int = NO_BUILD
    since_timestamp: int = 0
    high_score: int = 0
    is_new_record: bool = False
    gap_to_record: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "since_build": self.since_build,
            "since_timestamp": self.since_timestamp,
            "high_score": self.high_score,
            "is_new_record": self.is_new_record,
            "gap_to_record": self.gap_to_record,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "StreakState":
        return cls(
            since_build=int(raw.get("since_build", NO_BUILD)),
            since_timestamp=int(raw.get("since_timestamp", 0)),
            high_score=int(raw.get("high_score", 0)),
            is_new_record=bool(raw.get("is_new_record", False)),
            gap_to_record=int(raw.get("gap_to_record", 0)),
        )


@dataclass(frozen=True)
class QualityGateResult:
    """Outcome of the quality gate with a human-readable reason."""

    outcome: Outcome
    reason: str
    enabled: bool = True

    @property
    def passed(self) -> bool:
        return self.outcome == Outcome.SUCCESS


class LazyReport:
    """A Report that is loaded on first access.

    At most one load runs at a time; every reader sees the fully loaded
    report. Reads of an already loaded report do not take the lock. A failed
    load raises HistoryUnavailableError and is retried on the next access.
    """

    def __init__(self, loader: Callable[[], Report]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._report: Report | None = None

    @classmethod
    def of(cls, report: Report) -> "LazyReport":
        """Wrap an already loaded report."""
        lazy = cls(lambda: report)
        lazy._report = report
        return lazy

    @property
    def is_loaded(self) -> bool:
        return self._report is not None

    def get(self) -> Report:
        report = self._report
        if report is not None:
            return report
        with self._lock:
            if self._report is None:
                self._report = self._load()
            return self._report

    def evict(self) -> None:
        """Drop the loaded report; the next access reloads it."""
        with self._lock:
            self._report = None

    def _load(self) -> Report:
        try:
            return self._loader()
        except (OSError, ValueError) as e:
            raise HistoryUnavailableError(f"Failed to load issues: {e}") from e


ISSUE_KINDS = ("issues", "new", "fixed", "outstanding")


@dataclass
class ResultSnapshot:
    """Aggregate record of one build's analysis.

    Constructed once per build and not modified afterwards, apart from
    re-attaching the issue loaders after the snapshot is read back from
    storage.
    """

    build_number: int
    timestamp: int  # epoch milliseconds
    tool_id: str

    totals: SeverityCounts
    new: SeverityCounts
    fixed: SeverityCounts
    outstanding: SeverityCounts

    zero_issues: StreakState
    passing: StreakState

    quality_gate: QualityGateResult
    reference_build: int = NO_BUILD
    health: int | None = None

    _reports: dict[str, LazyReport] = field(default_factory=dict, repr=False, compare=False)

    @property
    def outcome(self) -> Outcome:
        return self.quality_gate.outcome

    @property
    def is_successful(self) -> bool:
        return self.quality_gate.passed

    @property
    def has_reference(self) -> bool:
        return self.reference_build != NO_BUILD

    @property
    def has_no_issues(self) -> bool:
        return self.totals.total == 0

    def attach(self, kind: str, report: LazyReport) -> None:
        """Attach the (lazy) issue collection of the given kind.

        Args:
            kind: One of "issues", "new", "fixed" or "outstanding"
            report: Holder that provides the issues
        """
        if kind not in ISSUE_KINDS:
            raise ValueError(f"Unknown issue kind: {kind}")
        self._reports[kind] = report

    def _report(self, kind: str) -> Report:
        lazy = self._reports.get(kind)
        if lazy is None:
            logger.debug(f"No {kind} issues attached to build #{self.build_number}")
            return Report()
        return lazy.get()

    @property
    def issues(self) -> Report:
        """All issues of this build."""
        return self._report("issues")

    @property
    def new_issues(self) -> Report:
        return self._report("new")

    @property
    def fixed_issues(self) -> Report:
        return self._report("fixed")

    @property
    def outstanding_issues(self) -> Report:
        return self._report("outstanding")

    def to_dict(self) -> dict[str, Any]:
        """Convert the snapshot (without issues) to a JSON-serializable dict."""
        return {
            "build_number": self.build_number,
            "timestamp": self.timestamp,
            "tool_id": self.tool_id,
            "totals": self.totals.to_dict(),
            "new": self.new.to_dict(),
            "fixed": self.fixed.to_dict(),
            "outstanding": self.outstanding.to_dict(),
            "zero_issues": self.zero_issues.to_dict(),
            "passing": self.passing.to_dict(),
            "quality_gate": {
                "outcome": self.quality_gate.outcome.value,
                "reason": self.quality_gate.reason,
                "enabled": self.quality_gate.enabled,
            },
            "reference_build": self.reference_build,
            "health": self.health,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ResultSnapshot":
        """Restore a snapshot from its dict form. Issue loaders are not attached."""
        gate = raw["quality_gate"]
        return cls(
            build_number=int(raw["build_number"]),
            timestamp=int(raw["timestamp"]),
            tool_id=raw.get("tool_id", ""),
            totals=SeverityCounts.from_dict(raw["totals"]),
            new=SeverityCounts.from_dict(raw.get("new", {})),
            fixed=SeverityCounts.from_dict(raw.get("fixed", {})),
            outstanding=SeverityCounts.from_dict(raw.get("outstanding", {})),
            zero_issues=StreakState.from_dict(raw.get("zero_issues", {})),
            passing=StreakState.from_dict(raw.get("passing", {})),
            quality_gate=QualityGateResult(
                outcome=Outcome(gate["outcome"]),
                reason=gate.get("reason", ""),
                enabled=bool(gate.get("enabled", True)),
            ),
            reference_build=int(raw.get("reference_build") or NO_BUILD),
            health=raw.get("health"),
        )
