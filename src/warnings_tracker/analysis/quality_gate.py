"""Quality gate evaluation against configured thresholds."""

import logging
from dataclasses import dataclass

from warnings_tracker.models.issues import Severity, SeverityCounts
from warnings_tracker.models.snapshot import Outcome, QualityGateResult
from warnings_tracker.models.thresholds import ThresholdSet

logger = logging.getLogger(__name__)

GATE_DISABLED_REASON = "No quality gate thresholds have been set"
GATE_PASSED_REASON = "No threshold has been exceeded"


@dataclass(frozen=True)
class _Check:
    """One group of four thresholds: all, high, normal, low."""

    outcome: Outcome
    prefix: str  # "failed_total", "unstable_new", ...
    uses_new: bool


# Evaluation order: failure before unstable, totals before new issues
_CHECKS = (
    _Check(Outcome.FAILURE, "failed_total", uses_new=False),
    _Check(Outcome.FAILURE, "failed_new", uses_new=True),
    _Check(Outcome.UNSTABLE, "unstable_total", uses_new=False),
    _Check(Outcome.UNSTABLE, "unstable_new", uses_new=True),
)

_SCOPES: tuple[Severity | None, ...] = (None, Severity.HIGH, Severity.NORMAL, Severity.LOW)


class QualityGateEvaluator:
    """Applies thresholds in a fixed order; the first exceeded threshold decides."""

    def evaluate(
        self,
        thresholds: ThresholdSet,
        current_totals: SeverityCounts,
        new_totals: SeverityCounts | None = None,
    ) -> QualityGateResult:
        """Evaluate the quality gate.

        Args:
            thresholds: Configured limits
            current_totals: Counts of all issues in the current build
            new_totals: Counts of new issues relative to the reference build,
                None if there is no reference build (new-issue checks are skipped)

        Returns:
            The outcome with a human-readable reason
        """
        if not thresholds.is_enabled:
            logger.debug("Quality gate disabled")
            return QualityGateResult(Outcome.SUCCESS, GATE_DISABLED_REASON, enabled=False)

        for check in _CHECKS:
            counts = new_totals if check.uses_new else current_totals
            if counts is None:
                continue
            reason = self._check(thresholds, check, counts)
            if reason:
                logger.info(f"Quality gate {check.outcome.name}: {reason}")
                return QualityGateResult(check.outcome, reason)

        return QualityGateResult(Outcome.SUCCESS, GATE_PASSED_REASON)

    def _check(self, thresholds: ThresholdSet, check: _Check, counts: SeverityCounts) -> str | None:
        for severity in _SCOPES:
            suffix = severity.value if severity else "all"
            threshold = getattr(thresholds, f"{check.prefix}_{suffix}")
            count = counts.for_severity(severity) if severity else counts.total
            if is_exceeded(count, threshold):
                return _format_reason(check, severity, count, threshold)
        return None


def is_exceeded(count: int, threshold: int | None) -> bool:
    """Whether a count exceeds an optional threshold."""
    return threshold is not None and count > threshold


def _format_reason(check: _Check, severity: Severity | None, count: int, threshold: int) -> str:
    kind = "new issue" if check.uses_new else "issue"
    noun, verb = (kind, "exceeds") if count == 1 else (f"{kind}s", "exceed")
    scope = f" of severity {severity.value}" if severity else ""
    limit = "failure" if check.outcome == Outcome.FAILURE else "unstable"
    return (
        f"{count} {noun}{scope} {verb} the {limit} threshold of {threshold} "
        f"by {count - threshold} ({check.prefix}_{severity.value if severity else 'all'})"
    )
