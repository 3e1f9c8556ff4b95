"""Human-readable summaries of build snapshots."""

from typing import Any

from warnings_tracker.models.snapshot import Outcome, ResultSnapshot, StreakState

MILLIS_PER_DAY = 24 * 60 * 60 * 1000

OUTCOME_EMOJI = {
    Outcome.SUCCESS: "✅",
    Outcome.UNSTABLE: "🟡",
    Outcome.FAILURE: "🔴",
}


def days(ms: int) -> int:
    """Number of whole days in a duration, at least 1."""
    return max(1, ms // MILLIS_PER_DAY)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


class SummaryFormatter:
    """Formats snapshots as Markdown build summaries."""

    def format_summary(self, snapshot: ResultSnapshot) -> str:
        """Format the summary of a build.

        Args:
            snapshot: Snapshot of the build

        Returns:
            Markdown-formatted summary
        """
        lines = [
            f"## {snapshot.tool_id}: build #{snapshot.build_number}",
            "",
            f"**{_plural(snapshot.totals.total, 'issue')}** "
            f"({snapshot.totals.high} high, {snapshot.totals.normal} normal, "
            f"{snapshot.totals.low} low)",
            "",
        ]

        delta = self.format_delta(snapshot)
        if delta:
            lines.append(f"- {delta}")

        if snapshot.has_no_issues:
            lines.append(f"- No issues since build #{snapshot.zero_issues.since_build}")
            lines.append(f"- {self.format_high_score(snapshot.zero_issues, 'zero-issue')}")
        else:
            lines.extend(self._format_gate(snapshot))

        if snapshot.has_reference:
            lines.append(f"- Reference build: #{snapshot.reference_build}")

        if snapshot.health is not None:
            lines.append(f"- Health: {snapshot.health}%")

        return "\n".join(lines)

    def format_delta(self, snapshot: ResultSnapshot) -> str:
        """Message about new and fixed issues, empty if there are none."""
        parts = []
        if snapshot.new.total:
            parts.append(_plural(snapshot.new.total, "new issue"))
        if snapshot.fixed.total:
            parts.append(_plural(snapshot.fixed.total, "fixed issue"))
        return ", ".join(parts)

    def format_high_score(self, streak: StreakState, label: str) -> str:
        """Message about the high score of a streak."""
        if streak.is_new_record:
            return f"New {label} high score: {_plural(days(streak.high_score), 'day')}"
        return f"{_plural(days(streak.gap_to_record), 'day')} to go until a new {label} high score"

    def _format_gate(self, snapshot: ResultSnapshot) -> list[str]:
        gate = snapshot.quality_gate
        if not gate.enabled:
            return [f"- Quality gate: {gate.reason}"]

        emoji = OUTCOME_EMOJI[gate.outcome]
        lines = [f"- Quality gate: {emoji} {gate.outcome.name}: {gate.reason}"]
        if gate.passed and snapshot.passing.since_build:
            lines.append(f"- Quality gate passed since build #{snapshot.passing.since_build}")
            lines.append(f"- {self.format_high_score(snapshot.passing, 'passing')}")
        return lines


def format_snapshot_as_json(
    snapshot: ResultSnapshot, include_issues: bool = False
) -> dict[str, Any]:
    """Format a snapshot as a JSON-serializable dict.

    Args:
        snapshot: Snapshot to format
        include_issues: Also include the new, fixed and outstanding issues

    Returns:
        JSON-serializable dict
    """
    result = snapshot.to_dict()
    result["outcome"] = snapshot.outcome.value
    if include_issues:
        result["new_issues"] = snapshot.new_issues.to_list()
        result["fixed_issues"] = snapshot.fixed_issues.to_list()
        result["outstanding_issues"] = snapshot.outstanding_issues.to_list()
    return result
