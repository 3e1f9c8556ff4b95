"""Streak bookkeeping across consecutive builds.

Two streaks are tracked per build: how long the project has had zero issues,
and how long the quality gate has passed. Both use the same rules and only
ever look at the immediately previous snapshot.
"""

import logging

from warnings_tracker.models.snapshot import NO_BUILD, ResultSnapshot, StreakState

logger = logging.getLogger(__name__)


class StreakTracker:
    """Computes the streak state of a build from the previous build's state."""

    def __init__(self, name: str) -> None:
        """Initialize the tracker.

        Args:
            name: Label used in log messages, e.g. "zero issues"
        """
        self.name = name

    def advance(
        self,
        previous: StreakState | None,
        previous_held: bool,
        held: bool,
        build_number: int,
        timestamp: int,
    ) -> StreakState:
        """Compute the new streak state.

        Args:
            previous: State of the previous build, None for the first build
            previous_held: Whether the condition held for the previous build
            held: Whether the condition holds for the current build
            build_number: Number of the current build
            timestamp: Start time of the current build in milliseconds

        Returns:
            The streak state of the current build
        """
        if previous is None:
            if not held:
                return StreakState()
            return StreakState(
                since_build=build_number,
                since_timestamp=timestamp,
                high_score=0,
                is_new_record=True,
            )

        if not held:
            return StreakState(
                since_build=previous.since_build,
                since_timestamp=previous.since_timestamp,
                high_score=previous.high_score,
                is_new_record=False,
            )

        if previous_held and previous.since_build != NO_BUILD:
            since_build, since_timestamp = previous.since_build, previous.since_timestamp
        else:
            since_build, since_timestamp = build_number, timestamp

        elapsed = timestamp - since_timestamp
        high_score = max(previous.high_score, elapsed)
        is_new_record = previous.high_score == 0 or high_score != previous.high_score
        gap = 0 if is_new_record else previous.high_score - elapsed

        if is_new_record and previous.high_score and high_score > previous.high_score:
            logger.info(f"New {self.name} high score since build #{since_build}")

        return StreakState(
            since_build=since_build,
            since_timestamp=since_timestamp,
            high_score=high_score,
            is_new_record=is_new_record,
            gap_to_record=gap,
        )


ZERO_ISSUES = StreakTracker("zero issues")
PASSING = StreakTracker("passing quality gate")


def zero_issues_streak(
    previous: ResultSnapshot | None, total: int, build_number: int, timestamp: int
) -> StreakState:
    """Streak of builds without any issue."""
    return ZERO_ISSUES.advance(
        previous.zero_issues if previous else None,
        previous is not None and previous.has_no_issues,
        total == 0,
        build_number,
        timestamp,
    )


def passing_streak(
    previous: ResultSnapshot | None, passed: bool, build_number: int, timestamp: int
) -> StreakState:
    """Streak of builds whose quality gate passed (a disabled gate always passes)."""
    return PASSING.advance(
        previous.passing if previous else None,
        previous is not None and previous.is_successful,
        passed,
        build_number,
        timestamp,
    )
