"""Selection of the reference build from the build history."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from warnings_tracker.exceptions import HistoryUnavailableError
from warnings_tracker.models.snapshot import Outcome, ResultSnapshot

logger = logging.getLogger(__name__)

__all__ = [
    "HistoryEntry",
    "HistoryUnavailableError",
    "InMemoryHistory",
    "ReferencePolicy",
    "ReferenceResolver",
    "previous_snapshot",
]


@dataclass(frozen=True)
class HistoryEntry:
    """One prior build as seen from the current build."""

    build_number: int
    snapshot: ResultSnapshot | None = None
    build_outcome: Outcome | None = None  # None while the build is still running


@dataclass(frozen=True)
class ReferencePolicy:
    """Which prior builds may serve as a reference."""

    ignore_quality_gate: bool = False
    ignore_failed_builds: bool = False


class InMemoryHistory:
    """Build history backed by a list of entries, newest first."""

    def __init__(self, entries: Iterable[HistoryEntry] = ()) -> None:
        self._entries = sorted(entries, key=lambda e: e.build_number, reverse=True)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def before(self, build_number: int) -> "InMemoryHistory":
        """The part of the history older than the given build."""
        return InMemoryHistory(e for e in self._entries if e.build_number < build_number)


class ReferenceResolver:
    """Walks the history backwards to the first acceptable snapshot."""

    def resolve(
        self, history: Iterable[HistoryEntry], policy: ReferencePolicy | None = None
    ) -> ResultSnapshot | None:
        """Find the reference snapshot.

        Args:
            history: Prior builds, starting at the build before the current one
            policy: Acceptance rules (default: successful gate, no failed build)

        Returns:
            The reference snapshot, or None if no build qualifies

        Raises:
            HistoryUnavailableError: If the history cannot be read at all
        """
        policy = policy or ReferencePolicy()
        for entry in history:
            if entry.snapshot is None:
                continue
            if not self._has_correct_build_outcome(entry, policy):
                logger.debug(f"Skipping build #{entry.build_number}: build outcome")
                continue
            if not self._has_correct_gate_outcome(entry.snapshot, policy):
                logger.debug(f"Skipping build #{entry.build_number}: quality gate")
                continue
            logger.info(f"Using build #{entry.build_number} as reference")
            return entry.snapshot

        logger.info("No reference build found")
        return None

    def _has_correct_build_outcome(self, entry: HistoryEntry, policy: ReferencePolicy) -> bool:
        if policy.ignore_failed_builds:
            return True
        return entry.build_outcome is not None and entry.build_outcome != Outcome.FAILURE

    def _has_correct_gate_outcome(self, snapshot: ResultSnapshot, policy: ReferencePolicy) -> bool:
        return policy.ignore_quality_gate or snapshot.is_successful


def previous_snapshot(history: Iterable[HistoryEntry]) -> ResultSnapshot | None:
    """Most recent recorded snapshot, whatever its outcome."""
    for entry in history:
        if entry.snapshot is not None:
            return entry.snapshot
    return None
