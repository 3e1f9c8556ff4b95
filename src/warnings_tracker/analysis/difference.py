"""Issue difference between a build and its reference build."""

import logging
from collections import deque
from collections.abc import Callable, Hashable
from dataclasses import replace

from warnings_tracker.models.issues import Issue, Report

logger = logging.getLogger(__name__)


def _index(report: Report, key: Callable[[Issue], Hashable]) -> dict[Hashable, deque[Issue]]:
    """Group issues by key, keeping report order within each group."""
    index: dict[Hashable, deque[Issue]] = {}
    for issue in report:
        index.setdefault(key(issue), deque()).append(issue)
    return index


class IssueDifference:
    """Partitions current and reference issues into new, fixed and outstanding.

    Algorithm:
    1. Every current issue starts out new, every reference issue fixed
    2. Walk the current issues in order and look for a fixed candidate that is
       equal to it, or failing that, one with the same non-empty fingerprint
       (first candidate in reference order wins)
    3. A matched pair becomes outstanding: the current issue's properties with
       the reference issue's first-seen build

    Every current issue ends up either new or outstanding, every reference
    issue either fixed or outstanding.
    """

    def __init__(self, current: Report, build_number: int, reference: Report) -> None:
        """Compute the difference.

        Args:
            current: Issues of the current build
            build_number: Number of the current build, stamped on new issues
            reference: Issues of the reference build (empty if there is none)
        """
        self.build_number = build_number
        self._outstanding = Report(origin=current.origin)
        self._new = Report(origin=current.origin)
        self._fixed = reference.copy()
        self._issues = Report(origin=current.origin)
        self._by_key = _index(reference, lambda issue: issue.key)
        self._by_fingerprint = _index(reference, lambda issue: issue.fingerprint)

        for issue in current:
            match = self._find_equal(issue) or self._find_by_fingerprint(issue)
            if match is not None:
                self._fixed.remove(match.id)
                stamped = replace(issue, first_seen=match.first_seen)
                self._outstanding.add(stamped)
            else:
                stamped = issue.with_first_seen(build_number)
                self._new.add(stamped)
            self._issues.add(stamped)

        logger.debug(
            f"Issue difference for build #{build_number}: {len(self._new)} new, "
            f"{len(self._fixed)} fixed, {len(self._outstanding)} outstanding"
        )

    def _find_equal(self, issue: Issue) -> Issue | None:
        return self._first_unmatched(self._by_key.get(issue.key))

    def _find_by_fingerprint(self, issue: Issue) -> Issue | None:
        if not issue.fingerprint:
            return None
        return self._first_unmatched(self._by_fingerprint.get(issue.fingerprint))

    def _first_unmatched(self, candidates: deque[Issue] | None) -> Issue | None:
        # Candidates matched through the other index are dropped lazily
        while candidates:
            if candidates[0].id in self._fixed:
                return candidates[0]
            candidates.popleft()
        return None

    @property
    def new(self) -> Report:
        """Issues of the current build that have no counterpart in the reference."""
        return self._new

    @property
    def fixed(self) -> Report:
        """Issues of the reference build that are gone from the current build."""
        return self._fixed

    @property
    def outstanding(self) -> Report:
        """Issues present in both builds."""
        return self._outstanding

    @property
    def issues(self) -> Report:
        """All current issues in their original order, stamped with their first-seen build."""
        return self._issues


def correlate(
    current: Report, reference: Report, build_number: int = 0
) -> tuple[Report, Report, Report]:
    """Match current issues against reference issues.

    Returns:
        Tuple of (outstanding, new, fixed) reports
    """
    difference = IssueDifference(current, build_number, reference)
    return difference.outstanding, difference.new, difference.fixed
