"""Tests for reference build selection."""

import pytest


@pytest.fixture
def history(make_snapshot):
    """History where build 4 failed its gate, build 3 failed and build 2 is good."""
    from warnings_tracker.analysis.reference import HistoryEntry, InMemoryHistory
    from warnings_tracker.models.snapshot import Outcome

    return InMemoryHistory(
        [
            HistoryEntry(2, make_snapshot(2), Outcome.SUCCESS),
            HistoryEntry(3, make_snapshot(3), Outcome.FAILURE),
            HistoryEntry(4, make_snapshot(4, outcome=Outcome.UNSTABLE), Outcome.UNSTABLE),
            HistoryEntry(5, None, Outcome.SUCCESS),
        ]
    )


class TestReferenceResolver:
    """Tests for ReferenceResolver."""

    def test_default_policy_skips_failed_gate_and_build(self, history):
        """Test that the default policy needs a passed gate and a non-failed build."""
        from warnings_tracker.analysis.reference import ReferenceResolver

        reference = ReferenceResolver().resolve(history)

        assert reference is not None
        assert reference.build_number == 2

    def test_ignore_quality_gate(self, history):
        """Test accepting builds whose quality gate did not pass."""
        from warnings_tracker.analysis.reference import ReferencePolicy, ReferenceResolver

        policy = ReferencePolicy(ignore_quality_gate=True)
        reference = ReferenceResolver().resolve(history, policy)

        assert reference.build_number == 4

    def test_ignore_failed_builds(self, history):
        """Test accepting failed builds whose gate passed."""
        from warnings_tracker.analysis.reference import ReferencePolicy, ReferenceResolver

        policy = ReferencePolicy(ignore_failed_builds=True)
        reference = ReferenceResolver().resolve(history, policy)

        assert reference.build_number == 3

    def test_ignore_both(self, history):
        """Test that the most recent snapshot wins when everything is accepted."""
        from warnings_tracker.analysis.reference import ReferencePolicy, ReferenceResolver

        policy = ReferencePolicy(ignore_quality_gate=True, ignore_failed_builds=True)

        assert ReferenceResolver().resolve(history, policy).build_number == 4

    def test_running_build_not_eligible(self, make_snapshot):
        """Test that a build without a known outcome is skipped."""
        from warnings_tracker.analysis.reference import (
            HistoryEntry,
            ReferencePolicy,
            ReferenceResolver,
        )

        history = [HistoryEntry(7, make_snapshot(7), None)]

        assert ReferenceResolver().resolve(history) is None
        policy = ReferencePolicy(ignore_failed_builds=True)
        assert ReferenceResolver().resolve(history, policy).build_number == 7

    def test_empty_history(self):
        """Test that an empty history has no reference."""
        from warnings_tracker.analysis.reference import InMemoryHistory, ReferenceResolver

        assert ReferenceResolver().resolve(InMemoryHistory()) is None

    def test_history_error_propagates(self):
        """Test that an unreadable history is reported to the caller."""
        from warnings_tracker.analysis.reference import ReferenceResolver
        from warnings_tracker.exceptions import HistoryUnavailableError

        def broken_history():
            raise HistoryUnavailableError("store offline")
            yield

        with pytest.raises(HistoryUnavailableError):
            ReferenceResolver().resolve(broken_history())


class TestInMemoryHistory:
    """Tests for InMemoryHistory."""

    def test_newest_first(self, history):
        """Test iteration order."""
        assert [entry.build_number for entry in history] == [5, 4, 3, 2]

    def test_before(self, history):
        """Test restricting the history to older builds."""
        assert [entry.build_number for entry in history.before(4)] == [3, 2]

    def test_previous_snapshot_ignores_policy(self, history):
        """Test that the previous snapshot is the latest one, whatever its outcome."""
        from warnings_tracker.analysis.reference import previous_snapshot

        assert previous_snapshot(history).build_number == 4
        assert previous_snapshot([]) is None
