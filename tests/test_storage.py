"""Tests for the JSON history store."""

import json
import threading

import pytest


@pytest.fixture
def store(tmp_path):
    """An empty store."""
    from warnings_tracker.storage.json_store import JsonHistoryStore

    return JsonHistoryStore(tmp_path / "history", "pylint")


@pytest.fixture
def recorded(make_issue):
    """A recorder and the first build it recorded, with two issues."""
    from warnings_tracker.analysis.recorder import BuildInfo, IssuesRecorder
    from warnings_tracker.config import Config, FingerprintSettings, ToolSettings
    from warnings_tracker.models.issues import Report

    config = Config(
        tool=ToolSettings(id="pylint"),
        fingerprint=FingerprintSettings(enabled=False),
    )
    recorder = IssuesRecorder(config)
    first = recorder.record(
        BuildInfo(1, 0), Report([make_issue(line_start=1), make_issue(line_start=2)]), []
    )
    return config, recorder, first


class TestJsonHistoryStore:
    """Tests for JsonHistoryStore."""

    def test_save_and_load(self, store, recorded):
        """Test that a saved snapshot is read back with its issues."""
        from warnings_tracker.models.snapshot import Outcome

        _, _, first = recorded
        store.save(first.snapshot, Outcome.SUCCESS)

        loaded = store.load(1)

        assert loaded == first.snapshot
        assert not loaded._reports["issues"].is_loaded
        assert loaded.issues.ids == first.snapshot.issues.ids
        assert loaded.new_issues.size == 2
        assert loaded.issues[0].first_seen == 1

    def test_no_temporary_files_left(self, store, recorded):
        """Test that atomic writes clean up after themselves."""
        _, _, first = recorded
        build_dir = store.save(first.snapshot)

        assert not list(build_dir.glob("*.tmp"))
        assert (build_dir / "snapshot.json").exists()

    def test_history_before(self, store, recorded, make_issue):
        """Test walking the history backwards from a build."""
        from warnings_tracker.analysis.recorder import BuildInfo
        from warnings_tracker.models.issues import Report
        from warnings_tracker.models.snapshot import Outcome

        _, recorder, first = recorded
        store.save(first.snapshot, Outcome.SUCCESS)

        current = Report([make_issue(line_start=2), make_issue(line_start=3)])
        second = recorder.record(BuildInfo(2, 100), current, store.history_before(2))
        store.save(second.snapshot, Outcome.UNSTABLE)

        entries = list(store.history_before(3))

        assert [e.build_number for e in entries] == [2, 1]
        assert entries[0].build_outcome == Outcome.UNSTABLE
        assert second.snapshot.reference_build == 1
        assert second.snapshot.fixed.total == 1
        assert entries[0].snapshot.fixed_issues[0].line_start == 1
        assert list(store.history_before(1)) == []

    def test_missing_directory_is_empty_history(self, store):
        """Test that a store that was never written has no history."""
        assert list(store.history_before(10)) == []
        assert store.snapshots() == []

    def test_corrupt_snapshot_is_skipped(self, store, recorded):
        """Test that an unreadable snapshot counts as no snapshot."""
        from warnings_tracker.models.snapshot import Outcome

        _, _, first = recorded
        build_dir = store.save(first.snapshot, Outcome.SUCCESS)
        (build_dir / "snapshot.json").write_text("{not json")

        entries = list(store.history_before(2))

        assert len(entries) == 1
        assert entries[0].snapshot is None
        assert entries[0].build_outcome == Outcome.SUCCESS

    def test_missing_issues_raise(self, store, recorded):
        """Test that a lost issues file is an error, not an empty report."""
        from warnings_tracker.exceptions import HistoryUnavailableError

        _, _, first = recorded
        build_dir = store.save(first.snapshot)
        (build_dir / "issues.json").unlink()

        loaded = store.load(1)

        assert loaded.totals.total == 2
        with pytest.raises(HistoryUnavailableError):
            loaded.issues

    def test_missing_reference_issues_stop_recording(self, store, recorded, make_issue):
        """Test that a reference build without its issues cannot be compared against."""
        from warnings_tracker.analysis.recorder import BuildInfo
        from warnings_tracker.exceptions import HistoryUnavailableError
        from warnings_tracker.models.issues import Report
        from warnings_tracker.models.snapshot import Outcome

        _, recorder, first = recorded
        build_dir = store.save(first.snapshot, Outcome.SUCCESS)
        (build_dir / "issues.json").unlink()

        current = Report([make_issue(line_start=1), make_issue(line_start=2)])
        with pytest.raises(HistoryUnavailableError):
            recorder.record(BuildInfo(2, 100), current, store.history_before(2))

    def test_unreadable_snapshot_raises(self, store, recorded):
        """Test that a snapshot file that exists but cannot be opened is an error."""
        from warnings_tracker.exceptions import HistoryUnavailableError

        _, _, first = recorded
        build_dir = store.save(first.snapshot)
        (build_dir / "snapshot.json").unlink()
        (build_dir / "snapshot.json").mkdir()

        with pytest.raises(HistoryUnavailableError):
            store.load(1)

    def test_unreadable_store_raises(self, tmp_path):
        """Test that a store path that is not a directory cannot be read."""
        from warnings_tracker.exceptions import HistoryUnavailableError
        from warnings_tracker.storage.json_store import JsonHistoryStore

        (tmp_path / "history").mkdir()
        (tmp_path / "history" / "pylint").write_text("not a directory")
        store = JsonHistoryStore(tmp_path / "history", "pylint")

        with pytest.raises(HistoryUnavailableError):
            list(store.history_before(5))

    def test_concurrent_lazy_loads(self, store, recorded, monkeypatch):
        """Test that concurrent readers of a reloaded snapshot load the issues once."""
        from warnings_tracker.storage.json_store import JsonHistoryStore

        _, _, first = recorded
        store.save(first.snapshot)

        calls = []
        original = JsonHistoryStore._load_issues

        def counting(self, build_number, kind):
            calls.append(kind)
            return original(self, build_number, kind)

        monkeypatch.setattr(JsonHistoryStore, "_load_issues", counting)
        loaded = store.load(1)

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(loaded.issues)) for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert calls == ["issues"]
        assert all(r is results[0] for r in results)

    def test_snapshots_newest_first(self, store, recorded):
        """Test listing stored snapshots."""
        from dataclasses import replace

        _, _, first = recorded
        for number in (1, 2, 3):
            store.save(replace(first.snapshot, build_number=number))

        assert [s.build_number for s in store.snapshots()] == [3, 2, 1]
        assert [s.build_number for s in store.snapshots(limit=2)] == [3, 2]

    def test_file_contents(self, store, recorded):
        """Test that the stored files are plain JSON."""
        from warnings_tracker.models.snapshot import Outcome

        _, _, first = recorded
        build_dir = store.save(first.snapshot, Outcome.FAILURE)

        assert json.loads((build_dir / "build.json").read_text())["outcome"] == "failure"
        assert len(json.loads((build_dir / "new.json").read_text())) == 2
