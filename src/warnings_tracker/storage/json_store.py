"""Build history kept as JSON files on disk.

Layout::

    <directory>/<tool_id>/<build_number>/
        build.json          overall outcome of the build
        issues.json         all issues
        new.json
        fixed.json
        outstanding.json
        snapshot.json       written last; a build without it has no snapshot
"""

import contextlib
import json
import logging
import os
from collections.abc import Iterator
from functools import partial
from pathlib import Path
from typing import Any

from warnings_tracker.analysis.reference import HistoryEntry
from warnings_tracker.exceptions import HistoryUnavailableError
from warnings_tracker.models.issues import Report
from warnings_tracker.models.snapshot import ISSUE_KINDS, LazyReport, Outcome, ResultSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_FILE = "snapshot.json"
BUILD_FILE = "build.json"


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


class JsonHistoryStore:
    """Stores snapshots and issues of one tool's builds."""

    def __init__(self, directory: Path | str, tool_id: str) -> None:
        """Initialize the store.

        Args:
            directory: Root directory of the store (created on first save)
            tool_id: Identifier of the analysis tool; each tool has its own history
        """
        self.root = Path(directory) / tool_id
        self.tool_id = tool_id

    def _build_dir(self, build_number: int) -> Path:
        return self.root / str(build_number)

    def save(self, snapshot: ResultSnapshot, build_outcome: Outcome | None = None) -> Path:
        """Persist a snapshot with its issues and the overall build outcome.

        Args:
            snapshot: Snapshot to save; its issue reports are loaded if needed
            build_outcome: Overall result of the build, None if not known yet

        Returns:
            Directory the build was written to
        """
        build_dir = self._build_dir(snapshot.build_number)
        build_dir.mkdir(parents=True, exist_ok=True)

        reports = {
            "issues": snapshot.issues,
            "new": snapshot.new_issues,
            "fixed": snapshot.fixed_issues,
            "outstanding": snapshot.outstanding_issues,
        }
        for kind, report in reports.items():
            write_atomic(build_dir / f"{kind}.json", json.dumps(report.to_list(), indent=2))

        write_atomic(
            build_dir / BUILD_FILE,
            json.dumps(
                {
                    "build_number": snapshot.build_number,
                    "outcome": build_outcome.value if build_outcome else None,
                },
                indent=2,
            ),
        )
        write_atomic(build_dir / SNAPSHOT_FILE, json.dumps(snapshot.to_dict(), indent=2))

        logger.info(f"Saved build #{snapshot.build_number} to {build_dir}")
        return build_dir

    def build_numbers(self) -> list[int]:
        """Numbers of all stored builds, newest first.

        Raises:
            HistoryUnavailableError: If the store directory exists but cannot be read
        """
        if not self.root.exists():
            return []
        try:
            names = [p.name for p in self.root.iterdir() if p.is_dir()]
        except OSError as e:
            raise HistoryUnavailableError(f"Cannot read history at {self.root}: {e}") from e
        return sorted((int(name) for name in names if name.isdigit()), reverse=True)

    def history_before(self, build_number: int) -> Iterator[HistoryEntry]:
        """Walk the history backwards, starting at the build before ``build_number``.

        Raises:
            HistoryUnavailableError: If the store directory cannot be read
        """
        for number in self.build_numbers():
            if number >= build_number:
                continue
            yield HistoryEntry(
                build_number=number,
                snapshot=self.load(number),
                build_outcome=self._load_outcome(number),
            )

    def load(self, build_number: int) -> ResultSnapshot | None:
        """Load the snapshot of a build, with lazy issue loaders attached.

        Returns:
            The snapshot, or None if the build has no snapshot or it is corrupt

        Raises:
            HistoryUnavailableError: If the snapshot file exists but cannot be read
        """
        raw = self._read_json(self._build_dir(build_number) / SNAPSHOT_FILE)
        if raw is None:
            return None
        try:
            snapshot = ResultSnapshot.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring corrupt snapshot of build #{build_number}: {e}")
            return None

        for kind in ISSUE_KINDS:
            snapshot.attach(kind, LazyReport(partial(self._load_issues, build_number, kind)))
        return snapshot

    def snapshots(self, limit: int | None = None) -> list[ResultSnapshot]:
        """Stored snapshots, newest first."""
        result = []
        for number in self.build_numbers():
            snapshot = self.load(number)
            if snapshot is not None:
                result.append(snapshot)
                if limit is not None and len(result) >= limit:
                    break
        return result

    def _load_issues(self, build_number: int, kind: str) -> Report:
        path = self._build_dir(build_number) / f"{kind}.json"
        with open(path, encoding="utf-8") as f:
            raw_issues = json.load(f)
        logger.debug(f"Loaded {len(raw_issues)} {kind} issues of build #{build_number}")
        return Report.from_list(raw_issues, origin=self.tool_id)

    def _load_outcome(self, build_number: int) -> Outcome | None:
        raw = self._read_json(self._build_dir(build_number) / BUILD_FILE)
        if not raw or not raw.get("outcome"):
            return None
        try:
            return Outcome(raw["outcome"])
        except ValueError:
            logger.warning(f"Unknown outcome {raw['outcome']!r} for build #{build_number}")
            return None

    def _read_json(self, path: Path) -> dict[str, Any] | None:
        """Read a JSON object; None if the file is missing or not valid JSON.

        Raises:
            HistoryUnavailableError: If the file exists but cannot be read
        """
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        except OSError as e:
            raise HistoryUnavailableError(f"Cannot read {path}: {e}") from e
        except ValueError as e:
            logger.warning(f"Ignoring corrupt file {path}: {e}")
            return None
        if not isinstance(raw, dict):
            logger.warning(f"Unexpected content in {path}")
            return None
        return raw
