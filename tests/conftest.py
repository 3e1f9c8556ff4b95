"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

# Sample source file used for fingerprinting
SAMPLE_SOURCE = """\
import os
import sys


def read_config(path):
    handle = open(path)
    data = handle.read()
    return data


def main():
    config = read_config(sys.argv[1])
    print(config)
"""

# The same file with two lines inserted at the top; read_config moves down by 2
SHIFTED_SOURCE = """\
#!/usr/bin/env python
# -*- coding: utf-8 -*-
import os
import sys


def read_config(path):
    handle = open(path)
    data = handle.read()
    return data


def main():
    config = read_config(sys.argv[1])
    print(config)
"""


@pytest.fixture
def make_issue() -> Callable:
    """Factory for issues with sensible defaults."""
    from warnings_tracker.models.issues import Issue, Severity

    def _make(
        file_path: str = "src/app.py",
        line_start: int = 6,
        line_end: int = 0,
        severity: Severity = Severity.NORMAL,
        category: str = "resource",
        type: str = "unclosed-file",
        message: str = "File handle is never closed",
        **kwargs,
    ):
        return Issue(
            file_path=file_path,
            line_start=line_start,
            line_end=line_end,
            severity=severity,
            category=category,
            type=type,
            message=message,
            **kwargs,
        )

    return _make


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace with one Python source file."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.py").write_text(SAMPLE_SOURCE)
    return tmp_path


@pytest.fixture
def shifted_source() -> str:
    """The sample source with two lines inserted before the issue."""
    return SHIFTED_SOURCE


@pytest.fixture
def make_snapshot() -> Callable:
    """Factory for snapshots with sensible defaults."""
    from warnings_tracker.models.issues import Report, SeverityCounts
    from warnings_tracker.models.snapshot import (
        LazyReport,
        Outcome,
        QualityGateResult,
        ResultSnapshot,
        StreakState,
    )

    def _make(
        build_number: int = 1,
        timestamp: int = 0,
        issues: Report | None = None,
        outcome: Outcome = Outcome.SUCCESS,
        zero_issues: StreakState | None = None,
        passing: StreakState | None = None,
        **kwargs,
    ):
        issues = issues if issues is not None else Report()
        snapshot = ResultSnapshot(
            build_number=build_number,
            timestamp=timestamp,
            tool_id="pylint",
            totals=issues.counts,
            new=kwargs.pop("new", SeverityCounts()),
            fixed=kwargs.pop("fixed", SeverityCounts()),
            outstanding=kwargs.pop("outstanding", SeverityCounts()),
            zero_issues=zero_issues or StreakState(),
            passing=passing or StreakState(),
            quality_gate=QualityGateResult(outcome, kwargs.pop("reason", "test")),
            **kwargs,
        )
        snapshot.attach("issues", LazyReport.of(issues))
        return snapshot

    return _make


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A configuration file pointing at a temporary store."""
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""\
tool:
  id: pylint
storage:
  directory: {tmp_path / "history"}
fingerprint:
  workspace: {tmp_path}
thresholds:
  failed_total_high: 0
  unstable_new_all: 0
"""
    )
    return path


@pytest.fixture
def sample_source() -> str:
    """Contents of src/app.py in the workspace."""
    return SAMPLE_SOURCE
