"""Content-based fingerprints for issues.

A fingerprint is an md5 digest of the source lines surrounding an issue. It
stays the same when unrelated edits shift the issue's line numbers, so it is
used as a fallback key when matching issues against a reference build.
"""

import asyncio
import hashlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from warnings_tracker.models.issues import Issue, Report

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 3

# (file_path, encoding) -> lines of the file
SourceReader = Callable[[str, str], list[str]]


@dataclass
class FingerprintConfig:
    """Configuration for the fingerprinter."""

    context_lines: int = DEFAULT_CONTEXT_LINES
    encoding: str = "utf-8"
    max_parallel: int = 8


class WorkspaceSourceReader:
    """Reads source files relative to a workspace directory."""

    def __init__(self, root: Path | str = ".") -> None:
        self.root = Path(root)

    def __call__(self, file_path: str, encoding: str) -> list[str]:
        path = Path(file_path)
        if not path.is_absolute():
            path = self.root / path
        return path.read_text(encoding=encoding).splitlines()


def fingerprint(issue: Issue, lines: list[str], context_lines: int = DEFAULT_CONTEXT_LINES) -> str:
    """Compute the fingerprint of an issue from the lines of its file.

    The window runs from ``context_lines`` before the issue's first line to
    ``context_lines`` after its last line, clamped to the file.

    Args:
        issue: Issue to fingerprint
        lines: Contents of the issue's file, one entry per line
        context_lines: Number of lines to include on each side

    Returns:
        Hex digest, or an empty string if the issue has no usable location
    """
    if issue.is_file_level or issue.line_start > len(lines):
        return ""
    first = max(1, issue.line_start - context_lines)
    last = min(len(lines), issue.line_end + context_lines)
    window = "\n".join(lines[first - 1 : last])
    return hashlib.md5(window.encode("utf-8"), usedforsecurity=False).hexdigest()


class Fingerprinter:
    """Annotates issues with fingerprints read from a workspace."""

    def __init__(
        self,
        reader: SourceReader | None = None,
        config: FingerprintConfig | None = None,
    ) -> None:
        """Initialize the fingerprinter.

        Args:
            reader: Source access capability (default: current directory)
            config: Optional configuration
        """
        self.reader = reader or WorkspaceSourceReader()
        self.config = config or FingerprintConfig()

    def compute(self, issue: Issue) -> str:
        """Fingerprint a single issue, returning an empty string on any read error."""
        if issue.is_file_level:
            return ""
        try:
            lines = self.reader(issue.file_path, self.config.encoding)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Cannot read {issue.file_path} for fingerprinting: {e}")
            return ""
        return fingerprint(issue, lines, self.config.context_lines)

    def annotate(self, report: Report) -> int:
        """Set fingerprints on all issues of the report that have none.

        Returns:
            Number of issues that received a non-empty fingerprint
        """
        cache: dict[str, list[str] | None] = {}
        annotated = 0
        for issue in report:
            if issue.fingerprint:
                continue
            lines = self._read_cached(issue.file_path, cache)
            if lines is None:
                continue
            issue.fingerprint = fingerprint(issue, lines, self.config.context_lines)
            if issue.fingerprint:
                annotated += 1
        logger.info(f"Fingerprinted {annotated}/{len(report)} issues")
        return annotated

    async def annotate_async(self, report: Report) -> int:
        """Fingerprint issues in worker threads, at most ``max_parallel`` at a time.

        Returns:
            Number of issues that received a non-empty fingerprint
        """
        semaphore = asyncio.Semaphore(max(1, self.config.max_parallel))
        pending = [issue for issue in report if not issue.fingerprint]

        async def run(issue: Issue) -> str:
            async with semaphore:
                return await asyncio.to_thread(self.compute, issue)

        tasks = [
            asyncio.create_task(run(issue), name=f"fingerprint-{issue.id}") for issue in pending
        ]
        results = await asyncio.gather(*tasks)

        annotated = 0
        for issue, value in zip(pending, results):
            issue.fingerprint = value
            if value:
                annotated += 1
        logger.info(f"Fingerprinted {annotated}/{len(report)} issues")
        return annotated

    def _read_cached(self, file_path: str, cache: dict[str, list[str] | None]) -> list[str] | None:
        if file_path not in cache:
            try:
                cache[file_path] = self.reader(file_path, self.config.encoding)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.debug(f"Cannot read {file_path} for fingerprinting: {e}")
                cache[file_path] = None
        return cache[file_path]
