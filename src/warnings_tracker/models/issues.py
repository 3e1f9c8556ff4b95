"""Issue models for static analysis results."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
from uuid import uuid4


class Severity(Enum):
    """Severity of an issue, ordered from most to least severe.

    - HIGH: Errors and warnings the tool flags as important.
    - NORMAL: Regular warnings.
    - LOW: Informational findings and style checks.
    """

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Parse a severity name, accepting any case."""
        if isinstance(value, Severity):
            return value
        return cls(str(value).strip().lower())

    def collect_from(self) -> list["Severity"]:
        """Return this severity and every more severe one."""
        members = list(Severity)
        return members[: members.index(self) + 1]


@dataclass
class Issue:
    """A single finding reported by a static analysis tool.

    Equality covers the location, severity, classifiers and message only. The
    identity token is regenerated on every run, so it never takes part in
    matching issues between builds.
    """

    file_path: str
    line_start: int = 0
    line_end: int = 0
    severity: Severity = Severity.NORMAL
    category: str = ""
    type: str = ""
    message: str = ""

    id: str = field(default_factory=lambda: uuid4().hex, compare=False)
    origin: str = field(default="", compare=False)
    module: str = field(default="", compare=False)
    fingerprint: str = field(default="", compare=False)
    first_seen: int = field(default=0, compare=False)  # build number, 0 = unknown

    def __post_init__(self) -> None:
        """Validate issue data."""
        if self.line_start < 0:
            raise ValueError(f"line_start must be >= 0, got {self.line_start}")
        if self.line_end == 0:
            self.line_end = self.line_start
        if self.line_end < self.line_start:
            raise ValueError(
                f"line_end ({self.line_end}) must be >= line_start ({self.line_start})"
            )

    @property
    def key(self) -> tuple:
        """The compared fields; equal issues have equal keys."""
        return (
            self.file_path,
            self.line_start,
            self.line_end,
            self.severity,
            self.category,
            self.type,
            self.message,
        )

    @property
    def is_file_level(self) -> bool:
        """Whether the issue refers to a whole file rather than a line range."""
        return self.line_start == 0

    def with_first_seen(self, build_number: int) -> "Issue":
        """Return a copy of this issue stamped with the build it was first seen in."""
        return replace(self, first_seen=build_number)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Issue":
        """Create an issue from its JSON representation."""
        kwargs: dict[str, Any] = {
            "file_path": raw["file_path"],
            "line_start": int(raw.get("line_start") or 0),
            "line_end": int(raw.get("line_end") or 0),
            "severity": Severity.parse(raw.get("severity", "normal")),
            "category": raw.get("category", ""),
            "type": raw.get("type", ""),
            "message": raw.get("message", ""),
            "origin": raw.get("origin", ""),
            "module": raw.get("module", ""),
            "fingerprint": raw.get("fingerprint", ""),
            "first_seen": int(raw.get("first_seen") or 0),
        }
        if raw.get("id"):
            kwargs["id"] = raw["id"]
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert the issue to a JSON-serializable dict."""
        return {
            "id": self.id,
            "file_path": self.file_path,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "severity": self.severity.value,
            "category": self.category,
            "type": self.type,
            "message": self.message,
            "origin": self.origin,
            "module": self.module,
            "fingerprint": self.fingerprint,
            "first_seen": self.first_seen,
        }


@dataclass(frozen=True)
class SeverityCounts:
    """Number of issues in total and per severity."""

    total: int = 0
    high: int = 0
    normal: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        """Validate counts."""
        for name in ("total", "high", "normal", "low"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.high + self.normal + self.low != self.total:
            raise ValueError(
                f"Severity counts ({self.high}/{self.normal}/{self.low}) "
                f"do not add up to total ({self.total})"
            )

    def for_severity(self, severity: Severity) -> int:
        """Number of issues with the given severity."""
        return getattr(self, severity.value)

    @classmethod
    def from_issues(cls, issues: Iterable[Issue]) -> "SeverityCounts":
        """Count the given issues from scratch."""
        by_severity = dict.fromkeys(Severity, 0)
        for issue in issues:
            by_severity[issue.severity] += 1
        return cls(
            total=sum(by_severity.values()),
            high=by_severity[Severity.HIGH],
            normal=by_severity[Severity.NORMAL],
            low=by_severity[Severity.LOW],
        )

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "high": self.high, "normal": self.normal, "low": self.low}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SeverityCounts":
        return cls(
            total=int(raw.get("total", 0)),
            high=int(raw.get("high", 0)),
            normal=int(raw.get("normal", 0)),
            low=int(raw.get("low", 0)),
        )


class Report:
    """Ordered collection of issues, unique by identity token.

    Per-severity counts are maintained incrementally on every add and remove.
    """

    def __init__(self, issues: Iterable[Issue] = (), origin: str = "") -> None:
        """Initialize the report.

        Args:
            issues: Initial issues, in order
            origin: Identifier of the tool that produced the issues
        """
        self.origin = origin
        self._issues: dict[str, Issue] = {}
        self._counts: dict[Severity, int] = dict.fromkeys(Severity, 0)
        self.add_all(issues)

    def add(self, issue: Issue) -> "Report":
        """Append an issue.

        Raises:
            ValueError: If an issue with the same identity token is already present
        """
        if issue.id in self._issues:
            raise ValueError(f"Duplicate issue id: {issue.id}")
        self._issues[issue.id] = issue
        self._counts[issue.severity] += 1
        return self

    def add_all(self, issues: Iterable[Issue]) -> "Report":
        """Append several issues, preserving their order."""
        for issue in issues:
            self.add(issue)
        return self

    def remove(self, issue_id: str) -> Issue:
        """Remove and return the issue with the given identity token.

        Raises:
            KeyError: If no such issue exists
        """
        issue = self._issues.pop(issue_id)
        self._counts[issue.severity] -= 1
        return issue

    def get(self, issue_id: str) -> Issue | None:
        return self._issues.get(issue_id)

    def copy(self) -> "Report":
        """Shallow copy: a new collection holding the same issue objects."""
        return Report(self._issues.values(), origin=self.origin)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self._issues.values())

    def __len__(self) -> int:
        return len(self._issues)

    def __contains__(self, issue_id: object) -> bool:
        return issue_id in self._issues

    def __getitem__(self, index: int) -> Issue:
        return list(self._issues.values())[index]

    def __repr__(self) -> str:
        return f"Report(origin={self.origin!r}, size={len(self)})"

    @property
    def size(self) -> int:
        """Total number of issues."""
        return len(self._issues)

    @property
    def is_empty(self) -> bool:
        return not self._issues

    @property
    def ids(self) -> list[str]:
        """Identity tokens in collection order."""
        return list(self._issues)

    def count(self, severity: Severity) -> int:
        """Number of issues with the given severity."""
        return self._counts[severity]

    @property
    def counts(self) -> SeverityCounts:
        """Incrementally maintained counts."""
        return SeverityCounts(
            total=self.size,
            high=self._counts[Severity.HIGH],
            normal=self._counts[Severity.NORMAL],
            low=self._counts[Severity.LOW],
        )

    def recount(self) -> SeverityCounts:
        """Counts recomputed from the issues themselves."""
        return SeverityCounts.from_issues(self._issues.values())

    def to_list(self) -> list[dict[str, Any]]:
        return [issue.to_dict() for issue in self._issues.values()]

    @classmethod
    def from_list(cls, raw_issues: Iterable[dict[str, Any]], origin: str = "") -> "Report":
        """Create a report from a list of JSON issue dicts."""
        return cls((Issue.from_dict(raw) for raw in raw_issues), origin=origin)
