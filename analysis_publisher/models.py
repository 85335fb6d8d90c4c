"""Data models for publishing analysis reports as GitHub check runs.

Contains:
    - Severity, Issue, Report            (analysis side)
    - CheckRunStatus, CheckRunConclusion (GitHub enumerations)
    - CheckRun                           (request body, one value per state)
    - CheckRunResult                     (parsed response)

Serialization to the GitHub Checks schema lives next to the models
(``CheckRun.to_json`` / ``annotation_to_json``).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Iterator


# ---------------------------------------------------------------------------
# Analysis side
# ---------------------------------------------------------------------------

class Severity(Enum):
    ERROR          = "error"
    WARNING_HIGH   = "high"
    WARNING_NORMAL = "normal"
    WARNING_LOW    = "low"

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Accept a value (``"high"``), a name (``"WARNING_HIGH"``) or a
        GitHub annotation level (``"failure"``, ``"warning"``, ``"notice"``)."""
        key = str(value).strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        if key in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[key]
        raise ValueError(f"Unknown severity: {value!r}")

    @property
    def annotation_level(self) -> str:
        return _ANNOTATION_LEVELS[self]


_ANNOTATION_LEVELS = {
    Severity.ERROR:          "failure",
    Severity.WARNING_HIGH:   "warning",
    Severity.WARNING_NORMAL: "warning",
    Severity.WARNING_LOW:    "notice",
}

_LEVEL_ALIASES = {
    "failure": Severity.ERROR,
    "warning": Severity.WARNING_NORMAL,
    "notice":  Severity.WARNING_LOW,
}


@dataclass(frozen=True)
class Issue:
    file_name: str
    line_start: int
    message: str
    severity: Severity = Severity.WARNING_NORMAL
    line_end: int = 0
    column_start: int = 0
    column_end: int = 0
    type: str = ""

    def with_file_name(self, file_name: str) -> "Issue":
        return replace(self, file_name=file_name)


class Report:
    """Ordered collection of issues. Iteration order decides batch membership."""

    def __init__(self, issues: Iterable[Issue] = ()) -> None:
        self._issues = list(issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def __repr__(self) -> str:
        return f"Report({len(self._issues)} issues)"


# ---------------------------------------------------------------------------
# GitHub check runs
# ---------------------------------------------------------------------------

class CheckRunStatus(Enum):
    QUEUED      = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"


class CheckRunConclusion(Enum):
    ACTION_REQUIRED = "action_required"
    CANCELLED       = "cancelled"
    FAILURE         = "failure"
    NEUTRAL         = "neutral"
    SUCCESS         = "success"
    SKIPPED         = "skipped"
    TIMED_OUT       = "timed_out"


#: GitHub accepts at most 50 annotations per create/update request.
MAX_ANNOTATIONS = 50


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True)
class CheckRun:
    """One state of a remote check run, built fresh for every API call."""

    MAX_ANNOTATIONS = MAX_ANNOTATIONS

    name: str
    head_sha: str
    title: str
    status: CheckRunStatus = CheckRunStatus.IN_PROGRESS
    summary: str = ""
    annotations: tuple[Issue, ...] = field(default_factory=tuple)
    conclusion: CheckRunConclusion | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def with_issues(self, issues: Iterable[Issue]) -> "CheckRun":
        batch = tuple(issues)
        if len(batch) > MAX_ANNOTATIONS:
            raise ValueError(
                f"A check run update carries at most {MAX_ANNOTATIONS} annotations, got {len(batch)}"
            )
        return replace(self, annotations=batch)

    def completed(self, conclusion: CheckRunConclusion) -> "CheckRun":
        return replace(
            self,
            status=CheckRunStatus.COMPLETED,
            conclusion=conclusion,
            annotations=(),
            completed_at=utc_now(),
        )

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name":     self.name,
            "head_sha": self.head_sha,
            "status":   self.status.value,
            "output": {
                "title":       self.title,
                "summary":     self.summary or self.title,
                "annotations": [annotation_to_json(i) for i in self.annotations],
            },
        }
        if self.conclusion is not None:
            body["conclusion"] = self.conclusion.value
        if self.started_at is not None:
            body["started_at"] = self.started_at.isoformat()
        if self.completed_at is not None:
            body["completed_at"] = self.completed_at.isoformat()
        return body


def annotation_to_json(issue: Issue) -> dict[str, Any]:
    """Encode an issue as a GitHub check-run annotation."""
    start_line = max(issue.line_start, 1)
    end_line = max(issue.line_end, start_line)
    annotation: dict[str, Any] = {
        "path":             issue.file_name,
        "start_line":       start_line,
        "end_line":         end_line,
        "annotation_level": issue.severity.annotation_level,
        "message":          issue.message,
    }
    # Columns are only accepted on single-line annotations
    if start_line == end_line and issue.column_start > 0:
        annotation["start_column"] = issue.column_start
        annotation["end_column"] = max(issue.column_end, issue.column_start)
    if issue.type:
        annotation["title"] = issue.type
    return annotation


@dataclass(frozen=True)
class CheckRunResult:
    id: int
    status: str | None = None
    html_url: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CheckRunResult":
        """Keep only the fields we care about; unknown fields are ignored."""
        if not isinstance(data, dict) or "id" not in data:
            raise ValueError("Check run response has no 'id'")
        return cls(id=int(data["id"]), status=data.get("status"), html_url=data.get("html_url"))
