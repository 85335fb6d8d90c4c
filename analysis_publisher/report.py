"""Load an analysis report from JSON.

Accepted shapes:
    [ {issue}, ... ]
    { "issues": [ {issue}, ... ] }

Issue keys: ``file``, ``line`` and ``message`` are required; ``severity``
(default ``normal``), ``end_line``, ``column``, ``end_column`` and ``type``
are optional.
"""

import json
from pathlib import Path
from typing import Any

from analysis_publisher.models import Issue, Report, Severity


class ReportError(Exception):
    """Raised when a report file is missing or malformed."""


def load_report(report_path: str) -> Report:
    path = Path(report_path)
    if not path.exists():
        raise ReportError(f"Report file not found: '{report_path}'")

    try:
        with path.open(encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ReportError(f"Failed to parse '{report_path}': {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("issues")
    if not isinstance(raw, list):
        raise ReportError(
            f"'{report_path}' must be a list of issues or an object with an 'issues' list."
        )

    return Report(_parse_issue(item, i, report_path) for i, item in enumerate(raw))


def _parse_issue(raw: Any, index: int, report_path: str) -> Issue:
    where = f"'{report_path}' issue #{index}"
    if not isinstance(raw, dict):
        raise ReportError(f"{where} must be an object")

    missing = [k for k in ("file", "line", "message") if raw.get(k) in (None, "")]
    if missing:
        raise ReportError(f"{where} is missing {', '.join(missing)}")

    try:
        return Issue(
            file_name=str(raw["file"]),
            line_start=int(raw["line"]),
            message=str(raw["message"]),
            severity=Severity.parse(raw.get("severity", "normal")),
            line_end=int(raw.get("end_line") or 0),
            column_start=int(raw.get("column") or 0),
            column_end=int(raw.get("end_column") or 0),
            type=str(raw.get("type") or ""),
        )
    except (TypeError, ValueError) as exc:
        raise ReportError(f"{where} is invalid: {exc}") from exc
