"""Publish an analysis report as a GitHub check run.

Functions:
    normalize_paths(issues, workspace)  -> list[Issue]
    batched(items, size)                -> iterator of lists

Classes:
    CheckPublisher(config).publish(report)
"""

import logging
from typing import Iterable, Iterator, TypeVar

from analysis_publisher.client import (
    CheckRunClient,
    ClientRejectedError,
    TransportError,
)
from analysis_publisher.config import CheckRunConfig
from analysis_publisher.models import (
    MAX_ANNOTATIONS,
    CheckRun,
    CheckRunConclusion,
    CheckRunStatus,
    Issue,
    Report,
    utc_now,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_paths(issues: Iterable[Issue], workspace: str | None) -> list[Issue]:
    """Return the issues with *workspace* stripped from their file names.

    The workspace is matched as a directory: ``/ws`` strips ``/ws/src/a.go``
    but leaves ``/wsx/a.go`` alone. Issues outside the workspace are returned
    unchanged. Applying this twice is the same as applying it once.
    """
    if not workspace:
        return list(issues)

    prefix = workspace if workspace.endswith("/") else workspace + "/"
    normalized = []
    for issue in issues:
        if issue.file_name.startswith(prefix):
            issue = issue.with_file_name(issue.file_name[len(prefix):])
        normalized.append(issue)
    return normalized


def batched(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive lists of at most *size* items. No items, no batches."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def _summary(count: int) -> str:
    if count == 0:
        return "No issues found."
    return f"{count} issue{'s' if count != 1 else ''} found."


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------

class CheckPublisher:
    """Create a check run, upload the report as annotations, complete the run."""

    def __init__(self, config: CheckRunConfig, client: CheckRunClient | None = None) -> None:
        self.config = config
        self.client = client or CheckRunClient(
            api_url=config.api_url, token=config.token, timeout=config.timeout
        )

    def publish(self, report: Report) -> None:
        """Publish *report* to the configured repository and commit.

        A client rejection (HTTP 4xx) at any step is logged together with the
        response body and ends the publish without raising. Transport failures
        propagate unless ``config.swallow_transport_errors`` is set. Nothing is
        retried; a run that fails midway stays in progress on GitHub.
        """
        repository = self.config.repository
        head_sha = self.config.head_sha

        logger.info("Publishing report for %s@%s", repository, head_sha)

        issues = normalize_paths(report, self.config.workspace_path)
        run = CheckRun(
            name=self.config.check_name,
            head_sha=head_sha,
            title=self.config.check_title,
            status=CheckRunStatus.IN_PROGRESS,
            summary=_summary(len(issues)),
            started_at=utc_now(),
        )

        try:
            run_id = self.client.create(repository, run).id
            logger.debug("Created check run %s", run_id)

            for index, batch in enumerate(batched(issues, MAX_ANNOTATIONS), start=1):
                logger.debug("Uploading batch %d (%d annotations)", index, len(batch))
                self.client.update(repository, run_id, run.with_issues(batch))

            self.client.update(repository, run_id, run.completed(CheckRunConclusion.NEUTRAL))
        except ClientRejectedError as exc:
            logger.error("Couldn't send data to GitHub API: %s", exc)
            logger.error("Response is %s", exc.body)
            return
        except TransportError as exc:
            if not self.config.swallow_transport_errors:
                raise
            logger.error("Couldn't reach GitHub API: %s", exc)
            body = getattr(exc, "body", None)
            if body is not None:
                logger.error("Response is %s", body)
            return

        logger.info("Published %d issues to check run %s", len(issues), run_id)
