"""Create one issue, falling back to a plain create when the project attachment fails."""

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sheetsync.exceptions import ProjectAttachmentError, TrackerError
from sheetsync.logging import get_logger, sanitize_for_log
from sheetsync.models import SubmissionOutcome, TicketRequest
from sheetsync.providers.base import TicketTracker

logger = get_logger(__name__)


@contextmanager
def staged_body(body: str) -> Iterator[Path]:
    """Write the body to a temporary Markdown file, removed on exit."""
    fd, name = tempfile.mkstemp(prefix="issue-body-", suffix=".md")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(body)
        yield path
    finally:
        path.unlink(missing_ok=True)


def submit(
    tracker: TicketTracker,
    repo: str,
    request: TicketRequest,
    body: str,
    project: str | None = None,
) -> SubmissionOutcome:
    """Create the issue for ``request``.

    With a project, the first attempt attaches the issue to it. If that attempt
    fails because of the project, the issue is created once more without it.
    Any other tracker failure ends the row. The tracker is called at most twice.
    """
    labels = list(request.labels)
    with staged_body(body) as body_file:
        if project:
            try:
                url = tracker.create_issue(repo, request.title, body_file, labels, project=project)
            except ProjectAttachmentError as exc:
                logger.warning(
                    "Could not add %r to project %r, creating the issue without it: %s",
                    request.title,
                    project,
                    sanitize_for_log(exc.detail),
                )
                if exc.missing_scope:
                    logger.warning("The GitHub token lacks the `project` scope. Run: gh auth refresh -s project")
            except TrackerError as exc:
                return SubmissionOutcome(succeeded=False, error_detail=exc.detail, title=request.title)
            else:
                return SubmissionOutcome(succeeded=True, ticket_reference=url, title=request.title)

        try:
            url = tracker.create_issue(repo, request.title, body_file, labels, project=None)
        except TrackerError as exc:
            return SubmissionOutcome(
                succeeded=False,
                error_detail=exc.detail,
                used_fallback=bool(project),
                title=request.title,
            )
        return SubmissionOutcome(
            succeeded=True,
            ticket_reference=url,
            used_fallback=bool(project),
            title=request.title,
        )
