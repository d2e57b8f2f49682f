"""Drive sheet rows through normalize → validate → compose → submit."""

import time
from collections.abc import Callable, Iterable

from sheetsync.body import compose
from sheetsync.exceptions import RunAborted, SyncError
from sheetsync.labels import LabelRegistry
from sheetsync.logging import get_logger
from sheetsync.models import RawRow, RunSummary, SubmissionOutcome
from sheetsync.normalize import normalize
from sheetsync.providers.base import TicketTracker
from sheetsync.submission import submit

logger = get_logger(__name__)

DEFAULT_PACING_INTERVAL = 1.0  # seconds between issue creations


class SyncPipeline:
    """Sequential row-to-issue synchronization for one run.

    Rows are processed one at a time, in order, with a fixed pause between
    them. A row that fails is recorded and the run moves on; errors outside
    the modeled failure paths abort the run as ``RunAborted``.
    """

    def __init__(
        self,
        tracker: TicketTracker,
        repo: str,
        pacing_interval: float = DEFAULT_PACING_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.tracker = tracker
        self.repo = repo
        self.pacing_interval = pacing_interval
        self._sleep = sleep

    def run(
        self,
        rows: Iterable[RawRow],
        registry: LabelRegistry,
        project: str | None = None,
    ) -> RunSummary:
        summary = RunSummary()
        candidates = []
        for row in rows:
            if row.has_title:
                candidates.append(row)
            else:
                logger.debug("Row %d: no title, skipped", row.row_number)
                summary.skipped_count += 1

        for index, row in enumerate(candidates):
            logger.info("Row %d: processing %r", row.row_number, row.title.strip())
            try:
                outcome = self._process(row, registry, project)
            except (SyncError, OSError) as exc:
                outcome = SubmissionOutcome(succeeded=False, error_detail=str(exc), title=row.title.strip())
            except Exception as exc:
                logger.error("Row %d: unexpected error, aborting run", row.row_number)
                raise RunAborted(summary, row_number=row.row_number) from exc

            outcome = outcome.model_copy(update={"row_number": row.row_number})
            summary.record(outcome)
            if outcome.succeeded:
                logger.info("Row %d: created %s", row.row_number, outcome.ticket_reference)
            else:
                logger.error("Row %d: issue creation failed: %s", row.row_number, outcome.error_detail)

            if index < len(candidates) - 1:
                self._sleep(self.pacing_interval)

        _log_summary(summary)
        return summary

    def _process(self, row: RawRow, registry: LabelRegistry, project: str | None) -> SubmissionOutcome:
        request = normalize(row)
        if request.labels:
            validation = registry.validate(request.labels)
            if not validation.is_valid:
                logger.warning(
                    "Row %d: unknown labels %s; keeping %s",
                    row.row_number,
                    ", ".join(validation.invalid_labels),
                    ", ".join(validation.valid_labels) or "(none)",
                )
                request = request.with_labels(validation.valid_labels)
        body = compose(request)
        logger.debug("Row %d: issue body\n%s", row.row_number, body)
        return submit(self.tracker, self.repo, request, body, project=project)


def _log_summary(summary: RunSummary) -> None:
    logger.info(
        "Summary: %d succeeded, %d failed, %d total (%d skipped)",
        summary.success_count,
        summary.error_count,
        summary.total_count,
        summary.skipped_count,
    )
    match summary.status:
        case "success":
            logger.info("All issues were created")
        case "partial":
            logger.warning("Some issues could not be created")
        case "failed":
            logger.error("No issue could be created")
        case _:
            logger.info("No rows to process")
