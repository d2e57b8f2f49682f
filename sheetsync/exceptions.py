"""Exceptions raised by sheetsync components."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sheetsync.models import RunSummary


_MISSING_SCOPE = re.compile(r"missing required scopes?", re.IGNORECASE)


class SyncError(RuntimeError):
    """Base exception for sheetsync errors."""


class CredentialError(SyncError):
    """No credential strategy could produce Google credentials."""


class SourceAccessError(SyncError):
    """The sheet cannot be read with the resolved credentials."""

    def __init__(self, sheet_id: str, status_code: int | None = None, reason: str | None = None) -> None:
        self.sheet_id = sheet_id
        self.status_code = status_code
        self.reason = reason
        if reason:
            message = f"Cannot read sheet {sheet_id}: {reason}"
        else:
            message = f"Access denied to sheet {sheet_id} (HTTP {status_code})"
        super().__init__(message)

    @property
    def denied(self) -> bool:
        return self.status_code in (401, 403, 404)


class TrackerError(SyncError):
    """The issue tracker rejected an operation.

    Attributes:
        detail: The tracker's own error text.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ProjectAttachmentError(TrackerError):
    """Issue creation failed because of the requested project attachment."""

    def __init__(self, detail: str, project: str) -> None:
        self.project = project
        super().__init__(detail)

    @property
    def missing_scope(self) -> bool:
        return bool(_MISSING_SCOPE.search(self.detail))


class RunAborted(SyncError):
    """An unexpected error stopped the run. Holds the outcomes recorded so far."""

    def __init__(self, summary: RunSummary, row_number: int | None = None) -> None:
        self.summary = summary
        self.row_number = row_number
        super().__init__(f"Run aborted at row {row_number} after {summary.total_count} attempted row(s)")
