"""Abstract base class for issue trackers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from sheetsync.models import LabelRecord


class TicketTracker(ABC):
    @abstractmethod
    def list_labels(self, repo: str) -> list[LabelRecord]: ...

    @abstractmethod
    def create_issue(
        self,
        repo: str,
        title: str,
        body_file: Path,
        labels: Sequence[str],
        project: str | None = None,
    ) -> str:
        """Create an issue and return its URL.

        Raises ProjectAttachmentError when the failure is caused by ``project``,
        TrackerError for any other rejection.
        """

    @abstractmethod
    def check_capability(self) -> bool:
        """Whether project attachment is usable with the current credentials."""

    @abstractmethod
    def resolve_project_title(self, project_id: str, owner: str) -> str | None: ...
