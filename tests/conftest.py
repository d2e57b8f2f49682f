"""Shared test fixtures."""

from collections.abc import Sequence
from pathlib import Path

import pytest

from sheetsync.exceptions import TrackerError
from sheetsync.labels import LabelRegistry
from sheetsync.models import LabelRecord, RawRow, TicketRequest
from sheetsync.providers.base import TicketTracker


class FakeTracker(TicketTracker):
    """In-memory tracker. ``results`` is consumed one entry per create_issue call:
    a string is returned as the URL, an exception is raised."""

    def __init__(self, results: Sequence[str | Exception] = (), labels: Sequence[LabelRecord] = ()) -> None:
        self.results = list(results)
        self.labels = list(labels)
        self.calls: list[dict] = []
        self.capability = True
        self.project_titles: dict[str, str] = {}

    def list_labels(self, repo: str) -> list[LabelRecord]:
        return list(self.labels)

    def create_issue(
        self,
        repo: str,
        title: str,
        body_file: Path,
        labels: Sequence[str],
        project: str | None = None,
    ) -> str:
        self.calls.append(
            {
                "repo": repo,
                "title": title,
                "body_file": body_file,
                "body": body_file.read_text(encoding="utf-8"),
                "labels": list(labels),
                "project": project,
            }
        )
        if self.results:
            result = self.results.pop(0)
        else:
            result = f"https://github.com/acme/widgets/issues/{len(self.calls)}"
        if isinstance(result, Exception):
            raise result
        return result

    def check_capability(self) -> bool:
        return self.capability

    def resolve_project_title(self, project_id: str, owner: str) -> str | None:
        return self.project_titles.get(project_id)


@pytest.fixture
def fake_tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def label_records() -> list[LabelRecord]:
    return [
        LabelRecord(id=1, name="bug", color="d73a4a", description="Something isn't working"),
        LabelRecord(id=2, name="urgent", color="b60205"),
        LabelRecord(id=3, name="Enhancement", color="a2eeef", description="New feature or request"),
    ]


@pytest.fixture
def registry(label_records: list[LabelRecord]) -> LabelRegistry:
    return LabelRegistry.build(label_records)


@pytest.fixture
def full_row() -> RawRow:
    return RawRow.from_cells(
        [
            "Fix login crash",
            "bug, urgent",
            "NPE on login",
            "#12",
            "Users report crashes",
            "Login works again",
            "- no NPE\\n- test added",
            "See Sentry",
            "Password reset",
        ],
        row_number=2,
    )


@pytest.fixture
def ticket_request() -> TicketRequest:
    return TicketRequest(title="Fix bug", labels=("bug", "urgent"), overview="NPE on login")


@pytest.fixture
def tracker_error() -> TrackerError:
    return TrackerError("HTTP 422: Validation Failed")
