"""Tests for the create-with-fallback submission protocol."""

from pathlib import Path

import pytest

from sheetsync.exceptions import ProjectAttachmentError, TrackerError
from sheetsync.models import TicketRequest
from sheetsync.submission import staged_body, submit
from conftest import FakeTracker

REPO = "acme/widgets"
BODY = "### Overview\nNPE on login"


class TestStagedBody:
    def test_file_removed_after_use(self) -> None:
        with staged_body("hello") as path:
            assert path.read_text(encoding="utf-8") == "hello"
            assert path.suffix == ".md"
        assert not path.exists()

    def test_file_removed_on_error(self) -> None:
        staged: list[Path] = []
        with pytest.raises(ValueError):
            with staged_body("hello") as path:
                staged.append(path)
                raise ValueError("boom")
        assert not staged[0].exists()


class TestWithoutProject:
    def test_success(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker(["https://github.com/acme/widgets/issues/7"])
        outcome = submit(tracker, REPO, ticket_request, BODY)
        assert outcome.succeeded
        assert outcome.ticket_reference == "https://github.com/acme/widgets/issues/7"
        assert not outcome.used_fallback
        assert len(tracker.calls) == 1
        call = tracker.calls[0]
        assert call["repo"] == REPO
        assert call["title"] == "Fix bug"
        assert call["labels"] == ["bug", "urgent"]
        assert call["project"] is None
        assert call["body"] == BODY

    def test_failure(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker([TrackerError("label does not exist")])
        outcome = submit(tracker, REPO, ticket_request, BODY)
        assert not outcome.succeeded
        assert outcome.error_detail == "label does not exist"
        assert len(tracker.calls) == 1

    def test_body_file_cleaned_up(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker()
        submit(tracker, REPO, ticket_request, BODY)
        assert not tracker.calls[0]["body_file"].exists()

    def test_body_file_cleaned_up_on_failure(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker([TrackerError("boom")])
        submit(tracker, REPO, ticket_request, BODY)
        assert not tracker.calls[0]["body_file"].exists()


class TestWithProject:
    def test_success_first_attempt(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker(["https://github.com/acme/widgets/issues/1"])
        outcome = submit(tracker, REPO, ticket_request, BODY, project="Roadmap")
        assert outcome.succeeded
        assert not outcome.used_fallback
        assert [c["project"] for c in tracker.calls] == ["Roadmap"]

    def test_project_error_falls_back_once(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker(
            [
                ProjectAttachmentError("could not add to project: 'Roadmap' not found", "Roadmap"),
                "https://github.com/acme/widgets/issues/2",
            ]
        )
        outcome = submit(tracker, REPO, ticket_request, BODY, project="Roadmap")
        assert outcome.succeeded
        assert outcome.used_fallback
        assert outcome.ticket_reference == "https://github.com/acme/widgets/issues/2"
        assert [c["project"] for c in tracker.calls] == ["Roadmap", None]
        assert tracker.calls[0]["body_file"] == tracker.calls[1]["body_file"]

    def test_fallback_failure_reports_second_error(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker(
            [
                ProjectAttachmentError("your token is missing required scopes [project]", "Roadmap"),
                TrackerError("HTTP 502"),
            ]
        )
        outcome = submit(tracker, REPO, ticket_request, BODY, project="Roadmap")
        assert not outcome.succeeded
        assert outcome.error_detail == "HTTP 502"
        assert len(tracker.calls) == 2

    def test_other_error_no_retry(self, ticket_request: TicketRequest) -> None:
        tracker = FakeTracker([TrackerError("HTTP 422: Validation Failed")])
        outcome = submit(tracker, REPO, ticket_request, BODY, project="Roadmap")
        assert not outcome.succeeded
        assert outcome.error_detail == "HTTP 422: Validation Failed"
        assert len(tracker.calls) == 1

    def test_missing_scope_hint_logged(self, ticket_request: TicketRequest, caplog: pytest.LogCaptureFixture) -> None:
        tracker = FakeTracker([ProjectAttachmentError("missing required scopes [project]", "Roadmap"), "url"])
        with caplog.at_level("WARNING", logger="sheetsync"):
            submit(tracker, REPO, ticket_request, BODY, project="Roadmap")
        assert "gh auth refresh -s project" in caplog.text

    def test_no_scope_hint_for_project_named_like_scope(
        self, ticket_request: TicketRequest, caplog: pytest.LogCaptureFixture
    ) -> None:
        error = ProjectAttachmentError("could not add to project: 'scope-board' not found", "scope-board")
        tracker = FakeTracker([error, "url"])
        with caplog.at_level("WARNING", logger="sheetsync"):
            outcome = submit(tracker, REPO, ticket_request, BODY, project="scope-board")
        assert outcome.used_fallback
        assert "gh auth refresh" not in caplog.text


class TestMissingScope:
    @pytest.mark.parametrize(
        "detail",
        [
            "missing required scopes [project]",
            "error: your authentication token is missing required scopes [project read:project]",
            "Missing required scope 'read:project'",
        ],
    )
    def test_scope_errors(self, detail: str) -> None:
        assert ProjectAttachmentError(detail, "Roadmap").missing_scope

    @pytest.mark.parametrize(
        "detail",
        [
            "could not add to project: 'scope-board' not found",
            "could not add to project: 'Scope Creep' not found",
            "GraphQL: Could not resolve to a ProjectV2 with the number 3; project not found",
        ],
    )
    def test_other_errors(self, detail: str) -> None:
        assert not ProjectAttachmentError(detail, "Roadmap").missing_scope
