"""GitHub tracker: REST API v3 for reads, gh CLI for issue creation."""

import json
import os
import re
import subprocess
from collections.abc import Sequence
from pathlib import Path

import httpx

from sheetsync.exceptions import ProjectAttachmentError, TrackerError
from sheetsync.logging import get_logger, sanitize_for_log
from sheetsync.models import LabelRecord
from sheetsync.providers.base import TicketTracker
from sheetsync.settings import SyncSettings

logger = get_logger(__name__)

BASE_URL = "https://api.github.com"
PER_PAGE = 100

# gh failures attributable to --project. Only consulted when a project was requested.
# Patterns are anchored to gh's project wording; "project" alone may be a label name.
_PROJECT_ERROR_PATTERNS = (
    re.compile(r"missing required scopes?[^\n]*\b(read:)?project\b", re.IGNORECASE),
    re.compile(r"could not add to project", re.IGNORECASE),
    re.compile(r"could not resolve to a projectv2", re.IGNORECASE),
    re.compile(r"\bprojectv2\b[^\n]*\bnot found\b", re.IGNORECASE),
    re.compile(r"resource not accessible[^\n]*\bprojectv2\b", re.IGNORECASE),
)
_LABEL_ERROR = re.compile(r"could not add label", re.IGNORECASE)


def is_project_error(message: str) -> bool:
    if _LABEL_ERROR.search(message):
        return False
    return any(pattern.search(message) for pattern in _PROJECT_ERROR_PATTERNS)


class GitHubTracker(TicketTracker):
    def __init__(self, settings: SyncSettings) -> None:
        self._token = self._resolve_token(settings)
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _resolve_token(self, settings: SyncSettings) -> str:
        if settings.github_auth == "gh-cli":
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                raise TrackerError("gh auth token failed. Run: gh auth login")
            return result.stdout.strip()
        if settings.github_token:
            return settings.github_token.get_secret_value()
        raise TrackerError("No GitHub credentials. Set SHEETSYNC_GITHUB_TOKEN or github_auth = \"gh-cli\"")

    def _request(self, path: str, params: dict | None = None) -> httpx.Response:
        try:
            response = httpx.get(
                f"{BASE_URL}{path}",
                headers=self._headers,
                params=params or {},
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise TrackerError(f"GitHub API request to {path} failed: {type(exc).__name__}: {exc}") from exc
        if response.status_code == 401:
            raise TrackerError("GitHub API returned 401. Check the GitHub token of the active profile.")
        if response.status_code == 404:
            raise TrackerError(f"GitHub API returned 404 for {path}. Check github_repo and token access.")
        if response.is_error:
            raise TrackerError(f"GitHub API returned {response.status_code} for {path}.")
        return response

    def _gh(self, args: list[str]) -> subprocess.CompletedProcess:
        env = {**os.environ, "GH_TOKEN": self._token}
        try:
            return subprocess.run(["gh", *args], capture_output=True, text=True, env=env)
        except FileNotFoundError as exc:
            raise TrackerError("gh CLI not found. Install it from https://cli.github.com") from exc

    def list_labels(self, repo: str) -> list[LabelRecord]:
        result = []
        page = 1
        while True:
            nodes = self._request(
                f"/repos/{repo}/labels",
                params={"per_page": str(PER_PAGE), "page": str(page)},
            ).json()
            for node in nodes:
                result.append(
                    LabelRecord(
                        id=node["id"],
                        name=node["name"],
                        color=node.get("color") or "",
                        description=node.get("description"),
                    )
                )
            if len(nodes) < PER_PAGE:
                return result
            page += 1

    def create_issue(
        self,
        repo: str,
        title: str,
        body_file: Path,
        labels: Sequence[str],
        project: str | None = None,
    ) -> str:
        args = ["issue", "create", "--repo", repo, "--title", title, "--body-file", str(body_file)]
        if labels:
            args += ["--label", ",".join(labels)]
        if project:
            args += ["--project", project]

        result = self._gh(args)
        if result.returncode != 0:
            message = (result.stderr or result.stdout or "").strip() or f"gh exited with {result.returncode}"
            if project and is_project_error(message):
                raise ProjectAttachmentError(message, project)
            raise TrackerError(message)
        # gh prints the new issue URL on the last line
        lines = result.stdout.strip().splitlines()
        return lines[-1] if lines else ""

    def check_capability(self) -> bool:
        # Classic tokens report their scopes; fine-grained tokens do not send the header
        response = self._request("/user")
        scopes = {s.strip() for s in response.headers.get("X-OAuth-Scopes", "").split(",") if s.strip()}
        return "project" in scopes

    def resolve_project_title(self, project_id: str, owner: str) -> str | None:
        """Look up a project's title from its node ID (e.g. PVT_kwHO...)."""
        result = self._gh(["project", "list", "--owner", owner, "--format", "json"])
        if result.returncode != 0:
            logger.warning("gh project list failed: %s", sanitize_for_log(result.stderr.strip()))
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            logger.warning("gh project list returned invalid JSON")
            return None

        if isinstance(data, list):
            projects = data
        elif isinstance(data, dict) and isinstance(data.get("projects"), list):
            projects = data["projects"]
        else:
            logger.warning("Unexpected gh project list output: %s", type(data).__name__)
            return None

        for project in projects:
            if project.get("id") == project_id:
                return project.get("title")
        available = ", ".join(f"{p.get('title')} ({p.get('id')})" for p in projects) or "(none)"
        logger.warning("Project %s not found for %s. Available: %s", project_id, owner, available)
        return None
