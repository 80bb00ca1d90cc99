"""
GitHub Action executor

Creates a GitHub issue labelled `claude-code-action`; the workflow from
app.libs.github_workflow_template picks it up and opens a PR.
"""

import asyncio
import logging
import os
from typing import Any, Dict, Optional, Tuple

from app.libs.executors.base import BaseExecutor, block_kind, config_value, non_empty_string
from app.libs.github_client import GitHubClient, GitHubError
from app.libs.models import ExecutionResult, Routine, ValidationResult, utc_now_iso

logger = logging.getLogger(__name__)

ISSUE_LABELS = ["routine-manager", "claude-code-action"]
REPO_FORMAT_ERROR = "Repository must be in format: owner/repo"


def split_repository(value: Any) -> Optional[Tuple[str, str]]:
    """Return (owner, repo) when value is exactly `owner/repo`."""
    repo = non_empty_string(value)
    if not repo:
        return None
    parts = repo.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def describe_github_error(error: Exception) -> str:
    """Map a GitHub failure to a message the user can act on."""
    status = getattr(error, "status_code", None)
    message = str(getattr(error, "message", error)).lower()

    if status == 404 or "not found" in message:
        return "Repository not found. Please check the repository name and your access permissions."
    if status == 403 and "rate limit" in message:
        return "GitHub API rate limit exceeded. Please wait a moment and try again."
    if status == 403 or "forbidden" in message:
        return "Access denied. Please check that your GITHUB_TOKEN has write access to this repository."
    if status == 429 or "rate limit" in message:
        return "GitHub API rate limit exceeded. Please wait a moment and try again."
    if status == 401 or "unauthorized" in message or "bad credentials" in message:
        return "Invalid or expired GITHUB_TOKEN. Please check your token configuration."
    if status == 422 or "validation failed" in message:
        return "Validation failed. The repository may not have issues enabled or the labels may not exist."

    return str(getattr(error, "message", error)) or "Unknown error occurred while creating GitHub issue"


def build_issue_body(routine: Routine) -> str:
    body = f"# {routine.title}\n\n"

    if routine.blocks:
        body += "## Instructions\n\n"
        for block in sorted(routine.blocks, key=lambda b: b.order):
            kind = block_kind(block)
            if kind == "heading":
                body += f"### {block.content}\n\n"
            elif kind == "checklist":
                body += f"- [ ] {block.content}\n"
            elif kind == "trigger":
                body += f"**Trigger:** {block.content}\n\n"
            elif kind == "action":
                body += f"**Action:** {block.content}\n\n"
            else:
                body += f"{block.content}\n\n"

    body += "\n---\n\n"
    body += "*This issue was automatically created by Routine Manager*\n\n"
    body += f"**Routine ID:** `{routine.id}`\n"
    body += f"**Created:** {utc_now_iso()}\n"
    return body


class GitHubActionExecutor(BaseExecutor):
    type = "github-action"
    name = "GitHub Action"
    description = "Create GitHub issues that trigger claude-code-action workflows"

    def __init__(self, client: Optional[GitHubClient] = None):
        self._client = client

    def _get_client(self) -> GitHubClient:
        if self._client is None:
            self._client = GitHubClient()
        return self._client

    async def validate_config(self, config: Any) -> ValidationResult:
        errors = []
        repo = config_value(config, "githubRepo")

        if not non_empty_string(repo):
            errors.append("GitHub repository is required")
        elif split_repository(repo) is None:
            errors.append(REPO_FORMAT_ERROR)

        return self.validation(errors)

    async def is_available(self) -> bool:
        return bool(os.environ.get("GITHUB_TOKEN"))

    async def execute(self, routine: Routine) -> ExecutionResult:
        started_at = utc_now_iso()

        repo_value = config_value(routine.integration.config, "githubRepo")
        if not non_empty_string(repo_value):
            return self.create_result(False, error="GitHub repository not configured", started_at=started_at)

        if self._client is None and not os.environ.get("GITHUB_TOKEN"):
            return self.create_result(
                False,
                error="GITHUB_TOKEN environment variable is not set. Please configure it in your environment.",
                started_at=started_at,
            )

        parsed = split_repository(repo_value)
        if parsed is None:
            return self.create_result(False, error="Invalid repository format. Use: owner/repo", started_at=started_at)
        owner, repo = parsed

        try:
            client = self._get_client()
            issue = await asyncio.to_thread(
                client.create_issue,
                owner,
                repo,
                f"[Routine] {routine.title}",
                build_issue_body(routine),
                ISSUE_LABELS,
            )
        except GitHubError as e:
            logger.warning("GitHub issue creation failed for %s/%s: %s", owner, repo, e.message)
            return self.create_result(False, error=describe_github_error(e), started_at=started_at)
        except Exception as e:
            logger.exception("Unexpected error creating GitHub issue")
            return self.create_result(False, error=describe_github_error(e), started_at=started_at)

        output = "\n".join([
            "Issue created successfully!",
            "",
            f"URL: {issue.html_url}",
            f"Number: #{issue.number}",
            "",
            "The claude-code-action workflow will be triggered automatically.",
            "Check the issue for updates and the resulting PR.",
        ])
        return self.create_result(
            True,
            output=output,
            started_at=started_at,
            issue_url=issue.html_url,
            issue_number=issue.number,
        )

    async def check_repository_access(self, repo: str) -> Dict[str, Any]:
        """Report whether the token can see `owner/repo`."""
        if self._client is None and not os.environ.get("GITHUB_TOKEN"):
            return {"accessible": False, "error": "GITHUB_TOKEN not configured"}

        parsed = split_repository(repo)
        if parsed is None:
            return {"accessible": False, "error": "Invalid repository format"}

        try:
            await asyncio.to_thread(self._get_client().get_repository, *parsed)
        except Exception as e:
            return {"accessible": False, "error": describe_github_error(e)}
        return {"accessible": True}
