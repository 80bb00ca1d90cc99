"""
GitHub API Client Library

Thin wrapper around the GitHub REST API used by the GitHub Action executor:
- Creating issues that trigger the claude-code-action workflow
- Checking that a repository is reachable with the configured token

Requires GITHUB_TOKEN environment variable with `repo` (or `public_repo`) scope.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class GitHubRepo(BaseModel):
    """GitHub repository model"""
    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    html_url: str
    default_branch: str
    private: bool
    has_issues: bool = True


class GitHubIssue(BaseModel):
    """Created issue"""
    id: int
    number: int
    title: str
    html_url: str
    state: str = "open"


class GitHubError(Exception):
    """Custom exception for GitHub API errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[Dict] = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


def _json_or_none(response: requests.Response) -> Optional[Dict[str, Any]]:
    try:
        return response.json() if response.text else None
    except ValueError:
        return None


class GitHubClient:
    """
    GitHub API Client

    Handles the issue and repository calls the executor needs.
    """

    BASE_URL = "https://api.github.com"
    TIMEOUT = 30

    def __init__(self, token: Optional[str] = None):
        """
        Initialize GitHub client

        Args:
            token: GitHub Personal Access Token. If not provided, will use GITHUB_TOKEN env var.
        """
        self.token = token or os.environ.get("GITHUB_TOKEN")
        if not self.token:
            raise GitHubError("GitHub token not found. Please set GITHUB_TOKEN environment variable.")

        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    def get_repository(self, owner: str, repo: str) -> GitHubRepo:
        """
        Get repository information

        Args:
            owner: Repository owner username
            repo: Repository name

        Returns:
            GitHubRepo object
        """
        response = requests.get(
            f"{self.BASE_URL}/repos/{owner}/{repo}",
            headers=self.headers,
            timeout=self.TIMEOUT
        )

        if response.status_code != 200:
            raise GitHubError(
                f"Failed to get repository: {response.status_code}",
                status_code=response.status_code,
                response=_json_or_none(response)
            )

        return GitHubRepo(**response.json())

    def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        labels: Optional[List[str]] = None
    ) -> GitHubIssue:
        """
        Open an issue in a repository

        Args:
            owner: Repository owner username
            repo: Repository name
            title: Issue title
            body: Markdown body
            labels: Labels to attach; GitHub creates missing ones

        Returns:
            GitHubIssue for the new issue
        """
        payload: Dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = labels

        response = requests.post(
            f"{self.BASE_URL}/repos/{owner}/{repo}/issues",
            headers=self.headers,
            json=payload,
            timeout=self.TIMEOUT
        )

        if response.status_code not in [201, 200]:
            raise GitHubError(
                f"Failed to create issue: {response.status_code}",
                status_code=response.status_code,
                response=_json_or_none(response)
            )

        issue = GitHubIssue(**response.json())
        logger.info("Created issue #%s in %s/%s", issue.number, owner, repo)
        return issue
