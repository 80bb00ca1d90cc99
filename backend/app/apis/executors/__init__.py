"""
Executors API

Lists the automation backends with their current availability. For the
github-action executor it serves the workflow a repository needs and checks
whether the configured token can reach a repository.
"""

from typing import Optional

from fastapi import APIRouter

from app.libs.errors import InvalidRequestError, error_response
from app.libs.executors import EXECUTOR_META, GitHubActionExecutor, get_all_executors
from app.libs.github_workflow_template import (
    GITHUB_WORKFLOW_FILENAME,
    GITHUB_WORKFLOW_TEMPLATE,
    SETUP_INSTRUCTIONS,
    get_workflow_markdown,
)

router = APIRouter(tags=["Executors"])


@router.get("/executors")
async def list_executors():
    """Executor metadata plus an `available` flag per executor."""
    executors = []
    for executor in get_all_executors():
        executors.append({
            "type": executor.type,
            **EXECUTOR_META[executor.type],
            "available": await executor.is_available(),
        })
    return {"success": True, "data": executors}


@router.get("/executors/github/workflow")
async def get_github_workflow():
    """Workflow file and setup steps for the claude-code-action integration."""
    return {
        "success": True,
        "data": {
            "filename": GITHUB_WORKFLOW_FILENAME,
            "path": f".github/workflows/{GITHUB_WORKFLOW_FILENAME}",
            "content": GITHUB_WORKFLOW_TEMPLATE,
            "instructions": SETUP_INSTRUCTIONS.strip(),
            "markdown": get_workflow_markdown(),
        },
    }


@router.get("/executors/github/check")
async def check_github_repository(repo: Optional[str] = None):
    """Whether GITHUB_TOKEN can see `owner/repo`; {accessible, error?}."""
    if not repo:
        return error_response(InvalidRequestError("repo is required"))
    return {"success": True, "data": await GitHubActionExecutor().check_repository_access(repo)}
