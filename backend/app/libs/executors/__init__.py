"""Automation executors and the factory used by the execute route."""

from typing import Dict, List, Union

from app.libs.executors.base import BaseExecutor
from app.libs.executors.cli import CLIExecutor
from app.libs.executors.code_plugin import CodePluginExecutor
from app.libs.executors.github_action import GitHubActionExecutor
from app.libs.executors.mcp import MCPExecutor
from app.libs.models import ExecutorType

__all__ = [
    "BaseExecutor",
    "CLIExecutor",
    "CodePluginExecutor",
    "GitHubActionExecutor",
    "MCPExecutor",
    "EXECUTOR_META",
    "get_all_executors",
    "get_executor",
]

_EXECUTORS = {
    ExecutorType.MCP: MCPExecutor,
    ExecutorType.GITHUB_ACTION: GitHubActionExecutor,
    ExecutorType.CLI: CLIExecutor,
    ExecutorType.CODE_PLUGIN: CodePluginExecutor,
}

# Executor metadata for UI
EXECUTOR_META: Dict[str, Dict[str, str]] = {
    ExecutorType.MCP.value: {
        "name": "MCP Registry",
        "description": "Connect to 2000+ MCP servers (YouTube, Calendar, Slack, etc.)",
        "icon": "globe",
    },
    ExecutorType.GITHUB_ACTION.value: {
        "name": "GitHub Action",
        "description": "Create issues that @claude implements and creates PRs",
        "icon": "github",
    },
    ExecutorType.CLI.value: {
        "name": "Claude CLI",
        "description": "Execute locally via claude -p in background",
        "icon": "terminal",
    },
    ExecutorType.CODE_PLUGIN.value: {
        "name": "Code Plugin",
        "description": "Check and run Python plugins in-app",
        "icon": "code",
    },
}


def get_executor(executor_type: Union[ExecutorType, str]) -> BaseExecutor:
    """Instantiate the executor for a type; ValueError for unknown types."""
    try:
        key = ExecutorType(executor_type)
    except ValueError:
        raise ValueError(f"Unknown executor type: {executor_type}")
    return _EXECUTORS[key]()


def get_all_executors() -> List[BaseExecutor]:
    return [cls() for cls in _EXECUTORS.values()]
