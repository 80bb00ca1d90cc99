"""
MCP Registry Client

Read-only access to the public Model Context Protocol server registry.
"""

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from app.libs.models import MCPRegistryResponse

logger = logging.getLogger(__name__)

MCP_REGISTRY_BASE_URL = os.environ.get("MCP_REGISTRY_URL", "https://registry.modelcontextprotocol.io/v0.1")
REQUEST_TIMEOUT = 15
DEFAULT_LIMIT = 20


class MCPRegistryError(Exception):
    """Registry answered with a non-OK status"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def search_mcp_servers(
    search: Optional[str] = None,
    limit: Optional[int] = DEFAULT_LIMIT,
    cursor: Optional[str] = None,
    category: Optional[str] = None,
) -> MCPRegistryResponse:
    """
    Search the registry.

    Args:
        search: Free-text query
        limit: Page size (defaults to 20)
        cursor: Opaque cursor from a previous page
        category: Registry category filter

    Returns:
        MCPRegistryResponse; `servers` is always a list
    """
    params: Dict[str, Any] = {}
    if search:
        params["search"] = search
    if limit:
        params["limit"] = limit
    if cursor:
        params["cursor"] = cursor
    if category:
        params["category"] = category

    response = requests.get(f"{MCP_REGISTRY_BASE_URL}/servers", params=params, timeout=REQUEST_TIMEOUT)

    if not response.ok:
        raise MCPRegistryError(
            f"Failed to fetch MCP servers: {response.status_code} {response.reason}",
            status_code=response.status_code,
        )

    data = response.json() or {}
    metadata = data.get("metadata") or {}
    return MCPRegistryResponse(
        servers=data.get("servers") or [],
        cursor=data.get("cursor") or metadata.get("next_cursor") or metadata.get("nextCursor"),
        total=data.get("total") if data.get("total") is not None else metadata.get("count"),
    )


def get_mcp_server(name: str) -> Optional[Dict[str, Any]]:
    """Fetch one server by name; None when it does not exist or the registry is unreachable."""
    try:
        response = requests.get(
            f"{MCP_REGISTRY_BASE_URL}/servers/{quote(name, safe='')}",
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("MCP registry lookup for %s failed: %s", name, e)
        return None

    if response.status_code == 404:
        return None
    if not response.ok:
        logger.warning("MCP registry returned %s for %s", response.status_code, name)
        return None

    try:
        return response.json()
    except ValueError:
        logger.warning("MCP registry returned a non-JSON body for %s", name)
        return None


def is_registry_reachable() -> bool:
    """True when the registry answers a minimal query."""
    try:
        response = requests.get(
            f"{MCP_REGISTRY_BASE_URL}/servers",
            params={"limit": 1},
            timeout=REQUEST_TIMEOUT,
        )
        return response.ok
    except requests.RequestException:
        return False


# Popular MCP server categories
MCP_CATEGORIES = (
    "productivity",
    "developer-tools",
    "media",
    "communication",
    "data",
    "ai-ml",
    "utilities",
)

# Recommended MCP servers for routine automation
RECOMMENDED_SERVERS = (
    {
        "name": "youtube",
        "description": "Search and fetch YouTube video information",
        "use_case": "Learning routines, content consumption",
    },
    {
        "name": "google-calendar",
        "description": "Manage Google Calendar events",
        "use_case": "Schedule management, time blocking",
    },
    {
        "name": "slack",
        "description": "Send and receive Slack messages",
        "use_case": "Team communication, notifications",
    },
    {
        "name": "notion",
        "description": "Interact with Notion databases and pages",
        "use_case": "Documentation, note-taking",
    },
    {
        "name": "github",
        "description": "GitHub repository operations",
        "use_case": "Development workflows, code management",
    },
)
