"""
MCP Registry API

Proxy over the public MCP server registry:
- Search servers (paged by cursor)
- Look up a single server by name
- List registry categories and servers recommended for routines
"""

import logging
from typing import Optional

from fastapi import APIRouter

from app.libs.errors import InvalidRequestError, NotFoundError, UnexpectedError, error_response
from app.libs.mcp_registry import (
    MCP_CATEGORIES,
    RECOMMENDED_SERVERS,
    MCPRegistryError,
    get_mcp_server,
    search_mcp_servers,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["MCP Registry"])


def parse_limit(value: Optional[str]) -> Optional[int]:
    """Positive integer page size; None when not given, ValueError otherwise."""
    if value is None or value == "":
        return None
    limit = int(value)
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    return limit


@router.get("/mcp")
def list_mcp_servers(
    search: Optional[str] = None,
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    name: Optional[str] = None,
    category: Optional[str] = None,
):
    """
    Search the MCP registry, or fetch one server when `name` is given

    Returns {"success": true, "data": {"servers": [...], "cursor"?, "total"?}}
    or {"success": true, "data": server} for a name lookup.
    """
    if name:
        try:
            server = get_mcp_server(name)
        except Exception:
            logger.exception("MCP registry lookup for %s failed", name)
            return error_response(UnexpectedError("Failed to fetch MCP server"))
        if server is None:
            return error_response(NotFoundError("Server not found"))
        return {"success": True, "data": server}

    try:
        page_size = parse_limit(limit)
    except ValueError:
        return error_response(InvalidRequestError("limit must be a positive integer"))

    filters = {"search": search, "cursor": cursor}
    if page_size is not None:
        filters["limit"] = page_size
    if category:
        filters["category"] = category

    try:
        result = search_mcp_servers(**filters)
        return {"success": True, "data": result.to_json()}
    except MCPRegistryError as e:
        logger.error("MCP registry search failed: %s", e.message)
        return error_response(UnexpectedError("Failed to fetch MCP servers"))
    except Exception:
        logger.exception("MCP registry search failed")
        return error_response(UnexpectedError("Failed to fetch MCP servers"))


@router.get("/mcp/catalog")
def get_mcp_catalog():
    """Registry categories and the servers suggested for routine automation"""
    return {
        "success": True,
        "data": {
            "categories": list(MCP_CATEGORIES),
            "recommended": [
                {"name": s["name"], "description": s["description"], "useCase": s["use_case"]}
                for s in RECOMMENDED_SERVERS
            ],
        },
    }
