"""Turso (libSQL) connection helper."""

import os
from typing import Any, Dict, List, Optional

import libsql_client


def is_turso_configured() -> bool:
    return bool(os.environ.get("TURSO_DATABASE_URL"))


def create_turso_client(url: Optional[str] = None, auth_token: Optional[str] = None) -> libsql_client.Client:
    """Create an async libSQL client from arguments or TURSO_DATABASE_URL / TURSO_AUTH_TOKEN."""
    url = url or os.environ.get("TURSO_DATABASE_URL")
    if not url:
        raise RuntimeError("Turso not configured. Please set TURSO_DATABASE_URL environment variable.")
    return libsql_client.create_client(url, auth_token=auth_token or os.environ.get("TURSO_AUTH_TOKEN"))


def rows_as_dicts(result: Any) -> List[Dict[str, Any]]:
    """Turn a libSQL ResultSet into plain dicts keyed by column name."""
    columns = list(result.columns)
    return [dict(zip(columns, row)) for row in result.rows]
