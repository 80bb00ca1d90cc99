"""Database connection helper for the Supabase Postgres database."""

import os

import asyncpg


def database_url() -> str | None:
    return os.environ.get("SUPABASE_DB_URL") or os.environ.get("DATABASE_URL")


def is_database_configured() -> bool:
    return bool(database_url())


async def get_db_connection():
    """Get database connection."""
    return await asyncpg.connect(database_url())
