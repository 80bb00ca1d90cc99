"""Turso schema creation and per-user data migration."""

import logging
from typing import Any, Dict

from app.libs.turso_client import rows_as_dicts

logger = logging.getLogger(__name__)

TABLES = ("categories", "goals", "routines", "completions")

SCHEMA = """
CREATE TABLE IF NOT EXISTS categories (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  icon TEXT DEFAULT 'Folder',
  color_pattern TEXT DEFAULT 'rainbow',
  "order" INTEGER DEFAULT 0,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS goals (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  description TEXT DEFAULT '',
  icon TEXT DEFAULT '🎯',
  color TEXT DEFAULT '',
  category_id TEXT REFERENCES categories(id) ON DELETE CASCADE,
  "order" INTEGER DEFAULT 0,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS routines (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  goal_id TEXT REFERENCES goals(id) ON DELETE CASCADE,
  blocks TEXT DEFAULT '[]',
  sources TEXT DEFAULT '[]',
  tasks TEXT DEFAULT '[]',
  status TEXT DEFAULT 'active',
  integration TEXT DEFAULT '{"enabled":false}',
  schedule TEXT,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS completions (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  routine_id TEXT REFERENCES routines(id) ON DELETE CASCADE,
  scheduled_date TEXT NOT NULL,
  completed_at TEXT,
  status TEXT DEFAULT 'pending',
  notes TEXT,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def schema_statements() -> list[str]:
    return [s.strip() for s in SCHEMA.split(";") if s.strip()]


async def initialize_schema(client: Any) -> None:
    """Create tables if missing and add user_id to tables created before it existed."""
    for statement in schema_statements():
        await client.execute(statement)
    await migrate_add_user_id_columns(client)


async def migrate_add_user_id_columns(client: Any) -> None:
    for table in TABLES:
        result = await client.execute(f"PRAGMA table_info({table})")
        if not any(row.get("name") == "user_id" for row in rows_as_dicts(result)):
            logger.info("Adding user_id column to %s", table)
            await client.execute(f"ALTER TABLE {table} ADD COLUMN user_id TEXT")


async def migrate_data_to_user(client: Any, user_id: str) -> Dict[str, int]:
    """Assign every row without an owner to `user_id`."""
    migrated = 0
    for table in TABLES:
        result = await client.execute(
            f"UPDATE {table} SET user_id = ? WHERE user_id IS NULL OR user_id = ''",
            [user_id],
        )
        migrated += result.rows_affected
    logger.info("Migrated %d rows to user %s", migrated, user_id)
    return {"migrated": migrated}
