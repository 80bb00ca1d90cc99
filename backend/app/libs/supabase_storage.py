"""
Routine storage on Supabase Postgres.

Uses asyncpg directly against the project database with the connection URL.
Queries are not filtered by user, and a direct connection bypasses
row-level security: every caller reads and writes the same rows. JSON columns
are jsonb. The Supabase schema has no `tasks` column on routines and no `notes`
column on completions; those fields are not persisted here.
"""

import json
import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.libs.database import get_db_connection
from app.libs.models import Category, CompletionRecord, Goal, Routine, utc_now_iso
from app.libs.storage import RoutineStorage

logger = logging.getLogger(__name__)


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _json(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed jsonb value: %.80s", value)
            return default
    return value


def _as_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value[:10]) if value else None


def _as_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value.replace("Z", "+00:00")) if value else None


def _affected(status: str) -> int:
    """Row count from an asyncpg status string such as 'DELETE 1'."""
    try:
        return int(status.split()[-1])
    except (ValueError, IndexError, AttributeError):
        return 0


def to_category(row: Any) -> Category:
    return Category(
        id=str(row["id"]),
        title=row["title"],
        icon=row["icon"] or "Folder",
        color_pattern=row["color_pattern"] or "rainbow",
        order=row["order"] or 0,
        created_at=_iso(row["created_at"]) or utc_now_iso(),
        updated_at=_iso(row["updated_at"]) or utc_now_iso(),
    )


def to_goal(row: Any) -> Goal:
    return Goal(
        id=str(row["id"]),
        title=row["title"],
        description=row["description"] or "",
        icon=row["icon"] or "🎯",
        color=row["color"] or "",
        category_id=str(row["category_id"]) if row["category_id"] else None,
        order=row["order"] or 0,
        created_at=_iso(row["created_at"]) or utc_now_iso(),
        updated_at=_iso(row["updated_at"]) or utc_now_iso(),
    )


def to_routine(row: Any) -> Routine:
    return Routine(
        id=str(row["id"]),
        title=row["title"],
        goal_id=str(row["goal_id"]) if row["goal_id"] else None,
        blocks=_json(row["blocks"], []),
        sources=_json(row["sources"], []),
        status=row["status"] or "active",
        integration=_json(row["integration"], {"enabled": False}),
        schedule=_json(row["schedule"], None),
        created_at=_iso(row["created_at"]) or utc_now_iso(),
        updated_at=_iso(row["updated_at"]) or utc_now_iso(),
    )


def to_completion(row: Any) -> CompletionRecord:
    return CompletionRecord(
        id=str(row["id"]),
        routine_id=str(row["routine_id"]),
        scheduled_date=_iso(row["scheduled_date"]),
        completed_at=_iso(row["completed_at"]),
        status=row["status"] or "pending",
    )


class SupabaseStorage(RoutineStorage):
    """One short-lived connection per operation."""

    async def _fetch(self, query: str, *args: Any) -> List[Any]:
        conn = await get_db_connection()
        try:
            return await conn.fetch(query, *args)
        finally:
            await conn.close()

    async def _fetchrow(self, query: str, *args: Any) -> Optional[Any]:
        conn = await get_db_connection()
        try:
            return await conn.fetchrow(query, *args)
        finally:
            await conn.close()

    async def _execute(self, query: str, *args: Any) -> int:
        conn = await get_db_connection()
        try:
            return _affected(await conn.execute(query, *args))
        finally:
            await conn.close()

    async def _next_order(self, table: str) -> int:
        row = await self._fetchrow(f'SELECT MAX("order") AS max_order FROM {table}')
        max_order = row["max_order"] if row else None
        return (max_order if max_order is not None else -1) + 1

    # =========================================================================
    # Categories
    # =========================================================================

    async def get_categories(self) -> List[Category]:
        rows = await self._fetch('SELECT * FROM categories ORDER BY "order"')
        return [to_category(row) for row in rows]

    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        row = await self._fetchrow("SELECT * FROM categories WHERE id = $1", category_id)
        return to_category(row) if row else None

    async def create_category(self, data: Dict[str, Any]) -> Category:
        now = utc_now_iso()
        category = Category.model_validate({
            **data,
            "id": str(uuid.uuid4()),
            "order": await self._next_order("categories"),
            "createdAt": now,
            "updatedAt": now,
        })
        await self._execute(
            """
            INSERT INTO categories (id, title, icon, color_pattern, "order")
            VALUES ($1, $2, $3, $4, $5)
            """,
            category.id, category.title, category.icon, category.color_pattern.value, category.order,
        )
        return category

    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Optional[Category]:
        existing = await self.get_category_by_id(category_id)
        if not existing:
            return None

        updated = existing.with_updates({**updates, "updatedAt": utc_now_iso()})
        await self._execute(
            """
            UPDATE categories
            SET title = $2, icon = $3, color_pattern = $4, "order" = $5, updated_at = NOW()
            WHERE id = $1
            """,
            category_id, updated.title, updated.icon, updated.color_pattern.value, updated.order,
        )
        return updated

    async def delete_category(self, category_id: str) -> bool:
        return await self._execute("DELETE FROM categories WHERE id = $1", category_id) > 0

    # =========================================================================
    # Goals
    # =========================================================================

    async def get_goals(self, category_id: Optional[str] = None) -> List[Goal]:
        if category_id:
            rows = await self._fetch('SELECT * FROM goals WHERE category_id = $1 ORDER BY "order"', category_id)
        else:
            rows = await self._fetch('SELECT * FROM goals ORDER BY "order"')
        return [to_goal(row) for row in rows]

    async def get_goal_by_id(self, goal_id: str) -> Optional[Goal]:
        row = await self._fetchrow("SELECT * FROM goals WHERE id = $1", goal_id)
        return to_goal(row) if row else None

    async def create_goal(self, data: Dict[str, Any]) -> Goal:
        now = utc_now_iso()
        goal = Goal.model_validate({
            **data,
            "id": str(uuid.uuid4()),
            "order": await self._next_order("goals"),
            "createdAt": now,
            "updatedAt": now,
        })
        await self._execute(
            """
            INSERT INTO goals (id, title, description, icon, color, category_id, "order")
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            goal.id, goal.title, goal.description, goal.icon, goal.color, goal.category_id, goal.order,
        )
        return goal

    async def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Optional[Goal]:
        existing = await self.get_goal_by_id(goal_id)
        if not existing:
            return None

        updated = existing.with_updates({**updates, "updatedAt": utc_now_iso()})
        await self._execute(
            """
            UPDATE goals
            SET title = $2, description = $3, icon = $4, color = $5, category_id = $6, "order" = $7,
                updated_at = NOW()
            WHERE id = $1
            """,
            goal_id, updated.title, updated.description, updated.icon, updated.color,
            updated.category_id, updated.order,
        )
        return updated

    async def delete_goal(self, goal_id: str) -> bool:
        return await self._execute("DELETE FROM goals WHERE id = $1", goal_id) > 0

    # =========================================================================
    # Routines
    # =========================================================================

    async def get_routines(self, goal_id: Optional[str] = None) -> List[Routine]:
        if goal_id:
            rows = await self._fetch("SELECT * FROM routines WHERE goal_id = $1", goal_id)
        else:
            rows = await self._fetch("SELECT * FROM routines")
        return [to_routine(row) for row in rows]

    async def get_routine_by_id(self, routine_id: str) -> Optional[Routine]:
        row = await self._fetchrow("SELECT * FROM routines WHERE id = $1", routine_id)
        return to_routine(row) if row else None

    async def create_routine(self, data: Dict[str, Any]) -> Routine:
        now = utc_now_iso()
        routine = Routine.model_validate({**data, "id": str(uuid.uuid4()), "createdAt": now, "updatedAt": now})
        payload = routine.to_json()
        await self._execute(
            """
            INSERT INTO routines (id, title, goal_id, blocks, sources, status, integration, schedule)
            VALUES ($1, $2, $3, $4::jsonb, $5::jsonb, $6, $7::jsonb, $8::jsonb)
            """,
            routine.id, routine.title, routine.goal_id,
            json.dumps(payload.get("blocks", [])),
            json.dumps(payload.get("sources", [])),
            routine.status.value,
            json.dumps(payload.get("integration", {"enabled": False})),
            json.dumps(routine.schedule) if routine.schedule else None,
        )
        return routine

    async def update_routine(self, routine_id: str, updates: Dict[str, Any]) -> Optional[Routine]:
        existing = await self.get_routine_by_id(routine_id)
        if not existing:
            return None

        updated = existing.with_updates({**updates, "updatedAt": utc_now_iso()})
        payload = updated.to_json()
        await self._execute(
            """
            UPDATE routines
            SET title = $2, goal_id = $3, blocks = $4::jsonb, sources = $5::jsonb, status = $6,
                integration = $7::jsonb, schedule = $8::jsonb, updated_at = NOW()
            WHERE id = $1
            """,
            routine_id, updated.title, updated.goal_id,
            json.dumps(payload.get("blocks", [])),
            json.dumps(payload.get("sources", [])),
            updated.status.value,
            json.dumps(payload.get("integration", {"enabled": False})),
            json.dumps(updated.schedule) if updated.schedule else None,
        )
        return updated

    async def delete_routine(self, routine_id: str) -> bool:
        return await self._execute("DELETE FROM routines WHERE id = $1", routine_id) > 0

    # =========================================================================
    # Completions
    # =========================================================================

    async def get_completions(self) -> List[CompletionRecord]:
        rows = await self._fetch("SELECT * FROM completions")
        return [to_completion(row) for row in rows]

    async def get_completions_by_routine(self, routine_id: str) -> List[CompletionRecord]:
        rows = await self._fetch("SELECT * FROM completions WHERE routine_id = $1", routine_id)
        return [to_completion(row) for row in rows]

    async def get_completions_by_date(self, scheduled_date: str) -> List[CompletionRecord]:
        rows = await self._fetch("SELECT * FROM completions WHERE scheduled_date = $1", _as_date(scheduled_date))
        return [to_completion(row) for row in rows]

    async def get_completions_in_range(self, start_date: str, end_date: str) -> List[CompletionRecord]:
        rows = await self._fetch(
            "SELECT * FROM completions WHERE scheduled_date >= $1 AND scheduled_date <= $2",
            _as_date(start_date), _as_date(end_date),
        )
        return [to_completion(row) for row in rows]

    async def get_completion_by_routine_and_date(self, routine_id: str, scheduled_date: str) -> Optional[CompletionRecord]:
        row = await self._fetchrow(
            "SELECT * FROM completions WHERE routine_id = $1 AND scheduled_date = $2",
            routine_id, _as_date(scheduled_date),
        )
        return to_completion(row) if row else None

    async def create_completion(self, data: Dict[str, Any]) -> CompletionRecord:
        completion = CompletionRecord.model_validate({**data, "id": str(uuid.uuid4())})
        await self._execute(
            """
            INSERT INTO completions (id, routine_id, scheduled_date, completed_at, status)
            VALUES ($1, $2, $3, $4, $5)
            """,
            completion.id, completion.routine_id, _as_date(completion.scheduled_date),
            _as_datetime(completion.completed_at), completion.status.value,
        )
        return completion

    async def update_completion(self, completion_id: str, updates: Dict[str, Any]) -> Optional[CompletionRecord]:
        row = await self._fetchrow("SELECT * FROM completions WHERE id = $1", completion_id)
        if not row:
            return None

        updated = to_completion(row).with_updates(updates)
        await self._execute(
            "UPDATE completions SET completed_at = $2, status = $3 WHERE id = $1",
            completion_id, _as_datetime(updated.completed_at), updated.status.value,
        )
        return updated

    async def delete_completion(self, completion_id: str) -> bool:
        return await self._execute("DELETE FROM completions WHERE id = $1", completion_id) > 0

    async def delete_completions_by_routine(self, routine_id: str) -> None:
        await self._execute("DELETE FROM completions WHERE routine_id = $1", routine_id)
