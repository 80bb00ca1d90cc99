"""Routine storage on Turso (libSQL). JSON columns are stored as TEXT."""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from app.libs.models import Category, CompletionRecord, Goal, Routine, utc_now_iso
from app.libs.storage import RoutineStorage
from app.libs.turso_client import rows_as_dicts
from app.libs.turso_schema import initialize_schema, migrate_data_to_user

logger = logging.getLogger(__name__)


def _loads(value: Any, default: Any) -> Any:
    if value in (None, ""):
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON column value: %.80s", value)
        return default


def to_category(row: Dict[str, Any]) -> Category:
    return Category(
        id=row["id"],
        title=row["title"],
        icon=row.get("icon") or "Folder",
        color_pattern=row.get("color_pattern") or "rainbow",
        order=row.get("order") or 0,
        created_at=row.get("created_at") or utc_now_iso(),
        updated_at=row.get("updated_at") or utc_now_iso(),
    )


def to_goal(row: Dict[str, Any]) -> Goal:
    return Goal(
        id=row["id"],
        title=row["title"],
        description=row.get("description") or "",
        icon=row.get("icon") or "🎯",
        color=row.get("color") or "",
        category_id=row.get("category_id"),
        order=row.get("order") or 0,
        created_at=row.get("created_at") or utc_now_iso(),
        updated_at=row.get("updated_at") or utc_now_iso(),
    )


def to_routine(row: Dict[str, Any]) -> Routine:
    return Routine(
        id=row["id"],
        title=row["title"],
        goal_id=row.get("goal_id"),
        blocks=_loads(row.get("blocks"), []),
        sources=_loads(row.get("sources"), []),
        tasks=_loads(row.get("tasks"), []),
        status=row.get("status") or "active",
        integration=_loads(row.get("integration"), {"enabled": False}),
        schedule=_loads(row.get("schedule"), None),
        created_at=row.get("created_at") or utc_now_iso(),
        updated_at=row.get("updated_at") or utc_now_iso(),
    )


def to_completion(row: Dict[str, Any]) -> CompletionRecord:
    return CompletionRecord(
        id=row["id"],
        routine_id=row["routine_id"],
        scheduled_date=row["scheduled_date"],
        completed_at=row.get("completed_at"),
        status=row.get("status") or "pending",
        notes=row.get("notes"),
    )


def _routine_columns(routine: Routine) -> List[Any]:
    data = routine.to_json()
    return [
        routine.title,
        routine.goal_id,
        json.dumps(data.get("blocks", []), ensure_ascii=False),
        json.dumps(data.get("sources", []), ensure_ascii=False),
        json.dumps(data.get("tasks", []), ensure_ascii=False),
        routine.status.value,
        json.dumps(data.get("integration", {"enabled": False}), ensure_ascii=False),
        json.dumps(routine.schedule, ensure_ascii=False) if routine.schedule else None,
    ]


class TursoStorage(RoutineStorage):
    """Every query is filtered by the owning user."""

    def __init__(self, client: Any, user_id: str):
        self.client = client
        self.user_id = user_id
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await initialize_schema(self.client)
            self._initialized = True

    async def _fetch(self, sql: str, args: List[Any]) -> List[Dict[str, Any]]:
        await self._ensure_initialized()
        return rows_as_dicts(await self.client.execute(sql, args))

    async def _execute(self, sql: str, args: List[Any]) -> int:
        await self._ensure_initialized()
        result = await self.client.execute(sql, args)
        return result.rows_affected

    async def _next_order(self, table: str) -> int:
        rows = await self._fetch(f'SELECT MAX("order") AS max_order FROM {table} WHERE user_id = ?', [self.user_id])
        max_order = rows[0].get("max_order") if rows else None
        return (max_order if max_order is not None else -1) + 1

    async def close(self) -> None:
        await self.client.close()

    async def migrate_data_to_user(self) -> Dict[str, int]:
        await self._ensure_initialized()
        return await migrate_data_to_user(self.client, self.user_id)

    # =========================================================================
    # Categories
    # =========================================================================

    async def get_categories(self) -> List[Category]:
        rows = await self._fetch('SELECT * FROM categories WHERE user_id = ? ORDER BY "order"', [self.user_id])
        return [to_category(row) for row in rows]

    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        rows = await self._fetch("SELECT * FROM categories WHERE id = ? AND user_id = ?", [category_id, self.user_id])
        return to_category(rows[0]) if rows else None

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
            """INSERT INTO categories (id, user_id, title, icon, color_pattern, "order", created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            [category.id, self.user_id, category.title, category.icon, category.color_pattern.value,
             category.order, now, now],
        )
        return category

    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Optional[Category]:
        existing = await self.get_category_by_id(category_id)
        if not existing:
            return None

        now = utc_now_iso()
        updated = existing.with_updates({**updates, "updatedAt": now})
        await self._execute(
            """UPDATE categories SET title = ?, icon = ?, color_pattern = ?, "order" = ?, updated_at = ?
               WHERE id = ? AND user_id = ?""",
            [updated.title, updated.icon, updated.color_pattern.value, updated.order, now, category_id, self.user_id],
        )
        return updated

    async def delete_category(self, category_id: str) -> bool:
        affected = await self._execute("DELETE FROM categories WHERE id = ? AND user_id = ?", [category_id, self.user_id])
        return affected > 0

    # =========================================================================
    # Goals
    # =========================================================================

    async def get_goals(self, category_id: Optional[str] = None) -> List[Goal]:
        if category_id:
            rows = await self._fetch(
                'SELECT * FROM goals WHERE category_id = ? AND user_id = ? ORDER BY "order"',
                [category_id, self.user_id],
            )
        else:
            rows = await self._fetch('SELECT * FROM goals WHERE user_id = ? ORDER BY "order"', [self.user_id])
        return [to_goal(row) for row in rows]

    async def get_goal_by_id(self, goal_id: str) -> Optional[Goal]:
        rows = await self._fetch("SELECT * FROM goals WHERE id = ? AND user_id = ?", [goal_id, self.user_id])
        return to_goal(rows[0]) if rows else None

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
            """INSERT INTO goals (id, user_id, title, description, icon, color, category_id, "order", created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [goal.id, self.user_id, goal.title, goal.description, goal.icon, goal.color, goal.category_id,
             goal.order, now, now],
        )
        return goal

    async def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Optional[Goal]:
        existing = await self.get_goal_by_id(goal_id)
        if not existing:
            return None

        now = utc_now_iso()
        updated = existing.with_updates({**updates, "updatedAt": now})
        await self._execute(
            """UPDATE goals SET title = ?, description = ?, icon = ?, color = ?, category_id = ?, "order" = ?, updated_at = ?
               WHERE id = ? AND user_id = ?""",
            [updated.title, updated.description, updated.icon, updated.color, updated.category_id,
             updated.order, now, goal_id, self.user_id],
        )
        return updated

    async def delete_goal(self, goal_id: str) -> bool:
        affected = await self._execute("DELETE FROM goals WHERE id = ? AND user_id = ?", [goal_id, self.user_id])
        return affected > 0

    # =========================================================================
    # Routines
    # =========================================================================

    async def get_routines(self, goal_id: Optional[str] = None) -> List[Routine]:
        if goal_id:
            rows = await self._fetch("SELECT * FROM routines WHERE goal_id = ? AND user_id = ?", [goal_id, self.user_id])
        else:
            rows = await self._fetch("SELECT * FROM routines WHERE user_id = ?", [self.user_id])
        return [to_routine(row) for row in rows]

    async def get_routine_by_id(self, routine_id: str) -> Optional[Routine]:
        rows = await self._fetch("SELECT * FROM routines WHERE id = ? AND user_id = ?", [routine_id, self.user_id])
        return to_routine(rows[0]) if rows else None

    async def create_routine(self, data: Dict[str, Any]) -> Routine:
        now = utc_now_iso()
        routine = Routine.model_validate({**data, "id": str(uuid.uuid4()), "createdAt": now, "updatedAt": now})
        await self._execute(
            """INSERT INTO routines (title, goal_id, blocks, sources, tasks, status, integration, schedule,
                                     id, user_id, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [*_routine_columns(routine), routine.id, self.user_id, now, now],
        )
        return routine

    async def update_routine(self, routine_id: str, updates: Dict[str, Any]) -> Optional[Routine]:
        existing = await self.get_routine_by_id(routine_id)
        if not existing:
            return None

        now = utc_now_iso()
        updated = existing.with_updates({**updates, "updatedAt": now})
        await self._execute(
            """UPDATE routines SET title = ?, goal_id = ?, blocks = ?, sources = ?, tasks = ?, status = ?,
                                  integration = ?, schedule = ?, updated_at = ?
               WHERE id = ? AND user_id = ?""",
            [*_routine_columns(updated), now, routine_id, self.user_id],
        )
        return updated

    async def delete_routine(self, routine_id: str) -> bool:
        affected = await self._execute("DELETE FROM routines WHERE id = ? AND user_id = ?", [routine_id, self.user_id])
        return affected > 0

    # =========================================================================
    # Completions
    # =========================================================================

    async def get_completions(self) -> List[CompletionRecord]:
        rows = await self._fetch("SELECT * FROM completions WHERE user_id = ?", [self.user_id])
        return [to_completion(row) for row in rows]

    async def get_completions_by_routine(self, routine_id: str) -> List[CompletionRecord]:
        rows = await self._fetch(
            "SELECT * FROM completions WHERE routine_id = ? AND user_id = ?", [routine_id, self.user_id]
        )
        return [to_completion(row) for row in rows]

    async def get_completions_by_date(self, scheduled_date: str) -> List[CompletionRecord]:
        rows = await self._fetch(
            "SELECT * FROM completions WHERE scheduled_date = ? AND user_id = ?", [scheduled_date, self.user_id]
        )
        return [to_completion(row) for row in rows]

    async def get_completions_in_range(self, start_date: str, end_date: str) -> List[CompletionRecord]:
        rows = await self._fetch(
            "SELECT * FROM completions WHERE scheduled_date >= ? AND scheduled_date <= ? AND user_id = ?",
            [start_date, end_date, self.user_id],
        )
        return [to_completion(row) for row in rows]

    async def get_completion_by_routine_and_date(self, routine_id: str, scheduled_date: str) -> Optional[CompletionRecord]:
        rows = await self._fetch(
            "SELECT * FROM completions WHERE routine_id = ? AND scheduled_date = ? AND user_id = ?",
            [routine_id, scheduled_date, self.user_id],
        )
        return to_completion(rows[0]) if rows else None

    async def create_completion(self, data: Dict[str, Any]) -> CompletionRecord:
        completion = CompletionRecord.model_validate({**data, "id": str(uuid.uuid4())})
        await self._execute(
            """INSERT INTO completions (id, user_id, routine_id, scheduled_date, completed_at, status, notes, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            [completion.id, self.user_id, completion.routine_id, completion.scheduled_date,
             completion.completed_at, completion.status.value, completion.notes, utc_now_iso()],
        )
        return completion

    async def update_completion(self, completion_id: str, updates: Dict[str, Any]) -> Optional[CompletionRecord]:
        rows = await self._fetch("SELECT * FROM completions WHERE id = ? AND user_id = ?", [completion_id, self.user_id])
        if not rows:
            return None

        updated = to_completion(rows[0]).with_updates(updates)
        await self._execute(
            "UPDATE completions SET completed_at = ?, status = ?, notes = ? WHERE id = ? AND user_id = ?",
            [updated.completed_at, updated.status.value, updated.notes, completion_id, self.user_id],
        )
        return updated

    async def delete_completion(self, completion_id: str) -> bool:
        affected = await self._execute("DELETE FROM completions WHERE id = ? AND user_id = ?", [completion_id, self.user_id])
        return affected > 0

    async def delete_completions_by_routine(self, routine_id: str) -> None:
        await self._execute("DELETE FROM completions WHERE routine_id = ? AND user_id = ?", [routine_id, self.user_id])
