"""
Routine storage interface and backend selection.

Two backends implement the same operations:
- turso: libSQL edge database, rows scoped per user
- supabase: managed Postgres reached through asyncpg
"""

import os
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from app.libs.models import Category, CompletionRecord, CompletionStatus, Goal, Routine, StreakInfo


class StorageNotConfiguredError(Exception):
    """Selected backend has no connection settings"""


class RoutineStorage(ABC):
    """CRUD over categories, goals, routines and completions."""

    # Categories
    @abstractmethod
    async def get_categories(self) -> List[Category]: ...

    @abstractmethod
    async def get_category_by_id(self, category_id: str) -> Optional[Category]: ...

    @abstractmethod
    async def create_category(self, data: Dict[str, Any]) -> Category: ...

    @abstractmethod
    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Optional[Category]: ...

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool: ...

    # Goals
    @abstractmethod
    async def get_goals(self, category_id: Optional[str] = None) -> List[Goal]: ...

    @abstractmethod
    async def get_goal_by_id(self, goal_id: str) -> Optional[Goal]: ...

    @abstractmethod
    async def create_goal(self, data: Dict[str, Any]) -> Goal: ...

    @abstractmethod
    async def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Optional[Goal]: ...

    @abstractmethod
    async def delete_goal(self, goal_id: str) -> bool: ...

    # Routines
    @abstractmethod
    async def get_routines(self, goal_id: Optional[str] = None) -> List[Routine]: ...

    @abstractmethod
    async def get_routine_by_id(self, routine_id: str) -> Optional[Routine]: ...

    @abstractmethod
    async def create_routine(self, data: Dict[str, Any]) -> Routine: ...

    @abstractmethod
    async def update_routine(self, routine_id: str, updates: Dict[str, Any]) -> Optional[Routine]: ...

    @abstractmethod
    async def delete_routine(self, routine_id: str) -> bool: ...

    # Completions
    @abstractmethod
    async def get_completions(self) -> List[CompletionRecord]: ...

    @abstractmethod
    async def get_completions_by_routine(self, routine_id: str) -> List[CompletionRecord]: ...

    @abstractmethod
    async def get_completions_by_date(self, scheduled_date: str) -> List[CompletionRecord]: ...

    @abstractmethod
    async def get_completions_in_range(self, start_date: str, end_date: str) -> List[CompletionRecord]: ...

    @abstractmethod
    async def get_completion_by_routine_and_date(
        self, routine_id: str, scheduled_date: str
    ) -> Optional[CompletionRecord]: ...

    @abstractmethod
    async def create_completion(self, data: Dict[str, Any]) -> CompletionRecord: ...

    @abstractmethod
    async def update_completion(self, completion_id: str, updates: Dict[str, Any]) -> Optional[CompletionRecord]: ...

    @abstractmethod
    async def delete_completion(self, completion_id: str) -> bool: ...

    @abstractmethod
    async def delete_completions_by_routine(self, routine_id: str) -> None: ...

    async def close(self) -> None:
        """Release connections held by the backend."""

    async def migrate_data_to_user(self) -> Dict[str, int]:
        """Claim ownerless rows for the current user; a no-op for unscoped backends."""
        return {"migrated": 0}

    async def calculate_streak(self, routine_id: str) -> StreakInfo:
        return calculate_streak(await self.get_completions_by_routine(routine_id))


def _parse_day(value: str) -> date:
    return date.fromisoformat(value[:10])


def calculate_streak(completions: List[CompletionRecord], today: Optional[date] = None) -> StreakInfo:
    """
    Streak statistics over completed records.

    The current streak only counts when the latest completion is today or
    yesterday; both streaks count runs of consecutive calendar days.
    """
    days = sorted(
        {_parse_day(c.scheduled_date) for c in completions if c.status == CompletionStatus.COMPLETED},
        reverse=True,
    )
    total = sum(1 for c in completions if c.status == CompletionStatus.COMPLETED)
    if not days:
        return StreakInfo(current_streak=0, longest_streak=0, total_completions=0)

    today = today or datetime.now(timezone.utc).date()

    current = 0
    if (today - days[0]).days <= 1:
        current = 1
        for prev, curr in zip(days, days[1:]):
            if (prev - curr).days != 1:
                break
            current += 1

    longest = run = 1
    for prev, curr in zip(days, days[1:]):
        if (prev - curr).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    return StreakInfo(
        current_streak=current,
        longest_streak=max(longest, current),
        last_completed_date=days[0].isoformat(),
        total_completions=total,
    )


def get_storage(user_id: str) -> RoutineStorage:
    """Storage for the backend named by STORAGE_BACKEND (turso by default)."""
    backend = os.environ.get("STORAGE_BACKEND", "turso").lower()

    if backend == "supabase":
        from app.libs.database import is_database_configured
        from app.libs.supabase_storage import SupabaseStorage

        if not is_database_configured():
            raise StorageNotConfiguredError("Supabase not configured. Set SUPABASE_DB_URL or DATABASE_URL.")
        return SupabaseStorage()

    if backend == "turso":
        from app.libs.turso_client import create_turso_client, is_turso_configured
        from app.libs.turso_storage import TursoStorage

        if not is_turso_configured():
            raise StorageNotConfiguredError("Turso not configured. Set TURSO_DATABASE_URL.")
        return TursoStorage(create_turso_client(), user_id)

    raise StorageNotConfiguredError(f"Unknown storage backend: {backend}")
