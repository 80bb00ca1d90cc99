import os
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DEFAULT_USER_ID", "test-user")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.libs.models import (  # noqa: E402
    Category,
    CompletionRecord,
    ExecutorConfig,
    Goal,
    Routine,
    RoutineIntegration,
    utc_now_iso,
)
from app.libs.storage import RoutineStorage  # noqa: E402
from app.main import create_app  # noqa: E402


class InMemoryStorage(RoutineStorage):
    """Dict-backed storage for route tests."""

    def __init__(self):
        self.categories: Dict[str, Category] = {}
        self.goals: Dict[str, Goal] = {}
        self.routines: Dict[str, Routine] = {}
        self.completions: Dict[str, CompletionRecord] = {}
        self.closed = 0

    async def close(self) -> None:
        self.closed += 1

    # Categories
    async def get_categories(self) -> List[Category]:
        return sorted(self.categories.values(), key=lambda c: c.order)

    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        return self.categories.get(category_id)

    async def create_category(self, data: Dict[str, Any]) -> Category:
        category = Category.model_validate({**data, "id": str(uuid.uuid4()), "order": len(self.categories)})
        self.categories[category.id] = category
        return category

    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Optional[Category]:
        if category_id not in self.categories:
            return None
        self.categories[category_id] = self.categories[category_id].with_updates(updates)
        return self.categories[category_id]

    async def delete_category(self, category_id: str) -> bool:
        return self.categories.pop(category_id, None) is not None

    # Goals
    async def get_goals(self, category_id: Optional[str] = None) -> List[Goal]:
        return [g for g in self.goals.values() if category_id is None or g.category_id == category_id]

    async def get_goal_by_id(self, goal_id: str) -> Optional[Goal]:
        return self.goals.get(goal_id)

    async def create_goal(self, data: Dict[str, Any]) -> Goal:
        goal = Goal.model_validate({**data, "id": str(uuid.uuid4()), "order": len(self.goals)})
        self.goals[goal.id] = goal
        return goal

    async def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Optional[Goal]:
        if goal_id not in self.goals:
            return None
        self.goals[goal_id] = self.goals[goal_id].with_updates(updates)
        return self.goals[goal_id]

    async def delete_goal(self, goal_id: str) -> bool:
        return self.goals.pop(goal_id, None) is not None

    # Routines
    async def get_routines(self, goal_id: Optional[str] = None) -> List[Routine]:
        return [r for r in self.routines.values() if goal_id is None or r.goal_id == goal_id]

    async def get_routine_by_id(self, routine_id: str) -> Optional[Routine]:
        return self.routines.get(routine_id)

    async def create_routine(self, data: Dict[str, Any]) -> Routine:
        routine = Routine.model_validate({**data, "id": str(uuid.uuid4())})
        self.routines[routine.id] = routine
        return routine

    async def update_routine(self, routine_id: str, updates: Dict[str, Any]) -> Optional[Routine]:
        if routine_id not in self.routines:
            return None
        self.routines[routine_id] = self.routines[routine_id].with_updates({**updates, "updatedAt": utc_now_iso()})
        return self.routines[routine_id]

    async def delete_routine(self, routine_id: str) -> bool:
        return self.routines.pop(routine_id, None) is not None

    # Completions
    async def get_completions(self) -> List[CompletionRecord]:
        return list(self.completions.values())

    async def get_completions_by_routine(self, routine_id: str) -> List[CompletionRecord]:
        return [c for c in self.completions.values() if c.routine_id == routine_id]

    async def get_completions_by_date(self, scheduled_date: str) -> List[CompletionRecord]:
        return [c for c in self.completions.values() if c.scheduled_date == scheduled_date]

    async def get_completions_in_range(self, start_date: str, end_date: str) -> List[CompletionRecord]:
        return [c for c in self.completions.values() if start_date <= c.scheduled_date <= end_date]

    async def get_completion_by_routine_and_date(self, routine_id: str, scheduled_date: str) -> Optional[CompletionRecord]:
        matches = [c for c in await self.get_completions_by_date(scheduled_date) if c.routine_id == routine_id]
        return matches[0] if matches else None

    async def create_completion(self, data: Dict[str, Any]) -> CompletionRecord:
        completion = CompletionRecord.model_validate({**data, "id": str(uuid.uuid4())})
        self.completions[completion.id] = completion
        return completion

    async def update_completion(self, completion_id: str, updates: Dict[str, Any]) -> Optional[CompletionRecord]:
        if completion_id not in self.completions:
            return None
        self.completions[completion_id] = self.completions[completion_id].with_updates(updates)
        return self.completions[completion_id]

    async def delete_completion(self, completion_id: str) -> bool:
        return self.completions.pop(completion_id, None) is not None

    async def delete_completions_by_routine(self, routine_id: str) -> None:
        self.completions = {k: c for k, c in self.completions.items() if c.routine_id != routine_id}


def make_routine(
    routine_id: str = "r1",
    enabled: bool = True,
    executor_type: str = "mcp",
    config: Optional[Dict[str, Any]] = None,
    blocks: Optional[List[Dict[str, Any]]] = None,
) -> Routine:
    return Routine(
        id=routine_id,
        title="Morning review",
        blocks=blocks or [],
        integration=RoutineIntegration(
            enabled=enabled,
            executor_type=executor_type,
            config=ExecutorConfig.model_validate(config or {"mcpServer": "io.github/test", "mcpTools": ["search"]}),
        ),
    )


class FakeResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code=200, json_data=None, text="", headers=None, reason="OK"):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.headers = headers or {}
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return self._json


class FakeLibsqlClient:
    """Records executed statements; answers from a list of (sql prefix, result) pairs."""

    def __init__(self, responses=None, has_user_id=True):
        self.responses = list(responses or [])
        self.has_user_id = has_user_id
        self.calls: List[SimpleNamespace] = []
        self.closed = False

    async def execute(self, sql, args=None):
        self.calls.append(SimpleNamespace(sql=" ".join(sql.split()), args=args))
        normalized = " ".join(sql.split())
        if normalized.startswith("PRAGMA table_info"):
            columns = [("id",), ("user_id",)] if self.has_user_id else [("id",), ("title",)]
            return result_set(["name"], columns)
        for prefix, result in self.responses:
            if normalized.startswith(prefix):
                return result
        return result_set([], [], rows_affected=0)

    async def close(self):
        self.closed = True


def result_set(columns, rows, rows_affected=0):
    return SimpleNamespace(columns=tuple(columns), rows=list(rows), rows_affected=rows_affected)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    return TestClient(app)
