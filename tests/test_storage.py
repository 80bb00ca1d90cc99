import json
from datetime import date

import pytest

from app.libs import storage as storage_module
from app.libs.models import CompletionRecord
from app.libs.storage import StorageNotConfiguredError, calculate_streak, get_storage
from app.libs.turso_schema import TABLES, initialize_schema, migrate_data_to_user
from app.libs.turso_storage import TursoStorage, to_routine
from conftest import FakeLibsqlClient, result_set

TODAY = date(2024, 6, 10)


def completion(day, status="completed"):
    return CompletionRecord(id=f"c-{day}-{status}", routine_id="r1", scheduled_date=day, status=status)


# =============================================================================
# Streaks
# =============================================================================


def test_streak_counts_consecutive_days_up_to_today():
    records = [completion("2024-06-10"), completion("2024-06-09"), completion("2024-06-08"), completion("2024-06-05")]
    streak = calculate_streak(records, today=TODAY)
    assert streak.current_streak == 3
    assert streak.longest_streak == 3
    assert streak.last_completed_date == "2024-06-10"
    assert streak.total_completions == 4


def test_streak_survives_until_end_of_next_day():
    streak = calculate_streak([completion("2024-06-09")], today=TODAY)
    assert streak.current_streak == 1


def test_streak_broken_after_a_gap():
    records = [completion("2024-06-07"), completion("2024-06-06"), completion("2024-06-01")]
    streak = calculate_streak(records, today=TODAY)
    assert streak.current_streak == 0
    assert streak.longest_streak == 2


def test_streak_ignores_non_completed_records():
    records = [completion("2024-06-10", "skipped"), completion("2024-06-09", "pending"), completion("2024-06-08")]
    streak = calculate_streak(records, today=TODAY)
    assert streak.current_streak == 0
    assert streak.total_completions == 1
    assert calculate_streak([], today=TODAY).longest_streak == 0


# =============================================================================
# Backend selection
# =============================================================================


def test_get_storage_requires_configuration(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "turso")
    monkeypatch.delenv("TURSO_DATABASE_URL", raising=False)
    with pytest.raises(StorageNotConfiguredError):
        get_storage("u1")

    monkeypatch.setenv("STORAGE_BACKEND", "supabase")
    monkeypatch.delenv("SUPABASE_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(StorageNotConfiguredError):
        get_storage("u1")

    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    with pytest.raises(StorageNotConfiguredError):
        get_storage("u1")


def test_get_storage_builds_turso_backend(monkeypatch):
    fake = FakeLibsqlClient()
    monkeypatch.setenv("STORAGE_BACKEND", "turso")
    monkeypatch.setenv("TURSO_DATABASE_URL", "libsql://example.turso.io")
    monkeypatch.setattr("app.libs.turso_client.create_turso_client", lambda: fake)

    backend = get_storage("u1")
    assert isinstance(backend, TursoStorage)
    assert backend.client is fake
    assert backend.user_id == "u1"
    assert storage_module.RoutineStorage in type(backend).__mro__


# =============================================================================
# Turso
# =============================================================================


@pytest.mark.asyncio
async def test_initialize_schema_adds_missing_user_id():
    client = FakeLibsqlClient(has_user_id=False)
    await initialize_schema(client)

    statements = [call.sql for call in client.calls]
    assert any(s.startswith("CREATE TABLE IF NOT EXISTS categories") for s in statements)
    assert [s for s in statements if s.startswith("ALTER TABLE")] == [
        f"ALTER TABLE {table} ADD COLUMN user_id TEXT" for table in TABLES
    ]


@pytest.mark.asyncio
async def test_migrate_data_to_user_sums_rows():
    client = FakeLibsqlClient(responses=[("UPDATE", result_set([], [], rows_affected=2))])
    assert await migrate_data_to_user(client, "u1") == {"migrated": 2 * len(TABLES)}
    assert all(call.args == ["u1"] for call in client.calls)


@pytest.mark.asyncio
async def test_turso_queries_are_scoped_to_user():
    row = ("c1", "u1", "Health", "Heart", "cool", 0, "2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z")
    columns = ["id", "user_id", "title", "icon", "color_pattern", "order", "created_at", "updated_at"]
    client = FakeLibsqlClient(responses=[("SELECT * FROM categories", result_set(columns, [row]))])
    storage = TursoStorage(client, "u1")

    categories = await storage.get_categories()

    assert [(c.id, c.title, c.color_pattern.value) for c in categories] == [("c1", "Health", "cool")]
    select = [call for call in client.calls if call.sql.startswith("SELECT * FROM categories")][0]
    assert select.args == ["u1"]

    await storage.close()
    assert client.closed is True


@pytest.mark.asyncio
async def test_turso_create_category_uses_next_order():
    client = FakeLibsqlClient(responses=[("SELECT MAX", result_set(["max_order"], [(4,)]))])
    storage = TursoStorage(client, "u1")

    category = await storage.create_category({"title": "Work"})

    assert category.order == 5
    insert = [call for call in client.calls if call.sql.startswith("INSERT INTO categories")][0]
    assert insert.args[1:4] == ["u1", "Work", "Folder"]


@pytest.mark.asyncio
async def test_turso_update_routine_merges_fields():
    integration = {"enabled": True, "executorType": "cli", "config": {"cliCommand": "claude"}}
    columns = ["id", "title", "goal_id", "blocks", "sources", "tasks", "status", "integration", "schedule",
               "created_at", "updated_at"]
    row = ("r1", "Stretch", None, "[]", "[]", "[]", "active", json.dumps(integration), None,
           "2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z")
    client = FakeLibsqlClient(responses=[
        ("SELECT * FROM routines", result_set(columns, [row])),
        ("UPDATE routines", result_set([], [], rows_affected=1)),
    ])
    storage = TursoStorage(client, "u1")

    updated = await storage.update_routine("r1", {"title": "Long stretch", "createdAt": "1999-01-01"})

    assert updated.title == "Long stretch"
    assert updated.created_at == "2024-01-01T00:00:00Z"
    assert updated.updated_at != "2024-01-01T00:00:00Z"
    assert updated.integration.config.cli_command == "claude"

    assert await storage.update_routine("r1", {}) is not None
    missing = TursoStorage(FakeLibsqlClient(), "u1")
    assert await missing.update_routine("nope", {"title": "x"}) is None


def test_to_routine_tolerates_bad_json():
    routine = to_routine({"id": "r1", "title": "T", "blocks": "{oops", "integration": ""})
    assert routine.blocks == []
    assert routine.integration.enabled is False


@pytest.mark.asyncio
async def test_turso_completion_lookups_are_scoped_to_user():
    columns = ["id", "routine_id", "scheduled_date", "completed_at", "status", "notes"]
    row = ("c1", "r1", "2024-06-01", None, "completed", None)
    client = FakeLibsqlClient(responses=[("SELECT * FROM completions", result_set(columns, [row]))])
    storage = TursoStorage(client, "u1")

    completion = await storage.get_completion_by_routine_and_date("r1", "2024-06-01")
    assert completion.id == "c1"
    assert [c.id for c in await storage.get_completions_by_date("2024-06-01")] == ["c1"]

    await storage.delete_completions_by_routine("r1")
    delete = [call for call in client.calls if call.sql.startswith("DELETE FROM completions")][0]
    assert delete.args == ["r1", "u1"]
