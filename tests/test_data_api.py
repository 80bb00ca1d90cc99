import pytest

from app.apis import data as data_api
from app.libs.color_utils import get_goal_color
from app.libs.models import CompletionRecord
from conftest import make_routine


@pytest.fixture
def wired(monkeypatch, storage):
    users = []

    def fake_get_storage(user_id):
        users.append(user_id)
        return storage

    monkeypatch.setattr(data_api, "get_storage", fake_get_storage)
    return users


def test_create_then_list_categories(client, storage, wired):
    resp = client.post("/api/data", json={"type": "category", "data": {"title": "Health", "colorPattern": "cool"}})
    assert resp.status_code == 200
    created = resp.json()["data"]
    assert created["title"] == "Health"
    assert created["colorPattern"] == "cool"

    resp = client.get("/api/data", params={"type": "categories"})
    assert [c["id"] for c in resp.json()["data"]] == [created["id"]]
    assert storage.closed == 2


def test_identity_header_selects_user(client, wired):
    client.get("/api/data", params={"type": "categories"}, headers={"X-User-Id": "alice"})
    client.get("/api/data", params={"type": "categories"})
    assert wired == ["alice", "test-user"]


def test_missing_identity_is_unauthorized(client, wired, monkeypatch):
    monkeypatch.delenv("DEFAULT_USER_ID", raising=False)
    resp = client.get("/api/data", params={"type": "categories"})
    assert resp.status_code == 401
    assert wired == []


def test_goals_filtered_by_category(client, storage, wired):
    client.post("/api/data", json={"type": "goal", "data": {"title": "Run", "categoryId": "c1"}})
    client.post("/api/data", json={"type": "goal", "data": {"title": "Read", "categoryId": "c2"}})

    resp = client.get("/api/data", params={"type": "goals", "categoryId": "c1"})
    assert [g["title"] for g in resp.json()["data"]] == ["Run"]


def test_get_single_routine(client, storage, wired):
    created = client.post("/api/data", json={"type": "routine", "data": {"title": "Stretch"}}).json()["data"]

    resp = client.get("/api/data", params={"type": "routine", "id": created["id"]})
    assert resp.json()["data"]["title"] == "Stretch"

    resp = client.get("/api/data", params={"type": "routine", "id": "missing"})
    assert resp.status_code == 404


def test_patch_updates_and_reports_missing(client, storage, wired):
    created = client.post("/api/data", json={"type": "goal", "data": {"title": "Run"}}).json()["data"]

    resp = client.patch("/api/data", json={"type": "goal", "id": created["id"], "data": {"title": "Run 10k", "id": "hijack"}})
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Run 10k"
    assert resp.json()["data"]["id"] == created["id"]

    resp = client.patch("/api/data", json={"type": "goal", "id": "missing", "data": {"title": "x"}})
    assert resp.status_code == 404


def test_delete_reports_whether_row_existed(client, storage, wired):
    created = client.post("/api/data", json={"type": "category", "data": {"title": "Work"}}).json()["data"]

    assert client.delete("/api/data", params={"type": "category", "id": created["id"]}).json() == {"success": True}
    assert client.delete("/api/data", params={"type": "category", "id": created["id"]}).json() == {"success": False}


def test_streak_and_range_queries(client, storage, wired):
    for day, status in (("2024-05-01", "completed"), ("2024-05-02", "completed"), ("2024-05-03", "skipped")):
        storage.completions[day] = CompletionRecord(id=day, routine_id="r1", scheduled_date=day, status=status)

    resp = client.get("/api/data", params={"type": "streak", "routineId": "r1"})
    streak = resp.json()["data"]
    assert streak["longestStreak"] == 2
    assert streak["totalCompletions"] == 2
    assert streak["lastCompletedDate"] == "2024-05-02"

    resp = client.get("/api/data", params={"type": "completionsInRange", "startDate": "2024-05-02", "endDate": "2024-05-03"})
    assert sorted(c["id"] for c in resp.json()["data"]) == ["2024-05-02", "2024-05-03"]

    resp = client.get("/api/data", params={"type": "completionsInRange", "startDate": "2024-05-02"})
    assert resp.status_code == 400


def test_all_returns_every_collection(client, storage, wired):
    client.post("/api/data", json={"type": "category", "data": {"title": "Work"}})
    data = client.get("/api/data", params={"type": "all"}).json()["data"]
    assert set(data) == {"categories", "goals", "routines", "completions"}
    assert len(data["categories"]) == 1


def test_migrate_uses_storage_default(client, wired):
    resp = client.post("/api/data", json={"type": "migrate"})
    assert resp.json() == {"success": True, "data": {"migrated": 0}}


def test_invalid_requests_return_400(client, wired):
    assert client.get("/api/data", params={"type": "widgets"}).status_code == 400
    assert client.post("/api/data", json={"type": "widget", "data": {}}).status_code == 400
    assert client.post("/api/data", json={"data": {}}).status_code == 400
    assert client.post("/api/data", json={"type": "category", "data": {"icon": "x"}}).status_code == 400
    assert client.patch("/api/data", json={"type": "goal"}).status_code == 400
    assert client.delete("/api/data", params={"type": "goal"}).status_code == 400


def test_storage_failure_returns_database_error(client, storage, wired, monkeypatch):
    async def broken():
        raise RuntimeError("connection reset")

    monkeypatch.setattr(storage, "get_categories", broken)
    resp = client.get("/api/data", params={"type": "categories"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Database error"}


def test_new_goal_gets_next_category_color(client, storage, wired):
    category = client.post("/api/data", json={"type": "category", "data": {"title": "Health", "colorPattern": "warm"}}).json()["data"]

    first = client.post("/api/data", json={"type": "goal", "data": {"title": "Run", "categoryId": category["id"]}}).json()["data"]
    second = client.post("/api/data", json={"type": "goal", "data": {"title": "Swim", "categoryId": category["id"]}}).json()["data"]
    chosen = client.post(
        "/api/data", json={"type": "goal", "data": {"title": "Bike", "categoryId": category["id"], "color": "from-black to-white"}}
    ).json()["data"]

    assert first["color"] == get_goal_color("warm", 0)
    assert second["color"] == get_goal_color("warm", 1)
    assert chosen["color"] == "from-black to-white"


def test_undecodable_bodies_return_400(client, wired):
    for send in (client.post, client.patch):
        resp = send("/api/data", content=b'{"type":"\xff"}', headers={"content-type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid request body"}


def test_completion_lookups_by_date(client, storage, wired):
    for cid, routine_id, day in (("a", "r1", "2024-05-01"), ("b", "r2", "2024-05-01"), ("c", "r1", "2024-05-02")):
        storage.completions[cid] = CompletionRecord(id=cid, routine_id=routine_id, scheduled_date=day)

    resp = client.get("/api/data", params={"type": "completionsByDate", "date": "2024-05-01"})
    assert sorted(c["id"] for c in resp.json()["data"]) == ["a", "b"]

    resp = client.get("/api/data", params={"type": "completion", "routineId": "r1", "date": "2024-05-02"})
    assert resp.json()["data"]["id"] == "c"

    resp = client.get("/api/data", params={"type": "completion", "routineId": "r2", "date": "2024-05-02"})
    assert resp.json() == {"success": True, "data": None}

    assert client.get("/api/data", params={"type": "completion", "routineId": "r1"}).status_code == 400


def test_deleting_routine_removes_its_completions(client, storage, wired):
    storage.routines["r1"] = make_routine("r1")
    storage.completions["a"] = CompletionRecord(id="a", routine_id="r1", scheduled_date="2024-05-01")
    storage.completions["b"] = CompletionRecord(id="b", routine_id="r2", scheduled_date="2024-05-01")

    resp = client.delete("/api/data", params={"type": "routine", "id": "r1"})

    assert resp.json() == {"success": True}
    assert list(storage.completions) == ["b"]
