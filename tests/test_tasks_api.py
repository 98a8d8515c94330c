# tests/test_tasks_api.py
# PURPOSE: verify CRUD, filters, pagination, X-Total-Count, status rules and stats.

from typing import Dict

from conftest import tomorrow


def _create_task(client, headers, title: str, **fields) -> Dict:
    """Helper: create a task and return the task JSON."""
    payload = {"title": title, "dueDate": tomorrow(), **fields}
    r = client.post("/api/tasks", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_create_and_get_by_id(client, auth_headers):
    created = _create_task(
        client, auth_headers, "First", priority="high", description="hello", tags=[" a ", "b", "a", ""]
    )
    tid = created["id"]

    r = client.get(f"/api/tasks/{tid}", headers=auth_headers)
    assert r.status_code == 200
    got = r.json()["data"]
    assert got["id"] == tid
    assert got["title"] == "First"
    assert got["priority"] == "high"
    assert got["status"] == "todo"  # default status on create
    assert got["category"] == "other"
    assert got["tags"] == ["a", "b"]
    assert got["isTrashed"] is False
    assert got["completedAt"] is None
    assert got["isCompleted"] is False
    assert got["isOverdue"] is False


def test_create_sets_location_header(client, auth_headers):
    r = client.post("/api/tasks", json={"title": "Loc", "dueDate": tomorrow()}, headers=auth_headers)
    assert r.status_code == 201
    assert r.headers["Location"] == f"/api/tasks/{r.json()['data']['id']}"


def test_create_validation_errors(client, auth_headers):
    # dueDate is required
    r = client.post("/api/tasks", json={"title": "No date"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = client.post("/api/tasks", json={"title": "   ", "dueDate": tomorrow()}, headers=auth_headers)
    assert r.status_code == 400

    r = client.post(
        "/api/tasks", json={"title": "x" * 101, "dueDate": tomorrow()}, headers=auth_headers
    )
    assert r.status_code == 400

    r = client.post(
        "/api/tasks", json={"title": "Bad prio", "dueDate": tomorrow(), "priority": "urgent"}, headers=auth_headers
    )
    assert r.status_code == 400


def test_client_cannot_set_owner_or_trash_flag(client, auth_headers):
    r = client.post(
        "/api/tasks",
        json={"title": "Sneaky", "dueDate": tomorrow(), "ownerId": 999, "isTrashed": True},
        headers=auth_headers,
    )
    assert r.status_code == 400


def test_list_with_filters_and_pagination_and_total(client, auth_headers):
    for i in range(12):
        _create_task(client, auth_headers, f"Task {i}", priority="high" if i % 3 == 0 else "low")

    r = client.get("/api/tasks", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["total"] == 12
    assert body["results"] == 10  # default page size
    assert body["page"] == 1 and body["limit"] == 10
    assert r.headers.get("X-Total-Count") == "12"
    # newest first
    assert body["data"][0]["title"] == "Task 11"

    r2 = client.get("/api/tasks?page=2", headers=auth_headers)
    assert r2.json()["results"] == 2
    assert [t["title"] for t in r2.json()["data"]] == ["Task 1", "Task 0"]

    r3 = client.get("/api/tasks?priority=high&limit=2", headers=auth_headers)
    data = r3.json()
    assert data["total"] == 4
    assert len(data["data"]) == 2
    assert all(t["priority"] == "high" for t in data["data"])


def test_list_filter_all_means_no_filter(client, auth_headers):
    _create_task(client, auth_headers, "One", category="work")
    _create_task(client, auth_headers, "Two", category="health")

    r = client.get("/api/tasks?category=all&status=", headers=auth_headers)
    assert r.json()["total"] == 2

    r = client.get("/api/tasks?category=work", headers=auth_headers)
    assert [t["title"] for t in r.json()["data"]] == ["One"]

    r = client.get("/api/tasks?category=hobby", headers=auth_headers)
    assert r.status_code == 400


def test_search_by_q_matches_title(client, auth_headers):
    _create_task(client, auth_headers, "Hello world")
    _create_task(client, auth_headers, "Buy milk")
    _create_task(client, auth_headers, "HELLO again")

    r = client.get("/api/tasks?q=hello", headers=auth_headers)
    titles = {t["title"] for t in r.json()["data"]}
    assert titles == {"Hello world", "HELLO again"}


def test_invalid_pagination(client, auth_headers):
    assert client.get("/api/tasks?page=0", headers=auth_headers).status_code == 400
    assert client.get("/api/tasks?limit=abc", headers=auth_headers).status_code == 400
    r = client.get("/api/tasks?limit=1000", headers=auth_headers)
    assert r.json()["limit"] == 100


def test_update_merges_fields(client, auth_headers):
    created = _create_task(client, auth_headers, "Patch me", priority="low", tags=["x"])
    tid = created["id"]

    r = client.put(f"/api/tasks/{tid}", json={"description": "now with text"}, headers=auth_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["description"] == "now with text"
    # other fields preserved
    assert data["title"] == "Patch me"
    assert data["priority"] == "low"
    assert data["tags"] == ["x"]

    r = client.put(f"/api/tasks/{tid}", json={"title": None}, headers=auth_headers)
    assert r.status_code == 400


def test_update_status_maintains_completed_at(client, auth_headers):
    tid = _create_task(client, auth_headers, "Finish")["id"]

    done = client.put(f"/api/tasks/{tid}", json={"status": "completed"}, headers=auth_headers).json()["data"]
    assert done["completedAt"] is not None
    assert done["isCompleted"] is True

    again = client.patch(f"/api/tasks/{tid}/status", json={"status": "completed"}, headers=auth_headers).json()["data"]
    assert again["completedAt"] == done["completedAt"]

    back = client.patch(f"/api/tasks/{tid}/status", json={"status": "in-progress"}, headers=auth_headers).json()["data"]
    assert back["status"] == "in-progress"
    assert back["completedAt"] is None


def test_create_completed_task_has_completed_at(client, auth_headers):
    created = _create_task(client, auth_headers, "Already done", status="completed")
    assert created["completedAt"] is not None


def test_set_status_rejects_unknown_value(client, auth_headers):
    tid = _create_task(client, auth_headers, "Status")["id"]
    r = client.patch(f"/api/tasks/{tid}/status", json={"status": "done"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("Invalid status")


def test_overdue_flag(client, auth_headers):
    created = _create_task(client, auth_headers, "Late", dueDate="2020-01-01T09:00:00Z")
    assert created["isOverdue"] is True

    done = client.patch(
        f"/api/tasks/{created['id']}/status", json={"status": "completed"}, headers=auth_headers
    ).json()["data"]
    assert done["isOverdue"] is False


def test_tasks_are_isolated_per_owner(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com", name="Bob")
    tid = _create_task(client, alice, "Alice only")["id"]

    r = client.get(f"/api/tasks/{tid}", headers=bob)
    assert r.status_code == 404
    assert r.json()["message"] == "Task not found"

    assert client.put(f"/api/tasks/{tid}", json={"title": "mine"}, headers=bob).status_code == 404
    assert client.patch(f"/api/tasks/{tid}/status", json={"status": "completed"}, headers=bob).status_code == 404
    assert client.delete(f"/api/tasks/{tid}", headers=bob).status_code == 404
    assert client.get("/api/tasks", headers=bob).json()["total"] == 0

    # untouched for the owner
    owned = client.get(f"/api/tasks/{tid}", headers=alice).json()["data"]
    assert owned["title"] == "Alice only"
    assert owned["status"] == "todo"


def test_unknown_task_is_404(client, auth_headers):
    r = client.get("/api/tasks/9999", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Task not found"}


def test_stats_zero_for_new_user(client, auth_headers):
    r = client.get("/api/tasks/stats", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"] == {
        "total": 0,
        "completed": 0,
        "inProgress": 0,
        "todo": 0,
        "highPriority": 0,
        "mediumPriority": 0,
        "lowPriority": 0,
    }


def test_stats_count_active_tasks_only(client, auth_headers):
    _create_task(client, auth_headers, "A", priority="high")
    _create_task(client, auth_headers, "B", status="in-progress")
    _create_task(client, auth_headers, "C", status="completed", priority="low")
    trashed = _create_task(client, auth_headers, "D", priority="high")
    client.delete(f"/api/tasks/{trashed['id']}", headers=auth_headers)

    stats = client.get("/api/tasks/stats", headers=auth_headers).json()["data"]
    assert stats["total"] == 3
    assert stats["todo"] == 1
    assert stats["inProgress"] == 1
    assert stats["completed"] == 1
    assert stats["highPriority"] == 1
    assert stats["mediumPriority"] == 1
    assert stats["lowPriority"] == 1


def test_search_treats_wildcards_literally(client, auth_headers):
    _create_task(client, auth_headers, "abc")
    _create_task(client, auth_headers, "50% off")
    _create_task(client, auth_headers, "snake_case")

    r = client.get("/api/tasks", params={"q": "%"}, headers=auth_headers)
    assert [t["title"] for t in r.json()["data"]] == ["50% off"]

    r = client.get("/api/tasks", params={"q": "_"}, headers=auth_headers)
    assert [t["title"] for t in r.json()["data"]] == ["snake_case"]

    r = client.get("/api/tasks", params={"q": "\\"}, headers=auth_headers)
    assert r.json()["total"] == 0


def test_due_date_outside_datetime_range_is_400(client, auth_headers):
    r = client.post(
        "/api/tasks", json={"title": "Far", "dueDate": "9999-12-31T23:00:00-05:00"}, headers=auth_headers
    )
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "dueDate out of range"}

    near = _create_task(client, auth_headers, "Near")
    tid = near["id"]
    r = client.put(f"/api/tasks/{tid}", json={"dueDate": "0001-01-01T01:00:00+05:00"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "dueDate out of range"
    # nothing was written
    assert client.get(f"/api/tasks/{tid}", headers=auth_headers).json()["data"]["dueDate"] == near["dueDate"]


def test_page_beyond_range_is_400(client, auth_headers):
    r = client.get("/api/tasks?page=100000000000000000000", headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "page is out of range"}
