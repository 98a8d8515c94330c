from conftest import tomorrow


def _create(client, headers, **fields):
    payload = {"title": "With steps", "dueDate": tomorrow(), **fields}
    r = client.post("/api/tasks", json=payload, headers=headers)
    assert r.status_code == 201
    return r.json()["data"]


def test_create_with_subtasks_keeps_order(client, auth_headers):
    task = _create(client, auth_headers, subtasks=[{"title": "one"}, {"title": "two", "completed": True}])
    assert [(s["title"], s["completed"]) for s in task["subtasks"]] == [("one", False), ("two", True)]


def test_add_toggle_and_delete_subtask(client, auth_headers):
    tid = _create(client, auth_headers, subtasks=[{"title": "one"}])["id"]

    r = client.post(f"/api/tasks/{tid}/subtasks", json={"title": "two"}, headers=auth_headers)
    assert r.status_code == 201
    subs = r.json()["data"]["subtasks"]
    assert [s["title"] for s in subs] == ["one", "two"]
    sid = subs[1]["id"]

    r = client.put(f"/api/tasks/{tid}/subtasks/{sid}", json={"completed": True}, headers=auth_headers)
    assert r.status_code == 200
    assert {s["id"]: s["completed"] for s in r.json()["data"]["subtasks"]}[sid] is True

    r = client.delete(f"/api/tasks/{tid}/subtasks/{sid}", headers=auth_headers)
    assert r.status_code == 200
    assert [s["title"] for s in r.json()["data"]["subtasks"]] == ["one"]


def test_unknown_subtask_is_404(client, auth_headers):
    tid = _create(client, auth_headers)["id"]
    r = client.put(f"/api/tasks/{tid}/subtasks/777", json={"completed": True}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Subtask not found"


def test_subtask_title_required(client, auth_headers):
    tid = _create(client, auth_headers)["id"]
    r = client.post(f"/api/tasks/{tid}/subtasks", json={"title": ""}, headers=auth_headers)
    assert r.status_code == 400


def test_update_replaces_subtask_list(client, auth_headers):
    tid = _create(client, auth_headers, subtasks=[{"title": "old"}])["id"]
    r = client.put(
        f"/api/tasks/{tid}", json={"subtasks": [{"title": "new a"}, {"title": "new b"}]}, headers=auth_headers
    )
    assert [s["title"] for s in r.json()["data"]["subtasks"]] == ["new a", "new b"]


def test_subtasks_of_foreign_task_are_hidden(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com", name="Bob")
    tid = _create(client, alice)["id"]
    r = client.post(f"/api/tasks/{tid}/subtasks", json={"title": "intrude"}, headers=bob)
    assert r.status_code == 404
