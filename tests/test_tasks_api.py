from datetime import datetime, timedelta, timezone

from bson import ObjectId

API = "/api/tasks"


def _iso(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def _create(client, headers, **body):
    body.setdefault("title", "Task")
    resp = client.post(API, json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def test_requires_credentials(client):
    resp = client.get(API)
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access denied. No token provided."
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_create_assigns_defaults_and_sequential_order(client, auth_headers):
    resp = client.post(API, json={"title": "  Write report  "}, headers=auth_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Task created successfully"
    first = body["task"]
    assert first["title"] == "Write report"
    assert first["status"] == "pending"
    assert first["priority"] == "medium"
    assert first["tags"] == []
    assert first["subtasks"] == []
    assert first["order"] == 0
    assert first["completionPercentage"] == 0
    assert first["isOverdue"] is False
    assert first["daysUntilDue"] is None
    assert first["completedAt"] is None

    second = _create(client, auth_headers, title="Review")
    assert second["order"] == 1


def test_create_validates_fields(client, auth_headers):
    resp = client.post(API, json={"title": "   ", "tags": ["x" * 21]}, headers=auth_headers)
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"title", "tags"}
    assert {"field": "title", "message": "Task title is required"} in resp.json()["errors"]

    resp = client.post(API, json={"title": "x" * 101}, headers=auth_headers)
    assert resp.status_code == 400

    resp = client.post(API, json={"title": "ok", "status": "done"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "status"


def test_tags_are_trimmed_and_deduplicated(client, auth_headers):
    task = _create(client, auth_headers, tags=[" work ", "work", "home", ""])
    assert task["tags"] == ["work", "home"]


def test_other_accounts_tasks_are_not_found(client, auth_headers, other_headers):
    task = _create(client, auth_headers)
    for method, url, body in [
        ("GET", f"{API}/{task['_id']}", None),
        ("PUT", f"{API}/{task['_id']}", {"title": "hijack"}),
        ("PUT", f"{API}/{task['_id']}/order", {"newOrder": 3}),
        ("PATCH", f"{API}/{task['_id']}/subtasks/0", {"completed": True}),
        ("DELETE", f"{API}/{task['_id']}", None),
    ]:
        resp = client.request(method, url, json=body, headers=other_headers)
        assert resp.status_code == 404, (method, url)
        assert resp.json()["message"] == "Task not found"

    assert client.get(f"{API}/{task['_id']}", headers=auth_headers).json()["title"] == "Task"


def test_invalid_id_is_not_found(client, auth_headers):
    assert client.get(f"{API}/not-an-id", headers=auth_headers).status_code == 404
    assert client.get(f"{API}/{ObjectId()}", headers=auth_headers).status_code == 404


def test_list_filters_and_pagination(client, auth_headers, other_headers):
    _create(client, auth_headers, title="Buy milk", priority="low", tags=["home"])
    _create(client, auth_headers, title="Ship release", priority="urgent", status="in-progress", tags=["work"])
    _create(client, auth_headers, title="Plan sprint", description="MILK the backlog", tags=["work"])
    _create(client, other_headers, title="Someone else's milk")

    resp = client.get(API, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [t["title"] for t in body["tasks"]] == ["Plan sprint", "Ship release", "Buy milk"]
    assert body["pagination"] == {"current": 1, "pages": 1, "total": 3, "hasNext": False, "hasPrev": False}

    titles = lambda params: [t["title"] for t in client.get(API, params=params, headers=auth_headers).json()["tasks"]]
    assert titles({"status": "in-progress"}) == ["Ship release"]
    assert titles({"status": "all", "priority": "urgent"}) == ["Ship release"]
    assert titles({"tag": "work"}) == ["Plan sprint", "Ship release"]
    assert titles({"search": "milk"}) == ["Plan sprint", "Buy milk"]
    assert titles({"search": "(milk"}) == []
    assert titles({"sortBy": "title", "sortOrder": "asc"}) == ["Buy milk", "Plan sprint", "Ship release"]

    page = client.get(API, params={"limit": 2, "page": 2}, headers=auth_headers).json()
    assert len(page["tasks"]) == 1
    assert page["pagination"] == {"current": 2, "pages": 2, "total": 3, "hasNext": False, "hasPrev": True}


def test_list_rejects_bad_query(client, auth_headers):
    for params in [{"sortBy": "password"}, {"limit": 101}, {"page": 0}, {"status": "done"}, {"dueDate": "soon"}]:
        resp = client.get(API, params=params, headers=auth_headers)
        assert resp.status_code == 400, params
        assert resp.json()["errors"]


def test_due_date_filters(client, auth_headers):
    _create(client, auth_headers, title="May 1", dueDate="2024-05-01T18:00:00Z")
    _create(client, auth_headers, title="May 3", dueDate="2024-05-03T08:00:00Z")
    _create(client, auth_headers, title="No due")

    titles = lambda params: [t["title"] for t in client.get(API, params=params, headers=auth_headers).json()["tasks"]]
    assert titles({"dueDate": "2024-05-01"}) == ["May 1"]
    assert titles({"startDate": "2024-05-01", "endDate": "2024-05-03"}) == ["May 3", "May 1"]
    assert titles({"startDate": "2024-05-02"}) == ["May 3"]


def test_partial_update_and_completed_at(client, auth_headers):
    task = _create(client, auth_headers, title="Keep me", description="text", tags=["a"])

    resp = client.put(f"{API}/{task['_id']}", json={"priority": "high"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Task updated successfully"
    updated = resp.json()["task"]
    assert updated["title"] == "Keep me"
    assert updated["description"] == "text"
    assert updated["tags"] == ["a"]
    assert updated["priority"] == "high"

    done = client.put(f"{API}/{task['_id']}", json={"status": "completed"}, headers=auth_headers).json()["task"]
    assert done["completedAt"] is not None
    reopened = client.put(f"{API}/{task['_id']}", json={"status": "pending"}, headers=auth_headers).json()["task"]
    assert reopened["completedAt"] is None

    cleared = client.put(f"{API}/{task['_id']}", json={"description": None, "tags": []}, headers=auth_headers)
    assert cleared.json()["task"]["description"] is None
    assert cleared.json()["task"]["tags"] == []

    resp = client.put(f"{API}/{task['_id']}", json={"title": ""}, headers=auth_headers)
    assert resp.status_code == 400


def test_derived_fields_on_read(client, auth_headers):
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    task = _create(client, auth_headers, dueDate=_iso(yesterday))
    assert task["isOverdue"] is True
    assert task["daysUntilDue"] == -1

    done = client.put(f"{API}/{task['_id']}", json={"status": "completed"}, headers=auth_headers).json()["task"]
    assert done["isOverdue"] is False


def test_subtask_toggle_drives_task_status(client, auth_headers):
    task = _create(client, auth_headers, subtasks=[{"title": "one"}, {"title": "two"}])
    assert [s["completed"] for s in task["subtasks"]] == [False, False]
    assert all(s["_id"] for s in task["subtasks"])
    url = f"{API}/{task['_id']}/subtasks"

    half = client.patch(f"{url}/0", json={"completed": True}, headers=auth_headers)
    assert half.status_code == 200
    assert half.json()["message"] == "Subtask updated successfully"
    half = half.json()["task"]
    assert half["completionPercentage"] == 50
    assert half["status"] == "pending"
    assert half["subtasks"][0]["completedAt"] is not None

    full = client.patch(f"{url}/1", json={"completed": True}, headers=auth_headers).json()["task"]
    assert full["completionPercentage"] == 100
    assert full["status"] == "completed"
    assert full["completedAt"] is not None

    undone = client.patch(f"{url}/0", json={"completed": False}, headers=auth_headers).json()["task"]
    assert undone["status"] == "in-progress"
    assert undone["completedAt"] is None
    assert undone["subtasks"][0]["completedAt"] is None

    missing = client.patch(f"{url}/5", json={"completed": True}, headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Subtask not found"

    assert client.patch(f"{url}/0", json={"completed": "yes"}, headers=auth_headers).status_code == 400


def test_replacing_subtasks_recomputes_status(client, auth_headers):
    task = _create(client, auth_headers, subtasks=[{"title": "one"}])
    first_id = task["subtasks"][0]["_id"]

    resp = client.put(
        f"{API}/{task['_id']}",
        json={"subtasks": [{"id": first_id, "title": "one", "completed": True}]},
        headers=auth_headers,
    )
    updated = resp.json()["task"]
    assert updated["status"] == "completed"
    assert updated["subtasks"][0]["_id"] == first_id

    resp = client.put(
        f"{API}/{task['_id']}",
        json={"subtasks": [{"id": first_id, "title": "one", "completed": True}, {"title": "two"}]},
        headers=auth_headers,
    )
    assert resp.json()["task"]["status"] == "in-progress"
    assert resp.json()["task"]["completionPercentage"] == 50


def test_single_reorder(client, auth_headers):
    task = _create(client, auth_headers)
    resp = client.put(f"{API}/{task['_id']}/order", json={"newOrder": 7}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Task order updated successfully"
    assert resp.json()["task"]["order"] == 7

    assert client.put(f"{API}/{task['_id']}/order", json={"newOrder": "7"}, headers=auth_headers).status_code == 400


def test_bulk_reorder_skips_foreign_and_invalid_ids(client, auth_headers, other_headers):
    a = _create(client, auth_headers, title="A")
    b = _create(client, auth_headers, title="B")
    c = _create(client, auth_headers, title="C")
    foreign = _create(client, other_headers, title="X")

    payload = {"taskOrders": [{"id": c["_id"]}, {"id": a["_id"]}, {"id": b["_id"]}, {"id": foreign["_id"]}, {"id": "bad"}]}
    resp = client.put(f"{API}/bulk/reorder", json=payload, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task orders updated successfully", "matchedCount": 3}

    listed = client.get(API, params={"sortBy": "order", "sortOrder": "asc"}, headers=auth_headers).json()["tasks"]
    assert [(t["title"], t["order"]) for t in listed] == [("C", 0), ("A", 1), ("B", 2)]
    assert client.get(f"{API}/{foreign['_id']}", headers=other_headers).json()["order"] == 0


def test_bulk_delete_only_own_tasks(client, auth_headers, other_headers):
    a = _create(client, auth_headers)
    b = _create(client, auth_headers)
    foreign = _create(client, other_headers)

    resp = client.request(
        "DELETE", f"{API}/bulk/delete", json={"taskIds": [a["_id"], b["_id"], foreign["_id"], "bad"]}, headers=auth_headers
    )
    assert resp.status_code == 200
    assert resp.json() == {"message": "2 tasks deleted successfully", "deletedCount": 2}
    assert client.get(f"{API}/{foreign['_id']}", headers=other_headers).status_code == 200

    resp = client.request("DELETE", f"{API}/bulk/delete", json={"taskIds": []}, headers=auth_headers)
    assert resp.status_code == 400


def test_delete_task(client, auth_headers):
    task = _create(client, auth_headers)
    resp = client.delete(f"{API}/{task['_id']}", headers=auth_headers)
    assert resp.json() == {"message": "Task deleted successfully"}
    assert client.delete(f"{API}/{task['_id']}", headers=auth_headers).status_code == 404


def test_stats(client, auth_headers, other_headers):
    now = datetime.now(timezone.utc)
    yesterday = now - timedelta(days=1)
    later_today = now.replace(hour=23, minute=59, second=58)
    _create(client, auth_headers, title="late", dueDate=_iso(yesterday), priority="high")
    _create(client, auth_headers, title="done late", dueDate=_iso(yesterday), status="completed")
    _create(client, auth_headers, title="today", dueDate=_iso(later_today))
    _create(client, auth_headers, title="free", status="in-progress")
    _create(client, other_headers, title="not mine", dueDate=_iso(yesterday))

    resp = client.get(f"{API}/stats", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "total": 4,
        "pending": 2,
        "inProgress": 1,
        "completed": 1,
        "low": 0,
        "medium": 3,
        "high": 1,
        "urgent": 0,
        "overdue": 1,
        "dueToday": 1,
    }


def test_manual_order_listing(client, auth_headers):
    milk = _create(client, auth_headers, title="Buy milk", priority="low")
    assert (milk["order"], milk["status"], milk["tags"]) == (0, "pending", [])
    assert _create(client, auth_headers, title="Ship release")["order"] == 1

    resp = client.get(API, params={"sortBy": "order", "sortOrder": "asc"}, headers=auth_headers)
    assert [t["title"] for t in resp.json()["tasks"]] == ["Buy milk", "Ship release"]


def test_documents_are_identified_by_underscore_id(client, auth_headers):
    task = _create(client, auth_headers, subtasks=[{"title": "one"}])
    assert "_id" in task and "id" not in task
    assert ObjectId.is_valid(task["_id"])
    sub = task["subtasks"][0]
    assert "_id" in sub and "id" not in sub

    fetched = client.get(f"{API}/{task['_id']}", headers=auth_headers).json()
    assert fetched["_id"] == task["_id"]
    listed = client.get(API, headers=auth_headers).json()["tasks"]
    assert [t["_id"] for t in listed] == [task["_id"]]

    # el cliente puede reenviar la subtarea tal cual la recibió
    resp = client.put(
        f"{API}/{task['_id']}",
        json={"subtasks": [{"_id": sub["_id"], "title": "one", "completed": True}]},
        headers=auth_headers,
    )
    assert resp.json()["task"]["subtasks"][0]["_id"] == sub["_id"]


def test_order_outside_int32_is_rejected(client, auth_headers):
    task = _create(client, auth_headers)
    url = f"{API}/{task['_id']}/order"
    for value in [2**31, -(2**31) - 1, 2**63, 10**30]:
        resp = client.put(url, json={"newOrder": value}, headers=auth_headers)
        assert resp.status_code == 400, value
        assert resp.json()["errors"][0]["field"] == "newOrder"
    assert client.put(url, json={"newOrder": 2**31 - 1}, headers=auth_headers).json()["task"]["order"] == 2**31 - 1

    resp = client.post(API, json={"title": "big", "order": 2**63}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "order"


def test_page_beyond_skip_range_is_rejected(client, auth_headers):
    resp = client.get(API, params={"page": 10**17, "limit": 100}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["errors"] == [{"field": "page", "message": "page is out of range"}]

    resp = client.get("/api/notes", params={"page": 10**17, "limit": 100}, headers=auth_headers)
    assert resp.status_code == 400
