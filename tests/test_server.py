"""
Tests for the Flask JSON API.
"""
from datetime import date, timedelta

import pytest

from mission_control.config import Config
from mission_control.server import create_app


@pytest.fixture
def client(data_path):
    config = Config(data_file=str(data_path))
    app = create_app(config, title_fetcher=lambda url, **kw: "Fetched Title")
    app.config["TESTING"] = True
    return app.test_client()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Quick capture
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_quick_capture_task(client):
    r = client.post("/api/quick-capture", json={"text": "Fix bug #urgent !high tomorrow", "type": "task"})
    assert r.status_code == 201
    task = r.get_json()
    assert task["id"] == 1
    assert task["title"] == "Fix bug"
    assert task["tags"] == ["urgent"]
    assert task["priority"] == "high"
    assert task["dueDate"] == (date.today() + timedelta(days=1)).isoformat()
    assert task["assignee"] == "Adam"


def test_quick_capture_defaults_to_task(client):
    r = client.post("/api/quick-capture", json={"text": "Just a thing"})
    assert r.status_code == 201
    assert "column" in r.get_json()


def test_quick_capture_note_and_link(client):
    note = client.post("/api/quick-capture", json={"text": "Title line\nbody", "type": "note"}).get_json()
    assert note["title"] == "Title line"
    link = client.post("/api/quick-capture", json={"text": "www.example.com", "type": "link"}).get_json()
    assert link["url"] == "https://example.com"
    assert link["title"] == "Fetched Title"


def test_quick_capture_rejects_unknown_type(client):
    r = client.post("/api/quick-capture", json={"text": "x", "type": "event"})
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_quick_capture_preview_stores_nothing(client):
    r = client.post("/api/quick-capture/preview", json={"text": "Mow lawn @adam !low", "type": "task"})
    assert r.status_code == 200
    draft = r.get_json()
    assert draft["assignee"] == "Adam"
    assert draft["priority"] == "low"
    assert draft["title"] == "Mow lawn"
    assert client.get("/api/tasks").get_json() == []


def test_quick_capture_non_string_text(client):
    r = client.post("/api/quick-capture", json={"text": 42, "type": "task"})
    assert r.status_code == 201
    assert r.get_json()["title"] == "42"
    r = client.post("/api/quick-capture/preview", json={"text": {"a": 1}, "type": "note"})
    assert r.status_code == 200


def test_non_object_body_is_rejected(client):
    r = client.post("/api/tasks", json=["not", "an", "object"])
    assert r.status_code == 400


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CRUD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_task_lifecycle(client):
    created = client.post("/api/tasks", json={"title": "Ship v2", "column": "To Do"}).get_json()
    task_id = created["id"]

    r = client.put(f"/api/tasks/{task_id}", json={"column": "Done"}, headers={"X-User": "Atticus"})
    assert r.status_code == 200
    assert r.get_json()["column"] == "Done"

    r = client.post(f"/api/tasks/{task_id}/comments", json={"text": "Nice", "author": "Atticus"})
    assert r.status_code == 201
    assert r.get_json()["author"] == "Atticus"

    tasks = client.get("/api/tasks").get_json()
    assert tasks[0]["comments"][0]["text"] == "Nice"

    assert client.delete(f"/api/tasks/{task_id}").get_json() == {"ok": True}
    assert client.get("/api/tasks").get_json() == []

    activity = client.get("/api/activity").get_json()
    assert [a["type"] for a in activity] == [
        "task_deleted", "comment_added", "task_moved", "task_created",
    ]
    assert activity[2]["user"] == "Atticus"


def test_missing_entity_returns_404(client):
    assert client.put("/api/tasks/99", json={"title": "x"}).status_code == 404
    assert client.put("/api/notes/99", json={"title": "x"}).status_code == 404
    assert client.put("/api/links/99", json={"title": "x"}).status_code == 404
    r = client.post("/api/tasks/99/comments", json={"text": "hi"})
    assert r.status_code == 404
    assert r.get_json() == {"error": "Not found"}


def test_delete_missing_is_ok(client):
    assert client.delete("/api/tasks/99").status_code == 200
    assert client.delete("/api/notes/99").get_json() == {"ok": True}


def test_notes_and_links_crud(client):
    note = client.post("/api/notes", json={"content": "body only"}).get_json()
    assert note["title"] == "Untitled Note"
    note = client.put(f"/api/notes/{note['id']}", json={"pinned": True}).get_json()
    assert note["pinned"] is True

    link = client.post("/api/links", json={"url": "https://flask.palletsprojects.com",
                                           "title": "Flask"}).get_json()
    assert client.get("/api/links").get_json()[0]["title"] == "Flask"
    client.delete(f"/api/links/{link['id']}")
    assert client.get("/api/links").get_json() == []
    assert len(client.get("/api/notes").get_json()) == 1


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Views, tags, settings
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_today_view(client):
    today = date.today()
    client.post("/api/tasks", json={"title": "Now", "dueDate": today.isoformat()})
    client.post("/api/tasks", json={"title": "Late", "column": "In Progress",
                                    "dueDate": (today - timedelta(days=1)).isoformat()})
    client.post("/api/tasks", json={"title": "Finished", "column": "Done",
                                    "dueDate": (today - timedelta(days=1)).isoformat()})
    client.post("/api/tasks", json={"title": "Soon", "dueDate": (today + timedelta(days=3)).isoformat()})

    data = client.get("/api/today").get_json()
    assert [t["title"] for t in data["todayTasks"]] == ["Now"]
    assert [t["title"] for t in data["overdueTasks"]] == ["Late"]
    assert [t["title"] for t in data["upcomingTasks"]] == ["Soon"]
    assert len(data["recentActivity"]) == 4
    assert data["recentActivity"][0]["description"] == 'Created task "Soon"'


def test_search_endpoint(client):
    client.post("/api/tasks", json={"title": "Tagged", "tags": ["urgent"]})
    assert len(client.get("/api/search?q=URGENT").get_json()["tasks"]) == 1
    assert client.get("/api/search?q=").get_json() == {"tasks": [], "notes": [], "links": []}


def test_tags_and_settings(client):
    r = client.post("/api/tags", json={"name": "Work", "color": "#ff8800"})
    assert r.status_code == 201
    assert r.get_json() == {"name": "work", "color": "#ff8800"}
    assert client.post("/api/tags", json={"color": "#000"}).status_code == 400

    assert client.get("/api/settings").get_json()["theme"] == "dark"
    r = client.put("/api/settings", json={"theme": "light", "focusMode": True})
    assert r.get_json() == {"theme": "light", "focusMode": True, "defaultView": "dashboard"}

    data = client.get("/api/data").get_json()
    assert data["tags"] == [{"name": "work", "color": "#ff8800"}]
    assert data["settings"]["theme"] == "light"
    for key in ("columns", "categories", "tasks", "notes", "links", "activity", "nextTaskId"):
        assert key in data


def test_health(client, data_path):
    assert client.get("/health").get_json() == {"status": "ok", "data_file": str(data_path)}
