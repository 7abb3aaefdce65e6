"""Tests for the read-side views: temporal windows and search."""
from datetime import timedelta

from mission_control.repository import MemoryRepository
from mission_control.schema import Task
from mission_control.search import search
from mission_control.store import DocumentStore
from mission_control.temporal import classify, is_overdue


def _task(task_id, due=None, column="To Do"):
    return Task(id=task_id, title=f"t{task_id}", column=column, due_date=due)


class TestTemporalWindows:

    def test_windows(self, today):
        tasks = [
            _task(1, today),
            _task(2, today - timedelta(days=1), "In Progress"),
            _task(3, today + timedelta(days=1)),
            _task(4, today + timedelta(days=7)),
            _task(5, today + timedelta(days=8)),
            _task(6, None),
        ]
        view = classify(tasks, today=today)
        assert [t.id for t in view.today] == [1]
        assert [t.id for t in view.overdue] == [2]
        assert [t.id for t in view.upcoming] == [3, 4]

    def test_done_tasks_are_never_overdue(self, today):
        yesterday = today - timedelta(days=1)
        assert is_overdue(_task(1, yesterday, "In Progress"), today)
        assert not is_overdue(_task(1, yesterday, "Done"), today)
        view = classify([_task(1, yesterday, "Done")], today=today)
        assert view.overdue == [] and view.today == [] and view.upcoming == []

    def test_done_tasks_still_show_today(self, today):
        view = classify([_task(1, today, "Done")], today=today)
        assert [t.id for t in view.today] == [1]

    def test_windows_are_exclusive(self, today):
        tasks = [_task(i, today + timedelta(days=d)) for i, d in enumerate(range(-10, 11))]
        view = classify(tasks, today=today)
        seen = [t.id for t in view.today + view.overdue + view.upcoming]
        assert len(seen) == len(set(seen))

    def test_custom_upcoming_horizon(self, today):
        tasks = [_task(1, today + timedelta(days=3))]
        assert classify(tasks, today=today, upcoming_days=2).upcoming == []


class TestSearch:

    def setup_method(self):
        self.store = DocumentStore(MemoryRepository())
        self.store.create_task({"title": "Fix login", "tags": ["urgent"]})
        self.store.create_task({"title": "Plan trip", "description": "Book URGENT flights"})
        self.store.create_task({"title": "Relax"})
        self.store.create_note({"title": "Ideas", "content": "an urgent thought"})
        self.store.create_link({"url": "https://urgent.example.com", "title": "Site"})
        self.store.create_link({"url": "https://calm.example.com", "title": "Calm",
                                "tags": ["reading"]})

    def test_tag_match_and_case_insensitivity(self):
        doc = self.store.load()
        lower = search(doc, "urgent")
        upper = search(doc, "URGENT")
        assert [t.id for t in lower.tasks] == [1, 2]
        assert [t.id for t in upper.tasks] == [1, 2]
        assert [n.id for n in lower.notes] == [1]
        assert [l.id for l in lower.links] == [1]

    def test_link_tags_and_titles(self):
        results = search(self.store.load(), "read")
        assert [l.id for l in results.links] == [2]
        assert results.tasks == [] and results.notes == []

    def test_empty_query_matches_nothing(self):
        doc = self.store.load()
        for query in ("", "   ", None):
            results = search(doc, query)
            assert results.tasks == [] and results.notes == [] and results.links == []

    def test_to_dict_shape(self):
        data = search(self.store.load(), "relax").to_dict()
        assert set(data) == {"tasks", "notes", "links"}
        assert data["tasks"][0]["title"] == "Relax"
