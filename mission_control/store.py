"""
Document store: the only writer of the Mission Control document.

Every mutating call is one read-modify-write cycle against the repository:
load a fresh Document, apply the change, record activity, commit the whole
document. The cycle runs under a process-wide lock so two overlapping
requests cannot silently discard each other's changes. If anything raises
before commit, nothing is written.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from . import activity
from .repository import DocumentRepository
from .schema import (
    USERS,
    ActivityType,
    Comment,
    Document,
    Link,
    Note,
    Settings,
    TagDefinition,
    Task,
    DEFAULT_TAG_COLOR,
)

logger = logging.getLogger(__name__)

Entity = Union[Task, Note, Link]

# kind -> (Document list attribute, entity class, Document counter attribute)
_COLLECTIONS = {
    "task": ("tasks", Task, "next_task_id"),
    "note": ("notes", Note, "next_note_id"),
    "link": ("links", Link, "next_link_id"),
}

# Keys a patch may never overwrite; comments only grow through add_comment()
_PROTECTED_KEYS = ("id", "createdAt", "updatedAt", "comments")

# Falsy values for these fall back to the default on create
_CREATE_DEFAULTS = {
    "task": {
        "title": "Untitled",
        "column": "Backlog",
        "priority": "medium",
        "category": "Personal",
        "assignee": USERS[0],
    },
    "note": {"title": "Untitled Note"},
    "link": {},
}


class EntityNotFound(LookupError):
    """Raised when an update or comment targets an id that does not exist."""

    def __init__(self, kind: str, entity_id: int):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class ValidationError(ValueError):
    """Raised for input that cannot be degraded to a default."""
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore:
    """CRUD over tasks, notes and links, plus comments, tags and settings."""

    def __init__(
        self,
        repository: DocumentRepository,
        default_user: str = USERS[0],
        clock: Optional[Callable[[], datetime]] = None,
        activity_limit: int = activity.ACTIVITY_LIMIT,
    ):
        self.repository = repository
        self.default_user = default_user
        self.clock = clock or _utc_now
        self.activity_limit = activity_limit
        self._lock = threading.RLock()

    # ── Plumbing ─────────────────────────────────────────────────────────────

    def _now(self) -> str:
        return self.clock().isoformat()

    @contextmanager
    def _mutate(self) -> Iterator[Document]:
        """Single-writer read-modify-write cycle."""
        with self._lock:
            document = self.repository.load()
            yield document
            self.repository.commit(document)

    def _record(self, document: Document, activity_type, entity_id: int,
                description: str, user: Optional[str], timestamp: str,
                before: Optional[str] = None, after: Optional[str] = None) -> None:
        activity.record(
            document, activity_type, entity_id, description,
            user=user or self.default_user,
            timestamp=timestamp,
            before=before,
            after=after,
            limit=self.activity_limit,
        )

    @staticmethod
    def _find(items: List[Entity], entity_id: int) -> Optional[int]:
        for idx, item in enumerate(items):
            if item.id == entity_id:
                return idx
        return None

    def load(self) -> Document:
        """A fresh read of the whole document."""
        return self.repository.load()

    # ── Generic CRUD ─────────────────────────────────────────────────────────

    def _create(self, kind: str, attrs: Optional[Dict[str, Any]], user: Optional[str]) -> Entity:
        list_attr, entity_cls, counter_attr = _COLLECTIONS[kind]
        data = {k: v for k, v in (attrs or {}).items() if k not in _PROTECTED_KEYS}
        for key, default in _CREATE_DEFAULTS[kind].items():
            if not data.get(key):
                data[key] = default

        with self._mutate() as document:
            now = self._now()
            data["id"] = getattr(document, counter_attr)
            data["createdAt"] = now
            data["updatedAt"] = now
            entity = entity_cls.from_dict(data)
            setattr(document, counter_attr, entity.id + 1)
            getattr(document, list_attr).append(entity)
            self._record(
                document, activity.created_type(kind), entity.id,
                activity.describe_created(kind, entity.title), user, now,
            )
        logger.debug(f"Created {kind} {entity.id}")
        return entity

    def _get(self, kind: str, entity_id: int) -> Optional[Entity]:
        list_attr = _COLLECTIONS[kind][0]
        items = getattr(self.load(), list_attr)
        idx = self._find(items, entity_id)
        return items[idx] if idx is not None else None

    def _list(self, kind: str) -> List[Entity]:
        return list(getattr(self.load(), _COLLECTIONS[kind][0]))

    def _update(self, kind: str, entity_id: int, patch: Optional[Dict[str, Any]],
                user: Optional[str]) -> Entity:
        list_attr, entity_cls, _ = _COLLECTIONS[kind]
        changes = {k: v for k, v in (patch or {}).items() if k not in _PROTECTED_KEYS}

        with self._mutate() as document:
            items = getattr(document, list_attr)
            idx = self._find(items, entity_id)
            if idx is None:
                raise EntityNotFound(kind, entity_id)
            before = items[idx]
            now = self._now()
            merged = before.to_dict()
            merged.update(changes)
            merged["updatedAt"] = now
            after = entity_cls.from_dict(merged)
            items[idx] = after

            if kind == "task":
                self._record_task_changes(document, before, after, user, now)
            else:
                self._record(
                    document, activity.updated_type(kind), after.id,
                    activity.describe_updated(kind, after.title), user, now,
                )
        logger.debug(f"Updated {kind} {entity_id}: {sorted(changes)}")
        return after

    def _record_task_changes(self, document: Document, before: Task, after: Task,
                             user: Optional[str], now: str) -> None:
        if before.column != after.column:
            self._record(
                document, ActivityType.TASK_MOVED, after.id,
                activity.describe_moved(after.title, before.column, after.column),
                user, now, before=before.column, after=after.column,
            )
        if before.priority != after.priority:
            self._record(
                document, activity.updated_type("task"), after.id,
                activity.describe_priority(after.title, before.priority.value, after.priority.value),
                user, now, before=before.priority.value, after=after.priority.value,
            )

    def _delete(self, kind: str, entity_id: int, user: Optional[str]) -> bool:
        """Remove an entity. Returns False (and writes nothing) if it did not exist."""
        list_attr = _COLLECTIONS[kind][0]
        with self._lock:
            document = self.repository.load()
            items = getattr(document, list_attr)
            idx = self._find(items, entity_id)
            if idx is None:
                return False
            entity = items[idx]
            self._record(
                document, activity.deleted_type(kind), entity.id,
                activity.describe_deleted(kind, entity.title), user, self._now(),
            )
            del items[idx]
            self.repository.commit(document)
        logger.debug(f"Deleted {kind} {entity_id}")
        return True

    # ── Tasks ────────────────────────────────────────────────────────────────

    def create_task(self, attrs: Optional[Dict[str, Any]] = None, user: Optional[str] = None) -> Task:
        return self._create("task", attrs, user)

    def get_task(self, task_id: int) -> Optional[Task]:
        return self._get("task", task_id)

    def list_tasks(self) -> List[Task]:
        return self._list("task")

    def update_task(self, task_id: int, patch: Dict[str, Any], user: Optional[str] = None) -> Task:
        return self._update("task", task_id, patch, user)

    def delete_task(self, task_id: int, user: Optional[str] = None) -> bool:
        return self._delete("task", task_id, user)

    def add_comment(self, task_id: int, text: Optional[str], author: Optional[str] = None) -> Comment:
        """Append a comment; comments are never edited or removed."""
        author = author or self.default_user
        with self._mutate() as document:
            idx = self._find(document.tasks, task_id)
            if idx is None:
                raise EntityNotFound("task", task_id)
            task = document.tasks[idx]
            now = self._now()
            comment = Comment(text=text or "", author=author, created_at=now)
            task.comments.append(comment)
            task.updated_at = now
            self._record(
                document, ActivityType.COMMENT_ADDED, task.id,
                activity.describe_comment(task.title, author), author, now,
            )
        logger.debug(f"Comment added to task {task_id} by {author}")
        return comment

    # ── Notes ────────────────────────────────────────────────────────────────

    def create_note(self, attrs: Optional[Dict[str, Any]] = None, user: Optional[str] = None) -> Note:
        return self._create("note", attrs, user)

    def get_note(self, note_id: int) -> Optional[Note]:
        return self._get("note", note_id)

    def list_notes(self) -> List[Note]:
        return self._list("note")

    def update_note(self, note_id: int, patch: Dict[str, Any], user: Optional[str] = None) -> Note:
        return self._update("note", note_id, patch, user)

    def delete_note(self, note_id: int, user: Optional[str] = None) -> bool:
        return self._delete("note", note_id, user)

    # ── Links ────────────────────────────────────────────────────────────────

    def create_link(self, attrs: Optional[Dict[str, Any]] = None, user: Optional[str] = None) -> Link:
        return self._create("link", attrs, user)

    def get_link(self, link_id: int) -> Optional[Link]:
        return self._get("link", link_id)

    def list_links(self) -> List[Link]:
        return self._list("link")

    def update_link(self, link_id: int, patch: Dict[str, Any], user: Optional[str] = None) -> Link:
        return self._update("link", link_id, patch, user)

    def delete_link(self, link_id: int, user: Optional[str] = None) -> bool:
        return self._delete("link", link_id, user)

    # ── Tag catalog & settings ───────────────────────────────────────────────

    def add_tag(self, name: Optional[str], color: Optional[str] = None) -> TagDefinition:
        """Register a tag color; an existing name gets its color replaced."""
        name = (name or "").strip().lstrip("#").lower()
        if not name:
            raise ValidationError("tag name is required")
        with self._mutate() as document:
            for tag in document.tags:
                if tag.name == name:
                    tag.color = color or tag.color
                    return tag
            tag = TagDefinition(name=name, color=color or DEFAULT_TAG_COLOR)
            document.tags.append(tag)
        return tag

    def get_settings(self) -> Settings:
        return self.load().settings

    def update_settings(self, patch: Optional[Dict[str, Any]]) -> Settings:
        with self._mutate() as document:
            merged = document.settings.to_dict()
            merged.update({k: v for k, v in (patch or {}).items() if k in merged})
            document.settings = Settings.from_dict(merged)
        return document.settings
