"""
Mission Control document schema.

One JSON document holds the whole board:
  columns, categories, tag catalog, settings,
  tasks, notes, links, activity, and one id counter per entity type.

Entities serialize to camelCase keys (the wire and disk format). Keys that
the model does not know about are carried through untouched in ``extra`` so
shallow-merge updates never drop client data.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

USERS = ("Adam", "Atticus")
DONE_COLUMN = "Done"
DEFAULT_COLUMNS = ["Backlog", "To Do", "In Progress", "Review", DONE_COLUMN]
DEFAULT_CATEGORIES = ["ICON", "Capstone", "Personal", "Atticus Setup"]
DEFAULT_TAG_COLOR = "#6366f1"


class Priority(Enum):
    """Task priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_str(cls, value: Any) -> "Priority":
        if isinstance(value, Priority):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            return cls.MEDIUM


class ActivityType(Enum):
    """Closed set of activity kinds. Nothing else is recorded."""
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_MOVED = "task_moved"
    TASK_DELETED = "task_deleted"
    NOTE_CREATED = "note_created"
    NOTE_UPDATED = "note_updated"
    NOTE_DELETED = "note_deleted"
    LINK_CREATED = "link_created"
    LINK_UPDATED = "link_updated"
    LINK_DELETED = "link_deleted"
    COMMENT_ADDED = "comment_added"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Field coercion
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def parse_due_date(value: Any) -> Optional[date]:
    """Accept YYYY-MM-DD (or a full ISO timestamp); anything else is no date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def normalize_tags(value: Any) -> List[str]:
    """Lower-case, de-duplicated, order-preserving tag list."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    tags: List[str] = []
    for raw in value:
        tag = str(raw).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _items(value: Any) -> list:
    """A list or tuple as a list; anything else as empty."""
    return list(value) if isinstance(value, (list, tuple)) else []


def _split_extra(data: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Task parts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Comment:
    text: str
    author: str = "Adam"
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "author": self.author, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            text=_text(data.get("text")),
            author=_text(data.get("author"), "Adam"),
            created_at=_text(data.get("createdAt")),
        )


@dataclass
class Reminder:
    """A point in time to nudge about a task; ``fired`` flips once delivered."""
    at: str
    fired: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"at": self.at, "fired": self.fired}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reminder":
        return cls(at=_text(data.get("at")), fired=bool(data.get("fired", False)))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Entities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Task:
    """A kanban card."""

    id: int
    title: str = "Untitled"
    description: str = ""
    column: str = "Backlog"        # not validated against Document.columns
    priority: Priority = Priority.MEDIUM
    category: str = "Personal"
    assignee: str = "Adam"
    due_date: Optional[date] = None
    tags: List[str] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    reminders: List[Reminder] = field(default_factory=list)
    recurrence: Optional[Any] = None
    attached_notes: List[int] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    KEYS = ("id", "title", "description", "column", "priority", "category",
            "assignee", "dueDate", "tags", "comments", "reminders", "recurrence",
            "attachedNotes", "createdAt", "updatedAt")

    @property
    def is_done(self) -> bool:
        return self.column == DONE_COLUMN

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "column": self.column,
            "priority": self.priority.value,
            "category": self.category,
            "assignee": self.assignee,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "tags": list(self.tags),
            "comments": [c.to_dict() for c in self.comments],
            "reminders": [r.to_dict() for r in self.reminders],
            "recurrence": self.recurrence,
            "attachedNotes": list(self.attached_notes),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=int(data["id"]),
            title=_text(data.get("title"), "Untitled"),
            description=_text(data.get("description")),
            column=_text(data.get("column"), "Backlog"),
            priority=Priority.from_str(data.get("priority", "medium")),
            category=_text(data.get("category"), "Personal"),
            assignee=_text(data.get("assignee"), "Adam"),
            due_date=parse_due_date(data.get("dueDate")),
            tags=normalize_tags(data.get("tags", [])),
            comments=[Comment.from_dict(c) for c in _items(data.get("comments"))
                      if isinstance(c, dict)],
            reminders=[Reminder.from_dict(r) for r in _items(data.get("reminders"))
                       if isinstance(r, dict)],
            recurrence=data.get("recurrence"),
            attached_notes=_items(data.get("attachedNotes")),
            created_at=_text(data.get("createdAt")),
            updated_at=_text(data.get("updatedAt")),
            extra=_split_extra(data, cls.KEYS),
        )


@dataclass
class Note:
    """Freeform markdown note."""

    id: int
    title: str = "Untitled Note"
    content: str = ""
    tags: List[str] = field(default_factory=list)
    pinned: bool = False
    created_at: str = ""
    updated_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    KEYS = ("id", "title", "content", "tags", "pinned", "createdAt", "updatedAt")

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "pinned": self.pinned,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        return cls(
            id=int(data["id"]),
            title=_text(data.get("title"), "Untitled Note"),
            content=_text(data.get("content")),
            tags=normalize_tags(data.get("tags", [])),
            pinned=bool(data.get("pinned", False)),
            created_at=_text(data.get("createdAt")),
            updated_at=_text(data.get("updatedAt")),
            extra=_split_extra(data, cls.KEYS),
        )


@dataclass
class Link:
    """Bookmarked URL."""

    id: int
    url: str
    title: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    KEYS = ("id", "url", "title", "description", "tags", "createdAt", "updatedAt")

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "url": self.url,
            "title": self.title or self.url,
            "description": self.description,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        url = _text(data.get("url"))
        return cls(
            id=int(data["id"]),
            url=url,
            title=_text(data.get("title")) or url,
            description=_text(data.get("description")),
            tags=normalize_tags(data.get("tags", [])),
            created_at=_text(data.get("createdAt")),
            updated_at=_text(data.get("updatedAt")),
            extra=_split_extra(data, cls.KEYS),
        )


@dataclass
class ActivityEntry:
    """One audit-trail line. ``before``/``after`` carry the changed value for moves and priority changes."""

    id: int
    type: ActivityType
    entity_id: int
    description: str
    timestamp: str
    user: str = "Adam"
    before: Optional[str] = None
    after: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type.value,
            "entityId": self.entity_id,
            "description": self.description,
            "timestamp": self.timestamp,
            "user": self.user,
        }
        if self.before is not None or self.after is not None:
            data["before"] = self.before
            data["after"] = self.after
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityEntry":
        """Raises ValueError for an activity type outside ActivityType."""
        return cls(
            id=int(data.get("id", 0)),
            type=ActivityType(data.get("type")),
            entity_id=int(data.get("entityId", 0)),
            description=_text(data.get("description")),
            timestamp=_text(data.get("timestamp")),
            user=_text(data.get("user"), "Adam"),
            before=data.get("before"),
            after=data.get("after"),
        )


@dataclass
class TagDefinition:
    name: str
    color: str = DEFAULT_TAG_COLOR

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TagDefinition":
        return cls(
            name=_text(data.get("name")).strip().lower(),
            color=_text(data.get("color")) or DEFAULT_TAG_COLOR,
        )


@dataclass
class Settings:
    theme: str = "dark"
    focus_mode: bool = False
    default_view: str = "dashboard"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theme": self.theme,
            "focusMode": self.focus_mode,
            "defaultView": self.default_view,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        data = data or {}
        return cls(
            theme=_text(data.get("theme"), "dark"),
            focus_mode=bool(data.get("focusMode", False)),
            default_view=_text(data.get("defaultView"), "dashboard"),
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Document
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Document:
    """The whole persisted state."""

    columns: List[str] = field(default_factory=lambda: list(DEFAULT_COLUMNS))
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    tags: List[TagDefinition] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    tasks: List[Task] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    activity: List[ActivityEntry] = field(default_factory=list)   # newest first
    next_task_id: int = 1
    next_note_id: int = 1
    next_link_id: int = 1
    next_activity_id: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "categories": list(self.categories),
            "tags": [t.to_dict() for t in self.tags],
            "settings": self.settings.to_dict(),
            "tasks": [t.to_dict() for t in self.tasks],
            "notes": [n.to_dict() for n in self.notes],
            "links": [l.to_dict() for l in self.links],
            "activity": [a.to_dict() for a in self.activity],
            "nextTaskId": self.next_task_id,
            "nextNoteId": self.next_note_id,
            "nextLinkId": self.next_link_id,
            "nextActivityId": self.next_activity_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Deserialize, filling defaults for anything a legacy document lacks."""
        if "nextId" in data and "nextTaskId" not in data:
            logger.info("Migrating legacy document counter nextId -> nextTaskId")
            data = dict(data, nextTaskId=data["nextId"])

        activity: List[ActivityEntry] = []
        for raw in data.get("activity") or []:
            try:
                activity.append(ActivityEntry.from_dict(raw))
            except (ValueError, TypeError, AttributeError):
                logger.warning(f"Skipping unreadable activity entry: {raw!r}")

        doc = cls(
            columns=list(data.get("columns") or DEFAULT_COLUMNS),
            categories=list(data.get("categories") or DEFAULT_CATEGORIES),
            tags=[TagDefinition.from_dict(t) for t in data.get("tags") or []
                  if isinstance(t, dict)],
            settings=Settings.from_dict(data.get("settings")),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            links=[Link.from_dict(l) for l in data.get("links") or []],
            activity=activity,
            next_task_id=int(data.get("nextTaskId") or 1),
            next_note_id=int(data.get("nextNoteId") or 1),
            next_link_id=int(data.get("nextLinkId") or 1),
            next_activity_id=int(data.get("nextActivityId") or 1),
        )
        # Counters never regress below what is already on disk
        doc.next_task_id = max(doc.next_task_id, _max_id(doc.tasks) + 1)
        doc.next_note_id = max(doc.next_note_id, _max_id(doc.notes) + 1)
        doc.next_link_id = max(doc.next_link_id, _max_id(doc.links) + 1)
        doc.next_activity_id = max(doc.next_activity_id, _max_id(doc.activity) + 1)
        return doc


def _max_id(items: list) -> int:
    return max((item.id for item in items), default=0)
