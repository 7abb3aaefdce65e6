"""
Quick capture: one line of free text in, one structured task/note/link out.

Task syntax (every token is optional and removed from the title):
    #tag            -> tags (lower-cased)
    !high|!medium|!low -> priority (default medium)
    @name           -> assignee, client entry point only
    tomorrow | today | next week | D/M[/YY[YY]] -> due date

    "Fix bug #urgent !high tomorrow"
      -> title="Fix bug", tags=["urgent"], priority=high, due=today+1

parse() is pure and never raises. QuickCapture wraps it with the side
effects: the link title fetch and the store write.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .link_titles import FETCH_TIMEOUT, MAX_BYTES, fetch_title
from .schema import USERS, Link, Note, Priority, Task
from .temporal import local_today

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"#(\w+)")
_PRIORITY_RE = re.compile(r"!(high|medium|low)", re.IGNORECASE)
_ASSIGNEE_RE = re.compile(r"@(\w+)")
_TOMORROW_RE = re.compile(r"\btomorrow\b", re.IGNORECASE)
_TODAY_RE = re.compile(r"\btoday\b", re.IGNORECASE)
_NEXT_WEEK_RE = re.compile(r"\bnext\s+week\b", re.IGNORECASE)
_DATE_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?\b")
_ICON_RE = re.compile(r"\bicon\b", re.IGNORECASE)
_CAPSTONE_RE = re.compile(r"\bcapstone\b", re.IGNORECASE)


class CaptureType(Enum):
    TASK = "task"
    NOTE = "note"
    LINK = "link"

    @classmethod
    def from_str(cls, value: Any) -> "CaptureType":
        if isinstance(value, CaptureType):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            return cls.TASK

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return str(value).lower() in {t.value for t in cls}


class CaptureSource(Enum):
    """Which entry point is parsing. They differ in @name handling and default assignee."""
    SERVER = "server"    # POST /quick-capture: no @name, assignee Adam
    CLIENT = "client"    # client-side preview: @name parsed, assignee Atticus


DEFAULT_ASSIGNEE = {
    CaptureSource.SERVER: "Adam",
    CaptureSource.CLIENT: "Atticus",
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drafts
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class TaskDraft:
    title: str
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    due_date: Optional[date] = None
    category: str = "Personal"
    assignee: str = "Adam"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "category": self.category,
            "assignee": self.assignee,
        }


@dataclass
class NoteDraft:
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    pinned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "pinned": self.pinned,
        }


@dataclass
class LinkDraft:
    url: str
    title: Optional[str] = None    # resolved later by the title fetch

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "title": self.title or self.url}


EntityDraft = Union[TaskDraft, NoteDraft, LinkDraft]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parsing
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _explicit_date(match: "re.Match", today: date) -> Optional[date]:
    day, month, year = match.group(1), match.group(2), match.group(3)
    if year is None:
        target_year = today.year
    elif len(year) == 2:
        target_year = 2000 + int(year)
    else:
        target_year = int(year)
    try:
        return date(target_year, int(month), int(day))
    except ValueError:
        return None


def _resolve_due_date(text: str, today: date):
    """Return (due_date, remaining_text). First matching rule wins."""
    if _TOMORROW_RE.search(text):
        return today + timedelta(days=1), _TOMORROW_RE.sub(" ", text)
    if _TODAY_RE.search(text):
        return today, _TODAY_RE.sub(" ", text)
    if _NEXT_WEEK_RE.search(text):
        return today + timedelta(days=7), _NEXT_WEEK_RE.sub(" ", text)
    match = _DATE_RE.search(text)
    if match:
        due = _explicit_date(match, today)
        if due is not None and due > today:
            return due, text[:match.start()] + " " + text[match.end():]
    return None, text


def _infer_category(raw: str, tags: List[str]) -> str:
    if "icon" in tags or _ICON_RE.search(raw):
        return "ICON"
    if "capstone" in tags or _CAPSTONE_RE.search(raw):
        return "Capstone"
    if "setup" in tags or "config" in tags:
        return "Atticus Setup"
    return "Personal"


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _known_user(name: str) -> Optional[str]:
    for user in USERS:
        if user.lower() == name.lower():
            return user
    return None


def parse_task(
    text: str,
    today: Optional[date] = None,
    source: CaptureSource = CaptureSource.SERVER,
) -> TaskDraft:
    raw = _as_text(text)
    today = today or local_today()
    work = raw

    tags: List[str] = []
    for name in _TAG_RE.findall(work):
        tag = name.lower()
        if tag not in tags:
            tags.append(tag)
    work = _TAG_RE.sub(" ", work)

    priority = Priority.MEDIUM
    match = _PRIORITY_RE.search(work)
    if match:
        priority = Priority.from_str(match.group(1))
        work = _PRIORITY_RE.sub(" ", work)

    assignee = DEFAULT_ASSIGNEE[source]
    if source is CaptureSource.CLIENT:
        for name in _ASSIGNEE_RE.findall(work):
            user = _known_user(name)
            if user:
                assignee = user
                break
        # Only mentions of known users are consumed; other @words stay in the title
        work = _ASSIGNEE_RE.sub(
            lambda m: " " if _known_user(m.group(1)) else m.group(0), work
        )

    due_date, work = _resolve_due_date(work, today)

    return TaskDraft(
        title=re.sub(r"\s+", " ", work).strip(),
        priority=priority,
        tags=tags,
        due_date=due_date,
        category=_infer_category(raw, tags),
        assignee=assignee,
    )


def parse_note(text: str) -> NoteDraft:
    raw = _as_text(text)
    first_line = raw.strip().split("\n", 1)[0].strip()
    return NoteDraft(title=first_line or "Quick Note", content=raw)


def normalize_url(text: str) -> str:
    url = _as_text(text).strip()
    if not url.startswith("http"):
        url = "https://" + re.sub(r"^www\.", "", url)
    return url


def parse_link(text: str) -> LinkDraft:
    return LinkDraft(url=normalize_url(text))


def parse(
    raw_text: str,
    type_hint: Union[str, CaptureType] = CaptureType.TASK,
    today: Optional[date] = None,
    source: CaptureSource = CaptureSource.SERVER,
) -> EntityDraft:
    """Turn one line of free text into a draft. Never raises."""
    raw_text = _as_text(raw_text)
    kind = CaptureType.from_str(type_hint)
    if kind is CaptureType.NOTE:
        return parse_note(raw_text)
    if kind is CaptureType.LINK:
        return parse_link(raw_text)
    return parse_task(raw_text, today=today, source=source)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Capture service
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class QuickCapture:
    """Parse, resolve link titles, and write the result through the store."""

    def __init__(
        self,
        store,
        title_fetcher: Callable[..., Optional[str]] = fetch_title,
        fetch_timeout: float = FETCH_TIMEOUT,
        max_bytes: int = MAX_BYTES,
    ):
        self.store = store
        self.title_fetcher = title_fetcher
        self.fetch_timeout = fetch_timeout
        self.max_bytes = max_bytes

    def resolve_title(self, url: str) -> str:
        """Remote page title, falling back to the URL itself."""
        try:
            title = self.title_fetcher(url, timeout=self.fetch_timeout, max_bytes=self.max_bytes)
        except Exception as e:
            logger.info(f"Title lookup for {url} failed: {e}")
            title = None
        return title or url

    def capture(
        self,
        text: str,
        type_hint: Union[str, CaptureType] = CaptureType.TASK,
        user: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Union[Task, Note, Link]:
        draft = parse(text, type_hint, today=today, source=CaptureSource.SERVER)
        if isinstance(draft, NoteDraft):
            return self.store.create_note(draft.to_dict(), user=user)
        if isinstance(draft, LinkDraft):
            # Fetch happens outside the store's write lock
            draft.title = self.resolve_title(draft.url)
            return self.store.create_link(draft.to_dict(), user=user)
        return self.store.create_task(draft.to_dict(), user=user)

    def preview(
        self,
        text: str,
        type_hint: Union[str, CaptureType] = CaptureType.TASK,
        today: Optional[date] = None,
    ) -> EntityDraft:
        """Client-side parse: nothing is fetched or stored."""
        return parse(text, type_hint, today=today, source=CaptureSource.CLIENT)
