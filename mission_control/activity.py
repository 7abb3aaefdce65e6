"""
Activity log: bounded, newest-first audit trail of store mutations.

Entries are pushed to the front of Document.activity and the list is cut
back to the most recent ``limit`` entries. Consumers read it in order;
nothing here re-sorts, edits, or removes entries otherwise.
"""
from typing import List, Optional

from .schema import ActivityEntry, ActivityType, Document

ACTIVITY_LIMIT = 100

_CREATED = {
    "task": ActivityType.TASK_CREATED,
    "note": ActivityType.NOTE_CREATED,
    "link": ActivityType.LINK_CREATED,
}
_UPDATED = {
    "task": ActivityType.TASK_UPDATED,
    "note": ActivityType.NOTE_UPDATED,
    "link": ActivityType.LINK_UPDATED,
}
_DELETED = {
    "task": ActivityType.TASK_DELETED,
    "note": ActivityType.NOTE_DELETED,
    "link": ActivityType.LINK_DELETED,
}


def created_type(kind: str) -> ActivityType:
    return _CREATED[kind]


def updated_type(kind: str) -> ActivityType:
    return _UPDATED[kind]


def deleted_type(kind: str) -> ActivityType:
    return _DELETED[kind]


def record(
    document: Document,
    activity_type: ActivityType,
    entity_id: int,
    description: str,
    user: str,
    timestamp: str,
    before: Optional[str] = None,
    after: Optional[str] = None,
    limit: int = ACTIVITY_LIMIT,
) -> ActivityEntry:
    """Push one entry to the front of the log and truncate to ``limit``."""
    entry = ActivityEntry(
        id=document.next_activity_id,
        type=activity_type,
        entity_id=entity_id,
        description=description,
        timestamp=timestamp,
        user=user,
        before=before,
        after=after,
    )
    document.next_activity_id += 1
    document.activity.insert(0, entry)
    if len(document.activity) > limit:
        del document.activity[limit:]
    return entry


def recent(document: Document, count: int = 10) -> List[ActivityEntry]:
    """The ``count`` newest entries, newest first."""
    return document.activity[:max(count, 0)]


# ── Descriptions ─────────────────────────────────────────────────────────────

def describe_created(kind: str, title: str) -> str:
    return f'Created {kind} "{title}"'


def describe_updated(kind: str, title: str) -> str:
    return f'Updated {kind} "{title}"'


def describe_deleted(kind: str, title: str) -> str:
    return f'Deleted {kind} "{title}"'


def describe_moved(title: str, from_column: str, to_column: str) -> str:
    return f'Moved "{title}" from {from_column} to {to_column}'


def describe_priority(title: str, from_priority: str, to_priority: str) -> str:
    return f'Changed priority of "{title}" from {from_priority} to {to_priority}'


def describe_comment(title: str, author: str) -> str:
    return f'{author} commented on "{title}"'
