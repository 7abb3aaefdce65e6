"""
Linear cross-entity search.

Case-insensitive substring match, per entity type:
  tasks - title, description, tags
  notes - title, content, tags
  links - title, description, url, tags
An empty (or whitespace-only) query matches nothing.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .schema import Document, Link, Note, Task


@dataclass
class SearchResults:
    tasks: List[Task] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "notes": [n.to_dict() for n in self.notes],
            "links": [l.to_dict() for l in self.links],
        }


def _matches(needle: str, fields: Iterable[str], tags: Iterable[str]) -> bool:
    if any(needle in (value or "").lower() for value in fields):
        return True
    return any(needle in tag.lower() for tag in tags)


def search(document: Document, query: str) -> SearchResults:
    needle = (query or "").strip().lower()
    results = SearchResults()
    if not needle:
        return results

    results.tasks = [
        t for t in document.tasks
        if _matches(needle, (t.title, t.description), t.tags)
    ]
    results.notes = [
        n for n in document.notes
        if _matches(needle, (n.title, n.content), n.tags)
    ]
    results.links = [
        l for l in document.links
        if _matches(needle, (l.title, l.description, l.url), l.tags)
    ]
    return results
