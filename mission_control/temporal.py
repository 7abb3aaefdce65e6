"""
Temporal windows over tasks, relative to the local calendar day.

  today    - due on today's date
  overdue  - due before today and not in the Done column
  upcoming - due after today, up to and including today + 7 days

Due dates carry no time component, so "end of the due day is before the
start of today" reduces to ``due_date < today``.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .schema import Task

UPCOMING_DAYS = 7


@dataclass
class TemporalView:
    today: List[Task] = field(default_factory=list)
    overdue: List[Task] = field(default_factory=list)
    upcoming: List[Task] = field(default_factory=list)


def local_today() -> date:
    return datetime.now().date()


def is_due_today(task: Task, today: date) -> bool:
    return task.due_date is not None and task.due_date == today


def is_overdue(task: Task, today: date) -> bool:
    return task.due_date is not None and task.due_date < today and not task.is_done


def is_upcoming(task: Task, today: date, days: int = UPCOMING_DAYS) -> bool:
    if task.due_date is None:
        return False
    return today < task.due_date <= today + timedelta(days=days)


def classify(
    tasks: Iterable[Task],
    today: Optional[date] = None,
    upcoming_days: int = UPCOMING_DAYS,
) -> TemporalView:
    """Sort tasks into the three windows; each task lands in at most one."""
    today = today or local_today()
    view = TemporalView()
    for task in tasks:
        if is_due_today(task, today):
            view.today.append(task)
        elif is_overdue(task, today):
            view.overdue.append(task)
        elif is_upcoming(task, today, upcoming_days):
            view.upcoming.append(task)
    return view
