# src/taskdash/engine/query.py

"""
List views: filtering, ordering and paging of task collections.

These are the read paths behind the task list, "my tasks" and
"collaborative tasks" views. They never mutate tasks.
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Final, Generic, Iterable, Optional, Sequence, TypeVar

from .derive import compute_status, days_remaining
from .model import Area, Priority, Status, Task, ViewerContext
from .notify import DUE_SOON_DAYS

T = TypeVar("T")

PER_PAGE: Final[int] = 10


# ---------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TaskFilter:
    """
    List filter. Every criterion is optional; None means "all".

    `month` is the start date's month index (0 = January).
    """

    search: str = ""
    month: Optional[int] = None
    area: Optional[Area] = None
    status: Optional[Status] = None
    priority: Optional[Priority] = None

    def matches(self, task: Task, today: date) -> bool:
        needle = self.search.strip().lower()
        if needle and needle not in task.name.lower() and needle not in task.description.lower():
            return False

        if self.month is not None and task.start_date.month - 1 != self.month:
            return False

        if self.area is not None and self.area not in task.areas:
            return False

        if self.status is not None and compute_status(task, today) is not self.status:
            return False

        if self.priority is not None and task.priority is not self.priority:
            return False

        return True


def filter_tasks(tasks: Iterable[Task], flt: TaskFilter, today: date) -> list[Task]:
    return [t for t in tasks if flt.matches(t, today)]


# ---------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------

class SortField(str, Enum):
    NAME = "name"
    STATUS = "status"
    PROGRESS = "progress"
    END_DATE = "end_date"
    PRIORITY = "priority"


def sort_tasks(
    tasks: Iterable[Task],
    field: SortField = SortField.END_DATE,
    *,
    descending: bool = False,
    today: date,
) -> list[Task]:
    """
    Order tasks for the list view.

    Status sorts by its display label, as the list column shows it.
    The sort is stable, so equal keys keep their collection order.
    """
    keys = {
        SortField.NAME: lambda t: t.name.lower(),
        SortField.STATUS: lambda t: compute_status(t, today).label,
        SortField.PROGRESS: lambda t: t.total_progress,
        SortField.END_DATE: lambda t: t.end_date,
        SortField.PRIORITY: lambda t: t.priority.rank,
    }
    return sorted(tasks, key=keys[field], reverse=descending)


def by_deadline(tasks: Iterable[Task], today: date) -> list[Task]:
    """Closest deadline first (overdue tasks lead)."""
    return sorted(tasks, key=lambda t: days_remaining(t.end_date, today))


# ---------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    pages: int
    total: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def paginate(items: Sequence[T], page: int = 1, per_page: int = PER_PAGE) -> Page[T]:
    """
    Slice `items` into 1-based pages.

    Out-of-range page numbers clamp to the first/last page.
    """
    if per_page < 1:
        raise ValueError("per_page must be >= 1")

    total = len(items)
    pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), pages)

    start = (page - 1) * per_page
    return Page(items=list(items[start:start + per_page]), page=page, pages=pages, total=total)


# ---------------------------------------------------------------------
# Viewer-scoped views
# ---------------------------------------------------------------------

def my_tasks(tasks: Iterable[Task], viewer: ViewerContext, today: date) -> list[Task]:
    """Admins see everything; users see tasks their area owns."""
    items = list(tasks)
    if not viewer.is_admin:
        items = [t for t in items if viewer.area in t.areas]
    return by_deadline(items, today)


def shared_tasks(tasks: Iterable[Task], viewer: ViewerContext, today: date) -> list[Task]:
    """Tasks a user's area supports without owning them. Empty for admins."""
    if viewer.is_admin:
        return []
    items = [
        t for t in tasks
        if viewer.area not in t.areas and viewer.area in t.support_areas
    ]
    return by_deadline(items, today)


def collaborative_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Tasks owned by several areas, or requiring support from another one."""
    return [
        t for t in tasks
        if len(t.areas) > 1 or (t.requires_support and len(t.support_areas) > 0)
    ]


def filter_collaborative(
    tasks: Iterable[Task],
    *,
    area: Optional[Area] = None,
    status: Optional[Status] = None,
    today: date,
) -> list[Task]:
    """The area criterion matches owners and supporters alike."""
    out: list[Task] = []
    for t in tasks:
        if area is not None and area not in t.all_areas:
            continue
        if status is not None and compute_status(t, today) is not status:
            continue
        out.append(t)
    return out


def due_soon_count(tasks: Iterable[Task], today: date) -> int:
    count = 0
    for t in tasks:
        days = days_remaining(t.end_date, today)
        if 0 < days <= DUE_SOON_DAYS and compute_status(t, today) is not Status.FINISHED:
            count += 1
    return count
