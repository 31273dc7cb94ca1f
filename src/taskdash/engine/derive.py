# src/taskdash/engine/derive.py

"""
Derived task fields.

Pure functions that compute a task's status and total progress from its
dates and activities. `today` is always passed in explicitly; nothing
here reads the wall clock.
"""

import math
from dataclasses import replace
from datetime import date
from typing import Iterable

from .model import Activity, Status, Task


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up (2.5 -> 3).
    """
    return int(math.floor(value + 0.5))


def compute_status(task: Task, today: date) -> Status:
    """
    Derive lifecycle status. Rules are evaluated in order:

    1. progress 100       -> finished
    2. today < start      -> planned
    3. today > end        -> overdue
    4. otherwise          -> in progress
    """
    if task.total_progress == 100:
        return Status.FINISHED
    if today < task.start_date:
        return Status.PLANNED
    if today > task.end_date:
        return Status.OVERDUE
    return Status.IN_PROGRESS


def total_progress(activities: Iterable[Activity]) -> int:
    items = list(activities)
    if not items:
        return 0
    return round_half_up(sum(a.percentage for a in items) / len(items))


def days_remaining(end_date: date, today: date) -> int:
    """Whole days until `end_date` (negative once it has passed)."""
    return (end_date - today).days


def execution_days(start_date: date, end_date: date) -> int:
    return max(0, (end_date - start_date).days)


def refresh(task: Task, today: date) -> Task:
    """
    Return `task` with total_progress and status recomputed.

    Progress is recomputed first because status depends on it.
    """
    progressed = replace(task, total_progress=total_progress(task.activities))
    return replace(progressed, status=compute_status(progressed, today))
