# src/taskdash/engine/actions.py

"""
Task mutation actions.

This module contains *all* state-changing operations on Task values:
generic field updates, activity completion toggles and forced
finalisation.

Design principles:
- Tasks are immutable; every action returns a replacement Task.
- Derived fields are recomputed after every change, except where an
  action sets them explicitly (finalize).
- No collection handling here (see store.py).
"""

from dataclasses import fields, replace
from datetime import date
from typing import Any, Mapping, Optional

from .derive import refresh
from .model import Status, Task


_TASK_FIELDS = frozenset(f.name for f in fields(Task))
_FIXED_FIELDS = frozenset({"task_id"})


# ---------------------------------------------------------------------
# Public actions
# ---------------------------------------------------------------------

def merge_updates(task: Task, changes: Mapping[str, Any], today: date) -> Task:
    """
    Merge `changes` into `task`, then recompute progress and status.

    - Unknown field names raise ValueError.
    - The id cannot be changed.
    - Derived fields passed in are overwritten by the recomputation.
    - execution_days is not touched when dates change.
    """
    unknown = sorted(set(changes) - _TASK_FIELDS)
    if unknown:
        raise ValueError(f"Unknown task field(s): {', '.join(unknown)}")

    fixed = sorted(set(changes) & _FIXED_FIELDS)
    if fixed:
        raise ValueError(f"Field(s) cannot be updated: {', '.join(fixed)}")

    return refresh(replace(task, **changes), today)


def set_activity_completed(
    task: Task,
    activity_id: str,
    completed: bool,
    today: date,
) -> Optional[Task]:
    """
    Mark one activity as completed (100%) or pending (0%).

    Any finer-grained percentage the activity held is overwritten.
    Returns None when the activity id is unknown.
    """
    if task.find_activity(activity_id) is None:
        return None

    activities = tuple(
        replace(a, completed=completed, percentage=100 if completed else 0)
        if a.activity_id == activity_id
        else a
        for a in task.activities
    )

    return refresh(replace(task, activities=activities), today)


def finalize(task: Task) -> Task:
    """
    Force-complete a task.

    Every activity becomes completed at 100%, and progress/status are set
    directly instead of going through the status calculator.
    """
    activities = tuple(replace(a, completed=True, percentage=100) for a in task.activities)
    return replace(
        task,
        activities=activities,
        total_progress=100,
        status=Status.FINISHED,
    )
