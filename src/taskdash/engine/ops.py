# src/taskdash/engine/ops.py

"""
Task creation.

This module contains:
- the new-task request object,
- task id generation,
- assembly of a complete Task from a request (creation metadata,
  execution days, derived fields).

No validation is performed here (see validate.py) and nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from .derive import execution_days, refresh
from .model import Activity, Area, Document, Priority, Task


# ---------------------------------------------------------------------
# Public request objects
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class NewTaskRequest:
    """
    Parameters for creating a new task.

    Everything except id, creation metadata and derived fields.
    """

    name: str
    description: str = ""
    areas: tuple[Area, ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    priority: Priority = Priority.MEDIUM
    requires_support: bool = False
    support_areas: tuple[Area, ...] = ()
    documents: tuple[Document, ...] = ()
    activities: tuple[Activity, ...] = ()


def activities_from_names(names: Iterable[str], *, prefix: str = "act") -> tuple[Activity, ...]:
    """
    Build fresh, incomplete activities from plain names.

    Blank names are skipped; ids are numbered from 1 in input order.
    """
    out: list[Activity] = []
    for name in names:
        s = (name or "").strip()
        if not s:
            continue
        out.append(Activity(activity_id=f"{prefix}-{len(out) + 1}", name=s))
    return tuple(out)


def documents_from_specs(specs: Iterable[str]) -> tuple[Document, ...]:
    """
    Convert "name=url" strings into Documents.

    A bare name gets the placeholder url "#".
    """
    out: list[Document] = []
    for raw in specs:
        s = (raw or "").strip()
        if not s:
            continue
        if "=" in s:
            name, url = s.split("=", 1)
            out.append(Document(name=name.strip(), url=url.strip() or "#"))
        else:
            out.append(Document(name=s))
    return tuple(out)


# ---------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------

def next_task_seq(existing_ids: Iterable[str], created: date) -> int:
    """
    Compute the next sequence number for the given creation date.
    """
    prefix = f"tarea-{created:%Y%m%d}-"
    best = 0

    for task_id in existing_ids:
        if not task_id.startswith(prefix):
            continue

        try:
            n = int(task_id[len(prefix):])
        except ValueError:
            continue

        if n > best:
            best = n

    return best + 1


def make_task_id(existing_ids: Iterable[str], created: date) -> str:
    seq = next_task_seq(existing_ids, created)
    return f"tarea-{created:%Y%m%d}-{seq:03d}"


# ---------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------

def build_task(
    req: NewTaskRequest,
    *,
    task_id: str,
    created_on: date,
    created_by: str,
    today: date,
) -> Task:
    """
    Assemble a Task from a request.

    Behaviour:
    - activities with blank names are dropped;
    - support areas are cleared when support is not required;
    - execution_days is captured from the dates (0 when either is missing);
    - total_progress and status are derived last.

    The request is trusted: callers validate it first when they need to.
    """
    start = req.start_date or created_on
    end = req.end_date or start

    task = Task(
        task_id=task_id,
        name=req.name.strip(),
        description=req.description.strip(),
        areas=tuple(req.areas),
        start_date=start,
        end_date=end,
        execution_days=execution_days(start, end),
        priority=req.priority,
        requires_support=req.requires_support,
        support_areas=tuple(req.support_areas) if req.requires_support else (),
        documents=tuple(req.documents),
        activities=tuple(a for a in req.activities if a.name.strip()),
        created_by=created_by,
        created_on=created_on,
    )

    return refresh(task, today)
