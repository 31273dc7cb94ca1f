# src/taskdash/engine/parse.py

"""
Seed data parser.

Parses a YAML seed file into in-memory Task models used to populate the
store at startup.

Document layout:

    tasks:
      - id: tarea-001
        name: ...
        areas: [Seguridad, Legal]
        start_date: 2026-03-01
        end_date: 2026-03-20
        priority: high
        activities:
          - {id: act-1, name: ..., percentage: 100, completed: true}

A bare top-level list of tasks is accepted as well.

This module performs *structural* parsing only and returns Task models.
Model-level invariants are enforced via Task.validate(). Derived fields
(progress, status) are computed here with the supplied `today`; the
store recomputes status again on load.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Final, Optional, TypeVar

import yaml

from .derive import execution_days, refresh
from .model import Activity, Area, Document, Priority, Task

logger = logging.getLogger(__name__)

E = TypeVar("E")

DEFAULT_SEED: Final[Path] = Path(__file__).resolve().parent.parent / "seed.yml"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParseError(Exception):
    """
    Raised when seed contents are syntactically or structurally invalid.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def load_seed(path: str | Path = DEFAULT_SEED, *, today: Optional[date] = None) -> list[Task]:
    """
    Read and parse a seed file.

    Parameters
    ----------
    path:
        YAML file to read. Defaults to the seed bundled with the package.

    today:
        Date used to derive initial status. Defaults to date.today().
    """
    p = Path(path)

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(str(p), f"Cannot read file: {e}") from e

    tasks = parse_seed(text, source=str(p), today=today)
    logger.info("Loaded %s task(s) from %s", len(tasks), p)
    return tasks


def parse_seed(text: str, *, source: str = "<seed>", today: Optional[date] = None) -> list[Task]:
    """
    Parse seed YAML text into Tasks.

    Task ids must be unique within the document.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseError(source, f"Invalid YAML: {e}") from e

    if data is None:
        return []

    if isinstance(data, dict):
        data = data.get("tasks", [])

    if not isinstance(data, list):
        raise ParseError(source, "Seed root must be a list of tasks or a mapping with 'tasks'")

    day = today or date.today()
    tasks: list[Task] = []
    seen: set[str] = set()

    for i, raw in enumerate(data, start=1):
        where = f"{source}: tasks[{i}]"
        if not isinstance(raw, dict):
            raise ParseError(where, "Task entry must be a mapping")

        task = _parse_task(where, raw, day)
        if task.task_id in seen:
            raise ParseError(where, f"Duplicate task id '{task.task_id}'")
        seen.add(task.task_id)
        tasks.append(task)

    return tasks


# ---------------------------------------------------------------------
# Task entries
# ---------------------------------------------------------------------

def _parse_task(path: str, data: dict[str, Any], today: date) -> Task:
    task_id = _require_str_field(path, data, "id")
    name = _require_str_field(path, data, "name")
    description = _optional_str_field(path, data, "description")

    areas = _parse_areas(path, data, "areas")
    start = _parse_date(path, data, "start_date")
    end = _parse_date(path, data, "end_date")

    exec_days = data.get("execution_days")
    if exec_days is None:
        exec_days = execution_days(start, end)
    elif not isinstance(exec_days, int) or isinstance(exec_days, bool):
        raise ParseError(path, "YAML key 'execution_days' must be an integer")

    priority = _parse_enum_field(path, data, "priority", Priority.parse, default=Priority.MEDIUM)

    requires_support = _optional_bool_field(path, data, "requires_support")
    support_areas = _parse_areas(path, data, "support_areas", required=False)

    created_on = _parse_date(path, data, "created_on") if "created_on" in data else start
    created_by = _optional_str_field(path, data, "created_by") or "Admin"

    task = Task(
        task_id=task_id.strip(),
        name=name.strip(),
        description=description.strip(),
        areas=areas,
        start_date=start,
        end_date=end,
        execution_days=exec_days,
        priority=priority,
        requires_support=requires_support,
        support_areas=support_areas if requires_support else (),
        documents=_parse_documents(path, data),
        activities=_parse_activities(path, data),
        created_by=created_by,
        created_on=created_on,
    )

    try:
        task.validate()
    except ValueError as e:
        raise ParseError(path, str(e)) from e

    return refresh(task, today)


def _require_str_field(path: str, data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise ParseError(path, f"Missing required YAML key: {key}")

    value = data[key]
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ParseError(path, f"YAML key '{key}' must be a string")

    if not value.strip():
        raise ParseError(path, f"YAML key '{key}' must be a non-empty string")

    return value


def _optional_str_field(path: str, data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ParseError(path, f"YAML key '{key}' must be a string")
    return value


def _optional_bool_field(path: str, data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ParseError(path, f"YAML key '{key}' must be true or false")
    return value


def _parse_enum_field(
    path: str,
    data: dict[str, Any],
    key: str,
    parse: Callable[[str], E],
    *,
    default: E,
) -> E:
    raw = data.get(key)
    if raw is None:
        return default
    if not isinstance(raw, str):
        raise ParseError(path, f"YAML key '{key}' must be a string")
    try:
        return parse(raw)
    except ValueError as e:
        raise ParseError(path, str(e)) from e


def _parse_areas(
    path: str,
    data: dict[str, Any],
    key: str,
    *,
    required: bool = True,
) -> tuple[Area, ...]:
    raw = data.get(key)
    if raw is None:
        if required:
            raise ParseError(path, f"Missing required YAML key: {key}")
        return ()

    if isinstance(raw, str):
        raw = [raw]

    if not isinstance(raw, list):
        raise ParseError(path, f"YAML key '{key}' must be a list of areas")

    out: list[Area] = []
    for item in raw:
        if not isinstance(item, str):
            raise ParseError(path, f"YAML key '{key}' must contain area names")
        try:
            area = Area.parse(item)
        except ValueError as e:
            raise ParseError(path, str(e)) from e
        if area not in out:
            out.append(area)

    return tuple(out)


def _parse_date(path: str, data: dict[str, Any], key: str) -> date:
    if key not in data:
        raise ParseError(path, f"Missing required YAML key: {key}")

    value = data[key]

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise ParseError(path, f"Invalid ISO date for '{key}': '{value}'") from e

    raise ParseError(path, f"YAML key '{key}' must be an ISO date string")


def _parse_activities(path: str, data: dict[str, Any]) -> tuple[Activity, ...]:
    raw = data.get("activities", [])
    if raw is None:
        return ()

    if not isinstance(raw, list):
        raise ParseError(path, "YAML key 'activities' must be a list")

    out: list[Activity] = []
    for i, item in enumerate(raw, start=1):
        if isinstance(item, str):
            # Shorthand: a bare name is a pending activity.
            out.append(Activity(activity_id=f"act-{i}", name=item.strip()))
            continue

        if not isinstance(item, dict):
            raise ParseError(path, f"activities[{i}] must be a mapping or a string")

        name = item.get("name")
        if not isinstance(name, str):
            raise ParseError(path, f"activities[{i}] must have a string 'name'")

        completed = item.get("completed", False)
        if not isinstance(completed, bool):
            raise ParseError(path, f"activities[{i}] 'completed' must be true or false")

        percentage = item.get("percentage", 100 if completed else 0)
        if not isinstance(percentage, int) or isinstance(percentage, bool):
            raise ParseError(path, f"activities[{i}] 'percentage' must be an integer")

        activity_id = item.get("id") or f"act-{i}"
        out.append(
            Activity(
                activity_id=str(activity_id),
                name=name.strip(),
                percentage=percentage,
                completed=completed,
            )
        )

    return tuple(out)


def _parse_documents(path: str, data: dict[str, Any]) -> tuple[Document, ...]:
    raw = data.get("documents", [])
    if raw is None:
        return ()

    if not isinstance(raw, list):
        raise ParseError(path, "YAML key 'documents' must be a list")

    out: list[Document] = []
    for i, item in enumerate(raw, start=1):
        if isinstance(item, str):
            s = item.strip()
            if s:
                out.append(Document(name=s))
            continue

        if isinstance(item, dict):
            name = item.get("name")
            url = item.get("url", "#")
            if not isinstance(name, str) or not isinstance(url, str):
                raise ParseError(path, f"documents[{i}] must have string 'name' and 'url'")
            out.append(Document(name=name.strip(), url=url.strip() or "#"))
            continue

        raise ParseError(path, f"documents[{i}] must be a mapping {{name, url}} or a string")

    return tuple(out)
