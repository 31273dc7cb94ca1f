# src/taskdash/engine/model.py

"""
Core domain models.

This module defines the in-memory representations of tasks, activities,
documents and notifications, the closed enumerations they are built from
(status, priority, area), and the viewer context used by the views.

Task records are immutable values: every mutation produces a replacement
record (see actions.py). No filesystem access should happen here.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum


# ---------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------

class Status(str, Enum):
    """
    Task lifecycle status.

    Always derived from (today, start_date, end_date, total_progress);
    see derive.compute_status.
    """

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def parse(cls, raw: str) -> "Status":
        """Accept either the stored value or the display label."""
        return _parse_enum(cls, raw)


_STATUS_LABELS = {
    Status.PLANNED: "Planificado",
    Status.IN_PROGRESS: "En curso",
    Status.FINISHED: "Finalizado",
    Status.OVERDUE: "Atrasado",
}


# ---------------------------------------------------------------------
# Priority
# ---------------------------------------------------------------------

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        return _PRIORITY_LABELS[self]

    @property
    def rank(self) -> int:
        """
        Numeric rank for ordering.

        Lower value = more urgent.
        """
        order = {
            Priority.HIGH: 0,
            Priority.MEDIUM: 1,
            Priority.LOW: 2,
        }
        return order[self]

    @classmethod
    def parse(cls, raw: str) -> "Priority":
        return _parse_enum(cls, raw)


_PRIORITY_LABELS = {
    Priority.HIGH: "Alta",
    Priority.MEDIUM: "Media",
    Priority.LOW: "Baja",
}


# ---------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------

class Area(str, Enum):
    """
    Organisational areas that own or support tasks.

    This is a closed set. Declaration order is the canonical order for
    charts and legends.
    """

    SAFETY = "Seguridad"
    COMMUNITIES = "Comunidades"
    LEGAL = "Legal"
    MAINTENANCE = "Mantenimiento"
    ENVIRONMENT = "Medio Ambiente"
    OPERATIONS = "Operaciones"
    QUALITY = "Calidad"
    PROCUREMENT = "Compras"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> "Area":
        return _parse_enum(cls, raw)


AREAS: tuple[Area, ...] = tuple(Area)

MONTHS: tuple[str, ...] = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)


def _parse_enum(enum_cls, raw: str):
    """
    Resolve `raw` against an enum by value, member name or display label.

    Matching is case-insensitive. Raises ValueError when nothing matches.
    """
    s = (raw or "").strip().lower()
    for member in enum_cls:
        candidates = {member.value.lower(), member.name.lower(), member.label.lower()}
        if s in candidates:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Invalid {enum_cls.__name__.lower()} '{raw}' (allowed: {allowed})")


# ---------------------------------------------------------------------
# Activity / Document
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Activity:
    """
    A unit of work inside a task.

    `percentage` is caller-controlled (0..100); toggling completion
    forces it to 0 or 100.
    """

    activity_id: str
    name: str
    percentage: int = 0
    completed: bool = False


@dataclass(frozen=True, slots=True)
class Document:
    """An attachment reference. Purely descriptive, never validated."""

    name: str
    url: str = "#"


# ---------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Task:
    """
    In-memory representation of a tracked task.

    Notes:
    - total_progress and status are derived fields; callers never set
      them directly (see derive.refresh).
    - execution_days is captured at creation and not recomputed when
      dates change.
    - support_areas is meaningful only when requires_support is True.
    """

    # Identity
    task_id: str
    name: str
    description: str

    # Ownership
    areas: tuple[Area, ...]

    # Schedule
    start_date: date
    end_date: date
    execution_days: int

    priority: Priority = Priority.MEDIUM

    requires_support: bool = False
    support_areas: tuple[Area, ...] = ()

    documents: tuple[Document, ...] = ()
    activities: tuple[Activity, ...] = ()

    # Derived
    total_progress: int = 0
    status: Status = Status.PLANNED

    # Creation metadata
    created_by: str = "Admin"
    created_on: date | None = None

    # -----------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------

    def validate(self) -> None:
        """
        Validate core invariants independent of any input source.

        Raises ValueError on the first violated rule.
        """
        if not self.task_id or not self.task_id.strip():
            raise ValueError("task_id must be a non-empty string")

        if not self.name or not self.name.strip():
            raise ValueError("name must be a non-empty string")

        if not self.areas:
            raise ValueError("at least one owning area is required")

        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")

        if not any(a.name.strip() for a in self.activities):
            raise ValueError("at least one named activity is required")

        for a in self.activities:
            if not 0 <= a.percentage <= 100:
                raise ValueError(f"activity '{a.activity_id}' percentage must be within 0..100")

    # -----------------------------------------------------------------
    # Convenience properties
    # -----------------------------------------------------------------

    @property
    def completed_activities(self) -> int:
        return sum(1 for a in self.activities if a.completed)

    @property
    def all_areas(self) -> tuple[Area, ...]:
        """Owning areas followed by supporting areas."""
        return self.areas + tuple(a for a in self.support_areas if a not in self.areas)

    def find_activity(self, activity_id: str) -> Activity | None:
        for a in self.activities:
            if a.activity_id == activity_id:
                return a
        return None


# ---------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------

class NotificationKind(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    COMPLETED = "completed"  # reserved; never generated


@dataclass(frozen=True, slots=True)
class Notification:
    """
    Ephemeral alert derived from the task collection.

    notification_id is deterministic (task id + kind), so the same
    condition yields the same id across regenerations.
    """

    notification_id: str
    kind: NotificationKind
    message: str
    task_id: str
    priority: Priority
    read: bool = False


# ---------------------------------------------------------------------
# Viewer
# ---------------------------------------------------------------------

class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"

    @property
    def label(self) -> str:
        return "Administrador" if self is Role.ADMIN else "Usuario"

    @classmethod
    def parse(cls, raw: str) -> "Role":
        return _parse_enum(cls, raw)


@dataclass(frozen=True, slots=True)
class ViewerContext:
    """
    The role/area toggle of the dashboard.

    This is a view preference, not access control: it decides which
    tasks a view shows and how creations are labelled.
    """

    role: Role = Role.ADMIN
    area: Area = Area.SAFETY

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def can_create(self) -> bool:
        return self.is_admin

    @property
    def creator_label(self) -> str:
        return "Admin" if self.is_admin else self.area.label

    @property
    def display_name(self) -> str:
        return self.role.label if self.is_admin else f"{self.role.label} {self.area.label}"

