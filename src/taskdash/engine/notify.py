# src/taskdash/engine/notify.py

"""
Notification generation.

Notifications are never stored on tasks: they are regenerated wholesale
from the task collection after every change. Ids are deterministic
(task id + kind) so read flags can be carried across regenerations by
the caller (see carry_read_state).
"""

from dataclasses import replace
from datetime import date
from typing import Final, Iterable, Sequence

from .derive import compute_status, days_remaining
from .model import Notification, NotificationKind, Priority, Status, Task


DUE_SOON_DAYS: Final[int] = 7

_ID_SUFFIX = {
    NotificationKind.OVERDUE: "overdue",
    NotificationKind.DUE_SOON: "due-soon",
    NotificationKind.COMPLETED: "completed",
}


def notification_id(task_id: str, kind: NotificationKind) -> str:
    return f"notif-{task_id}-{_ID_SUFFIX[kind]}"


def _for_task(task: Task, today: date) -> Notification | None:
    """Return the single notification a task raises today, if any."""
    days = days_remaining(task.end_date, today)
    status = compute_status(task, today)

    if status is Status.OVERDUE:
        return Notification(
            notification_id=notification_id(task.task_id, NotificationKind.OVERDUE),
            kind=NotificationKind.OVERDUE,
            message=f'"{task.name}" esta atrasada por {abs(days)} dias',
            task_id=task.task_id,
            priority=Priority.HIGH,
        )

    if 0 < days <= DUE_SOON_DAYS and status is Status.IN_PROGRESS:
        return Notification(
            notification_id=notification_id(task.task_id, NotificationKind.DUE_SOON),
            kind=NotificationKind.DUE_SOON,
            message=f'"{task.name}" vence en {days} dias',
            task_id=task.task_id,
            priority=Priority.MEDIUM,
        )

    return None


def generate_notifications(tasks: Iterable[Task], today: date) -> list[Notification]:
    """
    Scan all tasks and emit alerts for overdue and soon-due tasks.

    Ordering: priority rank (high first); ties keep task order.
    Every notification is unread; previous read flags are not consulted.
    """
    out: list[Notification] = []
    for task in tasks:
        n = _for_task(task, today)
        if n is not None:
            out.append(n)

    # sorted() is stable
    return sorted(out, key=lambda n: n.priority.rank)


def carry_read_state(
    fresh: Sequence[Notification],
    previous: Iterable[Notification],
) -> list[Notification]:
    """
    Copy read flags from a previous generation onto a fresh one.

    Matching is by notification id. Notifications that disappeared are
    dropped; new ones stay unread.
    """
    read_ids = {n.notification_id for n in previous if n.read}
    if not read_ids:
        return list(fresh)
    return [replace(n, read=True) if n.notification_id in read_ids else n for n in fresh]


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for n in notifications if not n.read)
