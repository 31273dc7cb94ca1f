# src/taskdash/engine/store.py

"""
In-memory task store.

The store owns the authoritative task collection, the notification list
and the viewer context. It is constructed once by the caller (the CLI)
and passed around explicitly; there is no module-level instance.

Consistency model:
- writes are replace-on-write: a new tuple is built and swapped in, so a
  failed or unmatched operation never leaves partial state behind;
- notifications are regenerated from the whole collection after every
  task mutation (O(n) per write, fine for dashboard-sized collections);
- unknown ids are a silent no-op reported through the return value.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Iterable, Optional

from .actions import finalize, merge_updates, set_activity_completed
from .derive import compute_status
from .model import Area, Notification, Role, Task, ViewerContext
from .notify import carry_read_state, generate_notifications
from .ops import NewTaskRequest, build_task, make_task_id
from .validate import validate_new_task

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


class TaskStore:
    """
    Task collection plus derived notifications.

    Parameters
    ----------
    tasks:
        Seed tasks. Their status is recomputed against the clock on load.

    clock:
        Supplies "today". Injected so tests can pin the date.

    strict:
        When True, create_task validates requests and raises
        ValidationError. When False, any request is accepted as-is.

    keep_read_state:
        When True, read flags survive notification regeneration (matched
        by notification id). When False, every regeneration resets them.
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        *,
        clock: Clock = date.today,
        viewer: ViewerContext | None = None,
        strict: bool = True,
        keep_read_state: bool = True,
    ) -> None:
        self._clock = clock
        self._viewer = viewer or ViewerContext()
        self._strict = strict
        self._keep_read_state = keep_read_state

        today = self.today()
        self._tasks: tuple[Task, ...] = tuple(
            replace(t, status=compute_status(t, today)) for t in tasks
        )
        self._notifications: tuple[Notification, ...] = tuple(
            generate_notifications(self._tasks, today)
        )

        logger.info(
            "TaskStore ready tasks=%s notifications=%s today=%s",
            len(self._tasks),
            len(self._notifications),
            today.isoformat(),
        )

    # ---- read side ----

    def today(self) -> date:
        return self._clock()

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self._notifications

    @property
    def viewer(self) -> ViewerContext:
        return self._viewer

    def get(self, task_id: str) -> Optional[Task]:
        for t in self._tasks:
            if t.task_id == task_id:
                return t
        return None

    # ---- viewer toggles ----

    def set_role(self, role: Role) -> None:
        self._viewer = replace(self._viewer, role=role)
        logger.debug("Viewer role set to %s", role.value)

    def set_area(self, area: Area) -> None:
        self._viewer = replace(self._viewer, area=area)
        logger.debug("Viewer area set to %s", area.value)

    # ---- write side ----

    def create_task(self, req: NewTaskRequest) -> Task:
        """
        Add a new task built from `req`.

        Assigns a fresh id, today's date and a creator label taken from
        the viewer context. Raises ValidationError when strict and the
        request is invalid; the collection is left untouched then.
        """
        if self._strict:
            validate_new_task(req).raise_for_issues("Cannot create task")

        today = self.today()
        task = build_task(
            req,
            task_id=make_task_id((t.task_id for t in self._tasks), today),
            created_on=today,
            created_by=self._viewer.creator_label,
            today=today,
        )

        self._commit(self._tasks + (task,), today)
        logger.info("Task created id=%s status=%s", task.task_id, task.status.value)
        return task

    def update_task(self, task_id: str, /, **changes: Any) -> Optional[Task]:
        """
        Merge field changes into a task and recompute derived fields.

        Returns the updated task, or None when the id is unknown.
        """
        today = self.today()
        return self._replace_one(task_id, lambda t: merge_updates(t, changes, today), today)

    def set_activity_completed(
        self,
        task_id: str,
        activity_id: str,
        completed: bool,
    ) -> Optional[Task]:
        """
        Toggle one activity of a task.

        Returns the updated task, or None when either id is unknown.
        """
        today = self.today()
        return self._replace_one(
            task_id,
            lambda t: set_activity_completed(t, activity_id, completed, today),
            today,
        )

    def finalize_task(self, task_id: str) -> Optional[Task]:
        """Force-complete a task. Returns None when the id is unknown."""
        return self._replace_one(task_id, finalize, self.today())

    def mark_notification_read(self, notification_id: str) -> bool:
        """
        Flag one notification as read. Tasks are not touched.

        Returns False when no notification has that id.
        """
        found = False
        updated: list[Notification] = []
        for n in self._notifications:
            if n.notification_id == notification_id:
                found = True
                n = replace(n, read=True)
            updated.append(n)

        if not found:
            logger.debug("Notification not found id=%s", notification_id)
            return False

        self._notifications = tuple(updated)
        return True

    def refresh(self) -> None:
        """
        Recompute every task's status against the current clock.

        Useful when the clock has moved on since the last write.
        """
        today = self.today()
        tasks = tuple(replace(t, status=compute_status(t, today)) for t in self._tasks)
        self._commit(tasks, today)

    # ---- low-level helpers ----

    def _replace_one(
        self,
        task_id: str,
        action: Callable[[Task], Optional[Task]],
        today: date,
    ) -> Optional[Task]:
        """
        Apply `action` to the task with `task_id` and commit the result.

        Nothing is committed when the task is unknown or `action`
        returns None.
        """
        current = self.get(task_id)
        if current is None:
            logger.debug("Task not found id=%s", task_id)
            return None

        updated = action(current)
        if updated is None:
            logger.debug("No change applied to task id=%s", task_id)
            return None

        self._commit(tuple(updated if t.task_id == task_id else t for t in self._tasks), today)
        logger.debug(
            "Task updated id=%s progress=%s status=%s",
            updated.task_id,
            updated.total_progress,
            updated.status.value,
        )
        return updated

    def _commit(self, tasks: tuple[Task, ...], today: date) -> None:
        fresh = generate_notifications(tasks, today)
        if self._keep_read_state:
            fresh = carry_read_state(fresh, self._notifications)

        self._tasks = tasks
        self._notifications = tuple(fresh)

