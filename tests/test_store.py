# tests/test_store.py

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from taskdash.engine.model import Area, NotificationKind, Priority, Role, Status, ViewerContext
from taskdash.engine.ops import NewTaskRequest, activities_from_names
from taskdash.engine.store import TaskStore
from taskdash.engine.validate import ValidationError

from conftest import TODAY, make_task


def _request(**overrides) -> NewTaskRequest:
    base = dict(
        name="Inspect extinguishers",
        description="Quarterly check",
        areas=(Area.SAFETY,),
        start_date=date(2024, 3, 10),
        end_date=date(2024, 3, 30),
        priority=Priority.HIGH,
        activities=activities_from_names(["Walkthrough", "  ", "Report"]),
    )
    base.update(overrides)
    return NewTaskRequest(**base)


def test_initial_notifications(store: TaskStore) -> None:
    ids = [n.notification_id for n in store.notifications]
    assert ids == ["notif-overdue-overdue", "notif-soon-due-soon"]


def test_load_recomputes_stale_status(clock) -> None:
    stale = replace(make_task("x", percentages=(10,)), status=Status.FINISHED)
    store = TaskStore([stale], clock=clock)

    assert store.get("x").status is Status.IN_PROGRESS


def test_toggle_last_activity_finishes_task(store: TaskStore) -> None:
    updated = store.set_activity_completed("soon", "a2", True)

    assert updated is not None
    assert updated.total_progress == 100
    assert updated.status is Status.FINISHED
    assert store.get("soon") == updated
    assert [n.task_id for n in store.notifications] == ["overdue"]


def test_untoggle_resets_percentage(store: TaskStore) -> None:
    updated = store.set_activity_completed("overdue", "a1", False)

    assert updated.find_activity("a1").percentage == 0
    assert updated.total_progress == 7  # (0 + 0 + 20) / 3
    assert updated.status is Status.OVERDUE


def test_unknown_ids_are_noops(store: TaskStore) -> None:
    before_tasks = store.tasks
    before_notifs = store.notifications

    assert store.update_task("missing", name="x") is None
    assert store.set_activity_completed("missing", "a1", True) is None
    assert store.set_activity_completed("soon", "missing", True) is None
    assert store.finalize_task("missing") is None
    assert store.mark_notification_read("missing") is False

    assert store.tasks is before_tasks
    assert store.notifications is before_notifs


def test_finalize_task(store: TaskStore) -> None:
    done = store.finalize_task("overdue")

    assert done.status is Status.FINISHED
    assert done.total_progress == 100
    assert all(a.completed and a.percentage == 100 for a in done.activities)
    assert [n.task_id for n in store.notifications] == ["soon"]


def test_create_task_assigns_id_and_creator(store: TaskStore) -> None:
    first = store.create_task(_request())
    second = store.create_task(_request(name="Second"))

    assert first.task_id == "tarea-20240315-001"
    assert second.task_id == "tarea-20240315-002"
    assert first.created_by == "Admin"
    assert first.created_on == TODAY
    assert first.execution_days == 20
    assert [a.activity_id for a in first.activities] == ["act-1", "act-2"]
    assert first.status is Status.IN_PROGRESS
    assert len(store.tasks) == 5


def test_create_task_as_area_user(store: TaskStore) -> None:
    store.set_role(Role.USER)
    store.set_area(Area.LEGAL)

    task = store.create_task(_request())

    assert store.viewer == ViewerContext(role=Role.USER, area=Area.LEGAL)
    assert task.created_by == "Legal"


def test_create_task_invalid_leaves_state_untouched(store: TaskStore) -> None:
    before = store.tasks

    with pytest.raises(ValidationError) as exc:
        store.create_task(_request(name=" ", end_date=date(2024, 3, 10), activities=()))

    codes = [i.code for i in exc.value.issues]
    assert codes == ["name_required", "end_before_start", "activities_required"]
    assert store.tasks is before


def test_create_task_not_strict_trusts_request(clock) -> None:
    store = TaskStore(clock=clock, strict=False)

    task = store.create_task(_request(activities=()))

    assert task.activities == ()
    assert task.total_progress == 0
    assert store.get(task.task_id) is task


def test_created_task_due_soon_raises_notification(store: TaskStore) -> None:
    task = store.create_task(_request(end_date=date(2024, 3, 18)))

    kinds = {n.task_id: n.kind for n in store.notifications}
    assert kinds[task.task_id] is NotificationKind.DUE_SOON


def test_update_task_recomputes_status(store: TaskStore) -> None:
    updated = store.update_task("planned", start_date=date(2024, 3, 1))

    assert updated.status is Status.IN_PROGRESS
    assert updated.execution_days == 29  # kept from creation


def test_update_task_unknown_field_raises(store: TaskStore) -> None:
    before = store.tasks

    with pytest.raises(ValueError):
        store.update_task("planned", colour="red")
    assert store.tasks is before


def test_update_task_cannot_change_id(store: TaskStore) -> None:
    before = store.tasks

    with pytest.raises(ValueError, match="cannot be updated: task_id"):
        store.update_task("planned", task_id="other")

    assert store.tasks is before
    assert store.get("other") is None


def test_read_state_survives_regeneration(store: TaskStore) -> None:
    assert store.mark_notification_read("notif-overdue-overdue") is True

    store.update_task("soon", name="Renamed")

    read = {n.notification_id: n.read for n in store.notifications}
    assert read == {"notif-overdue-overdue": True, "notif-soon-due-soon": False}
    assert "Renamed" in store.notifications[1].message


def test_read_state_reset_when_not_kept(clock) -> None:
    store = TaskStore([make_task("late", end=date(2024, 3, 10))], clock=clock, keep_read_state=False)
    store.mark_notification_read("notif-late-overdue")
    assert store.notifications[0].read is True

    store.update_task("late", name="Still late")

    assert store.notifications[0].read is False


def test_mark_read_does_not_touch_tasks(store: TaskStore) -> None:
    before = store.tasks
    store.mark_notification_read("notif-soon-due-soon")
    assert store.tasks is before


def test_refresh_follows_clock(store: TaskStore, clock) -> None:
    clock.advance(10)  # 2024-03-25
    store.refresh()

    assert store.get("soon").status is Status.OVERDUE
    assert store.get("planned").status is Status.PLANNED
    assert [(n.task_id, n.kind) for n in store.notifications] == [
        ("overdue", NotificationKind.OVERDUE),
        ("soon", NotificationKind.OVERDUE),
    ]
