# tests/conftest.py

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

import pytest

from taskdash.engine.derive import refresh
from taskdash.engine.model import Activity, Area, Priority, Task
from taskdash.engine.store import TaskStore

TODAY = date(2024, 3, 15)


def make_task(
    task_id: str = "t1",
    *,
    name: str = "Task",
    description: str = "",
    areas: tuple[Area, ...] = (Area.SAFETY,),
    start: date = date(2024, 3, 1),
    end: date = date(2024, 3, 31),
    percentages: tuple[int, ...] = (0,),
    priority: Priority = Priority.MEDIUM,
    requires_support: bool = False,
    support_areas: tuple[Area, ...] = (),
    execution_days: int | None = None,
    today: date = TODAY,
) -> Task:
    """
    Build a consistent Task (derived fields computed for `today`).

    One activity per entry in `percentages`; 100 marks it completed.
    """
    activities = tuple(
        Activity(activity_id=f"a{i}", name=f"Activity {i}", percentage=p, completed=p == 100)
        for i, p in enumerate(percentages, start=1)
    )
    task = Task(
        task_id=task_id,
        name=name,
        description=description,
        areas=areas,
        start_date=start,
        end_date=end,
        execution_days=(end - start).days if execution_days is None else execution_days,
        priority=priority,
        requires_support=requires_support,
        support_areas=support_areas,
        activities=activities,
        created_on=start,
    )
    return refresh(task, today)


@pytest.fixture()
def task_factory() -> Callable[..., Task]:
    return make_task


@pytest.fixture()
def clock():
    """
    Mutable clock for stores: `clock.today` can be moved by a test.
    """

    class _Clock:
        def __init__(self) -> None:
            self.today = TODAY

        def __call__(self) -> date:
            return self.today

        def advance(self, days: int) -> None:
            self.today = self.today + timedelta(days=days)

    return _Clock()


@pytest.fixture()
def store(clock) -> TaskStore:
    """
    Store with three tasks as of 2024-03-15:
    - overdue:  ended 2024-03-12, 40% done
    - due soon: ends 2024-03-20, in progress
    - planned:  starts 2024-04-01
    """
    tasks = [
        make_task(
            "overdue",
            name="Overdue task",
            areas=(Area.LEGAL,),
            start=date(2024, 3, 1),
            end=date(2024, 3, 12),
            percentages=(100, 0, 20),
            priority=Priority.HIGH,
        ),
        make_task(
            "soon",
            name="Due soon",
            areas=(Area.SAFETY, Area.OPERATIONS),
            start=date(2024, 3, 1),
            end=date(2024, 3, 20),
            percentages=(100, 0),
        ),
        make_task(
            "planned",
            name="Planned task",
            areas=(Area.QUALITY,),
            start=date(2024, 4, 1),
            end=date(2024, 4, 30),
            percentages=(0,),
            requires_support=True,
            support_areas=(Area.SAFETY,),
        ),
    ]
    return TaskStore(tasks, clock=clock)
