# tests/test_derive.py

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from taskdash.engine.derive import (
    compute_status,
    days_remaining,
    execution_days,
    refresh,
    round_half_up,
    total_progress,
)
from taskdash.engine.model import Activity, Status

from conftest import make_task


def _acts(*percentages: int) -> list[Activity]:
    return [Activity(activity_id=f"a{i}", name="x", percentage=p) for i, p in enumerate(percentages)]


def test_finished_when_progress_is_100_regardless_of_dates() -> None:
    task = make_task(start=date(2024, 3, 1), end=date(2024, 3, 10), percentages=(100,))

    for today in (date(2024, 2, 1), date(2024, 3, 5), date(2024, 12, 31)):
        assert compute_status(task, today) is Status.FINISHED


def test_overdue_after_end_date() -> None:
    today = date(2024, 3, 15)
    task = make_task(start=date(2024, 3, 1), end=date(2024, 3, 10), percentages=(100, 0, 20))

    assert task.total_progress == 40
    assert compute_status(task, today) is Status.OVERDUE
    assert days_remaining(task.end_date, today) == -5


def test_planned_before_start_date() -> None:
    task = make_task(start=date(2024, 3, 5), end=date(2024, 3, 10))
    assert compute_status(task, date(2024, 3, 1)) is Status.PLANNED


def test_in_progress_within_window_inclusive() -> None:
    task = make_task(start=date(2024, 3, 5), end=date(2024, 3, 10), percentages=(50,))

    assert compute_status(task, date(2024, 3, 5)) is Status.IN_PROGRESS
    assert compute_status(task, date(2024, 3, 10)) is Status.IN_PROGRESS
    assert compute_status(task, date(2024, 3, 11)) is Status.OVERDUE


def test_status_ignores_stored_status_field() -> None:
    task = make_task(start=date(2024, 3, 5), end=date(2024, 3, 10))
    stale = replace(task, status=Status.FINISHED)

    assert compute_status(stale, date(2024, 3, 1)) is Status.PLANNED


def test_planned_takes_precedence_over_malformed_dates() -> None:
    # end before start: not rejected, rules still apply in order
    task = make_task(start=date(2024, 3, 10), end=date(2024, 3, 1))
    assert compute_status(task, date(2024, 3, 5)) is Status.PLANNED
    assert compute_status(task, date(2024, 3, 12)) is Status.OVERDUE


@pytest.mark.parametrize(
    ("percentages", "expected"),
    [
        ((), 0),
        ((100, 50, 0), 50),
        ((100,), 100),
        ((0, 0), 0),
        ((50, 0), 25),
        ((100, 0, 0), 33),
        ((100, 100, 0), 67),
        ((1, 0), 1),  # 0.5 rounds up
    ],
)
def test_total_progress_is_rounded_mean(percentages: tuple[int, ...], expected: int) -> None:
    assert total_progress(_acts(*percentages)) == expected


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2
    assert round_half_up(0) == 0


def test_execution_days_is_clamped() -> None:
    assert execution_days(date(2024, 3, 1), date(2024, 3, 11)) == 10
    assert execution_days(date(2024, 3, 11), date(2024, 3, 1)) == 0


def test_refresh_recomputes_progress_then_status() -> None:
    task = make_task(start=date(2024, 3, 1), end=date(2024, 3, 10), percentages=(0,))
    done = replace(task, activities=tuple(replace(a, percentage=100) for a in task.activities))

    refreshed = refresh(done, date(2024, 3, 20))

    assert refreshed.total_progress == 100
    assert refreshed.status is Status.FINISHED
