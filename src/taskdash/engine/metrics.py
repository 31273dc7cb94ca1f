# src/taskdash/engine/metrics.py

"""
Dashboard aggregations.

Every function here is total: empty input yields zeroed results, never
an error. Status is always recomputed through derive.compute_status
rather than read from the stored field, so figures follow `today`.
Nothing is cached; callers recompute on every read.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Mapping, Sequence

from .derive import compute_status, round_half_up
from .model import AREAS, MONTHS, Area, Status, Task
from .notify import DUE_SOON_DAYS


# ---------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Kpis:
    total: int
    pending: int
    overall_progress: int
    avg_execution_days: int
    by_status: Mapping[Status, int]


@dataclass(frozen=True, slots=True)
class AreaCompletion:
    area: Area
    avg_progress: int
    count: int
    finished_count: int


@dataclass(frozen=True, slots=True)
class AreaDuration:
    area: Area
    avg_days: int
    count: int


@dataclass(frozen=True, slots=True)
class AreaCount:
    area: Area
    count: int


@dataclass(slots=True)
class MonthBucket:
    """Per-month task counts, keyed by status."""

    month: int
    counts: dict[Status, int] = field(default_factory=lambda: {s: 0 for s in Status})

    @property
    def name(self) -> str:
        return MONTHS[self.month]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def __getitem__(self, status: Status) -> int:
        return self.counts[status]


@dataclass(frozen=True, slots=True)
class ListStats:
    total: int
    in_progress: int
    finished: int
    overdue: int
    avg_progress: int


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _avg(values: Sequence[int]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def _owned_by(tasks: Sequence[Task], area: Area) -> list[Task]:
    return [t for t in tasks if area in t.areas]


def count_by_status(tasks: Iterable[Task], today: date) -> dict[Status, int]:
    counts = {s: 0 for s in Status}
    for t in tasks:
        counts[compute_status(t, today)] += 1
    return counts


# ---------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------

def compute_kpis(tasks: Iterable[Task], today: date) -> Kpis:
    items = list(tasks)
    by_status = count_by_status(items, today)

    return Kpis(
        total=len(items),
        pending=len(items) - by_status[Status.FINISHED],
        overall_progress=_avg([t.total_progress for t in items]),
        avg_execution_days=_avg([t.execution_days for t in items]),
        by_status=by_status,
    )


def completion_rate(by_status: Mapping[Status, int]) -> int:
    """Finished share of all tasks, as a rounded percentage."""
    total = sum(by_status.values())
    if total == 0:
        return 0
    return round_half_up(by_status.get(Status.FINISHED, 0) * 100 / total)


def summarize(tasks: Iterable[Task], today: date) -> ListStats:
    items = list(tasks)
    by_status = count_by_status(items, today)
    return ListStats(
        total=len(items),
        in_progress=by_status[Status.IN_PROGRESS],
        finished=by_status[Status.FINISHED],
        overdue=by_status[Status.OVERDUE],
        avg_progress=_avg([t.total_progress for t in items]),
    )


# ---------------------------------------------------------------------
# Per-area charts
# ---------------------------------------------------------------------

def completion_by_area(
    tasks: Iterable[Task],
    areas: Iterable[Area] = AREAS,
    *,
    today: date,
) -> list[AreaCompletion]:
    """
    One entry per area that owns at least one task, in `areas` order.

    Areas with no owning task are left out rather than zero-filled.
    """
    items = list(tasks)
    out: list[AreaCompletion] = []

    for area in areas:
        owned = _owned_by(items, area)
        if not owned:
            continue
        out.append(
            AreaCompletion(
                area=area,
                avg_progress=_avg([t.total_progress for t in owned]),
                count=len(owned),
                finished_count=sum(
                    1 for t in owned if compute_status(t, today) is Status.FINISHED
                ),
            )
        )

    return out


def avg_days_by_area(
    tasks: Iterable[Task],
    areas: Iterable[Area] = AREAS,
) -> list[AreaDuration]:
    """
    Average stored execution_days per owning area, longest first.
    """
    items = list(tasks)
    out: list[AreaDuration] = []

    for area in areas:
        owned = _owned_by(items, area)
        if not owned:
            continue
        out.append(
            AreaDuration(
                area=area,
                avg_days=_avg([t.execution_days for t in owned]),
                count=len(owned),
            )
        )

    return sorted(out, key=lambda x: -x.avg_days)


def due_by_area(tasks: Iterable[Task], today: date) -> list[AreaCount]:
    """
    Unfinished tasks that are not yet past their end date, per owning area.

    A task owned by several areas counts once in each.
    """
    counts = {a: 0 for a in AREAS}

    for t in tasks:
        if compute_status(t, today) is Status.FINISHED:
            continue
        if t.end_date < today:
            continue
        for area in t.areas:
            counts[area] += 1

    return [AreaCount(area=a, count=n) for a, n in counts.items() if n > 0]


def urgent_count(tasks: Iterable[Task], today: date) -> int:
    """Unfinished tasks ending within the next week (today included)."""
    horizon = today + timedelta(days=DUE_SOON_DAYS)
    return sum(
        1
        for t in tasks
        if compute_status(t, today) is not Status.FINISHED and today <= t.end_date <= horizon
    )


# ---------------------------------------------------------------------
# Per-month chart
# ---------------------------------------------------------------------

def tasks_by_month(tasks: Iterable[Task], today: date) -> list[MonthBucket]:
    """
    Twelve buckets (January..December) keyed by the start date's month.

    All buckets are always returned; display code hides empty ones.
    """
    buckets = [MonthBucket(month=i) for i in range(12)]
    for t in tasks:
        buckets[t.start_date.month - 1].counts[compute_status(t, today)] += 1
    return buckets
