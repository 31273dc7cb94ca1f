# src/taskdash/engine/render.py

"""
Rendering helpers for CLI output.

This module is responsible for:
- the dashboard view (KPIs and chart tables),
- task tables and the structured task detail view,
- notification, "my tasks" and collaborative task views.

It is presentation-only: it reads aggregates computed elsewhere and must
not mutate task state.
"""

from __future__ import annotations

import re
import shutil
import sys
import textwrap
from datetime import date
from typing import Iterable, Sequence

from .derive import compute_status, days_remaining, round_half_up
from .metrics import (
    AreaCompletion,
    AreaCount,
    AreaDuration,
    Kpis,
    ListStats,
    MonthBucket,
    completion_rate,
)
from .model import Notification, Priority, Status, Task, ViewerContext
from .notify import unread_count
from .query import Page


# ---------------------------------------------------------------------
# ANSI / terminal helpers
# ---------------------------------------------------------------------

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

_RESET = "\033[0m"
_DIM = "\033[90m"
_BOLD = "\033[1m"

_COLOR = {
    Status.PLANNED: "\033[33m",      # amber
    Status.IN_PROGRESS: "\033[34m",  # blue
    Status.FINISHED: "\033[32m",     # green
    Status.OVERDUE: "\033[31m",      # red
}

_PRIORITY_COLOR = {
    Priority.HIGH: "\033[31m",
    Priority.MEDIUM: "\033[33m",
    Priority.LOW: "\033[90m",
}

_BAR_WIDTH = 20


def _supports_color() -> bool:
    """Return True if stdout is a TTY."""
    return sys.stdout.isatty()


def _visible_len(s: str) -> int:
    """Return string length without ANSI colour escapes."""
    return len(_ANSI_RE.sub("", s))


def _paint(s: str, code: str, color: bool) -> str:
    if not (color and code and _supports_color()):
        return s
    return f"{code}{s}{_RESET}"


def _pad(s: str, width: int) -> str:
    """Left-align `s` to `width` visible characters, truncating when longer."""
    if _visible_len(s) > width:
        plain = _ANSI_RE.sub("", s)
        return plain[: max(0, width - 1)] + "…"
    return s + " " * (width - _visible_len(s))


def _bar(percent: int) -> str:
    filled = round(_BAR_WIDTH * max(0, min(100, percent)) / 100)
    return "#" * filled + "." * (_BAR_WIDTH - filled)


def format_date(d: date | None) -> str:
    """Fixed locale date: dd-mm-yyyy."""
    if d is None:
        return "–"
    return f"{d.day:02d}-{d.month:02d}-{d.year:04d}"


def status_text(status: Status, *, color: bool = True) -> str:
    return _paint(status.label, _COLOR[status], color)


def _section(title: str, *, color: bool) -> None:
    print()
    print(_paint(title, _BOLD, color))
    print("-" * _visible_len(title))


def _days_text(days: int) -> str:
    if days < 0:
        return f"{abs(days)}d atrasado"
    return f"{days}d restantes"


# ---------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------

def render_dashboard(
    *,
    kpis: Kpis,
    by_area: Sequence[AreaCompletion],
    by_month: Sequence[MonthBucket],
    days_by_area: Sequence[AreaDuration],
    due_by_area: Sequence[AreaCount],
    urgent: int,
    color: bool = True,
) -> None:
    """
    Render the dashboard: KPI block followed by chart tables.

    Months without tasks are hidden; the aggregate itself keeps them.
    """
    _section("Indicadores", color=color)
    print(f"Total de tareas:        {kpis.total}")
    print(f"Pendientes:             {kpis.pending}")
    print(f"Avance general:         {kpis.overall_progress}%  [{_bar(kpis.overall_progress)}]")
    print(f"Dias promedio:          {kpis.avg_execution_days}")

    _section("Estado de tareas", color=color)
    for status in Status:
        n = kpis.by_status.get(status, 0)
        if n == 0:
            continue
        print(f"  {_pad(status_text(status, color=color), 14)} {n:>4}")
    print(f"  Completado: {completion_rate(kpis.by_status)}%")

    _section("Cumplimiento por area", color=color)
    if not by_area:
        print("  (sin datos)")
    for row in by_area:
        print(
            f"  {_pad(row.area.label, 16)} {row.avg_progress:>3}%  [{_bar(row.avg_progress)}]"
            f"  {row.finished_count}/{row.count} realizadas"
        )
    if by_area:
        avg = round_half_up(sum(r.avg_progress for r in by_area) / len(by_area))
        print(f"  Promedio: {avg}%")

    _section("Tareas por mes", color=color)
    shown = [b for b in by_month if b.total > 0]
    if not shown:
        print("  (sin datos)")
    else:
        header = "  " + _pad("Mes", 12) + "".join(_pad(s.label, 13) for s in Status) + "Total"
        print(header)
        for b in shown:
            cells = "".join(_pad(str(b[s]), 13) for s in Status)
            print(f"  {_pad(b.name, 12)}{cells}{b.total}")

    _section("Tiempo promedio de ejecucion por area", color=color)
    if not days_by_area:
        print("  (sin datos)")
    for row in days_by_area:
        print(f"  {_pad(row.area.label, 16)} {row.avg_days:>4} dias  ({row.count} tareas)")

    _section("Tareas por vencer por area", color=color)
    if not due_by_area:
        print("  (sin datos)")
    for row in due_by_area:
        print(f"  {_pad(row.area.label, 16)} {row.count:>4}")
    print(f"  Urgentes (proximos 7 dias): {urgent}")
    print()


# ---------------------------------------------------------------------
# Task lists
# ---------------------------------------------------------------------

def render_stats(stats: ListStats) -> None:
    print(
        f"Total: {stats.total} | En curso: {stats.in_progress} | "
        f"Finalizadas: {stats.finished} | Atrasadas: {stats.overdue} | "
        f"Avance promedio: {stats.avg_progress}%"
    )


def render_task_table(page: Page[Task], today: date, *, color: bool = True) -> None:
    """
    Render one page of tasks as a table.

    Format:
      id  name  status  progress  end date  priority  areas
    """
    if not page.items:
        print("No hay tareas que coincidan con los filtros.")
        return

    print(
        f"{_pad('ID', 20)} {_pad('Nombre', 30)} {_pad('Estado', 12)} "
        f"{_pad('Avance', 7)} {_pad('Fin', 11)} {_pad('Prioridad', 10)} Areas"
    )

    for task in page.items:
        status = compute_status(task, today)
        prio = _paint(task.priority.label, _PRIORITY_COLOR[task.priority], color)
        areas = ", ".join(a.label for a in task.areas)
        print(
            f"{_pad(task.task_id, 20)} {_pad(task.name, 30)} "
            f"{_pad(status_text(status, color=color), 12)} "
            f"{_pad(f'{task.total_progress}%', 7)} {_pad(format_date(task.end_date), 11)} "
            f"{_pad(prio, 10)} {areas}"
        )

    footer = f"Pagina {page.page} de {page.pages} ({page.total} tareas)"
    if page.has_prev:
        footer += f"  < --page {page.page - 1}"
    if page.has_next:
        footer += f"  --page {page.page + 1} >"
    print(_paint(footer, _DIM, color))


def _print_task_line(task: Task, today: date, *, color: bool, show_owner: bool = False) -> None:
    """
    One-line task summary.

    Format:
      - Name (status, progress%, Nd restantes) id: ...
    """
    status = compute_status(task, today)
    days = days_remaining(task.end_date, today)
    meta = f"{status_text(status, color=color)}, {task.total_progress}%, {_days_text(days)}"
    owner = f" [{', '.join(a.label for a in task.areas)}]" if show_owner else ""
    print(f"  - {task.name}{owner} ({meta}) id: {task.task_id}")


def render_my_tasks(
    viewer: ViewerContext,
    mine: Sequence[Task],
    shared: Sequence[Task],
    *,
    today: date,
    in_progress: int,
    due_soon: int,
    overdue: int,
    color: bool = True,
) -> None:
    title = "Todas las tareas" if viewer.is_admin else f"Tareas de {viewer.area.label}"
    _section(f"{title} ({viewer.display_name})", color=color)
    print(f"En curso: {in_progress} | Por vencer: {due_soon} | Atrasadas: {overdue}")

    if not mine:
        print("  (sin tareas)")
    for task in mine:
        _print_task_line(task, today, color=color)

    if not viewer.is_admin:
        _section("Tareas donde apoyamos", color=color)
        if not shared:
            print("  (sin tareas)")
        for task in shared:
            _print_task_line(task, today, color=color, show_owner=True)
    print()


def render_collaborative(
    tasks: Sequence[Task],
    stats: ListStats,
    *,
    today: date,
    color: bool = True,
) -> None:
    _section("Tareas colaborativas", color=color)
    render_stats(stats)

    if not tasks:
        print("  (sin tareas)")
    for task in tasks:
        _print_task_line(task, today, color=color, show_owner=True)
        if task.support_areas:
            support = ", ".join(a.label for a in task.support_areas)
            print(f"      apoyo: {support}")
    print()


# ---------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------

def render_notifications(notifications: Iterable[Notification], *, color: bool = True) -> None:
    items = list(notifications)
    print(f"Notificaciones ({unread_count(items)} sin leer)")

    if not items:
        print("  (sin notificaciones)")
        return

    for n in items:
        mark = " " if n.read else "*"
        prio = _paint(n.priority.label, _PRIORITY_COLOR[n.priority], color)
        line = f"{mark} [{prio}] {n.message}  id: {n.notification_id}"
        print(_paint(line, _DIM, color) if n.read else line)


# ---------------------------------------------------------------------
# Task detail view (show)
# ---------------------------------------------------------------------

def render_task_detail(task: Task, today: date, *, color: bool = True) -> None:
    """
    Render a structured task detail view.

    Width is capped at 80 characters.
    """
    width = min(80, shutil.get_terminal_size(fallback=(80, 24)).columns)
    inner_w = max(20, width - 4)  # borders + padding

    status = compute_status(task, today)

    def wrap_lines(s: str, *, indent: str = "") -> list[str]:
        if not s:
            return []

        out: list[str] = []
        for ln in s.rstrip().splitlines() or [""]:
            if not ln.strip():
                out.append(indent.rstrip())
                continue

            wrapped = textwrap.wrap(
                ln,
                width=inner_w - len(indent),
                break_long_words=False,
                break_on_hyphens=False,
            ) or [""]

            out.extend([indent + x for x in wrapped])

        return out

    def box_rule(ch: str = "-") -> None:
        print(f"+{ch * (width - 2)}+")

    def box_line(content: str = "") -> None:
        raw = content
        if _visible_len(raw) > inner_w:
            raw = _ANSI_RE.sub("", raw)[:inner_w]
        pad = inner_w - _visible_len(raw)
        if pad > 0:
            raw = raw + (" " * pad)
        print(f"| {raw} |")

    days = days_remaining(task.end_date, today)

    print()
    box_rule("=")
    box_line(f"{task.name} ({status_text(status, color=color)})")
    box_rule("=")

    box_line(f"id: {task.task_id}")
    box_line(f"areas: {', '.join(a.label for a in task.areas)}")
    if task.requires_support and task.support_areas:
        box_line(f"apoyo: {', '.join(a.label for a in task.support_areas)}")
    box_line(f"prioridad: {task.priority.label}")
    box_line(f"inicio: {format_date(task.start_date)}   fin: {format_date(task.end_date)}")
    if status is Status.FINISHED:
        box_line(f"dias de ejecucion: {task.execution_days}")
    else:
        box_line(f"dias de ejecucion: {task.execution_days}   ({_days_text(days)})")
    box_line(f"avance: {task.total_progress}%  [{_bar(task.total_progress)}]")

    if task.description.strip():
        box_rule()
        box_line("Descripcion:")
        for ln in wrap_lines(task.description, indent="  "):
            box_line(ln)

    box_rule()
    box_line(f"Actividades ({task.completed_activities}/{len(task.activities)}):")
    for a in task.activities:
        mark = "x" if a.completed else " "
        for ln in wrap_lines(f"[{mark}] {a.name} ({a.percentage}%) id: {a.activity_id}", indent="  "):
            box_line(ln)

    if task.documents:
        box_rule()
        box_line("Documentos:")
        for doc in task.documents:
            for ln in wrap_lines(f"{doc.name}: {doc.url}", indent="  "):
                box_line(ln)

    box_rule()
    box_line(
        _paint(
            f"Creado por {task.created_by} el {format_date(task.created_on)}",
            _DIM,
            color,
        )
    )
    box_rule("=")
    print()
