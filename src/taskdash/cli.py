# src/taskdash/cli.py

"""
Command-line interface for taskdash.

This module:
- defines argument parsing and subcommands,
- builds the single TaskStore for the process and passes it to commands,
- delegates domain logic to engine modules,
- keeps user interaction (the interactive shell) here.

State lives in memory only: one-shot commands start from the seed file,
and the `shell` command keeps one store alive across many commands.
"""

import argparse
import logging
import shlex
from datetime import date
from typing import Callable, Optional

from taskdash.config import Settings, get_settings
from taskdash.engine.metrics import (
    avg_days_by_area,
    completion_by_area,
    compute_kpis,
    due_by_area,
    summarize,
    tasks_by_month,
    urgent_count,
)
from taskdash.engine.model import AREAS, MONTHS, Area, Priority, Role, Status, ViewerContext
from taskdash.engine.ops import NewTaskRequest, activities_from_names, documents_from_specs
from taskdash.engine.parse import ParseError, load_seed
from taskdash.engine.query import (
    SortField,
    TaskFilter,
    collaborative_tasks,
    due_soon_count,
    filter_collaborative,
    filter_tasks,
    my_tasks,
    paginate,
    shared_tasks,
    sort_tasks,
)
from taskdash.engine.render import (
    render_collaborative,
    render_dashboard,
    render_my_tasks,
    render_notifications,
    render_stats,
    render_task_detail,
    render_task_table,
)
from taskdash.engine.store import TaskStore
from taskdash.engine.validate import ValidationError
from taskdash.logging_setup import setup_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Argument types
# ---------------------------------------------------------------------

def _enum_arg(parse: Callable[[str], object]) -> Callable[[str], object]:
    def convert(raw: str) -> object:
        try:
            return parse(raw)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e)) from e

    return convert


_area_arg = _enum_arg(Area.parse)
_status_arg = _enum_arg(Status.parse)
_priority_arg = _enum_arg(Priority.parse)
_role_arg = _enum_arg(Role.parse)


def _date_arg(raw: str) -> date:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date '{raw}' (expected YYYY-MM-DD)") from e


def _month_arg(raw: str) -> int:
    """Accept 1..12 or a month name; return the 0-based month index."""
    s = raw.strip()
    if s.isdigit() and 1 <= int(s) <= 12:
        return int(s) - 1
    for i, name in enumerate(MONTHS):
        if name.lower() == s.lower():
            return i
    raise argparse.ArgumentTypeError(f"invalid month '{raw}' (1-12 or a month name)")


def _add_filters(p: argparse.ArgumentParser, *, month: bool = True) -> None:
    if month:
        p.add_argument("--month", type=_month_arg, help="Start month (1-12 or name)")
    p.add_argument("--area", type=_area_arg, help="Owning area")
    p.add_argument("--status", type=_status_arg, help="Task status")


# ---------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskdash")
    parser.add_argument("--seed", type=str, default=None, help="YAML seed file")
    parser.add_argument(
        "--today",
        type=_date_arg,
        default=None,
        help="Pretend today is this date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--role",
        dest="viewer_role",
        type=_role_arg,
        default=None,
        help="Viewer role: admin or user",
    )
    parser.add_argument(
        "--viewer-area",
        dest="viewer_area",
        type=_area_arg,
        default=None,
        help="Viewer area",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output")
    parser.add_argument("--log-level", type=str, default=None, help="Console log level")

    sub = parser.add_subparsers(dest="command", required=True)
    _add_commands(sub)
    return parser


def _add_commands(sub) -> None:
    # ------------------------------------------------------------------
    # Read-only commands
    # ------------------------------------------------------------------

    p_dash = sub.add_parser("dashboard", help="KPIs and charts")
    _add_filters(p_dash)
    p_dash.set_defaults(func=cmd_dashboard)

    p_list = sub.add_parser("list", help="Filterable, sortable task list")
    p_list.add_argument("--search", type=str, default="", help="Match name or description")
    _add_filters(p_list)
    p_list.add_argument("--priority", type=_priority_arg, help="Task priority")
    p_list.add_argument(
        "--sort",
        type=str,
        default=SortField.END_DATE.value,
        choices=[f.value for f in SortField],
        help="Sort field (default: end_date)",
    )
    p_list.add_argument("--desc", action="store_true", help="Sort descending")
    p_list.add_argument("--page", type=int, default=1, help="Page number (1-based)")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show a single task")
    p_show.add_argument("task_id", help="Task id")
    p_show.set_defaults(func=cmd_show)

    p_mine = sub.add_parser("mine", help="Tasks of the viewer's area")
    p_mine.set_defaults(func=cmd_mine)

    p_collab = sub.add_parser("collab", help="Tasks shared between areas")
    _add_filters(p_collab, month=False)
    p_collab.set_defaults(func=cmd_collab)

    p_notif = sub.add_parser("notifications", help="Overdue and due-soon alerts")
    p_notif.set_defaults(func=cmd_notifications)

    # ------------------------------------------------------------------
    # Write commands
    # ------------------------------------------------------------------

    p_new = sub.add_parser("new", help="Create a task (administrators only)")
    p_new.add_argument("--name", type=str, default="", help="Task name")
    p_new.add_argument("--description", type=str, default="", help="Free-text description")
    p_new.add_argument(
        "--owner",
        dest="areas",
        action="append",
        type=_area_arg,
        default=[],
        help="Owning area (repeatable)",
    )
    p_new.add_argument("--start", type=_date_arg, default=None, help="Start date")
    p_new.add_argument("--end", type=_date_arg, default=None, help="End date")
    p_new.add_argument("--priority", type=_priority_arg, default=Priority.MEDIUM, help="Priority")
    p_new.add_argument(
        "--support",
        dest="support_areas",
        action="append",
        type=_area_arg,
        default=[],
        help="Supporting area (repeatable); implies support is required",
    )
    p_new.add_argument(
        "--activity",
        action="append",
        default=[],
        help="Activity name (repeatable, at least one)",
    )
    p_new.add_argument(
        "--document",
        action="append",
        default=[],
        help="Document as 'name' or 'name=url' (repeatable)",
    )
    p_new.set_defaults(func=cmd_new)

    p_update = sub.add_parser("update", help="Change task fields")
    p_update.add_argument("task_id", help="Task id")
    p_update.add_argument("--name", type=str, default=None)
    p_update.add_argument("--description", type=str, default=None)
    p_update.add_argument("--priority", type=_priority_arg, default=None)
    p_update.add_argument("--start", type=_date_arg, default=None)
    p_update.add_argument("--end", type=_date_arg, default=None)
    p_update.set_defaults(func=cmd_update)

    p_toggle = sub.add_parser("toggle", help="Mark an activity completed (or pending)")
    p_toggle.add_argument("task_id", help="Task id")
    p_toggle.add_argument("activity_id", help="Activity id")
    p_toggle.add_argument("--undo", action="store_true", help="Mark as pending instead")
    p_toggle.set_defaults(func=cmd_toggle)

    p_final = sub.add_parser("finalize", help="Force-complete a task")
    p_final.add_argument("task_id", help="Task id")
    p_final.set_defaults(func=cmd_finalize)

    p_read = sub.add_parser("read", help="Mark a notification as read")
    p_read.add_argument("notification_id", help="Notification id")
    p_read.set_defaults(func=cmd_read)

    # ------------------------------------------------------------------
    # Viewer toggles
    # ------------------------------------------------------------------

    p_role = sub.add_parser("role", help="Switch viewer role")
    p_role.add_argument("role", type=_role_arg, help="admin or user")
    p_role.set_defaults(func=cmd_role)

    p_area = sub.add_parser("area", help="Switch viewer area")
    p_area.add_argument("area", type=_area_arg, help="Area name")
    p_area.set_defaults(func=cmd_area)

    p_shell = sub.add_parser("shell", help="Interactive session over one in-memory store")
    p_shell.set_defaults(func=cmd_shell)


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------

def cmd_dashboard(store: TaskStore, args: argparse.Namespace) -> int:
    today = store.today()
    flt = TaskFilter(month=args.month, area=args.area, status=args.status)
    tasks = filter_tasks(store.tasks, flt, today)

    render_dashboard(
        kpis=compute_kpis(tasks, today),
        by_area=completion_by_area(tasks, AREAS, today=today),
        by_month=tasks_by_month(tasks, today),
        days_by_area=avg_days_by_area(tasks, AREAS),
        due_by_area=due_by_area(tasks, today),
        urgent=urgent_count(tasks, today),
        color=args.color,
    )
    return 0


def cmd_list(store: TaskStore, args: argparse.Namespace) -> int:
    today = store.today()
    flt = TaskFilter(
        search=args.search or "",
        month=args.month,
        area=args.area,
        status=args.status,
        priority=args.priority,
    )

    tasks = filter_tasks(store.tasks, flt, today)
    tasks = sort_tasks(tasks, SortField(args.sort), descending=args.desc, today=today)

    render_stats(summarize(tasks, today))
    render_task_table(paginate(tasks, args.page), today, color=args.color)
    return 0


def cmd_show(store: TaskStore, args: argparse.Namespace) -> int:
    task = store.get(args.task_id)
    if task is None:
        print(f"Error: task not found: {args.task_id}")
        return 1

    render_task_detail(task, store.today(), color=args.color)
    return 0


def cmd_mine(store: TaskStore, args: argparse.Namespace) -> int:
    today = store.today()
    viewer = store.viewer
    mine = my_tasks(store.tasks, viewer, today)
    stats = summarize(mine, today)

    render_my_tasks(
        viewer,
        mine,
        shared_tasks(store.tasks, viewer, today),
        today=today,
        in_progress=stats.in_progress,
        due_soon=due_soon_count(mine, today),
        overdue=stats.overdue,
        color=args.color,
    )
    return 0


def cmd_collab(store: TaskStore, args: argparse.Namespace) -> int:
    today = store.today()
    collab = collaborative_tasks(store.tasks)
    shown = filter_collaborative(collab, area=args.area, status=args.status, today=today)

    render_collaborative(shown, summarize(collab, today), today=today, color=args.color)
    return 0


def cmd_notifications(store: TaskStore, args: argparse.Namespace) -> int:
    render_notifications(store.notifications, color=args.color)
    return 0


def cmd_new(store: TaskStore, args: argparse.Namespace) -> int:
    if not store.viewer.can_create:
        print("Error: only administrators can create tasks (switch role to admin)")
        return 1

    req = NewTaskRequest(
        name=(args.name or "").strip(),
        description=(args.description or "").strip(),
        areas=tuple(dict.fromkeys(args.areas)),
        start_date=args.start,
        end_date=args.end,
        priority=args.priority,
        requires_support=bool(args.support_areas),
        support_areas=tuple(dict.fromkeys(args.support_areas)),
        documents=documents_from_specs(args.document),
        activities=activities_from_names(args.activity),
    )

    try:
        task = store.create_task(req)
    except ValidationError as e:
        print(f"Error: {e}")
        return 1

    print(task.task_id)
    return 0


def cmd_update(store: TaskStore, args: argparse.Namespace) -> int:
    changes = {
        "name": args.name,
        "description": args.description,
        "priority": args.priority,
        "start_date": args.start,
        "end_date": args.end,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print("Error: nothing to update")
        return 1

    task = store.update_task(args.task_id, **changes)
    if task is None:
        print(f"Error: task not found: {args.task_id}")
        return 1

    render_task_detail(task, store.today(), color=args.color)
    return 0


def cmd_toggle(store: TaskStore, args: argparse.Namespace) -> int:
    task = store.set_activity_completed(args.task_id, args.activity_id, not args.undo)
    if task is None:
        print(f"Error: task or activity not found: {args.task_id} / {args.activity_id}")
        return 1

    print(f"{task.task_id}: {task.total_progress}% ({task.status.label})")
    return 0


def cmd_finalize(store: TaskStore, args: argparse.Namespace) -> int:
    task = store.finalize_task(args.task_id)
    if task is None:
        print(f"Error: task not found: {args.task_id}")
        return 1

    print(f"{task.task_id}: {task.total_progress}% ({task.status.label})")
    return 0


def cmd_read(store: TaskStore, args: argparse.Namespace) -> int:
    if not store.mark_notification_read(args.notification_id):
        print(f"Error: notification not found: {args.notification_id}")
        return 1
    return 0


def cmd_role(store: TaskStore, args: argparse.Namespace) -> int:
    store.set_role(args.role)
    print(store.viewer.display_name)
    return 0


def cmd_area(store: TaskStore, args: argparse.Namespace) -> int:
    store.set_area(args.area)
    print(store.viewer.display_name)
    return 0


def cmd_shell(store: TaskStore, args: argparse.Namespace) -> int:
    """
    Read commands from stdin and run them against `store`.

    Each line is parsed like a command line without global options.
    Mutations stay visible until the session ends.
    """
    parser = argparse.ArgumentParser(prog="", add_help=False, exit_on_error=False)
    sub = parser.add_subparsers(dest="command", required=True)
    _add_commands(sub)

    print("taskdash shell. Type 'help' for commands, 'exit' to quit.")

    while True:
        try:
            line = input("taskdash> ").strip()
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            break

        if not line:
            continue
        if line in ("exit", "quit"):
            break
        if line == "help":
            parser.print_usage()
            continue

        try:
            words = shlex.split(line)
        except ValueError as e:
            print(f"Error: {e}")
            continue

        try:
            sub_args = parser.parse_args(words)
        except argparse.ArgumentError as e:
            print(f"Error: {e}")
            continue
        except SystemExit:
            # argparse still exits on some errors (e.g. missing subcommand args)
            continue

        if sub_args.func is cmd_shell:
            print("Error: already in a shell")
            continue

        sub_args.color = args.color
        try:
            sub_args.func(store, sub_args)
        except Exception:
            logger.exception("Command failed: %s", line)
            print("Error: command failed (see log)")

    return 0


# ---------------------------------------------------------------------
# Store construction
# ---------------------------------------------------------------------

def build_store(args: argparse.Namespace, settings: Settings) -> TaskStore:
    """
    Load the seed and construct the store.

    Command-line options take precedence over settings.
    """
    fixed: Optional[date] = args.today or settings.today
    clock = (lambda: fixed) if fixed is not None else date.today

    role = args.viewer_role or Role.parse(settings.role)
    area = args.viewer_area or Area.parse(settings.area)

    tasks = load_seed(args.seed or settings.seed_path, today=clock())
    return TaskStore(tasks, clock=clock, viewer=ViewerContext(role=role, area=area))


# ---------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 2

    settings = get_settings()

    level_name = (args.log_level or settings.log_level).upper()
    setup_logging(
        console_level=getattr(logging, level_name, logging.WARNING),
        log_file=settings.log_file,
    )

    args.color = settings.color and not args.no_color

    try:
        store = build_store(args, settings)
    except ParseError as e:
        print(f"Error: {e}")
        return 1
    except ValueError as e:
        print(f"Error: invalid setting: {e}")
        return 1

    return func(store, args)


if __name__ == "__main__":
    raise SystemExit(main())
