# tests/test_cli.py

from __future__ import annotations

import pytest

from taskdash import cli
from taskdash.config import get_settings

SEED = """\
tasks:
  - id: t-1
    name: Inspect extinguishers
    areas: [Seguridad]
    start_date: 2024-03-01
    end_date: 2024-03-20
    priority: medium
    activities:
      - {id: act-1, name: Walkthrough, percentage: 100, completed: true}
      - {id: act-2, name: Report}
  - id: t-2
    name: Renew permits
    areas: [Legal, Compras]
    start_date: 2024-02-01
    end_date: 2024-03-10
    priority: high
    activities: [Collect, File]
"""


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for name in ("SEED", "TODAY", "ROLE", "AREA", "COLOR", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(f"TASKDASH_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def seed_file(tmp_path):
    path = tmp_path / "seed.yml"
    path.write_text(SEED, encoding="utf-8")
    return path


def run(seed_file, *argv: str) -> int:
    return cli.main(["--seed", str(seed_file), "--today", "2024-03-15", "--no-color", *argv])


def test_list(seed_file, capsys) -> None:
    assert run(seed_file, "list", "--sort", "priority") == 0

    out = capsys.readouterr().out
    assert out.index("t-2") < out.index("t-1")
    assert "Pagina 1 de 1 (2 tareas)" in out
    assert "Atrasadas: 1" in out


def test_list_with_filters(seed_file, capsys) -> None:
    assert run(seed_file, "list", "--area", "legal", "--status", "overdue") == 0

    out = capsys.readouterr().out
    assert "t-2" in out
    assert "t-1" not in out


def test_dashboard(seed_file, capsys) -> None:
    assert run(seed_file, "dashboard") == 0

    out = capsys.readouterr().out
    assert "Total de tareas:        2" in out
    assert "Pendientes:             2" in out


def test_show_unknown_task(seed_file, capsys) -> None:
    assert run(seed_file, "show", "nope") == 1
    assert "Error: task not found: nope" in capsys.readouterr().out


def test_notifications(seed_file, capsys) -> None:
    assert run(seed_file, "notifications") == 0

    out = capsys.readouterr().out
    assert "2 sin leer" in out
    assert out.index("notif-t-2-overdue") < out.index("notif-t-1-due-soon")


def test_toggle_finishes_task(seed_file, capsys) -> None:
    assert run(seed_file, "toggle", "t-1", "act-2") == 0
    assert "t-1: 100% (Finalizado)" in capsys.readouterr().out


def test_toggle_unknown_activity(seed_file, capsys) -> None:
    assert run(seed_file, "toggle", "t-1", "act-9") == 1
    assert "not found" in capsys.readouterr().out


def test_new_task_as_admin(seed_file, capsys) -> None:
    code = run(
        seed_file,
        "new",
        "--name", "Audit",
        "--owner", "Calidad",
        "--start", "2024-03-15",
        "--end", "2024-04-15",
        "--activity", "Plan",
        "--support", "Legal",
    )

    assert code == 0
    assert capsys.readouterr().out.strip() == "tarea-20240315-001"


def test_new_task_validation_error(seed_file, capsys) -> None:
    assert run(seed_file, "new", "--owner", "Calidad") == 1

    out = capsys.readouterr().out
    assert "name_required" in out
    assert "activities_required" in out


def test_user_role_cannot_create(seed_file, capsys) -> None:
    code = cli.main(
        ["--seed", str(seed_file), "--today", "2024-03-15", "--role", "user", "new", "--name", "x"]
    )
    assert code == 1
    assert "only administrators" in capsys.readouterr().out


def test_mine_for_area_user(seed_file, capsys) -> None:
    code = cli.main(
        [
            "--seed", str(seed_file),
            "--today", "2024-03-15",
            "--no-color",
            "--role", "user",
            "--viewer-area", "Compras",
            "mine",
        ]
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "Tareas de Compras" in out
    assert "Renew permits" in out
    assert "Inspect extinguishers" not in out


def test_settings_from_env(seed_file, monkeypatch, capsys) -> None:
    monkeypatch.setenv("TASKDASH_SEED", str(seed_file))
    monkeypatch.setenv("TASKDASH_TODAY", "2024-03-15")
    monkeypatch.setenv("TASKDASH_COLOR", "0")

    assert cli.main(["show", "t-1"]) == 0
    assert "Inspect extinguishers" in capsys.readouterr().out


def test_bad_seed_reports_error(tmp_path, capsys) -> None:
    bad = tmp_path / "bad.yml"
    bad.write_text("tasks: [", encoding="utf-8")

    assert cli.main(["--seed", str(bad), "list"]) == 1
    assert "Invalid YAML" in capsys.readouterr().out


def test_shell_keeps_state(seed_file, monkeypatch, capsys) -> None:
    lines = iter(["toggle t-1 act-2", "bogus", "", "show t-1", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    assert run(seed_file, "shell") == 0

    out = capsys.readouterr().out
    assert "t-1: 100% (Finalizado)" in out
    assert "Finalizado" in out.split("t-1: 100% (Finalizado)", 1)[1]


def test_update_task(seed_file, capsys) -> None:
    assert run(seed_file, "update", "t-1", "--name", "Inspect hoses", "--priority", "alta") == 0

    out = capsys.readouterr().out
    assert "Inspect hoses" in out
    assert "prioridad: Alta" in out


def test_update_without_changes(seed_file, capsys) -> None:
    assert run(seed_file, "update", "t-1") == 1
    assert "Error: nothing to update" in capsys.readouterr().out


def test_update_unknown_task(seed_file, capsys) -> None:
    assert run(seed_file, "update", "nope", "--name", "x") == 1
    assert "Error: task not found: nope" in capsys.readouterr().out


def test_finalize(seed_file, capsys) -> None:
    assert run(seed_file, "finalize", "t-2") == 0
    assert "t-2: 100% (Finalizado)" in capsys.readouterr().out


def test_finalize_unknown_task(seed_file, capsys) -> None:
    assert run(seed_file, "finalize", "nope") == 1
    assert "Error: task not found: nope" in capsys.readouterr().out


def test_read_notification(seed_file, capsys) -> None:
    assert run(seed_file, "read", "notif-t-2-overdue") == 0
    assert capsys.readouterr().out == ""


def test_read_unknown_notification(seed_file, capsys) -> None:
    assert run(seed_file, "read", "notif-nope") == 1
    assert "Error: notification not found: notif-nope" in capsys.readouterr().out


def test_collab(seed_file, capsys) -> None:
    assert run(seed_file, "collab") == 0

    out = capsys.readouterr().out
    assert "Tareas colaborativas" in out
    assert "Renew permits [Legal, Compras]" in out
    assert "Inspect extinguishers" not in out


def test_collab_filtered_to_other_area(seed_file, capsys) -> None:
    assert run(seed_file, "collab", "--area", "Seguridad") == 0
    assert "(sin tareas)" in capsys.readouterr().out


def test_role_and_area(seed_file, capsys) -> None:
    assert run(seed_file, "role", "user") == 0
    assert capsys.readouterr().out.strip() == "Usuario Seguridad"

    assert run(seed_file, "--role", "user", "area", "Legal") == 0
    assert capsys.readouterr().out.strip() == "Usuario Legal"


def test_list_page_footer(tmp_path, capsys) -> None:
    entries = "".join(
        f"  - {{id: p-{i:02d}, name: Task {i}, areas: [Legal], start_date: 2024-03-01,"
        f" end_date: 2024-03-31, activities: [x]}}\n"
        for i in range(1, 12)
    )
    seed = tmp_path / "many.yml"
    seed.write_text("tasks:\n" + entries, encoding="utf-8")

    assert run(seed, "list") == 0
    assert "Pagina 1 de 2 (11 tareas)  --page 2 >" in capsys.readouterr().out

    assert run(seed, "list", "--page", "2") == 0
    out = capsys.readouterr().out
    assert "Pagina 2 de 2 (11 tareas)  < --page 1" in out
    assert "--page 3" not in out


def test_shell_keeps_read_state(seed_file, monkeypatch, capsys) -> None:
    lines = iter(["read notif-t-2-overdue", "notifications", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    assert run(seed_file, "shell") == 0
    assert "Notificaciones (1 sin leer)" in capsys.readouterr().out
