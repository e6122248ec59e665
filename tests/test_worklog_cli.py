"""
tests/test_worklog_cli.py

Logging work against tasks, marking tasks finished and importing a
timesheet CSV, both through the functions and the CLI.
"""

import runpy
import sys
from datetime import date

import pytest

from etl import task_store
from etl.errors import ProjectImportError
from etl.evm_calculator import compute_curves
from services.worklog import import_timesheets, log


def _rows(db_fp, sql):
    conn = task_store.connect(db_fp)
    try:
        return [tuple(r) for r in conn.execute(sql).fetchall()]
    finally:
        conn.close()


def test_log_days_of_effort(task_db) -> None:
    written = log(task_db, 3, on=date(2024, 1, 17), days=2.5)

    assert written["task_id"] == 3
    assert written["date"] == "2024-01-17"
    assert "timesheet_id" in written
    assert ("2024-01-17", 2.5) in _rows(task_db, "SELECT logged_on, duration FROM timesheets WHERE task_id = 3")


def test_logged_days_count_against_task_durations(task_db) -> None:
    # one more day on a 100-day project moves W03 actual effort from 11% to 12%
    log(task_db, 3, on=date(2024, 1, 17), days=1)

    conn = task_store.connect(task_db)
    try:
        curves = compute_curves(task_store.fetch_snapshot(conn), current_week=202403)
    finally:
        conn.close()
    assert curves.actual_effort.tolist() == pytest.approx([6.0, 12.0])


def test_log_finished_with_assignee(task_db) -> None:
    written = log(task_db, 3, on=date(2024, 1, 19), finished=True, assignee="grace hopper")

    assert written["finished"] is True
    assert _rows(task_db, "SELECT assignee, finished_at FROM task_data WHERE task_id = 3") == [
        ("grace hopper", "2024-01-19")
    ]


def test_log_assignee_only_leaves_task_open(task_db) -> None:
    log(task_db, 3, assignee="grace hopper")
    assert _rows(task_db, "SELECT assignee, finished_at FROM task_data WHERE task_id = 3") == [
        ("grace hopper", None)
    ]


def test_log_requires_something(task_db) -> None:
    with pytest.raises(ValueError):
        log(task_db, 3)


def test_import_timesheets(task_db, tmp_path) -> None:
    fp = tmp_path / "ts.csv"
    fp.write_text("task_id,date,duration\n3,2024-01-17,2\n,2024-01-18,0.5\n", encoding="utf-8")

    assert import_timesheets(task_db, fp) == 2
    assert _rows(task_db, "SELECT COUNT(*), SUM(duration) FROM timesheets") == [(5, 13.5)]


@pytest.mark.parametrize("duration", ["0", "-20"])
def test_import_rejects_non_positive_effort(task_db, tmp_path, duration) -> None:
    fp = tmp_path / "ts.csv"
    fp.write_text(f"task_id,date,duration\n3,2024-01-17,2\n2,2024-01-10,{duration}\n", encoding="utf-8")

    with pytest.raises(ProjectImportError, match="row 3"):
        import_timesheets(task_db, fp)

    # nothing written, so actual effort still only grows
    assert _rows(task_db, "SELECT COUNT(*) FROM timesheets") == [(3,)]
    conn = task_store.connect(task_db)
    try:
        curves = compute_curves(task_store.fetch_snapshot(conn), current_week=202403)
    finally:
        conn.close()
    assert curves.actual_effort.tolist() == pytest.approx([6.0, 11.0])
    assert curves.actual_effort.is_monotonic_increasing


def test_cli_single_entry(task_db, tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["services.worklog", "--task-id", "3", "--days", "1", "--date", "2024-01-17", "--db", str(task_db)],
    )
    sys.modules.pop("services.worklog", None)

    runpy.run_module("services.worklog", run_name="__main__")

    assert "[worklog]" in capsys.readouterr().out
    assert _rows(task_db, "SELECT COUNT(*) FROM timesheets WHERE task_id = 3") == [(2,)]


def test_cli_csv_import(task_db, tmp_path, monkeypatch, capsys) -> None:
    fp = tmp_path / "ts.csv"
    fp.write_text("task_id,date,duration\n2,2024-01-10,1\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["services.worklog", "--csv", str(fp), "--db", str(task_db)])
    sys.modules.pop("services.worklog", None)

    runpy.run_module("services.worklog", run_name="__main__")

    assert "Imported 1 timesheet rows" in capsys.readouterr().out


def test_cli_requires_task_id(task_db, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["services.worklog", "--days", "1", "--db", str(task_db)])
    sys.modules.pop("services.worklog", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("services.worklog", run_name="__main__")
    assert exc.value.code == 2
