"""
Golden numbers for the bundled sample project (data/samples).

Schedulable tasks (total 33 days):
  2 Requirements  5d  finishes W02
  3 Architecture  5d  finishes W03
  4 Data access  10d  finishes W05
  5 Client UI     8d  finishes W05
  6 Integration   5d  finishes W06
Logged effort (days): W02 6, W03 6, W04 8 (1 unbooked), W05 5.
"""

from datetime import date
from pathlib import Path

import pytest

from etl import task_store
from etl.evm_calculator import compute_curves
from etl.msproject_ingest import main as import_tasks
from etl.week_buckets import current_week_key
from services.worklog import import_timesheets

SAMPLES = Path(__file__).resolve().parents[1] / "data" / "samples"


def _pct(values):
    return [v * 100.0 / 33 for v in values]


def test_sample_project_curves(tmp_path) -> None:
    db_fp = tmp_path / "tasks.db"
    assert import_tasks(SAMPLES / "tasks.csv", db_fp) == 7
    assert import_timesheets(db_fp, SAMPLES / "timesheets.csv") == 8

    conn = task_store.connect(db_fp)
    try:
        task_store.mark_finished(conn, 2, date(2024, 1, 12))
        task_store.mark_finished(conn, 3, date(2024, 1, 22))
        snapshot = task_store.fetch_snapshot(conn)
    finally:
        conn.close()

    curves = compute_curves(snapshot, current_week_key(date(2024, 1, 31)))

    assert curves.weeks == [202402, 202403, 202404, 202405, 202406]
    assert curves.labels == ["W02", "W03", "W04", "W05", "W06"]
    assert curves.planned_value.tolist() == pytest.approx(_pct([5, 10, 10, 28, 33]))
    # Architecture finished a week late; W06 is in the future.
    assert curves.earned_value.tolist() == pytest.approx(_pct([5, 5, 10, 10]))
    assert curves.actual_effort.tolist() == pytest.approx(_pct([6, 12, 20, 25]))
