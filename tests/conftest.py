"""
tests/conftest.py

Shared pytest fixtures: small task/timesheet snapshots, an MS Project CSV
export and a populated task database. Everything is hard-coded so the
earned-value math can be checked by hand.

Week buckets used below (ISO year * 100 + ISO week):
  2024-01-08 .. 2024-01-14 -> 202402
  2024-01-15 .. 2024-01-21 -> 202403
  2024-01-22 .. 2024-01-28 -> 202404
"""
# --- Add this block so `import etl...` / `import services...` work in tests & CI ---
import sys
from pathlib import Path
_repo_root = Path(__file__).resolve().parents[1]
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))
# -----------------------------------------------------------------

from datetime import date

import pytest

from etl import task_store
from etl.effort_aggregator import ProjectSnapshot, TaskRecord, TimesheetEntry
from etl.msproject_ingest import load_msproject_csv

W1, W2, W3 = 202402, 202403, 202404

MSPROJECT_CSV = """ID,Name,Duration,Predecessors,Start_Date,Finish_Date,Total_Slack,Resource_Names,PDEx_Criticality
1,Kickoff,0 days,,Mon 01/08/24,Mon 01/08/24,0 days,,3
2,Design,60 days,1,Mon 01/08/24,Fri 01/12/24,0 days,Architect,3
3,Build,40 days,2,Mon 01/15/24,Fri 01/19/24,5 days,Developer,2
"""


@pytest.fixture
def two_task_snapshot() -> ProjectSnapshot:
    """
    Total effort 100:
    - Task 1: 60 units, planned and finished in W1
    - Task 2: 40 units, planned for W2, not finished
    Two weeks of logged work: 30 in W1, 25 in W2.
    """
    return ProjectSnapshot(
        start_date=date(2024, 1, 8),
        end_date=date(2024, 1, 19),
        total_effort=100.0,
        tasks=(
            TaskRecord(task_id=1, duration=60, planned_finish=W1, actual_finish=W1),
            TaskRecord(task_id=2, duration=40, planned_finish=W2),
        ),
        timesheets=(
            TimesheetEntry(week=W1, duration=30),
            TimesheetEntry(week=W2, duration=25),
        ),
    )


@pytest.fixture
def msproject_csv(tmp_path: Path) -> Path:
    """MS Project export with one milestone (0 days) and two real tasks."""
    fp = tmp_path / "tasks.csv"
    fp.write_text(MSPROJECT_CSV, encoding="utf-8")
    return fp


@pytest.fixture
def task_db(tmp_path: Path, msproject_csv: Path) -> Path:
    """
    Task database built from `msproject_csv`, with:
    - task 2 finished on 2024-01-12 by "ada lovelace"
    - 6 days of effort logged on task 2 (W1), 4 days + 1 unbooked day in W2
    """
    db_fp = tmp_path / "db" / "tasks.db"
    conn = task_store.create_database(db_fp)
    try:
        task_store.insert_tasks(conn, load_msproject_csv(msproject_csv))
        task_store.mark_finished(conn, 2, date(2024, 1, 12), "ada lovelace")
        task_store.log_work(conn, 2, date(2024, 1, 9), 6)
        task_store.log_work(conn, 3, date(2024, 1, 16), 4)
        task_store.log_work(conn, None, date(2024, 1, 18), 1)
    finally:
        conn.close()
    return db_fp
