# etl/task_store.py
# -----------------------------------------------------------------------------
# Purpose:
#   SQLite storage for imported tasks, completion data and logged work, plus
#   the read side the earned-value pipeline consumes (ProjectSnapshot).
#
# Tables:
#   tasks       one row per MS Project task (dates as YYYY-MM-DD)
#   task_data   assignee / finished_at per task (at most one row per task)
#   timesheets  effort (days, same unit as task duration) logged on a given day
# -----------------------------------------------------------------------------

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from etl.effort_aggregator import ProjectSnapshot, TaskRecord, TimesheetEntry
from etl.errors import ProjectDataError
from etl.timesheet_rollup import weekly_effort
from etl.week_buckets import as_date, week_key
from services.logging_utils import get_logger

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id               INTEGER PRIMARY KEY,
    name             TEXT    NOT NULL,
    duration         INTEGER NOT NULL,
    predecessors     TEXT,
    start_date       TEXT    NOT NULL,
    finish_date      TEXT    NOT NULL,
    total_slack      INTEGER,
    resource_names   TEXT,
    pdex_criticality INTEGER
);
CREATE TABLE IF NOT EXISTS task_data (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id     INTEGER NOT NULL UNIQUE REFERENCES tasks (id),
    assignee    TEXT,
    finished_at TEXT
);
CREATE TABLE IF NOT EXISTS timesheets (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id   INTEGER REFERENCES tasks (id),
    logged_on TEXT NOT NULL,
    duration  REAL NOT NULL
);
"""

TASK_COLUMNS = [
    "id", "name", "duration", "predecessors", "start_date", "finish_date",
    "total_slack", "resource_names", "pdex_criticality",
]

# Schedulable tasks with their completion data, in listing order.
TASKS_QUERY = """
SELECT t.id, t.name, t.duration, t.predecessors, t.start_date, t.finish_date,
       t.total_slack, t.resource_names, t.pdex_criticality,
       td.assignee, td.finished_at
  FROM tasks t
  LEFT OUTER JOIN task_data td ON t.id = td.task_id
 WHERE t.duration > 0
 ORDER BY t.start_date, t.total_slack DESC, t.id
"""


# -----------------------------------------------------------------------------
# Connections
# -----------------------------------------------------------------------------
def _open(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def create_database(db_path: Union[str, Path]) -> sqlite3.Connection:
    """
    Create a new database file with the schema applied.

    Refuses to touch an existing file; remove it first to re-import.
    """
    fp = Path(db_path)
    if fp.exists():
        raise FileExistsError(f"Database {fp} already exists; remove it and re-run the import")
    fp.parent.mkdir(parents=True, exist_ok=True)
    conn = _open(fp)
    conn.executescript(SCHEMA)
    conn.commit()
    logger.info("Created task database %s", fp)
    return conn


def connect(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Open an existing database (schema is ensured, never recreated)."""
    fp = Path(db_path)
    if not fp.exists():
        raise FileNotFoundError(f"Could not find task database {fp}; check the path or run the import first")
    conn = _open(fp)
    conn.executescript(SCHEMA)
    return conn


# -----------------------------------------------------------------------------
# Writes
# -----------------------------------------------------------------------------
def _native(value):
    """sqlite3 only binds Python scalars; unwrap numpy values and NaN."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def _iso(value) -> Optional[str]:
    if _native(value) is None:
        return None
    return as_date(value).isoformat()


def insert_tasks(conn: sqlite3.Connection, tasks: pd.DataFrame) -> int:
    """
    Insert imported tasks (columns as in TASK_COLUMNS). Returns rows written.
    """
    missing = set(TASK_COLUMNS) - set(tasks.columns)
    if missing:
        raise ValueError(f"tasks frame missing columns: {sorted(missing)}")

    rows = []
    for rec in tasks.loc[:, TASK_COLUMNS].to_dict("records"):
        rec["start_date"] = _iso(rec["start_date"])
        rec["finish_date"] = _iso(rec["finish_date"])
        rows.append(tuple(_native(v) for v in rec.values()))

    placeholders = ", ".join("?" for _ in TASK_COLUMNS)
    with conn:
        conn.executemany(
            f"INSERT INTO tasks ({', '.join(TASK_COLUMNS)}) VALUES ({placeholders})",
            rows,
        )
    logger.info("Inserted %d tasks", len(rows))
    return len(rows)


def _require_task(conn: sqlite3.Connection, task_id: int) -> None:
    if conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone() is None:
        raise LookupError(f"Task {task_id} not found")


def mark_finished(
    conn: sqlite3.Connection,
    task_id: int,
    finished_at: Union[date, str],
    assignee: Optional[str] = None,
) -> None:
    """Record the finish date (and optionally the assignee) of a task."""
    _require_task(conn, task_id)
    with conn:
        conn.execute(
            """
            INSERT INTO task_data (task_id, assignee, finished_at) VALUES (?, ?, ?)
            ON CONFLICT (task_id) DO UPDATE SET
                finished_at = excluded.finished_at,
                assignee = COALESCE(excluded.assignee, task_data.assignee)
            """,
            (task_id, assignee, _iso(finished_at)),
        )


def assign(conn: sqlite3.Connection, task_id: int, assignee: str) -> None:
    _require_task(conn, task_id)
    with conn:
        conn.execute(
            """
            INSERT INTO task_data (task_id, assignee) VALUES (?, ?)
            ON CONFLICT (task_id) DO UPDATE SET assignee = excluded.assignee
            """,
            (task_id, assignee),
        )


def log_work(
    conn: sqlite3.Connection,
    task_id: Optional[int],
    logged_on: Union[date, str],
    duration: float,
) -> int:
    """Append one timesheet entry. Returns its row id."""
    if duration <= 0:
        raise ValueError(f"logged duration must be positive, got {duration}")
    if task_id is not None:
        _require_task(conn, task_id)
    with conn:
        cur = conn.execute(
            "INSERT INTO timesheets (task_id, logged_on, duration) VALUES (?, ?, ?)",
            (task_id, _iso(logged_on), float(duration)),
        )
    return int(cur.lastrowid)


def log_work_many(conn: sqlite3.Connection, entries: Iterable[tuple]) -> int:
    """Append (task_id, logged_on, duration) rows in one transaction; all or nothing."""
    rows = [(_native(tid), _iso(day), float(dur)) for tid, day, dur in entries]
    for _, day, dur in rows:
        if dur <= 0:
            raise ValueError(f"logged duration must be positive, got {dur} on {day}")
    with conn:
        conn.executemany(
            "INSERT INTO timesheets (task_id, logged_on, duration) VALUES (?, ?, ?)",
            rows,
        )
    return len(rows)


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------
def read_tasks(conn: sqlite3.Connection) -> pd.DataFrame:
    """Schedulable tasks joined with completion data, with a `finished` flag."""
    df = pd.read_sql_query(TASKS_QUERY, conn)
    df["finished"] = df["finished_at"].notna()
    return df


def read_timesheets(conn: sqlite3.Connection) -> pd.DataFrame:
    return pd.read_sql_query("SELECT task_id, logged_on, duration FROM timesheets ORDER BY logged_on, id", conn)


def fetch_snapshot(conn: sqlite3.Connection) -> ProjectSnapshot:
    """
    Materialize everything one earned-value run needs.

    Raises
    ------
    ProjectDataError
        If there are no tasks with a positive duration.
    """
    tasks = read_tasks(conn)
    if tasks.empty:
        raise ProjectDataError("No schedulable tasks (duration > 0) in the task database", code="NO_TASKS")

    start = pd.to_datetime(tasks["start_date"]).min().date()
    end = pd.to_datetime(tasks["finish_date"]).max().date()
    total_effort = float(tasks["duration"].sum())

    records = tuple(
        TaskRecord(
            task_id=int(row.id),
            duration=float(row.duration),
            planned_finish=week_key(row.finish_date),
            actual_finish=week_key(row.finished_at) if isinstance(row.finished_at, str) else None,
        )
        for row in tasks.itertuples(index=False)
    )

    weekly = weekly_effort(read_timesheets(conn))
    entries = tuple(
        TimesheetEntry(week=int(row.week), duration=float(row.duration))
        for row in weekly.itertuples(index=False)
    )

    logger.info(
        "Snapshot: %d tasks, %s..%s, total effort %s, %d logged weeks",
        len(records), start, end, total_effort, len(entries),
    )
    return ProjectSnapshot(
        start_date=start,
        end_date=end,
        total_effort=total_effort,
        tasks=records,
        timesheets=entries,
    )
