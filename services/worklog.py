# services/worklog.py
"""
Work logging.

- Log effort against a task for a day, optionally marking the task finished.
  Effort is in days, the same unit as task durations (0.5 = half a day).
- Or import a whole timesheet CSV (task_id, date, duration) in one go.

Examples:
  python -m services.worklog --task-id 3 --days 0.5 --date 2024-01-10
  python -m services.worklog --task-id 3 --finished --date 2024-01-12 --assignee "ada lovelace"
  python -m services.worklog --csv timesheets.csv
"""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from etl import task_store
from etl.timesheet_rollup import load_timesheet_csv
from etl.week_buckets import as_date
from services.logging_utils import get_logger
from services.settings import database_path, load_config

logger = get_logger(__name__)


def log(
    db_fp: Path,
    task_id: int,
    on: Optional[date] = None,
    days: Optional[float] = None,
    finished: bool = False,
    assignee: Optional[str] = None,
) -> Dict[str, object]:
    """
    Record work for one task. Returns what was written.

    At least one of `days`, `finished` or `assignee` must be given.
    """
    if days is None and not finished and not assignee:
        raise ValueError("nothing to log: pass days, finished and/or assignee")

    day = on or date.today()
    written: Dict[str, object] = {"task_id": task_id, "date": day.isoformat()}
    conn = task_store.connect(db_fp)
    try:
        if days is not None:
            written["timesheet_id"] = task_store.log_work(conn, task_id, day, days)
        if finished:
            task_store.mark_finished(conn, task_id, day, assignee)
            written["finished"] = True
        elif assignee:
            task_store.assign(conn, task_id, assignee)
        if assignee:
            written["assignee"] = assignee
    finally:
        conn.close()
    logger.info("Logged %s", written)
    return written


def import_timesheets(db_fp: Path, csv_fp: Path) -> int:
    """Append every row of a timesheet CSV. Returns the number of rows."""
    df = load_timesheet_csv(csv_fp)
    rows = [
        (None if pd.isna(tid) else int(tid), day, dur)
        for tid, day, dur in zip(df["task_id"], df["logged_on"], df["duration"])
    ]
    conn = task_store.connect(db_fp)
    try:
        n = task_store.log_work_many(conn, rows)
    finally:
        conn.close()
    return n


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Log work against tasks.")
    ap.add_argument("--task-id", type=int, default=None)
    ap.add_argument("--days", type=float, default=None, help="Effort to log, in days (task duration unit)")
    ap.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    ap.add_argument("--finished", action="store_true", help="Mark the task finished on --date")
    ap.add_argument("--assignee", default=None)
    ap.add_argument("--csv", default=None, help="Timesheet CSV to import instead of a single entry")
    ap.add_argument("--db", default=None)
    ap.add_argument("--config", default="config.yaml")
    args = ap.parse_args()

    db = database_path(load_config(args.config), args.db)
    if args.csv:
        n = import_timesheets(db, Path(args.csv))
        print(f"[worklog] Imported {n} timesheet rows from {args.csv}")
    else:
        if args.task_id is None:
            ap.error("--task-id is required unless --csv is given")
        result = log(db, args.task_id, as_date(args.date) if args.date else None,
                     args.days, args.finished, args.assignee)
        print(f"[worklog] {result}")
