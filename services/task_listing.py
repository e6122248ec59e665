# services/task_listing.py
"""
Task listing.

- Reads schedulable tasks (duration > 0) with their completion data.
- Filters by status: pending, completed or all.
- Prints a plain-text table: ID, Assignee, Task, Finish, Status.
"""

import argparse
from enum import Enum
from pathlib import Path

import pandas as pd

from etl import task_store
from services.settings import database_path, load_config


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ALL = "all"


def filter_tasks(tasks: pd.DataFrame, status: TaskStatus) -> pd.DataFrame:
    """Keep rows matching `status`; `tasks` needs a boolean `finished` column."""
    status = TaskStatus(status)
    if status is TaskStatus.PENDING:
        return tasks.loc[~tasks["finished"]]
    if status is TaskStatus.COMPLETED:
        return tasks.loc[tasks["finished"]]
    return tasks


def format_table(tasks: pd.DataFrame) -> str:
    """Render the listing; assignee names are title-cased, blanks stay blank."""
    if tasks.empty:
        return "No tasks."
    view = pd.DataFrame(
        {
            "ID": tasks["id"].astype(int),
            "Assignee": tasks["assignee"].fillna("").astype(str).str.title(),
            "Task": tasks["name"],
            "Finish": tasks["finish_date"],
            "Status": tasks["finished"].map({True: "done", False: "pending"}),
        }
    )
    return view.to_string(index=False)


def main(db_fp: Path, status: TaskStatus) -> pd.DataFrame:
    conn = task_store.connect(db_fp)
    try:
        tasks = filter_tasks(task_store.read_tasks(conn), status)
    finally:
        conn.close()
    print(format_table(tasks))
    return tasks


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="List tasks.")
    ap.add_argument("--status", choices=[s.value for s in TaskStatus], default=TaskStatus.PENDING.value)
    ap.add_argument("--db", default=None)
    ap.add_argument("--config", default="config.yaml")
    args = ap.parse_args()
    main(database_path(load_config(args.config), args.db), TaskStatus(args.status))
