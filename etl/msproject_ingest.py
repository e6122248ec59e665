# etl/msproject_ingest.py
# -----------------------------------------------------------------------------
# Purpose:
#   Import an MS Project CSV export into a fresh task database.
#
# Expected columns (MS Project "export to CSV" with these field names):
#   ID, Name, Duration, Predecessors, Start_Date, Finish_Date, Total_Slack,
#   Resource_Names, PDEx_Criticality
#
#   Duration / Total_Slack are strings like "5 days" (the leading integer is
#   kept); Start_Date / Finish_Date look like "Mon 01/08/24".
#
# CLI:
#   python -m etl.msproject_ingest --csv tasks.csv [--db db/tasks.db]
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Union

import pandas as pd

from etl import task_store
from etl.errors import ProjectImportError
from services.settings import database_path, load_config

MSPROJECT_DATE_FORMAT = "%a %m/%d/%y"

COLUMN_MAP = {
    "ID": "id",
    "Name": "name",
    "Duration": "duration",
    "Predecessors": "predecessors",
    "Start_Date": "start_date",
    "Finish_Date": "finish_date",
    "Total_Slack": "total_slack",
    "Resource_Names": "resource_names",
    "PDEx_Criticality": "pdex_criticality",
}


def parse_days(value) -> int:
    """'5 days' -> 5, '-2 days' -> -2, '0 days?' -> 0."""
    text = str(value).strip()
    token = text.split()[0] if text else ""
    try:
        return int(token.rstrip("?"))
    except ValueError:
        raise ProjectImportError(f"cannot read a day count from {value!r}", code="BAD_DAYS") from None


def parse_date(value) -> pd.Timestamp:
    """'Mon 01/08/24' -> Timestamp('2024-01-08')."""
    try:
        return pd.to_datetime(str(value).strip(), format=MSPROJECT_DATE_FORMAT)
    except (ValueError, TypeError):
        raise ProjectImportError(f"cannot read a date from {value!r}", code="BAD_DATE") from None


def load_msproject_csv(csv_fp: Union[str, Path]) -> pd.DataFrame:
    """
    Read and normalize an MS Project export.

    Returns a DataFrame with task_store.TASK_COLUMNS; raises ProjectImportError
    naming the CSV row and column for any value that does not parse.
    """
    raw = pd.read_csv(csv_fp, dtype=str, keep_default_na=False)
    missing = set(COLUMN_MAP) - set(raw.columns)
    if missing:
        raise ProjectImportError(f"{csv_fp}: missing columns {sorted(missing)}", code="MSPROJECT_COLUMNS")

    df = raw.loc[:, list(COLUMN_MAP)].rename(columns=COLUMN_MAP).copy()
    parsers = {
        "id": int,
        "duration": parse_days,
        "total_slack": parse_days,
        "start_date": parse_date,
        "finish_date": parse_date,
        "pdex_criticality": lambda v: int(v) if str(v).strip() else 0,
    }
    for col, parse in parsers.items():
        values = []
        for pos, value in enumerate(df[col]):
            try:
                values.append(parse(value))
            except (ProjectImportError, ValueError) as e:
                raise ProjectImportError(
                    f"{csv_fp}: row {pos + 2}, column {col}: {e}", code="MSPROJECT_ROW"
                ) from e
        df[col] = values
    return df.loc[:, task_store.TASK_COLUMNS]


def main(csv_fp: Path, db_fp: Path) -> int:
    """Create the database at `db_fp` and import every task from `csv_fp`."""
    tasks = load_msproject_csv(csv_fp)
    conn = task_store.create_database(db_fp)
    try:
        n = task_store.insert_tasks(conn, tasks)
    finally:
        conn.close()
    print(f"[msproject_ingest] Imported {n} tasks from {csv_fp} into {db_fp}")
    return n


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Initialize the task database from an MS Project CSV export.")
    ap.add_argument("--csv", default="tasks.csv", help="MS Project CSV export (default: tasks.csv)")
    ap.add_argument("--db", default=None, help="Task database (default: $PROJECT_MANAGER_DB_FILE or config)")
    ap.add_argument("--config", default="config.yaml")
    args = ap.parse_args()

    db = database_path(load_config(args.config), args.db)
    if db.exists():
        print(f"[msproject_ingest] Database exists, remove it and re-run (using db: {db}).")
        sys.exit(1)
    main(Path(args.csv), db)
