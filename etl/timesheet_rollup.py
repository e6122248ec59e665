# etl/timesheet_rollup.py
# -----------------------------------------------------------------------------
# Weekly roll-up of logged work.
#
#   load_timesheet_csv(path) -> DataFrame[task_id, logged_on, duration]
#   weekly_effort(df)        -> DataFrame[week, duration]  (one row per bucket)
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from etl.errors import ProjectImportError
from etl.week_buckets import week_key

TIMESHEET_COLUMNS = ["task_id", "date", "duration"]


def load_timesheet_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a timesheet export with columns task_id, date, duration (days, the
    unit of task durations). Every duration must be positive.

    task_id may be blank for time not booked against a task.
    """
    df = pd.read_csv(path)
    missing = set(TIMESHEET_COLUMNS) - set(df.columns)
    if missing:
        raise ProjectImportError(f"{path}: missing columns {sorted(missing)}", code="TIMESHEET_COLUMNS")

    out = pd.DataFrame(
        {
            "task_id": pd.to_numeric(df["task_id"], errors="coerce").astype("Int64"),
            "logged_on": pd.to_datetime(df["date"], errors="coerce"),
            "duration": pd.to_numeric(df["duration"], errors="coerce"),
        }
    )
    bad = out["logged_on"].isna() | out["duration"].isna() | (out["duration"] <= 0)
    if bad.any():
        first = int(bad.to_numpy().nonzero()[0][0])
        raise ProjectImportError(
            f"{path}: row {first + 2} has an unreadable date or a duration that is not positive",
            code="TIMESHEET_ROW",
        )
    return out


def weekly_effort(timesheets: pd.DataFrame) -> pd.DataFrame:
    """Sum logged duration per week bucket, sorted by week."""
    if timesheets.empty:
        return pd.DataFrame({"week": pd.Series(dtype="int64"), "duration": pd.Series(dtype="float64")})
    df = timesheets.copy()
    df["week"] = df["logged_on"].map(week_key).astype("int64")
    df["duration"] = pd.to_numeric(df["duration"], errors="coerce").fillna(0.0)
    return df.groupby("week", as_index=False).agg({"duration": "sum"}).sort_values("week").reset_index(drop=True)
