# etl/effort_aggregator.py
# -----------------------------------------------------------------------------
# Purpose:
#   Turn task and timesheet records into per-week contributions, in percent
#   of total project effort:
#     - planned_value: a task's weight lands in its planned finish week
#     - earned_value:  a finished task's weight lands in its actual finish week
#     - actual_effort: effort logged in a week, as a share of total effort
#
# Inputs are plain frozen records (already decoded by the task store); the
# output is a DataFrame indexed by week bucket, one column per delta series.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from etl.errors import BucketNotFoundError, DivisionByZeroError
from etl.week_buckets import WeekBucket
from services.logging_utils import get_logger

logger = get_logger(__name__)

DELTA_COLUMNS = ["planned_value", "earned_value", "actual_effort"]
ON_MISSING_POLICIES = ("raise", "skip")


@dataclass(frozen=True)
class TaskRecord:
    """One schedulable task, reduced to what the curves need."""

    task_id: Union[int, str]
    duration: float
    planned_finish: WeekBucket
    actual_finish: Optional[WeekBucket] = None


@dataclass(frozen=True)
class TimesheetEntry:
    week: WeekBucket
    duration: float


@dataclass(frozen=True)
class ProjectSnapshot:
    """
    Everything one report run reads from the task store.

    start_date/end_date span all schedulable tasks; total_effort is the sum
    of their durations.
    """

    start_date: date
    end_date: date
    total_effort: float
    tasks: Tuple[TaskRecord, ...] = ()
    timesheets: Tuple[TimesheetEntry, ...] = ()


@dataclass
class AggregationResult:
    deltas: pd.DataFrame
    skipped: List[BucketNotFoundError] = field(default_factory=list)


def _task_frame(tasks: Sequence[TaskRecord]) -> pd.DataFrame:
    cols = ["task_id", "duration", "planned_finish", "actual_finish"]
    frame = pd.DataFrame([asdict(t) for t in tasks], columns=cols)
    frame["duration"] = pd.to_numeric(frame["duration"]).astype("float64")
    return frame


def _timesheet_frame(timesheets: Sequence[TimesheetEntry]) -> pd.DataFrame:
    frame = pd.DataFrame([asdict(e) for e in timesheets], columns=["week", "duration"])
    frame["duration"] = pd.to_numeric(frame["duration"]).astype("float64")
    return frame


def _in_domain(weeks: pd.Series, index: pd.Index) -> pd.Series:
    return weeks.astype("int64").isin(index)


def _sum_by_week(frame: pd.DataFrame, key: str, index: pd.Index) -> pd.Series:
    """Sum `weight` per bucket in `key`, aligned to the full bucket index."""
    if frame.empty:
        return pd.Series(0.0, index=index)
    weeks = frame[key].astype("int64")
    return frame["weight"].groupby(weeks).sum().reindex(index, fill_value=0.0)


def aggregate_effort(
    buckets: Sequence[WeekBucket],
    tasks: Sequence[TaskRecord],
    timesheets: Sequence[TimesheetEntry],
    total_effort: float,
    on_missing: str = "raise",
) -> AggregationResult:
    """
    Compute the weekly planned/earned/actual deltas.

    Parameters
    ----------
    buckets :
        The week domain (see etl.week_buckets.generate_week_buckets).
    tasks, timesheets :
        Materialized rows for one project.
    total_effort :
        Sum of all task durations; must be > 0.
    on_missing :
        "raise" stops at the first record whose week is not in `buckets`;
        "skip" logs a warning, leaves that contribution out and reports it
        in `AggregationResult.skipped`.

    Returns
    -------
    AggregationResult whose `deltas` has index `week` and columns
    planned_value, earned_value, actual_effort.
    """
    if on_missing not in ON_MISSING_POLICIES:
        raise ValueError(f"on_missing must be one of {ON_MISSING_POLICIES}, got {on_missing!r}")
    if total_effort == 0:
        raise DivisionByZeroError("total effort is 0; nothing to weight tasks against", code="NO_EFFORT")
    if total_effort < 0:
        raise ValueError(f"total effort must be positive, got {total_effort}")

    index = pd.Index(sorted(set(int(b) for b in buckets)), name="week", dtype="int64")

    task_df = _task_frame(tasks)
    task_df["weight"] = task_df["duration"] * 100.0 / total_effort
    done_df = task_df.dropna(subset=["actual_finish"])

    sheet_df = _timesheet_frame(timesheets)
    sheet_df["weight"] = sheet_df["duration"] * 100.0 / total_effort

    # --- 1) Collect misses in a fixed order: planned, actual, timesheets ------
    misses: List[BucketNotFoundError] = []
    planned_ok = _in_domain(task_df["planned_finish"], index)
    for row in task_df.loc[~planned_ok].itertuples(index=False):
        misses.append(BucketNotFoundError(row.task_id, int(row.planned_finish), "planned_finish"))

    actual_ok = _in_domain(done_df["actual_finish"], index)
    for row in done_df.loc[~actual_ok].itertuples(index=False):
        misses.append(BucketNotFoundError(row.task_id, int(row.actual_finish), "actual_finish"))

    sheet_ok = _in_domain(sheet_df["week"], index)
    for row in sheet_df.loc[~sheet_ok].itertuples(index=False):
        misses.append(BucketNotFoundError(None, int(row.week), "timesheet"))

    if misses and on_missing == "raise":
        raise misses[0]
    for miss in misses:
        logger.warning("Skipping contribution: %s", miss)

    # --- 2) Per-week sums over the records that fit the domain ----------------
    deltas = pd.DataFrame(
        {
            "planned_value": _sum_by_week(task_df.loc[planned_ok], "planned_finish", index),
            "earned_value": _sum_by_week(done_df.loc[actual_ok], "actual_finish", index),
            "actual_effort": _sum_by_week(sheet_df.loc[sheet_ok], "week", index),
        },
        index=index,
    )
    return AggregationResult(deltas=deltas.loc[:, DELTA_COLUMNS], skipped=misses)
