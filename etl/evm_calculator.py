# etl/evm_calculator.py
# -----------------------------------------------------------------------------
# Purpose:
#   Weekly earned-value curves for one project, plus a CLI that reads the task
#   database, renders the chart and writes the weekly table as parquet.
#
# Pipeline (all pure, given the snapshot and the current week):
#   snapshot -> week buckets -> per-week deltas -> running totals
#            -> clip EV/AC after the current week -> trim trailing zeros
#
# What this module provides:
#   - compute_curves(snapshot, current_week): EarnedValueCurves
#   - EarnedValueCurves.to_frame() / .chart_series()
#   - __main__ CLI: task db -> chart (png/html/...) + earned_value_weekly.parquet
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from etl import task_store
from etl.cumulative_series import cumulate, cumulate_clipped
from etl.effort_aggregator import ProjectSnapshot, aggregate_effort
from etl.errors import BucketNotFoundError
from etl.series_trimmer import trim_trailing_zeros
from etl.week_buckets import (
    WeekBucket,
    as_date,
    current_week_key,
    generate_week_buckets,
    week_labels,
)
from services.chart_export import render_chart
from services.logging_utils import get_logger, set_level
from services.settings import database_path, load_config

logger = get_logger(__name__)

# Display names handed to the chart, in drawing order.
CHART_SERIES = {
    "AC": "Actual effort",
    "PV": "Planned progress",
    "EV": "Earned value",
}


# -----------------------------------------------------------------------------
# Result type
# -----------------------------------------------------------------------------
@dataclass
class EarnedValueCurves:
    """
    Cumulative curves in percent of total effort, keyed by week bucket.

    planned_value covers every week; earned_value and actual_effort stop at
    their last non-zero week (and are zero after `current_week`).
    """

    weeks: List[WeekBucket]
    labels: List[str]
    planned_value: pd.Series
    earned_value: pd.Series
    actual_effort: pd.Series
    current_week: WeekBucket
    skipped: List[BucketNotFoundError] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Aligned weekly table: week, label, PV, EV, AC (NaN past a trimmed end)."""
        index = pd.Index(self.weeks, name="week")
        frame = pd.DataFrame({"label": self.labels}, index=index)
        frame["PV"] = self.planned_value.reindex(index)
        frame["EV"] = self.earned_value.reindex(index)
        frame["AC"] = self.actual_effort.reindex(index)
        return frame.reset_index()

    def chart_series(self) -> Dict[str, List[float]]:
        by_key = {"PV": self.planned_value, "EV": self.earned_value, "AC": self.actual_effort}
        return {name: [float(v) for v in by_key[key]] for key, name in CHART_SERIES.items()}


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------
def compute_curves(
    snapshot: ProjectSnapshot,
    current_week: WeekBucket,
    on_missing: str = "raise",
) -> EarnedValueCurves:
    """
    Build planned value, earned value and actual effort curves.

    Parameters
    ----------
    snapshot :
        Task and timesheet rows for the project (see etl.task_store.fetch_snapshot).
    current_week :
        Week bucket treated as "now"; later weeks get no EV/AC credit.
    on_missing :
        "raise" or "skip" for records whose week is outside the project range.

    Raises
    ------
    InvalidRangeError, DivisionByZeroError, BucketNotFoundError
    """
    weeks = generate_week_buckets(snapshot.start_date, snapshot.end_date)
    result = aggregate_effort(
        weeks,
        snapshot.tasks,
        snapshot.timesheets,
        snapshot.total_effort,
        on_missing=on_missing,
    )
    deltas = result.deltas

    planned = cumulate(deltas["planned_value"]).rename("PV")
    earned = trim_trailing_zeros(cumulate_clipped(deltas["earned_value"], current_week)).rename("EV")
    effort = trim_trailing_zeros(cumulate_clipped(deltas["actual_effort"], current_week)).rename("AC")

    logger.debug("Weeks: %s", weeks)
    logger.info(
        "Curves for %d weeks (current %s): PV %.1f%%, EV %s, AC %s",
        len(weeks),
        current_week,
        planned.iloc[-1] if len(planned) else 0.0,
        f"{earned.iloc[-1]:.1f}%" if len(earned) else "-",
        f"{effort.iloc[-1]:.1f}%" if len(effort) else "-",
    )
    return EarnedValueCurves(
        weeks=list(weeks),
        labels=week_labels(weeks),
        planned_value=planned,
        earned_value=earned,
        actual_effort=effort,
        current_week=int(current_week),
        skipped=list(result.skipped),
    )


# -----------------------------------------------------------------------------
# CLI helpers
# -----------------------------------------------------------------------------
def _default_chart_path(charts_dir: Path, today: date, fmt: str) -> Path:
    """charts/ev_chart-week-<ww>-(<epoch>).<fmt>"""
    week = today.isocalendar()[1]
    return charts_dir / f"ev_chart-week-{week:02d}-({int(time.time())}).{fmt}"


def _write_output(frame: pd.DataFrame, out_dir: Path) -> Path:
    """Write the weekly curve table to earned_value_weekly.parquet."""
    out_dir.mkdir(parents=True, exist_ok=True)
    out_fp = out_dir / "earned_value_weekly.parquet"
    frame.to_parquet(out_fp, index=False)
    return out_fp


def _build_argparser() -> argparse.ArgumentParser:
    """
    Examples:
      python -m etl.evm_calculator
      python -m etl.evm_calculator --db db/tasks.db --out charts/ev.html --today 2024-03-01
    """
    ap = argparse.ArgumentParser(description="Generate the weekly earned value chart.")
    ap.add_argument("--config", default="config.yaml", help="YAML config (default: config.yaml)")
    ap.add_argument("--db", default=None, help="Task database (default: $PROJECT_MANAGER_DB_FILE or config)")
    ap.add_argument("--out", default=None, help="Chart path (default: charts/ev_chart-week-<ww>-(<epoch>).<fmt>)")
    ap.add_argument("--processed", default=None, help="Directory for earned_value_weekly.parquet")
    ap.add_argument("--today", default=None, help="Date treated as today, YYYY-MM-DD (default: local date)")
    ap.add_argument("--on-missing", choices=["raise", "skip"], default=None,
                    help="What to do with finish weeks outside the project range")
    return ap


def main(
    db: Optional[str] = None,
    out: Optional[str] = None,
    processed: Optional[str] = None,
    today: Optional[str] = None,
    on_missing: Optional[str] = None,
    config: str = "config.yaml",
) -> Path:
    """
    Orchestrates the CLI:
      1) Load config and read the project snapshot from the task database
      2) Compute the curves for the current week
      3) Render the chart and write the weekly parquet
    Returns the chart path.
    """
    cfg: Dict[str, Any] = load_config(config)
    set_level(str(cfg["logging"]["level"]))
    chart_cfg = cfg["chart"]

    run_day = as_date(today) if today else date.today()
    db_fp = database_path(cfg, db)

    conn = task_store.connect(db_fp)
    try:
        snapshot = task_store.fetch_snapshot(conn)
    finally:
        conn.close()

    curves = compute_curves(
        snapshot,
        current_week_key(run_day),
        on_missing=on_missing or cfg["buckets"]["on_missing"],
    )

    out_fp = Path(out) if out else _default_chart_path(Path(cfg["paths"]["charts_dir"]), run_day, chart_cfg["format"])
    render_chart(curves.labels, curves.chart_series(), chart_cfg["title"], out_fp, chart_cfg)
    table_fp = _write_output(curves.to_frame(), Path(processed or cfg["paths"]["processed_dir"]))

    for miss in curves.skipped:
        print(f"[evm_calculator] skipped: {miss}")
    print(f"[evm_calculator] wrote {out_fp} and {table_fp}")
    return out_fp


if __name__ == "__main__":
    args = _build_argparser().parse_args()
    main(args.db, args.out, args.processed, args.today, args.on_missing, args.config)
