"""
Weekly Earned Value – Project Dashboard
Streamlit UI over the task database.

WHAT THIS APP DOES
------------------
• Reads settings from config.yaml (database path, chart titles, bucket policy).
• Lists tasks with a Pending / Completed / All filter.
• Plots planned progress, earned value and actual effort per week.
• Shows the schedule status for the selected "as of" date (PV, EV, SV, SPI).
• Exports the chart with the same renderer the CLI uses.
"""

from __future__ import annotations

# ── Standard library
import sys
from datetime import date
from pathlib import Path
from typing import Optional

# ── Third-party
import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# ── Project
from etl import task_store  # noqa: E402
from etl.errors import EarnedValueError  # noqa: E402
from etl.evm_calculator import EarnedValueCurves, compute_curves  # noqa: E402
from etl.week_buckets import current_week_key, week_label  # noqa: E402
from services.chart_export import build_figure, export_chart  # noqa: E402
from services.evm_metrics import compute_kpis, status_as_of  # noqa: E402
from services.settings import database_path, load_config  # noqa: E402
from services.task_listing import TaskStatus, filter_tasks, format_table  # noqa: E402


# ──────────────────────────────────────────────────────────────────────────────
# 1) CONFIG & PAGE SETUP
# ──────────────────────────────────────────────────────────────────────────────
CFG = load_config(ROOT / "config.yaml")
CHART_CFG = CFG["chart"]

st.set_page_config(page_title="Weekly Earned Value", page_icon="📈", layout="wide")
st.title("📈 Weekly Earned Value")


# ──────────────────────────────────────────────────────────────────────────────
# 2) HELPERS
# ──────────────────────────────────────────────────────────────────────────────
def load_tasks(db_fp: Path) -> Optional[pd.DataFrame]:
    """Task listing frame, or None (with a warning) if the db is unusable."""
    try:
        conn = task_store.connect(db_fp)
    except FileNotFoundError as e:
        st.warning(str(e))
        return None
    try:
        return task_store.read_tasks(conn)
    finally:
        conn.close()


def load_curves(db_fp: Path, as_of: date, on_missing: str) -> Optional[EarnedValueCurves]:
    """Compute curves; domain errors are shown instead of crashing the page."""
    conn = task_store.connect(db_fp)
    try:
        snapshot = task_store.fetch_snapshot(conn)
    except EarnedValueError as e:
        st.error(f"{e.code}: {e}")
        return None
    finally:
        conn.close()
    try:
        return compute_curves(snapshot, current_week_key(as_of), on_missing=on_missing)
    except EarnedValueError as e:
        st.error(f"{e.code}: {e}")
        return None


# ──────────────────────────────────────────────────────────────────────────────
# 3) SIDEBAR
# ──────────────────────────────────────────────────────────────────────────────
with st.sidebar:
    st.header("Controls")
    db_input = st.text_input("Task database", value=str(database_path(CFG)))
    as_of = st.date_input("As of", value=date.today())
    on_missing = st.radio(
        "Finish week outside project range",
        options=["raise", "skip"],
        index=["raise", "skip"].index(CFG["buckets"]["on_missing"]),
        help="raise = stop with an error; skip = leave the task out and warn.",
    )
    status = st.selectbox("Tasks", options=[s.value for s in TaskStatus], index=0)

DB_FP = ROOT / db_input if not Path(db_input).is_absolute() else Path(db_input)
tasks_df = load_tasks(DB_FP)
if tasks_df is None:
    st.info("Import an MS Project export first: `python -m etl.msproject_ingest --csv tasks.csv`")
    st.stop()

tab_curves, tab_tasks = st.tabs(["Earned value", "Tasks"])


# ──────────────────────────────────────────────────────────────────────────────
# 4) EARNED VALUE TAB
# ──────────────────────────────────────────────────────────────────────────────
with tab_curves:
    curves = load_curves(DB_FP, as_of, on_missing)
    if curves is not None:
        week = current_week_key(as_of)
        table = curves.to_frame()
        status_row = status_as_of(table, week)

        cols = st.columns(4)
        if status_row is None:
            st.caption(f"{week_label(week)} is before the project starts.")
        else:
            cols[0].metric("Planned", f"{status_row['PV']:.1f}%")
            cols[1].metric("Earned", f"{status_row['EV']:.1f}%", delta=f"{status_row['SV']:+.1f} pts")
            cols[2].metric("Effort logged", f"{status_row['AC']:.1f}%")
            spi = status_row["SPI"]
            cols[3].metric("SPI", "–" if spi is None else f"{spi:.2f}")

        fig = build_figure(
            curves.labels,
            curves.chart_series(),
            CHART_CFG["title"],
            x_title=CHART_CFG["x_title"],
            y_title=CHART_CFG["y_title"],
        )
        st.plotly_chart(fig, use_container_width=True)

        for miss in curves.skipped:
            st.warning(f"Skipped: {miss}")

        with st.expander("Weekly table"):
            st.dataframe(compute_kpis(table), use_container_width=True)

        if st.button("💾 Export chart", use_container_width=False):
            out_fp = ROOT / CFG["paths"]["charts_dir"] / f"ev_chart-{week}.{CHART_CFG['format']}"
            export_chart(
                fig,
                out_fp,
                fmt=CHART_CFG["format"],
                width=int(CHART_CFG["width"]),
                height=int(CHART_CFG["height"]),
                scale=float(CHART_CFG["scale"]),
            )
            st.success(f"Wrote {out_fp}")


# ──────────────────────────────────────────────────────────────────────────────
# 5) TASKS TAB
# ──────────────────────────────────────────────────────────────────────────────
with tab_tasks:
    shown = filter_tasks(tasks_df, TaskStatus(status))
    st.caption(f"{len(shown)} of {len(tasks_df)} schedulable tasks")
    st.code(format_table(shown))
