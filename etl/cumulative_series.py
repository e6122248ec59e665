# etl/cumulative_series.py
# -----------------------------------------------------------------------------
# Running totals over weekly deltas.
#
#   cumulate(delta)                     -> plain prefix sum (planned value)
#   cumulate_clipped(delta, this_week)  -> prefix sum, then every week after
#                                          `this_week` forced to 0.0
#                                          (earned value, actual effort)
#
# The current week is always passed in; nothing here reads the clock.
# -----------------------------------------------------------------------------

from __future__ import annotations

import numpy as np
import pandas as pd

from etl.week_buckets import WeekBucket


def cumulate(delta: pd.Series) -> pd.Series:
    """Prefix sum of `delta` in week order."""
    return delta.sort_index().cumsum().astype("float64")


def cumulate_clipped(delta: pd.Series, current_week: WeekBucket) -> pd.Series:
    """
    Prefix sum of `delta`, with no credit for weeks that have not happened.

    Any week strictly after `current_week` is 0.0 regardless of its delta.
    Those weeks form a suffix of the sorted index, so clipping after the
    prefix sum gives the same values as clipping while accumulating.
    """
    running = cumulate(delta)
    future = running.index.to_numpy() > int(current_week)
    return pd.Series(np.where(future, 0.0, running.to_numpy()), index=running.index, name=delta.name)
