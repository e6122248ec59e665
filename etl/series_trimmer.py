# etl/series_trimmer.py
from __future__ import annotations

import numpy as np
import pandas as pd


def trim_trailing_zeros(series: pd.Series) -> pd.Series:
    """
    Drop trailing weeks whose value is exactly 0.0.

    Leading zeros (no progress yet at project start) are kept. The result is
    always a prefix of `series`; it is empty when every value is zero.
    """
    nonzero = np.flatnonzero(series.to_numpy() != 0)
    if nonzero.size == 0:
        return series.iloc[:0]
    return series.iloc[: nonzero[-1] + 1]
