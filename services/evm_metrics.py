from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd


def _ratio(numer: pd.Series, denom: pd.Series) -> pd.Series:
    denom = denom.astype("float64")
    return (numer.astype("float64") / denom.where(denom != 0)).round(4)


def compute_kpis(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add schedule/effort indicators to a weekly PV/EV/AC table (percent units).

    SV  = EV - PV          schedule variance, in percentage points
    SPI = EV / PV          schedule performance index
    CPI = EV / AC          earned per unit of logged effort
    Ratios are NaN where the denominator is 0 or missing.
    """
    df = df.copy()
    df["SV"] = (df["EV"] - df["PV"]).round(4)
    df["SPI"] = _ratio(df["EV"], df["PV"])
    df["CPI"] = _ratio(df["EV"], df["AC"])
    return df


def status_as_of(df: pd.DataFrame, week: int) -> Optional[Dict[str, Any]]:
    """
    KPIs for the latest week on or before `week`, or None if the table starts
    later. EV/AC gaps after their trimmed end read as 0.
    """
    kpis = compute_kpis(df.assign(EV=df["EV"].fillna(0.0), AC=df["AC"].fillna(0.0)))
    upto = kpis.loc[kpis["week"] <= week]
    if upto.empty:
        return None
    row = upto.sort_values("week").iloc[-1]
    return {
        k: (None if isinstance(v, float) and np.isnan(v) else v)
        for k, v in row.to_dict().items()
    }
