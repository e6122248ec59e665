import pandas as pd

from etl.series_trimmer import trim_trailing_zeros


def _series(values) -> pd.Series:
    return pd.Series(values, index=pd.Index(range(202402, 202402 + len(values)), name="week"), dtype="float64")


def test_trailing_zeros_dropped_leading_zeros_kept() -> None:
    s = _series([0, 0, 12.5, 30, 0, 0])
    out = trim_trailing_zeros(s)
    assert out.tolist() == [0, 0, 12.5, 30]
    assert list(out.index) == list(s.index[:4])


def test_result_is_prefix_ending_in_nonzero() -> None:
    s = _series([5, 0, 7, 0])
    out = trim_trailing_zeros(s)
    assert out.equals(s.iloc[: len(out)])
    assert out.iloc[-1] != 0


def test_no_trailing_zeros_leaves_series_unchanged() -> None:
    s = _series([60, 60])
    assert trim_trailing_zeros(s).equals(s)


def test_all_zero_series_trims_to_empty() -> None:
    out = trim_trailing_zeros(_series([0, 0, 0]))
    assert out.empty
    assert out.index.name == "week"


def test_empty_series_stays_empty() -> None:
    assert trim_trailing_zeros(_series([])).empty
