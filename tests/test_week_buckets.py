"""
tests/test_week_buckets.py

Week bucket encoding and generation, with the year-boundary cases:
- late December dates that belong to ISO week 1 of the next year
- years with an ISO week 53
"""

from datetime import date, datetime

import pandas as pd
import pytest

from etl.errors import InvalidRangeError
from etl.week_buckets import (
    current_week_key,
    generate_week_buckets,
    week_key,
    week_label,
    week_labels,
)


def test_week_key_uses_iso_year_and_week() -> None:
    assert week_key(date(2024, 1, 8)) == 202402
    assert week_key(date(2024, 12, 30)) == 202501  # Monday of ISO 2025-W01
    assert week_key(date(2021, 1, 1)) == 202053    # Friday of ISO 2020-W53


def test_week_key_accepts_datetimes_timestamps_and_strings() -> None:
    expected = week_key(date(2024, 3, 6))
    assert week_key(datetime(2024, 3, 6, 17, 30)) == expected
    assert week_key(pd.Timestamp("2024-03-06")) == expected
    assert week_key("2024-03-06") == expected


def test_single_day_range_is_one_bucket() -> None:
    d = date(2024, 12, 31)
    assert generate_week_buckets(d, d) == [week_key(d)] == [202501]


def test_buckets_are_contiguous_weeks() -> None:
    # Mon 2024-01-08 .. Fri 2024-02-09
    assert generate_week_buckets(date(2024, 1, 8), date(2024, 2, 9)) == [
        202402, 202403, 202404, 202405, 202406,
    ]


def test_end_week_included_even_when_start_is_late_in_the_week() -> None:
    # Friday start, following Monday end: both weeks must be present.
    assert generate_week_buckets(date(2024, 1, 12), date(2024, 1, 15)) == [202402, 202403]


def test_year_boundary_stays_monotonic() -> None:
    buckets = generate_week_buckets(date(2024, 12, 20), date(2025, 1, 10))
    assert buckets == [202451, 202452, 202501, 202502]
    assert buckets == sorted(set(buckets))


def test_year_with_week_53() -> None:
    buckets = generate_week_buckets(date(2020, 12, 21), date(2021, 1, 11))
    assert buckets == [202052, 202053, 202101, 202102]


def test_reversed_range_raises() -> None:
    with pytest.raises(InvalidRangeError) as exc:
        generate_week_buckets(date(2024, 2, 1), date(2024, 1, 1))
    assert exc.value.code == "INVALID_RANGE"


def test_current_week_key_uses_injected_date() -> None:
    assert current_week_key(date(2024, 1, 17)) == 202403


def test_labels_are_short_unless_week_numbers_repeat() -> None:
    assert week_label(202405) == "W05"
    assert week_label(202405, with_year=True) == "2024-W05"
    assert week_labels([202452, 202501]) == ["W52", "W01"]

    long_range = generate_week_buckets(date(2023, 1, 2), date(2024, 1, 8))
    labels = week_labels(long_range)
    assert labels[0] == "2023-W01"
    assert labels[-1] == "2024-W02"
    assert len(set(labels)) == len(labels)
