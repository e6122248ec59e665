# etl/week_buckets.py
# -----------------------------------------------------------------------------
# Purpose:
#   Weekly time buckets for the earned-value curves. A bucket is the integer
#   `iso_year * 100 + iso_week` (e.g. 2024-01-08 -> 202402), used both as the
#   lookup key for every series and, formatted, as the chart axis label.
#
# Year boundaries:
#   The ISO year is used, not the calendar year, so 2024-12-30 (ISO week 1
#   of 2025) encodes as 202501 and 2021-01-01 (ISO week 53 of 2020) as
#   202053. Stepping one week at a time therefore always yields strictly
#   increasing keys; the generator still sorts and de-duplicates its output.
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

import pandas as pd

from etl.errors import InvalidRangeError

WeekBucket = int
DateLike = Union[date, datetime, pd.Timestamp, str]


def as_date(value: DateLike) -> date:
    """Coerce a date, datetime, Timestamp or ISO string to a plain date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def week_key(day: DateLike) -> WeekBucket:
    """Encode a day as `iso_year * 100 + iso_week`."""
    iso = as_date(day).isocalendar()
    return iso[0] * 100 + iso[1]


def current_week_key(today: Optional[DateLike] = None) -> WeekBucket:
    """Bucket for `today` (defaults to the local date)."""
    return week_key(today if today is not None else date.today())


def generate_week_buckets(start: DateLike, end: DateLike) -> List[WeekBucket]:
    """
    Ordered, gap-free week buckets covering `start`..`end` inclusive.

    Stepping begins on the Monday of the week that contains `start`, so the
    week containing `end` is always part of the result.

    Raises
    ------
    InvalidRangeError
        If `end` is before `start`.
    """
    first = as_date(start)
    last = as_date(end)
    if last < first:
        raise InvalidRangeError(
            f"end date {last.isoformat()} is before start date {first.isoformat()}",
            code="INVALID_RANGE",
        )

    cursor = first - timedelta(days=first.weekday())
    keys: List[WeekBucket] = []
    while cursor <= last:
        keys.append(week_key(cursor))
        cursor += timedelta(weeks=1)
    return sorted(set(keys))


def week_label(bucket: WeekBucket, with_year: bool = False) -> str:
    """Axis label for a bucket: "W05", or "2024-W05" when `with_year`."""
    year, week = divmod(int(bucket), 100)
    if with_year:
        return f"{year}-W{week:02d}"
    return f"W{week:02d}"


def week_labels(buckets: Iterable[WeekBucket]) -> List[str]:
    """
    Labels for a whole axis. Short "Wnn" labels are used unless two buckets
    share a week number, in which case every label carries its year.
    """
    keys = list(buckets)
    weeks = [int(k) % 100 for k in keys]
    with_year = len(set(weeks)) != len(weeks)
    return [week_label(k, with_year=with_year) for k in keys]
