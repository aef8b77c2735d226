"""
Hour-of-week bucket indexing.

Maps timestamps to one of the 168 weekly buckets (24 hours x 7 days).
Bucket 1 is hour 00 of day 1 and bucket 168 is hour 23 of day 7; day 1 is
Sunday unless another week start is requested.
"""

from dataclasses import dataclass
from typing import Tuple

import pandas as pd

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7
BUCKETS_PER_WEEK = HOURS_PER_DAY * DAYS_PER_WEEK
MINUTES_PER_HOUR = 60
MINUTES_PER_WEEK = BUCKETS_PER_WEEK * MINUTES_PER_HOUR

# Python weekday numbers (Monday=0, Sunday=6)
MONDAY = 0
SUNDAY = 6


@dataclass(frozen=True)
class BucketPosition:
    """Position of a timestamp within the week."""
    day_of_week: int  # 1..7
    hour_of_day: int  # 0..23
    bucket: int       # 1..168


def _check_week_start(week_start: int) -> None:
    if week_start not in range(DAYS_PER_WEEK):
        raise ValueError(f"week_start must be a weekday number between 0 and 6, got {week_start}")


def day_of_week(timestamp: pd.Timestamp, week_start: int = SUNDAY) -> int:
    """
    Get the 1-based day of week of a timestamp

    Args:
        timestamp: Timestamp to inspect
        week_start: Python weekday number of day 1 (default Sunday)

    Returns:
        Day number 1..7
    """
    _check_week_start(week_start)
    return (timestamp.weekday() - week_start) % DAYS_PER_WEEK + 1


def bucket_index(day: int, hour: int) -> int:
    """Combine a 1-based day and a 0-based hour into a bucket number."""
    if not 1 <= day <= DAYS_PER_WEEK:
        raise ValueError(f"day_of_week must be between 1 and 7, got {day}")
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"hour_of_day must be between 0 and 23, got {hour}")
    return HOURS_PER_DAY * (day - 1) + hour + 1


def day_hour_of(bucket: int) -> Tuple[int, int]:
    """Inverse of bucket_index: (day_of_week, hour_of_day) of a bucket."""
    if not 1 <= bucket <= BUCKETS_PER_WEEK:
        raise ValueError(f"bucket must be between 1 and {BUCKETS_PER_WEEK}, got {bucket}")
    day, hour = divmod(bucket - 1, HOURS_PER_DAY)
    return day + 1, hour


def index_of(timestamp, week_start: int = SUNDAY) -> BucketPosition:
    """
    Locate a timestamp in the weekly bucket grid

    Args:
        timestamp: Timestamp (pandas Timestamp or datetime), minute resolution or finer
        week_start: Python weekday number of day 1 (default Sunday)

    Returns:
        BucketPosition with day_of_week, hour_of_day and bucket

    Raises:
        ValueError: If the timestamp is null
    """
    if pd.isna(timestamp):
        raise ValueError("Cannot index a null timestamp")

    ts = pd.Timestamp(timestamp)
    day = day_of_week(ts, week_start)
    return BucketPosition(day_of_week=day, hour_of_day=ts.hour, bucket=bucket_index(day, ts.hour))


def next_bucket(bucket: int) -> int:
    # 168 wraps to 1
    return bucket % BUCKETS_PER_WEEK + 1


def minutes_left_in_hour(timestamp) -> int:
    """Minutes from the timestamp's minute to the end of its hour (1..60)."""
    return MINUTES_PER_HOUR - pd.Timestamp(timestamp).minute
