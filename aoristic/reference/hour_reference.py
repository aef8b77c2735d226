"""
Hour of the week reference chart.

Lookup table between the 168 bucket numbers used in the hour1..hour168
output columns and human readable hour ranges and day labels. The layout has
one row per hour of the day and one column per day, day 1 first. For display
Sunday can be moved to the end so the weekend sits together; the bucket
numbers themselves never change.
"""

from typing import List, Tuple
import logging

import numpy as np
import pandas as pd

from aoristic.processing.buckets import (
    BUCKETS_PER_WEEK, DAYS_PER_WEEK, HOURS_PER_DAY, SUNDAY, bucket_index, day_hour_of
)
from aoristic.processing.pipeline import HOUR_COLUMNS

logger = logging.getLogger(__name__)

RANGE_COLUMN = 'Range'
RANGE_LABELS = [f"{hour:02d}00-{hour:02d}59" for hour in range(HOURS_PER_DAY)]

# Indexed by Python weekday number (Monday=0)
WEEKDAY_LABELS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']


def day_labels(week_start: int = SUNDAY) -> List[str]:
    """Day labels in bucket order, day 1 first."""
    return [WEEKDAY_LABELS[(week_start + offset) % DAYS_PER_WEEK] for offset in range(DAYS_PER_WEEK)]


def _layout(grid: np.ndarray, sunday_last: bool, week_start: int) -> pd.DataFrame:
    labels = day_labels(week_start)
    table = pd.DataFrame(grid, columns=labels)
    table.insert(0, RANGE_COLUMN, RANGE_LABELS)

    if sunday_last:
        # day 1 moves to the end; bucket numbers stay put
        table = table[[RANGE_COLUMN] + labels[1:] + labels[:1]]

    return table


def hour_reference(sunday_last: bool = False, week_start: int = SUNDAY) -> pd.DataFrame:
    """
    Build the hour-of-week reference table

    Args:
        sunday_last: Move the day 1 column (Sunday by default) to the end (display layout)
        week_start: Python weekday number of bucket day 1 (default Sunday)

    Returns:
        DataFrame with a Range column and seven day columns holding bucket numbers
    """
    grid = np.array(
        [[bucket_index(day, hour) for day in range(1, DAYS_PER_WEEK + 1)] for hour in range(HOURS_PER_DAY)]
    )
    return _layout(grid, sunday_last, week_start)


def bucket_label(bucket: int, week_start: int = SUNDAY) -> Tuple[str, str]:
    """(day label, hour range label) of a bucket, e.g. 49 -> ('Tue', '0000-0059')."""
    day, hour = day_hour_of(bucket)
    return day_labels(week_start)[day - 1], RANGE_LABELS[hour]


def weekly_totals(result_df: pd.DataFrame, sunday_last: bool = False, week_start: int = SUNDAY) -> pd.DataFrame:
    """
    Sum the aoristic weights of all rows into the reference layout

    Args:
        result_df: Output of the aoristic pipeline (hour1..hour168 columns)
        sunday_last: Move the day 1 column (Sunday by default) to the end (display layout)
        week_start: Week start the result was computed with

    Returns:
        DataFrame with a Range column and seven day columns holding summed weights

    Raises:
        ValueError: If hour columns are missing
    """
    missing = [col for col in HOUR_COLUMNS if col not in result_df.columns]
    if missing:
        raise ValueError(f"Missing {len(missing)} hour columns, e.g. {missing[:3]}")

    totals = result_df[HOUR_COLUMNS].sum(axis=0).to_numpy(dtype=float)
    grid = totals.reshape(DAYS_PER_WEEK, HOURS_PER_DAY).T

    logger.info(f"Summed aoristic weights of {len(result_df):,} rows, total {totals.sum():.2f}")
    return _layout(grid, sunday_last, week_start)


def peak_buckets(result_df: pd.DataFrame, top_n: int = 5, week_start: int = SUNDAY) -> pd.DataFrame:
    """Highest-weighted buckets with their labels, heaviest first."""
    totals = result_df[HOUR_COLUMNS].sum(axis=0).to_numpy(dtype=float)
    order = np.argsort(-totals, kind='stable')[:top_n]
    rows = []
    for position in order:
        bucket = int(position) + 1
        day, hour_range = bucket_label(bucket, week_start)
        rows.append({'bucket': bucket, 'day': day, 'range': hour_range, 'weight': totals[position]})
    return pd.DataFrame(rows, columns=['bucket', 'day', 'range', 'weight'])
