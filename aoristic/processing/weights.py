"""
Aoristic weight distribution across the 168 hour-of-week buckets.

Rules are not mutually exclusive: every rule that matches an event adds into
the same accumulator, so e.g. a missing-end event longer than a week would
receive both the flat share and the start-bucket weight.
"""

import numpy as np

from .buckets import BUCKETS_PER_WEEK, MINUTES_PER_HOUR, MINUTES_PER_WEEK, next_bucket

FLAT_WEIGHT = 1.0 / BUCKETS_PER_WEEK


def skipped_vector() -> np.ndarray:
    """All-zero weights for rows that cannot be placed in the week."""
    return np.zeros(BUCKETS_PER_WEEK, dtype=float)


def _spread(weights: np.ndarray, start_bucket: int, left_in_hour: int, duration_minutes: int) -> None:
    per_minute = 1.0 / duration_minutes
    remaining = duration_minutes
    bucket = start_bucket

    while remaining > 0:
        used = min(remaining, left_in_hour)
        weights[bucket - 1] += used * per_minute
        remaining -= used
        if remaining > 0:
            bucket = next_bucket(bucket)
            left_in_hour = MINUTES_PER_HOUR


def distribute(start_bucket: int, left_in_hour: int, duration_minutes: int,
               end_missing: bool = False) -> np.ndarray:
    """
    Build the weight vector of one event

    Args:
        start_bucket: Bucket (1..168) holding the start timestamp
        left_in_hour: Minutes from the start minute to the end of its hour (1..60)
        duration_minutes: Repaired duration in whole minutes
        end_missing: True when the event has no end timestamp

    Returns:
        Array of 168 weights; position i holds bucket i + 1
    """
    if not 1 <= start_bucket <= BUCKETS_PER_WEEK:
        raise ValueError(f"start_bucket must be between 1 and {BUCKETS_PER_WEEK}, got {start_bucket}")

    weights = skipped_vector()
    start = start_bucket - 1

    # Longer than a week: flat share everywhere
    if duration_minutes >= MINUTES_PER_WEEK:
        weights += FLAT_WEIGHT

    if end_missing:
        weights[start] += duration_minutes

    # Known to the minute
    if 0 <= duration_minutes <= 1 and not end_missing:
        weights[start] += 1.0

    # End before start, or unfixable (-1)
    if duration_minutes < 0:
        weights[start] += 1.0

    if 1 < duration_minutes < MINUTES_PER_WEEK:
        _spread(weights, start_bucket, left_in_hour, duration_minutes)

    return weights
