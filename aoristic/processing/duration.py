"""
Event duration measurement and repair.

Computes the span of an event in whole minutes and runs it through a fixed
repair ladder (missing end -> illogical order -> rogue NA -> unfixable).
Each step is a total function over DurationRecord and only touches records
that earlier steps left unresolved.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Callable, FrozenSet, Optional
import logging

import pandas as pd
from pandas.errors import OutOfBoundsDatetime, OutOfBoundsTimedelta

logger = logging.getLogger(__name__)

ONE_MINUTE = pd.Timedelta(minutes=1)
ONE_SECOND = pd.Timedelta(seconds=1)

# Arithmetic failures that leave a duration undefined
_ARITHMETIC_ERRORS = (OverflowError, OutOfBoundsDatetime, OutOfBoundsTimedelta)


class DurationClass(IntEnum):
    """Repair / error categories, ordered by severity."""

    NORMAL = 0
    MISSING_END = 1
    LOGIC_ERROR = 2
    ROGUE_NA = 3
    UNFIXABLE = 4
    MISSING_START = 9


@dataclass(frozen=True)
class DurationRecord:
    """Duration of one event plus the repair flags raised on the way."""
    start: Optional[pd.Timestamp]
    end: Optional[pd.Timestamp]
    minutes: Optional[int]
    flags: FrozenSet[DurationClass] = field(default_factory=frozenset)

    @property
    def start_missing(self) -> bool:
        return self.start is None

    @property
    def end_missing(self) -> bool:
        return self.end is None

    @property
    def resolved(self) -> bool:
        return self.minutes is not None

    @property
    def classification(self) -> DurationClass:
        return max(self.flags) if self.flags else DurationClass.NORMAL

    def with_flag(self, flag: DurationClass, **changes) -> 'DurationRecord':
        return replace(self, flags=self.flags | {flag}, **changes)


DurationFn = Callable[[Optional[pd.Timestamp], Optional[pd.Timestamp]], Optional[int]]


def _as_timestamp(value) -> Optional[pd.Timestamp]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value)


def minutes_between(start: Optional[pd.Timestamp], end: Optional[pd.Timestamp]) -> Optional[int]:
    """
    Whole minutes from start to end, truncated toward zero

    Args:
        start: Event start timestamp
        end: Event end timestamp

    Returns:
        Signed minute count, or None when either timestamp is missing or the
        timestamp arithmetic cannot be carried out
    """
    if start is None or end is None or pd.isna(start) or pd.isna(end):
        return None

    try:
        delta = pd.Timestamp(end) - pd.Timestamp(start)
    except _ARITHMETIC_ERRORS as e:
        logger.debug(f"Duration arithmetic failed for {start} -> {end}: {e}")
        return None

    if pd.isna(delta):
        return None

    return int(delta / ONE_MINUTE)


def measure(start, end, duration_fn: DurationFn = minutes_between) -> DurationRecord:
    """Build the initial record for an event; a missing start is flagged here."""
    start_ts = _as_timestamp(start)
    end_ts = _as_timestamp(end)
    record = DurationRecord(start=start_ts, end=end_ts, minutes=duration_fn(start_ts, end_ts))
    if record.start_missing:
        record = record.with_flag(DurationClass.MISSING_START)
    return record


def repair_missing_end(record: DurationRecord) -> DurationRecord:
    """An absent end means the event is known to the minute it started."""
    if not record.end_missing:
        return record
    return record.with_flag(DurationClass.MISSING_END, minutes=1)


def flag_logic_error(record: DurationRecord) -> DurationRecord:
    """End before start. The negative value is kept for the distributor."""
    if record.resolved and record.minutes < 0:
        return record.with_flag(DurationClass.LOGIC_ERROR)
    return record


def repair_rogue_na(record: DurationRecord, duration_fn: DurationFn = minutes_between) -> DurationRecord:
    """
    One-second nudge for undefined durations between two present timestamps

    Shifts both timestamps forward by one second and measures once more. This
    only targets date-arithmetic failures; rows with a missing timestamp are
    left alone.
    """
    if record.resolved or record.start_missing or record.end_missing:
        return record

    try:
        start = record.start + ONE_SECOND
        end = record.end + ONE_SECOND
    except _ARITHMETIC_ERRORS as e:
        logger.debug(f"One-second nudge failed for {record.start} -> {record.end}: {e}")
        return record.with_flag(DurationClass.ROGUE_NA)

    return record.with_flag(DurationClass.ROGUE_NA, start=start, end=end, minutes=duration_fn(start, end))


def repair_unfixable(record: DurationRecord) -> DurationRecord:
    """Anything still undefined is forced to -1 (weight goes to the start bucket)."""
    if record.resolved:
        return record
    return record.with_flag(DurationClass.UNFIXABLE, minutes=-1)


def classify(start, end, duration_fn: DurationFn = minutes_between) -> DurationRecord:
    """
    Measure an event and run the repair ladder

    Args:
        start: Start timestamp (may be null)
        end: End timestamp (may be null)
        duration_fn: Minute arithmetic, replaceable for testing

    Returns:
        DurationRecord with resolved minutes and the flags that were raised
    """
    record = measure(start, end, duration_fn)
    record = repair_missing_end(record)
    record = flag_logic_error(record)
    record = repair_rogue_na(record, duration_fn)
    return repair_unfixable(record)


@dataclass
class DurationCounters:
    """Independent tallies of the repair flags (not a partition of rows)."""
    missing: int = 0
    logic: int = 0
    rogue: int = 0
    unfixable: int = 0

    def add(self, record: DurationRecord) -> None:
        self.missing += DurationClass.MISSING_END in record.flags
        self.logic += DurationClass.LOGIC_ERROR in record.flags
        self.rogue += DurationClass.ROGUE_NA in record.flags
        self.unfixable += DurationClass.UNFIXABLE in record.flags

    def __add__(self, other: 'DurationCounters') -> 'DurationCounters':
        return DurationCounters(
            missing=self.missing + other.missing,
            logic=self.logic + other.logic,
            rogue=self.rogue + other.rogue,
            unfixable=self.unfixable + other.unfixable,
        )
