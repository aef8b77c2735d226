"""
Aoristic Processing Pipeline - Batch driver for hour-of-week weights.

Takes a table of events bounded by start/end timestamps, repairs each event's
duration, spreads its weight over the 168 hour-of-week buckets and returns the
input table with a duration column and hour1..hour168 weight columns.
"""

import math
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from .buckets import BUCKETS_PER_WEEK, index_of, minutes_left_in_hour
from .config import AoristicParameters
from .duration import DurationCounters, DurationFn, DurationRecord, classify, minutes_between
from .weights import distribute, skipped_vector

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DURATION_COLUMN = 'duration'
HOUR_COLUMNS = [f"hour{i}" for i in range(1, BUCKETS_PER_WEEK + 1)]


@dataclass(frozen=True)
class Event:
    """One input row as seen by the engine. x and y are passed through untouched."""
    row: Any
    x: Any
    y: Any
    start: Any
    end: Any


@dataclass
class AoristicDiagnostics:
    """Counters and skipped rows collected over one batch."""
    counters: DurationCounters = field(default_factory=DurationCounters)
    skipped_rows: List[Any] = field(default_factory=list)
    total_rows: int = 0

    def record(self, event: Event, duration: DurationRecord) -> None:
        self.total_rows += 1
        self.counters.add(duration)
        if duration.start_missing:
            self.skipped_rows.append(event.row)

    def __add__(self, other: 'AoristicDiagnostics') -> 'AoristicDiagnostics':
        return AoristicDiagnostics(
            counters=self.counters + other.counters,
            skipped_rows=self.skipped_rows + other.skipped_rows,
            total_rows=self.total_rows + other.total_rows,
        )

    def summary_lines(self) -> List[str]:
        """Human readable summary, one line per non-zero counter."""
        lines = [f"Aoristic data frame created ({self.total_rows:,} rows)."]
        if self.counters.missing > 0:
            lines.append(f"  {self.counters.missing} row(s) were missing END/TO datetime values.")
        if self.counters.logic > 0:
            lines.append(f"  {self.counters.logic} row(s) had END/TO datetimes before START/FROM datetimes.")
        if self.counters.rogue > 0:
            lines.append(f"  {self.counters.rogue} row(s) had miscellaneous errors that were repaired.")
        if self.counters.unfixable > 0:
            lines.append(f"  {self.counters.unfixable} row(s) had undiagnosed errors and were assigned to their start hour.")
        return lines

    def log_summary(self, include_counts: bool = True) -> None:
        """Write the skipped-row warnings and (optionally) the counter summary to the log."""
        for row in self.skipped_rows:
            logger.warning(f"No START date-time found in row {row}. Row weights set to zero.")
        if include_counts:
            for line in self.summary_lines():
                logger.info(line)


def validate_input_table(table: pd.DataFrame, x_col: str, y_col: str,
                         start_col: str, end_col: str) -> None:
    """
    Validate the structure of the input table before any row is processed

    Args:
        table: Input DataFrame
        x_col, y_col: Coordinate column names
        start_col, end_col: Timestamp column names

    Raises:
        TypeError: If table is not a DataFrame or a timestamp column is not datetime typed
        ValueError: If a named column does not exist
    """
    if not isinstance(table, pd.DataFrame):
        logger.error(f"Input is not a DataFrame: {type(table).__name__}")
        raise TypeError(f"The input table must be a pandas DataFrame, got {type(table).__name__}")

    missing_columns = [col for col in (x_col, y_col, start_col, end_col) if col not in table.columns]
    if missing_columns:
        logger.error(f"Missing required columns: {missing_columns}")
        raise ValueError(f"Missing required columns: {missing_columns}")

    for label, col in (('start', start_col), ('end', end_col)):
        if not pd.api.types.is_datetime64_any_dtype(table[col]):
            logger.error(f"Column '{col}' has dtype {table[col].dtype}, expected datetime64")
            raise TypeError(
                f"The {label} column '{col}' is not a datetime column (dtype {table[col].dtype}). "
                f"Convert it with pandas.to_datetime before using this function"
            )

    start_tz = table[start_col].dt.tz
    end_tz = table[end_col].dt.tz
    if table[end_col].notna().any() and (start_tz is None) != (end_tz is None):
        logger.error(f"Timezone mismatch between '{start_col}' ({start_tz}) and '{end_col}' ({end_tz})")
        raise TypeError(f"Columns '{start_col}' and '{end_col}' must both be timezone-aware or both naive")


def iter_events(table: pd.DataFrame, x_col: str, y_col: str, start_col: str, end_col: str):
    """Yield Event records in table order."""
    subset = table[[x_col, y_col, start_col, end_col]]
    for row, x, y, start, end in subset.itertuples(index=True, name=None):
        yield Event(row=row, x=x, y=y, start=start, end=end)


def weigh_event(event: Event, week_start: int,
                duration_fn: DurationFn = minutes_between) -> Tuple[DurationRecord, np.ndarray]:
    """
    Classify one event and compute its weight vector

    Args:
        event: Event to weigh
        week_start: Python weekday number of bucket day 1
        duration_fn: Minute arithmetic used by the classifier

    Returns:
        Tuple of (duration record, 168 weights)
    """
    duration = classify(event.start, event.end, duration_fn)

    if duration.start_missing:
        return duration, skipped_vector()

    position = index_of(duration.start, week_start)
    weights = distribute(
        position.bucket,
        minutes_left_in_hour(duration.start),
        duration.minutes,
        end_missing=duration.end_missing,
    )
    return duration, weights


def _weigh_rows(table: pd.DataFrame, columns: Tuple[str, str, str, str], week_start: int,
                duration_fn: DurationFn) -> Tuple[np.ndarray, np.ndarray, AoristicDiagnostics]:
    diagnostics = AoristicDiagnostics()
    durations = np.empty(len(table), dtype='int64')
    weights = np.zeros((len(table), BUCKETS_PER_WEEK), dtype=float)

    for position, event in enumerate(iter_events(table, *columns)):
        duration, vector = weigh_event(event, week_start, duration_fn)
        durations[position] = duration.minutes
        weights[position] = vector
        diagnostics.record(event, duration)

    return durations, weights, diagnostics


def _assemble_output(table: pd.DataFrame, durations: np.ndarray, weights: np.ndarray) -> pd.DataFrame:
    output_columns = [DURATION_COLUMN] + HOUR_COLUMNS
    clashing = [col for col in output_columns if col in table.columns]
    if clashing:
        logger.warning(f"Overwriting existing columns in input table: {clashing}")

    base = table.drop(columns=clashing).reset_index(drop=True)
    base[DURATION_COLUMN] = durations
    weights_df = pd.DataFrame(weights, columns=HOUR_COLUMNS)

    result = pd.concat([base, weights_df], axis=1)
    result.index = table.index
    return result


def compute_aoristic_weights(table: pd.DataFrame, x_col: str, y_col: str, start_col: str, end_col: str,
                             params: Optional[AoristicParameters] = None,
                             duration_fn: DurationFn = minutes_between) -> Tuple[pd.DataFrame, AoristicDiagnostics]:
    """
    Calculate aoristic weights for every row of a table

    Args:
        table: DataFrame with coordinate and start/end timestamp columns
        x_col: X coordinate column name (passed through)
        y_col: Y coordinate column name (passed through)
        start_col: Start (from) datetime column name
        end_col: End (to) datetime column name, may contain nulls
        params: Processing parameters (defaults when None)
        duration_fn: Minute arithmetic used by the classifier

    Returns:
        Tuple of (output DataFrame, diagnostics). The output keeps every input
        column and the input index, plus 'duration' and hour1..hour168

    Raises:
        TypeError, ValueError: On structural input errors
    """
    params = params or AoristicParameters()
    validate_input_table(table, x_col, y_col, start_col, end_col)

    logger.info(f"Calculating aoristic weights for {len(table):,} rows")
    durations, weights, diagnostics = _weigh_rows(
        table, (x_col, y_col, start_col, end_col), params.week_start, duration_fn
    )

    result = _assemble_output(table, durations, weights)
    diagnostics.log_summary(include_counts=params.log_summary)
    return result, diagnostics


def _weigh_chunk_worker(chunk_data: Dict[str, Any]) -> Tuple[int, np.ndarray, np.ndarray, AoristicDiagnostics]:
    """
    Worker function for parallel weighting of a row chunk.

    Args:
        chunk_data: Dictionary containing:
            - position: chunk number, used to restore row order
            - df_chunk: DataFrame chunk holding the four event columns
            - columns: (x, y, start, end) column names
            - params_dict: AoristicParameters as dict
            - duration_fn: minute arithmetic

    Returns:
        Tuple of (position, durations, weights, diagnostics)
    """
    params = AoristicParameters(**chunk_data['params_dict'])
    durations, weights, diagnostics = _weigh_rows(
        chunk_data['df_chunk'], chunk_data['columns'], params.week_start, chunk_data['duration_fn']
    )
    return chunk_data['position'], durations, weights, diagnostics


def compute_aoristic_weights_parallel(table: pd.DataFrame, x_col: str, y_col: str, start_col: str, end_col: str,
                                      params: Optional[AoristicParameters] = None,
                                      max_workers: Optional[int] = None,
                                      duration_fn: DurationFn = minutes_between) -> Tuple[pd.DataFrame, AoristicDiagnostics]:
    """
    Calculate aoristic weights using a process pool

    Rows are independent, so the table is cut into contiguous chunks that are
    weighed in worker processes and put back together in input order.

    Args:
        table: DataFrame with coordinate and start/end timestamp columns
        x_col, y_col, start_col, end_col: Column names as in compute_aoristic_weights
        params: Processing parameters (defaults when None)
        max_workers: Worker processes (default: params.max_workers or CPU count, capped at 8)
        duration_fn: Minute arithmetic, must be picklable

    Returns:
        Tuple of (output DataFrame, diagnostics)
    """
    params = params or AoristicParameters()
    validate_input_table(table, x_col, y_col, start_col, end_col)

    # Parallel overhead not worth it for small tables
    if table.empty or len(table) < params.parallel_min_rows:
        return compute_aoristic_weights(table, x_col, y_col, start_col, end_col, params, duration_fn)

    if max_workers is None:
        max_workers = params.max_workers or min(8, max(2, os.cpu_count() or 1))
    if max_workers == 1:
        return compute_aoristic_weights(table, x_col, y_col, start_col, end_col, params, duration_fn)

    columns = (x_col, y_col, start_col, end_col)
    events_df = table[list(columns)]
    chunk_size = max(100, math.ceil(len(events_df) / max_workers))
    params_dict = asdict(params)

    chunk_data_list = [
        {
            'position': position,
            'df_chunk': events_df.iloc[offset:offset + chunk_size],
            'columns': columns,
            'params_dict': params_dict,
            'duration_fn': duration_fn,
        }
        for position, offset in enumerate(range(0, len(events_df), chunk_size))
    ]
    logger.info(f"Calculating aoristic weights for {len(table):,} rows "
                f"in {len(chunk_data_list)} chunks with {max_workers} workers")

    chunk_results = {}
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_chunk = {
            executor.submit(_weigh_chunk_worker, chunk_data): chunk_data['position']
            for chunk_data in chunk_data_list
        }

        for future in as_completed(future_to_chunk):
            try:
                position, durations, weights, diagnostics = future.result()
            except Exception as e:
                chunk_idx = future_to_chunk[future]
                raise RuntimeError(f"Worker failed on chunk {chunk_idx}: {e}") from e
            chunk_results[position] = (durations, weights, diagnostics)

    ordered = [chunk_results[position] for position in sorted(chunk_results)]
    durations = np.concatenate([item[0] for item in ordered])
    weights = np.vstack([item[1] for item in ordered])
    diagnostics = AoristicDiagnostics()
    for item in ordered:
        diagnostics = diagnostics + item[2]

    result = _assemble_output(table, durations, weights)
    diagnostics.log_summary(include_counts=params.log_summary)
    return result, diagnostics


def aoristic_df(table: pd.DataFrame, x_col: str, y_col: str, start_col: str, end_col: str,
                params: Optional[AoristicParameters] = None) -> pd.DataFrame:
    """
    Calculate aoristic weights and return only the output table

    Diagnostics are written to the log. Tables of at least
    params.parallel_min_rows rows go to a ProcessPoolExecutor. Where worker
    processes are spawned (Windows, macOS) the calling script needs an
    `if __name__ == "__main__":` guard; pass params with max_workers=1 to stay
    in the calling process.
    """
    params = params or AoristicParameters()
    result, _ = compute_aoristic_weights_parallel(table, x_col, y_col, start_col, end_col, params)
    return result
