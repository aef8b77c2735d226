"""
Tests for the hour-of-week reference chart.
"""

import numpy as np
import pandas as pd
import pytest

from aoristic.processing.buckets import MONDAY, index_of
from aoristic.processing.pipeline import compute_aoristic_weights
from aoristic.reference.hour_reference import (
    RANGE_LABELS, bucket_label, day_labels, hour_reference, peak_buckets, weekly_totals
)

COLUMNS = ('X', 'Y', 'StartDateTime', 'EndDateTime')


class TestHourReference:
    """Test cases for the reference table layout."""

    def test_layout(self):
        """24 rows, a Range column and seven day columns starting with Sunday."""
        table = hour_reference()
        assert table.shape == (24, 8)
        assert list(table.columns) == ['Range', 'Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
        assert table['Range'].iloc[0] == '0000-0059'
        assert table['Range'].iloc[1] == '0100-0159'
        assert table['Range'].iloc[23] == '2300-2359'

    def test_numbering(self):
        """Buckets run down each day column, day 1 first."""
        table = hour_reference()
        assert table['Sun'].tolist() == list(range(1, 25))
        assert table.loc[0, 'Mon'] == 25
        assert table.loc[23, 'Sat'] == 168
        assert sorted(table.drop(columns='Range').to_numpy().ravel()) == list(range(1, 169))

    def test_sunday_last_only_moves_column(self):
        """The display layout moves Sunday to the end without renumbering."""
        table = hour_reference(sunday_last=True)
        assert list(table.columns) == ['Range', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        assert table['Sun'].tolist() == list(range(1, 25))
        assert table.loc[0, 'Mon'] == 25

    def test_monday_start(self):
        table = hour_reference(week_start=MONDAY)
        assert list(table.columns)[1:] == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        assert table.loc[0, 'Mon'] == 1

    def test_display_layout_follows_week_start(self):
        """With Monday as day 1 the display layout moves Monday to the end."""
        table = hour_reference(sunday_last=True, week_start=MONDAY)
        assert list(table.columns) == ['Range', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun', 'Mon']
        assert table['Mon'].tolist() == list(range(1, 25))
        assert table.loc[0, 'Tue'] == 25

    def test_consistent_with_indexer(self):
        """A timestamp's bucket is found at its day column and hour row."""
        ts = pd.Timestamp('2024-01-03 08:20')  # Wednesday
        table = hour_reference()
        assert table.loc[ts.hour, 'Wed'] == index_of(ts).bucket


class TestBucketLabel:
    """Test cases for bucket labels."""

    @pytest.mark.parametrize("bucket,expected", [
        (1, ('Sun', '0000-0059')),
        (48, ('Mon', '2300-2359')),
        (49, ('Tue', '0000-0059')),
        (168, ('Sat', '2300-2359')),
    ])
    def test_labels(self, bucket, expected):
        assert bucket_label(bucket) == expected

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            bucket_label(169)

    def test_day_labels(self):
        assert day_labels()[0] == 'Sun'
        assert day_labels(MONDAY)[-1] == 'Sun'
        assert len(RANGE_LABELS) == 24


class TestWeeklyTotals:
    """Test cases for summed weekly grids."""

    def test_totals_match_weights(self, sample_events):
        """Grid cells hold the column sums of the matching hour columns."""
        result, _ = compute_aoristic_weights(sample_events, *COLUMNS)
        grid = weekly_totals(result)

        assert grid.shape == (24, 8)
        # Monday 23:00 gets 30/75 from row 10 plus the flat 1/168 share from row 15
        assert grid.loc[23, 'Mon'] == pytest.approx(30 / 75 + 1 / 168)
        assert grid.loc[10, 'Sun'] == pytest.approx(1 + 1 / 168)
        # five placed rows, the skipped row contributes nothing
        assert grid.drop(columns='Range').to_numpy().sum() == pytest.approx(5.0)

    def test_sunday_last(self, sample_events):
        result, _ = compute_aoristic_weights(sample_events, *COLUMNS)
        grid = weekly_totals(result, sunday_last=True)
        assert list(grid.columns)[-1] == 'Sun'
        assert grid.loc[10, 'Sun'] == pytest.approx(1 + 1 / 168)

    def test_missing_hour_columns(self):
        with pytest.raises(ValueError, match="Missing 168 hour columns"):
            weekly_totals(pd.DataFrame({'X': [1.0]}))


class TestPeakBuckets:
    """Test cases for peak bucket listing."""

    def test_heaviest_first(self, sample_events):
        result, _ = compute_aoristic_weights(sample_events, *COLUMNS)
        peaks = peak_buckets(result, top_n=3)

        assert list(peaks.columns) == ['bucket', 'day', 'range', 'weight']
        assert len(peaks) == 3
        assert peaks['weight'].is_monotonic_decreasing
        assert set(peaks['bucket'].iloc[:3]) == {11, 81, 109}
        np.testing.assert_allclose(peaks['weight'], 1 + 1 / 168)
