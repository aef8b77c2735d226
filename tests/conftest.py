"""
Pytest configuration and fixtures for aoristic tests.
"""

import pytest
import pandas as pd
import numpy as np


# 2024-01-01 is a Monday; with Sunday as day 1 its hour 00 is bucket 25
MONDAY = pd.Timestamp('2024-01-01')


@pytest.fixture
def week_anchor():
    """Monday 2024-01-01 00:00, a fixed reference point for building timestamps."""
    return MONDAY


@pytest.fixture
def sample_events():
    """Create a small event table covering the main duration cases."""
    return pd.DataFrame({
        'X': [100.0, 101.5, 102.0, 103.0, 104.0, 105.0],
        'Y': [200.0, 201.5, 202.0, 203.0, 204.0, 205.0],
        'StartDateTime': pd.to_datetime([
            '2024-01-01 23:30',  # Monday, spans into Tuesday
            '2024-01-07 10:15',  # Sunday, no end
            None,                # no start
            '2024-01-03 08:00',  # Wednesday, zero duration
            '2024-01-04 12:00',  # Thursday, end before start
            '2024-01-01 00:00',  # a full week
        ]),
        'EndDateTime': pd.to_datetime([
            '2024-01-02 00:45',
            None,
            '2024-01-05 10:00',
            '2024-01-03 08:00',
            '2024-01-04 11:00',
            '2024-01-08 00:00',
        ]),
        'CaseID': ['c1', 'c2', 'c3', 'c4', 'c5', 'c6'],
    }, index=[10, 11, 12, 13, 14, 15])


@pytest.fixture
def sample_config():
    """Create sample configuration for testing."""
    return {
        "buckets": {
            "week_start": "monday"
        },
        "parallel": {
            "min_rows": 100,
            "max_workers": 2
        }
    }


# Test data generators
class TestDataGenerator:
    """Utility class for generating test data."""

    @staticmethod
    def create_random_events(n_events: int = 1000, seed: int = 42) -> pd.DataFrame:
        """Create events with random starts and spans up to ten days, some ends missing."""
        rng = np.random.default_rng(seed)
        starts = MONDAY + pd.to_timedelta(rng.integers(0, 60 * 24 * 28, n_events), unit='min')
        spans = pd.to_timedelta(rng.integers(-120, 60 * 24 * 10, n_events), unit='min')
        ends = pd.Series(starts + spans)
        ends[rng.random(n_events) < 0.1] = pd.NaT

        return pd.DataFrame({
            'X': rng.uniform(0, 1000, n_events),
            'Y': rng.uniform(0, 1000, n_events),
            'StartDateTime': starts,
            'EndDateTime': ends.to_numpy(),
        })


@pytest.fixture
def test_data_generator():
    """Provide test data generator instance."""
    return TestDataGenerator()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
