"""
Processing Component - Aoristic weight calculation.

This component turns events bounded by start/end timestamps into
proportional weights over the 168 hours of the week.
"""

from .buckets import BucketPosition, index_of, bucket_index, next_bucket
from .config import AoristicConfig, AoristicParameters
from .duration import DurationClass, DurationCounters, DurationRecord, classify
from .pipeline import (
    AoristicDiagnostics,
    aoristic_df,
    compute_aoristic_weights,
    compute_aoristic_weights_parallel,
)
from .weights import distribute

__all__ = [
    'BucketPosition',
    'index_of',
    'bucket_index',
    'next_bucket',
    'AoristicConfig',
    'AoristicParameters',
    'DurationClass',
    'DurationCounters',
    'DurationRecord',
    'classify',
    'AoristicDiagnostics',
    'aoristic_df',
    'compute_aoristic_weights',
    'compute_aoristic_weights_parallel',
    'distribute'
]
