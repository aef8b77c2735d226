"""
Reference Component - Hour-of-week lookup tables.

Cross-reference between bucket numbers and day/hour labels, plus summed
weekly grids of aoristic output.
"""

from .hour_reference import hour_reference, bucket_label, weekly_totals, peak_buckets

__all__ = [
    'hour_reference',
    'bucket_label',
    'weekly_totals',
    'peak_buckets'
]
