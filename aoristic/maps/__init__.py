"""
Maps Component - GIS output of aoristic tables.

Point layers built from the event coordinates, ready to be loaded into a GIS
for spatial analysis of each hour-of-week bucket.
"""

from .spatial_data import CoordinateSystemManager, to_geodataframe, write_spatial_output

__all__ = [
    'CoordinateSystemManager',
    'to_geodataframe',
    'write_spatial_output'
]
