"""
Spatial output for aoristic tables.

Turns the weighted event table into point features so it can be loaded into
a GIS, and writes it to common vector formats.
"""

from pathlib import Path
from typing import Optional
import logging

import geopandas as gpd
import pandas as pd
from pyproj import CRS
from pyproj.exceptions import CRSError
from shapely.geometry import Point

logger = logging.getLogger(__name__)

DRIVERS_BY_SUFFIX = {
    '.shp': 'ESRI Shapefile',
    '.gpkg': 'GPKG',
    '.geojson': 'GeoJSON',
    '.json': 'GeoJSON',
}

SHAPEFILE_FIELD_LIMIT = 10


class CoordinateSystemManager:
    """Handles coordinate system resolution for exported layers."""

    def resolve_crs(self, crs) -> Optional[CRS]:
        """
        Resolve a user supplied CRS

        Args:
            crs: EPSG code, CRS string, pyproj CRS or None

        Returns:
            pyproj CRS or None when no CRS was given

        Raises:
            ValueError: If the CRS cannot be interpreted
        """
        if crs is None:
            return None
        try:
            return CRS.from_user_input(crs)
        except CRSError as e:
            raise ValueError(f"Invalid CRS '{crs}': {e}") from e


def to_geodataframe(result_df: pd.DataFrame, x_col: str, y_col: str, crs=None) -> gpd.GeoDataFrame:
    """
    Convert an aoristic table to point features

    Args:
        result_df: Aoristic output (or any table with coordinate columns)
        x_col: X coordinate / longitude column
        y_col: Y coordinate / latitude column
        crs: Coordinate reference system of the coordinates (optional)

    Returns:
        GeoDataFrame with every input row; rows without usable coordinates get
        a null geometry
    """
    missing_columns = [col for col in (x_col, y_col) if col not in result_df.columns]
    if missing_columns:
        raise ValueError(f"Missing coordinate columns: {missing_columns}")

    xs = pd.to_numeric(result_df[x_col], errors='coerce')
    ys = pd.to_numeric(result_df[y_col], errors='coerce')
    valid = xs.notna() & ys.notna()

    invalid_count = int((~valid).sum())
    if invalid_count > 0:
        logger.warning(f"{invalid_count} rows have missing or non-numeric coordinates, geometry left empty")

    geometry = [Point(x, y) if ok else None for x, y, ok in zip(xs, ys, valid)]
    gdf = gpd.GeoDataFrame(result_df.copy(), geometry=geometry, crs=CoordinateSystemManager().resolve_crs(crs))

    logger.info(f"Created point layer with {len(gdf):,} features")
    return gdf


def _prepare_for_shapefile(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    prepared = gdf.copy()
    for col in prepared.columns:
        if col == prepared.geometry.name:
            continue
        if pd.api.types.is_datetime64_any_dtype(prepared[col]):
            # Shapefile has no datetime field type
            prepared[col] = prepared[col].dt.strftime('%Y-%m-%d %H:%M:%S')

    long_names = [col for col in prepared.columns if col != prepared.geometry.name and len(str(col)) > SHAPEFILE_FIELD_LIMIT]
    if long_names:
        logger.warning(f"Shapefile field names longer than {SHAPEFILE_FIELD_LIMIT} characters will be truncated: {long_names}")
    return prepared


def write_spatial_output(gdf: gpd.GeoDataFrame, path: str, driver: Optional[str] = None) -> str:
    """
    Write a point layer to disk

    Args:
        gdf: GeoDataFrame to write
        path: Output file path; the suffix selects the format unless driver is given
        driver: OGR driver name (optional)

    Returns:
        Path of the written file as string

    Raises:
        ValueError: If the format cannot be determined
    """
    output_path = Path(path)
    if driver is None:
        driver = DRIVERS_BY_SUFFIX.get(output_path.suffix.lower())
        if driver is None:
            raise ValueError(f"Cannot determine output format for '{path}', use one of {sorted(DRIVERS_BY_SUFFIX)}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if driver == 'ESRI Shapefile':
        gdf = _prepare_for_shapefile(gdf)

    gdf.to_file(output_path, driver=driver)
    logger.info(f"Wrote {len(gdf):,} features to {output_path} ({driver})")
    return str(output_path)
