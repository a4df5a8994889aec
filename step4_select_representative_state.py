"""
step4_select_representative_state.py
====================================

Pick the "representative" state: the one whose area is closest to the mean
area of all states and union territories.

1. Compute the area of every state in km².
   - Geographic CRS (lat/lon): geodesic area on the WGS84 ellipsoid
     (pyproj.Geod), holes subtracted.
   - Projected CRS: planar area scaled to m² by the CRS axis unit.
   The km² value is always ``area_m2 * M2_TO_KM2``.
2. Compute the mean area and each state's absolute deviation from it.
3. Select the state with the smallest deviation.

Ties on the minimal deviation are resolved by original row order (the first
tying row wins) and logged; ``keep_ties=True`` returns all of them instead.

Typical usage
-------------
    python step4_select_representative_state.py --data-dir data
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Tuple

import geopandas as gpd
import numpy as np
from pyproj import Geod
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon

from step0_config import (
    AREA_DEVIATION_COL,
    AREA_KM2_COL,
    AREA_M2_COL,
    DATA_DIR,
    GEOGRAPHIC_ELLPS,
    LOG_LEVELS,
    M2_TO_KM2,
    STATE_NAME_FIELD,
    setup_logging,
)
from step2_load_shapefiles import load_states


# ---------------------------------------------------------------------
# GEODESIC AREA UTILITIES
# ---------------------------------------------------------------------
def geodesic_area_polygon(geod: Geod, polygon: Polygon) -> float:
    """Return geodesic area (m^2) of a shapely Polygon, holes subtracted."""
    lons, lats = polygon.exterior.coords.xy
    area, _ = geod.polygon_area_perimeter(lons, lats)
    holes = 0.0
    for ring in polygon.interiors:
        hole_lons, hole_lats = ring.coords.xy
        hole_area, _ = geod.polygon_area_perimeter(hole_lons, hole_lats)
        holes += abs(hole_area)
    return max(abs(area) - holes, 0.0)


def geodesic_area_geometry(geod: Geod, geom) -> float:
    """Return geodesic area for Polygon/MultiPolygon/GeometryCollection."""
    if geom is None:
        return np.nan
    if geom.is_empty:
        return 0.0
    if isinstance(geom, Polygon):
        return geodesic_area_polygon(geod, geom)
    if isinstance(geom, MultiPolygon):
        return sum(geodesic_area_polygon(geod, g) for g in geom.geoms)
    if isinstance(geom, GeometryCollection):
        return sum(
            geodesic_area_geometry(geod, g)
            for g in geom.geoms
            if isinstance(g, (Polygon, MultiPolygon))
        )
    return 0.0


def linear_unit_factor(gdf: gpd.GeoDataFrame) -> float:
    """Metres per CRS unit of a projected layer."""
    return float(gdf.crs.axis_info[0].unit_conversion_factor)


# ---------------------------------------------------------------------
# AREA & DEVIATION
# ---------------------------------------------------------------------
def compute_areas(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """
    Return a copy of ``gdf`` with ``area_m2`` and ``area_km2`` columns.

    Raises
    ------
    ValueError
        If the layer has no CRS, so its units are unknown.
    """
    if gdf.crs is None:
        raise ValueError("Layer has no CRS; cannot determine area units.")

    out = gdf.copy()

    if gdf.crs.is_geographic:
        geod = Geod(ellps=GEOGRAPHIC_ELLPS)
        out[AREA_M2_COL] = [geodesic_area_geometry(geod, g) for g in gdf.geometry]
    else:
        out[AREA_M2_COL] = gdf.geometry.area * linear_unit_factor(gdf) ** 2

    out[AREA_M2_COL] = out[AREA_M2_COL].astype(float)
    out[AREA_KM2_COL] = out[AREA_M2_COL] * M2_TO_KM2

    logging.info(
        "Computed %s areas for %d feature(s): total %.0f km².",
        "geodesic" if gdf.crs.is_geographic else "planar",
        len(out),
        out[AREA_KM2_COL].sum(),
    )
    return out


def compute_area_deviation(gdf: gpd.GeoDataFrame) -> Tuple[gpd.GeoDataFrame, float]:
    """
    Add ``area_deviation_km2 = |area_km2 - mean(area_km2)|``.

    Returns
    -------
    tuple
        ``(gdf_with_deviation, mean_area_km2)``.
    """
    out = gdf if AREA_KM2_COL in gdf.columns else compute_areas(gdf)
    out = out.copy()

    mean_area = float(out[AREA_KM2_COL].mean())
    out[AREA_DEVIATION_COL] = (out[AREA_KM2_COL] - mean_area).abs()

    logging.info("Mean area: %.2f km²", mean_area)
    return out, mean_area


def find_tied_states(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """All rows whose deviation equals the minimal deviation, in row order."""
    if AREA_DEVIATION_COL not in gdf.columns:
        gdf, _ = compute_area_deviation(gdf)

    min_dev = gdf[AREA_DEVIATION_COL].min()
    return gdf[gdf[AREA_DEVIATION_COL] == min_dev]


def select_representative_state(
    gdf: gpd.GeoDataFrame,
    keep_ties: bool = False,
) -> gpd.GeoDataFrame:
    """
    Select the state whose area deviates least from the mean area.

    Parameters
    ----------
    gdf : GeoDataFrame
        All boundary features. Areas are computed if missing.
    keep_ties : bool, optional
        Return every row sharing the minimal deviation instead of only the
        first one in row order.

    Returns
    -------
    GeoDataFrame
        One row (or all tying rows with ``keep_ties=True``), carrying the
        area and deviation columns.

    Raises
    ------
    ValueError
        If ``gdf`` is empty.
    """
    if gdf.empty:
        raise ValueError("Cannot select a representative state from an empty layer.")

    ties = find_tied_states(gdf)

    if ties.empty:
        raise ValueError("No feature has a valid area to compare against the mean.")

    if len(ties) > 1:
        logging.warning(
            "%d features share the minimal deviation of %.6f km²; %s.",
            len(ties),
            ties[AREA_DEVIATION_COL].iloc[0],
            "keeping all" if keep_ties else "keeping the first in row order",
        )

    selected = ties if keep_ties else ties.iloc[[0]]

    for idx, row in selected.iterrows():
        name = row[STATE_NAME_FIELD] if STATE_NAME_FIELD in selected.columns else idx
        logging.info(
            "Selected '%s': area %.2f km², deviation %.2f km².",
            name,
            row[AREA_KM2_COL],
            row[AREA_DEVIATION_COL],
        )

    return selected


# ---------------------------------------------------------------------
# CLI Interface
# ---------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Select the state whose area is closest to the mean state area."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help=f"Directory holding the unpacked shapefiles (default: '{DATA_DIR}').",
    )
    parser.add_argument(
        "--keep-ties",
        action="store_true",
        help="Report every state sharing the minimal deviation.",
    )
    parser.add_argument(
        "--log",
        type=str,
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO).",
    )
    return parser


def main() -> None:
    """Entry point for command-line execution."""
    args = build_arg_parser().parse_args()
    setup_logging(args.log)

    states = load_states(args.data_dir)

    states, _ = compute_area_deviation(compute_areas(states))
    ranked = states.sort_values(AREA_DEVIATION_COL)
    for _, row in ranked.head(5).iterrows():
        logging.info(
            "  %-30s %12.2f km²  (deviation %.2f)",
            row.get(STATE_NAME_FIELD, "?"),
            row[AREA_KM2_COL],
            row[AREA_DEVIATION_COL],
        )

    select_representative_state(states, keep_ties=args.keep_ties)


if __name__ == "__main__":
    main()
