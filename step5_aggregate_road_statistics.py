"""
step5_aggregate_road_statistics.py
==================================

Aggregate the road network over the representative state.

1. Spatial filter: every road is tested with the binary ``intersects``
   predicate against the one selected state. Roads are NOT clipped: a road
   that touches or crosses the boundary anywhere is kept whole.
2. Per road: length (geodesic on the WGS84 ellipsoid for lat/lon layers,
   planar otherwise) and number of vertices.
3. Reduce lengths (km) and vertex counts to min / max / mean / sum,
   ignoring missing values. An empty subset gives NaN for all four.
4. Attach the eight scalars as new columns to the state's attribute row.

The wall-clock time of the filter and of the statistics is logged; it has
no effect on the results.

Typical usage
-------------
    python step5_aggregate_road_statistics.py --data-dir data --outdir outputs
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Dict, Iterable, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
import polars as pl
import shapely
from pyproj import CRS, Geod

from step0_config import (
    DATA_DIR,
    GEOGRAPHIC_ELLPS,
    LENGTH_KM_COL,
    LENGTH_M_COL,
    LENGTH_STAT_PREFIX,
    LOG_LEVELS,
    M_TO_KM,
    STATE_NAME_FIELD,
    VERTICES_COL,
    VERTICES_STAT_PREFIX,
    setup_logging,
)
from step2_load_shapefiles import load_states_and_roads
from step4_select_representative_state import (
    compute_area_deviation,
    compute_areas,
    linear_unit_factor,
    select_representative_state,
)


# ---------------------------------------------------------------------
# SPATIAL FILTER
# ---------------------------------------------------------------------
def intersecting_mask(roads: gpd.GeoDataFrame, boundary_geom) -> pd.Series:
    """Boolean mask of roads sharing at least one point with ``boundary_geom``."""
    return roads.geometry.intersects(boundary_geom).rename("intersects")


def _align_crs(roads: gpd.GeoDataFrame, state: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    if roads.crs is None or state.crs is None:
        return state
    if not roads.crs.equals(state.crs, ignore_axis_order=True):
        logging.warning(
            "State CRS (%s) differs from road CRS (%s); reprojecting the state.",
            state.crs,
            roads.crs,
        )
        return state.to_crs(roads.crs)
    return state


def filter_roads(
    roads: gpd.GeoDataFrame,
    state: gpd.GeoDataFrame,
) -> Tuple[gpd.GeoDataFrame, pd.Series]:
    """
    Keep the roads intersecting the single selected state.

    Returns
    -------
    tuple
        ``(road_subset, mask)`` where ``mask`` is aligned with ``roads``.

    Raises
    ------
    ValueError
        If ``state`` does not hold exactly one feature.
    """
    if len(state) != 1:
        raise ValueError(f"Expected exactly one state feature, got {len(state)}.")

    state = _align_crs(roads, state)
    boundary_geom = state.geometry.iloc[0]

    start = time.time()
    mask = intersecting_mask(roads, boundary_geom)
    subset = roads[mask]
    elapsed = time.time() - start

    logging.info(
        "Intersection: %d of %d road(s) intersect the state (%.2f sec).",
        len(subset),
        len(roads),
        elapsed,
    )
    return subset, mask


# ---------------------------------------------------------------------
# PER-ROAD MEASURES
# ---------------------------------------------------------------------
def _geodesic_length(geod: Geod, geom) -> float:
    if geom is None:
        return np.nan
    if geom.is_empty:
        return 0.0
    return float(geod.geometry_length(geom))


def compute_road_lengths(roads: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """
    Return a copy of ``roads`` with ``length_m`` and ``length_km`` columns.

    Raises
    ------
    ValueError
        If the layer has no CRS.
    """
    if roads.crs is None:
        raise ValueError("Layer has no CRS; cannot determine length units.")

    out = roads.copy()
    if roads.crs.is_geographic:
        geod = Geod(ellps=GEOGRAPHIC_ELLPS)
        out[LENGTH_M_COL] = [_geodesic_length(geod, g) for g in roads.geometry]
    else:
        out[LENGTH_M_COL] = roads.geometry.length * linear_unit_factor(roads)

    out[LENGTH_M_COL] = out[LENGTH_M_COL].astype(float)
    out[LENGTH_KM_COL] = out[LENGTH_M_COL] * M_TO_KM
    return out


def count_vertices(roads: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Return a copy of ``roads`` with the coordinate count of every geometry."""
    out = roads.copy()
    out[VERTICES_COL] = shapely.get_num_coordinates(roads.geometry.to_numpy())
    return out


# ---------------------------------------------------------------------
# STATISTICS
# ---------------------------------------------------------------------
def summarise(values: Iterable[float], prefix: str) -> Dict[str, float]:
    """
    Min, max, mean and sum of ``values``, ignoring NaN / null.

    Returns
    -------
    dict
        ``{f"{prefix}_min": ..., f"{prefix}_max": ..., f"{prefix}_mean": ...,
        f"{prefix}_sum": ...}``; all NaN when no valid value is present.
    """
    arr = np.asarray(list(values), dtype=float)
    df = pl.DataFrame({prefix: pl.Series(prefix, arr, dtype=pl.Float64)})
    col = pl.col(prefix).fill_nan(None)

    row = df.select(
        col.count().alias("n_valid"),
        col.min().alias(f"{prefix}_min"),
        col.max().alias(f"{prefix}_max"),
        col.mean().alias(f"{prefix}_mean"),
        col.sum().alias(f"{prefix}_sum"),
    ).row(0, named=True)

    n_valid = row.pop("n_valid")
    if n_valid == 0:
        return {key: float("nan") for key in row}
    return {key: float(value) for key, value in row.items()}


def compute_road_statistics(roads: gpd.GeoDataFrame) -> Dict[str, float]:
    """The four length statistics (km) and four vertex statistics of ``roads``."""
    start = time.time()

    lengths = compute_road_lengths(roads)[LENGTH_KM_COL]
    vertices = count_vertices(roads)[VERTICES_COL]

    stats = {
        **summarise(lengths, LENGTH_STAT_PREFIX),
        **summarise(vertices, VERTICES_STAT_PREFIX),
    }

    elapsed = time.time() - start
    logging.info("Statistics over %d road(s) computed in %.2f sec.", len(roads), elapsed)
    for key, value in stats.items():
        logging.info("  %-24s %.3f", key, value)

    return stats


# ---------------------------------------------------------------------
# ATTACH TO THE STATE
# ---------------------------------------------------------------------
def to_attribute_table(gdf: gpd.GeoDataFrame) -> pd.DataFrame:
    return pd.DataFrame(gdf.copy())


def from_attribute_table(
    table: pd.DataFrame,
    geometry: str = "geometry",
    crs=None,
) -> gpd.GeoDataFrame:
    """
    Rebuild a GeoDataFrame from ``table``.

    ``crs`` is applied when the geometry column carries none. When it does,
    ``crs`` must describe the same CRS.

    Raises
    ------
    ValueError
        If ``crs`` conflicts with the CRS already on the geometry column.
    """
    gdf = gpd.GeoDataFrame(table, geometry=geometry)
    if crs is None:
        return gdf
    if gdf.crs is None:
        return gdf.set_crs(crs)
    if not gdf.crs.equals(CRS.from_user_input(crs), ignore_axis_order=True):
        raise ValueError(f"Table geometry is in {gdf.crs}, not the requested {crs}.")
    return gdf


def attach_statistics(state: gpd.GeoDataFrame, stats: Dict[str, float]) -> gpd.GeoDataFrame:
    """
    Append ``stats`` as new columns to the state's attribute row.

    ``state`` itself is left untouched; a new GeoDataFrame with the same
    geometry, CRS and attributes plus one column per statistic is returned.
    """
    existing = set(stats).intersection(state.columns)
    if existing:
        raise ValueError(f"State already has columns {sorted(existing)}.")

    table = to_attribute_table(state)
    for name, value in stats.items():
        table[name] = value

    return from_attribute_table(table, geometry=state.geometry.name, crs=state.crs)


# ---------------------------------------------------------------------
# OPTIONAL EXPORT
# ---------------------------------------------------------------------
def export_results(
    enriched_state: gpd.GeoDataFrame,
    states_with_areas: gpd.GeoDataFrame,
    output_dir: Path,
) -> Tuple[Path, Path]:
    """
    Write the enriched state as GeoJSON and the per-state areas as Parquet.

    Returns
    -------
    tuple
        ``(geojson_path, parquet_path)``.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    geojson_path = output_dir / "representative_state.geojson"
    enriched_state.to_file(geojson_path, driver="GeoJSON")
    logging.info("Saved enriched state to '%s'.", geojson_path)

    parquet_path = output_dir / "state_areas.parquet"
    table = pd.DataFrame(states_with_areas.drop(columns=states_with_areas.geometry.name))
    pl.from_pandas(table).write_parquet(parquet_path, compression="snappy")
    logging.info("Saved state areas (%d rows) to '%s'.", len(table), parquet_path)

    return geojson_path, parquet_path


# ---------------------------------------------------------------------
# CLI Interface
# ---------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Road length and vertex statistics for the representative state."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help=f"Directory holding the unpacked shapefiles (default: '{DATA_DIR}').",
    )
    parser.add_argument(
        "--outdir",
        type=Path,
        default=None,
        help="Optionally write the enriched state and the area table here.",
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

    states, roads = load_states_and_roads(args.data_dir)
    states_with_areas, _ = compute_area_deviation(compute_areas(states))
    selected = select_representative_state(states_with_areas)

    state = states.loc[selected.index]
    subset, _ = filter_roads(roads, state)
    stats = compute_road_statistics(subset)
    enriched = attach_statistics(state, stats)

    name = enriched[STATE_NAME_FIELD].iloc[0] if STATE_NAME_FIELD in enriched else "?"
    logging.info("Attached %d statistics to '%s'.", len(stats), name)

    if args.outdir is not None:
        export_results(enriched, states_with_areas, args.outdir)


if __name__ == "__main__":
    main()
