"""
step2_load_shapefiles.py
========================

Load the unpacked shapefiles into GeoDataFrames and report what each layer
contains: feature count, geometry type(s), dimensionality, bounding box and
spatial reference (EPSG).

GADM ships four administrative levels for India. Only one of them holds the
36 states and union territories, so the feature count of every level is
printed and the level matching the expected count is picked. The printed
counts (and the plot in step 3) remain the human check.

Typical usage
-------------
    python step2_load_shapefiles.py --data-dir data
"""

from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import geopandas as gpd

from step0_config import (
    BOUNDARIES_SUBDIR,
    DATA_DIR,
    EXPECTED_STATE_COUNT,
    GADM_LEVEL_PATTERN,
    LOG_LEVELS,
    ROADS_SHAPEFILE,
    ROADS_SUBDIR,
    setup_logging,
)


@dataclass
class LayerSummary:
    n_features: int
    geometry_types: List[str]
    dimensions: int
    bounds: Tuple[float, float, float, float]
    epsg: Optional[int]


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------
def load_shapefile(path: Path) -> gpd.GeoDataFrame:
    """
    Read a shapefile into a GeoDataFrame.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the layer holds no features.
    """
    logging.info("Loading shapefile '%s'.", path)

    if not path.exists():
        raise FileNotFoundError(f"Shapefile not found: {path}")

    gdf = gpd.read_file(path)

    if gdf.empty:
        raise ValueError(f"Shapefile contains no features: {path}")

    logging.info("Loaded %d feature(s) from '%s'.", len(gdf), path.name)
    return gdf


def describe_layer(gdf: gpd.GeoDataFrame) -> LayerSummary:
    """Summarise a layer and log each property on its own line."""
    epsg = gdf.crs.to_epsg() if gdf.crs is not None else None
    summary = LayerSummary(
        n_features=len(gdf),
        geometry_types=sorted(gdf.geom_type.dropna().unique().tolist()),
        dimensions=3 if gdf.has_z.any() else 2,
        bounds=tuple(float(v) for v in gdf.total_bounds),
        epsg=epsg,
    )

    logging.info("Number of features: %d", summary.n_features)
    logging.info("Geometry types: %s", summary.geometry_types)
    logging.info("Dimensions: %d", summary.dimensions)
    logging.info(
        "Bounds: lon[%.3f, %.3f], lat[%.3f, %.3f]",
        summary.bounds[0],
        summary.bounds[2],
        summary.bounds[1],
        summary.bounds[3],
    )
    logging.info("EPSG: %s", summary.epsg)

    if summary.epsg is None:
        logging.warning("Layer has no recognisable EPSG code; CRS: %s", gdf.crs)

    return summary


# ---------------------------------------------------------------------
# Administrative level selection
# ---------------------------------------------------------------------
def _level_of(path: Path) -> int:
    match = re.search(r"_(\d+)$", path.stem)
    if match is None:
        raise ValueError(f"Cannot infer administrative level from '{path.name}'")
    return int(match.group(1))


def count_features_by_level(
    boundary_dir: Path,
    pattern: str = GADM_LEVEL_PATTERN,
) -> Dict[int, Tuple[Path, int]]:
    """
    Count the features of every administrative level shapefile.

    Only the attribute table is read, so even the finest level is quick.

    Returns
    -------
    dict
        ``{level: (path, n_features)}`` ordered by level.
    """
    paths = sorted(boundary_dir.glob(pattern), key=_level_of)
    if not paths:
        raise FileNotFoundError(f"No files matching '{pattern}' under {boundary_dir}")

    counts: Dict[int, Tuple[Path, int]] = {}
    for path in paths:
        table = gpd.read_file(path, ignore_geometry=True)
        level = _level_of(path)
        counts[level] = (path, len(table))
        logging.info("ADM%d (%s): %d feature(s)", level, path.name, len(table))

    return counts


def find_level_with_count(
    counts: Dict[int, Tuple[Path, int]],
    expected_count: int = EXPECTED_STATE_COUNT,
) -> Path:
    """
    Return the first (coarsest) level whose feature count equals ``expected_count``.

    Raises
    ------
    LookupError
        If no level has exactly ``expected_count`` features.
    """
    for level in sorted(counts):
        path, n = counts[level]
        if n == expected_count:
            logging.info("Using ADM%d (%s) with %d features.", level, path.name, n)
            return path

    found = {level: n for level, (_, n) in counts.items()}
    raise LookupError(
        f"No administrative level has {expected_count} features. "
        f"Counts found: {found}"
    )


def check_feature_count(gdf: gpd.GeoDataFrame, expected: int = EXPECTED_STATE_COUNT) -> bool:
    """Warn (never raise) when a layer does not hold the expected number of features."""
    if len(gdf) != expected:
        logging.warning(
            "Expected %d features but found %d; inspect the map before continuing.",
            expected,
            len(gdf),
        )
        return False
    return True


def load_states(data_dir: Path = DATA_DIR) -> gpd.GeoDataFrame:
    """Load the GADM level holding ``EXPECTED_STATE_COUNT`` features."""
    counts = count_features_by_level(data_dir / BOUNDARIES_SUBDIR)
    states_path = find_level_with_count(counts, EXPECTED_STATE_COUNT)

    states = load_shapefile(states_path)
    describe_layer(states)
    check_feature_count(states, EXPECTED_STATE_COUNT)
    return states


def load_states_and_roads(data_dir: Path = DATA_DIR) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """Load the state-level boundaries and the road network from ``data_dir``."""
    states = load_states(data_dir)

    roads = load_shapefile(data_dir / ROADS_SUBDIR / ROADS_SHAPEFILE)
    describe_layer(roads)

    return states, roads


# ---------------------------------------------------------------------
# CLI Interface
# ---------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Load and describe the India boundary and road shapefiles."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help=f"Directory holding the unpacked shapefiles (default: '{DATA_DIR}').",
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
    load_states_and_roads(args.data_dir)


if __name__ == "__main__":
    main()
