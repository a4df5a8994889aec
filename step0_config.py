"""
step0_config.py
===============

Shared configuration for the India boundaries / roads walkthrough.

All parameters are literal constants; every step script reads its defaults
from here and lets the command line override the paths and the log level.
"""

from __future__ import annotations

import logging
from pathlib import Path

# ---------------------------------------------------------------------
# USER CONFIGURATION
# ---------------------------------------------------------------------

# GADM 4.1 administrative boundaries for India (levels 0-3 in one archive)
GADM_URL = "https://geodata.ucdavis.edu/gadm/gadm4.1/shp/gadm41_IND_shp.zip"

# DIVA-GIS road network for India (Digital Chart of the World roads)
ROADS_URL = "https://biogeo.ucdavis.edu/data/diva/rds/IND_rds.zip"

# Root data directory and the sub-directory each archive is unpacked into
DATA_DIR = Path("data")
BOUNDARIES_SUBDIR = "boundaries"
ROADS_SUBDIR = "roads"

DATASETS = {
    BOUNDARIES_SUBDIR: GADM_URL,
    ROADS_SUBDIR: ROADS_URL,
}

# Seconds before a download is abandoned (no retry)
DOWNLOAD_TIMEOUT = 300
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

# Files that make up one shapefile
SHAPEFILE_EXTENSIONS = (".shp", ".dbf", ".shx", ".prj", ".cpg")

# GADM ships one file per administrative level:
#   0 = country (1), 1 = states/UTs (36), 2 = districts (~666), 3 = sub-districts
GADM_LEVEL_PATTERN = "gadm41_IND_*.shp"
STATES_SHAPEFILE = "gadm41_IND_1.shp"
ROADS_SHAPEFILE = "IND_roads.shp"

# An unpacked dataset is reused only when this shapefile and its required
# components are all present
REQUIRED_SHAPEFILES = {
    BOUNDARIES_SUBDIR: STATES_SHAPEFILE,
    ROADS_SUBDIR: ROADS_SHAPEFILE,
}
REQUIRED_COMPONENTS = (".shp", ".shx", ".dbf")

STATE_NAME_FIELD = "NAME_1"
EXPECTED_STATE_COUNT = 36

# Geodesic measurements for geographic (lat/lon) layers
GEOGRAPHIC_ELLPS = "WGS84"

# Unit conversions
M2_TO_KM2 = 1e-6
M_TO_KM = 1e-3

# Column names of derived attributes
AREA_M2_COL = "area_m2"
AREA_KM2_COL = "area_km2"
AREA_DEVIATION_COL = "area_deviation_km2"
LENGTH_M_COL = "length_m"
LENGTH_KM_COL = "length_km"
VERTICES_COL = "n_vertices"
LENGTH_STAT_PREFIX = "road_length_km"
VERTICES_STAT_PREFIX = "road_vertices"

# Plot defaults
ROAD_COLOR = "dimgray"
ROAD_LINEWIDTH = 0.3
BOUNDARY_EDGECOLOR = "crimson"
BOUNDARY_LINEWIDTH = 0.8
BOUNDARY_ALPHA = 0.9
FIGSIZE = (10, 12)
FIGURE_DPI = 200

# Interactive map defaults
MAP_TILES = "OpenStreetMap"
MAP_OPACITY = 0.6
MAP_ZOOM_START = 5

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVEL = "INFO"


# ---------------------------------------------------------------------
# LOGGING SETUP
# ---------------------------------------------------------------------


def setup_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure global logging for the walkthrough scripts.

    Parameters
    ----------
    level : {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}, optional
        Logging verbosity level. Defaults to ``"INFO"``.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
