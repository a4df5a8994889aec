"""
Test configuration and shared fixtures.

Fixtures:
- projected_states: three square "states" in UTM 43N with exact planar areas
- geographic_states: 36 half-degree cells over central India in EPSG:4326
- projected_roads: roads inside, crossing, touching and outside a state
- shapefile_zip_bytes: an in-memory zip holding dummy shapefile components
- corrupt_zip_bytes: a stored zip whose second member fails its CRC check
- walkthrough_data_dir: GADM-like level files and a road shapefile on disk
"""

import io
import logging
import zipfile

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pytest
from shapely.geometry import LineString, MultiLineString, box

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(message)s",
)

UTM_43N = "EPSG:32643"
WGS84 = "EPSG:4326"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: end-to-end runs over files on disk")


@pytest.fixture
def projected_states():
    """Squares of 1, 2 and 3 km side: 1, 4 and 9 km²; mean 4.67 km²."""
    return gpd.GeoDataFrame(
        {"NAME_1": ["Small", "Medium", "Large"]},
        geometry=[
            box(0, 0, 1000, 1000),
            box(10_000, 0, 12_000, 2000),
            box(20_000, 0, 23_000, 3000),
        ],
        crs=UTM_43N,
    )


@pytest.fixture
def geographic_states():
    """A 6 x 6 grid of half-degree cells: 36 states."""
    cells, names = [], []
    for row in range(6):
        for col in range(6):
            minx = 75.0 + col * 0.5
            miny = 18.0 + row * 0.5
            cells.append(box(minx, miny, minx + 0.5, miny + 0.5))
            names.append(f"State {row}-{col}")
    return gpd.GeoDataFrame({"NAME_1": names}, geometry=cells, crs=WGS84)


@pytest.fixture
def projected_roads():
    """Roads relative to the 'Small' state box(0, 0, 1000, 1000)."""
    return gpd.GeoDataFrame(
        {"kind": ["inside", "crossing", "corner_touch", "outside", "multi_inside"]},
        geometry=[
            LineString([(100, 100), (400, 100), (400, 500)]),
            LineString([(500, 500), (5000, 500)]),
            LineString([(1000, 1000), (2000, 2000)]),
            LineString([(50_000, 50_000), (51_000, 50_000)]),
            MultiLineString([[(200, 800), (300, 800)], [(600, 800), (600, 900)]]),
        ],
        crs=UTM_43N,
    )


@pytest.fixture
def shapefile_zip_bytes():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for ext in (".shp", ".dbf", ".shx", ".prj", ".cpg"):
            zf.writestr(f"IND_roads{ext}", b"dummy")
    return buf.getvalue()


@pytest.fixture
def corrupt_zip_bytes():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("IND_roads.shp", b"A" * 64)
        zf.writestr("IND_roads.dbf", b"B" * 64)
    # Stored data is written verbatim, so the CRC of the second member breaks
    return buf.getvalue().replace(b"B" * 64, b"C" * 64)


@pytest.fixture
def walkthrough_data_dir(tmp_path, geographic_states):
    """
    data/boundaries/gadm41_IND_{0,1,2}.shp and data/roads/IND_roads.shp.

    Level 1 holds the 36 states; level 2 splits each state into two halves.
    """
    data_dir = tmp_path / "data"
    boundaries = data_dir / "boundaries"
    roads_dir = data_dir / "roads"
    boundaries.mkdir(parents=True)
    roads_dir.mkdir(parents=True)

    country = gpd.GeoDataFrame(
        {"COUNTRY": ["India"]},
        geometry=[geographic_states.union_all()],
        crs=WGS84,
    )
    country.to_file(boundaries / "gadm41_IND_0.shp")

    geographic_states.to_file(boundaries / "gadm41_IND_1.shp")

    halves, names = [], []
    for name, geom in zip(geographic_states["NAME_1"], geographic_states.geometry):
        minx, miny, maxx, maxy = geom.bounds
        midx = (minx + maxx) / 2
        halves.extend([box(minx, miny, midx, maxy), box(midx, miny, maxx, maxy)])
        names.extend([f"{name} west", f"{name} east"])
    gpd.GeoDataFrame({"NAME_2": names}, geometry=halves, crs=WGS84).to_file(
        boundaries / "gadm41_IND_2.shp"
    )

    # One east-west road per grid row, spanning the whole grid
    roads = gpd.GeoDataFrame(
        {"RTT_DESCRI": [f"Road {row}" for row in range(6)] + ["Far road"]},
        geometry=[
            LineString([(75.1, 18.25 + row * 0.5), (77.9, 18.25 + row * 0.5)])
            for row in range(6)
        ]
        + [LineString([(90.0, 25.0), (91.0, 25.0)])],
        crs=WGS84,
    )
    roads.to_file(roads_dir / "IND_roads.shp")

    return data_dir
