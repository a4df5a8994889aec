"""
Loading Tests

Shapefile loading, layer description and the choice of the administrative
level holding the 36 states.
"""

import logging

import geopandas as gpd
import pytest
from shapely.geometry import LineString, Polygon

from step2_load_shapefiles import (
    check_feature_count,
    count_features_by_level,
    describe_layer,
    find_level_with_count,
    load_shapefile,
    load_states_and_roads,
)


class TestLoadShapefile:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_shapefile(tmp_path / "nope.shp")

    def test_round_trips_features(self, tmp_path, projected_states):
        path = tmp_path / "states.shp"
        projected_states.to_file(path)

        gdf = load_shapefile(path)

        assert len(gdf) == 3
        assert list(gdf["NAME_1"]) == ["Small", "Medium", "Large"]
        assert gdf.crs.is_projected


class TestDescribeLayer:

    def test_polygon_summary(self, projected_states):
        summary = describe_layer(projected_states)

        assert summary.n_features == 3
        assert summary.geometry_types == ["Polygon"]
        assert summary.dimensions == 2
        assert summary.bounds == (0.0, 0.0, 23_000.0, 3000.0)
        assert summary.epsg == 32643

    def test_mixed_line_types(self, projected_roads):
        summary = describe_layer(projected_roads)

        assert summary.geometry_types == ["LineString", "MultiLineString"]

    def test_three_dimensional_geometries(self):
        gdf = gpd.GeoDataFrame(
            geometry=[LineString([(0, 0, 1), (1, 1, 2)])],
            crs="EPSG:4326",
        )
        assert describe_layer(gdf).dimensions == 3

    def test_missing_crs(self):
        gdf = gpd.GeoDataFrame(geometry=[Polygon([(0, 0), (1, 0), (1, 1)])])
        assert describe_layer(gdf).epsg is None


class TestAdministrativeLevels:

    def test_counts_every_level(self, walkthrough_data_dir):
        counts = count_features_by_level(walkthrough_data_dir / "boundaries")

        assert sorted(counts) == [0, 1, 2]
        assert [n for _, n in counts.values()] == [1, 36, 72]
        assert counts[1][0].name == "gadm41_IND_1.shp"

    def test_no_level_files(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            count_features_by_level(tmp_path)

    def test_finds_level_with_expected_count(self, tmp_path):
        counts = {
            0: (tmp_path / "gadm41_IND_0.shp", 1),
            1: (tmp_path / "gadm41_IND_1.shp", 36),
            2: (tmp_path / "gadm41_IND_2.shp", 666),
        }
        assert find_level_with_count(counts, 36).name == "gadm41_IND_1.shp"

    def test_no_level_matches(self, tmp_path):
        counts = {0: (tmp_path / "gadm41_IND_0.shp", 1)}
        with pytest.raises(LookupError):
            find_level_with_count(counts, 36)

    def test_count_mismatch_only_warns(self, projected_states, caplog):
        with caplog.at_level(logging.WARNING):
            assert check_feature_count(projected_states, 36) is False
        assert "Expected 36 features but found 3" in caplog.text
        assert check_feature_count(projected_states, 3) is True


def test_load_states_and_roads(walkthrough_data_dir):
    states, roads = load_states_and_roads(walkthrough_data_dir)

    assert len(states) == 36
    assert "NAME_1" in states.columns
    assert len(roads) == 7
    assert set(roads.geom_type) == {"LineString"}
