"""
End-to-End Tests

Loading -> selection -> filter -> aggregation over GADM-like shapefiles
written to a temporary data directory. Acquisition is skipped (or mocked).
"""

from unittest.mock import patch

import geopandas as gpd
import pytest
from geopandas.testing import assert_geodataframe_equal

from run_walkthrough import WalkthroughResult, run_walkthrough
from step2_load_shapefiles import load_states_and_roads
from step4_select_representative_state import compute_area_deviation, compute_areas

STAT_COLUMNS = {
    "road_length_km_min",
    "road_length_km_max",
    "road_length_km_mean",
    "road_length_km_sum",
    "road_vertices_min",
    "road_vertices_max",
    "road_vertices_mean",
    "road_vertices_sum",
}

pytestmark = pytest.mark.integration


def test_one_state_enriched_with_eight_statistics(walkthrough_data_dir):
    result = run_walkthrough(walkthrough_data_dir, make_plots=False, download=False)

    assert isinstance(result, WalkthroughResult)
    assert len(result.states) == 36
    assert len(result.selected_state) == 1
    assert len(result.enriched_state) == 1

    states, _ = load_states_and_roads(walkthrough_data_dir)
    new_columns = set(result.enriched_state.columns) - set(states.columns)
    assert new_columns == STAT_COLUMNS

    # Original attributes and geometry of the chosen state survive exactly
    original = states.loc[result.enriched_state.index]
    assert_geodataframe_equal(result.enriched_state[list(states.columns)], original)


def test_selected_state_has_minimal_deviation(walkthrough_data_dir):
    result = run_walkthrough(walkthrough_data_dir, make_plots=False, download=False)

    states, _ = load_states_and_roads(walkthrough_data_dir)
    areas, _ = compute_area_deviation(compute_areas(states))
    expected_index = areas["area_deviation_km2"].idxmin()

    assert result.selected_state.index[0] == expected_index
    assert result.enriched_state["NAME_1"].iloc[0] == states.loc[expected_index, "NAME_1"]


def test_only_the_row_road_is_counted(walkthrough_data_dir):
    result = run_walkthrough(walkthrough_data_dir, make_plots=False, download=False)

    # Each grid row is crossed by exactly one road, kept whole (not clipped)
    assert len(result.road_subset) == 1
    stats = result.stats
    assert stats["road_length_km_min"] == stats["road_length_km_max"] == stats["road_length_km_sum"]
    assert stats["road_length_km_sum"] > 250
    assert stats["road_vertices_sum"] == 2


def test_no_other_state_mutated(walkthrough_data_dir):
    states_before, _ = load_states_and_roads(walkthrough_data_dir)

    run_walkthrough(walkthrough_data_dir, make_plots=False, download=False)

    states_after, _ = load_states_and_roads(walkthrough_data_dir)
    assert_geodataframe_equal(states_after, states_before)


def test_timings_recorded(walkthrough_data_dir):
    result = run_walkthrough(walkthrough_data_dir, make_plots=False, download=False)

    assert {"loading", "selection", "intersection", "statistics"} <= set(result.timings)
    assert all(seconds >= 0 for seconds in result.timings.values())


def test_outputs_written(tmp_path, walkthrough_data_dir):
    outdir = tmp_path / "outputs"

    run_walkthrough(walkthrough_data_dir, output_dir=outdir, make_plots=True, download=False)

    for name in (
        "states.png",
        "roads_and_states.png",
        "roads_and_states.html",
        "representative_state.geojson",
        "state_areas.parquet",
    ):
        assert (outdir / name).exists(), name

    enriched = gpd.read_file(outdir / "representative_state.geojson")
    assert len(enriched) == 1


def test_acquisition_runs_first(walkthrough_data_dir):
    with patch("run_walkthrough.acquire_datasets") as mock_acquire:
        run_walkthrough(walkthrough_data_dir, make_plots=False, download=True)

    mock_acquire.assert_called_once()
    assert mock_acquire.call_args.args[1] == walkthrough_data_dir
