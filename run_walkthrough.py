"""
run_walkthrough.py

Run the whole walkthrough in one go:

    acquisition -> loading -> visualisation -> selection -> filter -> aggregation

Each stage consumes the previous stage's output once. Any failure aborts
the run; there is no retry or partial result.
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import geopandas as gpd

from step0_config import (
    DATA_DIR,
    DATASETS,
    LOG_LEVELS,
    STATE_NAME_FIELD,
    setup_logging,
)
from step1_download_datasets import acquire_datasets
from step2_load_shapefiles import load_states_and_roads
from step3_plot_static_and_interactive import (
    finish_figure,
    make_interactive_map,
    plot_geometries,
    plot_layers,
    save_map,
)
from step4_select_representative_state import (
    compute_area_deviation,
    compute_areas,
    select_representative_state,
)
from step5_aggregate_road_statistics import (
    attach_statistics,
    compute_road_statistics,
    export_results,
    filter_roads,
)


@dataclass
class WalkthroughResult:
    states: gpd.GeoDataFrame
    selected_state: gpd.GeoDataFrame
    road_subset: gpd.GeoDataFrame
    stats: Dict[str, float]
    enriched_state: gpd.GeoDataFrame
    timings: Dict[str, float] = field(default_factory=dict)


def run_walkthrough(
    data_dir: Path = DATA_DIR,
    output_dir: Optional[Path] = None,
    make_plots: bool = True,
    download: bool = True,
) -> WalkthroughResult:
    """
    Run every stage in order and return the intermediate and final results.

    Parameters
    ----------
    data_dir : Path
        Where the archives are unpacked and the shapefiles read from.
    output_dir : Path or None
        If given, plots, the interactive map, the enriched state and the
        area table are written here. Otherwise plots are shown.
    make_plots : bool
        Skip the visualisation stage when False.
    download : bool
        Skip the acquisition stage when False (shapefiles already present).
    """
    timings: Dict[str, float] = {}
    overall_start = time.time()

    # --- 1. Acquisition ---------------------------------------------
    if download:
        start = time.time()
        acquire_datasets(DATASETS, data_dir)
        timings["acquisition"] = time.time() - start

    # --- 2. Loading -------------------------------------------------
    start = time.time()
    states, roads = load_states_and_roads(data_dir)
    timings["loading"] = time.time() - start

    # --- 3. Visualisation -------------------------------------------
    if make_plots:
        start = time.time()
        fig, _ = plot_geometries(states, "States and union territories of India")
        finish_figure(fig, output_dir / "states.png" if output_dir else None)
        fig, _ = plot_layers(roads, states)
        finish_figure(fig, output_dir / "roads_and_states.png" if output_dir else None)

        m = make_interactive_map(states, roads, tooltip_fields=[STATE_NAME_FIELD])
        if output_dir:
            save_map(m, output_dir / "roads_and_states.html")
        timings["visualisation"] = time.time() - start

    # --- 4. Selection -----------------------------------------------
    start = time.time()
    states_with_areas, _ = compute_area_deviation(compute_areas(states))
    selected = select_representative_state(states_with_areas)
    timings["selection"] = time.time() - start

    # --- 5. Filter + aggregation ------------------------------------
    # Attach to the untouched attribute row, not the one carrying areas.
    state = states.loc[selected.index]

    start = time.time()
    road_subset, _ = filter_roads(roads, state)
    timings["intersection"] = time.time() - start

    start = time.time()
    stats = compute_road_statistics(road_subset)
    timings["statistics"] = time.time() - start

    enriched = attach_statistics(state, stats)

    if output_dir is not None:
        export_results(enriched, states_with_areas, output_dir)

    # --- 6. Summary -------------------------------------------------
    total_elapsed = time.time() - overall_start
    name = enriched[STATE_NAME_FIELD].iloc[0] if STATE_NAME_FIELD in enriched else "?"
    logging.info("===============================================")
    logging.info("Walkthrough complete.")
    logging.info("  Representative state: %s", name)
    logging.info("  Roads intersecting it: %d", len(road_subset))
    for stage, seconds in timings.items():
        logging.info("  %-14s %.2f sec", stage, seconds)
    logging.info("  Total wall time: %.2f sec (%.2f min)", total_elapsed, total_elapsed / 60.0)
    logging.info("===============================================")

    return WalkthroughResult(
        states=states_with_areas,
        selected_state=selected,
        road_subset=road_subset,
        stats=stats,
        enriched_state=enriched,
        timings=timings,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download, map and aggregate India's state boundaries and roads."
    )
    parser.add_argument("--data-dir", type=Path, default=DATA_DIR, help="Data directory.")
    parser.add_argument("--outdir", type=Path, default=None, help="Output directory.")
    parser.add_argument("--no-plots", action="store_true", help="Skip the plots.")
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help="Use shapefiles already unpacked in --data-dir.",
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
    args = build_arg_parser().parse_args()
    setup_logging(args.log)
    run_walkthrough(
        data_dir=args.data_dir,
        output_dir=args.outdir,
        make_plots=not args.no_plots,
        download=not args.skip_download,
    )


if __name__ == "__main__":
    main()
