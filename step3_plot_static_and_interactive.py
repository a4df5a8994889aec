"""
step3_plot_static_and_interactive.py
====================================

Creates BOTH:
1) matplotlib static plots
   - geometry-only view of a single layer
   - roads beneath, state boundaries as an unfilled outline overlay
2) a folium interactive HTML map
   - base layer (state boundaries) with an additional layer (roads)
     composed onto the same map, configurable basemap tiles, opacity
     and legend (layer control) visibility

Nothing returned here is consumed downstream; the figure and map objects
are returned so they can be saved or inspected.

Typical usage
-------------
    python step3_plot_static_and_interactive.py --data-dir data --outdir outputs
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import folium
import geopandas as gpd
import matplotlib.pyplot as plt

from step0_config import (
    BOUNDARY_ALPHA,
    BOUNDARY_EDGECOLOR,
    BOUNDARY_LINEWIDTH,
    DATA_DIR,
    FIGSIZE,
    FIGURE_DPI,
    LOG_LEVELS,
    MAP_OPACITY,
    MAP_TILES,
    MAP_ZOOM_START,
    ROAD_COLOR,
    ROAD_LINEWIDTH,
    STATE_NAME_FIELD,
    setup_logging,
)
from step2_load_shapefiles import load_states_and_roads


# -------------------------------------------------------------------
# MATPLOTLIB FIGURES
# -------------------------------------------------------------------
def plot_geometries(
    gdf: gpd.GeoDataFrame,
    title: str,
    facecolor: str = "lightblue",
    edgecolor: str = "black",
    linewidth: float = 0.5,
    figsize: Tuple[float, float] = FIGSIZE,
):
    """Plot the geometry column only (no attribute colouring)."""
    fig, ax = plt.subplots(figsize=figsize)

    gdf.geometry.plot(
        ax=ax,
        facecolor=facecolor,
        edgecolor=edgecolor,
        linewidth=linewidth,
    )

    ax.set_title(title)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    plt.tight_layout()
    return fig, ax


def plot_layers(
    roads: gpd.GeoDataFrame,
    boundaries: gpd.GeoDataFrame,
    title: str = "Roads and state boundaries of India",
    road_color: str = ROAD_COLOR,
    road_linewidth: float = ROAD_LINEWIDTH,
    boundary_edgecolor: str = BOUNDARY_EDGECOLOR,
    boundary_linewidth: float = BOUNDARY_LINEWIDTH,
    boundary_alpha: float = BOUNDARY_ALPHA,
    figsize: Tuple[float, float] = FIGSIZE,
):
    """
    Plot roads beneath an outlined boundary overlay on one axis.

    Parameters
    ----------
    roads : GeoDataFrame
        Line layer drawn first.
    boundaries : GeoDataFrame
        Polygon layer drawn on top with no fill.
    road_color, road_linewidth : optional
        Stroke of the road lines.
    boundary_edgecolor, boundary_linewidth, boundary_alpha : optional
        Stroke and opacity of the boundary outlines.

    Returns
    -------
    tuple
        ``(fig, ax)``.
    """
    if roads.crs != boundaries.crs:
        logging.warning(
            "Layers use different CRS (%s vs %s); overlay may be misaligned.",
            roads.crs,
            boundaries.crs,
        )

    fig, ax = plt.subplots(figsize=figsize)

    roads.geometry.plot(ax=ax, color=road_color, linewidth=road_linewidth, zorder=1)
    boundaries.geometry.plot(
        ax=ax,
        facecolor="none",
        edgecolor=boundary_edgecolor,
        linewidth=boundary_linewidth,
        alpha=boundary_alpha,
        zorder=2,
    )

    ax.set_title(title)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    plt.tight_layout()
    return fig, ax


def finish_figure(fig, save_path: Optional[Path] = None) -> None:
    """Save the figure to ``save_path`` if given, otherwise show it."""
    if save_path:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=FIGURE_DPI)
        logging.info("Saved static plot to '%s'.", save_path)
        plt.close(fig)
    else:
        plt.show()


# -------------------------------------------------------------------
# FOLIUM MAP
# -------------------------------------------------------------------
def _to_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    if gdf.crs is not None and gdf.crs.to_epsg() != 4326:
        return gdf.to_crs(epsg=4326)
    return gdf


def make_interactive_map(
    base: gpd.GeoDataFrame,
    overlay: Optional[gpd.GeoDataFrame] = None,
    base_name: str = "States",
    overlay_name: str = "Roads",
    tiles: str = MAP_TILES,
    attr: Optional[str] = None,
    opacity: float = MAP_OPACITY,
    show_legend: bool = True,
    base_color: str = BOUNDARY_EDGECOLOR,
    overlay_color: str = ROAD_COLOR,
    tooltip_fields: Optional[List[str]] = None,
) -> folium.Map:
    """
    Compose a base layer and an optional additional layer on one folium map.

    The map is centred on the base layer's bounding box. ``opacity`` applies
    to the strokes of both layers; the base layer fill is half of it.
    ``show_legend`` adds a layer control listing both layers.
    ``tiles`` is a folium tile provider name or a URL template; a URL needs
    an ``attr`` attribution string.
    """
    base = _to_wgs84(base)
    minx, miny, maxx, maxy = base.total_bounds
    m = folium.Map(
        location=[(miny + maxy) / 2, (minx + maxx) / 2],
        zoom_start=MAP_ZOOM_START,
        tiles=tiles,
        attr=attr,
    )

    tooltip = None
    if tooltip_fields:
        tooltip = folium.GeoJsonTooltip(fields=tooltip_fields)

    folium.GeoJson(
        base[(tooltip_fields or []) + [base.geometry.name]],
        name=base_name,
        style_function=lambda _: {
            "color": base_color,
            "weight": 1.5,
            "opacity": opacity,
            "fillOpacity": opacity / 2,
        },
        tooltip=tooltip,
    ).add_to(m)

    if overlay is not None:
        overlay = _to_wgs84(overlay)
        folium.GeoJson(
            overlay[[overlay.geometry.name]],
            name=overlay_name,
            style_function=lambda _: {
                "color": overlay_color,
                "weight": 1,
                "opacity": opacity,
            },
        ).add_to(m)

    if show_legend:
        folium.LayerControl(collapsed=False).add_to(m)

    return m


def save_map(m: folium.Map, output_html: Path) -> Path:
    output_html.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(output_html))
    logging.info("Saved interactive map to '%s'.", output_html)
    return output_html


# -------------------------------------------------------------------
# CLI Interface
# -------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Static and interactive maps of Indian states and roads."
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
        help="Save PNG/HTML outputs here instead of displaying them.",
    )
    parser.add_argument(
        "--tiles",
        type=str,
        default=MAP_TILES,
        help=f"Basemap tiles for the interactive map (default: '{MAP_TILES}').",
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
    outdir = args.outdir

    fig, _ = plot_geometries(states, "States and union territories of India")
    finish_figure(fig, outdir / "states.png" if outdir else None)

    fig, _ = plot_geometries(
        roads, "Road network of India", facecolor="none", edgecolor=ROAD_COLOR
    )
    finish_figure(fig, outdir / "roads.png" if outdir else None)

    fig, _ = plot_layers(roads, states)
    finish_figure(fig, outdir / "roads_and_states.png" if outdir else None)

    m = make_interactive_map(
        states,
        roads,
        tiles=args.tiles,
        tooltip_fields=[STATE_NAME_FIELD],
    )
    if outdir:
        save_map(m, outdir / "roads_and_states.html")


if __name__ == "__main__":
    main()
