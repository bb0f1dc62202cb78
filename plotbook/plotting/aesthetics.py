"""Render one chart whose colour, size, shape and panels are data-driven.

Each aesthetic gets a scale built from the full dataset so that every facet
panel shares the same colours, marker symbols and marker areas, and one legend
(or colour bar) per aesthetic explains the encoding.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import Normalize
from matplotlib.lines import Line2D

from ..data_processing import is_categorical, level_order
from ..schema import AestheticMapping
from .style import (
    ALPHAS,
    CONTINUOUS_CMAP,
    MARKER_SIZES,
    MARKERS,
    NEUTRAL_COLOR,
    OUTPUT_FORMATS,
    categorical_palette,
    clean_axis,
    fig_size,
    figure_legend,
    finalize_figure,
    format_level,
    level_positions,
    marker_cycle,
    output_base,
    set_axis_labels,
    set_categorical_ticks,
    set_global_style,
)

logger = logging.getLogger(__name__)

SIZE_RANGE: Tuple[float, float] = (20.0, 200.0)
MAX_FACET_COLUMNS = 3


def build_color_scale(series: pd.Series) -> Dict[str, object]:
    """Build a colour scale for one column.

    Args:
        series (pandas.Series): Column mapped to colour.

    Returns:
        dict: ``{"kind": "discrete", "levels", "colors"}`` for categorical
        columns, or ``{"kind": "continuous", "norm", "cmap"}`` for numeric ones.
    """
    if is_categorical(series):
        levels = level_order(series)
        return {
            "kind": "discrete",
            "levels": levels,
            "colors": categorical_palette(levels),
        }
    values = pd.to_numeric(series, errors="coerce").to_numpy(dtype=float)
    values = values[np.isfinite(values)]
    vmin = float(values.min()) if values.size else 0.0
    vmax = float(values.max()) if values.size else 1.0
    if vmax == vmin:
        vmax = vmin + 1.0
    return {
        "kind": "continuous",
        "norm": Normalize(vmin=vmin, vmax=vmax),
        "cmap": matplotlib.colormaps[CONTINUOUS_CMAP],
    }


def build_shape_scale(series: pd.Series) -> Dict[object, str]:
    """Map each level of a discrete column to a marker code."""
    levels = level_order(series)
    if len(levels) > len(MARKERS):
        logger.warning(
            "Shape column has %d levels but only %d distinct markers; markers repeat",
            len(levels),
            len(MARKERS),
        )
    return marker_cycle(levels)


def build_size_scale(
    series: pd.Series,
    size_range: Tuple[float, float] = SIZE_RANGE,
    n_breaks: int = 3,
) -> Dict[str, object]:
    """Build a linear value-to-area scale for one numeric column.

    Returns:
        dict: ``vmin``, ``vmax``, ``range`` (marker areas in pt^2) and
        ``breaks``, a list of ``(value, area)`` pairs for the legend.

    Raises:
        ValueError: If the column holds no finite numeric values.
    """
    values = pd.to_numeric(series, errors="coerce").to_numpy(dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        raise ValueError("Size aesthetic needs at least one finite numeric value.")
    scale = {
        "vmin": float(values.min()),
        "vmax": float(values.max()),
        "range": (float(size_range[0]), float(size_range[1])),
    }
    if scale["vmax"] == scale["vmin"]:
        break_values = np.array([scale["vmin"]])
    else:
        break_values = np.linspace(scale["vmin"], scale["vmax"], max(2, int(n_breaks)))
    scale["breaks"] = [(float(v), float(a)) for v, a in zip(break_values, map_sizes(scale, break_values))]
    return scale


def map_sizes(scale: Dict[str, object], values) -> np.ndarray:
    """Convert values to marker areas; a constant column maps to the mid-range."""
    lo_area, hi_area = scale["range"]
    arr = np.asarray(values, dtype=float)
    span = scale["vmax"] - scale["vmin"]
    if span == 0:
        return np.full(arr.shape, 0.5 * (lo_area + hi_area))
    frac = np.clip((arr - scale["vmin"]) / span, 0.0, 1.0)
    return lo_area + frac * (hi_area - lo_area)


def _point_colors(color_scale: Optional[Dict], values: Optional[pd.Series], n: int):
    if color_scale is None or values is None:
        return [NEUTRAL_COLOR] * n
    if color_scale["kind"] == "discrete":
        return [color_scale["colors"][v] for v in values]
    return color_scale["cmap"](color_scale["norm"](values.to_numpy(dtype=float)))


def _legend_handles(
    mapping: AestheticMapping,
    color_scale: Optional[Dict],
    shape_scale: Optional[Dict],
    size_scale: Optional[Dict],
) -> List[Tuple[str, list, List[str]]]:
    sections = []
    if color_scale is not None and color_scale["kind"] == "discrete":
        handles = [
            Line2D([], [], marker="o", linestyle="none", markersize=7, color=color)
            for color in color_scale["colors"].values()
        ]
        labels = [format_level(lvl) for lvl in color_scale["levels"]]
        sections.append((mapping.color, handles, labels))
    if shape_scale is not None:
        handles = [
            Line2D(
                [],
                [],
                marker=marker,
                linestyle="none",
                markersize=7,
                markerfacecolor=NEUTRAL_COLOR,
                markeredgecolor=NEUTRAL_COLOR,
            )
            for marker in shape_scale.values()
        ]
        labels = [format_level(lvl) for lvl in shape_scale]
        sections.append((mapping.shape, handles, labels))
    if size_scale is not None:
        handles = [
            Line2D(
                [],
                [],
                marker="o",
                linestyle="none",
                markersize=math.sqrt(area),
                markerfacecolor="none",
                markeredgecolor=NEUTRAL_COLOR,
            )
            for _, area in size_scale["breaks"]
        ]
        labels = [f"{value:.3g}" for value, _ in size_scale["breaks"]]
        sections.append((mapping.size, handles, labels))
    return sections


def _x_values(frame: pd.DataFrame, x: str, positions: Optional[Dict]) -> np.ndarray:
    if positions is None:
        return frame[x].to_numpy(dtype=float)
    return np.array([positions[v] for v in frame[x]], dtype=float)


def plot_aesthetic_scatter(
    frame: pd.DataFrame,
    mapping: AestheticMapping,
    output_dir: str = "output",
    file_stem: str = "aesthetic_scatter",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot ``mapping.y`` against ``mapping.x`` with every mapped aesthetic.

    Args:
        frame (pandas.DataFrame): Cleaned dataset (not modified).
        mapping (AestheticMapping): Column for each aesthetic. ``color`` may be
            discrete (palette + legend) or numeric (colormap + colour bar);
            ``size`` is numeric; ``shape`` and ``facet`` are discrete.
        output_dir (str): Directory for the figure bundle.
        file_stem (str): Output file name without extension.
        title (str, optional): Figure title.
        formats (Sequence[str]): Output formats.

    Returns:
        str: Path to the first saved file, or ``""`` when ``frame`` is empty.

    Raises:
        KeyError: If a mapped column is missing from ``frame``.
    """
    missing = [c for c in mapping.columns() if c not in frame.columns]
    if missing:
        raise KeyError(
            f"Frame missing mapped columns: {missing}. "
            f"Available columns: {list(frame.columns)}"
        )
    if frame.empty:
        logger.info("No rows to draw for %s; skipping", file_stem)
        return ""

    set_global_style()

    color_scale = build_color_scale(frame[mapping.color]) if mapping.color else None
    shape_scale = build_shape_scale(frame[mapping.shape]) if mapping.shape else None
    size_scale = build_size_scale(frame[mapping.size]) if mapping.size else None
    x_positions = None
    x_levels: List = []
    if is_categorical(frame[mapping.x]):
        x_levels = level_order(frame[mapping.x])
        x_positions = level_positions(x_levels)

    facet_levels: List = level_order(frame[mapping.facet]) if mapping.facet else [None]
    n_panels = len(facet_levels)
    ncols = min(MAX_FACET_COLUMNS, n_panels)
    nrows = int(math.ceil(n_panels / ncols))
    if n_panels == 1:
        figsize = fig_size("single")
    else:
        panel_w, panel_h = fig_size("facet_panel")
        figsize = (panel_w * ncols, panel_h * nrows)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=figsize, sharex=True, sharey=True, squeeze=False
    )
    flat_axes = axes.ravel()

    mappable = None
    for ax, facet_level in zip(flat_axes, facet_levels):
        panel = frame if facet_level is None else frame[frame[mapping.facet] == facet_level]
        shape_groups = (
            [(lvl, panel[panel[mapping.shape] == lvl], marker) for lvl, marker in shape_scale.items()]
            if shape_scale is not None
            else [(None, panel, "o")]
        )
        for _, subset, marker in shape_groups:
            if subset.empty:
                continue
            xs = _x_values(subset, mapping.x, x_positions)
            ys = subset[mapping.y].to_numpy(dtype=float)
            sizes = (
                map_sizes(size_scale, subset[mapping.size])
                if size_scale is not None
                else MARKER_SIZES["point"]
            )
            kwargs = {
                "s": sizes,
                "marker": marker,
                "alpha": ALPHAS["point"],
                "edgecolors": "white",
                "linewidths": 0.5,
            }
            if color_scale is not None and color_scale["kind"] == "continuous":
                mappable = ax.scatter(
                    xs,
                    ys,
                    c=subset[mapping.color].to_numpy(dtype=float),
                    cmap=color_scale["cmap"],
                    norm=color_scale["norm"],
                    **kwargs,
                )
            else:
                colors = _point_colors(
                    color_scale,
                    subset[mapping.color] if mapping.color else None,
                    len(subset),
                )
                ax.scatter(xs, ys, c=colors, **kwargs)

        clean_axis(ax, grid_axis="both", categorical_x=x_positions is not None)
        if x_positions is not None:
            set_categorical_ticks(ax, x_levels)
        if facet_level is not None:
            ax.set_title(f"{mapping.facet} = {format_level(facet_level)}")

    for ax in flat_axes[n_panels:]:
        ax.set_visible(False)
    # Shared x hides tick labels above the last row; an incomplete last row
    # leaves the panel above each empty cell as the bottom of its column.
    for col in range(ncols):
        bottom_row = (n_panels - 1 - col) // ncols
        ax = axes[bottom_row, col]
        ax.tick_params(axis="x", labelbottom=True)
        set_axis_labels(ax, x=mapping.x)
    for ax in axes[:, 0]:
        set_axis_labels(ax, y=mapping.y)

    if mappable is not None:
        cbar = fig.colorbar(mappable, ax=flat_axes[:n_panels].tolist(), pad=0.02)
        cbar.set_label(mapping.color)

    anchor_y = 0.95
    for legend_title, handles, labels in _legend_handles(
        mapping, color_scale, shape_scale, size_scale
    ):
        figure_legend(
            fig,
            handles,
            labels,
            title=legend_title,
            loc="upper left",
            bbox_to_anchor=(1.0 if mappable is None else 1.06, anchor_y),
        )
        anchor_y -= 0.08 + 0.065 * len(labels)

    return finalize_figure(
        fig,
        title=title,
        savepath=output_base(output_dir, file_stem),
        formats=formats,
        tight=mappable is None,
    )
