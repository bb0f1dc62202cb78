"""Render per-group distributions: jittered strips, violins and box plots.

Groups sit at integer positions along x in category order. Jitter is drawn
from one seeded generator per figure, so re-rendering the same data gives
identical point placement.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from ..data_processing import level_order
from ..stats.distribution import (
    jitter_offsets,
    quartiles,
    scale_violin_widths,
    violin_profile,
)
from .style import (
    ALPHAS,
    LINE_WIDTHS,
    MARKER_SIZES,
    NEUTRAL_COLOR,
    OUTPUT_FORMATS,
    categorical_palette,
    clean_axis,
    fig_size,
    figure_legend,
    finalize_figure,
    format_level,
    output_base,
    set_axis_labels,
    set_categorical_ticks,
    set_global_style,
)

logger = logging.getLogger(__name__)


def _require_columns(frame: pd.DataFrame, columns: Sequence[Optional[str]]) -> None:
    missing = [c for c in columns if c is not None and c not in frame.columns]
    if missing:
        raise KeyError(
            f"Frame missing required columns: {missing}. "
            f"Available columns: {list(frame.columns)}"
        )


def _group_values(frame: pd.DataFrame, x: str, y: str) -> tuple[list, list]:
    levels = level_order(frame[x])
    values = [
        pd.to_numeric(frame.loc[frame[x] == lvl, y], errors="coerce")
        .dropna()
        .to_numpy(dtype=float)
        for lvl in levels
    ]
    return levels, values


def _level_colors(frame: pd.DataFrame, color: Optional[str], levels: list) -> Dict:
    if color is None:
        return categorical_palette(levels)
    return categorical_palette(level_order(frame[color]))


def _draw_jittered_points(
    ax,
    frame: pd.DataFrame,
    x: str,
    y: str,
    levels: list,
    width: float,
    rng: np.random.Generator,
    color: Optional[str] = None,
    palette: Optional[Dict] = None,
    alpha: float = ALPHAS["point"],
    size: float = MARKER_SIZES["raw"],
) -> None:
    for idx, lvl in enumerate(levels):
        subset = frame[frame[x] == lvl]
        ys = pd.to_numeric(subset[y], errors="coerce").to_numpy(dtype=float)
        xs = idx + jitter_offsets(len(ys), width, rng=rng)
        if palette is None:
            colors = NEUTRAL_COLOR
        elif color is None:
            colors = palette[lvl]
        else:
            colors = [palette[v] for v in subset[color]]
        ax.scatter(
            xs,
            ys,
            s=size,
            c=colors,
            alpha=alpha,
            edgecolors="white",
            linewidths=0.4,
            zorder=3,
        )


def plot_jitter_strip(
    frame: pd.DataFrame,
    x: str,
    y: str,
    color: Optional[str] = None,
    width: float = 0.2,
    seed: int = 0,
    show_mean: bool = True,
    output_dir: str = "output",
    file_stem: str = "jitter_strip",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot every observation of ``y`` per ``x`` level with horizontal jitter.

    Args:
        frame (pandas.DataFrame): Cleaned dataset (not modified).
        x (str): Discrete grouping column.
        y (str): Numeric response column.
        color (str, optional): Second discrete column colouring the points;
            defaults to colouring by ``x``.
        width (float): Maximum jitter offset (group spacing is 1).
        seed (int): Jitter seed.
        show_mean (bool): Draw a horizontal bar at each group mean.

    Returns:
        str: Path to the first saved file, or ``""`` when ``frame`` is empty.
    """
    _require_columns(frame, [x, y, color])
    if frame.empty:
        logger.info("No rows to draw for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels, values = _group_values(frame, x, y)
    palette = _level_colors(frame, color, levels)
    rng = np.random.default_rng(seed)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    _draw_jittered_points(ax, frame, x, y, levels, width, rng, color=color, palette=palette)

    if show_mean:
        for idx, vals in enumerate(values):
            if vals.size == 0:
                continue
            ax.hlines(
                float(np.mean(vals)),
                idx - width - 0.08,
                idx + width + 0.08,
                colors="0.10",
                linewidth=LINE_WIDTHS["series"],
                zorder=4,
            )

    set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=True)
    set_axis_labels(ax, x=x, y=y)

    handles: List = []
    labels: List[str] = []
    if color is not None:
        for lvl, col in palette.items():
            handles.append(Line2D([], [], marker="o", linestyle="none", color=col, markersize=7))
            labels.append(format_level(lvl))
    if show_mean:
        handles.append(Line2D([], [], color="0.10", linewidth=LINE_WIDTHS["series"]))
        labels.append("Group mean")
    figure_legend(fig, handles, labels, title=color)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )


def plot_violin(
    frame: pd.DataFrame,
    x: str,
    y: str,
    scale: str = "area",
    show_points: bool = True,
    width: float = 0.4,
    seed: int = 0,
    bw_method=None,
    trim: bool = True,
    output_dir: str = "output",
    file_stem: str = "violin",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot kernel-density violins of ``y`` per ``x`` level.

    Each violin is mirrored around its group position, with a bar spanning the
    interquartile range and a white dot at the median. ``scale`` follows the
    usual grammar: equal ``area``, area proportional to ``count``, or equal
    maximum ``width``. Groups with fewer than two distinct values are drawn as
    a short horizontal tick.

    Returns:
        str: Path to the first saved file, or ``""`` when ``frame`` is empty.

    Raises:
        KeyError: If ``x`` or ``y`` is missing.
        ValueError: If ``scale`` is not supported.
    """
    _require_columns(frame, [x, y])
    if frame.empty:
        logger.info("No rows to draw for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels, values = _group_values(frame, x, y)
    profiles = [violin_profile(vals, bw_method=bw_method, trim=trim) for vals in values]
    half_widths = scale_violin_widths(profiles, scale=scale, max_width=width)
    palette = categorical_palette(levels)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    for idx, (lvl, vals, profile, hw) in enumerate(zip(levels, values, profiles, half_widths)):
        colour = palette[lvl]
        if hw.size:
            grid = profile["grid"]
            ax.fill_betweenx(
                grid,
                idx - hw,
                idx + hw,
                facecolor=colour,
                edgecolor=colour,
                alpha=ALPHAS["fill"],
                linewidth=LINE_WIDTHS["outline"],
                zorder=1,
            )
        elif vals.size:
            ax.hlines(vals[0], idx - 0.15, idx + 0.15, colors=colour, linewidth=LINE_WIDTHS["series"])

        q1, med, q3 = quartiles(vals)
        if np.isfinite(med):
            ax.vlines(idx, q1, q3, colors="0.15", linewidth=4.0, zorder=4)
            ax.scatter([idx], [med], s=28, color="white", edgecolors="0.15", zorder=5)

    if show_points:
        rng = np.random.default_rng(seed)
        _draw_jittered_points(
            ax,
            frame,
            x,
            y,
            levels,
            width * 0.25,
            rng,
            palette=None,
            alpha=ALPHAS["raw"],
            size=MARKER_SIZES["raw"] * 0.6,
        )

    set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=True)
    set_axis_labels(ax, x=x, y=y)

    handles = [
        Patch(facecolor=NEUTRAL_COLOR, alpha=ALPHAS["fill"], label=f"Kernel density ({scale})"),
        Line2D([], [], color="0.15", linewidth=4.0),
        Line2D([], [], marker="o", linestyle="none", markerfacecolor="white", markeredgecolor="0.15"),
    ]
    labels = [f"Kernel density ({scale})", "Interquartile range", "Median"]
    figure_legend(fig, handles, labels)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )


def plot_box_jitter(
    frame: pd.DataFrame,
    x: str,
    y: str,
    width: float = 0.15,
    seed: int = 0,
    output_dir: str = "output",
    file_stem: str = "box_jitter",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot a box per ``x`` level with the jittered raw observations on top.

    Box outliers are not drawn separately because every observation is
    already shown as a point.

    Returns:
        str: Path to the first saved file, or ``""`` when ``frame`` is empty.
    """
    _require_columns(frame, [x, y])
    if frame.empty:
        logger.info("No rows to draw for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels, values = _group_values(frame, x, y)
    palette = categorical_palette(levels)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    boxes = ax.boxplot(
        values,
        positions=list(range(len(levels))),
        widths=0.55,
        showfliers=False,
        patch_artist=True,
        medianprops={"color": "0.10", "linewidth": LINE_WIDTHS["series"]},
        whiskerprops={"color": "0.30"},
        capprops={"color": "0.30"},
    )
    for patch, lvl in zip(boxes["boxes"], levels):
        patch.set_facecolor(palette[lvl])
        patch.set_alpha(ALPHAS["fill"])
        patch.set_edgecolor("0.30")

    rng = np.random.default_rng(seed)
    _draw_jittered_points(ax, frame, x, y, levels, width, rng, palette=palette)

    set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=True)
    set_axis_labels(ax, x=x, y=y)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )
