"""Render group means with error bars from a precomputed summary table.

All functions accept the output of ``plotbook.stats.summary.summarize_groups``
and perform no statistics themselves beyond selecting the error half-width.
Undefined spreads (single-observation groups) are drawn without a bar.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..data_processing import is_categorical, level_order
from ..schema import SummaryColumns
from ..stats.summary import DEFAULT_LEVEL, ERROR_KINDS, error_half_width, error_label
from .style import (
    ALPHAS,
    LINE_WIDTHS,
    MARKERS,
    OUTPUT_FORMATS,
    QUALITATIVE_PALETTE,
    add_panel_label,
    categorical_palette,
    clean_axis,
    dodge_offsets,
    fig_size,
    figure_legend,
    finalize_figure,
    format_level,
    level_positions,
    marker_cycle,
    output_base,
    panel_tag,
    set_axis_labels,
    set_categorical_ticks,
    set_global_style,
)

logger = logging.getLogger(__name__)


def _check_summary(summary: pd.DataFrame, required: Sequence[str]) -> None:
    missing = [c for c in required if c not in summary.columns]
    if missing:
        raise KeyError(
            f"summary table missing required columns: {missing}. "
            f"Expected columns: {list(required)}"
        )


def _x_layout(summary: pd.DataFrame, x: str):
    """Return (levels, position map, categorical flag) for the x column."""
    levels = level_order(summary[x])
    if is_categorical(summary[x]):
        return levels, level_positions(levels), True
    return levels, {lvl: float(lvl) for lvl in levels}, False


def _dodge_width(levels: List, categorical: bool, n_series: int) -> float:
    if n_series <= 1:
        return 0.0
    if categorical or len(levels) < 2:
        return 0.45
    spacing = float(np.min(np.diff(np.asarray(levels, dtype=float))))
    return 0.3 * spacing


def plot_mean_errorbars(
    summary: pd.DataFrame,
    x: str,
    group: Optional[str] = None,
    kind: str = "se",
    level: float = DEFAULT_LEVEL,
    y_label: str = "Mean",
    join: bool = True,
    output_dir: str = "output",
    file_stem: str = "mean_errorbars",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot group means as points with error bars.

    Args:
        summary (pandas.DataFrame): Summary table grouped by ``x`` (and
            ``group`` when given).
        x (str): Column placed on the horizontal axis. Discrete columns sit at
            integer positions; numeric columns keep their values.
        group (str, optional): Second grouping column; each level becomes a
            separately coloured series dodged horizontally.
        kind (str): Error definition, ``"sd"``, ``"se"`` or ``"ci"``.
        level (float): Confidence level used in the legend for ``"ci"``.
        y_label (str): Vertical axis label.
        join (bool): Join the means of each series with a line.

    Returns:
        str: Path to the first saved file, or ``""`` when ``summary`` is empty.

    Raises:
        KeyError: If required summary columns are missing.
        ValueError: If ``kind`` is not supported.
    """
    cols = SummaryColumns()
    required = [x, cols.mean] + ([group] if group else [])
    _check_summary(summary, required)
    half = error_half_width(summary, kind)
    if summary.empty:
        logger.info("Empty summary for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels, positions, categorical = _x_layout(summary, x)
    series_levels = level_order(summary[group]) if group else [None]
    offsets = dodge_offsets(len(series_levels), _dodge_width(levels, categorical, len(series_levels)))
    palette = categorical_palette(series_levels) if group else {None: QUALITATIVE_PALETTE[0]}
    markers = marker_cycle(series_levels) if group else {None: MARKERS[0]}

    fig, ax = plt.subplots(figsize=fig_size("single"))
    for series, offset in zip(series_levels, offsets):
        mask = np.ones(len(summary), dtype=bool) if series is None else (summary[group] == series).to_numpy()
        part = summary.loc[mask]
        order = np.argsort([positions[v] for v in part[x]], kind="mergesort")
        xs = np.array([positions[v] for v in part[x]], dtype=float)[order] + offset
        means = part[cols.mean].to_numpy(dtype=float)[order]
        errs = np.nan_to_num(half[mask].to_numpy(dtype=float)[order], nan=0.0)
        ax.errorbar(
            xs,
            means,
            yerr=errs,
            fmt=markers[series] + ("-" if join else ""),
            color=palette[series],
            markersize=7,
            linewidth=LINE_WIDTHS["guide"],
            elinewidth=LINE_WIDTHS["errorbar"],
            capsize=4,
            label=format_level(series) if series is not None else error_label(kind, level),
            zorder=3,
        )

    if categorical:
        set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=categorical)
    set_axis_labels(ax, x=x, y=y_label)
    handles, labels = ax.get_legend_handles_labels()
    legend_title = f"{group}\n({error_label(kind, level)})" if group else None
    figure_legend(fig, handles, labels, title=legend_title)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )


def plot_mean_bars(
    summary: pd.DataFrame,
    x: str,
    kind: str = "sd",
    level: float = DEFAULT_LEVEL,
    y_label: str = "Mean",
    annotate_n: bool = True,
    output_dir: str = "output",
    file_stem: str = "mean_bars",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Plot one bar per group mean with an error bar and the group size.

    Returns:
        str: Path to the first saved file, or ``""`` when ``summary`` is empty.
    """
    cols = SummaryColumns()
    _check_summary(summary, [x, cols.mean])
    half = error_half_width(summary, kind)
    if summary.empty:
        logger.info("Empty summary for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels = level_order(summary[x])
    position = level_positions(levels)
    palette = categorical_palette(levels)

    xs = np.array([position[v] for v in summary[x]], dtype=float)
    means = summary[cols.mean].to_numpy(dtype=float)
    errs = np.nan_to_num(half.to_numpy(dtype=float), nan=0.0)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    ax.bar(
        xs,
        means,
        width=0.6,
        color=[palette[v] for v in summary[x]],
        alpha=ALPHAS["point"],
        edgecolor="0.25",
        linewidth=LINE_WIDTHS["outline"],
        zorder=2,
    )
    ax.errorbar(
        xs,
        means,
        yerr=errs,
        fmt="none",
        ecolor="0.10",
        elinewidth=LINE_WIDTHS["errorbar"],
        capsize=5,
        label=error_label(kind, level),
        zorder=3,
    )
    if annotate_n and cols.n in summary.columns:
        for xpos, top, n in zip(xs, means + np.sign(means) * errs, summary[cols.n]):
            ax.annotate(
                f"n={int(n)}",
                (xpos, top),
                textcoords="offset points",
                xytext=(0, 4 if top >= 0 else -12),
                ha="center",
                fontsize=9,
                color="0.25",
            )

    set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=True)
    ax.axhline(0.0, color="0.25", linewidth=0.8)
    set_axis_labels(ax, x=x, y=y_label)
    handles, labels = ax.get_legend_handles_labels()
    figure_legend(fig, handles, labels)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )


def plot_error_kind_comparison(
    summary: pd.DataFrame,
    x: str,
    level: float = DEFAULT_LEVEL,
    y_label: str = "Mean",
    output_dir: str = "output",
    file_stem: str = "error_kind_comparison",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Draw the same means three times, with SD, SE and CI error bars.

    Panels share the y axis so that the relative lengths of the three bars
    can be compared directly.

    Returns:
        str: Path to the first saved file, or ``""`` when ``summary`` is empty.
    """
    cols = SummaryColumns()
    _check_summary(summary, [x, cols.mean, cols.sd, cols.se, cols.ci_half])
    if summary.empty:
        logger.info("Empty summary for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels = level_order(summary[x])
    position = level_positions(levels)
    palette = categorical_palette(levels)
    xs = np.array([position[v] for v in summary[x]], dtype=float)
    means = summary[cols.mean].to_numpy(dtype=float)

    fig, axes = plt.subplots(1, len(ERROR_KINDS), figsize=fig_size("triptych"), sharey=True)
    for idx, (ax, kind) in enumerate(zip(axes, ERROR_KINDS)):
        errs = np.nan_to_num(error_half_width(summary, kind).to_numpy(dtype=float), nan=0.0)
        for xpos, mean, err, lvl in zip(xs, means, errs, summary[x]):
            ax.errorbar(
                [xpos],
                [mean],
                yerr=[err],
                fmt="o",
                color=palette[lvl],
                markersize=7,
                elinewidth=LINE_WIDTHS["errorbar"],
                capsize=4,
            )
        set_categorical_ticks(ax, levels)
        clean_axis(ax, grid_axis="y", categorical_x=True)
        ax.set_title(error_label(kind, level))
        add_panel_label(ax, panel_tag(idx))
        set_axis_labels(ax, x=x, y=y_label if idx == 0 else None)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )
