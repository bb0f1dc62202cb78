"""Overlay several datasets, or raw data and its summary, on shared axes."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.lines import Line2D

from ..data_processing import combine_datasets, is_categorical, level_order
from ..schema import SOURCE_COLUMN, SummaryColumns
from ..stats.distribution import jitter_offsets
from ..stats.summary import DEFAULT_LEVEL, error_half_width, error_label
from .style import (
    ALPHAS,
    LINE_WIDTHS,
    MARKER_SIZES,
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

OVERLAY_KINDS = ("scatter", "line")


def plot_dataset_overlay(
    datasets: Union[pd.DataFrame, Mapping[str, pd.DataFrame]],
    x: str,
    y: str,
    kind: str = "scatter",
    label_col: str = SOURCE_COLUMN,
    show_trend: bool = False,
    output_dir: str = "output",
    file_stem: str = "dataset_overlay",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Draw several datasets on one set of axes, one colour and marker each.

    Args:
        datasets: Either a mapping of label -> frame, or one combined frame
            carrying the source label in ``label_col``.
        x (str): Column on the horizontal axis (numeric or discrete).
        y (str): Numeric column on the vertical axis.
        kind (str): ``"scatter"`` draws every observation; ``"line"`` joins the
            per-x means of each dataset.
        label_col (str): Source-label column of a combined frame.
        show_trend (bool): For numeric ``x`` and ``kind="scatter"``, add each
            dataset's least-squares line.

    Returns:
        str: Path to the first saved file, or ``""`` when there is no data.

    Raises:
        ValueError: If ``kind`` is not supported.
        KeyError: If a required column is missing.
    """
    if kind not in OVERLAY_KINDS:
        raise ValueError(f"Unsupported overlay kind '{kind}'. Expected one of {OVERLAY_KINDS}.")
    if isinstance(datasets, Mapping):
        if not datasets:
            logger.info("No datasets to overlay for %s; skipping", file_stem)
            return ""
        combined = combine_datasets(datasets, columns=[x, y], label_col=label_col)
    else:
        combined = datasets
    missing = [c for c in (x, y, label_col) if c not in combined.columns]
    if missing:
        raise KeyError(
            f"Frame missing required columns: {missing}. "
            f"Available columns: {list(combined.columns)}"
        )
    if combined.empty:
        logger.info("No rows to overlay for %s; skipping", file_stem)
        return ""

    set_global_style()
    labels = level_order(combined[label_col])
    palette = categorical_palette(labels)
    markers = marker_cycle(labels)
    x_levels: List = []
    positions = None
    if is_categorical(combined[x]):
        x_levels = level_order(combined[x])
        positions = level_positions(x_levels)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    for label in labels:
        part = combined[combined[label_col] == label]
        if part.empty:
            continue
        ys = pd.to_numeric(part[y], errors="coerce").to_numpy(dtype=float)
        if positions is not None:
            xs = np.array([positions[v] for v in part[x]], dtype=float)
        else:
            xs = pd.to_numeric(part[x], errors="coerce").to_numpy(dtype=float)
        finite = np.isfinite(xs) & np.isfinite(ys)
        xs, ys = xs[finite], ys[finite]

        if kind == "scatter":
            ax.scatter(
                xs,
                ys,
                s=MARKER_SIZES["point"],
                marker=markers[label],
                color=palette[label],
                alpha=ALPHAS["point"],
                edgecolors="white",
                linewidths=0.5,
                label=format_level(label),
                zorder=3,
            )
            if show_trend and positions is None and len(np.unique(xs)) >= 2:
                slope, intercept = np.polyfit(xs, ys, 1)
                grid = np.linspace(xs.min(), xs.max(), 100)
                ax.plot(
                    grid,
                    slope * grid + intercept,
                    color=palette[label],
                    linewidth=LINE_WIDTHS["guide"],
                    linestyle="--",
                    zorder=2,
                )
        else:
            means = pd.Series(ys).groupby(xs).mean().sort_index()
            ax.plot(
                means.index.to_numpy(dtype=float),
                means.to_numpy(dtype=float),
                color=palette[label],
                marker=markers[label],
                linewidth=LINE_WIDTHS["series"],
                label=format_level(label),
                zorder=3,
            )

    if positions is not None:
        set_categorical_ticks(ax, x_levels)
    clean_axis(ax, grid_axis="both" if positions is None else "y", categorical_x=positions is not None)
    set_axis_labels(ax, x=x, y=y)
    handles, legend_labels = ax.get_legend_handles_labels()
    if show_trend and kind == "scatter" and positions is None:
        handles.append(Line2D([], [], color="0.35", linestyle="--", linewidth=LINE_WIDTHS["guide"]))
        legend_labels.append("Least-squares line")
    figure_legend(fig, handles, legend_labels, title=label_col)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )


def plot_raw_with_summary(
    frame: pd.DataFrame,
    summary: pd.DataFrame,
    x: str,
    y: str,
    kind: str = "ci",
    level: float = DEFAULT_LEVEL,
    width: float = 0.15,
    seed: int = 0,
    output_dir: str = "output",
    file_stem: str = "raw_with_summary",
    title: Optional[str] = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
) -> str:
    """Layer jittered raw observations with group means and error bars.

    The raw layer comes from ``frame`` and the summary layer from ``summary``
    (output of :func:`plotbook.stats.summary.summarize_groups` grouped by
    ``x``), so the chart combines two datasets on one categorical axis.

    Returns:
        str: Path to the first saved file, or ``""`` when ``frame`` is empty.

    Raises:
        KeyError: If the raw or summary frame lacks required columns.
        ValueError: If ``kind`` is not a supported error definition.
    """
    cols = SummaryColumns()
    missing = [c for c in (x, y) if c not in frame.columns]
    missing += [f"summary.{c}" for c in (x, cols.mean) if c not in summary.columns]
    if missing:
        raise KeyError(f"Missing required columns: {missing}")
    half = error_half_width(summary, kind)
    if frame.empty:
        logger.info("No rows to draw for %s; skipping", file_stem)
        return ""

    set_global_style()
    levels = level_order(frame[x])
    palette = categorical_palette(levels)
    rng = np.random.default_rng(seed)

    fig, ax = plt.subplots(figsize=fig_size("single"))
    for idx, lvl in enumerate(levels):
        ys = pd.to_numeric(frame.loc[frame[x] == lvl, y], errors="coerce").to_numpy(dtype=float)
        ax.scatter(
            idx + jitter_offsets(len(ys), width, rng=rng),
            ys,
            s=MARKER_SIZES["raw"],
            color=palette[lvl],
            alpha=ALPHAS["raw"],
            edgecolors="none",
            zorder=2,
        )

    position = level_positions(levels)
    keep = summary[x].isin(levels).to_numpy()
    xs = np.array([position[v] for v in summary.loc[keep, x]], dtype=float)
    means = pd.to_numeric(summary.loc[keep, cols.mean], errors="coerce").to_numpy(dtype=float)
    errs = np.nan_to_num(half[keep].to_numpy(dtype=float), nan=0.0)
    ax.errorbar(
        xs + width + 0.12,
        means,
        yerr=errs,
        fmt="o",
        color="0.10",
        markersize=7,
        elinewidth=LINE_WIDTHS["errorbar"],
        capsize=4,
        zorder=4,
        label=error_label(kind, level),
    )

    set_categorical_ticks(ax, levels)
    clean_axis(ax, grid_axis="y", categorical_x=True)
    set_axis_labels(ax, x=x, y=y)
    handles, labels = ax.get_legend_handles_labels()
    handles.insert(0, Line2D([], [], marker="o", linestyle="none", color="0.55", alpha=ALPHAS["raw"]))
    labels.insert(0, "Observations")
    figure_legend(fig, handles, labels)

    return finalize_figure(
        fig, title=title, savepath=output_base(output_dir, file_stem), formats=formats
    )
