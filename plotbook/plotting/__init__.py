"""
Plotting utilities for the statistical visualization gallery.

All plotting functions accept cleaned data or precomputed summary tables and
do not compute statistics beyond kernel density outlines.

Modules:
    aesthetics:
        One scatter chart with colour, size, shape and facet panels mapped
        from data columns, with one legend per aesthetic.

    distributions:
        Jittered strip charts, kernel-density violins and box plots with
        jittered observations.

    overlays:
        Several datasets on shared axes, and raw observations layered with
        their group means and error bars.

    summary_plots:
        Point-range and bar charts of group means with SD, SE or CI error
        bars, and a side-by-side comparison of the three error definitions.

Design Principles:
    1. Functions never mutate their input frames.

    2. Input validation with explicit KeyError for missing required columns.

    3. Every figure is saved as a PNG/PDF/SVG bundle and the PNG path returned.
"""

from .aesthetics import plot_aesthetic_scatter
from .distributions import plot_box_jitter, plot_jitter_strip, plot_violin
from .overlays import plot_dataset_overlay, plot_raw_with_summary
from .style import apply_global_style, set_global_style
from .summary_plots import (
    plot_error_kind_comparison,
    plot_mean_bars,
    plot_mean_errorbars,
)

__all__ = [
    "apply_global_style",
    "plot_aesthetic_scatter",
    "plot_box_jitter",
    "plot_dataset_overlay",
    "plot_error_kind_comparison",
    "plot_jitter_strip",
    "plot_mean_bars",
    "plot_mean_errorbars",
    "plot_raw_with_summary",
    "plot_violin",
    "set_global_style",
]
