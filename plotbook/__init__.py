"""
A Python package demonstrating statistical visualization techniques.

Renders a gallery of instructional figures from one cleaned tabular dataset:
multi-aesthetic mapping, jittered and violin distributions, multi-dataset
overlays, and group means with SD, SE or confidence-interval error bars.

Modules:
    - data_processing: Loads, cleans and combines tabular datasets.
    - stats: Grouped summary statistics, jitter and kernel density helpers.
    - plotting: Figure functions for each visualization technique.
    - reporting: Text formatting of summaries and figure captions.
    - output: CSV exports of the summary table and figure manifest.
    - gallery: Renders the complete figure set for one dataset.
"""

__version__ = "1.0.0"

from .data_processing import clean_dataset, combine_datasets, load_dataset
from .gallery import GalleryConfig, build_gallery
from .plotting import (
    plot_aesthetic_scatter,
    plot_box_jitter,
    plot_dataset_overlay,
    plot_error_kind_comparison,
    plot_jitter_strip,
    plot_mean_bars,
    plot_mean_errorbars,
    plot_raw_with_summary,
    plot_violin,
)
from .schema import AestheticMapping, SummaryColumns
from .stats import error_half_width, standard_error, summarize_groups, t_critical

__all__ = [
    # Data processing
    "clean_dataset",
    "combine_datasets",
    "load_dataset",
    # Schema
    "AestheticMapping",
    "SummaryColumns",
    # Statistics
    "error_half_width",
    "standard_error",
    "summarize_groups",
    "t_critical",
    # Plotting
    "plot_aesthetic_scatter",
    "plot_box_jitter",
    "plot_dataset_overlay",
    "plot_error_kind_comparison",
    "plot_jitter_strip",
    "plot_mean_bars",
    "plot_mean_errorbars",
    "plot_raw_with_summary",
    "plot_violin",
    # Gallery
    "GalleryConfig",
    "build_gallery",
]
