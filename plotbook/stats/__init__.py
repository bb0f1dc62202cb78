"""
Statistical utilities for the plot gallery.

This subpackage provides the numerical routines behind the summary and
distribution figures. All functions operate on arrays and DataFrames; no
plotting logic is included.

Modules:
    summary:
        Grouped mean, sample standard deviation, standard error and
        Student-t confidence intervals, plus selection of the error-bar
        half-width for one error definition.

    distribution:
        Seeded uniform jitter, Gaussian kernel density profiles for violins,
        violin width scaling, and quartiles.

Design Principle:
    This subpackage has no dependencies on the plotting/ modules.
"""

from .distribution import (
    VIOLIN_SCALES,
    jitter_offsets,
    quartiles,
    scale_violin_widths,
    violin_profile,
)
from .summary import (
    ERROR_KINDS,
    error_half_width,
    error_label,
    standard_error,
    summarize_groups,
    t_critical,
)

__all__ = [
    "ERROR_KINDS",
    "VIOLIN_SCALES",
    "error_half_width",
    "error_label",
    "jitter_offsets",
    "quartiles",
    "scale_violin_widths",
    "standard_error",
    "summarize_groups",
    "t_critical",
    "violin_profile",
]
