"""Write summary tables and the figure manifest to reproducible CSV files.

This module is the output boundary between in-memory summaries and the
tabular artifacts that accompany the rendered figures.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

import pandas as pd

from .reporting import add_formatted_summary_column

logger = logging.getLogger(__name__)


def save_summary_to_csv(
    summary: pd.DataFrame, output_dir: str = "output", kind: str = "se"
) -> str:
    """Save the grouped summary with a formatted ``mean ± error`` column.

    Args:
        summary (pandas.DataFrame): Output of ``summarize_groups``.
        output_dir (str): Directory where ``group_summary.csv`` is written.
        kind (str): Error definition used for the formatted column.

    Returns:
        str: Path to ``group_summary.csv``.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "group_summary.csv")
    add_formatted_summary_column(summary, kind).to_csv(path, index=False)
    logger.info("Saved group summary to %s", path)
    return path


def write_manifest(paths: Mapping[str, str], output_dir: str = "output") -> str:
    """Write ``figure_manifest.csv`` listing each figure key and its file.

    Figures that were skipped (empty path) are listed with an empty path.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "figure_manifest.csv")
    pd.DataFrame(
        {"Figure": list(paths.keys()), "Path": list(paths.values())},
        columns=["Figure", "Path"],
    ).to_csv(path, index=False)
    logger.info("Saved figure manifest to %s", path)
    return path
