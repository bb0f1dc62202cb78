"""Render the complete instructional figure set for one dataset.

Pipeline: clean the mapped columns, summarize the response by group, then
render every technique in turn (multi-aesthetic scatter, jittered strip,
violin, box plot with points, raw data with summary layer, dataset overlay,
error-bar charts) and write captions, the summary table and a manifest.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import pandas as pd

from .data_processing import clean_dataset, combine_datasets, is_categorical, level_order
from .output import save_summary_to_csv, write_manifest
from .plotting.aesthetics import plot_aesthetic_scatter
from .plotting.distributions import plot_box_jitter, plot_jitter_strip, plot_violin
from .plotting.overlays import plot_dataset_overlay, plot_raw_with_summary
from .plotting.style import OUTPUT_FORMATS, format_level
from .plotting.summary_plots import (
    plot_error_kind_comparison,
    plot_mean_bars,
    plot_mean_errorbars,
)
from .reporting import generate_caption_texts, log_summary, write_caption_files
from .schema import SOURCE_COLUMN, AestheticMapping
from .stats.distribution import VIOLIN_SCALES
from .stats.summary import DEFAULT_LEVEL, ERROR_KINDS, summarize_groups

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GalleryConfig:
    """Settings shared by every figure in one gallery run.

    Attributes:
        mapping: Aesthetic mapping for the dataset.
        group_by: Discrete column defining summary groups. Defaults to the
            colour column when it is discrete, else the x column.
        error_kind: Error-bar definition, ``"sd"``, ``"se"`` or ``"ci"``.
        level: Confidence level for ``"ci"`` error bars.
        jitter_width: Maximum jitter offset in group widths.
        seed: Jitter seed.
        violin_scale: ``"area"``, ``"count"`` or ``"width"``.
        formats: Output formats for every figure.
    """

    mapping: AestheticMapping
    group_by: Optional[str] = None
    error_kind: str = "se"
    level: float = DEFAULT_LEVEL
    jitter_width: float = 0.2
    seed: int = 0
    violin_scale: str = "area"
    formats: Sequence[str] = OUTPUT_FORMATS

    def validate(self) -> None:
        if self.error_kind not in ERROR_KINDS:
            raise ValueError(
                f"Unsupported error kind '{self.error_kind}'. Expected one of {ERROR_KINDS}."
            )
        if self.violin_scale not in VIOLIN_SCALES:
            raise ValueError(
                f"Unsupported violin scale '{self.violin_scale}'. Expected one of {VIOLIN_SCALES}."
            )
        if not 0.0 < float(self.level) < 1.0:
            raise ValueError(f"Confidence level must lie in (0, 1); got {self.level}.")
        if float(self.jitter_width) < 0:
            raise ValueError(f"Jitter width must be non-negative; got {self.jitter_width}.")


def resolve_group_column(frame: pd.DataFrame, config: GalleryConfig) -> str:
    """Pick the discrete column that defines summary groups.

    Raises:
        ValueError: If no discrete column is available.
    """
    mapping = config.mapping
    if config.group_by is not None:
        return config.group_by
    for candidate in (mapping.color, mapping.x, mapping.shape):
        if candidate is not None and candidate in frame.columns and is_categorical(frame[candidate]):
            return candidate
    raise ValueError(
        "No discrete grouping column found; pass group_by (e.g. --group-by) naming one."
    )


def _second_factor(mapping: AestheticMapping, frame: pd.DataFrame, group: str) -> Optional[str]:
    for candidate in (mapping.color, mapping.shape):
        if candidate is not None and candidate != group and is_categorical(frame[candidate]):
            return candidate
    return None


def build_gallery(
    frame: pd.DataFrame,
    config: GalleryConfig,
    output_dir: str = "output",
    overlay: Optional[Mapping[str, pd.DataFrame]] = None,
) -> Dict[str, str]:
    """Render the full gallery for ``frame`` and return figure paths.

    Args:
        frame (pandas.DataFrame): Raw dataset (not modified).
        config (GalleryConfig): Mapping and rendering settings.
        output_dir (str): Directory for figures, captions and tables.
        overlay (Mapping[str, pandas.DataFrame], optional): Extra datasets
            drawn together in the overlay figure. When omitted, the cleaned
            dataset is split by its discrete colour column instead.

    Returns:
        dict[str, str]: Figure key -> saved path (``""`` for skipped figures).

    Raises:
        ValueError: For invalid settings or when no usable rows remain.
        KeyError: If a mapped column is missing.
    """
    config.validate()
    mapping = config.mapping
    start = time.time()

    extra = []
    if config.group_by is not None and config.group_by not in mapping.columns():
        extra.append(config.group_by)
    categorical = [config.group_by] if config.group_by is not None else None
    cleaned = clean_dataset(frame, mapping, categorical=categorical, extra=extra)
    group = resolve_group_column(cleaned, config)
    logger.info("Cleaned dataset: %d rows; grouping by '%s'", len(cleaned), group)

    summary = summarize_groups(cleaned, mapping.y, group, level=config.level)
    log_summary(summary, group, kind=config.error_kind, level=config.level)

    common = {"output_dir": output_dir, "formats": config.formats}
    y_mean_label = f"Mean {mapping.y}"
    paths: Dict[str, str] = {}

    paths["aesthetic_scatter"] = plot_aesthetic_scatter(
        cleaned, mapping, file_stem="aesthetic_scatter",
        title="Multi-aesthetic mapping", **common,
    )
    paths["jitter_strip"] = plot_jitter_strip(
        cleaned, group, mapping.y, width=config.jitter_width, seed=config.seed,
        file_stem="jitter_strip", title="Jittered observations", **common,
    )
    paths["violin"] = plot_violin(
        cleaned, group, mapping.y, scale=config.violin_scale, seed=config.seed,
        file_stem="violin", title="Violin distributions", **common,
    )
    paths["box_jitter"] = plot_box_jitter(
        cleaned, group, mapping.y, width=config.jitter_width * 0.75, seed=config.seed,
        file_stem="box_jitter", title="Box plots with observations", **common,
    )
    paths["raw_with_summary"] = plot_raw_with_summary(
        cleaned, summary, group, mapping.y, kind=config.error_kind, level=config.level,
        width=config.jitter_width * 0.75, seed=config.seed,
        file_stem="raw_with_summary", title="Raw data with summary layer", **common,
    )

    overlay_labels = None
    if overlay:
        combined = combine_datasets(overlay, columns=[mapping.x, mapping.y])
        overlay_frame = clean_dataset(
            combined,
            mapping.with_overrides(color=SOURCE_COLUMN, size=None, shape=None, facet=None),
            categorical=[SOURCE_COLUMN],
        )
        overlay_labels = level_order(overlay_frame[SOURCE_COLUMN])
    elif mapping.color is not None and is_categorical(cleaned[mapping.color]):
        overlay_labels = level_order(cleaned[mapping.color])
        overlay_frame = combine_datasets(
            {
                format_level(lvl): cleaned[cleaned[mapping.color] == lvl]
                for lvl in overlay_labels
            },
            columns=[mapping.x, mapping.y],
        )
        overlay_labels = [format_level(lvl) for lvl in overlay_labels]
    if overlay_labels:
        paths["dataset_overlay"] = plot_dataset_overlay(
            overlay_frame, mapping.x, mapping.y, kind="scatter", show_trend=True,
            file_stem="dataset_overlay", title="Multi-dataset overlay", **common,
        )

    paths["mean_errorbars"] = plot_mean_errorbars(
        summary, group, kind=config.error_kind, level=config.level, y_label=y_mean_label,
        file_stem="mean_errorbars", title="Group means with error bars", **common,
    )
    second = _second_factor(mapping, cleaned, group)
    if second is not None:
        by_two = summarize_groups(cleaned, mapping.y, [group, second], level=config.level)
        paths["mean_errorbars_dodged"] = plot_mean_errorbars(
            by_two, group, group=second, kind=config.error_kind, level=config.level,
            y_label=y_mean_label, file_stem="mean_errorbars_dodged",
            title=f"Group means by {second}", **common,
        )
    paths["mean_bars"] = plot_mean_bars(
        summary, group, kind=config.error_kind, level=config.level, y_label=y_mean_label,
        file_stem="mean_bars", title="Group means as bars", **common,
    )
    paths["error_kind_comparison"] = plot_error_kind_comparison(
        summary, group, level=config.level, y_label=y_mean_label,
        file_stem="error_kind_comparison", title="SD vs SE vs CI", **common,
    )

    captions = generate_caption_texts(
        summary,
        mapping,
        group,
        kind=config.error_kind,
        level=config.level,
        violin_scale=config.violin_scale,
        jitter_width=config.jitter_width,
        overlay_labels=overlay_labels,
        n_rows=len(cleaned),
    )
    write_caption_files(captions, output_dir)
    save_summary_to_csv(summary, output_dir, kind=config.error_kind)
    write_manifest(paths, output_dir)

    logger.info(
        "Rendered %d figures in %.2f seconds",
        sum(1 for p in paths.values() if p),
        time.time() - start,
    )
    return paths
