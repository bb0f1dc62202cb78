"""Format summary statistics as text for logs, tables and figure captions.

Reported means are rounded to the precision implied by their error bar so a
value never carries more decimals than its uncertainty supports.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .data_processing import level_order
from .schema import AestheticMapping, SummaryColumns
from .stats.summary import DEFAULT_LEVEL, error_half_width, error_label

logger = logging.getLogger(__name__)

_ERROR_DEFINITIONS = {
    "sd": "the sample standard deviation (n-1 denominator)",
    "se": "the standard error of the mean (SD/sqrt(n))",
    "ci": "a two-sided Student-t confidence interval for the mean",
}


def _round_error(half_width: float) -> tuple[float, int]:
    """Round an error-bar half-width to the precision it is reported at.

    A half-width keeps one significant figure, or two when its leading digit
    is 1 (0.14 stays 0.14 instead of collapsing to 0.1).

    Returns:
        tuple[float, int]: Rounded half-width and the ``round()`` position of
        its last kept digit. Negative positions mean tens, hundreds, ...

    Raises:
        ValueError: If ``half_width`` is not a finite positive number.
    """
    value = float(half_width)
    if not np.isfinite(value) or value <= 0:
        raise ValueError(
            f"Cannot round an error bar of half-width {half_width!r}; "
            "expected a finite positive number."
        )
    magnitude = int(np.floor(np.log10(value)))
    kept = 2 if int(value / 10**magnitude) == 1 else 1
    position = kept - 1 - magnitude
    return float(round(value, position)), position


def error_decimal_places(half_width: float) -> int:
    """Return how many decimals a mean reported with ``half_width`` carries.

    Trailing zeros of the rounded half-width do not count, so ``1.0`` gives 0
    and ``0.15`` gives 2.
    """
    rounded, position = _round_error(half_width)
    if position <= 0:
        return 0
    return len(np.format_float_positional(rounded, trim="-").partition(".")[2])


def format_mean_error(mean: float, error: float, digits: Optional[int] = None) -> str:
    """Format ``mean ± error`` with matched precision.

    Args:
        mean (float): Group mean.
        error (float): Error half-width; NaN or zero omits the ``±`` part.
        digits (int, optional): Fixed decimal places overriding the
            error-implied precision.

    Returns:
        str: For example ``"4.57 ± 0.02"``, or ``"3700 ± 300"`` when the error
        is rounded to tens or coarser; ``"n/a"`` when ``mean`` is not finite.
    """
    m = float(mean)
    if not np.isfinite(m):
        return "n/a"
    e = float(error) if error is not None else float("nan")
    has_error = np.isfinite(e) and e > 0
    if digits is None:
        if not has_error:
            return f"{m:.4g}"
        rounded, position = _round_error(e)
        if position < 0:
            return f"{round(m, position):.0f} ± {rounded:.0f}"
        digits = error_decimal_places(e)
    if not has_error:
        return f"{m:.{digits}f}"
    return f"{m:.{digits}f} ± {e:.{digits}f}"


def add_formatted_summary_column(
    summary: pd.DataFrame, kind: str = "se", column: Optional[str] = None
) -> pd.DataFrame:
    """Return a copy of ``summary`` with a ``mean ± error`` text column."""
    cols = SummaryColumns()
    half = error_half_width(summary, kind)
    out = summary.copy()
    out[column or f"mean ± {kind}"] = [
        format_mean_error(m, e) for m, e in zip(out[cols.mean], half)
    ]
    return out


def summary_lines(
    summary: pd.DataFrame,
    by: Union[str, Sequence[str]],
    kind: str = "se",
    level: float = DEFAULT_LEVEL,
) -> List[str]:
    """Render one human-readable line per summary row."""
    cols = SummaryColumns()
    by_cols = [by] if isinstance(by, str) else list(by)
    half = error_half_width(summary, kind)
    lines = [f"Group summary ({error_label(kind, level)}):"]
    if summary.empty:
        lines.append("  (no data)")
        return lines
    for (_, row), err in zip(summary.iterrows(), half):
        key = ", ".join(f"{c}={row[c]}" for c in by_cols)
        lines.append(f" - {key}: {format_mean_error(row[cols.mean], err)} (n={int(row[cols.n])})")
    return lines


def log_summary(
    summary: pd.DataFrame,
    by: Union[str, Sequence[str]],
    kind: str = "se",
    level: float = DEFAULT_LEVEL,
) -> None:
    for line in summary_lines(summary, by, kind=kind, level=level):
        logger.info(line)


def _group_count_text(summary: pd.DataFrame) -> str:
    cols = SummaryColumns()
    if summary.empty or cols.n not in summary.columns:
        return "0"
    counts = summary[cols.n].to_numpy(dtype=int)
    if int(counts.min()) == int(counts.max()):
        return str(int(counts[0]))
    return f"{int(counts.min())}-{int(counts.max())}"


def generate_caption_texts(
    summary: pd.DataFrame,
    mapping: AestheticMapping,
    group_col: str,
    kind: str = "se",
    level: float = DEFAULT_LEVEL,
    violin_scale: str = "area",
    jitter_width: float = 0.2,
    overlay_labels: Optional[Sequence[str]] = None,
    n_rows: Optional[int] = None,
) -> Dict[str, str]:
    """Generate one caption per gallery figure.

    Returns:
        dict[str, str]: Figure key -> caption text.
    """
    cols = SummaryColumns()
    n_txt = _group_count_text(summary)
    levels = level_order(summary[group_col]) if group_col in summary.columns else []
    levels_txt = ", ".join(str(lvl) for lvl in levels)
    total = int(n_rows) if n_rows is not None else int(summary[cols.n].sum()) if cols.n in summary.columns else 0
    err_txt = _ERROR_DEFINITIONS[kind]
    if kind == "ci":
        err_txt = f"a {100.0 * level:g}% two-sided Student-t confidence interval for the mean"

    encodings = [f"x = {mapping.x}", f"y = {mapping.y}"]
    for aes in ("color", "size", "shape", "facet"):
        col = getattr(mapping, aes)
        if col is not None:
            encodings.append(f"{aes} = {col}")

    captions: Dict[str, str] = {}
    captions["aesthetic_scatter"] = (
        f"Figure 1. {mapping.y} against {mapping.x} for all {total} observations, "
        f"with aesthetics mapped as {'; '.join(encodings)}. "
        "Every scale is shared across panels so colours, symbols and marker "
        "areas mean the same thing everywhere in the figure."
    )
    captions["jitter_strip"] = (
        f"Figure 2. Individual {mapping.y} observations for each {group_col} level "
        f"({levels_txt}; n={n_txt} per group). Points are displaced horizontally by "
        f"uniform jitter of at most ±{jitter_width:g} group widths to reduce overplotting; "
        "horizontal bars mark group means."
    )
    captions["violin"] = (
        f"Figure 3. Gaussian kernel density of {mapping.y} by {group_col}, mirrored "
        f"as violins scaled by {violin_scale}. Dark bars span the interquartile range "
        "and white dots mark the median; small points are the jittered observations."
    )
    captions["box_jitter"] = (
        f"Figure 4. Box plots of {mapping.y} by {group_col} (box: quartiles; whiskers: "
        "1.5 IQR) with every observation overlaid."
    )
    captions["raw_with_summary"] = (
        f"Figure 5. Raw {mapping.y} observations (light points) layered with group "
        f"means and error bars showing {err_txt}."
    )
    if overlay_labels:
        captions["dataset_overlay"] = (
            f"Figure 6. {mapping.y} against {mapping.x} for {len(overlay_labels)} datasets "
            f"({', '.join(str(lbl) for lbl in overlay_labels)}) drawn on shared axes, "
            "one colour and marker per dataset, with each dataset's least-squares line."
        )
    captions["mean_errorbars"] = (
        f"Figure 7. Mean {mapping.y} per {group_col}; error bars show {err_txt}. "
        "Single-observation groups are drawn without an error bar."
    )
    captions["mean_bars"] = (
        f"Figure 8. Mean {mapping.y} per {group_col} as bars with error bars showing "
        f"{err_txt}; labels give the group size."
    )
    captions["error_kind_comparison"] = (
        f"Figure 9. The same group means of {mapping.y} with three error definitions: "
        f"(a) ±1 SD describes the spread of observations, (b) ±1 SE the precision "
        f"of the mean, and (c) the {100.0 * level:g}% confidence interval, which is "
        "wider than SE by the Student-t critical value."
    )
    return captions


def write_caption_files(captions: Dict[str, str], output_dir: str) -> List[str]:
    """Write figure caption text files to the target directory."""
    os.makedirs(output_dir, exist_ok=True)
    written: List[str] = []
    for stem, text in captions.items():
        path = os.path.join(output_dir, f"{stem}_caption.txt")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(text.strip() + "\n")
        written.append(path)
    return written
