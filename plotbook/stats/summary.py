"""Provide grouped summary statistics used for error-bar figures.

This module supports:
- sample standard deviation and standard error of the mean,
- two-sided Student-t confidence intervals for the mean, and
- selection of the half-width that an error bar should represent.
"""

from __future__ import annotations

import logging
import math
from typing import List, Sequence, Union

import numpy as np
import pandas as pd
from scipy.stats import t as student_t

from ..schema import SummaryColumns

logger = logging.getLogger(__name__)

ERROR_KINDS = ("sd", "se", "ci")
DEFAULT_LEVEL = 0.95


def _finite(values) -> np.ndarray:
    arr = pd.to_numeric(pd.Series(values), errors="coerce").to_numpy(dtype=float)
    return arr[np.isfinite(arr)]


def _check_level(level: float) -> float:
    level = float(level)
    if not 0.0 < level < 1.0:
        raise ValueError(f"Confidence level must lie in (0, 1); got {level}.")
    return level


def standard_error(values) -> float:
    """Return the standard error of the mean, ``sd / sqrt(n)``.

    Args:
        values: Array-like of observations; non-finite entries are ignored.

    Returns:
        float: Standard error using the sample SD (ddof=1), or NaN when fewer
        than two finite observations are available.
    """
    arr = _finite(values)
    if len(arr) < 2:
        return math.nan
    return float(np.std(arr, ddof=1) / np.sqrt(len(arr)))


def t_critical(n: int, level: float = DEFAULT_LEVEL) -> float:
    """Return the two-sided Student-t critical value for a mean of ``n`` points.

    Args:
        n (int): Number of observations (degrees of freedom are ``n - 1``).
        level (float): Confidence level in (0, 1).

    Returns:
        float: Quantile ``t_{(1+level)/2, n-1}``, or NaN when ``n < 2``.

    Raises:
        ValueError: If ``level`` lies outside (0, 1).
    """
    level = _check_level(level)
    if int(n) < 2:
        return math.nan
    return float(student_t.ppf(0.5 + level / 2.0, int(n) - 1))


def summarize_groups(
    frame: pd.DataFrame,
    value: str,
    by: Union[str, Sequence[str]],
    level: float = DEFAULT_LEVEL,
) -> pd.DataFrame:
    """Summarize ``value`` within each group defined by ``by``.

    Args:
        frame (pandas.DataFrame): Tidy dataset.
        value (str): Numeric column to summarize.
        by (str | Sequence[str]): One or more grouping columns.
        level (float): Confidence level for ``ci_*`` columns.

    Returns:
        pandas.DataFrame: One row per observed group, in group order, with the
        grouping columns followed by ``n``, ``mean``, ``sd``, ``se``,
        ``ci_half``, ``ci_low`` and ``ci_high``. Categorical grouping columns
        keep their categories and order.

    Raises:
        KeyError: If ``value`` or a grouping column is missing.
        ValueError: If ``level`` lies outside (0, 1).

    Note:
        Spread columns are NaN for single-observation groups; groups with no
        finite observations are skipped.
    """
    level = _check_level(level)
    by_cols: List[str] = [by] if isinstance(by, str) else list(by)
    missing = [c for c in [value, *by_cols] if c not in frame.columns]
    if missing:
        raise KeyError(
            f"Columns missing for summary: {missing}. "
            f"Available columns: {list(frame.columns)}"
        )

    cols = SummaryColumns()
    rows = []
    grouped = frame.groupby(by_cols, observed=True, sort=True)
    for key, group in grouped:
        key = key if isinstance(key, tuple) else (key,)
        vals = _finite(group[value])
        n = int(len(vals))
        if n == 0:
            logger.info("Skipping group %s: no finite '%s' values", key, value)
            continue
        mean = float(np.mean(vals))
        sd = float(np.std(vals, ddof=1)) if n >= 2 else math.nan
        se = sd / math.sqrt(n) if n >= 2 else math.nan
        ci_half = t_critical(n, level) * se if n >= 2 else math.nan

        row = dict(zip(by_cols, key))
        row.update(
            {
                cols.n: n,
                cols.mean: mean,
                cols.sd: sd,
                cols.se: se,
                cols.ci_half: ci_half,
                cols.ci_low: mean - ci_half,
                cols.ci_high: mean + ci_half,
            }
        )
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=[*by_cols, *cols.all()])

    summary = pd.DataFrame.from_records(rows, columns=[*by_cols, *cols.all()])
    summary[cols.n] = summary[cols.n].astype(int)
    for col in by_cols:
        dtype = frame[col].dtype
        if isinstance(dtype, pd.CategoricalDtype):
            summary[col] = pd.Categorical(
                summary[col], categories=dtype.categories, ordered=dtype.ordered
            )
    return summary.reset_index(drop=True)


def error_half_width(summary: pd.DataFrame, kind: str = "se") -> pd.Series:
    """Return the error-bar half-width column for one error definition.

    Args:
        summary (pandas.DataFrame): Output of :func:`summarize_groups`.
        kind (str): ``"sd"``, ``"se"`` or ``"ci"``.

    Returns:
        pandas.Series: Half-widths aligned with ``summary``.

    Raises:
        ValueError: If ``kind`` is not a supported error definition.
        KeyError: If the matching column is absent.
    """
    if kind not in ERROR_KINDS:
        raise ValueError(f"Unsupported error kind '{kind}'. Expected one of {ERROR_KINDS}.")
    cols = SummaryColumns()
    column = {"sd": cols.sd, "se": cols.se, "ci": cols.ci_half}[kind]
    if column not in summary.columns:
        raise KeyError(f"Summary table has no '{column}' column.")
    return pd.to_numeric(summary[column], errors="coerce").astype(float)


def error_label(kind: str, level: float = DEFAULT_LEVEL) -> str:
    """Return legend text describing one error definition."""
    if kind == "sd":
        return "Mean ± 1 SD"
    if kind == "se":
        return "Mean ± 1 SE"
    if kind == "ci":
        return f"Mean with {100.0 * _check_level(level):g}% CI"
    raise ValueError(f"Unsupported error kind '{kind}'. Expected one of {ERROR_KINDS}.")
