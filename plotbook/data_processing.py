"""
Handles CSV loading, column resolution, cleaning, and dataset combination.
"""

# Cleaning summary: resolve mapped columns against the raw headers, coerce
# numeric channels, normalise category labels, drop incomplete rows, and fix
# category order so every figure and summary table lists groups identically.

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .schema import SOURCE_COLUMN, AestheticMapping

logger = logging.getLogger(__name__)

# Channels that only make sense for one kind of column.
_NUMERIC_AESTHETICS = ("y", "size")
_CATEGORICAL_AESTHETICS = ("shape", "facet")


def load_dataset(filepath):
    """
    Load a tabular dataset from a CSV file.

    Args:
        filepath (str): Path to the CSV file.

    Returns:
        pd.DataFrame: Loaded DataFrame with surrounding whitespace stripped
        from the column headers.
    """
    df = pd.read_csv(filepath)
    df.columns = [str(col).strip() for col in df.columns]
    logger.info("Loaded %s (%d rows, %d columns)", filepath, len(df), df.shape[1])
    return df


def resolve_column(frame: pd.DataFrame, name: str) -> str:
    """Resolve a requested column name against the frame headers.

    An exact match wins; otherwise the comparison ignores case and
    surrounding whitespace.

    Raises:
        KeyError: If no header matches ``name``.
    """
    if name in frame.columns:
        return name
    lookup = {str(col).strip().lower(): col for col in frame.columns}
    found = lookup.get(str(name).strip().lower())
    if found is None:
        raise KeyError(
            f"Column '{name}' not found. Available columns: {list(frame.columns)}"
        )
    return found


def is_categorical(series: pd.Series) -> bool:
    """Return ``True`` when a column should be treated as discrete."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return True
    if pd.api.types.is_bool_dtype(series):
        return True
    return not pd.api.types.is_numeric_dtype(series)


def _looks_numeric(series: pd.Series) -> bool:
    if pd.api.types.is_bool_dtype(series):
        return False
    if pd.api.types.is_numeric_dtype(series):
        return True
    present = series.dropna()
    if present.empty:
        return False
    parsed = pd.to_numeric(present.astype(str).str.strip(), errors="coerce")
    return bool(parsed.notna().all())


def _normalise_labels(series: pd.Series) -> pd.Series:
    text = series.astype(object).map(
        lambda value: value.strip() if isinstance(value, str) else value
    )
    return text.where(text != "")


def level_order(series: pd.Series) -> List:
    """Return the levels of a column in display order.

    Categorical columns keep their category order (restricted to observed
    levels); other columns are sorted.
    """
    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(series.dropna().unique())
        return [lvl for lvl in series.cat.categories if lvl in present]
    return sorted(series.dropna().unique().tolist())


def clean_dataset(
    frame: pd.DataFrame,
    mapping: AestheticMapping,
    numeric: Optional[Iterable[str]] = None,
    categorical: Optional[Iterable[str]] = None,
    extra: Sequence[str] = (),
    orders: Optional[Mapping[str, Sequence]] = None,
) -> pd.DataFrame:
    """Return a tidy copy of ``frame`` restricted to the mapped columns.

    Args:
        frame (pandas.DataFrame): Raw dataset (not modified).
        mapping (AestheticMapping): Aesthetic mapping naming the columns to keep.
        numeric (Iterable[str], optional): Columns forced to numeric.
        categorical (Iterable[str], optional): Columns forced to categorical.
        extra (Sequence[str]): Additional columns to keep and clean.
        orders (Mapping[str, Sequence], optional): Explicit level order for
            categorical columns; levels not listed are appended in
            first-appearance order.

    Returns:
        pandas.DataFrame: Cleaned frame whose columns are named exactly as in
        ``mapping``/``extra``. Categorical columns are ordered
        :class:`pandas.Categorical`.

    Raises:
        KeyError: If a mapped column is missing.
        ValueError: If a column is declared both numeric and categorical, or if
            no complete rows remain.
    """
    requested = list(mapping.columns())
    for name in extra:
        if name not in requested:
            requested.append(name)

    forced_numeric = set(numeric or ())
    forced_categorical = set(categorical or ())
    for aes in _NUMERIC_AESTHETICS:
        col = getattr(mapping, aes)
        if col is not None and col not in forced_categorical:
            forced_numeric.add(col)
    for aes in _CATEGORICAL_AESTHETICS:
        col = getattr(mapping, aes)
        if col is not None and col not in forced_numeric:
            forced_categorical.add(col)
    clash = forced_numeric & forced_categorical
    if clash:
        raise ValueError(
            f"Columns declared both numeric and categorical: {sorted(clash)}"
        )

    resolved = {name: resolve_column(frame, name) for name in requested}
    df = pd.DataFrame({name: frame[src] for name, src in resolved.items()})

    kinds: Dict[str, str] = {}
    for name in requested:
        if name in forced_numeric:
            kinds[name] = "numeric"
        elif name in forced_categorical:
            kinds[name] = "categorical"
        else:
            kinds[name] = "numeric" if _looks_numeric(df[name]) else "categorical"

    for name, kind in kinds.items():
        if kind == "numeric":
            df[name] = pd.to_numeric(df[name], errors="coerce").astype(float)
        elif not isinstance(df[name].dtype, pd.CategoricalDtype):
            df[name] = _normalise_labels(df[name])

    n_raw = len(df)
    df = df.dropna(subset=requested).reset_index(drop=True)
    n_dropped = n_raw - len(df)
    if n_dropped:
        logger.info(
            "Dropped %d of %d rows with missing or non-numeric mapped values",
            n_dropped,
            n_raw,
        )
    if df.empty:
        raise ValueError(
            f"No complete rows remain after cleaning columns {requested}."
        )

    orders = orders or {}
    for name, kind in kinds.items():
        if kind != "categorical":
            continue
        if isinstance(df[name].dtype, pd.CategoricalDtype):
            df[name] = df[name].cat.remove_unused_categories()
            continue
        observed = list(pd.unique(df[name]))
        preferred = [lvl for lvl in orders.get(name, ()) if lvl in observed]
        levels = preferred + [lvl for lvl in observed if lvl not in preferred]
        df[name] = pd.Categorical(df[name], categories=levels, ordered=True)

    return df


def combine_datasets(
    datasets: Mapping[str, pd.DataFrame],
    columns: Optional[Sequence[str]] = None,
    label_col: str = SOURCE_COLUMN,
) -> pd.DataFrame:
    """Stack several datasets into one long frame tagged by source label.

    Args:
        datasets (Mapping[str, pandas.DataFrame]): Label -> frame, in legend order.
        columns (Sequence[str], optional): Columns every frame must provide,
            matched like :func:`resolve_column` and renamed to these names.
            Defaults to the columns shared by all frames.
        label_col (str): Name of the added source-label column.

    Returns:
        pandas.DataFrame: Concatenated frame with an ordered categorical
        ``label_col``.

    Raises:
        ValueError: If ``datasets`` is empty or no shared columns exist.
        KeyError: If a frame lacks one of ``columns``.
    """
    if not datasets:
        raise ValueError("At least one dataset is required.")

    labels = [str(label) for label in datasets]
    if columns is None:
        shared = None
        for frame in datasets.values():
            cols = [c for c in frame.columns if c != label_col]
            shared = cols if shared is None else [c for c in shared if c in cols]
        columns = shared or []
    if not columns:
        raise ValueError("Datasets share no columns to combine.")

    parts = []
    for label, frame in zip(labels, datasets.values()):
        resolved = {}
        missing = []
        for name in columns:
            try:
                resolved[name] = resolve_column(frame, name)
            except KeyError:
                missing.append(name)
        if missing:
            raise KeyError(f"Dataset '{label}' is missing columns: {missing}")
        part = pd.DataFrame({name: frame[src] for name, src in resolved.items()})
        part[label_col] = label
        parts.append(part)

    combined = pd.concat(parts, ignore_index=True)
    combined[label_col] = pd.Categorical(
        combined[label_col], categories=labels, ordered=True
    )
    return combined
