"""Distribution helpers for jittered strips and violin outlines."""

from __future__ import annotations

import math
import warnings
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import gaussian_kde

VIOLIN_SCALES = ("area", "count", "width")


def jitter_offsets(
    n: int,
    width: float,
    seed: int = 0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Draw uniform horizontal offsets in ``[-width, width]``.

    Args:
        n (int): Number of offsets.
        width (float): Maximum absolute offset in axis units.
        seed (int): Seed used when ``rng`` is not supplied.
        rng (numpy.random.Generator, optional): Generator shared across calls.

    Returns:
        numpy.ndarray: Offsets with shape ``(n,)``.

    Raises:
        ValueError: If ``width`` is negative.
    """
    width = float(width)
    if width < 0:
        raise ValueError(f"Jitter width must be non-negative; got {width}.")
    if width == 0:
        return np.zeros(int(n), dtype=float)
    gen = rng if rng is not None else np.random.default_rng(seed)
    return gen.uniform(-width, width, size=int(n))


def violin_profile(
    values,
    grid_size: int = 128,
    bw_method=None,
    trim: bool = True,
    cut: float = 3.0,
) -> Dict[str, object]:
    """Estimate a Gaussian kernel density for one violin.

    Args:
        values: Array-like observations; non-finite entries are ignored.
        grid_size (int): Number of evaluation points.
        bw_method: Bandwidth rule forwarded to :class:`scipy.stats.gaussian_kde`.
        trim (bool): If ``True`` the grid spans the data range only; otherwise
            it extends ``cut`` bandwidths beyond each end.
        cut (float): Tail extension in bandwidth units when ``trim`` is False.

    Returns:
        dict: ``grid`` and ``density`` arrays and ``n`` (finite observations).
        Both arrays are empty when fewer than two distinct values exist.
    """
    arr = np.asarray(values, dtype=float)
    arr = arr[np.isfinite(arr)]
    n = int(len(arr))
    if len(np.unique(arr)) < 2:
        warnings.warn(
            f"Density estimate needs at least two distinct values; got n={n}.",
            RuntimeWarning,
            stacklevel=2,
        )
        return {"grid": np.array([]), "density": np.array([]), "n": n}

    kde = gaussian_kde(arr, bw_method=bw_method)
    lo, hi = float(np.min(arr)), float(np.max(arr))
    if not trim:
        bandwidth = float(kde.factor * np.std(arr, ddof=1))
        lo -= cut * bandwidth
        hi += cut * bandwidth
    grid = np.linspace(lo, hi, int(grid_size))
    return {"grid": grid, "density": kde(grid), "n": n}


def scale_violin_widths(
    profiles: Sequence[Dict[str, object]],
    scale: str = "area",
    max_width: float = 0.4,
) -> List[np.ndarray]:
    """Convert densities into violin half-widths.

    Args:
        profiles: Outputs of :func:`violin_profile`, one per violin.
        scale (str): ``"area"`` gives every violin the same area, ``"count"``
            makes areas proportional to the number of observations and
            ``"width"`` gives every violin the same maximum width.
        max_width (float): Half-width of the widest violin in axis units.

    Returns:
        list[numpy.ndarray]: Half-width arrays aligned with each profile grid.

    Raises:
        ValueError: If ``scale`` is not supported.
    """
    if scale not in VIOLIN_SCALES:
        raise ValueError(f"Unsupported violin scale '{scale}'. Expected one of {VIOLIN_SCALES}.")

    densities = [np.asarray(p["density"], dtype=float) for p in profiles]
    counts = [int(p.get("n", 0)) for p in profiles]
    present = [d for d in densities if d.size]
    if not present:
        return [np.array([]) for _ in densities]

    if scale == "area":
        top = max(float(d.max()) for d in present)
        return [d / top * max_width if d.size else d for d in densities]
    if scale == "count":
        top = max(float(d.max()) * n for d, n in zip(densities, counts) if d.size)
        return [d * n / top * max_width if d.size else d for d, n in zip(densities, counts)]
    return [d / float(d.max()) * max_width if d.size else d for d in densities]


def quartiles(values) -> Tuple[float, float, float]:
    """Return ``(q1, median, q3)`` of the finite values, or NaNs when empty."""
    arr = np.asarray(values, dtype=float)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return math.nan, math.nan, math.nan
    q1, med, q3 = np.percentile(arr, [25.0, 50.0, 75.0])
    return float(q1), float(med), float(q3)
