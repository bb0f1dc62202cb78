"""Define aesthetic mappings and standardized summary column names."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

SOURCE_COLUMN = "dataset"

AESTHETICS: Tuple[str, ...] = ("x", "y", "color", "size", "shape", "facet")


@dataclass(frozen=True)
class AestheticMapping:
    """Map dataset columns onto visual channels.

    Attributes:
        x: Column placed on the horizontal axis.
        y: Column placed on the vertical axis.
        color: Optional column driving marker colour. Categorical columns use a
            qualitative palette; numeric columns use a continuous colormap.
        size: Optional numeric column driving marker area.
        shape: Optional categorical column driving marker symbol.
        facet: Optional categorical column splitting the chart into panels.
    """

    x: str
    y: str
    color: Optional[str] = None
    size: Optional[str] = None
    shape: Optional[str] = None
    facet: Optional[str] = None

    def columns(self) -> Tuple[str, ...]:
        """Return distinct mapped column names in aesthetic order."""
        seen = []
        for aes in AESTHETICS:
            name = getattr(self, aes)
            if name is not None and name not in seen:
                seen.append(name)
        return tuple(seen)

    def with_overrides(self, **kwargs) -> "AestheticMapping":
        unknown = set(kwargs) - set(AESTHETICS)
        if unknown:
            raise ValueError(
                f"Unknown aesthetics: {sorted(unknown)}. Expected one of {AESTHETICS}."
            )
        return replace(self, **kwargs)


@dataclass(frozen=True)
class SummaryColumns:
    """Container for standardized summary-table labels.

    Attributes:
        n: Number of finite observations in the group.
        mean: Arithmetic mean.
        sd: Sample standard deviation (ddof=1); NaN for a single observation.
        se: Standard error of the mean, ``sd / sqrt(n)``.
        ci_half: Half-width of the two-sided Student-t confidence interval.
        ci_low: Lower confidence bound, ``mean - ci_half``.
        ci_high: Upper confidence bound, ``mean + ci_half``.
    """

    n: str = "n"
    mean: str = "mean"
    sd: str = "sd"
    se: str = "se"
    ci_half: str = "ci_half"
    ci_low: str = "ci_low"
    ci_high: str = "ci_high"

    def all(self) -> Tuple[str, ...]:
        return (
            self.n,
            self.mean,
            self.sd,
            self.se,
            self.ci_half,
            self.ci_low,
            self.ci_high,
        )
