"""Centralized plotting style, palettes, legends, and save helpers."""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator

logger = logging.getLogger(__name__)

OUTPUT_FORMATS: tuple[str, ...] = ("png", "pdf", "svg")
FIGURE_DPI = 300
_STYLE_STATE = {"initialized": False}


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 12.0
    TITLE_FONTSIZE: float = 14.0
    LABEL_FONTSIZE: float = 12.0
    TICK_FONTSIZE: float = 11.0
    LEGEND_FONTSIZE: float = 10.5
    PANEL_FONTSIZE: float = 13.0
    ANNOTATION_FONTSIZE: float = 10.0
    LINEWIDTH: float = 2.0
    LINEWIDTH_THIN: float = 1.2
    MARKERSIZE: float = 6.0
    ALPHA_POINT: float = 0.70
    ALPHA_RAW: float = 0.45
    ALPHA_FILL: float = 0.35
    GRID_ALPHA: float = 0.20
    FIGSIZE_SINGLE: tuple[float, float] = (7.0, 4.6)
    FIGSIZE_WIDE: tuple[float, float] = (10.5, 4.4)


STYLE = StyleConfig()

FIG_SIZES: dict[str, tuple[float, float]] = {
    "single": STYLE.FIGSIZE_SINGLE,
    "wide": STYLE.FIGSIZE_WIDE,
    "facet_panel": (4.2, 4.0),
    "triptych": (12.6, 4.2),
}

FONT_SIZES = {
    "base": STYLE.BASE_FONTSIZE,
    "title": STYLE.TITLE_FONTSIZE,
    "axis_label": STYLE.LABEL_FONTSIZE,
    "tick": STYLE.TICK_FONTSIZE,
    "legend": STYLE.LEGEND_FONTSIZE,
    "panel": STYLE.PANEL_FONTSIZE,
    "annotation": STYLE.ANNOTATION_FONTSIZE,
}

LINE_WIDTHS = {
    "series": STYLE.LINEWIDTH,
    "errorbar": 1.3,
    "guide": STYLE.LINEWIDTH_THIN,
    "outline": 0.9,
}

MARKER_SIZES = {
    "raw": 22,
    "point": 40,
    "mean": 70,
}

ALPHAS = {
    "point": STYLE.ALPHA_POINT,
    "raw": STYLE.ALPHA_RAW,
    "fill": STYLE.ALPHA_FILL,
}

# Colour-blind safe qualitative palette (Okabe-Ito order).
QUALITATIVE_PALETTE = (
    "#0072B2",
    "#E69F00",
    "#009E73",
    "#D55E00",
    "#CC79A7",
    "#56B4E9",
    "#F0E442",
    "#000000",
)
MARKERS = ("o", "s", "^", "D", "v", "P", "X", "*")
CONTINUOUS_CMAP = "viridis"
NEUTRAL_COLOR = "0.35"


def apply_global_style(font_scale: float = 1.0, context: str = "paper") -> None:
    """Apply global Matplotlib style scaled by context and font scale."""
    ctx_scale = {
        "paper": 1.0,
        "notebook": 1.05,
        "talk": 1.12,
        "poster": 1.22,
    }
    scale = float(font_scale) * ctx_scale.get(context, 1.0)
    plt.rcParams.update(
        {
            "font.size": STYLE.BASE_FONTSIZE * scale,
            "axes.titlesize": STYLE.TITLE_FONTSIZE * scale,
            "figure.titlesize": STYLE.TITLE_FONTSIZE * scale,
            "axes.labelsize": STYLE.LABEL_FONTSIZE * scale,
            "xtick.labelsize": STYLE.TICK_FONTSIZE * scale,
            "ytick.labelsize": STYLE.TICK_FONTSIZE * scale,
            "legend.fontsize": STYLE.LEGEND_FONTSIZE * scale,
            "axes.titlepad": 8,
            "axes.labelpad": 6,
            "axes.linewidth": STYLE.LINEWIDTH_THIN,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "grid.alpha": STYLE.GRID_ALPHA,
            "grid.linestyle": ":",
            "grid.linewidth": 0.7,
            "axes.grid": False,
            "legend.frameon": False,
            "lines.linewidth": STYLE.LINEWIDTH,
            "lines.markersize": STYLE.MARKERSIZE,
            "errorbar.capsize": 3.0,
            "figure.dpi": 120,
            "savefig.dpi": FIGURE_DPI,
            "savefig.bbox": "tight",
            "savefig.pad_inches": 0.12,
        }
    )


def set_global_style() -> None:
    """Apply global plotting style once per process."""
    if not _STYLE_STATE["initialized"]:
        apply_global_style(font_scale=1.0, context="paper")
        _STYLE_STATE["initialized"] = True


def fig_size(kind: str = "single") -> tuple[float, float]:
    """Return standardized figure size tuple for a named figure kind."""
    return FIG_SIZES.get(kind, FIG_SIZES["single"])


def format_level(level) -> str:
    """Render one category level as legend or tick text."""
    if isinstance(level, float) and level.is_integer():
        return str(int(level))
    return str(level)


def categorical_palette(levels: Sequence) -> Dict[object, str]:
    """Assign palette colours to levels in order, cycling when exhausted."""
    return {
        level: QUALITATIVE_PALETTE[idx % len(QUALITATIVE_PALETTE)]
        for idx, level in enumerate(levels)
    }


def marker_cycle(levels: Sequence) -> Dict[object, str]:
    """Assign marker codes to levels in order, cycling when exhausted."""
    return {level: MARKERS[idx % len(MARKERS)] for idx, level in enumerate(levels)}


def panel_tag(index: int) -> str:
    """Return panel label text as (a), (b), ..."""
    return f"({chr(ord('a') + int(index))})"


def add_panel_label(ax: Axes, label: str, *, pad: float = 0.02) -> None:
    """Render a bold panel label in the upper-left corner of ``ax``."""
    ax.text(
        pad,
        1.0 - pad,
        label,
        transform=ax.transAxes,
        ha="left",
        va="top",
        fontsize=FONT_SIZES["panel"],
        fontweight="bold",
        color="0.20",
    )


def clean_axis(
    ax: Axes,
    *,
    grid_axis: str = "y",
    nbins_y: int = 6,
    categorical_x: bool = False,
) -> None:
    """Apply consistent ticks, grid, and spine formatting to one axis."""
    ax.tick_params(axis="both", which="major", labelsize=FONT_SIZES["tick"], width=1.0)
    if not categorical_x:
        ax.xaxis.set_major_locator(MaxNLocator(nbins=6, min_n_ticks=4))
    ax.yaxis.set_major_locator(MaxNLocator(nbins=nbins_y, min_n_ticks=4))
    for side in ("left", "bottom"):
        ax.spines[side].set_linewidth(STYLE.LINEWIDTH_THIN)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(False)
    if grid_axis == "both":
        ax.grid(True, axis="both", alpha=STYLE.GRID_ALPHA, linestyle=":", linewidth=0.7)
    elif grid_axis in {"x", "y"}:
        ax.grid(
            True, axis=grid_axis, alpha=STYLE.GRID_ALPHA, linestyle=":", linewidth=0.7
        )


def set_axis_labels(ax: Axes, x: str | None = None, y: str | None = None) -> None:
    """Apply axis labels with project typography."""
    if x is not None:
        ax.set_xlabel(x, fontsize=FONT_SIZES["axis_label"], labelpad=6)
    if y is not None:
        ax.set_ylabel(y, fontsize=FONT_SIZES["axis_label"], labelpad=6)


def set_categorical_ticks(ax: Axes, levels: Sequence) -> None:
    """Place one tick per level at integer positions ``0..len(levels)-1``."""
    ax.set_xticks(range(len(levels)))
    ax.set_xticklabels([format_level(lvl) for lvl in levels])
    ax.set_xlim(-0.6, len(levels) - 0.4)


def figure_legend(
    fig: Figure,
    handles: Sequence,
    labels: Sequence[str],
    *,
    title: str | None = None,
    loc: str = "center left",
    bbox_to_anchor: tuple[float, float] = (1.0, 0.5),
    ncol: int | None = None,
):
    """Single figure-level legend entrypoint; returns the legend or ``None``.

    Long legends wrap into extra columns when ``ncol`` is not given.
    """
    if not handles:
        return None
    return fig.legend(
        handles,
        labels,
        title=title,
        loc=loc,
        bbox_to_anchor=bbox_to_anchor,
        ncol=legend_columns(len(handles)) if ncol is None else max(1, int(ncol)),
        frameon=False,
        fontsize=FONT_SIZES["legend"],
        title_fontsize=FONT_SIZES["legend"],
        handletextpad=0.6,
    )


def save_figure(
    fig: Figure,
    savepath_base: str | Path,
    formats: Sequence[str] = OUTPUT_FORMATS,
    dpi: int = FIGURE_DPI,
    *,
    bbox_inches: str = "tight",
    pad_inches: float = 0.12,
) -> Path:
    """Save a figure to multiple formats using one extensionless base path.

    Returns the path of the first format written (PNG by default).
    """
    unsupported = [ext for ext in formats if ext not in OUTPUT_FORMATS]
    if unsupported or not formats:
        raise ValueError(
            f"Unsupported output formats {unsupported or list(formats)}. "
            f"Expected a non-empty subset of {OUTPUT_FORMATS}."
        )
    base = Path(savepath_base)
    base.parent.mkdir(parents=True, exist_ok=True)
    # Extra artists (figure legends outside the axes) must be kept by the tight bbox.
    extra = list(fig.legends)
    for ext in formats:
        target = base.with_suffix(f".{ext}")
        fig.savefig(
            str(target),
            dpi=dpi if ext == "png" else None,
            bbox_inches=bbox_inches,
            pad_inches=pad_inches,
            bbox_extra_artists=extra or None,
        )
    logger.info("Saved figure %s (%s)", base.name, ", ".join(formats))
    return base.with_suffix(f".{formats[0]}")


def finalize_figure(
    fig: Figure,
    *,
    title: str | None = None,
    savepath: str | Path | None = None,
    formats: Sequence[str] = OUTPUT_FORMATS,
    tight: bool = True,
    close: bool = True,
) -> str:
    """Apply title and layout, save the figure bundle and return the first path.

    Returns ``""`` when ``savepath`` is ``None``.
    """
    if title:
        fig.suptitle(title, fontsize=FONT_SIZES["title"])
    if tight:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fig.tight_layout(pad=1.2)

    out = ""
    if savepath is not None:
        savebase = Path(savepath)
        if savebase.suffix:
            savebase = savebase.with_suffix("")
        out = str(save_figure(fig, savebase, formats=formats))
    if close:
        plt.close(fig)
    return out


def sanitize_filename(name: str) -> str:
    """Normalize a filename component into a stable, filesystem-safe token."""
    text = re.sub(r"\s+", "_", str(name).strip())
    text = re.sub(r"[^A-Za-z0-9._-]+", "_", text)
    text = re.sub(r"_+", "_", text).strip("._")
    return text or "figure"


def output_base(output_dir: str | Path, file_stem: str) -> Path:
    """Build an extensionless output path inside ``output_dir``."""
    return Path(output_dir) / sanitize_filename(file_stem)


def legend_columns(n_items: int, max_rows: int = 12) -> int:
    """Return the column count keeping a vertical legend at most ``max_rows`` tall."""
    return max(1, -(-int(n_items) // int(max_rows)))


def level_positions(levels: Sequence) -> Dict[object, float]:
    """Map category levels to integer axis positions."""
    return {level: float(idx) for idx, level in enumerate(levels)}


def dodge_offsets(n_series: int, total_width: float = 0.5) -> List[float]:
    """Return symmetric horizontal offsets for ``n_series`` dodged series."""
    if n_series <= 1:
        return [0.0] * max(int(n_series), 0)
    step = float(total_width) / (n_series - 1)
    return [-total_width / 2.0 + idx * step for idx in range(n_series)]
