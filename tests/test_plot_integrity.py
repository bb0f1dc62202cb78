"""Verify plotting functions do not mutate inputs and export consistently."""

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import pandas.testing as pdt
import pytest

from plotbook.plotting import plot_mean_errorbars, plot_violin
from plotbook.plotting.style import (
    add_panel_label,
    dodge_offsets,
    finalize_figure,
    legend_columns,
    panel_tag,
    sanitize_filename,
    save_figure,
)
from plotbook.stats.summary import summarize_groups


def _make_frame():
    """Create a minimal two-group dataset for plotting tests."""
    return pd.DataFrame(
        {
            "treatment": pd.Categorical(
                ["control"] * 4 + ["drug"] * 4, categories=["control", "drug"], ordered=True
            ),
            "response": [4.1, 4.6, 5.0, 4.4, 6.2, 5.8, 6.9, 6.4],
        }
    )


def test_plot_does_not_mutate_inputs(tmp_path):
    """Ensure plot generation leaves the raw and summary frames untouched.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.

    Returns:
        None.
    """
    frame = _make_frame()
    summary = summarize_groups(frame, "response", "treatment")
    frame_snapshot = frame.copy(deep=True)
    summary_snapshot = summary.copy(deep=True)

    plot_violin(frame, "treatment", "response", output_dir=str(tmp_path), formats=("png",))
    plot_mean_errorbars(summary, "treatment", output_dir=str(tmp_path), formats=("png",))

    pdt.assert_frame_equal(frame, frame_snapshot)
    pdt.assert_frame_equal(summary, summary_snapshot)


def test_save_figure_uses_tight_bounding(monkeypatch, tmp_path):
    """Ensure multi-format exports use tight bounding and expected padding."""
    fig, _ = plt.subplots()
    calls = []

    def _fake_savefig(path, **kwargs):
        calls.append((Path(path).suffix, kwargs))

    monkeypatch.setattr(fig, "savefig", _fake_savefig)

    saved = save_figure(fig, tmp_path / "integrity_plot")

    assert str(saved).endswith("integrity_plot.png")
    assert [ext for ext, _ in calls] == [".png", ".pdf", ".svg"]
    for ext, kwargs in calls:
        assert kwargs.get("bbox_inches") == "tight"
        assert kwargs.get("pad_inches") == 0.12
        if ext == ".png":
            assert kwargs.get("dpi") == 300
        else:
            assert kwargs.get("dpi") is None

    plt.close(fig)


def test_save_figure_rejects_unknown_format(tmp_path):
    fig, _ = plt.subplots()
    with pytest.raises(ValueError, match="Unsupported output formats"):
        save_figure(fig, tmp_path / "bad", formats=("png", "tiff"))
    plt.close(fig)


def test_finalize_figure_strips_suffix_and_honours_format_order(tmp_path):
    fig, ax = plt.subplots()
    ax.plot([0, 1], [0, 1])

    out = finalize_figure(fig, savepath=tmp_path / "ordered.svg", formats=("svg", "png"))

    assert out.endswith("ordered.svg")
    assert (tmp_path / "ordered.svg").exists()
    assert (tmp_path / "ordered.png").exists()
    assert not (tmp_path / "ordered.pdf").exists()


def test_finalize_figure_without_savepath_returns_empty():
    fig, _ = plt.subplots()
    assert finalize_figure(fig) == ""


def test_add_panel_label_defaults():
    """Verify panel-label placement and boxless rendering."""
    fig, ax = plt.subplots()
    add_panel_label(ax, panel_tag(0))
    txt = ax.texts[-1]
    assert txt.get_text() == "(a)"
    assert txt.get_position() == (0.02, 0.98)
    assert txt.get_bbox_patch() is None

    add_panel_label(ax, panel_tag(2), pad=0.05)
    assert ax.texts[-1].get_text() == "(c)"
    assert ax.texts[-1].get_position() == pytest.approx((0.05, 0.95))

    plt.close(fig)


def test_layout_helpers():
    assert sanitize_filename(" mean bars / species ") == "mean_bars_species"
    assert sanitize_filename("...") == "figure"
    assert legend_columns(5) == 1
    assert legend_columns(13) == 2
    assert dodge_offsets(1) == [0.0]
    assert dodge_offsets(3, 0.5) == [-0.25, 0.0, 0.25]
