"""Tests for reporting-layer formatting and captions."""

import math

import pandas as pd
import pytest

from plotbook.reporting import (
    add_formatted_summary_column,
    error_decimal_places,
    format_mean_error,
    generate_caption_texts,
    summary_lines,
    write_caption_files,
)
from plotbook.schema import AestheticMapping
from plotbook.stats.summary import summarize_groups


def _summary():
    df = pd.DataFrame(
        {
            "species": pd.Categorical(
                ["Gentoo", "Gentoo", "Gentoo", "Adelie", "Adelie", "Adelie"],
                categories=["Gentoo", "Adelie"],
                ordered=True,
            ),
            "mass": [5.1, 5.3, 5.2, 3.6, 3.8, 3.7],
        }
    )
    return summarize_groups(df, "mass", "species")


def test_error_decimal_places():
    assert error_decimal_places(0.02) == 2
    assert error_decimal_places(0.3) == 1
    assert error_decimal_places(0.15) == 2
    assert error_decimal_places(1.0) == 0
    with pytest.raises(ValueError):
        error_decimal_places(0.0)
    with pytest.raises(ValueError, match="finite positive"):
        error_decimal_places(-1.0)


def test_format_mean_error_matches_error_precision():
    assert format_mean_error(4.5678, 0.02) == "4.57 ± 0.02"
    assert format_mean_error(12.3456, 0.15) == "12.35 ± 0.15"
    assert format_mean_error(3.0, math.nan) == "3"
    assert format_mean_error(math.nan, 0.1) == "n/a"
    assert format_mean_error(2.5, 0.1, digits=3) == "2.500 ± 0.100"


def test_format_mean_error_rounds_large_errors_to_leading_figure():
    assert format_mean_error(3712.4, 312.4) == "3700 ± 300"
    assert format_mean_error(3712.4, 27.0) == "3710 ± 30"
    assert format_mean_error(3712.4, 15.3) == "3712 ± 15"
    assert format_mean_error(4.5, 0.0345) == "4.50 ± 0.03"


def test_add_formatted_summary_column_keeps_input():
    summary = _summary()
    out = add_formatted_summary_column(summary, "sd")

    assert "mean ± sd" not in summary.columns
    assert out["mean ± sd"].tolist() == ["5.2 ± 0.1", "3.7 ± 0.1"]


def test_summary_lines_follow_category_order():
    lines = summary_lines(_summary(), "species", kind="sd")

    assert lines[0] == "Group summary (Mean ± 1 SD):"
    assert lines[1].startswith(" - species=Gentoo: 5.2 ± 0.1")
    assert lines[2].endswith("(n=3)")


def test_generate_caption_texts():
    mapping = AestheticMapping(x="flipper", y="mass", color="species", shape="island")
    captions = generate_caption_texts(
        _summary(), mapping, "species", kind="ci", level=0.9, violin_scale="count"
    )

    assert "dataset_overlay" not in captions
    assert set(captions) == {
        "aesthetic_scatter",
        "jitter_strip",
        "violin",
        "box_jitter",
        "raw_with_summary",
        "mean_errorbars",
        "mean_bars",
        "error_kind_comparison",
    }
    assert "color = species" in captions["aesthetic_scatter"]
    assert "all 6 observations" in captions["aesthetic_scatter"]
    assert "(Gentoo, Adelie; n=3 per group)" in captions["jitter_strip"]
    assert "scaled by count" in captions["violin"]
    assert "90% two-sided Student-t" in captions["mean_errorbars"]

    with_overlay = generate_caption_texts(
        _summary(), mapping, "species", overlay_labels=["2008", "2009"]
    )
    assert "2 datasets (2008, 2009)" in with_overlay["dataset_overlay"]


def test_write_caption_files(tmp_path):
    paths = write_caption_files({"violin": "  Figure 3. Violins.  "}, str(tmp_path))

    assert paths == [str(tmp_path / "violin_caption.txt")]
    assert (tmp_path / "violin_caption.txt").read_text(encoding="utf-8") == "Figure 3. Violins.\n"
