"""Tests for the CSV export layer."""

import pandas as pd

from plotbook.output import save_summary_to_csv, write_manifest
from plotbook.stats.summary import summarize_groups


def test_save_summary_to_csv_adds_formatted_column(tmp_path):
    df = pd.DataFrame({"dose": ["low", "low", "high", "high"], "len": [4.0, 6.0, 20.0, 22.0]})
    summary = summarize_groups(df, "len", "dose")

    path = save_summary_to_csv(summary, output_dir=str(tmp_path), kind="sd")
    written = pd.read_csv(path)

    assert path.endswith("group_summary.csv")
    assert list(written.columns) == list(summary.columns) + ["mean ± sd"]
    assert written["dose"].tolist() == ["high", "low"]
    assert written["n"].tolist() == [2, 2]
    assert "mean ± sd" not in summary.columns


def test_write_manifest_lists_skipped_figures(tmp_path):
    path = write_manifest(
        {"violin": str(tmp_path / "violin.png"), "dataset_overlay": ""},
        output_dir=str(tmp_path),
    )
    manifest = pd.read_csv(path, keep_default_na=False)

    assert manifest.columns.tolist() == ["Figure", "Path"]
    assert manifest["Figure"].tolist() == ["violin", "dataset_overlay"]
    assert manifest["Path"].tolist()[1] == ""
