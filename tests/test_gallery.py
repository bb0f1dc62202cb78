"""End-to-end tests for the gallery pipeline and command-line entry point."""

import os

import pandas as pd
import pandas.testing as pdt
import pytest

import main as cli
from plotbook.gallery import GalleryConfig, build_gallery, resolve_group_column
from plotbook.schema import AestheticMapping

MAPPING = AestheticMapping(
    x="flipper_length_mm",
    y="body_mass_g",
    color="species",
    size="bill_depth_mm",
    shape="island",
)


def test_build_gallery_renders_every_figure(sample_frame, tmp_path):
    snapshot = sample_frame.copy()
    config = GalleryConfig(mapping=MAPPING, error_kind="ci", formats=("png",))

    paths = build_gallery(sample_frame, config, output_dir=str(tmp_path))

    assert list(paths) == [
        "aesthetic_scatter",
        "jitter_strip",
        "violin",
        "box_jitter",
        "raw_with_summary",
        "dataset_overlay",
        "mean_errorbars",
        "mean_errorbars_dodged",
        "mean_bars",
        "error_kind_comparison",
    ]
    for path in paths.values():
        assert path.endswith(".png")
        assert os.path.exists(path)

    summary = pd.read_csv(tmp_path / "group_summary.csv")
    assert summary["species"].tolist() == ["Adelie", "Gentoo", "Chinstrap"]
    assert summary["n"].tolist() == [8, 8, 6]
    assert "mean ± ci" in summary.columns

    manifest = pd.read_csv(tmp_path / "figure_manifest.csv")
    assert manifest["Figure"].tolist() == list(paths)
    assert (tmp_path / "violin_caption.txt").exists()
    assert (tmp_path / "dataset_overlay_caption.txt").exists()
    pdt.assert_frame_equal(sample_frame, snapshot)


def test_build_gallery_with_overlay_datasets(sample_frame, tmp_path):
    config = GalleryConfig(
        mapping=AestheticMapping(x="flipper_length_mm", y="body_mass_g", color="species"),
        violin_scale="width",
        formats=("png",),
    )
    overlay = {"2008": sample_frame.iloc[:11], "2009": sample_frame.iloc[11:]}

    paths = build_gallery(sample_frame, config, output_dir=str(tmp_path), overlay=overlay)

    assert os.path.exists(paths["dataset_overlay"])
    assert "mean_errorbars_dodged" not in paths
    caption = (tmp_path / "dataset_overlay_caption.txt").read_text(encoding="utf-8")
    assert "(2008, 2009)" in caption


def test_build_gallery_overlay_headers_match_case_insensitively(sample_frame, tmp_path):
    config = GalleryConfig(
        mapping=AestheticMapping(x="flipper_length_mm", y="body_mass_g", color="species"),
        formats=("png",),
    )
    relabelled = sample_frame.rename(
        columns={"flipper_length_mm": "Flipper_Length_mm", "body_mass_g": "Body_Mass_g"}
    )
    overlay = {"2008": relabelled.iloc[:11], "2009": sample_frame.iloc[11:]}

    paths = build_gallery(sample_frame, config, output_dir=str(tmp_path), overlay=overlay)

    assert os.path.exists(paths["dataset_overlay"])


def test_gallery_config_validation():
    with pytest.raises(ValueError, match="Unsupported error kind"):
        GalleryConfig(mapping=MAPPING, error_kind="iqr").validate()
    with pytest.raises(ValueError, match="Unsupported violin scale"):
        GalleryConfig(mapping=MAPPING, violin_scale="height").validate()
    with pytest.raises(ValueError, match="Confidence level"):
        GalleryConfig(mapping=MAPPING, level=95).validate()
    with pytest.raises(ValueError, match="Jitter width"):
        GalleryConfig(mapping=MAPPING, jitter_width=-0.1).validate()


def test_resolve_group_column_prefers_colour_then_x(sample_frame):
    frame = sample_frame.assign(species=pd.Categorical(sample_frame["species"]))
    assert resolve_group_column(frame, GalleryConfig(mapping=MAPPING)) == "species"

    by_x = AestheticMapping(x="island", y="body_mass_g", color="bill_depth_mm")
    assert resolve_group_column(frame, GalleryConfig(mapping=by_x)) == "island"

    numeric_only = AestheticMapping(x="flipper_length_mm", y="body_mass_g")
    with pytest.raises(ValueError, match="No discrete grouping column"):
        resolve_group_column(frame, GalleryConfig(mapping=numeric_only))


def test_cli_main_renders_gallery(sample_frame, tmp_path):
    csv_path = tmp_path / "penguins.csv"
    sample_frame.to_csv(csv_path, index=False)
    outdir = tmp_path / "out"

    code = cli.main(
        [
            "--input", str(csv_path),
            "--x", "species",
            "--y", "body_mass_g",
            "--color", "island",
            "--error", "sd",
            "--formats", "png",
            "--outdir", str(outdir),
            "--log-file", str(tmp_path / "run.log"),
        ]
    )

    assert code == 0
    assert (outdir / "violin.png").exists()
    assert (outdir / "figure_manifest.csv").exists()


def test_cli_main_reports_unusable_response(sample_frame, tmp_path):
    csv_path = tmp_path / "penguins.csv"
    sample_frame.to_csv(csv_path, index=False)

    code = cli.main(
        [
            "--input", str(csv_path),
            "--x", "island",
            "--y", "species",
            "--formats", "png",
            "--outdir", str(tmp_path / "out"),
            "--log-file", str(tmp_path / "run.log"),
        ]
    )

    assert code == 1


def test_parse_overlay_argument():
    assert cli._parse_overlay("2009=data/penguins_2009.csv") == ("2009", "data/penguins_2009.csv")
    assert cli._parse_overlay("data/penguins_2010.csv") == ("penguins_2010", "data/penguins_2010.csv")
