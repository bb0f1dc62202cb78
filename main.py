#!/usr/bin/env python3
"""
Main script for rendering the statistical visualization gallery.
"""

# Pipeline overview (README-style):
# 1) Load one CSV (plus optional overlay CSVs) and resolve the mapped columns.
# 2) Clean: coerce numeric channels, normalise category labels, drop
#    incomplete rows, fix category order.
# 3) Summarize the response per group: n, mean, SD, SE, Student-t CI.
# 4) Render the figure set: multi-aesthetic scatter, jittered strip, violin,
#    box plot with points, raw data with summary layer, dataset overlay,
#    error-bar charts and an SD/SE/CI comparison.
# 5) Export captions, the group summary table and a figure manifest.

import argparse
import logging
import os
import sys
import time
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from plotbook.data_processing import load_dataset
from plotbook.gallery import GalleryConfig, build_gallery
from plotbook.plotting.style import OUTPUT_FORMATS
from plotbook.schema import AestheticMapping
from plotbook.stats.distribution import VIOLIN_SCALES
from plotbook.stats.summary import ERROR_KINDS

DEFAULT_OUTPUT_DIR = "output"


def _configure_logging(log_path: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_path, mode="w"),
        ],
    )


def _parse_overlay(arg: str) -> tuple[str, str]:
    """Split ``label=path`` (or a bare path labelled by its file stem)."""
    if "=" in arg:
        label, path = arg.split("=", 1)
        return label.strip(), path.strip()
    return Path(arg).stem, arg


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build command-line parser for gallery rendering."""
    parser = argparse.ArgumentParser(
        description="Render statistical visualization examples from one CSV dataset."
    )
    parser.add_argument("--input", required=True, help="Path to input CSV file.")
    parser.add_argument("--x", required=True, help="Column mapped to the x axis.")
    parser.add_argument("--y", required=True, help="Numeric column mapped to the y axis.")
    parser.add_argument("--color", default=None, help="Column mapped to colour.")
    parser.add_argument("--size", default=None, help="Numeric column mapped to marker area.")
    parser.add_argument("--shape", default=None, help="Discrete column mapped to marker shape.")
    parser.add_argument("--facet", default=None, help="Discrete column splitting panels.")
    parser.add_argument(
        "--group-by",
        default=None,
        help="Discrete column defining summary groups (default: colour, then x).",
    )
    parser.add_argument(
        "--overlay",
        action="append",
        default=[],
        metavar="LABEL=PATH",
        help="Extra dataset drawn in the overlay figure; repeat for several.",
    )
    parser.add_argument(
        "--error",
        choices=ERROR_KINDS,
        default="se",
        help="Error-bar definition (default: se).",
    )
    parser.add_argument(
        "--level", type=float, default=0.95, help="Confidence level for --error ci."
    )
    parser.add_argument(
        "--jitter", type=float, default=0.2, help="Maximum jitter offset in group widths."
    )
    parser.add_argument("--seed", type=int, default=0, help="Jitter seed.")
    parser.add_argument(
        "--violin-scale",
        choices=VIOLIN_SCALES,
        default="area",
        help="Violin width scaling (default: area).",
    )
    parser.add_argument(
        "--formats",
        nargs="+",
        choices=OUTPUT_FORMATS,
        default=list(OUTPUT_FORMATS),
        help="Figure output formats.",
    )
    parser.add_argument(
        "--outdir",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--log-file", default="plotbook.log", help="Log file path (default: plotbook.log)."
    )
    return parser


def main(argv=None):
    """Main execution function with step-level logging."""
    args = _build_arg_parser().parse_args(argv)
    _configure_logging(args.log_file)

    start_time = time.time()
    logging.info("Initializing visualization gallery pipeline")

    frame = load_dataset(args.input)
    overlay = {}
    for arg in args.overlay:
        label, path = _parse_overlay(arg)
        overlay[label] = load_dataset(path)
    if overlay:
        logging.info("Configured %d overlay datasets", len(overlay))

    config = GalleryConfig(
        mapping=AestheticMapping(
            x=args.x,
            y=args.y,
            color=args.color,
            size=args.size,
            shape=args.shape,
            facet=args.facet,
        ),
        group_by=args.group_by,
        error_kind=args.error,
        level=args.level,
        jitter_width=args.jitter,
        seed=args.seed,
        violin_scale=args.violin_scale,
        formats=tuple(args.formats),
    )

    os.makedirs(args.outdir, exist_ok=True)
    logging.info("Output directory ensured: %s", args.outdir)

    try:
        paths = build_gallery(frame, config, output_dir=args.outdir, overlay=overlay or None)
    except (KeyError, ValueError) as exc:
        logging.error("Gallery rendering failed: %s", exc)
        return 1

    logging.info("Generated output files:")
    for key, path in paths.items():
        if path:
            logging.info("  - %s: %s", key, path)
        else:
            logging.info("  - %s: skipped", key)
    logging.info("Total execution time: %.2f seconds", time.time() - start_time)
    logging.info("Analysis pipeline completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
