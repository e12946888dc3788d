"""Command line interface for contact-sheet grid detection and splitting.

Usage:
    python -m grid_splitter.cli detect  <input>...              [--explain] [--json] [--config cfg.json]
    python -m grid_splitter.cli split   <input>... -o <output>  [--rows R --cols C] [--tiling round|absorb] [--overlay]

Subcommands:
  detect   Report the detected rows x cols layout and confidence per image
  split    Detect (or take --rows/--cols) and write one PNG per cell
"""

import argparse
import csv
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from grid_splitter.config import DEFAULT_CONFIG, GridConfig, TilingPolicy, load_config
from grid_splitter.errors import GridSplitError
from grid_splitter.pixel_source import IMAGE_EXTENSIONS, ImageDecodeError, load_image

logger = logging.getLogger("grid_splitter")


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_images(inputs: List[str], recursive: bool = False) -> List[Path]:
    """Collect image paths from file/directory arguments."""
    paths = []
    for inp in inputs:
        p = Path(inp)
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS:
            paths.append(p)
        elif p.is_dir():
            pattern = p.rglob("*") if recursive else p.glob("*")
            paths.extend(sorted(
                c for c in pattern if c.is_file() and c.suffix.lower() in IMAGE_EXTENSIONS
            ))
        else:
            logger.warning("Skipping %s (not an image file or directory)", inp)
    return paths


def _build_config(args) -> GridConfig:
    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    if getattr(args, "tiling", None):
        config = dataclasses.replace(config, tiling=TilingPolicy(args.tiling))
    return config


# ---- Subcommand: detect ----

def cmd_detect(args):
    from grid_splitter.candidates import get_grid_candidates
    from grid_splitter.edges import compute_edge_profiles
    from grid_splitter.selector import detect_grid, evaluate_candidates

    config = _build_config(args)
    image_paths = _gather_images(args.inputs, recursive=args.recursive)
    if not image_paths:
        logger.error("No images found in %s", args.inputs)
        return 1

    reports = []
    for img_path in image_paths:
        try:
            pixels = load_image(img_path)
            grid = detect_grid(pixels, config)
        except (ImageDecodeError, GridSplitError) as e:
            logger.error("%s: %s", img_path.name, e)
            continue

        height, width = pixels.shape[:2]
        report = {
            "image": str(img_path),
            "width": width,
            "height": height,
            "rows": grid.rows,
            "cols": grid.cols,
            "confidence": round(grid.confidence, 4),
        }
        if args.explain:
            candidates = get_grid_candidates(width, height, config)
            evaluations = evaluate_candidates(
                candidates, compute_edge_profiles(pixels), width, height, config,
            )
            report["candidates"] = [e.to_dict() for e in evaluations]
        reports.append(report)

        if not args.json:
            logger.info(
                "%s (%dx%d): %d rows x %d cols, confidence %.3f",
                img_path.name, width, height, grid.rows, grid.cols, grid.confidence,
            )
            for entry in report.get("candidates", []):
                logger.info(
                    "    %dx%d  geometric=%.3f  edge=%.3f  combined=%.3f",
                    entry["rows"], entry["cols"], entry["geometric_score"],
                    entry["edge_score"], entry["combined_score"],
                )

    if args.json:
        print(json.dumps(reports, indent=2))
    return 0 if reports else 1


# ---- Subcommand: split ----

def _write_metrics_csv(records: List[dict], path: Path) -> None:
    fieldnames = ["image", "width", "height", "rows", "cols", "confidence",
                  "mode", "cells", "output_dir"]
    with path.open("w", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(records)
    logger.info("Metrics written to %s", path)


def cmd_split(args):
    from grid_splitter.pixel_source import save_cells
    from grid_splitter.qc_visual import render_grid_overlay
    from grid_splitter.splitter import detect_and_split, split_with_dimensions

    if (args.rows is None) != (args.cols is None):
        logger.error("--rows and --cols must be given together")
        return 1

    config = _build_config(args)
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    image_paths = _gather_images(args.inputs, recursive=args.recursive)
    if not image_paths:
        logger.error("No images found in %s", args.inputs)
        return 1

    manual = args.rows is not None
    records = []
    for img_path in image_paths:
        try:
            pixels = load_image(img_path)
            if manual:
                grid, cells = split_with_dimensions(pixels, args.rows, args.cols, config)
            else:
                grid, cells = detect_and_split(pixels, config)
        except (ImageDecodeError, GridSplitError) as e:
            logger.error("%s: %s", img_path.name, e)
            continue

        cell_dir = output_dir / img_path.stem
        saved = save_cells(cells, cell_dir, prefix=img_path.stem)

        if args.overlay:
            overlay = render_grid_overlay(pixels, grid)
            Image.fromarray(overlay).save(output_dir / f"{img_path.stem}_grid.png")

        logger.info(
            "%s: %dx%d grid (%s, confidence %.3f) -> %d cells in %s",
            img_path.name, grid.rows, grid.cols, "manual" if manual else "detected",
            grid.confidence, len(saved), cell_dir,
        )
        records.append({
            "image": img_path.name,
            "width": pixels.shape[1],
            "height": pixels.shape[0],
            "rows": grid.rows,
            "cols": grid.cols,
            "confidence": round(grid.confidence, 4),
            "mode": "manual" if manual else "detected",
            "cells": len(saved),
            "output_dir": str(cell_dir),
        })

    if records and not args.no_metrics:
        _write_metrics_csv(records, output_dir / "metrics.csv")

    logger.info("Split %d of %d image(s)", len(records), len(image_paths))
    return 0 if records else 1


# ---- Argument parser ----

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grid-splitter",
        description="Detect and split contact-sheet grids into individual images.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # -- detect --
    p_detect = sub.add_parser("detect", help="Report the detected grid for each image")
    p_detect.add_argument("inputs", nargs="+", help="Image files or directories")
    p_detect.add_argument("--config", default=None, help="JSON file of GridConfig overrides")
    p_detect.add_argument("--explain", action="store_true",
                          help="Include per-candidate scores")
    p_detect.add_argument("--json", action="store_true", help="Print results as JSON")
    p_detect.add_argument("--recursive", "-r", action="store_true")
    p_detect.set_defaults(func=cmd_detect)

    # -- split --
    p_split = sub.add_parser("split", help="Split images into cell PNGs")
    p_split.add_argument("inputs", nargs="+", help="Image files or directories")
    p_split.add_argument("-o", "--output", required=True, help="Output directory")
    p_split.add_argument("--rows", type=int, default=None,
                         help="Manual row count (requires --cols)")
    p_split.add_argument("--cols", type=int, default=None,
                         help="Manual column count (requires --rows)")
    p_split.add_argument("--tiling", choices=[t.value for t in TilingPolicy], default=None,
                         help="Cell rounding policy (default: from config, 'round')")
    p_split.add_argument("--config", default=None, help="JSON file of GridConfig overrides")
    p_split.add_argument("--overlay", action="store_true",
                         help="Also write <stem>_grid.png with the grid drawn on")
    p_split.add_argument("--no-metrics", action="store_true",
                         help="Do not write metrics.csv")
    p_split.add_argument("--recursive", "-r", action="store_true")
    p_split.set_defaults(func=cmd_split)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
