#!/usr/bin/env python3
"""
c64_map.cli
Convert images to the 16-colour C64 palette at 320 pixels wide.

Usage:
  c64-map INPUT [--outdir DIR] --metric [rgb|cie76|cie94|cie2000|all] --jobs N --workers N --debug

Metrics:
  rgb     : squared distance of raw 8-bit channels.
  cie76   : squared Euclidean distance in CIE Lab.
  cie94   : CIE94 weighted Lab distance.
  cie2000 : CIEDE2000 with hue rotation.
  all     : one output per metric (default), computed in parallel.

Input:
  Any Pillow-readable image, or a folder of them. Files named c64_* are skipped.

Output:
  c64_<stem>_<METRIC>.png next to INPUT, or in --outdir.

Notes:
  A failing image is reported and skipped; the exit status is 1 if any failed.
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .constants import IMAGE_SUFFIXES, OUTPUT_PREFIX
from .core_types import METRICS, Metric
from .colour_distance import parse_metric
from .errors import ConversionError
from .image_io import load_image_rgba, save_image_rgba
from .palette_data import Palette, c64_palette
from .quantize import convert_all, target_size
from .utils import (
    capture_output,
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    warn,
)

# CLI args & small helpers


def _default_workers() -> int:
    """Leave a few cores free for the system; returns a sensible worker count."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder
        outdir: optional Path for outputs
        metric: "rgb" | "cie76" | "cie94" | "cie2000" | "all"
        jobs: parallel file workers
        workers: threads per image (metric tasks, Lab conversion)
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="c64-map",
        description="Convert image(s) to the C64 16-colour palette.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--metric",
        type=str.lower,
        choices=list(METRICS) + ["all"],
        default="all",
        help="Colour distance metric.",
    )
    parser.add_argument(
        "--jobs", type=int, default=1, help="Files processed in parallel"
    )
    parser.add_argument(
        "--workers", type=int, default=_default_workers(), help="Internal workers"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def resolve_metrics(choice: str) -> Tuple[Metric, ...]:
    """'all' -> every metric, else the single parsed metric."""
    if choice == "all":
        return METRICS
    return (parse_metric(choice),)


def output_path(src_path: Path, metric: Metric, outdir: Optional[Path]) -> Path:
    """c64_<stem>_<METRIC>.png next to the source or in outdir."""
    name = f"{OUTPUT_PREFIX}{src_path.stem}_{metric.upper()}.png"
    return (outdir / name) if outdir else src_path.with_name(name)


def is_output_artifact(path: Path) -> bool:
    return path.stem.startswith(OUTPUT_PREFIX)


def list_images(folder: Path) -> List[Path]:
    """Image files in folder (by suffix), sorted by name, outputs excluded."""
    files = [
        p
        for p in folder.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_SUFFIXES
        and not is_output_artifact(p)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Per-file processing


def _process_single_image(
    src_path: Path,
    outdir: Optional[Path],
    metrics: Sequence[Metric],
    workers: int,
    debug: bool,
    palette: Palette,
) -> List[Path]:
    """
    Process a single image path end-to-end:
      load -> convert per metric (parallel) -> save -> report.
    """
    t_start = time.perf_counter()
    print_banner(src_path.name)

    grid = load_image_rgba(src_path)
    height, width = int(grid.shape[0]), int(grid.shape[1])
    t_loaded = time.perf_counter()
    target_w, target_h = target_size(width, height)

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{width}x{height}"),
                    ("Target", f"{target_w}x{target_h}"),
                    ("Metrics", ",".join(metrics)),
                    ("Workers", workers),
                ]
            )
        )

    outputs = convert_all(grid, metrics, palette=palette, workers=workers)
    t_converted = time.perf_counter()

    if outdir is not None:
        outdir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    name_of = palette.name_of_hex
    for metric in metrics:
        out_grid = outputs[metric]
        dst = save_image_rgba(output_path(src_path, metric, outdir), out_grid)
        written.append(dst)
        log(f"Wrote {dst.name} | size={target_w}x{target_h} | metric={metric}")
        if debug:
            for hex_code, name, count in colour_usage_report(out_grid, name_of):
                debug_log(f"  {hex_code}  {name}: {count:,}")
    t_saved = time.perf_counter()

    if debug:
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_loaded - t_start)}, "
            f"convert={format_seconds_compact(t_converted - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_converted)})"
        )
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")
    return written


def _process_one_live(
    path: Path,
    outdir: Optional[Path],
    metrics: Sequence[Metric],
    workers: int,
    debug: bool,
    palette: Palette,
) -> bool:
    """Process a single file and stream logs to stdout. Returns success."""
    try:
        _process_single_image(path, outdir, metrics, workers, debug, palette)
    except (ConversionError, OSError) as exc:
        error(f"{path.name}: {exc}")
        return False
    return True


def _process_one_captured(
    path: Path,
    outdir: Optional[Path],
    metrics: Sequence[Metric],
    workers: int,
    debug: bool,
    palette: Palette,
) -> Tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Useful for concurrent execution where output should be printed in order.
    """
    with capture_output() as buf:
        ok = _process_one_live(path, outdir, metrics, workers, debug, palette)
    return buf.getvalue(), ok


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering. Returns the exit status.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)
    metrics = resolve_metrics(args.metric)
    workers = max(1, int(args.workers))
    jobs = max(1, int(args.jobs))

    print_config_line(
        "run",
        [
            ("CPU cores", os.cpu_count() or 1),
            ("Workers", workers),
            ("Jobs", jobs),
            ("Metrics", args.metric),
        ],
        debug=False,
    )

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    palette = c64_palette()

    if not src.is_dir():
        ok = _process_one_live(src, args.outdir, metrics, workers, args.debug, palette)
        return 0 if ok else 1

    files = list_images(src)
    if args.debug:
        debug_log(key_value_pairs_to_string([("Images", len(files)), ("Jobs", jobs)]))
    if not files:
        warn(f"no images in {src}")
        return 0

    if jobs == 1:
        results = [
            _process_one_live(p, args.outdir, metrics, workers, args.debug, palette)
            for p in files
        ]
    else:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            futures = [
                ex.submit(
                    _process_one_captured,
                    p,
                    args.outdir,
                    metrics,
                    workers,
                    args.debug,
                    palette,
                )
                for p in files
            ]
            blocks = [f.result() for f in futures]
        print("".join(text for text, _ in blocks), end="", flush=True)
        results = [ok for _, ok in blocks]

    failed = results.count(False)
    if failed:
        warn(f"{failed} of {len(results)} image(s) failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
