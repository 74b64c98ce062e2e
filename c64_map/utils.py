# c64_map/utils.py
from __future__ import annotations

"""
Shared utilities for c64_map.

Includes time formatting, the palette usage report, and tidy console logging.
Log lines go to stdout unless the calling thread is inside capture_output().
"""

import io
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Tuple

import numpy as np

from .core_types import NameOf, PixelGrid


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


def format_total_duration_compact(seconds: float) -> str:
    """Compact total duration: 'Mm Ss', 'Ss.s', or 'ms'."""
    if seconds >= 60.0:
        minutes = int(seconds // 60)
        rem = int(round(seconds - 60 * minutes))
        return f"{minutes}m {rem}s"
    if seconds >= 1.0:
        return f"{seconds:.1f}s"
    return f"{seconds * 1000.0:.1f}ms"


# Reports


def colour_usage_report(
    grid: PixelGrid, name_of: NameOf
) -> List[Tuple[str, str, int]]:
    """
    Count output pixels per colour.

    Returns a list of (hex, name, count) sorted by count descending.
    """
    flat = np.asarray(grid)[..., :3].reshape(-1, 3)
    if flat.shape[0] == 0:
        return []
    uniques, counts = np.unique(flat, axis=0, return_counts=True)
    report: List[Tuple[str, str, int]] = []
    for rgb_row, count in sorted(zip(uniques, counts), key=lambda x: -int(x[1])):
        hex_str = f"#{int(rgb_row[0]):02x}{int(rgb_row[1]):02x}{int(rgb_row[2]):02x}"
        report.append((hex_str, name_of.get(hex_str, "?"), int(count)))
    return report


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """
    Enable line-buffered stdout when supported.
    Helps live progress printing in terminals that expose .reconfigure().
    """
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        try:
            reconfig(line_buffering=True, write_through=True)
        except (OSError, ValueError):
            pass


_local = threading.local()


@contextmanager
def capture_output() -> Iterator[io.StringIO]:
    """
    Collect this thread's log lines in a buffer instead of stdout.

    Other threads keep writing to stdout (or their own buffer).
    """
    buf = io.StringIO()
    previous = getattr(_local, "stream", None)
    _local.stream = buf
    try:
        yield buf
    finally:
        _local.stream = previous


def _emit(text: str) -> None:
    stream = getattr(_local, "stream", None)
    print(text, file=stream if stream is not None else sys.stdout, flush=True)


# Pretty logging


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Booleans print as on/off, ints as 1,234, floats trimmed to 3 decimals.
    """
    out: List[str] = []
    for name, value in pairs:
        if isinstance(value, bool):
            display = "on" if value else "off"
        elif isinstance(value, int):
            display = f"{value:,}"
        elif isinstance(value, float):
            display = f"{value:.3f}".rstrip("0").rstrip(".")
        else:
            display = str(value)
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [run] CPU cores: 8  Workers: 4  Jobs: 1  Metrics: all
    Routes to debug() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    _emit(f"\n=== {title} ===")


def log(message: str) -> None:
    """Plain log line."""
    _emit(message)


def debug_log(message: str) -> None:
    """Debug log line."""
    _emit(f"[debug] {message}")


def warn(message: str) -> None:
    """Warning log line."""
    _emit(f"[warn] {message}")


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    "format_seconds_compact",
    "format_total_duration_compact",
    "colour_usage_report",
    "enable_line_buffered_stdout",
    "capture_output",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
