# c64_map/quantize.py
from __future__ import annotations

"""
Downsample-and-match quantizer.

Geometry:
  target width is fixed at 320; target height = ceil(320 / (W / H)).
  The 320 columns form 160 cells, each painted as two identical pixels.
  Block size is W // 160 by H // target_height (truncated, minimum 1).
  Cell (i, j) samples [i*bw, (i+1)*bw - 1) x [j*bh, (j+1)*bh - 1), clamped to
  the source and widened to at least one pixel per axis.

Exports:
  BlockGeometry, target_size, block_geometry, block_rect
  closest_palette_index(sample, metric, palette=None) -> int
  closest_palette_indices(lab, rgb, metric, palette=None) -> [N]
  sample_blocks(grid, geometry=None, workers=1) -> (lab, rgb)
  paint_indices(indices, palette=None) -> PixelGrid
  convert_image_indices(grid, metric, palette=None, workers=1) -> [Ht,160]
  convert_image(grid, metric, palette=None, workers=1, debug=False) -> PixelGrid
  convert_all(grid, metrics=METRICS, palette=None, workers=None) -> {metric: PixelGrid}
"""

import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .blocks import average_blocks
from .colour_convert import rgb_to_lab_threaded
from .colour_distance import distance, distance_matrix
from .constants import PIXEL_DOUBLE, TARGET_WIDTH
from .core_types import (
    METRICS,
    BlockRect,
    BlockSample,
    Lab,
    Metric,
    PixelGrid,
    U8Image,
)
from .errors import DegenerateBlockError
from .image_io import check_layout
from .palette_data import Palette, c64_palette
from .utils import debug_log, format_seconds_compact, key_value_pairs_to_string


@dataclass(frozen=True)
class BlockGeometry:
    """Source sampling grid for one conversion."""

    src_width: int
    src_height: int
    target_width: int
    target_height: int
    block_width: int
    block_height: int
    x0: NDArray[np.intp]  # [cells]
    x1: NDArray[np.intp]  # [cells]
    y0: NDArray[np.intp]  # [target_height]
    y1: NDArray[np.intp]  # [target_height]

    @property
    def cells(self) -> int:
        return int(self.x0.shape[0])


def target_size(width: int, height: int) -> Tuple[int, int]:
    """(320, ceil(320 / aspect)) for a W x H source."""
    if width <= 0 or height <= 0:
        raise DegenerateBlockError(f"source has no area: {width}x{height}")
    aspect_ratio = float(width) / float(height)
    return TARGET_WIDTH, int(math.ceil(float(TARGET_WIDTH) / aspect_ratio))


def _cell_edges(
    count: int, block: int, limit: int
) -> Tuple[NDArray[np.intp], NDArray[np.intp]]:
    idx = np.arange(count, dtype=np.intp)
    lo = np.minimum(idx * block, limit - 1)
    hi = np.clip((idx + 1) * block - 1, lo + 1, limit)
    return lo, hi


def block_geometry(width: int, height: int) -> BlockGeometry:
    """Clamped, non-empty sampling rectangles for every output cell."""
    target_w, target_h = target_size(width, height)
    cells = target_w // PIXEL_DOUBLE
    block_w = max(1, width // cells)
    block_h = max(1, height // target_h)
    x0, x1 = _cell_edges(cells, block_w, width)
    y0, y1 = _cell_edges(target_h, block_h, height)
    return BlockGeometry(
        src_width=width,
        src_height=height,
        target_width=target_w,
        target_height=target_h,
        block_width=block_w,
        block_height=block_h,
        x0=x0,
        x1=x1,
        y0=y0,
        y1=y1,
    )


def block_rect(geometry: BlockGeometry, i: int, j: int) -> BlockRect:
    """Source rectangle for cell column i, row j."""
    return BlockRect(
        x0=int(geometry.x0[i]),
        y0=int(geometry.y0[j]),
        x1=int(geometry.x1[i]),
        y1=int(geometry.y1[j]),
    )


# Palette search


def closest_palette_index(
    sample: BlockSample, metric: Metric, palette: Optional[Palette] = None
) -> int:
    """Index of the nearest palette entry; first minimum wins on ties."""
    pal = palette if palette is not None else c64_palette()
    best_index = 0
    best_distance = math.inf
    for i in range(len(pal)):
        d = distance(i, sample, metric, pal)
        if d < best_distance:
            best_index = i
            best_distance = d
    return best_index


def closest_palette_indices(
    sample_lab: Lab,
    sample_rgb: U8Image,
    metric: Metric,
    palette: Optional[Palette] = None,
) -> NDArray[np.intp]:
    """Vectorised closest_palette_index over [N,3] samples."""
    dist = distance_matrix(sample_lab, sample_rgb, metric, palette)
    return np.argmin(dist, axis=1)


# Pipeline stages


def sample_blocks(
    grid: PixelGrid, geometry: Optional[BlockGeometry] = None, workers: int = 1
) -> Tuple[Lab, U8Image]:
    """Average every cell. Returns lab [Ht,cells,3] and rgb [Ht,cells,3]."""
    if geometry is None:
        geometry = block_geometry(int(grid.shape[1]), int(grid.shape[0]))
    lab_image = rgb_to_lab_threaded(grid[..., :3], workers)
    return average_blocks(
        grid, geometry.x0, geometry.x1, geometry.y0, geometry.y1, lab_image=lab_image
    )


def _match_cells(
    block_lab: Lab, block_rgb: U8Image, metric: Metric, palette: Palette
) -> NDArray[np.uint8]:
    rows, cols = block_lab.shape[0], block_lab.shape[1]
    idx = closest_palette_indices(
        block_lab.reshape(-1, 3), block_rgb.reshape(-1, 3), metric, palette
    )
    return idx.reshape(rows, cols).astype(np.uint8)


def paint_indices(
    indices: NDArray[np.integer], palette: Optional[Palette] = None
) -> PixelGrid:
    """Palette indices [Ht,cells] -> RGBA grid [Ht, cells*2, 4], pixels doubled."""
    pal = palette if palette is not None else c64_palette()
    colours = pal.rgb[np.asarray(indices, dtype=np.intp)]
    doubled = np.repeat(colours, PIXEL_DOUBLE, axis=1)
    out = np.empty(doubled.shape[:2] + (4,), dtype=np.uint8)
    out[..., :3] = doubled
    out[..., 3] = 255
    return out


def convert_image_indices(
    grid: PixelGrid,
    metric: Metric,
    palette: Optional[Palette] = None,
    workers: int = 1,
) -> NDArray[np.uint8]:
    """Palette index per output cell, uint8 [Ht, 160]."""
    check_layout(grid)
    pal = palette if palette is not None else c64_palette()
    block_lab, block_rgb = sample_blocks(grid, workers=workers)
    return _match_cells(block_lab, block_rgb, metric, pal)


def convert_image(
    grid: PixelGrid,
    metric: Metric,
    palette: Optional[Palette] = None,
    *,
    workers: int = 1,
    debug: bool = False,
) -> PixelGrid:
    """
    Convert one RGBA source grid with one metric.

    Returns:
      uint8 [ceil(320*H/W), 320, 4], alpha 255
    Raises:
      UnsupportedLayoutError for a padded / non-RGBA grid
    """
    check_layout(grid)
    pal = palette if palette is not None else c64_palette()
    t0 = time.perf_counter()
    geometry = block_geometry(int(grid.shape[1]), int(grid.shape[0]))
    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Source", f"{geometry.src_width}x{geometry.src_height}"),
                    ("Target", f"{geometry.target_width}x{geometry.target_height}"),
                    ("Block", f"{geometry.block_width}x{geometry.block_height}"),
                    ("Metric", metric),
                ]
            )
        )
    block_lab, block_rgb = sample_blocks(grid, geometry, workers=workers)
    out = paint_indices(_match_cells(block_lab, block_rgb, metric, pal), pal)
    if debug:
        debug_log(f"{metric}: {format_seconds_compact(time.perf_counter() - t0)}")
    return out


def convert_all(
    grid: PixelGrid,
    metrics: Sequence[Metric] = METRICS,
    palette: Optional[Palette] = None,
    workers: Optional[int] = None,
) -> Dict[Metric, PixelGrid]:
    """
    Convert one source with several metrics in parallel.

    Block averages are computed once and shared read-only; each metric task
    owns its output grid. Returns {metric: grid} in the order of `metrics`.
    """
    check_layout(grid)
    pal = palette if palette is not None else c64_palette()
    threads = max(1, int(workers)) if workers is not None else max(1, len(metrics))
    block_lab, block_rgb = sample_blocks(grid, workers=threads)
    block_lab.flags.writeable = False
    block_rgb.flags.writeable = False

    def _task(metric: Metric) -> PixelGrid:
        return paint_indices(_match_cells(block_lab, block_rgb, metric, pal), pal)

    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = {m: pool.submit(_task, m) for m in metrics}
        return {m: futures[m].result() for m in metrics}


__all__ = [
    "BlockGeometry",
    "target_size",
    "block_geometry",
    "block_rect",
    "closest_palette_index",
    "closest_palette_indices",
    "sample_blocks",
    "paint_indices",
    "convert_image_indices",
    "convert_image",
    "convert_all",
]
