# c64_map/blocks.py
from __future__ import annotations

"""
Block averaging.

Exports:
  average_block(grid, rect, lab_image=None) -> BlockSample
  summed_area(values) -> [H+1, W+1, C] integral image
  average_blocks(grid, x0, x1, y0, y1, lab_image=None) -> (lab [Ht,Wt,3], rgb [Ht,Wt,3])

Lab means are means of per-pixel Lab values, not the Lab of the mean RGB.
RGB means are truncated toward zero.
"""

from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .colour_convert import rgb_to_lab_array
from .core_types import BlockRect, BlockSample, Lab, PixelGrid, U8Image
from .errors import DegenerateBlockError, OutOfBoundsError


def _check_rect(grid: PixelGrid, rect: BlockRect) -> None:
    height, width = int(grid.shape[0]), int(grid.shape[1])
    if rect.area <= 0:
        raise DegenerateBlockError(f"empty block {rect}")
    if rect.x0 < 0 or rect.y0 < 0 or rect.x1 > width or rect.y1 > height:
        raise OutOfBoundsError(f"block {rect} outside {width}x{height} grid")


def average_block(
    grid: PixelGrid, rect: BlockRect, lab_image: Optional[Lab] = None
) -> BlockSample:
    """
    Mean colour of grid[y0:y1, x0:x1] in Lab and RGB.

    Args:
      grid     : uint8 [H,W,4]
      rect     : half-open rectangle inside the grid
      lab_image: optional precomputed Lab of the whole grid
    Raises:
      DegenerateBlockError if the rect has no area,
      OutOfBoundsError if it leaves the grid.
    """
    _check_rect(grid, rect)
    region = grid[rect.y0 : rect.y1, rect.x0 : rect.x1, :3]
    if lab_image is None:
        lab_region = rgb_to_lab_array(region)
    else:
        lab_region = lab_image[rect.y0 : rect.y1, rect.x0 : rect.x1]

    count = rect.area
    lab_mean = lab_region.reshape(-1, 3).sum(axis=0) / float(count)
    rgb_sum = region.reshape(-1, 3).astype(np.int64).sum(axis=0)
    rgb_mean = rgb_sum // count
    return BlockSample(
        lab=(float(lab_mean[0]), float(lab_mean[1]), float(lab_mean[2])),
        rgb=(int(rgb_mean[0]), int(rgb_mean[1]), int(rgb_mean[2])),
    )


def summed_area(values: np.ndarray) -> np.ndarray:
    """
    Integral image with a zero row and column in front.

    out[y, x] = sum(values[:y, :x]). Integer input accumulates in int64,
    float input in float64.
    """
    acc = np.int64 if np.issubdtype(values.dtype, np.integer) else np.float64
    height, width = values.shape[0], values.shape[1]
    out = np.zeros((height + 1, width + 1) + values.shape[2:], dtype=acc)
    out[1:, 1:] = np.cumsum(np.cumsum(values, axis=0, dtype=acc), axis=1, dtype=acc)
    return out


def _rect_sums(
    integ: np.ndarray,
    x0: NDArray[np.intp],
    x1: NDArray[np.intp],
    y0: NDArray[np.intp],
    y1: NDArray[np.intp],
) -> np.ndarray:
    ys0 = y0[:, None]
    ys1 = y1[:, None]
    xs0 = x0[None, :]
    xs1 = x1[None, :]
    return integ[ys1, xs1] - integ[ys0, xs1] - integ[ys1, xs0] + integ[ys0, xs0]


def average_blocks(
    grid: PixelGrid,
    x0: NDArray[np.intp],
    x1: NDArray[np.intp],
    y0: NDArray[np.intp],
    y1: NDArray[np.intp],
    lab_image: Optional[Lab] = None,
) -> Tuple[Lab, U8Image]:
    """
    Mean colour of every cell of a separable block grid.

    Cell (j, i) covers [x0[i], x1[i]) x [y0[j], y1[j]). Edges must already be
    clamped to the grid and non-empty.

    Returns:
      lab: float64 [Ht,Wt,3]
      rgb: uint8   [Ht,Wt,3]
    """
    x0 = np.asarray(x0, dtype=np.intp)
    x1 = np.asarray(x1, dtype=np.intp)
    y0 = np.asarray(y0, dtype=np.intp)
    y1 = np.asarray(y1, dtype=np.intp)
    height, width = int(grid.shape[0]), int(grid.shape[1])

    if np.any(x1 <= x0) or np.any(y1 <= y0):
        raise DegenerateBlockError("block grid contains an empty cell")
    if (
        np.any(x0 < 0)
        or np.any(y0 < 0)
        or np.any(x1 > width)
        or np.any(y1 > height)
    ):
        raise OutOfBoundsError(f"block grid leaves {width}x{height} grid")

    if lab_image is None:
        lab_image = rgb_to_lab_array(grid)

    counts = ((y1 - y0)[:, None] * (x1 - x0)[None, :]).astype(np.int64)

    lab_sums = _rect_sums(summed_area(lab_image), x0, x1, y0, y1)
    rgb_sums = _rect_sums(summed_area(grid[..., :3]), x0, x1, y0, y1)

    lab = lab_sums / counts[..., None].astype(np.float64)
    rgb = (rgb_sums // counts[..., None]).astype(np.uint8)
    return lab, rgb


__all__ = ["average_block", "summed_area", "average_blocks"]
