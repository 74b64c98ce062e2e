# c64_map/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Literal, Mapping, Tuple

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
LabTuple = Tuple[float, float, float]
XYZTuple = Tuple[float, float, float]
HexStr = str

PixelGrid = NDArray[np.uint8]  # (H, W, 4) RGBA, row stride W*4
U8Image = NDArray[np.uint8]  # (..., 3)
Lab = NDArray[np.float64]  # (..., 3) CIE Lab
Lch = NDArray[np.float64]  # (..., 3) CIE LCh

NameOf = Mapping[HexStr, str]  # "#rrggbb" -> human-readable name

Metric = Literal["rgb", "cie76", "cie94", "cie2000"]
METRICS: Tuple[Metric, ...] = ("rgb", "cie76", "cie94", "cie2000")

# Value objects


@dataclass(frozen=True)
class PaletteItem:
    """Palette entry with its precomputed Lab row."""

    rgb: RGBTuple
    name: str
    lab: LabTuple


@dataclass(frozen=True)
class BlockRect:
    """Half-open source rectangle [x0, x1) x [y0, y1)."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def area(self) -> int:
        if self.width <= 0 or self.height <= 0:
            return 0
        return self.width * self.height


@dataclass(frozen=True)
class BlockSample:
    """Mean colour of one block in Lab and (truncated) RGB."""

    lab: LabTuple
    rgb: RGBTuple


# Small helpers


def clamp_value(value: int, lo: int, hi: int) -> int:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """(r, g, b) -> '#rrggbb'."""
    r, g, b = rgb
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


__all__ = [
    # aliases / types
    "RGBTuple",
    "LabTuple",
    "XYZTuple",
    "HexStr",
    "PixelGrid",
    "U8Image",
    "Lab",
    "Lch",
    "NameOf",
    "Metric",
    "METRICS",
    # value objects
    "PaletteItem",
    "BlockRect",
    "BlockSample",
    # helpers
    "clamp_value",
    "rgb_to_hex",
    "hex_to_rgb",
]
