# c64_map/palette_data.py
from __future__ import annotations

"""
Palette definitions and builders.

Exports:
  PALETTE: list[tuple[str, str]]  # [(hex, name), ...], the 16 C64 colours
  Palette                         # frozen view: items, rgb [16,3] u8, lab [16,3] f64
  build_palette(hex_name_pairs=PALETTE) -> Palette
  c64_palette() -> Palette        # memoised default palette
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple

import numpy as np
from numpy.typing import NDArray

from .colour_convert import rgb_to_lab
from .constants import PALETTE, PALETTE_SIZE
from .core_types import Lab, NameOf, PaletteItem, RGBTuple, hex_to_rgb, rgb_to_hex


@dataclass(frozen=True)
class Palette:
    """
    Fixed palette with Lab rows computed once at build time.

    rgb and lab are read-only arrays so one Palette can be shared by
    concurrent conversions.
    """

    items: Tuple[PaletteItem, ...]
    rgb: NDArray[np.uint8]  # [P,3]
    lab: Lab  # [P,3]

    def __len__(self) -> int:
        return len(self.items)

    def colour(self, index: int) -> RGBTuple:
        return self.items[index].rgb

    @property
    def name_of_hex(self) -> NameOf:
        return {rgb_to_hex(item.rgb): item.name for item in self.items}


def build_palette(hex_name_pairs: List[Tuple[str, str]] = PALETTE) -> Palette:
    """
    Convert a list of (hex, name) into a Palette.

    Raises ValueError unless exactly PALETTE_SIZE entries are given.
    """
    if len(hex_name_pairs) != PALETTE_SIZE:
        raise ValueError(
            f"palette must have exactly {PALETTE_SIZE} entries, got {len(hex_name_pairs)}"
        )

    items: List[PaletteItem] = []
    for hx, name in hex_name_pairs:
        rgb_tuple = hex_to_rgb(hx)
        items.append(PaletteItem(rgb=rgb_tuple, name=name, lab=rgb_to_lab(rgb_tuple)))

    pal_rgb = np.array([it.rgb for it in items], dtype=np.uint8)
    pal_lab = np.array([it.lab for it in items], dtype=np.float64)
    pal_rgb.flags.writeable = False
    pal_lab.flags.writeable = False
    return Palette(items=tuple(items), rgb=pal_rgb, lab=pal_lab)


@lru_cache(maxsize=1)
def c64_palette() -> Palette:
    """The default C64 palette, built once per process."""
    return build_palette(PALETTE)


__all__ = ["PALETTE", "Palette", "build_palette", "c64_palette"]
