"""
c64_map package.

Purpose:
  Convert images to the 16-colour Commodore 64 palette at 320 pixels wide.
  See c64_map.cli for the command line.

Public API:
  convert_image  : one source grid + one metric -> RGBA output grid.
  convert_all    : one source grid, several metrics in parallel.
  colour_convert : colour space transforms (rgb_to_lab, lab_to_rgb, etc.).
  colour_distance: RGB / CIE76 / CIE94 / CIE2000 metrics and distance().
  palette_data   : the C64 palette and build helpers.
  blocks         : block averaging (scalar and summed-area table).
  image_io       : Pillow decode / PNG encode and layout checks.
  errors         : ConversionError and subclasses.
  PALETTE        : raw (hex, name) palette table.

Quick start:
  from c64_map import convert_image, load_image_rgba, save_image_rgba
  grid = load_image_rgba(path)
  save_image_rgba(out_path, convert_image(grid, "cie2000"))
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import blocks
from . import colour_convert
from . import colour_distance
from . import core_types
from . import errors
from . import image_io
from . import palette_data
from . import quantize
from . import utils

from .constants import PALETTE
from .core_types import METRICS, Metric
from .errors import (
    ConversionError,
    DegenerateBlockError,
    ImageDecodeError,
    OutOfBoundsError,
    UnsupportedLayoutError,
)
from .image_io import load_image_rgba, save_image_rgba
from .palette_data import c64_palette
from .quantize import convert_all, convert_image

__all__ = [
    "__version__",
    "blocks",
    "colour_convert",
    "colour_distance",
    "core_types",
    "errors",
    "image_io",
    "palette_data",
    "quantize",
    "utils",
    "PALETTE",
    "METRICS",
    "Metric",
    "ConversionError",
    "DegenerateBlockError",
    "ImageDecodeError",
    "OutOfBoundsError",
    "UnsupportedLayoutError",
    "load_image_rgba",
    "save_image_rgba",
    "c64_palette",
    "convert_all",
    "convert_image",
]
