# c64_map/errors.py
"""
Conversion errors.

Every error raised for a single image derives from ConversionError so batch
callers can log it and move on to the next file.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for per-image conversion failures."""


class UnsupportedLayoutError(ConversionError):
    """Pixel grid is not a contiguous uint8 (H,W,4) array with stride W*4."""


class DegenerateBlockError(ConversionError):
    """Block rectangle has zero or negative area."""


class OutOfBoundsError(ConversionError):
    """Block rectangle reaches past the edges of the source grid."""


class ImageDecodeError(ConversionError):
    """Source bytes could not be decoded into an image."""


__all__ = [
    "ConversionError",
    "UnsupportedLayoutError",
    "DegenerateBlockError",
    "OutOfBoundsError",
    "ImageDecodeError",
]
