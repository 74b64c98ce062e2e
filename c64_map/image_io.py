# c64_map/image_io.py
from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .core_types import PixelGrid
from .errors import ImageDecodeError, UnsupportedLayoutError

"""
Image I/O helpers: decode to an RGBA pixel grid (sRGB), layout checks, PNG encode.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except Exception:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]


def check_layout(grid: np.ndarray) -> PixelGrid:
    """
    Validate a pixel grid: uint8 (H,W,4) with row stride W*4 and no padding.
    Returns the grid unchanged; raises UnsupportedLayoutError otherwise.
    """
    if not isinstance(grid, np.ndarray):
        raise UnsupportedLayoutError(f"expected ndarray, got {type(grid).__name__}")
    if grid.dtype != np.uint8 or grid.ndim != 3 or grid.shape[2] != 4:
        raise UnsupportedLayoutError(
            f"expected uint8 (H,W,4) grid, got {grid.dtype} {grid.shape}"
        )
    height, width = int(grid.shape[0]), int(grid.shape[1])
    if height == 0 or width == 0:
        raise UnsupportedLayoutError(f"empty grid {width}x{height}")
    if grid.strides[2] != 1 or grid.strides[1] != 4 or grid.strides[0] != width * 4:
        raise UnsupportedLayoutError(
            f"unsupported stride {grid.strides[0]} for width {width}, expected {width * 4}"
        )
    return grid


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def _image_to_grid(im: Image.Image) -> PixelGrid:
    arr = np.ascontiguousarray(np.array(_convert_to_srgb_rgba(im), dtype=np.uint8))
    return check_layout(arr)


def load_image_rgba(path: Path) -> PixelGrid:
    """Decode an image file into a uint8 (H,W,4) sRGB grid."""
    try:
        with Image.open(path) as im0:
            im0.load()
            return _image_to_grid(im0)
    except UnidentifiedImageError as exc:
        raise ImageDecodeError(f"cannot identify image {path}") from exc
    except Image.DecompressionBombError as exc:
        raise ImageDecodeError(f"image too large {path}: {exc}") from exc
    except OSError as exc:
        if isinstance(exc, FileNotFoundError):
            raise
        raise ImageDecodeError(f"cannot decode image {path}: {exc}") from exc


def decode_image_bytes(data: bytes) -> PixelGrid:
    """Decode in-memory image bytes into a uint8 (H,W,4) sRGB grid."""
    try:
        with Image.open(io.BytesIO(data)) as im0:
            im0.load()
            return _image_to_grid(im0)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(f"cannot decode image bytes: {exc}") from exc


def encode_png_bytes(grid: PixelGrid) -> bytes:
    """Encode an RGBA grid as PNG bytes."""
    check_layout(grid)
    buf = io.BytesIO()
    Image.fromarray(grid).save(buf, format="PNG")
    return buf.getvalue()


def save_image_rgba(path: Path, grid: PixelGrid) -> Path:
    """Write an RGBA grid as PNG. Forces a .png suffix; returns the written path."""
    path = Path(path)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    check_layout(grid)
    Image.fromarray(grid).save(path, format="PNG")
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "check_layout",
    "load_image_rgba",
    "decode_image_bytes",
    "encode_png_bytes",
    "save_image_rgba",
    "is_image_file",
]
