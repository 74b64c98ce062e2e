# c64_map/colour_convert.py
from __future__ import annotations

"""
Colour conversions (sRGB, D65).

Exports:
  rgb_to_xyz(rgb)              scalar, XYZ scaled to [0,100]
  xyz_to_lab(xyz)              scalar
  rgb_to_lab(rgb)              scalar composition of the two
  lab_to_xyz(lab) / xyz_to_rgb(xyz) / lab_to_rgb(lab)
                               approximate inverse, rounded and clamped to u8
  rgb_to_linear(srgb)          vectorised gamma expansion
  rgb_to_lab_array(rgb)        vectorised sRGB -> Lab, float64 (...,3)
  rgb_to_lab_threaded(rgb, workers)
  lab_to_lch(lab)              vectorised Lab -> LCh (degrees in [0,360))

Scalar and vectorised paths use the same constants, so they agree to float
rounding.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from .constants import (
    LAB_EPSILON,
    LAB_OFFSET,
    LAB_SLOPE,
    SRGB_THRESHOLD,
    XN,
    YN,
    ZN,
)
from .core_types import Lab, LabTuple, Lch, RGBTuple, XYZTuple, clamp_value

# sRGB -> XYZ matrix (D65)
_M_RGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# XYZ -> sRGB matrix (D65)
_M_XYZ_TO_RGB = (
    (3.2404542, -1.5371385, -0.4985314),
    (-0.9692660, 1.8760108, 0.0415560),
    (0.0556434, -0.2040259, 1.0572252),
)


# Scalar forward path


def _expand(channel: float) -> float:
    v = channel / 255.0
    if v > SRGB_THRESHOLD:
        return ((v + 0.055) / 1.055) ** 2.4
    return v / 12.92


def _lab_f(t: float) -> float:
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return LAB_SLOPE * t + LAB_OFFSET


def rgb_to_xyz(rgb: Sequence[int]) -> XYZTuple:
    """8-bit sRGB -> CIE XYZ in [0,100] (D65)."""
    r = _expand(float(rgb[0])) * 100.0
    g = _expand(float(rgb[1])) * 100.0
    b = _expand(float(rgb[2])) * 100.0
    (m00, m01, m02), (m10, m11, m12), (m20, m21, m22) = _M_RGB_TO_XYZ
    return (
        m00 * r + m01 * g + m02 * b,
        m10 * r + m11 * g + m12 * b,
        m20 * r + m21 * g + m22 * b,
    )


def xyz_to_lab(xyz: Sequence[float]) -> LabTuple:
    """CIE XYZ in [0,100] -> CIE Lab, normalised by the D65 white."""
    fx = _lab_f(float(xyz[0]) / XN)
    fy = _lab_f(float(xyz[1]) / YN)
    fz = _lab_f(float(xyz[2]) / ZN)
    return (116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz))


def rgb_to_lab(rgb: Sequence[int]) -> LabTuple:
    """8-bit sRGB -> CIE Lab (D65)."""
    return xyz_to_lab(rgb_to_xyz(rgb))


# Scalar inverse path


def _lab_f_inv(t: float) -> float:
    if t > 24.0 / 116.0:
        return t * t * t
    return (t - LAB_OFFSET) / LAB_SLOPE


def _compress(linear: float) -> int:
    if linear <= 0.0031308:
        v = 12.92 * linear
    else:
        v = 1.055 * (linear ** (1.0 / 2.4)) - 0.055
    return clamp_value(int(round(v * 255.0)), 0, 255)


def lab_to_xyz(lab: Sequence[float]) -> XYZTuple:
    """CIE Lab -> XYZ in [0,100] (D65)."""
    fy = (float(lab[0]) + 16.0) / 116.0
    fx = fy + float(lab[1]) / 500.0
    fz = fy - float(lab[2]) / 200.0
    return (XN * _lab_f_inv(fx), YN * _lab_f_inv(fy), ZN * _lab_f_inv(fz))


def xyz_to_rgb(xyz: Sequence[float]) -> RGBTuple:
    """XYZ in [0,100] -> 8-bit sRGB, rounded and clamped."""
    x, y, z = float(xyz[0]) / 100.0, float(xyz[1]) / 100.0, float(xyz[2]) / 100.0
    (m00, m01, m02), (m10, m11, m12), (m20, m21, m22) = _M_XYZ_TO_RGB
    r = max(0.0, m00 * x + m01 * y + m02 * z)
    g = max(0.0, m10 * x + m11 * y + m12 * z)
    b = max(0.0, m20 * x + m21 * y + m22 * z)
    return (_compress(r), _compress(g), _compress(b))


def lab_to_rgb(lab: Sequence[float]) -> RGBTuple:
    """Approximate inverse of rgb_to_lab."""
    return xyz_to_rgb(lab_to_xyz(lab))


# Vectorised path


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Args:
      srgb: array[...] in 0..1 (float)
    Returns:
      float64 array, same shape
    """
    srgb_f = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb_f > SRGB_THRESHOLD, ((srgb_f + 0.055) / 1.055) ** 2.4, srgb_f / 12.92
    )


def rgb_to_lab_array(rgb: np.ndarray) -> Lab:
    """
    8-bit sRGB to CIE Lab (D65).
    Accepts any (..., 3+) array of 0..255 values; extra channels are ignored.
    Returns float64 with shape (..., 3).
    """
    rgb_f = np.asarray(rgb)[..., :3].astype(np.float64) / 255.0

    r_lin = rgb_to_linear(rgb_f[..., 0]) * 100.0
    g_lin = rgb_to_linear(rgb_f[..., 1]) * 100.0
    b_lin = rgb_to_linear(rgb_f[..., 2]) * 100.0

    (m00, m01, m02), (m10, m11, m12), (m20, m21, m22) = _M_RGB_TO_XYZ
    X = m00 * r_lin + m01 * g_lin + m02 * b_lin
    Y = m10 * r_lin + m11 * g_lin + m12 * b_lin
    Z = m20 * r_lin + m21 * g_lin + m22 * b_lin

    def f(t: np.ndarray) -> np.ndarray:
        # same power as the scalar _lab_f
        with np.errstate(invalid="ignore"):
            return np.where(
                t > LAB_EPSILON,
                np.maximum(t, 0.0) ** (1.0 / 3.0),
                LAB_SLOPE * t + LAB_OFFSET,
            )

    fx, fy, fz = f(X / XN), f(Y / YN), f(Z / ZN)

    out = np.empty(rgb_f.shape[:-1] + (3,), dtype=np.float64)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


def lab_to_lch(lab: Lab) -> Lch:
    """
    Lab[...,3] to LCh[...,3] (degrees in [0,360)).
    Returns float64 with shape preserved.
    """
    lab_f = np.asarray(lab, dtype=np.float64)
    orig_shape = lab_f.shape
    flat = lab_f.reshape(-1, 3)
    L = flat[:, 0]
    C = np.hypot(flat[:, 1], flat[:, 2])
    h = (np.degrees(np.arctan2(flat[:, 2], flat[:, 1])) + 360.0) % 360.0
    return np.stack([L, C, h], axis=1).reshape(orig_shape)


# Threaded helpers


def _split_rows(height: int, parts: int) -> list[tuple[int, int]]:
    """Partition height into ~parts contiguous [start, end) row spans."""
    parts = max(1, int(parts))
    step = max(1, (height + parts - 1) // parts)
    return [(i, min(i + step, height)) for i in range(0, height, step)]


def rgb_to_lab_threaded(rgb: np.ndarray, workers: int) -> Lab:
    """
    Threaded RGB->Lab conversion by splitting rows.

    Args:
      rgb: uint8 array [H,W,3 or 4]
      workers: number of threads; if <=1 or H<256, runs single-threaded
    Returns:
      Lab float64 array [H,W,3]
    """
    height = int(rgb.shape[0])
    if workers <= 1 or height < 256:
        return rgb_to_lab_array(rgb)

    chunks = _split_rows(height, workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(rgb_to_lab_array, rgb[s:e]) for s, e in chunks]
        parts = [f.result() for f in futures]
    return np.vstack(parts)


__all__ = [
    "rgb_to_xyz",
    "xyz_to_lab",
    "rgb_to_lab",
    "lab_to_xyz",
    "xyz_to_rgb",
    "lab_to_rgb",
    "rgb_to_linear",
    "rgb_to_lab_array",
    "rgb_to_lab_threaded",
    "lab_to_lch",
]
