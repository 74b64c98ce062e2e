# c64_map/colour_distance.py
from __future__ import annotations

"""
Colour difference metrics.

All metrics return squared differences (no final sqrt); only the ordering
matters for nearest-colour search. Argument order is (sample, palette colour):
CIE94 weights by the sample's chroma.

Exports:
  rgb_distance(rgb1, rgb2)
  delta_e76_sq(lab1, lab2)
  delta_e94_sq(lab1, lab2)
  delta_e2000_sq(lab1, lab2)
  distance(pal_index, sample, metric, palette=None)
  distance_matrix(sample_lab, sample_rgb, metric, palette=None) -> [N,P]
  parse_metric(text)
"""

import math
from typing import Callable, Dict, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .constants import ALMOST_ZERO
from .core_types import METRICS, BlockSample, Metric
from .palette_data import Palette, c64_palette

_25_POW_7 = 25.0**7


# Scalar pair metrics


def rgb_distance(rgb1: Sequence[int], rgb2: Sequence[int]) -> float:
    """Sum of squared 8-bit channel differences."""
    dr = float(rgb1[0]) - float(rgb2[0])
    dg = float(rgb1[1]) - float(rgb2[1])
    db = float(rgb1[2]) - float(rgb2[2])
    return dr * dr + dg * dg + db * db


def delta_e76_sq(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """Squared Euclidean distance in Lab."""
    dL = float(lab2[0]) - float(lab1[0])
    da = float(lab2[1]) - float(lab1[1])
    db = float(lab2[2]) - float(lab1[2])
    return dL * dL + da * da + db * db


def delta_e94_sq(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """CIE94 (graphic arts weights) squared, weighted by lab1's chroma."""
    L1, a1, b1 = float(lab1[0]), float(lab1[1]), float(lab1[2])
    L2, a2, b2 = float(lab2[0]), float(lab2[1]), float(lab2[2])

    C1 = math.sqrt(a1 * a1 + b1 * b1)
    C2 = math.sqrt(a2 * a2 + b2 * b2)
    dL = L2 - L1
    dC = C2 - C1
    dE_sq = (L1 - L2) ** 2 + (a1 - a2) ** 2 + (b1 - b2) ** 2
    dH_sq = max(0.0, dE_sq - dL * dL - dC * dC)

    S_c = 1.0 + 0.045 * C1
    S_h = 1.0 + 0.015 * C1
    return dL * dL + (dC / S_c) ** 2 + dH_sq / (S_h * S_h)


def delta_e2000_sq(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """
    CIEDE2000 squared between two Lab colours (kL = kC = kH = 1).
    Scalar reference implementation.
    """
    L1, a1, b1 = float(lab1[0]), float(lab1[1]), float(lab1[2])
    L2, a2, b2 = float(lab2[0]), float(lab2[1]), float(lab2[2])

    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    G = 0.5 * (1.0 - math.sqrt((C_bar**7) / (C_bar**7 + _25_POW_7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = math.hypot(a1p, b1)
    C2p = math.hypot(a2p, b2)

    h1p = math.degrees(math.atan2(b1, a1p)) % 360.0
    h2p = math.degrees(math.atan2(b2, a2p)) % 360.0

    dLp = L2 - L1
    dCp = C2p - C1p

    achromatic = abs(C1p * C2p) < ALMOST_ZERO
    dhp = h2p - h1p
    if achromatic:
        dhp = 0.0
    elif dhp > 180.0:
        dhp -= 360.0
    elif dhp < -180.0:
        dhp += 360.0

    dHp = 2.0 * math.sqrt(C1p * C2p) * math.sin(math.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    h_sum = h1p + h2p
    if achromatic:
        h_bar_p = h_sum
    elif abs(h1p - h2p) <= 180.0:
        h_bar_p = 0.5 * h_sum
    elif h_sum < 360.0:
        h_bar_p = 0.5 * (h_sum + 360.0)
    else:
        h_bar_p = 0.5 * (h_sum - 360.0)

    T = (
        1.0
        - 0.17 * math.cos(math.radians(h_bar_p - 30.0))
        + 0.24 * math.cos(math.radians(2.0 * h_bar_p))
        + 0.32 * math.cos(math.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * math.cos(math.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * math.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    R_c = 2.0 * math.sqrt((C_bar_p**7) / (C_bar_p**7 + _25_POW_7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / math.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -math.sin(math.radians(2.0 * d_theta)) * R_c

    tL = dLp / S_l
    tC = dCp / S_c
    tH = dHp / S_h
    return max(0.0, tL * tL + tC * tC + tH * tH + R_t * tC * tH)


# Vectorised metrics: samples [N,3] x palette [P,3] -> [N,P]


def rgb_distance_matrix(
    sample_rgb: NDArray[np.generic], pal_rgb: NDArray[np.generic]
) -> NDArray[np.float64]:
    diff = (
        np.asarray(pal_rgb, dtype=np.float64)[None, :, :]
        - np.asarray(sample_rgb, dtype=np.float64)[:, None, :]
    )
    return np.sum(diff * diff, axis=2)


def delta_e76_matrix(
    sample_lab: NDArray[np.floating], pal_lab: NDArray[np.floating]
) -> NDArray[np.float64]:
    diff = (
        np.asarray(pal_lab, dtype=np.float64)[None, :, :]
        - np.asarray(sample_lab, dtype=np.float64)[:, None, :]
    )
    return np.sum(diff * diff, axis=2)


def delta_e94_matrix(
    sample_lab: NDArray[np.floating], pal_lab: NDArray[np.floating]
) -> NDArray[np.float64]:
    s = np.asarray(sample_lab, dtype=np.float64)[:, None, :]
    p = np.asarray(pal_lab, dtype=np.float64)[None, :, :]
    L1, a1, b1 = s[..., 0], s[..., 1], s[..., 2]
    L2, a2, b2 = p[..., 0], p[..., 1], p[..., 2]

    C1 = np.sqrt(a1 * a1 + b1 * b1)
    C2 = np.sqrt(a2 * a2 + b2 * b2)
    dL = L2 - L1
    dC = C2 - C1
    dE_sq = (L1 - L2) ** 2 + (a1 - a2) ** 2 + (b1 - b2) ** 2
    dH_sq = np.maximum(0.0, dE_sq - dL * dL - dC * dC)

    S_c = 1.0 + 0.045 * C1
    S_h = 1.0 + 0.015 * C1
    return dL * dL + (dC / S_c) ** 2 + dH_sq / (S_h * S_h)


def delta_e2000_matrix(
    sample_lab: NDArray[np.floating], pal_lab: NDArray[np.floating]
) -> NDArray[np.float64]:
    """Same maths as delta_e2000_sq, broadcast over [N,1] x [1,P]."""
    s = np.asarray(sample_lab, dtype=np.float64)[:, None, :]
    p = np.asarray(pal_lab, dtype=np.float64)[None, :, :]
    L1, a1, b1 = s[..., 0], s[..., 1], s[..., 2]
    L2, a2, b2 = p[..., 0], p[..., 1], p[..., 2]

    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    G = 0.5 * (1.0 - np.sqrt((C_bar**7) / (C_bar**7 + _25_POW_7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)

    h1p = np.mod(np.degrees(np.arctan2(b1, a1p)), 360.0)
    h2p = np.mod(np.degrees(np.arctan2(b2, a2p)), 360.0)

    dLp = L2 - L1
    dCp = C2p - C1p

    achromatic = np.abs(C1p * C2p) < ALMOST_ZERO
    dhp = h2p - h1p
    dhp = np.where(dhp > 180.0, dhp - 360.0, np.where(dhp < -180.0, dhp + 360.0, dhp))
    dhp = np.where(achromatic, 0.0, dhp)

    dHp = 2.0 * np.sqrt(C1p * C2p) * np.sin(np.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    h_sum = h1p + h2p
    h_bar_p = np.where(
        np.abs(h1p - h2p) <= 180.0,
        0.5 * h_sum,
        np.where(h_sum < 360.0, 0.5 * (h_sum + 360.0), 0.5 * (h_sum - 360.0)),
    )
    h_bar_p = np.where(achromatic, h_sum, h_bar_p)

    T = (
        1.0
        - 0.17 * np.cos(np.radians(h_bar_p - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * h_bar_p))
        + 0.32 * np.cos(np.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * np.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    R_c = 2.0 * np.sqrt((C_bar_p**7) / (C_bar_p**7 + _25_POW_7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / np.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -np.sin(np.radians(2.0 * d_theta)) * R_c

    tL = dLp / S_l
    tC = dCp / S_c
    tH = dHp / S_h
    return np.maximum(0.0, tL * tL + tC * tC + tH * tH + R_t * tC * tH)


_LAB_PAIR: Dict[str, Callable[[Sequence[float], Sequence[float]], float]] = {
    "cie76": delta_e76_sq,
    "cie94": delta_e94_sq,
    "cie2000": delta_e2000_sq,
}

_LAB_MATRIX: Dict[
    str,
    Callable[[NDArray[np.floating], NDArray[np.floating]], NDArray[np.float64]],
] = {
    "cie76": delta_e76_matrix,
    "cie94": delta_e94_matrix,
    "cie2000": delta_e2000_matrix,
}


# Uniform interface


def parse_metric(text: str) -> Metric:
    """'CIE94' / 'cie94' / ' Rgb ' -> Metric. Raises ValueError on unknown names."""
    key = text.strip().lower()
    if key not in METRICS:
        raise ValueError(
            f"unknown metric {text!r}; expected one of {', '.join(METRICS)}"
        )
    return key  # type: ignore[return-value]


def distance(
    pal_index: int,
    sample: BlockSample,
    metric: Metric,
    palette: Optional[Palette] = None,
) -> float:
    """Difference between a block sample and one palette entry."""
    pal = palette if palette is not None else c64_palette()
    item = pal.items[pal_index]
    if metric == "rgb":
        return rgb_distance(sample.rgb, item.rgb)
    try:
        pair = _LAB_PAIR[metric]
    except KeyError:
        raise ValueError(f"unknown metric {metric!r}") from None
    return pair(sample.lab, item.lab)


def distance_matrix(
    sample_lab: NDArray[np.floating],
    sample_rgb: NDArray[np.generic],
    metric: Metric,
    palette: Optional[Palette] = None,
) -> NDArray[np.float64]:
    """
    Differences between N samples and every palette entry.

    Args:
      sample_lab: float [N,3]
      sample_rgb: int   [N,3]
      metric    : one of METRICS
    Returns:
      float64 [N,P]
    """
    pal = palette if palette is not None else c64_palette()
    if metric == "rgb":
        return rgb_distance_matrix(sample_rgb, pal.rgb)
    try:
        matrix = _LAB_MATRIX[metric]
    except KeyError:
        raise ValueError(f"unknown metric {metric!r}") from None
    return matrix(sample_lab, pal.lab)


__all__ = [
    "rgb_distance",
    "delta_e76_sq",
    "delta_e94_sq",
    "delta_e2000_sq",
    "rgb_distance_matrix",
    "delta_e76_matrix",
    "delta_e94_matrix",
    "delta_e2000_matrix",
    "parse_metric",
    "distance",
    "distance_matrix",
]
