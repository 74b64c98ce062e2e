# c64_map/constants.py
"""
Global palette and tunables used across the project.

- PALETTE (C64 colours, hitmen.c02.at palstuff table)
- Target geometry (TARGET_WIDTH, PIXEL_DOUBLE)
- D65 white point and CIE Lab constants
- CLI naming (OUTPUT_PREFIX, IMAGE_SUFFIXES)
"""
from __future__ import annotations

from typing import List, Tuple

# =========================
# C64 Palette (hex, name)
# =========================
PALETTE: List[Tuple[str, str]] = [
    ("#000000", "Black"),
    ("#ffffff", "White"),
    ("#67372b", "Red"),
    ("#6fa3b1", "Cyan"),
    ("#6f3c85", "Purple"),
    ("#588c43", "Green"),
    ("#342879", "Blue"),
    ("#b7c66e", "Yellow"),
    ("#6f4f25", "Orange"),
    ("#423900", "Brown"),
    ("#996659", "Light Red"),
    ("#434343", "Dark Grey"),
    ("#6b6b6b", "Grey"),
    ("#9ad183", "Light Green"),
    ("#6b5eb4", "Light Blue"),
    ("#959595", "Light Grey"),
]

PALETTE_SIZE: int = 16

# ==================
# Target geometry
# ==================
TARGET_WIDTH: int = 320
# Each multicolour cell is two physical pixels wide.
PIXEL_DOUBLE: int = 2

# ==================
# Colour science
# ==================
# D65 reference white, XYZ scaled to [0,100].
XN: float = 95.047
YN: float = 100.0
ZN: float = 108.883

LAB_EPSILON: float = (24.0 / 116.0) ** 3
LAB_SLOPE: float = 841.0 / 108.0
LAB_OFFSET: float = 16.0 / 116.0

SRGB_THRESHOLD: float = 0.04045

# Chroma product below this counts as achromatic in CIEDE2000.
ALMOST_ZERO: float = 1e-8

# ==================
# CLI
# ==================
OUTPUT_PREFIX: str = "c64_"
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"}
