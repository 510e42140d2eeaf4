"""
Color gradients for age-based rendering.

Each scheme is backed by a Matplotlib colormap, either a named one or a small
linear gradient, and is sampled once into a 256-entry RGB lookup table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Tuple

import matplotlib.colors as mcolors
import numpy as np
from matplotlib import colormaps

RGB = Tuple[int, int, int]

LUT_SIZE = 256
WHITE: RGB = (255, 255, 255)


class ColorScheme(Enum):
    """Gradient used to map normalized particle age to a color."""

    ICE = ("Ice", ("#0000b4", "#00dcff", "#ffffff"))
    FIRE = ("Fire", "hot")
    PLASMA = ("Plasma", "plasma")
    VIRIDIS = ("Viridis", "viridis")
    MAGMA = ("Magma", "magma")
    RAINBOW = ("Rainbow", "hsv")
    GRAYSCALE = ("Grayscale", "gray")
    OCEAN = ("Ocean", ("#003264", "#64c8ff"))
    NEON = ("Neon", ("#ff00ff", "#00ffff", "#00ff00"))

    def __init__(self, label: str, source) -> None:
        self.label = label
        self.source = source

    def next(self) -> "ColorScheme":
        members = list(ColorScheme)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "ColorScheme":
        members = list(ColorScheme)
        return members[(members.index(self) - 1) % len(members)]

    def colormap(self) -> mcolors.Colormap:
        if isinstance(self.source, str):
            return colormaps[self.source]
        return mcolors.LinearSegmentedColormap.from_list(self.name.lower(), list(self.source))

    def map(self, t: float) -> RGB:
        """Color for ``t`` in [0, 1] (clamped)."""
        lut = build_lut(self)
        idx = int(round(min(max(float(t), 0.0), 1.0) * (lut.shape[0] - 1)))
        r, g, b = lut[idx]
        return int(r), int(g), int(b)

    @classmethod
    def from_name(cls, name: str) -> "ColorScheme":
        key = name.strip().lower()
        for scheme in cls:
            if scheme.label.lower() == key:
                return scheme
        raise ValueError(f"Unknown color scheme: {name}")


@lru_cache(maxsize=None)
def build_lut(scheme: ColorScheme, size: int = LUT_SIZE) -> np.ndarray:
    """Sample ``scheme`` into a read-only ``(size, 3)`` uint8 table."""
    rgba = scheme.colormap()(np.linspace(0.0, 1.0, size))
    lut = np.round(rgba[:, :3] * 255.0).astype(np.uint8)
    lut.flags.writeable = False
    return lut


def lookup(scheme: ColorScheme, t: np.ndarray) -> np.ndarray:
    """Vectorized LUT lookup; returns ``(..., 3)`` uint8 colors."""
    lut = build_lut(scheme)
    idx = np.rint(np.clip(t, 0.0, 1.0) * (lut.shape[0] - 1)).astype(np.intp)
    return lut[idx]


@dataclass(frozen=True)
class ColorPolicy:
    """How sampled glyphs and rasterized frames are colored."""

    scheme: ColorScheme = ColorScheme.ICE
    color_by_age: bool = False
    base_color: RGB = WHITE


###############################################################################
# Terminal palette helpers
###############################################################################

_CUBE_LEVELS = np.array([0, 95, 135, 175, 215, 255])


def rgb_to_xterm256(r: int, g: int, b: int) -> int:
    """Nearest xterm-256 color index (6x6x6 cube or 24-step gray ramp)."""
    rgb = np.array([r, g, b], dtype=np.int64)
    cube_idx = np.abs(rgb[:, None] - _CUBE_LEVELS[None, :]).argmin(axis=1)
    cube_rgb = _CUBE_LEVELS[cube_idx]
    cube_dist = int(np.sum((cube_rgb - rgb) ** 2))
    cube_color = 16 + 36 * int(cube_idx[0]) + 6 * int(cube_idx[1]) + int(cube_idx[2])

    gray_step = int(np.clip(round((rgb.mean() - 8) / 10.0), 0, 23))
    gray_level = 8 + 10 * gray_step
    gray_dist = int(np.sum((gray_level - rgb) ** 2))

    if gray_dist < cube_dist:
        return 232 + gray_step
    return cube_color


__all__ = [
    "ColorScheme",
    "ColorPolicy",
    "build_lut",
    "lookup",
    "rgb_to_xterm256",
]
