"""
Seed patterns that stamp the initial structure before growth begins.

Every pattern derives its geometry from the grid dimensions alone, so the
same pattern scales from a 64x64 grid up to a full-screen canvas. Stamping
routines return raw coordinate arrays; :func:`seed_cells` filters them to the
grid and removes duplicates, so individual routines never need bounds checks.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, Tuple

import numpy as np

Coords = Tuple[np.ndarray, np.ndarray]

NOISY_EDGE_PROBABILITY = 0.15
SCATTER_POINTS = 15
STARBURST_RAYS = 8


class SeedPattern(Enum):
    """Initial structure stamped into the grid on reset."""

    POINT = "Point"
    LINE = "Line"
    CROSS = "Cross"
    CIRCLE = "Circle"
    RING = "Ring"
    BLOCK = "Block"
    NOISY_PATCH = "Noisy Patch"
    DIAMOND = "Diamond"
    SQUARE = "Square"
    TRIANGLE = "Triangle"
    STAR = "Star"
    STARBURST = "Starburst"
    SPIRAL = "Spiral"
    SCATTER = "Scatter"
    MULTI_POINT = "Multi-Point"
    X_SHAPE = "X-Shape"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> "SeedPattern":
        members = list(SeedPattern)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "SeedPattern":
        members = list(SeedPattern)
        return members[(members.index(self) - 1) % len(members)]

    @classmethod
    def from_name(cls, name: str) -> "SeedPattern":
        """Parse a CLI name such as ``"multi-point"`` or ``"x"``."""
        key = name.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown seed pattern: {name}") from None


_ALIASES: Dict[str, SeedPattern] = {
    p.value.lower().replace(" ", "-"): p for p in SeedPattern
}
_ALIASES.update(
    {
        "multipoint": SeedPattern.MULTI_POINT,
        "xshape": SeedPattern.X_SHAPE,
        "x": SeedPattern.X_SHAPE,
        "noisy": SeedPattern.NOISY_PATCH,
        "noisypatch": SeedPattern.NOISY_PATCH,
        "solid": SeedPattern.BLOCK,
    }
)


###############################################################################
# Shape helpers
###############################################################################


def _floor_coords(xs, ys) -> Coords:
    return (
        np.floor(np.asarray(xs, dtype=np.float64)).astype(np.int64),
        np.floor(np.asarray(ys, dtype=np.float64)).astype(np.int64),
    )


def _polyline(points) -> Coords:
    """Sample straight segments between consecutive points (closed)."""
    xs, ys = [], []
    for (x0, y0), (x1, y1) in zip(points, points[1:] + points[:1]):
        steps = max(int(max(abs(x1 - x0), abs(y1 - y0))), 1)
        t = np.linspace(0.0, 1.0, steps + 1)
        xs.append(x0 + (x1 - x0) * t)
        ys.append(y0 + (y1 - y0) * t)
    return _floor_coords(np.concatenate(xs), np.concatenate(ys))


def _disk_offsets(radius: float) -> Tuple[np.ndarray, np.ndarray]:
    r = int(math.ceil(radius))
    dy, dx = np.mgrid[-r : r + 1, -r : r + 1]
    return dx.ravel(), dy.ravel()


###############################################################################
# Stamping routines (one per pattern)
###############################################################################


def _point(width: int, height: int, rng: np.random.Generator) -> Coords:
    return np.array([width // 2]), np.array([height // 2])


def _line(width, height, rng) -> Coords:
    half = min(20, width // 4)
    xs = np.arange(width // 2 - half, width // 2 + half)
    return xs, np.full(xs.shape, height // 2)


def _cross(width, height, rng) -> Coords:
    cx, cy = width // 2, height // 2
    arm = np.arange(min(10, width // 8, height // 8))
    xs = np.concatenate([cx - arm, cx + arm, np.full(arm.shape, cx), np.full(arm.shape, cx)])
    ys = np.concatenate([np.full(arm.shape, cy), np.full(arm.shape, cy), cy - arm, cy + arm])
    return xs, ys


def _circle(width, height, rng) -> Coords:
    radius = float(min(15, width // 8, height // 8))
    theta = np.radians(np.arange(360))
    return _floor_coords(
        width / 2.0 + radius * np.cos(theta), height / 2.0 + radius * np.sin(theta)
    )


def _ring(width, height, rng) -> Coords:
    outer = min(18.0, width / 7.0, height / 7.0)
    inner = 0.6 * outer
    cx, cy = width // 2, height // 2
    dx, dy = _disk_offsets(outer)
    xs, ys = cx + dx, cy + dy
    dist = np.hypot(xs - width / 2.0, ys - height / 2.0)
    keep = (dist >= inner) & (dist <= outer)
    return xs[keep], ys[keep]


def _block(width, height, rng) -> Coords:
    half = min(6, width // 10, height // 10)
    cx, cy = width // 2, height // 2
    dy, dx = np.mgrid[-half : half + 1, -half : half + 1]
    return cx + dx.ravel(), cy + dy.ravel()


def _noisy_patch(width, height, rng) -> Coords:
    radius = min(12, width // 8, height // 8)
    jitter = radius // 4
    cx = width // 2 + int(rng.integers(-jitter, jitter + 1))
    cy = height // 2 + int(rng.integers(-jitter, jitter + 1))

    dx, dy = _disk_offsets(radius)
    dist = np.hypot(dx, dy)
    inside = dist <= radius
    dx, dy, dist = dx[inside], dy[inside], dist[inside]

    # Linear falloff from 1.0 at the center to the edge floor
    prob = 1.0 - (1.0 - NOISY_EDGE_PROBABILITY) * dist / max(radius, 1)
    keep = rng.random(dist.shape[0]) < prob
    if not keep.any():
        return np.array([cx]), np.array([cy])
    return cx + dx[keep], cy + dy[keep]


def _diamond(width, height, rng) -> Coords:
    size = min(12, width // 8, height // 8)
    cx, cy = width // 2, height // 2
    i = np.arange(size + 1)
    xs = np.concatenate([cx + i, cx + i, cx - i, cx - i])
    ys = np.concatenate([cy - (size - i), cy + (size - i), cy - (size - i), cy + (size - i)])
    return xs, ys


def _square(width, height, rng) -> Coords:
    half = min(10, width // 8, height // 8)
    cx, cy = width // 2, height // 2
    span = np.arange(-half, half + 1)
    xs = np.concatenate([cx + span, cx + span, np.full(span.shape, cx - half), np.full(span.shape, cx + half)])
    ys = np.concatenate([np.full(span.shape, cy - half), np.full(span.shape, cy + half), cy + span, cy + span])
    return xs, ys


def _triangle(width, height, rng) -> Coords:
    cx, cy = width / 2.0, height / 2.0
    size = float(min(15, width // 6, height // 6))
    tall = size * math.sqrt(3.0) / 2.0
    return _polyline(
        [
            (cx, cy - tall * 0.67),
            (cx - size / 2.0, cy + tall * 0.33),
            (cx + size / 2.0, cy + tall * 0.33),
        ]
    )


def _star(width, height, rng) -> Coords:
    cx, cy = width / 2.0, height / 2.0
    outer = float(min(15, width // 8, height // 8))
    inner = outer * 0.4
    points = []
    for i in range(10):
        angle = math.radians(i * 36.0 - 90.0)
        r = outer if i % 2 == 0 else inner
        points.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return _polyline(points)


def _starburst(width, height, rng) -> Coords:
    length = min(16, width // 6, height // 6)
    angles = np.linspace(0.0, 2.0 * np.pi, STARBURST_RAYS, endpoint=False)
    t = np.arange(length + 1, dtype=np.float64)
    xs = width // 2 + np.outer(np.cos(angles), t)
    ys = height // 2 + np.outer(np.sin(angles), t)
    # Round so axis-aligned rays stay on the center row/column
    return np.rint(xs.ravel()).astype(np.int64), np.rint(ys.ravel()).astype(np.int64)


def _spiral(width, height, rng) -> Coords:
    cx, cy = width / 2.0, height / 2.0
    max_radius = float(min(20, width // 6, height // 6))
    turns = 3.0
    theta = np.radians(np.arange(int(turns * 360)))
    r = max_radius / (turns * 2.0 * np.pi) * theta
    return _floor_coords(cx + r * np.cos(theta), cy + r * np.sin(theta))


def _scatter(width, height, rng) -> Coords:
    radius = min(20, width // 6, height // 6)
    angle = rng.uniform(0.0, 2.0 * np.pi, SCATTER_POINTS)
    r = rng.uniform(0.0, radius, SCATTER_POINTS)
    return _floor_coords(width // 2 + r * np.cos(angle), height // 2 + r * np.sin(angle))


def _multi_point(width, height, rng) -> Coords:
    cx, cy = width // 2, height // 2
    spread = min(25, width // 5, height // 5)
    xs = np.array([cx, cx - spread, cx + spread, cx, cx])
    ys = np.array([cy, cy, cy, cy - spread, cy + spread])
    return xs, ys


def _x_shape(width, height, rng) -> Coords:
    cx, cy = width // 2, height // 2
    i = np.arange(min(10, width // 8, height // 8))
    xs = np.concatenate([cx - i, cx + i, cx + i, cx - i])
    ys = np.concatenate([cy - i, cy + i, cy - i, cy + i])
    return xs, ys


SEEDERS: Dict[SeedPattern, Callable[[int, int, np.random.Generator], Coords]] = {
    SeedPattern.POINT: _point,
    SeedPattern.LINE: _line,
    SeedPattern.CROSS: _cross,
    SeedPattern.CIRCLE: _circle,
    SeedPattern.RING: _ring,
    SeedPattern.BLOCK: _block,
    SeedPattern.NOISY_PATCH: _noisy_patch,
    SeedPattern.DIAMOND: _diamond,
    SeedPattern.SQUARE: _square,
    SeedPattern.TRIANGLE: _triangle,
    SeedPattern.STAR: _star,
    SeedPattern.STARBURST: _starburst,
    SeedPattern.SPIRAL: _spiral,
    SeedPattern.SCATTER: _scatter,
    SeedPattern.MULTI_POINT: _multi_point,
    SeedPattern.X_SHAPE: _x_shape,
}


def seed_cells(
    pattern: SeedPattern, width: int, height: int, rng: np.random.Generator
) -> Coords:
    """
    Return the unique, in-bounds ``(xs, ys)`` cells stamped by ``pattern``.

    Falls back to the grid center if nothing lands inside the grid.
    """
    xs, ys = SEEDERS[pattern](width, height, rng)
    xs = np.asarray(xs, dtype=np.int64).ravel()
    ys = np.asarray(ys, dtype=np.int64).ravel()
    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
    flat = np.unique(ys[inside] * width + xs[inside])
    if flat.size == 0:
        flat = np.array([(height // 2) * width + width // 2], dtype=np.int64)
    return flat % width, flat // width


__all__ = ["SeedPattern", "SEEDERS", "seed_cells"]
