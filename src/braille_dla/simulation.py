"""
Interactive On-Lattice DLA Growth Engine.

Particles are launched one at a time on a circle just outside the current
cluster envelope and random-walk with a fixed step length until they either
stick next to an occupied cell or wander past the escape radius.

The grid is a flat ``int64`` array indexed ``y * width + x``. Each entry holds
the arrival index of the particle that occupies the cell, or ``EMPTY`` (-1).
Arrival indices drive age-based coloring downstream.

The walk itself runs inside a Numba kernel. All random numbers are drawn in
Python from an injected ``numpy.random.Generator`` and handed to the kernel in
chunks, so a seeded generator gives a reproducible growth history while the
default (unseeded) generator gives a different cluster on every run.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, TYPE_CHECKING

import numpy as np
from numba import njit

from . import utils
from .braille import render_to_braille
from .seeds import SeedPattern, seed_cells

if TYPE_CHECKING:
    from .braille import BrailleCell
    from .color import ColorPolicy

###############################################################################
# Constants
###############################################################################

EMPTY = -1
TAU = 2.0 * math.pi

MIN_PARTICLES = 100
MIN_STICKINESS = 0.1
MAX_STICKINESS = 1.0
MIN_GRID_DIM = 3

WALK_CHUNK = 256  # random draws handed to the kernel per call

WALK_MOVING = 0
WALK_STUCK = 1
WALK_ESCAPED = 2


###############################################################################
# Walk kernel
###############################################################################


@njit(cache=True)
def _has_occupied_neighbor(cells: np.ndarray, width: int, ix: int, iy: int) -> bool:
    """Check the 8-neighborhood of an interior cell."""
    for dy in range(-1, 2):
        row = (iy + dy) * width
        for dx in range(-1, 2):
            if dx == 0 and dy == 0:
                continue
            if cells[row + ix + dx] != EMPTY:
                return True
    return False


@njit(cache=True)
def _walk_kernel(
    cells: np.ndarray,
    width: int,
    height: int,
    x: float,
    y: float,
    center_x: float,
    center_y: float,
    escape_sq: float,
    stickiness: float,
    step_length: float,
    angles: np.ndarray,
    draws: np.ndarray,
):
    """
    Advance one walker for at most ``len(angles)`` steps.

    Returns ``(status, x, y)``. ``WALK_STUCK`` leaves ``(x, y)`` inside the
    cell to freeze; ``WALK_MOVING`` means the chunk ran out and the caller
    should continue from ``(x, y)`` with fresh draws. The grid is never
    written here.
    """
    x_max = width - 2.0
    y_max = height - 2.0
    for i in range(angles.shape[0]):
        dx = x - center_x
        dy = y - center_y
        if dx * dx + dy * dy > escape_sq:
            return WALK_ESCAPED, x, y

        ix = int(x)
        iy = int(y)
        if 0 < ix < width - 1 and 0 < iy < height - 1:
            if cells[iy * width + ix] == EMPTY and _has_occupied_neighbor(
                cells, width, ix, iy
            ):
                if draws[i] < stickiness:
                    return WALK_STUCK, x, y

        x = min(max(x + step_length * math.cos(angles[i]), 1.0), x_max)
        y = min(max(y + step_length * math.sin(angles[i]), 1.0), y_max)

    return WALK_MOVING, x, y


###############################################################################
# Simulator
###############################################################################


@dataclass
class GrowthParams:
    """Growth rules and launch geometry."""

    num_particles: int = 5000
    stickiness: float = 1.0
    seed_pattern: SeedPattern = SeedPattern.POINT
    spawn_offset: float = 10.0
    min_spawn_radius: float = 50.0
    escape_multiplier: float = 2.0
    max_walk_steps: int = 10_000
    step_length: float = 2.0
    seed: Optional[int] = None


def params_from_dict(config: Dict[str, Any] | None = None) -> GrowthParams:
    """Build GrowthParams from a loaded JSON/TOML mapping, ignoring unknown keys."""
    config = dict(config or {})
    known = {f.name for f in fields(GrowthParams)}
    values = {k: v for k, v in config.items() if k in known}
    pattern = values.get("seed_pattern")
    if isinstance(pattern, str):
        values["seed_pattern"] = SeedPattern.from_name(pattern)
    return GrowthParams(**values)


class DLASimulation:
    """
    Owns the growth grid and advances it one particle at a time.

    Sizes, targets and stickiness are clamped on the way in, so none of the
    public operations below can fail once the simulation exists.
    """

    def __init__(
        self,
        width: int,
        height: int,
        params: GrowthParams | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.params = params or GrowthParams()
        self.rng = rng if rng is not None else utils.make_rng(self.params.seed)

        self._allocate(width, height)
        self.num_particles = self._clamp_particles(self.params.num_particles)
        self.stickiness = float(
            np.clip(self.params.stickiness, MIN_STICKINESS, MAX_STICKINESS)
        )
        self.seed_pattern = self.params.seed_pattern
        self.particles_stuck = 0
        self.max_radius = 1.0
        self.paused = False
        self.reset()

    def _allocate(self, width: int, height: int) -> None:
        if width < MIN_GRID_DIM or height < MIN_GRID_DIM:
            raise ValueError(
                f"Grid must be at least {MIN_GRID_DIM}x{MIN_GRID_DIM}, got {width}x{height}"
            )
        # Only interior cells can be stuck, so the smallest target must fit there
        interior = (width - 2) * (height - 2)
        capacity = max(width * height // 5, MIN_PARTICLES)
        if interior < capacity:
            raise ValueError(
                f"Grid {width}x{height} has {interior} interior cells, "
                f"fewer than the {capacity} particle minimum"
            )
        self.grid_width = int(width)
        self.grid_height = int(height)
        self.cells = np.full(self.grid_width * self.grid_height, EMPTY, dtype=np.int64)

    # ------------------------------------------------------------------ seeding
    def reset(self) -> None:
        """Reset the grid with the current seed pattern."""
        self.reset_with_seed(self.seed_pattern)

    def reset_with_seed(self, pattern: SeedPattern) -> None:
        """Clear every cell and stamp ``pattern`` as the new starting structure."""
        size = self.grid_width * self.grid_height
        if self.cells.shape[0] != size:
            self.cells = np.full(size, EMPTY, dtype=np.int64)
        else:
            self.cells.fill(EMPTY)

        xs, ys = seed_cells(pattern, self.grid_width, self.grid_height, self.rng)
        self.cells[ys * self.grid_width + xs] = 0
        self.particles_stuck = int(xs.size)

        dist = np.hypot(xs - self.grid_width / 2.0, ys - self.grid_height / 2.0)
        self.max_radius = max(1.0, float(dist.max()))

        self.seed_pattern = pattern
        self.paused = False

    def next_seed_pattern(self) -> None:
        self.reset_with_seed(self.seed_pattern.next())

    def prev_seed_pattern(self) -> None:
        self.reset_with_seed(self.seed_pattern.prev())

    # ------------------------------------------------------------------ growth
    def step(self) -> bool:
        """
        Launch one walker and follow it until it sticks, escapes or runs out
        of steps.

        Returns False only when no growth is possible (paused or complete);
        an escaped or exhausted walker still returns True so the caller keeps
        stepping.
        """
        if self.paused or self.is_complete():
            return False

        p = self.params
        width, height = self.grid_width, self.grid_height
        center_x = width / 2.0
        center_y = height / 2.0

        spawn_radius = max(self.max_radius + p.spawn_offset, p.min_spawn_radius)
        escape_sq = (spawn_radius * p.escape_multiplier) ** 2

        theta = self.rng.uniform(0.0, TAU)
        x = center_x + spawn_radius * math.cos(theta)
        y = center_y + spawn_radius * math.sin(theta)

        remaining = p.max_walk_steps
        while remaining > 0:
            n = min(WALK_CHUNK, remaining)
            angles = self.rng.uniform(0.0, TAU, n)
            draws = self.rng.random(n)
            status, x, y = _walk_kernel(
                self.cells,
                width,
                height,
                x,
                y,
                center_x,
                center_y,
                escape_sq,
                self.stickiness,
                p.step_length,
                angles,
                draws,
            )
            if status == WALK_STUCK:
                self._freeze(int(x), int(y))
                return True
            if status == WALK_ESCAPED:
                return True
            remaining -= n

        # Walk budget exhausted, drop the particle
        return True

    def _freeze(self, ix: int, iy: int) -> None:
        self.cells[iy * self.grid_width + ix] = self.particles_stuck
        self.particles_stuck += 1

        r_dist = math.hypot(ix - self.grid_width / 2.0, iy - self.grid_height / 2.0)
        if r_dist > self.max_radius:
            self.max_radius = r_dist

    def run(self, max_calls: int | None = None, verbose: bool = False) -> int:
        """Step until the target is reached (or ``max_calls``); returns calls made."""
        t_start = time.perf_counter()
        start_count = self.particles_stuck
        report_every = max(1, self.num_particles // 10)
        calls = 0

        while not self.is_complete() and not self.paused:
            if max_calls is not None and calls >= max_calls:
                break
            before = self.particles_stuck
            self.step()
            calls += 1

            if verbose and self.particles_stuck != before and self.particles_stuck % report_every == 0:
                elapsed = time.perf_counter() - t_start
                rate = (self.particles_stuck - start_count) / elapsed if elapsed > 0 else 0.0
                print(f"[dla] {self.particles_stuck}/{self.num_particles} particles, "
                      f"{rate:.0f} particles/s, R_max={self.max_radius:.1f}")

        if verbose:
            elapsed = time.perf_counter() - t_start
            print(f"Growth stopped: {self.particles_stuck} particles after {calls} walkers "
                  f"in {elapsed:.2f}s")
        return calls

    # ------------------------------------------------------------------ sizing
    def resize(self, new_width: int, new_height: int) -> None:
        """Replace the grid with a new size and re-seed; same size is a no-op."""
        if new_width == self.grid_width and new_height == self.grid_height:
            return
        self._allocate(new_width, new_height)
        if self.num_particles > self.max_particles():
            self.num_particles = self.max_particles()
        self.reset()

    def max_particles(self) -> int:
        """DLA clusters are sparse, so a fifth of the grid area is the ceiling."""
        return max(self.grid_width * self.grid_height // 5, MIN_PARTICLES)

    def _clamp_particles(self, value: int) -> int:
        return int(min(max(int(value), MIN_PARTICLES), self.max_particles()))

    # ------------------------------------------------------------------ controls
    def set_num_particles(self, value: int) -> None:
        self.num_particles = self._clamp_particles(value)

    def adjust_particles(self, delta: int) -> None:
        self.num_particles = self._clamp_particles(self.num_particles + delta)

    def adjust_stickiness(self, delta: float) -> None:
        self.stickiness = float(
            min(max(self.stickiness + delta, MIN_STICKINESS), MAX_STICKINESS)
        )

    def toggle_pause(self) -> None:
        self.paused = not self.paused

    # ------------------------------------------------------------------ queries
    def is_complete(self) -> bool:
        return self.particles_stuck >= self.num_particles

    def progress(self) -> float:
        return min(self.particles_stuck / self.num_particles, 1.0)

    def get_cell(self, x: int, y: int) -> Optional[int]:
        """Arrival index at ``(x, y)``, or None when empty or out of bounds."""
        if 0 <= x < self.grid_width and 0 <= y < self.grid_height:
            value = int(self.cells[y * self.grid_width + x])
            return None if value == EMPTY else value
        return None

    @property
    def grid(self) -> np.ndarray:
        """Read-only ``(height, width)`` view of the arrival indices."""
        view = self.cells.reshape(self.grid_height, self.grid_width)
        view.flags.writeable = False
        return view

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.cells != EMPTY))

    def get_centered_coords(self) -> np.ndarray:
        """
        Returns an (N, 2) float array of occupied cells relative to the grid
        center, ordered by arrival.
        """
        idx = np.flatnonzero(self.cells != EMPTY)
        idx = idx[np.argsort(self.cells[idx], kind="stable")]
        pos_x = idx % self.grid_width - self.grid_width / 2.0
        pos_y = idx // self.grid_width - self.grid_height / 2.0
        return np.column_stack((pos_x, pos_y)).astype(np.float64)

    def snapshot(self) -> utils.ClusterResult:
        """Export the current cluster for saving or analysis."""
        grid = self.cells.reshape(self.grid_height, self.grid_width)
        meta = {
            "model": "braille-dla",
            "seed_pattern": self.seed_pattern.label,
            "num": int(self.num_particles),
            "stuck": int(self.particles_stuck),
            "stickiness": float(self.stickiness),
            "max_radius": float(self.max_radius),
            "grid_width": self.grid_width,
            "grid_height": self.grid_height,
            "arrival": grid.copy(),
        }
        return utils.ClusterResult(
            occupied=grid != EMPTY, positions=self.get_centered_coords(), meta=meta
        )

    # ------------------------------------------------------------------ display
    def sample_for_display(
        self,
        glyph_width: int,
        glyph_height: int,
        policy: "ColorPolicy | None" = None,
    ) -> list["BrailleCell"]:
        """Project the grid onto ``glyph_width`` x ``glyph_height`` Braille cells."""
        return render_to_braille(self, glyph_width, glyph_height, policy)


__all__ = [
    "EMPTY",
    "GrowthParams",
    "DLASimulation",
    "params_from_dict",
]
