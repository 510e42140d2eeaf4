"""
Braille character rendering for high-resolution terminal graphics.

Each Braille glyph shows a 2x4 grid of dots, so a canvas of W x H glyphs has
an effective resolution of 2W x 4H. Dot positions map to bits as::

    (0,0)=0x01  (1,0)=0x08
    (0,1)=0x02  (1,1)=0x10
    (0,2)=0x04  (1,2)=0x20
    (0,3)=0x40  (1,3)=0x80

and the glyph for a pattern is ``chr(0x2800 + pattern)``.

Sampling is nearest-cell (floor-indexed): a dot is on exactly when the
simulation cell it lands on is occupied. Nothing is cached, so sampling the
same grid twice gives identical output.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np
from numba import njit

from .color import ColorPolicy, lookup

if TYPE_CHECKING:
    from .simulation import DLASimulation

BRAILLE_BASE = 0x2800
MIN_SIM_DIM = 64

# BRAILLE_DOTS[dx, dy] is the bit for column dx, row dy
BRAILLE_DOTS = np.array(
    [
        [0x01, 0x02, 0x04, 0x40],
        [0x08, 0x10, 0x20, 0x80],
    ],
    dtype=np.int64,
)


@dataclass(frozen=True)
class BrailleCell:
    """One rendered glyph: canvas position, dot pattern, mean age and color."""

    x: int
    y: int
    pattern: int
    age: Optional[float]
    color: Tuple[int, int, int]

    @property
    def char(self) -> str:
        return chr(BRAILLE_BASE + self.pattern)


@njit(cache=True)
def _sample_kernel(
    cells: np.ndarray,
    sim_width: int,
    sim_height: int,
    canvas_width: int,
    canvas_height: int,
    dots: np.ndarray,
):
    """
    Sample the 2x4 sub-cells of every glyph.

    Returns parallel arrays ``(gx, gy, pattern, mean_age)`` for glyphs with at
    least one dot, in row-major order.
    """
    scale_x = sim_width / (canvas_width * 2)
    scale_y = sim_height / (canvas_height * 4)

    n = canvas_width * canvas_height
    out_x = np.empty(n, dtype=np.int64)
    out_y = np.empty(n, dtype=np.int64)
    out_pattern = np.empty(n, dtype=np.int64)
    out_age = np.empty(n, dtype=np.float64)
    k = 0

    for cy in range(canvas_height):
        for cx in range(canvas_width):
            pattern = 0
            total_age = 0.0
            dot_count = 0
            for dx in range(2):
                sim_x = int(math.floor((cx * 2 + dx) * scale_x))
                if sim_x >= sim_width:
                    continue
                for dy in range(4):
                    sim_y = int(math.floor((cy * 4 + dy) * scale_y))
                    if sim_y >= sim_height:
                        continue
                    age = cells[sim_y * sim_width + sim_x]
                    if age >= 0:
                        pattern |= dots[dx, dy]
                        total_age += age
                        dot_count += 1
            if pattern != 0:
                out_x[k] = cx
                out_y[k] = cy
                out_pattern[k] = pattern
                out_age[k] = total_age / dot_count
                k += 1

    return out_x[:k], out_y[:k], out_pattern[:k], out_age[:k]


def render_to_braille(
    simulation: "DLASimulation",
    canvas_width: int,
    canvas_height: int,
    policy: ColorPolicy | None = None,
) -> List[BrailleCell]:
    """Render the simulation grid to Braille glyphs, skipping empty ones."""
    if canvas_width <= 0 or canvas_height <= 0:
        return []
    policy = policy or ColorPolicy()

    gx, gy, patterns, ages = _sample_kernel(
        simulation.cells,
        simulation.grid_width,
        simulation.grid_height,
        int(canvas_width),
        int(canvas_height),
        BRAILLE_DOTS,
    )

    if policy.color_by_age:
        colors = lookup(policy.scheme, ages / simulation.num_particles).tolist()
        cell_ages = ages.tolist()
    else:
        colors = [policy.base_color] * len(patterns)
        cell_ages = [None] * len(patterns)

    return [
        BrailleCell(x=x, y=y, pattern=p, age=a, color=tuple(c))
        for x, y, p, a, c in zip(gx.tolist(), gy.tolist(), patterns.tolist(), cell_ages, colors)
    ]


def calculate_simulation_size(canvas_width: int, canvas_height: int) -> Tuple[int, int]:
    """
    Simulation grid size for a canvas: one cell per Braille dot, never below
    64 cells per axis.
    """
    width = max(canvas_width * 2, MIN_SIM_DIM)
    height = max(canvas_height * 4, MIN_SIM_DIM)
    return width, height


__all__ = [
    "BRAILLE_BASE",
    "BRAILLE_DOTS",
    "BrailleCell",
    "render_to_braille",
    "calculate_simulation_size",
]
