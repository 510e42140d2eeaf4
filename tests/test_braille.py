import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import (
    BrailleCell,
    ColorPolicy,
    ColorScheme,
    DLASimulation,
    GrowthParams,
    calculate_simulation_size,
    render_to_braille,
)
from braille_dla.simulation import EMPTY


def _blank_sim(width=64, height=64):
    sim = DLASimulation(width, height, GrowthParams(num_particles=100, seed=0))
    sim.cells.fill(EMPTY)
    return sim


def test_full_grid_gives_full_glyphs():
    sim = _blank_sim()
    sim.cells.fill(0)
    cells = render_to_braille(sim, 32, 16)
    assert len(cells) == 32 * 16
    assert all(c.pattern == 0xFF for c in cells)
    assert all(c.char == "⣿" for c in cells)


def test_empty_grid_gives_nothing():
    assert render_to_braille(_blank_sim(), 32, 16) == []


@pytest.mark.parametrize("canvas", [(0, 16), (32, 0), (-1, -1)])
def test_empty_canvas_gives_nothing(canvas):
    sim = DLASimulation(64, 64)
    assert render_to_braille(sim, *canvas) == []


@pytest.mark.parametrize(
    "cell, bit",
    [
        ((32, 32), 0x01),
        ((32, 33), 0x02),
        ((32, 34), 0x04),
        ((32, 35), 0x40),
        ((33, 32), 0x08),
        ((33, 33), 0x10),
        ((33, 34), 0x20),
        ((33, 35), 0x80),
    ],
)
def test_dot_layout(cell, bit):
    sim = _blank_sim()
    x, y = cell
    sim.cells[y * sim.grid_width + x] = 0
    cells = render_to_braille(sim, 32, 16)
    assert len(cells) == 1
    assert (cells[0].x, cells[0].y) == (16, 8)
    assert cells[0].pattern == bit
    assert cells[0].char == chr(0x2800 + bit)


def test_output_is_row_major():
    sim = _blank_sim()
    for x, y in [(60, 0), (0, 60), (10, 10), (0, 0)]:
        sim.cells[y * sim.grid_width + x] = 0
    cells = render_to_braille(sim, 32, 16)
    assert [(c.y, c.x) for c in cells] == sorted((c.y, c.x) for c in cells)


def test_downsampled_canvas_uses_floor_index():
    sim = _blank_sim(128, 128)
    # canvas 32x16 over 128x128 means scale 2 in x and 2 in y
    sim.cells[4 * 128 + 2] = 0
    cells = render_to_braille(sim, 32, 16)
    assert len(cells) == 1
    assert (cells[0].x, cells[0].y, cells[0].pattern) == (0, 0, 0x20)


def test_sampling_is_idempotent():
    sim = DLASimulation(64, 64, GrowthParams(num_particles=150, seed=7))
    sim.run()
    policy = ColorPolicy(scheme=ColorScheme.MAGMA, color_by_age=True)
    first = sim.sample_for_display(32, 16, policy)
    second = sim.sample_for_display(32, 16, policy)
    assert first == second
    assert sim.particles_stuck == 150


def test_age_coloring():
    sim = DLASimulation(64, 64, GrowthParams(num_particles=100, seed=0))
    policy = ColorPolicy(scheme=ColorScheme.ICE, color_by_age=True)
    cells = render_to_braille(sim, 32, 16, policy)
    assert cells == [
        BrailleCell(x=16, y=8, pattern=0x01, age=0.0, color=ColorScheme.ICE.map(0.0))
    ]


def test_mean_age_over_dots():
    sim = _blank_sim()
    sim.cells[32 * 64 + 32] = 10
    sim.cells[33 * 64 + 32] = 30
    cells = render_to_braille(sim, 32, 16, ColorPolicy(color_by_age=True))
    assert len(cells) == 1
    assert cells[0].pattern == 0x03
    assert cells[0].age == pytest.approx(20.0)


def test_base_color_without_age():
    sim = DLASimulation(64, 64, GrowthParams(seed=0))
    cells = render_to_braille(sim, 32, 16, ColorPolicy(base_color=(10, 20, 30)))
    assert len(cells) == 1
    assert cells[0].age is None
    assert cells[0].color == (10, 20, 30)


def test_calculate_simulation_size():
    assert calculate_simulation_size(10, 5) == (64, 64)
    assert calculate_simulation_size(100, 40) == (200, 160)
    assert calculate_simulation_size(40, 10) == (80, 64)
