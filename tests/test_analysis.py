import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import DLASimulation, GrowthParams, analysis


def _disk(radius):
    r = np.arange(-radius, radius + 1)
    xx, yy = np.meshgrid(r, r)
    inside = xx**2 + yy**2 <= radius**2
    return np.column_stack((xx[inside], yy[inside])).astype(float)


def test_radius_of_gyration():
    pos = np.array([[1.0, 0.0], [-1.0, 0.0]])
    assert analysis.radius_of_gyration(pos) == pytest.approx(1.0)
    with pytest.raises(ValueError):
        analysis.radius_of_gyration(np.zeros((0, 2)))


def test_sandbox_dimension_of_disk_is_two():
    df, r2 = analysis.sandbox_dimension(_disk(40))
    assert df == pytest.approx(2.0, abs=0.15)
    assert r2 > 0.98


def test_sandbox_dimension_of_line_is_one():
    xs = np.arange(-100, 101, dtype=float)
    pos = np.column_stack((xs, np.zeros_like(xs)))
    df, r2 = analysis.sandbox_dimension(pos)
    assert df == pytest.approx(1.0, abs=0.12)
    assert r2 > 0.98


def test_sandbox_dimension_too_small():
    with pytest.raises(ValueError):
        analysis.sandbox_dimension(np.array([[0.0, 0.0], [1.0, 1.0]]))


def test_cluster_stats_on_grown_cluster():
    sim = DLASimulation(128, 128, GrowthParams(num_particles=300, seed=31))
    sim.run()
    stats = analysis.cluster_stats(sim.snapshot())
    assert stats["particles"] == 300
    assert stats["r_max"] == pytest.approx(sim.max_radius)
    assert 0.0 < stats["r_gyration"] < stats["r_max"]
    assert stats["df_sandbox"] is not None
    assert 1.0 < stats["df_sandbox"] < 2.2


def test_cluster_stats_single_seed():
    stats = analysis.cluster_stats(DLASimulation(64, 64).snapshot())
    assert stats["particles"] == 1
    assert stats["r_max"] == 0.0
    assert stats["df_sandbox"] is None
