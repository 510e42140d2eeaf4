import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import ColorScheme
from braille_dla.color import build_lut, lookup, rgb_to_xterm256


@pytest.mark.parametrize("scheme", list(ColorScheme))
def test_lut_shape(scheme):
    lut = build_lut(scheme)
    assert lut.shape == (256, 3)
    assert lut.dtype == np.uint8
    assert not lut.flags.writeable


def test_gradient_endpoints():
    assert ColorScheme.ICE.map(0.0) == (0, 0, 180)
    assert ColorScheme.ICE.map(1.0) == (255, 255, 255)
    assert ColorScheme.GRAYSCALE.map(0.0) == (0, 0, 0)
    assert ColorScheme.GRAYSCALE.map(1.0) == (255, 255, 255)
    assert ColorScheme.NEON.map(0.0) == (255, 0, 255)
    assert ColorScheme.NEON.map(1.0) == (0, 255, 0)


def test_map_clamps():
    assert ColorScheme.OCEAN.map(-3.0) == ColorScheme.OCEAN.map(0.0)
    assert ColorScheme.OCEAN.map(7.0) == ColorScheme.OCEAN.map(1.0)


def test_lookup_matches_map():
    t = np.array([0.0, 0.25, 0.5, 1.0])
    colors = lookup(ColorScheme.VIRIDIS, t)
    assert colors.shape == (4, 3)
    for value, color in zip(t, colors):
        assert tuple(int(c) for c in color) == ColorScheme.VIRIDIS.map(value)


def test_cycle_and_names():
    scheme = ColorScheme.ICE
    seen = []
    for _ in range(len(ColorScheme)):
        seen.append(scheme)
        scheme = scheme.next()
    assert scheme is ColorScheme.ICE
    assert len(set(seen)) == 9
    assert ColorScheme.ICE.prev() is ColorScheme.NEON
    assert ColorScheme.from_name("fire") is ColorScheme.FIRE
    assert ColorScheme.from_name("Grayscale") is ColorScheme.GRAYSCALE
    with pytest.raises(ValueError):
        ColorScheme.from_name("sepia")


def test_rgb_to_xterm256():
    assert rgb_to_xterm256(255, 255, 255) == 231
    assert rgb_to_xterm256(0, 0, 0) == 16
    assert rgb_to_xterm256(255, 0, 0) == 196
    assert rgb_to_xterm256(128, 128, 128) == 244
