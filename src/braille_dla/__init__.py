"""
Braille DLA - Terminal Diffusion-Limited Aggregation

This package grows DLA clusters on a 2D lattice and projects them onto
Unicode Braille glyphs for live display:
- DLASimulation: on-lattice growth with seed patterns and radius tracking
- render_to_braille: 2x4 dot sampling of the grid onto a glyph canvas
- App: interactive control surface driving the simulation per frame
- Recorder: GIF / MP4 / WebM capture of the growing cluster
"""

from .seeds import SeedPattern
from .simulation import DLASimulation, GrowthParams, params_from_dict
from .braille import BrailleCell, calculate_simulation_size, render_to_braille
from .color import ColorPolicy, ColorScheme
from .app import App, Focus
from .recorder import Recorder, RecordingConfig, RecordingError
from . import analysis, utils

__all__ = [
    # Simulation
    "DLASimulation",
    "GrowthParams",
    "SeedPattern",
    "params_from_dict",
    # Display
    "BrailleCell",
    "ColorPolicy",
    "ColorScheme",
    "calculate_simulation_size",
    "render_to_braille",
    # Control surface and export
    "App",
    "Focus",
    "Recorder",
    "RecordingConfig",
    "RecordingError",
    # Utilities
    "analysis",
    "utils",
]
