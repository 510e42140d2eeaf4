"""
Interactive control surface for the terminal viewer.

Holds everything the key bindings act on (focused parameter, speed, color
settings, overlays, recording) and drives the simulation once per frame.
Nothing here draws to the terminal; the viewer script reads this state.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np

from .braille import BrailleCell, calculate_simulation_size
from .color import ColorPolicy, ColorScheme
from .recorder import Recorder, RecordingConfig, RecordingError
from .seeds import SeedPattern
from .simulation import DLASimulation, GrowthParams

MIN_SPEED = 1
MAX_SPEED = 50
STICKINESS_STEP = 0.05
PARTICLES_STEP = 500


class Focus(Enum):
    NONE = "None"
    STICKINESS = "Stickiness"
    PARTICLES = "Particles"
    SEED = "Seed"
    COLOR_SCHEME = "Color"
    SPEED = "Speed"

    def next(self) -> "Focus":
        members = list(Focus)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "Focus":
        members = list(Focus)
        return members[(members.index(self) - 1) % len(members)]


class App:
    """Viewer state plus the simulation it drives."""

    def __init__(
        self,
        canvas_width: int,
        canvas_height: int,
        params: GrowthParams | None = None,
        *,
        rng: np.random.Generator | None = None,
        steps_per_frame: int = 5,
        color_scheme: ColorScheme = ColorScheme.ICE,
        recording: RecordingConfig | None = None,
    ) -> None:
        width, height = calculate_simulation_size(canvas_width, canvas_height)
        self.simulation = DLASimulation(width, height, params, rng=rng)
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height

        self.steps_per_frame = int(min(max(steps_per_frame, MIN_SPEED), MAX_SPEED))
        self.color_scheme = color_scheme
        self.color_by_age = True
        self.focus = Focus.NONE
        self.show_help = False
        self.fullscreen_mode = False

        self.recorder = Recorder(recording)
        self.status_message: Optional[str] = None

    # ------------------------------------------------------------------ frame
    def tick(self) -> int:
        """Run one frame of simulation steps; returns particles stuck this frame."""
        before = self.simulation.particles_stuck
        for _ in range(self.steps_per_frame):
            if not self.simulation.step():
                break

        if self.recorder.should_capture():
            try:
                self.recorder.capture_frame(self.simulation, self.color_policy)
            except RecordingError as e:
                self.status_message = f"Recording stopped: {e}"

        return self.simulation.particles_stuck - before

    @property
    def color_policy(self) -> ColorPolicy:
        return ColorPolicy(scheme=self.color_scheme, color_by_age=self.color_by_age)

    def sample(self) -> List[BrailleCell]:
        return self.simulation.sample_for_display(
            self.canvas_width, self.canvas_height, self.color_policy
        )

    def resize(self, canvas_width: int, canvas_height: int) -> None:
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.simulation.resize(*calculate_simulation_size(canvas_width, canvas_height))

    # ------------------------------------------------------------------ toggles
    def toggle_pause(self) -> None:
        self.simulation.toggle_pause()

    def reset(self) -> None:
        self.simulation.reset()

    def set_seed_pattern(self, pattern: SeedPattern) -> None:
        self.simulation.reset_with_seed(pattern)

    def cycle_color_scheme(self) -> None:
        self.color_scheme = self.color_scheme.next()

    def toggle_color_by_age(self) -> None:
        self.color_by_age = not self.color_by_age

    def toggle_fullscreen(self) -> None:
        self.fullscreen_mode = not self.fullscreen_mode

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def increase_speed(self) -> None:
        self.steps_per_frame = min(self.steps_per_frame + 1, MAX_SPEED)

    def decrease_speed(self) -> None:
        self.steps_per_frame = max(self.steps_per_frame - 1, MIN_SPEED)

    # ------------------------------------------------------------------ focus
    def next_focus(self) -> None:
        self.focus = self.focus.next()

    def prev_focus(self) -> None:
        self.focus = self.focus.prev()

    def adjust_focused_up(self) -> None:
        self._adjust_focused(+1)

    def adjust_focused_down(self) -> None:
        self._adjust_focused(-1)

    def _adjust_focused(self, direction: int) -> None:
        sim = self.simulation
        if self.focus is Focus.STICKINESS:
            sim.adjust_stickiness(direction * STICKINESS_STEP)
        elif self.focus is Focus.PARTICLES:
            sim.adjust_particles(direction * PARTICLES_STEP)
        elif self.focus is Focus.SEED:
            if direction > 0:
                sim.next_seed_pattern()
            else:
                sim.prev_seed_pattern()
        elif self.focus is Focus.COLOR_SCHEME:
            self.color_scheme = (
                self.color_scheme.next() if direction > 0 else self.color_scheme.prev()
            )
        elif self.focus is Focus.SPEED:
            if direction > 0:
                self.increase_speed()
            else:
                self.decrease_speed()

    # ------------------------------------------------------------------ recording
    def start_recording(self, filename: str) -> bool:
        try:
            name = self.recorder.start(filename, self.simulation, self.color_policy)
        except RecordingError as e:
            self.status_message = f"Recording failed: {e}"
            return False
        self.status_message = f"Recording to {name}"
        return True

    def stop_recording(self) -> Optional[str]:
        if not self.recorder.is_recording:
            return None
        try:
            name = self.recorder.stop()
        except RecordingError as e:
            self.status_message = f"Recording failed: {e}"
            return None
        self.status_message = f"Saved {name}"
        return name

    def toggle_recording(self, filename: str) -> None:
        if self.recorder.is_recording:
            self.stop_recording()
        else:
            self.start_recording(filename)


__all__ = ["App", "Focus"]
