#!/usr/bin/env python3
"""
Live DLA Viewer

Grows a DLA cluster in the terminal and draws it with Braille glyphs.

  Controls:
    q         quit               SPACE     pause / resume
    r         reset              1-9 0 [ ] seed patterns
    c         cycle color        a         toggle age coloring
    TAB       next parameter     S-TAB     previous parameter
    UP/DOWN   adjust parameter   +/-       speed
    v         fullscreen         h / ?     help
    o         start / stop recording

  Diamond, Square, Triangle and Star have no hotkey: TAB to the Seed
  parameter and cycle with UP/DOWN.
"""

import argparse
import curses
import curses.textpad
import sys
import time
from pathlib import Path

# Add package source to path
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import (  # noqa: E402
    App,
    ColorScheme,
    Focus,
    SeedPattern,
    params_from_dict,
    utils,
)
from braille_dla.color import rgb_to_xterm256  # noqa: E402

SIDEBAR_WIDTH = 22
FRAME_SECONDS = 0.016  # ~60 fps

SEED_KEYS = {
    ord("1"): SeedPattern.POINT,
    ord("2"): SeedPattern.LINE,
    ord("3"): SeedPattern.CROSS,
    ord("4"): SeedPattern.CIRCLE,
    ord("5"): SeedPattern.RING,
    ord("6"): SeedPattern.BLOCK,
    ord("7"): SeedPattern.NOISY_PATCH,
    ord("8"): SeedPattern.STARBURST,
    ord("9"): SeedPattern.SPIRAL,
    ord("0"): SeedPattern.SCATTER,
    ord("["): SeedPattern.MULTI_POINT,
    ord("]"): SeedPattern.X_SHAPE,
}

CONTROLS = [
    ("Space", "pause/resume"),
    ("R", "reset"),
    ("1-0", "seed patterns"),
    ("Tab", "Seed+Up/Dn: all"),
    ("C", "cycle color"),
    ("A", "toggle age color"),
    ("Tab", "next param"),
    ("Up/Dn", "adjust param"),
    ("+/-", "speed"),
    ("O", "record"),
    ("V", "fullscreen"),
    ("H/?", "help"),
    ("Q", "quit"),
]

HELP_LINES = [
    "DIFFUSION-LIMITED AGGREGATION",
    "",
    "Particles randomly walk until they",
    "stick to a growing structure, creating",
    "fractal snowflake-like patterns.",
    "",
    "Stickiness: chance to stick (0.1-1.0)",
    "Lower = denser, fuzzier growth",
    "",
    "1=Point  2=Line   3=Cross  4=Circle",
    "5=Ring   6=Block  7=Noisy  8=Burst",
    "9=Spiral 0=Scatter [=Multi ]=X",
    "Diamond, Square, Triangle, Star:",
    "  Tab to Seed, then Up/Down to cycle",
    "",
    "Tab selects a parameter, Up/Down adjusts.",
]


def get_canvas_size(max_x: int, max_y: int, fullscreen: bool) -> tuple:
    """Canvas size in glyphs, excluding the border."""
    if fullscreen:
        return max(max_x - 2, 1), max(max_y - 2, 1)
    return max(max_x - SIDEBAR_WIDTH - 2, 1), max(max_y - 2, 1)


class ColorPairs:
    """Lazily allocates curses color pairs for xterm-256 foregrounds."""

    def __init__(self) -> None:
        self._pairs = {}
        self._next_id = 1
        self.enabled = curses.has_colors()
        if self.enabled:
            curses.start_color()
            curses.use_default_colors()

    def attr(self, rgb) -> int:
        if not self.enabled:
            return curses.A_NORMAL
        color = rgb_to_xterm256(*rgb) if curses.COLORS >= 256 else curses.COLOR_WHITE
        pair_id = self._pairs.get(color)
        if pair_id is None:
            if self._next_id >= curses.COLOR_PAIRS:
                return curses.A_NORMAL
            pair_id = self._next_id
            curses.init_pair(pair_id, color, -1)
            self._pairs[color] = pair_id
            self._next_id += 1
        return curses.color_pair(pair_id)


def _put(stdscr, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
    try:
        stdscr.addstr(y, x, text, attr)
    except curses.error:
        pass


def draw_sidebar(stdscr, app: App, max_y: int) -> None:
    sim = app.simulation
    if sim.paused:
        state = "PAUSED"
    elif sim.is_complete():
        state = "COMPLETE"
    else:
        state = "RUNNING"

    bar_width = SIDEBAR_WIDTH - 4
    filled = int(sim.progress() * bar_width)

    lines = [
        (" DLA Simulator ", curses.A_BOLD),
        (f" {sim.particles_stuck} / {sim.num_particles}", curses.A_NORMAL),
        (" " + "#" * filled + "." * (bar_width - filled), curses.A_NORMAL),
        (f" {state}", curses.A_BOLD),
        ("", curses.A_NORMAL),
        (" Parameters", curses.A_BOLD),
    ]
    params = [
        (Focus.STICKINESS, "Sticky", f"{sim.stickiness:.2f}"),
        (Focus.PARTICLES, "Particles", f"{sim.num_particles}"),
        (Focus.SEED, "Seed", sim.seed_pattern.label),
        (Focus.COLOR_SCHEME, "Color", app.color_scheme.label),
        (Focus.SPEED, "Speed", f"{app.steps_per_frame}"),
    ]
    for focus, label, value in params:
        prefix = "> " if app.focus is focus else "  "
        attr = curses.A_REVERSE if app.focus is focus else curses.A_NORMAL
        lines.append((f"{prefix}{label}: {value}", attr))
    lines.append((f"  Age Color: {'ON' if app.color_by_age else 'OFF'}", curses.A_DIM))
    lines.append(("", curses.A_NORMAL))
    lines.append((" Controls", curses.A_BOLD))
    for key, desc in CONTROLS:
        lines.append((f"{key:>6} {desc}", curses.A_DIM))

    if app.recorder.is_recording:
        lines.append(("", curses.A_NORMAL))
        lines.append((f" REC {app.recorder.frame_count} frames", curses.A_BOLD))
    if app.status_message:
        lines.append(("", curses.A_NORMAL))
        lines.append((" " + app.status_message[: SIDEBAR_WIDTH - 2], curses.A_DIM))

    for row, (text, attr) in enumerate(lines[: max_y]):
        _put(stdscr, row, 0, text[:SIDEBAR_WIDTH], attr)


def draw_canvas(stdscr, app: App, pairs: ColorPairs, left: int, max_y: int, max_x: int) -> None:
    try:
        curses.textpad.rectangle(stdscr, 0, left, max_y - 1, max_x - 1)
    except curses.error:
        pass

    _addstr = stdscr.addstr
    for cell in app.sample():
        try:
            _addstr(1 + cell.y, left + 1 + cell.x, cell.char, pairs.attr(cell.color))
        except curses.error:
            pass


def draw_help(stdscr, max_y: int, max_x: int) -> None:
    width = min(46, max_x - 4)
    height = min(len(HELP_LINES) + 2, max_y - 2)
    if width < 10 or height < 3:
        return
    top = (max_y - height) // 2
    left = (max_x - width) // 2
    for row in range(height):
        _put(stdscr, top + row, left, " " * width)
    try:
        curses.textpad.rectangle(stdscr, top, left, top + height - 1, left + width - 1)
    except curses.error:
        pass
    for i, line in enumerate(HELP_LINES[: height - 2]):
        _put(stdscr, top + 1 + i, left + 2, line[: width - 4])


def render(stdscr, app: App, pairs: ColorPairs) -> None:
    stdscr.erase()
    max_y, max_x = stdscr.getmaxyx()
    if app.fullscreen_mode:
        draw_canvas(stdscr, app, pairs, 0, max_y, max_x)
    else:
        draw_sidebar(stdscr, app, max_y)
        draw_canvas(stdscr, app, pairs, SIDEBAR_WIDTH, max_y, max_x)
    if app.show_help:
        draw_help(stdscr, max_y, max_x)
    stdscr.noutrefresh()
    curses.doupdate()


def handle_key(key: int, app: App, record_name: str) -> bool:
    """Apply one key press; returns False when the viewer should quit."""
    if key in (ord("q"), ord("Q"), 3):
        return False
    if key == ord(" "):
        app.toggle_pause()
    elif key in (ord("r"), ord("R")):
        app.reset()
    elif key in SEED_KEYS:
        app.set_seed_pattern(SEED_KEYS[key])
    elif key in (ord("c"), ord("C")):
        app.cycle_color_scheme()
    elif key in (ord("a"), ord("A")):
        app.toggle_color_by_age()
    elif key in (ord("o"), ord("O")):
        app.toggle_recording(record_name)
    elif key in (ord("h"), ord("H"), ord("?")):
        app.toggle_help()
    elif key == 9:
        app.next_focus()
    elif key == curses.KEY_BTAB:
        app.prev_focus()
    elif key == curses.KEY_UP:
        app.adjust_focused_up()
    elif key == curses.KEY_DOWN:
        app.adjust_focused_down()
    elif key in (ord("+"), ord("=")):
        app.increase_speed()
    elif key in (ord("-"), ord("_")):
        app.decrease_speed()
    elif key == 27 and app.show_help:
        app.toggle_help()
    return True


def run_viewer(stdscr, args, params) -> None:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.keypad(True)
    pairs = ColorPairs()

    max_y, max_x = stdscr.getmaxyx()
    app = App(
        *get_canvas_size(max_x, max_y, False),
        params,
        steps_per_frame=args.speed,
        color_scheme=ColorScheme.from_name(args.color),
    )
    record_name = args.record or f"dla_{utils.now_str()}.mp4"

    running = True
    while running:
        frame_start = time.perf_counter()
        render(stdscr, app, pairs)

        key = stdscr.getch()
        while key != -1 and running:
            if key == curses.KEY_RESIZE:
                max_y, max_x = stdscr.getmaxyx()
                app.resize(*get_canvas_size(max_x, max_y, app.fullscreen_mode))
            elif key in (ord("v"), ord("V")):
                app.toggle_fullscreen()
                max_y, max_x = stdscr.getmaxyx()
                app.resize(*get_canvas_size(max_x, max_y, app.fullscreen_mode))
            else:
                running = handle_key(key, app, record_name)
            key = stdscr.getch()

        app.tick()

        remaining = FRAME_SECONDS - (time.perf_counter() - frame_start)
        if remaining > 0:
            time.sleep(remaining)

    saved = app.stop_recording()
    if saved:
        print(f"Recording saved to: {saved}")


def main():
    parser = argparse.ArgumentParser(
        description="Diffusion-Limited Aggregation simulation in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p", "--particles",
        type=int,
        default=5000,
        help="Number of particles to simulate (capped to 20%% of grid area)",
    )
    parser.add_argument(
        "-s", "--stickiness",
        type=float,
        default=1.0,
        help="Stickiness factor (0.1-1.0)",
    )
    parser.add_argument(
        "--seed",
        type=str,
        default="point",
        help="Initial seed pattern (point, line, cross, circle, ring, block, noisy, "
             "diamond, square, triangle, star, starburst, spiral, scatter, multipoint, xshape)",
    )
    parser.add_argument(
        "--speed",
        type=int,
        default=5,
        help="Simulation steps per frame (1-50)",
    )
    parser.add_argument(
        "--color",
        choices=[scheme.label.lower() for scheme in ColorScheme],
        default="ice",
        help="Color scheme (default: ice)",
    )
    parser.add_argument(
        "--rng-seed",
        type=int,
        default=None,
        help="Seed the random walk for a reproducible cluster",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML file with growth parameters",
    )
    parser.add_argument(
        "--record",
        type=str,
        default=None,
        help="Recording filename used by the O key (.mp4, .webm or .gif)",
    )
    args = parser.parse_args()

    try:
        config = utils.load_params(args.config) if args.config else {}
        config.setdefault("num_particles", args.particles)
        config.setdefault("stickiness", args.stickiness)
        config.setdefault("seed_pattern", args.seed)
        if args.rng_seed is not None:
            config["seed"] = args.rng_seed
        params = params_from_dict(config)
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}")
        return 1

    curses.wrapper(run_viewer, args, params)
    return 0


if __name__ == "__main__":
    sys.exit(main())
