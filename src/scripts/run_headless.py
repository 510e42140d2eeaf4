#!/usr/bin/env python3
"""
Headless DLA Runner

Grows a single cluster without a terminal, then saves it as a compressed
.npz snapshot and optionally as a PNG image or an animated recording.
"""

import argparse
import sys
import time
from pathlib import Path

import matplotlib.image as mpimg

# Add package source to path
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import (  # noqa: E402
    ColorPolicy,
    ColorScheme,
    DLASimulation,
    Recorder,
    RecordingConfig,
    RecordingError,
    analysis,
    params_from_dict,
    utils,
)
from braille_dla.recorder import rasterize  # noqa: E402


def grow(sim: DLASimulation, recorder: Recorder | None, policy: ColorPolicy,
         frame_every: int) -> int:
    """Step to completion, capturing a frame every ``frame_every`` walkers."""
    if recorder is None:
        return sim.run(verbose=True)

    calls = 0
    while not sim.is_complete():
        sim.step()
        calls += 1
        if calls % frame_every == 0 and recorder.is_recording:
            _capture(recorder, sim, policy)
    if recorder.is_recording:
        _capture(recorder, sim, policy)
    return calls


def _capture(recorder: Recorder, sim: DLASimulation, policy: ColorPolicy) -> None:
    # A full GIF ends the recording; growth carries on without it
    try:
        recorder.capture_frame(sim, policy)
    except RecordingError as e:
        print(f"Recording stopped: {e}")


def main():
    parser = argparse.ArgumentParser(
        description="Grow a DLA cluster without the terminal viewer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=200, help="Grid width in cells")
    parser.add_argument("--height", type=int, default=200, help="Grid height in cells")
    parser.add_argument(
        "--particles",
        type=int,
        default=5000,
        help="Target particle count (capped to 20%% of grid area)",
    )
    parser.add_argument(
        "--stickiness",
        type=float,
        default=1.0,
        help="Stickiness factor (0.1-1.0)",
    )
    parser.add_argument("--seed", type=str, default="point", help="Seed pattern name")
    parser.add_argument(
        "--rng-seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML file with growth parameters",
    )
    parser.add_argument(
        "--color",
        choices=[scheme.label.lower() for scheme in ColorScheme],
        default="ice",
        help="Color scheme for --png and --record",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Output .npz file path (auto-generated if not provided)",
    )
    parser.add_argument("--png", type=str, default=None, help="Also save a PNG image")
    parser.add_argument(
        "--record",
        type=str,
        default=None,
        help="Record the growth to .gif, .mp4 or .webm",
    )
    parser.add_argument(
        "--frame-every",
        type=int,
        default=25,
        help="Walkers between recorded frames (default: 25)",
    )
    args = parser.parse_args()

    try:
        config = utils.load_params(args.config) if args.config else {}
        config.setdefault("num_particles", args.particles)
        config.setdefault("stickiness", args.stickiness)
        config.setdefault("seed_pattern", args.seed)
        config.setdefault("seed", args.rng_seed)
        params = params_from_dict(config)
        sim = DLASimulation(args.width, args.height, params)
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}")
        return 1

    policy = ColorPolicy(scheme=ColorScheme.from_name(args.color), color_by_age=True)

    print(f"Growing {sim.grid_width}x{sim.grid_height} cluster: N={sim.num_particles}, "
          f"stickiness={sim.stickiness:.2f}, seed={sim.seed_pattern.label}, "
          f"rng_seed={params.seed}")
    start_time = time.time()

    recorder = None
    if args.record:
        recorder = Recorder(RecordingConfig())
        try:
            name = recorder.start(args.record, sim, policy)
        except RecordingError as e:
            print(f"Error: {e}")
            return 1
        print(f"Recording to {name}")

    try:
        calls = grow(sim, recorder, policy, max(1, args.frame_every))
        if recorder is not None and recorder.is_recording:
            frames = recorder.frame_count
            saved = recorder.stop()
            print(f"Recording saved to: {saved} ({frames} frames)")
    except RecordingError as e:
        print(f"Error: {e}")
        return 1

    elapsed_time = time.time() - start_time

    if args.out is None:
        output_dir = Path("results")
        output_dir.mkdir(exist_ok=True)
        args.out = str(
            output_dir
            / f"braille_dla_N{sim.num_particles}_S{params.seed}_{utils.now_str()}.npz"
        )

    result = sim.snapshot()
    result.ensure_meta()["rng_seed"] = params.seed
    utils.save_cluster_result(args.out, result)

    if args.png:
        frame = rasterize(sim, policy, RecordingConfig(pixel_scale=1))
        mpimg.imsave(args.png, frame.pixels)

    stats = analysis.cluster_stats(result)

    print("\nSimulation completed")
    print(f"   Time elapsed: {elapsed_time:.2f} seconds")
    print(f"   Walkers launched: {calls}")
    print(f"   Particles stuck: {stats['particles']}")
    print(f"   R_max: {stats['r_max']:.2f}")
    print(f"   Radius of gyration: {stats['r_gyration']:.2f}")
    if stats["df_sandbox"] is not None:
        print(f"   Sandbox Df: {stats['df_sandbox']:.3f} (R^2={stats['df_r_squared']:.3f})")
    else:
        print("   Sandbox Df: cluster too small")
    print(f"   Output saved to: {args.out}")
    if args.png:
        print(f"   Image saved to: {args.png}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
