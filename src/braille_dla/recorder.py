"""
Recording of the growing cluster to video or GIF.

Two encoder backends are available:

- MP4/WebM by piping raw RGB frames into an ``ffmpeg`` child process
- GIF through Pillow, with an adaptive palette per frame. Pillow writes
  animated GIFs in one pass, so frames are held until the recording stops;
  ``RecordingConfig.max_frames`` caps that and ends the recording cleanly

Without ffmpeg on the PATH, MP4/WebM requests fall back to GIF.

Recording only ever reads the simulation. Encoder failures surface as
:class:`RecordingError` and leave the grid untouched.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np
from PIL import Image

from .color import ColorPolicy, lookup

if TYPE_CHECKING:
    from .simulation import DLASimulation


class RecordingError(RuntimeError):
    """Raised when a frame cannot be encoded or an encoder cannot start."""


@dataclass
class RecordingConfig:
    pixel_scale: int = 4  # video pixels per simulation cell
    framerate: int = 30
    background_color: Tuple[int, int, int] = (0, 0, 0)
    max_frames: Optional[int] = 600  # GIF frames stay in memory until finish


@dataclass
class RgbFrame:
    """Row-major ``(height, width, 3)`` uint8 frame."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class OutputFormat(Enum):
    MP4 = ".mp4"
    WEBM = ".webm"
    GIF = ".gif"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def from_filename(cls, filename: str) -> "OutputFormat":
        lower = filename.lower()
        if lower.endswith(".gif"):
            return cls.GIF
        if lower.endswith(".webm"):
            return cls.WEBM
        return cls.MP4


def rasterize(
    simulation: "DLASimulation",
    policy: ColorPolicy | None = None,
    config: RecordingConfig | None = None,
) -> RgbFrame:
    """Paint every occupied cell of the grid into an RGB frame."""
    policy = policy or ColorPolicy()
    config = config or RecordingConfig()

    grid = simulation.cells.reshape(simulation.grid_height, simulation.grid_width)
    occupied = grid >= 0

    pixels = np.empty(grid.shape + (3,), dtype=np.uint8)
    pixels[...] = config.background_color
    if policy.color_by_age:
        t = grid[occupied] / simulation.num_particles
        pixels[occupied] = lookup(policy.scheme, t)
    else:
        pixels[occupied] = policy.base_color

    scale = max(1, int(config.pixel_scale))
    if scale > 1:
        pixels = np.repeat(np.repeat(pixels, scale, axis=0), scale, axis=1)
    return RgbFrame(pixels=np.ascontiguousarray(pixels))


###############################################################################
# Encoders
###############################################################################


class FrameEncoder:
    """Base class for encoder backends."""

    format_name = "unknown"

    def add_frame(self, frame: RgbFrame) -> None:
        raise NotImplementedError

    def finish(self) -> None:
        raise NotImplementedError


class FfmpegEncoder(FrameEncoder):
    """Streams rgb24 frames to ffmpeg's stdin."""

    CODEC_ARGS = {
        OutputFormat.MP4: ["-c:v", "libx264", "-preset", "fast", "-crf", "23", "-pix_fmt", "yuv420p"],
        OutputFormat.WEBM: ["-c:v", "libvpx-vp9", "-crf", "30", "-b:v", "0"],
    }

    def __init__(
        self, filename: str, width: int, height: int, fps: int, fmt: OutputFormat
    ) -> None:
        if fmt not in self.CODEC_ARGS:
            raise RecordingError("Use GifEncoder for GIF output")
        if not self.is_available():
            raise RecordingError("FFmpeg not found. Install FFmpeg or use a .gif filename.")

        # libx264 with yuv420p needs even dimensions
        self.width = width - width % 2
        self.height = height - height % 2
        self.format = fmt
        self.format_name = "MP4 (FFmpeg)" if fmt is OutputFormat.MP4 else "WebM (FFmpeg)"
        cmd = [
            "ffmpeg",
            "-y",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{self.width}x{self.height}",
            "-r", str(fps),
            "-i", "-",
            *self.CODEC_ARGS[fmt],
            filename,
        ]
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise RecordingError(f"Failed to spawn FFmpeg: {e}") from e

    @staticmethod
    def is_available() -> bool:
        return shutil.which("ffmpeg") is not None

    def add_frame(self, frame: RgbFrame) -> None:
        pixels = frame.pixels[: self.height, : self.width]
        try:
            self.process.stdin.write(np.ascontiguousarray(pixels).tobytes())
        except (BrokenPipeError, OSError, ValueError) as e:
            raise RecordingError(f"Failed to write frame: {e}") from e

    def finish(self) -> None:
        try:
            self.process.stdin.close()
        except (BrokenPipeError, OSError) as e:
            raise RecordingError(f"FFmpeg failed: {e}") from e
        code = self.process.wait()
        if code != 0:
            raise RecordingError(f"FFmpeg exited with status {code}")


class GifEncoder(FrameEncoder):
    """Collects palette-quantized frames and writes an animated GIF on finish."""

    format_name = "GIF"

    def __init__(self, filename: str, fps: int) -> None:
        self.filename = filename
        self.duration_ms = max(20, int(round(1000.0 / max(fps, 1))))
        self.frames: List[Image.Image] = []

    def add_frame(self, frame: RgbFrame) -> None:
        try:
            image = Image.fromarray(frame.pixels)
            quantized = image.quantize(colors=256, method=Image.Quantize.MEDIANCUT)
        except (OSError, ValueError, TypeError) as e:
            raise RecordingError(f"Failed to encode GIF frame: {e}") from e
        self.frames.append(quantized)

    def finish(self) -> None:
        if not self.frames:
            raise RecordingError("No frames captured")
        try:
            self.frames[0].save(
                self.filename,
                save_all=True,
                append_images=self.frames[1:],
                duration=self.duration_ms,
                loop=0,
            )
        except OSError as e:
            raise RecordingError(f"Failed to write GIF: {e}") from e
        finally:
            self.frames = []


###############################################################################
# Recorder
###############################################################################


class Recorder:
    """
    Idle/recording state machine driven once per animation frame.

    The viewer loop runs at ~60 fps; only every other frame is captured so
    the output plays back at the configured 30 fps.
    """

    def __init__(self, config: RecordingConfig | None = None) -> None:
        self.config = config or RecordingConfig()
        self.encoder: Optional[FrameEncoder] = None
        self.filename: Optional[str] = None
        self._frame_count = 0
        self._start_time = 0.0
        self._skip_counter = 0

    @property
    def is_recording(self) -> bool:
        return self.encoder is not None

    @property
    def frame_count(self) -> Optional[int]:
        return self._frame_count if self.is_recording else None

    @property
    def elapsed(self) -> Optional[float]:
        if not self.is_recording:
            return None
        return time.monotonic() - self._start_time

    def start(
        self,
        filename: str,
        simulation: "DLASimulation",
        policy: ColorPolicy | None = None,
    ) -> str:
        """Open an encoder sized to the current grid and capture the first frame."""
        if self.is_recording:
            raise RecordingError("Already recording")
        if Path(filename).suffix.lower() not in {f.extension for f in OutputFormat}:
            filename += OutputFormat.MP4.extension
        fmt = OutputFormat.from_filename(filename)
        if fmt is not OutputFormat.GIF and not FfmpegEncoder.is_available():
            filename = str(Path(filename).with_suffix(OutputFormat.GIF.extension))
            fmt = OutputFormat.GIF

        first = rasterize(simulation, policy, self.config)
        if fmt is OutputFormat.GIF:
            encoder: FrameEncoder = GifEncoder(filename, self.config.framerate)
        else:
            encoder = FfmpegEncoder(
                filename, first.width, first.height, self.config.framerate, fmt
            )

        self.encoder = encoder
        self.filename = filename
        self._frame_count = 0
        self._skip_counter = 0
        self._start_time = time.monotonic()
        self._add(first)
        return filename

    def should_capture(self) -> bool:
        if not self.is_recording:
            return False
        self._skip_counter = (self._skip_counter + 1) % 2
        return self._skip_counter == 0

    def capture_frame(
        self, simulation: "DLASimulation", policy: ColorPolicy | None = None
    ) -> None:
        if not self.is_recording:
            return
        self._add(rasterize(simulation, policy, self.config))

    def _add(self, frame: RgbFrame) -> None:
        limit = self.config.max_frames
        if (
            limit is not None
            and isinstance(self.encoder, GifEncoder)
            and self._frame_count >= limit
        ):
            filename = self.stop()
            raise RecordingError(f"Frame limit of {limit} reached, saved {filename}")
        try:
            self.encoder.add_frame(frame)
        except RecordingError:
            self.abort()
            raise
        self._frame_count += 1

    def stop(self) -> str:
        """Finish the output file and return its name."""
        if not self.is_recording:
            raise RecordingError("Not recording")
        encoder, filename = self.encoder, self.filename
        self.encoder = None
        self.filename = None
        encoder.finish()
        return filename

    def abort(self) -> None:
        """Drop the current encoder without finishing the file."""
        encoder = self.encoder
        self.encoder = None
        self.filename = None
        if isinstance(encoder, FfmpegEncoder):
            encoder.process.kill()
            encoder.process.wait()


__all__ = [
    "RecordingError",
    "RecordingConfig",
    "RgbFrame",
    "OutputFormat",
    "rasterize",
    "FrameEncoder",
    "FfmpegEncoder",
    "GifEncoder",
    "Recorder",
]
