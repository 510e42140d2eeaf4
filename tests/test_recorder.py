import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from braille_dla import (
    App,
    ColorPolicy,
    ColorScheme,
    DLASimulation,
    GrowthParams,
    Recorder,
    RecordingConfig,
    RecordingError,
)
from braille_dla.recorder import (
    FfmpegEncoder,
    FrameEncoder,
    GifEncoder,
    OutputFormat,
    RgbFrame,
    rasterize,
)


class FailingEncoder(FrameEncoder):
    format_name = "failing"

    def __init__(self):
        self.finished = False

    def add_frame(self, frame):
        raise RecordingError("disk full")

    def finish(self):
        self.finished = True


def test_rasterize_shape_and_colors():
    sim = DLASimulation(64, 48, GrowthParams(seed=0))
    frame = rasterize(sim, ColorPolicy(), RecordingConfig(pixel_scale=2))
    assert frame.pixels.shape == (96, 128, 3)
    assert (frame.width, frame.height) == (128, 96)
    assert frame.pixels.dtype == np.uint8

    # point seed at (32, 24) scaled by 2
    assert np.all(frame.pixels[48:50, 64:66] == 255)
    assert np.count_nonzero(frame.pixels.any(axis=2)) == 4


def test_rasterize_age_colors_and_background():
    sim = DLASimulation(64, 64, GrowthParams(seed=0))
    policy = ColorPolicy(scheme=ColorScheme.FIRE, color_by_age=True)
    frame = rasterize(sim, policy, RecordingConfig(pixel_scale=1, background_color=(1, 2, 3)))
    assert tuple(frame.pixels[32, 32]) == ColorScheme.FIRE.map(0.0)
    assert tuple(frame.pixels[0, 0]) == (1, 2, 3)


def test_output_format_from_filename():
    assert OutputFormat.from_filename("a.GIF") is OutputFormat.GIF
    assert OutputFormat.from_filename("a.webm") is OutputFormat.WEBM
    assert OutputFormat.from_filename("a.mp4") is OutputFormat.MP4
    assert OutputFormat.from_filename("a") is OutputFormat.MP4


def test_gif_recording(tmp_path):
    sim = DLASimulation(64, 64, GrowthParams(num_particles=200, seed=1))
    recorder = Recorder(RecordingConfig(pixel_scale=1))
    out = str(tmp_path / "growth.gif")

    assert recorder.start(out, sim, ColorPolicy(color_by_age=True)) == out
    assert recorder.is_recording
    assert recorder.frame_count == 1
    assert recorder.elapsed >= 0.0

    for _ in range(6):
        for _ in range(5):
            sim.step()
        recorder.capture_frame(sim, ColorPolicy(color_by_age=True))
    assert recorder.frame_count == 7

    assert recorder.stop() == out
    assert not recorder.is_recording
    assert recorder.frame_count is None
    with Image.open(out) as image:
        assert image.format == "GIF"
        assert image.size == (64, 64)


def test_capture_every_other_frame():
    recorder = Recorder()
    assert recorder.should_capture() is False
    recorder.encoder = FailingEncoder()
    decisions = [recorder.should_capture() for _ in range(6)]
    assert decisions == [False, True, False, True, False, True]


def test_stop_when_idle_raises():
    with pytest.raises(RecordingError):
        Recorder().stop()


def test_start_twice_raises(tmp_path):
    sim = DLASimulation(64, 64)
    recorder = Recorder()
    recorder.start(str(tmp_path / "a.gif"), sim)
    with pytest.raises(RecordingError):
        recorder.start(str(tmp_path / "b.gif"), sim)


def test_empty_gif_raises(tmp_path):
    encoder = GifEncoder(str(tmp_path / "empty.gif"), 30)
    with pytest.raises(RecordingError):
        encoder.finish()


def test_failing_encoder_stops_recording_and_keeps_grid():
    app = App(32, 16, GrowthParams(num_particles=500, seed=3))
    for _ in range(3):
        app.tick()
    app.toggle_pause()

    app.recorder.encoder = FailingEncoder()
    app.recorder.filename = "broken.gif"
    before = app.simulation.cells.copy()
    stuck = app.simulation.particles_stuck

    app.tick()
    app.tick()

    assert not app.recorder.is_recording
    assert app.status_message.startswith("Recording stopped")
    assert np.array_equal(before, app.simulation.cells)
    assert app.simulation.particles_stuck == stuck


def test_encoder_error_after_start_ends_recording(tmp_path):
    app = App(32, 16, GrowthParams(seed=3))

    class _Boom(FrameEncoder):
        def add_frame(self, frame):
            raise RecordingError("no space")

        def finish(self):
            pass

    # start succeeds, then a broken encoder surfaces on the next capture
    assert app.start_recording(str(tmp_path / "ok.gif"))
    assert app.recorder.is_recording
    app.recorder.encoder = _Boom()
    app.toggle_pause()
    app.tick()
    app.tick()
    assert not app.recorder.is_recording
    assert app.stop_recording() is None


@pytest.mark.parametrize(
    "requested, expected",
    [("growth.mp4", "growth.gif"), ("growth.webm", "growth.gif"), ("growth", "growth.gif")],
)
def test_missing_ffmpeg_falls_back_to_gif(tmp_path, monkeypatch, requested, expected):
    monkeypatch.setattr(FfmpegEncoder, "is_available", staticmethod(lambda: False))
    sim = DLASimulation(64, 64, GrowthParams(seed=2))
    recorder = Recorder(RecordingConfig(pixel_scale=1))

    name = recorder.start(str(tmp_path / requested), sim)
    assert name == str(tmp_path / expected)
    assert isinstance(recorder.encoder, GifEncoder)
    assert recorder.stop() == name
    with Image.open(name) as image:
        assert image.format == "GIF"


def test_app_records_without_ffmpeg(tmp_path, monkeypatch):
    monkeypatch.setattr(FfmpegEncoder, "is_available", staticmethod(lambda: False))
    app = App(32, 16, GrowthParams(seed=2), recording=RecordingConfig(pixel_scale=1))

    assert app.start_recording(str(tmp_path / "live.mp4"))
    assert app.status_message == f"Recording to {tmp_path / 'live.gif'}"
    assert app.stop_recording() == str(tmp_path / "live.gif")
    assert (tmp_path / "live.gif").exists()


def test_gif_frame_limit_saves_and_stops(tmp_path):
    sim = DLASimulation(64, 64, GrowthParams(num_particles=300, seed=4))
    recorder = Recorder(RecordingConfig(pixel_scale=1, max_frames=3))
    out = str(tmp_path / "capped.gif")
    recorder.start(out, sim)
    recorder.capture_frame(sim)
    recorder.capture_frame(sim)
    assert recorder.frame_count == 3
    assert len(recorder.encoder.frames) == 3

    with pytest.raises(RecordingError, match="Frame limit"):
        recorder.capture_frame(sim)
    assert not recorder.is_recording
    assert Path(out).exists()


def test_app_reports_frame_limit(tmp_path):
    app = App(
        32, 16, GrowthParams(seed=4), recording=RecordingConfig(pixel_scale=1, max_frames=2)
    )
    out = tmp_path / "short.gif"
    assert app.start_recording(str(out))
    app.toggle_pause()
    for _ in range(4):
        app.tick()

    assert not app.recorder.is_recording
    assert "Frame limit of 2 reached" in app.status_message
    assert out.exists()


def test_gif_encoder_wraps_pillow_errors(tmp_path):
    encoder = GifEncoder(str(tmp_path / "bad.gif"), 30)
    bad = RgbFrame(pixels=np.zeros((4, 4, 7), dtype=np.float64))
    with pytest.raises(RecordingError):
        encoder.add_frame(bad)
    assert encoder.frames == []


def test_pillow_error_becomes_status_message(tmp_path, monkeypatch):
    app = App(32, 16, GrowthParams(seed=5), recording=RecordingConfig(pixel_scale=1))
    assert app.start_recording(str(tmp_path / "pillow.gif"))

    def _broken(*args, **kwargs):
        raise OSError("encoder crashed")

    monkeypatch.setattr(Image, "fromarray", _broken)
    app.toggle_pause()
    app.tick()
    app.tick()

    assert not app.recorder.is_recording
    assert app.status_message.startswith("Recording stopped")
