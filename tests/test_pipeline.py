from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from conftest import RecordingEncoder, tone
from wavescope import pipeline
from wavescope.errors import ConfigurationError, DecodeError, EncodeError
from wavescope.paint import RAINBOW
from wavescope.pipeline import CancelToken, ExportJob, FrameClock, export_video, progress_for
from wavescope.types import DecodedAudio, JobState


def test_two_second_clip_exports_120_frames(cfg, encoder) -> None:
    cfg.visual.style = "bars"
    cfg.visual.bar_count = 32
    cfg.visual.smoothing = 0.8
    cfg.visual.fps = 60
    progress: list[float] = []

    job = ExportJob(tone(2.0), cfg, encoder=encoder, on_progress=progress.append)
    result = job.run()

    assert result.state is JobState.COMPLETE
    assert result.output_path == "recorded.mp4"
    assert result.frames == 120
    assert len(encoder.frames) == 120
    assert encoder.size == (64, 32, 60)
    assert encoder.frames[0].shape == (32, 64, 3)
    assert encoder.finished and not encoder.aborted
    assert progress[-1] == 100.0
    assert all(b >= a for a, b in zip(progress, progress[1:]))


@pytest.mark.parametrize("n_samples", [0, 100])
def test_clip_shorter_than_a_frame_yields_one_frame(cfg, encoder, n_samples: int) -> None:
    audio = DecodedAudio(np.zeros(n_samples), 44100)
    result = ExportJob(audio, cfg, encoder=encoder).run()
    assert result.state is JobState.COMPLETE
    assert len(encoder.frames) == 1


def test_cancel_from_progress_callback(cfg, encoder) -> None:
    reported: list[float] = []
    job = ExportJob(tone(1.0), cfg, encoder=encoder)

    def on_progress(pct: float) -> None:
        reported.append(pct)
        if pct >= 50.0:
            job.cancel()

    job.on_progress = on_progress
    result = job.run()

    assert result.state is JobState.CANCELLED
    assert job.progress == 0.0
    assert reported[-1] == 0.0
    assert encoder.aborted and not encoder.finished
    assert 0 < len(encoder.frames) < 60
    # nothing is reported between the cancel request and the reset
    assert reported[-2] >= 50.0


def test_cancel_before_rendering(cfg, encoder) -> None:
    token = CancelToken()
    token.cancel()
    result = ExportJob(tone(0.5), cfg, encoder=encoder, token=token).run()
    assert result.state is JobState.CANCELLED
    assert encoder.frames == []
    assert encoder.size is None


def test_cancel_after_completion_is_a_no_op(cfg, encoder) -> None:
    job = ExportJob(tone(0.1), cfg, encoder=encoder)
    job.run()
    job.cancel()
    assert job.state is JobState.COMPLETE
    assert not job.token.cancelled
    assert job.progress == 100.0


def test_job_runs_only_once(cfg, encoder) -> None:
    job = ExportJob(tone(0.1), cfg, encoder=encoder)
    job.run()
    with pytest.raises(RuntimeError):
        job.run()


def test_decode_error_fails_the_job(cfg, encoder) -> None:
    def broken_decoder(*args, **kwargs):
        raise DecodeError("not an audio file")

    result = ExportJob(b"garbage", cfg, encoder=encoder, decoder=broken_decoder).run()
    assert result.state is JobState.FAILED
    assert isinstance(result.error, DecodeError)
    assert encoder.size is None


def test_invalid_config_fails_the_job(cfg, encoder) -> None:
    cfg.visual.smoothing = 1.5
    result = ExportJob(tone(0.1), cfg, encoder=encoder).run()
    assert result.state is JobState.FAILED
    assert isinstance(result.error, ConfigurationError)
    with pytest.raises(ConfigurationError):
        export_video(tone(0.1), cfg, encoder=RecordingEncoder())


def test_encoder_failure_aborts(cfg) -> None:
    enc = RecordingEncoder(fail_on_finish=EncodeError("ffmpeg failed"))
    result = ExportJob(tone(0.1), cfg, encoder=enc).run()
    assert result.state is JobState.FAILED
    assert isinstance(result.error, EncodeError)
    assert enc.aborted


def test_background_thread(cfg, encoder) -> None:
    job = ExportJob(tone(0.2), cfg, encoder=encoder)
    job.start().join(timeout=60)
    assert job.result().state is JobState.COMPLETE
    assert len(encoder.frames) == 12


@pytest.mark.parametrize("style", ["oscilloscope", "bars", "circle", "radial"])
def test_every_style_exports(cfg, encoder, style: str) -> None:
    cfg.visual.style = style
    cfg.visual.bar_count = 8
    result = export_video(tone(0.1, channels=2), cfg, encoder=encoder)
    assert result.frames == 6
    assert any(f.any() for f in encoder.frames)


def test_frame_clock_pins_last_frame_to_end() -> None:
    clock = FrameClock(60, 2.0)
    assert clock.frame_count == 120
    times = []
    while True:
        times.append(clock.elapsed)
        if clock.is_last:
            break
        clock.tick()
    assert len(times) == 120
    assert times[0] == 0.0
    assert times[-1] == 2.0

    odd = FrameClock(30, 0.05)
    assert odd.frame_count == 2


def test_progress_for() -> None:
    assert progress_for(0.0, 0.0) == 100.0
    assert progress_for(1.0, 2.0) == 50.0
    assert progress_for(3.0, 2.0) == 100.0


def test_radial_rainbow_without_stops_exports(cfg, encoder) -> None:
    cfg.visual.style = "radial"
    cfg.visual.use_gradient = True
    cfg.visual.gradient_colors = []
    audio = tone(0.1)

    job = ExportJob(audio, cfg, encoder=encoder)
    outline = job.render_primitives(audio, 0.0)[1]
    assert outline.paint.stops == RAINBOW

    result = ExportJob(audio, cfg, encoder=RecordingEncoder()).run()
    assert result.state is JobState.COMPLETE


def test_frame_count_matches_rendered_frames(cfg, encoder) -> None:
    # 12348 / 44100 * 25 rounds just above 7 in floating point
    audio = DecodedAudio(np.zeros(12348), 44100)
    cfg.visual.fps = 25
    assert FrameClock(25, audio.duration).frame_count == 7
    result = ExportJob(audio, cfg, encoder=encoder).run()
    assert result.frames == len(encoder.frames) == 7


class FileEncoder(RecordingEncoder):
    def __init__(self, path):
        super().__init__()
        self.path = path

    def finish(self):
        self.path.write_bytes(b"video")
        self.finished = True
        return str(self.path)


def _mux_job(cfg, tmp_path, monkeypatch, mux):
    cfg.encode.mux_audio = True
    cfg.paths.out_final = str(tmp_path / "final.mp4")
    monkeypatch.setattr(pipeline, "mux_audio", mux)
    encoder = FileEncoder(tmp_path / "silent.mp4")
    return ExportJob("song.wav", cfg, encoder=encoder, decoder=lambda *a, **k: tone(0.1))


def test_mux_removes_intermediate_video(cfg, tmp_path, monkeypatch) -> None:
    def mux(in_video, audio_path, out_mp4, verbose_lib, encode):
        Path(out_mp4).write_bytes(b"muxed")
        return out_mp4

    result = _mux_job(cfg, tmp_path, monkeypatch, mux).run()
    assert result.state is JobState.COMPLETE
    assert result.output_path == str(tmp_path / "final.mp4")
    assert not (tmp_path / "silent.mp4").exists()


def test_failed_mux_keeps_no_output(cfg, tmp_path, monkeypatch) -> None:
    def mux(in_video, audio_path, out_mp4, verbose_lib, encode):
        raise EncodeError("audio mux failed")

    result = _mux_job(cfg, tmp_path, monkeypatch, mux).run()
    assert result.state is JobState.FAILED
    assert isinstance(result.error, EncodeError)
    assert not (tmp_path / "silent.mp4").exists()
