"""Offline export: decode, virtual-clock frame loop, streaming encode."""

import math
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from .canvas import Canvas
from .config import AppConfig
from .encode import FFmpegEncoder, FrameEncoder, mux_audio, remove_output
from .errors import WavescopeError
from .fft import fft_magnitudes
from .io_audio import AudioSource, decode_audio
from .renderer import prepare_signal, render
from .smoothing import SmoothingFilter
from .stats import ConsoleProgress, Timer
from .types import DecodedAudio, JobState, Primitive
from .windows import frequency_window, time_window


ProgressFn = Callable[[float], None]


class CancelToken:
    """Cooperative cancellation flag shared between a caller and one job."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class FrameClock:
    """Virtual export clock.

    Frame k sits at k / fps. The first frame whose successor would reach the
    end of the audio is pinned to ``total`` and is the last one. A clip spans
    ceil(total * fps) frames up to float rounding, and a clip shorter than one
    frame gets exactly one.
    """

    def __init__(self, fps: float, total: float, realtime: bool = False):
        self.fps = float(fps)
        self.total = max(float(total), 0.0)
        self.realtime = realtime
        self.frame = 0
        self._t0 = time.perf_counter()

    @property
    def frame_count(self) -> int:
        # same end rule as is_last; the float estimate only seeds the search
        k = max(0, math.ceil(self.total * self.fps) - 1)
        while k > 0 and k / self.fps >= self.total:
            k -= 1
        while (k + 1) / self.fps < self.total:
            k += 1
        return k + 1

    @property
    def is_last(self) -> bool:
        return (self.frame + 1) / self.fps >= self.total

    @property
    def elapsed(self) -> float:
        if self.is_last:
            return self.total
        return min(self.frame / self.fps, self.total)

    def tick(self):
        self.frame += 1
        if self.realtime:
            ahead = self.frame / self.fps - (time.perf_counter() - self._t0)
            if ahead > 0:
                time.sleep(ahead)


def progress_for(elapsed: float, total: float) -> float:
    if total <= 0:
        return 100.0
    return min(elapsed / total, 1.0) * 100.0


def analysis_signal(audio: DecodedAudio, style: str, timestamp: float, width: int,
                    fps: float, fft_size: int) -> np.ndarray:
    """Unsmoothed signal vector of ``style`` at ``timestamp``."""
    if style == "oscilloscope":
        return prepare_signal(style, time_window(audio, timestamp, width, fps), None)
    window = frequency_window(audio, timestamp, fft_size)
    return prepare_signal(style, None, fft_magnitudes(window, fft_size))


@dataclass
class ExportResult:
    state: JobState
    output_path: Optional[str]
    frames: int
    error: Optional[WavescopeError] = None


class ExportJob:
    """One export invocation: Idle -> Decoding -> Rendering -> Finalizing -> Complete.

    ``cancel()`` moves any non-terminal job to Cancelled at the next loop
    iteration; decode, encode and configuration errors end in Failed.
    """

    def __init__(
        self,
        source,
        cfg: AppConfig,
        *,
        encoder: FrameEncoder | None = None,
        on_progress: ProgressFn | None = None,
        token: CancelToken | None = None,
        decoder: Callable[..., DecodedAudio] = decode_audio,
    ):
        self.source = source
        self.cfg = cfg
        self.encoder = encoder or FFmpegEncoder(cfg.paths.out_video, cfg.encode, cfg.verbose_lib)
        self.on_progress = on_progress
        self.token = token or CancelToken()
        self.decoder = decoder

        self.state = JobState.IDLE
        self.progress = 0.0
        self.frames_rendered = 0
        self.output_path: Optional[str] = None
        self.error: Optional[WavescopeError] = None
        self.smoothing = SmoothingFilter()
        self._encoder_open = False

    # -- control ---------------------------------------------------------

    def cancel(self):
        if self.state.terminal:
            return
        self.token.cancel()

    def start(self) -> threading.Thread:
        t = threading.Thread(target=self.run, name="export_job", daemon=True)
        t.start()
        return t

    def result(self) -> ExportResult:
        return ExportResult(self.state, self.output_path, self.frames_rendered, self.error)

    # -- frame production ------------------------------------------------

    def render_primitives(self, audio: DecodedAudio, timestamp: float) -> List[Primitive]:
        vis = self.cfg.visual
        w, h = self.cfg.video.w, self.cfg.video.h
        raw = analysis_signal(audio, vis.style, timestamp, w, vis.fps, self.cfg.analysis.fft_size)
        signal = self.smoothing.apply(raw, vis.smoothing, vis.style)
        return render(signal, vis, w, h)

    def _report(self, pct: float):
        if self.token.cancelled:
            return
        self.progress = pct
        if self.on_progress is not None:
            self.on_progress(pct)

    # -- stages ----------------------------------------------------------

    def _decode(self) -> DecodedAudio:
        if isinstance(self.source, DecodedAudio):
            return self.source
        with Timer("audio decode", verbose=self.cfg.verbose):
            audio = self.decoder(
                self.source,
                self.cfg.audio.target_sr,
                ffmpeg=self.cfg.encode.ffmpeg,
                verbose=self.cfg.verbose_lib,
            )
        if self.cfg.verbose:
            print(
                f"🎵 sr={audio.sample_rate} | channels={audio.channel_count}"
                f" | samples={audio.n_samples} | duration={audio.duration:.2f}s"
            )
        return audio

    def _render(self, audio: DecodedAudio) -> bool:
        vis = self.cfg.visual
        w, h = self.cfg.video.w, self.cfg.video.h
        clock = FrameClock(vis.fps, audio.duration, realtime=self.cfg.encode.realtime)
        canvas = Canvas(w, h)
        console = ConsoleProgress(clock.frame_count) if self.cfg.verbose else None

        if self.cfg.verbose:
            print("🎛 Export config")
            print(f"  style          : {vis.style}")
            print(f"  frames         : {clock.frame_count}")
            print(f"  surface        : {w}x{h} @ {vis.fps} fps")
            print(f"  smoothing      : {vis.smoothing}")

        self.encoder.open(w, h, vis.fps)
        self._encoder_open = True

        while True:
            if self.token.cancelled:
                return False

            last = clock.is_last
            elapsed = clock.elapsed
            frame = canvas.paint(self.render_primitives(audio, elapsed))
            self.encoder.write(frame)
            self.frames_rendered += 1

            self._report(progress_for(elapsed, audio.duration))
            if console is not None:
                console(self.progress, self.frames_rendered)
            if last:
                return True
            clock.tick()

    def _finalize(self) -> str:
        out = self.encoder.finish()
        self._encoder_open = False
        if not self.cfg.encode.mux_audio or isinstance(self.source, DecodedAudio):
            return out

        final = self.cfg.paths.out_final
        try:
            with Timer("mux audio", verbose=self.cfg.verbose):
                if isinstance(self.source, (bytes, bytearray)):
                    fd, audio_path = tempfile.mkstemp(suffix=".audio")
                    try:
                        with os.fdopen(fd, "wb") as f:
                            f.write(self.source)
                        return mux_audio(out, audio_path, final, self.cfg.verbose_lib, self.cfg.encode)
                    finally:
                        os.remove(audio_path)
                return mux_audio(out, str(self.source), final, self.cfg.verbose_lib, self.cfg.encode)
        finally:
            # the silent intermediate video is never kept
            if os.path.abspath(out) != os.path.abspath(final):
                remove_output(out)

    def _set_state(self, state: JobState):
        self.state = state

    def _cancelled(self) -> ExportResult:
        if self._encoder_open:
            self.encoder.abort()
            self._encoder_open = False
        self.progress = 0.0
        if self.on_progress is not None:
            self.on_progress(0.0)
        self._set_state(JobState.CANCELLED)
        if self.cfg.verbose:
            print("\n🛑 Export cancelled")
        return self.result()

    def run(self) -> ExportResult:
        if self.state is not JobState.IDLE:
            raise RuntimeError(f"export job already {self.state.value}")
        try:
            self.cfg.validate()

            self._set_state(JobState.DECODING)
            audio = self._decode()
            if self.token.cancelled:
                return self._cancelled()

            self._set_state(JobState.RENDERING)
            with Timer("video render", verbose=self.cfg.verbose):
                finished = self._render(audio)
            if not finished or self.token.cancelled:
                return self._cancelled()

            self._set_state(JobState.FINALIZING)
            self.output_path = self._finalize()
            self.progress = 100.0
            if self.on_progress is not None:
                self.on_progress(100.0)
            self._set_state(JobState.COMPLETE)
            if self.cfg.verbose:
                print(f"✅ Export done: {self.output_path} ({self.frames_rendered} frames)")
        except WavescopeError as exc:
            if self._encoder_open:
                self.encoder.abort()
                self._encoder_open = False
            self.error = exc
            self._set_state(JobState.FAILED)
            if self.cfg.verbose:
                print(f"\n❌ Export failed: {type(exc).__name__}: {exc}")
        except Exception:
            if self._encoder_open:
                self.encoder.abort()
                self._encoder_open = False
            self._set_state(JobState.FAILED)
            raise
        return self.result()


def export_video(source: AudioSource | DecodedAudio, cfg: AppConfig, **kwargs) -> ExportResult:
    """Run an export to completion; raise the job's error if it failed."""
    result = ExportJob(source, cfg, **kwargs).run()
    if result.error is not None:
        raise result.error
    return result
