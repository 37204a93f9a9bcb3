"""Live preview path: analyser snapshot -> smoothing -> renderer -> surface."""

from typing import List, Optional, Protocol

import cv2
import numpy as np

from .canvas import Canvas
from .config import AppConfig, VisualizationConfig
from .fft import fft_magnitudes
from .paint import parse_color
from .renderer import prepare_signal, render
from .smoothing import SmoothingFilter
from .stats import PerfCounter
from .types import DecodedAudio, Fill, Primitive
from .windows import frequency_window, time_window


class Analyser(Protocol):
    def time_domain(self, width: int) -> np.ndarray: ...

    def frequency_domain(self) -> np.ndarray: ...


class Surface(Protocol):
    width: int
    height: int

    def paint(self, primitives: List[Primitive]): ...


class BufferAnalyser:
    """Analyser over already decoded audio at a movable playback position."""

    def __init__(self, audio: DecodedAudio, fps: float, fft_size: int = 2048):
        self.audio = audio
        self.fps = fps
        self.fft_size = fft_size
        self.position = 0.0

    def seek(self, seconds: float):
        self.position = min(max(float(seconds), 0.0), self.audio.duration)

    def time_domain(self, width: int) -> np.ndarray:
        return time_window(self.audio, self.position, width, self.fps)

    def frequency_domain(self) -> np.ndarray:
        return fft_magnitudes(frequency_window(self.audio, self.position, self.fft_size), self.fft_size)


class LiveSession:
    """One preview session; owns its smoothing history."""

    def __init__(self):
        self.smoothing = SmoothingFilter()

    def render_frame(self, analyser: Optional[Analyser], surface: Optional[Surface],
                     cfg: VisualizationConfig) -> Optional[List[Primitive]]:
        # nothing attached yet: skip the frame
        if analyser is None or surface is None:
            return None

        w, h = surface.width, surface.height
        if cfg.style == "oscilloscope":
            raw = prepare_signal(cfg.style, analyser.time_domain(w), None)
        else:
            raw = prepare_signal(cfg.style, None, analyser.frequency_domain())

        signal = self.smoothing.apply(raw, cfg.smoothing, cfg.style)
        primitives = render(signal, cfg, w, h)
        surface.paint(primitives)
        return primitives

    def paint_idle(self, surface: Optional[Surface], cfg: VisualizationConfig):
        if surface is not None:
            surface.paint([Fill(parse_color(cfg.background_color))])


def run_preview(audio: DecodedAudio, cfg: AppConfig, window: str = "wavescope") -> int:
    """Play the visualization in an OpenCV window; q or Esc closes it.

    The playback position follows the wall clock. Returns the number of
    frames shown.
    """
    vis = cfg.visual
    analyser = BufferAnalyser(audio, vis.fps, cfg.analysis.fft_size)
    canvas = Canvas(cfg.video.w, cfg.video.h)
    session = LiveSession()
    delay_ms = max(1, int(1000 / vis.fps))

    perf = PerfCounter()
    perf.start()
    try:
        while True:
            position = perf.elapsed()
            if position > audio.duration:
                break
            analyser.seek(position)
            session.render_frame(analyser, canvas, vis)
            perf.tick(1)

            cv2.imshow(window, canvas.frame)
            key = cv2.waitKey(delay_ms) & 0xFF
            if key in (ord("q"), 27):
                break
    finally:
        perf.stop()
        cv2.destroyWindow(window)

    if cfg.verbose:
        print(f"👀 Preview: {perf.frames} frames | avg FPS ≈ {perf.avg_fps():.1f}")
    return perf.frames
