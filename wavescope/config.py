from dataclasses import dataclass, field
import operator
import os
import re
from typing import List

from .errors import ConfigurationError


STYLES = ("oscilloscope", "bars", "circle", "radial")

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _check(cond: bool, message: str):
    if not cond:
        raise ConfigurationError(message)


def is_power_of_two(n) -> bool:
    try:
        n = operator.index(n)
    except TypeError:
        return False
    return n > 0 and (n & (n - 1)) == 0


@dataclass
class PathConfig:
    audio_path: str = "music.mp3"
    out_video: str = "visualizer.mp4"
    out_final: str = "visualizer_with_audio.mp4"


@dataclass
class AudioConfig:
    # None keeps the asset's native sample rate
    target_sr: int | None = None


@dataclass
class VideoConfig:
    w: int = 540
    h: int = 160


@dataclass
class VisualizationConfig:
    """Snapshot of the look of one frame; shared by the live and export paths."""

    wave_color: str = "#1DB954"
    background_color: str = "#000000"
    use_gradient: bool = False
    gradient_colors: List[str] = field(default_factory=lambda: ["#ff0000", "#00ff00", "#0000ff"])
    wave_height: float = 100.0
    line_width: float = 2.0
    bar_count: int = 32
    smoothing: float = 0.8
    fps: int = 60
    style: str = "oscilloscope"

    def validate(self):
        _check(self.style in STYLES, f"unknown visualization style: {self.style!r}")
        _check(bool(_HEX_COLOR.match(self.wave_color or "")), f"invalid wave color: {self.wave_color!r}")
        _check(
            bool(_HEX_COLOR.match(self.background_color or "")),
            f"invalid background color: {self.background_color!r}",
        )
        for c in self.gradient_colors:
            _check(bool(_HEX_COLOR.match(c or "")), f"invalid gradient color: {c!r}")
        _check(self.wave_height > 0, "wave_height must be > 0")
        _check(self.line_width >= 1, "line_width must be >= 1")
        _check(int(self.bar_count) >= 1, "bar_count must be >= 1")
        _check(0.0 <= self.smoothing <= 0.99, "smoothing must be in [0, 0.99]")
        _check(self.fps > 0, "fps must be > 0")


@dataclass
class AnalysisConfig:
    fft_size: int = 2048


@dataclass
class EncodeConfig:
    ffmpeg: str = "ffmpeg"
    codec: str = "libx264"
    preset: str = "veryfast"
    crf: int = 18
    pix_fmt: str = "yuv420p"
    audio_codec: str = "aac"
    mux_audio: bool = False
    # sleep between frames so that rendering never runs ahead of wall clock
    realtime: bool = False


@dataclass
class AppConfig:
    verbose: bool = True  # controls application logs
    verbose_lib: bool = False  # controls noisy third-party tools (ffmpeg, etc.)

    paths: PathConfig = field(default_factory=PathConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    visual: VisualizationConfig = field(default_factory=VisualizationConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    encode: EncodeConfig = field(default_factory=EncodeConfig)

    @staticmethod
    def default() -> "AppConfig":
        return AppConfig()

    def apply_env(self):
        os.environ["ENABLE_PJRT_COMPATIBILITY"] = "1"
        if self.verbose:
            os.environ["JAX_DEBUG_NANS"] = "1"
            os.environ["JAX_TRACEBACK_FILTERING"] = "off"
        else:
            os.environ["JAX_TRACEBACK_FILTERING"] = "on"

    def validate(self):
        _check(self.video.w > 0 and self.video.h > 0, "video size must be positive")
        _check(
            self.audio.target_sr is None or self.audio.target_sr >= 8000,
            "target_sr must be >= 8000",
        )
        _check(
            is_power_of_two(self.analysis.fft_size) and self.analysis.fft_size >= 2,
            f"fft_size must be a power of two, got {self.analysis.fft_size}",
        )
        _check(self.encode.crf >= 0, "crf must be >= 0")
        self.visual.validate()
