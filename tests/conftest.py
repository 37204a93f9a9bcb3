from __future__ import annotations

import numpy as np
import pytest

from wavescope.config import AppConfig
from wavescope.types import DecodedAudio


class RecordingEncoder:
    """In-memory stand-in for the ffmpeg sink."""

    def __init__(self, fail_on_finish: Exception | None = None):
        self.size = None
        self.frames: list[np.ndarray] = []
        self.finished = False
        self.aborted = False
        self.fail_on_finish = fail_on_finish

    def open(self, width, height, fps):
        self.size = (width, height, fps)

    def write(self, frame):
        self.frames.append(frame.copy())

    def finish(self):
        if self.fail_on_finish is not None:
            raise self.fail_on_finish
        self.finished = True
        return "recorded.mp4"

    def abort(self):
        self.aborted = True


def tone(seconds: float, sr: int = 44100, freq: float = 440.0, channels: int = 1) -> DecodedAudio:
    t = np.arange(int(round(seconds * sr))) / sr
    x = 0.5 * np.sin(2 * np.pi * freq * t)
    if channels > 1:
        x = np.repeat(x[:, None], channels, axis=1)
    return DecodedAudio(x, sr)


@pytest.fixture
def cfg() -> AppConfig:
    c = AppConfig.default()
    c.verbose = False
    c.video.w, c.video.h = 64, 32
    return c


@pytest.fixture
def encoder() -> RecordingEncoder:
    return RecordingEncoder()
