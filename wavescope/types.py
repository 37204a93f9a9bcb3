from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union
import numpy as np


Point = Tuple[float, float]
RGB = Tuple[int, int, int]
Stop = Tuple[float, RGB]


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """Decoded PCM, shaped (frames, channels), float32."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        samples = np.array(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[:, None]
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def n_samples(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.n_samples / float(self.sample_rate)


@dataclass(frozen=True)
class SolidColor:
    color: RGB


@dataclass(frozen=True)
class LinearGradient:
    """Colour ramp from ``start`` to ``end``; stop offsets are in [0, 1]."""

    start: Point
    end: Point
    stops: Tuple[Stop, ...]


@dataclass(frozen=True)
class ConicGradient:
    """Colour ramp sweeping clockwise around ``center``, starting at angle 0."""

    center: Point
    stops: Tuple[Stop, ...]


Paint = Union[SolidColor, LinearGradient, ConicGradient]


@dataclass(frozen=True)
class Shadow:
    color: RGB
    blur: float


@dataclass(frozen=True)
class Fill:
    color: RGB


@dataclass(frozen=True)
class Polyline:
    points: Tuple[Point, ...]
    paint: Paint
    width: float
    closed: bool = False
    shadow: Optional[Shadow] = None


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float
    paint: Paint


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    paint: Paint
    width: float


Primitive = Union[Fill, Polyline, Rect, Segment]


class JobState(str, Enum):
    IDLE = "idle"
    DECODING = "decoding"
    RENDERING = "rendering"
    FINALIZING = "finalizing"
    CANCELLED = "cancelled"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobState.CANCELLED, JobState.COMPLETE, JobState.FAILED)
