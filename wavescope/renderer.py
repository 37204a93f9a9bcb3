"""The four visualization styles.

Every style is a pure function of (smoothed signal, config, surface size)
returning draw primitives; the live preview and the exporter both call
``render`` so they cannot drift apart.
"""

import math
from typing import List, Sequence, Tuple

import numpy as np

from .config import VisualizationConfig
from .errors import ConfigurationError
from .fft import normalize_magnitudes
from .paint import parse_color, resolve_paint, resolve_shadow
from .types import Fill, Polyline, Primitive, Rect, Segment

# presentation constant: FFT magnitudes are tiny after averaging
VISIBILITY_SCALE = 8.0
# extra reach of circle/radial strokes beyond wave_height
RADIAL_BOOST = 40.0
BAR_GAP = 4.0

FREQUENCY_STYLES = ("bars", "circle", "radial")


def prepare_signal(style: str, time_domain, spectrum) -> np.ndarray:
    """Signal vector a style consumes, before smoothing."""
    if style == "oscilloscope":
        return np.asarray(time_domain, dtype=np.float64)
    return normalize_magnitudes(spectrum)


def bar_ranges(bin_count: int, bar_count: int) -> List[Tuple[int, int]]:
    bars = max(1, int(bar_count))
    return [
        (i * bin_count // bars, (i + 1) * bin_count // bars)
        for i in range(bars)
    ]


def aggregate_bars(bins: Sequence[float], bar_count: int) -> np.ndarray:
    """Average contiguous bin groups; a group with no bins reads as 0."""
    bins = np.asarray(bins, dtype=np.float64)
    ranges = bar_ranges(bins.shape[0], bar_count)
    out = np.zeros(len(ranges), dtype=np.float64)
    for i, (start, end) in enumerate(ranges):
        if end > start:
            out[i] = bins[start:end].sum() / (end - start)
    return out


def render_oscilloscope(signal, cfg: VisualizationConfig, width: float, height: float) -> List[Primitive]:
    signal = np.asarray(signal, dtype=np.float64)
    n = signal.shape[0]
    cy = height / 2.0
    xs = np.arange(n, dtype=np.float64) * (width / n) if n else np.zeros(0)
    ys = signal * (cfg.wave_height / 2.0) + cy

    points = tuple((float(x), float(y)) for x, y in zip(xs, ys))
    points += ((float(width), float(cy)),)
    paint = resolve_paint(cfg, "oscilloscope")(points[0], points[-1])
    return [Polyline(points=points, paint=paint, width=float(cfg.line_width))]


def render_bars(signal, cfg: VisualizationConfig, width: float, height: float) -> List[Primitive]:
    values = aggregate_bars(signal, cfg.bar_count)
    bars = values.shape[0]
    bar_w = width / bars - BAR_GAP
    paint_for = resolve_paint(cfg, "bars")

    out: List[Primitive] = []
    if bar_w <= 0:
        return out
    for i, value in enumerate(values):
        bar_h = float(value * cfg.wave_height * VISIBILITY_SCALE)
        if bar_h <= 0:
            continue
        x = i * (bar_w + BAR_GAP)
        y = height - bar_h
        out.append(Rect(x=float(x), y=float(y), w=float(bar_w), h=bar_h,
                        paint=paint_for((x, height), (x, y))))
    return out


def render_circle(signal, cfg: VisualizationConfig, width: float, height: float) -> List[Primitive]:
    values = aggregate_bars(signal, cfg.bar_count)
    bars = values.shape[0]
    cx, cy = width / 2.0, height / 2.0
    radius = min(width, height) / 4.0
    paint_for = resolve_paint(cfg, "circle", (cx, cy))
    stroke = float(cfg.line_width + 1)

    out: List[Primitive] = []
    for i, value in enumerate(values):
        length = value * (cfg.wave_height + RADIAL_BOOST) * VISIBILITY_SCALE
        angle = i / bars * 2.0 * math.pi
        c, s = math.cos(angle), math.sin(angle)
        start = (float(cx + radius * c), float(cy + radius * s))
        end = (float(cx + (radius + length) * c), float(cy + (radius + length) * s))
        out.append(Segment(start=start, end=end, paint=paint_for(start, end), width=stroke))
    return out


def render_radial(signal, cfg: VisualizationConfig, width: float, height: float) -> List[Primitive]:
    values = np.asarray(signal, dtype=np.float64)
    bins = values.shape[0]
    cx, cy = width / 2.0, height / 2.0
    radius = min(width, height) / 4.0

    points = []
    for i in range(bins):
        r = radius + values[i] * (cfg.wave_height + RADIAL_BOOST) * VISIBILITY_SCALE
        angle = i / bins * 2.0 * math.pi
        points.append((float(cx + math.cos(angle) * r), float(cy + math.sin(angle) * r)))
    points = tuple(points)

    paint_for = resolve_paint(cfg, "radial", (cx, cy))
    anchor = points[0] if points else (cx, cy)
    return [Polyline(
        points=points,
        paint=paint_for(anchor, anchor),
        width=float(cfg.line_width + 2),
        closed=True,
        shadow=resolve_shadow(cfg, "radial"),
    )]


_STYLES = {
    "oscilloscope": render_oscilloscope,
    "bars": render_bars,
    "circle": render_circle,
    "radial": render_radial,
}


def render(signal, cfg: VisualizationConfig, width: float, height: float) -> List[Primitive]:
    """Background fill followed by the primitives of ``cfg.style``."""
    draw = _STYLES.get(cfg.style)
    if draw is None:
        raise ConfigurationError(f"unknown visualization style: {cfg.style!r}")
    return [Fill(parse_color(cfg.background_color))] + draw(signal, cfg, width, height)
