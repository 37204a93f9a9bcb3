import math
from typing import Callable, Sequence, Tuple

from .config import VisualizationConfig
from .errors import ConfigurationError
from .types import RGB, ConicGradient, LinearGradient, Paint, Point, Shadow, SolidColor, Stop


RAINBOW: Tuple[Stop, ...] = (
    (0.0, (255, 0, 0)),
    (0.16, (255, 255, 0)),
    (0.33, (0, 255, 0)),
    (0.5, (0, 255, 255)),
    (0.66, (0, 0, 255)),
    (0.83, (255, 0, 255)),
    (1.0, (255, 0, 0)),
)

GLOW = Shadow(color=(255, 255, 255), blur=8.0)

PaintFn = Callable[[Point, Point], Paint]


def parse_color(value: str) -> RGB:
    """``#rgb`` / ``#rrggbb`` to an (r, g, b) tuple."""
    s = (value or "").strip()
    if not s.startswith("#"):
        raise ConfigurationError(f"invalid color: {value!r}")
    s = s[1:]
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        raise ConfigurationError(f"invalid color: {value!r}")
    try:
        return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
    except ValueError as exc:
        raise ConfigurationError(f"invalid color: {value!r}") from exc


def even_stops(colors: Sequence[str]) -> Tuple[Stop, ...]:
    last = max(len(colors) - 1, 1)
    return tuple((j / last, parse_color(c)) for j, c in enumerate(colors))


def color_at(stops: Sequence[Stop], t: float) -> RGB:
    """Linear interpolation through sorted stops, clamped at both ends."""
    if not stops:
        return (0, 0, 0)
    t = min(max(float(t), 0.0), 1.0)
    if t <= stops[0][0]:
        return stops[0][1]
    for (o0, c0), (o1, c1) in zip(stops, stops[1:]):
        if t <= o1:
            f = 0.0 if o1 <= o0 else (t - o0) / (o1 - o0)
            return tuple(int(round(a + (b - a) * f)) for a, b in zip(c0, c1))
    return stops[-1][1]


def conic_offset(center: Point, p: Point) -> float:
    """Position of ``p`` along a conic sweep around ``center`` (0..1)."""
    angle = math.atan2(p[1] - center[1], p[0] - center[0])
    if angle < 0:
        angle += 2.0 * math.pi
    return angle / (2.0 * math.pi)


def _has_stops(cfg: VisualizationConfig) -> bool:
    return bool(cfg.gradient_colors) and len(cfg.gradient_colors) > 1


def resolve_paint(cfg: VisualizationConfig, style: str, center: Point = (0.0, 0.0)) -> PaintFn:
    """Pick the paint variant once per frame.

    The returned function maps a stroke's (start, end) to its paint; only the
    linear gradient depends on the geometry.
    """
    solid = SolidColor(parse_color(cfg.wave_color))

    if cfg.use_gradient and style == "circle" and _has_stops(cfg):
        stops = even_stops(cfg.gradient_colors)
        return lambda start, end: LinearGradient(start, end, stops)

    if cfg.use_gradient and style == "radial":
        if _has_stops(cfg):
            conic = ConicGradient(center, even_stops(cfg.gradient_colors))
        else:
            conic = ConicGradient(center, RAINBOW)
        return lambda start, end: conic

    return lambda start, end: solid


def resolve_shadow(cfg: VisualizationConfig, style: str) -> Shadow | None:
    if style == "radial" and cfg.use_gradient:
        return GLOW
    return None
