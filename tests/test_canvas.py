from __future__ import annotations

import numpy as np

from wavescope.canvas import Canvas, paint_color
from wavescope.config import VisualizationConfig
from wavescope.paint import GLOW, RAINBOW
from wavescope.renderer import render
from wavescope.types import (
    ConicGradient, Fill, LinearGradient, Polyline, Rect, Segment, SolidColor,
)

RED, GREEN, BLUE = (255, 0, 0), (0, 255, 0), (0, 0, 255)


def test_fill_writes_bgr_background() -> None:
    frame = Canvas(8, 4).paint([Fill(RED)])
    assert frame.shape == (4, 8, 3)
    assert frame.dtype == np.uint8
    assert np.all(frame[..., 2] == 255)
    assert np.all(frame[..., :2] == 0)


def test_rect_is_filled() -> None:
    frame = Canvas(40, 40).paint([Fill((0, 0, 0)), Rect(10, 10, 20, 20, SolidColor(GREEN))])
    assert tuple(frame[20, 20]) == (0, 255, 0)
    assert tuple(frame[2, 2]) == (0, 0, 0)


def test_gradient_segment_changes_colour_along_stroke() -> None:
    paint = LinearGradient((5.0, 20.0), (95.0, 20.0), ((0.0, RED), (1.0, BLUE)))
    frame = Canvas(100, 40).paint([Fill((0, 0, 0)), Segment((5.0, 20.0), (95.0, 20.0), paint, 3)])
    b, _, r = frame[20, 10].astype(int)
    assert r > b
    b, _, r = frame[20, 90].astype(int)
    assert b > r


def test_polyline_solid_and_degenerate() -> None:
    canvas = Canvas(50, 50)
    canvas.paint([Fill((0, 0, 0)), Polyline(((5.0, 25.0),), SolidColor(RED), 2)])
    assert canvas.frame.sum() == 0
    canvas.paint([Polyline(((5.0, 25.0), (45.0, 25.0)), SolidColor(RED), 2)])
    assert canvas.frame[25, 25, 2] > 0


def test_shadow_brightens_around_the_outline() -> None:
    pts = ((10.0, 10.0), (50.0, 10.0), (50.0, 50.0), (10.0, 50.0))
    paint = ConicGradient((30.0, 30.0), RAINBOW)
    plain = Canvas(60, 60).paint([Fill((0, 0, 0)), Polyline(pts, paint, 4, closed=True)]).copy()
    glow = Canvas(60, 60).paint([Fill((0, 0, 0)), Polyline(pts, paint, 4, closed=True, shadow=GLOW)])
    assert int(glow.sum()) > int(plain.sum())


def test_conic_colour_starts_at_angle_zero() -> None:
    paint = ConicGradient((0.0, 0.0), ((0.0, RED), (1.0, BLUE)))
    assert paint_color(paint, (1.0, 0.0)) == RED
    # a quarter turn clockwise in screen coordinates
    assert paint_color(paint, (0.0, 1.0)) == (191, 0, 64)


def test_paints_every_style() -> None:
    for style in ("oscilloscope", "bars", "circle", "radial"):
        cfg = VisualizationConfig(style=style, use_gradient=True, bar_count=8)
        signal = np.linspace(0.0, 1.0, 128)
        frame = Canvas(120, 60).paint(render(signal, cfg, 120, 60))
        assert frame.any()


def test_silent_circle_leaves_only_background() -> None:
    cfg = VisualizationConfig(style="circle", bar_count=16, line_width=4)
    frame = Canvas(120, 60).paint(render(np.zeros(64), cfg, 120, 60))
    assert not frame.any()


def test_zero_length_segment_draws_nothing() -> None:
    canvas = Canvas(20, 20)
    canvas.paint([Segment((10.0, 10.0), (10.0, 10.0), SolidColor(RED), 6)])
    assert not canvas.frame.any()
