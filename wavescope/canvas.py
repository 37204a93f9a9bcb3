from typing import Iterable, Sequence

import cv2
import numpy as np

from .paint import color_at, conic_offset
from .types import (
    RGB, ConicGradient, Fill, LinearGradient, Paint, Point, Polyline, Primitive, Rect, Segment,
    Shadow, SolidColor,
)

# sub-pixel precision for cv2 drawing calls (coordinates are scaled by 2**SHIFT)
SHIFT = 4
_SCALE = 1 << SHIFT
GRADIENT_STEPS = 16


def _bgr(color: RGB) -> tuple:
    r, g, b = color
    return (int(b), int(g), int(r))


def _fixed(points: Sequence[Point]) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.round(pts * _SCALE).astype(np.int32)


def _thickness(width: float) -> int:
    return max(1, int(round(width)))


def paint_color(paint: Paint, p: Point) -> RGB:
    """Colour of ``paint`` at point ``p``."""
    if isinstance(paint, SolidColor):
        return paint.color
    if isinstance(paint, LinearGradient):
        (x0, y0), (x1, y1) = paint.start, paint.end
        dx, dy = x1 - x0, y1 - y0
        norm = dx * dx + dy * dy
        t = 0.0 if norm <= 0 else ((p[0] - x0) * dx + (p[1] - y0) * dy) / norm
        return color_at(paint.stops, t)
    if isinstance(paint, ConicGradient):
        return color_at(paint.stops, conic_offset(paint.center, p))
    raise TypeError(f"unsupported paint: {paint!r}")


def _mid(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5)


class Canvas:
    """BGR drawing surface backed by a numpy frame."""

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def paint(self, primitives: Iterable[Primitive]) -> np.ndarray:
        for prim in primitives:
            if isinstance(prim, Fill):
                self.frame[:] = _bgr(prim.color)
            elif isinstance(prim, Rect):
                self._rect(prim)
            elif isinstance(prim, Segment):
                self._segment(prim.start, prim.end, prim.paint, _thickness(prim.width))
            elif isinstance(prim, Polyline):
                self._polyline(prim)
            else:
                raise TypeError(f"unsupported primitive: {prim!r}")
        return self.frame

    def _rect(self, rect: Rect):
        if rect.w <= 0 or rect.h <= 0:
            return
        color = paint_color(rect.paint, (rect.x + rect.w / 2.0, rect.y + rect.h / 2.0))
        p0 = _fixed([(rect.x, rect.y)])[0]
        p1 = _fixed([(rect.x + rect.w, rect.y + rect.h)])[0]
        cv2.rectangle(self.frame, tuple(int(v) for v in p0), tuple(int(v) for v in p1),
                      _bgr(color), thickness=-1, lineType=cv2.LINE_AA, shift=SHIFT)

    def _segment(self, start: Point, end: Point, paint: Paint, thickness: int,
                 color: tuple | None = None):
        # butt caps: a zero-length stroke covers nothing
        if start == end:
            return
        if color is None and isinstance(paint, LinearGradient):
            # gradient along the stroke: short solid pieces coloured at their midpoint
            (x0, y0), (x1, y1) = start, end
            for k in range(GRADIENT_STEPS):
                t0, t1 = k / GRADIENT_STEPS, (k + 1) / GRADIENT_STEPS
                a = (x0 + (x1 - x0) * t0, y0 + (y1 - y0) * t0)
                b = (x0 + (x1 - x0) * t1, y0 + (y1 - y0) * t1)
                self._segment(a, b, paint, thickness, color=_bgr(paint_color(paint, _mid(a, b))))
            return

        if color is None:
            color = _bgr(paint_color(paint, _mid(start, end)))
        a, b = _fixed([start, end])
        cv2.line(self.frame, tuple(int(v) for v in a), tuple(int(v) for v in b), color,
                 thickness, lineType=cv2.LINE_AA, shift=SHIFT)

    def _edges(self, line: Polyline):
        pts = list(line.points)
        edges = list(zip(pts, pts[1:]))
        if line.closed and len(pts) > 2:
            edges.append((pts[-1], pts[0]))
        return edges

    def _polyline(self, line: Polyline):
        if len(line.points) < 2:
            return
        thickness = _thickness(line.width)

        if line.shadow is not None:
            self._shadow(line, thickness, line.shadow)

        if isinstance(line.paint, SolidColor):
            cv2.polylines(self.frame, [_fixed(line.points)], isClosed=line.closed,
                          color=_bgr(line.paint.color), thickness=thickness,
                          lineType=cv2.LINE_AA, shift=SHIFT)
            return

        for a, b in self._edges(line):
            self._segment(a, b, line.paint, thickness,
                          color=_bgr(paint_color(line.paint, _mid(a, b))))

    def _shadow(self, line: Polyline, thickness: int, shadow: Shadow):
        mask = np.zeros((self.height, self.width), dtype=np.uint8)
        cv2.polylines(mask, [_fixed(line.points)], isClosed=line.closed, color=255,
                      thickness=thickness, lineType=cv2.LINE_AA, shift=SHIFT)
        sigma = max(float(shadow.blur) / 2.0, 0.1)
        mask = cv2.GaussianBlur(mask, (0, 0), sigmaX=sigma, sigmaY=sigma)

        alpha = (mask.astype(np.float32) / 255.0)[..., None]
        color = np.asarray(_bgr(shadow.color), dtype=np.float32)
        blended = self.frame.astype(np.float32) * (1.0 - alpha) + color * alpha
        self.frame[:] = np.clip(blended, 0, 255).astype(np.uint8)
