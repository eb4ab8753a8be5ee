"""Drawing surface model: pitch curves sketched with a pointer, plus an eraser."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

PITCH_RANGE = 12.0
ERASER_RADIUS = 6.0
ERASER_STEP = 2.0
DRAW_STEP = 1.0
RANGE_MERGE_TOLERANCE = 0.01

Point = tuple[float, float]


def _jmap(value: float, src_min: float, src_max: float,
          dst_min: float, dst_max: float) -> float:
    return dst_min + (value - src_min) * (dst_max - dst_min) / (src_max - src_min)


def _segment_distance(p: Point, a: Point, b: Point) -> float:
    ax, ay = a
    bx, by = b
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.dist(p, a)
    t = ((p[0] - ax) * dx + (p[1] - ay) * dy) / length_sq
    t = min(1.0, max(0.0, t))
    return math.dist(p, (ax + t * dx, ay + t * dy))


@dataclass(frozen=True)
class CurvePoint:
    """A point on a pitch curve: horizontal position in 0..1, pitch in semitones."""

    normalized_x: float
    pitch: float


class DrawMode(Enum):
    SOLO = "solo"
    LAYER = "layer"
    ERASE = "erase"


_CURSORS = {
    DrawMode.SOLO: "solo",
    DrawMode.LAYER: "multi",
    DrawMode.ERASE: "eraser",
}


@dataclass
class Curve:
    """A drawn curve: its points and the pixel path through them, as sub-paths."""

    points: list[CurvePoint] = field(default_factory=list)
    path: list[list[Point]] = field(default_factory=list)

    def start_new_sub_path(self, x: float, y: float) -> None:
        self.path.append([(x, y)])

    def line_to(self, x: float, y: float) -> None:
        if not self.path:
            self.path.append([(0.0, 0.0)])
        self.path[-1].append((x, y))

    def clear(self) -> None:
        self.points.clear()
        self.path.clear()


class DrawGrid:
    """A pitch-drawing grid of a given pixel size, driven by pointer events."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("grid width and height must be positive")
        self.width = int(width)
        self.height = int(height)
        self.curves: list[Curve] = []
        self.current_curve = Curve()
        self.mode = DrawMode.SOLO
        self.cursor = _CURSORS[DrawMode.SOLO]
        self.eraser_cursor: Point = (0.0, 0.0)
        self.eraser_points: list[Point] = []
        self.erased_ranges: list[tuple[float, float]] = []
        self.full_pitch_curve: list[CurvePoint] = []
        self.on_curve_finished: Optional[Callable[[], None]] = None
        self.on_erased: Optional[Callable[[], None]] = None

    # -- coordinate helpers -------------------------------------------------

    def _pitch_to_y(self, pitch: float) -> float:
        return _jmap(pitch, -PITCH_RANGE, PITCH_RANGE, float(self.height), 0.0)

    def _y_to_pitch(self, y: float) -> float:
        return _jmap(y, 0.0, float(self.height), PITCH_RANGE, -PITCH_RANGE)

    def _to_pixels(self, cp: CurvePoint) -> Point:
        return cp.normalized_x * self.width, self._pitch_to_y(cp.pitch)

    def _build_curve(self, points: list[CurvePoint]) -> Curve:
        curve = Curve(points=list(points))
        if points:
            curve.start_new_sub_path(*self._to_pixels(points[0]))
            for cp in points[1:]:
                curve.line_to(*self._to_pixels(cp))
        return curve

    def clamp_point(self, x: float, y: float) -> tuple[int, int]:
        """Round a position to whole pixels and keep it inside the grid."""
        cx = min(max(int(round(x)), 0), self.width - 1)
        cy = min(max(int(round(y)), 0), self.height - 1)
        return cx, cy

    # -- queries -------------------------------------------------------------

    @property
    def pitch_curve(self) -> list[CurvePoint]:
        """Points of the first finished curve, or an empty list."""
        return list(self.curves[0].points) if self.curves else []

    def point_near_eraser(self, x: float, y: float, tolerance: float) -> bool:
        """Whether a pixel position lies within tolerance of the eraser stroke."""
        pt = (float(x), float(y))
        if math.dist(pt, self.eraser_cursor) < tolerance:
            return True
        return any(
            _segment_distance(pt, a, b) < tolerance
            for a, b in zip(self.eraser_points, self.eraser_points[1:])
        )

    # -- pointer events ------------------------------------------------------

    def mouse_move(self, x: float, y: float) -> None:
        if self.mode is DrawMode.ERASE:
            self.eraser_cursor = (float(x), float(y))

    def mouse_down(self, x: float, y: float) -> None:
        if self.mode is DrawMode.ERASE:
            self.eraser_points.clear()
            self.eraser_cursor = (float(x), float(y))
            self.eraser_points.append(self.eraser_cursor)
            return

        if self.mode is DrawMode.SOLO:
            self.curves.clear()
            self.eraser_points.clear()
            self.erased_ranges.clear()
            self.current_curve.clear()
            self.full_pitch_curve.clear()

        cx, cy = self.clamp_point(x, y)
        cp = CurvePoint(cx / self.width, self._y_to_pitch(float(cy)))
        self.current_curve.start_new_sub_path(*self._to_pixels(cp))
        self.current_curve.points.append(cp)

    def mouse_drag(self, x: float, y: float) -> None:
        cx, cy = self.clamp_point(x, y)
        current = (float(cx), float(cy))

        if self.mode is DrawMode.ERASE:
            last = self.eraser_points[-1] if self.eraser_points else current
            steps = max(1, int(math.dist(last, current) / ERASER_STEP))
            for i in range(1, steps + 1):
                alpha = i / steps
                self.eraser_points.append((
                    last[0] + alpha * (current[0] - last[0]),
                    last[1] + alpha * (current[1] - last[1]),
                ))
            self.eraser_points.append(current)
            self.eraser_cursor = current
            self.apply_visual_eraser()
            return

        if self.current_curve.points:
            last = self._to_pixels(self.current_curve.points[-1])
        else:
            last = current
        dx = current[0] - last[0]
        dy = current[1] - last[1]
        steps = max(1, int(math.hypot(dx, dy) / DRAW_STEP))
        for i in range(steps + 1):
            alpha = i / steps
            px = last[0] + alpha * dx
            py = last[1] + alpha * dy
            self.current_curve.points.append(
                CurvePoint(px / self.width, self._y_to_pitch(py)))
            self.current_curve.line_to(px, py)

    def mouse_up(self) -> None:
        if self.mode is DrawMode.ERASE:
            self.eraser_points.clear()
            return

        if self.current_curve.points:
            finished = Curve(
                points=list(self.current_curve.points),
                path=[list(sub) for sub in self.current_curve.path],
            )
            self.curves.append(finished)
            self.full_pitch_curve.extend(finished.points)

        self.current_curve.clear()
        if self.on_curve_finished:
            self.on_curve_finished()

    # -- erasing -------------------------------------------------------------

    def apply_visual_eraser(self) -> None:
        """Split curves where the eraser touched them and record erased x-ranges."""
        cleaned: list[Curve] = []
        for curve in self.curves:
            segment: list[CurvePoint] = []
            for cp in curve.points:
                pt = self._to_pixels(cp)
                erased = any(math.dist(pt, ep) < ERASER_RADIUS
                             for ep in self.eraser_points)
                if erased:
                    if len(segment) > 1:
                        cleaned.append(self._build_curve(segment))
                    segment = []
                else:
                    segment.append(cp)
            if len(segment) > 1:
                cleaned.append(self._build_curve(segment))
            if self.on_erased:
                self.on_erased()
        self.curves = cleaned

        x_tolerance = ERASER_RADIUS / self.width
        new_ranges: list[list[float]] = []
        for ex, _ in self.eraser_points:
            norm_x = ex / self.width
            if new_ranges and norm_x <= new_ranges[-1][1] + x_tolerance:
                new_ranges[-1][1] = max(new_ranges[-1][1], norm_x)
            else:
                new_ranges.append([norm_x, norm_x])

        combined = sorted(self.erased_ranges + [(a, b) for a, b in new_ranges])
        merged: list[tuple[float, float]] = []
        for start, end in combined:
            if not merged or start > merged[-1][1] + RANGE_MERGE_TOLERANCE:
                merged.append((start, end))
            else:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        self.erased_ranges = merged

    # -- state ---------------------------------------------------------------

    def set_pitch_curve(self, points: list[CurvePoint]) -> None:
        """Replace all curves with one built from the given points; empty input is ignored."""
        if points:
            self.curves = [self._build_curve(list(points))]

    def set_mode(self, mode: DrawMode) -> None:
        self.mode = DrawMode(mode)
        self.cursor = _CURSORS[self.mode]

    def reset(self) -> None:
        self.curves.clear()
        self.eraser_points.clear()
        self.erased_ranges.clear()
        self.full_pitch_curve.clear()
        self.current_curve.clear()