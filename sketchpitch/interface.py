"""Editor model: control labels, layout geometry and the wiring between grid and processor."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional

from sketchpitch.draw_grid import DrawGrid, DrawMode
from sketchpitch.processor import SketchPitchProcessor

REF_WIDTH = 728
REF_HEIGHT = 600
ASPECT_RATIO = REF_WIDTH / REF_HEIGHT

LOOP_RATE_LABELS = ("4 Bars", "2 Bars", "1 Bar", "1/2", "1/4", "1/8", "1/16")

KNOB_FRAMES = 245
KNOB_FRAME_WIDTH = 430
KNOB_FRAME_HEIGHT = 490

EDITOR_TIMER_HZ = 60
SHAKE_RATE_HZ = 60
SHAKE_DURATION_MS = 200
SHAKE_MAX_OFFSET = 2

MODE_IDS = {1: DrawMode.SOLO, 2: DrawMode.LAYER, 3: DrawMode.ERASE}


@dataclass(frozen=True)
class Rect:
    """An integer rectangle in component coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


def loop_rate_label(value: float) -> str:
    """Text shown above the loop-rate knob for a knob value."""
    index = min(len(LOOP_RATE_LABELS) - 1, max(0, int(value)))
    return LOOP_RATE_LABELS[index]


def snap_label(value: float) -> str:
    """Text shown above the snap knob: the whole percentage."""
    return f"{int(value)}%"


def knob_frame_index(value: float, minimum: float, maximum: float) -> int:
    """Which frame of the knob filmstrip shows the given value."""
    if maximum == minimum:
        raise ValueError("knob range must not be empty")
    fraction = (value - minimum) / (maximum - minimum)
    return min(KNOB_FRAMES - 1, max(0, math.floor(fraction * (KNOB_FRAMES - 1))))


def mode_for_id(selected_id: int) -> Optional[DrawMode]:
    """Draw mode for a mode-menu item id, or None for an id with no mode."""
    return MODE_IDS.get(selected_id)


def _scales(width: int, height: int) -> tuple[float, float]:
    if width <= 0 or height <= 0:
        raise ValueError("layout width and height must be positive")
    return width / REF_WIDTH, height / REF_HEIGHT


def main_layout(width: int, height: int) -> dict[str, Rect]:
    """Positions of the knobs and their labels for a window of the given size."""
    scale_x, scale_y = _scales(width, height)
    knob_w = int(120.0 * scale_x)
    knob_h = int(120.0 * scale_y)
    knob_y = int(500.0 * scale_y)

    snap_knob = Rect(int(-5.0 * scale_x), knob_y, knob_w, knob_h)
    loop_knob = Rect(width - knob_w + int(5.0 * scale_x), knob_y, knob_w, knob_h)
    return {
        "snap_knob": snap_knob,
        "loop_rate_knob": loop_knob,
        "loop_rate_label": Rect(loop_knob.x + knob_w // 2 - 35, loop_knob.y - 30, 100, 20),
        "snap_label": Rect(snap_knob.x + knob_w // 2 - 65, snap_knob.y - 30, 100, 20),
    }


def editor_layout(width: int, height: int) -> dict[str, Rect]:
    """Positions of the editor's parts for a window of the given size."""
    scale_x, scale_y = _scales(width, height)
    return {
        "pitch_grid": Rect(int(80.0 * scale_x), int(75.0 * scale_y),
                           int(570.0 * scale_x), int(425.0 * scale_y)),
        "mode": Rect(int(20.0 * scale_x), int(20.0 * scale_y),
                     int(160.0 * scale_x), int(30.0 * scale_y)),
        "main": Rect(0, 0, width, height),
        "shake": Rect(int(600.0 * scale_x), int(20.0 * scale_y),
                      int(100.0 * scale_x), int(30.0 * scale_y)),
    }


class Editor:
    """Connects a drawing grid to a processor and drives the playhead timer."""

    def __init__(self, processor: SketchPitchProcessor, grid: DrawGrid) -> None:
        self.processor = processor
        self.grid = grid
        self.selected_mode_id = 1
        self.timer_hz = EDITOR_TIMER_HZ
        self.rng = random.Random()

        grid.on_erased = self._forward_erased_ranges
        if processor.pitch_curve:
            grid.set_pitch_curve(processor.pitch_curve)
        grid.on_curve_finished = self.send_pitch_curve

    def _forward_erased_ranges(self) -> None:
        self.processor.set_erased_ranges(self.grid.erased_ranges)

    def timer_tick(self) -> None:
        """Advance the playhead and pick up a curve restored into the processor."""
        length = len(self.processor.pitch_curve)
        if length == 0:
            return
        self.processor.pitch_playhead = (self.processor.pitch_playhead + 1) % length
        if self.processor.needs_curve_update:
            self.processor.needs_curve_update = False
            self.grid.set_pitch_curve(self.processor.pitch_curve)

    def send_pitch_curve(self) -> None:
        """Hand the grid's curve to the processor and retime the playhead; 0 Hz stops it."""
        self.processor.set_pitch_curve(self.grid.pitch_curve)
        self.timer_hz = len(self.processor.pitch_curve) // 2

    def change_mode(self, selected_id: int) -> None:
        """Switch the grid's draw mode from a mode-menu item id; unknown ids are ignored."""
        mode = mode_for_id(selected_id)
        if mode is not None:
            self.selected_mode_id = selected_id
            self.grid.set_mode(mode)

    def shake(self) -> list[tuple[int, int]]:
        """Clear the grid and return the window offsets of the shake, one per frame."""
        self.grid.reset()
        frames = SHAKE_DURATION_MS * SHAKE_RATE_HZ // 1000
        offsets = [
            (self.rng.randint(-SHAKE_MAX_OFFSET, SHAKE_MAX_OFFSET),
             self.rng.randint(-SHAKE_MAX_OFFSET, SHAKE_MAX_OFFSET))
            for _ in range(frames)
        ]
        offsets.append((0, 0))
        return offsets