# sketchpitch

sketchpitch turns a hand-drawn line into a pitch-shifting audio effect. A curve drawn on a
grid that runs from -12 to +12 semitones is looped in time with the host tempo, and the
input audio is shifted to follow it. The package has no dependencies beyond the standard
library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `sketchpitch.draw_grid`

`DrawGrid(width, height)` models the drawing surface in pixels. It is driven by
`mouse_down(x, y)`, `mouse_drag(x, y)`, `mouse_up()` and `mouse_move(x, y)`. Positions
are rounded and clamped into the grid with `clamp_point`.

The modes are given by `DrawMode`, and `set_mode` switches between them:

- `SOLO`: pressing clears everything and starts a new curve.
- `LAYER`: pressing starts another curve alongside the existing ones.
- `ERASE`: dragging lays down an eraser stroke. `apply_visual_eraser` then splits curves
  where the stroke passes within 6 pixels of a point. It also merges the stroke's
  horizontal extent into `erased_ranges`, a list of normalised `(start, end)` pairs.

Each curve is a `Curve` holding `CurvePoint(normalized_x, pitch)` values and a pixel path.
The `pitch_curve` property returns the points of the first finished curve. Other members:

- `set_pitch_curve` replaces all curves with one built from the given points.
- `reset` clears everything.
- `point_near_eraser` tests a pixel position against the eraser.
- `on_curve_finished` and `on_erased` are optional callbacks.

### `sketchpitch.pitch_delay`

`PitchDelay(phase_choice)` is a stereo delay line. Its read offset sweeps by
`1 - 2**(semitone/12)` samples per sample, which transposes the signal. The offset wraps
within a 30 ms span. `process_sample(x, channel, angle)` returns the output sample and the
crossfade angle, which is reset whenever the offset wraps. The `phase_choice` of 1, 2 or 3
staggers the starting offset.

### `sketchpitch.pitch_shift`

`PitchShifter` runs three phase-staggered `PitchDelay` voices and crossfades them with
sine windows. Its methods are `set_sample_rate`, `set_pitch(semitone)` and
`process_sample(x, channel)`.

### `sketchpitch.processor`

`SketchPitchProcessor` applies the curve to audio:

1. Call `prepare_to_play(sample_rate, samples_per_block, num_channels)` first.
2. Call `process_block(buffer, position)` on a sequence of per-channel sample lists. It
   works in place.

`position` is a `PlayheadPosition(ppq_position, time_sig_numerator)` or `None`. The loop
lasts `time_sig_numerator / multiplier` quarter notes, where the multiplier is chosen by
the `loop_rate` index into `LOOP_RATE_CHOICES`.

For each block, the processor reads the curve point at the current phase of the loop and
snaps its pitch towards the nearest semitone by `snap` percent (see `quantize_pitch`). It
then smooths the pitch over 0.1 s. Audio is muted while the point's x lies within one of
the ranges passed to `set_erased_ranges`. Output channels beyond the prepared input
channels are cleared.

`get_state()` serialises the parameters and the curve as XML bytes, and `set_state(data)`
restores them. After a restore, `needs_curve_update` is set.

### `sketchpitch.interface`

This module holds the parts of the user interface that do not depend on any toolkit:

- Knob text and images: `loop_rate_label`, `snap_label` and `knob_frame_index`.
- Menu ids: `mode_for_id` maps a mode-menu id (1, 2, 3) to a `DrawMode`.
- Layout: `main_layout(width, height)` and `editor_layout(width, height)` return named
  `Rect` values scaled from a 728×600 reference.

`Editor(processor, grid)` wires a grid to a processor:

- A finished curve is sent to the processor through `send_pitch_curve`.
- Erased ranges are forwarded to the processor.
- `timer_tick` advances `pitch_playhead` and picks up a restored curve.
- `change_mode(selected_id)` switches the grid's mode.
- `shake()` clears the grid and returns a list of small random window offsets, one per
  frame, ending with `(0, 0)`.

## Example

```python
from sketchpitch.draw_grid import DrawGrid
from sketchpitch.processor import PlayheadPosition, SketchPitchProcessor

grid = DrawGrid(570, 425)
grid.mouse_down(0, 212)
grid.mouse_drag(300, 100)
grid.mouse_up()

processor = SketchPitchProcessor()
processor.prepare_to_play(48000.0, 512, 2)
processor.set_pitch_curve(grid.pitch_curve)

block = [[0.0] * 512, [0.0] * 512]
processor.process_block(block, PlayheadPosition(ppq_position=0.0, time_sig_numerator=4))
```

## What it does not do

sketchpitch is a library of models and signal processing only:

- It draws nothing on screen and has no window or widgets.
- It does not read or write audio devices or files, and it does not run as a plugin inside
  a host.
- It has no timers of its own. The caller feeds pointer events to `DrawGrid`, audio blocks
  and transport positions to `SketchPitchProcessor`, and ticks to `Editor.timer_tick`.
- Layouts are returned as rectangles for the caller to apply.