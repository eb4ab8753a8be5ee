import xml.etree.ElementTree as ET

import pytest

from sketchpitch.draw_grid import CurvePoint
from sketchpitch.processor import (
    LOOP_RATE_CHOICES,
    PlayheadPosition,
    SketchPitchProcessor,
    quantize_pitch,
)


def _prepared(channels=2):
    proc = SketchPitchProcessor()
    proc.prepare_to_play(48000, 512, channels)
    return proc


def _run_dc(proc, position, blocks=4, size=512):
    buffer = None
    for _ in range(blocks):
        buffer = [[1.0] * size, [1.0] * size]
        proc.process_block(buffer, position)
    return buffer


def test_quantize_without_snap_keeps_pitch():
    assert quantize_pitch(2.3, 0.0) == pytest.approx(2.3)
    assert quantize_pitch(2.3, -10.0) == pytest.approx(2.3)


def test_quantize_full_snap_rounds_half_away_from_zero():
    assert quantize_pitch(2.3, 100.0) == pytest.approx(2.0)
    assert quantize_pitch(2.5, 100.0) == pytest.approx(3.0)
    assert quantize_pitch(-2.5, 100.0) == pytest.approx(-3.0)


def test_quantize_clamps_snap_amount():
    assert quantize_pitch(2.3, 250.0) == quantize_pitch(2.3, 100.0)


def test_quantize_partial_snap_lies_between():
    value = quantize_pitch(2.3, 50.0)
    assert quantize_pitch(2.3, 100.0) < value < 2.3


def test_defaults():
    proc = SketchPitchProcessor()
    assert proc.snap == 0.0
    assert LOOP_RATE_CHOICES[proc.loop_rate] == "1x"


def test_parameters_are_clamped():
    proc = SketchPitchProcessor()
    proc.snap = 150
    proc.loop_rate = 10
    assert proc.snap == 100.0
    assert proc.loop_rate == len(LOOP_RATE_CHOICES) - 1
    proc.loop_rate = -3
    assert proc.loop_rate == 0


def test_processing_before_prepare_raises():
    with pytest.raises(RuntimeError):
        SketchPitchProcessor().process_block([[0.0]], PlayheadPosition(0.0))


def test_empty_curve_leaves_audio_untouched():
    proc = _prepared()
    buffer = [[0.5, -0.5], [0.25, 0.75]]
    proc.process_block(buffer, PlayheadPosition(0.0))
    assert buffer == [[0.5, -0.5], [0.25, 0.75]]


def test_missing_playhead_leaves_audio_untouched():
    proc = _prepared()
    proc.set_pitch_curve([CurvePoint(0.5, 3.0)])
    buffer = [[0.5, -0.5], [0.25, 0.75]]
    proc.process_block(buffer, None)
    assert buffer == [[0.5, -0.5], [0.25, 0.75]]


def test_extra_output_channels_are_cleared():
    proc = _prepared(channels=1)
    buffer = [[0.5, 0.5], [0.9, 0.9]]
    proc.process_block(buffer, None)
    assert buffer[1] == [0.0, 0.0]
    assert buffer[0] == [0.5, 0.5]


def test_erased_region_mutes_output():
    proc = _prepared()
    proc.set_pitch_curve([CurvePoint(0.5, 0.0)])
    proc.set_erased_ranges([(0.4, 0.6)])
    buffer = [[1.0] * 64, [1.0] * 64]
    proc.process_block(buffer, PlayheadPosition(1.0))
    assert all(v == 0.0 for channel in buffer for v in channel)


def test_unison_curve_passes_signal():
    proc = _prepared()
    proc.set_pitch_curve([CurvePoint(0.5, 0.0)])
    buffer = _run_dc(proc, PlayheadPosition(0.0))
    assert buffer[0][-1] == pytest.approx(1.0, abs=1e-6)
    assert buffer[1][-1] == pytest.approx(1.0, abs=1e-6)


def test_snap_pulls_small_pitch_to_unison():
    proc = _prepared()
    proc.snap = 100
    proc.set_pitch_curve([CurvePoint(0.5, 0.4)])
    buffer = _run_dc(proc, PlayheadPosition(0.0))
    assert buffer[0][-1] == pytest.approx(1.0, abs=1e-6)


def test_playhead_selects_curve_point():
    curve = [CurvePoint(0.0, 0.0), CurvePoint(1.0, 0.0)]
    muted_first = [(0.0, 0.1)]

    at_start = _prepared()
    at_start.set_pitch_curve(curve)
    at_start.set_erased_ranges(muted_first)
    start_buffer = _run_dc(at_start, PlayheadPosition(0.0, 4))
    assert all(v == 0.0 for v in start_buffer[0])

    half_way = _prepared()
    half_way.set_pitch_curve(curve)
    half_way.set_erased_ranges(muted_first)
    half_buffer = _run_dc(half_way, PlayheadPosition(2.0, 4))
    assert half_buffer[0][-1] == pytest.approx(1.0, abs=1e-6)


def test_state_round_trip():
    proc = SketchPitchProcessor()
    proc.snap = 42.5
    proc.loop_rate = 5
    curve = [CurvePoint(0.1, -3.25), CurvePoint(0.75, 7.5)]
    proc.set_pitch_curve(curve)

    restored = SketchPitchProcessor()
    restored.set_state(proc.get_state())
    assert restored.pitch_curve == curve
    assert restored.snap == proc.snap
    assert restored.loop_rate == proc.loop_rate
    assert restored.needs_curve_update is True


def test_state_layout():
    proc = SketchPitchProcessor()
    proc.set_pitch_curve([CurvePoint(0.5, 1.0)])
    root = ET.fromstring(proc.get_state())
    assert root.tag == "DrawState"
    points = root.find("PitchCurve").findall("Point")
    assert [(p.get("x"), p.get("pitch")) for p in points] == [("0.5", "1.0")]


def test_unreadable_state_keeps_curve_but_flags_update():
    proc = SketchPitchProcessor()
    curve = [CurvePoint(0.2, 1.0)]
    proc.set_pitch_curve(curve)
    proc.set_state(b"not xml at all <")
    assert proc.pitch_curve == curve
    assert proc.needs_curve_update is True


def test_state_point_defaults_and_unknown_children():
    proc = SketchPitchProcessor()
    proc.set_state(
        "<DrawState><PitchCurve><Point pitch='2.5'/><Other x='1'/>"
        "<Point x='0.3' pitch='bad'/></PitchCurve></DrawState>")
    assert proc.pitch_curve == [CurvePoint(0.0, 2.5), CurvePoint(0.3, 0.0)]