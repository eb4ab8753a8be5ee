import math

import pytest

from sketchpitch.pitch_delay import RESET_ANGLE, PitchDelay


def _impulse_response(line, length, channel=0):
    out = []
    for i in range(length):
        y, _ = line.process_sample(1.0 if i == 0 else 0.0, channel, 0.0)
        out.append(y)
    return out


def _first_nonzero(values):
    return next(i for i, v in enumerate(values) if abs(v) > 1e-12)


@pytest.mark.parametrize("choice", [0, 4, -1])
def test_invalid_phase_choice(choice):
    with pytest.raises(ValueError):
        PitchDelay(choice)


def test_phase_one_delays_by_two_samples_at_unison():
    line = PitchDelay(1)
    line.set_pitch(0.0)
    assert _impulse_response(line, 5) == [0.0, 0.0, 1.0, 0.0, 0.0]


def test_phase_three_offset_is_twice_phase_two():
    two = PitchDelay(2)
    three = PitchDelay(3)
    pos_two = _first_nonzero(_impulse_response(two, 1200))
    pos_three = _first_nonzero(_impulse_response(three, 1200))
    assert pos_three == 2 * pos_two


def test_sample_rate_scales_offset():
    fast = PitchDelay(2)
    slow = PitchDelay(2)
    slow.set_sample_rate(24000)
    pos_fast = _first_nonzero(_impulse_response(fast, 600))
    pos_slow = _first_nonzero(_impulse_response(slow, 600))
    assert pos_fast == 2 * pos_slow


def test_channels_are_independent():
    line = PitchDelay(1)
    for i in range(4):
        line.process_sample(1.0 if i == 0 else 0.0, 0, 0.0)
    outputs = [line.process_sample(0.0, 1, 0.0)[0] for _ in range(4)]
    assert outputs == [0.0, 0.0, 0.0, 0.0]


def test_pitch_up_wraps_offset_and_resets_angle():
    line = PitchDelay(1)
    line.set_pitch(12.0)
    _, angle = line.process_sample(0.0, 0, 0.25)
    assert angle == pytest.approx(1.5 * math.pi)
    assert line.delays[0] == pytest.approx(line.max_delay_samples)


def test_pitch_down_wraps_once_and_resets_angle():
    line = PitchDelay(3)
    line.set_pitch(-12.0)
    angles = [line.process_sample(0.0, 0, 0.25)[1] for _ in range(2000)]
    first = angles.index(RESET_ANGLE)
    assert first > 0
    assert all(a == 0.25 for a in angles[:first])
    assert angles.count(RESET_ANGLE) == 1


def test_angle_is_passed_through_at_unison():
    line = PitchDelay(2)
    angles = {line.process_sample(0.5, 1, 0.7)[1] for _ in range(100)}
    assert angles == {0.7}


@pytest.mark.parametrize("channel", [-1, 2])
def test_invalid_channel(channel):
    with pytest.raises(ValueError):
        PitchDelay(1).process_sample(0.0, channel, 0.0)


@pytest.mark.parametrize("fs", [0.0, -44100.0, 1e7])
def test_invalid_sample_rate(fs):
    with pytest.raises(ValueError):
        PitchDelay(1).set_sample_rate(fs)