"""Audio processor that follows a drawn pitch curve in time with the host tempo."""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import MutableSequence, Optional, Sequence, Union

from sketchpitch.draw_grid import CurvePoint
from sketchpitch.pitch_shift import PitchShifter

LOOP_RATE_CHOICES = ("0.25x", "0.5x", "1x", "2x", "4x", "8x", "16x")
LOOP_MULTIPLIERS = (0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 16.0)
DEFAULT_LOOP_RATE = 2
SNAP_MIN = 0.0
SNAP_MAX = 100.0
PITCH_SMOOTHING_SECONDS = 0.1

STATE_TAG = "DrawState"
PARAMETERS_TAG = "PARAMETERS"
PARAM_TAG = "PARAM"
CURVE_TAG = "PitchCurve"
POINT_TAG = "Point"


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def quantize_pitch(pitch: float, snap_amount: float) -> float:
    """Pull a pitch towards the nearest semitone by snap_amount percent."""
    t = min(1.0, max(0.0, snap_amount / 100.0))
    snapped = _round_half_away(pitch)
    return pitch + t * (snapped - pitch)


@dataclass(frozen=True)
class PlayheadPosition:
    """Host transport position: quarter notes from the start and the bar length."""

    ppq_position: float
    time_sig_numerator: int = 4


class _LinearSmoother:
    """Linear ramp towards a target over a fixed number of steps."""

    def __init__(self) -> None:
        self.current = 0.0
        self.target = 0.0
        self._steps_to_target = 0
        self._countdown = 0
        self._step = 0.0

    def reset(self, sample_rate: float, ramp_seconds: float) -> None:
        self._steps_to_target = int(math.floor(ramp_seconds * sample_rate))
        self.current = self.target
        self._countdown = 0

    def set_target(self, value: float) -> None:
        if value == self.target:
            return
        if self._steps_to_target <= 0:
            self.current = self.target = value
            self._countdown = 0
            return
        self.target = value
        self._countdown = self._steps_to_target
        self._step = (self.target - self.current) / self._countdown

    def next_value(self) -> float:
        if self._countdown <= 0:
            return self.target
        self._countdown -= 1
        if self._countdown > 0:
            self.current += self._step
        else:
            self.current = self.target
        return self.current


def _float_attribute(element: ET.Element, name: str) -> float:
    try:
        return float(element.get(name, 0.0))
    except ValueError:
        return 0.0


class SketchPitchProcessor:
    """Applies the drawn pitch curve, looped against the host tempo, to audio blocks."""

    def __init__(self) -> None:
        self._snap = SNAP_MIN
        self._loop_rate = DEFAULT_LOOP_RATE
        self.pitch_curve: list[CurvePoint] = []
        self.erased_ranges: list[tuple[float, float]] = []
        self.pitch_playhead = 0
        self.needs_curve_update = False
        self._shifter = PitchShifter()
        self._smoother = _LinearSmoother()
        self._previous_mute_states: list[bool] = []
        self._mute_gains: list[float] = []
        self._prepared = False

    # -- parameters ----------------------------------------------------------

    @property
    def snap(self) -> float:
        """Snap-to-semitone amount, 0 to 100 percent."""
        return self._snap

    @snap.setter
    def snap(self, value: float) -> None:
        self._snap = min(SNAP_MAX, max(SNAP_MIN, float(value)))

    @property
    def loop_rate(self) -> int:
        """Index into LOOP_RATE_CHOICES."""
        return self._loop_rate

    @loop_rate.setter
    def loop_rate(self, value: float) -> None:
        self._loop_rate = min(len(LOOP_RATE_CHOICES) - 1, max(0, int(round(value))))

    # -- playback ------------------------------------------------------------

    def prepare_to_play(self, sample_rate: float, samples_per_block: int,
                        num_channels: int) -> None:
        """Configure for a sample rate and number of input channels."""
        self._shifter.set_sample_rate(sample_rate)
        self._smoother.reset(sample_rate, PITCH_SMOOTHING_SECONDS)
        num_channels = int(num_channels)
        if num_channels < 0:
            raise ValueError("channel count cannot be negative")
        del self._previous_mute_states[num_channels:]
        self._previous_mute_states.extend(
            [False] * (num_channels - len(self._previous_mute_states)))
        del self._mute_gains[num_channels:]
        self._mute_gains.extend([1.0] * (num_channels - len(self._mute_gains)))
        self._prepared = True

    def _is_muted(self, normalized_x: float) -> bool:
        return any(start <= normalized_x <= end for start, end in self.erased_ranges)

    def process_block(self, buffer: Sequence[MutableSequence[float]],
                      position: Optional[PlayheadPosition]) -> None:
        """Process channel sample lists in place at the given transport position."""
        if not self._prepared:
            raise RuntimeError("prepare_to_play must be called before processing")
        num_inputs = len(self._mute_gains)
        for channel in buffer[num_inputs:]:
            channel[:] = [0.0] * len(channel)

        if not self.pitch_curve or position is None:
            return

        multiplier = LOOP_MULTIPLIERS[self.loop_rate]
        beats_per_loop = position.time_sig_numerator / multiplier
        phase = math.fmod(position.ppq_position, beats_per_loop) / beats_per_loop
        count = len(self.pitch_curve)
        index = min(count - 1, max(0, int(phase * count)))
        point = self.pitch_curve[index]

        muted = self._is_muted(point.normalized_x)
        self._smoother.set_target(quantize_pitch(point.pitch, self.snap))

        for ch, channel in enumerate(buffer[:num_inputs]):
            num_samples = len(channel)
            was_muted = self._previous_mute_states[ch]
            gain = self._mute_gains[ch]
            target_gain = 0.0 if muted else 1.0
            gain_step = ((target_gain - gain) / num_samples
                         if was_muted != muted and num_samples else 0.0)

            if not muted:
                self._shifter.set_pitch(self._smoother.next_value())

            out = []
            for sample in channel:
                if muted:
                    value = 0.0
                else:
                    self._smoother.next_value()
                    value = self._shifter.process_sample(sample, ch)
                gain += gain_step
                out.append(value * gain)
            channel[:] = out

            self._mute_gains[ch] = target_gain
            self._previous_mute_states[ch] = muted

    # -- curve and state -----------------------------------------------------

    def set_pitch_curve(self, points: Sequence[CurvePoint]) -> None:
        self.pitch_curve = list(points)

    def set_erased_ranges(self, ranges: Sequence[tuple[float, float]]) -> None:
        self.erased_ranges = [(float(a), float(b)) for a, b in ranges]

    def get_state(self) -> bytes:
        """Serialise parameters and the pitch curve as XML."""
        root = ET.Element(STATE_TAG)
        params = ET.SubElement(root, PARAMETERS_TAG)
        ET.SubElement(params, PARAM_TAG, id="snap", value=repr(self.snap))
        ET.SubElement(params, PARAM_TAG, id="loopRate", value=str(self.loop_rate))
        curve = ET.SubElement(root, CURVE_TAG)
        for point in self.pitch_curve:
            ET.SubElement(curve, POINT_TAG,
                          x=repr(float(point.normalized_x)),
                          pitch=repr(float(point.pitch)))
        return ET.tostring(root, encoding="utf-8")

    def set_state(self, data: Union[bytes, str]) -> None:
        """Restore from get_state output; unreadable data is ignored."""
        try:
            root: Optional[ET.Element] = ET.fromstring(data)
        except ET.ParseError:
            root = None

        if root is not None:
            params = root.find(PARAMETERS_TAG)
            if params is not None:
                for param in params.iter(PARAM_TAG):
                    value = _float_attribute(param, "value")
                    if param.get("id") == "snap":
                        self.snap = value
                    elif param.get("id") == "loopRate":
                        self.loop_rate = value
            curve = root.find(CURVE_TAG)
            if curve is not None:
                self.pitch_curve = [
                    CurvePoint(_float_attribute(el, "x"), _float_attribute(el, "pitch"))
                    for el in curve
                    if el.tag == POINT_TAG
                ]

        self.needs_curve_update = True