"""Three crossfaded delay voices forming a continuous pitch shifter."""

from __future__ import annotations

import math

from sketchpitch.pitch_delay import (
    DEFAULT_SAMPLE_RATE,
    MAX_DELAY_SECONDS,
    NUM_CHANNELS,
    RESET_ANGLE,
    PitchDelay,
    transposition_for,
)

_TWO_PI = 2.0 * math.pi
_MIX = 2.0 / 3.0


class PitchShifter:
    """Stereo pitch shifter built from three phase-staggered delay voices."""

    def __init__(self) -> None:
        self.fs = DEFAULT_SAMPLE_RATE
        # The crossfade period is tied to the delay span at the default rate.
        self.max_delay_samples = MAX_DELAY_SECONDS * DEFAULT_SAMPLE_RATE
        self.semitone = 0.0
        self.transposition = 1.0
        self.delta = 0.0
        self.freq = 0.0
        self.angle_change = 0.0
        self._voices = (PitchDelay(1), PitchDelay(2), PitchDelay(3))
        self._angles = [
            [RESET_ANGLE + k * _TWO_PI / 3.0] * NUM_CHANNELS for k in range(3)
        ]
        self._update_angle_rate()

    def _update_angle_rate(self) -> None:
        if self.delta == 0.0:
            self.freq = 0.0
        else:
            period = (self.max_delay_samples - 1.0) / (self.delta * self.fs)
            self.freq = 1.0 / period
        self.angle_change = self.freq * _TWO_PI / self.fs

    def set_sample_rate(self, fs: float) -> None:
        """Set the sample rate of all voices."""
        for voice in self._voices:
            voice.set_sample_rate(fs)
        self.fs = float(fs)
        self._update_angle_rate()

    def set_pitch(self, semitone: float) -> None:
        """Set the shift in semitones."""
        self.semitone = float(semitone)
        self.transposition = transposition_for(self.semitone)
        self.delta = 1.0 - self.transposition
        self._update_angle_rate()
        for voice in self._voices:
            voice.set_pitch(self.semitone)

    def process_sample(self, x: float, channel: int) -> float:
        """Shift one sample of the given channel."""
        total = 0.0
        for voice, angles in zip(self._voices, self._angles):
            y, angle = voice.process_sample(x, channel, angles[channel])
            total += (0.5 * math.sin(angle) + 0.5) * y
            angle += self.angle_change
            if angle > _TWO_PI:
                angle -= _TWO_PI
            elif angle < 0.0:
                angle += _TWO_PI
            angles[channel] = angle
        return total * _MIX