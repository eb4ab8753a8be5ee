"""Variable delay line whose sweeping read position transposes the signal."""

from __future__ import annotations

import math
from array import array

MAX_DELAY_SECONDS = 0.03
BUFFER_SIZE = 96000
DEFAULT_SAMPLE_RATE = 48000.0
MIN_DELAY = 2.0
RESET_ANGLE = 1.5 * math.pi
NUM_CHANNELS = 2


def transposition_for(semitone: float) -> float:
    """Playback-rate ratio for a shift of the given number of semitones."""
    return 2.0 ** (semitone / 12.0)


class PitchDelay:
    """A stereo delay line read at a moving offset, one of three phase-staggered voices."""

    def __init__(self, phase_choice: int) -> None:
        if phase_choice not in (1, 2, 3):
            raise ValueError(f"phase choice must be 1, 2 or 3, not {phase_choice!r}")
        self.phase_choice = phase_choice
        self.fs = DEFAULT_SAMPLE_RATE
        self.max_delay_samples = MAX_DELAY_SECONDS * self.fs
        self.semitone = 0.0
        self.transposition = 1.0
        self.delta = 0.0
        self._buffers = [array("d", [0.0]) * BUFFER_SIZE for _ in range(NUM_CHANNELS)]
        self._write_index = [0] * NUM_CHANNELS
        self._delay = [0.0] * NUM_CHANNELS
        self._reset_delays()

    def _reset_delays(self) -> None:
        start = {
            1: MIN_DELAY,
            2: self.max_delay_samples / 3.0,
            3: 2.0 * self.max_delay_samples / 3.0,
        }[self.phase_choice]
        self._delay = [start] * NUM_CHANNELS

    @staticmethod
    def _check_channel(channel: int) -> None:
        if channel not in range(NUM_CHANNELS):
            raise ValueError(f"channel must be 0 or 1, not {channel!r}")

    @property
    def delays(self) -> tuple[float, ...]:
        """Current read offsets, in samples, per channel."""
        return tuple(self._delay)

    def set_sample_rate(self, fs: float) -> None:
        """Set the sample rate and restart the read offsets for this voice."""
        fs = float(fs)
        if fs <= 0.0:
            raise ValueError("sample rate must be positive")
        if MAX_DELAY_SECONDS * fs + 1.0 >= BUFFER_SIZE:
            raise ValueError("sample rate too high for the delay buffer")
        self.fs = fs
        self.max_delay_samples = MAX_DELAY_SECONDS * fs
        self._reset_delays()

    def set_pitch(self, semitone: float) -> None:
        """Set the transposition in semitones."""
        self.semitone = float(semitone)
        self.transposition = transposition_for(self.semitone)
        self.delta = 1.0 - self.transposition

    def process_sample(self, x: float, channel: int, angle: float) -> tuple[float, float]:
        """Push one sample and read the delayed one.

        Returns the output sample and the crossfade angle, which is reset
        whenever the read offset wraps around.
        """
        self._check_channel(channel)
        delay = self._delay[channel] + self.delta
        if self.delta <= 0.0 and delay < MIN_DELAY:
            delay = self.max_delay_samples
            angle = RESET_ANGLE
        if self.delta > 0.0 and delay > self.max_delay_samples:
            delay = MIN_DELAY
            angle = RESET_ANGLE
        self._delay[channel] = delay

        whole = math.floor(delay)
        frac = delay - whole
        buf = self._buffers[channel]
        index = self._write_index[channel]
        y = ((1.0 - frac) * buf[(index - whole) % BUFFER_SIZE]
             + frac * buf[(index - whole - 1) % BUFFER_SIZE])

        buf[index] = x
        self._write_index[channel] = (index + 1) % BUFFER_SIZE
        return y, angle