"""Optical heart beat detection from infra-red samples (PBA algorithm).

Each sample passes a running DC estimator and a 23-tap low-pass FIR filter;
a rising zero crossing of the filtered AC signal whose previous cycle had a
plausible peak-to-peak amplitude counts as a beat.  Arithmetic follows the
16- and 32-bit integer semantics of the reference algorithm.
"""

from __future__ import annotations

from typing import List

# One half of a symmetric 23-tap filter; the last entry is the centre tap.
FIR_COEFFS = (172, 321, 579, 927, 1360, 1858, 2390, 2916, 3391, 3768, 4012, 4096)

_BUFFER_SIZE = 32
_BUFFER_MASK = _BUFFER_SIZE - 1
_CENTRE = len(FIR_COEFFS) - 1
_MIN_BEAT_AMPLITUDE = 20
_MAX_BEAT_AMPLITUDE = 1000


def _i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class BeatDetector:
    """Stateful beat detector fed one infra-red sample at a time."""

    def __init__(self) -> None:
        self.ac_max = 20
        self.ac_min = -20
        self.signal_current = 0
        self.signal_previous = 0
        self.signal_min = 0
        self.signal_max = 0
        self.average_estimated = 0
        self._positive_edge = False
        self._negative_edge = False
        self._average_register = 0
        self._history: List[int] = [0] * _BUFFER_SIZE
        self._offset = 0

    def check_for_beat(self, sample: int) -> bool:
        """Process one sample; return True when it completes a heart beat."""
        sample = _i32(sample)
        beat = False

        self.signal_previous = self.signal_current
        self.average_estimated = self.average_dc_estimator(sample)
        self.signal_current = self.low_pass_fir_filter(sample - self.average_estimated)

        previous, current = self.signal_previous, self.signal_current

        if previous < 0 <= current:
            self.ac_max = self.signal_max
            self.ac_min = self.signal_min
            self._positive_edge = True
            self._negative_edge = False
            self.signal_max = 0
            amplitude = self.ac_max - self.ac_min
            if _MIN_BEAT_AMPLITUDE < amplitude < _MAX_BEAT_AMPLITUDE:
                beat = True

        if previous > 0 >= current:
            self._positive_edge = False
            self._negative_edge = True
            self.signal_min = 0

        if self._positive_edge and current > previous:
            self.signal_max = current

        if self._negative_edge and current < previous:
            self.signal_min = current

        return beat

    def average_dc_estimator(self, x: int) -> int:
        """Update the running DC estimate with a 16-bit sample and return it."""
        x &= 0xFFFF
        register = self._average_register
        register = _i32(register + (((x << 15) - register) >> 4))
        self._average_register = register
        return _i16(register >> 15)

    def low_pass_fir_filter(self, din: int) -> int:
        """Push a 16-bit value through the low-pass filter and return its output."""
        history = self._history
        offset = self._offset
        history[offset] = _i16(din)

        total = FIR_COEFFS[_CENTRE] * history[(offset - _CENTRE) & _BUFFER_MASK]
        for i, coeff in enumerate(FIR_COEFFS[:_CENTRE]):
            pair = _i16(
                history[(offset - i) & _BUFFER_MASK]
                + history[(offset - 2 * _CENTRE + i) & _BUFFER_MASK]
            )
            total += coeff * pair
        total = _i32(total)

        self._offset = (offset + 1) % _BUFFER_SIZE
        return _i16(total >> 15)