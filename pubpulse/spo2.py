"""Heart rate and SpO2 estimation from 100 samples of red and infra-red PPG data.

Valleys of the infra-red signal mark heart beats; the AC/DC ratio of the red
and infra-red signals between valleys is mapped to SpO2 through a lookup table.
All arithmetic follows 32-bit signed integer semantics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

SAMPLING_FREQUENCY = 25
BUFFER_SIZE = SAMPLING_FREQUENCY * 4
MA4_SIZE = 4

INVALID = -999

_MAX_PEAKS = 15
_MIN_THRESHOLD = 30
_MAX_THRESHOLD = 60
_PEAK_DISTANCE = 4
_MAX_RATIOS = 5
_DC_FLOOR = -16777216

# Approximates -45.060*r*r + 30.354*r + 94.845 for a ratio r given in hundredths.
SPO2_TABLE = (
    95, 95, 95, 96, 96, 96, 97, 97, 97, 97, 97, 98, 98, 98, 98, 98, 99, 99, 99, 99,
    99, 99, 99, 99, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100,
    100, 100, 100, 100, 99, 99, 99, 99, 99, 99, 99, 99, 98, 98, 98, 98, 98, 98, 97, 97,
    97, 97, 96, 96, 96, 96, 95, 95, 95, 94, 94, 94, 93, 93, 93, 92, 92, 92, 91, 91,
    90, 90, 89, 89, 89, 88, 88, 87, 87, 86, 86, 85, 85, 84, 84, 83, 82, 82, 81, 81,
    80, 80, 79, 78, 78, 77, 76, 76, 75, 74, 74, 73, 72, 72, 71, 70, 69, 69, 68, 67,
    66, 66, 65, 64, 63, 62, 62, 61, 60, 59, 58, 57, 56, 56, 55, 54, 53, 52, 51, 50,
    49, 48, 47, 46, 45, 44, 43, 42, 41, 40, 39, 38, 37, 36, 35, 34, 33, 31, 30, 29,
    28, 27, 26, 25, 23, 22, 21, 20, 19, 17, 16, 15, 14, 12, 11, 10, 9, 7, 6, 5,
    3, 2, 1,
)


@dataclass(frozen=True)
class Spo2Result:
    """Estimated SpO2 and heart rate; invalid values are reported as -999."""

    spo2: int
    spo2_valid: bool
    heart_rate: int
    heart_rate_valid: bool


def _i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def sort_indices_descend(x: Sequence[int], indices: Sequence[int]) -> List[int]:
    """Return the indices ordered by descending x value, ties keeping their order."""
    return sorted(indices, key=lambda index: -x[index])


def peaks_above_min_height(x: Sequence[int], min_height: int) -> List[int]:
    """Find up to 15 peaks higher than min_height; a flat peak is located at its left edge."""
    size = len(x)
    locs: List[int] = []
    i = 1
    while i < size - 1:
        if x[i] > min_height and x[i] > x[i - 1]:
            width = 1
            while i + width < size and x[i] == x[i + width]:
                width += 1
            if i + width < size and x[i] > x[i + width] and len(locs) < _MAX_PEAKS:
                locs.append(i)
                i += width + 1
            else:
                i += width
        else:
            i += 1
    return locs


def remove_close_peaks(locs: Sequence[int], x: Sequence[int], min_distance: int) -> List[int]:
    """Drop peaks closer than min_distance to a larger one; return the rest ascending.

    A virtual peak at index -1 removes peaks too close to the start of the signal.
    """
    kept = sort_indices_descend(x, locs)
    i = -1
    while i < len(kept):
        reference = -1 if i == -1 else kept[i]
        kept = kept[: i + 1] + [
            loc for loc in kept[i + 1:] if abs(loc - reference) > min_distance
        ]
        i += 1
    return sorted(kept)


def find_peaks(x: Sequence[int], min_height: int, min_distance: int, max_num: int) -> List[int]:
    """Find at most max_num peaks above min_height separated by more than min_distance."""
    locs = peaks_above_min_height(x, min_height)
    locs = remove_close_peaks(locs, x, min_distance)
    return locs[:max(max_num, 0)]


def heart_rate_and_oxygen_saturation(
    ir_buffer: Sequence[int], red_buffer: Sequence[int]
) -> Spo2Result:
    """Estimate SpO2 and heart rate from 100 infra-red and 100 red samples."""
    ir = [int(v) & 0xFFFFFFFF for v in ir_buffer]
    red = [int(v) & 0xFFFFFFFF for v in red_buffer]
    if len(ir) != BUFFER_SIZE or len(red) != BUFFER_SIZE:
        raise ValueError(
            f"expected {BUFFER_SIZE} infra-red and red samples, "
            f"got {len(ir)} and {len(red)}"
        )

    # Remove DC and invert, so the peak detector finds valleys.
    mean = (sum(ir) & 0xFFFFFFFF) // BUFFER_SIZE
    inverted = [_i32(mean - sample) for sample in ir]
    smoothed = [
        _cdiv(sum(inverted[k:k + MA4_SIZE]), MA4_SIZE)
        for k in range(BUFFER_SIZE - MA4_SIZE)
    ] + inverted[BUFFER_SIZE - MA4_SIZE:]

    threshold = _cdiv(sum(smoothed), BUFFER_SIZE)
    threshold = min(max(threshold, _MIN_THRESHOLD), _MAX_THRESHOLD)

    valleys = find_peaks(smoothed, threshold, _PEAK_DISTANCE, _MAX_PEAKS)
    if len(valleys) >= 2:
        interval = _cdiv(valleys[-1] - valleys[0], len(valleys) - 1)
        heart_rate = _cdiv(SAMPLING_FREQUENCY * 60, interval)
        heart_rate_valid = True
    else:
        heart_rate = INVALID
        heart_rate_valid = False

    if any(loc > BUFFER_SIZE for loc in valleys):
        return Spo2Result(INVALID, False, heart_rate, heart_rate_valid)

    x = [_i32(v) for v in ir]
    y = [_i32(v) for v in red]
    ratios: List[int] = []
    x_max_idx = 0
    y_max_idx = 0
    for left, right in zip(valleys, valleys[1:]):
        if right - left <= 3:
            continue
        x_dc_max = _DC_FLOOR
        y_dc_max = _DC_FLOOR
        for i in range(left, right):
            if x[i] > x_dc_max:
                x_dc_max, x_max_idx = x[i], i
            if y[i] > y_dc_max:
                y_dc_max, y_max_idx = y[i], i
        span = right - left

        y_ac = _i32((y[right] - y[left]) * (y_max_idx - left))
        y_ac = _i32(y[left] + _cdiv(y_ac, span))
        y_ac = _i32(y[y_max_idx] - y_ac)

        x_ac = _i32((x[right] - x[left]) * (x_max_idx - left))
        x_ac = _i32(x[left] + _cdiv(x_ac, span))
        x_ac = _i32(x[y_max_idx] - x_ac)

        numerator = _i32(y_ac * x_dc_max) >> 7
        denominator = _i32(x_ac * y_dc_max) >> 7
        if denominator > 0 and len(ratios) < _MAX_RATIOS and numerator != 0:
            ratios.append(_cdiv(_i32(numerator * 100), denominator))

    ratios.sort()
    middle = len(ratios) // 2
    padded = ratios + [0] * (_MAX_RATIOS - len(ratios))
    if middle > 1:
        ratio_average = _cdiv(padded[middle - 1] + padded[middle], 2)
    else:
        ratio_average = padded[middle]

    if 2 < ratio_average < len(SPO2_TABLE):
        return Spo2Result(SPO2_TABLE[ratio_average], True, heart_rate, heart_rate_valid)
    return Spo2Result(INVALID, False, heart_rate, heart_rate_valid)