import pytest

from pubpulse.spo2 import (
    BUFFER_SIZE,
    INVALID,
    SPO2_TABLE,
    Spo2Result,
    find_peaks,
    heart_rate_and_oxygen_saturation,
    peaks_above_min_height,
    remove_close_peaks,
    sort_indices_descend,
)


def _pulse(base, step, valley_at=10, period=25, count=BUFFER_SIZE):
    """A triangle wave dipping to ``base`` once per period."""
    samples = []
    for k in range(count):
        r = (k - valley_at) % period
        distance = min(r, period - r)
        samples.append(base + step * distance)
    return samples


def test_sort_indices_descend_orders_by_value():
    x = [5, 1, 9, 3, 7]
    result = sort_indices_descend(x, [0, 1, 2, 3, 4])
    assert sorted(result) == [0, 1, 2, 3, 4]
    values = [x[i] for i in result]
    assert values == sorted(values, reverse=True)


def test_sort_indices_descend_keeps_ties_in_order():
    x = [7, 7, 7]
    assert sort_indices_descend(x, [2, 0, 1]) == [2, 0, 1]


def test_peaks_above_min_height_invariants():
    x = [0, 5, 0, 2, 8, 1, 9, 9, 3, 0, 4, 0]
    locs = peaks_above_min_height(x, 3)
    assert locs == sorted(locs)
    for loc in locs:
        assert x[loc] > 3
        assert x[loc] > x[loc - 1]
    assert 2 not in locs


def test_flat_peak_located_at_left_edge():
    assert peaks_above_min_height([0, 3, 3, 3, 0], 1) == [1]


def test_plateau_running_to_the_end_is_not_a_peak():
    assert peaks_above_min_height([0, 3, 3], 1) == []


def test_peaks_above_min_height_is_capped_at_fifteen():
    x = [0, 10] * 20 + [0]
    assert len(peaks_above_min_height(x, 1)) == 15


def test_remove_close_peaks_drops_peaks_near_start():
    x = [9, 8, 7, 6, 0]
    assert remove_close_peaks([0, 1, 2, 3], x, 4) == []


def test_remove_close_peaks_invariants():
    x = [0] * 40
    locs = [6, 8, 15, 17, 19, 30, 33]
    for value, loc in zip([10, 50, 20, 40, 30, 60, 5], locs):
        x[loc] = value
    kept = remove_close_peaks(locs, x, 4)
    assert kept == sorted(kept)
    assert set(kept) <= set(locs)
    for a, b in zip(kept, kept[1:]):
        assert b - a > 4
    assert all(loc >= 4 for loc in kept)
    largest = max(locs, key=lambda loc: x[loc])
    assert largest in kept


def test_find_peaks_limits_count():
    x = [0, 10] * 20 + [0]
    assert len(find_peaks(x, 1, 0, 3)) == 3
    assert find_peaks(x, 1, 0, 0) == []


def test_find_peaks_respects_distance():
    x = [0, 10] * 20 + [0]
    locs = find_peaks(x, 1, 4, 15)
    for a, b in zip(locs, locs[1:]):
        assert b - a > 4


def test_constant_signal_is_invalid():
    result = heart_rate_and_oxygen_saturation([100000] * 100, [90000] * 100)
    assert result == Spo2Result(INVALID, False, INVALID, False)


def test_periodic_signal_gives_heart_rate_and_spo2():
    ir = _pulse(100000, 40)
    red = list(ir)
    result = heart_rate_and_oxygen_saturation(ir, red)
    assert result.heart_rate_valid is True
    assert result.heart_rate == 60
    assert result.spo2_valid is True
    assert result.spo2 == SPO2_TABLE[100]


def test_valid_spo2_is_within_table_range():
    ir = _pulse(100000, 40)
    red = _pulse(80000, 30)
    result = heart_rate_and_oxygen_saturation(ir, red)
    if result.spo2_valid:
        assert result.spo2 in SPO2_TABLE
    else:
        assert result.spo2 == INVALID


def test_wrong_length_raises():
    with pytest.raises(ValueError):
        heart_rate_and_oxygen_saturation([1] * 99, [1] * 99)


def test_mismatched_lengths_raise():
    with pytest.raises(ValueError):
        heart_rate_and_oxygen_saturation([1] * 100, [1] * 101)