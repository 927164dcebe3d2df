import math

import pytest
import numpy as np

from movmedian import (
    DEFAULT_WINDOW_SIZE,
    InvalidConfiguration,
    InvalidSample,
    MedianEngine,
    WindowKind,
)
from movmedian.core import check_window_size

SCENARIO_A_INPUT = [19, 24, 3, 67, 84, 26, 74, 23, 26, 15, 98, 75]
SCENARIO_A_EXPECTED = [24, 26, 67, 67, 26, 26, 26, 26]

SCENARIO_B_INPUT = [75, 34, 14, 56, 97, 85, 15, 24, 37, 56, 85, 35]
SCENARIO_B_EXPECTED = [65.5, 45, 40, 46.5, 46.5, 46.5, 36]


def run_engine(window_size, data):
    engine = MedianEngine(window_size)
    return [engine.push(v) for v in data]


def test_scenario_odd_window():
    results = run_engine(5, SCENARIO_A_INPUT)
    assert results[:4] == [None] * 4
    assert results[4:] == SCENARIO_A_EXPECTED


def test_scenario_even_window():
    results = run_engine(6, SCENARIO_B_INPUT)
    assert results[:5] == [None] * 5
    assert results[5:] == SCENARIO_B_EXPECTED


def test_window_of_one_echoes_input():
    data = [3.5, -1.0, 7.0, 7.0, 0.0]
    assert run_engine(1, data) == data


@pytest.mark.parametrize("window_size", [1, 2, 3, 7, 10])
def test_output_count_and_first_index(window_size: int):
    data = np.random.default_rng(7).normal(size=40)
    results = run_engine(window_size, data)
    emitted = [i for i, r in enumerate(results) if r is not None]
    assert emitted[0] == window_size - 1
    assert len(emitted) == len(data) - window_size + 1


@pytest.mark.parametrize("window_size", [2, 5, 6, 11])
def test_median_is_order_statistic(window_size: int):
    data = np.random.default_rng(3).integers(-50, 50, size=80).astype(np.float64)
    engine = MedianEngine(window_size)
    need = math.ceil(window_size / 2)
    for i, value in enumerate(data):
        m = engine.push(value)
        if m is None:
            continue
        current = data[i - window_size + 1 : i + 1]
        assert np.count_nonzero(current <= m) >= need
        assert np.count_nonzero(current >= m) >= need


def test_median_depends_only_on_resident_values():
    first = MedianEngine(3)
    second = MedianEngine(3)
    for v in [9, 1, 2, 3]:
        m_first = first.push(v)
    for v in [-4, 3, 1, 2]:
        m_second = second.push(v)
    assert m_first == m_second == 2.0
    assert list(first.window.ordered_values()) == list(second.window.ordered_values())


def test_state_transition_is_one_way():
    engine = MedianEngine(3)
    assert engine.state == WindowKind.FILLING
    assert engine.median is None
    engine.push(1)
    engine.push(2)
    assert engine.state == WindowKind.FILLING
    assert engine.push(3) == 2.0
    assert engine.state == WindowKind.FULL
    for v in range(10):
        engine.push(v)
        assert engine.state == WindowKind.FULL
    assert engine.median == 8.0


def test_default_window_size():
    engine = MedianEngine()
    assert engine.window_size == DEFAULT_WINDOW_SIZE == 5


def test_configure_window_before_first_push():
    engine = MedianEngine(3).configure_window(4)
    assert engine.window_size == 4
    assert [engine.push(v) for v in [4, 1, 3, 2]] == [None, None, None, 2.5]


@pytest.mark.parametrize("bad_size", [0, -3, 2.5, float("nan"), float("inf"), "5", None, True, [5], 2**63, 2**64])
def test_invalid_window_size_on_construction(bad_size):
    with pytest.raises(InvalidConfiguration):
        MedianEngine(bad_size)


@pytest.mark.parametrize("bad_size", [0, -1, 1.5, float("nan"), "three"])
def test_invalid_window_size_keeps_previous_configuration(bad_size):
    engine = MedianEngine(3)
    with pytest.raises(InvalidConfiguration):
        engine.configure_window(bad_size)
    assert engine.window_size == 3


def test_integral_float_window_size_is_accepted():
    assert MedianEngine(4.0).window_size == 4
    assert MedianEngine(np.int64(6)).window_size == 6


def test_reconfigure_after_first_push_is_rejected():
    engine = MedianEngine(3)
    engine.push(1.0)
    with pytest.raises(InvalidConfiguration):
        engine.configure_window(5)
    assert engine.window_size == 3
    assert engine.push(2.0) is None
    assert engine.push(3.0) == 2.0


def test_invalid_configuration_is_a_value_error():
    with pytest.raises(ValueError):
        MedianEngine(0)


@pytest.mark.parametrize("bad_sample", [float("nan"), float("inf"), -float("inf"), np.nan, "1.0", None, True])
def test_invalid_sample_leaves_state_unchanged(bad_sample):
    engine = MedianEngine(3)
    for v in [5.0, 1.0, 3.0, 4.0]:
        engine.push(v)
    before_values = engine.window.ordered_values().copy()
    before_received = engine.window.received

    with pytest.raises(InvalidSample):
        engine.push(bad_sample)

    assert engine.window.received == before_received
    assert list(engine.window.ordered_values()) == list(before_values)
    assert engine.median == 3.0
    # window holds 1, 3, 4; pushing 10 evicts 1
    assert engine.push(10.0) == 4.0


def test_invalid_sample_during_fill():
    engine = MedianEngine(2)
    engine.push(1.0)
    with pytest.raises(InvalidSample):
        engine.push(float("nan"))
    assert engine.state == WindowKind.FILLING
    assert engine.push(2.0) == 1.5


def test_sample_beyond_float64_range_is_rejected():
    engine = MedianEngine(2)
    engine.push(1.0)
    with pytest.raises(InvalidSample):
        engine.push(10**400)
    assert engine.window.received == 1
    assert engine.push(3.0) == 2.0


def test_largest_int64_window_size_passes_validation():
    assert check_window_size(2**63 - 1) == 2**63 - 1


def test_large_integers_are_ranked_as_float64():
    engine = MedianEngine(1)
    assert engine.push(2**53 + 1) == float(2**53)
