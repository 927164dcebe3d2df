import logging
import math
import numbers
from enum import IntEnum
from typing import Tuple, TypeAlias

import numpy as np
import numpy.typing as npt
from numba import int64, float64, njit, types, void

from movmedian.exceptions import InvalidConfiguration, InvalidSample

logger = logging.getLogger(__name__)

# Python-compatible type of the window state bundle
PyWindowBundleType: TypeAlias = Tuple[
    npt.NDArray[np.float64],    # sorted_values
    npt.NDArray[np.int64],      # sorted_seqs
    npt.NDArray[np.int64],      # slot_tracker (seq % capacity -> rank)
    npt.NDArray[np.int64]       # _state_arr (capacity, fill_size, received)
]

# =============================================================================
# Constants for _state array indices
# =============================================================================
IDX_STATE_CAPACITY = 0
IDX_STATE_FILL_SIZE = 1
IDX_STATE_RECEIVED = 2
STATE_ARR_LEN = 3

KIND_FILLING = 0
KIND_FULL = 1

DEFAULT_WINDOW_SIZE = 5
INT64MAX = 9223372036854775807

# =============================================================================
# Numba types used in @njit signatures
# =============================================================================
WINDOW_BUNDLE_TYPE = types.Tuple((
    float64[:], int64[:], int64[:], int64[:]
))

NB_VOID = void
NB_INT64 = int64
NB_FLOAT64 = float64
NB_FLOAT64_ARRAY = float64[:]
NB_INT64_ARRAY = int64[:]

PY_INT = int
PY_FLOAT = float
PY_FLOAT_ARRAY = npt.NDArray[np.float64]
PY_INT_ARRAY = npt.NDArray[np.int64]


class WindowKind(IntEnum):
    """Result of a push: the window is still filling, or holds W samples."""
    FILLING = KIND_FILLING
    FULL = KIND_FULL


# =============================================================================
# Input validation (runs before any state is touched)
# =============================================================================

def check_window_size(window_size) -> int:
    """
    Returns the window size as an int, or raises InvalidConfiguration.

    Integral floats such as 5.0 are accepted; bools, strings, NaN, inf,
    fractional values and anything below 1 are not.
    """
    if isinstance(window_size, (bool, np.bool_)) or not isinstance(window_size, numbers.Real):
        logger.warning("Rejected window size %r: not numeric", window_size)
        raise InvalidConfiguration(f"window size must be a positive integer, got {window_size!r}")
    if isinstance(window_size, numbers.Integral):
        size = int(window_size)
    else:
        as_float = float(window_size)
        if not math.isfinite(as_float) or not as_float.is_integer():
            logger.warning("Rejected window size %r: not a finite integer", window_size)
            raise InvalidConfiguration(f"window size must be a positive integer, got {window_size!r}")
        size = int(as_float)
    if size < 1:
        logger.warning("Rejected window size %r: must be >= 1", window_size)
        raise InvalidConfiguration(f"window size must be >= 1, got {window_size!r}")
    if size > INT64MAX:
        logger.warning("Rejected window size %r: does not fit in int64", window_size)
        raise InvalidConfiguration(f"window size must be <= {INT64MAX}, got {window_size!r}")
    return size


def check_sample(value) -> float:
    """Returns the sample as a float, or raises InvalidSample for NaN, inf or non-numbers."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        logger.warning("Rejected sample %r: not numeric", value)
        raise InvalidSample(f"sample must be a real number, got {value!r}")
    try:
        as_float = float(value)
    except OverflowError as exc:
        logger.warning("Rejected sample %r: out of float64 range", value)
        raise InvalidSample(f"sample must be finite, got {value!r}") from exc
    if not math.isfinite(as_float):
        logger.warning("Rejected sample %r: not finite", value)
        raise InvalidSample(f"sample must be finite, got {value!r}")
    return as_float


# =============================================================================
# @njit helpers on the sorted arrays
# =============================================================================

@njit(NB_INT64(NB_FLOAT64_ARRAY, NB_INT64, NB_FLOAT64), fastmath=True, boundscheck=False, cache=True)
def _search_insert_rank(sorted_values: PY_FLOAT_ARRAY,
                        n_values: PY_INT,
                        new_value: PY_FLOAT) -> PY_INT:
    lo = np.int64(0)
    hi = n_values
    while lo < hi:
        mid = (lo + hi) >> 1
        if new_value < sorted_values[mid]:
            hi = mid
        else:
            # equal values: keep searching to the right, new sample goes after the run
            lo = mid + 1
    return lo


@njit(NB_VOID(NB_INT64, NB_INT64, NB_FLOAT64_ARRAY, NB_INT64_ARRAY, NB_INT64_ARRAY, NB_INT64),
      fastmath=True, boundscheck=False, cache=True)
def _remove_at_rank(rank: PY_INT,
                    n_values: PY_INT,
                    sorted_values: PY_FLOAT_ARRAY,
                    sorted_seqs: PY_INT_ARRAY,
                    slot_tracker: PY_INT_ARRAY,
                    k_window_size: PY_INT) -> None:
    for i in range(rank, n_values - 1):
        sorted_values[i] = sorted_values[i + 1]
        sorted_seqs[i] = sorted_seqs[i + 1]
        slot_tracker[sorted_seqs[i] % k_window_size] = i


@njit(NB_VOID(NB_INT64, NB_FLOAT64, NB_INT64, NB_INT64, NB_FLOAT64_ARRAY, NB_INT64_ARRAY, NB_INT64_ARRAY, NB_INT64),
      fastmath=True, boundscheck=False, cache=True)
def _insert_at_rank(rank: PY_INT,
                    new_value: PY_FLOAT,
                    new_seq: PY_INT,
                    n_values: PY_INT,
                    sorted_values: PY_FLOAT_ARRAY,
                    sorted_seqs: PY_INT_ARRAY,
                    slot_tracker: PY_INT_ARRAY,
                    k_window_size: PY_INT) -> None:
    # n_values is the count before insertion; arrays have room for one more
    for i in range(n_values, rank, -1):
        sorted_values[i] = sorted_values[i - 1]
        sorted_seqs[i] = sorted_seqs[i - 1]
        slot_tracker[sorted_seqs[i] % k_window_size] = i
    sorted_values[rank] = new_value
    sorted_seqs[rank] = new_seq
    slot_tracker[new_seq % k_window_size] = rank


@njit(NB_VOID(NB_FLOAT64_ARRAY, NB_INT64_ARRAY, NB_INT64_ARRAY, NB_INT64), cache=True)
def _sort_filled_window(sorted_values: PY_FLOAT_ARRAY,
                        sorted_seqs: PY_INT_ARRAY,
                        slot_tracker: PY_INT_ARRAY,
                        k_window_size: PY_INT) -> None:
    # mergesort is stable, so equal values stay in arrival order
    order = np.argsort(sorted_values, kind='mergesort')
    values_by_rank = sorted_values[order]
    seqs_by_rank = sorted_seqs[order]
    for rank in range(k_window_size):
        sorted_values[rank] = values_by_rank[rank]
        sorted_seqs[rank] = seqs_by_rank[rank]
        slot_tracker[seqs_by_rank[rank] % k_window_size] = rank


@njit(NB_FLOAT64(NB_FLOAT64_ARRAY, NB_INT64), fastmath=True, boundscheck=False, cache=True)
def _median_from_sorted(sorted_values: PY_FLOAT_ARRAY, k_window_size: PY_INT) -> PY_FLOAT:
    half = k_window_size >> 1
    if k_window_size % 2 == 0:
        return (sorted_values[half] + sorted_values[half - 1]) / 2.0
    return sorted_values[half]


# =============================================================================
# Window state bundle
# =============================================================================

@njit(WINDOW_BUNDLE_TYPE(NB_INT64), cache=True)
def _init_window_numba(window_size: PY_INT) -> PyWindowBundleType:
    _k = np.int64(window_size)
    sorted_values_local = np.zeros(_k, dtype=np.float64)
    sorted_seqs_local = np.zeros(_k, dtype=np.int64)
    slot_tracker_local = np.zeros(_k, dtype=np.int64)
    _state_arr_local = np.zeros(STATE_ARR_LEN, dtype=np.int64)
    _state_arr_local[IDX_STATE_CAPACITY] = _k
    _state_arr_local[IDX_STATE_FILL_SIZE] = 0
    _state_arr_local[IDX_STATE_RECEIVED] = 0
    return (sorted_values_local, sorted_seqs_local,
            slot_tracker_local, _state_arr_local)


def init_window(window_size: int = DEFAULT_WINDOW_SIZE) -> PyWindowBundleType:
    size = check_window_size(window_size)
    return _init_window_numba(np.int64(size))


@njit(NB_INT64(WINDOW_BUNDLE_TYPE, NB_FLOAT64), fastmath=True, boundscheck=False, cache=True)
def insert_and_maybe_evict(state_tuple: PyWindowBundleType, new_value: PY_FLOAT) -> PY_INT:
    """
    Adds one sample to the window and, once the window is full, evicts the
    oldest one in the same call.

    While filling, samples are appended in arrival order. The push that
    reaches capacity sorts them once. After that each push removes the sample
    with sequence number received - k (found through slot_tracker) and
    binary-searches the rank of the new value among the remaining k - 1.
    Returns KIND_FILLING or KIND_FULL.
    """
    sorted_values, sorted_seqs, slot_tracker, _state_arr = state_tuple
    k_window_size = _state_arr[IDX_STATE_CAPACITY]
    fill_size = _state_arr[IDX_STATE_FILL_SIZE]
    received = _state_arr[IDX_STATE_RECEIVED]
    new_seq = received

    if fill_size < k_window_size:
        sorted_values[fill_size] = new_value
        sorted_seqs[fill_size] = new_seq
        slot_tracker[new_seq % k_window_size] = fill_size
        fill_size += 1
        _state_arr[IDX_STATE_FILL_SIZE] = fill_size
        _state_arr[IDX_STATE_RECEIVED] = received + 1
        if fill_size < k_window_size:
            return KIND_FILLING
        _sort_filled_window(sorted_values, sorted_seqs, slot_tracker, k_window_size)
        return KIND_FULL

    evict_seq = received - k_window_size
    evict_rank = slot_tracker[evict_seq % k_window_size]
    _remove_at_rank(evict_rank, k_window_size, sorted_values, sorted_seqs, slot_tracker, k_window_size)
    insert_rank = _search_insert_rank(sorted_values, k_window_size - 1, new_value)
    _insert_at_rank(insert_rank, new_value, new_seq, k_window_size - 1,
                    sorted_values, sorted_seqs, slot_tracker, k_window_size)
    _state_arr[IDX_STATE_RECEIVED] = received + 1
    return KIND_FULL


# =============================================================================
# Whole-array moving median
# =============================================================================

@njit(NB_FLOAT64_ARRAY(NB_FLOAT64_ARRAY, NB_INT64), fastmath=True, boundscheck=False, cache=True)
def _rolling_median_numba(input_array: PY_FLOAT_ARRAY,
                          window_size: PY_INT) -> PY_FLOAT_ARRAY:
    n = len(input_array)
    if n < window_size:
        return np.empty(0, dtype=np.float64)
    output_medians = np.empty(n - window_size + 1, dtype=np.float64)
    state_tuple = _init_window_numba(window_size)
    sorted_values = state_tuple[0]
    out_idx = 0
    for i in range(n):
        if insert_and_maybe_evict(state_tuple, input_array[i]) == KIND_FULL:
            output_medians[out_idx] = _median_from_sorted(sorted_values, window_size)
            out_idx += 1
    return output_medians


def rolling_median(values, window_size: int = DEFAULT_WINDOW_SIZE) -> PY_FLOAT_ARRAY:
    """
    Moving median of a whole 1-D sequence.

    Returns len(values) - window_size + 1 medians (an empty array when the
    input is shorter than the window); output i covers values[i:i + window_size].
    """
    size = check_window_size(window_size)
    try:
        input_array = np.array(values, dtype=np.float64)
    except (TypeError, ValueError, OverflowError) as exc:
        logger.warning("Rejected input for rolling_median: %s", exc)
        raise InvalidSample(f"values must be real numbers: {exc}") from exc
    if input_array.ndim != 1:
        raise InvalidSample(f"values must be one-dimensional, got shape {input_array.shape}")
    if not np.isfinite(input_array).all():
        logger.warning("Rejected input for rolling_median: non-finite values")
        raise InvalidSample("values must be finite")
    return _rolling_median_numba(input_array, np.int64(size))
