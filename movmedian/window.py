import numpy as np

from movmedian.core import (
    IDX_STATE_CAPACITY,
    IDX_STATE_FILL_SIZE,
    IDX_STATE_RECEIVED,
    PY_FLOAT_ARRAY,
    PY_INT_ARRAY,
    WindowKind,
    check_sample,
    init_window,
    insert_and_maybe_evict,
)


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class OrderStatisticWindow:
    """
    The W most recent samples kept sorted by value.

    Each sample carries an arrival sequence number so the oldest one can be
    evicted even though the storage is ordered by value. Ties between equal
    values are broken by arrival order.

    Values are stored as float64, so integers beyond 2**53 are rounded to the
    nearest representable float before they are ranked.
    """

    def __init__(self, capacity: int):
        self._state_tuple = init_window(capacity)
        self._sorted_values, self._sorted_seqs, _, self._state_arr = self._state_tuple

    @property
    def capacity(self) -> int:
        return int(self._state_arr[IDX_STATE_CAPACITY])

    @property
    def size(self) -> int:
        return int(self._state_arr[IDX_STATE_FILL_SIZE])

    @property
    def received(self) -> int:
        """Number of samples pushed over the lifetime of the window."""
        return int(self._state_arr[IDX_STATE_RECEIVED])

    @property
    def is_full(self) -> bool:
        return self.size == self.capacity

    def __len__(self) -> int:
        return self.size

    def insert_and_maybe_evict(self, value) -> WindowKind:
        """
        Inserts one sample, evicting the oldest one if the window is full.

        Raises InvalidSample for NaN, inf or non-numeric values; the window is
        left untouched in that case.
        """
        new_value = check_sample(value)
        return WindowKind(insert_and_maybe_evict(self._state_tuple, np.float64(new_value)))

    def ordered_values(self) -> PY_FLOAT_ARRAY:
        """Ascending values in the window: a read-only view once full, a sorted copy while filling."""
        if self.is_full:
            return _read_only(self._sorted_values)
        return np.sort(self._sorted_values[:self.size], kind='mergesort')

    def ordered_sequences(self) -> PY_INT_ARRAY:
        """Arrival sequence numbers in the same order as ordered_values()."""
        if self.is_full:
            return _read_only(self._sorted_seqs)
        order = np.argsort(self._sorted_values[:self.size], kind='mergesort')
        return self._sorted_seqs[:self.size][order]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(capacity={self.capacity}, size={self.size}, received={self.received})"
