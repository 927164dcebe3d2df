import logging
from typing import Optional

from movmedian.core import DEFAULT_WINDOW_SIZE, WindowKind, check_window_size
from movmedian.exceptions import InvalidConfiguration
from movmedian.window import OrderStatisticWindow

logger = logging.getLogger(__name__)


class MedianEngine:
    """
    Moving median over a stream of samples.

    push() returns None until window_size samples have arrived, then the
    median of the last window_size samples on every call. The window size can
    only be changed before the first push.

        engine = MedianEngine(window_size=3)
        [engine.push(x) for x in (5, 1, 4, 2)]  # [None, None, 4.0, 2.0]
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        self._window = OrderStatisticWindow(window_size)
        self._state = WindowKind.FILLING
        self._median: Optional[float] = None
        logger.debug("Created median engine with window size %d", self._window.capacity)

    @property
    def window_size(self) -> int:
        return self._window.capacity

    @property
    def state(self) -> WindowKind:
        return self._state

    @property
    def median(self) -> Optional[float]:
        """Last median returned by push(), None while the window is filling."""
        return self._median

    @property
    def window(self) -> OrderStatisticWindow:
        return self._window

    def configure_window(self, size: int) -> "MedianEngine":
        if self._window.received > 0:
            logger.warning("Rejected window size %r: %d samples already pushed", size, self._window.received)
            raise InvalidConfiguration("window size cannot change after the first push")
        new_size = check_window_size(size)
        self._window = OrderStatisticWindow(new_size)
        logger.debug("Window size set to %d", new_size)
        return self

    def push(self, value) -> Optional[float]:
        kind = self._window.insert_and_maybe_evict(value)
        if kind == WindowKind.FILLING:
            return None
        if self._state == WindowKind.FILLING:
            self._state = WindowKind.FULL
            logger.debug("Window filled after %d samples", self._window.received)
        self._median = self._median_of_window()
        return self._median

    def _median_of_window(self) -> float:
        values = self._window.ordered_values()
        k_window_size = self._window.capacity
        half = k_window_size // 2
        if k_window_size % 2 == 0:
            return float((values[half] + values[half - 1]) / 2.0)
        return float(values[half])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(window_size={self.window_size}, state={self._state.name})"
