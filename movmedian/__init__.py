from movmedian.core import (
    DEFAULT_WINDOW_SIZE,
    WindowKind,
    init_window,
    insert_and_maybe_evict,
    rolling_median,
)
from movmedian.engine import MedianEngine
from movmedian.exceptions import InvalidConfiguration, InvalidSample, MovMedianError
from movmedian.streaming import MedianStream, iter_medians
from movmedian.window import OrderStatisticWindow

__all__ = [
    "DEFAULT_WINDOW_SIZE",
    "InvalidConfiguration",
    "InvalidSample",
    "MedianEngine",
    "MedianStream",
    "MovMedianError",
    "OrderStatisticWindow",
    "WindowKind",
    "init_window",
    "insert_and_maybe_evict",
    "iter_medians",
    "rolling_median",
]
