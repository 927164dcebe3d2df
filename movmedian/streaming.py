import logging
from typing import Iterable, Iterator, Optional

from movmedian.core import DEFAULT_WINDOW_SIZE, check_window_size
from movmedian.engine import MedianEngine

logger = logging.getLogger(__name__)


def iter_medians(samples: Iterable, window_size: int = DEFAULT_WINDOW_SIZE) -> Iterator[float]:
    """
    Yields one median per sample once window_size samples have been seen.

    The window size is checked here, before the first sample is pulled.
    """
    engine = MedianEngine(window_size)
    return _drain(engine, samples)


def _drain(engine: MedianEngine, samples: Iterable) -> Iterator[float]:
    for value in samples:
        median = engine.push(value)
        if median is not None:
            yield median


class MedianStream:
    """
    Factory for moving-median streams with a chainable window setting.

        medians = MedianStream().window(3).stream([5, 1, 4, 2])

    Each call to stream() starts a new engine with the window size set at
    that moment, so changing the window later does not affect running streams.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        self._window_size = check_window_size(window_size)

    def window(self, value: Optional[int] = None):
        if value is None:
            return self._window_size
        self._window_size = check_window_size(value)
        return self

    def stream(self, samples: Iterable) -> Iterator[float]:
        logger.debug("Starting moving-median stream with window size %d", self._window_size)
        return iter_medians(samples, self._window_size)
