class MovMedianError(ValueError):
    """Base class for errors raised by movmedian."""


class InvalidConfiguration(MovMedianError):
    """Window size is not a positive integer, or was changed after samples arrived."""


class InvalidSample(MovMedianError):
    """Sample is NaN, infinite or not a real number."""
