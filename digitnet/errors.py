"""Exception hierarchy for digitnet."""

from __future__ import annotations


class DigitNetError(Exception):
    """Base class for errors raised by digitnet."""


class ConfigurationError(DigitNetError, ValueError):
    """Raised when a network or training run is configured incorrectly."""


class DimensionMismatchError(DigitNetError, ValueError):
    """Raised when a vector disagrees with the configured network shape."""


class UnsupportedFormatError(DigitNetError, ValueError):
    """Raised when an IDX stream has an unknown magic tag or bad layout."""


__all__ = [
    "DigitNetError",
    "ConfigurationError",
    "DimensionMismatchError",
    "UnsupportedFormatError",
]
