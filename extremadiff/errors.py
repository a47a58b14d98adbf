"""Exception types raised by extremadiff."""
from __future__ import annotations


class ExtremaDiffError(Exception):
    """Base class for all extremadiff errors."""


class ConfigurationError(ExtremaDiffError, ValueError):
    """Bad inputs or options: no paths, unknown paths, malformed extrema pair."""


class ImageIOError(ExtremaDiffError, OSError):
    """An image could not be read or written."""


class DimensionMismatchError(ExtremaDiffError, ValueError):
    """Pixel counts or image sizes do not fit the extrema buffers."""


class ExtremaInconsistencyError(ExtremaDiffError, ValueError):
    """The max extremum is below the min extremum at some position/channel."""

    def __init__(self, minimum: int, maximum: int, index: int | None = None, channel: int | None = None):
        self.minimum = minimum
        self.maximum = maximum
        self.index = index
        self.channel = channel
        where = "" if index is None else f" at pixel {index}, channel {channel}"
        super().__init__(f"Extrema inconsistent{where}: max {maximum} < min {minimum}")
