"""Per-channel toggle rule shared by the differential encoder and decoder.

Each channel of an image is processed as a stream in raster order. The
channel is either in "use-min" or "use-max" state; the emitted value is the
distance to the selected extremum, and the state flips after any emitted
value larger than the midpoint between the two extrema. The decoder sees the
same emitted values, so it re-derives every state change without a side
channel.
"""
from __future__ import annotations

import logging

import numpy as np

from .constants import CHANNELS
from .errors import ExtremaInconsistencyError

LOGGER = logging.getLogger(__name__)


def channel_midpoint(minimum: int, maximum: int) -> int:
    """Return ``(maximum - minimum) // 2``; ``maximum < minimum`` is an error."""
    if maximum < minimum:
        raise ExtremaInconsistencyError(minimum, maximum)
    return (maximum - minimum) // 2


def encode_channel_value(use_max: bool, value: int, minimum: int, maximum: int) -> tuple[int, bool]:
    """
    Emit the distance of ``value`` to the selected extremum.

    Returns the emitted value and the state for the next pixel of this channel.
    """
    middle = channel_midpoint(minimum, maximum)
    if use_max:
        emitted = abs(value - maximum)
        if emitted > middle:
            use_max = False
    else:
        emitted = abs(value - minimum)
        if emitted > middle:
            use_max = True
    return emitted, use_max


def decode_channel_value(
    use_max: bool, difference: int, minimum: int, maximum: int
) -> tuple[int, bool, bool]:
    """
    Rebuild a channel value from an emitted distance.

    Returns the value, the state for the next pixel and whether the value was
    saturated at 0 or 255.
    """
    middle = channel_midpoint(minimum, maximum)
    clamped = False
    if use_max:
        value = maximum - difference
        if value < 0:
            LOGGER.debug("Subtraction underflow: max %d - difference %d, clamping to 0", maximum, difference)
            value = 0
            clamped = True
    else:
        value = minimum + difference
        if value > 255:
            LOGGER.debug("Addition overflow: min %d + difference %d, clamping to 255", minimum, difference)
            value = 255
            clamped = True
    if difference > middle:
        use_max = not use_max
    return value, use_max, clamped


class ToggleState:
    """Which extremum each channel currently refers to, for one image pass."""

    __slots__ = ("use_max", "switches", "clamped")

    def __init__(self, channels: int = CHANNELS):
        self.use_max = [False] * channels
        self.switches = 0
        self.clamped = 0

    def reset(self) -> None:
        self.use_max = [False] * len(self.use_max)
        self.switches = 0
        self.clamped = 0

    def encode(self, channel: int, value: int, minimum: int, maximum: int) -> int:
        before = self.use_max[channel]
        emitted, self.use_max[channel] = encode_channel_value(before, value, minimum, maximum)
        if self.use_max[channel] != before:
            self.switches += 1
        return emitted

    def decode(self, channel: int, difference: int, minimum: int, maximum: int) -> int:
        before = self.use_max[channel]
        value, self.use_max[channel], clamped = decode_channel_value(before, difference, minimum, maximum)
        if self.use_max[channel] != before:
            self.switches += 1
        if clamped:
            self.clamped += 1
        return value

    def encode_stream(self, channel: int, values: np.ndarray, minimum: np.ndarray, maximum: np.ndarray) -> list[int]:
        """
        Encode one channel of a whole image, positions in raster order.

        Same rule as ``encode_channel_value``; the distances and midpoints are
        computed up front so only the state selection runs per position.
        The caller guarantees ``minimum <= maximum``.
        """
        v = np.asarray(values, dtype=np.int16)
        lo = np.asarray(minimum, dtype=np.int16)
        hi = np.asarray(maximum, dtype=np.int16)
        middle = ((hi - lo) // 2).tolist()
        d_min = np.abs(v - lo).tolist()
        d_max = np.abs(v - hi).tolist()

        out = [0] * len(middle)
        use_max = self.use_max[channel]
        switches = 0
        for i, mid in enumerate(middle):
            emitted = d_max[i] if use_max else d_min[i]
            out[i] = emitted
            if emitted > mid:
                use_max = not use_max
                switches += 1
        self.use_max[channel] = use_max
        self.switches += switches
        return out

    def decode_stream(
        self, channel: int, differences: np.ndarray, minimum: np.ndarray, maximum: np.ndarray
    ) -> list[int]:
        """Inverse of ``encode_stream``, saturating like ``decode_channel_value``."""
        d = np.asarray(differences, dtype=np.int16)
        lo = np.asarray(minimum, dtype=np.int16)
        hi = np.asarray(maximum, dtype=np.int16)
        middle = ((hi - lo) // 2).tolist()
        from_min = lo + d
        from_max = hi - d
        overflow = (from_min > 255).tolist()
        underflow = (from_max < 0).tolist()
        from_min = np.minimum(from_min, 255).tolist()
        from_max = np.maximum(from_max, 0).tolist()
        diffs = d.tolist()

        out = [0] * len(middle)
        use_max = self.use_max[channel]
        switches = 0
        clamped = 0
        for i, mid in enumerate(middle):
            if use_max:
                out[i] = from_max[i]
                if underflow[i]:
                    LOGGER.debug(
                        "Subtraction underflow: max %d - difference %d, clamping to 0", int(hi[i]), diffs[i]
                    )
                    clamped += 1
            else:
                out[i] = from_min[i]
                if overflow[i]:
                    LOGGER.debug(
                        "Addition overflow: min %d + difference %d, clamping to 255", int(lo[i]), diffs[i]
                    )
                    clamped += 1
            if diffs[i] > mid:
                use_max = not use_max
                switches += 1
        self.use_max[channel] = use_max
        self.switches += switches
        self.clamped += clamped
        return out

    def __repr__(self) -> str:
        flags = "".join("X" if m else "N" for m in self.use_max)
        return f"ToggleState({flags}, switches={self.switches}, clamped={self.clamped})"
