"""Per-position channel-wise extrema across a batch of images."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import numpy as np

from .constants import CHANNELS, EXTREMA_MAX, EXTREMA_MIN, MAX_INIT, MIN_INIT
from .errors import (
    ConfigurationError,
    DimensionMismatchError,
    ExtremaInconsistencyError,
    ImageIOError,
)
from .utils import load_image_rgb, save_image_rgb

LOGGER = logging.getLogger(__name__)

_INIT = {EXTREMA_MIN: MIN_INIT, EXTREMA_MAX: MAX_INIT}


@dataclass(eq=False)
class ExtremaBuffer:
    """
    Flat (N, 3) uint8 buffer of per-position minima or maxima.

    ``width``/``height`` are the dimensions of the largest image seen; the
    buffer holds ``width * height`` positions once accumulation is done.
    """

    kind: str
    values: np.ndarray = field(default_factory=lambda: np.empty((0, CHANNELS), dtype=np.uint8))
    width: int = 0
    height: int = 0

    def __post_init__(self) -> None:
        if self.kind not in _INIT:
            raise ValueError(f"kind must be {EXTREMA_MIN!r} or {EXTREMA_MAX!r}, got {self.kind!r}")
        self.values = np.asarray(self.values, dtype=np.uint8).reshape(-1, CHANNELS)

    @classmethod
    def new(cls, pixels: int, kind: str, width: int = 0, height: int = 0) -> "ExtremaBuffer":
        values = np.full((pixels, CHANNELS), _INIT[kind], dtype=np.uint8)
        return cls(kind, values, width, height)

    @property
    def pixels(self) -> int:
        return int(self.values.shape[0])

    def _grow(self, pixels: int) -> None:
        extra = np.full((pixels - self.pixels, CHANNELS), _INIT[self.kind], dtype=np.uint8)
        self.values = np.concatenate([self.values, extra], axis=0)

    def update(self, pixels: np.ndarray) -> None:
        """Fold one image into the first ``len(pixels)`` positions."""
        flat = np.asarray(pixels, dtype=np.uint8).reshape(-1, CHANNELS)
        n = flat.shape[0]
        if n > self.pixels:
            self._grow(n)
        head = self.values[:n]
        if self.kind == EXTREMA_MIN:
            np.minimum(head, flat, out=head)
        else:
            np.maximum(head, flat, out=head)

    def save(self, path: str | os.PathLike, width: int | None = None, height: int | None = None) -> Path:
        """Persist the buffer as a lossless PNG of ``width`` x ``height``."""
        width = self.width if width is None else width
        height = self.height if height is None else height
        if width * height != self.pixels:
            raise DimensionMismatchError(
                f"Unable to save {self.kind} image: {width}x{height} does not fit {self.pixels} pixels"
            )
        out = save_image_rgb(self.values.reshape(height, width, CHANNELS), path)
        LOGGER.info("Saved %s extrema %dx%d to %s", self.kind, width, height, out)
        return out

    @classmethod
    def load(cls, path: str | os.PathLike, kind: str) -> "ExtremaBuffer":
        """Read a persisted extrema image back as a flat buffer."""
        rgb = load_image_rgb(path)
        height, width, _ = rgb.shape
        return cls(kind, rgb.reshape(-1, CHANNELS), width, height)


def accumulate_extrema(
    paths: Iterable[str | os.PathLike],
    strict_dimensions: bool = False,
    skip_unreadable: bool = False,
) -> tuple[ExtremaBuffer, ExtremaBuffer]:
    """
    Scan a batch and return its ``(min, max)`` buffers.

    The buffers take the dimensions of the image with the most pixels (the
    first one on ties). Smaller images only touch the first positions of the
    buffers, addressed by linear index. With ``skip_unreadable`` images that
    fail to open are logged and left out.
    """
    minimum = ExtremaBuffer.new(0, EXTREMA_MIN)
    maximum = ExtremaBuffer.new(0, EXTREMA_MAX)
    first_shape = None
    count = 0
    for path in paths:
        try:
            rgb = load_image_rgb(path)
        except ImageIOError as exc:
            if not skip_unreadable:
                raise
            LOGGER.error("Leaving %s out of the extrema: %s", path, exc)
            continue
        height, width, _ = rgb.shape
        if first_shape is None:
            first_shape = (width, height)
        elif strict_dimensions and (width, height) != first_shape:
            raise DimensionMismatchError(
                f"{path} is {width}x{height}, batch is {first_shape[0]}x{first_shape[1]}"
            )
        if width * height > minimum.width * minimum.height:
            for buf in (minimum, maximum):
                buf.width, buf.height = width, height
        minimum.update(rgb)
        maximum.update(rgb)
        count += 1
        LOGGER.debug("Accumulated %s (%dx%d)", path, width, height)
    if count == 0:
        raise ConfigurationError("No images to accumulate extrema from")
    LOGGER.info("Extrema over %d images, %dx%d", count, minimum.width, minimum.height)
    return minimum, maximum


def load_extrema_pair(
    min_path: str | os.PathLike, max_path: str | os.PathLike
) -> tuple[ExtremaBuffer, ExtremaBuffer]:
    minimum = ExtremaBuffer.load(min_path, EXTREMA_MIN)
    maximum = ExtremaBuffer.load(max_path, EXTREMA_MAX)
    if minimum.pixels != maximum.pixels:
        raise ConfigurationError(
            f"Extrema images differ in size: {min_path} has {minimum.pixels} pixels, "
            f"{max_path} has {maximum.pixels}"
        )
    return minimum, maximum


def check_bounds(minimum: ExtremaBuffer, maximum: ExtremaBuffer, count: int) -> None:
    """Ensure the first ``count`` positions exist and satisfy min <= max."""
    if count > minimum.pixels or count > maximum.pixels:
        raise DimensionMismatchError(
            f"Image has {count} pixels, extrema only cover {min(minimum.pixels, maximum.pixels)}"
        )
    lo = minimum.values[:count]
    hi = maximum.values[:count]
    bad = hi < lo
    if bad.any():
        index, channel = (int(v) for v in np.argwhere(bad)[0])
        raise ExtremaInconsistencyError(int(lo[index, channel]), int(hi[index, channel]), index, channel)


def check_dimensions(path: Path, rgb: np.ndarray, minimum: ExtremaBuffer) -> None:
    """Reject an image whose size differs from the extrema dimensions."""
    height, width, _ = rgb.shape
    if (width, height) != (minimum.width, minimum.height):
        raise DimensionMismatchError(
            f"{path} is {width}x{height}, extrema are {minimum.width}x{minimum.height}"
        )
