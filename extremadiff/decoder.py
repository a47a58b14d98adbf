"""Differential decoder: rebuild images from their distances to the extrema."""

from __future__ import annotations

import logging
import os
from functools import partial
from pathlib import Path
from typing import Sequence

import numpy as np

from .constants import CHANNELS, DEFAULT_DECODED_DIR, DEFAULT_MAX_NAME, DEFAULT_MIN_NAME
from .errors import ConfigurationError
from .extrema import ExtremaBuffer, check_bounds, check_dimensions, load_extrema_pair
from .models import ToggleState
from .utils import BatchResult, ImageResult, load_image_rgb, run_per_image, save_image_rgb

LOGGER = logging.getLogger(__name__)


def decode_pixels(
    differences: np.ndarray,
    minimum: ExtremaBuffer,
    maximum: ExtremaBuffer,
    state: ToggleState | None = None,
) -> np.ndarray:
    """
    Invert ``encode_pixels``. Values that fall outside 0..255 against the
    given extrema are saturated and counted in ``state.clamped``.
    """
    arr = np.asarray(differences, dtype=np.uint8)
    flat = arr.reshape(-1, CHANNELS)
    n = flat.shape[0]
    check_bounds(minimum, maximum, n)
    if state is None:
        state = ToggleState()

    out = np.empty_like(flat)
    for c in range(CHANNELS):
        out[:, c] = state.decode_stream(c, flat[:, c], minimum.values[:n, c], maximum.values[:n, c])
    return out.reshape(arr.shape)


def decode_image(
    path: str | os.PathLike,
    minimum: ExtremaBuffer,
    maximum: ExtremaBuffer,
    output_dir: str | os.PathLike = DEFAULT_DECODED_DIR,
    strict_dimensions: bool = False,
) -> ImageResult:
    """Decode one transformed image into ``<output_dir>/<file name>``."""
    path = Path(path)
    LOGGER.info("Decoding %s...", path)
    diff = load_image_rgb(path)
    if strict_dimensions:
        check_dimensions(path, diff, minimum)
    state = ToggleState()
    decoded = decode_pixels(diff, minimum, maximum, state)
    if state.clamped:
        LOGGER.info("%s: %d channel values saturated; extrema may not match this image", path, state.clamped)
    out = save_image_rgb(decoded, Path(output_dir) / path.name)
    return ImageResult(source=path, output=out, switches=state.switches, clamped=state.clamped)


def decode_batch(
    paths: Sequence[str | os.PathLike],
    output_dir: str | os.PathLike = DEFAULT_DECODED_DIR,
    min_path: str | os.PathLike = DEFAULT_MIN_NAME,
    max_path: str | os.PathLike = DEFAULT_MAX_NAME,
    workers: int = 1,
    strict_dimensions: bool = False,
    continue_on_error: bool = False,
) -> BatchResult:
    """Decode a batch of transformed images against persisted extrema."""
    paths = [Path(p) for p in paths]
    if not paths:
        raise ConfigurationError("No input images given")
    minimum, maximum = load_extrema_pair(min_path, max_path)

    func = partial(
        decode_image,
        minimum=minimum,
        maximum=maximum,
        output_dir=output_dir,
        strict_dimensions=strict_dimensions,
    )
    result = run_per_image(func, paths, workers=workers, continue_on_error=continue_on_error)
    result.min_path = Path(min_path)
    result.max_path = Path(max_path)
    LOGGER.info("Decoded %d images into %s (%d failed)", len(result.images), output_dir, len(result.failed))
    return result
