"""Differential encoder: rewrite images as distances to the batch extrema."""

from __future__ import annotations

import logging
import os
from functools import partial
from pathlib import Path
from typing import Sequence

import numpy as np

from .constants import (
    CHANNELS,
    DEFAULT_ENCODED_DIR,
    DEFAULT_MAX_NAME,
    DEFAULT_MIN_NAME,
    OUTPUT_SUFFIX,
)
from .errors import ConfigurationError
from .extrema import (
    ExtremaBuffer,
    accumulate_extrema,
    check_bounds,
    check_dimensions,
    load_extrema_pair,
)
from .models import ToggleState
from .utils import BatchResult, ImageResult, load_image_rgb, run_per_image, save_image_rgb

LOGGER = logging.getLogger(__name__)


def encode_pixels(
    pixels: np.ndarray,
    minimum: ExtremaBuffer,
    maximum: ExtremaBuffer,
    state: ToggleState | None = None,
) -> np.ndarray:
    """
    Encode pixels given in raster order, shape (N, 3) or (H, W, 3).

    A fresh ``ToggleState`` is used unless one is passed in; the returned
    array has the input's shape.
    """
    arr = np.asarray(pixels, dtype=np.uint8)
    flat = arr.reshape(-1, CHANNELS)
    n = flat.shape[0]
    check_bounds(minimum, maximum, n)
    if state is None:
        state = ToggleState()

    # channels toggle independently, so each one is a separate raster-order stream
    out = np.empty_like(flat)
    for c in range(CHANNELS):
        out[:, c] = state.encode_stream(c, flat[:, c], minimum.values[:n, c], maximum.values[:n, c])
    return out.reshape(arr.shape)


def encode_image(
    path: str | os.PathLike,
    minimum: ExtremaBuffer,
    maximum: ExtremaBuffer,
    output_dir: str | os.PathLike = DEFAULT_ENCODED_DIR,
    strict_dimensions: bool = False,
) -> ImageResult:
    """Encode one image file into ``<output_dir>/<stem>.png``."""
    path = Path(path)
    LOGGER.info("Encoding %s...", path)
    rgb = load_image_rgb(path)
    if strict_dimensions:
        check_dimensions(path, rgb, minimum)
    state = ToggleState()
    encoded = encode_pixels(rgb, minimum, maximum, state)
    out = save_image_rgb(encoded, Path(output_dir) / (path.stem + OUTPUT_SUFFIX))
    LOGGER.debug("Saved %s (%s)", out, state)
    return ImageResult(source=path, output=out, switches=state.switches)


def encode_batch(
    paths: Sequence[str | os.PathLike],
    output_dir: str | os.PathLike = DEFAULT_ENCODED_DIR,
    extrema: Sequence[str | os.PathLike] | None = None,
    min_path: str | os.PathLike = DEFAULT_MIN_NAME,
    max_path: str | os.PathLike = DEFAULT_MAX_NAME,
    workers: int = 1,
    strict_dimensions: bool = False,
    continue_on_error: bool = False,
) -> BatchResult:
    """
    Encode a batch of images.

    Without ``extrema`` the min/max buffers are accumulated over ``paths`` and
    written to ``min_path``/``max_path``. With an explicit ``(min, max)`` pair
    those images are loaded instead and nothing is written besides the
    encoded images.
    """
    paths = [Path(p) for p in paths]
    if not paths:
        raise ConfigurationError("No input images given")

    if extrema is not None:
        if len(extrema) != 2:
            raise ConfigurationError(f"Expected a (min, max) pair of extrema images, got {len(extrema)} paths")
        min_path, max_path = (Path(p) for p in extrema)
        minimum, maximum = load_extrema_pair(min_path, max_path)
    else:
        minimum, maximum = accumulate_extrema(
            paths, strict_dimensions=strict_dimensions, skip_unreadable=continue_on_error
        )
        min_path = minimum.save(min_path)
        max_path = maximum.save(max_path)

    func = partial(
        encode_image,
        minimum=minimum,
        maximum=maximum,
        output_dir=output_dir,
        strict_dimensions=strict_dimensions,
    )
    result = run_per_image(func, paths, workers=workers, continue_on_error=continue_on_error)
    result.min_path = Path(min_path)
    result.max_path = Path(max_path)
    LOGGER.info("Encoded %d images into %s (%d failed)", len(result.images), output_dir, len(result.failed))
    return result
