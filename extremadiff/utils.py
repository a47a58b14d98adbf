"""Image I/O, input collection and per-image batch execution helpers."""
from __future__ import annotations

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

import imageio.v2 as imageio
import numpy as np

from .constants import CHANNELS, OUTPUT_SUFFIX
from .errors import ConfigurationError, ImageIOError

LOGGER = logging.getLogger(__name__)


@dataclass
class ImageResult:
    source: Path
    output: Path
    switches: int = 0
    clamped: int = 0


@dataclass
class BatchResult:
    """Outcome of an encode or decode run, in input order."""

    images: list[ImageResult] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)
    min_path: Path | None = None
    max_path: Path | None = None

    @property
    def outputs(self) -> list[Path]:
        return [r.output for r in self.images]

    @property
    def clamped(self) -> int:
        return sum(r.clamped for r in self.images)

    @property
    def switches(self) -> int:
        return sum(r.switches for r in self.images)


def _to_uint8(arr: np.ndarray) -> np.ndarray:
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.bool_:
        return arr.astype(np.uint8) * 255
    # 16-bit PNGs come back as uint16, or int32 for Pillow's "I" mode
    if arr.dtype in (np.uint16, np.int32) and (arr.size == 0 or (arr.min() >= 0 and arr.max() <= 0xFFFF)):
        return ((arr.astype(np.uint32) + 128) // 257).astype(np.uint8)
    raise ValueError(f"Unsupported pixel type {arr.dtype}")


def _ensure_rgb(frame: np.ndarray) -> np.ndarray:
    arr = np.asarray(frame)
    if arr.ndim == 3 and arr.shape[2] == 2:
        # Grayscale + alpha -> grayscale
        arr = arr[..., 0]
    if arr.ndim == 2:
        # Grayscale -> replicate to RGB
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim == 3:
        if arr.shape[2] == 4:
            arr = arr[..., :3]
        if arr.shape[2] == CHANNELS:
            return _to_uint8(arr)
    raise ValueError(f"Unsupported image shape for RGB conversion: {arr.shape}")


def load_image_rgb(path: str | os.PathLike) -> np.ndarray:
    """
    Load an image file as a uint8 RGB array with shape (H, W, 3).
    """
    try:
        frame = imageio.imread(path)
    except (OSError, ValueError) as exc:
        raise ImageIOError(f"Unable to open image {path}: {exc}") from exc
    try:
        return _ensure_rgb(frame)
    except ValueError as exc:
        raise ImageIOError(f"Unable to open image {path}: {exc}") from exc


def save_image_rgb(arr: np.ndarray, path: str | os.PathLike) -> Path:
    """
    Write a uint8 RGB array as PNG.

    The data goes to a temporary file next to ``path`` first and is renamed
    into place, so a failed write never leaves a partial image behind.
    """
    if arr.ndim != 3 or arr.shape[-1] != CHANNELS:
        raise ValueError("image must have shape (H, W, 3)")
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=OUTPUT_SUFFIX, dir=path.parent)
        os.close(fd)
    except OSError as exc:
        raise ImageIOError(f"Unable to write into {path.parent}: {exc}") from exc
    try:
        imageio.imwrite(tmp_name, arr.astype(np.uint8, copy=False))
        os.replace(tmp_name, path)
    except (OSError, ValueError) as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise ImageIOError(f"Unable to save image {path}: {exc}") from exc
    return path


def _walk(folder: Path) -> list[Path]:
    files = []
    for entry in sorted(folder.iterdir()):
        if entry.is_dir():
            files.extend(_walk(entry))
        else:
            files.append(entry)
    return files


def collect_image_paths(inputs: Iterable[str | os.PathLike]) -> list[Path]:
    """Expand directories recursively; plain files keep their argument order."""
    files: list[Path] = []
    for item in inputs:
        p = Path(item)
        if p.is_dir():
            files.extend(_walk(p))
        elif p.exists():
            files.append(p)
        else:
            raise ConfigurationError(f"Input path does not exist: {p}")
    if not files:
        raise ConfigurationError("No input images given")
    return files


def run_per_image(
    func: Callable[[Path], ImageResult],
    paths: Sequence[Path],
    workers: int = 1,
    continue_on_error: bool = False,
) -> BatchResult:
    """
    Apply ``func`` to every path and gather the results in input order.

    With ``continue_on_error`` a failing image is logged and recorded in
    ``BatchResult.failed``; otherwise the first failure is re-raised and
    pending work is cancelled.
    """
    if workers < 1:
        raise ConfigurationError(f"workers must be >= 1, got {workers}")
    result = BatchResult()

    def record(path: Path, exc: Exception) -> None:
        if not continue_on_error:
            raise exc
        LOGGER.error("Skipping %s: %s", path, exc)
        result.failed[path] = str(exc)

    if workers == 1:
        for path in paths:
            try:
                result.images.append(func(path))
            except (ImageIOError, ValueError) as exc:
                record(path, exc)
        return result

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(func, path) for path in paths]
        try:
            for path, future in zip(paths, futures):
                try:
                    result.images.append(future.result())
                except (ImageIOError, ValueError) as exc:
                    record(path, exc)
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return result


def mse(a: np.ndarray, b: np.ndarray) -> float:
    """Compute mean squared error between two arrays."""
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.mean(diff * diff))
