"""Per-channel min/max differential transform for batches of RGB images."""
from .constants import (
    CHANNELS,
    DEFAULT_DECODED_DIR,
    DEFAULT_ENCODED_DIR,
    DEFAULT_MAX_NAME,
    DEFAULT_MIN_NAME,
    EXTREMA_MAX,
    EXTREMA_MIN,
)
from .errors import (
    ConfigurationError,
    DimensionMismatchError,
    ExtremaDiffError,
    ExtremaInconsistencyError,
    ImageIOError,
)
from .extrema import ExtremaBuffer, accumulate_extrema, load_extrema_pair
from .models import ToggleState
from .encoder import encode_batch, encode_image, encode_pixels
from .decoder import decode_batch, decode_image, decode_pixels
from .version import __version__, get_version_string, get_build_meta

__all__ = [
    "CHANNELS",
    "DEFAULT_DECODED_DIR",
    "DEFAULT_ENCODED_DIR",
    "DEFAULT_MAX_NAME",
    "DEFAULT_MIN_NAME",
    "EXTREMA_MAX",
    "EXTREMA_MIN",
    "ConfigurationError",
    "DimensionMismatchError",
    "ExtremaDiffError",
    "ExtremaInconsistencyError",
    "ImageIOError",
    "ExtremaBuffer",
    "ToggleState",
    "accumulate_extrema",
    "load_extrema_pair",
    "encode_batch",
    "encode_image",
    "encode_pixels",
    "decode_batch",
    "decode_image",
    "decode_pixels",
    "get_version_string",
    "get_build_meta",
    "__version__",
]
