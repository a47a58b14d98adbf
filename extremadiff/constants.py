"""Constants and defaults for extremadiff."""

CHANNELS = 3  # r, g, b

MIN_INIT = 255  # min buffer starts at the top of the byte range
MAX_INIT = 0    # max buffer starts at the bottom

EXTREMA_MIN = "min"
EXTREMA_MAX = "max"

# Default locations; every one of these can be overridden per call and on the CLI.
DEFAULT_MIN_NAME = "min.png"
DEFAULT_MAX_NAME = "max.png"
DEFAULT_ENCODED_DIR = "encoded"
DEFAULT_DECODED_DIR = "decoded"

# Encoded and extrema images must go through a lossless format.
OUTPUT_SUFFIX = ".png"
