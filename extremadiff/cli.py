"""Command-line entrypoint for extremadiff."""
from __future__ import annotations

import argparse
import logging
import sys

from . import DEFAULT_DECODED_DIR, DEFAULT_ENCODED_DIR, DEFAULT_MAX_NAME, DEFAULT_MIN_NAME
from .decoder import decode_batch
from .encoder import encode_batch
from .errors import ExtremaDiffError
from .extrema import accumulate_extrema
from .utils import BatchResult, collect_image_paths
from .version import get_version_string

LOGGER = logging.getLogger(__name__)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _report(verb: str, result: BatchResult, output: str) -> int:
    print(f"{verb} {len(result.images)} images -> {output}. Extrema: {result.min_path}, {result.max_path}")
    if result.clamped:
        print(f"{result.clamped} channel values were saturated", file=sys.stderr)
    for path, reason in result.failed.items():
        print(f"failed: {path}: {reason}", file=sys.stderr)
    return 1 if result.failed else 0


def _run_encode(args: argparse.Namespace) -> int:
    files = collect_image_paths(args.inputs)
    LOGGER.info("Encoding %d files", len(files))
    output = args.output or DEFAULT_ENCODED_DIR
    result = encode_batch(
        files,
        output_dir=output,
        extrema=args.extrema,
        workers=args.workers,
        strict_dimensions=args.strict,
        continue_on_error=args.keep_going,
    )
    return _report("Encoded", result, output)


def _run_decode(args: argparse.Namespace) -> int:
    files = collect_image_paths(args.inputs)
    LOGGER.info("Decoding %d files", len(files))
    output = args.output or DEFAULT_DECODED_DIR
    min_path, max_path = args.extrema or (DEFAULT_MIN_NAME, DEFAULT_MAX_NAME)
    result = decode_batch(
        files,
        output_dir=output,
        min_path=min_path,
        max_path=max_path,
        workers=args.workers,
        strict_dimensions=args.strict,
        continue_on_error=args.keep_going,
    )
    return _report("Decoded", result, output)


def _run_extrema(args: argparse.Namespace) -> int:
    files = collect_image_paths(args.inputs)
    min_path, max_path = args.extrema or (DEFAULT_MIN_NAME, DEFAULT_MAX_NAME)
    minimum, maximum = accumulate_extrema(files, strict_dimensions=args.strict)
    minimum.save(min_path)
    maximum.save(max_path)
    print(f"Extrema of {len(files)} images ({minimum.width}x{minimum.height}) -> {min_path}, {max_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extremadiff", description="Per-channel min/max differential transform for image batches"
    )
    parser.add_argument("--version", action="version", version=get_version_string())

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("inputs", nargs="+", help="Image files or directories (searched recursively)")
    common.add_argument("--strict", action="store_true", help="Reject images whose size differs from the batch")
    common.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug output")

    batch = argparse.ArgumentParser(add_help=False, parents=[common])
    batch.add_argument(
        "--extrema",
        nargs=2,
        metavar=("MIN", "MAX"),
        default=None,
        help=f"Explicit min/max images (default: accumulate and write {DEFAULT_MIN_NAME}/{DEFAULT_MAX_NAME})",
    )
    batch.add_argument("-o", "--output", default=None, help="Output directory")
    batch.add_argument("--workers", type=int, default=1, help="Images processed in parallel")
    batch.add_argument("--keep-going", action="store_true", help="Skip images that fail instead of aborting")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_enc = sub.add_parser("encode", aliases=["e"], parents=[batch], help="Encode images against batch extrema")
    p_enc.set_defaults(handler=_run_encode)

    p_dec = sub.add_parser("decode", aliases=["d"], parents=[batch], help="Decode previously encoded images")
    p_dec.set_defaults(handler=_run_decode)

    p_ext = sub.add_parser("extrema", parents=[common], help="Only compute and save the min/max images")
    p_ext.add_argument(
        "--extrema",
        nargs=2,
        metavar=("MIN", "MAX"),
        default=None,
        help=f"Destination of the min/max images (default: {DEFAULT_MIN_NAME} {DEFAULT_MAX_NAME})",
    )
    p_ext.set_defaults(handler=_run_extrema)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.handler(args)
    except ExtremaDiffError as exc:
        print(f"extremadiff: error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
