from __future__ import annotations

import argparse
import json
import subprocess
import sys
import tempfile
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np

from .decoder import decode_batch
from .encoder import encode_batch
from .utils import collect_image_paths, load_image_rgb, mse


@dataclass
class BenchResult:
    images: int
    pixels: int
    source_bytes: int
    encoded_bytes: int
    extrema_bytes: int
    encode_time: float
    decode_time: float
    encode_mpix_s: float
    decode_mpix_s: float
    mean_distance: float
    switch_rate: float
    clamped: int
    lossless: bool


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def distance_histogram(paths: list[Path]) -> np.ndarray:
    """Counts of every emitted channel value 0..255 across encoded images."""
    hist = np.zeros((256,), dtype=np.int64)
    for path in paths:
        hist += np.bincount(load_image_rgb(path).reshape(-1), minlength=256)
    return hist


def run_bench(inputs: Path, work: Path, workers: int = 1) -> tuple[BenchResult, np.ndarray]:
    sources = collect_image_paths([inputs])
    ensure_dir(work)

    start = time.perf_counter()
    enc = encode_batch(
        sources,
        output_dir=work / "encoded",
        min_path=work / "min.png",
        max_path=work / "max.png",
        workers=workers,
    )
    enc_time = time.perf_counter() - start

    start = time.perf_counter()
    dec = decode_batch(
        enc.outputs,
        output_dir=work / "decoded",
        min_path=enc.min_path,
        max_path=enc.max_path,
        workers=workers,
    )
    dec_time = time.perf_counter() - start

    lossless = True
    pixels = 0
    for src, rec in zip(sources, dec.outputs):
        ref = load_image_rgb(src)
        recon = load_image_rgb(rec)
        pixels += ref.shape[0] * ref.shape[1]
        if ref.shape != recon.shape or mse(ref, recon) != 0.0:
            lossless = False

    hist = distance_histogram(enc.outputs)
    values = int(hist.sum())
    mean_distance = float((hist * np.arange(256)).sum() / values) if values else 0.0
    mpix = pixels / 1e6

    res = BenchResult(
        images=len(sources),
        pixels=pixels,
        source_bytes=sum(p.stat().st_size for p in sources),
        encoded_bytes=sum(p.stat().st_size for p in enc.outputs),
        extrema_bytes=enc.min_path.stat().st_size + enc.max_path.stat().st_size,
        encode_time=enc_time,
        decode_time=dec_time,
        encode_mpix_s=mpix / enc_time if enc_time > 0 else 0.0,
        decode_mpix_s=mpix / dec_time if dec_time > 0 else 0.0,
        mean_distance=mean_distance,
        switch_rate=enc.switches / values if values else 0.0,
        clamped=dec.clamped,
        lossless=lossless,
    )
    return res, hist


def collect_env() -> dict:
    data = {
        "python": sys.version,
        "platform": sys.platform,
    }
    try:
        git = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True)
    except OSError:
        return data
    if git.returncode == 0:
        data["git_commit"] = git.stdout.strip()
    return data


def write_results(out_dir: Path, result: BenchResult, hist: np.ndarray, env: dict) -> None:
    ensure_dir(out_dir)
    with open(out_dir / "results.json", "w", encoding="utf-8") as f:
        json.dump({"env": env, "result": asdict(result), "histogram": hist.tolist()}, f, indent=2)

    ratio = result.encoded_bytes / result.source_bytes if result.source_bytes else float("nan")
    lines = []
    lines.append("# extremadiff Benchmark Report\n")
    lines.append(f"Env: {env}\n")
    lines.append("| images | pixels | source (bytes) | encoded (bytes) | extrema (bytes) | ratio | enc time (s) | dec time (s) | mean distance | lossless |")
    lines.append("|---|---|---|---|---|---|---|---|---|---|")
    lines.append(
        f"| {result.images} | {result.pixels} | {result.source_bytes} | {result.encoded_bytes} | "
        f"{result.extrema_bytes} | {ratio:.3f} | {result.encode_time:.2f} | {result.decode_time:.2f} | "
        f"{result.mean_distance:.2f} | {'yes' if result.lossless else 'NO'} |"
    )
    (out_dir / "report.md").write_text("\n".join(lines), encoding="utf-8")

    ensure_dir(out_dir / "plots")
    plt.figure()
    plt.bar(np.arange(256), hist, width=1.0)
    plt.yscale("log")
    plt.xlabel("Emitted distance")
    plt.ylabel("Channel values")
    plt.tight_layout()
    plt.savefig(out_dir / "plots" / "distances.png")
    plt.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Measure extremadiff on a batch of images")
    parser.add_argument("--inputs", type=Path, required=True, help="Directory of source images")
    parser.add_argument("--out", type=Path, required=True, help="Output directory for results")
    parser.add_argument("--workers", type=int, default=1, help="Images processed in parallel")
    args = parser.parse_args(argv)

    if not args.inputs.is_dir():
        raise SystemExit(f"Not a directory: {args.inputs}")

    with tempfile.TemporaryDirectory(prefix="extremadiff_bench_") as tmp:
        result, hist = run_bench(args.inputs, Path(tmp), workers=args.workers)
    write_results(args.out, result, hist, collect_env())
    print(f"Wrote results to {args.out}")


if __name__ == "__main__":
    main()
