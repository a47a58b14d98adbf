from __future__ import annotations

import json

import imageio.v2 as imageio
import numpy as np

from extremadiff.bench import run_bench, write_results


def test_bench_reports_lossless_batch(tmp_path):
    rng = np.random.default_rng(13)
    src = tmp_path / "src"
    src.mkdir()
    base = rng.integers(0, 200, size=(8, 8, 3), dtype=np.uint8)
    for i in range(3):
        imageio.imwrite(src / f"f{i}.png", base + rng.integers(0, 40, size=base.shape, dtype=np.uint8))

    result, hist = run_bench(src, tmp_path / "work")
    assert result.images == 3
    assert result.pixels == 3 * 64
    assert result.lossless
    assert result.clamped == 0
    assert int(hist.sum()) == 3 * 64 * 3
    # distances stay within the per-position spread of the batch
    assert result.mean_distance < 40

    write_results(tmp_path / "out", result, hist, {"python": "test"})
    data = json.loads((tmp_path / "out" / "results.json").read_text(encoding="utf-8"))
    assert data["result"]["lossless"] is True
    assert (tmp_path / "out" / "report.md").exists()
    assert (tmp_path / "out" / "plots" / "distances.png").exists()
