from __future__ import annotations

import json

import imageio.v2 as imageio
import numpy as np

from extremadiff.profile import run_profile


def test_profile_writes_report(tmp_path):
    rng = np.random.default_rng(17)
    src = tmp_path / "src"
    src.mkdir()
    for i in range(2):
        imageio.imwrite(src / f"f{i}.png", rng.integers(0, 256, size=(6, 6, 3), dtype=np.uint8))

    res = run_profile(src, tmp_path / "prof", workers=2)
    assert res["images"] == 2
    assert res["encode_time_sec"] >= 0
    assert (tmp_path / "prof" / "decoded" / "f1.png").exists()
    data = json.loads((tmp_path / "prof" / "profile.json").read_text(encoding="utf-8"))
    assert data["workers"] == 2
