from __future__ import annotations

import subprocess
import sys
from importlib import metadata
from pathlib import Path

import imageio as imageio_pkg
import imageio.v2 as imageio
import numpy as np
import pytest

from extremadiff import __version__, get_build_meta, get_version_string
from extremadiff.cli import main


def test_cli_version_outputs_version():
    repo_root = Path(__file__).resolve().parents[1]
    proc = subprocess.run(
        [sys.executable, "-m", "extremadiff", "--version"],
        cwd=repo_root,
        capture_output=True,
        text=True,
        check=True,
    )
    out = (proc.stdout or "").strip()
    assert out.startswith(__version__), f"unexpected version output: {out}"


def test_cli_encode_decode_roundtrip(tmp_path, monkeypatch, capsys):
    rng = np.random.default_rng(21)
    frames = rng.integers(0, 256, size=(3, 4, 4, 3), dtype=np.uint8)
    src = tmp_path / "src"
    src.mkdir()
    for i, f in enumerate(frames):
        imageio.imwrite(src / f"f{i}.png", f)
    monkeypatch.chdir(tmp_path)

    assert main(["e", "src"]) == 0
    assert (tmp_path / "min.png").exists()
    assert (tmp_path / "max.png").exists()
    assert sorted(p.name for p in (tmp_path / "encoded").iterdir()) == ["f0.png", "f1.png", "f2.png"]

    assert main(["decode", "encoded", "-o", "out", "--workers", "2"]) == 0
    for i, f in enumerate(frames):
        assert np.array_equal(imageio.imread(tmp_path / "out" / f"f{i}.png"), f)
    assert "Decoded 3 images -> out" in capsys.readouterr().out


def test_cli_extrema_command(tmp_path):
    img = tmp_path / "a.png"
    imageio.imwrite(img, np.full((2, 3, 3), 17, dtype=np.uint8))
    lo, hi = tmp_path / "lo.png", tmp_path / "hi.png"
    assert main(["extrema", str(img), "--extrema", str(lo), str(hi)]) == 0
    assert imageio.imread(lo).shape == (2, 3, 3)
    assert np.all(imageio.imread(hi) == 17)


def test_cli_requires_inputs():
    with pytest.raises(SystemExit) as info:
        main(["encode"])
    assert info.value.code != 0


def test_cli_rejects_unknown_mode(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["transcode", str(tmp_path)])
    assert info.value.code != 0


def test_cli_reports_unreadable_image(tmp_path, monkeypatch, capsys):
    bad = tmp_path / "bad.png"
    bad.write_text("not an image")
    monkeypatch.chdir(tmp_path)
    assert main(["encode", str(bad)]) == 1
    assert "Unable to open image" in capsys.readouterr().err


def test_cli_reports_missing_path(tmp_path, capsys):
    assert main(["decode", str(tmp_path / "nowhere")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_version_comes_from_package_metadata():
    try:
        expected = metadata.version("extremadiff")
    except metadata.PackageNotFoundError:
        expected = "0+unknown"
    assert __version__ == expected

    meta = get_build_meta()
    assert meta["version"] == expected
    assert meta["imageio"] == imageio_pkg.__version__
    assert get_version_string().startswith(expected)
