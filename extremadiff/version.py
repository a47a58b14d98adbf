"""Version of the installed package and of the image stack it writes with."""
from __future__ import annotations

import subprocess
from importlib import metadata
from pathlib import Path
from typing import Dict

import imageio
import numpy as np

DIST_NAME = "extremadiff"


def _package_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        # plain source checkout, not installed
        return "0+unknown"


__version__ = _package_version()


def _git_hash() -> str | None:
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=Path(__file__).resolve().parent,
            capture_output=True,
            text=True,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if proc.returncode == 0 and proc.stdout.strip():
        return proc.stdout.strip()
    return None


def get_build_meta() -> Dict[str, str]:
    """
    Versions that decide whether persisted extrema and encoded images can be
    read back byte for byte: this package and its PNG stack.
    """
    meta = {
        "version": __version__,
        "imageio": imageio.__version__,
        "numpy": np.__version__,
    }
    git_hash = _git_hash()
    if git_hash:
        meta["git_hash"] = git_hash
    return meta


def get_version_string() -> str:
    meta = get_build_meta()
    build = f"+g{meta['git_hash']}" if "git_hash" in meta else ""
    return f"{meta['version']}{build} (imageio {meta['imageio']}, numpy {meta['numpy']})"
