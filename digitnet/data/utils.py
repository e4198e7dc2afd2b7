"""Utility helpers for dataset loaders."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CACHE_SUBDIR = Path.home() / ".cache" / "digitnet"


def resolve_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Resolve the effective cache directory for datasets."""

    env_dir = os.environ.get("DIGITNET_CACHE_DIR")
    base = Path(cache_dir or env_dir or DEFAULT_CACHE_SUBDIR)
    base.mkdir(parents=True, exist_ok=True)
    return base


__all__ = ["resolve_cache_dir"]
