"""Offline-first cache for downloaded dataset archives.

Every resolved file is recorded in ``manifest.json`` inside the cache
directory together with its SHA-256 digest and how it was obtained
(``offline``, ``cache``, ``download`` or ``offline-fallback``).
"""

from __future__ import annotations

import hashlib
import json
import os
import time
import urllib.request
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

DEFAULT_CACHE_DIR = Path(
    os.environ.get("DIGITNET_CACHE_DIR") or Path.home() / ".cache" / "digitnet"
)
MANIFEST_NAME = "manifest.json"

Builder = Callable[[Path], None]
Validator = Callable[[Path], None]


class CacheError(RuntimeError):
    """Raised when an archive cannot be obtained or fails validation."""


def offline_default() -> bool:
    """Offline unless ``DIGITNET_DATA_OFFLINE`` is set to something other than ``1``."""

    return str(os.environ.get("DIGITNET_DATA_OFFLINE") or "1") == "1"


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for block in iter(lambda: handle.read(1 << 16), b""):
            digest.update(block)
    return digest.hexdigest()


@dataclass(frozen=True)
class CacheRecord:
    name: str
    url: str
    local_path: str
    checksum: str
    mode: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


class CacheManifest:
    """JSON index of every archive resolved through :func:`fetch`."""

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self.cache_dir = Path(cache_dir or DEFAULT_CACHE_DIR)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.cache_dir / MANIFEST_NAME
        self.entries: Dict[str, Dict[str, str]] = self._load()

    def _load(self) -> Dict[str, Dict[str, str]]:
        if not self.path.exists():
            return {}
        try:
            return dict(json.loads(self.path.read_text()))
        except json.JSONDecodeError:
            # A torn write leaves an unreadable index; it is rebuilt on the next record.
            return {}

    def record(self, entry: CacheRecord) -> Dict[str, str]:
        snapshot = entry.as_dict()
        snapshot["recorded_at"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        self.entries[entry.name] = snapshot
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True))
        return snapshot

    def get(self, name: str) -> Optional[Dict[str, str]]:
        return self.entries.get(name)


def fetch(
    name: str,
    url: str,
    *,
    offline_path: Path | None = None,
    offline_builder: Builder | None = None,
    filename: str | None = None,
    offline: bool | None = None,
    checksum: str | None = None,
    mirrors: Iterable[str] = (),
    retries: int = 2,
    validate: Validator | None = None,
    manifest: CacheManifest | None = None,
    cache_dir: str | Path | None = None,
) -> tuple[Path, Dict[str, str]]:
    """Resolve ``name`` to a local file and record where it came from.

    In offline mode the file at ``offline_path`` is used, built on demand by
    ``offline_builder``. Otherwise a previously cached copy is reused when its
    checksum still matches, then ``url`` and each of ``mirrors`` are tried
    ``retries + 1`` times. ``validate`` is called on every candidate file and
    should raise :class:`CacheError` for content it does not accept.
    """

    root = Path(cache_dir or DEFAULT_CACHE_DIR)
    manifest = manifest or CacheManifest(root)
    offline = offline_default() if offline is None else offline

    if offline:
        if offline_path is None:
            raise CacheError(f"{name!r} requested offline but has no offline_path")
        path = _materialise(offline_path, offline_builder, validate)
        return path, _store(manifest, name, url, path, "offline")

    target = root / (filename or Path(url).name)
    cached = _reuse(target, checksum, validate)
    if cached is not None:
        return cached, _store(manifest, name, url, cached, "cache")

    errors = []
    for source in (url, *mirrors):
        for attempt in range(retries + 1):
            try:
                _download(source, target)
                _check(target, checksum, validate)
            except (OSError, CacheError) as exc:
                errors.append(f"{source} (attempt {attempt + 1}): {exc}")
                target.unlink(missing_ok=True)
                time.sleep(min(2**attempt, 5))
                continue
            return target, _store(manifest, name, source, target, "download")

    if offline_path is not None:
        path = _materialise(offline_path, offline_builder, validate)
        return path, _store(manifest, name, url, path, "offline-fallback")

    raise CacheError(f"could not fetch {name!r}: {'; '.join(errors) or 'no sources'}")


def _store(manifest: CacheManifest, name: str, url: str, path: Path, mode: str) -> Dict[str, str]:
    entry = CacheRecord(
        name=name, url=url, local_path=str(path), checksum=file_digest(path), mode=mode
    )
    return manifest.record(entry)


def _check(path: Path, checksum: str | None, validate: Validator | None) -> None:
    if checksum is not None:
        actual = file_digest(path)
        if actual != checksum:
            raise CacheError(f"checksum mismatch for {path.name}: {actual} != {checksum}")
    if validate is not None:
        validate(path)


def _reuse(target: Path, checksum: str | None, validate: Validator | None) -> Path | None:
    if not target.exists():
        return None
    try:
        _check(target, checksum, validate)
    except CacheError:
        target.unlink()
        return None
    return target


def _materialise(path: Path, builder: Builder | None, validate: Validator | None) -> Path:
    path = Path(path)
    if not path.exists():
        if builder is None:
            raise CacheError(f"offline file missing: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        builder(path)
    if validate is not None:
        validate(path)
    return path


def _download(url: str, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with urllib.request.urlopen(url, timeout=60) as response, target.open("wb") as handle:
        while True:
            block = response.read(1 << 16)
            if not block:
                break
            handle.write(block)


__all__ = [
    "CacheError",
    "CacheManifest",
    "CacheRecord",
    "DEFAULT_CACHE_DIR",
    "fetch",
    "file_digest",
    "offline_default",
]
