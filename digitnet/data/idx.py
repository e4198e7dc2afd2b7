"""Reader and writer for the IDX binary format used by MNIST.

An IDX stream starts with a big-endian 32-bit magic number followed by one
big-endian 32-bit count per dimension, then the unsigned byte payload. Only
two layouts are recognised: label streams (magic ``2049``, one dimension) and
image streams (magic ``2051``, three dimensions).
"""

from __future__ import annotations

import gzip
import struct
from pathlib import Path
from typing import BinaryIO

import numpy as np

from ..errors import UnsupportedFormatError

LABELS_MAGIC = 2049
IMAGES_MAGIC = 2051

_DIMENSIONS = {LABELS_MAGIC: 1, IMAGES_MAGIC: 3}


def _open(path: Path, mode: str) -> BinaryIO:
    if path.suffix == ".gz":
        # mtime=0 keeps written archives byte-identical across runs
        return gzip.GzipFile(path, mode, mtime=0)  # type: ignore[return-value]
    return path.open(mode)


def parse_idx(payload: bytes) -> np.ndarray:
    """Decode an uncompressed IDX byte string into a ``uint8`` array."""

    if len(payload) < 4:
        raise UnsupportedFormatError("IDX stream is too short to hold a magic number")
    (magic,) = struct.unpack(">i", payload[:4])
    if magic not in _DIMENSIONS:
        raise UnsupportedFormatError(f"Unsupported IDX magic number: {magic}")
    ndim = _DIMENSIONS[magic]
    header_end = 4 + 4 * ndim
    if len(payload) < header_end:
        raise UnsupportedFormatError(f"IDX header truncated for magic {magic}")
    dims = struct.unpack(f">{ndim}i", payload[4:header_end])
    if any(d < 0 for d in dims):
        raise UnsupportedFormatError(f"IDX declares negative dimensions: {dims}")
    expected = int(np.prod(dims, dtype=np.int64))
    data = np.frombuffer(payload, dtype=np.uint8, offset=header_end)
    if data.size != expected:
        raise UnsupportedFormatError(
            f"IDX payload holds {data.size} bytes but dimensions {dims} need {expected}"
        )
    return data.reshape(dims)


def read_idx(path: str | Path) -> np.ndarray:
    """Read an IDX file, transparently decompressing ``.gz`` files."""

    path = Path(path)
    with _open(path, "rb") as handle:
        payload = handle.read()
    return parse_idx(payload)


def read_magic(path: str | Path) -> int:
    """Return the magic number at the start of an IDX file."""

    with _open(Path(path), "rb") as handle:
        head = handle.read(4)
    if len(head) < 4:
        raise UnsupportedFormatError("IDX stream is too short to hold a magic number")
    (magic,) = struct.unpack(">i", head)
    return magic


def write_idx(path: str | Path, array: np.ndarray) -> Path:
    """Write ``array`` (1-D labels or 3-D images) as an IDX file."""

    path = Path(path)
    array = np.asarray(array)
    if array.ndim == 1:
        magic = LABELS_MAGIC
    elif array.ndim == 3:
        magic = IMAGES_MAGIC
    else:
        raise UnsupportedFormatError(f"IDX writer supports 1-D or 3-D arrays, got {array.ndim}-D")
    header = struct.pack(f">i{array.ndim}i", magic, *array.shape)
    path.parent.mkdir(parents=True, exist_ok=True)
    with _open(path, "wb") as handle:
        handle.write(header)
        handle.write(array.astype(np.uint8).tobytes())
    return path


__all__ = ["IMAGES_MAGIC", "LABELS_MAGIC", "parse_idx", "read_idx", "read_magic", "write_idx"]
