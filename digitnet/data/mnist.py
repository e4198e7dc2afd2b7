"""MNIST handwritten digits read from the original gzip-compressed IDX files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np

from ..core.types import Sample
from ..errors import ConfigurationError, UnsupportedFormatError
from .cache import CacheError, fetch
from .idx import IMAGES_MAGIC, LABELS_MAGIC, read_idx, read_magic, write_idx
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import resolve_cache_dir

MNIST_MIRROR = "https://ossci-datasets.s3.amazonaws.com/mnist/"
NUM_CLASSES = 10

FILES: Dict[str, Tuple[str, str]] = {
    "train": ("train-images-idx3-ubyte.gz", "train-labels-idx1-ubyte.gz"),
    "test": ("t10k-images-idx3-ubyte.gz", "t10k-labels-idx1-ubyte.gz"),
}

_FIXTURE_SIZES = {"train": 200, "test": 50}


def _fixture_arrays(split: str) -> tuple[np.ndarray, np.ndarray]:
    """Procedural MNIST-like digits: label ``k`` lights a band at rows ``2k..2k+5``."""

    # Built from integer sequences only so the archives are identical on every
    # platform and NumPy release.
    n = _FIXTURE_SIZES[split]
    offset = 0 if split == "train" else 7
    labels = ((np.arange(n) * 3 + offset) % NUM_CLASSES).astype(np.uint8)
    texture = (np.arange(n * 28 * 28, dtype=np.uint32).reshape(n, 28, 28) * 37 + offset) % 64
    images = texture.astype(np.uint8)
    for idx, label in enumerate(labels):
        row = 2 * int(label)
        images[idx, row : row + 6, 4:24] = 255
    return images, labels


def _fixture_builder(split: str, kind: str):
    def _build(path: Path) -> None:
        images, labels = _fixture_arrays(split)
        write_idx(path, images if kind == "images" else labels)

    return _build


def _expect_magic(magic: int):
    def _validate(path: Path) -> None:
        try:
            found = read_magic(path)
        except (OSError, UnsupportedFormatError) as exc:
            raise CacheError(f"{path.name} is not a readable IDX archive: {exc}") from exc
        if found != magic:
            raise CacheError(f"{path.name} has IDX magic {found}, expected {magic}")

    return _validate


def to_samples(images: np.ndarray, labels: np.ndarray, num_classes: int = NUM_CLASSES) -> List[Sample]:
    """Pair raw IDX images and labels into normalised one-hot :class:`Sample` s."""

    if images.ndim != 3 or labels.ndim != 1:
        raise UnsupportedFormatError(
            f"expected 3-D images and 1-D labels, got {images.ndim}-D and {labels.ndim}-D"
        )
    if images.shape[0] != labels.shape[0]:
        raise UnsupportedFormatError(
            f"{images.shape[0]} images but {labels.shape[0]} labels"
        )
    if labels.size and int(labels.max()) >= num_classes:
        raise UnsupportedFormatError(
            f"label {int(labels.max())} outside the {num_classes} known classes"
        )
    pixels = images.shape[1] * images.shape[2]
    inputs = images.reshape(images.shape[0], pixels, 1).astype(np.float64) / 255.0
    eye = np.eye(num_classes, dtype=np.float64)
    return [
        Sample(inputs=inputs[idx], targets=eye[int(label)].reshape(num_classes, 1))
        for idx, label in enumerate(labels)
    ]


def load_split(
    split: str,
    *,
    data_dir: str | Path | None = None,
    offline: bool = True,
    cache_dir: str | Path | None = None,
) -> tuple[np.ndarray, np.ndarray, Dict[str, object]]:
    """Return raw ``(images, labels, provenance)`` for ``split``.

    ``data_dir`` points at a directory that already holds the four MNIST
    archives; otherwise files come from the cache (offline fixtures by default).
    """

    if split not in FILES:
        raise ConfigurationError(f"Unknown MNIST split {split!r}; expected one of {sorted(FILES)}")
    arrays = []
    provenance: Dict[str, object] = {}
    for kind, filename in zip(("images", "labels"), FILES[split]):
        if data_dir is not None:
            path = Path(data_dir) / filename
            record: Dict[str, object] = {"mode": "local", "local_path": str(path)}
        else:
            cache_root = resolve_cache_dir(cache_dir)
            path, fetched = fetch(
                name=f"mnist-{split}-{kind}",
                url=MNIST_MIRROR + filename,
                filename=filename,
                offline_path=cache_root / "offline" / "mnist" / filename,
                offline_builder=_fixture_builder(split, kind),
                offline=offline,
                validate=_expect_magic(IMAGES_MAGIC if kind == "images" else LABELS_MAGIC),
                cache_dir=cache_root,
            )
            record = dict(fetched)
        arrays.append(read_idx(path))
        provenance[kind] = record
    images, labels = arrays
    return images, labels, provenance


@register_dataset("mnist")
def build_mnist(
    *,
    offline: bool = True,
    cache_dir: str | Path | None = None,
    data_dir: str | Path | None = None,
    max_items: int | None = None,
) -> DatasetSpec:
    """Create a :class:`DatasetSpec` holding the MNIST train and test samples."""

    splits: Dict[str, List[Sample]] = {}
    provenance: Dict[str, object] = {"source": "mnist", "max_items": max_items}
    image_shape: tuple[int, int] = (28, 28)
    for split in ("train", "test"):
        images, labels, record = load_split(
            split, data_dir=data_dir, offline=offline, cache_dir=cache_dir
        )
        if max_items is not None:
            images, labels = images[:max_items], labels[:max_items]
        image_shape = (int(images.shape[1]), int(images.shape[2]))
        splits[split] = to_samples(images, labels)
        provenance[split] = record

    data_spec = DataSpec(
        d_in=image_shape[0] * image_shape[1],
        d_out=NUM_CLASSES,
        num_classes=NUM_CLASSES,
        normalization={"inputs": {"method": "divide", "by": 255.0, "range": [0.0, 1.0]}},
        extra={"input_shape": image_shape},
    )
    return DatasetSpec(
        name="mnist",
        train=splits["train"],
        test=splits["test"],
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["FILES", "build_mnist", "load_split", "to_samples"]
