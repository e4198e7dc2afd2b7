"""Named dataset factories returning validated train/test sample lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

import numpy as np

from ..core.types import Sample
from ..errors import ConfigurationError, DimensionMismatchError


@dataclass(frozen=True)
class DataSpec:
    """Shape of the samples a dataset yields.

    ``d_in`` and ``d_out`` are the lengths of the input and one-hot target
    column vectors, which become the first and last entries of the network's
    layer sizes. ``normalization`` and ``extra`` are kept only for provenance.
    """

    d_in: int
    d_out: int
    num_classes: int
    normalization: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    name: str
    train: List[Sample]
    test: List[Sample]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    @property
    def splits(self) -> Dict[str, int]:
        return {"train": len(self.train), "test": len(self.test)}


DatasetFactory = Callable[..., DatasetSpec]

_FACTORIES: Dict[str, DatasetFactory] = {}


def register_dataset(name: str, factory: DatasetFactory | None = None):
    """Register ``factory`` under ``name``; without ``factory`` act as a decorator.

    Factories are called with ``offline`` and ``cache_dir`` keywords plus any
    dataset specific options.
    """

    def _register(func: DatasetFactory) -> DatasetFactory:
        _FACTORIES[name] = func
        return func

    return _register if factory is None else _register(factory)


def available_datasets() -> List[str]:
    return sorted(_FACTORIES)


def get_dataset(
    dataset: str,
    /,
    *,
    offline: bool = True,
    cache_dir: str | Path | None = None,
    **options: Any,
) -> DatasetSpec:
    """Build the dataset registered as ``dataset`` and check every sample's shape."""

    try:
        factory = _FACTORIES[dataset]
    except KeyError:
        raise ConfigurationError(
            f"Unknown dataset {dataset!r}. Available: {', '.join(available_datasets())}"
        ) from None
    spec = factory(offline=offline, cache_dir=cache_dir, **options)
    _check_shapes(spec)
    return spec


def _check_shapes(spec: DatasetSpec) -> None:
    expected_in = (spec.data_spec.d_in, 1)
    expected_out = (spec.data_spec.d_out, 1)
    if min(expected_in[0], expected_out[0]) <= 0:
        raise ConfigurationError(f"Dataset {spec.name!r} declares empty dimensions")
    splits: Sequence[tuple[str, List[Sample]]] = (("train", spec.train), ("test", spec.test))
    for split, samples in splits:
        for idx, sample in enumerate(samples):
            for label, value, expected in (
                ("input", sample.inputs, expected_in),
                ("target", sample.targets, expected_out),
            ):
                if np.shape(value) != expected:
                    raise DimensionMismatchError(
                        f"{spec.name}/{split}[{idx}]: {label} shape {np.shape(value)} "
                        f"!= {expected}"
                    )


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
