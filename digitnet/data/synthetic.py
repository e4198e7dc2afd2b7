"""Pure in-memory synthetic classification data."""

from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np

from ..core.types import Sample
from .registry import DataSpec, DatasetSpec, register_dataset


def make_samples(
    n: int,
    *,
    d_in: int,
    num_classes: int,
    rng: np.random.Generator,
    spread: float = 0.08,
) -> List[Sample]:
    """Draw ``n`` one-hot labelled samples from Gaussian clusters in ``[0, 1]``.

    Each class owns a fixed centre derived from ``d_in`` and ``num_classes``;
    inputs are clipped to the unit interval like normalised pixels.
    """

    centres = (np.arange(num_classes * d_in).reshape(num_classes, d_in) * 7 % 11) / 10.0
    eye = np.eye(num_classes, dtype=np.float64)
    samples: List[Sample] = []
    for idx in range(n):
        label = idx % num_classes
        noise = spread * rng.standard_normal(d_in)
        x = np.clip(centres[label] + noise, 0.0, 1.0).reshape(d_in, 1)
        samples.append(Sample(inputs=x, targets=eye[label].reshape(num_classes, 1)))
    return samples


@register_dataset("synthetic")
def build_synthetic(
    *,
    n_train: int = 120,
    n_test: int = 30,
    d_in: int = 4,
    num_classes: int = 3,
    seed: int = 0,
    offline: bool = True,
    cache_dir: str | Path | None = None,
) -> DatasetSpec:
    rng = np.random.default_rng(seed)
    train = make_samples(n_train, d_in=d_in, num_classes=num_classes, rng=rng)
    test = make_samples(n_test, d_in=d_in, num_classes=num_classes, rng=rng)
    provenance = {
        "type": "synthetic",
        "n_train": n_train,
        "n_test": n_test,
        "seed": seed,
        "offline": bool(offline),
    }
    data_spec = DataSpec(
        d_in=d_in,
        d_out=num_classes,
        num_classes=num_classes,
        normalization={"inputs": {"method": "clip", "range": [0.0, 1.0]}},
    )
    return DatasetSpec(
        name="synthetic",
        train=train,
        test=test,
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["build_synthetic", "make_samples"]
