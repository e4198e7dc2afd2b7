"""Classification accuracy for the trainer."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..core.forward import feedforward
from ..core.network import NetworkParameters
from ..core.types import Array, Sample


def first_argmax(vector: Array) -> int:
    """Index of the maximal entry; the lowest index wins ties."""

    flat = np.asarray(vector).reshape(-1)
    best = 0
    for idx in range(1, flat.shape[0]):
        if flat[idx] > flat[best]:
            best = idx
    return best


def is_correct(output: Array, target: Array) -> bool:
    return first_argmax(output) == first_argmax(target)


def evaluate(params: NetworkParameters, test_data: Iterable[Sample]) -> int:
    """Return how many samples in ``test_data`` the network classifies correctly."""

    return sum(
        int(is_correct(feedforward(params, sample.inputs), sample.targets))
        for sample in test_data
    )


__all__ = ["first_argmax", "is_correct", "evaluate"]
