"""Network parameters and their initialisation."""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..errors import ConfigurationError
from .types import Array, Gradients


def _validate_layer_sizes(layer_sizes: Sequence[int]) -> List[int]:
    sizes = list(layer_sizes)
    if len(sizes) < 2:
        raise ConfigurationError(
            f"layer_sizes needs at least an input and an output layer, got {sizes}"
        )
    for size in sizes:
        if isinstance(size, bool) or not isinstance(size, numbers.Integral) or size <= 0:
            raise ConfigurationError(f"layer sizes must be positive integers, got {sizes}")
    return [int(size) for size in sizes]


@dataclass
class NetworkParameters:
    """Weights and biases of a fully-connected sigmoid network.

    ``weights[i]`` maps layer ``i`` onto layer ``i + 1`` and therefore has shape
    ``(layer_sizes[i + 1], layer_sizes[i])``; ``biases[i]`` is the matching
    ``(layer_sizes[i + 1], 1)`` column.
    """

    layer_sizes: List[int]
    weights: List[Array] = field(repr=False)
    biases: List[Array] = field(repr=False)

    def __post_init__(self) -> None:
        self.layer_sizes = _validate_layer_sizes(self.layer_sizes)
        transitions = len(self.layer_sizes) - 1
        if len(self.weights) != transitions or len(self.biases) != transitions:
            raise ConfigurationError(
                f"expected {transitions} weight matrices and bias vectors, got "
                f"{len(self.weights)} and {len(self.biases)}"
            )
        for idx, (W, b) in enumerate(zip(self.weights, self.biases)):
            rows, cols = self.layer_sizes[idx + 1], self.layer_sizes[idx]
            if W.shape != (rows, cols):
                raise ConfigurationError(
                    f"weights[{idx}] has shape {W.shape}, expected {(rows, cols)}"
                )
            if b.shape != (rows, 1):
                raise ConfigurationError(
                    f"biases[{idx}] has shape {b.shape}, expected {(rows, 1)}"
                )

    @property
    def num_layers(self) -> int:
        return len(self.layer_sizes)

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    def zero_gradients(self) -> Gradients:
        """Return a zero-filled gradient accumulator shaped like ``self``."""

        return Gradients(
            nabla_biases=[np.zeros_like(b) for b in self.biases],
            nabla_weights=[np.zeros_like(W) for W in self.weights],
        )

    def apply_gradients(self, grads: Gradients, scale: float) -> None:
        """Subtract ``scale * grads`` from every weight and bias in place."""

        for W, nw in zip(self.weights, grads.nabla_weights):
            W -= scale * nw
        for b, nb in zip(self.biases, grads.nabla_biases):
            b -= scale * nb

    def copy(self) -> "NetworkParameters":
        return NetworkParameters(
            layer_sizes=list(self.layer_sizes),
            weights=[W.copy() for W in self.weights],
            biases=[b.copy() for b in self.biases],
        )

    def parameter_count(self) -> int:
        return int(sum(W.size + b.size for W, b in zip(self.weights, self.biases)))


def initialize(
    layer_sizes: Sequence[int],
    rng: np.random.Generator | None = None,
) -> NetworkParameters:
    """Create parameters with every entry drawn from a standard normal.

    ``rng`` is the only source of randomness; pass a seeded generator for
    reproducible networks.
    """

    sizes = _validate_layer_sizes(layer_sizes)
    rng = rng if rng is not None else np.random.default_rng()
    biases = [rng.standard_normal((y, 1)) for y in sizes[1:]]
    weights = [rng.standard_normal((y, x)) for x, y in zip(sizes[:-1], sizes[1:])]
    return NetworkParameters(layer_sizes=sizes, weights=weights, biases=biases)


__all__ = ["NetworkParameters", "initialize"]
