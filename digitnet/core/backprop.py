"""Backpropagation of the quadratic cost through a sigmoid network."""

from __future__ import annotations

from typing import List

from .activations import sigmoid_prime
from .cost import cost_derivative
from .forward import as_column, trace
from .network import NetworkParameters
from .types import Array, Gradients, Sample


def backprop(params: NetworkParameters, sample: Sample) -> Gradients:
    """Return the gradient of the quadratic cost for a single ``sample``.

    The returned lists are in forward order: entry ``i`` belongs to the
    transition from layer ``i`` into layer ``i + 1``.
    """

    target = as_column(sample.targets, params.output_size, name="target")
    state = trace(params, sample.inputs)
    activations = state.activations
    zs = state.pre_activations

    last_idx = len(params.weights) - 1
    nabla_b: List[Array | None] = [None] * len(params.biases)
    nabla_w: List[Array | None] = [None] * len(params.weights)

    delta = cost_derivative(activations[-1], target) * sigmoid_prime(zs[last_idx])
    nabla_b[last_idx] = delta
    nabla_w[last_idx] = delta @ activations[last_idx].T
    for idx in reversed(range(last_idx)):
        delta = (params.weights[idx + 1].T @ delta) * sigmoid_prime(zs[idx])
        nabla_b[idx] = delta
        nabla_w[idx] = delta @ activations[idx].T

    return Gradients(nabla_biases=nabla_b, nabla_weights=nabla_w)  # type: ignore[arg-type]


__all__ = ["backprop"]
