"""Forward propagation through a :class:`NetworkParameters` instance."""

from __future__ import annotations

import numpy as np

from ..errors import DimensionMismatchError
from .activations import sigmoid
from .network import NetworkParameters
from .types import ActivationTrace, Array


def as_column(vector: Array, size: int, *, name: str = "input") -> Array:
    """Return ``vector`` as a ``(size, 1)`` float column.

    Flat vectors of the right length are reshaped; anything else raises
    :class:`DimensionMismatchError`.
    """

    arr = np.asarray(vector, dtype=np.float64)
    if arr.ndim == 1 and arr.shape[0] == size:
        return arr.reshape(size, 1)
    if arr.shape != (size, 1):
        raise DimensionMismatchError(
            f"{name} has shape {arr.shape}, expected ({size}, 1)"
        )
    return arr


def _transition(W: Array, b: Array, activation: Array) -> tuple[Array, Array]:
    z = W @ activation + b
    return z, sigmoid(z)


def feedforward(params: NetworkParameters, x: Array) -> Array:
    """Return the output activation of the network for input ``x``."""

    activation = as_column(x, params.input_size)
    for W, b in zip(params.weights, params.biases):
        _, activation = _transition(W, b, activation)
    return activation


def trace(params: NetworkParameters, x: Array) -> ActivationTrace:
    """Run a forward pass and keep every activation and pre-activation."""

    activation = as_column(x, params.input_size)
    activations = [activation]
    pre_activations = []
    for W, b in zip(params.weights, params.biases):
        z, activation = _transition(W, b, activation)
        pre_activations.append(z)
        activations.append(activation)
    return ActivationTrace(activations=activations, pre_activations=pre_activations)


__all__ = ["as_column", "feedforward", "trace"]
