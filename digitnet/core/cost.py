"""Quadratic cost used by backpropagation and reporting."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .forward import as_column, feedforward
from .network import NetworkParameters
from .types import Array, Sample


def quadratic_cost(output: Array, target: Array) -> float:
    """Return ``0.5 * ||output - target||^2``."""

    diff = output - target
    return float(0.5 * np.sum(diff * diff))


def cost_derivative(output: Array, target: Array) -> Array:
    """Partial derivatives of :func:`quadratic_cost` with respect to ``output``."""

    return output - target


def total_cost(params: NetworkParameters, data: Iterable[Sample]) -> float:
    """Mean quadratic cost of ``params`` over ``data`` (0.0 when empty)."""

    costs = [
        quadratic_cost(
            feedforward(params, sample.inputs),
            as_column(sample.targets, params.output_size, name="target"),
        )
        for sample in data
    ]
    return float(np.mean(costs)) if costs else 0.0


__all__ = ["quadratic_cost", "cost_derivative", "total_cost"]
