"""Activation utilities for digitnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(z: Array) -> Array:
    """Return the logistic sigmoid of ``z`` element-wise.

    Evaluated through ``exp(-|z|)`` so the exponential never overflows; the
    result equals ``1 / (1 + exp(-z))`` for every finite input.
    """

    e = np.exp(-np.abs(z))
    return np.where(z >= 0, 1.0 / (1.0 + e), e / (1.0 + e))


def sigmoid_prime(z: Array) -> Array:
    """Derivative of :func:`sigmoid` evaluated at ``z``."""

    s = sigmoid(z)
    return s * (1.0 - s)
