"""Core numerical primitives for digitnet."""

from . import activations, backprop, cost, forward, network, types

__all__ = ["activations", "backprop", "cost", "forward", "network", "types"]
