"""Core typing contracts for digitnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Sample:
    """A single labelled example made of two column vectors."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class ActivationTrace:
    """Intermediate values captured during a traced forward pass.

    ``activations`` holds one entry per layer, starting with the input;
    ``pre_activations`` holds one entry per layer transition.
    """

    activations: List[Array]
    pre_activations: List[Array]


@dataclass
class Gradients:
    """Per-transition gradients of the cost, shaped like the parameters."""

    nabla_biases: List[Array]
    nabla_weights: List[Array]

    def add_(self, other: "Gradients") -> "Gradients":
        """Accumulate ``other`` into ``self`` element-wise and return ``self``."""

        for acc, delta in zip(self.nabla_biases, other.nabla_biases):
            acc += delta
        for acc, delta in zip(self.nabla_weights, other.nabla_weights):
            acc += delta
        return self


@dataclass(frozen=True)
class EpochReport:
    """Accuracy of the network on the held-out set after one epoch."""

    epoch: int
    correct: int
    total: int
    cost: float | None = None

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def as_metrics(self) -> Dict[str, float]:
        metrics = {
            "correct": float(self.correct),
            "total": float(self.total),
            "accuracy": self.accuracy,
        }
        if self.cost is not None:
            metrics["cost"] = float(self.cost)
        return metrics


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`digitnet.training.pipelines.run_pipeline`."""

    reports: List[EpochReport]
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
