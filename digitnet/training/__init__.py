"""Training loops, evaluation and run pipelines."""

from .metrics import evaluate
from .trainer import SGDOptimizer, Trainer, partition, sgd

__all__ = ["SGDOptimizer", "Trainer", "evaluate", "partition", "sgd"]
