"""digitnet public API."""

from .core import activations, types  # noqa: F401
from .core.backprop import backprop
from .core.forward import feedforward, trace
from .core.network import NetworkParameters, initialize
from .core.types import EpochReport, Gradients, Sample
from .errors import (
    ConfigurationError,
    DigitNetError,
    DimensionMismatchError,
    UnsupportedFormatError,
)
from .training.metrics import evaluate
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import SGDOptimizer, Trainer, sgd

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DigitNetError",
    "DimensionMismatchError",
    "EpochReport",
    "Gradients",
    "NetworkParameters",
    "SGDOptimizer",
    "Sample",
    "Trainer",
    "UnsupportedFormatError",
    "activations",
    "backprop",
    "evaluate",
    "feedforward",
    "initialize",
    "load_preset",
    "presets",
    "run_pipeline",
    "sgd",
    "trace",
    "types",
]
