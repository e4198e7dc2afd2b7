"""Mini-batch stochastic gradient descent for sigmoid networks."""

from __future__ import annotations

import math
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, MutableSequence, Sequence

import numpy as np

from ..core.backprop import backprop
from ..core.cost import total_cost
from ..core.network import NetworkParameters
from ..core.types import EpochReport, Gradients, Sample
from ..errors import ConfigurationError, DimensionMismatchError
from .metrics import evaluate

REMAINDER_POLICIES = ("keep", "drop")


def partition(
    data: Sequence[Sample],
    mini_batch_size: int,
    remainder: str = "keep",
) -> List[Sequence[Sample]]:
    """Split ``data`` into consecutive mini-batches of ``mini_batch_size``.

    With ``remainder="keep"`` a trailing short batch is returned as-is; with
    ``remainder="drop"`` it is discarded.
    """

    if mini_batch_size <= 0:
        raise ConfigurationError(f"mini_batch_size must be positive, got {mini_batch_size}")
    if remainder not in REMAINDER_POLICIES:
        raise ConfigurationError(
            f"remainder must be one of {REMAINDER_POLICIES}, got {remainder!r}"
        )
    n = len(data)
    stop = n - n % mini_batch_size if remainder == "drop" else n
    return [data[k : k + mini_batch_size] for k in range(0, stop, mini_batch_size)]


def check_samples(params: NetworkParameters, data: Sequence[Sample], *, split: str) -> None:
    """Raise :class:`DimensionMismatchError` on the first sample of the wrong shape."""

    n_in, n_out = params.input_size, params.output_size
    for idx, sample in enumerate(data):
        inputs = np.shape(sample.inputs)
        targets = np.shape(sample.targets)
        if inputs not in {(n_in, 1), (n_in,)}:
            raise DimensionMismatchError(
                f"{split} sample {idx}: input shape {inputs} does not match ({n_in}, 1)"
            )
        if targets not in {(n_out, 1), (n_out,)}:
            raise DimensionMismatchError(
                f"{split} sample {idx}: target shape {targets} does not match ({n_out}, 1)"
            )


def accumulate(params: NetworkParameters, batch: Sequence[Sample]) -> Gradients:
    """Sum the per-sample gradients of ``batch`` against the current ``params``."""

    total = params.zero_gradients()
    for sample in batch:
        total.add_(backprop(params, sample))
    return total


@dataclass
class SGDOptimizer:
    """Plain SGD averaging the summed gradient over the mini-batch."""

    lr: float

    def step(self, params: NetworkParameters, grads: Gradients, batch_size: int) -> None:
        params.apply_gradients(grads, self.lr / batch_size)


class Trainer:
    """Run epochs of shuffled mini-batch SGD and report held-out accuracy.

    The trainer owns ``params`` for the duration of :meth:`run` and is the only
    writer. ``rng`` drives every shuffle. With ``workers > 1`` per-sample
    gradients of a mini-batch are summed on a thread pool in contiguous slices
    and reduced on the calling thread before the update.
    """

    def __init__(
        self,
        params: NetworkParameters,
        optimizer: SGDOptimizer,
        *,
        rng: np.random.Generator | None = None,
        remainder: str = "keep",
        workers: int = 1,
        monitor_cost: bool = False,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        if remainder not in REMAINDER_POLICIES:
            raise ConfigurationError(
                f"remainder must be one of {REMAINDER_POLICIES}, got {remainder!r}"
            )
        if workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {workers}")
        self.params = params
        self.optimizer = optimizer
        self.rng = rng if rng is not None else np.random.default_rng()
        self.remainder = remainder
        self.workers = int(workers)
        self.monitor_cost = monitor_cost
        self.callbacks = list(callbacks or [])

    def run(
        self,
        training_data: MutableSequence[Sample],
        epochs: int,
        mini_batch_size: int,
        test_data: Sequence[Sample] | None = None,
    ) -> List[EpochReport]:
        """Train for ``epochs`` and return one :class:`EpochReport` per epoch.

        ``training_data`` is shuffled in place at the start of every epoch.
        """

        if len(training_data) == 0:
            raise ConfigurationError("training_data is empty")
        if epochs < 0:
            raise ConfigurationError(f"epochs must be non-negative, got {epochs}")
        if mini_batch_size <= 0:
            raise ConfigurationError(f"mini_batch_size must be positive, got {mini_batch_size}")
        check_samples(self.params, training_data, split="train")
        if test_data is not None:
            check_samples(self.params, test_data, split="test")

        reports: List[EpochReport] = []
        pool = ThreadPoolExecutor(max_workers=self.workers) if self.workers > 1 else None
        try:
            for epoch in range(epochs):
                self.rng.shuffle(training_data)
                for batch in partition(training_data, mini_batch_size, self.remainder):
                    self.update_mini_batch(batch, pool=pool)
                report = self._evaluate(epoch, test_data)
                reports.append(report)
                self._emit_epoch(report)
        finally:
            if pool is not None:
                pool.shutdown(wait=True)
        return reports

    def update_mini_batch(
        self, batch: Sequence[Sample], *, pool: Executor | None = None
    ) -> None:
        """Apply one averaged gradient step computed over ``batch``."""

        if len(batch) == 0:
            return
        if pool is None or len(batch) < 2:
            grads = accumulate(self.params, batch)
        else:
            grads = self._parallel_accumulate(batch, pool)
        self.optimizer.step(self.params, grads, len(batch))

    # ------------------------------------------------------------------
    # Internal helpers

    def _parallel_accumulate(self, batch: Sequence[Sample], pool: Executor) -> Gradients:
        chunk = math.ceil(len(batch) / self.workers)
        slices = [batch[k : k + chunk] for k in range(0, len(batch), chunk)]
        futures = [pool.submit(accumulate, self.params, part) for part in slices]
        partials = [future.result() for future in futures]
        total = partials[0]
        for partial in partials[1:]:
            total.add_(partial)
        return total

    def _evaluate(self, epoch: int, test_data: Sequence[Sample] | None) -> EpochReport:
        if test_data is None:
            return EpochReport(epoch=epoch, correct=0, total=0)
        cost = total_cost(self.params, test_data) if self.monitor_cost else None
        return EpochReport(
            epoch=epoch,
            correct=evaluate(self.params, test_data),
            total=len(test_data),
            cost=cost,
        )

    def _emit_epoch(self, report: EpochReport) -> None:
        metrics = report.as_metrics()
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(report.epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(report.epoch, metrics)


def sgd(
    params: NetworkParameters,
    training_data: MutableSequence[Sample],
    epochs: int,
    mini_batch_size: int,
    learning_rate: float,
    test_data: Sequence[Sample] | None = None,
    *,
    rng: np.random.Generator | None = None,
    remainder: str = "keep",
    workers: int = 1,
    callbacks: Sequence[object] | None = None,
) -> List[EpochReport]:
    """Train ``params`` in place with mini-batch SGD.

    Returns ``(epoch, correct, total)`` reports, one per epoch, measured on
    ``test_data`` after the epoch's last update.
    """

    trainer = Trainer(
        params,
        SGDOptimizer(lr=learning_rate),
        rng=rng,
        remainder=remainder,
        workers=workers,
        callbacks=callbacks,
    )
    return trainer.run(training_data, epochs, mini_batch_size, test_data)


__all__ = [
    "REMAINDER_POLICIES",
    "SGDOptimizer",
    "Trainer",
    "accumulate",
    "check_samples",
    "partition",
    "sgd",
]
