"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect per-epoch accuracy and optionally emit a matplotlib figure."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics) -> None:
        if not self.enable_plots:
            return
        self._history.append((epoch, float(metrics.get("accuracy", 0.0))))

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, accuracy = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, accuracy, marker="o")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Test accuracy")
        ax.set_ylim(0.0, 1.0)
        ax.set_title("Accuracy per epoch")
        plot_path = self.run_dir / "accuracy.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch
