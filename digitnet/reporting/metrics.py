"""Per-epoch metric sinks.

Every sink is a callback with ``on_epoch(epoch, metrics)`` where ``metrics`` is
:meth:`digitnet.core.types.EpochReport.as_metrics`.
"""

from __future__ import annotations

import csv
import json
import subprocess
import sys
from pathlib import Path
from typing import Dict, Mapping, TextIO

CSV_FIELDS = ("epoch", "split", "correct", "total", "accuracy", "cost")


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
    return out.decode().strip()


class _FileSink:
    """Truncates ``path`` on creation; rows are appended one epoch at a time."""

    def __init__(self, path: str | Path, *, split: str = "test") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def _row(self, epoch: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        row: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        for key, value in metrics.items():
            if isinstance(value, (int, float)):
                row[key] = float(value)
        return row

    def __call__(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.on_epoch(epoch, metrics)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        raise NotImplementedError


class JsonlSink(_FileSink):
    """One JSON object per epoch, tagged with the run seed and git revision."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "test",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, split=split)
        self.seed = seed
        self.sha = sha or _git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = self._row(epoch, metrics)
        row["seed"] = self.seed
        row["sha"] = self.sha
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(row) + "\n")


class CsvSink(_FileSink):
    """CSV with the fixed :data:`CSV_FIELDS` columns; ``cost`` is blank when unmonitored."""

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = self._row(epoch, metrics)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS, extrasaction="ignore")
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)


class ConsoleSink:
    """Print ``Epoch i: correct / total`` after every epoch."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        line = f"Epoch {epoch}: {int(metrics.get('correct', 0))} / {int(metrics.get('total', 0))}"
        if "cost" in metrics:
            line += f" (cost {metrics['cost']:.4f})"
        print(line, file=self.stream or sys.stdout)

    __call__ = on_epoch


__all__ = ["CSV_FIELDS", "ConsoleSink", "CsvSink", "JsonlSink"]
