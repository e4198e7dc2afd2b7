"""Condense a ``metrics.jsonl`` file into ``summary.json``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping

import numpy as np

SUMMARY_VERSION = 1
_NON_METRICS = {"epoch", "seed", "split", "sha"}


def read_records(metrics_jsonl: str | Path) -> List[Dict[str, object]]:
    path = Path(metrics_jsonl)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def summarise(records: List[Mapping[str, object]]) -> Dict[str, object]:
    """Per-metric min/max/mean/last plus the epoch with the best test accuracy.

    Ties on accuracy resolve to the earliest epoch.
    """

    series: Dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key not in _NON_METRICS and isinstance(value, (int, float)):
                series.setdefault(key, []).append(float(value))

    metrics = {}
    for key, values in sorted(series.items()):
        arr = np.asarray(values, dtype=np.float64)
        metrics[key] = {
            "min": float(arr.min()),
            "max": float(arr.max()),
            "mean": float(arr.mean()),
            "last": float(arr[-1]),
        }

    best_epoch = None
    final = None
    if records:
        accuracy = [float(r.get("accuracy", 0.0)) for r in records]  # type: ignore[arg-type]
        best_epoch = records[int(np.argmax(accuracy))].get("epoch")
        last = records[-1]
        final = {"correct": int(last.get("correct", 0)), "total": int(last.get("total", 0))}  # type: ignore[arg-type]

    return {
        "version": SUMMARY_VERSION,
        "epochs": len(records),
        "best_epoch": best_epoch,
        "final": final,
        "metrics": metrics,
    }


def write_summary(metrics_jsonl: str | Path, out_summary_json: str | Path) -> str:
    """Write the summary of ``metrics_jsonl`` with sorted keys so reruns match byte for byte."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = summarise(read_records(metrics_jsonl))
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["read_records", "summarise", "write_summary"]
