"""Pipeline assembly: presets, dataset resolution and a single training run."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np
import yaml

from ..core.network import initialize
from ..core.types import RunResult
from ..data import registry
from ..errors import ConfigurationError
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import ConsoleSink, CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import SGDOptimizer, Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-sigmoid": {
        "data": {"name": "mnist", "options": {}},
        "model": {"hidden": [30]},
        "train": {
            "epochs": 30,
            "mini_batch_size": 10,
            "learning_rate": 3.0,
            "seed": 0,
            "run_dir": "runs/mnist-sigmoid",
        },
    },
    "mnist-deep": {
        "data": {"name": "mnist", "options": {}},
        "model": {"hidden": [16, 16]},
        "train": {
            "epochs": 30,
            "mini_batch_size": 10,
            "learning_rate": 3.0,
            "seed": 0,
            "run_dir": "runs/mnist-deep",
        },
    },
    "synthetic-smoke": {
        "data": {
            "name": "synthetic",
            "options": {"n_train": 60, "n_test": 15, "d_in": 4, "num_classes": 3, "seed": 0},
        },
        "model": {"hidden": [5]},
        "train": {
            "epochs": 5,
            "mini_batch_size": 6,
            "learning_rate": 1.0,
            "seed": 7,
            "run_dir": "runs/synthetic-smoke",
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config_file(path: Path) -> Mapping[str, object]:
    """Load a JSON or YAML mapping from ``path``."""

    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ConfigurationError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    found: Dict[str, Mapping[str, object]] = {}
    if not _PRESET_DIR.exists():
        return found
    for file in sorted(_PRESET_DIR.iterdir()):
        if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
            continue
        data = read_config_file(file)
        missing = _REQUIRED_SECTIONS - set(data)
        if missing:
            raise ConfigurationError(
                f"Preset {file.name} is missing required sections: {', '.join(sorted(missing))}"
            )
        found[file.stem] = json.loads(json.dumps(data))
    return found


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {
        name: deepcopy(cfg) for name, cfg in _PRESETS.items()
    }
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    available = presets()
    if name not in available:
        raise ConfigurationError(
            f"Unknown preset {name!r}. Available: {', '.join(sorted(available))}"
        )
    return available[name]


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def build_layer_sizes(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    """Resolve the layer sizes from ``model`` config and the dataset shape."""

    if "layer_sizes" in model_cfg:
        sizes = [int(s) for s in model_cfg["layer_sizes"]]  # type: ignore[union-attr]
        if sizes and (sizes[0] != d_in or sizes[-1] != d_out):
            raise ConfigurationError(
                f"layer_sizes {sizes} do not match dataset dimensions ({d_in}, {d_out})"
            )
        return sizes
    hidden = [int(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    return [d_in, *hidden, d_out]


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train a network as described by ``config`` and write run artefacts."""

    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise ConfigurationError(f"Config is missing sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    offline = bool(config.get("offline", True))
    dataset = registry.get_dataset(
        str(data_cfg.get("name", "mnist")),
        offline=offline,
        cache_dir=train_cfg.get("cache_dir"),
        **dict(data_cfg.get("options", {})),  # type: ignore[arg-type]
    )
    data_spec = dataset.data_spec
    layer_sizes = build_layer_sizes(model_cfg, data_spec.d_in, data_spec.d_out)

    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    mini_batch_size = int(train_cfg.get("mini_batch_size", 10))
    learning_rate = float(train_cfg.get("learning_rate", 3.0))
    remainder = str(train_cfg.get("remainder", "keep"))
    workers = int(train_cfg.get("workers", 1))

    rng = np.random.default_rng(seed)
    params = initialize(layer_sizes, rng)

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        layer_sizes=layer_sizes,
        splits=dataset.splits,
        epochs=epochs,
        mini_batch_size=mini_batch_size,
        learning_rate=learning_rate,
        remainder=remainder,
        param_count=params.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="test", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="test")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    callbacks: List[object] = [jsonl, csv_sink, plots]
    if bool(train_cfg.get("console", True)):
        callbacks.append(ConsoleSink())

    trainer = Trainer(
        params,
        SGDOptimizer(lr=learning_rate),
        rng=rng,
        remainder=remainder,
        workers=workers,
        monitor_cost=bool(train_cfg.get("monitor_cost", False)),
        callbacks=callbacks,
    )
    training_data = list(dataset.train)
    reports = trainer.run(training_data, epochs, mini_batch_size, dataset.test)
    plots.close()

    safe_config = json.loads(json.dumps(config, default=str))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        layer_sizes=layer_sizes,
    )
    summary_path = write_summary(jsonl.path, run_dir / "summary.json")
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    return RunResult(
        reports=reports,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    layer_sizes: Sequence[int],
    splits: Mapping[str, int],
    epochs: int,
    mini_batch_size: int,
    learning_rate: float,
    remainder: str,
    param_count: int,
) -> None:
    print("=== digitnet run ===")
    print(f"Dataset       : {dataset_name} (train={splits['train']}, test={splits['test']})")
    print(f"Layer sizes   : {list(layer_sizes)}")
    print(f"Epochs        : {epochs}")
    print(f"Mini-batch    : {mini_batch_size} (remainder={remainder})")
    print(f"Learning rate : {learning_rate}")
    print(f"Parameters    : {param_count}")
    print("====================")


__all__ = [
    "build_layer_sizes",
    "load_preset",
    "merge_config",
    "presets",
    "read_config_file",
    "run_pipeline",
]
