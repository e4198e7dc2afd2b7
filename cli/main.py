"""Command line entry point for digitnet training runs."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Iterable

from digitnet.training import pipelines
from digitnet.training.trainer import REMAINDER_POLICIES


def _format_result(result) -> str:
    last = result.reports[-1] if result.reports else None
    payload = {
        "epochs": len(result.reports),
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "summary": result.summary_path,
    }
    if last is not None:
        payload["final"] = {"correct": last.correct, "total": last.total}
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist-sigmoid",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--offline",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Use offline dataset fixtures instead of downloading",
    )
    parser.add_argument("--data-dir", help="Directory holding the MNIST .gz archives")
    parser.add_argument("--max-items", type=int, help="Cap the number of samples per split")
    parser.add_argument("--epochs", type=int, help="Number of training epochs")
    parser.add_argument("--batch-size", type=int, help="Mini-batch size")
    parser.add_argument("--lr", type=float, help="Learning rate (eta)")
    parser.add_argument(
        "--hidden",
        type=int,
        nargs="*",
        help="Hidden layer sizes, e.g. --hidden 30 or --hidden 16 16",
    )
    parser.add_argument("--seed", type=int, help="Seed for initialisation and shuffling")
    parser.add_argument(
        "--remainder",
        choices=REMAINDER_POLICIES,
        help="What to do with a trailing short mini-batch",
    )
    parser.add_argument("--workers", type=int, help="Threads computing per-sample gradients")
    parser.add_argument("--run-dir", help="Directory for run artefacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Render an accuracy curve"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    data_opts = config.setdefault("data", {}).setdefault("options", {})
    if args.data_dir:
        data_opts["data_dir"] = args.data_dir
    if args.max_items is not None:
        data_opts["max_items"] = int(args.max_items)

    if args.hidden is not None:
        model_cfg = config.setdefault("model", {})
        model_cfg.pop("layer_sizes", None)
        model_cfg["hidden"] = [int(h) for h in args.hidden]

    train_cfg = config.setdefault("train", {})
    overrides = {
        "epochs": args.epochs,
        "mini_batch_size": args.batch_size,
        "learning_rate": args.lr,
        "seed": args.seed,
        "remainder": args.remainder,
        "workers": args.workers,
        "run_dir": args.run_dir,
    }
    train_cfg.update({k: v for k, v in overrides.items() if v is not None})
    if args.enable_plots:
        train_cfg["enable_plots"] = True

    config["offline"] = bool(args.offline)
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)
    os.environ["DIGITNET_DATA_OFFLINE"] = "1" if args.offline else "0"

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
