import csv
import io
import json
from pathlib import Path

from digitnet.core.types import EpochReport
from digitnet.reporting import ConsoleSink, CsvSink, JsonlSink, PlotAdapter, write_manifest, write_summary


def _feed(sink, reports):
    for report in reports:
        sink.on_epoch(report.epoch, report.as_metrics())


REPORTS = [
    EpochReport(epoch=0, correct=6, total=10),
    EpochReport(epoch=1, correct=9, total=10, cost=0.12),
    EpochReport(epoch=2, correct=8, total=10),
]


def test_jsonl_sink_and_summary(tmp_path):
    sink = JsonlSink(tmp_path / "metrics.jsonl", seed=4, sha="abc123")
    _feed(sink, REPORTS)
    lines = [json.loads(line) for line in sink.path.read_text().splitlines()]
    assert [line["epoch"] for line in lines] == [0, 1, 2]
    assert lines[1] == {
        "epoch": 1,
        "split": "test",
        "seed": 4,
        "sha": "abc123",
        "correct": 9.0,
        "total": 10.0,
        "accuracy": 0.9,
        "cost": 0.12,
    }

    summary = json.loads(Path(write_summary(sink.path, tmp_path / "summary.json")).read_text())
    assert summary["epochs"] == 3
    assert summary["best_epoch"] == 1
    assert summary["final"] == {"correct": 8, "total": 10}
    assert summary["metrics"]["accuracy"]["last"] == 0.8
    assert summary["metrics"]["correct"]["min"] == 6.0


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "metrics.csv")
    _feed(sink, REPORTS[:1])
    _feed(sink, [EpochReport(epoch=1, correct=7, total=10)])
    rows = list(csv.DictReader((tmp_path / "metrics.csv").open()))
    assert [row["epoch"] for row in rows] == ["0", "1"]
    assert rows[1]["correct"] == "7.0"


def test_console_sink_prints_epoch_lines():
    stream = io.StringIO()
    _feed(ConsoleSink(stream), REPORTS[:2])
    assert stream.getvalue().splitlines() == [
        "Epoch 0: 6 / 10",
        "Epoch 1: 9 / 10 (cost 0.1200)",
    ]


def test_manifest_records_layer_sizes(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"seed": 1}},
        dataset_provenance={"source": "mnist"},
        layer_sizes=[784, 30, 10],
    )
    manifest = json.loads(Path(path).read_text())
    assert manifest["layer_sizes"] == [784, 30, 10]
    assert manifest["dataset"] == {"source": "mnist"}
    assert "numpy" in manifest["environment"]


def test_plot_adapter_is_inert_when_disabled(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    _feed(adapter, REPORTS)
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()
