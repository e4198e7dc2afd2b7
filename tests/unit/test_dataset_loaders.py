import numpy as np
import pytest

from digitnet.data.cache import CacheError, CacheManifest, fetch
from digitnet.data.idx import IMAGES_MAGIC, write_idx
from digitnet.data.mnist import FILES, _expect_magic, load_split, to_samples
from digitnet.data.registry import available_datasets, get_dataset
from digitnet.errors import ConfigurationError, UnsupportedFormatError


def test_registry_lists_builtin_datasets():
    assert {"mnist", "synthetic"} <= set(available_datasets())
    with pytest.raises(ConfigurationError):
        get_dataset("fashion", offline=True)


def test_mnist_offline_fixture(tmp_path):
    spec = get_dataset("mnist", offline=True, cache_dir=tmp_path, max_items=20)
    assert spec.data_spec.d_in == 784
    assert spec.data_spec.d_out == 10
    assert spec.splits == {"train": 20, "test": 20}
    sample = spec.train[0]
    assert sample.inputs.shape == (784, 1)
    assert sample.targets.shape == (10, 1)
    assert 0.0 <= sample.inputs.min() and sample.inputs.max() <= 1.0
    assert sample.targets.sum() == 1.0
    assert spec.provenance["train"]["images"]["mode"] == "offline"
    assert (tmp_path / "offline" / "mnist" / FILES["train"][0]).exists()


def test_mnist_offline_fixture_is_deterministic(tmp_path):
    a = get_dataset("mnist", offline=True, cache_dir=tmp_path / "a", max_items=5)
    b = get_dataset("mnist", offline=True, cache_dir=tmp_path / "b", max_items=5)
    for sa, sb in zip(a.test, b.test):
        np.testing.assert_array_equal(sa.inputs, sb.inputs)
        np.testing.assert_array_equal(sa.targets, sb.targets)


def test_mnist_reads_local_directory(tmp_path):
    images = np.zeros((3, 4, 4), dtype=np.uint8)
    images[1] = 255
    labels = np.array([0, 9, 4], dtype=np.uint8)
    for split in ("train", "test"):
        write_idx(tmp_path / FILES[split][0], images)
        write_idx(tmp_path / FILES[split][1], labels)

    spec = get_dataset("mnist", data_dir=tmp_path)
    assert spec.data_spec.d_in == 16
    assert spec.data_spec.extra["input_shape"] == (4, 4)
    assert len(spec.train) == 3
    np.testing.assert_array_equal(spec.train[1].inputs, np.ones((16, 1)))
    assert int(np.argmax(spec.train[1].targets)) == 9


def test_to_samples_rejects_inconsistent_counts():
    with pytest.raises(UnsupportedFormatError):
        to_samples(np.zeros((2, 2, 2), dtype=np.uint8), np.zeros(3, dtype=np.uint8))
    with pytest.raises(UnsupportedFormatError):
        to_samples(np.zeros((1, 2, 2), dtype=np.uint8), np.array([12], dtype=np.uint8))


def test_synthetic_dataset_shapes():
    spec = get_dataset("synthetic", n_train=12, n_test=6, d_in=5, num_classes=4, seed=3)
    assert spec.splits == {"train": 12, "test": 6}
    assert spec.train[0].inputs.shape == (5, 1)
    assert spec.train[0].targets.shape == (4, 1)
    values = np.concatenate([s.inputs for s in spec.train])
    assert values.min() >= 0.0 and values.max() <= 1.0


def test_cache_manifest_records(tmp_path):
    manifest = CacheManifest(tmp_path)
    offline_path = tmp_path / "fixture.bin"

    def _builder(path):
        path.write_bytes(b"data")

    path, record = fetch(
        name="unit-fixture",
        url="http://example.com/unit",
        offline_path=offline_path,
        offline_builder=_builder,
        offline=True,
        cache_dir=tmp_path,
        manifest=manifest,
    )
    assert path.exists()
    stored = manifest.get("unit-fixture")
    assert stored["mode"] == "offline"
    assert stored["checksum"] == record["checksum"]
    assert (tmp_path / "manifest.json").exists()


def test_fetch_rejects_archive_with_wrong_magic(tmp_path):
    offline_path = tmp_path / "labels.gz"
    write_idx(offline_path, np.arange(5, dtype=np.uint8))
    with pytest.raises(CacheError):
        fetch(
            name="mislabelled",
            url="http://example.com/images.gz",
            offline_path=offline_path,
            offline=True,
            validate=_expect_magic(IMAGES_MAGIC),
            cache_dir=tmp_path,
        )
    assert CacheManifest(tmp_path).get("mislabelled") is None


def test_fetch_without_offline_file_or_network_fails(tmp_path, monkeypatch):
    def _refuse(url, target):
        raise OSError("network disabled")

    monkeypatch.setattr("digitnet.data.cache._download", _refuse)
    monkeypatch.setattr("digitnet.data.cache.time.sleep", lambda _: None)
    with pytest.raises(CacheError):
        fetch(name="remote", url="http://example.com/a.gz", offline=False, cache_dir=tmp_path)


def test_unknown_mnist_split(tmp_path):
    with pytest.raises(ConfigurationError):
        load_split("validation", cache_dir=tmp_path)
