import json

import pytest

from catalog.storage import CorruptStoreError, JsonStore, StorageError


def test_load_missing_store_returns_none(tmp_path):
    store = JsonStore(tmp_path / "nowhere")
    assert store.load("books") is None


def test_save_creates_root_and_round_trips(tmp_path):
    store = JsonStore(tmp_path / "nested" / "data")
    records = {"b2": {"id": "b2", "title": "Zeta"}, "b1": {"id": "b1", "title": "Alpha"}}
    store.save("books", records)

    assert store.path_for("books").exists()
    loaded = store.load("books")
    assert loaded == records
    assert list(loaded) == ["b2", "b1"]  # insertion order, not sorted


def test_save_overwrites_existing_store(tmp_path):
    store = JsonStore(tmp_path)
    store.save("members", {"m1": {"id": "m1"}})
    store.save("members", {})
    assert store.load("members") == {}


def test_save_propagates_io_errors(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way", encoding="utf-8")
    store = JsonStore(blocker)
    with pytest.raises(OSError):
        store.save("books", {})


def test_invalid_json_raises_corrupt_store(tmp_path):
    store = JsonStore(tmp_path)
    store.path_for("loans").write_text("{not json", encoding="utf-8")
    with pytest.raises(CorruptStoreError):
        store.load("loans")


@pytest.mark.parametrize("payload", [[1, 2, 3], {"l1": "just a string"}, "text"])
def test_wrong_shape_raises_corrupt_store(tmp_path, payload):
    store = JsonStore(tmp_path)
    store.path_for("loans").write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(StorageError):
        store.load("loans")


def test_invalid_utf8_raises_corrupt_store(tmp_path):
    store = JsonStore(tmp_path)
    store.path_for("books").write_bytes(b"\xff\xfe{")
    with pytest.raises(CorruptStoreError):
        store.load("books")
