"""Unit tests for key-value stores."""

import json
import os
import stat

from spotify_explorer.storage import JsonFileStore, MemoryStore


def test_memory_store_get_set_remove():
    store = MemoryStore()

    store.set("a", "1")
    assert store.get("a") == "1"

    store.remove("a")
    store.remove("a")
    assert store.get("a") is None


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "session.json"
    JsonFileStore(path).set("accessToken", "tok")

    assert JsonFileStore(path).get("accessToken") == "tok"
    assert json.loads(path.read_text()) == {"accessToken": "tok"}


def test_json_file_store_is_owner_only(tmp_path):
    path = tmp_path / "session.json"
    JsonFileStore(path).set("accessToken", "tok")

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_json_file_store_missing_file_is_empty(tmp_path):
    assert JsonFileStore(tmp_path / "missing.json").get("accessToken") is None


def test_json_file_store_corrupt_file_is_empty(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    store = JsonFileStore(path)

    assert store.get("accessToken") is None

    store.set("accessToken", "tok")
    assert store.get("accessToken") == "tok"


def test_json_file_store_remove(tmp_path):
    store = JsonFileStore(tmp_path / "session.json")
    store.set("a", "1")
    store.set("b", "2")

    store.remove("a")

    assert store.get("a") is None
    assert store.get("b") == "2"


def test_json_file_store_tightens_existing_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{}")
    path.chmod(0o644)

    JsonFileStore(path).set("accessToken", "tok")

    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert list(tmp_path.iterdir()) == [path]


def test_json_file_store_never_exposes_token_while_writing(tmp_path, monkeypatch):
    path = tmp_path / "session.json"
    modes = []
    real_replace = os.replace

    def checking_replace(src, dst):
        modes.append(stat.S_IMODE(os.stat(src).st_mode))
        real_replace(src, dst)

    monkeypatch.setattr(os, "replace", checking_replace)

    JsonFileStore(path).set("accessToken", "tok")

    assert modes == [0o600]
    assert JsonFileStore(path).get("accessToken") == "tok"
