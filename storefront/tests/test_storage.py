import json

import pytest

from storefront.app.services.storage import (
    BrowserStorage,
    FileStorageBackend,
    MemoryStorageBackend,
    RedisStorageBackend,
    make_backend,
    namespace_ok,
    new_namespace,
)


def test_namespace_validation():
    assert namespace_ok(new_namespace())
    assert not namespace_ok(None)
    assert not namespace_ok("short")
    assert not namespace_ok("../../etc/passwd")
    assert not namespace_ok("a" * 65)


def test_browser_storage_get_set_remove():
    s = BrowserStorage(MemoryStorageBackend(), "browser-0001")
    assert s.get_item("k") is None
    s.set_item("k", "v")
    s.set_item("a", "1")
    assert s.get_item("k") == "v"
    assert s.keys() == ["a", "k"]
    s.remove_item("k")
    s.remove_item("missing")
    assert s.get_item("k") is None


def test_file_backend_round_trip(tmp_path):
    backend = FileStorageBackend(tmp_path)
    BrowserStorage(backend, "browser-0001").set_item("emerite_token", "t")
    assert json.loads((tmp_path / "browser-0001.json").read_text()) == {"emerite_token": "t"}
    assert BrowserStorage(backend, "browser-0001").get_item("emerite_token") == "t"


def test_file_backend_removes_empty_snapshot(tmp_path):
    backend = FileStorageBackend(tmp_path)
    s = BrowserStorage(backend, "browser-0001")
    s.set_item("k", "v")
    s.remove_item("k")
    assert not (tmp_path / "browser-0001.json").exists()


def test_file_backend_unreadable_snapshot_is_empty(tmp_path):
    (tmp_path / "browser-0001.json").write_text("{oops", encoding="utf-8")
    (tmp_path / "browser-0002.json").write_text("[1, 2]", encoding="utf-8")
    backend = FileStorageBackend(tmp_path)
    assert backend.load("browser-0001") == {}
    assert backend.load("browser-0002") == {}


def test_make_backend_kinds(tmp_path):
    assert isinstance(make_backend("memory", storage_dir=tmp_path, redis_url="redis://x"), MemoryStorageBackend)
    assert isinstance(make_backend("FILE", storage_dir=tmp_path, redis_url="redis://x"), FileStorageBackend)
    redis_backend = make_backend("redis", storage_dir=tmp_path, redis_url="redis://x", ttl_seconds=60)
    assert isinstance(redis_backend, RedisStorageBackend)
    assert redis_backend.ttl_seconds == 60
    with pytest.raises(ValueError):
        make_backend("sqlite", storage_dir=tmp_path, redis_url="redis://x")


def test_writes_only_touch_their_own_key():
    backend = MemoryStorageBackend()
    first = BrowserStorage(backend, "browser-0001")
    second = BrowserStorage(backend, "browser-0001")
    assert first.get_item("emerite_cart") is None
    assert second.get_item("emerite_token") is None

    second.set_item("emerite_token", "t")
    first.set_item("emerite_cart", "[]")
    assert backend.load("browser-0001") == {"emerite_token": "t", "emerite_cart": "[]"}
    # the writer's snapshot picks up the other request's key
    assert first.get_item("emerite_token") == "t"

    second.remove_item("emerite_cart")
    first.reload()
    assert first.get_item("emerite_cart") is None


def test_file_backend_update_merges(tmp_path):
    backend = FileStorageBackend(tmp_path)
    backend.update("browser-0001", "a", "1")
    backend.update("browser-0001", "b", "2")
    assert backend.update("browser-0001", "a", None) == {"b": "2"}
    assert backend.update("browser-0001", "missing", None) == {"b": "2"}
    backend.update("browser-0001", "b", None)
    assert not (tmp_path / "browser-0001.json").exists()
