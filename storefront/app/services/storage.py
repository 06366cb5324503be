# storefront/app/services/storage.py
from __future__ import annotations

import json
import logging
import re
import secrets
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from redis.exceptions import RedisError

from storefront.app.core.redis_conn import get_sync_redis

logger = logging.getLogger(__name__)

# Browser ids are issued by us (token_hex); anything else is rejected before
# it can be used as a file name or a Redis key suffix.
_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def new_namespace() -> str:
    return secrets.token_hex(16)


def namespace_ok(ns: Optional[str]) -> bool:
    return isinstance(ns, str) and bool(_NAMESPACE_RE.match(ns))


@runtime_checkable
class StorageBackend(Protocol):
    """Where per-browser key/value snapshots live."""
    def load(self, namespace: str) -> Dict[str, str]: ...
    def save(self, namespace: str, data: Dict[str, str]) -> None: ...
    def update(self, namespace: str, key: str, value: Optional[str]) -> Dict[str, str]: ...


# -----------------------------------------------------------------------------
# Backends
# -----------------------------------------------------------------------------

class MemoryStorageBackend:
    """Process-local backend. Used by tests and single-worker dev runs."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def load(self, namespace: str) -> Dict[str, str]:
        with self._lock:
            return dict(self._data.get(namespace, {}))

    def save(self, namespace: str, data: Dict[str, str]) -> None:
        with self._lock:
            if data:
                self._data[namespace] = dict(data)
            else:
                self._data.pop(namespace, None)

    def update(self, namespace: str, key: str, value: Optional[str]) -> Dict[str, str]:
        """Set (or with None, delete) one key; returns the resulting snapshot."""
        with self._lock:
            data = self._data.setdefault(namespace, {})
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            if not data:
                del self._data[namespace]
            return dict(data)


class FileStorageBackend:
    """One JSON document per browser under `root`, written atomically."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = threading.Lock()

    def _path(self, namespace: str) -> Path:
        return self.root / f"{namespace}.json"

    def load(self, namespace: str) -> Dict[str, str]:
        path = self._path(namespace)
        try:
            if not path.exists():
                return {}
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("storage: unreadable snapshot %s (%s); treating as empty", path.name, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("storage: snapshot %s is not an object; treating as empty", path.name)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def save(self, namespace: str, data: Dict[str, str]) -> None:
        path = self._path(namespace)
        if not data:
            path.unlink(missing_ok=True)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(path)

    def update(self, namespace: str, key: str, value: Optional[str]) -> Dict[str, str]:
        # read-modify-write is serialised per process only; use redis for several workers
        with self._lock:
            data = self.load(namespace)
            if value is None:
                if key not in data:
                    return data
                del data[key]
            else:
                data[key] = value
            self.save(namespace, data)
            return data


class RedisStorageBackend:
    """One Redis hash per browser: storefront:storage:<namespace>."""

    KEY_PREFIX = "storefront:storage:"

    def __init__(self, url: str, ttl_seconds: Optional[int] = None) -> None:
        self.url = url
        self.ttl_seconds = ttl_seconds

    def _key(self, namespace: str) -> str:
        return f"{self.KEY_PREFIX}{namespace}"

    def load(self, namespace: str) -> Dict[str, str]:
        try:
            return dict(get_sync_redis(self.url).hgetall(self._key(namespace)) or {})
        except RedisError as e:
            logger.warning("storage: redis read failed for %s (%s); treating as empty", namespace, e)
            return {}

    def save(self, namespace: str, data: Dict[str, str]) -> None:
        r = get_sync_redis(self.url)
        key = self._key(namespace)
        pipe = r.pipeline()
        pipe.delete(key)
        if data:
            pipe.hset(key, mapping=data)
            if self.ttl_seconds:
                pipe.expire(key, self.ttl_seconds)
        pipe.execute()

    def update(self, namespace: str, key: str, value: Optional[str]) -> Dict[str, str]:
        """HSET/HDEL of the one field inside MULTI, so other fields are never rewritten."""
        hkey = self._key(namespace)
        pipe = get_sync_redis(self.url).pipeline(transaction=True)
        if value is None:
            pipe.hdel(hkey, key)
        else:
            pipe.hset(hkey, key, value)
            if self.ttl_seconds:
                pipe.expire(hkey, self.ttl_seconds)
        pipe.hgetall(hkey)
        return dict(pipe.execute()[-1] or {})


def make_backend(kind: str, *, storage_dir: Path, redis_url: str, ttl_seconds: Optional[int] = None) -> StorageBackend:
    kind = (kind or "file").lower()
    if kind == "memory":
        return MemoryStorageBackend()
    if kind == "redis":
        return RedisStorageBackend(redis_url, ttl_seconds=ttl_seconds)
    if kind == "file":
        return FileStorageBackend(storage_dir)
    raise ValueError(f"unknown storage backend '{kind}' (expected memory|file|redis)")


# -----------------------------------------------------------------------------
# Per-browser view (localStorage semantics)
# -----------------------------------------------------------------------------

class BrowserStorage:
    """
    String key/value store scoped to one browser id.

    Reads come from a snapshot loaded lazily once per request. Writes go to
    the backend one key at a time, so overlapping requests from the same
    browser never overwrite each other's keys; the snapshot is replaced by
    whatever the backend holds after the write.
    """

    def __init__(self, backend: StorageBackend, namespace: str) -> None:
        self.backend = backend
        self.namespace = namespace
        self._cache: Optional[Dict[str, str]] = None

    def _data(self) -> Dict[str, str]:
        if self._cache is None:
            self._cache = self.backend.load(self.namespace)
        return self._cache

    def reload(self) -> None:
        """Drop the snapshot; the next read goes to the backend."""
        self._cache = None

    def get_item(self, key: str) -> Optional[str]:
        return self._data().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._cache = self.backend.update(self.namespace, key, value)

    def remove_item(self, key: str) -> None:
        self._cache = self.backend.update(self.namespace, key, None)

    def keys(self) -> list[str]:
        return sorted(self._data().keys())
