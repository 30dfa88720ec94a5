"""
Key-value stores the telemetry snapshot is persisted to.

All stores share one async contract: `get(key)` returns the stored
JSON-compatible value or None, `set(key, value)` overwrites it whole.
Stores raise on I/O failure; absorbing failures is the caller's job.

  - InMemoryStore: process-local, for tests and throwaway runs.
  - JsonFileStore: one JSON document on local disk, the on-device default.
  - RedisStore: a Redis key holding the JSON-encoded value.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from configs.settings import Settings, get_settings
from utils.logger import get_logger

_log = get_logger(__name__)


class KeyValueStore(ABC):
    """Async key-value persistence service."""

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value stored under `key`, or None."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Overwrite the value stored under `key`."""

    async def close(self) -> None:
        return None


class InMemoryStore(KeyValueStore):
    """Dict-backed store. Values are deep-copied in and out."""

    name = "memory"

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStore(KeyValueStore):
    """
    A single JSON object on disk mapping keys to values.

    Each write goes to its own temp file in the same directory and is
    swapped in with os.replace, so a reader sees either the old document
    or the new one. The read-modify-write runs under a lock because every
    call lands on a different worker thread. A document that no longer
    parses is replaced on the next write.
    """

    name = "file"

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._write_lock = threading.Lock()

    def _read_document(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        return json.loads(self._path.read_text(encoding="utf-8"))

    def _write_value(self, key: str, value: Any) -> None:
        with self._write_lock:
            try:
                document = self._read_document()
                if not isinstance(document, dict):
                    raise ValueError(f"expected a JSON object, got {type(document).__name__}")
            except ValueError as e:
                _log.warning("telemetry_file_unreadable", path=str(self._path), error=str(e))
                document = {}
            document[key] = value
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=self._path.name + ".",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                json.dump(document, tmp)
            try:
                os.replace(tmp.name, self._path)
            except OSError:
                os.unlink(tmp.name)
                raise

    async def get(self, key: str) -> Optional[Any]:
        document = await asyncio.to_thread(self._read_document)
        return document.get(key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write_value, key, value)


class RedisStore(KeyValueStore):
    """Redis-backed store using the asyncio client."""

    name = "redis"

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0) -> None:
        import redis.asyncio as aioredis

        self._redis = aioredis.Redis(
            host=host,
            port=port,
            db=db,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=1,
        )

    async def get(self, key: str) -> Optional[Any]:
        data = await self._redis.get(key)
        if data is None:
            return None
        return json.loads(data)

    async def set(self, key: str, value: Any) -> None:
        await self._redis.set(key, json.dumps(value))

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()


def create_store(cfg: Optional[Settings] = None) -> KeyValueStore:
    """Build the store named by `storage_backend`."""
    cfg = cfg or get_settings()
    backend = cfg.storage_backend.lower()
    if backend == "memory":
        store: KeyValueStore = InMemoryStore()
    elif backend == "file":
        store = JsonFileStore(cfg.storage_file_path)
    elif backend == "redis":
        store = RedisStore(host=cfg.redis_host, port=cfg.redis_port, db=cfg.redis_db)
    else:
        raise ValueError(f"Unknown storage backend: {cfg.storage_backend!r}")
    _log.info("telemetry_store_ready", backend=store.name)
    return store


__all__ = ["KeyValueStore", "InMemoryStore", "JsonFileStore", "RedisStore", "create_store"]
