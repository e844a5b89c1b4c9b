"""Storage collaborators consumed by the registry and the session manager.

Two narrow interfaces:

- ``Storage`` — durable, possibly remote key/value storage for tenant and
  user records. Async; may fail or be momentarily unavailable.
- ``SessionStore`` — client-local storage for the one persisted session
  of this process. Sync.

Implementations:
- ``MemoryStorage`` / ``RedisStorage`` (redis.asyncio)
- ``MemorySessionStore`` / ``FileSessionStore`` (JSON file)
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis

from .config import get_config
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# =========================================
# Protocols
# =========================================


@runtime_checkable
class Storage(Protocol):
    """Durable key/value storage at tenant and user granularity.

    Values are JSON-compatible dicts (or lists for index records).
    """

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...


@runtime_checkable
class SessionStore(Protocol):
    """Client-side persistence for the current session record."""

    def load(self) -> dict[str, Any] | None: ...

    def save(self, record: dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


# =========================================
# Registry storage
# =========================================


class MemoryStorage:
    """In-process storage. Values are copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class RedisStorage:
    """Redis-backed storage. Values are stored as JSON strings.

    Args:
        url: Redis URL. Defaults to ``get_config().redis_url``.
        client: Pre-built ``redis.asyncio`` client (overrides ``url``).

    Raises:
        ConfigurationError: Neither a client nor a URL is available.
    """

    def __init__(self, url: Optional[str] = None, *, client: Any = None) -> None:
        if client is None:
            url = url or get_config().redis_url
            if not url:
                raise ConfigurationError("REDIS_URL not set — cannot build RedisStorage")
            client = aioredis.from_url(url, decode_responses=True)
        self._redis = client

    async def get(self, key: str) -> Any | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def put(self, key: str, value: Any) -> None:
        await self._redis.set(key, json.dumps(value, default=str))

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


# =========================================
# Client session storage
# =========================================


class MemorySessionStore:
    """Session record held in memory (lost on restart)."""

    def __init__(self) -> None:
        self._record: dict[str, Any] | None = None

    def load(self) -> dict[str, Any] | None:
        return dict(self._record) if self._record is not None else None

    def save(self, record: dict[str, Any]) -> None:
        self._record = dict(record)

    def clear(self) -> None:
        self._record = None


class FileSessionStore:
    """Session record persisted as a small JSON file.

    ``load`` raises on an unreadable or corrupt file; the session manager
    treats that like a dangling session.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        with self._path.open("r", encoding="utf-8") as fh:
            record = json.load(fh)
        if not isinstance(record, dict):
            raise ValueError(f"Session file {self._path} does not hold an object")
        return record

    def save(self, record: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(record, fh)
        os.replace(tmp, self._path)

    def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass


def session_store_from_config() -> SessionStore:
    """File store when ``session_file`` is configured, memory store otherwise."""
    path = get_config().session_file
    if path:
        return FileSessionStore(path)
    return MemorySessionStore()


__all__ = [
    "FileSessionStore",
    "MemorySessionStore",
    "MemoryStorage",
    "RedisStorage",
    "SessionStore",
    "Storage",
    "session_store_from_config",
]
