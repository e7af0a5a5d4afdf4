"""Cache backend interface and implementations.

Provides a unified key-value interface with a Redis-first approach and an
in-memory fallback. Backends report every failure as CacheUnavailableError;
deciding what a failure means is the cache service's job.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from redis.exceptions import RedisError

from src.catalog.core.exceptions import CacheUnavailableError


class CacheBackend(ABC):
    """Abstract interface for cache backends."""

    name: str = "abstract"

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw payload stored at ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store ``value`` at ``key``; no TTL means the entry never expires."""

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""

    @abstractmethod
    def scan(self, pattern: str) -> list[str]:
        """List keys matching a glob-style pattern without blocking the server."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Remaining TTL in seconds: -2 when missing, -1 when it never expires."""

    @abstractmethod
    def set_indexed(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None,
        index_keys: Iterable[str],
    ) -> None:
        """Store a value and register its key in each index set atomically."""

    @abstractmethod
    def add_to_index(self, index_key: str, *members: str, ttl_seconds: int | None = None) -> None:
        """Add members to an index set and reset its expiry."""

    @abstractmethod
    def index_members(self, index_key: str) -> set[str]:
        pass

    @abstractmethod
    def remove_indexed(self, index_key: str, members: Iterable[str]) -> int:
        """Delete member keys and drop them from the index set in one step.

        Only the given members leave the set, so a key registered after they
        were read stays indexed. Returns how many member keys existed.
        """

    @abstractmethod
    def ping(self) -> bool:
        pass


class InMemoryCacheBackend(CacheBackend):
    """Process-local cache with per-key expiry.

    Used when Redis is disabled or unconfigured, and in tests. Entries hold
    either a string payload or a set of index members.
    """

    name = "memory"

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    def _expires_at(self, ttl_seconds: int | None) -> float | None:
        return time.time() + ttl_seconds if ttl_seconds is not None else None

    def _live_entry(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry["expires_at"]
        if expires_at is not None and time.time() > expires_at:
            del self._data[key]
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or not isinstance(entry["value"], str):
                return None
            return entry["value"]

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        with self._lock:
            self._data[key] = {
                "value": value,
                "expires_at": self._expires_at(ttl_seconds),
            }

    def delete(self, *keys: str) -> int:
        with self._lock:
            deleted = 0
            for key in keys:
                if self._live_entry(key) is not None:
                    del self._data[key]
                    deleted += 1
            return deleted

    def scan(self, pattern: str) -> list[str]:
        with self._lock:
            return [
                key
                for key in list(self._data)
                if fnmatch.fnmatchcase(key, pattern) and self._live_entry(key) is not None
            ]

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def ttl(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return -2
            if entry["expires_at"] is None:
                return -1
            return max(0, int(round(entry["expires_at"] - time.time())))

    def set_indexed(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None,
        index_keys: Iterable[str],
    ) -> None:
        with self._lock:
            self.set(key, value, ttl_seconds)
            for index_key in index_keys:
                self.add_to_index(index_key, key, ttl_seconds=ttl_seconds)

    def add_to_index(self, index_key: str, *members: str, ttl_seconds: int | None = None) -> None:
        with self._lock:
            entry = self._live_entry(index_key)
            current = entry["value"] if entry and isinstance(entry["value"], set) else set()
            current.update(members)
            self._data[index_key] = {
                "value": current,
                "expires_at": self._expires_at(ttl_seconds),
            }

    def remove_indexed(self, index_key: str, members: Iterable[str]) -> int:
        with self._lock:
            members = list(members)
            deleted = self.delete(*members)
            entry = self._live_entry(index_key)
            if entry is not None and isinstance(entry["value"], set):
                entry["value"].difference_update(members)
                if not entry["value"]:
                    del self._data[index_key]
            return deleted

    def index_members(self, index_key: str) -> set[str]:
        with self._lock:
            entry = self._live_entry(index_key)
            if entry is None or not isinstance(entry["value"], set):
                return set()
            return set(entry["value"])

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._data) if self._live_entry(key) is not None)


class RedisCacheBackend(CacheBackend):
    """Redis-based cache backend over a synchronous ``redis.Redis`` client."""

    name = "redis"

    def __init__(self, redis_client, scan_count: int = 100):
        self._redis = redis_client
        self._scan_count = scan_count

    @staticmethod
    def _decode(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def _call(self, operation: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RedisError as e:
            raise CacheUnavailableError(
                f"Redis {operation} failed: {e}",
                details={"operation": operation, "error_type": type(e).__name__},
            ) from e

    def get(self, key: str) -> str | None:
        return self._decode(self._call("get", self._redis.get, key))

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self._call("set", self._redis.set, key, value, ex=ttl_seconds)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._call("delete", self._redis.delete, *keys))

    def scan(self, pattern: str) -> list[str]:
        def _scan() -> list[str]:
            return [
                self._decode(key)
                for key in self._redis.scan_iter(match=pattern, count=self._scan_count)
            ]

        return self._call("scan", _scan)

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", self._redis.exists, key))

    def ttl(self, key: str) -> int:
        return int(self._call("ttl", self._redis.ttl, key))

    def set_indexed(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None,
        index_keys: Iterable[str],
    ) -> None:
        def _transaction() -> None:
            with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(key, value, ex=ttl_seconds)
                for index_key in index_keys:
                    self._queue_index_add(pipe, index_key, (key,), ttl_seconds)
                pipe.execute()

        self._call("set_indexed", _transaction)

    @staticmethod
    def _queue_index_add(pipe, index_key: str, members, ttl_seconds: int | None) -> None:
        pipe.sadd(index_key, *members)
        # an index lives at least as long as its newest member
        if ttl_seconds is None:
            pipe.persist(index_key)
        else:
            pipe.expire(index_key, ttl_seconds)

    def add_to_index(self, index_key: str, *members: str, ttl_seconds: int | None = None) -> None:
        if not members:
            return

        def _transaction() -> None:
            with self._redis.pipeline(transaction=True) as pipe:
                self._queue_index_add(pipe, index_key, members, ttl_seconds)
                pipe.execute()

        self._call("add_to_index", _transaction)

    def remove_indexed(self, index_key: str, members: Iterable[str]) -> int:
        members = list(members)
        if not members:
            return 0

        def _transaction() -> int:
            with self._redis.pipeline(transaction=True) as pipe:
                pipe.delete(*members)
                pipe.srem(index_key, *members)
                deleted, _ = pipe.execute()
            return int(deleted)

        return self._call("remove_indexed", _transaction)

    def index_members(self, index_key: str) -> set[str]:
        members = self._call("smembers", self._redis.smembers, index_key)
        return {self._decode(member) for member in members}

    def ping(self) -> bool:
        return bool(self._call("ping", self._redis.ping))
