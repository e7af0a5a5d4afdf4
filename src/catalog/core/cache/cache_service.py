"""Cache-aside service over a CacheBackend.

Every public method is best-effort: backend failures are logged and
suppressed so a degraded cache falls back to store-only behaviour instead of
failing the request. Reads report what happened through CacheLookup.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import TypeVar

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from src.catalog.core.cache.keys import OWNED_PATTERNS
from src.catalog.core.cache.backend import CacheBackend
from src.catalog.core.cache.results import CacheLookup, CacheStats
from src.catalog.core.exceptions import CacheCorruptedError, CacheUnavailableError
from src.catalog.runtime.config.config_data import CacheConfig

T = TypeVar("T")

IndexKeys = Iterable[str] | Callable[[T], Iterable[str]]


class CacheService:
    """Typed get/put/evict operations plus the cache-aside read protocol."""

    def __init__(self, backend: CacheBackend, config: CacheConfig | None = None):
        self._backend = backend
        self._config = config or CacheConfig()
        self._stats = CacheStats(backend=backend.name)
        self._stats_lock = threading.Lock()

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def default_ttl_seconds(self) -> int:
        return self._config.default_ttl_seconds

    def _record(self, counter: str, amount: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + amount)

    def _unavailable(self, operation: str, target: str, error: CacheUnavailableError) -> None:
        self._record("unavailable")
        logger.warning(
            "Cache unavailable during {} of {}: {}",
            operation,
            target,
            error.message,
        )

    def lookup(self, key: str, adapter: TypeAdapter[T]) -> CacheLookup[T]:
        """Read and decode one entry."""
        try:
            raw = self._backend.get(key)
        except CacheUnavailableError as e:
            self._unavailable("get", key, e)
            return CacheLookup.unavailable(e)

        if raw is None:
            self._record("misses")
            logger.debug("Cache miss for key: {}", key)
            return CacheLookup.missing()

        try:
            value = adapter.validate_json(raw)
        except ValidationError as e:
            error = CacheCorruptedError(
                f"Cached payload for {key} could not be decoded",
                details={"key": key, "errors": e.error_count()},
            )
            self._record("corrupted")
            logger.error(
                "Corrupted cache entry, evicting",
                extra={
                    "key": key,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            self.evict(key)
            return CacheLookup.corrupted(error)

        self._record("hits")
        logger.debug("Cache hit for key: {}", key)
        return CacheLookup.found(value)

    def put(
        self,
        key: str,
        value: T,
        adapter: TypeAdapter[T],
        ttl_seconds: int | None = None,
        index_keys: Iterable[str] = (),
    ) -> bool:
        """Store a value, registering its key in ``index_keys`` in the same transaction."""
        payload = adapter.dump_json(value).decode("utf-8")
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        index_keys = tuple(index_keys)
        try:
            if index_keys:
                self._backend.set_indexed(key, payload, ttl, index_keys)
            else:
                self._backend.set(key, payload, ttl)
        except CacheUnavailableError as e:
            self._unavailable("set", key, e)
            return False

        self._record("writes")
        logger.debug("Cached value for key: {} (ttl={}s)", key, ttl)
        return True

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], T | None],
        adapter: TypeAdapter[T],
        ttl_seconds: int | None = None,
        index_keys: IndexKeys = (),
    ) -> T | None:
        """Cache-aside read.

        Return the cached value on a hit. Otherwise call ``loader``, cache a
        non-None result under ``key`` and return it. ``index_keys`` may be a
        callable receiving the loaded value, for indexes that depend on it.
        Loader exceptions propagate; None is never cached.
        """
        result = self.lookup(key, adapter)
        if result.hit:
            return result.value

        value = loader()
        if value is not None:
            indexes = index_keys(value) if callable(index_keys) else index_keys
            self.put(key, value, adapter, ttl_seconds, indexes)
        return value

    def evict(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            deleted = self._backend.delete(*keys)
        except CacheUnavailableError as e:
            self._unavailable("delete", ", ".join(keys), e)
            return 0

        self._record("evictions", deleted)
        logger.debug("Evicted {} of {} keys", deleted, len(keys))
        return deleted

    def evict_pattern(self, pattern: str) -> int:
        """Delete all and only the keys matching a glob pattern."""
        try:
            matched = self._backend.scan(pattern)
        except CacheUnavailableError as e:
            self._unavailable("scan", pattern, e)
            return 0

        batch = self._config.scan_count
        deleted = 0
        for start in range(0, len(matched), batch):
            deleted += self.evict(*matched[start:start + batch])
        logger.debug("Evicted {} keys matching pattern: {}", deleted, pattern)
        return deleted

    def evict_index(self, index_key: str) -> int:
        """Delete every key listed in an index set and unregister exactly those keys.

        Keys added to the set after it was read stay registered, so the next
        eviction still finds them. Expired member names are pruned as well.
        """
        try:
            members = self._backend.index_members(index_key)
            if not members:
                return 0
            deleted = self._backend.remove_indexed(index_key, sorted(members))
        except CacheUnavailableError as e:
            self._unavailable("evict_index", index_key, e)
            return 0

        self._record("evictions", deleted)
        logger.debug("Evicted {} of {} keys indexed by {}", deleted, len(members), index_key)
        return deleted

    def clear(self, patterns: Iterable[str]) -> int:
        cleared = sum(self.evict_pattern(pattern) for pattern in patterns)
        logger.info("Cleared {} cache entries", cleared)
        return cleared

    def clear_all(self) -> int:
        """Evict every key this service owns, never the rest of the database."""
        return self.clear(OWNED_PATTERNS)

    def count(self, pattern: str) -> int:
        try:
            return len(self._backend.scan(pattern))
        except CacheUnavailableError as e:
            self._unavailable("scan", pattern, e)
            return 0

    def has_key(self, key: str) -> bool:
        try:
            return self._backend.exists(key)
        except CacheUnavailableError as e:
            self._unavailable("exists", key, e)
            return False

    def ttl(self, key: str) -> int:
        try:
            return self._backend.ttl(key)
        except CacheUnavailableError as e:
            self._unavailable("ttl", key, e)
            return -2

    def ping(self) -> bool:
        try:
            return self._backend.ping()
        except CacheUnavailableError as e:
            self._unavailable("ping", self._backend.name, e)
            return False

    def stats(self) -> CacheStats:
        with self._stats_lock:
            return CacheStats(**vars(self._stats))
