"""Redis connection service for managing Redis client lifecycle and health checks."""

from typing import Any

import redis
from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from src.catalog.core.cache.backend import (
    CacheBackend,
    InMemoryCacheBackend,
    RedisCacheBackend,
)
from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import get_config


class RedisService:
    """Service for managing Redis connection lifecycle and health checks.

    The client is built once at process start, handed to the cache backend,
    and closed at shutdown. When Redis is disabled or has no URL the service
    stays disabled and the cache runs in memory.
    """

    def __init__(self, config: ConfigData | None = None):
        """Initialize the Redis service with connection pooling."""
        logger.info("Setting up Redis service")
        config = config or get_config()
        redis_config = config.redis

        self._enabled = redis_config.enabled
        self._client: redis.Redis | None = None
        self._url = redis_config.url or None

        if not self._enabled:
            logger.info("Redis is disabled, service will not connect")
            return

        if not self._url:
            logger.warning("Redis URL not configured, service will not connect")
            self._enabled = False
            return

        try:
            logger.info(
                "Initializing Redis client with connection string: {}",
                redis_config.sanitized_connection_string,
            )

            retry = Retry(
                ExponentialBackoff(base=0.1, cap=2),
                retries=redis_config.retries,
            )

            # Create Redis client with connection pooling
            self._client = redis.Redis.from_url(
                redis_config.connection_string,
                encoding="utf-8",
                decode_responses=redis_config.decode_responses,
                encoding_errors="replace",
                max_connections=redis_config.max_connections,
                socket_timeout=redis_config.socket_timeout,
                socket_connect_timeout=redis_config.socket_connect_timeout,
                socket_keepalive=True,
                health_check_interval=redis_config.health_check_interval,
                retry=retry,
                client_name=redis_config.client_name,
            )

            logger.info(
                "Redis client initialized",
                extra={
                    "max_connections": redis_config.max_connections,
                    "socket_timeout": redis_config.socket_timeout,
                },
            )
        except (RedisError, ValueError) as e:
            logger.error(
                "Failed to initialize Redis client",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            self._enabled = False
            self._client = None
            if config.app.environment == "production":
                raise

    def get_client(self) -> redis.Redis | None:
        """Get the Redis client instance.

        Returns:
            Redis client if enabled and connected, None otherwise.
        """
        if not self._enabled:
            logger.debug("Redis is disabled, returning None")
            return None

        if not self._client:
            logger.warning("Redis client not initialized, returning None")
            return None

        return self._client

    def cache_backend(self, scan_count: int = 100) -> CacheBackend:
        """Build the cache backend for this process: Redis when connected, memory otherwise."""
        client = self.get_client()
        if client is None:
            logger.warning("Cache backend: Redis unavailable, using in-memory cache")
            return InMemoryCacheBackend()
        logger.info("Cache backend: Redis")
        return RedisCacheBackend(client, scan_count=scan_count)

    def health_check(self) -> bool:
        """Perform a health check on the Redis connection.

        Returns:
            True if Redis is healthy and reachable, False otherwise.
        """
        if not self._enabled or not self._client:
            logger.debug("Redis is disabled, health check skipped")
            return False

        try:
            return bool(self._client.ping())
        except RedisError as e:
            logger.error(
                "Redis health check failed",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return False

    def get_info(self) -> dict[str, Any] | None:
        """Get Redis server information for monitoring.

        Returns:
            Dictionary with Redis server info, or None if not available.
        """
        if not self._enabled or not self._client:
            return None

        try:
            info = self._client.info()
            return {
                "version": info.get("redis_version"),
                "uptime_seconds": info.get("uptime_in_seconds"),
                "connected_clients": info.get("connected_clients"),
                "used_memory_human": info.get("used_memory_human"),
                "keyspace_hits": info.get("keyspace_hits"),
                "keyspace_misses": info.get("keyspace_misses"),
            }
        except RedisError as e:
            logger.error(
                "Failed to get Redis info",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return None

    def close(self) -> None:
        """Close the Redis connection and clean up resources."""
        if self._client:
            try:
                logger.info("Closing Redis connection")
                self._client.close()
                logger.info("Redis connection closed successfully")
            except RedisError as e:
                logger.error(
                    "Error closing Redis connection",
                    extra={
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    },
                )
            finally:
                self._client = None

    @property
    def is_enabled(self) -> bool:
        """Check if Redis service is enabled."""
        return self._enabled

    @property
    def url(self) -> str | None:
        """Get the Redis connection URL."""
        return self._url
