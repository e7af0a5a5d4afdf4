"""Tests for the Redis client lifecycle service."""

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.catalog.core.cache import InMemoryCacheBackend, RedisCacheBackend
from src.catalog.core.services import RedisService
from src.catalog.runtime.config.config_data import AppConfig, ConfigData, RedisConfig


def make_config(environment: str = "test", **redis_overrides) -> ConfigData:
    redis_settings = {"enabled": True, "url": "redis://localhost:6379/0"}
    redis_settings.update(redis_overrides)
    return ConfigData(
        app=AppConfig(environment=environment),
        redis=RedisConfig(**redis_settings),
    )


class TestRedisServiceSetup:
    def test_disabled_service_has_no_client(self):
        service = RedisService(make_config(enabled=False))

        assert service.is_enabled is False
        assert service.get_client() is None
        assert service.health_check() is False
        assert isinstance(service.cache_backend(), InMemoryCacheBackend)

    def test_missing_url_disables_service(self):
        service = RedisService(make_config(url=""))

        assert service.is_enabled is False
        assert service.url is None

    @patch("src.catalog.core.services.redis_service.redis.Redis.from_url")
    def test_client_built_from_config(self, from_url):
        service = RedisService(make_config(max_connections=7, retries=2))

        assert service.get_client() is from_url.return_value
        kwargs = from_url.call_args.kwargs
        assert from_url.call_args.args[0] == "redis://localhost:6379/0"
        assert kwargs["max_connections"] == 7
        assert kwargs["retry"] is not None
        assert isinstance(service.cache_backend(scan_count=10), RedisCacheBackend)

    @patch("src.catalog.core.services.redis_service.redis.Redis.from_url")
    def test_init_failure_degrades_outside_production(self, from_url):
        from_url.side_effect = ValueError("bad url")

        service = RedisService(make_config())

        assert service.get_client() is None
        assert isinstance(service.cache_backend(), InMemoryCacheBackend)

    @patch("src.catalog.core.services.redis_service.redis.Redis.from_url")
    def test_init_failure_is_fatal_in_production(self, from_url):
        from_url.side_effect = ValueError("bad url")

        with pytest.raises(ValueError):
            RedisService(make_config(environment="production"))


class TestRedisServiceOperations:
    def setup_method(self):
        self.client = MagicMock()
        with patch(
            "src.catalog.core.services.redis_service.redis.Redis.from_url",
            return_value=self.client,
        ):
            self.service = RedisService(make_config())

    def test_health_check(self):
        self.client.ping.return_value = True
        assert self.service.health_check() is True

        self.client.ping.side_effect = RedisConnectionError("down")
        assert self.service.health_check() is False

    def test_get_info(self):
        self.client.info.return_value = {"redis_version": "7.2.4", "connected_clients": 3}

        info = self.service.get_info()

        assert info["version"] == "7.2.4"
        assert info["connected_clients"] == 3

    def test_get_info_failure(self):
        self.client.info.side_effect = RedisConnectionError("down")
        assert self.service.get_info() is None

    def test_close_releases_client(self):
        self.service.close()

        self.client.close.assert_called_once()
        assert self.service.get_client() is None
