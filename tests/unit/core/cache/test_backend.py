"""Tests for cache backends."""

import time
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.catalog.core.cache import InMemoryCacheBackend, RedisCacheBackend
from src.catalog.core.exceptions import CacheUnavailableError


class TestInMemoryCacheBackend:
    """Test in-memory cache backend implementation."""

    def setup_method(self):
        self.backend = InMemoryCacheBackend()

    def test_set_and_get(self):
        self.backend.set("product:1", '{"id": "1"}', 60)
        assert self.backend.get("product:1") == '{"id": "1"}'

    def test_get_missing_key(self):
        assert self.backend.get("product:missing") is None

    def test_entry_expires(self):
        self.backend.set("product:1", "value", 1)
        with patch("src.catalog.core.cache.backend.time.time", return_value=time.time() + 2):
            assert self.backend.get("product:1") is None
            assert not self.backend.exists("product:1")

    def test_ttl(self):
        self.backend.set("a", "1", 60)
        self.backend.set("b", "1")
        assert 58 <= self.backend.ttl("a") <= 60
        assert self.backend.ttl("b") == -1
        assert self.backend.ttl("missing") == -2

    def test_delete_counts_existing_keys(self):
        self.backend.set("a", "1")
        self.backend.set("b", "1")
        assert self.backend.delete("a", "b", "c") == 2
        assert len(self.backend) == 0

    def test_scan_matches_glob(self):
        self.backend.set("products:search:1", "x")
        self.backend.set("products:search:2", "x")
        self.backend.set("products:page:0:20", "x")
        assert sorted(self.backend.scan("products:search:*")) == [
            "products:search:1",
            "products:search:2",
        ]

    def test_set_indexed_registers_members(self):
        self.backend.set_indexed("products:search:1", "x", 60, ["index:products:search"])
        self.backend.set_indexed("products:search:2", "x", 60, ["index:products:search"])
        assert self.backend.index_members("index:products:search") == {
            "products:search:1",
            "products:search:2",
        }

    def test_index_is_not_readable_as_value(self):
        self.backend.set_indexed("product:1", "x", 60, ["index:product:1"])
        assert self.backend.get("index:product:1") is None
        assert self.backend.exists("index:product:1")

    def test_ping(self):
        assert self.backend.ping() is True


class TestRedisCacheBackend:
    """Test Redis cache backend over a mocked client."""

    def setup_method(self):
        self.redis = MagicMock()
        self.backend = RedisCacheBackend(self.redis, scan_count=50)

    def test_get_decodes_bytes(self):
        self.redis.get.return_value = b'{"id": "1"}'
        assert self.backend.get("product:1") == '{"id": "1"}'
        self.redis.get.assert_called_once_with("product:1")

    def test_set_uses_expiry(self):
        self.backend.set("product:1", "v", 3600)
        self.redis.set.assert_called_once_with("product:1", "v", ex=3600)

    def test_delete_without_keys_skips_redis(self):
        assert self.backend.delete() == 0
        self.redis.delete.assert_not_called()

    def test_scan_uses_scan_iter(self):
        self.redis.scan_iter.return_value = iter([b"products:search:1", "products:search:2"])
        assert self.backend.scan("products:search:*") == [
            "products:search:1",
            "products:search:2",
        ]
        self.redis.scan_iter.assert_called_once_with(match="products:search:*", count=50)
        self.redis.keys.assert_not_called()

    def test_set_indexed_uses_transaction(self):
        pipe = self.redis.pipeline.return_value.__enter__.return_value

        self.backend.set_indexed("product:1", "v", 60, ["index:product:1"])

        self.redis.pipeline.assert_called_once_with(transaction=True)
        pipe.set.assert_called_once_with("product:1", "v", ex=60)
        pipe.sadd.assert_called_once_with("index:product:1", "product:1")
        pipe.expire.assert_called_once_with("index:product:1", 60)
        pipe.execute.assert_called_once()

    def test_index_members_decoded(self):
        self.redis.smembers.return_value = {b"product:1", b"products:page:0:20"}
        assert self.backend.index_members("index:product:1") == {
            "product:1",
            "products:page:0:20",
        }

    def test_redis_errors_become_unavailable(self):
        self.redis.get.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheUnavailableError) as exc_info:
            self.backend.get("product:1")

        assert exc_info.value.details["operation"] == "get"
        assert exc_info.value.details["error_type"] == "ConnectionError"


class TestIndexMaintenance:
    """Test index set registration and removal on both backends."""

    def setup_method(self):
        self.backend = InMemoryCacheBackend()

    def test_add_to_index_merges_members(self):
        self.backend.add_to_index("index:products:page", "products:page:0:20", ttl_seconds=60)
        self.backend.add_to_index("index:products:page", "products:page:1:20", ttl_seconds=60)

        assert self.backend.index_members("index:products:page") == {
            "products:page:0:20",
            "products:page:1:20",
        }
        assert 58 <= self.backend.ttl("index:products:page") <= 60

    def test_remove_indexed_keeps_later_members(self):
        self.backend.set_indexed("products:search:a", "[]", 60, ["index:products:search"])
        self.backend.set_indexed("products:search:b", "[]", 60, ["index:products:search"])
        self.backend.set_indexed("products:search:c", "[]", 60, ["index:products:search"])

        deleted = self.backend.remove_indexed(
            "index:products:search", ["products:search:a", "products:search:b"]
        )

        assert deleted == 2
        assert self.backend.index_members("index:products:search") == {"products:search:c"}
        assert self.backend.exists("products:search:c")

    def test_remove_indexed_prunes_expired_members(self):
        self.backend.add_to_index("index:products:search", "products:search:gone", ttl_seconds=60)

        assert self.backend.remove_indexed("index:products:search", ["products:search:gone"]) == 0
        assert not self.backend.exists("index:products:search")

    def test_redis_add_to_index_uses_transaction(self):
        redis = MagicMock()
        pipe = redis.pipeline.return_value.__enter__.return_value

        RedisCacheBackend(redis).add_to_index("index:products:page", "a", "b", ttl_seconds=60)

        redis.pipeline.assert_called_once_with(transaction=True)
        pipe.sadd.assert_called_once_with("index:products:page", "a", "b")
        pipe.expire.assert_called_once_with("index:products:page", 60)
        pipe.execute.assert_called_once()

    def test_redis_remove_indexed_removes_only_given_members(self):
        redis = MagicMock()
        pipe = redis.pipeline.return_value.__enter__.return_value
        pipe.execute.return_value = [1, 2]

        deleted = RedisCacheBackend(redis).remove_indexed("index:products:page", ["a", "b"])

        assert deleted == 1
        redis.pipeline.assert_called_once_with(transaction=True)
        pipe.delete.assert_called_once_with("a", "b")
        pipe.srem.assert_called_once_with("index:products:page", "a", "b")
        redis.delete.assert_not_called()

    def test_redis_remove_indexed_failure(self):
        redis = MagicMock()
        redis.pipeline.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheUnavailableError) as exc_info:
            RedisCacheBackend(redis).remove_indexed("index:products:page", ["a"])

        assert exc_info.value.details["operation"] == "remove_indexed"
