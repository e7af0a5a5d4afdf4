"""Tests for configuration loading and the application context."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.catalog.runtime.config.config_data import CacheConfig, ConfigData, RedisConfig
from src.catalog.runtime.config.config_template import (
    apply_environment_overrides,
    load_config,
    load_templated_yaml,
    substitute_env_vars,
)
from src.catalog.runtime.context import AppContext, get_config, get_context, with_context

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class TestSubstituteEnvVars:
    def test_simple_variable(self):
        with patch.dict(os.environ, {"TEST_VAR": "value"}):
            assert substitute_env_vars("x=${TEST_VAR}") == "x=value"

    def test_default_value(self):
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_env_vars("${MISSING:-fallback}") == "fallback"
            assert substitute_env_vars("${MISSING:-}") == ""

    def test_required_variable_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="MISSING"):
                substitute_env_vars("${MISSING}")

    def test_custom_error_message(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="set the redis url"):
                substitute_env_vars("${REDIS_URL:?set the redis url}")


class TestEnvironmentOverrides:
    def test_prefixed_variables_are_promoted(self):
        with patch.dict(os.environ, {"PRODUCTION_REDIS_URL": "redis://prod:6379/0"}, clear=True):
            apply_environment_overrides("production")
            assert os.environ["REDIS_URL"] == "redis://prod:6379/0"


class TestLoadConfig:
    def test_project_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_templated_yaml(PROJECT_ROOT / "config.yaml")

        assert config.cache.default_ttl_seconds == 3600
        assert config.cache.invalidation_strategy == "index"
        assert config.cache.prime_category_ids == list(range(1, 9))
        assert config.redis.url == ""
        assert config.database.url == "sqlite:///./catalog.db"

    def test_environment_substitution(self):
        env = {
            "REDIS_URL": "redis://cache:6379/1",
            "CACHE_DEFAULT_TTL_SECONDS": "120",
            "CACHE_INVALIDATION_STRATEGY": "scan",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_templated_yaml(PROJECT_ROOT / "config.yaml")

        assert config.redis.url == "redis://cache:6379/1"
        assert config.cache.default_ttl_seconds == 120
        assert config.cache.invalidation_strategy == "scan"

    def test_invalid_strategy_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  cache:\n    invalidation_strategy: keys\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(path)

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == ConfigData()


class TestConfigData:
    def test_redis_password_is_injected_and_masked(self):
        redis_config = RedisConfig(url="redis://cache:6379/0", password="s3cret")

        assert redis_config.connection_string == "redis://:s3cret@cache:6379/0"
        assert "s3cret" not in redis_config.sanitized_connection_string

    def test_wildcard_cors_rejected_in_production(self):
        with pytest.raises(ValueError):
            ConfigData.model_validate(
                {"app": {"environment": "production", "cors": {"origins": ["*"]}}}
            )


class TestContext:
    def test_default_context_available(self):
        context = get_context()
        assert isinstance(context, AppContext)
        assert context.config is get_config()

    def test_with_context_overrides_only_explicit_fields(self):
        original = get_config()

        with with_context(ConfigData(cache=CacheConfig(invalidation_strategy="scan"))):
            assert get_config().cache.invalidation_strategy == "scan"
            assert get_config().database.url == original.database.url
            assert get_config().redis == original.redis

        assert get_config() is original

    def test_with_context_rejects_other_types(self):
        with pytest.raises(ValueError):
            with with_context({"cache": {}}):
                pass
