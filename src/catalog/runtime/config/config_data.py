"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field, model_validator


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    max_connections: int = Field(
        default=50, description="Maximum connections in the client pool"
    )
    socket_timeout: float = Field(
        default=2.0, description="Socket read/write timeout in seconds"
    )
    socket_connect_timeout: float = Field(
        default=2.0, description="Socket connect timeout in seconds"
    )
    health_check_interval: int = Field(
        default=30, description="Seconds between idle connection health checks"
    )
    retries: int = Field(
        default=3, description="Client-level reconnect attempts per command"
    )
    client_name: str = Field(
        default="product_catalog_cache", description="CLIENT SETNAME value"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url

    @property
    def sanitized_connection_string(self) -> str:
        """Connection string with any password masked, safe for logs."""
        connection_string = self.connection_string
        if "@" not in connection_string:
            return connection_string
        scheme, rest = connection_string.split("://", 1)
        _, host = rest.rsplit("@", 1)
        return f"{scheme}://***@{host}"


class CacheConfig(BaseModel):
    """Cache-aside behaviour for product reads and writes."""

    default_ttl_seconds: int = Field(
        default=3600, gt=0, description="TTL applied when a call does not override it"
    )
    invalidation_strategy: Literal["index", "scan"] = Field(
        default="index",
        description="Evict collection families through key indexes or SCAN patterns",
    )
    prime_limit: int = Field(
        default=100, ge=0, description="Number of available products cached when priming"
    )
    prime_category_ids: list[int] = Field(
        default_factory=lambda: list(range(1, 9)),
        description="Categories whose product lists are cached when priming",
    )
    new_arrivals_limit: int = Field(
        default=20, gt=0, description="Maximum products returned as new arrivals"
    )
    scan_count: int = Field(
        default=100, gt=0, description="COUNT hint for SCAN based eviction"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./catalog.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @computed_field
    @property
    def password(self) -> str | None:
        """Resolve the database password.

        A mounted secrets file wins over an environment variable; when neither
        is configured the password embedded in the URL (if any) is used.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if not password:
                raise ValueError(
                    f"Environment variable {self.password_env_var} not set"
                )
            return password

        from sqlalchemy.engine import make_url

        return make_url(self.url).password

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with the resolved password."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        resolved_password = self.password

        if resolved_password and resolved_password != base_url.password:
            if base_url.password:
                logger.warning(
                    "Database password from secrets does not match the one in the URL. "
                    "Using password from secrets."
                )
            base_url = base_url.set(password=resolved_password)

        return base_url.render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig, description="Cache-aside configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )

    @model_validator(mode="after")
    def _check_production_cors(self) -> ConfigData:
        if self.app.environment == "production" and "*" in self.app.cors.origins:
            raise ValueError(
                "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
            )
        return self
