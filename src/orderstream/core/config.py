"""
Application configuration management with environment variables.

This module provides centralized configuration management using Pydantic
BaseSettings for type-safe environment variable handling with validation
and default values.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables with the
    APP_ prefix (e.g., APP_DATABASE_HOST, APP_KAFKA_TOPIC). The database
    credentials and the listen port also accept the unprefixed names used
    by the deployment scripts (DATABASE_PASSWORD, DATABASE_NAME, USER_NAME,
    APP_PORT).
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Database Configuration
    database_host: str = Field(
        default="postgres",
        description="PostgreSQL host name",
    )

    database_port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="PostgreSQL port",
    )

    database_user: str = Field(
        default="postgres",
        validation_alias=AliasChoices("APP_DATABASE_USER", "USER_NAME"),
        description="PostgreSQL user name",
    )

    database_password: str = Field(
        default="postgres",
        validation_alias=AliasChoices("APP_DATABASE_PASSWORD", "DATABASE_PASSWORD"),
        description="PostgreSQL password",
    )

    database_name: str = Field(
        default="orders",
        validation_alias=AliasChoices("APP_DATABASE_NAME", "DATABASE_NAME"),
        description="PostgreSQL database name",
    )

    # Database Pool Configuration
    db_pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Database connection pool size",
    )

    db_max_overflow: int = Field(
        default=10,
        ge=0,
        le=50,
        description="Maximum overflow connections for database pool",
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="Interface the HTTP listener binds to",
    )

    api_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("APP_API_PORT", "APP_PORT"),
        description="Port the HTTP listener binds to",
    )

    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline applied to every API request",
    )

    shutdown_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for draining in-flight API requests on shutdown",
    )

    # Stream Configuration
    kafka_brokers: str = Field(
        default="kafka:29092",
        description="Comma-separated Kafka bootstrap servers",
    )

    kafka_topic: str = Field(
        default="orders",
        min_length=1,
        description="Topic carrying encoded order events",
    )

    kafka_group_id: str = Field(
        default="order-service",
        min_length=1,
        description="Consumer group used by the ingestion loop",
    )

    # Cache Configuration
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Order cache implementation",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL, used when cache_backend is 'redis'",
    )

    cache_ttl_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Expiry for Redis cache entries; unset keeps entries forever",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application logging level",
    )

    # Environment Configuration
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )

    # Application Configuration
    app_name: str = Field(
        default="orderstream",
        description="Application name",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )

    @field_validator("kafka_brokers")
    @classmethod
    def validate_kafka_brokers(cls, v: str) -> str:
        """
        Validate Kafka broker list format.

        Args:
            v: Comma-separated brokers value

        Returns:
            Normalized comma-separated broker list

        Raises:
            ValueError: If the list is empty or an entry has no port
        """
        brokers = [broker.strip() for broker in v.split(",") if broker.strip()]
        if not brokers:
            raise ValueError("At least one Kafka broker is required")
        for broker in brokers:
            if ":" not in broker:
                raise ValueError(f"Kafka broker '{broker}' must be in host:port form")
        return ",".join(brokers)

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """
        Validate Redis URL format.

        Args:
            v: Redis URL value

        Returns:
            Validated Redis URL

        Raises:
            ValueError: If Redis URL format is invalid
        """
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with 'redis://' or 'rediss://'")
        return v

    @property
    def database_url(self) -> URL:
        """Async SQLAlchemy URL assembled from the database settings."""
        return URL.create(
            "postgresql+asyncpg",
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        )

    @property
    def kafka_bootstrap_servers(self) -> list[str]:
        """Kafka brokers as a list of host:port strings."""
        return self.kafka_brokers.split(",")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    This function uses lru_cache to ensure settings are loaded only once
    and reused across the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
