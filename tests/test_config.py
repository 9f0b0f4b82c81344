"""
Test suite for application settings.

Covers defaults, the prefixed and legacy environment variable names, derived
properties and validation of broker lists, Redis URLs and ports.
"""

import pytest
from pydantic import ValidationError

from orderstream.core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove variables that would leak host configuration into the tests."""
    for name in (
        "APP_DATABASE_USER",
        "APP_DATABASE_PASSWORD",
        "APP_DATABASE_NAME",
        "APP_API_PORT",
        "APP_KAFKA_BROKERS",
        "APP_ENVIRONMENT",
        "USER_NAME",
        "DATABASE_PASSWORD",
        "DATABASE_NAME",
        "APP_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettingsDefaults:
    """Test suite for default settings values."""

    def test_defaults(self):
        """Test the out-of-the-box configuration."""
        settings = Settings(_env_file=None)

        assert settings.kafka_brokers == "kafka:29092"
        assert settings.kafka_topic == "orders"
        assert settings.kafka_group_id == "order-service"
        assert settings.api_port == 8080
        assert settings.request_timeout_seconds == 10.0
        assert settings.shutdown_timeout_seconds == 5.0
        assert settings.cache_backend == "memory"
        assert settings.cache_ttl_seconds is None
        assert settings.is_development
        assert not settings.is_production

    def test_get_settings_is_cached(self):
        """Test that settings are loaded once per process."""
        assert get_settings() is get_settings()


class TestEnvironmentVariables:
    """Test suite for environment variable loading."""

    def test_legacy_names(self, monkeypatch):
        """Test the unprefixed names used by deployment scripts."""
        monkeypatch.setenv("USER_NAME", "svc")
        monkeypatch.setenv("DATABASE_PASSWORD", "secret")
        monkeypatch.setenv("DATABASE_NAME", "shop")
        monkeypatch.setenv("APP_PORT", "9090")

        settings = Settings(_env_file=None)

        assert settings.database_user == "svc"
        assert settings.database_password == "secret"
        assert settings.database_name == "shop"
        assert settings.api_port == 9090

    def test_prefixed_names(self, monkeypatch):
        """Test the APP_ prefixed names."""
        monkeypatch.setenv("APP_DATABASE_USER", "app")
        monkeypatch.setenv("APP_API_PORT", "8181")
        monkeypatch.setenv("APP_KAFKA_TOPIC", "orders-v2")

        settings = Settings(_env_file=None)

        assert settings.database_user == "app"
        assert settings.api_port == 8181
        assert settings.kafka_topic == "orders-v2"

    def test_broker_list_is_normalized(self, monkeypatch):
        """Test that a comma-separated broker list is trimmed and split."""
        monkeypatch.setenv("APP_KAFKA_BROKERS", " k1:9092 , k2:9092 ,")

        settings = Settings(_env_file=None)

        assert settings.kafka_brokers == "k1:9092,k2:9092"
        assert settings.kafka_bootstrap_servers == ["k1:9092", "k2:9092"]


class TestSettingsValidation:
    """Test suite for settings validators."""

    @pytest.mark.parametrize("brokers", ["", " , ", "kafka"])
    def test_invalid_brokers(self, brokers):
        """Test that empty lists and entries without a port are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, kafka_brokers=brokers)

    def test_invalid_redis_url(self):
        """Test that non-Redis URLs are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, redis_url="http://cache:6379")

    @pytest.mark.parametrize("port", [0, 70000])
    def test_out_of_range_port(self, port):
        """Test that ports outside 1-65535 are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, api_port=port)

    def test_non_positive_timeout(self):
        """Test that the request deadline must be positive."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, request_timeout_seconds=0)


class TestDerivedProperties:
    """Test suite for computed settings."""

    def test_database_url(self):
        """Test that the asyncpg URL is assembled from its parts."""
        settings = Settings(
            _env_file=None,
            database_host="db",
            database_port=6432,
            database_user="svc",
            database_password="p@ss",
            database_name="orders",
        )

        url = settings.database_url

        assert url.drivername == "postgresql+asyncpg"
        assert url.host == "db"
        assert url.port == 6432
        assert url.password == "p@ss"
        assert url.render_as_string(hide_password=True) == "postgresql+asyncpg://svc:***@db:6432/orders"
