"""
Test suite for the service entry point.
"""

from unittest.mock import AsyncMock, patch

import pytest

from orderstream import main as entry
from orderstream.cache.memory import InMemoryOrderCache
from orderstream.cache.redis import RedisOrderCache
from orderstream.core.exceptions import StartupError


class TestBuildCache:
    """Test suite for build_cache."""

    @pytest.mark.asyncio
    async def test_memory_backend(self, test_settings):
        """Test that the default backend is the in-process cache."""
        cache = await entry.build_cache(test_settings)
        assert isinstance(cache, InMemoryOrderCache)

    @pytest.mark.asyncio
    async def test_redis_backend_connects(self, test_settings):
        """Test that the Redis backend is connected before use."""
        settings = test_settings.model_copy(update={"cache_backend": "redis", "cache_ttl_seconds": 60})

        with patch.object(RedisOrderCache, "connect", new=AsyncMock()) as connect:
            cache = await entry.build_cache(settings)

        assert isinstance(cache, RedisOrderCache)
        connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_redis_is_startup_error(self, test_settings):
        """Test that Redis connection failures propagate."""
        settings = test_settings.model_copy(update={"cache_backend": "redis"})
        failing = AsyncMock(side_effect=StartupError("Redis is unreachable"))

        with patch.object(RedisOrderCache, "connect", new=failing):
            with pytest.raises(StartupError):
                await entry.build_cache(settings)


class TestMain:
    """Test suite for the console script."""

    @pytest.mark.parametrize("code", [0, 1])
    def test_exit_code_from_coordinator(self, code):
        """Test that the coordinator result becomes the process exit code."""
        with patch.object(entry, "configure_logging"), patch.object(
            entry, "run_service", new=AsyncMock(return_value=code)
        ):
            with pytest.raises(SystemExit) as exc_info:
                entry.main()

        assert exc_info.value.code == code

    def test_startup_error_exits_one(self):
        """Test that startup failures end the process with status 1."""
        failing = AsyncMock(side_effect=StartupError("Database is unreachable", error="refused"))

        with patch.object(entry, "configure_logging"), patch.object(entry, "run_service", new=failing):
            with pytest.raises(SystemExit) as exc_info:
                entry.main()

        assert exc_info.value.code == 1
