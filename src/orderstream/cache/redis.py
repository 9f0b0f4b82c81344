"""
Redis-backed order cache.

Lets several service processes share one cache. Orders are stored as JSON
under ``<namespace>:order:<order_uid>``. Redis failures are logged and
reported as a miss (on read) or a skipped write (on set), so the cache
contract of never failing holds even when Redis is unavailable.
"""

from typing import Optional

from pydantic import ValidationError
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from orderstream.cache.base import OrderCache
from orderstream.core.exceptions import StartupError
from orderstream.core.logging import get_logger
from orderstream.domain.order import Order

logger = get_logger(__name__)


class RedisOrderCache(OrderCache):
    """
    Order cache stored in Redis.

    Provides connection pooling, a startup connectivity check and JSON
    (de)serialization of orders through the pydantic models.
    """

    def __init__(
        self,
        url: str,
        ttl: Optional[int] = None,
        namespace: str = "orderstream",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        client: Optional[Redis] = None,
    ):
        """
        Initialize Redis order cache.

        Args:
            url: Redis connection URL
            ttl: Entry expiry in seconds; None keeps entries forever
            namespace: Key namespace shared by all entries
            max_connections: Maximum pool connections
            socket_timeout: Socket operation timeout in seconds
            client: Pre-built client, mainly for tests
        """
        self._url = url
        self._ttl = ttl
        self._namespace = namespace
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = client

    @staticmethod
    def _sanitize_url(url: str) -> str:
        """Strip credentials from a Redis URL for logging."""
        if "@" in url:
            protocol, rest = url.split("://", 1)
            if "@" in rest:
                _, host_part = rest.split("@", 1)
                return f"{protocol}://***@{host_part}"
        return url

    def _make_key(self, order_uid: str) -> str:
        return f"{self._namespace}:order:{order_uid}"

    async def connect(self) -> None:
        """
        Create the connection pool and verify connectivity with ping.

        Raises:
            StartupError: If Redis cannot be reached
        """
        if self._client is None:
            self._pool = ConnectionPool.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
                decode_responses=True,
            )
            self._client = Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            await self.close()
            raise StartupError(
                "Redis is unreachable",
                url=self._sanitize_url(self._url),
                error=str(e),
            ) from e

        logger.info(
            "Redis connection established",
            url=self._sanitize_url(self._url),
            pool_size=self._max_connections,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
        logger.info("Redis connection closed")

    async def get(self, order_uid: str) -> Optional[Order]:
        if self._client is None:
            logger.warning("Redis cache used before connect", order_uid=order_uid)
            return None

        cache_key = self._make_key(order_uid)
        try:
            cached = await self._client.get(cache_key)
        except RedisError as e:
            logger.error(
                "Failed to read order from cache",
                cache_key=cache_key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if cached is None:
            logger.debug("Order cache miss", cache_key=cache_key)
            return None

        try:
            order = Order.model_validate_json(cached)
        except ValidationError as e:
            logger.error(
                "Discarding undecodable cache entry",
                cache_key=cache_key,
                error=str(e),
            )
            return None

        logger.debug("Order cache hit", cache_key=cache_key)
        return order

    async def set(self, order_uid: str, order: Order) -> None:
        if self._client is None:
            logger.warning("Redis cache used before connect", order_uid=order_uid)
            return

        cache_key = self._make_key(order_uid)
        try:
            await self._client.set(cache_key, order.model_dump_json(), ex=self._ttl)
            logger.debug("Order cached", cache_key=cache_key, ttl=self._ttl)
        except RedisError as e:
            logger.error(
                "Failed to write order to cache",
                cache_key=cache_key,
                error=str(e),
                error_type=type(e).__name__,
            )
