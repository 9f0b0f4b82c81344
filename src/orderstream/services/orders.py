"""
Order service orchestrating validation, persistence and caching.

Writes are validated once at this boundary, stored in the authoritative
store, and only then written through to the cache. Reads are cache-aside:
the cache is consulted first and populated from the store on a miss.
"""

from orderstream.cache.base import OrderCache
from orderstream.core.exceptions import OrderNotFoundError, OrderValidationError
from orderstream.core.logging import get_logger
from orderstream.domain.order import Order
from orderstream.domain.validation import validate_order, validate_order_uid
from orderstream.repositories.base import OrderStore

logger = get_logger(__name__)


class OrderService:
    """
    Service for order write-through persistence and cache-aside lookup.

    Read-after-write holds only within the cache instance owned by this
    process; other replicas see a new order once they miss and read it from
    the store.
    """

    def __init__(self, store: OrderStore, cache: OrderCache):
        """
        Initialize order service.

        Args:
            store: Authoritative order store
            cache: Order cache keyed by order_uid
        """
        self.store = store
        self.cache = cache

    async def save_order(self, order: Order) -> None:
        """
        Validate and persist an order, then write it through to the cache.

        Args:
            order: Decoded order aggregate

        Raises:
            OrderValidationError: If the order is invalid; nothing is stored
            OrderPersistenceError: If the store rejects the write; the cache
                is left untouched
        """
        try:
            validate_order(order)
        except OrderValidationError as e:
            logger.warning(
                "Order validation failed",
                order_uid=order.order_uid if order is not None else None,
                error=str(e),
                **e.context,
            )
            raise

        await self.store.save_order(order)
        await self.cache.set(order.order_uid, order)

        logger.info(
            "Order saved",
            order_uid=order.order_uid,
            item_count=len(order.items),
        )

    async def get_order(self, order_uid: str) -> Order:
        """
        Look up an order by identifier.

        Args:
            order_uid: Order identifier

        Returns:
            The order, from the cache when present

        Raises:
            OrderValidationError: If the identifier is malformed
            OrderNotFoundError: If the store has no such order
            OrderPersistenceError: If the store lookup fails
        """
        validate_order_uid(order_uid)

        cached = await self.cache.get(order_uid)
        if cached is not None:
            logger.debug("Order cache hit", order_uid=order_uid)
            return cached

        logger.debug("Order cache miss", order_uid=order_uid)
        try:
            order = await self.store.get_by_id(order_uid)
        except OrderNotFoundError:
            logger.info("Order not found", order_uid=order_uid)
            raise

        await self.cache.set(order_uid, order)
        return order
