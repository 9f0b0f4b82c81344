"""
Order store interface.

The store is the authoritative record of accepted orders. It supports a
single atomic insert of a whole aggregate and a lookup by identifier; there
is no update, upsert or delete.
"""

from abc import ABC, abstractmethod

from orderstream.domain.order import Order


class OrderStore(ABC):
    """
    Abstract durable repository of order aggregates.

    Implementations raise only the errors named below, so callers can treat
    every store the same way.
    """

    @abstractmethod
    async def save_order(self, order: Order) -> None:
        """
        Insert the order and all owned rows atomically.

        Raises:
            OrderPersistenceError: If the write fails, including when an order
                with the same identifier already exists. Nothing is stored.
        """
        pass

    @abstractmethod
    async def get_by_id(self, order_uid: str) -> Order:
        """
        Load a complete order aggregate.

        Raises:
            OrderNotFoundError: If no order has this identifier
            OrderPersistenceError: If the read fails
        """
        pass
