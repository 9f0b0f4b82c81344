"""
In-memory order store.

Honors the same contract and error kinds as the SQL store: inserts are
all-or-nothing, a duplicate identifier is a persistence error, and an
unknown identifier is a not-found error. Used by the test suite and for
running the API without a database.
"""

import threading

from orderstream.core.exceptions import OrderNotFoundError, OrderPersistenceError
from orderstream.domain.order import Order
from orderstream.repositories.base import OrderStore


class InMemoryOrderStore(OrderStore):
    """Dictionary-backed order store."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    async def save_order(self, order: Order) -> None:
        with self._lock:
            if order.order_uid in self._orders:
                raise OrderPersistenceError(
                    "Order violates a storage constraint",
                    order_uid=order.order_uid,
                    error="duplicate order_uid",
                )
            self._orders[order.order_uid] = order

    async def get_by_id(self, order_uid: str) -> Order:
        with self._lock:
            order = self._orders.get(order_uid)
        if order is None:
            raise OrderNotFoundError("Order not found", order_uid=order_uid)
        return order

    def __contains__(self, order_uid: object) -> bool:
        with self._lock:
            return order_uid in self._orders

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
