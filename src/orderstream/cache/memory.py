"""
In-process order cache guarded by a readers-writer lock.

Readers proceed in parallel; a writer waits for active readers to leave and
then holds the map exclusively. Waiting writers block new readers so a
steady read load cannot starve them.

Entries live for the lifetime of the process. There is no expiry, no size
bound and no eviction, so memory grows with the number of distinct orders
seen. Bounding it would need an eviction policy that keeps the
write-through invariant intact.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from orderstream.cache.base import OrderCache
from orderstream.core.logging import get_logger
from orderstream.domain.order import Order

logger = get_logger(__name__)


class ReadWriteLock:
    """Writer-preferring readers-writer lock built on a condition variable."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class InMemoryOrderCache(OrderCache):
    """
    Unbounded in-memory order cache.

    Attributes:
        hits: Number of lookups served from the cache
        misses: Number of lookups that found nothing
    """

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = ReadWriteLock()
        self.hits = 0
        self.misses = 0

    async def get(self, order_uid: str) -> Optional[Order]:
        with self._lock.read_locked():
            order = self._orders.get(order_uid)

        if order is None:
            self.misses += 1
            logger.debug("Order cache miss", order_uid=order_uid)
        else:
            self.hits += 1
            logger.debug("Order cache hit", order_uid=order_uid)
        return order

    async def set(self, order_uid: str, order: Order) -> None:
        with self._lock.write_locked():
            self._orders[order_uid] = order
        logger.debug("Order cached", order_uid=order_uid)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._orders)
