"""
Order cache interface.

The cache is a key/value view over accepted orders keyed by ``order_uid``.
Implementations never raise: a backend problem degrades to a miss on read
and a skipped write on set.
"""

from abc import ABC, abstractmethod
from typing import Optional

from orderstream.domain.order import Order


class OrderCache(ABC):
    """Abstract cache of orders keyed by order identifier."""

    @abstractmethod
    async def get(self, order_uid: str) -> Optional[Order]:
        """Return the cached order, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, order_uid: str, order: Order) -> None:
        """Store an order, unconditionally replacing any previous value."""
        pass

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
