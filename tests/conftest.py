"""
Pytest configuration and shared test fixtures.

Provides order factories, in-memory ports, a queue-backed message source,
a mocked SQLAlchemy session factory and test settings shared by the suite.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest

from orderstream.cache.memory import InMemoryOrderCache
from orderstream.core.config import Settings
from orderstream.domain.order import Order
from orderstream.ingestion.sources import MessageSource
from orderstream.repositories.memory import InMemoryOrderStore
from orderstream.repositories.sql import (
    DELIVERY_FIELDS,
    ITEM_FIELDS,
    ORDER_FIELDS,
    PAYMENT_FIELDS,
)
from orderstream.services.orders import OrderService


# ============================================================================
# Test Data Factories
# ============================================================================


class OrderFactory:
    """Factory for generating order payloads and aggregates."""

    CREATED_AT = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    @staticmethod
    def create_item_payload(index: int = 0, **overrides: Any) -> dict[str, Any]:
        item = {
            "chrt_id": 9934930 + index,
            "track_number": "WBILMTESTTRACK",
            "price": 453 + index,
            "rid": f"ab4219087a764ae0btest-{index}",
            "name": f"Mascaras-{index}",
            "sale": 30,
            "size": "0",
            "total_price": 317,
            "nm_id": 2389212,
            "brand": "Vivienne Sabo",
            "status": 202,
        }
        item.update(overrides)
        return item

    @classmethod
    def create_payload(
        cls,
        order_uid: str = "b563feb7b2b84b6test",
        item_count: int = 1,
        **overrides: Any,
    ) -> dict[str, Any]:
        payload = {
            "order_uid": order_uid,
            "track_number": "WBILMTESTTRACK",
            "entry": "WBIL",
            "delivery": {
                "name": "Test Testov",
                "phone": "+9720000000",
                "zip": "2639809",
                "city": "Kiryat Mozkin",
                "address": "Ploshad Mira 15",
                "region": "Kraiot",
                "email": "test@gmail.com",
            },
            "payment": {
                "transaction": order_uid,
                "request_id": "",
                "currency": "USD",
                "provider": "wbpay",
                "amount": 1817,
                "payment_dt": 1637907727,
                "bank": "alpha",
                "delivery_cost": 1500,
                "goods_total": 317,
                "custom_fee": 0,
            },
            "items": [cls.create_item_payload(i) for i in range(item_count)],
            "locale": "en",
            "internal_signature": "",
            "customer_id": "test",
            "delivery_service": "meest",
            "shardkey": "9",
            "sm_id": 99,
            "date_created": cls.CREATED_AT.isoformat(),
            "oof_shard": "1",
        }
        payload.update(overrides)
        return payload

    @classmethod
    def create_order(cls, order_uid: str = "b563feb7b2b84b6test", item_count: int = 1, **overrides: Any) -> Order:
        return Order.model_validate(cls.create_payload(order_uid, item_count, **overrides))

    @classmethod
    def create_message(cls, order_uid: str = "b563feb7b2b84b6test", item_count: int = 1) -> bytes:
        return json.dumps(cls.create_payload(order_uid, item_count)).encode()


# ============================================================================
# Test Doubles
# ============================================================================


class QueueMessageSource(MessageSource):
    """Message source fed from an in-process queue."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue = asyncio.Queue()
        self.started = False
        self.closed = False
        self.receive_calls = 0

    def push(self, item: Union[bytes, Exception]) -> None:
        """Enqueue a payload, or an exception to raise from receive."""
        self.queue.put_nowait(item)

    async def start(self) -> None:
        self.started = True

    async def receive(self) -> bytes:
        self.receive_calls += 1
        item = await self.queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def order_factory() -> type[OrderFactory]:
    """
    Provide the order factory.

    Returns:
        OrderFactory class
    """
    return OrderFactory


@pytest.fixture
def valid_order() -> Order:
    """
    Create a valid single-item order.

    Returns:
        Order: Order passing validation
    """
    return OrderFactory.create_order()


@pytest.fixture
def memory_store() -> InMemoryOrderStore:
    """Create an empty in-memory order store."""
    return InMemoryOrderStore()


@pytest.fixture
def memory_cache() -> InMemoryOrderCache:
    """Create an empty in-memory order cache."""
    return InMemoryOrderCache()


@pytest.fixture
def order_service(memory_store: InMemoryOrderStore, memory_cache: InMemoryOrderCache) -> OrderService:
    """
    Create OrderService over in-memory ports.

    Args:
        memory_store: In-memory order store
        memory_cache: In-memory order cache

    Returns:
        OrderService: Service instance for testing
    """
    return OrderService(memory_store, memory_cache)


@pytest.fixture
def message_source() -> QueueMessageSource:
    """Create a queue-backed message source."""
    return QueueMessageSource()


@pytest.fixture
def test_settings() -> Settings:
    """
    Create settings isolated from the environment's .env file.

    Returns:
        Settings: Test configuration
    """
    return Settings(_env_file=None, environment="test", request_timeout_seconds=1.0)


@pytest.fixture
def mock_session() -> AsyncMock:
    """
    Create mock async database session.

    ``session.begin()`` returns an async context manager that commits on exit;
    set ``session.begin.return_value.__aexit__.side_effect`` to fail the commit.

    Returns:
        AsyncMock: Mock database session
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.execute = AsyncMock(return_value=MagicMock())

    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=transaction)
    transaction.__aexit__ = AsyncMock(return_value=False)
    session.begin = MagicMock(return_value=transaction)
    return session


@pytest.fixture
def session_factory(mock_session: AsyncMock) -> MagicMock:
    """
    Create a session factory yielding the mock session.

    Args:
        mock_session: Mock database session

    Returns:
        MagicMock: Callable returning an async context manager
    """
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


@pytest.fixture
def wait_until() -> Callable:
    """
    Provide a helper polling a condition on the running loop.

    Returns:
        Coroutine function ``wait_until(predicate, timeout=2.0)``
    """

    async def _wait_until(predicate: Callable[[], bool], timeout: Optional[float] = 2.0) -> None:
        async with asyncio.timeout(timeout):
            while not predicate():
                await asyncio.sleep(0.01)

    return _wait_until


def build_join_rows(order: Order) -> list[dict[str, Any]]:
    """Build the rows the order lookup query returns for ``order``."""
    base = {name: getattr(order, name) for name in ORDER_FIELDS}
    base.update({f"delivery_{name}": getattr(order.delivery, name) for name in DELIVERY_FIELDS})
    base.update({f"payment_{name}": getattr(order.payment, name) for name in PAYMENT_FIELDS})

    if not order.items:
        return [{**base, "item_id": None, **{f"item_{name}": None for name in ITEM_FIELDS}}]

    return [
        {
            **base,
            "item_id": index + 1,
            **{f"item_{name}": getattr(item, name) for name in ITEM_FIELDS},
        }
        for index, item in enumerate(order.items)
    ]


@pytest.fixture
def join_rows() -> Callable[[Order], list[dict[str, Any]]]:
    """
    Provide a builder of denormalized join rows.

    Returns:
        Function mapping an order to one row mapping per item
    """
    return build_join_rows
