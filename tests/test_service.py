"""
Test suite for OrderService orchestration.

Verifies validate-before-store, write-through only after a successful store
write, cache-aside reads with population on miss, and that malformed lookup
identifiers never reach the cache or the store.
"""

from unittest.mock import AsyncMock

import pytest

from orderstream.cache.base import OrderCache
from orderstream.core.exceptions import (
    OrderNotFoundError,
    OrderPersistenceError,
    OrderValidationError,
)
from orderstream.repositories.base import OrderStore
from orderstream.repositories.sql import SqlOrderStore
from orderstream.services.orders import OrderService


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def store_spy(memory_store) -> AsyncMock:
    """
    Create a store mock delegating to the in-memory store.

    Returns:
        AsyncMock: Store whose calls can be counted
    """
    store = AsyncMock(spec=OrderStore)
    store.save_order.side_effect = memory_store.save_order
    store.get_by_id.side_effect = memory_store.get_by_id
    return store


@pytest.fixture
def cache_spy(memory_cache) -> AsyncMock:
    """
    Create a cache mock delegating to the in-memory cache.

    Returns:
        AsyncMock: Cache whose calls can be counted
    """
    cache = AsyncMock(spec=OrderCache)
    cache.get.side_effect = memory_cache.get
    cache.set.side_effect = memory_cache.set
    return cache


@pytest.fixture
def spied_service(store_spy, cache_spy) -> OrderService:
    """Create OrderService over the spied ports."""
    return OrderService(store_spy, cache_spy)


# ============================================================================
# Save Tests
# ============================================================================


class TestSaveOrder:
    """Test suite for OrderService.save_order."""

    @pytest.mark.asyncio
    async def test_save_writes_store_then_cache(self, spied_service, store_spy, cache_spy, valid_order):
        """Test the write-through path for a valid order."""
        await spied_service.save_order(valid_order)

        store_spy.save_order.assert_awaited_once_with(valid_order)
        cache_spy.set.assert_awaited_once_with(valid_order.order_uid, valid_order)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [{"order_uid": ""}, {"track_number": ""}, {"date_created": None}, {"items": ()}],
    )
    async def test_invalid_order_never_reaches_store(
        self, spied_service, store_spy, cache_spy, valid_order, changes
    ):
        """Test that validation failures skip both store and cache."""
        with pytest.raises(OrderValidationError):
            await spied_service.save_order(valid_order.model_copy(update=changes))

        store_spy.save_order.assert_not_awaited()
        cache_spy.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_leaves_cache_untouched(self, spied_service, store_spy, cache_spy, valid_order):
        """Test that a failed store write is not cached."""
        store_spy.save_order.side_effect = OrderPersistenceError("Failed to store order")

        with pytest.raises(OrderPersistenceError):
            await spied_service.save_order(valid_order)

        cache_spy.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_save_fails(self, order_service, memory_cache, valid_order):
        """Test that a second save of the same identifier is a persistence error."""
        await order_service.save_order(valid_order)

        with pytest.raises(OrderPersistenceError):
            await order_service.save_order(valid_order)
        assert await memory_cache.get(valid_order.order_uid) == valid_order


# ============================================================================
# Get Tests
# ============================================================================


class TestGetOrder:
    """Test suite for OrderService.get_order."""

    @pytest.mark.asyncio
    async def test_save_then_get_round_trip(self, order_service, order_factory):
        """Test that a saved order reads back equal, items in order."""
        order = order_factory.create_order(item_count=4)

        await order_service.save_order(order)
        loaded = await order_service.get_order(order.order_uid)

        assert loaded == order
        assert [item.rid for item in loaded.items] == [item.rid for item in order.items]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order_uid", ["bad id", "semi;colon", "", "x" * 51, "dot.uid"])
    async def test_malformed_identifier_touches_nothing(self, spied_service, store_spy, cache_spy, order_uid):
        """Test that identifier checks run before any port access."""
        with pytest.raises(OrderValidationError):
            await spied_service.get_order(order_uid)

        cache_spy.get.assert_not_awaited()
        store_spy.get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_hit_skips_store(self, spied_service, store_spy, memory_cache, valid_order):
        """Test that a cached order is returned without a store call."""
        await memory_cache.set(valid_order.order_uid, valid_order)

        assert await spied_service.get_order(valid_order.order_uid) == valid_order
        store_spy.get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_miss_populates_cache(self, spied_service, store_spy, memory_store, memory_cache, valid_order):
        """Test that a store hit is cached and served from cache afterwards."""
        await memory_store.save_order(valid_order)

        first = await spied_service.get_order(valid_order.order_uid)
        second = await spied_service.get_order(valid_order.order_uid)

        assert first == second == valid_order
        store_spy.get_by_id.assert_awaited_once_with(valid_order.order_uid)
        assert memory_cache.hits == 1

    @pytest.mark.asyncio
    async def test_miss_folds_join_then_hits_cache(
        self, session_factory, mock_session, memory_cache, order_factory, join_rows
    ):
        """Test a multi-row store read followed by a cache hit."""
        order = order_factory.create_order(item_count=2)
        mock_session.execute.return_value.mappings.return_value.all.return_value = join_rows(order)
        service = OrderService(SqlOrderStore(session_factory), memory_cache)

        first = await service.get_order(order.order_uid)
        second = await service.get_order(order.order_uid)

        assert len(first.items) == 2
        assert first.track_number == order.track_number
        assert second == first
        assert mock_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_order_not_cached(self, spied_service, cache_spy):
        """Test that not-found propagates and nothing is cached."""
        with pytest.raises(OrderNotFoundError):
            await spied_service.get_order("missing")

        cache_spy.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, spied_service, store_spy):
        """Test that store read failures surface as persistence errors."""
        store_spy.get_by_id.side_effect = OrderPersistenceError("Failed to load order")

        with pytest.raises(OrderPersistenceError):
            await spied_service.get_order("abc")
