"""
PostgreSQL order store.

Writes an aggregate as related rows in the orders, deliveries, payments and
items tables inside one transaction, and reads it back with a single
denormalized LEFT JOIN that returns one row per item with the order,
delivery and payment columns repeated on every row.
"""

from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderstream.core.exceptions import OrderNotFoundError, OrderPersistenceError
from orderstream.core.logging import get_logger
from orderstream.database.models import (
    DeliveryRecord,
    ItemRecord,
    OrderRecord,
    PaymentRecord,
)
from orderstream.domain.order import Delivery, Item, Order, Payment
from orderstream.repositories.base import OrderStore

logger = get_logger(__name__)

ORDER_FIELDS = tuple(
    name for name in Order.model_fields if name not in ("delivery", "payment", "items")
)
DELIVERY_FIELDS = tuple(Delivery.model_fields)
PAYMENT_FIELDS = tuple(Payment.model_fields)
ITEM_FIELDS = tuple(Item.model_fields)

_orders = OrderRecord.__table__
_deliveries = DeliveryRecord.__table__
_payments = PaymentRecord.__table__
_items = ItemRecord.__table__

_ORDER_QUERY = (
    select(
        *(_orders.c[name] for name in ORDER_FIELDS),
        *(_deliveries.c[name].label(f"delivery_{name}") for name in DELIVERY_FIELDS),
        *(_payments.c[name].label(f"payment_{name}") for name in PAYMENT_FIELDS),
        _items.c.id.label("item_id"),
        *(_items.c[name].label(f"item_{name}") for name in ITEM_FIELDS),
    )
    .select_from(
        _orders.outerjoin(_deliveries, _deliveries.c.order_uid == _orders.c.order_uid)
        .outerjoin(_payments, _payments.c.order_uid == _orders.c.order_uid)
        .outerjoin(_items, _items.c.order_uid == _orders.c.order_uid)
    )
    .order_by(_items.c.id)
)


def _pick(row: Mapping[str, Any], fields: Iterable[str], prefix: str = "") -> dict[str, Any]:
    """Collect non-null columns for ``fields``; nulls fall back to model defaults."""
    values = {}
    for name in fields:
        value = row[f"{prefix}{name}"]
        if value is not None:
            values[name] = value
    return values


def fold_order_rows(rows: Sequence[Mapping[str, Any]]) -> Order:
    """
    Rebuild one aggregate from the rows of the denormalized join.

    Scalar order, delivery and payment fields come from the first row only;
    every row with an item contributes one item, in row order.

    Args:
        rows: Row mappings as returned by the order query

    Returns:
        Reconstructed order

    Raises:
        ValueError: If ``rows`` is empty
    """
    if not rows:
        raise ValueError("cannot fold an empty row set")

    first = rows[0]
    items = tuple(
        Item(**_pick(row, ITEM_FIELDS, "item_"))
        for row in rows
        if row["item_id"] is not None
    )
    return Order(
        **_pick(first, ORDER_FIELDS),
        delivery=Delivery(**_pick(first, DELIVERY_FIELDS, "delivery_")),
        payment=Payment(**_pick(first, PAYMENT_FIELDS, "payment_")),
        items=items,
    )


def _to_record(order: Order) -> OrderRecord:
    return OrderRecord(
        **order.model_dump(include=set(ORDER_FIELDS)),
        delivery=DeliveryRecord(**order.delivery.model_dump()),
        payment=PaymentRecord(**order.payment.model_dump()),
        items=[ItemRecord(**item.model_dump()) for item in order.items],
    )


class SqlOrderStore(OrderStore):
    """
    Order store backed by PostgreSQL through SQLAlchemy's async session.

    Every operation opens its own session from the factory, so one store
    instance is safely shared by all API requests and the ingestion loop.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize SQL order store.

        Args:
            session_factory: Factory producing async sessions
        """
        self._session_factory = session_factory

    async def save_order(self, order: Order) -> None:
        record = _to_record(order)

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(record)
        except IntegrityError as e:
            logger.warning(
                "Order insert rejected by integrity constraint",
                order_uid=order.order_uid,
                error=str(e.orig),
            )
            raise OrderPersistenceError(
                "Order violates a storage constraint",
                order_uid=order.order_uid,
                error=str(e.orig),
            ) from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Order insert failed",
                order_uid=order.order_uid,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise OrderPersistenceError(
                "Failed to store order",
                order_uid=order.order_uid,
                error=str(e),
            ) from e

        logger.info(
            "Order stored",
            order_uid=order.order_uid,
            item_count=len(order.items),
        )

    async def get_by_id(self, order_uid: str) -> Order:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    _ORDER_QUERY.where(_orders.c.order_uid == order_uid)
                )
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Order lookup failed",
                order_uid=order_uid,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise OrderPersistenceError(
                "Failed to load order",
                order_uid=order_uid,
                error=str(e),
            ) from e

        if not rows:
            raise OrderNotFoundError("Order not found", order_uid=order_uid)

        logger.debug("Order loaded", order_uid=order_uid, row_count=len(rows))
        return fold_order_rows(rows)
