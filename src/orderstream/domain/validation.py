"""
Order validation rules.

Validation is fail-fast and runs in a fixed order: identifier, track number,
creation date, delivery, payment, item presence, then each item in sequence.
The first violation is raised as an OrderValidationError whose context names
the offending field (``delivery.email``, ``items[2].price``) so callers can
report it without parsing the message.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from orderstream.core.exceptions import OrderValidationError
from orderstream.domain.order import Delivery, Item, Order, Payment

MAX_ORDER_UID_LENGTH = 50
MAX_TRACK_NUMBER_LENGTH = 50
DATE_CREATED_SKEW = timedelta(hours=1)

MAX_DELIVERY_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 100

MAX_TRANSACTION_LENGTH = 50
MAX_CURRENCY_LENGTH = 3
MAX_PAYMENT_AMOUNT = 1_000_000_000

MAX_ITEM_NAME_LENGTH = 200
MAX_ITEM_PRICE = 100_000_000

ORDER_UID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def validate_order(order: Order, now: Optional[datetime] = None) -> None:
    """
    Validate a complete order aggregate.

    Args:
        order: Order to validate
        now: Reference time for the creation date check (defaults to UTC now)

    Raises:
        OrderValidationError: On the first violated constraint
    """
    if order is None:
        raise OrderValidationError("order is required", field="order")

    if not order.order_uid:
        raise OrderValidationError("order_uid is required", field="order_uid")
    if len(order.order_uid) > MAX_ORDER_UID_LENGTH:
        raise OrderValidationError(
            f"order_uid is too long (max {MAX_ORDER_UID_LENGTH} characters)",
            field="order_uid",
        )
    if any(ch.isspace() for ch in order.order_uid):
        raise OrderValidationError("order_uid cannot contain whitespace", field="order_uid")

    if not order.track_number:
        raise OrderValidationError("track_number is required", field="track_number")
    if len(order.track_number) > MAX_TRACK_NUMBER_LENGTH:
        raise OrderValidationError(
            f"track_number is too long (max {MAX_TRACK_NUMBER_LENGTH} characters)",
            field="track_number",
        )

    _validate_date_created(order.date_created, now)

    try:
        _validate_delivery(order.delivery)
    except OrderValidationError as e:
        raise OrderValidationError(
            f"delivery validation failed: {e}",
            field=f"delivery.{e.field}",
        ) from e

    try:
        _validate_payment(order.payment)
    except OrderValidationError as e:
        raise OrderValidationError(
            f"payment validation failed: {e}",
            field=f"payment.{e.field}",
        ) from e

    if not order.items:
        raise OrderValidationError("at least one item is required", field="items")

    for index, item in enumerate(order.items):
        try:
            _validate_item(item)
        except OrderValidationError as e:
            raise OrderValidationError(
                f"item[{index}] validation failed: {e}",
                field=f"items[{index}].{e.field}",
                item_index=index,
            ) from e


def validate_order_uid(order_uid: str) -> None:
    """
    Check the shape of a lookup identifier.

    Args:
        order_uid: Identifier supplied by a reader

    Raises:
        OrderValidationError: If the identifier is empty, too long or contains
            characters outside ``[A-Za-z0-9_-]``
    """
    if not order_uid:
        raise OrderValidationError("order id is required", field="order_uid")
    if len(order_uid) > MAX_ORDER_UID_LENGTH:
        raise OrderValidationError("order id is too long", field="order_uid")
    if ORDER_UID_PATTERN.fullmatch(order_uid) is None:
        raise OrderValidationError(
            "order id contains invalid characters", field="order_uid"
        )


def _validate_date_created(date_created: Optional[datetime], now: Optional[datetime]) -> None:
    if date_created is None:
        raise OrderValidationError("date_created is required", field="date_created")

    now = now or datetime.now(timezone.utc)
    if date_created > now + DATE_CREATED_SKEW:
        raise OrderValidationError(
            "date_created cannot be in the future", field="date_created"
        )


def _validate_delivery(delivery: Delivery) -> None:
    if not delivery.name:
        raise OrderValidationError("delivery name is required", field="name")
    if len(delivery.name) > MAX_DELIVERY_NAME_LENGTH:
        raise OrderValidationError(
            f"delivery name is too long (max {MAX_DELIVERY_NAME_LENGTH} characters)",
            field="name",
        )

    if not delivery.email:
        raise OrderValidationError("delivery email is required", field="email")
    if len(delivery.email) > MAX_EMAIL_LENGTH:
        raise OrderValidationError(
            f"delivery email is too long (max {MAX_EMAIL_LENGTH} characters)",
            field="email",
        )
    if "@" not in delivery.email or "." not in delivery.email:
        raise OrderValidationError("delivery email format is invalid", field="email")


def _validate_payment(payment: Payment) -> None:
    if not payment.transaction:
        raise OrderValidationError("payment transaction is required", field="transaction")
    if len(payment.transaction) > MAX_TRANSACTION_LENGTH:
        raise OrderValidationError(
            f"payment transaction is too long (max {MAX_TRANSACTION_LENGTH} characters)",
            field="transaction",
        )

    if payment.amount <= 0:
        raise OrderValidationError("payment amount must be greater than 0", field="amount")
    if payment.amount > MAX_PAYMENT_AMOUNT:
        raise OrderValidationError("payment amount is too large", field="amount")

    if not payment.currency:
        raise OrderValidationError("payment currency is required", field="currency")
    if len(payment.currency) > MAX_CURRENCY_LENGTH:
        raise OrderValidationError(
            f"payment currency code is invalid (max {MAX_CURRENCY_LENGTH} characters)",
            field="currency",
        )


def _validate_item(item: Item) -> None:
    if not item.name:
        raise OrderValidationError("item name is required", field="name")
    if len(item.name) > MAX_ITEM_NAME_LENGTH:
        raise OrderValidationError(
            f"item name is too long (max {MAX_ITEM_NAME_LENGTH} characters)",
            field="name",
        )

    if item.price <= 0:
        raise OrderValidationError("item price must be greater than 0", field="price")
    if item.price > MAX_ITEM_PRICE:
        raise OrderValidationError("item price is too large", field="price")

    if item.total_price < 0:
        raise OrderValidationError("item total_price cannot be negative", field="total_price")

    if item.chrt_id <= 0:
        raise OrderValidationError("item chrt_id must be greater than 0", field="chrt_id")
