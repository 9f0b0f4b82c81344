"""
Order aggregate models.

The aggregate is an Order that owns exactly one Delivery, one Payment and an
ordered, non-empty sequence of Items. Field names match the JSON payloads
carried on the order stream and returned by the HTTP API.

Models are frozen: an accepted order is immutable for the lifetime of the
process, and a cached instance can be handed to many readers at once.
Decoding is deliberately lenient about absent fields (they take empty or
zero defaults) so that a missing mandatory value is reported by
``validate_order`` with its field name instead of failing the decode.
Values themselves are not coerced: integer fields take JSON integers only,
and a ``date_created`` without offset is read as UTC.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
)

from orderstream.core.exceptions import OrderDecodeError


class Delivery(BaseModel):
    """Recipient and shipping address of an order."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    zip: str = ""
    city: str = ""
    address: str = ""
    region: str = ""
    email: str = ""


class Payment(BaseModel):
    """Payment transaction attached to an order. Amounts are integer minor units."""

    model_config = ConfigDict(frozen=True)

    transaction: str = ""
    request_id: str = ""
    currency: str = ""
    provider: str = ""
    amount: StrictInt = 0
    payment_dt: StrictInt = Field(default=0, description="Unix timestamp of the payment")
    bank: str = ""
    delivery_cost: StrictInt = 0
    goods_total: StrictInt = 0
    custom_fee: StrictInt = 0


class Item(BaseModel):
    """Single line of an order."""

    model_config = ConfigDict(frozen=True)

    chrt_id: StrictInt = 0
    track_number: str = ""
    price: StrictInt = 0
    rid: str = ""
    name: str = ""
    sale: StrictInt = 0
    size: str = ""
    total_price: StrictInt = 0
    nm_id: StrictInt = 0
    brand: str = ""
    status: StrictInt = 0


class Order(BaseModel):
    """
    Order aggregate root.

    Attributes:
        order_uid: Unique order identifier, the only lookup key
        track_number: Shipment tracking number
        delivery: Owned delivery details
        payment: Owned payment details
        items: Owned order lines, in the order they were received
        date_created: Creation timestamp reported by the producer
    """

    model_config = ConfigDict(frozen=True)

    order_uid: str = ""
    track_number: str = ""
    entry: str = ""
    delivery: Delivery = Field(default_factory=Delivery)
    payment: Payment = Field(default_factory=Payment)
    items: tuple[Item, ...] = ()
    locale: str = ""
    internal_signature: str = ""
    customer_id: str = ""
    delivery_service: str = ""
    shardkey: str = ""
    sm_id: StrictInt = 0
    date_created: Optional[datetime] = None
    oof_shard: str = ""

    @field_validator("delivery", "payment", "items", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any, info) -> Any:
        """Treat an explicit JSON null like an absent field."""
        if v is None:
            return () if info.field_name == "items" else {}
        return v

    @field_validator("date_created")
    @classmethod
    def naive_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Read a timestamp without offset as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


def decode_order(payload: Union[bytes, str]) -> Order:
    """
    Decode a JSON payload into an order.

    Args:
        payload: Raw JSON document, as received from the stream or HTTP body

    Returns:
        Decoded (not yet validated) order

    Raises:
        OrderDecodeError: If the payload is not JSON or does not have the
            shape of an order
    """
    try:
        return Order.model_validate_json(payload)
    except ValidationError as e:
        raise OrderDecodeError(
            "Payload is not a valid order document",
            error_count=e.error_count(),
            error=str(e),
        ) from e
