"""
Order aggregate and its validation rules.
"""

from orderstream.domain.order import Delivery, Item, Order, Payment, decode_order
from orderstream.domain.validation import validate_order, validate_order_uid

__all__ = [
    "Delivery",
    "Item",
    "Order",
    "Payment",
    "decode_order",
    "validate_order",
    "validate_order_uid",
]
