"""
Exception hierarchy shared by every layer of the service.

Each exception carries a human-readable message plus structured context
(field names, order identifiers, underlying error text) that is passed
straight into log events.
"""

from typing import Any


class OrderStreamError(Exception):
    """Base exception for order stream errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class OrderValidationError(OrderStreamError):
    """Raised when caller-supplied data violates an order invariant."""

    @property
    def field(self) -> str | None:
        """Dotted path of the offending field, if known."""
        return self.context.get("field")


class OrderDecodeError(OrderStreamError):
    """Raised when a payload cannot be decoded into an order."""

    pass


class OrderNotFoundError(OrderStreamError):
    """Raised when the store has no order with the requested identifier."""

    pass


class OrderPersistenceError(OrderStreamError):
    """Raised when a store operation fails."""

    pass


class StartupError(OrderStreamError):
    """Raised when the service cannot initialize a required resource."""

    pass
