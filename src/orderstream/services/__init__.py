"""
Service layer.
"""

from orderstream.services.orders import OrderService

__all__ = ["OrderService"]
