"""
Order store interface and implementations.
"""

from orderstream.repositories.base import OrderStore
from orderstream.repositories.memory import InMemoryOrderStore

__all__ = ["OrderStore", "InMemoryOrderStore"]
