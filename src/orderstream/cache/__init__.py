"""
Cache package initialization.

Provides the order cache interface and its in-memory and Redis
implementations.
"""

from orderstream.cache.base import OrderCache
from orderstream.cache.memory import InMemoryOrderCache, ReadWriteLock

__all__ = ["OrderCache", "InMemoryOrderCache", "ReadWriteLock"]
