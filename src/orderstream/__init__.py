"""
orderstream: order event ingestion with durable storage and a cached read API.
"""

__version__ = "1.0.0"
