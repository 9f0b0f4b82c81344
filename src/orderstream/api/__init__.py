"""
HTTP API package.
"""

from orderstream.api.app import create_app

__all__ = ["create_app"]
