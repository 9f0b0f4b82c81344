"""
Core package for shared utilities.

Configuration, structured logging and the exception hierarchy used across
the service.
"""
