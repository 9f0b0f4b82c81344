"""
Database package initialization.

The package follows a modular structure:
- base: declarative base shared by all models
- models: table models for orders, deliveries, payments and items
- connection: async engine, session factory and connectivity check
"""

# Import submodules explicitly when needed to avoid circular dependencies

__all__ = []
