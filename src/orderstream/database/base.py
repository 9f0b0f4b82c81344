"""
SQLAlchemy declarative base.

All table models inherit from ``Base`` so that Alembic sees a single
metadata object.
"""

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.
    """

    __abstract__ = True

    def __repr__(self) -> str:
        """
        Generate string representation of model instance.

        Returns:
            String representation with primary key values
        """
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.name, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"
