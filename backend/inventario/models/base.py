"""Shared declarative base for all ORM models.

Having a single ``Base`` class keeps the SQLAlchemy metadata in one place so
that the schema migrator and test setup create and repair the same tables.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass
