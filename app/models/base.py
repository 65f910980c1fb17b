"""
Declarative base.

All models inherit from Base so Alembic and tests share one metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""
