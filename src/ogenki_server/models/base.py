"""Base database model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base model for all database tables."""

    pass
