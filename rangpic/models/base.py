"""
Base declarative class and mixins for SQLAlchemy models.

Database connection logic lives in rangpic.core.database.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase


def utc_now():
    """Returns current UTC time with timezone awareness."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns to models.

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = 'my_model'
            id = Column(Integer, primary_key=True)
    """

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
