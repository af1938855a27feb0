"""
Base model and mixins for Larder.

This module defines the base SQLAlchemy model and common mixins used by other models.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time used for column defaults."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class IntPK(Base):
    """
    Mixin that adds an integer primary key column.

    Attributes:
        id (int): Primary key
    """
    __abstract__ = True
    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class Timestamped(IntPK):
    """
    Mixin that adds creation/update timestamps on top of the integer key.

    Attributes:
        created_at (datetime): Row creation time
        updated_at (datetime): Last modification time
    """
    __abstract__ = True
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
