"""
Supplier model for Larder.

This module defines the Supplier model which represents the vendors a
restaurant buys from.
"""

from __future__ import annotations
from typing import Optional
import re

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Timestamped


class Supplier(Timestamped):
    """
    Supplier model representing vendors in the database.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        name (str): Supplier name
        contact_email (Optional[str]): Contact email
        contact_phone (Optional[str]): Contact phone number
        is_active (bool): Whether the supplier is still used
        notes (Optional[str]): Additional notes
    """
    __tablename__ = "suppliers"

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    @validates('name')
    def validate_name(self, key: str, value: str) -> str:
        """Validate supplier name."""
        if not value or not value.strip():
            raise ValueError("Supplier name cannot be empty")
        return value.strip()

    @validates('contact_email')
    def validate_email(self, key: str, value: Optional[str]) -> Optional[str]:
        """Validate email address."""
        if value:
            value = value.strip()
            if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
                raise ValueError("Invalid email format")
            return value
        return None

    @validates('contact_phone')
    def validate_phone(self, key: str, value: Optional[str]) -> Optional[str]:
        """Validate phone number."""
        if value:
            value = value.strip()
            if not re.match(r'^\+?[\d\s\-\(\)]+$', value):
                raise ValueError("Invalid phone number format")
            return value
        return None

    def __str__(self) -> str:
        """Return string representation of the supplier."""
        return self.name
