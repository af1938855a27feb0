"""
ProductAbbreviation model for Larder.

This module defines the per-restaurant abbreviation/correction table that the
text normalizer expands receipt text with.
"""

from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Timestamped


class ProductAbbreviation(Timestamped):
    """
    Abbreviation -> full term entry, scoped per restaurant.

    The abbreviation may be a single token (``chkn``) or a whole cleaned
    receipt phrase learned from a confirmed match.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        abbreviation (str): Lower-cased receipt token or phrase
        full_term (str): Canonical expansion
    """
    __tablename__ = "product_abbreviations"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "abbreviation", name="uq_product_abbreviations_restaurant_abbr"),
    )

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    abbreviation: Mapped[str] = mapped_column(String(255), nullable=False)
    full_term: Mapped[str] = mapped_column(String(255), nullable=False)

    @validates('abbreviation', 'full_term')
    def validate_term(self, key: str, value: str) -> str:
        """Store terms stripped and lower-cased."""
        if not value or not value.strip():
            raise ValueError(f"{key} cannot be empty")
        return value.strip().lower()

    def __str__(self) -> str:
        """Return string representation of the entry."""
        return f"{self.abbreviation} -> {self.full_term}"
