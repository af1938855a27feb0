"""
ReceiptLineItem model for Larder.

This module defines the ReceiptLineItem model which represents one parsed row
of a receipt, along with its mapping lifecycle.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Timestamped

if TYPE_CHECKING:
    from .receipt_import import ReceiptImport


class MappingStatus(str, Enum):
    """Lifecycle tag of a receipt line item."""
    PENDING = "pending"
    MAPPED = "mapped"
    NEW_ITEM = "new_item"
    IGNORED = "ignored"


class ReceiptLineItem(Timestamped):
    """
    ReceiptLineItem model representing parsed receipt rows.

    Attributes:
        id (int): Primary key
        receipt_id (int): Foreign key to the receipt
        line_sequence (Optional[int]): Position on the receipt
        raw_text (str): Text as produced by OCR
        parsed_name (Optional[str]): Cleaned item name
        parsed_quantity (Optional[Decimal]): Quantity purchased
        parsed_unit (Optional[str]): Unit of the quantity
        parsed_price (Optional[Decimal]): Line amount
        parsed_sku (Optional[str]): Vendor SKU if printed
        unit_price (Optional[Decimal]): Explicit price per unit if printed
        package_type (Optional[str]): Container type
        size_value (Optional[Decimal]): Package size
        size_unit (Optional[str]): Unit of ``size_value``
        matched_product_id (Optional[int]): Resolved product
        confidence_score (Optional[float]): Score of the automatic match
        mapping_status (str): One of :class:`MappingStatus`
    """
    __tablename__ = "receipt_line_items"

    receipt_id: Mapped[int] = mapped_column(
        ForeignKey("receipt_imports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    line_sequence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    raw_text: Mapped[str] = mapped_column(String(255), nullable=False)
    parsed_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    parsed_quantity: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 3), nullable=True)
    parsed_unit: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    parsed_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    parsed_sku: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    package_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    size_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 3), nullable=True)
    size_unit: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    matched_product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    confidence_score: Mapped[Optional[float]] = mapped_column(nullable=True)
    mapping_status: Mapped[str] = mapped_column(String(16), nullable=False, default=MappingStatus.PENDING.value)

    receipt: Mapped["ReceiptImport"] = relationship("ReceiptImport", back_populates="items")

    @validates('raw_text')
    def validate_raw_text(self, key: str, value: str) -> str:
        """Validate raw receipt text."""
        if not value or not value.strip():
            raise ValueError("Raw text cannot be empty")
        return value.strip()

    @validates('mapping_status')
    def validate_mapping_status(self, key: str, value: str) -> str:
        """Validate mapping status."""
        return MappingStatus(value).value

    @validates('parsed_price', 'unit_price')
    def validate_price(self, key: str, value: Optional[Decimal]) -> Optional[Decimal]:
        """Validate prices."""
        if value is not None and value < 0:
            raise ValueError("Price cannot be negative")
        return value

    @property
    def display_name(self) -> str:
        """Name used when the line is recorded against a product."""
        return (self.parsed_name or "").strip() or self.raw_text

    def __str__(self) -> str:
        """Return string representation of the line item."""
        return f"{self.display_name} ({self.parsed_quantity} {self.parsed_unit or 'unit'})"
