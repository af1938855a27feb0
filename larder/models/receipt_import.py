"""
ReceiptImport model for Larder.

This module defines the ReceiptImport model which represents one uploaded
receipt and the MappingStatus / ReceiptStatus vocabularies shared by the
receipt tables.
"""

from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Timestamped

if TYPE_CHECKING:
    from .receipt_line_item import ReceiptLineItem


class ReceiptStatus(str, Enum):
    """Lifecycle of an uploaded receipt."""
    UPLOADED = "uploaded"
    PROCESSED = "processed"
    IMPORTED = "imported"


class ReceiptImport(Timestamped):
    """
    ReceiptImport model representing uploaded receipts in the database.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        vendor_name (Optional[str]): Vendor as printed on the receipt
        supplier_id (Optional[int]): Resolved supplier
        purchase_date (Optional[date]): Date of purchase
        file_name (Optional[str]): Original upload name
        status (str): One of :class:`ReceiptStatus`
        total_amount (Optional[Decimal]): Total as parsed from the receipt
        imported_total (Optional[Decimal]): Sum of committed line amounts
        processed_at (Optional[datetime]): When the receipt was imported
        items (List[ReceiptLineItem]): Parsed line items
    """
    __tablename__ = "receipt_imports"

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vendor_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ReceiptStatus.UPLOADED.value)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    imported_total: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[List["ReceiptLineItem"]] = relationship(
        "ReceiptLineItem", back_populates="receipt", cascade="all, delete-orphan"
    )

    @validates('status')
    def validate_status(self, key: str, value: str) -> str:
        """Validate receipt status."""
        return ReceiptStatus(value).value

    @validates('imported_total', 'total_amount')
    def validate_total(self, key: str, value: Optional[Decimal]) -> Optional[Decimal]:
        """Validate totals."""
        if value is not None and value < 0:
            raise ValueError("Total cannot be negative")
        return value

    def __str__(self) -> str:
        """Return string representation of the receipt."""
        return f"Receipt #{self.id} from {self.vendor_name or 'unknown vendor'}"
