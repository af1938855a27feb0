"""
InventoryTransaction model for Larder.

This module defines the append-only inventory ledger.
"""

from __future__ import annotations
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import IntPK, utcnow


class TransactionType(str, Enum):
    """Kinds of ledger movements."""
    PURCHASE = "purchase"
    USAGE = "usage"
    ADJUSTMENT = "adjustment"
    WASTE = "waste"


class InventoryTransaction(IntPK):
    """
    Ledger row recording a quantity/cost delta for a product.

    Rows are never updated after insert.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        product_id (int): Product the movement applies to
        supplier_id (Optional[int]): Supplier of a purchase
        quantity (Decimal): Quantity delta
        unit_cost (Optional[Decimal]): Cost per unit
        total_cost (Optional[Decimal]): Cost of the whole movement
        transaction_type (str): One of :class:`TransactionType`
        reason (Optional[str]): Human readable origin
        reference_id (Optional[str]): Unique reference to the originating row
        transaction_date (Optional[date]): Business date of the movement
        created_at (datetime): Insert time
    """
    __tablename__ = "inventory_transactions"

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    total_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reference_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, unique=True)
    transaction_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __str__(self) -> str:
        """Return string representation of the transaction."""
        return f"{self.transaction_type} {self.quantity} of product {self.product_id}"


@event.listens_for(InventoryTransaction, "before_update")
def _reject_ledger_update(mapper, connection, target: InventoryTransaction) -> None:
    raise ValueError("Inventory transactions are append-only")
