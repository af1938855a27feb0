"""
Product model for Larder.

This module defines the Product model which represents catalog entries in the
database. Stock and cost are mutated by every committed purchase, so the row
carries a version counter and stale writes fail instead of silently
overwriting each other.
"""

from __future__ import annotations
from typing import List, Optional
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Timestamped


class Product(Timestamped):
    """
    Product model representing catalog entries in the database.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        name (str): Product name
        sku (str): Stock keeping unit, unique per restaurant
        current_stock (Decimal): Quantity on hand
        cost_per_unit (Optional[Decimal]): Last purchase cost per unit
        uom_purchase (Optional[str]): Purchasing unit used for cost accounting
        package_type (Optional[str]): Container type (bottle, bag, case...)
        size_value (Optional[Decimal]): Numeric package size
        size_unit (Optional[str]): Unit of ``size_value``
        supplier_id (Optional[int]): Last known supplier
        receipt_item_names (List[str]): Every receipt text ever mapped here
        version (int): Optimistic concurrency counter
    """
    __tablename__ = "products"

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(64), nullable=False)
    current_stock: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    cost_per_unit: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    uom_purchase: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    package_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    size_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 3), nullable=True)
    size_unit: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    receipt_item_names: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @validates('name')
    def validate_name(self, key: str, value: str) -> str:
        """Validate product name."""
        if not value or not value.strip():
            raise ValueError("Product name cannot be empty")
        return value.strip()

    @validates('sku')
    def validate_sku(self, key: str, value: str) -> str:
        """Validate product SKU."""
        if not value or not value.strip():
            raise ValueError("Product SKU cannot be empty")
        return value.strip()

    @validates('cost_per_unit')
    def validate_cost(self, key: str, value: Optional[Decimal]) -> Optional[Decimal]:
        """Validate cost per unit."""
        if value is not None and value < 0:
            raise ValueError("Cost cannot be negative")
        return value

    @validates('receipt_item_names')
    def validate_receipt_item_names(self, key: str, value: Optional[List[str]]) -> List[str]:
        """Keep the receipt name history duplicate-free, preserving order."""
        names: List[str] = []
        for name in value or []:
            if name and name not in names:
                names.append(name)
        return names

    def with_receipt_name(self, name: str) -> List[str]:
        """Return the receipt name history extended with ``name`` (no duplicates)."""
        names = list(self.receipt_item_names or [])
        if name and name not in names:
            names.append(name)
        return names

    def __str__(self) -> str:
        """Return string representation of the product."""
        return f"{self.name} ({self.sku})"
