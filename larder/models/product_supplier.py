"""
ProductSupplier model for Larder.

Aggregated purchasing history between one product and one supplier.
"""

from __future__ import annotations
from typing import Optional
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Timestamped


class ProductSupplier(Timestamped):
    """
    Purchase aggregate for a (product, supplier) pair.

    Attributes:
        id (int): Primary key
        restaurant_id (int): Owning restaurant
        product_id (int): Product
        supplier_id (int): Supplier
        supplier_product_name (Optional[str]): Name the supplier prints
        supplier_sku (Optional[str]): Supplier's own SKU
        last_unit_cost (Optional[Decimal]): Most recent unit cost
        last_purchase_date (Optional[date]): Most recent purchase date
        last_purchase_quantity (Optional[Decimal]): Most recent quantity
        average_unit_cost (Optional[Decimal]): Running average unit cost
        purchase_count (int): Number of purchases recorded
    """
    __tablename__ = "product_suppliers"
    __table_args__ = (
        UniqueConstraint("product_id", "supplier_id", name="uq_product_suppliers_product_supplier"),
    )

    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False)
    supplier_product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    supplier_sku: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    last_unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    last_purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_purchase_quantity: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 3), nullable=True)
    average_unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    purchase_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def record_purchase(self, unit_cost: Decimal, quantity: Decimal, purchased_on: date) -> None:
        """Fold one purchase into the running aggregate."""
        count = self.purchase_count or 0
        average = self.average_unit_cost if self.average_unit_cost is not None else Decimal("0")
        self.average_unit_cost = (average * count + unit_cost) / (count + 1)
        self.purchase_count = count + 1
        self.last_unit_cost = unit_cost
        self.last_purchase_quantity = quantity
        self.last_purchase_date = purchased_on
