"""
models package
──────────────
Collects every table on one ``Base`` so ``Base.metadata`` is complete for
``create_all`` and alembic.
"""

from __future__ import annotations

from .base import Base, IntPK, Timestamped
from .supplier import Supplier
from .product import Product
from .product_abbreviation import ProductAbbreviation
from .product_supplier import ProductSupplier
from .receipt_import import ReceiptImport, ReceiptStatus
from .receipt_line_item import MappingStatus, ReceiptLineItem
from .inventory_transaction import InventoryTransaction, TransactionType

__all__ = [
    "Base",
    "IntPK",
    "Timestamped",
    "Supplier",
    "Product",
    "ProductAbbreviation",
    "ProductSupplier",
    "ReceiptImport",
    "ReceiptStatus",
    "ReceiptLineItem",
    "MappingStatus",
    "InventoryTransaction",
    "TransactionType",
]
