# larder/__init__.py
"""
Larder: receipt-to-inventory reconciliation.

This module:
* configures structlog from settings
* exposes the library surface (``ReceiptImportService``) and the models
"""

from __future__ import annotations

# --- Configuration -----------------------------------------------------
from larder.config import get_settings, settings  # noqa: F401

# --- Logging -----------------------------------------------------------
from larder.utils.logger import configure_logging

configure_logging(settings.log_level, settings.log_json)

# --- Public surface ----------------------------------------------------
from larder.models import (  # noqa: E402,F401
    Base,
    InventoryTransaction,
    MappingStatus,
    Product,
    ProductAbbreviation,
    ProductSupplier,
    ReceiptImport,
    ReceiptLineItem,
    ReceiptStatus,
    Supplier,
)
from larder.core.receipt_import import ReceiptImportService  # noqa: E402,F401

__all__ = [
    "settings",
    "get_settings",
    "ReceiptImportService",
    # models
    "Base",
    "Supplier",
    "Product",
    "ProductAbbreviation",
    "ProductSupplier",
    "ReceiptImport",
    "ReceiptStatus",
    "ReceiptLineItem",
    "MappingStatus",
    "InventoryTransaction",
]
