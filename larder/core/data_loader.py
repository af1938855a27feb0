"""
Seed data loading from CSV files.

Reads supplier, product and abbreviation lists with pandas, checks the
required columns and inserts the rows for one restaurant.
"""
from __future__ import annotations

import structlog
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Union

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from larder.exceptions import PersistenceError
from larder.models.product import Product
from larder.models.product_abbreviation import ProductAbbreviation
from larder.models.supplier import Supplier
from larder.utils.search import token_sort_ratio

logger = structlog.get_logger()

REQUIRED_COLUMNS: Dict[str, Set[str]] = {
    "suppliers": {"name"},
    "products": {"name", "sku"},
    "abbreviations": {"abbreviation", "full_term"},
}

SUPPLIER_MATCH_THRESHOLD = 0.8
RECEIPT_NAMES_SEPARATOR = "|"


def read_csv(path: Union[str, Path], kind: str) -> pd.DataFrame:
    """
    Read a seed CSV and check its columns.

    Args:
        path: CSV file
        kind: ``suppliers``, ``products`` or ``abbreviations``

    Returns:
        pd.DataFrame: file contents

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: unknown kind or missing required columns
    """
    if kind not in REQUIRED_COLUMNS:
        raise ValueError(f"Unknown seed type: {kind}")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    df = pd.read_csv(path, na_values=["", "nan", "NaN"], keep_default_na=True)
    missing = REQUIRED_COLUMNS[kind] - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns in {path.name}: {sorted(missing)}")

    logger.info("Seed file read", path=str(path), kind=kind, rows=len(df))
    return df


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Rows as dicts with NaN replaced by None."""
    return [
        {k: None if pd.isna(v) else v for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]


def _decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value).strip() or None


def find_supplier(suppliers: Sequence[Supplier], name: Optional[str]) -> Optional[Supplier]:
    """Exact (case-insensitive) supplier name, else the closest name above the threshold."""
    if not name or not suppliers:
        return None
    for supplier in suppliers:
        if supplier.name.lower() == name.lower():
            return supplier

    best = max(suppliers, key=lambda s: token_sort_ratio(s.name, name))
    if token_sort_ratio(best.name, name) >= SUPPLIER_MATCH_THRESHOLD:
        return best
    return None


def suppliers_from_frame(df: pd.DataFrame, restaurant_id: int) -> List[Supplier]:
    return [
        Supplier(
            restaurant_id=restaurant_id,
            name=str(row["name"]),
            contact_email=_text(row.get("contact_email")),
            contact_phone=_text(row.get("contact_phone")),
            notes=_text(row.get("notes")),
        )
        for row in _records(df)
    ]


def products_from_frame(
    df: pd.DataFrame,
    restaurant_id: int,
    suppliers: Sequence[Supplier] = (),
) -> List[Product]:
    """
    Build products from a frame.

    Optional columns: current_stock, cost_per_unit, uom_purchase, package_type,
    size_value, size_unit, supplier (name) and receipt_item_names
    (``|``-separated).
    """
    products = []
    for row in _records(df):
        supplier = find_supplier(suppliers, _text(row.get("supplier")))
        names = _text(row.get("receipt_item_names"))
        products.append(
            Product(
                restaurant_id=restaurant_id,
                name=str(row["name"]),
                sku=str(row["sku"]),
                current_stock=_decimal(row.get("current_stock")) or Decimal("0"),
                cost_per_unit=_decimal(row.get("cost_per_unit")),
                uom_purchase=_text(row.get("uom_purchase")),
                package_type=_text(row.get("package_type")),
                size_value=_decimal(row.get("size_value")),
                size_unit=_text(row.get("size_unit")),
                supplier_id=supplier.id if supplier else None,
                receipt_item_names=names.split(RECEIPT_NAMES_SEPARATOR) if names else [],
            )
        )
    return products


def abbreviations_from_frame(df: pd.DataFrame, restaurant_id: int) -> List[ProductAbbreviation]:
    entries: Dict[str, ProductAbbreviation] = {}
    for row in _records(df):
        entry = ProductAbbreviation(
            restaurant_id=restaurant_id,
            abbreviation=str(row["abbreviation"]),
            full_term=str(row["full_term"]),
        )
        # last row wins for a repeated abbreviation
        entries[entry.abbreviation] = entry
    return list(entries.values())


async def load_seed(
    session: AsyncSession,
    kind: str,
    path: Union[str, Path],
    restaurant_id: int,
) -> int:
    """
    Insert the rows of a seed CSV for one restaurant.

    Returns:
        int: number of inserted rows

    Raises:
        PersistenceError: the insert failed (nothing is inserted)
    """
    df = read_csv(path, kind)
    try:
        if kind == "suppliers":
            rows = suppliers_from_frame(df, restaurant_id)
        elif kind == "products":
            res = await session.execute(select(Supplier).where(Supplier.restaurant_id == restaurant_id))
            rows = products_from_frame(df, restaurant_id, res.scalars().all())
        else:
            res = await session.execute(
                select(ProductAbbreviation.abbreviation).where(
                    ProductAbbreviation.restaurant_id == restaurant_id
                )
            )
            known = set(res.scalars().all())
            rows = [a for a in abbreviations_from_frame(df, restaurant_id) if a.abbreviation not in known]

        session.add_all(rows)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Seed load failed", kind=kind, path=str(path), error=str(e))
        raise PersistenceError(f"failed to load {kind} from {path}") from e

    logger.info("Seed loaded", kind=kind, restaurant_id=restaurant_id, rows=len(rows))
    return len(rows)
