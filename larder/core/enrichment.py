"""Packaging suggestions borrowed from matched products."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from larder.models.product import Product
from larder.schemas import ReceiptLineItemRead

# line item field -> (product field, suggestion field)
SUGGESTED_FIELDS = {
    "size_value": ("size_value", "suggested_size_value"),
    "size_unit": ("size_unit", "suggested_size_unit"),
    "package_type": ("package_type", "suggested_package_type"),
}


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def enrich_line_item(line_item: Any, product: Optional[Product]) -> ReceiptLineItemRead:
    """
    Return ``line_item`` as a read schema with packaging suggestions.

    A suggestion is only filled where the line's own field is absent and the
    product has a value; nothing on the line itself is changed.
    """
    read = ReceiptLineItemRead.model_validate(line_item)
    if product is None:
        return read

    suggestions = {}
    for line_field, (product_field, suggestion_field) in SUGGESTED_FIELDS.items():
        product_value = getattr(product, product_field, None)
        if _is_absent(getattr(read, line_field)) and not _is_absent(product_value):
            suggestions[suggestion_field] = product_value
    return read.model_copy(update=suggestions) if suggestions else read


def enrich_line_items(
    line_items: Iterable[Any],
    products_by_id: Mapping[int, Product],
) -> List[ReceiptLineItemRead]:
    """Enrich every line item; lines without a known match pass through unchanged."""
    return [
        enrich_line_item(
            item,
            products_by_id.get(item.matched_product_id) if item.matched_product_id else None,
        )
        for item in line_items
    ]
