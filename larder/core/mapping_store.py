"""
Persistence of line item resolutions.

Writes return the updated row, so callers never need a second read to see
their own change.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from larder.exceptions import PersistenceError
from larder.models.product import Product
from larder.models.receipt_line_item import MappingStatus, ReceiptLineItem
from larder.schemas import MappingUpdate
from larder.utils.search import dedup_key

logger = structlog.get_logger()


class MappingStore:
    """Read/write access to ``receipt_line_items`` mappings of one restaurant."""

    def __init__(self, session: AsyncSession, restaurant_id: int) -> None:
        self.session = session
        self.restaurant_id = restaurant_id

    async def list_line_items(self, receipt_id: int) -> List[ReceiptLineItem]:
        """Return the receipt's line items in receipt order."""
        try:
            res = await self.session.execute(
                select(ReceiptLineItem)
                .where(ReceiptLineItem.receipt_id == receipt_id)
                .order_by(ReceiptLineItem.line_sequence, ReceiptLineItem.id)
            )
            return list(res.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to read line items", receipt_id=receipt_id, error=str(e))
            raise PersistenceError(f"cannot read line items of receipt {receipt_id}") from e

    async def update(
        self,
        line_item_id: int,
        updates: Union[MappingUpdate, Dict[str, Any]],
    ) -> Optional[ReceiptLineItem]:
        """
        Apply ``updates`` to one line item and commit.

        :return: the updated line item, or None if it does not exist
        :raises ValueError: the update would leave a ``mapped`` line without a
            product of this restaurant
        :raises PersistenceError: the write failed
        """
        if not isinstance(updates, MappingUpdate):
            updates = MappingUpdate.model_validate(updates)
        values = updates.model_dump(exclude_unset=True)

        try:
            item = await self.session.get(ReceiptLineItem, line_item_id)
            if item is None:
                logger.warning("Line item not found", line_item_id=line_item_id)
                return None

            status = values.get("mapping_status", item.mapping_status)
            product_id = values.get("matched_product_id", item.matched_product_id)
            if status == MappingStatus.MAPPED:
                product = await self.session.get(Product, product_id) if product_id is not None else None
                if product is None or product.restaurant_id != self.restaurant_id:
                    raise ValueError(f"line item {line_item_id} cannot be mapped to product {product_id}")

            for key, value in values.items():
                setattr(item, key, value)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to update line item mapping", line_item_id=line_item_id, error=str(e))
            raise PersistenceError("failed to update item mapping", line_item_id=line_item_id) from e

        logger.info("Line item mapping updated", line_item_id=line_item_id, **_loggable(values))
        return item

    async def apply_to_duplicates(
        self,
        line_item: ReceiptLineItem,
        updates: Union[MappingUpdate, Dict[str, Any]],
    ) -> List[ReceiptLineItem]:
        """
        Apply a decision to the other pending lines of the same receipt that
        carry the same item name.

        Quantities and prices are per line and are never copied.
        """
        if not isinstance(updates, MappingUpdate):
            updates = MappingUpdate.model_validate(updates)
        key = dedup_key(line_item.parsed_name)
        if not key:
            return []

        shared = updates.model_dump(
            exclude_unset=True, include={"matched_product_id", "mapping_status"}
        )
        if not shared:
            return []

        updated = []
        for other in await self.list_line_items(line_item.receipt_id):
            if (
                other.id != line_item.id
                and other.mapping_status == MappingStatus.PENDING
                and dedup_key(other.parsed_name) == key
            ):
                result = await self.update(other.id, shared)
                if result is not None:
                    updated.append(result)
        return updated


def _loggable(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: str(getattr(value, "value", value)) if value is not None else None for key, value in values.items()}
