"""
Receipt import service.

Ties the components together for one restaurant and one session:

    list_line_items  -> auto-match pending lines, return enriched rows
    update_mapping   -> human correction (optionally for duplicate lines)
    commit           -> bulk commit into inventory
    finalize         -> re-write the receipt total after a failed commit end
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from larder.core.auto_match import auto_match_line_items
from larder.core.bulk_committer import BulkCommitter, CommitReport
from larder.core.candidate_search import CandidateSearch, ProductSearch
from larder.core.enrichment import enrich_line_items
from larder.core.mapping_store import MappingStore
from larder.core.normalizer import (
    AbbreviationRepository,
    RestaurantContext,
    SQLAbbreviationRepository,
    TextNormalizer,
)
from larder.exceptions import ConfigurationError, PersistenceError
from larder.models.product import Product
from larder.models.receipt_line_item import MappingStatus
from larder.schemas import MappingUpdate, ReceiptLineItemRead

logger = structlog.get_logger()


class ReceiptImportService:
    """Receipt review and import for one restaurant."""

    def __init__(
        self,
        session: AsyncSession,
        restaurant_id: Optional[int],
        search: Optional[CandidateSearch] = None,
        repository: Optional[AbbreviationRepository] = None,
    ) -> None:
        if restaurant_id is None:
            raise ConfigurationError("no active restaurant")
        self.session = session
        self.restaurant_id = restaurant_id
        self.store = MappingStore(session, restaurant_id)
        self.search = search or ProductSearch(session)
        self.normalizer = TextNormalizer(repository or SQLAbbreviationRepository(session))
        self.committer = BulkCommitter(session, restaurant_id)
        self._context: Optional[RestaurantContext] = None

    async def context(self) -> RestaurantContext:
        """Abbreviation context, loaded on first use."""
        if self._context is None:
            self._context = await self.normalizer.load_context(self.restaurant_id)
        return self._context

    async def list_line_items(self, receipt_id: int) -> List[ReceiptLineItemRead]:
        """
        Auto-match the pending lines of a receipt and return all of its lines
        with packaging suggestions.

        Calling it again returns the same result: resolved lines are left alone.
        """
        items = await self.store.list_line_items(receipt_id)
        summary = await auto_match_line_items(
            items, await self.context(), self.normalizer, self.search, self.store
        )
        if summary.degraded:
            items = await self.store.list_line_items(receipt_id)

        products = await self._products_by_id(
            item.matched_product_id for item in items if item.matched_product_id
        )
        logger.info(
            "Receipt line items listed",
            receipt_id=receipt_id,
            lines=len(items),
            auto_matched=len(summary.matched),
            pending=len(summary.pending),
            failed=len(summary.failed),
        )
        return enrich_line_items(items, products)

    async def update_mapping(
        self,
        line_item_id: int,
        updates: Union[MappingUpdate, Dict[str, Any]],
        apply_to_duplicates: bool = False,
    ) -> bool:
        """
        Apply a human decision to one line.

        With ``apply_to_duplicates`` the product/status decision is copied to
        the other pending lines of the receipt with the same item name. A
        confirmed ``mapped`` decision is learned as a correction.
        """
        if not isinstance(updates, MappingUpdate):
            updates = MappingUpdate.model_validate(updates)

        try:
            item = await self.store.update(line_item_id, updates)
            if item is None:
                return False
            original_text = item.display_name
            product_id = item.matched_product_id
            is_mapped = item.mapping_status == MappingStatus.MAPPED
            if apply_to_duplicates:
                await self.store.apply_to_duplicates(item, updates)
        except (PersistenceError, ValueError) as e:
            logger.warning("Mapping update rejected", line_item_id=line_item_id, error=str(e))
            return False

        if is_mapped and updates.mapping_status == MappingStatus.MAPPED:
            product = await self.session.get(Product, product_id)
            if product is not None and product.restaurant_id == self.restaurant_id:
                await self.normalizer.learn(await self.context(), original_text, product.name)
        return True

    async def commit(self, receipt_id: int) -> CommitReport:
        return await self.committer.commit(receipt_id)

    async def finalize(self, receipt_id: int) -> bool:
        return await self.committer.finalize(receipt_id)

    async def _products_by_id(self, ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(ids)
        if not ids:
            return {}
        res = await self.session.execute(
            select(Product).where(Product.id.in_(ids), Product.restaurant_id == self.restaurant_id)
        )
        return {product.id: product for product in res.scalars().all()}
