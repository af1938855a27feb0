"""
Fuzzy catalog search for receipt text.

Scores every catalog product of a restaurant against one search variant
(trigram similarity and Levenshtein similarity, via RapidFuzz) and classifies
the match. The threshold only filters plain fuzzy candidates; the
auto-match decision applies its own policy afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from larder.config import get_settings
from larder.exceptions import CandidateLookupError
from larder.models.product import Product
from larder.utils.search import (
    consonant_skeleton,
    levenshtein_similarity,
    normalize_text,
    trigram_similarity,
)

logger = structlog.get_logger()

RECEIPT_EXACT = "receipt_exact"
EXACT = "exact"
VERY_SIMILAR = "very_similar"
FUZZY = "fuzzy"

# Strongest first
MATCH_TYPE_RANK: Dict[str, int] = {
    RECEIPT_EXACT: 3,
    EXACT: 2,
    VERY_SIMILAR: 1,
    FUZZY: 0,
}

SIMILARITY_WEIGHT = 0.6
LEVENSHTEIN_WEIGHT = 0.4
VERY_SIMILAR_LEVENSHTEIN = 0.85
MIN_SKELETON_LENGTH = 3


@dataclass(frozen=True)
class Candidate:
    """
    One ranked catalog candidate.

    Attributes:
        id: Product id
        name: Product name
        sku: Product SKU
        current_stock: Stock on hand
        receipt_item_names: Receipt texts already mapped to the product
        similarity_score: Trigram similarity (0-1)
        levenshtein_score: Normalized edit similarity (0-1)
        combined_score: Ranking score (0-1)
        match_type: receipt_exact / exact / very_similar / fuzzy
    """
    id: int
    name: str
    similarity_score: float
    levenshtein_score: float
    combined_score: float
    match_type: str
    sku: Optional[str] = None
    current_stock: Optional[float] = None
    receipt_item_names: Sequence[str] = field(default_factory=tuple)

    @property
    def rank(self) -> int:
        return MATCH_TYPE_RANK[self.match_type]


class CandidateSearch(Protocol):
    """Anything that can rank catalog candidates for a search term."""

    async def search(
        self,
        restaurant_id: int,
        term: str,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[Candidate]:
        ...


def score_product(term: str, product: Product) -> Candidate:
    """Score one product against a search term."""
    normalized = normalize_text(term)
    receipt_names = list(product.receipt_item_names or [])
    common = dict(
        id=product.id,
        name=product.name,
        sku=product.sku,
        current_stock=float(product.current_stock) if product.current_stock is not None else None,
        receipt_item_names=tuple(receipt_names),
    )

    if normalized and normalized in {normalize_text(name) for name in receipt_names}:
        return Candidate(similarity_score=1.0, levenshtein_score=1.0, combined_score=1.0,
                         match_type=RECEIPT_EXACT, **common)
    if normalized and normalized == normalize_text(product.name):
        return Candidate(similarity_score=1.0, levenshtein_score=1.0, combined_score=1.0,
                         match_type=EXACT, **common)

    best_similarity = best_levenshtein = best_combined = 0.0
    very_similar = False
    skeleton = consonant_skeleton(term)
    for target in [product.name, *receipt_names]:
        similarity = trigram_similarity(term, target)
        edit = levenshtein_similarity(term, target)
        combined = SIMILARITY_WEIGHT * similarity + LEVENSHTEIN_WEIGHT * edit
        if combined > best_combined:
            best_similarity, best_levenshtein, best_combined = similarity, edit, combined
        if edit >= VERY_SIMILAR_LEVENSHTEIN or (
            len(skeleton) >= MIN_SKELETON_LENGTH and skeleton == consonant_skeleton(target)
        ):
            very_similar = True

    return Candidate(
        similarity_score=round(best_similarity, 4),
        levenshtein_score=round(best_levenshtein, 4),
        combined_score=round(best_combined, 4),
        match_type=VERY_SIMILAR if very_similar else FUZZY,
        **common,
    )


def rank_candidates(candidates: List[Candidate], threshold: float, limit: int) -> List[Candidate]:
    """Drop weak fuzzy candidates and order by match type, then score."""
    kept = [c for c in candidates if c.match_type != FUZZY or c.combined_score >= threshold]
    kept.sort(key=lambda c: (c.rank, c.combined_score), reverse=True)
    return kept[:limit]


class ProductSearch:
    """Candidate search over the ``products`` table of one database."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def search(
        self,
        restaurant_id: int,
        term: str,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[Candidate]:
        """
        Rank the restaurant's products against ``term``.

        Args:
            restaurant_id: Restaurant whose catalog is searched
            term: One search variant
            threshold: Minimal combined score for plain fuzzy candidates
            limit: Maximal number of candidates

        Returns:
            Candidates, strongest first

        Raises:
            CandidateLookupError: the catalog could not be read
        """
        if not term or not term.strip():
            return []

        settings = get_settings()
        if threshold is None:
            threshold = settings.search_similarity_threshold
        if limit is None:
            limit = settings.search_limit

        try:
            res = await self.session.execute(
                select(Product).where(Product.restaurant_id == restaurant_id)
            )
            products = res.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Catalog search failed", term=term, restaurant_id=restaurant_id, error=str(e))
            raise CandidateLookupError(term) from e

        ranked = rank_candidates([score_product(term, p) for p in products], threshold, limit)
        logger.debug(
            "Catalog search",
            term=term,
            restaurant_id=restaurant_id,
            candidates=len(ranked),
            top=ranked[0].name if ranked else None,
        )
        return ranked
