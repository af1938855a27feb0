"""
Automatic resolution of pending receipt lines.

Lines are processed one at a time, in receipt order: a correction learned
from one line is already in the context when the next line is normalized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from larder.config import get_settings
from larder.core.candidate_search import (
    EXACT,
    RECEIPT_EXACT,
    VERY_SIMILAR,
    Candidate,
    CandidateSearch,
)
from larder.core.mapping_store import MappingStore
from larder.core.normalizer import RestaurantContext, TextNormalizer
from larder.exceptions import CandidateLookupError, PersistenceError
from larder.models.receipt_line_item import MappingStatus, ReceiptLineItem
from larder.schemas import MappingUpdate

logger = structlog.get_logger()

AUTO_ACCEPT_MATCH_TYPES = frozenset({RECEIPT_EXACT, EXACT, VERY_SIMILAR})


@dataclass
class AutoMatchSummary:
    """
    Outcome of one matching pass.

    Attributes:
        matched: Updated rows keyed by line item id
        pending: Ids left for human review
        failed: Ids whose mapping write failed
        degraded: A write was rolled back during the pass, loaded rows may be stale
    """
    matched: Dict[int, ReceiptLineItem] = field(default_factory=dict)
    pending: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    degraded: bool = False


def is_confident(candidate: Optional[Candidate], min_score: Optional[float] = None) -> bool:
    """Acceptance policy for an automatic match."""
    if candidate is None:
        return False
    if min_score is None:
        min_score = get_settings().auto_match_min_score
    return candidate.match_type in AUTO_ACCEPT_MATCH_TYPES or candidate.combined_score > min_score


async def best_candidate(
    search: CandidateSearch,
    restaurant_id: int,
    variants: Sequence[str],
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
) -> Optional[Candidate]:
    """
    Top candidate across all variants.

    A later variant replaces the current best only with a strictly higher
    combined score. A variant whose search fails is skipped.
    """
    best: Optional[Candidate] = None
    for variant in variants:
        try:
            candidates = await search.search(restaurant_id, variant, threshold, limit)
        except CandidateLookupError as e:
            logger.warning("Skipping search variant", variant=variant, error=str(e))
            continue
        top = candidates[0] if candidates else None
        if top is not None and (best is None or top.combined_score > best.combined_score):
            best = top
    return best


async def auto_match_line_items(
    line_items: Sequence[ReceiptLineItem],
    context: RestaurantContext,
    normalizer: TextNormalizer,
    search: CandidateSearch,
    store: MappingStore,
) -> AutoMatchSummary:
    """
    Resolve every ``pending`` line that has a confident catalog match.

    Lines in any other status are skipped unconditionally, so running the
    pass again is a no-op for them.
    """
    settings = get_settings()
    summary = AutoMatchSummary()

    # Plain values up front: a rolled back write expires the loaded rows.
    pending = [
        (item.id, item.parsed_name or item.raw_text)
        for item in line_items
        if item.mapping_status == MappingStatus.PENDING
    ]

    for line_item_id, search_term in pending:
        if not search_term or len(search_term.strip()) < settings.min_search_term_length:
            summary.pending.append(line_item_id)
            continue

        variants = normalizer.variants(search_term, context)
        best = await best_candidate(
            search,
            context.restaurant_id,
            variants,
            settings.search_similarity_threshold,
            settings.search_limit,
        )
        if not is_confident(best, settings.auto_match_min_score):
            logger.debug(
                "No confident match",
                line_item_id=line_item_id,
                search_term=search_term,
                best=best.name if best else None,
                score=best.combined_score if best else None,
            )
            summary.pending.append(line_item_id)
            continue

        try:
            updated = await store.update(
                line_item_id,
                MappingUpdate(
                    matched_product_id=best.id,
                    mapping_status=MappingStatus.MAPPED,
                    confidence_score=best.combined_score,
                ),
            )
        except (PersistenceError, ValueError) as e:
            logger.error("Auto-match write failed", line_item_id=line_item_id, error=str(e))
            summary.failed.append(line_item_id)
            summary.degraded = True
            continue
        if updated is None:
            summary.failed.append(line_item_id)
            continue

        summary.matched[line_item_id] = updated
        logger.info(
            "Line item auto-matched",
            line_item_id=line_item_id,
            search_term=search_term,
            product_id=best.id,
            product_name=best.name,
            match_type=best.match_type,
            score=best.combined_score,
        )

        if best.match_type != RECEIPT_EXACT:
            if not await normalizer.learn(context, search_term, best.name):
                # the store rolled the session back
                summary.degraded = True

    return summary
