"""
Receipt text normalizer.

Turns vendor text such as ``CHKN BRST 5LB`` into an ordered list of search
variants using a per-restaurant abbreviation table, and learns new entries
from confirmed matches so later lines (and later receipts) expand better.

The table is carried in an explicit :class:`RestaurantContext` that callers
pass into every call; it is loaded once per session through an
:class:`AbbreviationRepository`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from larder.models.product_abbreviation import ProductAbbreviation
from larder.utils.search import is_abbreviation_of, normalize_text, unique
from larder.utils.unit_converter import strip_size_tokens

logger = structlog.get_logger()

# Abbreviations printed by most food distributors; restaurant entries win.
COMMON_ABBREVIATIONS: Dict[str, str] = {
    "bf": "beef",
    "bnls": "boneless",
    "brst": "breast",
    "btr": "butter",
    "chkn": "chicken",
    "chs": "cheese",
    "crm": "cream",
    "frz": "frozen",
    "grnd": "ground",
    "hvy": "heavy",
    "lett": "lettuce",
    "mozz": "mozzarella",
    "org": "organic",
    "pot": "potato",
    "pwdr": "powder",
    "sknls": "skinless",
    "shrd": "shredded",
    "tom": "tomato",
    "veg": "vegetable",
    "whl": "whole",
    "wht": "white",
    "yel": "yellow",
}


@dataclass
class RestaurantContext:
    """
    Normalization state for one restaurant, passed explicitly.

    Attributes:
        restaurant_id: Restaurant the table belongs to
        abbreviations: ``abbreviation -> full term`` table, ``None`` when the
            table could not be loaded (exact text only)
    """
    restaurant_id: int
    abbreviations: Optional[Dict[str, str]] = None

    @property
    def expansion_enabled(self) -> bool:
        return self.abbreviations is not None


class AbbreviationRepository(Protocol):
    """Storage of the per-restaurant abbreviation table."""

    async def load(self, restaurant_id: int) -> Dict[str, str]:
        ...

    async def upsert(self, restaurant_id: int, abbreviation: str, full_term: str) -> None:
        ...


class SQLAbbreviationRepository:
    """Abbreviation table stored in ``product_abbreviations``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load(self, restaurant_id: int) -> Dict[str, str]:
        res = await self.session.execute(
            select(ProductAbbreviation.abbreviation, ProductAbbreviation.full_term).where(
                ProductAbbreviation.restaurant_id == restaurant_id
            )
        )
        return {abbreviation: full_term for abbreviation, full_term in res.all()}

    async def upsert(self, restaurant_id: int, abbreviation: str, full_term: str) -> None:
        abbreviation = abbreviation.strip().lower()
        try:
            res = await self.session.execute(
                select(ProductAbbreviation).where(
                    ProductAbbreviation.restaurant_id == restaurant_id,
                    ProductAbbreviation.abbreviation == abbreviation,
                )
            )
            entry = res.scalar_one_or_none()
            if entry is None:
                self.session.add(
                    ProductAbbreviation(
                        restaurant_id=restaurant_id,
                        abbreviation=abbreviation,
                        full_term=full_term,
                    )
                )
            else:
                entry.full_term = full_term
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise


class TextNormalizer:
    """Builds search variants and learns corrections."""

    def __init__(self, repository: AbbreviationRepository) -> None:
        self.repository = repository

    async def load_context(self, restaurant_id: int) -> RestaurantContext:
        """
        Load the abbreviation table for a restaurant.

        A failing load degrades to a context without a table instead of
        raising; ``variants`` then only returns the exact input.
        """
        try:
            custom = await self.repository.load(restaurant_id)
        except SQLAlchemyError as e:
            logger.warning(
                "Abbreviation table unavailable, expansion disabled",
                restaurant_id=restaurant_id,
                error=str(e),
            )
            return RestaurantContext(restaurant_id=restaurant_id, abbreviations=None)

        table = dict(COMMON_ABBREVIATIONS)
        table.update(custom)
        logger.debug("Abbreviation table loaded", restaurant_id=restaurant_id, custom_entries=len(custom))
        return RestaurantContext(restaurant_id=restaurant_id, abbreviations=table)

    def variants(self, text: str, context: RestaurantContext) -> List[str]:
        """
        Return search variants for ``text``, the unmodified input first.

        Order after the input: learned whole-phrase correction, expanded and
        size-stripped, expanded, size-stripped, punctuation-cleaned.
        """
        if not text or not text.strip():
            return []
        if not context.expansion_enabled:
            return [text]

        table = context.abbreviations or {}
        cleaned = normalize_text(text)
        stripped = normalize_text(strip_size_tokens(text.lower()))

        candidates = [
            table.get(stripped) or table.get(cleaned),
            _expand(stripped, table),
            _expand(cleaned, table),
            stripped,
            cleaned,
        ]
        result = [text]
        seen = {text.strip().lower()}
        for candidate in unique(candidates):
            if candidate not in seen:
                seen.add(candidate)
                result.append(candidate)
        return result

    async def learn(self, context: RestaurantContext, original_text: str, confirmed_name: str) -> bool:
        """
        Record a confirmed ``original_text -> confirmed_name`` correction.

        Stores the whole cleaned phrase plus every aligned token that looks
        like an abbreviation of its counterpart, and updates ``context`` so the
        entries apply immediately.

        :return: False if the store rejected the entries (the session was
            rolled back), True otherwise
        """
        source = normalize_text(strip_size_tokens((original_text or "").lower()))
        target = normalize_text(confirmed_name or "")
        if not source or not target or source == target:
            return True

        entries: Dict[str, str] = {source: target}
        source_tokens, target_tokens = source.split(), target.split()
        if len(source_tokens) == len(target_tokens):
            for short, full in zip(source_tokens, target_tokens):
                if short != full and is_abbreviation_of(short, full):
                    entries[short] = full

        try:
            for abbreviation, full_term in entries.items():
                await self.repository.upsert(context.restaurant_id, abbreviation, full_term)
                # each upsert commits on its own, keep the table in step with the store
                if context.abbreviations is not None:
                    context.abbreviations[abbreviation] = full_term
        except SQLAlchemyError as e:
            logger.error(
                "Failed to learn correction",
                restaurant_id=context.restaurant_id,
                original_text=original_text,
                confirmed_name=confirmed_name,
                error=str(e),
            )
            return False

        logger.info(
            "Learned correction",
            restaurant_id=context.restaurant_id,
            original_text=original_text,
            confirmed_name=confirmed_name,
            entries=len(entries),
        )
        return True


def _expand(text: str, table: Dict[str, str]) -> str:
    """Replace every token that has an entry in ``table``."""
    if not text:
        return ""
    return " ".join(table.get(token, token) for token in text.split())
