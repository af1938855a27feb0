"""
Tests for the receipt text normalizer.
"""

import pytest
from sqlalchemy import select

from larder.core.normalizer import (
    COMMON_ABBREVIATIONS,
    RestaurantContext,
    SQLAbbreviationRepository,
    TextNormalizer,
)
from larder.models.product_abbreviation import ProductAbbreviation
from tests.test_utils import MemoryAbbreviationRepository


@pytest.mark.asyncio
async def test_load_context_merges_restaurant_entries():
    repository = MemoryAbbreviationRepository({"chkn": "chicken thigh", "zz": "zucchini"})
    context = await TextNormalizer(repository).load_context(7)

    assert context.restaurant_id == 7
    assert context.expansion_enabled
    assert context.abbreviations["chkn"] == "chicken thigh"
    assert context.abbreviations["zz"] == "zucchini"
    assert context.abbreviations["brst"] == COMMON_ABBREVIATIONS["brst"]


@pytest.mark.asyncio
async def test_load_failure_disables_expansion():
    normalizer = TextNormalizer(MemoryAbbreviationRepository(fail_load=True))
    context = await normalizer.load_context(1)

    assert not context.expansion_enabled
    assert normalizer.variants("CHKN BRST 5LB", context) == ["CHKN BRST 5LB"]


@pytest.mark.asyncio
async def test_variants_order():
    normalizer = TextNormalizer(MemoryAbbreviationRepository())
    context = await normalizer.load_context(1)

    assert normalizer.variants("CHKN BRST 5LB", context) == [
        "CHKN BRST 5LB",
        "chicken breast",
        "chicken breast 5lb",
        "chkn brst",
    ]


def test_learned_phrase_comes_right_after_input():
    context = RestaurantContext(restaurant_id=1, abbreviations={"spcl sauce": "house sauce"})
    variants = TextNormalizer(MemoryAbbreviationRepository()).variants("SPCL SAUCE 1GAL", context)

    assert variants[:2] == ["SPCL SAUCE 1GAL", "house sauce"]


def test_variants_are_unique_and_input_first():
    context = RestaurantContext(restaurant_id=1, abbreviations={})
    variants = TextNormalizer(MemoryAbbreviationRepository()).variants("napkins", context)

    assert variants == ["napkins"]


def test_variants_of_blank_text():
    context = RestaurantContext(restaurant_id=1, abbreviations={})
    assert TextNormalizer(MemoryAbbreviationRepository()).variants("  ", context) == []


@pytest.mark.asyncio
async def test_learn_stores_phrase_and_token_pairs():
    repository = MemoryAbbreviationRepository()
    normalizer = TextNormalizer(repository)
    context = RestaurantContext(restaurant_id=3, abbreviations={})

    assert await normalizer.learn(context, "CHKN BRST 5LB", "Chicken Breast")

    assert repository.entries == {
        "chkn brst": "chicken breast",
        "chkn": "chicken",
        "brst": "breast",
    }
    assert all(restaurant_id == 3 for restaurant_id, _, _ in repository.upserts)
    assert context.abbreviations["chkn brst"] == "chicken breast"


@pytest.mark.asyncio
async def test_learn_skips_unaligned_tokens():
    repository = MemoryAbbreviationRepository()
    context = RestaurantContext(restaurant_id=1, abbreviations={})

    await TextNormalizer(repository).learn(context, "SPCL SAUCE", "House Sauce")

    assert repository.entries == {"spcl sauce": "house sauce"}


@pytest.mark.asyncio
async def test_learn_nothing_to_learn():
    repository = MemoryAbbreviationRepository()
    context = RestaurantContext(restaurant_id=1, abbreviations={})

    assert await TextNormalizer(repository).learn(context, "Chicken Breast", "chicken breast")
    assert repository.upserts == []


@pytest.mark.asyncio
async def test_learn_failure_returns_false():
    normalizer = TextNormalizer(MemoryAbbreviationRepository(fail_upsert=True))
    context = RestaurantContext(restaurant_id=1, abbreviations={})

    assert await normalizer.learn(context, "CHKN BRST", "Chicken Breast") is False
    assert context.abbreviations == {}


@pytest.mark.asyncio
async def test_learn_partial_failure_keeps_stored_entries_in_context():
    repository = MemoryAbbreviationRepository(fail_after=1)
    context = RestaurantContext(restaurant_id=1, abbreviations={})

    assert await TextNormalizer(repository).learn(context, "CHKN BRST", "Chicken Breast") is False

    assert repository.entries == {"chkn brst": "chicken breast"}
    assert context.abbreviations == repository.entries


@pytest.mark.asyncio
async def test_learn_applies_to_next_line():
    normalizer = TextNormalizer(MemoryAbbreviationRepository())
    context = await normalizer.load_context(1)

    await normalizer.learn(context, "SPCL SAUCE", "House Sauce")

    assert "house sauce" in normalizer.variants("SPCL SAUCE", context)


@pytest.mark.asyncio
async def test_sql_repository_upsert_and_load(test_db):
    repository = SQLAbbreviationRepository(test_db)

    await repository.upsert(1, "CHKN", "chicken")
    await repository.upsert(1, "chkn", "chicken thigh")
    await repository.upsert(2, "chkn", "chicken")

    assert await repository.load(1) == {"chkn": "chicken thigh"}
    res = await test_db.execute(select(ProductAbbreviation))
    assert len(res.scalars().all()) == 2
