"""
Tests for text scoring helpers and the catalog search.
"""

import pytest

from larder.core.candidate_search import (
    EXACT,
    FUZZY,
    RECEIPT_EXACT,
    VERY_SIMILAR,
    ProductSearch,
    rank_candidates,
)
from larder.exceptions import CandidateLookupError
from larder.utils.search import (
    consonant_skeleton,
    dedup_key,
    is_abbreviation_of,
    levenshtein_similarity,
    normalize_text,
    token_sort_ratio,
    trigram_similarity,
    trigrams,
    unique,
)
from tests.test_utils import create_test_product, make_candidate, store_failure


def test_normalize_text():
    assert normalize_text("CHKN BRST, 5LB!") == "chkn brst 5lb"
    assert normalize_text("  Heavy   Cream ") == "heavy cream"
    assert normalize_text("") == ""
    assert normalize_text(None) == ""


def test_trigrams_are_padded_like_pg_trgm():
    assert trigrams("cat") == {"  c", " ca", "cat", "at "}


def test_trigram_similarity():
    assert trigram_similarity("chicken", "chicken") == 1.0
    assert trigram_similarity("chicken", "zzz") == 0.0
    assert 0.0 < trigram_similarity("chicken breast", "chicken brst") < 1.0
    assert trigram_similarity("", "chicken") == 0.0


def test_levenshtein_similarity_ignores_case_and_punctuation():
    assert levenshtein_similarity("Heavy Cream", "heavy-cream") == 1.0
    assert levenshtein_similarity("prst", "prest") == pytest.approx(0.8)


def test_token_sort_ratio_ignores_word_order():
    assert token_sort_ratio("Foods Sysco", "sysco foods") == 1.0


def test_consonant_skeleton():
    assert consonant_skeleton("PREST") == "prst"
    assert consonant_skeleton("Prst") == "prst"
    assert consonant_skeleton("Chicken Breast") == "chckn brst"


@pytest.mark.parametrize(
    "short, full, expected",
    [
        ("brst", "breast", True),
        ("chkn", "chicken", True),
        ("bread", "breast", False),
        ("rst", "breast", False),
        ("breast", "breast", False),
        ("", "breast", False),
    ],
)
def test_is_abbreviation_of(short, full, expected):
    assert is_abbreviation_of(short, full) is expected


def test_unique_keeps_first_occurrence():
    assert unique(["a", "", "b", "a", None, "c"]) == ["a", "b", "c"]


def test_dedup_key():
    assert dedup_key("  Napkins   Large ") == "napkins large"
    assert dedup_key("NAPKINS LARGE") == dedup_key("napkins large")
    assert dedup_key(None) == ""


def test_rank_candidates_orders_by_match_type_then_score():
    candidates = [
        make_candidate(1, "a", 0.9),
        make_candidate(2, "b", 0.5, VERY_SIMILAR),
        make_candidate(3, "c", 1.0, EXACT),
        make_candidate(4, "d", 0.1),
    ]
    ranked = rank_candidates(candidates, threshold=0.2, limit=5)
    assert [c.id for c in ranked] == [3, 2, 1]


def test_rank_candidates_keeps_weak_non_fuzzy_and_applies_limit():
    candidates = [make_candidate(i, str(i), 0.1, VERY_SIMILAR) for i in range(10)]
    assert len(rank_candidates(candidates, threshold=0.2, limit=5)) == 5


@pytest.mark.asyncio
async def test_search_receipt_exact(test_db):
    product = await create_test_product(test_db, receipt_item_names=["CHKN BRST 5LB"])

    candidates = await ProductSearch(test_db).search(1, "chkn brst 5lb")

    assert candidates[0].id == product.id
    assert candidates[0].match_type == RECEIPT_EXACT
    assert candidates[0].combined_score == 1.0
    assert candidates[0].receipt_item_names == ("CHKN BRST 5LB",)


@pytest.mark.asyncio
async def test_search_exact_name(test_db):
    await create_test_product(test_db, name="Chicken Breast")

    candidates = await ProductSearch(test_db).search(1, "CHICKEN BREAST")

    assert candidates[0].match_type == EXACT
    assert candidates[0].sku == "CHK-001"
    assert candidates[0].current_stock == 10.0


@pytest.mark.asyncio
async def test_search_consonant_skeleton_is_very_similar(test_db):
    await create_test_product(test_db, name="PREST", sku="PR-1")

    candidates = await ProductSearch(test_db).search(1, "Prst")

    assert candidates[0].match_type == VERY_SIMILAR


@pytest.mark.asyncio
async def test_search_fuzzy_scores(test_db):
    await create_test_product(test_db, name="Chicken Breast")

    candidates = await ProductSearch(test_db).search(1, "chicken brest")

    top = candidates[0]
    assert top.match_type in (VERY_SIMILAR, FUZZY)
    assert top.combined_score == pytest.approx(
        round(0.6 * top.similarity_score + 0.4 * top.levenshtein_score, 4), abs=1e-3
    )


@pytest.mark.asyncio
async def test_search_drops_weak_fuzzy_candidates(test_db):
    await create_test_product(test_db, name="Chicken Breast")

    assert await ProductSearch(test_db).search(1, "zzzz") == []


@pytest.mark.asyncio
async def test_search_is_scoped_to_restaurant(test_db):
    await create_test_product(test_db, name="Chicken Breast", restaurant_id=2)

    assert await ProductSearch(test_db).search(1, "Chicken Breast") == []


@pytest.mark.asyncio
async def test_search_blank_term(test_db):
    assert await ProductSearch(test_db).search(1, "   ") == []


class FailingSession:
    async def execute(self, *args, **kwargs):
        raise store_failure("SELECT")


@pytest.mark.asyncio
async def test_search_store_failure_raises_lookup_error():
    with pytest.raises(CandidateLookupError) as exc_info:
        await ProductSearch(FailingSession()).search(1, "chicken")
    assert exc_info.value.term == "chicken"
    assert isinstance(exc_info.value, LookupError)
