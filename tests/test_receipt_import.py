"""
End-to-end tests for the receipt import service.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from larder.core.bulk_committer import LineOutcome
from larder.core.candidate_search import EXACT
from larder.exceptions import ConfigurationError
from larder.models.product import Product
from larder.models.product_abbreviation import ProductAbbreviation
from larder.models.receipt_line_item import MappingStatus
from larder.schemas import MappingUpdate
from larder.core.receipt_import import ReceiptImportService
from tests.test_utils import (
    StubSearch,
    create_test_line_item,
    create_test_product,
    create_test_receipt,
    make_candidate,
)


def test_missing_restaurant_is_rejected(test_db):
    with pytest.raises(ConfigurationError):
        ReceiptImportService(test_db, None)


@pytest.mark.asyncio
async def test_list_matches_and_enriches(test_db):
    product = await create_test_product(
        test_db, name="Chicken Breast", package_type="case", size_value=Decimal("40"), size_unit="lb"
    )
    receipt = await create_test_receipt(test_db)
    chicken = await create_test_line_item(test_db, receipt.id, "CHICKEN BREAST", 1, parsed_quantity=Decimal("2"))
    napkins = await create_test_line_item(test_db, receipt.id, "NAPKINS", 2)
    service = ReceiptImportService(test_db, 1)

    lines = await service.list_line_items(receipt.id)

    assert [line.id for line in lines] == [chicken.id, napkins.id]
    assert lines[0].mapping_status == MappingStatus.MAPPED
    assert lines[0].matched_product_id == product.id
    assert lines[0].confidence_score == pytest.approx(1.0)
    assert (lines[0].suggested_package_type, lines[0].suggested_size_value, lines[0].suggested_size_unit) == (
        "case", Decimal("40"), "lb"
    )
    assert lines[0].package_type is None
    assert lines[1].mapping_status == MappingStatus.PENDING
    assert lines[1].suggested_package_type is None


@pytest.mark.asyncio
async def test_listing_twice_gives_the_same_result(test_db):
    await create_test_product(test_db, name="Chicken Breast")
    receipt = await create_test_receipt(test_db)
    await create_test_line_item(test_db, receipt.id, "CHICKEN BREAST", 1)
    await create_test_line_item(test_db, receipt.id, "NAPKINS", 2)
    service = ReceiptImportService(test_db, 1)

    first = await service.list_line_items(receipt.id)
    second = await service.list_line_items(receipt.id)

    assert [line.model_dump() for line in first] == [line.model_dump() for line in second]


@pytest.mark.asyncio
async def test_injected_search_is_used(test_db):
    product = await create_test_product(test_db, name="Heavy Cream")
    receipt = await create_test_receipt(test_db)
    await create_test_line_item(test_db, receipt.id, "HVY CRM QT", 1)
    search = StubSearch({"HVY CRM QT": [make_candidate(product.id, "Heavy Cream", 1.0, EXACT)]})

    lines = await ReceiptImportService(test_db, 1, search=search).list_line_items(receipt.id)

    assert lines[0].matched_product_id == product.id
    assert search.calls[0] == "HVY CRM QT"


@pytest.mark.asyncio
async def test_human_mapping_is_learned_for_later_receipts(test_db):
    product = await create_test_product(test_db, name="House Sauce", sku="HS-1")
    first_receipt = await create_test_receipt(test_db)
    item = await create_test_line_item(test_db, first_receipt.id, "SPCL SAUCE", 1)
    service = ReceiptImportService(test_db, 1)

    assert (await service.list_line_items(first_receipt.id))[0].mapping_status == MappingStatus.PENDING
    assert await service.update_mapping(
        item.id, MappingUpdate(matched_product_id=product.id, mapping_status=MappingStatus.MAPPED)
    )

    res = await test_db.execute(
        select(ProductAbbreviation.full_term).where(ProductAbbreviation.abbreviation == "spcl sauce")
    )
    assert res.scalar_one() == "house sauce"

    second_receipt = await create_test_receipt(test_db)
    await create_test_line_item(test_db, second_receipt.id, "SPCL SAUCE", 1)
    lines = await ReceiptImportService(test_db, 1).list_line_items(second_receipt.id)

    assert lines[0].mapping_status == MappingStatus.MAPPED
    assert lines[0].matched_product_id == product.id


@pytest.mark.asyncio
async def test_update_mapping_rejections(test_db):
    receipt = await create_test_receipt(test_db)
    item = await create_test_line_item(test_db, receipt.id, "MYSTERY", 1)
    service = ReceiptImportService(test_db, 1)

    assert await service.update_mapping(item.id, {"mapping_status": "mapped"}) is False
    assert await service.update_mapping(404, {"mapping_status": "ignored"}) is False
    assert item.mapping_status == MappingStatus.PENDING


@pytest.mark.asyncio
async def test_other_restaurant_product_cannot_be_mapped(test_db):
    foreign = await create_test_product(test_db, name="House Sauce", sku="HS-2", restaurant_id=2)
    receipt = await create_test_receipt(test_db)
    item = await create_test_line_item(test_db, receipt.id, "SPCL SAUCE", 1)
    service = ReceiptImportService(test_db, 1)

    assert await service.update_mapping(
        item.id, {"matched_product_id": foreign.id, "mapping_status": "mapped"}
    ) is False

    assert item.mapping_status == MappingStatus.PENDING
    assert item.matched_product_id is None
    res = await test_db.execute(select(ProductAbbreviation))
    assert res.scalars().all() == []


@pytest.mark.asyncio
async def test_update_mapping_for_duplicates_then_commit(test_db):
    receipt = await create_test_receipt(test_db)
    first = await create_test_line_item(
        test_db, receipt.id, "NAPKINS", 1, parsed_name="Napkins", parsed_quantity=Decimal("2")
    )
    await create_test_line_item(
        test_db, receipt.id, "NAPKINS", 2, parsed_name="Napkins", parsed_quantity=Decimal("3")
    )
    service = ReceiptImportService(test_db, 1)

    assert await service.update_mapping(
        first.id, MappingUpdate(mapping_status=MappingStatus.NEW_ITEM), apply_to_duplicates=True
    )
    report = await service.commit(receipt.id)

    assert report
    assert [r.outcome for r in report.results] == [LineOutcome.COMMITTED, LineOutcome.REUSED]
    res = await test_db.execute(select(Product).where(Product.name == "Napkins"))
    product = res.scalar_one()
    await test_db.refresh(product)
    assert product.current_stock == Decimal("5")
    assert await service.finalize(receipt.id)
