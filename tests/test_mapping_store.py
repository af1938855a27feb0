"""
Tests for the mapping store.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from larder.core.mapping_store import MappingStore
from larder.exceptions import PersistenceError
from larder.models.receipt_line_item import MappingStatus, ReceiptLineItem
from larder.schemas import MappingUpdate
from tests.test_utils import (
    RESTAURANT_ID,
    create_test_line_item,
    create_test_product,
    create_test_receipt,
    store_failure,
)


@pytest.fixture
async def receipt(test_db):
    return await create_test_receipt(test_db)


@pytest.mark.asyncio
async def test_list_line_items_in_receipt_order(test_db, receipt):
    third = await create_test_line_item(test_db, receipt.id, "EGGS", 3)
    first = await create_test_line_item(test_db, receipt.id, "MILK", 1)
    second = await create_test_line_item(test_db, receipt.id, "BUTTER", 2)

    items = await MappingStore(test_db, RESTAURANT_ID).list_line_items(receipt.id)

    assert [i.id for i in items] == [first.id, second.id, third.id]


@pytest.mark.asyncio
async def test_update_returns_updated_row(test_db, receipt):
    product = await create_test_product(test_db)
    item = await create_test_line_item(test_db, receipt.id, "CHKN BRST", 1)

    updated = await MappingStore(test_db, RESTAURANT_ID).update(
        item.id,
        MappingUpdate(matched_product_id=product.id, mapping_status=MappingStatus.MAPPED, confidence_score=0.9),
    )

    assert updated.id == item.id
    assert updated.mapping_status == MappingStatus.MAPPED
    assert updated.matched_product_id == product.id
    assert updated.confidence_score == pytest.approx(0.9)

    res = await test_db.execute(
        select(ReceiptLineItem.mapping_status).where(ReceiptLineItem.id == item.id)
    )
    assert res.scalar_one() == "mapped"


@pytest.mark.asyncio
async def test_update_only_writes_given_fields(test_db, receipt):
    item = await create_test_line_item(
        test_db, receipt.id, "NAPKINS", 1, parsed_quantity=Decimal("2"), parsed_name="Napkins"
    )

    await MappingStore(test_db, RESTAURANT_ID).update(item.id, {"parsed_quantity": Decimal("3")})

    assert item.parsed_quantity == Decimal("3")
    assert item.parsed_name == "Napkins"
    assert item.mapping_status == MappingStatus.PENDING


@pytest.mark.asyncio
async def test_update_unknown_line_returns_none(test_db):
    assert await MappingStore(test_db, RESTAURANT_ID).update(404, {"mapping_status": "ignored"}) is None


@pytest.mark.asyncio
async def test_mapped_requires_existing_product(test_db, receipt):
    item = await create_test_line_item(test_db, receipt.id, "CHKN BRST", 1)
    store = MappingStore(test_db, RESTAURANT_ID)

    with pytest.raises(ValueError):
        await store.update(item.id, MappingUpdate(mapping_status=MappingStatus.MAPPED))
    with pytest.raises(ValueError):
        await store.update(
            item.id, MappingUpdate(mapping_status=MappingStatus.MAPPED, matched_product_id=404)
        )

    assert item.mapping_status == MappingStatus.PENDING


@pytest.mark.asyncio
async def test_mapped_rejects_other_restaurant_product(test_db, receipt):
    foreign = await create_test_product(test_db, name="Foreign", sku="F-1", restaurant_id=2)
    item = await create_test_line_item(test_db, receipt.id, "CHKN BRST", 1)

    with pytest.raises(ValueError):
        await MappingStore(test_db, RESTAURANT_ID).update(
            item.id, MappingUpdate(mapping_status=MappingStatus.MAPPED, matched_product_id=foreign.id)
        )

    assert item.mapping_status == MappingStatus.PENDING
    assert item.matched_product_id is None


@pytest.mark.asyncio
async def test_negative_quantity_is_rejected(test_db, receipt):
    item = await create_test_line_item(test_db, receipt.id, "EGGS", 1)

    with pytest.raises(ValueError):
        await MappingStore(test_db, RESTAURANT_ID).update(item.id, {"parsed_quantity": Decimal("-1")})


@pytest.mark.asyncio
async def test_store_failure_raises_persistence_error(test_db, receipt, monkeypatch):
    item = await create_test_line_item(test_db, receipt.id, "EGGS", 1)
    item_id = item.id

    async def failing_commit(self):
        raise store_failure()

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    with pytest.raises(PersistenceError) as exc_info:
        await MappingStore(test_db, RESTAURANT_ID).update(item_id, MappingUpdate(mapping_status=MappingStatus.IGNORED))
    assert exc_info.value.line_item_id == item_id


@pytest.mark.asyncio
async def test_apply_to_duplicates(test_db, receipt):
    first = await create_test_line_item(
        test_db, receipt.id, "NAPKINS 2CS", 1, parsed_name="Napkins", parsed_quantity=Decimal("2")
    )
    second = await create_test_line_item(
        test_db, receipt.id, "NAPKINS 3CS", 2, parsed_name=" napkins ", parsed_quantity=Decimal("3")
    )
    other = await create_test_line_item(test_db, receipt.id, "FORKS", 3, parsed_name="Forks")
    resolved = await create_test_line_item(
        test_db, receipt.id, "NAPKINS", 4, parsed_name="Napkins", mapping_status=MappingStatus.IGNORED
    )
    store = MappingStore(test_db, RESTAURANT_ID)
    updates = MappingUpdate(mapping_status=MappingStatus.NEW_ITEM, parsed_quantity=Decimal("9"))
    await store.update(first.id, updates)

    updated = await store.apply_to_duplicates(first, updates)

    assert [i.id for i in updated] == [second.id]
    assert second.mapping_status == MappingStatus.NEW_ITEM
    assert second.parsed_quantity == Decimal("3")
    assert other.mapping_status == MappingStatus.PENDING
    assert resolved.mapping_status == MappingStatus.IGNORED
