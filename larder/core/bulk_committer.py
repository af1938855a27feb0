"""
Commit of resolved receipt lines into inventory.

Every ``mapped`` / ``new_item`` line of a receipt becomes a stock increase, a
ledger row and a supplier aggregate update. Lines are processed strictly one
after another and committed one by one: stock is read then written, and a
failing line only loses its own writes. The caller gets one result per line
and decides what partial success means.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from larder.config import get_settings
from larder.exceptions import IntegrityWarning, PersistenceError
from larder.models.base import utcnow
from larder.models.inventory_transaction import InventoryTransaction, TransactionType
from larder.models.product import Product
from larder.models.product_supplier import ProductSupplier
from larder.models.receipt_import import ReceiptImport, ReceiptStatus
from larder.models.receipt_line_item import MappingStatus, ReceiptLineItem
from larder.schemas import ReceiptLineItemRead
from larder.utils.search import dedup_key
from larder.utils.unit_converter import is_package_type, normalize_unit

logger = structlog.get_logger()

ZERO = Decimal("0")
CENT = Decimal("0.01")
UNIT_COST_PRECISION = Decimal("0.0001")
DEFAULT_PURCHASE_UNIT = "unit"


class LineOutcome(str, Enum):
    """What happened to one line during a commit."""
    COMMITTED = "committed"   # stock and ledger written
    REUSED = "reused"         # added to a product created earlier in the same pass
    SKIPPED = "skipped"       # ledger already holds this line
    FAILED = "failed"


class LineCommitResult(BaseModel):
    line_id: int
    outcome: LineOutcome
    product_id: Optional[int] = None
    amount: Decimal = ZERO
    error: Optional[str] = None


class CommitReport(BaseModel):
    """
    Result of one bulk commit.

    Attributes:
        receipt_id: Receipt committed
        results: One entry per eligible line, in processing order
        imported_total: Sum of the committed line amounts
        warnings: Non-fatal problems after the line effects landed
        completed: The pass ran over every eligible line
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    receipt_id: int
    results: List[LineCommitResult] = Field(default_factory=list)
    imported_total: Decimal = ZERO
    warnings: List[IntegrityWarning] = Field(default_factory=list)
    completed: bool = False

    @property
    def imported_count(self) -> int:
        return sum(1 for r in self.results if r.outcome in (LineOutcome.COMMITTED, LineOutcome.REUSED))

    @property
    def failed(self) -> List[LineCommitResult]:
        return [r for r in self.results if r.outcome == LineOutcome.FAILED]

    def __bool__(self) -> bool:
        return self.completed


@dataclass(frozen=True)
class _Receipt:
    id: int
    restaurant_id: int
    vendor_name: Optional[str]
    supplier_id: Optional[int]
    purchase_date: Optional[date]

    @property
    def vendor(self) -> str:
        return self.vendor_name or "unknown vendor"


def line_unit_cost(line: ReceiptLineItemRead) -> Decimal:
    """Explicit unit price, else line amount over quantity, else the line amount."""
    if line.unit_price is not None:
        return line.unit_price
    if line.parsed_price is None:
        return ZERO
    if line.parsed_quantity:
        return (line.parsed_price / line.parsed_quantity).quantize(UNIT_COST_PRECISION)
    return line.parsed_price


def line_amount(line: ReceiptLineItemRead) -> Decimal:
    """Money spent on the line."""
    if line.parsed_price is not None:
        return line.parsed_price
    if line.unit_price is not None and line.parsed_quantity:
        return (line.unit_price * line.parsed_quantity).quantize(CENT)
    return ZERO


def reference_id_for(receipt_id: int, line_id: int) -> str:
    return f"receipt_{receipt_id}_{line_id}"


class BulkCommitter:
    """Applies the inventory effects of a receipt."""

    def __init__(self, session: AsyncSession, restaurant_id: int) -> None:
        self.session = session
        self.restaurant_id = restaurant_id
        self.settings = get_settings()

    async def commit(self, receipt_id: int) -> CommitReport:
        """
        Commit every ``mapped`` and ``new_item`` line of a receipt.

        :raises PersistenceError: the receipt or its lines cannot be read
        """
        receipt = await self._load_receipt(receipt_id)
        lines = await self._load_lines(receipt_id)
        report = CommitReport(receipt_id=receipt_id)

        # dedup key -> product created earlier in this pass
        created: Dict[str, int] = {}
        for line in lines:
            report.results.append(await self._commit_line(receipt, line, created))

        report.imported_total = sum(
            (r.amount for r in report.results if r.outcome != LineOutcome.FAILED), ZERO
        )
        try:
            await self._finalize_receipt(receipt_id, report.imported_total)
        except (SQLAlchemyError, PersistenceError) as e:
            await self.session.rollback()
            warning = IntegrityWarning(
                receipt_id,
                f"{report.imported_count} items were imported but receipt {receipt_id} "
                "could not be marked as imported",
            )
            report.warnings.append(warning)
            logger.warning("Receipt finalize failed", receipt_id=receipt_id, error=str(e))

        report.completed = True
        logger.info(
            "Receipt committed",
            receipt_id=receipt_id,
            imported=report.imported_count,
            failed=len(report.failed),
            total=str(report.imported_total),
            warnings=len(report.warnings),
        )
        return report

    async def finalize(self, receipt_id: int) -> bool:
        """
        Re-write the receipt status and total from the ledger.

        Compensates a failed finalize without importing any line again.
        """
        try:
            await self._load_receipt(receipt_id)
            res = await self.session.execute(
                select(func.coalesce(func.sum(InventoryTransaction.total_cost), 0)).where(
                    InventoryTransaction.reference_id.startswith(f"receipt_{receipt_id}_", autoescape=True)
                )
            )
            total = Decimal(str(res.scalar_one()))
            await self._finalize_receipt(receipt_id, total)
        except (SQLAlchemyError, PersistenceError) as e:
            await self.session.rollback()
            logger.error("Receipt re-finalize failed", receipt_id=receipt_id, error=str(e))
            return False
        logger.info("Receipt re-finalized", receipt_id=receipt_id, total=str(total))
        return True

    async def _commit_line(
        self,
        receipt: _Receipt,
        line: ReceiptLineItemRead,
        created: Dict[str, int],
    ) -> LineCommitResult:
        reference_id = reference_id_for(receipt.id, line.id)
        amount = line_amount(line)
        key = dedup_key(line.display_name)
        outcome = LineOutcome.COMMITTED
        try:
            if await self._already_committed(reference_id):
                logger.info("Line already in ledger", line_item_id=line.id, reference_id=reference_id)
                return LineCommitResult(
                    line_id=line.id, outcome=LineOutcome.SKIPPED, product_id=line.matched_product_id, amount=amount
                )

            if line.mapping_status == MappingStatus.MAPPED:
                product_id = await self._apply_to_existing(receipt, line, reference_id)
            elif key in created:
                product_id = await self._apply_to_created(receipt, line, created[key], reference_id)
                outcome = LineOutcome.REUSED
            else:
                product_id = await self._create_product(receipt, line, reference_id)
            await self.session.commit()
        except (SQLAlchemyError, PersistenceError, ValueError) as e:
            await self.session.rollback()
            logger.error(
                "Failed to import line item",
                receipt_id=receipt.id,
                line_item_id=line.id,
                mapping_status=line.mapping_status.value,
                error=str(e),
            )
            return LineCommitResult(
                line_id=line.id, outcome=LineOutcome.FAILED, error="Failed to import item to inventory"
            )

        if line.mapping_status == MappingStatus.NEW_ITEM and outcome == LineOutcome.COMMITTED:
            created[key] = product_id
        logger.info(
            "Line item imported",
            line_item_id=line.id,
            product_id=product_id,
            outcome=outcome.value,
            quantity=str(line.parsed_quantity),
        )
        return LineCommitResult(line_id=line.id, outcome=outcome, product_id=product_id, amount=amount)

    async def _apply_to_existing(self, receipt: _Receipt, line: ReceiptLineItemRead, reference_id: str) -> int:
        if line.matched_product_id is None:
            raise PersistenceError("mapped line has no product", line_item_id=line.id)
        product = await self._get_product(line.matched_product_id, line.id)

        unit_cost = line_unit_cost(line)
        product.current_stock = (product.current_stock or ZERO) + (line.parsed_quantity or ZERO)
        product.cost_per_unit = unit_cost
        product.receipt_item_names = product.with_receipt_name(line.display_name)
        if receipt.supplier_id is not None:
            product.supplier_id = receipt.supplier_id

        self._log_transaction(receipt, product.id, line, unit_cost, reference_id, new_item=False)
        await self._upsert_product_supplier(receipt, product.id, line, unit_cost)
        return product.id

    async def _create_product(self, receipt: _Receipt, line: ReceiptLineItemRead, reference_id: str) -> int:
        unit_cost = line_unit_cost(line)
        uom = normalize_unit(line.parsed_unit) or DEFAULT_PURCHASE_UNIT
        product = Product(
            restaurant_id=self.restaurant_id,
            name=line.display_name,
            sku=(line.parsed_sku or "").strip() or self._generate_sku(),
            current_stock=line.parsed_quantity or ZERO,
            cost_per_unit=unit_cost,
            uom_purchase=uom,
            package_type=line.package_type or (uom if is_package_type(uom) else None),
            size_value=line.size_value,
            size_unit=line.size_unit,
            supplier_id=receipt.supplier_id,
            receipt_item_names=[line.display_name],
        )
        self.session.add(product)
        await self.session.flush()

        self._log_transaction(receipt, product.id, line, unit_cost, reference_id, new_item=True)
        await self._upsert_product_supplier(receipt, product.id, line, unit_cost)
        await self._link_line(line.id, product.id)
        logger.info("Product created from receipt", product_id=product.id, name=product.name, sku=product.sku)
        return product.id

    async def _apply_to_created(
        self, receipt: _Receipt, line: ReceiptLineItemRead, product_id: int, reference_id: str
    ) -> int:
        product = await self._get_product(product_id, line.id)
        product.current_stock = (product.current_stock or ZERO) + (line.parsed_quantity or ZERO)
        self._log_transaction(receipt, product.id, line, line_unit_cost(line), reference_id, new_item=True)
        await self._link_line(line.id, product.id)
        return product.id

    async def _get_product(self, product_id: int, line_id: int) -> Product:
        product = await self.session.get(Product, product_id)
        if product is None or product.restaurant_id != self.restaurant_id:
            raise PersistenceError(f"product {product_id} not found", line_item_id=line_id)
        return product

    def _log_transaction(
        self,
        receipt: _Receipt,
        product_id: int,
        line: ReceiptLineItemRead,
        unit_cost: Decimal,
        reference_id: str,
        new_item: bool,
    ) -> None:
        kind = "Receipt import (new item)" if new_item else "Receipt import"
        self.session.add(
            InventoryTransaction(
                restaurant_id=self.restaurant_id,
                product_id=product_id,
                supplier_id=receipt.supplier_id,
                quantity=line.parsed_quantity or ZERO,
                unit_cost=unit_cost,
                total_cost=line_amount(line),
                transaction_type=TransactionType.PURCHASE.value,
                reason=f"{kind} from {receipt.vendor} (receipt #{receipt.id})",
                reference_id=reference_id,
                transaction_date=receipt.purchase_date or date.today(),
            )
        )

    async def _upsert_product_supplier(
        self, receipt: _Receipt, product_id: int, line: ReceiptLineItemRead, unit_cost: Decimal
    ) -> None:
        if receipt.supplier_id is None:
            return
        res = await self.session.execute(
            select(ProductSupplier).where(
                ProductSupplier.product_id == product_id,
                ProductSupplier.supplier_id == receipt.supplier_id,
            )
        )
        aggregate = res.scalar_one_or_none()
        if aggregate is None:
            aggregate = ProductSupplier(
                restaurant_id=self.restaurant_id,
                product_id=product_id,
                supplier_id=receipt.supplier_id,
                supplier_product_name=line.display_name,
                supplier_sku=(line.parsed_sku or "").strip() or None,
                purchase_count=0,
            )
            self.session.add(aggregate)
        aggregate.record_purchase(unit_cost, line.parsed_quantity or ZERO, receipt.purchase_date or date.today())

    async def _link_line(self, line_id: int, product_id: int) -> None:
        await self.session.execute(
            update(ReceiptLineItem)
            .where(ReceiptLineItem.id == line_id)
            .values(matched_product_id=product_id)
        )

    async def _already_committed(self, reference_id: str) -> bool:
        res = await self.session.execute(
            select(InventoryTransaction.id).where(InventoryTransaction.reference_id == reference_id).limit(1)
        )
        return res.scalar_one_or_none() is not None

    async def _finalize_receipt(self, receipt_id: int, total: Decimal) -> None:
        receipt = await self.session.get(ReceiptImport, receipt_id)
        if receipt is None:
            raise PersistenceError(f"receipt {receipt_id} not found")
        receipt.status = ReceiptStatus.IMPORTED.value
        receipt.imported_total = total.quantize(CENT)
        receipt.processed_at = utcnow()
        await self.session.commit()

    async def _load_receipt(self, receipt_id: int) -> _Receipt:
        try:
            receipt = await self.session.get(ReceiptImport, receipt_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"cannot read receipt {receipt_id}") from e
        if receipt is None or receipt.restaurant_id != self.restaurant_id:
            raise PersistenceError(f"receipt {receipt_id} not found")
        return _Receipt(
            id=receipt.id,
            restaurant_id=receipt.restaurant_id,
            vendor_name=receipt.vendor_name,
            supplier_id=receipt.supplier_id,
            purchase_date=receipt.purchase_date,
        )

    async def _load_lines(self, receipt_id: int) -> List[ReceiptLineItemRead]:
        try:
            res = await self.session.execute(
                select(ReceiptLineItem)
                .where(
                    ReceiptLineItem.receipt_id == receipt_id,
                    ReceiptLineItem.mapping_status.in_(
                        [MappingStatus.MAPPED.value, MappingStatus.NEW_ITEM.value]
                    ),
                )
                .order_by(ReceiptLineItem.line_sequence, ReceiptLineItem.id)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"cannot read line items of receipt {receipt_id}") from e
        return [ReceiptLineItemRead.model_validate(item) for item in res.scalars().all()]

    def _generate_sku(self) -> str:
        return f"{self.settings.generated_sku_prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:5]}"
