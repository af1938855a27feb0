"""Pydantic schemas exchanged with callers of the engine."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from larder.models.receipt_line_item import MappingStatus


class MappingUpdate(BaseModel):
    """Fields a mapping write may change. Only fields that are set are written."""

    model_config = ConfigDict(extra="forbid")

    matched_product_id: Optional[int] = None
    mapping_status: Optional[MappingStatus] = None
    confidence_score: Optional[float] = None
    parsed_name: Optional[str] = None
    parsed_quantity: Optional[Decimal] = None
    parsed_unit: Optional[str] = None
    parsed_price: Optional[Decimal] = None
    package_type: Optional[str] = None
    size_value: Optional[Decimal] = None
    size_unit: Optional[str] = None

    @field_validator("parsed_quantity", "parsed_price", "size_value")
    @classmethod
    def non_negative(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and value < 0:
            raise ValueError("must not be negative")
        return value


class ReceiptLineItemRead(BaseModel):
    """A line item as returned for review, with suggestions borrowed from its product."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    receipt_id: int
    line_sequence: Optional[int] = None
    raw_text: str
    parsed_name: Optional[str] = None
    parsed_quantity: Optional[Decimal] = None
    parsed_unit: Optional[str] = None
    parsed_price: Optional[Decimal] = None
    parsed_sku: Optional[str] = None
    unit_price: Optional[Decimal] = None
    package_type: Optional[str] = None
    size_value: Optional[Decimal] = None
    size_unit: Optional[str] = None
    matched_product_id: Optional[int] = None
    confidence_score: Optional[float] = None
    mapping_status: MappingStatus

    suggested_size_value: Optional[Decimal] = None
    suggested_size_unit: Optional[str] = None
    suggested_package_type: Optional[str] = None

    @property
    def display_name(self) -> str:
        return (self.parsed_name or "").strip() or self.raw_text
