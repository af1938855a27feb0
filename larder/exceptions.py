"""
Exceptions raised by the reconciliation engine.

    LarderError
    ├── ConfigurationError      no active restaurant; aborts before any write
    ├── CandidateLookupError    one search variant failed; the variant is skipped
    └── PersistenceError        one line/product write failed; the line is skipped

    IntegrityWarning            receipt finalize failed after line effects landed
"""

from __future__ import annotations

from typing import Optional


class LarderError(Exception):
    """Base class for engine errors."""


class ConfigurationError(LarderError):
    """No active restaurant context."""


class CandidateLookupError(LarderError, LookupError):
    """A candidate search call failed for one variant."""

    def __init__(self, term: str, message: str = "candidate search failed") -> None:
        super().__init__(f"{message}: {term!r}")
        self.term = term


class PersistenceError(LarderError):
    """A write for one line item or product failed."""

    def __init__(self, message: str, line_item_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_item_id = line_item_id


class IntegrityWarning(UserWarning):
    """Line effects are committed but the receipt record does not reflect them."""

    def __init__(self, receipt_id: int, message: str) -> None:
        super().__init__(message)
        self.receipt_id = receipt_id
