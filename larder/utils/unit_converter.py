"""
Unit normalization for receipt lines.

Receipts print units in many spellings (``LBS``, ``#``, ``CT``, ``FL OZ``).
This module maps them onto one canonical spelling and tells size tokens
(``5LB``, ``12 OZ``) apart from product words.

Example:
    >>> from larder.utils.unit_converter import normalize_unit, strip_size_tokens
    >>> normalize_unit("LBS")  # Returns "lb"
    >>> strip_size_tokens("chkn brst 5lb")  # Returns "chkn brst"
"""

from __future__ import annotations

from typing import Dict, Optional, Set
import re

# Unit normalization dictionary
UNIT_ALIASES: Dict[str, str] = {
    # weight
    "lb": "lb", "lbs": "lb", "pound": "lb", "pounds": "lb", "#": "lb",
    "oz": "oz", "ounce": "oz", "ounces": "oz",
    "kg": "kg", "kilo": "kg", "kilogram": "kg", "kilograms": "kg",
    "g": "g", "gr": "g", "gram": "g", "grams": "g",

    # volume
    "floz": "fl oz", "fl oz": "fl oz",
    "ml": "ml", "milliliter": "ml", "milliliters": "ml",
    "l": "L", "lt": "L", "ltr": "L", "liter": "L", "liters": "L", "litre": "L",
    "gal": "gal", "gallon": "gal", "gallons": "gal",
    "qt": "qt", "quart": "qt", "quarts": "qt",
    "pt": "pt", "pint": "pt",

    # countable
    "ea": "each", "each": "each",
    "ct": "ct", "count": "ct",
    "pc": "pc", "pcs": "pc", "piece": "pc", "pieces": "pc",
    "pk": "pack", "pack": "pack", "pkg": "pack",
    "cs": "case", "case": "case",
    "dz": "dozen", "doz": "dozen", "dozen": "dozen",
    "bx": "box", "box": "box",
    "bg": "bag", "bag": "bag",
    "btl": "bottle", "bottle": "bottle",
    "cn": "can", "can": "can",
    "jar": "jar",
}

# Container words: describe packaging rather than a measure
PACKAGE_TYPES: Set[str] = {"bag", "bottle", "box", "can", "case", "jar", "pack"}

_UNIT_PATTERN = "|".join(
    sorted((re.escape(alias) for alias in UNIT_ALIASES if alias != "#"), key=len, reverse=True)
)
# "5lb", "5 lb", "2.5 fl oz", "12ct", "#10", "4x", "x12", bare numbers
_SIZE_TOKEN_RE = re.compile(
    rf"(?<![a-z])(?:\d+(?:\.\d+)?\s*(?:{_UNIT_PATTERN})|#\s*\d+|\d+\s*#|\d+x|x\d+|\d+(?:\.\d+)?)(?![a-z])"
)


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Return the canonical spelling of ``unit`` or the cleaned input if unknown."""
    if unit is None:
        return None
    key = re.sub(r"[.\s]+", " ", unit.strip().lower()).strip()
    if not key:
        return None
    return UNIT_ALIASES.get(key, UNIT_ALIASES.get(key.replace(" ", ""), key))


def is_package_type(unit: Optional[str]) -> bool:
    """True when the unit names a container rather than a measure."""
    return normalize_unit(unit) in PACKAGE_TYPES


def strip_size_tokens(text: str) -> str:
    """Remove quantities and size tokens from lower-cased text."""
    stripped = _SIZE_TOKEN_RE.sub(" ", text)
    return re.sub(r"\s+", " ", stripped).strip()
