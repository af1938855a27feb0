"""Text scoring utilities for catalog search."""

from __future__ import annotations

from typing import Iterable, Set
import re

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

_WORD_RE = re.compile(r"[a-z0-9]+")
_VOWELS = set("aeiouy")


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison:
    - lower case
    - drop punctuation, keep letters, digits and spaces
    - collapse whitespace
    """
    if not text:
        return ""
    text = text.lower()
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def trigrams(text: str) -> Set[str]:
    """Return the trigram set of ``text`` the way pg_trgm builds it.

    Every word is padded with two leading blanks and one trailing blank.
    """
    grams: Set[str] = set()
    for word in _WORD_RE.findall(text.lower()):
        padded = f"  {word} "
        grams.update(padded[i:i + 3] for i in range(len(padded) - 2))
    return grams


def trigram_similarity(left: str, right: str) -> float:
    """Shared trigrams over all trigrams (0.0 - 1.0)."""
    left_grams, right_grams = trigrams(left), trigrams(right)
    if not left_grams or not right_grams:
        return 0.0
    return len(left_grams & right_grams) / len(left_grams | right_grams)


def levenshtein_similarity(left: str, right: str) -> float:
    """Normalized Levenshtein similarity of the normalized strings (0.0 - 1.0)."""
    return Levenshtein.normalized_similarity(normalize_text(left), normalize_text(right))


def token_sort_ratio(query: str, choice: str) -> float:
    """Order-insensitive similarity (0.0 - 1.0)."""
    return fuzz.token_sort_ratio(query, choice, processor=normalize_text) / 100.0


def consonant_skeleton(text: str) -> str:
    """Drop vowels after the first letter of every word.

    Receipt printers abbreviate by dropping vowels, so ``PREST`` and ``Prst``
    share the skeleton ``prst``.
    """
    words = []
    for word in normalize_text(text).split():
        words.append(word[0] + "".join(ch for ch in word[1:] if ch not in _VOWELS))
    return " ".join(words)


def is_abbreviation_of(short: str, full: str) -> bool:
    """True when ``short`` is a shorter, in-order letter subsequence of ``full``
    starting with the same letter (``brst`` -> ``breast``)."""
    if not short or not full or len(short) >= len(full) or short[0] != full[0]:
        return False
    remaining = iter(full)
    return all(ch in remaining for ch in short)


def unique(values: Iterable[str]) -> list:
    """Drop empty and repeated values, keeping the first occurrence."""
    seen: Set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def dedup_key(name: str) -> str:
    """Key under which two receipt names count as the same item."""
    return " ".join((name or "").lower().split())
