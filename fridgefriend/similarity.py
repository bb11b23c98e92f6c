"""Normalized edit-distance similarity between two labels."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """Return ``1 - distance / max(len(a), len(b))`` on lowercased input.

    Distance is the unit-cost Levenshtein distance. Two empty strings are
    identical (1.0).
    """
    a = a.lower()
    b = b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(a, b) / longest
