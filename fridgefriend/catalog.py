"""Canonical food catalog and detector-label matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .similarity import similarity

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7
MIN_MATCH_CONFIDENCE = 0.3
UNKNOWN_ITEM = "Unknown Item"


@dataclass(frozen=True)
class CatalogEntry:
    canonical_name: str
    baseline_shelf_life_days: int
    aliases: frozenset[str]

    def __post_init__(self) -> None:
        if self.baseline_shelf_life_days <= 0:
            raise ValueError(
                f"baseline shelf life must be positive: {self.canonical_name!r}"
            )


def _entry(name: str, days: int, *aliases: str) -> CatalogEntry:
    return CatalogEntry(
        canonical_name=name,
        baseline_shelf_life_days=days,
        aliases=frozenset((name, *aliases)),
    )


# Scanned in this order; the first qualifying entry wins.
FOOD_CATALOG: tuple[CatalogEntry, ...] = (
    _entry("banana", 7, "bananas"),
    _entry("apple", 30, "apples"),
    _entry("orange", 21, "oranges", "mandarin", "tangerine"),
    _entry("broccoli", 5, "broccolis"),
    _entry("carrot", 21, "carrots"),
    _entry("tomato", 7, "tomatoes"),
    _entry("cucumber", 7, "cucumbers"),
    _entry("lettuce", 7, "salad greens"),
    _entry("potato", 30, "potatoes"),
    _entry("onion", 30, "onions"),
    _entry("sandwich", 2, "sandwiches", "sub"),
    _entry("pizza", 3, "pizza slice"),
    _entry("hot dog", 3, "hotdog", "sausage"),
    _entry("donut", 3, "doughnut", "donuts"),
    _entry("cake", 4, "cakes", "cupcake"),
    _entry("bread", 5, "loaf", "bun"),
    _entry("milk", 7, "milk carton"),
    _entry("cheese", 21, "cheddar"),
    _entry("egg", 21, "eggs"),
    _entry("chicken", 2, "chicken breast", "poultry"),
)


class CatalogMatcher:
    """Resolve raw detector labels to catalog entries.

    Entries are checked in catalog order and the first one with an alias
    scoring above ``similarity_threshold`` is returned, provided the
    detection confidence exceeds ``min_confidence``. This is a first-match
    policy, not a best-score search.
    """

    def __init__(
        self,
        catalog: tuple[CatalogEntry, ...] = FOOD_CATALOG,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        min_confidence: float = MIN_MATCH_CONFIDENCE,
    ) -> None:
        self._catalog = catalog
        self._similarity_threshold = similarity_threshold
        self._min_confidence = min_confidence

    @property
    def catalog(self) -> tuple[CatalogEntry, ...]:
        return self._catalog

    def match(self, label: str, confidence: float) -> CatalogEntry | None:
        if confidence <= self._min_confidence:
            logger.debug("Label %r below match confidence (%.2f)", label, confidence)
            return None

        for entry in self._catalog:
            for alias in sorted(entry.aliases):
                if similarity(label, alias) > self._similarity_threshold:
                    logger.debug(
                        "Label %r matched %r via alias %r",
                        label,
                        entry.canonical_name,
                        alias,
                    )
                    return entry
        return None
