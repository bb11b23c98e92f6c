"""Tests for the food catalog and label matcher."""

import pytest

from fridgefriend.catalog import (
    FOOD_CATALOG,
    MIN_MATCH_CONFIDENCE,
    SIMILARITY_THRESHOLD,
    CatalogEntry,
    CatalogMatcher,
)


@pytest.fixture
def matcher():
    return CatalogMatcher()


class TestCatalogEntry:
    def test_rejects_non_positive_shelf_life(self):
        with pytest.raises(ValueError, match="positive"):
            CatalogEntry("ghost", 0, frozenset({"ghost"}))

    def test_catalog_entries_are_valid(self):
        names = [e.canonical_name for e in FOOD_CATALOG]
        assert len(names) == len(set(names))
        for entry in FOOD_CATALOG:
            assert entry.baseline_shelf_life_days > 0
            assert entry.canonical_name in entry.aliases

    def test_constants(self):
        assert SIMILARITY_THRESHOLD == 0.7
        assert MIN_MATCH_CONFIDENCE == 0.3


class TestCatalogMatcher:
    def test_plural_label_matches(self, matcher):
        entry = matcher.match("bananas", 0.5)
        assert entry is not None
        assert entry.canonical_name == "banana"

    def test_exact_label(self, matcher):
        entry = matcher.match("broccoli", 0.9)
        assert entry.canonical_name == "broccoli"
        assert entry.baseline_shelf_life_days == 5

    def test_case_insensitive(self, matcher):
        assert matcher.match("Hot Dog", 0.8).canonical_name == "hot dog"

    def test_alias(self, matcher):
        assert matcher.match("doughnut", 0.8).canonical_name == "donut"

    def test_confidence_must_exceed_minimum(self, matcher):
        assert matcher.match("banana", 0.3) is None
        assert matcher.match("banana", 0.31) is not None

    def test_similarity_must_exceed_threshold(self):
        entry = CatalogEntry("abcdefghij", 3, frozenset({"abcdefghij"}))
        matcher = CatalogMatcher((entry,))
        # 3 substitutions out of 10 -> exactly 0.7, not above it
        assert matcher.match("abcdefgxyz", 0.9) is None
        assert matcher.match("abcdefghxy", 0.9) is entry

    def test_unknown_label(self, matcher):
        assert matcher.match("laptop", 0.99) is None

    def test_first_qualifying_entry_wins(self):
        first = CatalogEntry("pear", 5, frozenset({"pears"}))
        second = CatalogEntry("pears", 9, frozenset({"pears"}))
        matcher = CatalogMatcher((first, second))
        # Both entries score 1.0; catalog order decides
        assert matcher.match("pears", 0.9) is first

    def test_first_match_not_best_match(self):
        loose = CatalogEntry("peaches", 5, frozenset({"peaches"}))
        exact = CatalogEntry("peach", 5, frozenset({"peach"}))
        matcher = CatalogMatcher((loose, exact))
        # "peach" vs "peaches" = 5/7 > 0.7, found before the exact entry
        assert matcher.match("peach", 0.9) is loose

    def test_custom_thresholds(self):
        matcher = CatalogMatcher(similarity_threshold=0.95, min_confidence=0.0)
        assert matcher.match("bananas", 0.1).canonical_name == "banana"
        assert matcher.match("banan", 0.9) is None
