"""Tests for expiry-date extraction and scheduling."""

from datetime import date

import pytest

from fridgefriend.expiry import (
    ExpiryDateExtractor,
    ExtractedExpiry,
    format_expiry,
    is_expiring_soon,
    label_expiry,
    remaining_days,
    schedule_expiry,
)


@pytest.fixture
def extractor():
    return ExpiryDateExtractor()


class TestExpiryDateExtractor:
    @pytest.mark.parametrize(
        "text",
        [
            "Best before 12-05-2024",
            "USE BY 2024/05/12",
            "Valid until 12 May 2024",
            "Expires May 12, 2024",
        ],
    )
    def test_formats(self, extractor, text):
        result = extractor.extract(text)
        assert result.expiry_date == date(2024, 5, 12)
        assert result.iso_date == "2024-05-12"
        assert result.found

    def test_no_date(self, extractor):
        result = extractor.extract("no date info here")
        assert result.expiry_date is None
        assert result.iso_date is None
        assert not result.found

    def test_empty_text(self, extractor):
        assert extractor.extract("").expiry_date is None

    def test_slash_day_first(self, extractor):
        assert extractor.extract("Use before 3/7/2025").expiry_date == date(2025, 7, 3)

    def test_keyword_line_preferred(self, extractor):
        text = "Packed on 01/02/2024\nBest before 15/03/2024\nLot 42"
        assert extractor.extract(text).expiry_date == date(2024, 3, 15)

    def test_first_keyword_line_wins(self, extractor):
        text = "Expiry 10/10/2024\nUse by 11/11/2024"
        assert extractor.extract(text).expiry_date == date(2024, 10, 10)

    def test_whole_text_without_keyword(self, extractor):
        text = "FRESH MILK\n1 L\n2024-09-30"
        assert extractor.extract(text).expiry_date == date(2024, 9, 30)

    def test_keyword_line_without_date(self, extractor):
        # The keyword line is the only search target
        text = "Best before: see top\n12/05/2024"
        assert extractor.extract(text).expiry_date is None

    def test_invalid_date_falls_through_to_next_pattern(self, extractor):
        text = "Expiry 31-13-2024 or 2024-06-01"
        assert extractor.extract(text).expiry_date == date(2024, 6, 1)

    def test_invalid_calendar_date(self, extractor):
        assert extractor.extract("Use by 30/02/2024").expiry_date is None

    def test_pattern_priority(self, extractor):
        text = "Valid until 5 June 2024 (2024-07-01)"
        assert extractor.extract(text).expiry_date == date(2024, 7, 1)

    def test_month_name_variants(self, extractor):
        assert extractor.extract("Expires sept 3, 2025").expiry_date == date(2025, 9, 3)
        assert extractor.extract("EXPIRY 3 DEC. 2025").expiry_date == date(2025, 12, 3)

    def test_unknown_month_word_ignored(self, extractor):
        assert extractor.extract("Expires Soon 12, 2024").expiry_date is None

    def test_custom_keywords(self):
        extractor = ExpiryDateExtractor(keywords=("bb",))
        text = "01/01/2024\nBB 02/02/2024"
        assert extractor.extract(text).expiry_date == date(2024, 2, 2)


class TestScheduleExpiry:
    def test_heavy_spoilage_floors_to_one_day(self):
        purchase = date(2024, 1, 1)
        assert schedule_expiry(7, 0.8, purchase) == date(2024, 1, 2)

    def test_fresh(self):
        assert schedule_expiry(30, 0.0, date(2024, 1, 1)) == date(2024, 1, 31)

    def test_half_reduction(self):
        assert schedule_expiry(21, 0.5, date(2024, 1, 1)) == date(2024, 1, 11)

    def test_spoiled_keeps_exact_fifth(self):
        purchase = date(2024, 1, 1)
        assert schedule_expiry(30, 0.8, purchase) == date(2024, 1, 7)
        assert schedule_expiry(10, 0.8, purchase) == date(2024, 1, 3)

    def test_slight_reduction_on_catalog_baselines(self):
        purchase = date(2024, 1, 1)
        # 21 * 0.8 = 16.8, 5 * 0.8 = 4
        assert schedule_expiry(21, 0.2, purchase) == date(2024, 1, 17)
        assert schedule_expiry(5, 0.2, purchase) == date(2024, 1, 5)

    def test_minimum_one_day(self):
        purchase = date(2024, 2, 28)
        assert schedule_expiry(1, 0.8, purchase) == date(2024, 2, 29)

    @pytest.mark.parametrize("baseline", [1, 2, 5, 7, 30])
    @pytest.mark.parametrize("reduction", [0.0, 0.2, 0.5, 0.8, 1.0])
    def test_always_after_purchase(self, baseline, reduction):
        purchase = date(2024, 6, 1)
        assert schedule_expiry(baseline, reduction, purchase) > purchase


class TestLabelExpiry:
    def test_passes_extracted_date_through(self):
        extracted = ExtractedExpiry(date(2024, 5, 12))
        assert label_expiry(extracted, date(2024, 5, 1)) == date(2024, 5, 12)

    def test_fallback_thirty_days(self):
        extracted = ExtractedExpiry(None)
        assert label_expiry(extracted, date(2024, 1, 1)) == date(2024, 1, 31)

    def test_custom_fallback(self):
        assert label_expiry(ExtractedExpiry(None), date(2024, 1, 1), 10) == date(
            2024, 1, 11
        )


class TestDisplayHelpers:
    def test_remaining_days(self):
        assert remaining_days(date(2024, 5, 12), date(2024, 5, 10)) == 2
        assert remaining_days(date(2024, 5, 12), date(2024, 5, 12)) == 0
        assert remaining_days(date(2024, 5, 12), date(2024, 5, 15)) == -3

    def test_format_expiry(self):
        assert format_expiry(date(2024, 5, 2)) == "May 02, 2024"

    def test_is_expiring_soon(self):
        today = date(2024, 5, 1)
        assert is_expiring_soon(date(2024, 5, 7), today)
        assert not is_expiring_soon(date(2024, 5, 8), today)
        assert is_expiring_soon(date(2024, 4, 30), today)
        assert is_expiring_soon(date(2024, 5, 3), today, days=3)
