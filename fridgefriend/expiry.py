"""Printed expiry-date extraction and shelf-life scheduling."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from fractions import Fraction

logger = logging.getLogger(__name__)

EXPIRY_KEYWORDS: tuple[str, ...] = (
    "expiry",
    "expires",
    "use by",
    "best before",
    "use before",
    "valid until",
)

LABEL_FALLBACK_DAYS = 30
EXPIRING_SOON_DAYS = 7

_MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}


def _month(name: str) -> int:
    try:
        return _MONTHS[name.lower()]
    except KeyError:
        raise ValueError(f"unknown month name: {name!r}") from None


def _day_month_year(m: re.Match) -> date:
    return date(int(m["year"]), int(m["month"]), int(m["day"]))


def _named_month(m: re.Match) -> date:
    return date(int(m["year"]), _month(m["month"]), int(m["day"]))


_MONTH_NAMES = "|".join(sorted(_MONTHS, key=len, reverse=True))

# (pattern, builder) in priority order.
_DATE_PATTERNS: tuple[tuple[re.Pattern[str], Callable[[re.Match], date]], ...] = (
    (
        re.compile(r"\b(?P<day>\d{1,2})[-/](?P<month>\d{1,2})[-/](?P<year>\d{4})\b"),
        _day_month_year,
    ),
    (
        re.compile(r"\b(?P<year>\d{4})[-/](?P<month>\d{1,2})[-/](?P<day>\d{1,2})\b"),
        _day_month_year,
    ),
    (
        re.compile(
            rf"\b(?P<day>\d{{1,2}})\s+(?P<month>{_MONTH_NAMES})\.?\s+(?P<year>\d{{4}})\b",
            re.IGNORECASE,
        ),
        _named_month,
    ),
    (
        re.compile(
            rf"\b(?P<month>{_MONTH_NAMES})\.?\s+(?P<day>\d{{1,2}}),\s*(?P<year>\d{{4}})\b",
            re.IGNORECASE,
        ),
        _named_month,
    ),
)


@dataclass(frozen=True)
class ExtractedExpiry:
    expiry_date: date | None

    @property
    def iso_date(self) -> str | None:
        return self.expiry_date.isoformat() if self.expiry_date else None

    @property
    def found(self) -> bool:
        return self.expiry_date is not None


class ExpiryDateExtractor:
    """Find a printed expiry date in OCR text.

    The first line mentioning an expiry keyword is searched; when no line
    does, the whole text is. Date patterns are tried in priority order and
    the first one that matches and forms a real calendar date wins.
    """

    def __init__(self, keywords: tuple[str, ...] = EXPIRY_KEYWORDS) -> None:
        self._keywords = tuple(k.lower() for k in keywords)

    def extract(self, ocr_text: str) -> ExtractedExpiry:
        target = self._search_target(ocr_text)
        for pattern, build in _DATE_PATTERNS:
            m = pattern.search(target)
            if m is None:
                continue
            try:
                found = build(m)
            except ValueError:
                logger.debug("Skipping unparseable date %r", m.group(0))
                continue
            return ExtractedExpiry(found)
        return ExtractedExpiry(None)

    def _search_target(self, text: str) -> str:
        for line in text.splitlines():
            lowered = line.lower()
            if any(k in lowered for k in self._keywords):
                return line
        return text


def schedule_expiry(
    baseline_days: int, reduction: float, purchase_date: date
) -> date:
    """Shorten baseline shelf life by the spoilage reduction.

    The adjusted shelf life is floored to whole days and never drops
    below one day. The reduction is taken at its decimal value, so
    0.8 leaves exactly a fifth of the baseline.
    """
    remaining = 1 - Fraction(str(reduction))
    adjusted_days = max(1, math.floor(baseline_days * remaining))
    return purchase_date + timedelta(days=adjusted_days)


def label_expiry(
    extracted: ExtractedExpiry,
    purchase_date: date,
    fallback_days: int = LABEL_FALLBACK_DAYS,
) -> date:
    """Use the printed date as-is, or purchase date + ``fallback_days``."""
    if extracted.expiry_date is None:
        return purchase_date + timedelta(days=fallback_days)
    return extracted.expiry_date


def remaining_days(expiry_date: date, today: date | None = None) -> int:
    """Whole days left until ``expiry_date`` (negative once past)."""
    today = today or date.today()
    return (expiry_date - today).days


def format_expiry(expiry_date: date) -> str:
    """Format as e.g. ``May 12, 2024``."""
    return expiry_date.strftime("%b %d, %Y")


def is_expiring_soon(
    expiry_date: date, today: date | None = None, days: int = EXPIRING_SOON_DAYS
) -> bool:
    return remaining_days(expiry_date, today) < days
