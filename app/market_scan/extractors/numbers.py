"""
Locale-tolerant number recovery from listing text.

Marketplaces in scope group thousands with dots, spaces or apostrophes and
use a comma for decimals, so "€ 12.500,-" is twelve thousand five hundred.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone

from app.domain.market_scan import Currency

_GROUPED = r"(?<![\d.,])(\d{1,3}(?:[.\s']\d{3})+|\d+)(?!\d)"

EURO_PRICE_PATTERNS = [
    re.compile(r"€\s*" + _GROUPED + r"(?:,-|,\d{1,2})?"),
    re.compile(_GROUPED + r"(?:,\d{1,2})?\s*€"),
    re.compile(_GROUPED + r"\s*EUR\b", re.IGNORECASE),
    re.compile(_GROUPED + r"\s*euros?\b", re.IGNORECASE),
    re.compile(r"prix[:\s]*" + _GROUPED, re.IGNORECASE),
]
DKK_PRICE_PATTERNS = [
    re.compile(_GROUPED + r"(?:,\d{1,2})?\s*kr\b\.?", re.IGNORECASE),
    re.compile(r"\bkr\.?\s*" + _GROUPED, re.IGNORECASE),
    re.compile(_GROUPED + r"\s*DKK\b", re.IGNORECASE),
]
MILEAGE_PATTERNS = [
    re.compile(r"(?<![\d.,])(\d{1,3}(?:[.\s,']\d{3})+|\d+)(?!\d)\s*km\b", re.IGNORECASE),
    re.compile(r"kilom[eéè]trage[:\s]*(\d{1,3}(?:[.\s,']\d{3})+|\d+)", re.IGNORECASE),
]
YEAR_REGEX = re.compile(r"\b(20\d{2})\b")

EURO_PRICE_RANGE = (100, 500_000)
DKK_PRICE_RANGE = (100, 5_000_000)
MILEAGE_RANGE = (0, 1_000_000)


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value.replace("\u00a0", " ")).strip()


def _digits(raw: str) -> int | None:
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return None
    return int(digits)


def _first_in_range(
    text: str,
    patterns: list[re.Pattern[str]],
    bounds: tuple[int, int],
) -> int | None:
    low, high = bounds
    for pattern in patterns:
        for match in pattern.finditer(text):
            value = _digits(match.group(1))
            if value is not None and low < value < high:
                return value
    return None


def parse_euro_price(text: str) -> int | None:
    if not text:
        return None
    normalized = clean_text(text).replace("&euro;", "€").replace("&nbsp;", " ")
    return _first_in_range(normalized, EURO_PRICE_PATTERNS, EURO_PRICE_RANGE)


def parse_dkk_price(text: str) -> int | None:
    if not text:
        return None
    return _first_in_range(clean_text(text), DKK_PRICE_PATTERNS, DKK_PRICE_RANGE)


def parse_price(text: str, *, prefer: Currency = Currency.EUR) -> tuple[int, Currency] | None:
    """
    Recover a price and the currency it was written in.

    The preferred currency is tried first; the amount is never converted here.
    """

    order = [Currency.EUR, Currency.DKK]
    if prefer is Currency.DKK:
        order.reverse()
    for currency in order:
        parser = parse_euro_price if currency is Currency.EUR else parse_dkk_price
        amount = parser(text)
        if amount is not None:
            return amount, currency
    return None


def parse_year(text: str, *, current_year: int | None = None) -> int | None:
    latest = current_year or datetime.now(timezone.utc).year
    for match in YEAR_REGEX.finditer(text or ""):
        year = int(match.group(1))
        if 2000 <= year <= latest:
            return year
    return None


def parse_mileage(text: str) -> int | None:
    if not text:
        return None
    return _first_in_range(clean_text(text), MILEAGE_PATTERNS, MILEAGE_RANGE)


def coerce_int(value: object) -> int | None:
    """
    Read an integer from an embedded-data field that may be a number or a formatted string.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return _digits(value)
    return None
