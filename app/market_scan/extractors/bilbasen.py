"""
Bilbasen (DK) extractor.

Result cards have no stable class names, so each `/brugt/bil/` link is read
together with the markup surrounding it. Prices stay in DKK.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from app.domain.market_scan import Currency, ScrapedListing
from app.market_scan.extractors.base import ListingExtractor
from app.market_scan.extractors.numbers import clean_text, parse_mileage, parse_price, parse_year
from app.market_scan.types import ExtractionReport

ANCHOR_REGEX = re.compile(
    r"<a\s+[^>]*href=[\"']([^\"']*/brugt/bil/[^\"']*)[\"'][^>]*>",
    re.IGNORECASE,
)
CONTEXT_CHARS = 2000
RELATED_MARKER = "RelatedListings_"


class BilbasenExtractor(ListingExtractor):
    name = "bilbasen"

    def parse(self, content: str, base_url: str) -> ExtractionReport:
        listings: list[ScrapedListing] = []
        skipped = 0
        seen: set[str] = set()

        for match in ANCHOR_REGEX.finditer(content or ""):
            href = match.group(1)
            if href.startswith(("#", "javascript:")):
                continue
            url = self.absolute_url(href, base_url)
            if url in seen:
                continue
            seen.add(url)

            start = max(0, match.start() - CONTEXT_CHARS)
            window = content[start : match.start() + CONTEXT_CHARS]
            if RELATED_MARKER in window:
                skipped += 1
                continue

            snippet = BeautifulSoup(window, "html.parser")
            text = clean_text(snippet.get_text(" ", strip=True))
            priced = parse_price(text, prefer=Currency.DKK)
            if priced is None:
                skipped += 1
                continue
            amount, currency = priced

            title = self.heading_text(snippet) or text[:100].strip()
            if not title:
                skipped += 1
                continue

            listings.append(
                ScrapedListing(
                    title=title,
                    price=float(amount),
                    currency=currency,
                    mileage=parse_mileage(text),
                    year=parse_year(text),
                    listing_url=url,
                    description=text[:300],
                )
            )

        return ExtractionReport(listings=listings, skipped_blocks=skipped)
