"""
Gaspedaal (NL) extractor for article-style result cards.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from app.domain.market_scan import Currency, ScrapedListing
from app.market_scan.extractors.base import (
    ListingExtractor,
    first_listing_array,
    iter_script_payloads,
)
from app.market_scan.extractors.numbers import (
    clean_text,
    coerce_int,
    parse_euro_price,
    parse_mileage,
    parse_year,
)
from app.market_scan.types import ExtractionReport

CARD_CANDIDATES = (
    ("article", re.compile(r"listing|car|vehicle|\bad\b|item")),
    ("div", re.compile(r"listing|car-card|vehicle-item|auto-item")),
    ("li", re.compile(r"listing|car|vehicle|result")),
)
NAVIGATION_HREF = re.compile(r"zoek|filter|category|autos?-tot-\d+", re.IGNORECASE)
SCRIPT_PATHS = (
    ("props", "pageProps", "listings"),
    ("props", "pageProps", "results"),
    ("props", "pageProps", "data", "listings"),
    ("listings",),
    ("results",),
    ("data", "listings"),
)


class GaspedaalExtractor(ListingExtractor):
    name = "gaspedaal"

    def parse(self, content: str, base_url: str) -> ExtractionReport:
        soup = self.soup(content)
        cards = self._select_cards(soup)

        listings: list[ScrapedListing] = []
        skipped = 0
        for card in cards:
            listing = self._card_to_listing(card, base_url)
            if listing is None:
                skipped += 1
                continue
            listings.append(listing)

        if listings:
            return ExtractionReport(listings=listings, skipped_blocks=skipped)

        for payload in iter_script_payloads(soup):
            items = first_listing_array(payload, SCRIPT_PATHS)
            fallback = [
                listing
                for listing in (self._item_to_listing(item, base_url) for item in items)
                if listing is not None
            ]
            if fallback:
                return ExtractionReport(
                    listings=fallback,
                    skipped_blocks=skipped + len(items) - len(fallback),
                )
        return ExtractionReport(skipped_blocks=skipped)

    @staticmethod
    def _select_cards(soup: BeautifulSoup) -> list[Tag]:
        # Keep whichever card convention yields the most blocks.
        best: list[Tag] = []
        for tag_name, class_pattern in CARD_CANDIDATES:
            found = soup.find_all(tag_name, class_=class_pattern)
            if len(found) > len(best):
                best = found
        return best

    def _card_to_listing(self, card: Tag, base_url: str) -> ScrapedListing | None:
        link = card.find("a", href=True)
        if link is None:
            return None
        href = str(link.get("href", ""))
        if NAVIGATION_HREF.search(href):
            return None

        text = clean_text(card.get_text(" ", strip=True))
        price = parse_euro_price(text)
        if price is None:
            return None
        title = self.heading_text(card)
        if not title:
            return None

        return ScrapedListing(
            title=title,
            price=float(price),
            currency=Currency.EUR,
            mileage=parse_mileage(text),
            year=parse_year(text),
            listing_url=self.absolute_url(href, base_url),
            description=text[:300],
        )

    def _item_to_listing(self, item: dict[str, Any], base_url: str) -> ScrapedListing | None:
        price = coerce_int(item.get("price") or item.get("askingPrice") or item.get("priceAmount"))
        url = self.absolute_url(
            item.get("url") or item.get("link") or item.get("href") or item.get("detailUrl"),
            base_url,
        )
        if not price or not url:
            return None

        return ScrapedListing(
            title=str(item.get("title") or item.get("name") or "Untitled"),
            price=float(price),
            currency=Currency.EUR,
            mileage=coerce_int(item.get("mileage") or item.get("mileageKm") or item.get("kilometers")),
            year=coerce_int(item.get("year") or item.get("modelYear") or item.get("registrationYear")),
            trim=item.get("trim") if isinstance(item.get("trim"), str) else None,
            listing_url=url,
            description=str(item.get("description") or item.get("summary") or ""),
        )
