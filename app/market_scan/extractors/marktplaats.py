"""
Marktplaats (NL) extractor: result cards first, embedded script data as fallback.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from bs4 import Tag

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

logger = logging.getLogger(__name__)

_LISTING_HREF = re.compile(r"^/(?:v|a)/")
SCRIPT_PATHS = (
    ("listings",),
    ("items",),
    ("props", "pageProps", "listings"),
)


class MarktplaatsExtractor(ListingExtractor):
    name = "marktplaats"

    def parse(self, content: str, base_url: str) -> ExtractionReport:
        soup = self.soup(content)
        cards = soup.select("li.hz-Listing.hz-Listing--list-item")

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

        for payload in iter_script_payloads(soup, keywords=('"listings"', '"items"', "priceInfo")):
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

    def _card_to_listing(self, card: Tag, base_url: str) -> ScrapedListing | None:
        link = card.select_one("a.hz-Listing-coverLink[href]") or card.find("a", href=_LISTING_HREF)
        if link is None:
            return None

        text = clean_text(card.get_text(" ", strip=True))
        price = parse_euro_price(text)
        if price is None:
            return None

        title_node = card.select_one(".hz-Listing-title")
        title = title_node.get_text(" ", strip=True) if title_node is not None else None
        title = title or self.heading_text(card)
        if not title:
            return None

        return ScrapedListing(
            title=title,
            price=float(price),
            currency=Currency.EUR,
            mileage=parse_mileage(text),
            year=parse_year(text),
            listing_url=self.absolute_url(str(link.get("href")), base_url),
            description=text[:300],
        )

    def _item_to_listing(self, item: dict[str, Any], base_url: str) -> ScrapedListing | None:
        price_info = item.get("priceInfo")
        cents = price_info.get("priceCents") if isinstance(price_info, dict) else None
        if isinstance(cents, (int, float)) and not isinstance(cents, bool):
            price: float | None = cents / 100 if math.isfinite(cents) else None
        else:
            whole = coerce_int(item.get("price"))
            price = float(whole) if whole else None
        url = self.absolute_url(item.get("vipUrl") or item.get("url"), base_url)
        if not price or not url:
            return None

        return ScrapedListing(
            title=str(item.get("title") or "Untitled"),
            price=price,
            currency=Currency.EUR,
            mileage=coerce_int(item.get("mileage")),
            year=coerce_int(item.get("year")),
            listing_url=url,
            description=str(item.get("description") or ""),
        )
