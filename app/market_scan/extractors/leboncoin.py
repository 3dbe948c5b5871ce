"""
Leboncoin (FR) extractor reading the embedded Next.js page data.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.market_scan import Currency, ScrapedListing
from app.market_scan.extractors.base import ListingExtractor, first_listing_array
from app.market_scan.extractors.numbers import coerce_int
from app.market_scan.logging_utils import log_event
from app.market_scan.types import ExtractionReport

logger = logging.getLogger(__name__)

AD_PATHS = (
    ("props", "pageProps", "searchData", "ads"),
    ("props", "pageProps", "ads"),
    ("props", "pageProps", "listings"),
)


class LeboncoinExtractor(ListingExtractor):
    name = "leboncoin"

    def parse(self, content: str, base_url: str) -> ExtractionReport:
        script = self.soup(content).find("script", id="__NEXT_DATA__")
        if script is None:
            log_event(
                logger,
                logging.WARNING,
                "embedded_data_missing",
                extractor=self.name,
                marker="__NEXT_DATA__",
                base_url=base_url,
            )
            return ExtractionReport()

        try:
            data = json.loads(script.string or script.get_text() or "")
        except ValueError as exc:
            log_event(
                logger,
                logging.WARNING,
                "embedded_data_malformed",
                extractor=self.name,
                base_url=base_url,
                error=str(exc),
            )
            return ExtractionReport()

        listings: list[ScrapedListing] = []
        skipped = 0
        for ad in first_listing_array(data, AD_PATHS):
            listing = self._to_listing(ad, base_url)
            if listing is None:
                skipped += 1
                continue
            listings.append(listing)
        return ExtractionReport(listings=listings, skipped_blocks=skipped)

    def _to_listing(self, ad: dict[str, Any], base_url: str) -> ScrapedListing | None:
        raw_price = ad.get("price")
        if isinstance(raw_price, list):
            raw_price = raw_price[0] if raw_price else None
        price = coerce_int(raw_price)
        url = self.absolute_url(ad.get("url") or ad.get("link"), base_url)
        if not price or not url:
            return None

        attributes = _attribute_map(ad.get("attributes"))
        year = coerce_int(attributes.get("regdate") or attributes.get("year") or ad.get("year"))
        mileage = coerce_int(attributes.get("mileage") or ad.get("mileage"))

        return ScrapedListing(
            title=str(ad.get("subject") or ad.get("title") or "Untitled"),
            price=float(price),
            currency=Currency.EUR,
            mileage=mileage or None,
            year=year or None,
            listing_url=url,
            description=str(ad.get("body") or ad.get("description") or ""),
        )


def _attribute_map(raw: object) -> dict[str, Any]:
    # Attributes come either as a mapping or as a list of {"key", "value"} pairs.
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, list):
        return {
            str(item["key"]): item.get("value")
            for item in raw
            if isinstance(item, dict) and "key" in item
        }
    return {}
