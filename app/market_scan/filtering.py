"""
Study eligibility rules for extracted listings.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from app.domain.market_scan import PriceType, ScrapedListing, Study

YEAR_TOLERANCE = 1


def is_eligible(listing: ScrapedListing, study: Study) -> bool:
    """
    A missing year or mileage never disqualifies a listing on its own.
    """

    if listing.price_type is not PriceType.ONE_OFF:
        return False
    if not (listing.price > 0 and math.isfinite(listing.price)):
        return False
    if listing.year is not None and abs(listing.year - study.year) > YEAR_TOLERANCE:
        return False
    if (
        listing.mileage is not None
        and study.max_mileage > 0
        and listing.mileage > study.max_mileage
    ):
        return False
    return True


def filter_listings(listings: Iterable[ScrapedListing], study: Study) -> list[ScrapedListing]:
    return [listing for listing in listings if is_eligible(listing, study)]
