"""
Search scanner: fetch one search page and extract its listings.
"""

from __future__ import annotations

import logging

from app.domain.market_scan import ScrapeMode
from app.market_scan.gateway import FetchGateway
from app.market_scan.logging_utils import log_event
from app.market_scan.registry import ExtractorRegistry
from app.market_scan.types import (
    FetchBlocked,
    FetchFailed,
    FetchSucceeded,
    ScanBlocked,
    ScanFailed,
    ScanSucceeded,
    SearchResult,
)

logger = logging.getLogger(__name__)


class SearchScanner:
    """
    Combines the fetch gateway with the extractor registered for the URL host.
    """

    def __init__(
        self,
        *,
        gateway: FetchGateway,
        registry: ExtractorRegistry | None = None,
    ) -> None:
        self._gateway = gateway
        self._registry = registry or ExtractorRegistry()

    def scan(self, url: str, mode: ScrapeMode = ScrapeMode.FULL) -> SearchResult:
        # `mode` is accepted for callers that distinguish scan depth; extraction is identical.
        outcome = self._gateway.fetch(url)
        if isinstance(outcome, FetchFailed):
            return ScanFailed(outcome.reason)
        if isinstance(outcome, FetchBlocked):
            return ScanBlocked(outcome.reason)
        if not isinstance(outcome, FetchSucceeded):
            raise TypeError(f"Unsupported fetch outcome: {outcome!r}")

        extractor = self._registry.resolve(url)
        if extractor is None:
            log_event(
                logger,
                logging.WARNING,
                "extractor_not_found",
                url=url,
                supported_hosts=self._registry.hosts,
            )
            return ScanSucceeded(listings=[], skipped_blocks=0, extractor=None)

        report = extractor.parse(outcome.html, url)
        log_event(
            logger,
            logging.INFO,
            "listings_extracted",
            url=url,
            mode=mode.value,
            extractor=extractor.name,
            listings=len(report.listings),
            skipped_blocks=report.skipped_blocks,
        )
        return ScanSucceeded(
            listings=report.listings,
            skipped_blocks=report.skipped_blocks,
            extractor=extractor.name,
        )
