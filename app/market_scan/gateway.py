"""
Fetch gateway for the remote browser-rendering scraping provider.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import requests

from app.market_scan.config.models import MarketScanSettings
from app.market_scan.logging_utils import log_event
from app.market_scan.types import FetchBlocked, FetchFailed, FetchOutcome, FetchSucceeded

logger = logging.getLogger(__name__)


class FetchGateway:
    """
    Requests rendered HTML for a URL and classifies the outcome.

    Transport problems become `FetchFailed`, provider-side refusals become
    `FetchBlocked`. Nothing is retried here.
    """

    def __init__(
        self,
        *,
        settings: MarketScanSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._block_markers: Sequence[str] = tuple(
            marker.lower() for marker in settings.block_markers
        )

    def fetch(self, url: str) -> FetchOutcome:
        if not self._settings.api_key:
            log_event(logger, logging.ERROR, "provider_fetch_failed", url=url, error="missing api key")
            return FetchFailed("scraper API key is not configured")

        try:
            response = self._session.post(
                self._settings.api_endpoint,
                json={"url": url, "browserHtml": True},
                auth=(self._settings.api_key, ""),
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout:
            log_event(logger, logging.ERROR, "provider_fetch_failed", url=url, error="timeout")
            return FetchFailed(f"provider timed out after {self._settings.timeout_seconds:g}s")
        except requests.RequestException as exc:
            log_event(logger, logging.ERROR, "provider_fetch_failed", url=url, error=str(exc))
            return FetchFailed(f"provider request failed: {exc}")

        if not 200 <= response.status_code < 300:
            body = response.text or ""
            marker = self._find_block_marker(body)
            if marker is not None:
                return self._blocked(url, marker, status_code=response.status_code)
            log_event(
                logger,
                logging.ERROR,
                "provider_fetch_failed",
                url=url,
                status_code=response.status_code,
                body=body[:200],
            )
            return FetchFailed(f"provider returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            log_event(logger, logging.ERROR, "provider_fetch_failed", url=url, error=f"invalid JSON: {exc}")
            return FetchFailed("provider returned malformed JSON")

        html = payload.get("browserHtml") if isinstance(payload, dict) else None
        if not isinstance(html, str):
            log_event(logger, logging.ERROR, "provider_fetch_failed", url=url, error="browserHtml missing")
            return FetchFailed("provider response has no rendered HTML")

        marker = self._find_block_marker(html)
        if marker is not None:
            return self._blocked(url, marker, status_code=response.status_code)

        log_event(
            logger,
            logging.INFO,
            "provider_fetch_succeeded",
            url=url,
            html_length=len(html),
        )
        return FetchSucceeded(html)

    def _find_block_marker(self, text: str) -> str | None:
        lowered = text.lower()
        for marker in self._block_markers:
            if marker in lowered:
                return marker
        return None

    @staticmethod
    def _blocked(url: str, marker: str, *, status_code: int) -> FetchBlocked:
        log_event(
            logger,
            logging.WARNING,
            "provider_blocked",
            url=url,
            marker=marker,
            status_code=status_code,
        )
        return FetchBlocked(f"website ban detected by scraping provider ({marker})")
