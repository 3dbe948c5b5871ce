"""
tests/test_scanner.py

Pytest unit tests for SearchScanner and ExtractorRegistry.

Coverage
--------
- Host routing, including sub-domains and unknown hosts
- Dynamic extractor registration by import path
- Fetch outcomes mapped onto scan outcomes
- Unknown marketplace yields an empty successful scan
- An unsupported fetch outcome raises TypeError
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from app.domain.market_scan import Currency, ScrapedListing, ScrapeMode
from app.market_scan.extractors import (
    BilbasenExtractor,
    GaspedaalExtractor,
    LeboncoinExtractor,
    ListingExtractor,
    MarktplaatsExtractor,
)
from app.market_scan.registry import ExtractorRegistry
from app.market_scan.scanner import SearchScanner
from app.market_scan.types import (
    ExtractionReport,
    FetchBlocked,
    FetchFailed,
    FetchOutcome,
    FetchSucceeded,
    ScanBlocked,
    ScanFailed,
    ScanSucceeded,
)


class StaticExtractor(ListingExtractor):
    name = "static"

    def parse(self, content: str, base_url: str) -> ExtractionReport:
        listing = ScrapedListing(
            title=content,
            price=1000.0,
            currency=Currency.EUR,
            listing_url=base_url,
        )
        return ExtractionReport(listings=[listing], skipped_blocks=2)


@dataclass
class _StubGateway:
    outcome: FetchOutcome
    urls: list[str] = field(default_factory=list)

    def fetch(self, url: str) -> FetchOutcome:
        self.urls.append(url)
        return self.outcome


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestExtractorRegistry:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.marktplaats.nl/l/auto-s/", MarktplaatsExtractor),
            ("https://www.leboncoin.fr/recherche?category=2", LeboncoinExtractor),
            ("https://m.bilbasen.dk/brugt/bil/vw", BilbasenExtractor),
            ("https://www.gaspedaal.nl/toyota", GaspedaalExtractor),
        ],
    )
    def test_builtin_hosts(self, url: str, expected: type) -> None:
        assert isinstance(ExtractorRegistry().resolve(url), expected)

    @pytest.mark.parametrize("url", ["https://www.autoscout24.de/lst", "not a url", ""])
    def test_unknown_host(self, url: str) -> None:
        assert ExtractorRegistry().resolve(url) is None

    def test_path_does_not_route(self) -> None:
        assert ExtractorRegistry().resolve("https://example.com/leboncoin.fr") is None

    def test_dynamic_registration(self) -> None:
        registry = ExtractorRegistry()
        registry.register(host="autoscout24.de", extractor=f"{__name__}:StaticExtractor")
        assert isinstance(registry.resolve("https://www.autoscout24.de/lst"), StaticExtractor)
        assert "autoscout24.de" in registry.hosts

    @pytest.mark.parametrize(
        "path",
        ["no_colon_here", f"{__name__}:MissingExtractor", f"{__name__}:_StubGateway"],
    )
    def test_invalid_dynamic_path(self, path: str) -> None:
        with pytest.raises(ValueError):
            ExtractorRegistry().register(host="x.test", extractor=path)


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


def _scanner(outcome: FetchOutcome) -> tuple[SearchScanner, _StubGateway]:
    gateway = _StubGateway(outcome)
    registry = ExtractorRegistry({"market.test": StaticExtractor()})
    return SearchScanner(gateway=gateway, registry=registry), gateway  # type: ignore[arg-type]


class TestSearchScanner:
    def test_success_runs_matching_extractor(self) -> None:
        scanner, gateway = _scanner(FetchSucceeded("<html/>"))

        result = scanner.scan("https://www.market.test/search", ScrapeMode.FAST)

        assert isinstance(result, ScanSucceeded)
        assert result.extractor == "static"
        assert result.skipped_blocks == 2
        assert [item.title for item in result.listings] == ["<html/>"]
        assert gateway.urls == ["https://www.market.test/search"]

    def test_blocked(self) -> None:
        scanner, _ = _scanner(FetchBlocked("website ban detected by scraping provider (website ban)"))
        result = scanner.scan("https://www.market.test/search")
        assert result == ScanBlocked("website ban detected by scraping provider (website ban)")

    def test_failed(self) -> None:
        scanner, _ = _scanner(FetchFailed("provider returned HTTP 500"))
        assert scanner.scan("https://www.market.test/search") == ScanFailed("provider returned HTTP 500")

    def test_unknown_marketplace_is_empty_success(self) -> None:
        scanner, _ = _scanner(FetchSucceeded("<html/>"))
        result = scanner.scan("https://www.unknown.test/search")
        assert result == ScanSucceeded(listings=[], skipped_blocks=0, extractor=None)

    def test_unsupported_fetch_outcome_raises(self) -> None:
        scanner, _ = _scanner("<html/>")  # type: ignore[arg-type]
        with pytest.raises(TypeError, match="Unsupported fetch outcome"):
            scanner.scan("https://www.market.test/search")
