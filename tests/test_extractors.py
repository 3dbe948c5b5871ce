"""
tests/test_extractors.py

Pytest unit tests for marketplace extractors and number recovery.

All inputs are inline HTML fixtures; no network access.

Coverage
--------
- Locale-tolerant price, year and mileage parsing
- Marktplaats result cards and embedded-script fallback
- Leboncoin embedded page data, including malformed and missing payloads
- Bilbasen link-window extraction with related-listing exclusion
- Gaspedaal card selection with navigation-card exclusion
- Unrecognised markup yields an empty list instead of raising
- Non-finite embedded prices skip the listing without aborting the page
"""

from __future__ import annotations

import json

import pytest

from app.domain.market_scan import Currency
from app.market_scan.extractors import (
    BilbasenExtractor,
    GaspedaalExtractor,
    LeboncoinExtractor,
    MarktplaatsExtractor,
)
from app.market_scan.extractors.numbers import (
    coerce_int,
    parse_dkk_price,
    parse_euro_price,
    parse_mileage,
    parse_price,
    parse_year,
)

MARKTPLAATS_URL = "https://www.marktplaats.nl/l/auto-s/toyota/#f:10882"
LEBONCOIN_URL = "https://www.leboncoin.fr/recherche?category=2&kst=k"
BILBASEN_URL = "https://www.bilbasen.dk/brugt/bil/vw?includeengroscvr=true"
GASPEDAAL_URL = "https://www.gaspedaal.nl/toyota/yaris?srt=df-a"

PADDING = "\n" * 2500


# ---------------------------------------------------------------------------
# Number recovery
# ---------------------------------------------------------------------------


class TestNumbers:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("€ 12.500,-", 12500),
            ("12 500 €", 12500),
            ("Prix: 8 990", 8990),
            ("24 990 EUR", 24990),
            ("€ 32.950,00", 32950),
        ],
    )
    def test_euro_prices(self, text: str, expected: int) -> None:
        assert parse_euro_price(text) == expected

    @pytest.mark.parametrize("text", ["€ 50", "€ 600.000", "no price here", ""])
    def test_euro_price_out_of_range_or_missing(self, text: str) -> None:
        assert parse_euro_price(text) is None

    def test_dkk_prices(self) -> None:
        assert parse_dkk_price("189.900 kr.") == 189900
        assert parse_dkk_price("kr. 75.000") == 75000
        assert parse_dkk_price("1.250.000 DKK") == 1250000

    def test_parse_price_reports_currency_without_converting(self) -> None:
        assert parse_price("189.900 kr.", prefer=Currency.DKK) == (189900, Currency.DKK)
        assert parse_price("12.500 €", prefer=Currency.DKK) == (12500, Currency.EUR)
        assert parse_price("nothing") is None

    def test_year_takes_first_plausible_value(self) -> None:
        assert parse_year("Bouwjaar 2019, APK tot 2035", current_year=2026) == 2019
        assert parse_year("1999", current_year=2026) is None
        assert parse_year("model 2030", current_year=2026) is None

    def test_mileage(self) -> None:
        assert parse_mileage("45.000 km") == 45000
        assert parse_mileage("Kilométrage : 120 000") == 120000
        assert parse_mileage("2020 55.000 km") == 55000
        assert parse_mileage("geen kilometerstand") is None

    def test_coerce_int(self) -> None:
        assert coerce_int("42 000 km") == 42000
        assert coerce_int(12.9) == 12
        assert coerce_int(True) is None
        assert coerce_int(None) is None
        assert coerce_int({"value": 1}) is None

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_coerce_int_rejects_non_finite(self, value: float) -> None:
        assert coerce_int(value) is None


# ---------------------------------------------------------------------------
# Marktplaats
# ---------------------------------------------------------------------------


def _marktplaats_card(href: str | None, title: str, price: str, extra: str = "") -> str:
    link = f'<a class="hz-Listing-coverLink" href="{href}"></a>' if href else ""
    return (
        '<li class="hz-Listing hz-Listing--list-item">'
        f"{link}"
        f'<h3 class="hz-Listing-title">{title}</h3>'
        f'<span class="hz-Listing-price">{price}</span>'
        f"{extra}"
        "</li>"
    )


class TestMarktplaatsExtractor:
    def test_cards(self) -> None:
        html = "<ul>" + "".join(
            [
                _marktplaats_card(
                    "/v/auto-s/toyota/m123",
                    "Toyota Yaris GR",
                    "€ 32.950,-",
                    "<span>2021</span><span>45.000 km</span>",
                ),
                _marktplaats_card("/v/auto-s/toyota/m124", "Toyota Yaris", "Bieden"),
                _marktplaats_card(None, "Toyota Aygo", "€ 9.950,-"),
            ]
        ) + "</ul>"

        report = MarktplaatsExtractor().parse(html, MARKTPLAATS_URL)

        assert report.skipped_blocks == 2
        assert len(report.listings) == 1
        listing = report.listings[0]
        assert listing.title == "Toyota Yaris GR"
        assert listing.price == 32950
        assert listing.currency is Currency.EUR
        assert listing.year == 2021
        assert listing.mileage == 45000
        assert listing.listing_url == "https://www.marktplaats.nl/v/auto-s/toyota/m123"

    def test_script_fallback(self) -> None:
        payload = {
            "listings": [
                {
                    "title": "Toyota Yaris Hybrid",
                    "priceInfo": {"priceCents": 2995000},
                    "vipUrl": "/v/auto-s/toyota/m900",
                    "year": 2020,
                    "mileage": "61.000 km",
                },
                {"title": "Missing price", "vipUrl": "/v/auto-s/toyota/m901"},
            ]
        }
        html = f"<html><body><script>{json.dumps(payload)}</script></body></html>"

        report = MarktplaatsExtractor().parse(html, MARKTPLAATS_URL)

        assert [item.price for item in report.listings] == [29950.0]
        assert report.listings[0].mileage == 61000
        assert report.listings[0].year == 2020
        assert report.listings[0].listing_url == "https://www.marktplaats.nl/v/auto-s/toyota/m900"
        assert report.skipped_blocks == 1

    def test_script_fallback_skips_non_finite_price(self) -> None:
        payload = {
            "listings": [
                {"title": "Toyota Yaris", "priceInfo": {"priceCents": float("nan")}, "vipUrl": "/v/1"},
                {"title": "Toyota Aygo", "priceInfo": {"priceCents": 995000}, "vipUrl": "/v/2"},
            ]
        }
        html = f"<script>{json.dumps(payload)}</script>"
        assert "NaN" in html

        report = MarktplaatsExtractor().parse(html, MARKTPLAATS_URL)

        assert [item.title for item in report.listings] == ["Toyota Aygo"]
        assert report.listings[0].price == 9950.0
        assert report.skipped_blocks == 1

    def test_unrecognised_markup(self) -> None:
        assert MarktplaatsExtractor().extract("<html><p>Geen resultaten</p></html>", MARKTPLAATS_URL) == []


# ---------------------------------------------------------------------------
# Leboncoin
# ---------------------------------------------------------------------------


def _next_data(ads: list[dict[str, object]]) -> str:
    data = {"props": {"pageProps": {"searchData": {"ads": ads}}}}
    return (
        '<html><body><script id="__NEXT_DATA__" type="application/json">'
        f"{json.dumps(data)}"
        "</script></body></html>"
    )


class TestLeboncoinExtractor:
    def test_embedded_ads(self) -> None:
        html = _next_data(
            [
                {
                    "subject": "Toyota Yaris GR Sport",
                    "price": [31500],
                    "url": "/ad/voitures/123",
                    "attributes": [
                        {"key": "regdate", "value": "2021"},
                        {"key": "mileage", "value": "42000 km"},
                    ],
                },
                {"subject": "Sans prix", "url": "/ad/voitures/124"},
                {
                    "subject": "Toyota Yaris",
                    "price": 18900,
                    "url": "https://www.leboncoin.fr/ad/voitures/125",
                    "attributes": {"regdate": 2019, "mileage": 88000},
                },
            ]
        )

        report = LeboncoinExtractor().parse(html, LEBONCOIN_URL)

        assert report.skipped_blocks == 1
        first, second = report.listings
        assert first.title == "Toyota Yaris GR Sport"
        assert first.price == 31500
        assert first.currency is Currency.EUR
        assert first.year == 2021
        assert first.mileage == 42000
        assert first.listing_url == "https://www.leboncoin.fr/ad/voitures/123"
        assert second.year == 2019
        assert second.mileage == 88000

    def test_non_finite_price_skips_only_that_ad(self) -> None:
        html = _next_data(
            [
                {"subject": "Toyota Yaris", "price": float("inf"), "url": "/ad/voitures/1"},
                {"subject": "Toyota Aygo", "price": 9000, "url": "/ad/voitures/2"},
            ]
        )

        report = LeboncoinExtractor().parse(html, LEBONCOIN_URL)

        assert [item.title for item in report.listings] == ["Toyota Aygo"]
        assert report.listings[0].price == 9000
        assert report.skipped_blocks == 1

    def test_missing_marker(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            report = LeboncoinExtractor().parse("<html><body></body></html>", LEBONCOIN_URL)
        assert report.listings == []
        assert "embedded_data_missing" in caplog.text

    def test_malformed_payload(self, caplog: pytest.LogCaptureFixture) -> None:
        html = '<script id="__NEXT_DATA__">{"props": </script>'
        with caplog.at_level("WARNING"):
            report = LeboncoinExtractor().parse(html, LEBONCOIN_URL)
        assert report.listings == []
        assert "embedded_data_malformed" in caplog.text


# ---------------------------------------------------------------------------
# Bilbasen
# ---------------------------------------------------------------------------


class TestBilbasenExtractor:
    def test_link_windows(self) -> None:
        html = (
            '<div><a href="/brugt/bil/vw/golf/123"><h2>VW Golf 1.5 TSI</h2></a>'
            "<p>189.900 kr.</p><p>2020</p><p>55.000 km</p></div>"
            f"{PADDING}"
            '<section class="RelatedListings_carousel">'
            '<a href="/brugt/bil/vw/golf/456"><h2>VW Golf GTI</h2></a><p>249.900 kr.</p></section>'
            f"{PADDING}"
            '<div><a href="/brugt/bil/vw/golf/123"><h2>Duplicate</h2></a><p>189.900 kr.</p></div>'
        )

        report = BilbasenExtractor().parse(html, BILBASEN_URL)

        assert report.skipped_blocks == 1
        assert len(report.listings) == 1
        listing = report.listings[0]
        assert listing.title == "VW Golf 1.5 TSI"
        assert listing.price == 189900
        assert listing.currency is Currency.DKK
        assert listing.year == 2020
        assert listing.mileage == 55000
        assert listing.listing_url == "https://www.bilbasen.dk/brugt/bil/vw/golf/123"

    def test_no_listing_links(self) -> None:
        assert BilbasenExtractor().extract("<div><a href='/om-os'>Om os</a></div>", BILBASEN_URL) == []


# ---------------------------------------------------------------------------
# Gaspedaal
# ---------------------------------------------------------------------------


class TestGaspedaalExtractor:
    def test_cards_skip_navigation_and_linkless_blocks(self) -> None:
        html = (
            '<article class="listing-card"><a href="/toyota/yaris/123"><h3>Toyota Yaris Hybrid</h3></a>'
            "<div>€ 18.750</div><div>2020 · 61.000 km</div></article>"
            '<article class="listing-card"><a href="/zoek?brand=toyota">Meer</a>'
            "<h3>Zoeken</h3><div>€ 9.999</div></article>"
            '<article class="listing-card"><h3>Geen link</h3><div>€ 9.999</div></article>'
        )

        report = GaspedaalExtractor().parse(html, GASPEDAAL_URL)

        assert report.skipped_blocks == 2
        assert len(report.listings) == 1
        listing = report.listings[0]
        assert listing.title == "Toyota Yaris Hybrid"
        assert listing.price == 18750
        assert listing.year == 2020
        assert listing.mileage == 61000
        assert listing.listing_url == "https://www.gaspedaal.nl/toyota/yaris/123"

    def test_script_fallback(self) -> None:
        payload = {"props": {"pageProps": {"results": [
            {"title": "Toyota Yaris", "price": "€ 17.495", "url": "/toyota/yaris/9", "year": 2021},
        ]}}}
        html = f"<script>{json.dumps(payload)}</script>"

        listings = GaspedaalExtractor().extract(html, GASPEDAAL_URL)

        assert len(listings) == 1
        assert listings[0].price == 17495
        assert listings[0].year == 2021
