"""
tests/test_filtering.py

Pytest unit tests for study eligibility rules.

Coverage
--------
- Non one-off price types are excluded
- Zero, negative and non-finite prices are excluded
- Year tolerance of one year either side
- Mileage cap, including a disabled (zero) cap
- Missing year or mileage never excludes a listing
"""

from __future__ import annotations

import pytest

from app.domain.market_scan import PriceType, ScrapedListing, Study
from app.market_scan.filtering import filter_listings, is_eligible


@pytest.fixture()
def study() -> Study:
    return Study(
        id="VW_GOLF_2020_DK_FR",
        brand="Volkswagen",
        model="Golf",
        year=2020,
        max_mileage=100000,
        country_target="FR",
        market_target_url="https://www.leboncoin.fr/recherche?category=2",
        country_source="DK",
        market_source_url="https://www.bilbasen.dk/brugt/bil/vw",
    )


def _listing(**overrides: object) -> ScrapedListing:
    fields: dict[str, object] = {
        "title": "Volkswagen Golf",
        "price": 15000.0,
        "year": 2020,
        "mileage": 50000,
    }
    fields.update(overrides)
    return ScrapedListing(**fields)  # type: ignore[arg-type]


class TestPriceRules:
    def test_one_off_listing_passes(self, study: Study) -> None:
        assert is_eligible(_listing(), study)

    @pytest.mark.parametrize("price_type", [PriceType.PER_MONTH, PriceType.UNKNOWN])
    def test_non_one_off_excluded_regardless_of_other_fields(
        self, study: Study, price_type: PriceType
    ) -> None:
        assert not is_eligible(_listing(price_type=price_type), study)

    @pytest.mark.parametrize("price", [0.0, -1.0, float("nan"), float("inf")])
    def test_non_positive_or_non_finite_price_excluded(self, study: Study, price: float) -> None:
        assert not is_eligible(_listing(price=price), study)


class TestYearRules:
    @pytest.mark.parametrize("year", [2019, 2020, 2021])
    def test_within_one_year_passes(self, study: Study, year: int) -> None:
        assert is_eligible(_listing(year=year), study)

    @pytest.mark.parametrize("year", [2017, 2018, 2022])
    def test_more_than_one_year_off_excluded(self, study: Study, year: int) -> None:
        assert not is_eligible(_listing(year=year), study)

    def test_missing_year_passes(self, study: Study) -> None:
        assert is_eligible(_listing(year=None), study)


class TestMileageRules:
    def test_mileage_at_cap_passes(self, study: Study) -> None:
        assert is_eligible(_listing(mileage=100000), study)

    def test_mileage_above_cap_excluded(self, study: Study) -> None:
        assert not is_eligible(_listing(mileage=100001), study)

    def test_missing_mileage_passes(self, study: Study) -> None:
        assert is_eligible(_listing(mileage=None), study)

    def test_zero_cap_disables_mileage_rule(self, study: Study) -> None:
        uncapped = Study(**{**study.__dict__, "max_mileage": 0})
        assert is_eligible(_listing(mileage=450000), uncapped)


class TestFilterListings:
    def test_keeps_order_of_eligible_listings(self, study: Study) -> None:
        listings = [
            _listing(title="a", price=12000.0),
            _listing(title="b", price=0.0),
            _listing(title="c", year=2015),
            _listing(title="d", year=None, mileage=None),
        ]
        assert [item.title for item in filter_listings(listings, study)] == ["a", "d"]

    def test_empty_input(self, study: Study) -> None:
        assert filter_listings([], study) == []
