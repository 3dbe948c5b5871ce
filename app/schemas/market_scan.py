"""
app/schemas/market_scan.py

Request and response schemas for market scan operations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.domain.market_scan import BatchSummary, ScrapeMode, Study, StudyOutcome


class StudyPayload(BaseModel):
    """
    One study definition submitted for immediate execution.
    """

    id: str = Field(..., min_length=1)
    brand: str
    model: str
    year: int = Field(..., ge=1900, le=2100)
    max_mileage: int = Field(default=0, ge=0)
    country_target: str = Field(..., min_length=2, max_length=8)
    market_target_url: str = Field(..., min_length=1)
    country_source: str = Field(..., min_length=2, max_length=8)
    market_source_url: str = Field(..., min_length=1)
    trim_text: str | None = None
    trim_text_target: str | None = None
    trim_text_source: str | None = None

    def to_domain(self) -> Study:
        return Study(
            id=self.id.strip(),
            brand=self.brand.strip(),
            model=self.model.strip(),
            year=self.year,
            max_mileage=self.max_mileage,
            country_target=self.country_target.strip().upper(),
            market_target_url=self.market_target_url.strip(),
            country_source=self.country_source.strip().upper(),
            market_source_url=self.market_source_url.strip(),
            trim_text=self.trim_text,
            trim_text_target=self.trim_text_target,
            trim_text_source=self.trim_text_source,
        )


class StudyExecuteRequest(BaseModel):
    study: StudyPayload
    threshold: float | None = Field(default=None, ge=0)
    scrape_mode: ScrapeMode | None = None
    dry_run: bool = False


class InterestingListingResponse(BaseModel):
    title: str
    price: float
    currency: str
    mileage: int | None = None
    year: int | None = None
    listing_url: str


class StudyOutcomeResponse(BaseModel):
    """
    API response model for one executed study.
    """

    run_id: str
    study_id: str
    status: str
    target_market_price: float | None = None
    best_source_price: float | None = None
    price_difference: float | None = None
    target_stats: dict[str, Any] | None = None
    target_error_reason: str | None = None
    interesting_listings: list[InterestingListingResponse] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: StudyOutcome) -> "StudyOutcomeResponse":
        result = outcome.result
        return cls(
            run_id=result.run_id,
            study_id=result.study_id,
            status=result.status.value,
            target_market_price=result.target_market_price,
            best_source_price=result.best_source_price,
            price_difference=result.price_difference,
            target_stats=result.target_stats,
            target_error_reason=result.target_error_reason,
            interesting_listings=[
                InterestingListingResponse(
                    title=listing.title,
                    price=listing.price,
                    currency=listing.currency.value,
                    mileage=listing.mileage,
                    year=listing.year,
                    listing_url=listing.listing_url,
                )
                for listing in result.interesting_listings
            ],
        )


class BatchSummaryResponse(BaseModel):
    run_id: str
    total: int = Field(..., ge=0)
    null_count: int = Field(..., ge=0)
    opportunities_count: int = Field(..., ge=0)
    skipped: list[str] = Field(default_factory=list)
    outcomes: list[StudyOutcomeResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "BatchSummaryResponse":
        return cls(
            run_id=summary.run_id,
            total=summary.total,
            null_count=summary.null_count,
            opportunities_count=summary.opportunities_count,
            skipped=list(summary.skipped),
            outcomes=[StudyOutcomeResponse.from_outcome(outcome) for outcome in summary.outcomes],
        )


class HealthResponse(BaseModel):
    status: str
    scheduler_enabled: bool
