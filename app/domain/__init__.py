"""
app/domain package marker.
"""

from app.domain.market_scan import (
    BatchSummary,
    Currency,
    MarketStats,
    PriceType,
    ResultStatus,
    RunDiagnosis,
    ScrapedListing,
    ScrapeMode,
    StageEvent,
    Study,
    StudyOutcome,
    StudyRunLog,
    StudyRunResult,
    StudyStage,
)

__all__ = [
    "BatchSummary",
    "Currency",
    "MarketStats",
    "PriceType",
    "ResultStatus",
    "RunDiagnosis",
    "ScrapedListing",
    "ScrapeMode",
    "StageEvent",
    "Study",
    "StudyOutcome",
    "StudyRunLog",
    "StudyRunResult",
    "StudyStage",
]
