"""
app/domain/market_scan.py

Domain models for cross-market vehicle scans.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Currency(str, Enum):
    """
    Listing currencies. EUR is the reference currency all prices are compared in.
    """

    EUR = "EUR"
    DKK = "DKK"
    UNKNOWN = "UNKNOWN"


class PriceType(str, Enum):
    ONE_OFF = "one-off"
    PER_MONTH = "per-month"
    UNKNOWN = "unknown"


class ResultStatus(str, Enum):
    """
    Persisted classification of one study run.
    """

    NULL = "NULL"
    OPPORTUNITIES = "OPPORTUNITIES"
    TARGET_BLOCKED = "TARGET_BLOCKED"


class ScrapeMode(str, Enum):
    FAST = "fast"
    FULL = "full"


class StudyStage(str, Enum):
    START = "start"
    TARGET_SCAN = "target_scan"
    TARGET_EVAL = "target_eval"
    SOURCE_SCAN = "source_scan"
    SOURCE_EVAL = "source_eval"
    DECIDE = "decide"
    PERSISTED = "persisted"


class RunDiagnosis:
    """
    Run-log status values. Finer grained than ResultStatus, never persisted on results.
    """

    SUCCESS = "SUCCESS"
    NO_TARGET_RESULTS = "NO_TARGET_RESULTS"
    NO_SOURCE_RESULTS = "NO_SOURCE_RESULTS"
    SCRAPER_ERROR = "SCRAPER_ERROR"
    TARGET_BLOCKED = "TARGET_BLOCKED"
    SOURCE_BLOCKED = "SOURCE_BLOCKED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(frozen=True)
class ScrapedListing:
    """
    One offer extracted from a marketplace search page, in market-local currency.
    """

    title: str
    price: float
    currency: Currency = Currency.UNKNOWN
    mileage: int | None = None
    year: int | None = None
    trim: str | None = None
    listing_url: str = ""
    description: str = ""
    price_type: PriceType = PriceType.ONE_OFF

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["currency"] = self.currency.value
        payload["price_type"] = self.price_type.value
        return payload


@dataclass(frozen=True)
class MarketStats:
    """
    Price distribution summary. All fields are zero for an empty price set.
    """

    median_price: float = 0.0
    average_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    count: int = 0
    percentile_25: float = 0.0
    percentile_75: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _resolve_trim(override: str | None, shared: str | None) -> str | None:
    # A non-null override wins even when blank, which disables the shared trim.
    if override is not None:
        return override.strip() or None
    if shared is None:
        return None
    return shared.strip() or None


@dataclass(frozen=True)
class Study:
    """
    Vehicle profile compared between a target (resale) and a source (purchase) market.
    """

    id: str
    brand: str
    model: str
    year: int
    max_mileage: int
    country_target: str
    market_target_url: str
    country_source: str
    market_source_url: str
    trim_text: str | None = None
    trim_text_target: str | None = None
    trim_text_source: str | None = None
    enabled: bool = True

    @property
    def target_trim(self) -> str | None:
        return _resolve_trim(self.trim_text_target, self.trim_text)

    @property
    def source_trim(self) -> str | None:
        return _resolve_trim(self.trim_text_source, self.trim_text)

    @property
    def study_key(self) -> str:
        """
        Identity used to refuse concurrent runs of the same comparison.
        """

        return (
            f"{self.brand}_{self.model}_{self.year}_"
            f"{self.country_target}_{self.country_source}"
        ).upper()

    @property
    def study_code(self) -> str:
        return f"{self.brand}_{self.model}_{self.year}_{self.country_source}_{self.country_target}"


@dataclass(frozen=True)
class StudyRunResult:
    """
    Immutable outcome row appended once per (run, study) pair.
    """

    run_id: str
    study_id: str
    status: ResultStatus
    target_market_price: float | None = None
    best_source_price: float | None = None
    price_difference: float | None = None
    target_stats: dict[str, Any] | None = None
    target_error_reason: str | None = None
    interesting_listings: tuple[ScrapedListing, ...] = ()

    def to_row(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "study_id": self.study_id,
            "status": self.status.value,
            "target_market_price": self.target_market_price,
            "best_source_price": self.best_source_price,
            "price_difference": self.price_difference,
            "target_stats": self.target_stats,
            "target_error_reason": self.target_error_reason,
        }


@dataclass(frozen=True)
class StudyOutcome:
    """
    Summary returned to batch callers for aggregation.
    """

    study_id: str
    status: ResultStatus
    null_count: int
    opportunity_count: int
    result: StudyRunResult

    @classmethod
    def from_result(cls, result: StudyRunResult) -> "StudyOutcome":
        is_opportunity = result.status is ResultStatus.OPPORTUNITIES
        return cls(
            study_id=result.study_id,
            status=result.status,
            null_count=0 if is_opportunity else 1,
            opportunity_count=1 if is_opportunity else 0,
            result=result,
        )


@dataclass(frozen=True)
class StageEvent:
    """
    Progress event emitted at each orchestrator stage transition.
    """

    run_id: str
    study_id: str
    study_code: str
    stage: StudyStage
    label: str
    message: str
    level: str = "info"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "study_id": self.study_id,
            "study_code": self.study_code,
            "stage": self.stage.value,
            "label": self.label,
            "message": self.message,
            "level": self.level,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class StudyRunLog:
    run_id: str
    study_id: str
    status: str
    last_stage: StudyStage | None
    error_message: str | None
    events: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class BatchSummary:
    """
    Aggregate of one batch of study executions.
    """

    run_id: str
    total: int
    null_count: int
    opportunities_count: int
    skipped: list[str] = field(default_factory=list)
    outcomes: list[StudyOutcome] = field(default_factory=list)
