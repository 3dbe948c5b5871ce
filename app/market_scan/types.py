"""
Shared market scan runtime data models.

Fetch and scan outcomes are tagged variants: callers dispatch with
`isinstance` and every branch is explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.market_scan import ScrapedListing


@dataclass(frozen=True)
class FetchSucceeded:
    html: str


@dataclass(frozen=True)
class FetchBlocked:
    reason: str


@dataclass(frozen=True)
class FetchFailed:
    reason: str


FetchOutcome = FetchSucceeded | FetchBlocked | FetchFailed


@dataclass(frozen=True)
class ExtractionReport:
    """
    Listings recovered from one page plus the number of blocks that were skipped.
    """

    listings: list[ScrapedListing] = field(default_factory=list)
    skipped_blocks: int = 0


@dataclass(frozen=True)
class ScanSucceeded:
    listings: list[ScrapedListing]
    skipped_blocks: int = 0
    extractor: str | None = None


@dataclass(frozen=True)
class ScanBlocked:
    reason: str


@dataclass(frozen=True)
class ScanFailed:
    reason: str


SearchResult = ScanSucceeded | ScanBlocked | ScanFailed
