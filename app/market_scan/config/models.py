"""
Market scan configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.market_scan import ScrapeMode


@dataclass(frozen=True)
class MarketScanSettings:
    """
    Runtime settings for market scans, loaded once per process.
    """

    studies_path: str
    study_source: str = "file"
    api_key: str | None = None
    api_endpoint: str = "https://api.zyte.com/v1/extract"
    timeout_seconds: float = 90.0
    block_markers: tuple[str, ...] = ("/download/website-ban", "website ban")
    threshold: float = 3000.0
    scrape_mode: ScrapeMode = ScrapeMode.FULL
    max_concurrency: int = 3
    fx_rates: dict[str, float] = field(default_factory=lambda: {"EUR": 1.0, "DKK": 0.13})
    target_sample_size: int = 0
    interesting_limit: int = 5
