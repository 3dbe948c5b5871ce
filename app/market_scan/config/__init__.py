"""
Config helpers for market scans.
"""

from app.market_scan.config.loader import (
    get_market_scan_settings,
    load_studies,
    parse_scrape_mode,
    study_from_mapping,
)
from app.market_scan.config.models import MarketScanSettings

__all__ = [
    "MarketScanSettings",
    "get_market_scan_settings",
    "load_studies",
    "parse_scrape_mode",
    "study_from_mapping",
]
