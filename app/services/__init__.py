"""
app/services package marker.
"""

from app.services.market_scan_service import (
    MarketScanService,
    StudyNotFoundError,
    get_market_scan_service,
)

__all__ = [
    "MarketScanService",
    "StudyNotFoundError",
    "get_market_scan_service",
]
