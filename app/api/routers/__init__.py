"""
app/api/routers package marker.
"""

from app.api.routers.market_scan import router as market_scan_router

__all__ = ["market_scan_router"]
