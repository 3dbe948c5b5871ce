"""
app/schemas package marker.
"""

from app.schemas.market_scan import (
    BatchSummaryResponse,
    HealthResponse,
    StudyExecuteRequest,
    StudyOutcomeResponse,
    StudyPayload,
)

__all__ = [
    "BatchSummaryResponse",
    "HealthResponse",
    "StudyExecuteRequest",
    "StudyOutcomeResponse",
    "StudyPayload",
]
