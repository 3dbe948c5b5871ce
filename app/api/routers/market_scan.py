"""
app/api/routers/market_scan.py

Market scan execution endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.domain.market_scan import ScrapeMode
from app.schemas.market_scan import (
    BatchSummaryResponse,
    StudyExecuteRequest,
    StudyOutcomeResponse,
)
from app.services.market_scan_service import (
    MarketScanService,
    StudyNotFoundError,
    get_market_scan_service,
)

router = APIRouter(prefix="/market-scan", tags=["market-scan"])


@router.post("/studies/execute", response_model=StudyOutcomeResponse)
def execute_study(
    request: StudyExecuteRequest,
    scan_service: MarketScanService = Depends(get_market_scan_service),
) -> StudyOutcomeResponse:
    """
    Run one study synchronously and return its persisted outcome.
    """

    try:
        _, outcome = scan_service.execute_study(
            request.study.to_domain(),
            threshold=request.threshold,
            scrape_mode=request.scrape_mode,
            dry_run=request.dry_run,
        )
    except (ValueError, FileNotFoundError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return StudyOutcomeResponse.from_outcome(outcome)


@router.post("/run", response_model=BatchSummaryResponse)
def run_studies(
    study_id: list[str] | None = Query(default=None, description="Optional study id filter"),
    threshold: float | None = Query(default=None, ge=0),
    scrape_mode: ScrapeMode | None = Query(default=None),
    dry_run: bool = Query(default=False),
    scan_service: MarketScanService = Depends(get_market_scan_service),
) -> BatchSummaryResponse:
    """
    Run all enabled configured studies, or the selected ones, as one batch.
    """

    try:
        summary = scan_service.run_batch(
            study_ids=study_id,
            threshold=threshold,
            scrape_mode=scrape_mode,
            dry_run=dry_run,
        )
    except StudyNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except (ValueError, FileNotFoundError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return BatchSummaryResponse.from_summary(summary)
