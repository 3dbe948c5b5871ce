"""
Study scan orchestrator.

Runs one study through target scan, target evaluation, source scan, source
evaluation and the threshold decision. Every execution appends exactly one
result row to the sink, including when an unexpected error occurs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from app.domain.market_scan import (
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
from app.market_scan.currency import CurrencyNormalizer
from app.market_scan.filtering import filter_listings
from app.market_scan.logging_utils import StageReporter, log_event
from app.market_scan.scanner import SearchScanner
from app.market_scan.statistics import summarize
from app.market_scan.storage.base import ResultSink
from app.market_scan.trim import apply_trim
from app.market_scan.types import ScanBlocked, ScanFailed

logger = logging.getLogger(__name__)

REASON_TARGET_FAILED = "scraper failed"
REASON_NO_TARGET = "no valid target listings"
REASON_SOURCE_FAILED = "scraper failed on source"
REASON_NO_SOURCE = "no valid source listings"


@dataclass(frozen=True)
class _Decision:
    result: StudyRunResult
    diagnosis: str
    error_message: str | None = None


class StudyScanOrchestrator:
    """
    Executes studies one at a time; safe to share between worker threads.
    """

    def __init__(
        self,
        *,
        scanner: SearchScanner,
        sink: ResultSink,
        currency: CurrencyNormalizer | None = None,
        target_sample_size: int = 0,
        interesting_limit: int = 5,
    ) -> None:
        self._scanner = scanner
        self._sink = sink
        self._currency = currency or CurrencyNormalizer()
        self._target_sample_size = max(0, target_sample_size)
        self._interesting_limit = max(0, interesting_limit)

    def execute_study(
        self,
        study: Study,
        *,
        run_id: str,
        threshold: float,
        scrape_mode: ScrapeMode = ScrapeMode.FULL,
        on_progress: Callable[[StageEvent], None] | None = None,
    ) -> StudyOutcome:
        reporter = StageReporter(
            logger=logger,
            run_id=run_id,
            study=study,
            on_progress=on_progress,
        )
        try:
            decision = self._evaluate(
                study,
                run_id=run_id,
                threshold=threshold,
                scrape_mode=scrape_mode,
                reporter=reporter,
            )
            self._sink.append(decision.result)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            log_event(
                logger,
                logging.ERROR,
                "study_execution_failed",
                run_id=run_id,
                study_id=study.id,
                error=message,
            )
            reporter.emit(StudyStage.DECIDE, "Error", message, level="error")
            decision = _Decision(
                result=StudyRunResult(
                    run_id=run_id,
                    study_id=study.id,
                    status=ResultStatus.NULL,
                    target_error_reason=message,
                ),
                diagnosis=RunDiagnosis.UNKNOWN_ERROR,
                error_message=message,
            )
            try:
                self._sink.append(decision.result)
            except Exception as persist_exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "study_result_persist_failed",
                    run_id=run_id,
                    study_id=study.id,
                    error=str(persist_exc),
                )

        result = decision.result
        last_stage = reporter.last_stage
        reporter.emit(
            StudyStage.PERSISTED,
            "Saved",
            f"status={result.status.value} reason={result.target_error_reason or '-'}",
        )
        self._record_run_log(
            study,
            run_id=run_id,
            decision=decision,
            last_stage=last_stage,
            reporter=reporter,
        )
        return StudyOutcome.from_result(result)

    def _evaluate(
        self,
        study: Study,
        *,
        run_id: str,
        threshold: float,
        scrape_mode: ScrapeMode,
        reporter: StageReporter,
    ) -> _Decision:
        def terminal(status: ResultStatus, diagnosis: str, **fields: object) -> _Decision:
            result = StudyRunResult(run_id=run_id, study_id=study.id, status=status, **fields)
            error = result.target_error_reason if diagnosis != RunDiagnosis.SUCCESS else None
            return _Decision(result=result, diagnosis=diagnosis, error_message=error)

        target_url = apply_trim(study.market_target_url, study.target_trim, study.country_target)
        source_url = apply_trim(study.market_source_url, study.source_trim, study.country_source)
        reporter.emit(
            StudyStage.START,
            "Start",
            f"target_trim={study.target_trim or '-'} source_trim={study.source_trim or '-'}",
        )

        reporter.emit(StudyStage.TARGET_SCAN, "Target scan", target_url)
        target_scan = self._scanner.scan(target_url, scrape_mode)
        if isinstance(target_scan, ScanFailed):
            reporter.emit(StudyStage.TARGET_SCAN, "Target scan failed", target_scan.reason, level="error")
            return terminal(
                ResultStatus.NULL,
                RunDiagnosis.SCRAPER_ERROR,
                target_error_reason=REASON_TARGET_FAILED,
            )
        if isinstance(target_scan, ScanBlocked):
            reporter.emit(StudyStage.TARGET_SCAN, "Target blocked", target_scan.reason, level="warning")
            return terminal(
                ResultStatus.TARGET_BLOCKED,
                RunDiagnosis.TARGET_BLOCKED,
                target_error_reason=target_scan.reason,
            )

        target_listings = filter_listings(target_scan.listings, study)
        reporter.emit(
            StudyStage.TARGET_EVAL,
            "Target evaluation",
            f"extracted={len(target_scan.listings)} eligible={len(target_listings)}",
        )
        if not target_listings:
            return terminal(
                ResultStatus.NULL,
                RunDiagnosis.NO_TARGET_RESULTS,
                target_error_reason=REASON_NO_TARGET,
            )

        target_prices = sorted(self._reference_price(listing) for listing in target_listings)
        if self._target_sample_size:
            target_prices = target_prices[: self._target_sample_size]
        stats = summarize(target_prices)
        target_price = stats.median_price
        stats_payload = stats.to_dict()

        reporter.emit(StudyStage.SOURCE_SCAN, "Source scan", source_url)
        source_scan = self._scanner.scan(source_url, scrape_mode)
        if isinstance(source_scan, (ScanFailed, ScanBlocked)):
            blocked = isinstance(source_scan, ScanBlocked)
            reporter.emit(
                StudyStage.SOURCE_SCAN,
                "Source blocked" if blocked else "Source scan failed",
                source_scan.reason,
                level="warning" if blocked else "error",
            )
            return terminal(
                ResultStatus.NULL,
                RunDiagnosis.SOURCE_BLOCKED if blocked else RunDiagnosis.SCRAPER_ERROR,
                target_market_price=target_price,
                target_stats=stats_payload,
                target_error_reason=REASON_SOURCE_FAILED,
            )

        source_listings = filter_listings(source_scan.listings, study)
        reporter.emit(
            StudyStage.SOURCE_EVAL,
            "Source evaluation",
            f"extracted={len(source_scan.listings)} eligible={len(source_listings)}",
        )
        if not source_listings:
            return terminal(
                ResultStatus.NULL,
                RunDiagnosis.NO_SOURCE_RESULTS,
                target_market_price=target_price,
                target_stats=stats_payload,
                target_error_reason=REASON_NO_SOURCE,
            )

        priced_sources = sorted(
            ((self._reference_price(listing), listing) for listing in source_listings),
            key=lambda pair: pair[0],
        )
        best_source_price = priced_sources[0][0]
        difference = target_price - best_source_price
        reporter.emit(
            StudyStage.DECIDE,
            "Decision",
            f"target={target_price:.2f} best_source={best_source_price:.2f} "
            f"difference={difference:.2f} threshold={threshold:.2f}",
        )
        if difference < threshold:
            return terminal(
                ResultStatus.NULL,
                RunDiagnosis.SUCCESS,
                target_market_price=target_price,
                best_source_price=best_source_price,
                price_difference=difference,
                target_stats=stats_payload,
            )

        ceiling = target_price - threshold
        interesting = tuple(
            listing for price, listing in priced_sources if price <= ceiling
        )[: self._interesting_limit]
        return terminal(
            ResultStatus.OPPORTUNITIES,
            RunDiagnosis.SUCCESS,
            target_market_price=target_price,
            best_source_price=best_source_price,
            price_difference=difference,
            target_stats={
                **stats_payload,
                "target_market_url": target_url,
                "source_market_url": source_url,
                "target_market_median_eur": target_price,
            },
            interesting_listings=interesting,
        )

    def _reference_price(self, listing: ScrapedListing) -> float:
        return self._currency.to_reference(listing.price, listing.currency)

    def _record_run_log(
        self,
        study: Study,
        *,
        run_id: str,
        decision: _Decision,
        last_stage: StudyStage | None,
        reporter: StageReporter,
    ) -> None:
        log = StudyRunLog(
            run_id=run_id,
            study_id=study.id,
            status=decision.diagnosis,
            last_stage=last_stage,
            error_message=decision.error_message,
            events=reporter.events(),
        )
        try:
            self._sink.record_run_log(log)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "run_log_persist_failed",
                run_id=run_id,
                study_id=study.id,
                error=str(exc),
            )
