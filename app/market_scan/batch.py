"""
Parallel execution of study batches.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from app.domain.market_scan import (
    BatchSummary,
    ResultStatus,
    ScrapeMode,
    StageEvent,
    Study,
    StudyOutcome,
    StudyRunResult,
)
from app.market_scan.logging_utils import log_event
from app.market_scan.orchestrator import StudyScanOrchestrator

logger = logging.getLogger(__name__)


class InFlightStudies:
    """
    Process-wide set of study keys currently executing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys: set[str] = set()

    def acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._keys.discard(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys


_IN_FLIGHT = InFlightStudies()


class StudyBatchRunner:
    """
    Runs independent study executions on a bounded worker pool.

    The pool size bounds the number of provider fetches in flight. A study
    whose key is already executing, in this batch or another, is skipped.
    """

    def __init__(
        self,
        *,
        orchestrator: StudyScanOrchestrator,
        max_concurrency: int = 3,
        in_flight: InFlightStudies | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._max_concurrency = max(1, max_concurrency)
        self._in_flight = in_flight if in_flight is not None else _IN_FLIGHT

    def run(
        self,
        studies: Sequence[Study],
        *,
        run_id: str,
        threshold: float,
        scrape_mode: ScrapeMode = ScrapeMode.FULL,
        on_progress: Callable[[StageEvent], None] | None = None,
    ) -> BatchSummary:
        accepted: list[Study] = []
        skipped: list[str] = []
        for study in studies:
            if self._in_flight.acquire(study.study_key):
                accepted.append(study)
                continue
            skipped.append(study.id)
            log_event(
                logger,
                logging.WARNING,
                "study_skipped_in_flight",
                run_id=run_id,
                study_id=study.id,
                study_key=study.study_key,
            )

        outcomes: dict[str, StudyOutcome] = {}
        try:
            if accepted:
                with ThreadPoolExecutor(max_workers=self._max_concurrency) as executor:
                    future_to_study: dict[Future[StudyOutcome], Study] = {
                        executor.submit(
                            self._orchestrator.execute_study,
                            study,
                            run_id=run_id,
                            threshold=threshold,
                            scrape_mode=scrape_mode,
                            on_progress=on_progress,
                        ): study
                        for study in accepted
                    }
                    for future in as_completed(future_to_study):
                        study = future_to_study[future]
                        try:
                            outcomes[study.id] = future.result()
                        except Exception as exc:
                            log_event(
                                logger,
                                logging.ERROR,
                                "study_batch_item_failed",
                                run_id=run_id,
                                study_id=study.id,
                                error=str(exc),
                            )
                            outcomes[study.id] = StudyOutcome.from_result(
                                StudyRunResult(
                                    run_id=run_id,
                                    study_id=study.id,
                                    status=ResultStatus.NULL,
                                    target_error_reason=str(exc) or exc.__class__.__name__,
                                )
                            )
        finally:
            for study in accepted:
                self._in_flight.release(study.study_key)

        ordered = [outcomes[study.id] for study in accepted if study.id in outcomes]
        summary = BatchSummary(
            run_id=run_id,
            total=len(ordered),
            null_count=sum(outcome.null_count for outcome in ordered),
            opportunities_count=sum(outcome.opportunity_count for outcome in ordered),
            skipped=skipped,
            outcomes=ordered,
        )
        log_event(
            logger,
            logging.INFO,
            "study_batch_completed",
            run_id=run_id,
            total=summary.total,
            null_count=summary.null_count,
            opportunities_count=summary.opportunities_count,
            skipped=len(skipped),
        )
        return summary
