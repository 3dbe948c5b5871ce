"""
app/services/market_scan_service.py

Service orchestration for cross-market study scans.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from functools import lru_cache

import requests

from app.domain.market_scan import (
    BatchSummary,
    ScrapeMode,
    StageEvent,
    Study,
    StudyOutcome,
)
from app.market_scan.batch import StudyBatchRunner
from app.market_scan.config import MarketScanSettings, get_market_scan_settings, load_studies
from app.market_scan.currency import CurrencyNormalizer
from app.market_scan.gateway import FetchGateway
from app.market_scan.logging_utils import log_event
from app.market_scan.orchestrator import StudyScanOrchestrator
from app.market_scan.registry import ExtractorRegistry
from app.market_scan.scanner import SearchScanner
from app.market_scan.storage import (
    InMemoryResultSink,
    ResultSink,
    SQLAlchemyResultSink,
    StudyCatalog,
    StudyRunRepository,
)
from app.market_scan.storage.sqlalchemy_storage import SessionFactory
from db.models import StudyRunType

logger = logging.getLogger(__name__)


class StudyNotFoundError(LookupError):
    """
    Raised when requested study ids are not configured.
    """

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Unknown study id(s): {', '.join(self.missing)}")


class MarketScanService:
    """
    Builds the scan pipeline from settings and runs studies with run bookkeeping.
    """

    def __init__(
        self,
        *,
        settings: MarketScanSettings | None = None,
        session_factory: SessionFactory | None = None,
        session: requests.Session | None = None,
        registry: ExtractorRegistry | None = None,
    ) -> None:
        self._settings = settings or get_market_scan_settings()
        self._session_factory = session_factory
        self._gateway = FetchGateway(settings=self._settings, session=session)
        self._scanner = SearchScanner(gateway=self._gateway, registry=registry)
        self._currency = CurrencyNormalizer(self._settings.fx_rates)

    @property
    def settings(self) -> MarketScanSettings:
        return self._settings

    def load_studies(self, study_ids: Sequence[str] | None = None) -> list[Study]:
        """
        Return enabled studies, optionally restricted to `study_ids`.

        Raises StudyNotFoundError when a requested id is unknown.
        """

        if self._settings.study_source == "database":
            catalog = StudyCatalog(session_factory=self._resolve_session_factory())
            studies = catalog.list_studies(study_ids)
        else:
            studies = load_studies(config_path=self._settings.studies_path)

        if not study_ids:
            return [study for study in studies if study.enabled]

        requested = [item.strip() for item in study_ids if item.strip()]
        by_id = {study.id: study for study in studies}
        missing = [item for item in requested if item not in by_id]
        if missing:
            raise StudyNotFoundError(missing)
        return [by_id[item] for item in dict.fromkeys(requested)]

    def execute_study(
        self,
        study: Study,
        *,
        threshold: float | None = None,
        scrape_mode: ScrapeMode | None = None,
        dry_run: bool = False,
        on_progress: Callable[[StageEvent], None] | None = None,
    ) -> tuple[str, StudyOutcome]:
        summary = self.run_studies(
            [study],
            threshold=threshold,
            scrape_mode=scrape_mode,
            run_type=StudyRunType.INSTANT,
            dry_run=dry_run,
            on_progress=on_progress,
        )
        if not summary.outcomes:
            raise ValueError(f"Study '{study.id}' is already running.")
        return summary.run_id, summary.outcomes[0]

    def run_batch(
        self,
        *,
        study_ids: Sequence[str] | None = None,
        threshold: float | None = None,
        scrape_mode: ScrapeMode | None = None,
        run_type: str = StudyRunType.INSTANT,
        dry_run: bool = False,
    ) -> BatchSummary:
        studies = self.load_studies(study_ids)
        if not studies:
            raise ValueError("No enabled studies matched the run criteria.")
        return self.run_studies(
            studies,
            threshold=threshold,
            scrape_mode=scrape_mode,
            run_type=run_type,
            dry_run=dry_run,
        )

    def run_studies(
        self,
        studies: Sequence[Study],
        *,
        threshold: float | None = None,
        scrape_mode: ScrapeMode | None = None,
        run_type: str = StudyRunType.INSTANT,
        dry_run: bool = False,
        on_progress: Callable[[StageEvent], None] | None = None,
    ) -> BatchSummary:
        effective_threshold = self._settings.threshold if threshold is None else threshold
        effective_mode = scrape_mode or self._settings.scrape_mode

        repository: StudyRunRepository | None = None
        sink: ResultSink
        if dry_run:
            sink = InMemoryResultSink()
            run_id = str(uuid.uuid4())
        else:
            session_factory = self._resolve_session_factory()
            sink = SQLAlchemyResultSink(session_factory=session_factory)
            repository = StudyRunRepository(session_factory=session_factory)
            run_id = repository.create(
                run_type=run_type,
                threshold=effective_threshold,
                total_studies=len(studies),
            )

        runner = StudyBatchRunner(
            orchestrator=self._build_orchestrator(sink),
            max_concurrency=self._settings.max_concurrency,
        )
        log_event(
            logger,
            logging.INFO,
            "study_run_started",
            run_id=run_id,
            run_type=run_type,
            studies=len(studies),
            threshold=effective_threshold,
            scrape_mode=effective_mode.value,
            dry_run=dry_run,
        )
        try:
            summary = runner.run(
                studies,
                run_id=run_id,
                threshold=effective_threshold,
                scrape_mode=effective_mode,
                on_progress=on_progress,
            )
        except Exception as exc:
            if repository is not None:
                repository.fail(run_id, str(exc))
            raise

        if repository is not None:
            repository.complete(run_id, summary)
        return summary

    def _build_orchestrator(self, sink: ResultSink) -> StudyScanOrchestrator:
        return StudyScanOrchestrator(
            scanner=self._scanner,
            sink=sink,
            currency=self._currency,
            target_sample_size=self._settings.target_sample_size,
            interesting_limit=self._settings.interesting_limit,
        )

    def _resolve_session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            from db.session import get_session_factory

            self._session_factory = get_session_factory()
        return self._session_factory


@lru_cache(maxsize=1)
def get_market_scan_service() -> MarketScanService:
    """
    Build and cache market scan service.
    """

    return MarketScanService()
