"""
tests/test_scheduler_jobs.py

Pytest unit tests for the periodic market scan job.

Coverage
--------
- Job registration on the scheduler
- Scheduled run delegates enabled studies to the service
- Missing studies or a failing run never raise out of the job
"""

from __future__ import annotations

from typing import Any

import pytest

from app.domain.market_scan import BatchSummary, Study
from app.scheduler import jobs
from db.models import StudyRunType


def _study() -> Study:
    return Study(
        id="YARIS",
        brand="Toyota",
        model="Yaris",
        year=2021,
        max_mileage=0,
        country_target="FR",
        market_target_url="https://www.leboncoin.fr/recherche",
        country_source="NL",
        market_source_url="https://www.marktplaats.nl/l/auto-s/",
    )


class _StubService:
    def __init__(self, studies: list[Study] | Exception, run_error: Exception | None = None) -> None:
        self.studies = studies
        self.run_error = run_error
        self.runs: list[dict[str, Any]] = []

    def load_studies(self) -> list[Study]:
        if isinstance(self.studies, Exception):
            raise self.studies
        return self.studies

    def run_studies(self, studies: list[Study], **kwargs: Any) -> BatchSummary:
        self.runs.append({"studies": studies, **kwargs})
        if self.run_error is not None:
            raise self.run_error
        return BatchSummary(run_id="r1", total=len(studies), null_count=1, opportunities_count=0)


def _install(monkeypatch: pytest.MonkeyPatch, service: _StubService) -> None:
    monkeypatch.setattr(jobs, "get_market_scan_service", lambda: service)


class TestDailyMarketScan:
    def test_runs_enabled_studies_as_scheduled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        service = _StubService([_study()])
        _install(monkeypatch, service)

        jobs.run_daily_market_scan()

        assert len(service.runs) == 1
        assert service.runs[0]["run_type"] == StudyRunType.SCHEDULED
        assert [study.id for study in service.runs[0]["studies"]] == ["YARIS"]

    def test_no_studies_skips_run(self, monkeypatch: pytest.MonkeyPatch) -> None:
        service = _StubService([])
        _install(monkeypatch, service)
        jobs.run_daily_market_scan()
        assert service.runs == []

    def test_missing_config_is_logged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        service = _StubService(FileNotFoundError("studies.json"))
        _install(monkeypatch, service)
        jobs.run_daily_market_scan()
        assert service.runs == []

    def test_failing_run_does_not_raise(self, monkeypatch: pytest.MonkeyPatch) -> None:
        service = _StubService([_study()], run_error=RuntimeError("database down"))
        _install(monkeypatch, service)
        jobs.run_daily_market_scan()
        assert len(service.runs) == 1


class TestBuildScheduler:
    def test_registers_daily_job(self) -> None:
        scheduler = jobs.build_scheduler()
        job = scheduler.get_job("daily_market_scan")
        assert job is not None
        assert job.max_instances == 1
        assert not scheduler.running
