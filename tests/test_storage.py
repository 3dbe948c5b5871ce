"""
tests/test_storage.py

Pytest unit tests for SQLAlchemy-backed storage.

Sessions are MagicMock instances; no database connection is opened.

Coverage
--------
- Result rows and interesting listings written in one commit
- Non-opportunity results write no listing rows
- Rollback and re-raise on SQLAlchemy errors, session always closed
- Run bookkeeping: create, complete, fail, missing run
- Run log rows
- Study catalog mapping
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.market_scan import (
    BatchSummary,
    Currency,
    ResultStatus,
    ScrapedListing,
    StudyRunLog,
    StudyRunResult,
    StudyStage,
)
from app.market_scan.storage import (
    InMemoryResultSink,
    SQLAlchemyResultSink,
    StudyCatalog,
    StudyRunRepository,
)
from db.models import (
    StudyRunLogRecord,
    StudyRunRecord,
    StudyRunResultRecord,
    StudyRunState,
    StudySourceListingRecord,
)

RUN_ID = str(uuid.UUID("12345678-1234-4678-9234-567812345678"))


def _listing(price: float) -> ScrapedListing:
    return ScrapedListing(
        title=f"VW Golf {price:g}",
        price=price,
        currency=Currency.DKK,
        mileage=55000,
        year=2020,
        listing_url=f"https://www.bilbasen.dk/brugt/bil/vw/golf/{price:g}",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def session() -> MagicMock:
    return MagicMock()


def _added(session: MagicMock) -> list[object]:
    return [call.args[0] for call in session.add.call_args_list]


# ---------------------------------------------------------------------------
# Result sink
# ---------------------------------------------------------------------------


class TestSQLAlchemyResultSink:
    def test_opportunity_writes_result_and_listings(self, session: MagicMock) -> None:
        result = StudyRunResult(
            run_id=RUN_ID,
            study_id="VW_GOLF_2020_DK_FR",
            status=ResultStatus.OPPORTUNITIES,
            target_market_price=20000.0,
            best_source_price=13000.0,
            price_difference=7000.0,
            target_stats={"median_price": 20000.0},
            interesting_listings=(_listing(100000), _listing(110000)),
        )

        SQLAlchemyResultSink(session_factory=lambda: session).append(result)

        record, *listings = _added(session)
        assert isinstance(record, StudyRunResultRecord)
        assert record.run_id == uuid.UUID(RUN_ID)
        assert record.status == "OPPORTUNITIES"
        assert str(record.price_difference) == "7000.0"
        assert record.target_stats == {"median_price": 20000.0}
        assert len(listings) == 2
        assert all(isinstance(item, StudySourceListingRecord) for item in listings)
        assert {item.run_result_id for item in listings} == {record.id}
        assert listings[0].currency == "DKK"
        assert listings[0].status == "NEW"
        session.commit.assert_called_once()
        session.close.assert_called_once()

    def test_null_result_writes_single_row(self, session: MagicMock) -> None:
        result = StudyRunResult(
            run_id=RUN_ID,
            study_id="VW_GOLF_2020_DK_FR",
            status=ResultStatus.NULL,
            target_error_reason="scraper failed",
        )

        SQLAlchemyResultSink(session_factory=lambda: session).append(result)

        (record,) = _added(session)
        assert record.target_error_reason == "scraper failed"
        assert record.target_market_price is None

    def test_error_rolls_back_and_reraises(self, session: MagicMock) -> None:
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        result = StudyRunResult(run_id=RUN_ID, study_id="s", status=ResultStatus.NULL)

        with pytest.raises(OperationalError):
            SQLAlchemyResultSink(session_factory=lambda: session).append(result)

        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_run_log(self, session: MagicMock) -> None:
        log = StudyRunLog(
            run_id=RUN_ID,
            study_id="s",
            status="NO_SOURCE_RESULTS",
            last_stage=StudyStage.SOURCE_EVAL,
            error_message="no valid source listings",
            events=[{"stage": "start"}],
        )

        SQLAlchemyResultSink(session_factory=lambda: session).record_run_log(log)

        (record,) = _added(session)
        assert isinstance(record, StudyRunLogRecord)
        assert record.last_stage == "source_eval"
        assert record.logs_json == [{"stage": "start"}]
        session.commit.assert_called_once()


class TestInMemoryResultSink:
    def test_collects_rows(self) -> None:
        sink = InMemoryResultSink()
        sink.append(StudyRunResult(run_id=RUN_ID, study_id="s", status=ResultStatus.NULL))
        assert [item.study_id for item in sink.results] == ["s"]
        assert sink.run_logs == []


# ---------------------------------------------------------------------------
# Run bookkeeping
# ---------------------------------------------------------------------------


class TestStudyRunRepository:
    def test_create(self, session: MagicMock) -> None:
        run_id = StudyRunRepository(session_factory=lambda: session).create(
            run_type="scheduled",
            threshold=3000.0,
            total_studies=4,
        )

        (record,) = _added(session)
        assert isinstance(record, StudyRunRecord)
        assert str(record.id) == run_id
        assert record.status == StudyRunState.RUNNING
        assert record.total_studies == 4
        session.commit.assert_called_once()

    def test_complete_sets_counts(self, session: MagicMock) -> None:
        record = SimpleNamespace(status=StudyRunState.RUNNING, executed_at=None)
        session.get.return_value = record
        summary = BatchSummary(run_id=RUN_ID, total=3, null_count=2, opportunities_count=1)

        StudyRunRepository(session_factory=lambda: session).complete(RUN_ID, summary)

        assert record.status == StudyRunState.COMPLETED
        assert record.null_count == 2
        assert record.opportunities_count == 1
        assert record.executed_at is not None
        session.commit.assert_called_once()

    def test_fail_records_message(self, session: MagicMock) -> None:
        record = SimpleNamespace(status=StudyRunState.RUNNING, executed_at=None)
        session.get.return_value = record

        StudyRunRepository(session_factory=lambda: session).fail(RUN_ID, "provider down")

        assert record.status == StudyRunState.ERROR
        assert record.error_message == "provider down"

    def test_missing_run(self, session: MagicMock) -> None:
        session.get.return_value = None
        with pytest.raises(LookupError):
            StudyRunRepository(session_factory=lambda: session).fail(RUN_ID, "x")
        session.close.assert_called_once()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TestStudyCatalog:
    def test_maps_records(self, session: MagicMock) -> None:
        session.scalars.return_value.all.return_value = [
            SimpleNamespace(
                id="VW_GOLF_2020_DK_FR",
                brand="Volkswagen",
                model="Golf",
                year=2020,
                max_mileage=None,
                country_target="fr",
                market_target_url="https://www.leboncoin.fr/recherche",
                country_source="dk",
                market_source_url="https://www.bilbasen.dk/brugt/bil/vw",
                trim_text=None,
                trim_text_target="GTI",
                trim_text_source="",
            )
        ]

        (study,) = StudyCatalog(session_factory=lambda: session).list_studies(["VW_GOLF_2020_DK_FR"])

        assert study.country_target == "FR"
        assert study.country_source == "DK"
        assert study.max_mileage == 0
        assert study.target_trim == "GTI"
        assert study.source_trim is None
        session.close.assert_called_once()
