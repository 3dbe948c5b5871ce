"""
SQLAlchemy-backed storage for study runs and their results.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.market_scan import (
    BatchSummary,
    ResultStatus,
    Study,
    StudyRunLog,
    StudyRunResult,
)
from app.market_scan.storage.base import ResultSink
from db.models import (
    StudyRecord,
    StudyRunLogRecord,
    StudyRunRecord,
    StudyRunResultRecord,
    StudyRunState,
    StudySourceListingRecord,
)

SessionFactory = Callable[[], Session]


def _decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _as_uuid(value: str) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class SQLAlchemyResultSink(ResultSink):
    """
    Persist results through short-lived sessions, one per write.

    Parallel study executions never share a session.
    """

    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def append(self, result: StudyRunResult) -> None:
        session = self._session_factory()
        try:
            record = StudyRunResultRecord(
                id=uuid.uuid4(),
                run_id=_as_uuid(result.run_id),
                study_id=result.study_id,
                status=result.status.value,
                target_market_price=_decimal(result.target_market_price),
                best_source_price=_decimal(result.best_source_price),
                price_difference=_decimal(result.price_difference),
                target_stats=result.target_stats,
                target_error_reason=result.target_error_reason,
            )
            session.add(record)
            if result.status is ResultStatus.OPPORTUNITIES:
                for listing in result.interesting_listings:
                    session.add(
                        StudySourceListingRecord(
                            run_result_id=record.id,
                            listing_url=listing.listing_url,
                            title=listing.title,
                            price=Decimal(str(listing.price)),
                            currency=listing.currency.value,
                            mileage=listing.mileage,
                            year=listing.year,
                            trim=listing.trim,
                            status="NEW",
                        )
                    )
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

    def record_run_log(self, log: StudyRunLog) -> None:
        session = self._session_factory()
        try:
            session.add(
                StudyRunLogRecord(
                    study_run_id=log.run_id,
                    status=log.status,
                    last_stage=log.last_stage.value if log.last_stage is not None else None,
                    error_message=log.error_message,
                    logs_json=log.events,
                )
            )
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class StudyRunRepository:
    """
    Bookkeeping for `study_runs` rows around a batch execution.
    """

    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def create(self, *, run_type: str, threshold: float, total_studies: int) -> str:
        session = self._session_factory()
        try:
            record = StudyRunRecord(
                id=uuid.uuid4(),
                run_type=run_type,
                status=StudyRunState.RUNNING,
                price_diff_threshold_eur=_decimal(threshold),
                total_studies=total_studies,
                null_count=0,
                opportunities_count=0,
            )
            session.add(record)
            session.commit()
            return str(record.id)
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

    def complete(self, run_id: str, summary: BatchSummary) -> None:
        self._update(
            run_id,
            status=StudyRunState.COMPLETED,
            null_count=summary.null_count,
            opportunities_count=summary.opportunities_count,
        )

    def fail(self, run_id: str, error_message: str) -> None:
        self._update(run_id, status=StudyRunState.ERROR, error_message=error_message)

    def _update(self, run_id: str, **values: object) -> None:
        session = self._session_factory()
        try:
            record = session.get(StudyRunRecord, _as_uuid(run_id))
            if record is None:
                raise LookupError(f"study run not found: {run_id}")
            for key, value in values.items():
                setattr(record, key, value)
            record.executed_at = datetime.now(timezone.utc)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class StudyCatalog:
    """
    Read-only access to study definitions stored in `studies_v2`.
    """

    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def list_studies(self, study_ids: Sequence[str] | None = None) -> list[Study]:
        session = self._session_factory()
        try:
            statement = select(StudyRecord).order_by(StudyRecord.id)
            if study_ids:
                statement = statement.where(StudyRecord.id.in_(list(study_ids)))
            records = session.scalars(statement).all()
            return [
                Study(
                    id=record.id,
                    brand=record.brand,
                    model=record.model,
                    year=record.year,
                    max_mileage=record.max_mileage or 0,
                    country_target=record.country_target.upper(),
                    market_target_url=record.market_target_url,
                    country_source=record.country_source.upper(),
                    market_source_url=record.market_source_url,
                    trim_text=record.trim_text,
                    trim_text_target=record.trim_text_target,
                    trim_text_source=record.trim_text_source,
                )
                for record in records
            ]
        finally:
            session.close()
