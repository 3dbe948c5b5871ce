"""
db/models/study_run.py

Batch run bookkeeping plus the per-study rows appended by the scan engine.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class StudyRunType:
    INSTANT = "instant"
    SCHEDULED = "scheduled"


class StudyRunState:
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class StudyRunRecord(Base, CreatedAtMixin):
    __tablename__ = "study_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    run_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="instant, scheduled",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=StudyRunState.PENDING,
        comment="pending, running, completed, error",
    )
    price_diff_threshold_eur: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    total_studies: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    null_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    opportunities_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_study_runs_status", "status"),
        Index("ix_study_runs_created_at", "created_at"),
    )


class StudyRunResultRecord(Base, CreatedAtMixin):
    __tablename__ = "study_run_results"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    run_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    study_id: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="NULL, OPPORTUNITIES, TARGET_BLOCKED",
    )
    target_market_price: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    best_source_price: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    price_difference: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    target_stats: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Market statistics, extended with market URLs on opportunities",
    )
    target_error_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_study_run_results_run_id", "run_id"),
        Index("ix_study_run_results_study_id", "study_id"),
        Index("ix_study_run_results_status", "status"),
    )


class StudySourceListingRecord(Base, CreatedAtMixin):
    __tablename__ = "study_source_listings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    run_result_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("study_run_results.id", ondelete="CASCADE"),
        nullable=False,
    )
    listing_url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    trim: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="NEW")

    __table_args__ = (
        Index("ix_study_source_listings_run_result_id", "run_result_id"),
    )


class StudyRunLogRecord(Base, CreatedAtMixin):
    __tablename__ = "study_run_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    study_run_id: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    last_stage: Mapped[str | None] = mapped_column(String(32), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    logs_json: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)

    __table_args__ = (
        Index("ix_study_run_logs_study_run_id", "study_run_id"),
    )
