"""
db/models/study.py

Study profile: the vehicle and the two marketplaces compared by a scan.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class StudyRecord(Base, TimestampMixin):
    __tablename__ = "studies_v2"

    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[str] = mapped_column(String(120), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    max_mileage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    country_target: Mapped[str] = mapped_column(String(8), nullable=False)
    market_target_url: Mapped[str] = mapped_column(Text, nullable=False)
    country_source: Mapped[str] = mapped_column(String(8), nullable=False)
    market_source_url: Mapped[str] = mapped_column(Text, nullable=False)
    trim_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    trim_text_target: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Overrides trim_text for the target market when not null",
    )
    trim_text_source: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Overrides trim_text for the source market when not null",
    )

    __table_args__ = (
        Index("ix_studies_v2_brand_model", "brand", "model"),
        Index("ix_studies_v2_countries", "country_target", "country_source"),
    )
