"""
db/base.py

Declarative base and column mixins for the scan tables.

Constraint names follow one convention so migrations written by hand and
autogenerated ones agree on what to drop.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
}


class Base(DeclarativeBase):
    """
    Declarative base for study, run and result tables.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class CreatedAtMixin:
    """
    Insert-only rows: result, listing and run-log rows are never updated.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class TimestampMixin(CreatedAtMixin):
    """
    Mutable reference rows (study definitions); updated_at refreshes on UPDATE.
    """

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
