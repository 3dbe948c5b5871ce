"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.study import StudyRecord
from db.models.study_run import (
    StudyRunLogRecord,
    StudyRunRecord,
    StudyRunResultRecord,
    StudyRunState,
    StudyRunType,
    StudySourceListingRecord,
)

__all__ = [
    "StudyRecord",
    "StudyRunLogRecord",
    "StudyRunRecord",
    "StudyRunResultRecord",
    "StudyRunState",
    "StudyRunType",
    "StudySourceListingRecord",
]
