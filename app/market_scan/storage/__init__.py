"""
Storage layer exports.
"""

from app.market_scan.storage.base import ResultSink
from app.market_scan.storage.memory import InMemoryResultSink
from app.market_scan.storage.sqlalchemy_storage import (
    SQLAlchemyResultSink,
    StudyCatalog,
    StudyRunRepository,
)

__all__ = [
    "InMemoryResultSink",
    "ResultSink",
    "SQLAlchemyResultSink",
    "StudyCatalog",
    "StudyRunRepository",
]
