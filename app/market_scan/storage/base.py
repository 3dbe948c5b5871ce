"""
Storage layer interfaces for study run results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.market_scan import StudyRunLog, StudyRunResult


class ResultSink(ABC):
    """
    Append-only sink for study run results.
    """

    @abstractmethod
    def append(self, result: StudyRunResult) -> None:
        """
        Persist one immutable result row.
        """

    def record_run_log(self, log: StudyRunLog) -> None:
        """
        Persist the buffered stage events of one study execution. Optional.
        """
