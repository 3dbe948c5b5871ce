"""
In-process result sink used for dry runs.
"""

from __future__ import annotations

import threading

from app.domain.market_scan import StudyRunLog, StudyRunResult
from app.market_scan.storage.base import ResultSink


class InMemoryResultSink(ResultSink):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: list[StudyRunResult] = []
        self._run_logs: list[StudyRunLog] = []

    def append(self, result: StudyRunResult) -> None:
        with self._lock:
            self._results.append(result)

    def record_run_log(self, log: StudyRunLog) -> None:
        with self._lock:
            self._run_logs.append(log)

    @property
    def results(self) -> list[StudyRunResult]:
        with self._lock:
            return list(self._results)

    @property
    def run_logs(self) -> list[StudyRunLog]:
        with self._lock:
            return list(self._run_logs)
