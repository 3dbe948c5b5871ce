"""
Structured logging helpers for market scan workflows.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

from app.domain.market_scan import StageEvent, Study, StudyStage

MAX_BUFFERED_EVENTS = 200


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class StageReporter:
    """
    Emits stage transitions for one study execution.

    Each event is logged, forwarded to the optional progress callback and kept
    in a bounded buffer that becomes the persisted run log.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        run_id: str,
        study: Study,
        on_progress: Callable[[StageEvent], None] | None = None,
        max_events: int = MAX_BUFFERED_EVENTS,
    ) -> None:
        self._logger = logger
        self._run_id = run_id
        self._study = study
        self._on_progress = on_progress
        self._events: deque[StageEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self.last_stage: StudyStage | None = None

    def emit(
        self,
        stage: StudyStage,
        label: str,
        message: str,
        *,
        level: str = "info",
    ) -> StageEvent:
        event = StageEvent(
            run_id=self._run_id,
            study_id=self._study.id,
            study_code=self._study.study_code,
            stage=stage,
            label=label,
            message=message,
            level=level,
        )
        with self._lock:
            self._events.append(event)
            self.last_stage = stage

        log_event(
            self._logger,
            _LEVELS.get(level, logging.INFO),
            "study_stage",
            run_id=self._run_id,
            study_id=self._study.id,
            study_code=self._study.study_code,
            stage=stage.value,
            label=label,
            message=message,
        )
        if self._on_progress is not None:
            try:
                self._on_progress(event)
            except Exception as exc:
                log_event(
                    self._logger,
                    logging.WARNING,
                    "progress_callback_failed",
                    run_id=self._run_id,
                    study_id=self._study.id,
                    error=str(exc),
                )
        return event

    def events(self) -> list[dict[str, Any]]:
        with self._lock:
            return [event.to_dict() for event in self._events]
