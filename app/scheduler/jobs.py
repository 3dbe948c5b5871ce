"""
app/scheduler/jobs.py

APScheduler-based batch scheduler for periodic market scans.

Study discovery
----------------
Studies are resolved at job runtime through ``MarketScanService.load_studies``:
the JSON study file by default, or the ``studies_v2`` table when
``MARKET_SCAN_STUDY_SOURCE=database``. Disabled studies are ignored.

Schedule (all times UTC)
--------------------------
  daily_market_scan: ``MARKET_SCAN_SCHEDULE_HOUR_UTC``:00 every day (default 04:00)

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_app_settings
from app.services.market_scan_service import get_market_scan_service
from db.models import StudyRunType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: Daily market scan
# ---------------------------------------------------------------------------


def run_daily_market_scan() -> None:
    """
    Run every enabled study with the configured threshold and scan mode.
    Each study result is committed as it completes; the run row is finalized at the end.
    """
    logger.info("Scheduler: daily_market_scan starting")
    service = get_market_scan_service()

    try:
        studies = service.load_studies()
    except (ValueError, FileNotFoundError) as exc:
        logger.warning("Scheduler: daily_market_scan could not load studies: %s", exc)
        return
    if not studies:
        logger.warning("Scheduler: daily_market_scan found no enabled studies, skipping")
        return

    try:
        summary = service.run_studies(studies, run_type=StudyRunType.SCHEDULED)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: daily_market_scan failed: %s", exc)
        return

    logger.info(
        "Scheduler: daily_market_scan run_id=%s total=%d null=%d opportunities=%d skipped=%d",
        summary.run_id,
        summary.total,
        summary.null_count,
        summary.opportunities_count,
        len(summary.skipped),
    )


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_daily_market_scan,
        trigger="cron",
        hour=get_app_settings().schedule_hour_utc,
        minute=0,
        id="daily_market_scan",
        name="Daily market scan",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=3600,
    )

    return scheduler
