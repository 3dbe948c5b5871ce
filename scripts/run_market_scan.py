"""
Run a market scan batch from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.config import get_app_settings
from app.domain.market_scan import ScrapeMode
from app.services.market_scan_service import MarketScanService


def main() -> int:
    parser = argparse.ArgumentParser(description="Run cross-market study scans.")
    parser.add_argument(
        "--study",
        dest="studies",
        action="append",
        default=None,
        help="Study id from the study config. Repeat to select several.",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Opportunity threshold in EUR. Defaults to MARKET_SCAN_THRESHOLD.",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ScrapeMode],
        default=None,
        help="Scan depth. Defaults to MARKET_SCAN_MODE.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep results in memory and print them instead of writing to the database.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, get_app_settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = MarketScanService()
    summary = service.run_batch(
        study_ids=args.studies,
        threshold=args.threshold,
        scrape_mode=ScrapeMode(args.mode) if args.mode else None,
        dry_run=args.dry_run,
    )

    payload = {
        "run_id": summary.run_id,
        "total": summary.total,
        "null_count": summary.null_count,
        "opportunities_count": summary.opportunities_count,
        "skipped": summary.skipped,
    }
    if args.dry_run:
        payload["results"] = [outcome.result.to_row() for outcome in summary.outcomes]
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
