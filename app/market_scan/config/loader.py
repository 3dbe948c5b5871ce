"""
Environment + JSON config loader for market scans.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from app.config import (
    get_float_env,
    get_int_env,
    get_optional_str_env,
    get_str_env,
)
from app.domain.market_scan import ScrapeMode, Study
from app.market_scan.config.models import MarketScanSettings
from app.market_scan.currency import DEFAULT_RATES

logger = logging.getLogger(__name__)

DEFAULT_STUDIES_PATH = "app/market_scan/config/studies.json"
DEFAULT_BLOCK_MARKERS = "/download/website-ban,website ban"
STUDY_SOURCES = frozenset({"file", "database"})


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


def parse_scrape_mode(raw: str | None, default: ScrapeMode = ScrapeMode.FULL) -> ScrapeMode:
    if raw is None:
        return default
    try:
        return ScrapeMode(raw.strip().lower())
    except ValueError:
        return default


def _parse_fx_rates(raw: str | None) -> dict[str, float]:
    rates = dict(DEFAULT_RATES)
    if raw is None:
        return rates
    try:
        decoded = json.loads(raw)
    except ValueError:
        logger.warning("MARKET_SCAN_FX_RATES is not valid JSON, using defaults")
        return rates
    if not isinstance(decoded, dict):
        logger.warning("MARKET_SCAN_FX_RATES must be a JSON object, using defaults")
        return rates
    for code, value in decoded.items():
        if not isinstance(code, str) or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)) and value > 0:
            rates[code.strip().upper()] = float(value)
    return rates


def _parse_study_source(raw: str | None) -> str:
    if raw is None:
        return "file"
    normalized = raw.strip().lower()
    return normalized if normalized in STUDY_SOURCES else "file"


@lru_cache(maxsize=1)
def get_market_scan_settings() -> MarketScanSettings:
    """
    Return cached market scan settings from environment variables.
    """

    studies_path = get_str_env("MARKET_SCAN_STUDIES_PATH", DEFAULT_STUDIES_PATH)
    markers = get_str_env("SCRAPER_BLOCK_MARKERS", DEFAULT_BLOCK_MARKERS)
    return MarketScanSettings(
        studies_path=str(_resolve_config_path(studies_path)),
        study_source=_parse_study_source(get_optional_str_env("MARKET_SCAN_STUDY_SOURCE")),
        api_key=get_optional_str_env("SCRAPER_API_KEY"),
        api_endpoint=get_str_env("SCRAPER_API_ENDPOINT", "https://api.zyte.com/v1/extract"),
        timeout_seconds=max(1.0, get_float_env("SCRAPER_TIMEOUT_SECONDS", 90.0)),
        block_markers=tuple(marker.strip() for marker in markers.split(",") if marker.strip()),
        threshold=max(0.0, get_float_env("MARKET_SCAN_THRESHOLD", 3000.0)),
        scrape_mode=parse_scrape_mode(get_optional_str_env("MARKET_SCAN_MODE")),
        max_concurrency=max(1, get_int_env("MARKET_SCAN_MAX_CONCURRENCY", 3)),
        fx_rates=_parse_fx_rates(get_optional_str_env("MARKET_SCAN_FX_RATES")),
        target_sample_size=max(0, get_int_env("MARKET_SCAN_TARGET_SAMPLE_SIZE", 0)),
        interesting_limit=max(0, get_int_env("MARKET_SCAN_INTERESTING_LIMIT", 5)),
    )


def load_studies(*, config_path: str) -> list[Study]:
    """
    Load study definitions from a JSON file.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Study config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    studies = raw_data.get("studies", []) if isinstance(raw_data, dict) else None
    if not isinstance(studies, list):
        raise ValueError("Invalid study config: 'studies' must be a list.")

    parsed: list[Study] = []
    for entry in studies:
        if not isinstance(entry, dict):
            continue
        study = study_from_mapping(entry)
        if study is not None:
            parsed.append(study)
    return parsed


def study_from_mapping(entry: dict[str, object]) -> Study | None:
    """
    Build a Study from one JSON object, or None when identity, model year or URLs are missing.
    """

    study_id = _optional_str(entry.get("id"))
    target_url = _optional_str(entry.get("market_target_url"))
    source_url = _optional_str(entry.get("market_source_url"))
    year = _optional_int(entry.get("year"))
    if not study_id or not target_url or not source_url or not year:
        return None

    return Study(
        id=study_id,
        brand=_optional_str(entry.get("brand")) or "",
        model=_optional_str(entry.get("model")) or "",
        year=year,
        max_mileage=max(0, _optional_int(entry.get("max_mileage")) or 0),
        country_target=(_optional_str(entry.get("country_target")) or "").upper(),
        market_target_url=target_url,
        country_source=(_optional_str(entry.get("country_source")) or "").upper(),
        market_source_url=source_url,
        trim_text=_raw_str(entry.get("trim_text")),
        trim_text_target=_raw_str(entry.get("trim_text_target")),
        trim_text_source=_raw_str(entry.get("trim_text_source")),
        enabled=_optional_bool(entry.get("enabled"), True),
    )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        return None
    stripped = str(value).strip()
    return stripped or None


def _raw_str(value: object) -> str | None:
    # Blank strings are kept: a blank per-market trim disables the shared one.
    if isinstance(value, str):
        return value
    return None


def _optional_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
