"""
Base extractor abstraction for marketplace search pages.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from app.domain.market_scan import ScrapedListing
from app.market_scan.logging_utils import log_event
from app.market_scan.types import ExtractionReport

logger = logging.getLogger(__name__)

_ASSIGNMENT_REGEX = re.compile(r"(?:window\.\w+|var\s+\w+|const\s+\w+)\s*=\s*(\{[\s\S]*\});?")


class ListingExtractor(ABC):
    """
    Turns raw page content into uniform listings for one marketplace.
    """

    name = "base"

    def extract(self, content: str, base_url: str) -> list[ScrapedListing]:
        return self.parse(content, base_url).listings

    @abstractmethod
    def parse(self, content: str, base_url: str) -> ExtractionReport:
        """
        Parse one search page. Must not raise on malformed content.
        """

    @staticmethod
    def soup(content: str) -> BeautifulSoup:
        return BeautifulSoup(content or "", "html.parser")

    @staticmethod
    def absolute_url(href: str | None, base_url: str) -> str:
        if not href:
            return ""
        return urljoin(base_url, href.strip())

    @staticmethod
    def heading_text(node: Tag) -> str | None:
        heading = node.find(re.compile(r"^h[1-6]$"))
        if heading is not None:
            text = heading.get_text(" ", strip=True)
            if text:
                return text
        titled = node.find(attrs={"title": True})
        if titled is not None:
            text = str(titled.get("title", "")).strip()
            if text:
                return text
        return None


def dig(data: Any, path: Sequence[str]) -> Any:
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_listing_array(data: Any, paths: Sequence[Sequence[str]]) -> list[dict[str, Any]]:
    """
    Return the first non-empty list found at one of the candidate key paths.
    """

    for path in paths:
        candidate = dig(data, path)
        if isinstance(candidate, list) and candidate:
            return [item for item in candidate if isinstance(item, dict)]
    return []


def iter_script_payloads(soup: BeautifulSoup, *, keywords: Sequence[str] = ()) -> Iterator[Any]:
    """
    Yield decoded JSON payloads from inline scripts, including `window.x = {...}` assignments.
    """

    for script in soup.find_all("script"):
        text = (script.string or script.get_text() or "").strip()
        if not text:
            continue
        if keywords and not any(keyword in text for keyword in keywords):
            continue
        try:
            yield json.loads(text)
            continue
        except ValueError:
            pass
        match = _ASSIGNMENT_REGEX.search(text)
        if match is None:
            continue
        try:
            yield json.loads(match.group(1))
        except ValueError:
            log_event(
                logger,
                logging.DEBUG,
                "embedded_script_skipped",
                length=len(text),
            )
