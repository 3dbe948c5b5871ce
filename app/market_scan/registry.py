"""
Marketplace extractor registry keyed by URL host.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from urllib.parse import urlparse

from app.market_scan.extractors import (
    BilbasenExtractor,
    GaspedaalExtractor,
    LeboncoinExtractor,
    ListingExtractor,
    MarktplaatsExtractor,
)


class ExtractorRegistry:
    """
    Extractor registry supporting built-ins and dynamic import paths.

    A URL is routed to the first registered extractor whose host fragment
    occurs in the URL's host name.
    """

    def __init__(self, registrations: Mapping[str, ListingExtractor] | None = None) -> None:
        builtins: dict[str, ListingExtractor] = {
            "marktplaats.nl": MarktplaatsExtractor(),
            "leboncoin.fr": LeboncoinExtractor(),
            "bilbasen.dk": BilbasenExtractor(),
            "gaspedaal.nl": GaspedaalExtractor(),
        }
        if registrations:
            builtins.update({key.strip().lower(): value for key, value in registrations.items()})
        self._registrations = builtins

    @property
    def hosts(self) -> list[str]:
        return sorted(self._registrations.keys())

    def register(self, *, host: str, extractor: ListingExtractor | str) -> None:
        if isinstance(extractor, str):
            extractor = self._load_dynamic_class(extractor)()
        self._registrations[host.strip().lower()] = extractor

    def resolve(self, url: str) -> ListingExtractor | None:
        """
        Return the extractor for `url`, or None when no marketplace matches.
        """

        host = (urlparse(url).hostname or "").lower()
        if not host:
            return None
        for fragment, extractor in self._registrations.items():
            if fragment in host:
                return extractor
        return None

    @staticmethod
    def _load_dynamic_class(path: str) -> type[ListingExtractor]:
        if ":" not in path:
            raise ValueError(f"Invalid extractor class '{path}'. Use 'module.path:ClassName'.")

        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve extractor class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, ListingExtractor):
            raise ValueError(f"Class '{path}' must inherit from ListingExtractor.")
        return loaded
