"""
Marketplace extractor exports.
"""

from app.market_scan.extractors.base import ListingExtractor
from app.market_scan.extractors.bilbasen import BilbasenExtractor
from app.market_scan.extractors.gaspedaal import GaspedaalExtractor
from app.market_scan.extractors.leboncoin import LeboncoinExtractor
from app.market_scan.extractors.marktplaats import MarktplaatsExtractor

__all__ = [
    "BilbasenExtractor",
    "GaspedaalExtractor",
    "LeboncoinExtractor",
    "ListingExtractor",
    "MarktplaatsExtractor",
]
