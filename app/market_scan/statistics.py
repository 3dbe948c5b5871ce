"""
Price distribution statistics.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from app.domain.market_scan import MarketStats


def _nearest_rank(ordered: list[float], fraction: float) -> float:
    # Not interpolated: the value at floor(n * fraction) of the sorted set.
    index = min(len(ordered) - 1, math.floor(len(ordered) * fraction))
    return ordered[index]


def median(ordered: list[float]) -> float:
    count = len(ordered)
    middle = count // 2
    if count % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) / 2


def summarize(prices: Iterable[float]) -> MarketStats:
    """
    Summarize prices already expressed in the reference currency.

    An empty input yields all-zero stats.
    """

    ordered = sorted(float(price) for price in prices)
    if not ordered:
        return MarketStats()

    return MarketStats(
        median_price=median(ordered),
        average_price=sum(ordered) / len(ordered),
        min_price=ordered[0],
        max_price=ordered[-1],
        count=len(ordered),
        percentile_25=_nearest_rank(ordered, 0.25),
        percentile_75=_nearest_rank(ordered, 0.75),
    )
