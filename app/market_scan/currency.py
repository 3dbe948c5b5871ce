"""
Currency normalization to the reference currency (EUR).
"""

from __future__ import annotations

from collections.abc import Mapping

from app.domain.market_scan import Currency

DEFAULT_RATES: dict[str, float] = {
    Currency.EUR.value: 1.0,
    Currency.DKK.value: 0.13,
    Currency.UNKNOWN.value: 1.0,
}


class CurrencyNormalizer:
    """
    Converts market-local prices with a static multiplicative rate table.

    Currencies without a rate are treated as already in the reference currency.
    """

    def __init__(self, rates: Mapping[str, float] | None = None) -> None:
        merged = dict(DEFAULT_RATES)
        if rates:
            merged.update({key.strip().upper(): float(value) for key, value in rates.items()})
        self._rates = merged

    @property
    def rates(self) -> dict[str, float]:
        return dict(self._rates)

    def rate_for(self, currency: Currency | str) -> float:
        code = currency.value if isinstance(currency, Currency) else str(currency).strip().upper()
        return self._rates.get(code, 1.0)

    def to_reference(self, price: float, currency: Currency | str) -> float:
        return price * self.rate_for(currency)
