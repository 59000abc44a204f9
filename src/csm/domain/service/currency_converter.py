"""Domain service: Currency Converter.

Resolves amounts into another currency using the exchange rate valid at
a reference instant.  Operates on an already-loaded rate table, so it
never performs I/O and never guesses a rate.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from csm.domain.exceptions import NoRateFound
from csm.domain.model.exchange_rate import ExchangeRate
from csm.domain.model.value_objects import Money, validate_currency_code
from csm.domain.repository.exchange_rate_repository import ExchangeRateRepository


class CurrencyConverter:

    def __init__(self, rates: Iterable[ExchangeRate] = ()) -> None:
        self._rates: dict[tuple[str, str], list[ExchangeRate]] = {}
        for rate in rates:
            self._rates.setdefault(rate.pair, []).append(rate)
        for pair_rates in self._rates.values():
            # Newest first, so the first valid match is the current one.
            pair_rates.sort(key=lambda r: r.valid_from, reverse=True)

    @classmethod
    def from_repository(cls, repo: ExchangeRateRepository) -> CurrencyConverter:
        return cls(repo.list_all())

    def rate_for(self, from_currency: str, to_currency: str, as_of: datetime) -> ExchangeRate:
        """Return the rate with the latest ``valid_from`` among those valid at *as_of*."""
        for rate in self._rates.get((from_currency, to_currency), []):
            if rate.is_valid_at(as_of):
                return rate
        raise NoRateFound(from_currency, to_currency, as_of)

    def convert(self, amount: Money, to_currency: str, as_of: datetime) -> Money:
        """Convert *amount* into *to_currency* at *as_of*, rounded to cents.

        Returns *amount* unchanged when it is already in *to_currency*.
        """
        validate_currency_code(to_currency)
        if amount.currency == to_currency:
            return amount
        rate = self.rate_for(amount.currency, to_currency, as_of)
        return Money(amount.amount * rate.rate, to_currency).rounded()
