"""Abstract repository for exchange rates.

Rates are append-only: once stored they are never changed or removed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from csm.domain.model.exchange_rate import ExchangeRate


class ExchangeRateRepository(ABC):

    @abstractmethod
    def add(self, rate: ExchangeRate) -> None:
        """Append a rate; raise ValidationError if the pair already has one from the same instant."""

    @abstractmethod
    def list_all(self) -> list[ExchangeRate]:
        """Return every stored rate."""
