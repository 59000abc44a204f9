"""JSON-file-backed implementation of ExchangeRateRepository (append-only)."""

from __future__ import annotations

from decimal import Decimal

from csm.domain.exceptions import ValidationError
from csm.domain.model.exchange_rate import ExchangeRate
from csm.domain.repository.exchange_rate_repository import ExchangeRateRepository
from csm.infrastructure.persistence.codec import datetime_from_raw, datetime_to_raw
from csm.infrastructure.persistence.json_store import JsonFileStore


class JsonExchangeRateRepository(JsonFileStore, ExchangeRateRepository):

    def add(self, rate: ExchangeRate) -> None:
        with self._locked() as records:
            for raw in records:
                existing = self._to_domain(raw)
                if existing.pair == rate.pair and existing.valid_from == rate.valid_from:
                    raise ValidationError(
                        f"A {rate.from_currency}->{rate.to_currency} rate valid from "
                        f"{rate.valid_from.isoformat()} already exists"
                    )
            records.append(self._to_raw(rate))

    def list_all(self) -> list[ExchangeRate]:
        with self._lock:
            records = self._load_raw()
        return [self._to_domain(raw) for raw in records]

    @staticmethod
    def _to_raw(rate: ExchangeRate) -> dict:
        return {
            "from_currency": rate.from_currency,
            "to_currency": rate.to_currency,
            "rate": str(rate.rate),
            "valid_from": datetime_to_raw(rate.valid_from),
            "valid_to": datetime_to_raw(rate.valid_to),
            "source": rate.source,
        }

    @staticmethod
    def _to_domain(raw: dict) -> ExchangeRate:
        return ExchangeRate(
            from_currency=raw["from_currency"],
            to_currency=raw["to_currency"],
            rate=Decimal(raw["rate"]),
            valid_from=datetime_from_raw(raw["valid_from"]),  # type: ignore[arg-type]
            valid_to=datetime_from_raw(raw.get("valid_to")),
            source=raw.get("source", "manual"),
        )
