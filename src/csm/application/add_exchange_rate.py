"""Application service: Add Exchange Rate use case."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from csm.application.context import UseCaseContext
from csm.domain.model.exchange_rate import ExchangeRate

logger = logging.getLogger(__name__)


class AddExchangeRateHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        from_currency: str,
        to_currency: str,
        rate: Decimal,
        valid_from: datetime | None = None,
        valid_to: datetime | None = None,
        source: str = "manual",
    ) -> ExchangeRate:
        exchange_rate = ExchangeRate(
            from_currency=from_currency.upper(),
            to_currency=to_currency.upper(),
            rate=rate,
            valid_from=valid_from or self._ctx.clock.now(),
            valid_to=valid_to,
            source=source,
        )
        self._ctx.rates.add(exchange_rate)
        logger.info(
            "Added rate %s->%s = %s from %s",
            exchange_rate.from_currency, exchange_rate.to_currency,
            exchange_rate.rate, exchange_rate.valid_from.isoformat(),
        )
        return exchange_rate
