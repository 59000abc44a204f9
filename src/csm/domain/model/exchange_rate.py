"""ExchangeRate — immutable, time-scoped conversion factor for a currency pair."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from csm.domain.exceptions import ValidationError
from csm.domain.model.value_objects import validate_currency_code


@dataclass(frozen=True)
class ExchangeRate:
    """One ``from_currency`` unit is worth ``rate`` ``to_currency`` units.

    Valid from ``valid_from`` (inclusive) until ``valid_to`` (exclusive),
    or open-ended when ``valid_to`` is None.
    """

    from_currency: str
    to_currency: str
    rate: Decimal
    valid_from: datetime
    valid_to: datetime | None = None
    source: str = "manual"

    def __post_init__(self) -> None:
        validate_currency_code(self.from_currency)
        validate_currency_code(self.to_currency)
        if self.from_currency == self.to_currency:
            raise ValidationError("Exchange rate must convert between two currencies")
        if not isinstance(self.rate, Decimal) or self.rate <= 0:
            raise ValidationError(f"Exchange rate must be a positive Decimal, got {self.rate!r}")
        if self.valid_from.tzinfo is None:
            raise ValidationError("valid_from must be timezone-aware")
        if self.valid_to is not None and self.valid_to <= self.valid_from:
            raise ValidationError("valid_to must be after valid_from")

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency, self.to_currency)

    def is_valid_at(self, instant: datetime) -> bool:
        if instant < self.valid_from:
            return False
        return self.valid_to is None or self.valid_to > instant
