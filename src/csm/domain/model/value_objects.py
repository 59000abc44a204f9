"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from csm.domain.exceptions import ValidationError

ACCOUNTING_CURRENCY = "EUR"

CENT = Decimal("0.01")
_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def validate_currency_code(code: str) -> str:
    """Return *code* if it looks like an ISO 4217 code, else raise."""
    if not isinstance(code, str) or not _CURRENCY_CODE.match(code):
        raise ValidationError(f"Invalid currency code: {code!r}")
    return code


@dataclass(frozen=True)
class Money:
    """Signed monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.  Amounts may be negative
    (balances can flag overpayment); non-negativity of prices is a
    line-item rule, not a Money rule.
    """

    amount: Decimal
    currency: str = ACCOUNTING_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if not self.amount.is_finite():
            raise ValidationError(f"Money amount must be finite, got {self.amount}")
        validate_currency_code(self.currency)

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __mul__(self, factor: int | Decimal) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError(
                f"Can only multiply Money by int or Decimal, got {type(factor).__name__}"
            )
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def rounded(self, exponent: Decimal = CENT) -> Money:
        """Quantize half-up to *exponent* (cents by default)."""
        return Money(self.amount.quantize(exponent, rounding=ROUND_HALF_UP), self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_negative(self) -> bool:
        return self.amount < 0

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = ACCOUNTING_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely.

        Floats are refused: they have already lost precision.
        """
        if isinstance(amount, float):
            raise ValidationError(f"Refusing float money amount: {amount!r}")
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = ACCOUNTING_CURRENCY) -> Money:
        return Money(Decimal("0"), currency)


class DiscountKind(Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


@dataclass(frozen=True)
class Discount:
    """A percentage or fixed-amount reduction.

    For FIXED discounts ``value`` is an amount in the currency of whatever
    it is applied to; for PERCENT it is 0..100.
    """

    kind: DiscountKind
    value: Decimal
    reason: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise ValidationError(
                f"Discount value must be a Decimal, got {type(self.value).__name__}"
            )
        if self.value < 0:
            raise ValidationError(f"Discount value cannot be negative, got {self.value}")
        if self.kind is DiscountKind.PERCENT and self.value > 100:
            raise ValidationError(f"Percent discount cannot exceed 100, got {self.value}")

    def amount_on(self, base: Money) -> Money:
        """Discount amount for *base*, never larger than *base* itself."""
        if self.kind is DiscountKind.PERCENT:
            return (base * (self.value / Decimal(100))).rounded()
        fixed = Money(self.value, base.currency)
        if base.is_negative():
            return Money.zero(base.currency)
        return min(fixed, base).rounded()

    @staticmethod
    def percent(value: str | int | Decimal, reason: str = "") -> Discount:
        return Discount(DiscountKind.PERCENT, Decimal(str(value)), reason)

    @staticmethod
    def fixed(value: str | int | Decimal, reason: str = "") -> Discount:
        return Discount(DiscountKind.FIXED, Decimal(str(value)), reason)
