"""Payment events and the summary a ledger derives from them."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from csm.domain.exceptions import ValidationError
from csm.domain.model.value_objects import Money


class PaymentEventStatus(Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    PAYPAL = "PAYPAL"
    STRIPE = "STRIPE"
    INVOICE = "INVOICE"
    STORE_CREDIT = "STORE_CREDIT"


class PaymentStatus(Enum):
    """Document-level payment state derived by the ledger."""

    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


@dataclass(frozen=True)
class PaymentEvent:
    """A single payment or refund as reported by a gateway or the till.

    A REFUNDED event is a refund of the earlier payment named by
    ``refund_of``; its amount is the refunded amount.
    """

    amount: Money
    status: PaymentEventStatus
    timestamp: datetime
    method: PaymentMethod = PaymentMethod.CASH
    payment_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    refund_of: str | None = None
    reference: str = ""

    def __post_init__(self) -> None:
        if self.amount.is_negative():
            raise ValidationError("Payment amount cannot be negative")
        if self.timestamp.tzinfo is None:
            raise ValidationError("Payment timestamp must be timezone-aware")
        if self.status is PaymentEventStatus.REFUNDED and not self.refund_of:
            raise ValidationError("A refund must reference the payment it refunds")
        if self.refund_of is not None and self.status is not PaymentEventStatus.REFUNDED:
            raise ValidationError("Only REFUNDED events may reference another payment")


@dataclass(frozen=True)
class PaymentSummary:
    paid_amount: Money
    balance_due: Money
    payment_status: PaymentStatus

    @property
    def overpaid_amount(self) -> Money:
        """How much more than the total has been collected (never negative)."""
        if self.balance_due.is_negative():
            return -self.balance_due
        return Money.zero(self.balance_due.currency)
