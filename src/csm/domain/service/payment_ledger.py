"""Domain service: Payment Ledger.

Folds a document's payment events into paid amount, balance and payment
status.  Events are sorted by timestamp first, so out-of-order delivery
from a payment gateway does not change the result.

Only COMPLETED events add to the paid amount.  A REFUNDED event subtracts
its amount from the completed payment it references, never more than
what is left of that payment; refunds of payments that are unknown or
not (yet) completed are ignored.

``balance_due`` is allowed to go negative; the overpayment is exposed as
``PaymentSummary.overpaid_amount``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from csm.domain.model.document import FinancialDocument
from csm.domain.model.payment import (
    PaymentEvent,
    PaymentEventStatus,
    PaymentStatus,
    PaymentSummary,
)
from csm.domain.model.value_objects import Money
from csm.domain.service.currency_converter import CurrencyConverter


class PaymentLedger:

    def __init__(self, converter: CurrencyConverter) -> None:
        self._converter = converter

    def apply(
        self,
        doc: FinancialDocument,
        now: datetime,
        events: Iterable[PaymentEvent] | None = None,
    ) -> PaymentSummary:
        """Summarize *events* (the document's own payments by default) against ``doc.total``."""
        if events is None:
            events = doc.payments
        currency = doc.currency
        paid = Money.zero(currency).rounded()
        refundable: dict[str, Money] = {}

        for event in sorted(events, key=lambda e: (e.timestamp, e.payment_id)):
            if event.status is PaymentEventStatus.COMPLETED:
                amount = self._converter.convert(event.amount, currency, event.timestamp)
                paid += amount
                refundable[event.payment_id] = amount
            elif event.status is PaymentEventStatus.REFUNDED:
                remaining = refundable.get(event.refund_of or "")
                if remaining is None:
                    continue
                amount = self._converter.convert(event.amount, currency, event.timestamp)
                refund = min(amount, remaining)
                paid -= refund
                refundable[event.refund_of] = remaining - refund

        balance = doc.total - paid
        return PaymentSummary(
            paid_amount=paid,
            balance_due=balance,
            payment_status=self._status(paid, balance, doc.due_date, now),
        )

    @staticmethod
    def _status(
        paid: Money, balance: Money, due_date: datetime | None, now: datetime
    ) -> PaymentStatus:
        if balance.amount <= 0:
            return PaymentStatus.PAID
        if paid.amount > 0:
            return PaymentStatus.PARTIALLY_PAID
        if due_date is not None and now > due_date:
            return PaymentStatus.OVERDUE
        return PaymentStatus.PENDING
