"""Unit tests for the PaymentLedger domain service."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from csm.domain.exceptions import ValidationError
from csm.domain.model.exchange_rate import ExchangeRate
from csm.domain.model.invoice import Invoice
from csm.domain.model.line_item import LineItem
from csm.domain.model.order import Order
from csm.domain.model.payment import PaymentEvent, PaymentEventStatus, PaymentStatus
from csm.domain.model.value_objects import Money
from csm.domain.service.currency_converter import CurrencyConverter
from csm.domain.service.document_totals import DocumentTotalsAggregator
from csm.domain.service.payment_ledger import PaymentLedger

NOW = datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)

converter = CurrencyConverter(
    [ExchangeRate("USD", "EUR", Decimal("0.9"), datetime(2024, 1, 1, tzinfo=timezone.utc))]
)
ledger = PaymentLedger(converter)


def _order(total: str) -> Order:
    order = Order.create(
        "Alice", [LineItem(unit_price=Money.of(total), quantity=1)], currency="EUR", created_at=NOW
    )
    return DocumentTotalsAggregator(converter).recompute(order)


def _paid(amount: str, minutes: int = 0, payment_id: str | None = None, currency: str = "EUR") -> PaymentEvent:
    extra = {"payment_id": payment_id} if payment_id else {}
    return PaymentEvent(
        amount=Money.of(amount, currency),
        status=PaymentEventStatus.COMPLETED,
        timestamp=NOW + timedelta(minutes=minutes),
        **extra,
    )


def _refund(amount: str, of: str, minutes: int = 0) -> PaymentEvent:
    return PaymentEvent(
        amount=Money.of(amount),
        status=PaymentEventStatus.REFUNDED,
        timestamp=NOW + timedelta(minutes=minutes),
        refund_of=of,
    )


class TestPaidAmount:

    def test_two_payments_settle_total(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("30", 1), _paid("20", 2)])
        assert summary.paid_amount == Money.of("50.00")
        assert summary.balance_due.is_zero()
        assert summary.payment_status is PaymentStatus.PAID

    def test_partial(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("30")])
        assert summary.balance_due == Money.of("20.00")
        assert summary.payment_status is PaymentStatus.PARTIALLY_PAID

    def test_nothing_paid_is_pending(self):
        assert ledger.apply(_order("50"), NOW, []).payment_status is PaymentStatus.PENDING

    def test_pending_and_failed_do_not_count(self):
        events = [
            PaymentEvent(Money.of("50"), PaymentEventStatus.PENDING, NOW),
            PaymentEvent(Money.of("50"), PaymentEventStatus.FAILED, NOW),
        ]
        assert ledger.apply(_order("50"), NOW, events).paid_amount.is_zero()

    def test_overpayment_gives_negative_balance(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("70")])
        assert summary.balance_due == Money.of("-20.00")
        assert summary.overpaid_amount == Money.of("20.00")
        assert summary.payment_status is PaymentStatus.PAID

    def test_foreign_payment_converted_at_event_time(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("10", currency="USD")])
        assert summary.paid_amount == Money.of("9.00")

    def test_uses_document_payments_by_default(self):
        order = _order("50")
        order.add_payment(_paid("50"))
        assert ledger.apply(order, NOW).payment_status is PaymentStatus.PAID


class TestRefunds:

    def test_refund_subtracts(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("50", 0, "p1"), _refund("20", "p1", 5)])
        assert summary.paid_amount == Money.of("30.00")
        assert summary.payment_status is PaymentStatus.PARTIALLY_PAID

    def test_refund_capped_at_original_payment(self):
        events = [_paid("50", 0, "p1"), _refund("30", "p1", 5), _refund("30", "p1", 6)]
        summary = ledger.apply(_order("50"), NOW, events)
        assert summary.paid_amount.is_zero()

    def test_refund_of_unknown_payment_ignored(self):
        summary = ledger.apply(_order("50"), NOW, [_paid("50", 0, "p1"), _refund("20", "nope", 5)])
        assert summary.paid_amount == Money.of("50.00")

    def test_order_of_delivery_does_not_matter(self):
        events = [_refund("20", "p1", 5), _paid("50", 0, "p1"), _paid("10", 10, "p2")]
        in_order = ledger.apply(_order("60"), NOW, sorted(events, key=lambda e: e.timestamp))
        shuffled = ledger.apply(_order("60"), NOW, events)
        assert shuffled == in_order
        assert shuffled.paid_amount == Money.of("40.00")

    def test_refund_requires_reference(self):
        with pytest.raises(ValidationError, match="must reference"):
            PaymentEvent(Money.of("1"), PaymentEventStatus.REFUNDED, NOW)


class TestOverdue:

    def _invoice(self, issued: datetime) -> Invoice:
        invoice = Invoice.create(
            "Alice",
            [LineItem(unit_price=Money.of("100"), quantity=1)],
            currency="EUR",
            issue_date=issued,
            payment_terms_days=14,
        )
        return DocumentTotalsAggregator(converter).recompute(invoice)

    def test_unpaid_past_due_is_overdue(self):
        invoice = self._invoice(NOW - timedelta(days=15))
        assert ledger.apply(invoice, NOW).payment_status is PaymentStatus.OVERDUE

    def test_not_yet_due(self):
        invoice = self._invoice(NOW - timedelta(days=13))
        assert ledger.apply(invoice, NOW).payment_status is PaymentStatus.PENDING

    def test_partially_paid_wins_over_overdue(self):
        invoice = self._invoice(NOW - timedelta(days=30))
        summary = ledger.apply(invoice, NOW, [_paid("10")])
        assert summary.payment_status is PaymentStatus.PARTIALLY_PAID


class TestAddPayment:

    def test_identical_redelivery_is_noop(self):
        order = _order("50")
        event = _paid("50", payment_id="gw-1")
        assert order.add_payment(event) is True
        assert order.add_payment(event) is False
        assert len(order.payments) == 1

    def test_same_payment_id_replaces_earlier_event(self):
        order = _order("50")
        order.add_payment(
            PaymentEvent(Money.of("50"), PaymentEventStatus.PENDING, NOW, payment_id="gw-1")
        )
        order.add_payment(_paid("50", 1, "gw-1"))
        assert len(order.payments) == 1
        assert ledger.apply(order, NOW).payment_status is PaymentStatus.PAID
