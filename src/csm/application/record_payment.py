"""Application service: Record Payment use case.

Applies a payment or refund event (from the till or a gateway webhook)
to an order or invoice and reconciles its totals.  When an order becomes
fully paid its reservations are pinned so the expiry sweep cannot take
the stock away.
"""

from __future__ import annotations

import logging

from csm.application.context import UseCaseContext
from csm.application.documents import DocumentKind, load_invoice, load_order
from csm.domain.exceptions import InsufficientStock
from csm.domain.model.document import FinancialDocument
from csm.domain.model.order import Order, OrderStatus
from csm.domain.model.payment import PaymentEvent
from csm.domain.model.reservation import ReservationState
from csm.domain.service.status_deriver import (
    check_invoice_accepts_payment,
    order_status,
)

logger = logging.getLogger(__name__)


class RecordPaymentHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, kind: DocumentKind, document_id: int, event: PaymentEvent) -> FinancialDocument:
        ctx = self._ctx
        now = ctx.clock.now()

        doc: FinancialDocument
        if kind is DocumentKind.INVOICE:
            doc = load_invoice(ctx, document_id)
            check_invoice_accepts_payment(doc, now)
        else:
            doc = load_order(ctx, document_id)

        if not doc.add_payment(event):
            logger.debug("Payment %s already recorded on %s #%s", event.payment_id, kind.value, document_id)
            return doc

        ctx.reconciler().reconcile(doc, now)
        if isinstance(doc, Order) and order_status(doc) is OrderStatus.PAYMENT_RECEIVED:
            self._hold_reservations(doc)

        if kind is DocumentKind.INVOICE:
            ctx.invoices.save(doc)
        else:
            ctx.orders.save(doc)

        logger.info(
            "Recorded %s payment %s of %s on %s #%s; balance %s",
            event.status.value, event.payment_id, event.amount,
            kind.value, document_id, doc.balance_due,
        )
        return doc

    def _hold_reservations(self, order: Order) -> None:
        """Pin every open reservation; re-reserve stock the sweep already released."""
        manager = self._ctx.reservation_manager()
        tokens: list[str] = []
        for token in order.reservation_tokens:
            if manager.hold(token):
                tokens.append(token)
                continue
            reservation = self._ctx.reservations.get(token)
            if reservation is None or reservation.state is not ReservationState.RELEASED:
                tokens.append(token)
                continue
            try:
                fresh = manager.reserve(reservation.product_id, reservation.quantity, order.id)
            except InsufficientStock:
                logger.warning(
                    "Order %s paid after its reservation of product %s expired "
                    "and the stock is gone",
                    order.id, reservation.product_id,
                )
                tokens.append(token)
                continue
            manager.hold(fresh.token)
            tokens.append(fresh.token)
        order.reservation_tokens = tokens
