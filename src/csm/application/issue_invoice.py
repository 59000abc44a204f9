"""Application services: Issue Invoice use cases.

A sales invoice is usually issued for an existing order and copies its
lines, discounts and charges; purchase invoices (from suppliers) are
created standalone.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from csm.application.context import UseCaseContext
from csm.application.documents import load_order
from csm.domain.model.invoice import Invoice, InvoiceType
from csm.domain.model.line_item import LineItem
from csm.domain.model.value_objects import Discount, Money

logger = logging.getLogger(__name__)


class IssueInvoiceHandler:
    """Issue a sales invoice for an order."""

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, order_id: int, payment_terms_days: int | None = None) -> Invoice:
        ctx = self._ctx
        now = ctx.clock.now()
        order = load_order(ctx, order_id)

        invoice = Invoice.create(
            issued_to=order.customer_name,
            # Inputs only; the calculator re-derives the amounts.
            items=[_inputs_of(item) for item in order.items],
            currency=order.currency,
            issue_date=now,
            payment_terms_days=_terms(ctx, payment_terms_days),
            order_id=order.id,
        )
        for discount in order.discounts:
            invoice.add_discount(discount)
        invoice.set_shipping_cost(order.shipping_cost)
        invoice.set_extra_charges(order.extra_charges)

        return _number_and_save(ctx, invoice, now)


class CreateInvoiceHandler:
    """Create a standalone invoice, e.g. a supplier's purchase invoice."""

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        issued_to: str,
        items: list[LineItem],
        invoice_type: InvoiceType = InvoiceType.SALES,
        currency: str | None = None,
        discounts: list[Discount] | None = None,
        shipping_cost: Money | None = None,
        other_charges: Money | None = None,
        payment_terms_days: int | None = None,
    ) -> Invoice:
        ctx = self._ctx
        now = ctx.clock.now()
        invoice = Invoice.create(
            issued_to=issued_to,
            items=items,
            currency=currency or ctx.accounting_currency,
            issue_date=now,
            payment_terms_days=_terms(ctx, payment_terms_days),
            type=invoice_type,
        )
        for discount in discounts or []:
            invoice.add_discount(discount)
        invoice.set_shipping_cost(shipping_cost)
        invoice.set_extra_charges(other_charges)

        return _number_and_save(ctx, invoice, now)


def _inputs_of(item: LineItem) -> LineItem:
    return replace(item, subtotal=None, discount_amount=None, tax_amount=None, total=None)


def _terms(ctx: UseCaseContext, payment_terms_days: int | None) -> int:
    return ctx.payment_terms_days if payment_terms_days is None else payment_terms_days


def _number_and_save(ctx: UseCaseContext, invoice: Invoice, now: datetime) -> Invoice:
    ctx.reconciler().reconcile(invoice, now)
    sequence = ctx.invoices.count_issued_in(now.year, invoice.type) + 1
    invoice.invoice_number = f"{invoice.number_prefix}-{now.year}-{sequence:05d}"
    ctx.invoices.save(invoice)
    logger.info(
        "Issued %s invoice %s to %s: total %s, due %s",
        invoice.type.value, invoice.invoice_number, invoice.issued_to,
        invoice.total, invoice.due_date.date().isoformat(),
    )
    return invoice
