"""Application service: Invoice lifecycle (send, viewed, cancel, refund)."""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.application.documents import load_invoice
from csm.domain.model.invoice import Invoice, InvoiceMilestone
from csm.domain.service.status_deriver import check_invoice_milestone


class InvoiceLifecycleHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, invoice_id: int, milestone: InvoiceMilestone) -> Invoice:
        ctx = self._ctx
        now = ctx.clock.now()
        invoice = load_invoice(ctx, invoice_id)

        check_invoice_milestone(invoice, milestone, now)
        invoice.record(milestone, now)
        ctx.reconciler().reconcile(invoice, now)
        ctx.invoices.save(invoice)
        return invoice

    def send(self, invoice_id: int) -> Invoice:
        return self.handle(invoice_id, InvoiceMilestone.SENT)

    def mark_viewed(self, invoice_id: int) -> Invoice:
        return self.handle(invoice_id, InvoiceMilestone.VIEWED)

    def cancel(self, invoice_id: int) -> Invoice:
        return self.handle(invoice_id, InvoiceMilestone.CANCELLED)

    def refund(self, invoice_id: int) -> Invoice:
        return self.handle(invoice_id, InvoiceMilestone.REFUNDED)
