"""Application service: Show Invoice use case (query)."""

from __future__ import annotations

from csm.application.context import UseCaseContext
from csm.application.documents import load_invoice
from csm.application.dto import InvoiceDTO
from csm.application.show_order import line_item_dto
from csm.domain.service.status_deriver import invoice_status


class ShowInvoiceHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(self, invoice_id: int) -> InvoiceDTO:
        now = self._ctx.clock.now()
        invoice = load_invoice(self._ctx, invoice_id)
        self._ctx.reconciler().reconcile(invoice, now)
        return InvoiceDTO(
            id=invoice.id,  # type: ignore[arg-type]
            invoice_number=invoice.invoice_number or "",
            type=invoice.type.value,
            issued_to=invoice.issued_to,
            status=invoice_status(invoice, now).value,
            items=[line_item_dto(item) for item in invoice.items],
            total=str(invoice.total),
            paid=str(invoice.paid_amount),
            balance_due=str(invoice.balance_due),
            issue_date=invoice.issue_date.strftime("%Y-%m-%d"),
            due_date=invoice.due_date.strftime("%Y-%m-%d"),
        )
