"""CLI commands for the Invoice aggregate."""

from __future__ import annotations

import click

from csm.application.documents import DocumentKind
from csm.application.invoice_lifecycle import InvoiceLifecycleHandler
from csm.application.issue_invoice import IssueInvoiceHandler
from csm.application.record_payment import RecordPaymentHandler
from csm.application.show_invoice import ShowInvoiceHandler
from csm.domain.exceptions import DomainException
from csm.infrastructure.bootstrap import build_context
from csm.infrastructure.cli.parsing import build_payment_event, payment_options


@click.command("issue")
@click.option("--order", "order_id", required=True, type=int, help="Order to invoice.")
@click.option("--terms", "terms_days", default=None, type=int, help="Payment terms in days.")
def invoice_issue(order_id: int, terms_days: int | None) -> None:
    """Issue a sales invoice for an order."""
    try:
        invoice = IssueInvoiceHandler(build_context()).handle(order_id, terms_days)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Invoice #{invoice.id} {invoice.invoice_number} issued to {invoice.issued_to}: "
        f"{invoice.total}, due {invoice.due_date:%Y-%m-%d}"
    )


@click.command("show")
@click.option("--id", "invoice_id", required=True, type=int, help="Invoice ID.")
def invoice_show(invoice_id: int) -> None:
    """Show an invoice."""
    try:
        dto = ShowInvoiceHandler(build_context()).handle(invoice_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{dto.type} invoice #{dto.id} {dto.invoice_number}  (status={dto.status})")
    click.echo(f"Issued to: {dto.issued_to}")
    click.echo(f"Issued {dto.issue_date}, due {dto.due_date}")
    click.echo()
    for item in dto.items:
        click.echo(f"  {item.description:<20} {item.quantity:>5} x {item.unit_price:>14} {item.line_total:>14}")
    click.echo(f"  {'Total':<27} {dto.total:>30}")
    click.echo(f"  {'Paid':<27} {dto.paid:>30}")
    click.echo(f"  {'Balance Due':<27} {dto.balance_due:>30}")


def _lifecycle_command(name: str, action: str, help_text: str) -> click.Command:
    @click.command(name, help=help_text)
    @click.option("--id", "invoice_id", required=True, type=int, help="Invoice ID.")
    def command(invoice_id: int) -> None:
        handler = InvoiceLifecycleHandler(build_context())
        try:
            getattr(handler, action)(invoice_id)
        except DomainException as exc:
            raise click.ClickException(str(exc))
        click.echo(f"Invoice #{invoice_id}: {name} recorded.")

    return command


invoice_send = _lifecycle_command("send", "send", "Mark an invoice as sent to the customer.")
invoice_view = _lifecycle_command("view", "mark_viewed", "Mark an invoice as viewed.")
invoice_cancel = _lifecycle_command("cancel", "cancel", "Cancel an unpaid invoice.")
invoice_refund = _lifecycle_command("refund", "refund", "Mark a paid invoice as refunded.")


@click.command("pay")
@click.option("--id", "invoice_id", required=True, type=int, help="Invoice ID.")
@payment_options
def invoice_pay(
    invoice_id: int,
    amount: str,
    method: str,
    payment_id: str | None,
    refund_of: str | None,
    reference: str,
) -> None:
    """Record a payment (or, with --refund-of, a refund) against an invoice."""
    ctx = build_context()

    try:
        invoice = ctx.invoices.get_by_id(invoice_id)
        currency = invoice.currency if invoice else ctx.accounting_currency
        event = build_payment_event(
            amount, currency, method, payment_id, refund_of, reference, ctx.clock.now()
        )
        doc = RecordPaymentHandler(ctx).handle(DocumentKind.INVOICE, invoice_id, event)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice #{invoice_id}: paid {doc.paid_amount}, balance {doc.balance_due}")
