"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from csm.application.advance_order import ADVANCEABLE, AdvanceOrderHandler
from csm.application.cancel_order import CancelOrderHandler
from csm.application.documents import DocumentKind
from csm.application.dto import OrderDTO
from csm.application.fulfill_order import FulfillOrderHandler
from csm.application.place_order import PlaceOrderHandler
from csm.application.record_payment import RecordPaymentHandler
from csm.application.return_order import RefundOrderHandler, ReturnOrderHandler
from csm.application.show_order import ShowOrderHandler
from csm.domain.exceptions import DomainException
from csm.domain.model.order import OrderMilestone
from csm.infrastructure.bootstrap import build_context
from csm.infrastructure.cli.parsing import (
    build_payment_event,
    parse_decimal,
    parse_discount,
    parse_items,
    parse_money,
    payment_options,
)


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id} {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.return_deadline:
        click.echo(f"Returns until: {dto.return_deadline}")
    click.echo()
    click.echo(f"  {'Item':<20} {'Qty':>5} {'Price':>14} {'Discount':>14} {'Tax':>14} {'Total':>14}")
    click.echo(f"  {'-'*86}")
    for item in dto.items:
        click.echo(
            f"  {item.description:<20} {item.quantity:>5} {item.unit_price:>14} "
            f"{item.discount:>14} {item.tax:>14} {item.line_total:>14}"
        )
    click.echo(f"  {'-'*86}")
    for label, value in (
        ("Subtotal", dto.subtotal),
        ("Discounts", dto.discount_total),
        ("Tax", dto.tax_total),
        ("Charges", dto.charges_total),
        ("Order Total", dto.total),
        ("Paid", dto.paid),
        ("Balance Due", dto.balance_due),
    ):
        click.echo(f"  {label:<27} {value:>59}")
    if dto.overpaid.split()[0] != "0.00":
        click.echo(f"  {'Overpaid':<27} {dto.overpaid:>59}")


@click.command("place")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty[:Discount],...'.")
@click.option("--currency", default=None, help="Order currency (defaults to the accounting currency).")
@click.option("--tax-rate", default=None, help="Tax rate in percent applied to every line.")
@click.option("--discount", default=None, help="Order discount, '10%' or a fixed amount.")
@click.option("--shipping", default=None, help="Shipping cost.")
@click.option("--handling-fee", default=None, help="Handling fee.")
def order_place(
    customer: str,
    items: str,
    currency: str | None,
    tax_rate: str | None,
    discount: str | None,
    shipping: str | None,
    handling_fee: str | None,
) -> None:
    """Place a new order (reserves stock for every item)."""
    ctx = build_context()
    currency = (currency or ctx.accounting_currency).upper()
    specs = parse_items(items, parse_decimal(tax_rate, "tax rate") if tax_rate else None)
    order_discount = parse_discount(discount)

    try:
        order = PlaceOrderHandler(ctx).handle(
            customer_name=customer,
            item_specs=specs,
            currency=currency,
            discounts=[order_discount] if order_discount else None,
            shipping_cost=parse_money(shipping, currency),
            handling_fee=parse_money(handling_fee, currency),
        )
        dto = ShowOrderHandler(ctx).handle(order.id)  # type: ignore[arg-type]
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = ShowOrderHandler(build_context()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@payment_options
def order_pay(
    order_id: int,
    amount: str,
    method: str,
    payment_id: str | None,
    refund_of: str | None,
    reference: str,
) -> None:
    """Record a payment (or, with --refund-of, a refund) against an order."""
    ctx = build_context()

    try:
        order = ctx.orders.get_by_id(order_id)
        currency = order.currency if order else ctx.accounting_currency
        event = build_payment_event(
            amount, currency, method, payment_id, refund_of, reference, ctx.clock.now()
        )
        doc = RecordPaymentHandler(ctx).handle(DocumentKind.ORDER, order_id, event)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id}: paid {doc.paid_amount}, balance {doc.balance_due}")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", default="", help="Cancellation note.")
def order_cancel(order_id: int, reason: str) -> None:
    """Cancel an order (releases its reserved stock)."""
    try:
        CancelOrderHandler(build_context()).handle(order_id, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled.")


@click.command("advance")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "milestone",
    required=True,
    type=click.Choice([m.value for m in ADVANCEABLE], case_sensitive=False),
)
@click.option("--note", default="", help="Free-text note.")
def order_advance(order_id: int, milestone: str, note: str) -> None:
    """Move an order through processing, packing, delivery and completion."""
    try:
        AdvanceOrderHandler(build_context()).handle(
            order_id, OrderMilestone(milestone.upper()), note
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {milestone.upper()}.")


@click.command("ship")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to ship.")
def order_ship(order_id: int) -> None:
    """Ship a packed order (commits its reserved stock)."""
    try:
        FulfillOrderHandler(build_context()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} shipped.")


@click.command("return")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--reason", required=True, help="Why the customer returned the goods.")
def order_return(order_id: int, reason: str) -> None:
    """Accept a return within the return window (restocks the goods)."""
    try:
        ReturnOrderHandler(build_context()).handle(order_id, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} returned and restocked.")


@click.command("refund")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--note", default="", help="Free-text note.")
def order_refund(order_id: int, note: str) -> None:
    """Mark a delivered or returned order as refunded."""
    try:
        RefundOrderHandler(build_context()).handle(order_id, note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} refunded.")
