"""Option parsing shared by the CLI command modules."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation

import click

from csm.application.dto import OrderItemSpec
from csm.domain.exceptions import DomainException
from csm.domain.model.payment import PaymentEvent, PaymentEventStatus, PaymentMethod
from csm.domain.model.value_objects import Discount, Money


def parse_decimal(raw: str, what: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid {what} '{raw}'.")


def parse_money(raw: str | None, currency: str) -> Money | None:
    """Parse '12.50' (in *currency*) or '12.50 USD'."""
    if raw is None:
        return None
    parts = raw.split()
    if len(parts) == 2:
        raw, currency = parts
    try:
        return Money.of(raw, currency.upper())
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def parse_discount(raw: str | None) -> Discount | None:
    """Parse '10%' as a percentage or '5.00' as a fixed amount."""
    if raw is None:
        return None
    try:
        if raw.endswith("%"):
            return Discount.percent(parse_decimal(raw[:-1], "discount"))
        return Discount.fixed(parse_decimal(raw, "discount"))
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def parse_items(raw: str, tax_rate: Decimal | None = None) -> list[OrderItemSpec]:
    """Parse '1:3,2:5' or '1:3:10%' (product id, quantity, optional discount)."""
    specs: list[OrderItemSpec] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = entry.split(":")
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'ProductId:Quantity[:Discount]'."
            )
        product_id, qty_str = parts[0].strip(), parts[1].strip()
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        discount = parse_discount(parts[2].strip()) if len(parts) == 3 else None
        specs.append(
            OrderItemSpec(product_id=product_id, quantity=qty, discount=discount, tax_rate=tax_rate)
        )
    return specs


def payment_options(func):
    """Options shared by the order and invoice ``pay`` commands."""
    options = [
        click.option("--amount", required=True, help="Amount (e.g. 25.00 or '25.00 USD')."),
        click.option(
            "--method",
            type=click.Choice([m.value for m in PaymentMethod], case_sensitive=False),
            default=PaymentMethod.CASH.value,
            show_default=True,
        ),
        click.option("--payment-id", default=None, help="Gateway payment id (redeliveries are ignored)."),
        click.option("--refund-of", default=None, help="Payment id this event refunds."),
        click.option("--reference", default="", help="Free-text reference."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_payment_event(
    amount: str,
    currency: str,
    method: str,
    payment_id: str | None,
    refund_of: str | None,
    reference: str,
    now: datetime,
) -> PaymentEvent:
    status = PaymentEventStatus.REFUNDED if refund_of else PaymentEventStatus.COMPLETED
    extra = {"payment_id": payment_id} if payment_id else {}
    try:
        return PaymentEvent(
            amount=parse_money(amount, currency),  # type: ignore[arg-type]
            status=status,
            timestamp=now,
            method=PaymentMethod(method.upper()),
            refund_of=refund_of,
            reference=reference,
            **extra,
        )
    except DomainException as exc:
        raise click.BadParameter(str(exc))
