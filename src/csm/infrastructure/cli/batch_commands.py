"""CLI commands for supplier batches."""

from __future__ import annotations

import click

from csm.application.advance_batch import AdvanceBatchHandler
from csm.application.create_batch import CreateBatchHandler
from csm.application.reallocate_batch_costs import ReallocateBatchCostsHandler
from csm.application.receive_batch import ReceiveBatchHandler
from csm.domain.exceptions import DomainException
from csm.domain.model.batch import BatchCosts, BatchStatus, BatchUnit
from csm.infrastructure.bootstrap import build_context
from csm.infrastructure.cli.parsing import parse_decimal, parse_money


def cost_options(func):
    options = [
        click.option("--shipping", default=None, help="Shipping cost, e.g. '120 USD'."),
        click.option("--customs", default=None, help="Customs duty."),
        click.option("--other", default=None, help="Other costs."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _costs(currency: str, price: str, shipping: str | None, customs: str | None, other: str | None) -> BatchCosts:
    try:
        return BatchCosts(
            purchase_price=parse_money(price, currency),  # type: ignore[arg-type]
            shipping_cost=parse_money(shipping, currency),
            customs_duty=parse_money(customs, currency),
            other_costs=parse_money(other, currency),
        )
    except DomainException as exc:
        raise click.BadParameter(str(exc))


@click.command("create")
@click.option("--supplier", required=True, help="Supplier name.")
@click.option("--quantity", required=True, help="Ordered quantity.")
@click.option(
    "--unit",
    type=click.Choice([u.value for u in BatchUnit], case_sensitive=False),
    default=BatchUnit.KG.value,
    show_default=True,
)
@click.option("--price", required=True, help="Purchase price, e.g. '1500 USD'.")
@cost_options
def batch_create(
    supplier: str,
    quantity: str,
    unit: str,
    price: str,
    shipping: str | None,
    customs: str | None,
    other: str | None,
) -> None:
    """Order a new batch from a supplier."""
    ctx = build_context()
    costs = _costs(ctx.accounting_currency, price, shipping, customs, other)

    try:
        batch = CreateBatchHandler(ctx).handle(
            supplier, parse_decimal(quantity, "quantity"), BatchUnit(unit.upper()), costs
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Batch {batch.batch_number} ({batch.id}) ordered from {batch.supplier}")


@click.command("advance")
@click.option("--id", "batch_id", required=True, help="Batch ID.")
@click.option(
    "--to",
    "status",
    required=True,
    type=click.Choice(
        [s.value for s in BatchStatus if s not in (BatchStatus.ORDERED, BatchStatus.RECEIVED)],
        case_sensitive=False,
    ),
)
def batch_advance(batch_id: str, status: str) -> None:
    """Move a batch through transit, sorting and storage."""
    try:
        batch = AdvanceBatchHandler(build_context()).handle(batch_id, BatchStatus(status.upper()))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Batch {batch.batch_number} is now {batch.status.value}.")


@click.command("receive")
@click.option("--id", "batch_id", required=True, help="Batch ID.")
@click.option("--quantity", required=True, help="Received (weighed or counted) quantity.")
@click.option("--price", default=None, help="Final purchase price, if it changed.")
@cost_options
def batch_receive(
    batch_id: str,
    quantity: str,
    price: str | None,
    shipping: str | None,
    customs: str | None,
    other: str | None,
) -> None:
    """Record the arrival of a batch and compute its landed cost."""
    ctx = build_context()
    costs = None
    if price is not None:
        costs = _costs(ctx.accounting_currency, price, shipping, customs, other)

    try:
        allocation = ReceiveBatchHandler(ctx).handle(
            batch_id, parse_decimal(quantity, "quantity"), costs
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Landed cost: {allocation.total_cost}")
    if allocation.is_known:
        click.echo(f"Cost per {allocation.unit.value}: {allocation.cost_per_unit}")
    else:
        click.echo("Cost per unit: unknown (nothing received)")


@click.command("reallocate")
@click.option("--id", "batch_id", required=True, help="Batch ID.")
def batch_reallocate(batch_id: str) -> None:
    """Recompute a batch's costs and re-stamp its products."""
    try:
        report = ReallocateBatchCostsHandler(build_context()).handle(batch_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Cost per unit: {report.allocation.cost_per_unit}")
    if not report.corrections:
        click.echo("All products already carry the current cost.")
    for c in report.corrections:
        click.echo(f"  product {c.product_id}: {c.old_purchase_price} -> {c.new_purchase_price}")


@click.command("list")
def batch_list() -> None:
    """List all batches."""
    batches = build_context().batches.list_all()

    if not batches:
        click.echo("No batches found.")
        return

    click.echo(f"{'Number':<18} {'Supplier':<20} {'Status':<17} {'Cost/unit':>18}")
    click.echo("-" * 76)
    for b in batches:
        per_unit = str(b.cost_per_unit) if b.cost_per_unit else "-"
        click.echo(f"{b.batch_number or b.id:<18} {b.supplier:<20} {b.status.value:<17} {per_unit:>18}")
