"""CLI commands for inventory management."""

from __future__ import annotations

import click

from csm.application.adjust_inventory import AdjustInventoryHandler
from csm.application.show_inventory import ShowInventoryHandler
from csm.domain.exceptions import DomainException
from csm.domain.model.inventory_movement import MovementType
from csm.infrastructure.bootstrap import build_context

_ADJUSTMENT_TYPES = [
    t.value
    for t in (
        MovementType.ADJUSTMENT,
        MovementType.INBOUND,
        MovementType.DAMAGE,
        MovementType.THEFT,
        MovementType.DISPOSAL,
    )
]


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--delta", required=True, type=int, help="Signed change to the on-hand quantity.")
@click.option("--reason", required=True, help="Why the stock changed (audited).")
@click.option(
    "--type",
    "movement_type",
    type=click.Choice(_ADJUSTMENT_TYPES, case_sensitive=False),
    default=MovementType.ADJUSTMENT.value,
    show_default=True,
)
def inventory_adjust(product_id: str, delta: int, reason: str, movement_type: str) -> None:
    """Correct the stock of a product (damage, theft, recount)."""
    handler = AdjustInventoryHandler(build_context())

    try:
        product = handler.handle(
            product_id, delta, reason, movement_type=MovementType(movement_type.upper())
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Stock of '{product.name}' is now {product.quantity} "
        f"({product.available_quantity} available)"
    )


@click.command("show")
def inventory_show() -> None:
    """Show current inventory levels."""
    lines = ShowInventoryHandler(build_context()).handle()

    if not lines:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Product':<24} {'Total':>8} {'Reserved':>10} {'Available':>10}")
    click.echo("-" * 62)
    for line in lines:
        click.echo(
            f"{line.product_id:<6} {line.product_name:<24} {line.total:>8} "
            f"{line.reserved:>10} {line.available:>10}"
        )


@click.command("history")
@click.option("--product", "product_id", required=True, help="Product ID.")
def inventory_history(product_id: str) -> None:
    """Show the stock movements of a product."""
    movements = build_context().movements.list_for_product(product_id)

    if not movements:
        click.echo(f"No movements recorded for product '{product_id}'.")
        return

    click.echo(f"{'When':<17} {'Type':<11} {'Delta':>6} {'After':>6}  Reason")
    click.echo("-" * 60)
    for m in movements:
        click.echo(
            f"{m.at:%Y-%m-%d %H:%M} {m.type.value:<11} {m.delta:>+6} {m.quantity_after:>6}  {m.reason}"
        )
