"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from csm.application.create_product import CreateProductHandler
from csm.domain.exceptions import DomainException
from csm.infrastructure.bootstrap import build_context
from csm.infrastructure.cli.parsing import parse_decimal, parse_money


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Selling price (e.g. 15.00 or '15.00 USD').")
@click.option("--quantity", default=0, type=int, show_default=True, help="Initial stock.")
@click.option("--batch", "batch_id", default=None, help="Batch the product was sorted from.")
@click.option("--batch-units", default="1", show_default=True, help="Batch units per piece (e.g. 0.45 kg).")
@click.option("--cost", default=None, help="Purchase price when not from a batch.")
def product_add(
    name: str,
    price: str,
    quantity: int,
    batch_id: str | None,
    batch_units: str,
    cost: str | None,
) -> None:
    """Add a new product to the catalog."""
    ctx = build_context()
    handler = CreateProductHandler(ctx)

    try:
        product = handler.handle(
            name=name,
            price=parse_money(price, ctx.accounting_currency),  # type: ignore[arg-type]
            quantity=quantity,
            batch_id=batch_id,
            batch_units=parse_decimal(batch_units, "batch units"),
            purchase_price=parse_money(cost, ctx.accounting_currency),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price}")
    if product.purchase_price is not None:
        click.echo(f"Purchase price: {product.purchase_price}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = build_context().products.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Price':>14} {'Cost':>14} {'Margin':>8}")
    click.echo("-" * 70)
    for p in products:
        cost = str(p.purchase_price) if p.purchase_price else "-"
        margin = f"{p.profit_margin}%" if p.profit_margin is not None else "-"
        click.echo(f"{p.id:<6} {p.name:<24} {str(p.price):>14} {cost:>14} {margin:>8}")
