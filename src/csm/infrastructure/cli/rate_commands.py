"""CLI commands for exchange rates."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from csm.application.add_exchange_rate import AddExchangeRateHandler
from csm.domain.exceptions import DomainException
from csm.infrastructure.bootstrap import build_context
from csm.infrastructure.cli.parsing import parse_decimal, parse_money


def _instant(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        raise click.BadParameter(f"Invalid date/time '{raw}'. Expected ISO format.")
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@click.command("add")
@click.option("--from", "from_currency", required=True, help="Source currency, e.g. USD.")
@click.option("--to", "to_currency", required=True, help="Target currency, e.g. EUR.")
@click.option("--rate", required=True, help="Units of --to per one unit of --from.")
@click.option("--valid-from", default=None, help="ISO date/time (defaults to now, UTC).")
@click.option("--valid-to", default=None, help="ISO date/time, exclusive.")
@click.option("--source", default="manual", show_default=True)
def rate_add(
    from_currency: str,
    to_currency: str,
    rate: str,
    valid_from: str | None,
    valid_to: str | None,
    source: str,
) -> None:
    """Add an exchange rate."""
    try:
        added = AddExchangeRateHandler(build_context()).handle(
            from_currency,
            to_currency,
            parse_decimal(rate, "rate"),
            valid_from=_instant(valid_from),
            valid_to=_instant(valid_to),
            source=source,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"1 {added.from_currency} = {added.rate} {added.to_currency} from {added.valid_from:%Y-%m-%d %H:%M}")


@click.command("list")
def rate_list() -> None:
    """List all exchange rates."""
    rates = build_context().rates.list_all()

    if not rates:
        click.echo("No exchange rates found.")
        return

    click.echo(f"{'Pair':<9} {'Rate':>14}  {'Valid from':<17} {'Valid to':<17} Source")
    click.echo("-" * 72)
    for r in sorted(rates, key=lambda r: (r.pair, r.valid_from)):
        until = f"{r.valid_to:%Y-%m-%d %H:%M}" if r.valid_to else "-"
        click.echo(
            f"{r.from_currency}/{r.to_currency:<5} {str(r.rate):>14}  "
            f"{r.valid_from:%Y-%m-%d %H:%M} {until:<17} {r.source}"
        )


@click.command("convert")
@click.option("--amount", required=True, help="Amount with currency, e.g. '100 USD'.")
@click.option("--to", "to_currency", required=True, help="Target currency.")
@click.option("--at", "as_of", default=None, help="ISO date/time (defaults to now).")
def rate_convert(amount: str, to_currency: str, as_of: str | None) -> None:
    """Convert an amount at the rate valid at a given time."""
    ctx = build_context()
    money = parse_money(amount, ctx.accounting_currency)

    try:
        converted = ctx.converter().convert(
            money, to_currency.upper(), _instant(as_of) or ctx.clock.now()  # type: ignore[arg-type]
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{money} = {converted}")
