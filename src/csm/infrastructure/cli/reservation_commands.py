"""CLI commands for stock reservations."""

from __future__ import annotations

import click

from csm.application.sweep_reservations import SweepExpiredReservationsHandler
from csm.domain.exceptions import DomainException
from csm.domain.model.reservation import ReservationState
from csm.infrastructure.bootstrap import build_context


@click.command("sweep")
def reservation_sweep() -> None:
    """Release expired reservations and cancel abandoned orders."""
    try:
        result = SweepExpiredReservationsHandler(build_context()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Released {len(result.released_tokens)} reservation(s), "
        f"cancelled {len(result.cancelled_orders)} order(s)."
    )


@click.command("list")
@click.option(
    "--state",
    type=click.Choice([s.value for s in ReservationState], case_sensitive=False),
    default=ReservationState.ACTIVE.value,
    show_default=True,
)
def reservation_list(state: str) -> None:
    """List reservations in a given state."""
    reservations = build_context().reservations.list_in_state(ReservationState(state.upper()))

    if not reservations:
        click.echo(f"No {state.upper()} reservations.")
        return

    click.echo(f"{'Token':<34} {'Product':<8} {'Qty':>5} {'Order':>6}  Expires")
    click.echo("-" * 74)
    for r in reservations:
        expires = f"{r.expires_at:%Y-%m-%d %H:%M}" if r.expires_at else "-"
        order = str(r.order_id) if r.order_id is not None else "-"
        click.echo(f"{r.token:<34} {r.product_id:<8} {r.quantity:>5} {order:>6}  {expires}")
