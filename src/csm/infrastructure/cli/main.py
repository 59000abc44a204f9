import click

from csm.infrastructure.cli.batch_commands import (
    batch_advance,
    batch_create,
    batch_list,
    batch_reallocate,
    batch_receive,
)
from csm.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_history,
    inventory_show,
)
from csm.infrastructure.cli.invoice_commands import (
    invoice_cancel,
    invoice_issue,
    invoice_pay,
    invoice_refund,
    invoice_send,
    invoice_show,
    invoice_view,
)
from csm.infrastructure.cli.order_commands import (
    order_advance,
    order_cancel,
    order_pay,
    order_place,
    order_refund,
    order_return,
    order_ship,
    order_show,
)
from csm.infrastructure.cli.product_commands import product_add, product_list
from csm.infrastructure.cli.rate_commands import rate_add, rate_convert, rate_list
from csm.infrastructure.cli.reservation_commands import (
    reservation_list,
    reservation_sweep,
)
from csm.infrastructure.logging_conf import setup_logging
from csm.infrastructure.settings import get_settings


@click.group()
@click.option("--log-level", default=None, help="Override CSM_LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """CSM — Clothing Store Management"""
    settings = get_settings()
    setup_logging((log_level or settings.log_level).upper(), settings.log_file)


@cli.group()
def order() -> None:
    """Manage customer orders."""


@cli.group()
def invoice() -> None:
    """Manage invoices."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def batch() -> None:
    """Manage supplier batches."""


@cli.group()
def rate() -> None:
    """Manage exchange rates."""


@cli.group()
def reservation() -> None:
    """Manage stock reservations."""


# Register subcommands
order.add_command(order_advance)
order.add_command(order_cancel)
order.add_command(order_pay)
order.add_command(order_place)
order.add_command(order_refund)
order.add_command(order_return)
order.add_command(order_ship)
order.add_command(order_show)
invoice.add_command(invoice_cancel)
invoice.add_command(invoice_issue)
invoice.add_command(invoice_pay)
invoice.add_command(invoice_refund)
invoice.add_command(invoice_send)
invoice.add_command(invoice_show)
invoice.add_command(invoice_view)
product.add_command(product_add)
product.add_command(product_list)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_history)
inventory.add_command(inventory_show)
batch.add_command(batch_advance)
batch.add_command(batch_create)
batch.add_command(batch_list)
batch.add_command(batch_reallocate)
batch.add_command(batch_receive)
rate.add_command(rate_add)
rate.add_command(rate_convert)
rate.add_command(rate_list)
reservation.add_command(reservation_list)
reservation.add_command(reservation_sweep)
