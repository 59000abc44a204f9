"""Loading and checking helpers shared by the use cases that touch orders and invoices."""

from __future__ import annotations

import logging
from enum import Enum

from csm.application.context import UseCaseContext
from csm.domain.exceptions import EntityNotFoundError, InsufficientStock
from csm.domain.model.invoice import Invoice
from csm.domain.model.order import Order
from csm.domain.model.reservation import ReservationState

logger = logging.getLogger(__name__)


class DocumentKind(Enum):
    ORDER = "ORDER"
    INVOICE = "INVOICE"


def load_order(ctx: UseCaseContext, order_id: int) -> Order:
    order = ctx.orders.get_by_id(order_id)
    if order is None:
        raise EntityNotFoundError(f"Order #{order_id} not found")
    return order


def load_invoice(ctx: UseCaseContext, invoice_id: int) -> Invoice:
    invoice = ctx.invoices.get_by_id(invoice_id)
    if invoice is None:
        raise EntityNotFoundError(f"Invoice #{invoice_id} not found")
    return invoice


def check_stock_secured(ctx: UseCaseContext, order: Order) -> None:
    """Raise InsufficientStock if any of the order's reservations was released.

    A reservation swept after expiry whose stock was sold before the order
    was paid off cannot be shipped; the order has to be cancelled instead.
    Committed reservations count as secured so an interrupted shipment
    can be finished.
    """
    for token in order.reservation_tokens:
        reservation = ctx.reservations.get(token)
        if reservation is None or reservation.state is not ReservationState.RELEASED:
            continue
        product = ctx.products.get_by_id(reservation.product_id)
        available = product.available_quantity if product is not None else 0
        logger.warning(
            "Order %s lost its reservation of %d x product %s",
            order.id, reservation.quantity, reservation.product_id,
        )
        raise InsufficientStock(reservation.product_id, reservation.quantity, available)
