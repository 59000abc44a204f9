"""Application service: Place Order use case.

Snapshots current product prices into line items, reserves stock for
every product (all or nothing) and persists the order as pending
payment.  Nothing is persisted when a reservation fails.
"""

from __future__ import annotations

import logging
from datetime import datetime

from csm.application.context import UseCaseContext
from csm.application.dto import OrderItemSpec
from csm.domain.exceptions import EntityNotFoundError
from csm.domain.model.line_item import LineItem
from csm.domain.model.order import Order, OrderMilestone
from csm.domain.model.value_objects import Discount, Money
from csm.domain.service.status_deriver import check_order_milestone

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(self, ctx: UseCaseContext) -> None:
        self._ctx = ctx

    def handle(
        self,
        customer_name: str,
        item_specs: list[OrderItemSpec],
        currency: str | None = None,
        discounts: list[Discount] | None = None,
        shipping_cost: Money | None = None,
        handling_fee: Money | None = None,
    ) -> Order:
        """Place a new order.

        Steps:
        1. Resolve each product and build a line item at its *current* price.
        2. Let the Order aggregate validate its business rules and compute totals.
        3. Reserve stock for every product, rolling back on failure.
        4. Number, mark as placed and persist.
        """
        ctx = self._ctx
        now = ctx.clock.now()

        line_items: list[LineItem] = []
        for spec in item_specs:
            product = ctx.products.get_by_id(spec.product_id)
            if product is None:
                raise EntityNotFoundError(f"Product not found: '{spec.product_id}'")
            line_items.append(
                LineItem(
                    unit_price=product.price,  # <-- price snapshot
                    quantity=spec.quantity,
                    product_id=product.id,
                    description=product.name,
                    discount=spec.discount,
                    tax_rate=spec.tax_rate,
                )
            )

        order = Order.create(
            customer_name=customer_name,
            items=line_items,
            currency=currency or ctx.accounting_currency,
            created_at=now,
            return_window_days=ctx.return_window_days,
        )
        for discount in discounts or []:
            order.add_discount(discount)
        order.set_shipping_cost(shipping_cost)
        order.set_extra_charges(handling_fee)

        reconciler = ctx.reconciler()
        reconciler.reconcile(order, now)  # rejects invalid items before touching stock
        check_order_milestone(order, OrderMilestone.PLACED, now)

        order.id = ctx.orders.next_id()
        reservations = ctx.reservation_manager().reserve_many(
            order.quantities_by_product, order_id=order.id
        )
        order.reservation_tokens = [r.token for r in reservations]
        order.order_number = _order_number(now, ctx.orders.count_created_on(now.date()) + 1)
        order.record(OrderMilestone.PLACED, now)
        reconciler.reconcile(order, now)
        ctx.orders.save(order)

        logger.info(
            "Placed order %s (%s) for %s: total %s",
            order.id, order.order_number, order.customer_name, order.total,
        )
        return order


def _order_number(now: datetime, sequence: int) -> str:
    return f"ORD-{now:%Y%m%d}-{sequence:04d}"
